"""
Denomination helpers. Amounts are plain Python ints in wei.
"""
from decimal import Decimal, InvalidOperation

from hdsigner.core.exceptions import ValidationError
from hdsigner.core.formats import EVM

__all__ = ["WEI", "GWEI", "ETHER", "UNITS", "to_wei", "from_wei", "check_uint256"]

WEI = EVM.WEI
GWEI = EVM.GWEI
ETHER = EVM.ETHER

UNITS = {
    "wei": WEI,
    "gwei": GWEI,
    "ether": ETHER,
}


def _unit_value(unit: str) -> int:
    try:
        return UNITS[unit.lower()]
    except KeyError:
        raise ValidationError(f"Unknown unit '{unit}'. Known units: {', '.join(UNITS)}") from None


def check_uint256(value: int, field: str = "value") -> int:
    if not isinstance(value, int) or isinstance(value, bool) or not (0 <= value <= EVM.MAX_UINT256):
        raise ValidationError(f"{field} must be an unsigned 256-bit integer")
    return value


def to_wei(amount: int | str | Decimal, unit: str = "ether") -> int:
    """
    Convert an amount in the given unit to wei. Fractions of a wei are rejected.
    """
    try:
        scaled = Decimal(str(amount)) * _unit_value(unit)
    except InvalidOperation as e:
        raise ValidationError(f"Invalid amount: {amount!r}") from e
    if scaled != scaled.to_integral_value():
        raise ValidationError(f"{amount} {unit} is not a whole number of wei")
    return check_uint256(int(scaled))


def from_wei(amount: int, unit: str = "ether") -> Decimal:
    """Exact conversion from wei to the given unit"""
    check_uint256(amount, "amount")
    return Decimal(amount) / Decimal(_unit_value(unit))
