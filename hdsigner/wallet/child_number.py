"""
The ChildNumber class: a normal or hardened child index in the BIP32 tree
"""
from dataclasses import dataclass

from hdsigner.core.exceptions import InvalidChildNumber
from hdsigner.core.formats import XKEYS

__all__ = ["ChildNumber"]

HARDENED_OFFSET = XKEYS.HARDENED_OFFSET


@dataclass(frozen=True, order=True)
class ChildNumber:
    """
    index is the unhardened value in [0, 2^31). The wire value adds 2^31 for hardened children.
    """
    index: int
    is_hardened: bool = False

    def __post_init__(self):
        if not isinstance(self.index, int) or not (0 <= self.index <= XKEYS.MAX_NORMAL_INDEX):
            raise InvalidChildNumber(f"Child index {self.index} must be in the range [0, 2^31 - 1]")

    @classmethod
    def normal(cls, index: int) -> "ChildNumber":
        return cls(index, is_hardened=False)

    @classmethod
    def hardened(cls, index: int) -> "ChildNumber":
        return cls(index, is_hardened=True)

    @classmethod
    def from_index(cls, wire_index: int) -> "ChildNumber":
        """
        Build from the 32-bit value used on the wire
        """
        if not (0 <= wire_index <= XKEYS.MAX_INDEX):
            raise InvalidChildNumber(f"Child number {wire_index} does not fit in 32 bits")
        if wire_index >= HARDENED_OFFSET:
            return cls(wire_index - HARDENED_OFFSET, is_hardened=True)
        return cls(wire_index, is_hardened=False)

    def to_index(self) -> int:
        return self.index + HARDENED_OFFSET if self.is_hardened else self.index

    @property
    def is_normal(self) -> bool:
        return not self.is_hardened

    def to_bytes(self) -> bytes:
        return self.to_index().to_bytes(4, "big")

    def __str__(self):
        return f"{self.index}'" if self.is_hardened else str(self.index)

    def __int__(self):
        return self.to_index()
