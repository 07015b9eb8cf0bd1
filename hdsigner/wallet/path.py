"""
The Bip44Path class: m / purpose' / coin_type' / account' / chain / address_index
"""
from dataclasses import dataclass, replace
from typing import Optional

from hdsigner.core.exceptions import PathParseError, InvalidAccount, WalletError
from hdsigner.core.formats import XKEYS, WALLET
from hdsigner.wallet.child_number import ChildNumber
from hdsigner.wallet.derivation import DerivationPath, parse_child_component
from hdsigner.wallet.types import Purpose, CoinType, Chain

__all__ = ["Bip44Path", "Bip44PathBuilder"]

MAX_INDEX = XKEYS.MAX_NORMAL_INDEX
LEVEL_NAMES = ("purpose", "coin_type", "account", "chain", "address_index")


@dataclass(frozen=True)
class Bip44Path:
    purpose: Purpose
    coin_type: CoinType
    account: int
    chain: Chain
    address_index: int

    def __post_init__(self):
        # Coerce plain values into their level types
        if not isinstance(self.purpose, Purpose):
            object.__setattr__(self, "purpose", Purpose.from_value(self.purpose))
        if not isinstance(self.coin_type, CoinType):
            object.__setattr__(self, "coin_type", CoinType(self.coin_type))
        if not isinstance(self.chain, Chain):
            object.__setattr__(self, "chain", Chain.from_value(self.chain))
        if not (0 <= self.account <= MAX_INDEX):
            raise InvalidAccount(f"Account index {self.account} exceeds maximum hardened index {MAX_INDEX}")
        if not (0 <= self.address_index <= MAX_INDEX):
            raise InvalidAccount(f"Address index {self.address_index} exceeds maximum index {MAX_INDEX}")

    @classmethod
    def builder(cls) -> "Bip44PathBuilder":
        return Bip44PathBuilder()

    @classmethod
    def parse(cls, path: str) -> "Bip44Path":
        """
        Parse strings like m/44'/60'/0'/0/0. The hardened levels accept ', h or H as the marker.
        """
        parts = path.strip().split("/")
        if parts[0] != "m":
            raise PathParseError(path, "path must start with 'm'", parts[0])
        components = parts[1:]
        if len(components) != WALLET.PATH_LEVELS:
            raise PathParseError(path, f"expected {WALLET.PATH_LEVELS} levels after 'm', got {len(components)}")

        children = []
        for level, component in enumerate(components):
            child = parse_child_component(path, component)
            name = LEVEL_NAMES[level]
            if level < WALLET.HARDENED_LEVELS and not child.is_hardened:
                raise PathParseError(path, f"{name} level '{component}' must be hardened", component)
            if level >= WALLET.HARDENED_LEVELS and child.is_hardened:
                raise PathParseError(path, f"{name} level '{component}' must not be hardened", component)
            children.append(child)

        purpose, coin, account, chain, index = (c.index for c in children)
        try:
            purpose = Purpose.from_value(purpose)
        except WalletError as e:
            raise PathParseError(path, str(e), components[0]) from e
        try:
            chain = Chain.from_value(chain)
        except WalletError as e:
            raise PathParseError(path, str(e), components[3]) from e
        return cls(purpose, CoinType(coin), account, chain, index)

    # --- CONVERSION --- #
    def to_derivation_sequence(self) -> tuple[ChildNumber, ...]:
        return (
            ChildNumber.hardened(int(self.purpose)),
            ChildNumber.hardened(self.coin_type.index),
            ChildNumber.hardened(self.account),
            ChildNumber.normal(int(self.chain)),
            ChildNumber.normal(self.address_index),
        )

    def to_derivation_path(self) -> DerivationPath:
        return DerivationPath(self.to_derivation_sequence())

    def account_path(self) -> DerivationPath:
        """The first three (hardened) levels"""
        return DerivationPath(self.to_derivation_sequence()[:WALLET.HARDENED_LEVELS])

    # --- DERIVED PATHS --- #
    def with_chain(self, chain: Chain) -> "Bip44Path":
        return replace(self, chain=chain)

    def with_address_index(self, address_index: int) -> "Bip44Path":
        return replace(self, address_index=address_index)

    def next_address(self) -> "Bip44Path":
        return replace(self, address_index=self.address_index + 1)

    def __str__(self):
        return (f"m/{int(self.purpose)}'/{self.coin_type.index}'/{self.account}'/"
                f"{int(self.chain)}/{self.address_index}")


class Bip44PathBuilder:
    """
    Fluent builder. Fields are only validated on build(); purpose, coin_type and account are required.
    """

    def __init__(self):
        self._purpose: Optional[Purpose | int] = None
        self._coin_type: Optional[CoinType | int] = None
        self._account: Optional[int] = None
        self._chain: Chain | int = Chain.EXTERNAL
        self._address_index: int = 0

    def purpose(self, purpose: Purpose | int) -> "Bip44PathBuilder":
        self._purpose = purpose
        return self

    def coin_type(self, coin_type: CoinType | int) -> "Bip44PathBuilder":
        self._coin_type = coin_type
        return self

    def account(self, account: int) -> "Bip44PathBuilder":
        self._account = account
        return self

    def chain(self, chain: Chain | int) -> "Bip44PathBuilder":
        self._chain = chain
        return self

    def address_index(self, address_index: int) -> "Bip44PathBuilder":
        self._address_index = address_index
        return self

    def build(self) -> Bip44Path:
        missing = [name for name, value in (("purpose", self._purpose), ("coin_type", self._coin_type),
                                            ("account", self._account)) if value is None]
        if missing:
            raise WalletError(f"Missing required path field(s): {', '.join(missing)}")
        return Bip44Path(self._purpose, self._coin_type, self._account, self._chain, self._address_index)
