"""
The Account class: one m/purpose'/coin_type'/account' key and the addresses below it.

Chain-level keys (.../0 and .../1) are derived lazily and cached per account. Address-level keys are never cached;
use derive_address_range to derive many addresses from one chain key.
"""
import threading
from dataclasses import dataclass
from typing import Iterator, Optional

from hdsigner.core.exceptions import InvalidAccount
from hdsigner.core.formats import XKEYS
from hdsigner.core.logging import get_logger
from hdsigner.signing.address import Address
from hdsigner.wallet.child_number import ChildNumber
from hdsigner.wallet.network import Network
from hdsigner.wallet.path import Bip44Path
from hdsigner.wallet.types import Purpose, CoinType, Chain
from hdsigner.wallet.xkeys import ExtendedPrivateKey, ExtendedPublicKey

__all__ = ["Account", "AccountMetadata", "DerivedAddress", "AddressIterator"]

logger = get_logger(__name__)


@dataclass(frozen=True)
class AccountMetadata:
    """
    The public description of an account, safe to persist or display
    """
    purpose: Purpose
    coin_type: CoinType
    account_index: int
    network: Network

    @classmethod
    def from_account(cls, account: "Account") -> "AccountMetadata":
        return cls(account.purpose, account.coin_type, account.account_index, account.network)

    def to_dict(self) -> dict:
        return {
            "purpose": int(self.purpose),
            "coin_type": self.coin_type.index,
            "account_index": self.account_index,
            "network": self.network.name
        }


class Account:
    __slots__ = ("purpose", "coin_type", "account_index", "extended_key", "_chain_keys", "_lock")

    def __init__(self, extended_key: ExtendedPrivateKey, purpose: Purpose, coin_type: CoinType, account_index: int):
        if not (0 <= account_index <= XKEYS.MAX_NORMAL_INDEX):
            raise InvalidAccount(f"Account index {account_index} exceeds maximum hardened index")
        self.extended_key = extended_key
        self.purpose = purpose
        self.coin_type = coin_type
        self.account_index = account_index
        self._chain_keys: dict[Chain, ExtendedPrivateKey] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_extended_key(cls, extended_key: ExtendedPrivateKey, purpose: Purpose, coin_type: CoinType,
                          account_index: int) -> "Account":
        return cls(extended_key, purpose, coin_type, account_index)

    def __repr__(self):
        return (f"Account(purpose={int(self.purpose)}, coin_type={self.coin_type.index}, "
                f"account_index={self.account_index})")

    # --- PROPERTIES --- #
    @property
    def network(self) -> Network:
        return self.extended_key.network

    @property
    def metadata(self) -> AccountMetadata:
        return AccountMetadata.from_account(self)

    def extended_public_key(self) -> ExtendedPublicKey:
        """The account xpub for watch-only use"""
        return self.extended_key.to_public()

    def path(self, chain: Chain = Chain.EXTERNAL, address_index: int = 0) -> Bip44Path:
        return Bip44Path(self.purpose, self.coin_type, self.account_index, chain, address_index)

    # --- DERIVATION --- #
    def chain_key(self, chain: Chain) -> ExtendedPrivateKey:
        """
        Returns the cached chain-level key, deriving it on first use
        """
        chain = Chain.from_value(chain)
        with self._lock:
            key = self._chain_keys.get(chain)
            if key is None:
                key = self.extended_key.derive_child(ChildNumber.normal(int(chain)))
                self._chain_keys[chain] = key
                logger.debug("Cached %s chain key for %r", chain, self)
        return key

    def derive_address(self, chain: Chain, address_index: int) -> ExtendedPrivateKey:
        return self.chain_key(chain).derive_child(ChildNumber.normal(address_index))

    def derive_external(self, address_index: int) -> ExtendedPrivateKey:
        return self.derive_address(Chain.EXTERNAL, address_index)

    def derive_internal(self, address_index: int) -> ExtendedPrivateKey:
        return self.derive_address(Chain.INTERNAL, address_index)

    def derive_address_range(self, chain: Chain, start_index: int, count: int) -> list[ExtendedPrivateKey]:
        """
        Derive count consecutive address keys starting at start_index, walking the chain key once
        """
        if count < 0:
            raise InvalidAccount("Address count must be non-negative")
        if count and start_index + count - 1 > XKEYS.MAX_NORMAL_INDEX:
            raise InvalidAccount("Address range exceeds the maximum normal index")
        chain_key = self.chain_key(chain)
        return [chain_key.derive_child(ChildNumber.normal(i)) for i in range(start_index, start_index + count)]

    def derived_address(self, chain: Chain, address_index: int) -> "DerivedAddress":
        return DerivedAddress(self.derive_address(chain, address_index), self.path(Chain.from_value(chain),
                                                                                   address_index))

    def addresses(self, chain: Chain = Chain.EXTERNAL, start: int = 0,
                  max_index: Optional[int] = None) -> "AddressIterator":
        return AddressIterator(self, chain, start, max_index)

    # --- ZEROIZE --- #
    def zeroize(self):
        """Overwrite the account key and every cached chain key"""
        with self._lock:
            for key in self._chain_keys.values():
                key.zeroize()
            self._chain_keys.clear()
            self.extended_key.zeroize()

    @property
    def cached_chain_count(self) -> int:
        return len(self._chain_keys)


@dataclass(frozen=True)
class DerivedAddress:
    """
    An address-level key together with its full BIP44 path
    """
    key: ExtendedPrivateKey
    path: Bip44Path

    @property
    def chain(self) -> Chain:
        return self.path.chain

    @property
    def index(self) -> int:
        return self.path.address_index

    @property
    def purpose(self) -> Purpose:
        return self.path.purpose

    @property
    def coin_type(self) -> CoinType:
        return self.path.coin_type

    @property
    def account_index(self) -> int:
        return self.path.account

    @property
    def network(self) -> Network:
        return self.key.network

    @property
    def is_external(self) -> bool:
        return self.path.chain.is_external

    @property
    def is_internal(self) -> bool:
        return self.path.chain.is_internal

    def public_key(self):
        return self.key.public_key()

    def evm_address(self) -> Address:
        return Address.from_public_key(self.key.public_key())

    def __repr__(self):
        return f"DerivedAddress(path={self.path})"


class AddressIterator:
    """
    Iterates DerivedAddress values on one chain, from start up to and including max_index (unbounded when None)
    """

    def __init__(self, account: Account, chain: Chain = Chain.EXTERNAL, start: int = 0,
                 max_index: Optional[int] = None):
        self.account = account
        self.chain = Chain.from_value(chain)
        self.current_index = start
        self.max_index = XKEYS.MAX_NORMAL_INDEX if max_index is None else min(max_index, XKEYS.MAX_NORMAL_INDEX)

    def __iter__(self) -> Iterator[DerivedAddress]:
        return self

    def __next__(self) -> DerivedAddress:
        if self.current_index > self.max_index:
            raise StopIteration
        index = self.current_index
        self.current_index += 1
        return self.account.derived_address(self.chain, index)
