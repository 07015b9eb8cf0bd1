"""
The Wallet class - ties a master ExtendedPrivateKey to a cache of BIP44 accounts
"""
import threading
from typing import Optional

from hdsigner.core.exceptions import WalletError
from hdsigner.core.formats import WALLET
from hdsigner.core.logging import get_logger
from hdsigner.wallet.account import Account
from hdsigner.wallet.derivation import DerivationPath
from hdsigner.wallet.discovery import (AccountDiscovery, AccountScanner, AccountScanResult, GapLimitChecker,
                                       discover_accounts)
from hdsigner.wallet.network import Network
from hdsigner.wallet.path import Bip44Path
from hdsigner.wallet.types import Purpose, CoinType
from hdsigner.wallet.xkeys import ExtendedKey, ExtendedPrivateKey, ExtendedPublicKey, master_from_seed

__all__ = ["Wallet", "AccountManager", "WalletBuilder"]

logger = get_logger(__name__)

AccountKey = tuple[Purpose, CoinType, int]


class Wallet:
    """
    Hierarchical Deterministic Wallet implementing BIP32/BIP44.

    Accounts are cached per (purpose, coin_type, account_index). Each cache key has its own lock, so concurrent
    get_account calls for the same key derive it exactly once while different keys derive in parallel.
    """
    __slots__ = ('master_key', '_accounts', '_key_locks', '_cache_lock')

    def __init__(self, master_key: ExtendedPrivateKey):
        self.master_key = master_key
        self._accounts: dict[AccountKey, Account] = {}
        self._key_locks: dict[AccountKey, threading.Lock] = {}
        self._cache_lock = threading.Lock()

    @classmethod
    def from_seed(cls, seed: bytes, network: Network = Network.BITCOIN_MAINNET) -> "Wallet":
        """
        Create a wallet from a 16 to 64 byte seed (typically the 64-byte BIP39 seed)
        """
        return cls(master_from_seed(seed, network))

    @classmethod
    def builder(cls) -> "WalletBuilder":
        return WalletBuilder()

    def __repr__(self):
        return f"Wallet(network={self.network.name}, cached_accounts={self.cached_account_count()})"

    @property
    def network(self) -> Network:
        return self.master_key.network

    # --- ACCOUNTS --- #
    def _lock_for(self, key: AccountKey) -> threading.Lock:
        with self._cache_lock:
            lock = self._key_locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._key_locks[key] = lock
            return lock

    def get_account(self, purpose: Purpose | int, coin_type: CoinType | int, account_index: int) -> Account:
        """
        Returns the account at m/purpose'/coin_type'/account_index', deriving it on first request
        """
        # Bip44Path validates the three levels
        path = Bip44Path(purpose, coin_type, account_index, 0, 0)
        key = (path.purpose, path.coin_type, path.account)

        with self._lock_for(key):
            account = self._accounts.get(key)
            if account is not None:
                logger.debug("Account cache hit for %s/%s/%s", int(path.purpose), path.coin_type.index, path.account)
                return account

            account_key = self.master_key.derive_path(path.account_path())
            account = Account(account_key, path.purpose, path.coin_type, path.account)
            with self._cache_lock:
                self._accounts[key] = account
            logger.debug("Derived account %s/%s/%s", int(path.purpose), path.coin_type.index, path.account)
            return account

    def cached_account_count(self) -> int:
        with self._cache_lock:
            return len(self._accounts)

    def clear_cache(self):
        """
        Drop every cached account and zeroize its key material. Waits for any derivation in flight for a key, so
        nothing derived before the call survives it.
        """
        with self._cache_lock:
            key_locks = list(self._key_locks.items())

        # Per-key locks live as long as the wallet
        cleared = 0
        for key, lock in key_locks:
            with lock:
                with self._cache_lock:
                    account = self._accounts.pop(key, None)
                if account is not None:
                    account.zeroize()
                    cleared += 1
        logger.debug("Cleared %d cached accounts", cleared)

    # --- DERIVATION --- #
    def derive_path(self, path: str | DerivationPath) -> ExtendedKey:
        """
        Derive a key at the given BIP32 path from the master key, e.g. "m/44'/0'/0'/0/0"
        """
        return self.master_key.derive_path(path)

    def derive_bip44(self, path: Bip44Path | str) -> ExtendedPrivateKey:
        """
        Derive the address-level key for a BIP44 path through the account cache
        """
        if isinstance(path, str):
            path = Bip44Path.parse(path)
        account = self.get_account(path.purpose, path.coin_type, path.account)
        return account.derive_address(path.chain, path.address_index)

    def get_master_pubkey(self) -> ExtendedPublicKey:
        return self.master_key.to_public()

    def discover_accounts(self, purpose: Purpose, coin_type: CoinType, discovery: AccountDiscovery,
                          max_accounts: int = WALLET.DEFAULT_MAX_ACCOUNTS,
                          gap_limit: int = WALLET.DEFAULT_GAP_LIMIT) -> list[AccountScanResult]:
        return discover_accounts(self, purpose, coin_type, discovery, max_accounts,
                                 AccountScanner(GapLimitChecker(gap_limit)))

    # --- ZEROIZE --- #
    def zeroize(self):
        self.clear_cache()
        self.master_key.zeroize()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.zeroize()
        return False

    def to_dict(self) -> dict:
        return {
            "network": self.network.name,
            "master_xpub": self.get_master_pubkey().serialize(),
            "cached_accounts": self.cached_account_count()
        }


AccountManager = Wallet


class WalletBuilder:
    """
    Fluent builder; seed and network are both required on build()
    """

    def __init__(self):
        self._seed: Optional[bytes] = None
        self._network: Optional[Network] = None

    def seed(self, seed: bytes) -> "WalletBuilder":
        self._seed = bytes(seed)
        return self

    def network(self, network: Network) -> "WalletBuilder":
        self._network = network
        return self

    def build(self) -> Wallet:
        if self._network is None:
            raise WalletError("Network must be specified")
        if self._seed is None:
            raise WalletError("Seed must be specified")
        return Wallet.from_seed(self._seed, self._network)
