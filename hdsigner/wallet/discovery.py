"""
Gap-limit account discovery.

The blockchain is queried through an AccountDiscovery implementation supplied by the caller. Addresses are visited
strictly in index order; a chain scan stops once gap_limit consecutive unused addresses have been seen.

Known limitation: discover_accounts stops at the first account with no used addresses on either chain, so funds in
an account that follows a skipped (never used) account index are not found.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, Optional

from hdsigner.core.exceptions import DiscoveryError, WalletError
from hdsigner.core.formats import WALLET, XKEYS
from hdsigner.core.logging import get_logger
from hdsigner.signing.address import Address
from hdsigner.wallet.account import Account, DerivedAddress
from hdsigner.wallet.types import Purpose, CoinType, Chain

__all__ = ["AccountDiscovery", "InMemoryDiscovery", "GapLimitChecker", "ChainScanResult", "AccountScanResult",
           "AccountScanner", "discover_accounts"]

logger = get_logger(__name__)


class AccountDiscovery(ABC):
    """
    The chain-query collaborator. Implementations answer whether an address has ever been used.
    """

    @abstractmethod
    def is_address_used(self, address: DerivedAddress) -> bool:
        pass


class InMemoryDiscovery(AccountDiscovery):
    """
    Discovery backend holding used addresses in memory. Entries are either (account, chain, index) positions or
    EVM addresses.
    """

    def __init__(self):
        self._used_positions: set[tuple[int, Chain, int]] = set()
        self._used_addresses: set[Address] = set()

    @classmethod
    def with_used_indices(cls, indices, chain: Chain = Chain.EXTERNAL, account_index: int = 0):
        discovery = cls()
        for index in indices:
            discovery.mark_used(index, chain, account_index)
        return discovery

    def mark_used(self, address_index: int, chain: Chain = Chain.EXTERNAL, account_index: int = 0):
        self._used_positions.add((account_index, Chain.from_value(chain), address_index))

    def mark_unused(self, address_index: int, chain: Chain = Chain.EXTERNAL, account_index: int = 0):
        self._used_positions.discard((account_index, Chain.from_value(chain), address_index))

    def mark_address_used(self, address: Address | str):
        if isinstance(address, str):
            address = Address.from_hex(address)
        self._used_addresses.add(address)

    def clear(self):
        self._used_positions.clear()
        self._used_addresses.clear()

    @property
    def used_count(self) -> int:
        return len(self._used_positions) + len(self._used_addresses)

    def is_address_used(self, address: DerivedAddress) -> bool:
        if (address.account_index, address.chain, address.index) in self._used_positions:
            return True
        if self._used_addresses:
            return address.evm_address() in self._used_addresses
        return False


class GapLimitChecker:
    def __init__(self, gap_limit: int = WALLET.DEFAULT_GAP_LIMIT):
        if gap_limit < 1:
            raise WalletError("Gap limit must be at least 1")
        self.gap_limit = gap_limit

    def find_used_indices(self, is_used: Callable[[int], bool], start_index: int = 0) -> list[int]:
        """
        Visit indices from start_index in order. Stops after gap_limit consecutive unused indices.
        """
        used_indices = []
        consecutive_unused = 0
        index = start_index
        while index <= XKEYS.MAX_NORMAL_INDEX:
            if is_used(index):
                used_indices.append(index)
                consecutive_unused = 0
            else:
                consecutive_unused += 1
                if consecutive_unused >= self.gap_limit:
                    break
            index += 1
        return used_indices

    def find_last_used_index(self, is_used: Callable[[int], bool], start_index: int = 0) -> Optional[int]:
        used = self.find_used_indices(is_used, start_index)
        return used[-1] if used else None


@dataclass(frozen=True)
class ChainScanResult:
    chain: Chain
    used_indices: tuple[int, ...] = field(default_factory=tuple)

    @property
    def used_count(self) -> int:
        return len(self.used_indices)

    @property
    def last_used_index(self) -> Optional[int]:
        return self.used_indices[-1] if self.used_indices else None

    @property
    def next_unused_index(self) -> int:
        """First index after the last used one"""
        return 0 if self.last_used_index is None else self.last_used_index + 1


@dataclass(frozen=True)
class AccountScanResult:
    account_index: int
    external: ChainScanResult
    internal: ChainScanResult

    @property
    def is_used(self) -> bool:
        return self.external.used_count > 0 or self.internal.used_count > 0

    @property
    def total_used_count(self) -> int:
        return self.external.used_count + self.internal.used_count


class AccountScanner:
    def __init__(self, checker: Optional[GapLimitChecker] = None):
        self.checker = checker if checker is not None else GapLimitChecker()

    @property
    def gap_limit(self) -> int:
        return self.checker.gap_limit

    def scan_chain(self, account: Account, chain: Chain, discovery: AccountDiscovery) -> ChainScanResult:
        chain = Chain.from_value(chain)
        chain_key = account.chain_key(chain)

        def is_used(index: int) -> bool:
            derived = DerivedAddress(chain_key.derive_child(index), account.path(chain, index))
            try:
                return bool(discovery.is_address_used(derived))
            except DiscoveryError:
                raise
            except Exception as e:
                raise DiscoveryError(f"Discovery backend failed at {derived.path}") from e

        used = self.checker.find_used_indices(is_used)
        logger.debug("Scanned %s chain of %r: %d used", chain, account, len(used))
        return ChainScanResult(chain, tuple(used))

    def scan_account(self, account: Account, discovery: AccountDiscovery) -> AccountScanResult:
        external = self.scan_chain(account, Chain.EXTERNAL, discovery)
        internal = self.scan_chain(account, Chain.INTERNAL, discovery)
        return AccountScanResult(account.account_index, external, internal)


def discover_accounts(wallet, purpose: Purpose, coin_type: CoinType, discovery: AccountDiscovery,
                      max_accounts: int = WALLET.DEFAULT_MAX_ACCOUNTS,
                      scanner: Optional[AccountScanner] = None) -> list[AccountScanResult]:
    """
    Scan account indices 0, 1, 2, ... and return the results for used accounts. Scanning stops at the first
    account with no used addresses, or after max_accounts accounts.
    """
    scanner = scanner if scanner is not None else AccountScanner()
    results = []
    for account_index in range(max_accounts):
        account = wallet.get_account(purpose, coin_type, account_index)
        result = scanner.scan_account(account, discovery)
        if not result.is_used:
            logger.info("Account %d unused, stopping discovery", account_index)
            break
        results.append(result)
    return results
