"""
Tests for gap-limit account discovery
"""
import pytest

from hdsigner.core import DiscoveryError, WalletError
from hdsigner.wallet import (AccountDiscovery, InMemoryDiscovery, GapLimitChecker, AccountScanner, Purpose, CoinType,
                             Chain, discover_accounts)
from tests.utility import ABANDON_ETH_ADDRESS

SMALL_GAP = 3


class FailingDiscovery(AccountDiscovery):
    def is_address_used(self, address):
        raise ConnectionError("node unreachable")


class RecordingDiscovery(InMemoryDiscovery):
    """Records each visited (chain, index) so visit order can be checked"""

    def __init__(self):
        super().__init__()
        self.visited = []

    def is_address_used(self, address):
        self.visited.append((address.chain, address.index))
        return super().is_address_used(address)


def test_gap_limit_checker():
    used = {0, 1, 4}
    checker = GapLimitChecker(3)
    assert checker.find_used_indices(lambda i: i in used) == [0, 1, 4]
    assert checker.find_last_used_index(lambda i: i in used) == 4

    # Index 8 sits beyond a gap of three unused addresses
    assert checker.find_used_indices(lambda i: i in {0, 4, 8}) == [0, 4], "Scan should stop after the gap limit"
    assert checker.find_last_used_index(lambda i: False) is None

    with pytest.raises(WalletError):
        GapLimitChecker(0)


def test_scan_visits_in_index_order(eth_account):
    discovery = RecordingDiscovery()
    discovery.mark_used(1)
    scanner = AccountScanner(GapLimitChecker(SMALL_GAP))
    result = scanner.scan_chain(eth_account, Chain.EXTERNAL, discovery)

    assert result.used_indices == (1,)
    assert result.next_unused_index == 2
    assert discovery.visited == [(Chain.EXTERNAL, i) for i in range(5)], "Addresses must be visited in order"


def test_scan_account(eth_account):
    discovery = InMemoryDiscovery.with_used_indices([0, 2])
    discovery.mark_used(0, Chain.INTERNAL)
    result = AccountScanner(GapLimitChecker(SMALL_GAP)).scan_account(eth_account, discovery)

    assert result.is_used
    assert result.external.used_indices == (0, 2)
    assert result.internal.last_used_index == 0
    assert result.total_used_count == 3


def test_discover_stops_at_first_unused_account(wallet):
    discovery = InMemoryDiscovery()
    discovery.mark_used(0, account_index=0)
    discovery.mark_used(5, Chain.INTERNAL, account_index=1)
    # Account 3 is never reached because account 2 is empty
    discovery.mark_used(0, account_index=3)

    results = wallet.discover_accounts(Purpose.BIP44, CoinType.ETHEREUM, discovery, gap_limit=6)
    assert [r.account_index for r in results] == [0, 1]
    assert results[1].internal.used_indices == (5,)


def test_discover_respects_max_accounts(wallet):
    discovery = InMemoryDiscovery()
    for account_index in range(4):
        discovery.mark_used(0, account_index=account_index)
    results = discover_accounts(wallet, Purpose.BIP44, CoinType.ETHEREUM, discovery, max_accounts=2,
                                scanner=AccountScanner(GapLimitChecker(SMALL_GAP)))
    assert len(results) == 2


def test_discover_by_evm_address(wallet):
    discovery = InMemoryDiscovery()
    discovery.mark_address_used(ABANDON_ETH_ADDRESS)
    results = wallet.discover_accounts(Purpose.BIP44, CoinType.ETHEREUM, discovery, gap_limit=SMALL_GAP)
    assert len(results) == 1
    assert results[0].external.used_indices == (0,)
    assert discovery.used_count == 1


def test_no_used_accounts(wallet):
    assert wallet.discover_accounts(Purpose.BIP44, CoinType.ETHEREUM, InMemoryDiscovery(), gap_limit=SMALL_GAP) == []


def test_backend_failure_wrapped(wallet):
    with pytest.raises(DiscoveryError) as exc_info:
        wallet.discover_accounts(Purpose.BIP44, CoinType.ETHEREUM, FailingDiscovery(), gap_limit=SMALL_GAP)
    assert isinstance(exc_info.value.__cause__, ConnectionError), "Backend error should be chained"


def test_in_memory_discovery_mutation():
    discovery = InMemoryDiscovery.with_used_indices([1, 2, 3])
    assert discovery.used_count == 3
    discovery.mark_unused(2)
    assert discovery.used_count == 2
    discovery.clear()
    assert discovery.used_count == 0
