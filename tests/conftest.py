"""
Fixtures used in the tests
"""
import pytest

from hdsigner.core import EVM
from hdsigner.cryptography import SECP256K1
from hdsigner.signing import Address, Bip44Signer, ChainId, Eip1559Transaction
from hdsigner.wallet import Network, Wallet, Purpose, CoinType
from tests.utility import ABANDON_SEED, TEST_PRIVATE_KEY, TRANSFER_RECIPIENT


@pytest.fixture()
def curve():
    return SECP256K1


@pytest.fixture()
def wallet():
    return Wallet.from_seed(ABANDON_SEED, Network.BITCOIN_MAINNET)


@pytest.fixture()
def eth_account(wallet):
    return wallet.get_account(Purpose.BIP44, CoinType.ETHEREUM, 0)


@pytest.fixture()
def test_signer():
    return Bip44Signer.from_private_key(TEST_PRIVATE_KEY)


@pytest.fixture()
def transfer_tx():
    """
    Chain 56, nonce 0, 1 gwei tip, 5 gwei cap, 21000 gas, 1 ether to a fixed recipient
    """
    return (Eip1559Transaction.builder()
            .chain_id(ChainId.BSC_MAINNET)
            .nonce(0)
            .max_priority_fee_per_gas(EVM.GWEI)
            .max_fee_per_gas(5 * EVM.GWEI)
            .gas_limit(EVM.TRANSFER_GAS)
            .to(Address.from_hex(TRANSFER_RECIPIENT))
            .value(EVM.ETHER)
            .build())
