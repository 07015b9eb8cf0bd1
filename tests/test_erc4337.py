"""
Tests for ERC-4337 v0.7 packed user operations
"""
import pytest

from hdsigner.core import ValidationError, EVM
from hdsigner.cryptography import keccak256
from hdsigner.signing import (Address, ENTRY_POINT_V07, PackedUserOperation, pack_gas_limits, unpack_gas_limits,
                              pack_gas_fees, unpack_gas_fees, hash_user_operation, sign_user_operation,
                              verify_user_operation, encode_address, encode_uint256)
from tests.utility import TEST_KEY_ADDRESS, TRANSFER_RECIPIENT

PAYMASTER = Address.from_hex(TRANSFER_RECIPIENT)


@pytest.fixture()
def user_op():
    return (PackedUserOperation.builder()
            .sender(TEST_KEY_ADDRESS)
            .nonce(7)
            .call_data("0xb61d27f6")
            .account_gas_limits(100_000, 200_000)
            .pre_verification_gas(50_000)
            .gas_fees(EVM.GWEI, 5 * EVM.GWEI)
            .build())


def test_gas_packing():
    packed = pack_gas_limits(100_000, 200_000)
    assert len(packed) == 32
    assert packed[:16] == (100_000).to_bytes(16, "big"), "Verification gas should occupy the high half"
    assert unpack_gas_limits(packed) == (100_000, 200_000)

    fees = pack_gas_fees(EVM.MAX_UINT128, 0)
    assert fees == b"\xff" * 16 + bytes(16)
    assert unpack_gas_fees(fees) == (EVM.MAX_UINT128, 0)


def test_gas_packing_bounds():
    with pytest.raises(ValidationError):
        pack_gas_limits(2 ** 128, 0)
    with pytest.raises(ValidationError):
        pack_gas_fees(0, -1)
    with pytest.raises(ValidationError):
        unpack_gas_fees(bytes(31))


def test_accessors(user_op):
    assert user_op.verification_gas_limit == 100_000
    assert user_op.call_gas_limit == 200_000
    assert user_op.max_priority_fee_per_gas == EVM.GWEI
    assert user_op.max_fee_per_gas == 5 * EVM.GWEI
    assert user_op.init_code == b"" and user_op.call_data == bytes.fromhex("b61d27f6")
    assert not user_op.has_paymaster() and user_op.paymaster_address() is None


def test_builder_required_fields():
    with pytest.raises(ValidationError):
        PackedUserOperation.builder().sender(TEST_KEY_ADDRESS).nonce(0).gas_fees(1, 1).build()
    with pytest.raises(ValidationError):
        (PackedUserOperation.builder().sender(TEST_KEY_ADDRESS).nonce(2 ** 128).account_gas_limits(1, 1)
         .pre_verification_gas(1).gas_fees(1, 1).build())


def test_paymaster():
    paymaster_data = bytes.fromhex("deadbeef")
    op = (PackedUserOperation.builder()
          .sender(TEST_KEY_ADDRESS)
          .nonce(0)
          .account_gas_limits(1, 1)
          .pre_verification_gas(1)
          .gas_fees(1, 1)
          .paymaster(PAYMASTER, paymaster_data)
          .build())
    assert op.has_paymaster()
    assert op.paymaster_address() == PAYMASTER
    assert op.paymaster_data() == paymaster_data


def test_hash_composition(user_op):
    inner = keccak256(user_op.encode_fields())
    expected = keccak256(inner + encode_address(ENTRY_POINT_V07) + encode_uint256(56))
    assert hash_user_operation(user_op, ENTRY_POINT_V07, 56) == expected
    assert len(user_op.encode_fields()) == 8 * 32, "Eight hashed fields of one word each"


def test_hash_binds_chain_and_entry_point(user_op):
    base = hash_user_operation(user_op, ENTRY_POINT_V07, 56)
    assert hash_user_operation(user_op, ENTRY_POINT_V07, 97) != base
    assert hash_user_operation(user_op, PAYMASTER, 56) != base


def test_sign_and_verify(user_op, test_signer):
    signature = sign_user_operation(test_signer, user_op, ENTRY_POINT_V07, 56)
    assert verify_user_operation(user_op, ENTRY_POINT_V07, 56, signature, test_signer.address())
    assert not verify_user_operation(user_op, ENTRY_POINT_V07, 97, signature, test_signer.address())

    signed_op = user_op.with_signature(signature)
    assert signed_op.signature == signature.to_bytes() and len(signed_op.signature) == 65
    assert user_op.signature == b"", "with_signature must not modify the original"
    assert hash_user_operation(signed_op, ENTRY_POINT_V07, 56) == hash_user_operation(user_op, ENTRY_POINT_V07, 56)


def test_to_dict(user_op):
    op_dict = user_op.to_dict()
    assert op_dict["sender"] == TEST_KEY_ADDRESS
    assert op_dict["nonce"] == 7
    assert op_dict["call_data"] == "b61d27f6"
