"""
ERC-4337 account abstraction, EntryPoint v0.7 PackedUserOperation.

Gas limits and gas fees are each packed into a bytes32 of two 128-bit halves:
    account_gas_limits = verification_gas_limit (16) || call_gas_limit (16)
    gas_fees           = max_priority_fee_per_gas (16) || max_fee_per_gas (16)

The user operation hash is keccak256(abi.encode(keccak256(packed_fields), entry_point, chain_id)).
"""
from dataclasses import dataclass, replace
from typing import Optional

from hdsigner.core.exceptions import ValidationError, InvalidSignature
from hdsigner.core.formats import EVM, ERC4337
from hdsigner.cryptography.hash_functions import keccak256
from hdsigner.data.encoding import hex_to_bytes
from hdsigner.signing.address import Address
from hdsigner.signing.eip712 import encode_address, encode_uint256, encode_uint64
from hdsigner.signing.signature import Signature

__all__ = ["ENTRY_POINT_V07", "PackedUserOperation", "PackedUserOperationBuilder", "pack_gas_limits",
           "unpack_gas_limits", "pack_gas_fees", "unpack_gas_fees", "hash_user_operation", "sign_user_operation",
           "verify_user_operation"]

ENTRY_POINT_V07 = Address.from_hex(ERC4337.ENTRY_POINT_V07)

HALF = ERC4337.GAS_HALF_BYTES


def _check_uint128(value: int, name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool) or not (0 <= value <= EVM.MAX_UINT128):
        raise ValidationError(f"{name} must fit in 128 bits")
    return value


def _pack_halves(high: int, low: int, high_name: str, low_name: str) -> bytes:
    return _check_uint128(high, high_name).to_bytes(HALF, "big") + _check_uint128(low, low_name).to_bytes(HALF, "big")


def _unpack_halves(packed: bytes) -> tuple[int, int]:
    if len(packed) != EVM.WORD_BYTES:
        raise ValidationError(f"Packed value must be {EVM.WORD_BYTES} bytes, got {len(packed)}")
    return int.from_bytes(packed[:HALF], "big"), int.from_bytes(packed[HALF:], "big")


def pack_gas_limits(verification_gas_limit: int, call_gas_limit: int) -> bytes:
    return _pack_halves(verification_gas_limit, call_gas_limit, "verification_gas_limit", "call_gas_limit")


def unpack_gas_limits(packed: bytes) -> tuple[int, int]:
    """Returns (verification_gas_limit, call_gas_limit)"""
    return _unpack_halves(packed)


def pack_gas_fees(max_priority_fee_per_gas: int, max_fee_per_gas: int) -> bytes:
    return _pack_halves(max_priority_fee_per_gas, max_fee_per_gas, "max_priority_fee_per_gas", "max_fee_per_gas")


def unpack_gas_fees(packed: bytes) -> tuple[int, int]:
    """Returns (max_priority_fee_per_gas, max_fee_per_gas)"""
    return _unpack_halves(packed)


@dataclass(frozen=True)
class PackedUserOperation:
    sender: Address
    nonce: int
    init_code: bytes
    call_data: bytes
    account_gas_limits: bytes
    pre_verification_gas: int
    gas_fees: bytes
    paymaster_and_data: bytes = b''
    signature: bytes = b''

    pack_gas_limits = staticmethod(pack_gas_limits)
    unpack_gas_limits = staticmethod(unpack_gas_limits)
    pack_gas_fees = staticmethod(pack_gas_fees)
    unpack_gas_fees = staticmethod(unpack_gas_fees)

    def __post_init__(self):
        for name in ("init_code", "call_data", "account_gas_limits", "gas_fees", "paymaster_and_data", "signature"):
            object.__setattr__(self, name, bytes(getattr(self, name)))
        if not isinstance(self.nonce, int) or not (0 <= self.nonce <= EVM.MAX_UINT256):
            raise ValidationError("nonce must be an unsigned 256-bit integer")
        if not isinstance(self.pre_verification_gas, int) or not (0 <= self.pre_verification_gas <= EVM.MAX_UINT256):
            raise ValidationError("pre_verification_gas must be an unsigned 256-bit integer")
        for name in ("account_gas_limits", "gas_fees"):
            if len(getattr(self, name)) != EVM.WORD_BYTES:
                raise ValidationError(f"{name} must be {EVM.WORD_BYTES} bytes")

    @classmethod
    def builder(cls) -> "PackedUserOperationBuilder":
        return PackedUserOperationBuilder()

    # --- ACCESSORS --- #
    @property
    def verification_gas_limit(self) -> int:
        return unpack_gas_limits(self.account_gas_limits)[0]

    @property
    def call_gas_limit(self) -> int:
        return unpack_gas_limits(self.account_gas_limits)[1]

    @property
    def max_priority_fee_per_gas(self) -> int:
        return unpack_gas_fees(self.gas_fees)[0]

    @property
    def max_fee_per_gas(self) -> int:
        return unpack_gas_fees(self.gas_fees)[1]

    # --- PAYMASTER --- #
    def has_paymaster(self) -> bool:
        return len(self.paymaster_and_data) >= EVM.ADDRESS_BYTES

    def paymaster_address(self) -> Optional[Address]:
        if not self.has_paymaster():
            return None
        return Address.from_bytes(self.paymaster_and_data[:EVM.ADDRESS_BYTES])

    def paymaster_data(self) -> bytes:
        return self.paymaster_and_data[EVM.ADDRESS_BYTES:]

    def with_signature(self, signature: Signature | bytes) -> "PackedUserOperation":
        """
        A copy carrying the signature; the hash does not cover this field
        """
        data = signature.to_bytes() if isinstance(signature, Signature) else bytes(signature)
        return replace(self, signature=data)

    def encode_fields(self) -> bytes:
        """
        The eight hashed fields, each as one 32-byte ABI word. Dynamic fields are replaced by their keccak256.
        """
        return b''.join([
            encode_address(self.sender),
            encode_uint256(self.nonce),
            keccak256(self.init_code),
            keccak256(self.call_data),
            self.account_gas_limits,
            encode_uint256(self.pre_verification_gas),
            self.gas_fees,
            keccak256(self.paymaster_and_data)
        ])

    def to_dict(self):
        return {
            "sender": self.sender.to_checksum_string(),
            "nonce": self.nonce,
            "init_code": self.init_code.hex(),
            "call_data": self.call_data.hex(),
            "account_gas_limits": self.account_gas_limits.hex(),
            "pre_verification_gas": self.pre_verification_gas,
            "gas_fees": self.gas_fees.hex(),
            "paymaster_and_data": self.paymaster_and_data.hex(),
            "signature": self.signature.hex()
        }


class PackedUserOperationBuilder:
    """
    sender, nonce, account gas limits, pre-verification gas and gas fees are required on build()
    """
    REQUIRED = ("sender", "nonce", "account_gas_limits", "pre_verification_gas", "gas_fees")

    def __init__(self):
        self._fields: dict = {"init_code": b'', "call_data": b'', "paymaster_and_data": b''}

    def sender(self, address: Address | str):
        self._fields["sender"] = Address.from_hex(address) if isinstance(address, str) else address
        return self

    def nonce(self, nonce: int):
        self._fields["nonce"] = nonce
        return self

    def init_code(self, init_code: bytes | str):
        self._fields["init_code"] = hex_to_bytes(init_code) if isinstance(init_code, str) else bytes(init_code)
        return self

    def call_data(self, call_data: bytes | str):
        self._fields["call_data"] = hex_to_bytes(call_data) if isinstance(call_data, str) else bytes(call_data)
        return self

    def account_gas_limits(self, verification_gas_limit: int, call_gas_limit: int):
        self._fields["account_gas_limits"] = pack_gas_limits(verification_gas_limit, call_gas_limit)
        return self

    def account_gas_limits_packed(self, packed: bytes):
        self._fields["account_gas_limits"] = bytes(packed)
        return self

    def pre_verification_gas(self, gas: int):
        self._fields["pre_verification_gas"] = _check_uint128(gas, "pre_verification_gas")
        return self

    def gas_fees(self, max_priority_fee_per_gas: int, max_fee_per_gas: int):
        self._fields["gas_fees"] = pack_gas_fees(max_priority_fee_per_gas, max_fee_per_gas)
        return self

    def gas_fees_packed(self, packed: bytes):
        self._fields["gas_fees"] = bytes(packed)
        return self

    def paymaster(self, address: Address, data: bytes = b''):
        self._fields["paymaster_and_data"] = address.to_bytes() + bytes(data)
        return self

    def paymaster_and_data_raw(self, data: bytes):
        self._fields["paymaster_and_data"] = bytes(data)
        return self

    def build(self) -> PackedUserOperation:
        for name in self.REQUIRED:
            if name not in self._fields:
                raise ValidationError(f"{name} is required")
        _check_uint128(self._fields["nonce"], "nonce")
        return PackedUserOperation(**self._fields)


# --- HASH / SIGN / VERIFY --- #

def hash_user_operation(user_op: PackedUserOperation, entry_point: Address, chain_id: int) -> bytes:
    inner = keccak256(user_op.encode_fields())
    return keccak256(inner + encode_address(entry_point) + encode_uint64(int(chain_id)))


def sign_user_operation(signer, user_op: PackedUserOperation, entry_point: Address, chain_id: int) -> Signature:
    return signer.sign_hash(hash_user_operation(user_op, entry_point, chain_id))


def verify_user_operation(user_op: PackedUserOperation, entry_point: Address, chain_id: int, signature: Signature,
                          expected: Address) -> bool:
    try:
        return signature.recover_address(hash_user_operation(user_op, entry_point, chain_id)) == expected
    except InvalidSignature:
        return False
