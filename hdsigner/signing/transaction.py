"""
EIP-1559 (type 0x02) transactions.

Unsigned encoding: 0x02 || rlp([chain_id, nonce, max_priority_fee_per_gas, max_fee_per_gas, gas_limit, to, value,
data, access_list]). The signing hash is keccak256 of that encoding.
"""
import json
from dataclasses import dataclass, field
from typing import Optional

from hdsigner.core.exceptions import ValidationError, RLPError, InvalidAddress
from hdsigner.core.formats import EVM
from hdsigner.core.logging import get_logger
from hdsigner.cryptography.hash_functions import keccak256
from hdsigner.data.encoding import hex_to_bytes
from hdsigner.signing import rlp
from hdsigner.signing.address import Address
from hdsigner.signing.chain_id import ChainId
from hdsigner.signing.wei import check_uint256

__all__ = ["AccessListItem", "Eip1559Transaction", "Eip1559TransactionBuilder"]

logger = get_logger(__name__)


def _as_bytes(data: bytes | str) -> bytes:
    return hex_to_bytes(data) if isinstance(data, str) else bytes(data)


def _check_uint64(value: int, name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool) or not (0 <= value <= EVM.MAX_UINT64):
        raise ValidationError(f"{name} must be an unsigned 64-bit integer")
    return value


@dataclass(frozen=True)
class AccessListItem:
    address: Address
    storage_keys: tuple[bytes, ...] = field(default_factory=tuple)

    def __post_init__(self):
        keys = tuple(bytes(k) for k in self.storage_keys)
        for key in keys:
            if len(key) != EVM.WORD_BYTES:
                raise ValidationError(f"Storage key must be {EVM.WORD_BYTES} bytes, got {len(key)}")
        object.__setattr__(self, "storage_keys", keys)

    @classmethod
    def address_only(cls, address: Address) -> "AccessListItem":
        return cls(address)

    def to_rlp(self) -> list:
        return [self.address.to_bytes(), list(self.storage_keys)]

    @classmethod
    def from_rlp(cls, item) -> "AccessListItem":
        if not isinstance(item, list) or len(item) != 2 or not isinstance(item[1], list):
            raise RLPError("Access list entry must be [address, [storage_keys]]")
        try:
            address = Address.from_bytes(item[0])
        except (InvalidAddress, TypeError) as e:
            raise RLPError("Invalid access list address") from e
        if any(not isinstance(k, bytes) or len(k) != EVM.WORD_BYTES for k in item[1]):
            raise RLPError("Access list storage keys must be 32-byte strings")
        return cls(address, tuple(item[1]))


@dataclass(frozen=True)
class Eip1559Transaction:
    chain_id: ChainId
    nonce: int
    max_priority_fee_per_gas: int
    max_fee_per_gas: int
    gas_limit: int
    to: Optional[Address] = None
    value: int = 0
    data: bytes = b''
    access_list: tuple[AccessListItem, ...] = field(default_factory=tuple)

    TYPE = EVM.TX_TYPE_EIP1559

    def __post_init__(self):
        object.__setattr__(self, "chain_id", ChainId.of(self.chain_id))
        object.__setattr__(self, "data", bytes(self.data))
        object.__setattr__(self, "access_list", tuple(self.access_list))
        self.validate()

    @classmethod
    def builder(cls) -> "Eip1559TransactionBuilder":
        return Eip1559TransactionBuilder()

    def validate(self):
        """
        Range checks on every numeric field, then the fee ordering and the intrinsic gas floor
        """
        _check_uint64(self.nonce, "nonce")
        _check_uint64(self.gas_limit, "gas_limit")
        check_uint256(self.max_priority_fee_per_gas, "max_priority_fee_per_gas")
        check_uint256(self.max_fee_per_gas, "max_fee_per_gas")
        check_uint256(self.value, "value")
        if self.to is not None and not isinstance(self.to, Address):
            raise ValidationError("to must be an Address or None")

        if self.max_fee_per_gas < self.max_priority_fee_per_gas:
            raise ValidationError("max_fee_per_gas must be >= max_priority_fee_per_gas")
        if self.gas_limit < EVM.TRANSFER_GAS:
            raise ValidationError(f"gas_limit must be at least {EVM.TRANSFER_GAS}, got {self.gas_limit}")

    # --- PROPERTIES --- #
    def is_contract_creation(self) -> bool:
        return self.to is None

    def is_transfer(self) -> bool:
        return self.to is not None and not self.data

    # --- ENCODING --- #
    def rlp_fields(self) -> list:
        """
        The nine transaction fields in wire order, ready for RLP encoding
        """
        return [
            self.chain_id.value,
            self.nonce,
            self.max_priority_fee_per_gas,
            self.max_fee_per_gas,
            self.gas_limit,
            self.to.to_bytes() if self.to is not None else b'',
            self.value,
            self.data,
            [item.to_rlp() for item in self.access_list]
        ]

    @classmethod
    def from_rlp_fields(cls, fields: list) -> "Eip1559Transaction":
        if len(fields) != 9:
            raise RLPError(f"EIP-1559 transaction has 9 fields, got {len(fields)}")
        chain_id, nonce, priority_fee, max_fee, gas_limit, to, value, data, access_list = fields
        if not isinstance(to, bytes) or not isinstance(data, bytes) or not isinstance(access_list, list):
            raise RLPError("Malformed EIP-1559 transaction fields")
        if to and len(to) != EVM.ADDRESS_BYTES:
            raise RLPError(f"Recipient must be empty or {EVM.ADDRESS_BYTES} bytes")
        return cls(
            chain_id=rlp.decode_int(chain_id, 8),
            nonce=rlp.decode_int(nonce, 8),
            max_priority_fee_per_gas=rlp.decode_int(priority_fee),
            max_fee_per_gas=rlp.decode_int(max_fee),
            gas_limit=rlp.decode_int(gas_limit, 8),
            to=Address.from_bytes(to) if to else None,
            value=rlp.decode_int(value),
            data=data,
            access_list=tuple(AccessListItem.from_rlp(item) for item in access_list)
        )

    def encode_unsigned(self) -> bytes:
        return bytes([self.TYPE]) + rlp.encode(self.rlp_fields())

    def signing_hash(self) -> bytes:
        return keccak256(self.encode_unsigned())

    def to_dict(self):
        return {
            "type": hex(self.TYPE),
            "chain_id": self.chain_id.value,
            "nonce": self.nonce,
            "max_priority_fee_per_gas": self.max_priority_fee_per_gas,
            "max_fee_per_gas": self.max_fee_per_gas,
            "gas_limit": self.gas_limit,
            "to": self.to.to_checksum_string() if self.to is not None else None,
            "value": self.value,
            "data": self.data.hex(),
            "access_list": [
                {"address": item.address.to_checksum_string(), "storage_keys": [k.hex() for k in item.storage_keys]}
                for item in self.access_list
            ]
        }

    def to_json(self):
        return json.dumps(self.to_dict(), indent=2)


class Eip1559TransactionBuilder:
    """
    Collects fields and validates them together on build(). chain_id, nonce, both fee caps and gas_limit are
    required; value defaults to 0, data to empty and to None (contract creation).
    """
    REQUIRED = ("chain_id", "nonce", "max_priority_fee_per_gas", "max_fee_per_gas", "gas_limit")

    def __init__(self):
        self._fields: dict = {}
        self._access_list: list[AccessListItem] = []

    def chain_id(self, chain_id: ChainId | int):
        self._fields["chain_id"] = chain_id
        return self

    def nonce(self, nonce: int):
        self._fields["nonce"] = nonce
        return self

    def max_priority_fee_per_gas(self, fee: int):
        self._fields["max_priority_fee_per_gas"] = fee
        return self

    def max_fee_per_gas(self, fee: int):
        self._fields["max_fee_per_gas"] = fee
        return self

    def gas_limit(self, gas_limit: int):
        self._fields["gas_limit"] = gas_limit
        return self

    def to(self, address: Address | str):
        self._fields["to"] = Address.from_hex(address) if isinstance(address, str) else address
        return self

    def value(self, value: int):
        self._fields["value"] = value
        return self

    def data(self, data: bytes | str):
        self._fields["data"] = _as_bytes(data)
        return self

    def access_list(self, items):
        self._access_list = list(items)
        return self

    def add_access_list_item(self, item: AccessListItem):
        self._access_list.append(item)
        return self

    def build(self) -> Eip1559Transaction:
        for name in self.REQUIRED:
            if name not in self._fields:
                raise ValidationError(f"{name} is required")
        tx = Eip1559Transaction(access_list=tuple(self._access_list), **self._fields)
        logger.debug("Built EIP-1559 transaction on chain %d with nonce %d", tx.chain_id.value, tx.nonce)
        return tx
