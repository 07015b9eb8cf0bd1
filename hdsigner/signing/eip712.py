"""
EIP-712 typed structured data hashing and signing.

A message type implements Eip712Type by giving its canonical type string and the concatenated 32-byte encoding of
its fields. The digest that gets signed is keccak256(0x19 0x01 || domain_separator || hash_struct(message)).
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from hdsigner.core.exceptions import ValidationError, InvalidSignature
from hdsigner.core.formats import EVM
from hdsigner.cryptography.hash_functions import keccak256
from hdsigner.signing.address import Address
from hdsigner.signing.signature import Signature

__all__ = ["Eip712Type", "Eip712Domain", "Eip712DomainBuilder", "encode_address", "encode_uint256", "encode_uint64",
           "encode_bool", "encode_bytes32", "encode_bytes_dynamic", "encode_string", "hash_typed_data",
           "sign_typed_data", "verify_typed_data"]


# --- ABI WORD ENCODING --- #

def encode_address(address: Address) -> bytes:
    return address.to_bytes().rjust(EVM.WORD_BYTES, b'\x00')


def encode_uint256(value: int) -> bytes:
    if not (0 <= value <= EVM.MAX_UINT256):
        raise ValidationError("uint256 value out of range")
    return value.to_bytes(EVM.WORD_BYTES, "big")


def encode_uint64(value: int) -> bytes:
    if not (0 <= value <= EVM.MAX_UINT64):
        raise ValidationError("uint64 value out of range")
    return value.to_bytes(EVM.WORD_BYTES, "big")


def encode_bool(value: bool) -> bytes:
    return (1 if value else 0).to_bytes(EVM.WORD_BYTES, "big")


def encode_bytes32(value: bytes) -> bytes:
    if len(value) != EVM.WORD_BYTES:
        raise ValidationError(f"bytes32 value must be {EVM.WORD_BYTES} bytes, got {len(value)}")
    return bytes(value)


def encode_bytes_dynamic(value: bytes) -> bytes:
    """Dynamic bytes are encoded as their keccak256 hash"""
    return keccak256(bytes(value))


def encode_string(value: str) -> bytes:
    return keccak256(value.encode("utf-8"))


# --- TYPED MESSAGES --- #

class Eip712Type(ABC):
    """
    Subclasses set TYPE_STRING (e.g. "Mail(address from,address to,string contents)") and implement encode_data.
    """
    TYPE_STRING: str = ""

    @classmethod
    def type_string(cls) -> str:
        return cls.TYPE_STRING

    @abstractmethod
    def encode_data(self) -> bytes:
        """Concatenated 32-byte encodings of each member, in declaration order"""
        pass

    @classmethod
    def type_hash(cls) -> bytes:
        return keccak256(cls.type_string().encode("utf-8"))

    def hash_struct(self) -> bytes:
        return keccak256(self.type_hash() + self.encode_data())


@dataclass(frozen=True)
class Eip712Domain:
    """
    The signing domain. Each field is optional but at least one must be present; only present fields take part in
    the type string and the separator.
    """
    name: Optional[str] = None
    version: Optional[str] = None
    chain_id: Optional[int] = None
    verifying_contract: Optional[Address] = None
    salt: Optional[bytes] = None

    def __post_init__(self):
        if all(getattr(self, f) is None for f in ("name", "version", "chain_id", "verifying_contract", "salt")):
            raise ValidationError("EIP-712 domain must have at least one field")
        if self.salt is not None and len(self.salt) != EVM.WORD_BYTES:
            raise ValidationError(f"Domain salt must be {EVM.WORD_BYTES} bytes")

    @classmethod
    def builder(cls) -> "Eip712DomainBuilder":
        return Eip712DomainBuilder()

    def type_string(self) -> str:
        members = []
        if self.name is not None:
            members.append("string name")
        if self.version is not None:
            members.append("string version")
        if self.chain_id is not None:
            members.append("uint256 chainId")
        if self.verifying_contract is not None:
            members.append("address verifyingContract")
        if self.salt is not None:
            members.append("bytes32 salt")
        return f"EIP712Domain({','.join(members)})"

    def type_hash(self) -> bytes:
        return keccak256(self.type_string().encode("utf-8"))

    def domain_separator(self) -> bytes:
        encoded = self.type_hash()
        if self.name is not None:
            encoded += encode_string(self.name)
        if self.version is not None:
            encoded += encode_string(self.version)
        if self.chain_id is not None:
            encoded += encode_uint256(int(self.chain_id))
        if self.verifying_contract is not None:
            encoded += encode_address(self.verifying_contract)
        if self.salt is not None:
            encoded += encode_bytes32(self.salt)
        return keccak256(encoded)


class Eip712DomainBuilder:
    def __init__(self):
        self._fields = {}

    def name(self, name: str):
        self._fields["name"] = name
        return self

    def version(self, version: str):
        self._fields["version"] = version
        return self

    def chain_id(self, chain_id: int):
        self._fields["chain_id"] = int(chain_id)
        return self

    def verifying_contract(self, address: Address | str):
        self._fields["verifying_contract"] = Address.from_hex(address) if isinstance(address, str) else address
        return self

    def salt(self, salt: bytes):
        self._fields["salt"] = bytes(salt)
        return self

    def build(self) -> Eip712Domain:
        return Eip712Domain(**self._fields)


# --- HASH / SIGN / VERIFY --- #

def hash_typed_data(domain: Eip712Domain, message: Eip712Type) -> bytes:
    return keccak256(EVM.TYPED_DATA_PREFIX + domain.domain_separator() + message.hash_struct())


def sign_typed_data(signer, domain: Eip712Domain, message: Eip712Type) -> Signature:
    """
    Sign with any object exposing sign_hash(digest), normally a Bip44Signer
    """
    return signer.sign_hash(hash_typed_data(domain, message))


def verify_typed_data(domain: Eip712Domain, message: Eip712Type, signature: Signature, expected: Address) -> bool:
    try:
        return signature.recover_address(hash_typed_data(domain, message)) == expected
    except InvalidSignature:
        return False
