"""
The EVM Address class with EIP-55 checksum support.

An address is the last 20 bytes of keccak256 of the 64-byte uncompressed public key (without its 0x04 prefix).
"""
from typing import ClassVar

from hdsigner.core.exceptions import InvalidAddress
from hdsigner.core.formats import EVM
from hdsigner.cryptography.hash_functions import keccak256
from hdsigner.data.encoding import strip_hex_prefix
from hdsigner.data.keys import PubKey

__all__ = ["Address"]

HEX_LENGTH = 2 * EVM.ADDRESS_BYTES


def _checksum_case(lower_hex: str) -> str:
    """
    Uppercase each hex letter whose nibble in keccak256(lowercase hex) is >= 8
    """
    digest = keccak256(lower_hex.encode("ascii")).hex()
    return "".join(c.upper() if c.isalpha() and int(digest[i], 16) >= 8 else c for i, c in enumerate(lower_hex))


class Address:
    __slots__ = ("_bytes",)
    ZERO: ClassVar["Address"]

    def __init__(self, data: bytes):
        if len(data) != EVM.ADDRESS_BYTES:
            raise InvalidAddress(f"expected {EVM.ADDRESS_BYTES} bytes, got {len(data)}")
        self._bytes = bytes(data)

    # --- CONSTRUCTORS --- #
    @classmethod
    def from_bytes(cls, data: bytes) -> "Address":
        return cls(data)

    @classmethod
    def from_hex(cls, hex_string: str) -> "Address":
        """
        Accepts 40 hex characters with or without 0x. Mixed-case input must carry a valid EIP-55 checksum.
        """
        body = strip_hex_prefix(hex_string.strip())
        if len(body) != HEX_LENGTH:
            raise InvalidAddress(f"expected {HEX_LENGTH} hex characters, got {len(body)}")
        try:
            data = bytes.fromhex(body)
        except ValueError as e:
            raise InvalidAddress(f"invalid hex address: {hex_string}") from e
        if not cls.validate_checksum(body):
            raise InvalidAddress(f"invalid EIP-55 checksum: {hex_string}")
        return cls(data)

    @classmethod
    def from_public_key(cls, pubkey: PubKey | bytes) -> "Address":
        """
        Accepts a PubKey, a 65-byte uncompressed key or the 64-byte x || y encoding
        """
        if isinstance(pubkey, PubKey):
            raw = pubkey.uncompressed()[1:]
        elif len(pubkey) == 65 and pubkey[0] == 0x04:
            raw = bytes(pubkey[1:])
        elif len(pubkey) == 64:
            raw = bytes(pubkey)
        else:
            raise InvalidAddress(f"public key must be 64 or 65 bytes uncompressed, got {len(pubkey)}")
        return cls(keccak256(raw)[-EVM.ADDRESS_BYTES:])

    # --- CHECKSUM --- #
    @staticmethod
    def validate_checksum(address: str) -> bool:
        """
        All-lowercase and all-uppercase strings pass without a checksum, as EIP-55 allows
        """
        body = strip_hex_prefix(address)
        if len(body) != HEX_LENGTH:
            return False
        if body == body.lower() or body == body.upper():
            return True
        return _checksum_case(body.lower()) == body

    def to_checksum_string(self) -> str:
        return "0x" + _checksum_case(self._bytes.hex())

    # --- ACCESSORS --- #
    def to_bytes(self) -> bytes:
        return self._bytes

    def to_hex(self) -> str:
        """Lowercase with 0x prefix"""
        return "0x" + self._bytes.hex()

    @property
    def is_zero(self) -> bool:
        return self._bytes == bytes(EVM.ADDRESS_BYTES)

    # --- OVERRIDES --- #
    def __eq__(self, other):
        if not isinstance(other, Address):
            return NotImplemented
        return self._bytes == other._bytes

    def __hash__(self):
        return hash(self._bytes)

    def __bytes__(self):
        return self._bytes

    def __str__(self):
        return self.to_checksum_string()

    def __repr__(self):
        return f"Address({self.to_checksum_string()})"


Address.ZERO = Address(bytes(EVM.ADDRESS_BYTES))
