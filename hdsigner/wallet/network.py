"""
Network and key-type tags for extended keys, and the version bytes each combination serializes to
"""
from enum import Enum

from hdsigner.core.exceptions import InvalidSerialization
from hdsigner.core.formats import XKEYS

__all__ = ["Network", "KeyType"]


class KeyType(Enum):
    PRIVATE = "private"
    PUBLIC = "public"


class Network(Enum):
    BITCOIN_MAINNET = (XKEYS.MAINNET_PRIVATE, XKEYS.MAINNET_PUBLIC, "xprv", "xpub")
    BITCOIN_TESTNET = (XKEYS.TESTNET_PRIVATE, XKEYS.TESTNET_PUBLIC, "tprv", "tpub")

    def __init__(self, private_version: bytes, public_version: bytes, private_prefix: str, public_prefix: str):
        self.private_version = private_version
        self.public_version = public_version
        self.private_prefix = private_prefix
        self.public_prefix = public_prefix

    def version_bytes(self, key_type: KeyType) -> bytes:
        match key_type:
            case KeyType.PRIVATE:
                return self.private_version
            case KeyType.PUBLIC:
                return self.public_version

    def string_prefix(self, key_type: KeyType) -> str:
        match key_type:
            case KeyType.PRIVATE:
                return self.private_prefix
            case KeyType.PUBLIC:
                return self.public_prefix

    @property
    def is_testnet(self) -> bool:
        return self is Network.BITCOIN_TESTNET

    @classmethod
    def from_version(cls, version: bytes) -> tuple["Network", KeyType]:
        """
        Returns the (network, key type) pair for the given 4 version bytes
        """
        for network in cls:
            if version == network.private_version:
                return network, KeyType.PRIVATE
            if version == network.public_version:
                return network, KeyType.PUBLIC
        raise InvalidSerialization(f"Unknown version bytes: {bytes(version).hex()}")
