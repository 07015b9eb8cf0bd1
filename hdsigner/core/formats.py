"""
The protocol formats and constants used across hdsigner
"""
from typing import Final

__all__ = ["ECC", "XKEYS", "WALLET", "EVM", "ERC4337"]


class ECC:
    COORD_BYTES: Final[int] = 32
    PRIVKEY_BYTES: Final[int] = 32
    PUBKEY_COMPRESSED: Final[int] = 33
    PUBKEY_UNCOMPRESSED: Final[int] = 65


class XKEYS:
    """
    Constants related to the extended public and private keys
    """
    SEED_KEY: Final[bytes] = b'Bitcoin seed'
    CHAIN_LENGTH: Final[int] = 32
    FINGERPRINT_LENGTH: Final[int] = 4
    MAX_DEPTH: Final[int] = 255

    # Seed bounds in bytes (128 to 512 bits)
    MIN_SEED_BYTES: Final[int] = 16
    MAX_SEED_BYTES: Final[int] = 64

    # Serialized lengths
    PAYLOAD_LENGTH: Final[int] = 78
    SERIALIZED_LENGTH: Final[int] = 82
    CHECKSUM_LENGTH: Final[int] = 4

    # Version bytes for different key types
    MAINNET_PRIVATE: Final[bytes] = bytes.fromhex("0488ade4")
    MAINNET_PUBLIC: Final[bytes] = bytes.fromhex("0488b21e")
    TESTNET_PRIVATE: Final[bytes] = bytes.fromhex("04358394")
    TESTNET_PUBLIC: Final[bytes] = bytes.fromhex("043587cf")

    # Hardened derivation threshold
    HARDENED_OFFSET: Final[int] = 0x80000000
    MAX_NORMAL_INDEX: Final[int] = 0x7fffffff
    MAX_INDEX: Final[int] = 0xffffffff


class WALLET:
    """
    BIP44 account model defaults
    """
    PATH_LEVELS: Final[int] = 5
    HARDENED_LEVELS: Final[int] = 3
    DEFAULT_GAP_LIMIT: Final[int] = 20
    DEFAULT_MAX_ACCOUNTS: Final[int] = 20


class EVM:
    """
    Constants for EVM addresses and EIP-1559 transactions
    """
    ADDRESS_BYTES: Final[int] = 20
    WORD_BYTES: Final[int] = 32
    HASH_BYTES: Final[int] = 32
    SIGNATURE_BYTES: Final[int] = 65
    TX_TYPE_EIP1559: Final[int] = 0x02
    TRANSFER_GAS: Final[int] = 21_000
    MAX_UINT64: Final[int] = 2 ** 64 - 1
    MAX_UINT128: Final[int] = 2 ** 128 - 1
    MAX_UINT256: Final[int] = 2 ** 256 - 1

    # Denominations
    WEI: Final[int] = 1
    GWEI: Final[int] = 10 ** 9
    ETHER: Final[int] = 10 ** 18

    # Known chain ids
    BSC_MAINNET: Final[int] = 56
    BSC_TESTNET: Final[int] = 97

    # EIP-712 prefix
    TYPED_DATA_PREFIX: Final[bytes] = b'\x19\x01'


class ERC4337:
    """
    Account abstraction constants (EntryPoint v0.7)
    """
    ENTRY_POINT_V07: Final[str] = "0x0000000071727De22E5E9d8BAf0edAc6f37da032"
    GAS_HALF_BYTES: Final[int] = 16
