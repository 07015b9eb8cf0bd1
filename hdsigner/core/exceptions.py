"""
The custom exceptions used throughout hdsigner
"""
__all__ = ["HDSignerError", "ReadError", "DataEncodingError", "ECCError", "ECDSAError",
           "ExtendedKeyError", "InvalidSeedLength", "InvalidPrivateKey", "InvalidPublicKey", "DerivationError",
           "HardenedFromPublicKey", "MaxDepthExceeded", "InvalidSerialization", "InvalidChildNumber",
           "PathParseError", "WalletError", "InvalidPurpose", "InvalidChain", "InvalidAccount", "DiscoveryError",
           "SigningError", "InvalidAddress", "InvalidChainId", "ValidationError", "RLPError", "InvalidSignature",
           "InvalidDigest"]


class HDSignerError(Exception):
    """
    Parent class for every error raised by hdsigner
    """
    pass


class ReadError(HDSignerError):
    """
    For when trying to read data of length n from the stream and receiving data of length < n
    """
    pass


class DataEncodingError(HDSignerError):
    """
    For use in encoding/decoding algorithms
    """
    pass


class ECCError(HDSignerError):
    """
    For points off the curve or out of range coordinates
    """
    pass


class ECDSAError(HDSignerError):
    """
    Raised during ECDSA operations for out of bounds values
    """
    pass


# --- BIP32 --- #

class ExtendedKeyError(HDSignerError):
    """Custom exception for extended key operations"""
    pass


class InvalidSeedLength(ExtendedKeyError):
    """
    Seed must be between 16 and 64 bytes
    """

    def __init__(self, length: int):
        self.length = length
        super().__init__(f"Invalid seed length: {length} bytes. Seed must be between 16 and 64 bytes")


class InvalidPrivateKey(ExtendedKeyError):
    """
    Private scalar is zero, not less than the curve order or of the wrong length
    """
    pass


class InvalidPublicKey(ExtendedKeyError):
    """
    Public key bytes do not describe a point on secp256k1
    """
    pass


class DerivationError(ExtendedKeyError):
    """
    A child key at a specific index is invalid (IL >= n, zero scalar or point at infinity).
    """

    def __init__(self, index: int, reason: str):
        self.index = index
        super().__init__(f"Derivation failed for child index {index}: {reason}")


class HardenedFromPublicKey(ExtendedKeyError):
    """
    Hardened derivation requested from a public-only key
    """

    def __init__(self, index: int):
        self.index = index
        super().__init__(f"Cannot perform hardened derivation (index {index}) from public key")


class MaxDepthExceeded(ExtendedKeyError):
    """
    Depth 255 keys have no children
    """

    def __init__(self, depth: int):
        self.depth = depth
        super().__init__(f"Maximum derivation depth exceeded: {depth}")


class InvalidSerialization(ExtendedKeyError):
    """
    Malformed Base58Check extended key
    """
    pass


class InvalidChildNumber(ExtendedKeyError):
    """
    Child index outside of its allowed range
    """
    pass


class PathParseError(ExtendedKeyError):
    """
    Malformed derivation path string. The offending component is kept on the instance.
    """

    def __init__(self, path: str, reason: str, component: str | None = None):
        self.path = path
        self.component = component
        self.reason = reason
        super().__init__(f"Invalid derivation path '{path}': {reason}")


# --- BIP44 --- #

class WalletError(HDSignerError):
    """
    Parent class for Wallet errors
    """
    pass


class InvalidPurpose(WalletError):
    def __init__(self, value: int):
        self.value = value
        super().__init__(f"Invalid purpose value: {value}. Valid values are 44, 49, 84, or 86")


class InvalidChain(WalletError):
    def __init__(self, value: int):
        self.value = value
        super().__init__(f"Invalid chain value: {value} (must be 0 for external or 1 for internal)")


class InvalidAccount(WalletError):
    """
    Account or address index outside of the allowed range
    """
    pass


class DiscoveryError(WalletError):
    """
    The blockchain query collaborator failed during account discovery
    """
    pass


# --- SIGNING --- #

class SigningError(HDSignerError):
    """
    Parent class for EVM signing errors
    """
    pass


class InvalidAddress(SigningError):
    pass


class InvalidChainId(SigningError):
    def __init__(self, chain_id: int):
        self.chain_id = chain_id
        super().__init__(f"Invalid chain ID: {chain_id}")


class ValidationError(SigningError):
    """
    Transaction, user operation or domain failed validation on build
    """
    pass


class RLPError(SigningError):
    """
    For use in RLP encoding and decoding
    """
    pass


class InvalidSignature(SigningError):
    pass


class InvalidDigest(SigningError):
    def __init__(self, length: int):
        self.length = length
        super().__init__(f"Digest must be 32 bytes, got {length}")
