"""
Methods for encoding and decoding
"""
from hdsigner.core.exceptions import DataEncodingError
from hdsigner.core.logging import get_logger
from hdsigner.cryptography.hash_functions import hash256

logger = get_logger(__name__)

__all__ = ["BASE58_ALPHABET", "encode_base58", "decode_base58", "encode_base58check", "decode_base58check",
           "strip_hex_prefix", "hex_to_bytes", "bytes_to_hex"]

# --- BASE58 ENCODING --- #
BASE58_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
_BASE58_INDEX = {char: i for i, char in enumerate(BASE58_ALPHABET)}


def encode_base58(data: bytes) -> str:
    """
    We return the base58 encoding of the given bytes data
    """
    base = len(BASE58_ALPHABET)
    n = int.from_bytes(data, byteorder="big")
    encoded_chars = []

    while n > 0:
        n, temp_index = divmod(n, base)
        encoded_chars.append(BASE58_ALPHABET[temp_index])

    # Each leading zero byte becomes a leading '1'
    leading_zeros = len(data) - len(bytes(data).lstrip(b'\x00'))
    return "1" * leading_zeros + "".join(reversed(encoded_chars))


def decode_base58(data: str) -> bytes:
    """
    Given a base58 encoded string, return the underlying bytes. Characters outside the alphabet raise a
    DataEncodingError.
    """
    total = 0
    for char in data:
        char_i = _BASE58_INDEX.get(char)
        if char_i is None:
            raise DataEncodingError(f"Invalid base58 character: {char!r}")
        total = total * 58 + char_i

    decoded_bytes = total.to_bytes((total.bit_length() + 7) // 8, "big")

    # Each leading '1' represents a leading zero byte
    leading_zeros = len(data) - len(data.lstrip("1"))
    return b'\x00' * leading_zeros + decoded_bytes


def encode_base58check(data: bytes) -> str:
    """
    Given bytes data, we return the base58 encoding along with checksum
    """
    checksum = hash256(data)[:4]
    return encode_base58(bytes(data) + checksum)


def decode_base58check(data: str) -> bytes:
    """
    Given a string of base58Check chars, we decode it and return the payload without checksum.
    Raise DataEncodingError if the checksum fails.
    """
    decoded = decode_base58(data)
    if len(decoded) < 4:
        raise DataEncodingError("Base58Check data too short for checksum")
    payload, checksum = decoded[:-4], decoded[-4:]
    if hash256(payload)[:4] != checksum:
        logger.debug("Base58Check checksum mismatch for %d byte payload", len(payload))
        raise DataEncodingError("Decoded checksum does not equal given checksum")
    return payload


# --- HEX --- #

def strip_hex_prefix(hex_string: str) -> str:
    return hex_string[2:] if hex_string[:2] in ("0x", "0X") else hex_string


def hex_to_bytes(hex_string: str) -> bytes:
    """
    Accepts hex with or without 0x prefix
    """
    try:
        return bytes.fromhex(strip_hex_prefix(hex_string))
    except ValueError as e:
        raise DataEncodingError("Invalid hex string") from e


def bytes_to_hex(data: bytes, prefix: bool = True) -> str:
    return ("0x" if prefix else "") + bytes(data).hex()
