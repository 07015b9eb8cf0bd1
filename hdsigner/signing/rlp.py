"""
Methods for Recursive Length Prefix (RLP) encoding and decoding.

An item is either a byte string or a list of items. Integers are encoded as their minimal big-endian byte string
(zero is the empty string). Decoding is strict: lengths must be minimally encoded, single bytes below 0x80 must not
be wrapped, and no bytes may trail the top-level item.
"""
from io import BytesIO

from hdsigner.core.byte_stream import SERIALIZED, get_stream, read_stream, read_big_int, at_end
from hdsigner.core.exceptions import RLPError, ReadError

__all__ = ["RLPItem", "encode", "encode_int", "encode_bytes", "encode_list", "decode", "decode_int",
           "int_to_min_bytes"]

RLPItem = bytes | list

SHORT_STRING = 0x80
LONG_STRING = 0xb7
SHORT_LIST = 0xc0
LONG_LIST = 0xf7
SHORT_LIMIT = 55


def int_to_min_bytes(value: int) -> bytes:
    if value < 0:
        raise RLPError("RLP cannot encode negative integers")
    return value.to_bytes((value.bit_length() + 7) // 8, "big")


def _length_prefix(length: int, short_offset: int) -> bytes:
    if length <= SHORT_LIMIT:
        return bytes([short_offset + length])
    length_bytes = int_to_min_bytes(length)
    return bytes([short_offset + SHORT_LIMIT + len(length_bytes)]) + length_bytes


# --- ENCODE --- #

def encode_bytes(data: bytes) -> bytes:
    data = bytes(data)
    if len(data) == 1 and data[0] < SHORT_STRING:
        return data
    return _length_prefix(len(data), SHORT_STRING) + data


def encode_int(value: int) -> bytes:
    return encode_bytes(int_to_min_bytes(value))


def encode_list(items: list | tuple) -> bytes:
    payload = b''.join(encode(item) for item in items)
    return _length_prefix(len(payload), SHORT_LIST) + payload


def encode(item) -> bytes:
    """
    Encode bytes, int or a (nested) list/tuple of those
    """
    if isinstance(item, bool):
        raise RLPError("RLP does not encode booleans")
    if isinstance(item, int):
        return encode_int(item)
    if isinstance(item, (bytes, bytearray)):
        return encode_bytes(item)
    if isinstance(item, (list, tuple)):
        return encode_list(item)
    raise RLPError(f"Cannot RLP encode type {type(item).__name__}")


# --- DECODE --- #

def _read_long_length(stream: BytesIO, length_of_length: int) -> int:
    length_bytes = read_stream(stream, length_of_length, "RLP length")
    if length_bytes[0] == 0:
        raise RLPError("RLP length has leading zero bytes")
    length = int.from_bytes(length_bytes, "big")
    if length <= SHORT_LIMIT:
        raise RLPError("RLP long form used for a short payload")
    return length


def _decode_item(stream: BytesIO) -> RLPItem:
    prefix = read_big_int(stream, 1, "RLP prefix")

    # Single byte
    if prefix < SHORT_STRING:
        return bytes([prefix])

    # Short string
    if prefix <= LONG_STRING:
        length = prefix - SHORT_STRING
        data = read_stream(stream, length, "RLP string")
        if length == 1 and data[0] < SHORT_STRING:
            raise RLPError("Single byte below 0x80 must not carry a length prefix")
        return data

    # Long string
    if prefix < SHORT_LIST:
        length = _read_long_length(stream, prefix - LONG_STRING)
        return read_stream(stream, length, "RLP long string")

    # Short or long list
    if prefix <= LONG_LIST:
        length = prefix - SHORT_LIST
    else:
        length = _read_long_length(stream, prefix - LONG_LIST)
    payload = BytesIO(read_stream(stream, length, "RLP list payload"))
    items = []
    while not at_end(payload):
        items.append(_decode_item(payload))
    return items


def decode(data: SERIALIZED) -> RLPItem:
    """
    Decode a single RLP item. Raises RLPError on truncated, non-canonical or trailing data.
    """
    stream = get_stream(data)
    try:
        item = _decode_item(stream)
    except ReadError as e:
        raise RLPError(f"Truncated RLP data: {e}") from e
    if not at_end(stream):
        raise RLPError("Trailing bytes after RLP item")
    return item


def decode_int(data: bytes, max_bytes: int = 32) -> int:
    """
    Interpret a decoded RLP string as a canonical unsigned integer
    """
    if not isinstance(data, bytes):
        raise RLPError("Expected an RLP string for an integer field")
    if len(data) > max_bytes:
        raise RLPError(f"Integer longer than {max_bytes} bytes")
    if data and data[0] == 0:
        raise RLPError("Integer has leading zero bytes")
    return int.from_bytes(data, "big")
