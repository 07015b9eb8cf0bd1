"""
Stream helpers shared by the extended key deserializer and the RLP decoder.

Every read is exact: asking for n bytes and receiving fewer raises ReadError naming the field being read.
"""
from io import BytesIO
from typing import Union, Optional

from .exceptions import ReadError

__all__ = ["SERIALIZED", "get_stream", "read_stream", "read_big_int", "bytes_remaining", "at_end"]

SERIALIZED = Union[bytes, bytearray, memoryview, BytesIO]


def get_stream(data: SERIALIZED) -> BytesIO:
    """
    Wrap raw bytes in a BytesIO. An existing stream is returned as is so callers can keep reading from it.
    """
    if isinstance(data, BytesIO):
        return data
    if isinstance(data, (bytes, bytearray, memoryview)):
        return BytesIO(bytes(data))
    raise TypeError(f"Expected bytes or BytesIO, got {type(data).__name__}")


def read_stream(stream: BytesIO, length: int, field: Optional[str] = None) -> bytes:
    if length < 0:
        raise ReadError(f"Negative read length {length}")
    data = stream.read(length)
    if len(data) != length:
        where = f" while reading {field}" if field else ""
        raise ReadError(f"Needed {length} bytes{where}, only {len(data)} available")
    return data


def read_big_int(stream: BytesIO, length: int, field: Optional[str] = None) -> int:
    """Big-endian unsigned integer of exactly length bytes"""
    return int.from_bytes(read_stream(stream, length, field), "big")


def bytes_remaining(stream: BytesIO) -> int:
    return len(stream.getbuffer()) - stream.tell()


def at_end(stream: BytesIO) -> bool:
    return bytes_remaining(stream) == 0
