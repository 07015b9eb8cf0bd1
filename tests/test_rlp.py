"""
Tests for RLP encoding and strict decoding
"""
import pytest

from hdsigner.core import RLPError
from hdsigner.signing import rlp

LOREM = b"Lorem ipsum dolor sit amet, consectetur adipisicing elit"

# item, encoded hex
KNOWN_ENCODINGS = [
    (b"dog", "83646f67"),
    ([b"cat", b"dog"], "c88363617483646f67"),
    (b"", "80"),
    ([], "c0"),
    (0, "80"),
    (b"\x00", "00"),
    (15, "0f"),
    (127, "7f"),
    (128, "8180"),
    (1024, "820400"),
    ([[], [[]], [[], [[]]]], "c7c0c1c0c3c0c1c0"),
    (LOREM, "b838" + LOREM.hex()),
]


@pytest.mark.parametrize("item, expected_hex", KNOWN_ENCODINGS)
def test_known_encodings(item, expected_hex):
    assert rlp.encode(item).hex() == expected_hex, f"RLP encoding mismatch for {item!r}"


def test_decode_known():
    assert rlp.decode(bytes.fromhex("c88363617483646f67")) == [b"cat", b"dog"]
    assert rlp.decode(bytes.fromhex("c7c0c1c0c3c0c1c0")) == [[], [[]], [[], [[]]]]
    assert rlp.decode(bytes.fromhex("b838" + LOREM.hex())) == LOREM
    assert rlp.decode_int(rlp.decode(bytes.fromhex("820400"))) == 1024
    assert rlp.decode_int(rlp.decode(bytes.fromhex("80"))) == 0


def test_long_list():
    items = [LOREM, LOREM]
    encoded = rlp.encode(items)
    payload_length = 2 * (2 + len(LOREM))
    assert encoded[:2] == bytes([0xf8, payload_length]), "Long list prefix mismatch"
    assert rlp.decode(encoded) == items


@pytest.mark.parametrize("bad_hex", [
    "8100",  # single byte below 0x80 with a length prefix
    "b80300ff01",  # long form for a three byte string
    "b900380000",  # long form length with a leading zero
    "83646f6700",  # trailing byte
    "83646f",  # truncated string
    "c88363617483646f",  # truncated list
    "",  # empty input
])
def test_strict_decode_failures(bad_hex):
    with pytest.raises(RLPError):
        rlp.decode(bytes.fromhex(bad_hex))


def test_decode_int_rejects_non_canonical():
    with pytest.raises(RLPError):
        rlp.decode_int(b"\x00\x01")
    with pytest.raises(RLPError):
        rlp.decode_int(b"\x01" * 33)
    with pytest.raises(RLPError):
        rlp.decode_int([b"\x01"])


def test_unsupported_types():
    for item in [True, -1, "text", 1.5, None]:
        with pytest.raises(RLPError):
            rlp.encode(item)
