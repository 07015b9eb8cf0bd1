"""
Fixed-width key types: the 32-byte private scalar, the secp256k1 public key and the 32-byte chain code.

Secret material is held in a bytearray so it can be overwritten in place. Each secret type supports explicit
zeroize(), use as a context manager, and clears itself when garbage collected.
"""
import hmac
import json

from hdsigner.core.exceptions import InvalidPrivateKey, InvalidPublicKey, ExtendedKeyError
from hdsigner.core.formats import ECC, XKEYS
from hdsigner.cryptography.ecc import SECP256K1, Point
from hdsigner.cryptography.hash_functions import hash160

__all__ = ["SecretBytes", "PrivateKey", "ChainCode", "PubKey"]


class SecretBytes:
    """
    Base class for a fixed length secret byte buffer
    """
    __slots__ = ("_buffer",)
    LENGTH = 32

    def __init__(self, data: bytes | bytearray):
        if len(data) != self.LENGTH:
            raise self._length_error(len(data))
        self._buffer = bytearray(data)

    def _length_error(self, length: int) -> Exception:
        return ExtendedKeyError(f"{type(self).__name__} must be {self.LENGTH} bytes, got {length}")

    # --- OVERRIDES --- #
    def __eq__(self, other) -> bool:
        if not isinstance(other, type(self)):
            return NotImplemented
        return hmac.compare_digest(bytes(self._buffer), bytes(other._buffer))

    __hash__ = None

    def __repr__(self):
        return f"{type(self).__name__}(<redacted>)"

    def __len__(self):
        return self.LENGTH

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.zeroize()
        return False

    def __del__(self):
        buffer = getattr(self, "_buffer", None)
        if buffer is not None:
            buffer[:] = bytes(len(buffer))

    # --- ZEROIZE --- #
    def zeroize(self):
        """Overwrite the buffer with zeros"""
        self._buffer[:] = bytes(len(self._buffer))

    @property
    def is_zeroized(self) -> bool:
        return not any(self._buffer)

    def to_bytes(self) -> bytes:
        return bytes(self._buffer)

    def copy(self):
        return type(self)(self._buffer)


class PrivateKey(SecretBytes):
    """
    A secp256k1 private scalar k with 0 < k < n
    """
    __slots__ = ()
    LENGTH = ECC.PRIVKEY_BYTES

    def __init__(self, data: bytes | bytearray):
        super().__init__(data)
        k = int.from_bytes(self._buffer, "big")
        if not (0 < k < SECP256K1.order):
            self.zeroize()
            raise InvalidPrivateKey("Private key scalar must be in the range [1, n-1]")

    def _length_error(self, length: int) -> Exception:
        return InvalidPrivateKey(f"Private key must be {self.LENGTH} bytes, got {length}")

    @classmethod
    def from_bytes(cls, data: bytes | bytearray) -> "PrivateKey":
        return cls(data)

    @classmethod
    def from_int(cls, k: int) -> "PrivateKey":
        if not (0 < k < SECP256K1.order):
            raise InvalidPrivateKey("Private key scalar must be in the range [1, n-1]")
        return cls(k.to_bytes(cls.LENGTH, "big"))

    def to_int(self) -> int:
        if self.is_zeroized:
            raise InvalidPrivateKey("Private key material has been zeroized")
        return int.from_bytes(self._buffer, "big")

    def to_bytes(self) -> bytes:
        if self.is_zeroized:
            raise InvalidPrivateKey("Private key material has been zeroized")
        return bytes(self._buffer)

    def public_key(self) -> "PubKey":
        return PubKey(self.to_int())


class ChainCode(SecretBytes):
    __slots__ = ()
    LENGTH = XKEYS.CHAIN_LENGTH

    def _length_error(self, length: int) -> Exception:
        return ExtendedKeyError(f"Chain code must be {self.LENGTH} bytes, got {length}")


class PubKey:
    """
    A point on secp256k1, serialized compressed (33 bytes) or uncompressed (65 bytes)
    """
    __slots__ = ("x", "y")

    def __init__(self, private_key: int | bytes):
        private_key = int.from_bytes(private_key, "big") if isinstance(private_key, (bytes, bytearray)) \
            else private_key
        if not (0 < private_key < SECP256K1.order):
            raise InvalidPrivateKey("Private key scalar must be in the range [1, n-1]")
        self.x, self.y = SECP256K1.multiply_generator(private_key)

    # --- OVERRIDES --- #
    def __eq__(self, other) -> bool:
        if not isinstance(other, PubKey):
            return NotImplemented
        return self.x == other.x and self.y == other.y

    def __hash__(self):
        return hash((self.x, self.y))

    def __repr__(self):
        return f"PubKey({self.compressed().hex()})"

    # --- CLASS METHODS --- #
    @classmethod
    def _new(cls, x: int, y: int) -> "PubKey":
        obj = object.__new__(cls)  # bypass __init__
        obj.x, obj.y = x, y
        return obj

    @classmethod
    def from_uncompressed(cls, full_pubkey: bytes) -> "PubKey":
        if len(full_pubkey) != ECC.PUBKEY_UNCOMPRESSED:
            raise InvalidPublicKey("Uncompressed pubkey not of correct length")
        if full_pubkey[0] != 0x04:
            raise InvalidPublicKey("Uncompressed pubkey has incorrect prefix")

        x = int.from_bytes(full_pubkey[1:33], "big")
        y = int.from_bytes(full_pubkey[33:], "big")
        if not SECP256K1.is_point_on_curve(Point(x, y)):
            raise InvalidPublicKey("Decoded public key point not on SECP256K1 curve")
        return cls._new(x, y)

    @classmethod
    def from_compressed(cls, compressed_pubkey: bytes) -> "PubKey":
        if len(compressed_pubkey) != ECC.PUBKEY_COMPRESSED:
            raise InvalidPublicKey("Compressed pubkey must be 33 bytes")
        prefix = compressed_pubkey[0]
        if prefix not in (0x02, 0x03):
            raise InvalidPublicKey("Invalid prefix for compressed pubkey")

        x = int.from_bytes(compressed_pubkey[1:], "big")
        if not SECP256K1.is_x_on_curve(x):
            raise InvalidPublicKey("Given x coordinate not on curve")

        y = SECP256K1.find_y_from_x(x)
        want_odd = 1 if prefix == 0x03 else 0
        if (y & 1) != want_odd:
            y = SECP256K1.p - y
        return cls._new(x, y)

    @classmethod
    def from_point(cls, point: Point) -> "PubKey":
        if not point:
            raise InvalidPublicKey("Point at infinity is not a valid public key")
        if not SECP256K1.is_point_on_curve(point):
            raise InvalidPublicKey("Given point not on SECP256K1 curve")
        return cls._new(*point)

    @classmethod
    def from_bytes(cls, pubkey_bytes: bytes) -> "PubKey":
        """
        Proceed based on length of pubkey. 64 bytes are treated as an uncompressed key without its 0x04 prefix
        """
        if len(pubkey_bytes) == ECC.PUBKEY_UNCOMPRESSED:
            return cls.from_uncompressed(pubkey_bytes)
        elif len(pubkey_bytes) == ECC.PUBKEY_COMPRESSED:
            return cls.from_compressed(pubkey_bytes)
        elif len(pubkey_bytes) == 2 * ECC.COORD_BYTES:
            return cls.from_uncompressed(b'\x04' + bytes(pubkey_bytes))
        else:
            raise InvalidPublicKey("Unrecognized pubkey type")

    # --- FORMATTING --- #
    def compressed(self) -> bytes:
        y_byte = b'\x02' if self.y % 2 == 0 else b'\x03'
        return y_byte + self.x_bytes()

    def uncompressed(self) -> bytes:
        return b'\x04' + self.x_bytes() + self.y_bytes()

    def x_bytes(self) -> bytes:
        return self.x.to_bytes(ECC.COORD_BYTES, "big")

    def y_bytes(self) -> bytes:
        return self.y.to_bytes(ECC.COORD_BYTES, "big")

    def to_point(self) -> Point:
        return Point(self.x, self.y)

    def pubkey_hash(self) -> bytes:
        return hash160(self.compressed())

    # --- TWEAK --- #
    def tweak_add(self, tweak: int) -> "PubKey":
        """
        Returns tweak*G + self. Raises InvalidPublicKey if the result is the point at infinity
        """
        tweak_point = SECP256K1.multiply_generator(tweak)
        return PubKey.from_point(SECP256K1.add_points(self.to_point(), tweak_point))

    # --- DISPLAY --- #
    def to_dict(self):
        return {
            "x": self.x_bytes().hex(),
            "y": self.y_bytes().hex(),
            "compressed": self.compressed().hex(),
            "uncompressed": self.uncompressed().hex(),
            "pubkey_hash": self.pubkey_hash().hex()
        }

    def to_json(self):
        return json.dumps(self.to_dict(), indent=2)
