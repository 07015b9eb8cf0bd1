"""
The recoverable ECDSA Signature used for EVM transactions, typed data and user operations.

Serialized as 65 bytes: r (32) || s (32) || v (1), with v the recovery id in {0, 1}.
"""
import json

from hdsigner.core.exceptions import InvalidSignature, DataEncodingError, ECDSAError, InvalidDigest
from hdsigner.core.formats import EVM
from hdsigner.cryptography.ecc import SECP256K1
from hdsigner.cryptography.ecdsa import recover_public_key, verify_ecdsa
from hdsigner.data.encoding import hex_to_bytes, bytes_to_hex
from hdsigner.data.keys import PubKey
from hdsigner.signing.address import Address

__all__ = ["Signature"]

SCALAR_BYTES = EVM.WORD_BYTES


class Signature:
    __slots__ = ("_r", "_s", "v")

    def __init__(self, r: int | bytes, s: int | bytes, v: int):
        r_bytes = r.to_bytes(SCALAR_BYTES, "big") if isinstance(r, int) else bytes(r)
        s_bytes = s.to_bytes(SCALAR_BYTES, "big") if isinstance(s, int) else bytes(s)
        if len(r_bytes) != SCALAR_BYTES or len(s_bytes) != SCALAR_BYTES:
            raise InvalidSignature("r and s must each be 32 bytes")
        if v not in (0, 1):
            raise InvalidSignature(f"Recovery id must be 0 or 1, got {v}")
        self._r = bytearray(r_bytes)
        self._s = bytearray(s_bytes)
        self.v = v

    # --- CONSTRUCTORS --- #
    @classmethod
    def from_bytes(cls, data: bytes) -> "Signature":
        if len(data) != EVM.SIGNATURE_BYTES:
            raise InvalidSignature(f"Signature must be {EVM.SIGNATURE_BYTES} bytes, got {len(data)}")
        return cls(data[:32], data[32:64], data[64])

    @classmethod
    def from_hex(cls, hex_string: str) -> "Signature":
        try:
            data = hex_to_bytes(hex_string)
        except DataEncodingError as e:
            raise InvalidSignature("Signature is not valid hex") from e
        return cls.from_bytes(data)

    # --- ACCESSORS --- #
    @property
    def r(self) -> bytes:
        return bytes(self._r)

    @property
    def s(self) -> bytes:
        return bytes(self._s)

    @property
    def r_int(self) -> int:
        return int.from_bytes(self._r, "big")

    @property
    def s_int(self) -> int:
        return int.from_bytes(self._s, "big")

    @property
    def is_low_s(self) -> bool:
        return self.s_int <= SECP256K1.order // 2

    def to_bytes(self) -> bytes:
        return bytes(self._r) + bytes(self._s) + bytes([self.v])

    def to_hex(self) -> str:
        return bytes_to_hex(self.to_bytes())

    # --- RECOVERY --- #
    def recover_public_key(self, digest: bytes) -> PubKey:
        """
        Recover the signer's public key from a 32-byte digest
        """
        if len(digest) != EVM.HASH_BYTES:
            raise InvalidDigest(len(digest))
        try:
            point = recover_public_key((self.r_int, self.s_int), digest, self.v)
        except ECDSAError as e:
            raise InvalidSignature(f"Public key recovery failed: {e}") from e
        return PubKey.from_point(point)

    def recover_address(self, digest: bytes) -> Address:
        return Address.from_public_key(self.recover_public_key(digest))

    def verify(self, digest: bytes, public_key: PubKey) -> bool:
        try:
            return verify_ecdsa((self.r_int, self.s_int), digest, public_key.to_point())
        except ECDSAError:
            return False

    # --- ZEROIZE --- #
    def zeroize(self):
        self._r[:] = bytes(SCALAR_BYTES)
        self._s[:] = bytes(SCALAR_BYTES)
        self.v = 0

    @property
    def is_zeroized(self) -> bool:
        return not any(self._r) and not any(self._s)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.zeroize()
        return False

    def __del__(self):
        # Slots are unset when __init__ raised
        for name in ("_r", "_s"):
            buffer = getattr(self, name, None)
            if buffer is not None:
                buffer[:] = bytes(len(buffer))

    # --- OVERRIDES --- #
    def __eq__(self, other):
        if not isinstance(other, Signature):
            return NotImplemented
        return self.to_bytes() == other.to_bytes()

    def __hash__(self):
        return hash(self.to_bytes())

    def __bytes__(self):
        return self.to_bytes()

    def __str__(self):
        return self.to_hex()

    def __repr__(self):
        return f"Signature(v={self.v}, r={self.r.hex()[:8]}..., s={self.s.hex()[:8]}...)"

    def to_dict(self):
        return {
            "r": self.r.hex(),
            "s": self.s.hex(),
            "v": self.v
        }

    def to_json(self):
        return json.dumps(self.to_dict(), indent=2)
