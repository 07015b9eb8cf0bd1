"""
Methods to create, verify and recover ECDSA signatures over secp256k1.

Nonces are deterministic (RFC 6979, HMAC-SHA256) so signing the same digest with the same key always yields the
same signature.
"""
from typing import Tuple

from hdsigner.core.exceptions import ECDSAError, ECCError
from hdsigner.cryptography.ecc import SECP256K1, Point, EllipticCurve
from hdsigner.cryptography.hash_functions import hmac_sha256

__all__ = ["ecdsa", "ecdsa_recoverable", "verify_ecdsa", "recover_public_key", "rfc6979_nonces"]

curve = SECP256K1


def _bits_to_int(message: bytes, n: int) -> int:
    """Keep the n leftmost bits of the message"""
    z = int.from_bytes(message, 'big')
    excess = len(message) * 8 - n.bit_length()
    if excess > 0:
        z >>= excess
    return z


def rfc6979_nonces(private_key: int, message: bytes, ec: EllipticCurve = curve):
    """
    Generator of candidate nonces k in [1, n-1] following RFC 6979 section 3.2 with HMAC-SHA256.

    The caller takes the first k that produces a valid signature; later values are only requested when r or s
    comes out zero.
    """
    n = ec.order
    rlen = (n.bit_length() + 7) // 8
    x = private_key.to_bytes(rlen, 'big')
    h = (_bits_to_int(message, n) % n).to_bytes(rlen, 'big')

    v = b'\x01' * 32
    k = b'\x00' * 32
    k = hmac_sha256(k, v + b'\x00' + x + h)
    v = hmac_sha256(k, v)
    k = hmac_sha256(k, v + b'\x01' + x + h)
    v = hmac_sha256(k, v)

    while True:
        t = b''
        while len(t) < rlen:
            v = hmac_sha256(k, v)
            t += v
        candidate = _bits_to_int(t[:rlen], n)
        if 1 <= candidate < n:
            yield candidate
        k = hmac_sha256(k, v + b'\x00')
        v = hmac_sha256(k, v)


def ecdsa_recoverable(private_key: int, message: bytes) -> Tuple[int, int, int]:
    """
    Generates a low-s ECDSA signature (r, s) together with its recovery id.

    Parameters
    ----------
    private_key : int
        The signer's private key in [1, n-1]
    message : bytes
        The digest to sign

    Returns
    -------
    tuple
        (r, s, recovery_id) with recovery_id in {0, 1}

    Algorithm
    ---------
    1) Compute z from the leftmost bits of the message.
    2) Take the next deterministic nonce k.
    3) Calculate R = k * generator; r = R.x (mod n).
    4) Compute s = k^(-1)(z + r * private_key) (mod n). Return to step 2 if r or s is 0, or if R.x >= n.
    5) The recovery id is the parity of R.y.
    6) If s > n/2, replace s by n - s and flip the recovery id.
    """
    n = curve.order
    if not (1 <= private_key < n):
        raise ECDSAError("Private key out of range")

    # 1. Message as integer
    z = _bits_to_int(message, n)

    for k in rfc6979_nonces(private_key, message):
        # 3. R = kG
        big_r = curve.multiply_generator(k)
        if big_r.x >= n:
            # recovery ids 2 and 3 are not representable in a v of 0 or 1
            continue
        r = big_r.x % n
        if r == 0:
            continue

        # 4. s = k^-1 (z + r*d)
        s = (pow(k, -1, n) * (z + r * private_key)) % n
        if s == 0:
            continue

        # 5. Recovery id from y parity
        recovery_id = big_r.y & 1

        # 6. Low s
        if s > n // 2:
            s = n - s
            recovery_id ^= 1

        return r, s, recovery_id


def ecdsa(private_key: int, message: bytes) -> Tuple[int, int]:
    """
    Returns the low-s signature (r, s) for the given message
    """
    r, s, _ = ecdsa_recoverable(private_key, message)
    return r, s


def verify_ecdsa(signature: tuple, message: bytes, public_key: Point | tuple) -> bool:
    """
    We verify that the given signature corresponds to the public_key for the given message.

    Parameters
    ----------
    signature : tuple
        The signature (r, s) to verify.
    message : bytes
        The digest that was signed.
    public_key : Point
        The public key used for verification.

    Returns
    -------
    bool
        True if the signature is valid, False otherwise.

    Algorithm
    --------
    1) Verify that (r,s) are integers in the interval [1,n-1]
    2) Let z be the integer value of the leftmost bits of the message
    3) Let u1 = z * s^(-1) (mod n) and u2 = r * s^(-1) (mod n)
    4) Calculate the curve point (x,y) = (u1 * generator) + (u2 * public_key)
    5) If r = x (mod n), the signature is valid.
    """
    n = curve.order
    r, s = signature
    if not isinstance(public_key, Point):
        public_key = Point(*public_key)

    # 1. Bounds
    if not (1 <= r < n):
        raise ECDSAError("ECDSA r value out of bounds")
    if not (1 <= s < n):
        raise ECDSAError("ECDSA s value out of bounds")

    # 2. Message as integer
    z = _bits_to_int(message, n)

    # 3. u1 and u2
    s_inv = pow(s, -1, n)
    u1 = (z * s_inv) % n
    u2 = (r * s_inv) % n

    # 4. Point
    final_pt = curve.add_points(curve.multiply_generator(u1), curve.scalar_multiplication(u2, public_key))
    if not final_pt:
        return False

    # 5. Compare
    return r == final_pt.x % n


def recover_public_key(signature: tuple, message: bytes, recovery_id: int) -> Point:
    """
    Recovers the public key Q from a signature (r, s) and recovery id.

    Algorithm
    ---------
    1) x = r (+ n when bit 1 of the recovery id is set)
    2) R = the curve point with x-coordinate x and y parity given by bit 0 of the recovery id
    3) Q = r^(-1) * (s * R - z * generator)
    """
    n = curve.order
    r, s = signature
    if not (1 <= r < n) or not (1 <= s < n):
        raise ECDSAError("Signature scalar out of bounds")
    if recovery_id not in (0, 1, 2, 3):
        raise ECDSAError(f"Invalid recovery id: {recovery_id}")

    # 1. x coordinate of R
    x = r + n if recovery_id & 2 else r
    if x >= curve.p:
        raise ECDSAError("Recovered x coordinate out of range")

    # 2. R
    try:
        y = curve.find_y_from_x(x)
    except ECCError as e:
        raise ECDSAError("Signature does not correspond to a curve point") from e
    if (y & 1) != (recovery_id & 1):
        y = curve.p - y
    big_r = Point(x, y)

    # 3. Q
    z = _bits_to_int(message, n)
    r_inv = pow(r, -1, n)
    sr = curve.scalar_multiplication(s, big_r)
    zg = curve.negate(curve.multiply_generator(z))
    q = curve.scalar_multiplication(r_inv, curve.add_points(sr, zg))
    if not q:
        raise ECDSAError("Recovered public key is the point at infinity")
    return q
