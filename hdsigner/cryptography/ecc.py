"""
Short Weierstrass curves y^2 = x^3 + ax + b over F_p, and the secp256k1 instance used for every key.

Points are handed out in affine form. Scalar multiplication runs in Jacobian coordinates (X, Y, Z) with
x = X/Z^2, y = Y/Z^3 so that a single modular inverse is needed per multiplication. Multiples of the generator use a
table of 2^i * G built once per curve.
"""
import json
from dataclasses import dataclass
from typing import Optional, Tuple

from hdsigner.core.exceptions import ECCError
from hdsigner.cryptography.ecc_math import is_quadratic_residue, tonelli_shanks

__all__ = ["EllipticCurve", "Point", "SECP256K1", "add_points", "multiply_generator", "scalar_multiplication",
           "is_point_on_curve", "find_y_from_x"]

Jacobian = Tuple[int, int, int]
JACOBIAN_INFINITY: Jacobian = (1, 1, 0)


@dataclass(frozen=True)
class Point:
    """Affine point. The point at infinity is Point(None, None)"""
    x: Optional[int] = None
    y: Optional[int] = None

    def __post_init__(self):
        if (self.x is None) != (self.y is None):
            raise ValueError("Point at infinity must have both coordinates as None")

    def __bool__(self) -> bool:
        return self.x is not None

    def __iter__(self):
        return iter((self.x, self.y))


class EllipticCurve:

    def __init__(self, a: int, b: int, p: int, order: int, generator: Tuple[int, int] | Point,
                 name: Optional[str] = None):
        if (4 * a ** 3 + 27 * b ** 2) % p == 0:
            raise ECCError("Singular curve: 4a^3 + 27b^2 = 0 (mod p)")

        self.a = a
        self.b = b
        self.p = p
        self.order = order
        self.generator = generator if isinstance(generator, Point) else Point(*generator)
        self.name = name

        self._generator_table: list[Jacobian] = []
        current = self._to_jacobian(self.generator)
        for _ in range(order.bit_length()):
            self._generator_table.append(current)
            current = self._jacobian_double(current)

    def __repr__(self):
        return json.dumps({
            "name": self.name,
            "a": hex(self.a),
            "b": hex(self.b),
            "p": hex(self.p),
            "order": hex(self.order),
            "generator": [hex(self.generator.x), hex(self.generator.y)]
        })

    # --- CURVE MEMBERSHIP --- #
    def x_terms(self, x: int) -> int:
        """The right hand side x^3 + ax + b mod p"""
        return (pow(x, 3, self.p) + self.a * x + self.b) % self.p

    def is_point_on_curve(self, point: Point) -> bool:
        if not point:
            return True
        if not (0 <= point.x < self.p and 0 <= point.y < self.p):
            return False
        return pow(point.y, 2, self.p) == self.x_terms(point.x)

    def is_x_on_curve(self, x: int) -> bool:
        return 0 <= x < self.p and is_quadratic_residue(self.x_terms(x), self.p)

    def find_y_from_x(self, x: int) -> int:
        """
        One of the two square roots of x^3 + ax + b. Callers pick the parity they need from y and p - y.
        """
        if not self.is_x_on_curve(x):
            raise ECCError(f"No curve point has x = {hex(x)}")
        return tonelli_shanks(self.x_terms(x), self.p)

    def negate(self, point: Point) -> Point:
        if not point:
            return point
        return Point(point.x, (self.p - point.y) % self.p)

    # --- JACOBIAN ARITHMETIC --- #
    def _to_jacobian(self, point: Point) -> Jacobian:
        return (point.x, point.y, 1) if point else JACOBIAN_INFINITY

    def _to_affine(self, jp: Jacobian) -> Point:
        X, Y, Z = jp
        if Z == 0:
            return Point()
        z_inv = pow(Z, -1, self.p)
        z_inv2 = z_inv * z_inv % self.p
        return Point(X * z_inv2 % self.p, Y * z_inv2 * z_inv % self.p)

    def _jacobian_double(self, jp: Jacobian) -> Jacobian:
        X, Y, Z = jp
        p = self.p
        if Z == 0 or Y == 0:
            return JACOBIAN_INFINITY
        y2 = Y * Y % p
        s = 4 * X * y2 % p
        m = (3 * X * X + self.a * pow(Z, 4, p)) % p
        x3 = (m * m - 2 * s) % p
        y3 = (m * (s - x3) - 8 * y2 * y2) % p
        z3 = 2 * Y * Z % p
        return x3, y3, z3

    def _jacobian_add(self, jp1: Jacobian, jp2: Jacobian) -> Jacobian:
        if jp1[2] == 0:
            return jp2
        if jp2[2] == 0:
            return jp1
        p = self.p
        X1, Y1, Z1 = jp1
        X2, Y2, Z2 = jp2
        z1z1 = Z1 * Z1 % p
        z2z2 = Z2 * Z2 % p
        u1 = X1 * z2z2 % p
        u2 = X2 * z1z1 % p
        s1 = Y1 * Z2 * z2z2 % p
        s2 = Y2 * Z1 * z1z1 % p

        if u1 == u2:
            # Same x: either P + P or P + (-P)
            return self._jacobian_double(jp1) if s1 == s2 else JACOBIAN_INFINITY

        h = (u2 - u1) % p
        r = (s2 - s1) % p
        hh = h * h % p
        hhh = h * hh % p
        v = u1 * hh % p
        x3 = (r * r - hhh - 2 * v) % p
        y3 = (r * (v - x3) - s1 * hhh) % p
        z3 = h * Z1 * Z2 % p
        return x3, y3, z3

    # --- GROUP OPERATIONS --- #
    def add_points(self, point1: Point, point2: Point) -> Point:
        return self._to_affine(self._jacobian_add(self._to_jacobian(point1), self._to_jacobian(point2)))

    def scalar_multiplication(self, n: int, point: Point) -> Point:
        """
        n * point by left-to-right double-and-add. Multiples of the generator go through the precomputed table.
        """
        n %= self.order
        if n == 0 or not point:
            return Point()
        if point == self.generator:
            return self.multiply_generator(n)

        base = self._to_jacobian(point)
        result = JACOBIAN_INFINITY
        for bit in bin(n)[2:]:
            result = self._jacobian_double(result)
            if bit == "1":
                result = self._jacobian_add(result, base)
        return self._to_affine(result)

    def multiply_generator(self, n: int) -> Point:
        n %= self.order
        result = JACOBIAN_INFINITY
        for i in range(n.bit_length()):
            if (n >> i) & 1:
                result = self._jacobian_add(result, self._generator_table[i])
        return self._to_affine(result)


SECP256K1 = EllipticCurve(
    a=0,
    b=7,
    p=0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEFFFFFC2F,
    order=0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141,
    generator=(0x79BE667EF9DCBBAC55A06295CE870B07029BFCDB2DCE28D959F2815B16F81798,
               0x483ADA7726A3C4655DA4FBFC0E1108A8FD17B448A68554199C47D08FFB10D4B8),
    name="secp256k1"
)


# --- MODULE LEVEL SHORTCUTS ON SECP256K1 --- #

def add_points(point1: Point, point2: Point) -> Point:
    return SECP256K1.add_points(point1, point2)


def multiply_generator(n: int) -> Point:
    return SECP256K1.multiply_generator(n)


def scalar_multiplication(n: int, point: Point) -> Point:
    return SECP256K1.scalar_multiplication(n, point)


def is_point_on_curve(point: Point) -> bool:
    return SECP256K1.is_point_on_curve(point)


def find_y_from_x(x: int) -> int:
    return SECP256K1.find_y_from_x(x)
