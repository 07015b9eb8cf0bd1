"""
Modular square roots for recovering y from x on a curve over F_p
"""

__all__ = ["is_quadratic_residue", "tonelli_shanks"]


def is_quadratic_residue(n: int, p: int) -> bool:
    """
    Euler's criterion for an odd prime p. Zero counts as a residue.
    """
    n %= p
    return n == 0 or pow(n, (p - 1) // 2, p) == 1


def _odd_part(m: int) -> tuple[int, int]:
    """m = q * 2^s with q odd; returns (q, s)"""
    s = (m & -m).bit_length() - 1
    return m >> s, s


def tonelli_shanks(n: int, p: int) -> int:
    """
    A square root of n modulo the odd prime p. Raises ValueError when n is not a residue.
    """
    n %= p
    if n == 0:
        return 0
    if not is_quadratic_residue(n, p):
        raise ValueError(f"{n} has no square root modulo {p}")

    # secp256k1 has p = 3 (mod 4)
    if p % 4 == 3:
        return pow(n, (p + 1) // 4, p)

    q, s = _odd_part(p - 1)
    z = next(candidate for candidate in range(2, p) if not is_quadratic_residue(candidate, p))

    root = pow(n, (q + 1) // 2, p)
    error = pow(n, q, p)
    correction = pow(z, q, p)
    while error != 1:
        # Smallest i with error^(2^i) = 1
        i, power = 0, error
        while power != 1:
            power = power * power % p
            i += 1
        b = pow(correction, 1 << (s - i - 1), p)
        s = i
        correction = b * b % p
        error = error * correction % p
        root = root * b % p
    return root
