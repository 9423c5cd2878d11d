"""
Number theory helpers used by the planner and the prime-length algorithms.
"""

import math
import numpy as np
from typing import List, Tuple


def is_power_of_two(n: int) -> bool:
    return n > 0 and (n & (n - 1)) == 0


def prime_factors(n: int) -> List[Tuple[int, int]]:
    """
    Factorize n into (prime, exponent) pairs, smallest prime first.

    Args:
        n: Integer to factorize (n >= 1)

    Returns:
        List of (prime, count) tuples; empty for n == 1
    """
    factors = []

    # pull out the 2s with a shift so the odd loop can step by 2
    count = 0
    while n % 2 == 0 and n > 1:
        n >>= 1
        count += 1
    if count:
        factors.append((2, count))

    divisor = 3
    while divisor * divisor <= n:
        count = 0
        while n % divisor == 0:
            n //= divisor
            count += 1
        if count:
            factors.append((divisor, count))
        divisor += 2

    if n > 1:
        factors.append((n, 1))
    return factors


def largest_prime_factor(n: int) -> int:
    factors = prime_factors(n)
    return factors[-1][0] if factors else 1


def is_prime(n: int) -> bool:
    if n < 2:
        return False
    if n < 4:
        return True
    if n % 2 == 0:
        return False
    limit = math.isqrt(n)
    for divisor in range(3, limit + 1, 2):
        if n % divisor == 0:
            return False
    return True


def multiplicative_inverse(a: int, modulus: int) -> int:
    """Inverse of a modulo modulus; a and modulus must be coprime."""
    if modulus == 1:
        return 0
    return pow(a, -1, modulus)


def primitive_root(prime: int) -> int:
    """
    Smallest generator of the multiplicative group modulo a prime.

    g is a generator iff g^((p-1)/q) != 1 (mod p) for every prime q dividing p-1.

    Raises:
        ValueError: if prime is not prime
    """
    if not is_prime(prime):
        raise ValueError(f"primitive_root requires a prime, got {prime}")
    if prime == 2:
        return 1

    order = prime - 1
    exponents = [order // q for q, _ in prime_factors(order)]
    for candidate in range(2, prime):
        if all(pow(candidate, e, prime) != 1 for e in exponents):
            return candidate
    # unreachable for a prime modulus
    raise ValueError(f"no primitive root found for {prime}")


def powers_mod(base: int, count: int, modulus: int) -> np.ndarray:
    """
    base^q mod modulus for q in range(count), as an int64 array.

    filled by repeated doubling so a Rader permutation for a large prime needs
    no Python-level loop per element. modulus must stay below 2**31 so the
    int64 products are exact.
    """
    powers = np.empty(count, dtype=np.int64)
    if count == 0:
        return powers
    powers[0] = 1 % modulus
    filled = 1
    while filled < count:
        step = min(filled, count - filled)
        multiplier = pow(base, filled, modulus)
        powers[filled:filled + step] = powers[:step] * multiplier % modulus
        filled += step
    return powers
