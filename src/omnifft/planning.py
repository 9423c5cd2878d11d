"""
Decomposition strategies for arbitrary transform lengths.

this module decides which algorithm computes a transform of a given length
and which child lengths it delegates to. the planner in core.py turns these
decisions into algorithm objects.
"""

import math
import numbers
import logging
from collections import namedtuple
from typing import Dict, Any, List, Optional

import numpy as np
import scipy.fft

from .exceptions import InvalidLengthError
from .math_utils import is_power_of_two, is_prime, prime_factors, largest_prime_factor

# set up logging
logger = logging.getLogger("omnifft.planning")

# Algorithm names used in decompositions
ALGORITHM_NOOP = 'noop'
ALGORITHM_BUTTERFLY = 'butterfly'
ALGORITHM_DFT = 'dft'
ALGORITHM_RADIX4 = 'radix4'
ALGORITHM_MIXED_RADIX = 'mixed_radix'
ALGORITHM_GOOD_THOMAS = 'good_thomas'
ALGORITHM_RADER = 'rader'
ALGORITHM_BLUESTEIN = 'bluestein'

# Bluestein inner length modes
BLUESTEIN_POWER_OF_TWO = 'power_of_two'  # inner transform always runs on Radix4
BLUESTEIN_FAST = 'fast'                  # smallest 2-3-5-7-11 smooth length, less padding

# Defaults, updated by omnifft.configure()
DIRECT_THRESHOLD = 6          # lengths up to this are computed directly
USE_BUTTERFLIES = True        # hardcoded butterflies instead of the DFT matrix
PREFER_GOOD_THOMAS = True     # coprime splits skip the twiddle pass
RADER_MAX_INNER_PRIME = 5     # Rader only when length-1 is this smooth
BLUESTEIN_INNER_LENGTH = BLUESTEIN_POWER_OF_TWO

# powers_mod() keeps Rader index products exact in int64 below this
RADER_MAX_LENGTH = 2 ** 31

PlanningOptions = namedtuple('PlanningOptions', [
    'direct_threshold',
    'use_butterflies',
    'prefer_good_thomas',
    'rader_max_inner_prime',
    'bluestein_inner_length',
])

Decomposition = namedtuple('Decomposition', ['algorithm', 'length', 'factors'])


def default_options(**overrides) -> PlanningOptions:
    """
    Build planning options from the current module defaults.

    Args:
        **overrides: Any PlanningOptions field to replace

    Returns:
        PlanningOptions instance
    """
    options = PlanningOptions(
        direct_threshold=DIRECT_THRESHOLD,
        use_butterflies=USE_BUTTERFLIES,
        prefer_good_thomas=PREFER_GOOD_THOMAS,
        rader_max_inner_prime=RADER_MAX_INNER_PRIME,
        bluestein_inner_length=BLUESTEIN_INNER_LENGTH,
    )
    unknown = set(overrides) - set(PlanningOptions._fields)
    if unknown:
        raise ValueError(f"Unknown planning options: {', '.join(sorted(unknown))}")
    options = options._replace(**overrides)
    if options.bluestein_inner_length not in (BLUESTEIN_POWER_OF_TWO, BLUESTEIN_FAST):
        raise ValueError(f"Invalid bluestein_inner_length: {options.bluestein_inner_length}")
    for name in ('use_butterflies', 'prefer_good_thomas'):
        if not isinstance(getattr(options, name), bool):
            raise ValueError(f"{name} must be True or False, got {getattr(options, name)!r}")
    for name in ('direct_threshold', 'rader_max_inner_prime'):
        value = getattr(options, name)
        if isinstance(value, bool) or not isinstance(value, numbers.Integral):
            raise ValueError(f"{name} must be an integer, got {value!r}")
    if options.direct_threshold < 1:
        raise ValueError(f"direct_threshold must be >= 1, got {options.direct_threshold}")
    return options


def validate_length(length) -> int:
    """Return length as an int, or raise InvalidLengthError."""
    if isinstance(length, bool) or not isinstance(length, (int, np.integer)):
        raise InvalidLengthError(length)
    length = int(length)
    if length < 1:
        raise InvalidLengthError(length)
    return length


def bluestein_inner_length(length: int, mode: str = BLUESTEIN_POWER_OF_TWO) -> int:
    """
    Inner convolution length for a Bluestein transform.

    Args:
        length: Outer transform length
        mode: 'power_of_two' or 'fast'

    Returns:
        A length M >= 2*length - 1
    """
    minimum = 2 * length - 1
    if mode == BLUESTEIN_POWER_OF_TWO:
        return 1 << (minimum - 1).bit_length()
    if mode == BLUESTEIN_FAST:
        return scipy.fft.next_fast_len(minimum)
    raise ValueError(f"Invalid Bluestein inner length mode: {mode}")


def _split_candidates(length: int, factors, options: PlanningOptions):
    """Yield (algorithm, width, height) splits of a composite length."""
    powers = [p ** e for p, e in factors]

    if len(powers) == 1:
        prime, exponent = factors[0]
        width = prime ** (exponent // 2)
        yield ALGORITHM_MIXED_RADIX, width, length // width
        return

    algorithm = ALGORITHM_GOOD_THOMAS if options.prefer_good_thomas else ALGORITHM_MIXED_RADIX
    # the last prime power always goes to height so each partition appears once
    for mask in range(1, 1 << (len(powers) - 1)):
        width = 1
        for i, power in enumerate(powers[:-1]):
            if mask & (1 << i):
                width *= power
        yield algorithm, width, length // width


def _split_rank(split):
    _, width, height = split
    irregular = (not is_power_of_two(width)) + (not is_power_of_two(height))
    return irregular, abs(math.log(width) - math.log(height))


def choose_decomposition(length: int, options: Optional[PlanningOptions] = None) -> Decomposition:
    """
    Choose the algorithm for a transform length.

    Args:
        length: Transform length (positive integer)
        options: PlanningOptions, defaults to default_options()

    Returns:
        Decomposition(algorithm, length, factors) where factors holds the
        lengths of the child transforms

    Raises:
        InvalidLengthError: if length is not a positive integer
    """
    length = validate_length(length)
    if options is None:
        options = default_options()

    if length == 1:
        return Decomposition(ALGORITHM_NOOP, 1, ())

    if length <= options.direct_threshold:
        if options.use_butterflies and length <= 6:
            return Decomposition(ALGORITHM_BUTTERFLY, length, ())
        return Decomposition(ALGORITHM_DFT, length, ())

    if is_power_of_two(length):
        return Decomposition(ALGORITHM_RADIX4, length, ())

    factors = prime_factors(length)

    if len(factors) == 1 and factors[0][1] == 1:
        inner = length - 1
        if length < RADER_MAX_LENGTH and largest_prime_factor(inner) <= options.rader_max_inner_prime:
            return Decomposition(ALGORITHM_RADER, length, (inner,))
        inner = bluestein_inner_length(length, options.bluestein_inner_length)
        return Decomposition(ALGORITHM_BLUESTEIN, length, (inner,))

    algorithm, width, height = min(_split_candidates(length, factors, options), key=_split_rank)
    return Decomposition(algorithm, length, (width, height))


def analyze_length(length: int) -> Dict[str, Any]:
    """
    Analyze a transform length to describe how it will be computed.

    Args:
        length: Transform length

    Returns:
        Dictionary with length properties and the chosen algorithm
    """
    length = validate_length(length)
    factors = prime_factors(length)
    return {
        'length': length,
        'is_power_of_two': is_power_of_two(length),
        'is_prime': is_prime(length),
        'prime_factors': factors,
        'largest_prime_factor': largest_prime_factor(length),
        # sizes with only 2, 3 and 5 never need a convolution stage
        'has_small_primes': all(p <= 5 for p, _ in factors),
        'algorithm': choose_decomposition(length).algorithm,
    }


def _is_smooth(n: int, primes: List[int]) -> bool:
    for p in primes:
        while n % p == 0:
            n //= p
    return n == 1


def optimal_transform_size(target_size: int, max_increase: float = 0.2) -> int:
    """
    Find a nearby transform size that avoids Rader and Bluestein stages.

    lengths with only the prime factors 2, 3 and 5 decompose entirely into
    butterflies and Radix4, which is usually the fastest plan.

    Args:
        target_size: Minimum transform size
        max_increase: Maximum allowed size increase as a fraction

    Returns:
        The smallest 5-smooth size within the allowed increase, or target_size
    """
    target_size = validate_length(target_size)
    max_size = int(target_size * (1 + max_increase))

    for size in range(target_size, max_size + 1):
        if _is_smooth(size, [2, 3, 5]):
            return size

    logger.debug(f"No 5-smooth size within {max_increase:.0%} of {target_size}")
    return target_size
