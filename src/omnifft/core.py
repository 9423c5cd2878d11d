"""
Planner and convenience transform functions.

this module provides the Planner, which turns length decompositions into
shared algorithm trees and caches them, plus numpy.fft style functions that
run on per-dtype default planners.
"""

import math
import time
import threading
import logging
import numpy as np
import pyfftw
from typing import Dict, Tuple, Optional, Any

from . import planning
from .algorithms import (
    FFTAlgorithm, Noop, DFTAlgorithm, Butterfly, Radix4, MixedRadix,
    GoodThomas, Bluestein, Rader, check_dtype,
)
from .exceptions import InvalidLengthError
from .planning import PlanningOptions, choose_decomposition, default_options, validate_length
from .twiddles import TwiddleCache

logger = logging.getLogger("omnifft.core")

# transform directions
FORWARD = 'forward'
INVERSE = 'inverse'

# configuration constants, updated by omnifft.configure()
DEFAULT_DTYPE = 'complex128'

# normalization modes accepted by fft()/ifft()
NORM_MODES = (None, 'backward', 'ortho', 'forward')

_default_planners: Dict[np.dtype, "Planner"] = {}
_default_lock = threading.RLock()


def _parse_direction(direction: str) -> bool:
    if direction == FORWARD:
        return False
    if direction == INVERSE:
        return True
    raise ValueError(f"Invalid direction: {direction!r}. Use '{FORWARD}' or '{INVERSE}'")


class Planner:
    """
    Builds and caches FFT algorithms for one precision.

    every length is decomposed by planning.choose_decomposition(); children
    are planned through the same cache, so two plans needing the same
    sub-length share one algorithm object, and all of them share one
    twiddle cache. building happens once per (length, direction); later
    calls return the cached object without taking a lock.
    """

    def __init__(self, dtype=None, **option_overrides):
        """
        Initialize a planner.

        Args:
            dtype: complex64 or complex128 (None = configured default)
            **option_overrides: PlanningOptions fields that take precedence
                over the configured planning defaults
        """
        self._dtype = check_dtype(DEFAULT_DTYPE if dtype is None else dtype)
        self._options = default_options(**option_overrides)
        self._twiddle_cache = TwiddleCache(self._dtype)
        self._algorithm_cache: Dict[Tuple[int, bool], FFTAlgorithm] = {}
        self._lock = threading.RLock()
        self._metrics = {
            'hits': 0,
            'misses': 0,
            'planning_time': 0.0,
            'algorithms': {},
        }

    @property
    def dtype(self) -> np.dtype:
        return self._dtype

    @property
    def options(self) -> PlanningOptions:
        return self._options

    @property
    def twiddle_cache(self) -> TwiddleCache:
        return self._twiddle_cache

    def plan(self, length: int, direction: str = FORWARD) -> FFTAlgorithm:
        """
        Get the algorithm computing transforms of a given length.

        Args:
            length: Transform length (positive integer)
            direction: FORWARD or INVERSE

        Returns:
            Shared, immutable FFTAlgorithm

        Raises:
            InvalidLengthError: if length is not a positive integer
            ValueError: if direction is not FORWARD or INVERSE
        """
        inverse = _parse_direction(direction)
        length = validate_length(length)

        algorithm = self._algorithm_cache.get((length, inverse))
        if algorithm is not None:
            self._metrics['hits'] += 1
            return algorithm

        with self._lock:
            start_time = time.time()
            algorithm = self._get_or_build(length, inverse)
            self._metrics['planning_time'] += time.time() - start_time
            return algorithm

    def forward(self, length: int) -> FFTAlgorithm:
        """Plan a forward transform."""
        return self.plan(length, FORWARD)

    def inverse(self, length: int) -> FFTAlgorithm:
        """Plan an inverse transform."""
        return self.plan(length, INVERSE)

    def _get_or_build(self, length: int, inverse: bool) -> FFTAlgorithm:
        # called with the lock held; recursion re-enters through the RLock
        key = (length, inverse)
        algorithm = self._algorithm_cache.get(key)
        if algorithm is not None:
            self._metrics['hits'] += 1
            return algorithm

        algorithm = self._build(length, inverse)
        self._algorithm_cache[key] = algorithm
        self._metrics['misses'] += 1
        counts = self._metrics['algorithms']
        counts[algorithm.name] = counts.get(algorithm.name, 0) + 1
        logger.debug(f"Planned {'inverse' if inverse else 'forward'} {algorithm!r}")
        return algorithm

    def _build(self, length: int, inverse: bool) -> FFTAlgorithm:
        decomposition = choose_decomposition(length, self._options)
        kind = decomposition.algorithm
        twiddles = self._twiddle_cache

        if kind == planning.ALGORITHM_NOOP:
            return Noop(1, inverse, self._dtype)
        if kind == planning.ALGORITHM_BUTTERFLY:
            return Butterfly(length, inverse, self._dtype, twiddles)
        if kind == planning.ALGORITHM_DFT:
            return DFTAlgorithm(length, inverse, self._dtype, twiddles)
        if kind == planning.ALGORITHM_RADIX4:
            return Radix4(length, inverse, self._dtype, twiddles)

        children = [self._get_or_build(factor, inverse) for factor in decomposition.factors]

        if kind == planning.ALGORITHM_MIXED_RADIX:
            return MixedRadix(children[0], children[1], twiddles)
        if kind == planning.ALGORITHM_GOOD_THOMAS:
            return GoodThomas(children[0], children[1])
        if kind == planning.ALGORITHM_RADER:
            return Rader(length, children[0], twiddles)
        if kind == planning.ALGORITHM_BLUESTEIN:
            return Bluestein(length, children[0], twiddles)
        raise ValueError(f"Unknown algorithm in decomposition: {kind}")

    def __len__(self) -> int:
        return len(self._algorithm_cache)

    def __contains__(self, key) -> bool:
        length, direction = key
        return (length, _parse_direction(direction)) in self._algorithm_cache

    def get_stats(self) -> Dict[str, Any]:
        """
        Get statistics about the plan cache.

        misses, cached_plans and planning_time are exact. hits is counted on
        the lock-free lookup path, so concurrent callers can make it undercount.
        """
        with self._lock:
            return {
                'dtype': str(self._dtype),
                'cached_plans': len(self._algorithm_cache),
                'hits': self._metrics['hits'],
                'misses': self._metrics['misses'],
                'planning_time': self._metrics['planning_time'],
                'algorithms': dict(self._metrics['algorithms']),
                'twiddles': self._twiddle_cache.get_stats(),
            }


# ----------------------------------------------------------------------
# default planners and numpy.fft style functions
# ----------------------------------------------------------------------

def get_planner(dtype=None) -> Planner:
    """
    Get the shared default planner for a precision.

    Args:
        dtype: complex64 or complex128 (None = configured default)
    """
    dtype = check_dtype(DEFAULT_DTYPE if dtype is None else dtype)
    planner = _default_planners.get(dtype)
    if planner is not None:
        return planner
    with _default_lock:
        planner = _default_planners.get(dtype)
        if planner is None:
            planner = Planner(dtype)
            _default_planners[dtype] = planner
        return planner


def clear_cache():
    """Drop the default planners so new configuration takes effect."""
    with _default_lock:
        _default_planners.clear()
    logger.debug("Cleared default planners")


def get_stats() -> Dict[str, Any]:
    """Get statistics about the default planners."""
    with _default_lock:
        planners = {str(dtype): planner.get_stats() for dtype, planner in _default_planners.items()}
    return {
        'planners': planners,
        'total_plans': sum(stats['cached_plans'] for stats in planners.values()),
    }


def _result_dtype(dtype: np.dtype) -> np.dtype:
    # integers and booleans transform in double precision like numpy.fft
    if dtype.kind in 'biu':
        return np.dtype(np.complex128)
    if np.result_type(dtype, np.complex64) == np.complex64:
        return np.dtype(np.complex64)
    return np.dtype(np.complex128)


def _norm_scale(norm: Optional[str], n: int, inverse: bool) -> float:
    if norm not in NORM_MODES:
        raise ValueError(f"Invalid norm value {norm!r}; should be 'backward', 'ortho' or 'forward'")
    if norm == 'ortho':
        return 1.0 / math.sqrt(n)
    if (norm == 'forward') != inverse:
        return 1.0 / n
    return 1.0


def _transform(a, n: Optional[int], axis: int, norm: Optional[str], inverse: bool) -> np.ndarray:
    a = np.asarray(a)
    if a.ndim == 0:
        raise ValueError("Input must be at least one-dimensional")
    dtype = _result_dtype(a.dtype)

    if n is None:
        n = a.shape[axis]
        if n < 1:
            raise InvalidLengthError(n)
    else:
        n = validate_length(n)
    scale = _norm_scale(norm, n, inverse)

    a = np.moveaxis(a, axis, -1)
    available = a.shape[-1]
    if available > n:
        a = a[..., :n]

    # pad by copying into a zeroed buffer of the target length
    buffer = pyfftw.zeros_aligned(a.shape[:-1] + (n,), dtype=dtype)
    buffer[..., :min(available, n)] = a

    algorithm = get_planner(dtype).plan(n, INVERSE if inverse else FORWARD)
    result = pyfftw.empty_aligned(buffer.shape, dtype=dtype)
    algorithm.process_multi(buffer.reshape(-1), result.reshape(-1))

    if scale != 1.0:
        result *= scale
    return np.moveaxis(result, -1, axis)


def fft(a, n: Optional[int] = None, axis: int = -1, norm: Optional[str] = None) -> np.ndarray:
    """
    Compute the one-dimensional discrete Fourier transform.

    Args:
        a: Input array
        n: Length of transformed axis (cropped or zero-padded)
        axis: Axis to transform
        norm: Normalization mode (None, 'backward', 'ortho', 'forward')

    Returns:
        Transformed array, complex64 for single precision input else complex128
    """
    return _transform(a, n, axis, norm, False)


def ifft(a, n: Optional[int] = None, axis: int = -1, norm: Optional[str] = None) -> np.ndarray:
    """Compute the one-dimensional inverse discrete Fourier transform."""
    return _transform(a, n, axis, norm, True)


def empty_aligned(shape, dtype=np.complex128) -> np.ndarray:
    """Allocate an uninitialized SIMD-aligned array."""
    return pyfftw.empty_aligned(shape, dtype=dtype)


def byte_align(array: np.ndarray) -> np.ndarray:
    """Return array itself when aligned, otherwise an aligned copy."""
    return pyfftw.byte_align(array)
