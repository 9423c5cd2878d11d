"""
Twiddle factor computation and caching.

every algorithm gathers the unit-circle values it needs from a per-planner
TwiddleCache when it is constructed, so the process() path never evaluates
a trigonometric function. one forward table is stored per transform length;
inverse algorithms conjugate the subset they gather.
"""

import threading
import logging
import numpy as np
from typing import Dict, Any

logger = logging.getLogger("omnifft.twiddles")


def compute_twiddle(index, fft_len: int, inverse: bool = False):
    """
    Evaluate exp(-2*pi*i*index/fft_len), or its conjugate for inverse transforms.

    Args:
        index: Integer or integer array of twiddle indices
        fft_len: Transform length the twiddles belong to
        inverse: Whether to produce inverse-direction twiddles

    Returns:
        complex128 scalar or array
    """
    # reduce first so large products of indices don't lose precision
    index = np.mod(index, fft_len)
    angle = (-2.0 * np.pi / fft_len) * index
    if inverse:
        angle = -angle
    return np.cos(angle) + 1j * np.sin(angle)


def generate_twiddle_factors(fft_len: int, inverse: bool = False,
                             dtype=np.complex128) -> np.ndarray:
    """Full table of fft_len twiddles at the requested precision."""
    return compute_twiddle(np.arange(fft_len), fft_len, inverse).astype(dtype)


def _read_only(array: np.ndarray) -> np.ndarray:
    array.flags.writeable = False
    return array


class TwiddleCache:
    """
    Per-planner store of forward twiddle tables, keyed by transform length.

    tables are built once under a lock and handed out read-only, so every
    algorithm sharing a length shares the same storage.
    """

    def __init__(self, dtype=np.complex128):
        self._dtype = np.dtype(dtype)
        self._tables: Dict[int, np.ndarray] = {}
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0

    @property
    def dtype(self) -> np.dtype:
        return self._dtype

    def get_table(self, fft_len: int) -> np.ndarray:
        """Read-only forward table exp(-2*pi*i*k/fft_len) for k in range(fft_len)."""
        table = self._tables.get(fft_len)
        if table is not None:
            self._hits += 1
            return table

        with self._lock:
            table = self._tables.get(fft_len)
            if table is None:
                table = _read_only(generate_twiddle_factors(fft_len, False, self._dtype))
                self._tables[fft_len] = table
                self._misses += 1
                logger.debug(f"Generated twiddle table for length {fft_len}")
            else:
                self._hits += 1
            return table

    def get_twiddles(self, indices, fft_len: int, inverse: bool = False) -> np.ndarray:
        """
        Gather twiddles for an index array from the shared table.

        Args:
            indices: Integer array (at least 1-d) of twiddle exponents
            fft_len: Transform length
            inverse: Conjugate the gathered values for inverse transforms

        Returns:
            Read-only array shaped like indices
        """
        table = self.get_table(fft_len)
        values = table[np.mod(np.asarray(indices, dtype=np.int64), fft_len)]
        if inverse:
            np.conjugate(values, out=values)
        return _read_only(values)

    def get_twiddle(self, index: int, fft_len: int, inverse: bool = False) -> complex:
        """Single twiddle as a Python complex."""
        value = complex(self.get_table(fft_len)[index % fft_len])
        return value.conjugate() if inverse else value

    def get_stats(self) -> Dict[str, Any]:
        """
        Get statistics about the cached tables.

        tables, misses and bytes are exact; hits is approximate under
        concurrent use because cache hits are counted without the lock.
        """
        with self._lock:
            total_bytes = sum(t.nbytes for t in self._tables.values())
            return {
                'tables': len(self._tables),
                'hits': self._hits,
                'misses': self._misses,
                'bytes': total_bytes,
                'mb': total_bytes / (1024 * 1024),
            }

    def __contains__(self, fft_len: int) -> bool:
        return fft_len in self._tables

    def __len__(self) -> int:
        return len(self._tables)
