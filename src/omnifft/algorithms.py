"""
FFT algorithm implementations.

every algorithm is an immutable object built once by the planner (or by hand)
that owns its twiddle arrays and its child algorithms. the public process*
methods validate buffers and then call _perform(), which every variant
implements on a (count, length) batch so a whole level of sub-transforms is
one vectorized NumPy call.

convention: transforms are unnormalized, so inverse(forward(x)) == length * x.
"""

import math
import logging
import numpy as np
import pyfftw
from typing import Optional, Tuple

from .butterflies import (
    BUTTERFLY_LENGTHS, apply_butterfly, butterfly_constants, radix4_combine
)
from .exceptions import LengthMismatchError, InsufficientScratchError
from .math_utils import (
    is_power_of_two, is_prime, primitive_root, multiplicative_inverse, powers_mod
)
from .twiddles import TwiddleCache

logger = logging.getLogger("omnifft.algorithms")

SUPPORTED_DTYPES = (np.dtype(np.complex64), np.dtype(np.complex128))


def check_dtype(dtype) -> np.dtype:
    """Normalize a precision argument to one of the supported complex dtypes."""
    dtype = np.dtype(dtype)
    if dtype not in SUPPORTED_DTYPES:
        raise ValueError(f"Unsupported dtype: {dtype}. Use complex64 or complex128")
    return dtype


def _read_only(array: np.ndarray) -> np.ndarray:
    array.flags.writeable = False
    return array


def _twiddle_source(twiddle_cache: Optional[TwiddleCache], dtype: np.dtype) -> TwiddleCache:
    if twiddle_cache is None:
        return TwiddleCache(dtype)
    if twiddle_cache.dtype != dtype:
        raise ValueError(f"Twiddle cache holds {twiddle_cache.dtype}, algorithm needs {dtype}")
    return twiddle_cache


def _check_children(*children: "FFTAlgorithm"):
    first = children[0]
    for child in children[1:]:
        if child.is_inverse() != first.is_inverse():
            raise ValueError("Child algorithms must share the same direction")
        if child.dtype != first.dtype:
            raise ValueError("Child algorithms must share the same dtype")


class FFTAlgorithm:
    """
    Common interface of every transform algorithm.

    subclasses set `name`, call the base constructor, build their read-only
    tables, and implement _perform(rows, out, work):
        rows: (count, length) C-contiguous input, never modified
        out:  (count, length) C-contiguous output, distinct from rows
        work: flat scratch of count * required_scratch_length() elements,
              or None to allocate one
    """

    name = 'FFTAlgorithm'

    def __init__(self, length: int, inverse: bool, dtype):
        self._length = int(length)
        self._inverse = bool(inverse)
        self._dtype = check_dtype(dtype)

    # ------------------------------------------------------------------
    # introspection
    # ------------------------------------------------------------------

    def length(self) -> int:
        """Transform length this algorithm was built for."""
        return self._length

    def __len__(self) -> int:
        return self._length

    def is_inverse(self) -> bool:
        return self._inverse

    @property
    def dtype(self) -> np.dtype:
        return self._dtype

    def required_scratch_length(self) -> int:
        """Minimum scratch elements needed per transform by process_with_scratch()."""
        return 0

    def children(self) -> Tuple["FFTAlgorithm", ...]:
        """Sub-algorithms this algorithm delegates to."""
        return ()

    def make_scratch(self, count: int = 1) -> np.ndarray:
        """Aligned scratch buffer big enough for `count` transforms."""
        return pyfftw.empty_aligned(count * self.required_scratch_length(), dtype=self._dtype)

    def __repr__(self) -> str:
        children = self.children()
        if not children:
            return f"{self.name}({self._length})"
        inner = ", ".join(repr(child) for child in children)
        return f"{self.name}({self._length}, [{inner}])"

    # ------------------------------------------------------------------
    # processing
    # ------------------------------------------------------------------

    def process(self, input, output: np.ndarray):
        """
        Transform `input` into `output`.

        Args:
            input: Array-like of length() complex samples (left unmodified)
            output: Writable 1-D ndarray of length() elements

        Raises:
            LengthMismatchError: if either buffer has the wrong length
        """
        rows = self._check_buffers(input, output, 1)
        self._run(rows, output, 1, None)

    def process_with_scratch(self, input, output: np.ndarray, scratch: Optional[np.ndarray]):
        """
        Transform `input` into `output` using a caller-owned scratch buffer.

        the scratch must hold at least required_scratch_length() elements of
        the algorithm dtype. callers sharing one scratch buffer must not run
        concurrent calls with it.

        Raises:
            LengthMismatchError: if either buffer has the wrong length
            InsufficientScratchError: if scratch is too short
        """
        rows = self._check_buffers(input, output, 1)
        work = self._check_scratch(scratch, 1)
        self._run(rows, output, 1, work)

    def process_multi(self, input, output: np.ndarray, scratch: Optional[np.ndarray] = None):
        """
        Transform consecutive chunks of length() samples independently.

        Args:
            input: Array-like of count * length() samples
            output: Writable 1-D ndarray of the same size
            scratch: Optional scratch of count * required_scratch_length()
        """
        input = np.asarray(input)
        if input.ndim != 1:
            raise ValueError("input must be a one-dimensional buffer")
        total = input.shape[0]
        if total % self._length:
            raise LengthMismatchError('input', self._length, total, multiple=True)
        count = total // self._length
        rows = self._check_buffers(input, output, count)
        work = self._check_scratch(scratch, count) if scratch is not None else None
        self._run(rows, output, count, work)

    def _check_buffers(self, input, output, count: int) -> np.ndarray:
        if not isinstance(output, np.ndarray):
            raise TypeError(f"output must be a numpy.ndarray, got {type(output).__name__}")
        input = np.asarray(input)
        if input.ndim != 1 or output.ndim != 1:
            raise ValueError("input and output must be one-dimensional buffers")

        expected = count * self._length
        if input.shape[0] != expected:
            raise LengthMismatchError('input', expected, input.shape[0])
        if output.shape[0] != expected:
            raise LengthMismatchError('output', expected, output.shape[0])
        if not output.flags.writeable:
            raise ValueError("output buffer is read-only")
        if output.dtype.kind != 'c':
            raise TypeError(f"output must have a complex dtype, got {output.dtype}")

        rows = np.ascontiguousarray(input, dtype=self._dtype)
        # process() must behave as if input were read in full before output is written
        if np.may_share_memory(rows, output):
            rows = rows.copy()
        return rows

    def _check_scratch(self, scratch: Optional[np.ndarray], count: int) -> Optional[np.ndarray]:
        required = count * self.required_scratch_length()
        if scratch is None:
            if required:
                raise InsufficientScratchError(required, 0)
            return None
        if not isinstance(scratch, np.ndarray) or scratch.ndim != 1:
            raise TypeError("scratch must be a one-dimensional numpy.ndarray")
        if scratch.shape[0] < required:
            raise InsufficientScratchError(required, scratch.shape[0])
        if not required:
            return None
        if scratch.dtype != self._dtype:
            raise TypeError(f"scratch must have dtype {self._dtype}, got {scratch.dtype}")
        if not scratch.flags.c_contiguous or not scratch.flags.writeable:
            raise TypeError("scratch must be C-contiguous and writable")
        return scratch[:required]

    def _run(self, rows: np.ndarray, output: np.ndarray, count: int, work: Optional[np.ndarray]):
        if count == 0:
            return
        direct = output.flags.c_contiguous and output.dtype == self._dtype
        out = output if direct else pyfftw.empty_aligned(output.shape[0], dtype=self._dtype)

        self._perform(rows.reshape(count, self._length), out.reshape(count, self._length), work)

        if not direct:
            output[...] = out

    def _carve(self, work: Optional[np.ndarray], count: int, *widths: int):
        """Split a flat work buffer into C-contiguous (count, width) blocks."""
        total = count * sum(widths)
        if work is None:
            work = pyfftw.empty_aligned(total, dtype=self._dtype)
        blocks = []
        offset = 0
        for width in widths:
            blocks.append(work[offset:offset + count * width].reshape(count, width))
            offset += count * width
        return blocks

    def _perform(self, rows: np.ndarray, out: np.ndarray, work: Optional[np.ndarray]):
        raise NotImplementedError


class Noop(FFTAlgorithm):
    """Length-1 transform: the identity."""

    name = 'Noop'

    def __init__(self, length: int = 1, inverse: bool = False, dtype=np.complex128):
        if length != 1:
            raise ValueError(f"Noop only handles length 1, got {length}")
        super().__init__(length, inverse, dtype)

    def _perform(self, rows, out, work):
        np.copyto(out, rows)


class DFTAlgorithm(FFTAlgorithm):
    """
    Direct O(N^2) summation from a precomputed N x N twiddle matrix.

    used for small lengths when hardcoded butterflies are disabled, and as the
    reference every other algorithm is tested against.
    """

    name = 'DFT'

    def __init__(self, length: int, inverse: bool = False, dtype=np.complex128,
                 twiddle_cache: Optional[TwiddleCache] = None):
        if length < 1:
            raise ValueError(f"DFT length must be positive, got {length}")
        super().__init__(length, inverse, dtype)
        twiddle_cache = _twiddle_source(twiddle_cache, self._dtype)

        index = np.arange(length, dtype=np.int64)
        # symmetric, so rows @ matrix computes sum_n x[n] * W^(n*k)
        self._matrix = twiddle_cache.get_twiddles(np.outer(index, index) % length,
                                                  length, self._inverse)

    def _perform(self, rows, out, work):
        np.matmul(rows, self._matrix, out=out)


class Butterfly(FFTAlgorithm):
    """Hardcoded transform for one of the small BUTTERFLY_LENGTHS."""

    def __init__(self, length: int, inverse: bool = False, dtype=np.complex128,
                 twiddle_cache: Optional[TwiddleCache] = None):
        if length not in BUTTERFLY_LENGTHS:
            raise ValueError(f"No hardcoded butterfly for length {length}")
        super().__init__(length, inverse, dtype)
        twiddle_cache = _twiddle_source(twiddle_cache, self._dtype)
        self.name = f"Butterfly{length}"
        self._constants = butterfly_constants(length, twiddle_cache, self._inverse)

    def __repr__(self) -> str:
        return self.name

    def _perform(self, rows, out, work):
        columns = [rows[:, j] for j in range(self._length)]
        for j, column in enumerate(apply_butterfly(self._length, columns, self._constants)):
            out[:, j] = column


def _digit_reversed_order(length: int, base_len: int) -> np.ndarray:
    """
    Input permutation for radix-4 decimation in time.

    each pass splits every block into its four stride-4 subsequences, so the
    leaves end up as contiguous blocks of base_len samples.
    """
    indices = np.arange(length, dtype=np.intp).reshape(1, length)
    block = length
    while block > base_len:
        indices = indices.reshape(-1, block // 4, 4).transpose(0, 2, 1).reshape(-1, block // 4)
        block //= 4
    return indices.reshape(length)


class Radix4(FFTAlgorithm):
    """
    Power-of-two Cooley-Tukey, decimation in time.

    the input is permuted once into digit-reversed order, leaf blocks of 4
    (or 2 when log2(length) is odd) are transformed with hardcoded butterflies,
    and each following stage merges four length-L transforms into one of
    length 4L. everything runs in the output buffer.
    """

    name = 'Radix4'

    def __init__(self, length: int, inverse: bool = False, dtype=np.complex128,
                 twiddle_cache: Optional[TwiddleCache] = None):
        if length < 2 or not is_power_of_two(length):
            raise ValueError(f"Radix4 needs a power of two >= 2, got {length}")
        super().__init__(length, inverse, dtype)
        twiddle_cache = _twiddle_source(twiddle_cache, self._dtype)

        exponent = length.bit_length() - 1
        self._base_len = 2 if exponent % 2 else 4
        self._base_constants = butterfly_constants(self._base_len, twiddle_cache, self._inverse)
        self._input_order = _read_only(_digit_reversed_order(length, self._base_len))

        stages = []
        sub_len = self._base_len
        while sub_len < length:
            stride = length // (4 * sub_len)
            exponents = np.outer(np.arange(1, 4), np.arange(sub_len)) * stride
            stages.append((sub_len, twiddle_cache.get_twiddles(exponents, length, self._inverse)))
            sub_len *= 4
        self._stages = tuple(stages)

    def _perform(self, rows, out, work):
        count = rows.shape[0]
        length = self._length
        np.take(rows, self._input_order, axis=1, out=out)

        base = self._base_len
        leaves = out.reshape(count, length // base, base)
        columns = [leaves[..., j] for j in range(base)]
        for j, column in enumerate(apply_butterfly(base, columns, self._base_constants)):
            leaves[..., j] = column

        for sub_len, twiddles in self._stages:
            blocks = out.reshape(count, length // (4 * sub_len), 4, sub_len)
            quarters = radix4_combine(blocks[:, :, 0], blocks[:, :, 1],
                                      blocks[:, :, 2], blocks[:, :, 3],
                                      twiddles[0], twiddles[1], twiddles[2],
                                      self._inverse)
            for q, quarter in enumerate(quarters):
                blocks[:, :, q] = quarter


class MixedRadix(FFTAlgorithm):
    """
    General Cooley-Tukey step for length = width * height, any factors.

    index maps: n = n1 + width*n2, k = height*k1 + k2. runs `width`
    transforms of length `height`, multiplies by W_N^(n1*k2), runs `height`
    transforms of length `width`, then transposes into natural order.
    """

    name = 'MixedRadix'

    def __init__(self, width_fft: FFTAlgorithm, height_fft: FFTAlgorithm,
                 twiddle_cache: Optional[TwiddleCache] = None):
        _check_children(width_fft, height_fft)
        self._width = width_fft.length()
        self._height = height_fft.length()
        super().__init__(self._width * self._height, width_fft.is_inverse(), width_fft.dtype)
        twiddle_cache = _twiddle_source(twiddle_cache, self._dtype)

        self._width_fft = width_fft
        self._height_fft = height_fft
        exponents = np.outer(np.arange(self._width), np.arange(self._height))
        self._twiddles = twiddle_cache.get_twiddles(exponents, self._length, self._inverse)

    def required_scratch_length(self) -> int:
        return self._length

    def children(self):
        return (self._width_fft, self._height_fft)

    def _perform(self, rows, out, work):
        count = rows.shape[0]
        width, height = self._width, self._height
        (grid,) = self._carve(work, count, self._length)

        # one row per n1, holding x[n1 + width*n2] for every n2
        np.copyto(grid.reshape(count, width, height),
                  rows.reshape(count, height, width).transpose(0, 2, 1))
        self._height_fft._perform(grid.reshape(count * width, height),
                                  out.reshape(count * width, height), None)

        spectra = out.reshape(count, width, height)
        np.multiply(spectra, self._twiddles, out=spectra)

        np.copyto(grid.reshape(count, height, width), spectra.transpose(0, 2, 1))
        self._width_fft._perform(grid.reshape(count * height, width),
                                 out.reshape(count * height, width), None)

        # out is laid out [k2][k1]; output index is height*k1 + k2
        np.copyto(grid.reshape(count, width, height),
                  out.reshape(count, height, width).transpose(0, 2, 1))
        np.copyto(out, grid)


class GoodThomas(FFTAlgorithm):
    """
    Prime-factor algorithm for length = width * height with coprime factors.

    the Ruritanian input map n = (height*n1 + width*n2) mod N and the CRT
    output map turn the transform into a true 2-D transform, so no twiddle
    multiplication happens between the two passes.
    """

    name = 'GoodThomas'

    def __init__(self, width_fft: FFTAlgorithm, height_fft: FFTAlgorithm):
        _check_children(width_fft, height_fft)
        width = width_fft.length()
        height = height_fft.length()
        if math.gcd(width, height) != 1:
            raise ValueError(f"GoodThomas needs coprime factors, got {width} and {height}")
        super().__init__(width * height, width_fft.is_inverse(), width_fft.dtype)

        self._width = width
        self._height = height
        self._width_fft = width_fft
        self._height_fft = height_fft
        length = self._length

        n1 = np.arange(width, dtype=np.int64)[:, None]
        n2 = np.arange(height, dtype=np.int64)[None, :]
        self._input_index = _read_only(((height * n1 + width * n2) % length).reshape(-1))

        # the second pass leaves the result laid out [k2][k1]
        k1 = np.arange(width, dtype=np.int64)[None, :]
        k2 = np.arange(height, dtype=np.int64)[:, None]
        height_factor = height * multiplicative_inverse(height, width)
        width_factor = width * multiplicative_inverse(width, height)
        destinations = (k1 * height_factor + k2 * width_factor) % length

        output_index = np.empty(length, dtype=np.intp)
        output_index[destinations.reshape(-1)] = np.arange(length)
        self._output_index = _read_only(output_index)

    def required_scratch_length(self) -> int:
        return self._length

    def children(self):
        return (self._width_fft, self._height_fft)

    def _perform(self, rows, out, work):
        count = rows.shape[0]
        width, height = self._width, self._height
        (grid,) = self._carve(work, count, self._length)

        np.take(rows, self._input_index, axis=1, out=grid)
        self._height_fft._perform(grid.reshape(count * width, height),
                                  out.reshape(count * width, height), None)

        np.copyto(grid.reshape(count, height, width),
                  out.reshape(count, width, height).transpose(0, 2, 1))
        self._width_fft._perform(grid.reshape(count * height, width),
                                 out.reshape(count * height, width), None)

        np.take(out, self._output_index, axis=1, out=grid)
        np.copyto(out, grid)


class Bluestein(FFTAlgorithm):
    """
    Chirp-z transform: any length as a cyclic convolution of length M >= 2N-1.

    x is multiplied by the chirp c[n] = W^(n^2/2), convolved with conj(c)
    through the inner algorithm, and multiplied by the chirp again. the kernel
    spectrum is computed once here; the backward half of the convolution uses
    conj(F(conj(y))), so one inner algorithm of the same direction suffices.
    """

    name = 'Bluestein'

    def __init__(self, length: int, inner_fft: FFTAlgorithm,
                 twiddle_cache: Optional[TwiddleCache] = None):
        inner_len = inner_fft.length()
        if length < 1:
            raise ValueError(f"Bluestein length must be positive, got {length}")
        if inner_len < 2 * length - 1:
            raise ValueError(f"Bluestein inner length must be >= {2 * length - 1}, got {inner_len}")
        super().__init__(length, inner_fft.is_inverse(), inner_fft.dtype)
        twiddle_cache = _twiddle_source(twiddle_cache, self._dtype)

        self._inner_fft = inner_fft
        self._inner_len = inner_len

        # W^(n^2/2) == W_2N^(n^2), reduced mod 2N before gathering
        n = np.arange(length, dtype=np.int64)
        chirp = twiddle_cache.get_twiddles((n * n) % (2 * length), 2 * length, self._inverse)
        self._chirp = chirp

        kernel = np.zeros((1, inner_len), dtype=self._dtype)
        kernel[0, :length] = np.conj(chirp)
        if length > 1:
            kernel[0, inner_len - length + 1:] = np.conj(chirp[1:])[::-1]
        spectrum = np.empty_like(kernel)
        inner_fft._perform(kernel, spectrum, None)
        spectrum /= inner_len
        self._kernel_spectrum = _read_only(spectrum.reshape(inner_len))
        logger.debug(f"Bluestein length {length} convolves at length {inner_len}")

    def required_scratch_length(self) -> int:
        return 2 * self._inner_len

    def children(self):
        return (self._inner_fft,)

    def _perform(self, rows, out, work):
        count = rows.shape[0]
        length = self._length
        padded, spectra = self._carve(work, count, self._inner_len, self._inner_len)

        np.multiply(rows, self._chirp, out=padded[:, :length])
        padded[:, length:] = 0

        self._inner_fft._perform(padded, spectra, None)
        np.multiply(spectra, self._kernel_spectrum, out=spectra)
        np.conjugate(spectra, out=spectra)
        self._inner_fft._perform(spectra, padded, None)

        np.conjugate(padded[:, :length], out=out)
        np.multiply(out, self._chirp, out=out)


class Rader(FFTAlgorithm):
    """
    Rader's algorithm for prime lengths.

    a primitive root g turns the nonzero indices into a cyclic group, so the
    outputs X[g^-m] - x[0] form a cyclic convolution of length N-1 between
    x[g^q] and W^(g^-q), computed through the inner algorithm. X[0] is the
    plain sum of the input.
    """

    name = 'Rader'

    def __init__(self, length: int, inner_fft: FFTAlgorithm,
                 twiddle_cache: Optional[TwiddleCache] = None):
        if not is_prime(length):
            raise ValueError(f"Rader needs a prime length, got {length}")
        if inner_fft.length() != length - 1:
            raise ValueError(f"Rader inner length must be {length - 1}, got {inner_fft.length()}")
        super().__init__(length, inner_fft.is_inverse(), inner_fft.dtype)
        twiddle_cache = _twiddle_source(twiddle_cache, self._dtype)

        self._inner_fft = inner_fft
        inner_len = length - 1

        root = primitive_root(length)
        root_inverse = multiplicative_inverse(root, length)
        self._input_index = _read_only(powers_mod(root, inner_len, length))
        self._output_index = _read_only(powers_mod(root_inverse, inner_len, length))

        kernel = twiddle_cache.get_twiddles(self._output_index, length, self._inverse)
        spectrum = np.empty((1, inner_len), dtype=self._dtype)
        inner_fft._perform(kernel.reshape(1, inner_len), spectrum, None)
        spectrum /= inner_len
        self._kernel_spectrum = _read_only(spectrum.reshape(inner_len))

    def required_scratch_length(self) -> int:
        return 2 * (self._length - 1)

    def children(self):
        return (self._inner_fft,)

    def _perform(self, rows, out, work):
        count = rows.shape[0]
        inner_len = self._length - 1
        permuted, spectra = self._carve(work, count, inner_len, inner_len)

        np.take(rows, self._input_index, axis=1, out=permuted)
        self._inner_fft._perform(permuted, spectra, None)
        np.multiply(spectra, self._kernel_spectrum, out=spectra)
        np.conjugate(spectra, out=spectra)
        self._inner_fft._perform(spectra, permuted, None)
        np.conjugate(permuted, out=permuted)
        permuted += rows[:, :1]

        out[:, 0] = rows.sum(axis=1)
        out[:, self._output_index] = permuted
