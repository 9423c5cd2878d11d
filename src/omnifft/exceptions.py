"""
Error types raised by omnifft.

all of them are raised synchronously, before any computation starts, so a
failed call never leaves a partially written output buffer behind.
"""


class FFTError(Exception):
    """Base class for all omnifft errors."""


class InvalidLengthError(FFTError, ValueError):
    """Requested transform length is not a positive integer."""

    def __init__(self, length):
        self.length = length
        super().__init__(f"FFT length must be a positive integer, got {length!r}")


class LengthMismatchError(FFTError, ValueError):
    """A buffer does not match the planned transform length."""

    def __init__(self, name: str, expected: int, actual: int, multiple: bool = False):
        self.name = name
        self.expected = expected
        self.actual = actual
        expectation = f"a multiple of {expected}" if multiple else str(expected)
        super().__init__(f"{name} is the wrong length. Expected {expectation}, got {actual}")


class InsufficientScratchError(FFTError, ValueError):
    """Supplied scratch buffer is shorter than the algorithm requires."""

    def __init__(self, required: int, actual: int):
        self.required = required
        self.actual = actual
        super().__init__(f"Scratch buffer too short. Need at least {required}, got {actual}")
