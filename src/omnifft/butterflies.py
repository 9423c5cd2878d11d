"""
Complex arithmetic and butterfly primitives.

every function here works element-wise on NumPy arrays of identical shape, so
a single call combines one butterfly per element: the algorithms pass in
strided column views covering every sub-transform of a batch at once.
constants are Python floats/complex so they never upcast single precision data.
"""

import numpy as np

# lengths that have a hardcoded butterfly
BUTTERFLY_LENGTHS = (2, 3, 4, 5, 6)


def rotate_90(values: np.ndarray, inverse: bool) -> np.ndarray:
    """
    Multiply by -i (forward) or +i (inverse) by swapping components.

    Args:
        values: Complex array
        inverse: Rotation direction

    Returns:
        New array holding the rotated values
    """
    rotated = np.empty_like(values)
    if inverse:
        rotated.real = -values.imag
        rotated.imag = values.real
    else:
        rotated.real = values.imag
        rotated.imag = -values.real
    return rotated


def butterfly2(x0, x1):
    """Length-2 DFT; identical in both directions."""
    return x0 + x1, x0 - x1


def butterfly3(x0, x1, x2, twiddle: complex):
    """
    Length-3 DFT.

    Args:
        x0, x1, x2: Inputs
        twiddle: exp(-/+ 2*pi*i/3) for the transform direction
    """
    total = x1 + x2
    diff = x1 - x2
    mid = x0 + twiddle.real * total
    rot = diff * complex(0.0, twiddle.imag)
    return x0 + total, mid + rot, mid - rot


def butterfly4(x0, x1, x2, x3, inverse: bool):
    """Length-4 DFT; the only twiddle is a rotation by -/+ i."""
    sum02, diff02 = butterfly2(x0, x2)
    sum13, diff13 = butterfly2(x1, x3)
    diff13 = rotate_90(diff13, inverse)
    return sum02 + sum13, diff02 + diff13, sum02 - sum13, diff02 - diff13


def butterfly5(x0, x1, x2, x3, x4, twiddle1: complex, twiddle2: complex):
    """
    Length-5 DFT using the conjugate-pair symmetry of the twiddles.

    Args:
        x0..x4: Inputs
        twiddle1: exp(-/+ 2*pi*i/5)
        twiddle2: exp(-/+ 4*pi*i/5)
    """
    sum14, diff14 = butterfly2(x1, x4)
    sum23, diff23 = butterfly2(x2, x3)

    mid_a = x0 + twiddle1.real * sum14 + twiddle2.real * sum23
    mid_b = x0 + twiddle2.real * sum14 + twiddle1.real * sum23
    rot_a = (twiddle1.imag * diff14 + twiddle2.imag * diff23) * 1j
    rot_b = (twiddle2.imag * diff14 - twiddle1.imag * diff23) * 1j

    return x0 + sum14 + sum23, mid_a + rot_a, mid_b + rot_b, mid_b - rot_b, mid_a - rot_a


def butterfly6(x0, x1, x2, x3, x4, x5, twiddle3: complex):
    """
    Length-6 DFT as a hardcoded 2x3 Good-Thomas step.

    gcd(2, 3) == 1 so the index maps are fixed permutations and no twiddles
    are needed between the two stages.

    Args:
        x0..x5: Inputs
        twiddle3: Twiddle for the inner length-3 transforms
    """
    # input map n = (3*n1 + 2*n2) mod 6
    a0, a1, a2 = butterfly3(x0, x2, x4, twiddle3)
    b0, b1, b2 = butterfly3(x3, x5, x1, twiddle3)

    y0, y3 = butterfly2(a0, b0)
    y4, y1 = butterfly2(a1, b1)
    y2, y5 = butterfly2(a2, b2)

    # output map k = (3*k1 + 4*k2) mod 6, already applied by the names above
    return y0, y1, y2, y3, y4, y5


def radix4_combine(f0, f1, f2, f3, tw1, tw2, tw3, inverse: bool):
    """
    Decimation-in-time radix-4 stage: twiddle three sub-transform outputs
    and merge the four into the four quarters of the parent transform.

    Args:
        f0..f3: Outputs of the four length-L sub-transforms
        tw1, tw2, tw3: Stage twiddles W^(r*k) for r = 1, 2, 3
        inverse: Transform direction

    Returns:
        Tuple of the four output quarters
    """
    return butterfly4(f0, f1 * tw1, f2 * tw2, f3 * tw3, inverse)


def butterfly_constants(length: int, twiddle_cache, inverse: bool) -> tuple:
    """Twiddle constants the hardcoded butterfly of the given length needs."""
    if length == 3 or length == 6:
        return (twiddle_cache.get_twiddle(1, 3, inverse),)
    if length == 5:
        return (twiddle_cache.get_twiddle(1, 5, inverse),
                twiddle_cache.get_twiddle(2, 5, inverse))
    if length == 4:
        return (inverse,)
    if length == 2:
        return ()
    raise ValueError(f"No hardcoded butterfly for length {length}")


_BUTTERFLIES = {
    2: butterfly2,
    3: butterfly3,
    4: butterfly4,
    5: butterfly5,
    6: butterfly6,
}


def apply_butterfly(length: int, columns, constants: tuple):
    """
    Run the hardcoded butterfly for a length on a sequence of input columns.

    Args:
        length: Butterfly length, one of BUTTERFLY_LENGTHS
        columns: Sequence of `length` arrays
        constants: Value returned by butterfly_constants()

    Returns:
        Tuple of `length` output arrays
    """
    return _BUTTERFLIES[length](*columns, *constants)
