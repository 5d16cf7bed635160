"""
Translation to and from the Fortran LAPACK calling convention.

The compiled library expects single-character option codes and 1-based
indices for pivots, permutations and block boundaries. Everything above
the external adapter uses enum options and 0-based indices, so both
translations happen here and nowhere else.

Index translation is a plain shift by one in each direction, so for every
valid 0-based index i, to_zero_based(to_one_based(i)) == i. Ranges are
validated before translation.
"""

from enum import Enum

import numpy as np
from numpy.typing import NDArray

from pylapack.core.exceptions import InvalidOptionError
from pylapack.core.options import Diag, Side, Transpose, Uplo

TRANSPOSE_CODES = {
    Transpose.NoTrans: 'N',
    Transpose.Trans: 'T',
    Transpose.ConjTrans: 'C',
}

UPLO_CODES = {
    Uplo.Upper: 'U',
    Uplo.Lower: 'L',
    Uplo.All: 'A',
}

DIAG_CODES = {
    Diag.NonUnit: 'N',
    Diag.Unit: 'U',
}

SIDE_CODES = {
    Side.Left: 'L',
    Side.Right: 'R',
}

_TABLES = {
    Transpose: TRANSPOSE_CODES,
    Uplo: UPLO_CODES,
    Diag: DIAG_CODES,
    Side: SIDE_CODES,
}

# Fortran INTEGER as exported by scipy.linalg.cython_lapack
FORTRAN_INT = np.int32


def option_code(option: Enum) -> str:
    """
    Single-character code for an enumerated option.

    Job selectors carry their code as their value; BLAS-level selectors
    are looked up in the tables above.

    Raises:
        InvalidOptionError: If option has no character code
    """
    table = _TABLES.get(type(option))
    if table is not None:
        return table[option]
    if isinstance(option, Enum) and isinstance(option.value, str) and len(option.value) == 1:
        return option.value
    raise InvalidOptionError(
        f"{option!r} has no Fortran character code",
        param='option', actual=option,
    )


def to_one_based(index):
    """0-based index (or integer array) to 1-based."""
    if isinstance(index, np.ndarray):
        return index.astype(FORTRAN_INT) + 1
    return int(index) + 1


def to_zero_based(index):
    """1-based index (or integer array) to 0-based."""
    if isinstance(index, np.ndarray):
        return index.astype(np.intp) - 1
    return int(index) - 1


def pivots_to_fortran(ipiv: NDArray[np.integer], count: int) -> NDArray[np.int32]:
    """Fresh 1-based Fortran copy of the first `count` pivots."""
    return to_one_based(np.asarray(ipiv[:count]))


def pivots_from_fortran(fipiv: NDArray[np.int32], ipiv: NDArray[np.integer], count: int) -> None:
    """Write `count` 1-based Fortran pivots into ipiv as 0-based indices."""
    ipiv[:count] = to_zero_based(fipiv[:count])


def block_to_fortran(ilo: int, ihi: int) -> tuple[int, int]:
    """Inclusive 0-based active block to the 1-based (ILO, IHI) pair."""
    return to_one_based(ilo), to_one_based(ihi)


def block_from_fortran(ilo: int, ihi: int) -> tuple[int, int]:
    return to_zero_based(ilo), to_zero_based(ihi)


def _permutation_slots(n: int, ilo: int, ihi: int) -> NDArray[np.intp]:
    return np.r_[0:ilo, ihi + 1:n]


def scale_to_fortran(scale: NDArray[np.float64], n: int, ilo: int, ihi: int) -> NDArray[np.float64]:
    """
    Fresh copy of a balancing scale vector with 1-based permutation targets.

    Entries outside the 0-based block [ilo, ihi] are permutation indices;
    entries inside are scaling factors and are copied unchanged.
    """
    fscale = np.array(scale[:n], dtype=np.float64)
    slots = _permutation_slots(n, ilo, ihi)
    fscale[slots] += 1
    return fscale


def scale_from_fortran(fscale: NDArray[np.float64], scale: NDArray[np.float64],
                       n: int, ilo: int, ihi: int) -> None:
    """Write a Fortran scale vector into scale with 0-based permutation targets."""
    scale[:n] = fscale[:n]
    slots = _permutation_slots(n, ilo, ihi)
    scale[slots] -= 1
