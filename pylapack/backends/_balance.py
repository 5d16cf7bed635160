"""
Balancing kernels for the native backend.

gebal permutes a general matrix to isolate eigenvalues and then scales
the remaining block by powers of two so that its row and column norms
are close. gebak undoes both transformations on a set of eigenvectors.

Permutation targets are stored 0-based in scale[:ilo] and scale[ihi+1:];
scaling factors in scale[ilo:ihi+1]. The active block [ilo, ihi] is
inclusive.
"""

import numpy as np
from numpy.typing import NDArray

from pylapack.core.exceptions import BackendError
from pylapack.core.options import BalanceJob, Side

# Scaling factors are powers of _SCLFAC so that scaling is exact.
_SCLFAC = 2.0
# Minimum relative reduction of row plus column norm worth a rescaling.
_FACTOR = 0.95

_SFMIN1 = np.finfo(np.float64).tiny / np.finfo(np.float64).eps
_SFMAX1 = 1 / _SFMIN1
_SFMIN2 = _SFMIN1 * _SCLFAC
_SFMAX2 = 1 / _SFMIN2


def _swap_rows(a: NDArray[np.float64], i: int, j: int, start: int = 0) -> None:
    a[[i, j], start:] = a[[j, i], start:]


def _swap_cols(a: NDArray[np.float64], i: int, j: int, stop: int) -> None:
    a[:stop, [i, j]] = a[:stop, [j, i]]


def _isolate_rows(a: NDArray[np.float64], scale: NDArray[np.float64], ihi: int) -> int | None:
    """
    Push rows with no off-diagonal entries in columns [0, ihi] to the bottom.

    Returns the new ihi, or None when the whole matrix was triangularised.
    """
    swapped = True
    while swapped:
        swapped = False
        for i in range(ihi, -1, -1):
            row = a[i, :ihi + 1]
            if np.count_nonzero(row) - (row[i] != 0) > 0:
                continue
            scale[ihi] = i
            if i != ihi:
                _swap_cols(a, i, ihi, ihi + 1)
                _swap_rows(a, i, ihi)
            if ihi == 0:
                # Fully triangular: the last block entry is a scale factor.
                scale[0] = 1
                return None
            ihi -= 1
            swapped = True
            break
    return ihi


def _isolate_cols(a: NDArray[np.float64], scale: NDArray[np.float64], ilo: int, ihi: int) -> int:
    """Push columns with no off-diagonal entries in rows [ilo, ihi] to the left."""
    swapped = True
    while swapped:
        swapped = False
        for j in range(ilo, ihi + 1):
            col = a[ilo:ihi + 1, j]
            if np.count_nonzero(col) - (col[j - ilo] != 0) > 0:
                continue
            scale[ilo] = j
            if j != ilo:
                _swap_cols(a, j, ilo, ihi + 1)
                _swap_rows(a, j, ilo, start=ilo)
            ilo += 1
            swapped = True
            break
    return ilo


def _scale_block(a: NDArray[np.float64], scale: NDArray[np.float64], ilo: int, ihi: int) -> None:
    converged = False
    while not converged:
        converged = True
        for i in range(ilo, ihi + 1):
            c = float(np.linalg.norm(a[ilo:ihi + 1, i]))
            r = float(np.linalg.norm(a[i, ilo:ihi + 1]))
            ca = float(np.max(np.abs(a[:ihi + 1, i])))
            ra = float(np.max(np.abs(a[i, ilo:])))
            if c == 0 or r == 0:
                continue
            if np.isnan(c + ca + r + ra):
                raise BackendError(
                    "NaN encountered while balancing",
                    backend_name='native', routine='dgebal',
                )
            g = r / _SCLFAC
            f = 1.0
            s = c + r
            while c < g and max(f, c, ca) < _SFMAX2 and min(r, g, ra) > _SFMIN2:
                f *= _SCLFAC
                c *= _SCLFAC
                ca *= _SCLFAC
                g /= _SCLFAC
                r /= _SCLFAC
                ra /= _SCLFAC
            g = c / _SCLFAC
            while r <= g and max(r, ra) < _SFMAX2 and min(f, c, g, ca) > _SFMIN2:
                f /= _SCLFAC
                c /= _SCLFAC
                ca /= _SCLFAC
                g /= _SCLFAC
                r *= _SCLFAC
                ra *= _SCLFAC
            if c + r >= _FACTOR * s:
                continue
            if f < 1 and scale[i] < 1 and f * scale[i] <= _SFMIN1:
                continue
            if f > 1 and scale[i] > 1 and scale[i] >= _SFMAX1 / f:
                continue
            scale[i] *= f
            converged = False
            a[i, ilo:] *= 1 / f
            a[:ihi + 1, i] *= f


def gebal(job: BalanceJob, a: NDArray[np.float64], scale: NDArray[np.float64]) -> tuple[int, int]:
    """
    Balance the n x n view a in place.

    Returns:
        Inclusive 0-based active block (ilo, ihi)
    """
    n = a.shape[0]
    ilo, ihi = 0, n - 1
    if job is BalanceJob.NoBalance:
        scale[:n] = 1
        return ilo, ihi
    if job is not BalanceJob.Scale:
        top = _isolate_rows(a, scale, ihi)
        if top is None:
            return 0, 0
        ihi = top
        ilo = _isolate_cols(a, scale, ilo, ihi)
    scale[ilo:ihi + 1] = 1
    if job is BalanceJob.Permute:
        return ilo, ihi
    _scale_block(a, scale, ilo, ihi)
    return ilo, ihi


def gebak(
    job: BalanceJob,
    side: Side,
    ilo: int,
    ihi: int,
    scale: NDArray[np.float64],
    v: NDArray[np.float64],
) -> None:
    """Back-transform the n x m eigenvector view v after gebal."""
    n = v.shape[0]
    if job is BalanceJob.NoBalance:
        return
    if ilo != ihi and job is not BalanceJob.Permute:
        factors = scale[ilo:ihi + 1]
        if side is Side.Right:
            v[ilo:ihi + 1, :] *= factors[:, np.newaxis]
        else:
            v[ilo:ihi + 1, :] /= factors[:, np.newaxis]
    if job is BalanceJob.Scale:
        return
    for i in list(range(ilo - 1, -1, -1)) + list(range(ihi + 1, n)):
        k = int(scale[i])
        if k != i:
            _swap_rows(v, i, k)
