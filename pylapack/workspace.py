"""
Workspace minimums and the size-query protocol.

Every routine that takes a workspace accepts `lwork == QUERY`. Such a call
validates options and dimension signs, performs no numerical work, leaves
every matrix and vector argument untouched, and writes the minimum
workspace length for the given dimensions into work[0].

The minimums are this layer's own contract and do not depend on the
active backend. A backend that needs more scratch (the external adapter
asks the compiled library) allocates it itself.
"""

from typing import Any, Callable

import numpy as np

from pylapack.core.options import EVComp, EVJob, MatrixNorm, Side
from pylapack.core.validation import check_length

QUERY = -1


def _side_order(side: Side, m: int, n: int) -> int:
    return n if side is Side.Left else m


def _column_norm(norm: MatrixNorm, n: int) -> int:
    return n if norm is MatrixNorm.MaxColumnSum else 1


def _gels(m: int, n: int, nrhs: int) -> int:
    mn = min(m, n)
    return mn + max(mn, nrhs)


def _gesvd(m: int, n: int) -> int:
    mn = min(m, n)
    return max(3 * mn + max(m, n), 5 * mn)


def _geev(jobvl: EVJob, jobvr: EVJob, n: int) -> int:
    if jobvl is EVJob.Vectors or jobvr is EVJob.Vectors:
        return 4 * n
    return 3 * n


def _steqr(compz: EVComp, n: int) -> int:
    if compz is EVComp.NoVectors:
        return 1
    return 2 * n - 2


_MINIMUM: dict[str, Callable[..., int]] = {
    'dgetri': lambda n: n,
    'dgecon': lambda n: 4 * n,
    'dpocon': lambda n: 3 * n,
    'dtrcon': lambda n: 3 * n,
    'dgels': _gels,
    'dgeqrf': lambda n: n,
    'dgelqf': lambda m: m,
    'dorgqr': lambda n: n,
    'dorglq': lambda m: m,
    'dormqr': _side_order,
    'dormlq': _side_order,
    'dlarf': _side_order,
    'dlange': _column_norm,
    'dlansy': _column_norm,
    'dlantr': _column_norm,
    'dsyev': lambda n: 3 * n - 1,
    'dsteqr': _steqr,
    'dgesvd': _gesvd,
    'dgehrd': lambda n: n,
    'dhseqr': lambda n: n,
    'dgeev': _geev,
}

WORKSPACE_ROUTINES = tuple(sorted(_MINIMUM))


def minimum_workspace(routine: str, **params: Any) -> int:
    """
    Minimum lwork for `routine` given its dimensions and options.

    Raises:
        KeyError: If the routine takes no workspace
    """
    return max(1, _MINIMUM[routine](**params))


def is_query(lwork: Any) -> bool:
    """True when lwork carries the size-query sentinel."""
    return (
        isinstance(lwork, (int, np.integer))
        and not isinstance(lwork, bool)
        and int(lwork) == QUERY
    )


def answer_query(routine: str, work: Any, **params: Any) -> int:
    """
    Write the minimum workspace for `routine` into work[0] and return it.

    Raises:
        InvalidStorageError: If work is not float64 storage
        InsufficientStorageError: If work has no first slot
    """
    check_length(work, 1, 'work')
    minimum = minimum_workspace(routine, **params)
    work[0] = minimum
    return minimum
