"""
Descriptor-based convenience layer.

Each function takes Matrix Descriptors instead of (n, data, stride)
triples, unpacks them into a Dispatcher call, and returns the result
descriptors over the same storage, as recorded in pylapack.aliasing.
Descriptors must be row-major; convert column-major views first with
pylapack.core.as_layout.

Workspace arguments are optional. When `work` is None the minimum
workspace for the call is allocated.

Example:
    >>> a = Symmetric(3, 3, data, Uplo.Upper)
    >>> factor, ok = potrf(a)
    >>> factor.data is a.data
    True
"""

from typing import Any

import numpy as np
from numpy.typing import NDArray

from pylapack.aliasing import output_aliases
from pylapack.core.exceptions import InvalidDimensionError, InvalidOptionError
from pylapack.core.matrix import General, Symmetric, SymmetricPacked, Triangular, TriangularPacked
from pylapack.core.options import (
    EVJob,
    Layout,
    MatrixNorm,
    Side,
    SVDJob,
    Transpose,
    Uplo,
)
from pylapack.core.validation import check_descriptor
from pylapack.dispatch import Dispatcher
from pylapack.workspace import minimum_workspace


def _dispatcher(dispatcher: Dispatcher | None) -> Dispatcher:
    return Dispatcher('native') if dispatcher is None else dispatcher


def _row_major(m: Any, name: str) -> None:
    check_descriptor(m, name)
    if m.layout is not Layout.RowMajor:
        raise InvalidOptionError(
            f"{name}: routines operate on row-major storage, got {m.layout.name}",
            param=f"{name}.layout", actual=m.layout, expected=Layout.RowMajor,
        )


def _square(m: General, name: str) -> int:
    _row_major(m, name)
    if m.rows != m.cols:
        raise InvalidDimensionError(
            f"{name}: expected a square matrix, got {m.rows}x{m.cols}",
            param=f"{name}.rows", actual=m.rows, expected=m.cols,
        )
    return m.cols


def _work(work: NDArray[np.float64] | None, routine: str, **params: Any) -> tuple[NDArray[np.float64], int]:
    if work is None:
        work = np.zeros(minimum_workspace(routine, **params))
    return work, len(work)


def _optional(m: General | None, name: str) -> General:
    if m is None:
        return General(1, 1, 1, np.zeros(1))
    _row_major(m, name)
    return m


def _result(routine: str, source: Any, index: int = 0) -> Any:
    return output_aliases(routine)[index].reinterpret(source)


# === Cholesky ===

def potrf(a: Symmetric, dispatcher: Dispatcher | None = None) -> tuple[Triangular, bool]:
    """
    Cholesky factorization of a.

    Returns:
        (t, ok): t is the triangular factor in a's storage and half.
        If ok is False the matrix is not positive definite and a's
        storage is unchanged.
    """
    _row_major(a, 'a')
    ok = _dispatcher(dispatcher).dpotrf(a.uplo, a.n, a.data, a.stride)
    return _result('dpotrf', a), ok


def potrs(t: Triangular, b: General, dispatcher: Dispatcher | None = None) -> None:
    """Solve A X = B, overwriting b, where A = U^T U or L L^T is given by t."""
    _row_major(t, 't')
    _row_major(b, 'b')
    _dispatcher(dispatcher).dpotrs(t.uplo, t.n, b.cols, t.data, t.stride, b.data, b.stride)


def potri(t: Triangular, dispatcher: Dispatcher | None = None) -> tuple[Symmetric, bool]:
    """Inverse of A from its Cholesky factor, in the factor's storage."""
    _row_major(t, 't')
    ok = _dispatcher(dispatcher).dpotri(t.uplo, t.n, t.data, t.stride)
    return _result('dpotri', t), ok


def pocon(t: Triangular, anorm: float, dispatcher: Dispatcher | None = None) -> float:
    _row_major(t, 't')
    work, lwork = _work(None, 'dpocon', n=t.n)
    iwork = np.zeros(t.n, dtype=np.intp)
    return _dispatcher(dispatcher).dpocon(t.uplo, t.n, t.data, t.stride, anorm, work, lwork, iwork)


def pptrf(a: SymmetricPacked, dispatcher: Dispatcher | None = None) -> tuple[TriangularPacked, bool]:
    """Cholesky factorization in packed storage."""
    _row_major(a, 'a')
    ok = _dispatcher(dispatcher).dpptrf(a.uplo, a.n, a.data)
    return _result('dpptrf', a), ok


# === LU ===

def getrf(a: General, ipiv: NDArray[np.integer], dispatcher: Dispatcher | None = None) -> bool:
    """LU factorization of a in place; the L and U views are a.as_triangular(...)."""
    _row_major(a, 'a')
    return _dispatcher(dispatcher).dgetrf(a.rows, a.cols, a.data, a.stride, ipiv)


def getrs(trans: Transpose, a: General, b: General, ipiv: NDArray[np.integer],
          dispatcher: Dispatcher | None = None) -> None:
    n = _square(a, 'a')
    _row_major(b, 'b')
    _dispatcher(dispatcher).dgetrs(trans, n, b.cols, a.data, a.stride, ipiv, b.data, b.stride)


def getri(a: General, ipiv: NDArray[np.integer], work: NDArray[np.float64] | None = None,
          dispatcher: Dispatcher | None = None) -> bool:
    n = _square(a, 'a')
    work, lwork = _work(work, 'dgetri', n=n)
    return _dispatcher(dispatcher).dgetri(n, a.data, a.stride, ipiv, work, lwork)


def gecon(norm: MatrixNorm, a: General, anorm: float, dispatcher: Dispatcher | None = None) -> float:
    n = _square(a, 'a')
    work, lwork = _work(None, 'dgecon', n=n)
    iwork = np.zeros(n, dtype=np.intp)
    return _dispatcher(dispatcher).dgecon(norm, n, a.data, a.stride, anorm, work, lwork, iwork)


# === Least squares and orthogonal factorizations ===

def gels(trans: Transpose, a: General, b: General, work: NDArray[np.float64] | None = None,
         dispatcher: Dispatcher | None = None) -> bool:
    """
    Least squares or minimum norm solution of op(A) X = B.

    b must have max(a.rows, a.cols) rows; the solution overwrites its
    leading rows.
    """
    _row_major(a, 'a')
    _row_major(b, 'b')
    work, lwork = _work(work, 'dgels', m=a.rows, n=a.cols, nrhs=b.cols)
    return _dispatcher(dispatcher).dgels(
        trans, a.rows, a.cols, b.cols, a.data, a.stride, b.data, b.stride, work, lwork,
    )


def geqrf(a: General, tau: NDArray[np.float64], work: NDArray[np.float64] | None = None,
          dispatcher: Dispatcher | None = None) -> Triangular:
    """QR factorization in place. Returns the R view (square a only)."""
    _row_major(a, 'a')
    work, lwork = _work(work, 'dgeqrf', n=a.cols)
    _dispatcher(dispatcher).dgeqrf(a.rows, a.cols, a.data, a.stride, tau, work, lwork)
    return _result('dgeqrf', General(min(a.rows, a.cols), min(a.rows, a.cols), a.stride, a.data))


def gelqf(a: General, tau: NDArray[np.float64], work: NDArray[np.float64] | None = None,
          dispatcher: Dispatcher | None = None) -> Triangular:
    """LQ factorization in place. Returns the leading L view."""
    _row_major(a, 'a')
    work, lwork = _work(work, 'dgelqf', m=a.rows)
    _dispatcher(dispatcher).dgelqf(a.rows, a.cols, a.data, a.stride, tau, work, lwork)
    return _result('dgelqf', General(min(a.rows, a.cols), min(a.rows, a.cols), a.stride, a.data))


def orgqr(a: General, tau: NDArray[np.float64], work: NDArray[np.float64] | None = None,
          dispatcher: Dispatcher | None = None) -> General:
    """Overwrite the reflectors in a with the explicit Q."""
    _row_major(a, 'a')
    work, lwork = _work(work, 'dorgqr', n=a.cols)
    _dispatcher(dispatcher).dorgqr(a.rows, a.cols, len(tau), a.data, a.stride, tau, work, lwork)
    return _result('dorgqr', a)


def ormqr(side: Side, trans: Transpose, a: General, tau: NDArray[np.float64], c: General,
          work: NDArray[np.float64] | None = None, dispatcher: Dispatcher | None = None) -> None:
    """Overwrite c with op(Q) C or C op(Q), Q given by the reflectors in a."""
    _row_major(a, 'a')
    _row_major(c, 'c')
    work, lwork = _work(work, 'dormqr', side=side, m=c.rows, n=c.cols)
    _dispatcher(dispatcher).dormqr(
        side, trans, c.rows, c.cols, a.cols, a.data, a.stride, tau, c.data, c.stride, work, lwork,
    )


# === Norms and copies ===

def lange(norm: MatrixNorm, a: General, dispatcher: Dispatcher | None = None) -> float:
    _row_major(a, 'a')
    work, lwork = _work(None, 'dlange', norm=norm, n=a.cols)
    return _dispatcher(dispatcher).dlange(norm, a.rows, a.cols, a.data, a.stride, work, lwork)


def lansy(norm: MatrixNorm, a: Symmetric, dispatcher: Dispatcher | None = None) -> float:
    _row_major(a, 'a')
    work, lwork = _work(None, 'dlansy', norm=norm, n=a.n)
    return _dispatcher(dispatcher).dlansy(norm, a.uplo, a.n, a.data, a.stride, work, lwork)


def lantr(norm: MatrixNorm, a: Triangular, dispatcher: Dispatcher | None = None) -> float:
    _row_major(a, 'a')
    work, lwork = _work(None, 'dlantr', norm=norm, n=a.n)
    return _dispatcher(dispatcher).dlantr(norm, a.uplo, a.diag, a.n, a.n, a.data, a.stride,
                                          work, lwork)


def lacpy(dst: Any, src: Any, dispatcher: Dispatcher | None = None) -> None:
    """
    Copy src into dst through the backend.

    General operands copy everything; Symmetric and Triangular operands
    copy only their stored half.
    """
    _row_major(src, 'src')
    _row_major(dst, 'dst')
    if isinstance(src, General):
        uplo, rows, cols = Uplo.All, src.rows, src.cols
    else:
        uplo, rows, cols = src.uplo, src.n, src.n
    _dispatcher(dispatcher).dlacpy(uplo, rows, cols, src.data, src.stride, dst.data, dst.stride)


# === Triangular ===

def trtri(a: Triangular, dispatcher: Dispatcher | None = None) -> tuple[Triangular, bool]:
    _row_major(a, 'a')
    ok = _dispatcher(dispatcher).dtrtri(a.uplo, a.diag, a.n, a.data, a.stride)
    return _result('dtrtri', a), ok


def trtrs(trans: Transpose, a: Triangular, b: General, dispatcher: Dispatcher | None = None) -> bool:
    _row_major(a, 'a')
    _row_major(b, 'b')
    return _dispatcher(dispatcher).dtrtrs(a.uplo, trans, a.diag, a.n, b.cols, a.data, a.stride,
                                          b.data, b.stride)


def trcon(norm: MatrixNorm, a: Triangular, dispatcher: Dispatcher | None = None) -> float:
    _row_major(a, 'a')
    work, lwork = _work(None, 'dtrcon', n=a.n)
    iwork = np.zeros(a.n, dtype=np.intp)
    return _dispatcher(dispatcher).dtrcon(norm, a.uplo, a.diag, a.n, a.data, a.stride,
                                          work, lwork, iwork)


# === Eigenproblems and SVD ===

def syev(jobz: EVJob, a: Symmetric, w: NDArray[np.float64], work: NDArray[np.float64] | None = None,
         dispatcher: Dispatcher | None = None) -> tuple[General, bool]:
    """
    Eigenvalues into w and, with EVJob.Vectors, eigenvectors into a's storage.

    Returns:
        (vectors, ok): vectors is the General view of a's storage
    """
    _row_major(a, 'a')
    work, lwork = _work(work, 'dsyev', n=a.n)
    ok = _dispatcher(dispatcher).dsyev(jobz, a.uplo, a.n, a.data, a.stride, w, work, lwork)
    return _result('dsyev', a), ok


def gesvd(jobu: SVDJob, jobvt: SVDJob, a: General, s: NDArray[np.float64],
          u: General | None = None, vt: General | None = None, work: NDArray[np.float64] | None = None,
          dispatcher: Dispatcher | None = None) -> bool:
    """SVD of a into s, u and vt; u and vt may be None unless their job requests them."""
    _row_major(a, 'a')
    u = _optional(u, 'u')
    vt = _optional(vt, 'vt')
    work, lwork = _work(work, 'dgesvd', m=a.rows, n=a.cols)
    return _dispatcher(dispatcher).dgesvd(
        jobu, jobvt, a.rows, a.cols, a.data, a.stride, s,
        u.data, u.stride, vt.data, vt.stride, work, lwork,
    )


def geev(jobvl: EVJob, jobvr: EVJob, a: General, wr: NDArray[np.float64], wi: NDArray[np.float64],
         vl: General | None = None, vr: General | None = None, work: NDArray[np.float64] | None = None,
         dispatcher: Dispatcher | None = None) -> int:
    """
    Eigen decomposition of a general square matrix.

    Returns:
        first: eigenvalues [first, n) are valid; 0 on full success
    """
    n = _square(a, 'a')
    vl = _optional(vl, 'vl')
    vr = _optional(vr, 'vr')
    work, lwork = _work(work, 'dgeev', jobvl=jobvl, jobvr=jobvr, n=n)
    return _dispatcher(dispatcher).dgeev(
        jobvl, jobvr, n, a.data, a.stride, wr, wi,
        vl.data, vl.stride, vr.data, vr.stride, work, lwork,
    )
