"""
Adapter backend over the compiled Fortran LAPACK.

Each routine:
    1. copies its row-major matrix arguments into column-major scratch
       with the layout conversion engine (only the stored half of
       symmetric and triangular inputs is read),
    2. translates options to character codes and indices to 1-based,
    3. asks the library for its preferred workspace (lwork = -1),
       allocates it, and calls the routine,
    4. converts results back into the caller's storage, writing only the
       valid half of symmetric and triangular outputs, and translates
       returned indices to 0-based.

The caller's work/lwork have already been checked against this layer's
own minimums; the library's workspace is private to the adapter.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any

import numpy as np
from numpy.typing import NDArray

from pylapack.backends import _clapack
from pylapack.backends.fortran import (
    FORTRAN_INT,
    block_from_fortran,
    block_to_fortran,
    option_code,
    pivots_from_fortran,
    pivots_to_fortran,
    scale_from_fortran,
    scale_to_fortran,
)
from pylapack.core.exceptions import BackendError, BackendUnavailableError
from pylapack.core.layout import convert
from pylapack.core.matrix import (
    General,
    Symmetric,
    SymmetricPacked,
    Triangular,
    TriangularPacked,
    strided_offset,
)
from pylapack.core.options import (
    Diag,
    EVComp,
    EVJob,
    Layout,
    SchurComp,
    SchurJob,
    Side,
    SVDJob,
    Uplo,
)

logger = logging.getLogger(__name__)

_QUERY = -1
_COL = Layout.ColMajor


def _marshal(arg: Any) -> NDArray[Any]:
    if isinstance(arg, np.ndarray):
        return arg
    if isinstance(arg, Enum):
        return _clapack.character(option_code(arg))
    if isinstance(arg, (int, np.integer)) and not isinstance(arg, bool):
        return _clapack.integer(int(arg))
    raise BackendError(
        f"cannot pass {type(arg).__name__} to the compiled library",
        backend_name='external',
    )


def _plain(routine: str, *args: Any) -> int:
    """Call a routine whose last argument is INFO."""
    info = _clapack.integer(0)
    marshalled = [_marshal(arg) for arg in args]
    _clapack.call(routine, *marshalled, info)
    return _clapack.check_info(routine, info)


def _with_workspace(routine: str, *args: Any) -> int:
    """Call a routine ending in (WORK, LWORK, INFO) after a size query."""
    info = _clapack.integer(0)
    marshalled = [_marshal(arg) for arg in args]
    optimal = np.zeros(1)
    _clapack.call(routine, *marshalled, optimal, _clapack.integer(_QUERY), info)
    _clapack.check_info(routine, info)
    lwork = max(1, int(optimal[0]))
    work = np.zeros(lwork)
    _clapack.call(routine, *marshalled, work, _clapack.integer(lwork), info)
    return _clapack.check_info(routine, info)


def _vector_in(x: NDArray[np.float64], n: int, inc: int = 1) -> NDArray[np.float64]:
    """Contiguous copy of n strided elements; never empty."""
    if n <= 0:
        return np.zeros(1)
    return np.array(x[:(n - 1) * inc + 1:inc], dtype=np.float64)


def _scratch(rows: int, cols: int) -> General:
    """Zeroed column-major scratch matrix; a 1x1 placeholder when empty."""
    ld = max(1, rows)
    return General(rows, cols, ld, np.zeros(max(1, ld * cols)), _COL)


def _trapezoid(uplo: Uplo, m: int, n: int, unit: bool = False) -> tuple[NDArray[np.intp], NDArray[np.intp]]:
    i, j = np.indices((m, n))
    if uplo is Uplo.Upper:
        keep = i < j if unit else i <= j
    elif uplo is Uplo.Lower:
        keep = i > j if unit else i >= j
    else:
        keep = np.ones((m, n), dtype=bool)
    return np.nonzero(keep)


def _trapezoid_in(uplo: Uplo, m: int, n: int, a: NDArray[np.float64], lda: int,
                  unit: bool = False) -> General:
    f = _scratch(m, n)
    rows, cols = _trapezoid(uplo, m, n, unit)
    f.data[strided_offset(_COL, f.stride, rows, cols)] = a[rows * lda + cols]
    return f


def _trapezoid_out(uplo: Uplo, f: General, b: NDArray[np.float64], ldb: int) -> None:
    rows, cols = _trapezoid(uplo, f.rows, f.cols)
    b[rows * ldb + cols] = f.data[strided_offset(_COL, f.stride, rows, cols)]


class ExternalBackend:
    """
    Routine catalog serviced by the Fortran LAPACK bundled with SciPy.

    Raises:
        BackendUnavailableError: On construction, if the library cannot
            be reached
    """

    def __init__(self):
        if not _clapack.available():
            raise BackendUnavailableError(
                "compiled LAPACK is not reachable through scipy.linalg.cython_lapack",
                backend_name='external',
            )

    @property
    def name(self) -> str:
        return 'external'

    # === Cholesky ===

    def dpotrf(self, uplo, n, a, lda):
        src = Symmetric(n, lda, a, uplo)
        f = convert(src)
        if _plain('dpotrf', uplo, n, f.data, f.stride) > 0:
            return False
        convert(f.as_triangular(), out=src.as_triangular())
        return True

    def dpotrs(self, uplo, n, nrhs, a, lda, b, ldb):
        f = convert(Triangular(n, lda, a, uplo))
        dst = General(n, nrhs, ldb, b)
        fb = convert(dst)
        _plain('dpotrs', uplo, n, nrhs, f.data, f.stride, fb.data, fb.stride)
        convert(fb, out=dst)

    def dpotri(self, uplo, n, a, lda):
        src = Triangular(n, lda, a, uplo)
        f = convert(src)
        if _plain('dpotri', uplo, n, f.data, f.stride) > 0:
            return False
        convert(f.as_symmetric(), out=src.as_symmetric())
        return True

    def dpocon(self, uplo, n, a, lda, anorm, work, lwork, iwork):
        f = convert(Triangular(n, lda, a, uplo))
        rcond = _clapack.double(0.0)
        _plain('dpocon', uplo, n, f.data, f.stride, _clapack.double(anorm), rcond,
               np.zeros(3 * n), np.zeros(n, dtype=FORTRAN_INT))
        return float(rcond[0])

    def dpptrf(self, uplo, n, ap):
        f = convert(SymmetricPacked(n, ap, uplo))
        if _plain('dpptrf', uplo, n, f.data) > 0:
            return False
        convert(f.as_triangular(), out=TriangularPacked(n, ap, uplo, Diag.NonUnit))
        return True

    # === LU ===

    def dgetrf(self, m, n, a, lda, ipiv):
        src = General(m, n, lda, a)
        f = convert(src)
        k = min(m, n)
        fipiv = np.zeros(max(1, k), dtype=FORTRAN_INT)
        info = _plain('dgetrf', m, n, f.data, f.stride, fipiv)
        convert(f, out=src)
        pivots_from_fortran(fipiv, ipiv, k)
        return info == 0

    def dgetrs(self, trans, n, nrhs, a, lda, ipiv, b, ldb):
        f = convert(General(n, n, lda, a))
        dst = General(n, nrhs, ldb, b)
        fb = convert(dst)
        fipiv = pivots_to_fortran(ipiv, n)
        _plain('dgetrs', trans, n, nrhs, f.data, f.stride, fipiv, fb.data, fb.stride)
        convert(fb, out=dst)

    def dgetri(self, n, a, lda, ipiv, work, lwork):
        src = General(n, n, lda, a)
        f = convert(src)
        fipiv = pivots_to_fortran(ipiv, n)
        if _with_workspace('dgetri', n, f.data, f.stride, fipiv) > 0:
            return False
        convert(f, out=src)
        return True

    def dgecon(self, norm, n, a, lda, anorm, work, lwork, iwork):
        f = convert(General(n, n, lda, a))
        rcond = _clapack.double(0.0)
        _plain('dgecon', norm, n, f.data, f.stride, _clapack.double(anorm), rcond,
               np.zeros(4 * n), np.zeros(n, dtype=FORTRAN_INT))
        return float(rcond[0])

    # === Least squares and orthogonal factorizations ===

    def dgels(self, trans, m, n, nrhs, a, lda, b, ldb, work, lwork):
        src = General(m, n, lda, a)
        dst = General(max(m, n), nrhs, ldb, b)
        f = convert(src)
        fb = convert(dst)
        info = _with_workspace('dgels', trans, m, n, nrhs, f.data, f.stride, fb.data, fb.stride)
        convert(f, out=src)
        convert(fb, out=dst)
        return info == 0

    def _factor(self, routine, m, n, a, lda, tau):
        src = General(m, n, lda, a)
        f = convert(src)
        k = min(m, n)
        ftau = np.zeros(max(1, k))
        _with_workspace(routine, m, n, f.data, f.stride, ftau)
        convert(f, out=src)
        tau[:k] = ftau[:k]

    def dgeqrf(self, m, n, a, lda, tau, work, lwork):
        self._factor('dgeqrf', m, n, a, lda, tau)

    def dgelqf(self, m, n, a, lda, tau, work, lwork):
        self._factor('dgelqf', m, n, a, lda, tau)

    def _generate(self, routine, m, n, k, a, lda, tau):
        src = General(m, n, lda, a)
        f = convert(src)
        _with_workspace(routine, m, n, k, f.data, f.stride, _vector_in(tau, k))
        convert(f, out=src)

    def dorgqr(self, m, n, k, a, lda, tau, work, lwork):
        self._generate('dorgqr', m, n, k, a, lda, tau)

    def dorglq(self, m, n, k, a, lda, tau, work, lwork):
        self._generate('dorglq', m, n, k, a, lda, tau)

    def _multiply(self, routine, side, trans, m, n, k, reflectors, tau, c, ldc):
        fa = convert(reflectors)
        dst = General(m, n, ldc, c)
        fc = convert(dst)
        _with_workspace(routine, side, trans, m, n, k, fa.data, fa.stride,
                        _vector_in(tau, k), fc.data, fc.stride)
        convert(fc, out=dst)

    def dormqr(self, side, trans, m, n, k, a, lda, tau, c, ldc, work, lwork):
        rows = m if side is Side.Left else n
        self._multiply('dormqr', side, trans, m, n, k, General(rows, k, lda, a), tau, c, ldc)

    def dormlq(self, side, trans, m, n, k, a, lda, tau, c, ldc, work, lwork):
        cols = m if side is Side.Left else n
        self._multiply('dormlq', side, trans, m, n, k, General(k, cols, lda, a), tau, c, ldc)

    # === Reflectors and copies ===

    def dlarfg(self, n, alpha, x, incx):
        fx = _vector_in(x, n - 1, incx)
        falpha = _clapack.double(alpha)
        ftau = _clapack.double(0.0)
        _clapack.call('dlarfg', _clapack.integer(n), falpha, fx, _clapack.integer(1), ftau)
        x[:(n - 2) * incx + 1:incx] = fx[:n - 1]
        return float(falpha[0]), float(ftau[0])

    def dlarf(self, side, m, n, v, incv, tau, c, ldc, work, lwork):
        length = m if side is Side.Left else n
        fv = _vector_in(v, length, incv)
        dst = General(m, n, ldc, c)
        fc = convert(dst)
        fwork = np.zeros(max(1, n if side is Side.Left else m))
        _clapack.call('dlarf', _marshal(side), _marshal(m), _marshal(n), fv, _marshal(1),
                      _clapack.double(tau), fc.data, _marshal(fc.stride), fwork)
        convert(fc, out=dst)

    def dlacpy(self, uplo, m, n, a, lda, b, ldb):
        fa = _trapezoid_in(uplo, m, n, a, lda)
        fb = _scratch(m, n)
        _clapack.call('dlacpy', _marshal(uplo), _marshal(m), _marshal(n),
                      fa.data, _marshal(fa.stride), fb.data, _marshal(fb.stride))
        _trapezoid_out(uplo, fb, b, ldb)

    # === Norms ===

    def dlange(self, norm, m, n, a, lda, work, lwork):
        f = convert(General(m, n, lda, a))
        fwork = np.zeros(max(1, m))
        return float(_clapack.call('dlange', _marshal(norm), _marshal(m), _marshal(n),
                                   f.data, _marshal(f.stride), fwork))

    def dlansy(self, norm, uplo, n, a, lda, work, lwork):
        f = convert(Symmetric(n, lda, a, uplo))
        fwork = np.zeros(max(1, n))
        return float(_clapack.call('dlansy', _marshal(norm), _marshal(uplo), _marshal(n),
                                   f.data, _marshal(f.stride), fwork))

    def dlantr(self, norm, uplo, diag, m, n, a, lda, work, lwork):
        f = _trapezoid_in(uplo, m, n, a, lda, unit=diag is Diag.Unit)
        fwork = np.zeros(max(1, m))
        return float(_clapack.call('dlantr', _marshal(norm), _marshal(uplo), _marshal(diag),
                                   _marshal(m), _marshal(n), f.data, _marshal(f.stride), fwork))

    # === Triangular ===

    def dtrtri(self, uplo, diag, n, a, lda):
        src = Triangular(n, lda, a, uplo, diag)
        f = convert(src)
        if _plain('dtrtri', uplo, diag, n, f.data, f.stride) > 0:
            return False
        convert(f, out=src)
        return True

    def dtrtrs(self, uplo, trans, diag, n, nrhs, a, lda, b, ldb):
        f = convert(Triangular(n, lda, a, uplo, diag))
        dst = General(n, nrhs, ldb, b)
        fb = convert(dst)
        if _plain('dtrtrs', uplo, trans, diag, n, nrhs, f.data, f.stride, fb.data, fb.stride) > 0:
            return False
        convert(fb, out=dst)
        return True

    def dtrcon(self, norm, uplo, diag, n, a, lda, work, lwork, iwork):
        f = convert(Triangular(n, lda, a, uplo, diag))
        rcond = _clapack.double(0.0)
        _plain('dtrcon', norm, uplo, diag, n, f.data, f.stride, rcond,
               np.zeros(3 * n), np.zeros(n, dtype=FORTRAN_INT))
        return float(rcond[0])

    # === Symmetric eigenproblems ===

    def dsyev(self, jobz, uplo, n, a, lda, w, work, lwork):
        src = Symmetric(n, lda, a, uplo)
        f = convert(src)
        fw = np.zeros(n)
        if _with_workspace('dsyev', jobz, uplo, n, f.data, f.stride, fw) > 0:
            return False
        w[:n] = fw
        if jobz is EVJob.Vectors:
            convert(f.as_general(), out=src.as_general())
        return True

    def dsterf(self, n, d, e):
        fd = _vector_in(d, n)
        if _plain('dsterf', n, fd, _vector_in(e, n - 1)) > 0:
            return False
        d[:n] = fd
        return True

    def dsteqr(self, compz, n, d, e, z, ldz, work, lwork):
        fd = _vector_in(d, n)
        wantz = compz is not EVComp.NoVectors
        dst = General(n, n, ldz, z) if wantz else None
        fz = convert(dst) if wantz else _scratch(1, 1)
        fwork = np.zeros(max(1, 2 * n - 2))
        if _plain('dsteqr', compz, n, fd, _vector_in(e, n - 1), fz.data, fz.stride, fwork) > 0:
            return False
        d[:n] = fd
        if wantz:
            convert(fz, out=dst)
        return True

    # === Singular value decomposition ===

    def dgesvd(self, jobu, jobvt, m, n, a, lda, s, u, ldu, vt, ldvt, work, lwork):
        """U and V^T are computed into column-major scratch and converted into u, vt or a."""
        src = General(m, n, lda, a)
        f = convert(src)
        mn = min(m, n)
        fs = np.zeros(max(1, mn))
        u_shape = {SVDJob.All: (m, m), SVDJob.Slim: (m, mn)}.get(jobu, (1, 1))
        vt_shape = {SVDJob.All: (n, n), SVDJob.Slim: (mn, n)}.get(jobvt, (1, 1))
        fu = _scratch(*u_shape)
        fvt = _scratch(*vt_shape)
        info = _with_workspace('dgesvd', jobu, jobvt, m, n, f.data, f.stride, fs,
                               fu.data, fu.stride, fvt.data, fvt.stride)
        if info > 0:
            return False
        s[:mn] = fs[:mn]
        if jobu in (SVDJob.All, SVDJob.Slim):
            convert(fu, out=General(fu.rows, fu.cols, ldu, u))
        if jobvt in (SVDJob.All, SVDJob.Slim):
            convert(fvt, out=General(fvt.rows, fvt.cols, ldvt, vt))
        if jobu is SVDJob.Overwrite:
            convert(General(m, mn, f.stride, f.data, _COL), out=General(m, mn, lda, a))
        elif jobvt is SVDJob.Overwrite:
            convert(General(mn, n, f.stride, f.data, _COL), out=General(mn, n, lda, a))
        return True

    # === Nonsymmetric eigenproblems ===

    def dgebal(self, job, n, a, lda, scale):
        """
        Balance a in place.

        Returns:
            (ilo, ihi) translated to inclusive 0-based bounds; the
            permutation entries of scale are translated the same way
        """
        src = General(n, n, lda, a)
        f = convert(src)
        filo = _clapack.integer(0)
        fihi = _clapack.integer(0)
        fscale = np.zeros(n)
        _plain('dgebal', job, n, f.data, f.stride, filo, fihi, fscale)
        convert(f, out=src)
        ilo, ihi = block_from_fortran(filo[0], fihi[0])
        scale_from_fortran(fscale, scale, n, ilo, ihi)
        return ilo, ihi

    def dgebak(self, job, side, n, ilo, ihi, scale, m, v, ldv):
        dst = General(n, m, ldv, v)
        f = convert(dst)
        filo, fihi = block_to_fortran(ilo, ihi)
        _plain('dgebak', job, side, n, filo, fihi, scale_to_fortran(scale, n, ilo, ihi),
               m, f.data, f.stride)
        convert(f, out=dst)

    def dgehrd(self, n, ilo, ihi, a, lda, tau, work, lwork):
        src = General(n, n, lda, a)
        f = convert(src)
        ftau = np.zeros(max(1, n - 1))
        filo, fihi = block_to_fortran(ilo, ihi)
        _with_workspace('dgehrd', n, filo, fihi, f.data, f.stride, ftau)
        convert(f, out=src)
        tau[:n - 1] = ftau[:n - 1]

    def dhseqr(self, job, compz, n, ilo, ihi, h, ldh, wr, wi, z, ldz, work, lwork):
        """
        Eigenvalues of an upper Hessenberg matrix.

        ilo and ihi are passed 1-based. The library reports INFO > 0 as the
        1-based position of the last unconverged eigenvalue, which is the
        0-based start of the converged tail, so it is returned unchanged.
        """
        src = General(n, n, ldh, h)
        fh = convert(src)
        wantz = compz is not SchurComp.NoVectors
        dst = General(n, n, ldz, z) if wantz else None
        fz = convert(dst) if wantz else _scratch(1, 1)
        fwr = np.zeros(n)
        fwi = np.zeros(n)
        filo, fihi = block_to_fortran(ilo, ihi)
        unconverged = _with_workspace('dhseqr', job, compz, n, filo, fihi, fh.data, fh.stride,
                                      fwr, fwi, fz.data, fz.stride)
        wr[:n] = fwr
        wi[:n] = fwi
        if job is SchurJob.EigenvaluesAndSchur:
            convert(fh, out=src)
        if wantz:
            convert(fz, out=dst)
        if unconverged:
            logger.debug("dhseqr: eigenvalues before index %d did not converge", unconverged)
        return unconverged

    def dgeev(self, jobvl, jobvr, n, a, lda, wr, wi, vl, ldvl, vr, ldvr, work, lwork):
        """
        Eigenvalues and optional eigenvectors of a general matrix.

        Returns:
            first: 0 on success, otherwise the start of the converged
            eigenvalues; eigenvectors are copied out only on success
        """
        f = convert(General(n, n, lda, a))
        fwr = np.zeros(n)
        fwi = np.zeros(n)
        fvl = _scratch(n, n) if jobvl is EVJob.Vectors else _scratch(1, 1)
        fvr = _scratch(n, n) if jobvr is EVJob.Vectors else _scratch(1, 1)
        first = _with_workspace('dgeev', jobvl, jobvr, n, f.data, f.stride, fwr, fwi,
                                fvl.data, fvl.stride, fvr.data, fvr.stride)
        wr[:n] = fwr
        wi[:n] = fwi
        if first == 0:
            if jobvl is EVJob.Vectors:
                convert(fvl, out=General(n, n, ldvl, vl))
            if jobvr is EVJob.Vectors:
                convert(fvr, out=General(n, n, ldvr, vr))
        return first
