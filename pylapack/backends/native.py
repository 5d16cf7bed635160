"""
Self-contained backend built on NumPy and SciPy.

Works directly on the caller's row-major storage through 2-D strided
views. Symmetric and triangular inputs are read through their stored half
only, and results are written back into that half only, so the other half
of the caller's storage is never touched.

Factorizations that fail (not positive definite, exactly singular) leave
their matrix argument unchanged and report False, except dgetrf which,
like LAPACK, completes the factorization and reports the zero pivot.
"""

from __future__ import annotations

import numpy as np
from numpy.lib.stride_tricks import as_strided
from numpy.typing import NDArray
from scipy import linalg

from pylapack.backends import _balance, _householder
from pylapack.core.layout import pack, unpack
from pylapack.core.matrix import SymmetricPacked, TriangularPacked
from pylapack.core.options import (
    Diag,
    EVComp,
    EVJob,
    Layout,
    MatrixNorm,
    SchurComp,
    SchurJob,
    Side,
    SVDJob,
    Transpose,
    Uplo,
)


def _mat(data: NDArray[np.float64], rows: int, cols: int, ld: int) -> NDArray[np.float64]:
    """Writable rows x cols view of row-major storage with leading dimension ld."""
    step = data.strides[0]
    return as_strided(data, shape=(rows, cols), strides=(ld * step, step), writeable=True)


def _vec(data: NDArray[np.float64], n: int, inc: int) -> NDArray[np.float64]:
    return data[:(n - 1) * inc + 1:inc] if n > 0 else data[:0]


def _cells(uplo: Uplo, m: int, n: int, unit: bool = False) -> tuple[NDArray[np.intp], NDArray[np.intp]]:
    """Indices of the uplo trapezoid of an m x n matrix; unit drops the diagonal."""
    i, j = np.indices((m, n))
    if uplo is Uplo.Upper:
        keep = i < j if unit else i <= j
    elif uplo is Uplo.Lower:
        keep = i > j if unit else i >= j
    else:
        keep = i != j if unit else np.ones((m, n), dtype=bool)
    return np.nonzero(keep)


def _triangle(a: NDArray[np.float64], uplo: Uplo, diag: Diag = Diag.NonUnit) -> NDArray[np.float64]:
    """Dense copy of a triangular view; a unit diagonal is never read."""
    m, n = a.shape
    unit = diag is Diag.Unit
    rows, cols = _cells(uplo, m, n, unit)
    t = np.zeros((m, n))
    t[rows, cols] = a[rows, cols]
    if unit:
        np.fill_diagonal(t, 1.0)
    return t


def _symmetric(a: NDArray[np.float64], uplo: Uplo) -> NDArray[np.float64]:
    """Dense symmetric matrix from the uplo half of a."""
    n = a.shape[0]
    rows, cols = _cells(uplo, n, n)
    s = np.empty((n, n))
    s[rows, cols] = a[rows, cols]
    s[cols, rows] = a[rows, cols]
    return s


def _store(a: NDArray[np.float64], values: NDArray[np.float64], uplo: Uplo, diag: Diag = Diag.NonUnit) -> None:
    m, n = a.shape
    rows, cols = _cells(uplo, m, n, diag is Diag.Unit)
    a[rows, cols] = values[rows, cols]


def _trans_code(trans: Transpose) -> str:
    return 'N' if trans is Transpose.NoTrans else 'T'


def _norm(norm: MatrixNorm, a: NDArray[np.float64]) -> float:
    if a.size == 0:
        return 0.0
    absa = np.abs(a)
    if norm is MatrixNorm.MaxAbs:
        return float(np.max(absa))
    if norm is MatrixNorm.MaxColumnSum:
        return float(np.max(absa.sum(axis=0)))
    if norm is MatrixNorm.MaxRowSum:
        return float(np.max(absa.sum(axis=1)))
    return float(np.linalg.norm(a))


def _rcond(anorm: float, inverse: NDArray[np.float64] | None, norm: MatrixNorm) -> float:
    if anorm == 0 or inverse is None:
        return 0.0
    ainvnm = _norm(norm, inverse)
    if ainvnm == 0:
        return 0.0
    return float((1 / ainvnm) / anorm)


def _singular(t: NDArray[np.float64], diag: Diag = Diag.NonUnit) -> bool:
    return diag is Diag.NonUnit and bool(np.any(np.diagonal(t) == 0))


def _pivot(b: NDArray[np.float64], ipiv: NDArray[np.integer], n: int, reverse: bool = False) -> None:
    order = range(n - 1, -1, -1) if reverse else range(n)
    for i in order:
        p = int(ipiv[i])
        if p != i:
            b[[i, p], :] = b[[p, i], :]


def _lu_solve(lu: NDArray[np.float64], ipiv: NDArray[np.integer], b: NDArray[np.float64],
              trans: Transpose = Transpose.NoTrans) -> NDArray[np.float64]:
    """Solve with the P*L*U factors from dgetrf; b is overwritten."""
    n = lu.shape[0]
    if trans is Transpose.NoTrans:
        _pivot(b, ipiv, n)
        y = linalg.solve_triangular(lu, b, lower=True, unit_diagonal=True, check_finite=False)
        b[...] = linalg.solve_triangular(lu, y, lower=False, check_finite=False)
    else:
        y = linalg.solve_triangular(lu, b, trans='T', lower=False, check_finite=False)
        b[...] = linalg.solve_triangular(lu, y, trans='T', lower=True, unit_diagonal=True,
                                         check_finite=False)
        _pivot(b, ipiv, n, reverse=True)
    return b


def _triangular_inverse(t: NDArray[np.float64], uplo: Uplo, diag: Diag = Diag.NonUnit) -> NDArray[np.float64]:
    n = t.shape[0]
    return linalg.solve_triangular(t, np.eye(n), lower=uplo is Uplo.Lower,
                                   unit_diagonal=diag is Diag.Unit, check_finite=False)


def _cholesky_inverse(a: NDArray[np.float64], uplo: Uplo) -> NDArray[np.float64] | None:
    t = _triangle(a, uplo)
    if _singular(t):
        return None
    tinv = _triangular_inverse(t, uplo)
    if uplo is Uplo.Upper:
        return tinv @ tinv.T
    return tinv.T @ tinv


class NativeBackend:
    """
    Reference implementation of the routine catalog.

    Small unblocked kernels (Householder QR/LQ, LU, balancing, Hessenberg
    reduction) are implemented here so that their outputs follow the LAPACK
    storage conventions exactly; spectral work is delegated to SciPy.
    """

    @property
    def name(self) -> str:
        return 'native'

    # === Cholesky ===

    def dpotrf(self, uplo, n, a, lda):
        A = _mat(a, n, n, lda)
        try:
            lower = np.linalg.cholesky(_symmetric(A, uplo))
        except np.linalg.LinAlgError:
            return False
        _store(A, lower if uplo is Uplo.Lower else lower.T, uplo)
        return True

    def dpotrs(self, uplo, n, nrhs, a, lda, b, ldb):
        t = _triangle(_mat(a, n, n, lda), uplo)
        B = _mat(b, n, nrhs, ldb)
        lower = uplo is Uplo.Lower
        # A = U^T U or L L^T.
        y = linalg.solve_triangular(t, B, trans='N' if lower else 'T', lower=lower,
                                    check_finite=False)
        B[...] = linalg.solve_triangular(t, y, trans='T' if lower else 'N', lower=lower,
                                         check_finite=False)

    def dpotri(self, uplo, n, a, lda):
        A = _mat(a, n, n, lda)
        inverse = _cholesky_inverse(A, uplo)
        if inverse is None:
            return False
        _store(A, inverse, uplo)
        return True

    def dpocon(self, uplo, n, a, lda, anorm, work, lwork, iwork):
        inverse = _cholesky_inverse(_mat(a, n, n, lda), uplo)
        return _rcond(anorm, inverse, MatrixNorm.MaxColumnSum)

    def dpptrf(self, uplo, n, ap):
        full = unpack(SymmetricPacked(n, ap, uplo, Layout.RowMajor))
        if not self.dpotrf(uplo, n, full.data, full.stride):
            return False
        pack(full.as_triangular(), out=TriangularPacked(n, ap, uplo, Diag.NonUnit, Layout.RowMajor))
        return True

    # === LU ===

    def dgetrf(self, m, n, a, lda, ipiv):
        A = _mat(a, m, n, lda)
        ok = True
        for j in range(min(m, n)):
            p = j + int(np.argmax(np.abs(A[j:, j])))
            ipiv[j] = p
            if A[p, j] != 0:
                if p != j:
                    A[[j, p], :] = A[[p, j], :]
                A[j + 1:, j] /= A[j, j]
            else:
                ok = False
            A[j + 1:, j + 1:] -= np.outer(A[j + 1:, j], A[j, j + 1:])
        return ok

    def dgetrs(self, trans, n, nrhs, a, lda, ipiv, b, ldb):
        lu = np.array(_mat(a, n, n, lda))
        _lu_solve(lu, ipiv, _mat(b, n, nrhs, ldb), trans)

    def dgetri(self, n, a, lda, ipiv, work, lwork):
        A = _mat(a, n, n, lda)
        lu = np.array(A)
        if _singular(lu):
            return False
        A[...] = _lu_solve(lu, ipiv, np.eye(n))
        return True

    def dgecon(self, norm, n, a, lda, anorm, work, lwork, iwork):
        lu = np.array(_mat(a, n, n, lda))
        if anorm == 0 or _singular(lu):
            return 0.0
        # Row interchanges permute the columns of the inverse, leaving both
        # the one-norm and the infinity-norm unchanged.
        return _rcond(anorm, _lu_inverse(lu), norm)

    # === Least squares and orthogonal factorizations ===

    def dgels(self, trans, m, n, nrhs, a, lda, b, ldb, work, lwork):
        A = _mat(a, m, n, lda)
        B = _mat(b, max(m, n), nrhs, ldb)
        k = min(m, n)
        tau = np.zeros(k)
        notran = trans is Transpose.NoTrans
        if m >= n:
            _householder.geqr2(A, tau)
            r = _triangle(A[:n, :n], Uplo.Upper)
            if _singular(r):
                return False
            if notran:
                # Least squares: R x = (Q^T b)[:n].
                _householder.orm2r(Side.Left, Transpose.Trans, A, k, tau, B[:m])
                B[:n] = linalg.solve_triangular(r, B[:n], lower=False, check_finite=False)
            else:
                # Minimum norm: x = Q [R^-T b; 0].
                B[:n] = linalg.solve_triangular(r, B[:n], trans='T', lower=False,
                                                check_finite=False)
                B[n:m] = 0
                _householder.orm2r(Side.Left, Transpose.NoTrans, A, k, tau, B[:m])
        else:
            _householder.gelq2(A, tau)
            lower = _triangle(A[:m, :m], Uplo.Lower)
            if _singular(lower):
                return False
            if notran:
                # Minimum norm: x = Q^T [L^-1 b; 0].
                B[:m] = linalg.solve_triangular(lower, B[:m], lower=True, check_finite=False)
                B[m:n] = 0
                _householder.orml2(Side.Left, Transpose.Trans, A, k, tau, B[:n])
            else:
                # Least squares: L^T x = (Q b)[:m].
                _householder.orml2(Side.Left, Transpose.NoTrans, A, k, tau, B[:n])
                B[:m] = linalg.solve_triangular(lower, B[:m], trans='T', lower=True,
                                                check_finite=False)
        return True

    def dgeqrf(self, m, n, a, lda, tau, work, lwork):
        _householder.geqr2(_mat(a, m, n, lda), tau)

    def dgelqf(self, m, n, a, lda, tau, work, lwork):
        _householder.gelq2(_mat(a, m, n, lda), tau)

    def dorgqr(self, m, n, k, a, lda, tau, work, lwork):
        _householder.org2r(_mat(a, m, n, lda), k, tau)

    def dorglq(self, m, n, k, a, lda, tau, work, lwork):
        _householder.orgl2(_mat(a, m, n, lda), k, tau)

    def dormqr(self, side, trans, m, n, k, a, lda, tau, c, ldc, work, lwork):
        rows = m if side is Side.Left else n
        _householder.orm2r(side, trans, _mat(a, rows, k, lda), k, tau, _mat(c, m, n, ldc))

    def dormlq(self, side, trans, m, n, k, a, lda, tau, c, ldc, work, lwork):
        cols = m if side is Side.Left else n
        _householder.orml2(side, trans, _mat(a, k, cols, lda), k, tau, _mat(c, m, n, ldc))

    # === Reflectors and copies ===

    def dlarfg(self, n, alpha, x, incx):
        return _householder.larfg(n, float(alpha), _vec(x, n - 1, incx))

    def dlarf(self, side, m, n, v, incv, tau, c, ldc, work, lwork):
        length = m if side is Side.Left else n
        _householder.apply(side, np.array(_vec(v, length, incv)), tau, _mat(c, m, n, ldc))

    def dlacpy(self, uplo, m, n, a, lda, b, ldb):
        A = _mat(a, m, n, lda)
        B = _mat(b, m, n, ldb)
        if uplo is Uplo.All:
            B[...] = A
            return
        rows, cols = _cells(uplo, m, n)
        B[rows, cols] = A[rows, cols]

    # === Norms ===

    def dlange(self, norm, m, n, a, lda, work, lwork):
        return _norm(norm, _mat(a, m, n, lda))

    def dlansy(self, norm, uplo, n, a, lda, work, lwork):
        return _norm(norm, _symmetric(_mat(a, n, n, lda), uplo))

    def dlantr(self, norm, uplo, diag, m, n, a, lda, work, lwork):
        return _norm(norm, _triangle(_mat(a, m, n, lda), uplo, diag))

    # === Triangular ===

    def dtrtri(self, uplo, diag, n, a, lda):
        A = _mat(a, n, n, lda)
        t = _triangle(A, uplo, diag)
        if _singular(t, diag):
            return False
        _store(A, _triangular_inverse(t, uplo, diag), uplo, diag)
        return True

    def dtrtrs(self, uplo, trans, diag, n, nrhs, a, lda, b, ldb):
        t = _triangle(_mat(a, n, n, lda), uplo, diag)
        if _singular(t, diag):
            return False
        B = _mat(b, n, nrhs, ldb)
        B[...] = linalg.solve_triangular(t, B, trans=_trans_code(trans), lower=uplo is Uplo.Lower,
                                         unit_diagonal=diag is Diag.Unit, check_finite=False)
        return True

    def dtrcon(self, norm, uplo, diag, n, a, lda, work, lwork, iwork):
        t = _triangle(_mat(a, n, n, lda), uplo, diag)
        anorm = _norm(norm, t)
        if _singular(t, diag):
            return 0.0
        return _rcond(anorm, _triangular_inverse(t, uplo, diag), norm)

    # === Symmetric eigenproblems ===

    def dsyev(self, jobz, uplo, n, a, lda, w, work, lwork):
        A = _mat(a, n, n, lda)
        s = _symmetric(A, uplo)
        try:
            if jobz is EVJob.Vectors:
                values, vectors = np.linalg.eigh(s)
                A[...] = vectors
            else:
                values = np.linalg.eigvalsh(s)
        except np.linalg.LinAlgError:
            return False
        w[:n] = values
        return True

    def dsterf(self, n, d, e):
        if n == 1:
            return True
        try:
            d[:n] = linalg.eigh_tridiagonal(d[:n], e[:n - 1], eigvals_only=True)
        except linalg.LinAlgError:
            return False
        return True

    def dsteqr(self, compz, n, d, e, z, ldz, work, lwork):
        if compz is EVComp.NoVectors:
            return self.dsterf(n, d, e)
        Z = _mat(z, n, n, ldz)
        if n == 1:
            if compz is EVComp.Tridiagonal:
                Z[0, 0] = 1.0
            return True
        try:
            values, vectors = linalg.eigh_tridiagonal(d[:n], e[:n - 1])
        except linalg.LinAlgError:
            return False
        d[:n] = values
        Z[...] = vectors if compz is EVComp.Tridiagonal else Z @ vectors
        return True

    # === Singular value decomposition ===

    def dgesvd(self, jobu, jobvt, m, n, a, lda, s, u, ldu, vt, ldvt, work, lwork):
        """
        Singular value decomposition of a, with optional singular vectors.

        Args:
            jobu: SVDJob for U; Overwrite writes its min(m, n) columns into a
            jobvt: SVDJob for V^T; Overwrite writes its min(m, n) rows into a
            s: Receives the singular values in descending order

        Returns:
            False if the decomposition did not converge
        """
        A = _mat(a, m, n, lda)
        mn = min(m, n)
        want_u = jobu is not SVDJob.NoVectors
        want_vt = jobvt is not SVDJob.NoVectors
        try:
            if want_u or want_vt:
                full = SVDJob.All in (jobu, jobvt)
                left, values, right = np.linalg.svd(A, full_matrices=full)
            else:
                values = np.linalg.svd(A, compute_uv=False)
        except np.linalg.LinAlgError:
            return False
        s[:mn] = values
        if jobu is SVDJob.All:
            _mat(u, m, m, ldu)[...] = left[:, :m]
        elif jobu is SVDJob.Slim:
            _mat(u, m, mn, ldu)[...] = left[:, :mn]
        if jobvt is SVDJob.All:
            _mat(vt, n, n, ldvt)[...] = right[:n, :]
        elif jobvt is SVDJob.Slim:
            _mat(vt, mn, n, ldvt)[...] = right[:mn, :]
        if jobu is SVDJob.Overwrite:
            A[:, :mn] = left[:, :mn]
        elif jobvt is SVDJob.Overwrite:
            A[:mn, :] = right[:mn, :]
        return True

    # === Nonsymmetric eigenproblems ===

    def dgebal(self, job, n, a, lda, scale):
        """
        Balance a in place by row and column permutation and diagonal scaling.

        Returns:
            (ilo, ihi): Inclusive 0-based bounds of the block left to reduce.
            scale[j] holds the scaling factor for j in [ilo, ihi] and the
            0-based index row j was swapped with everywhere else.
        """
        return _balance.gebal(job, _mat(a, n, n, lda), scale)

    def dgebak(self, job, side, n, ilo, ihi, scale, m, v, ldv):
        _balance.gebak(job, side, ilo, ihi, scale, _mat(v, n, m, ldv))

    def dgehrd(self, n, ilo, ihi, a, lda, tau, work, lwork):
        A = _mat(a, n, n, lda)
        tau[:ilo] = 0
        tau[max(0, ihi):n - 1] = 0
        for i in range(ilo, ihi):
            beta, tau[i] = _householder.larfg(ihi - i, A[i + 1, i], A[i + 2:ihi + 1, i])
            A[i + 1, i] = beta
            v = np.concatenate(([1.0], A[i + 2:ihi + 1, i]))
            _householder.apply_right(v, tau[i], A[:ihi + 1, i + 1:ihi + 1])
            _householder.apply_left(v, tau[i], A[i + 1:ihi + 1, i + 1:])

    def dhseqr(self, job, compz, n, ilo, ihi, h, ldh, wr, wi, z, ldz, work, lwork):
        """
        Eigenvalues of an upper Hessenberg matrix, optionally with its Schur form.

        Rows and columns outside [ilo, ihi] are already triangular, as dgebal
        leaves them; their eigenvalues are read off the diagonal. Entries of h
        below the first subdiagonal are ignored.

        Returns:
            0 on success; otherwise the index from which wr and wi hold
            converged eigenvalues (those in [0, ilo) are also valid)
        """
        H = _mat(h, n, n, ldh)
        isolated = np.r_[0:ilo, ihi + 1:n]
        wr[isolated] = np.diagonal(H)[isolated]
        wi[isolated] = 0
        Z = _mat(z, n, n, ldz) if compz is not SchurComp.NoVectors else None
        if compz is SchurComp.Init:
            Z[...] = np.eye(n)
        block = np.triu(H[ilo:ihi + 1, ilo:ihi + 1], -1)
        try:
            t, q = linalg.schur(block, output='real', check_finite=False)
        except linalg.LinAlgError:
            return ihi + 1
        _schur_eigenvalues(t, wr[ilo:ihi + 1], wi[ilo:ihi + 1])
        if job is SchurJob.EigenvaluesAndSchur:
            H[ilo:ihi + 1, ilo:ihi + 1] = t
            H[ilo:ihi + 1, ihi + 1:] = q.T @ H[ilo:ihi + 1, ihi + 1:]
            H[:ilo, ilo:ihi + 1] = H[:ilo, ilo:ihi + 1] @ q
            if n > 2:
                rows, cols = np.tril_indices(n, -2)
                H[rows, cols] = 0
        if Z is not None:
            Z[:, ilo:ihi + 1] = Z[:, ilo:ihi + 1] @ q
        return 0

    def dgeev(self, jobvl, jobvr, n, a, lda, wr, wi, vl, ldvl, vr, ldvr, work, lwork):
        """
        Eigenvalues and optional left and right eigenvectors of a general matrix.

        Complex conjugate pairs occupy consecutive entries of wr and wi,
        positive imaginary part first. Their eigenvectors are stored as a
        (real part, imaginary part) pair of columns.

        Returns:
            first: 0 on success; otherwise eigenvalues [first, n) are valid
            and no eigenvectors are written
        """
        left = jobvl is EVJob.Vectors
        right = jobvr is EVJob.Vectors
        try:
            result = linalg.eig(np.array(_mat(a, n, n, lda)), left=left, right=right,
                                check_finite=False)
        except linalg.LinAlgError:
            return n
        if left or right:
            values, *vectors = result
        else:
            values, vectors = result, []
        wr[:n] = values.real
        wi[:n] = values.imag
        targets = []
        if left:
            targets.append(_mat(vl, n, n, ldvl))
        if right:
            targets.append(_mat(vr, n, n, ldvr))
        for complex_vectors, target in zip(vectors, targets):
            _pack_eigenvectors(values, complex_vectors, target)
        return 0


def _lu_inverse(lu: NDArray[np.float64]) -> NDArray[np.float64]:
    """Inverse of L*U (no row interchanges) from packed LU factors."""
    n = lu.shape[0]
    linv = linalg.solve_triangular(lu, np.eye(n), lower=True, unit_diagonal=True, check_finite=False)
    return linalg.solve_triangular(lu, linv, lower=False, check_finite=False)


def _schur_eigenvalues(t: NDArray[np.float64], wr: NDArray[np.float64], wi: NDArray[np.float64]) -> None:
    """Eigenvalues of a real quasi-triangular matrix, positive imaginary part first."""
    size = t.shape[0]
    i = 0
    while i < size:
        if i < size - 1 and t[i + 1, i] != 0:
            pair = np.linalg.eigvals(t[i:i + 2, i:i + 2])
            wr[i] = wr[i + 1] = float(np.mean(pair.real))
            wi[i] = abs(float(pair[0].imag))
            wi[i + 1] = -wi[i]
            i += 2
        else:
            wr[i] = t[i, i]
            wi[i] = 0.0
            i += 1


def _pack_eigenvectors(values: NDArray[np.complex128], vectors: NDArray[np.complex128],
                       target: NDArray[np.float64]) -> None:
    """Store complex eigenvectors as real (re, im) column pairs."""
    n = len(values)
    j = 0
    while j < n:
        if values[j].imag == 0:
            target[:, j] = vectors[:, j].real
            j += 1
        else:
            target[:, j] = vectors[:, j].real
            target[:, j + 1] = vectors[:, j].imag
            j += 2
