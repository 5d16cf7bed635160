"""
Validated dispatch of the routine catalog to a backend.

A Dispatcher is the explicit configuration object through which every
routine is called. Each method runs the same sequence:

    1. option membership (uplo, trans, job, ...)
    2. dimension signs and consistency
    3. workspace size query: if lwork == -1, write the minimum workspace
       to work[0] and return the routine's success value
    4. storage checks for every matrix, vector and index argument
    5. workspace sufficiency
    6. quick return for empty problems
    7. the backend call

Steps 1-5 complete before any storage is modified, so a rejected call
leaves every argument untouched. Matrices are row-major with explicit
leading dimensions; every index is 0-based.

There is no process-wide backend selection. Dispatchers hold no state
besides their backend and may be shared, but concurrent calls that write
to the same storage must be serialised by the caller.
"""

import logging
from typing import Any, Literal

import numpy as np

from pylapack.core.exceptions import (
    BackendUnavailableError,
    IndexOutOfRangeError,
    InvalidDimensionError,
    InvalidOptionError,
)
from pylapack.core.options import (
    BalanceJob,
    CONDITION_NORMS,
    Diag,
    EVComp,
    EVJob,
    HALF_UPLOS,
    MatrixNorm,
    REAL_TRANSPOSES,
    SchurComp,
    SchurJob,
    Side,
    SVDJob,
    Transpose,
    TRIANGULAR_UPLOS,
    Uplo,
)
from pylapack.core.protocols import LapackBackend
from pylapack.core.validation import (
    check_block_bounds,
    check_dimension,
    check_length,
    check_matrix,
    check_option,
    check_pivots,
    check_vector,
    check_workspace,
)
from pylapack.workspace import answer_query, is_query, minimum_workspace

logger = logging.getLogger(__name__)

BackendChoice = Literal['auto', 'native', 'external']


def _get_backend(choice: Any) -> LapackBackend:
    """
    Select and instantiate the appropriate backend.

    Args:
        choice: 'native', 'external', 'auto', or an object implementing
            LapackBackend

    Returns:
        Backend instance ready to service calls

    Raises:
        ValueError: If unknown backend specified
        BackendUnavailableError: If 'external' requested but unavailable
    """
    if isinstance(choice, str):
        if choice == 'native':
            from pylapack.backends.native import NativeBackend
            return NativeBackend()
        elif choice == 'external':
            from pylapack.backends.external import ExternalBackend
            return ExternalBackend()
        elif choice == 'auto':
            # Prefer the compiled library, fall back to native
            from pylapack.backends.external import ExternalBackend
            from pylapack.backends.native import NativeBackend
            try:
                return ExternalBackend()
            except BackendUnavailableError as exc:
                logger.debug("external backend unavailable (%s), using native", exc)
                return NativeBackend()
        raise ValueError(f"Unknown backend: {choice!r}")
    if isinstance(choice, LapackBackend):
        return choice
    raise ValueError(f"Unknown backend: {choice!r}")


def _check_at_least(value: int, minimum: int, name: str, other: str) -> None:
    if value < minimum:
        raise InvalidDimensionError(
            f"{name}: {value} is less than {other} ({minimum})",
            param=name, actual=value, expected=f'>= {minimum}',
        )


def _check_at_most(value: int, maximum: int, name: str, other: str) -> None:
    if value > maximum:
        raise InvalidDimensionError(
            f"{name}: {value} exceeds {other} ({maximum})",
            param=name, actual=value, expected=f'<= {maximum}',
        )


class Dispatcher:
    """
    Contract-checked entry point to the routine catalog.

    Args:
        backend: 'native' (default), 'external', 'auto', or a backend
            instance implementing LapackBackend

    Example:
        >>> lapack = Dispatcher('native')
        >>> ok = lapack.dpotrf(Uplo.Upper, 3, a, 3)
    """

    def __init__(self, backend: BackendChoice | LapackBackend = 'native'):
        self.backend = _get_backend(backend)

    def __repr__(self) -> str:
        return f"Dispatcher(backend={self.backend.name!r})"

    def _call(self, routine: str, *args: Any) -> Any:
        logger.debug("%s -> %s backend", routine, self.backend.name)
        return getattr(self.backend, routine)(*args)

    # === Cholesky ===

    def dpotrf(self, uplo: Uplo, n: int, a, lda: int) -> bool:
        """
        Cholesky factorization of a symmetric positive definite matrix.

        Only the uplo half of a is read; it is overwritten with U (A = U^T U)
        or L (A = L L^T). Returns False, leaving a unchanged, if the matrix
        is not positive definite.
        """
        check_option(uplo, Uplo, 'uplo', allowed=HALF_UPLOS)
        check_dimension(n, 'n')
        check_matrix(n, n, a, lda, 'a')
        if n == 0:
            return True
        return self._call('dpotrf', uplo, n, a, lda)

    def dpotrs(self, uplo: Uplo, n: int, nrhs: int, a, lda: int, b, ldb: int) -> None:
        """Solve A X = B with the Cholesky factor from dpotrf."""
        check_option(uplo, Uplo, 'uplo', allowed=HALF_UPLOS)
        check_dimension(n, 'n')
        check_dimension(nrhs, 'nrhs')
        check_matrix(n, n, a, lda, 'a')
        check_matrix(n, nrhs, b, ldb, 'b')
        if n == 0 or nrhs == 0:
            return
        self._call('dpotrs', uplo, n, nrhs, a, lda, b, ldb)

    def dpotri(self, uplo: Uplo, n: int, a, lda: int) -> bool:
        """Inverse from the Cholesky factor, written to the uplo half of a."""
        check_option(uplo, Uplo, 'uplo', allowed=HALF_UPLOS)
        check_dimension(n, 'n')
        check_matrix(n, n, a, lda, 'a')
        if n == 0:
            return True
        return self._call('dpotri', uplo, n, a, lda)

    def dpocon(self, uplo: Uplo, n: int, a, lda: int, anorm: float,
               work, lwork: int, iwork) -> float:
        """Reciprocal one-norm condition number from the Cholesky factor."""
        check_option(uplo, Uplo, 'uplo', allowed=HALF_UPLOS)
        check_dimension(n, 'n')
        if is_query(lwork):
            answer_query('dpocon', work, n=n)
            return 0.0
        check_matrix(n, n, a, lda, 'a')
        check_workspace(work, lwork, minimum_workspace('dpocon', n=n))
        check_length(iwork, n, 'iwork', integer=True)
        _check_anorm(anorm)
        if n == 0:
            return 1.0
        return self._call('dpocon', uplo, n, a, lda, anorm, work, lwork, iwork)

    def dpptrf(self, uplo: Uplo, n: int, ap) -> bool:
        """Cholesky factorization in packed storage."""
        check_option(uplo, Uplo, 'uplo', allowed=HALF_UPLOS)
        check_dimension(n, 'n')
        check_length(ap, n * (n + 1) // 2, 'ap')
        if n == 0:
            return True
        return self._call('dpptrf', uplo, n, ap)

    # === LU ===

    def dgetrf(self, m: int, n: int, a, lda: int, ipiv) -> bool:
        """
        LU factorization with partial pivoting, A = P L U.

        ipiv[i] is the 0-based row swapped with row i. Returns False if U
        has an exact zero on its diagonal; the factorization is complete
        either way.
        """
        check_dimension(m, 'm')
        check_dimension(n, 'n')
        check_matrix(m, n, a, lda, 'a')
        check_length(ipiv, min(m, n), 'ipiv', integer=True)
        if m == 0 or n == 0:
            return True
        return self._call('dgetrf', m, n, a, lda, ipiv)

    def dgetrs(self, trans: Transpose, n: int, nrhs: int, a, lda: int, ipiv, b, ldb: int) -> None:
        """Solve A X = B or A^T X = B with the factors from dgetrf."""
        check_option(trans, Transpose, 'trans')
        check_dimension(n, 'n')
        check_dimension(nrhs, 'nrhs')
        check_matrix(n, n, a, lda, 'a')
        check_pivots(ipiv, n, n)
        check_matrix(n, nrhs, b, ldb, 'b')
        if n == 0 or nrhs == 0:
            return
        self._call('dgetrs', trans, n, nrhs, a, lda, ipiv, b, ldb)

    def dgetri(self, n: int, a, lda: int, ipiv, work, lwork: int) -> bool:
        """Inverse from the factors of dgetrf; False if U is singular."""
        check_dimension(n, 'n')
        if is_query(lwork):
            answer_query('dgetri', work, n=n)
            return True
        check_matrix(n, n, a, lda, 'a')
        check_pivots(ipiv, n, n)
        check_workspace(work, lwork, minimum_workspace('dgetri', n=n))
        if n == 0:
            return True
        return self._call('dgetri', n, a, lda, ipiv, work, lwork)

    def dgecon(self, norm: MatrixNorm, n: int, a, lda: int, anorm: float,
               work, lwork: int, iwork) -> float:
        """Reciprocal condition number from the factors of dgetrf."""
        check_option(norm, MatrixNorm, 'norm', allowed=CONDITION_NORMS)
        check_dimension(n, 'n')
        if is_query(lwork):
            answer_query('dgecon', work, n=n)
            return 0.0
        check_matrix(n, n, a, lda, 'a')
        check_workspace(work, lwork, minimum_workspace('dgecon', n=n))
        check_length(iwork, n, 'iwork', integer=True)
        _check_anorm(anorm)
        if n == 0:
            return 1.0
        return self._call('dgecon', norm, n, a, lda, anorm, work, lwork, iwork)

    # === Least squares and orthogonal factorizations ===

    def dgels(self, trans: Transpose, m: int, n: int, nrhs: int, a, lda: int,
              b, ldb: int, work, lwork: int) -> bool:
        """
        Least squares or minimum norm solution of a full-rank system.

        b is max(m, n) x nrhs; the solution overwrites its first n rows
        (NoTrans) or first m rows (Trans). a is overwritten with its QR or
        LQ factorization. Returns False if a is rank deficient.
        """
        check_option(trans, Transpose, 'trans', allowed=REAL_TRANSPOSES)
        check_dimension(m, 'm')
        check_dimension(n, 'n')
        check_dimension(nrhs, 'nrhs')
        if is_query(lwork):
            answer_query('dgels', work, m=m, n=n, nrhs=nrhs)
            return True
        check_matrix(m, n, a, lda, 'a')
        check_matrix(max(m, n), nrhs, b, ldb, 'b')
        check_workspace(work, lwork, minimum_workspace('dgels', m=m, n=n, nrhs=nrhs))
        if min(m, n, nrhs) == 0:
            rows = max(m, n)
            if rows > 0 and nrhs > 0:
                _zero_block(b, rows, nrhs, ldb)
            return True
        return self._call('dgels', trans, m, n, nrhs, a, lda, b, ldb, work, lwork)

    def dgeqrf(self, m: int, n: int, a, lda: int, tau, work, lwork: int) -> None:
        """QR factorization: R in the upper triangle, reflectors below it."""
        check_dimension(m, 'm')
        check_dimension(n, 'n')
        if is_query(lwork):
            answer_query('dgeqrf', work, n=n)
            return
        check_matrix(m, n, a, lda, 'a')
        check_length(tau, min(m, n), 'tau')
        check_workspace(work, lwork, minimum_workspace('dgeqrf', n=n))
        if min(m, n) == 0:
            return
        self._call('dgeqrf', m, n, a, lda, tau, work, lwork)

    def dgelqf(self, m: int, n: int, a, lda: int, tau, work, lwork: int) -> None:
        """LQ factorization: L in the lower triangle, reflectors right of it."""
        check_dimension(m, 'm')
        check_dimension(n, 'n')
        if is_query(lwork):
            answer_query('dgelqf', work, m=m)
            return
        check_matrix(m, n, a, lda, 'a')
        check_length(tau, min(m, n), 'tau')
        check_workspace(work, lwork, minimum_workspace('dgelqf', m=m))
        if min(m, n) == 0:
            return
        self._call('dgelqf', m, n, a, lda, tau, work, lwork)

    def dorgqr(self, m: int, n: int, k: int, a, lda: int, tau, work, lwork: int) -> None:
        """Generate the m x n matrix Q with orthonormal columns from dgeqrf."""
        check_dimension(m, 'm')
        check_dimension(n, 'n')
        check_dimension(k, 'k')
        _check_at_most(n, m, 'n', 'm')
        _check_at_most(k, n, 'k', 'n')
        if is_query(lwork):
            answer_query('dorgqr', work, n=n)
            return
        check_matrix(m, n, a, lda, 'a')
        check_length(tau, k, 'tau')
        check_workspace(work, lwork, minimum_workspace('dorgqr', n=n))
        if n == 0:
            return
        self._call('dorgqr', m, n, k, a, lda, tau, work, lwork)

    def dorglq(self, m: int, n: int, k: int, a, lda: int, tau, work, lwork: int) -> None:
        """Generate the m x n matrix Q with orthonormal rows from dgelqf."""
        check_dimension(m, 'm')
        check_dimension(n, 'n')
        check_dimension(k, 'k')
        _check_at_least(n, m, 'n', 'm')
        _check_at_most(k, m, 'k', 'm')
        if is_query(lwork):
            answer_query('dorglq', work, m=m)
            return
        check_matrix(m, n, a, lda, 'a')
        check_length(tau, k, 'tau')
        check_workspace(work, lwork, minimum_workspace('dorglq', m=m))
        if m == 0:
            return
        self._call('dorglq', m, n, k, a, lda, tau, work, lwork)

    def dormqr(self, side: Side, trans: Transpose, m: int, n: int, k: int, a, lda: int,
               tau, c, ldc: int, work, lwork: int) -> None:
        """
        Multiply C by Q or Q^T from dgeqrf.

        a holds k reflectors in its columns: m x k for Side.Left,
        n x k for Side.Right.
        """
        check_option(side, Side, 'side')
        check_option(trans, Transpose, 'trans', allowed=REAL_TRANSPOSES)
        check_dimension(m, 'm')
        check_dimension(n, 'n')
        check_dimension(k, 'k')
        order = m if side is Side.Left else n
        _check_at_most(k, order, 'k', 'the order of Q')
        if is_query(lwork):
            answer_query('dormqr', work, side=side, m=m, n=n)
            return
        check_matrix(order, k, a, lda, 'a')
        check_length(tau, k, 'tau')
        check_matrix(m, n, c, ldc, 'c')
        check_workspace(work, lwork, minimum_workspace('dormqr', side=side, m=m, n=n))
        if m == 0 or n == 0 or k == 0:
            return
        self._call('dormqr', side, trans, m, n, k, a, lda, tau, c, ldc, work, lwork)

    def dormlq(self, side: Side, trans: Transpose, m: int, n: int, k: int, a, lda: int,
               tau, c, ldc: int, work, lwork: int) -> None:
        """
        Multiply C by Q or Q^T from dgelqf.

        a holds k reflectors in its rows: k x m for Side.Left,
        k x n for Side.Right.
        """
        check_option(side, Side, 'side')
        check_option(trans, Transpose, 'trans', allowed=REAL_TRANSPOSES)
        check_dimension(m, 'm')
        check_dimension(n, 'n')
        check_dimension(k, 'k')
        order = m if side is Side.Left else n
        _check_at_most(k, order, 'k', 'the order of Q')
        if is_query(lwork):
            answer_query('dormlq', work, side=side, m=m, n=n)
            return
        check_matrix(k, order, a, lda, 'a')
        check_length(tau, k, 'tau')
        check_matrix(m, n, c, ldc, 'c')
        check_workspace(work, lwork, minimum_workspace('dormlq', side=side, m=m, n=n))
        if m == 0 or n == 0 or k == 0:
            return
        self._call('dormlq', side, trans, m, n, k, a, lda, tau, c, ldc, work, lwork)

    # === Reflectors and copies ===

    def dlarfg(self, n: int, alpha: float, x, incx: int) -> tuple[float, float]:
        """
        Generate an elementary reflector H with H [alpha; x] = [beta; 0].

        x holds n-1 elements and is overwritten with the tail of v.

        Returns:
            (beta, tau)
        """
        check_dimension(n, 'n')
        check_vector(max(0, n - 1), x, incx, 'x')
        if n <= 1:
            return float(alpha), 0.0
        return self._call('dlarfg', n, alpha, x, incx)

    def dlarf(self, side: Side, m: int, n: int, v, incv: int, tau: float,
              c, ldc: int, work, lwork: int) -> None:
        """Apply H = I - tau v v^T to C from the left or the right."""
        check_option(side, Side, 'side')
        check_dimension(m, 'm')
        check_dimension(n, 'n')
        if is_query(lwork):
            answer_query('dlarf', work, side=side, m=m, n=n)
            return
        check_vector(m if side is Side.Left else n, v, incv, 'v')
        check_matrix(m, n, c, ldc, 'c')
        check_workspace(work, lwork, minimum_workspace('dlarf', side=side, m=m, n=n))
        if m == 0 or n == 0:
            return
        self._call('dlarf', side, m, n, v, incv, tau, c, ldc, work, lwork)

    def dlacpy(self, uplo: Uplo, m: int, n: int, a, lda: int, b, ldb: int) -> None:
        """Copy the uplo trapezoid (or all) of a into b."""
        check_option(uplo, Uplo, 'uplo', allowed=TRIANGULAR_UPLOS)
        check_dimension(m, 'm')
        check_dimension(n, 'n')
        check_matrix(m, n, a, lda, 'a')
        check_matrix(m, n, b, ldb, 'b')
        if m == 0 or n == 0:
            return
        self._call('dlacpy', uplo, m, n, a, lda, b, ldb)

    # === Norms ===

    def dlange(self, norm: MatrixNorm, m: int, n: int, a, lda: int, work, lwork: int) -> float:
        """Norm of a general matrix."""
        check_option(norm, MatrixNorm, 'norm')
        check_dimension(m, 'm')
        check_dimension(n, 'n')
        if is_query(lwork):
            answer_query('dlange', work, norm=norm, n=n)
            return 0.0
        check_matrix(m, n, a, lda, 'a')
        check_workspace(work, lwork, minimum_workspace('dlange', norm=norm, n=n))
        if m == 0 or n == 0:
            return 0.0
        return self._call('dlange', norm, m, n, a, lda, work, lwork)

    def dlansy(self, norm: MatrixNorm, uplo: Uplo, n: int, a, lda: int, work, lwork: int) -> float:
        """Norm of a symmetric matrix stored in its uplo half."""
        check_option(norm, MatrixNorm, 'norm')
        check_option(uplo, Uplo, 'uplo', allowed=HALF_UPLOS)
        check_dimension(n, 'n')
        if is_query(lwork):
            answer_query('dlansy', work, norm=norm, n=n)
            return 0.0
        check_matrix(n, n, a, lda, 'a')
        check_workspace(work, lwork, minimum_workspace('dlansy', norm=norm, n=n))
        if n == 0:
            return 0.0
        return self._call('dlansy', norm, uplo, n, a, lda, work, lwork)

    def dlantr(self, norm: MatrixNorm, uplo: Uplo, diag: Diag, m: int, n: int, a, lda: int,
               work, lwork: int) -> float:
        """Norm of a trapezoidal or triangular matrix."""
        check_option(norm, MatrixNorm, 'norm')
        check_option(uplo, Uplo, 'uplo', allowed=HALF_UPLOS)
        check_option(diag, Diag, 'diag')
        check_dimension(m, 'm')
        check_dimension(n, 'n')
        if is_query(lwork):
            answer_query('dlantr', work, norm=norm, n=n)
            return 0.0
        check_matrix(m, n, a, lda, 'a')
        check_workspace(work, lwork, minimum_workspace('dlantr', norm=norm, n=n))
        if m == 0 or n == 0:
            return 0.0
        return self._call('dlantr', norm, uplo, diag, m, n, a, lda, work, lwork)

    # === Triangular ===

    def dtrtri(self, uplo: Uplo, diag: Diag, n: int, a, lda: int) -> bool:
        """Inverse of a triangular matrix in place; False if singular."""
        check_option(uplo, Uplo, 'uplo', allowed=HALF_UPLOS)
        check_option(diag, Diag, 'diag')
        check_dimension(n, 'n')
        check_matrix(n, n, a, lda, 'a')
        if n == 0:
            return True
        return self._call('dtrtri', uplo, diag, n, a, lda)

    def dtrtrs(self, uplo: Uplo, trans: Transpose, diag: Diag, n: int, nrhs: int,
               a, lda: int, b, ldb: int) -> bool:
        """Solve a triangular system; False, leaving b unchanged, if singular."""
        check_option(uplo, Uplo, 'uplo', allowed=HALF_UPLOS)
        check_option(trans, Transpose, 'trans')
        check_option(diag, Diag, 'diag')
        check_dimension(n, 'n')
        check_dimension(nrhs, 'nrhs')
        check_matrix(n, n, a, lda, 'a')
        check_matrix(n, nrhs, b, ldb, 'b')
        if n == 0 or nrhs == 0:
            return True
        return self._call('dtrtrs', uplo, trans, diag, n, nrhs, a, lda, b, ldb)

    def dtrcon(self, norm: MatrixNorm, uplo: Uplo, diag: Diag, n: int, a, lda: int,
               work, lwork: int, iwork) -> float:
        """Reciprocal condition number of a triangular matrix."""
        check_option(norm, MatrixNorm, 'norm', allowed=CONDITION_NORMS)
        check_option(uplo, Uplo, 'uplo', allowed=HALF_UPLOS)
        check_option(diag, Diag, 'diag')
        check_dimension(n, 'n')
        if is_query(lwork):
            answer_query('dtrcon', work, n=n)
            return 0.0
        check_matrix(n, n, a, lda, 'a')
        check_workspace(work, lwork, minimum_workspace('dtrcon', n=n))
        check_length(iwork, n, 'iwork', integer=True)
        if n == 0:
            return 1.0
        return self._call('dtrcon', norm, uplo, diag, n, a, lda, work, lwork, iwork)

    # === Symmetric eigenproblems ===

    def dsyev(self, jobz: EVJob, uplo: Uplo, n: int, a, lda: int, w, work, lwork: int) -> bool:
        """
        Eigenvalues (ascending, into w) and optionally eigenvectors of a
        symmetric matrix. With EVJob.Vectors the whole of a is overwritten
        by the orthonormal eigenvectors, one per column.
        """
        check_option(jobz, EVJob, 'jobz')
        check_option(uplo, Uplo, 'uplo', allowed=HALF_UPLOS)
        check_dimension(n, 'n')
        if is_query(lwork):
            answer_query('dsyev', work, n=n)
            return True
        check_matrix(n, n, a, lda, 'a')
        check_length(w, n, 'w')
        check_workspace(work, lwork, minimum_workspace('dsyev', n=n))
        if n == 0:
            return True
        return self._call('dsyev', jobz, uplo, n, a, lda, w, work, lwork)

    def dsterf(self, n: int, d, e) -> bool:
        """Eigenvalues of a symmetric tridiagonal matrix, ascending, into d."""
        check_dimension(n, 'n')
        check_length(d, n, 'd')
        check_length(e, max(0, n - 1), 'e')
        if n == 0:
            return True
        return self._call('dsterf', n, d, e)

    def dsteqr(self, compz: EVComp, n: int, d, e, z, ldz: int, work, lwork: int) -> bool:
        """
        Eigen decomposition of a symmetric tridiagonal matrix.

        EVComp.Tridiagonal writes the tridiagonal eigenvectors to z;
        EVComp.Original multiplies them into the orthogonal matrix in z.
        """
        check_option(compz, EVComp, 'compz')
        check_dimension(n, 'n')
        if is_query(lwork):
            answer_query('dsteqr', work, compz=compz, n=n)
            return True
        check_length(d, n, 'd')
        check_length(e, max(0, n - 1), 'e')
        if compz is not EVComp.NoVectors:
            check_matrix(n, n, z, ldz, 'z')
        check_workspace(work, lwork, minimum_workspace('dsteqr', compz=compz, n=n))
        if n == 0:
            return True
        return self._call('dsteqr', compz, n, d, e, z, ldz, work, lwork)

    # === Singular value decomposition ===

    def dgesvd(self, jobu: SVDJob, jobvt: SVDJob, m: int, n: int, a, lda: int, s,
               u, ldu: int, vt, ldvt: int, work, lwork: int) -> bool:
        """
        Singular value decomposition A = U diag(s) V^T.

        jobu and jobvt select All, Slim (first min(m, n) vectors),
        Overwrite (written into a) or NoVectors; they may not both be
        Overwrite.
        """
        check_option(jobu, SVDJob, 'jobu')
        check_option(jobvt, SVDJob, 'jobvt')
        if jobu is SVDJob.Overwrite and jobvt is SVDJob.Overwrite:
            raise InvalidOptionError(
                "jobu and jobvt cannot both be Overwrite",
                param='jobvt', actual=jobvt,
                expected='not Overwrite when jobu is Overwrite',
            )
        check_dimension(m, 'm')
        check_dimension(n, 'n')
        if is_query(lwork):
            answer_query('dgesvd', work, m=m, n=n)
            return True
        mn = min(m, n)
        check_matrix(m, n, a, lda, 'a')
        check_length(s, mn, 's')
        if jobu is SVDJob.All:
            check_matrix(m, m, u, ldu, 'u')
        elif jobu is SVDJob.Slim:
            check_matrix(m, mn, u, ldu, 'u')
        if jobvt is SVDJob.All:
            check_matrix(n, n, vt, ldvt, 'vt')
        elif jobvt is SVDJob.Slim:
            check_matrix(mn, n, vt, ldvt, 'vt')
        check_workspace(work, lwork, minimum_workspace('dgesvd', m=m, n=n))
        if mn == 0:
            return True
        return self._call('dgesvd', jobu, jobvt, m, n, a, lda, s, u, ldu, vt, ldvt, work, lwork)

    # === Nonsymmetric eigenproblems ===

    def dgebal(self, job: BalanceJob, n: int, a, lda: int, scale) -> tuple[int, int]:
        """
        Balance a general matrix.

        Returns:
            Inclusive 0-based active block (ilo, ihi); (0, -1) for n == 0.
            scale holds 0-based permutation targets outside the block and
            scaling factors inside it.
        """
        check_option(job, BalanceJob, 'job')
        check_dimension(n, 'n')
        check_matrix(n, n, a, lda, 'a')
        check_length(scale, n, 'scale')
        if n == 0:
            return 0, -1
        ilo, ihi = self._call('dgebal', job, n, a, lda, scale)
        return int(ilo), int(ihi)

    def dgebak(self, job: BalanceJob, side: Side, n: int, ilo: int, ihi: int, scale,
               m: int, v, ldv: int) -> None:
        """Undo dgebal on the n x m eigenvector matrix v."""
        check_option(job, BalanceJob, 'job')
        check_option(side, Side, 'side')
        check_dimension(n, 'n')
        check_block_bounds(ilo, ihi, n)
        check_dimension(m, 'm')
        check_length(scale, n, 'scale')
        if job in (BalanceJob.Permute, BalanceJob.PermuteScale):
            _check_permutation(scale, n, ilo, ihi)
        check_matrix(n, m, v, ldv, 'v')
        if n == 0 or m == 0 or job is BalanceJob.NoBalance:
            return
        self._call('dgebak', job, side, n, ilo, ihi, scale, m, v, ldv)

    def dgehrd(self, n: int, ilo: int, ihi: int, a, lda: int, tau, work, lwork: int) -> None:
        """Reduce rows and columns [ilo, ihi] of a to upper Hessenberg form."""
        check_dimension(n, 'n')
        check_block_bounds(ilo, ihi, n)
        if is_query(lwork):
            answer_query('dgehrd', work, n=n)
            return
        check_matrix(n, n, a, lda, 'a')
        check_length(tau, max(0, n - 1), 'tau')
        check_workspace(work, lwork, minimum_workspace('dgehrd', n=n))
        if n == 0:
            return
        self._call('dgehrd', n, ilo, ihi, a, lda, tau, work, lwork)

    def dhseqr(self, job: SchurJob, compz: SchurComp, n: int, ilo: int, ihi: int,
               h, ldh: int, wr, wi, z, ldz: int, work, lwork: int) -> int:
        """
        Eigenvalues and optionally the Schur form of a Hessenberg matrix.

        Returns:
            0 on success. Otherwise the index `unconverged` such that
            eigenvalues [0, ilo) and [unconverged, n) are valid.
        """
        check_option(job, SchurJob, 'job')
        check_option(compz, SchurComp, 'compz')
        check_dimension(n, 'n')
        check_block_bounds(ilo, ihi, n)
        if is_query(lwork):
            answer_query('dhseqr', work, n=n)
            return 0
        check_matrix(n, n, h, ldh, 'h')
        check_length(wr, n, 'wr')
        check_length(wi, n, 'wi')
        if compz is not SchurComp.NoVectors:
            check_matrix(n, n, z, ldz, 'z')
        check_workspace(work, lwork, minimum_workspace('dhseqr', n=n))
        if n == 0:
            return 0
        return int(self._call('dhseqr', job, compz, n, ilo, ihi, h, ldh, wr, wi, z, ldz, work, lwork))

    def dgeev(self, jobvl: EVJob, jobvr: EVJob, n: int, a, lda: int, wr, wi,
              vl, ldvl: int, vr, ldvr: int, work, lwork: int) -> int:
        """
        Eigenvalues and optionally left/right eigenvectors of a general matrix.

        Complex conjugate pairs appear consecutively, positive imaginary
        part first; their eigenvectors are stored as (real, imaginary)
        column pairs. a is destroyed.

        Returns:
            first: eigenvalues [first, n) are valid; 0 on full success
        """
        check_option(jobvl, EVJob, 'jobvl')
        check_option(jobvr, EVJob, 'jobvr')
        check_dimension(n, 'n')
        if is_query(lwork):
            answer_query('dgeev', work, jobvl=jobvl, jobvr=jobvr, n=n)
            return 0
        check_matrix(n, n, a, lda, 'a')
        check_length(wr, n, 'wr')
        check_length(wi, n, 'wi')
        if jobvl is EVJob.Vectors:
            check_matrix(n, n, vl, ldvl, 'vl')
        if jobvr is EVJob.Vectors:
            check_matrix(n, n, vr, ldvr, 'vr')
        check_workspace(work, lwork, minimum_workspace('dgeev', jobvl=jobvl, jobvr=jobvr, n=n))
        if n == 0:
            return 0
        return int(self._call('dgeev', jobvl, jobvr, n, a, lda, wr, wi, vl, ldvl, vr, ldvr,
                              work, lwork))


def _check_anorm(anorm: Any) -> None:
    if not isinstance(anorm, (int, float, np.integer, np.floating)) or isinstance(anorm, bool) \
            or not anorm >= 0:
        raise InvalidDimensionError(
            f"anorm: expected a non-negative number, got {anorm!r}",
            param='anorm', actual=anorm, expected='>= 0',
        )


def _check_permutation(scale, n: int, ilo: int, ihi: int) -> None:
    """Permutation targets outside [ilo, ihi] must be valid row indices."""
    outside = np.r_[0:ilo, ihi + 1:n]
    if len(outside) == 0:
        return
    targets = scale[outside]
    bad = np.flatnonzero((targets < 0) | (targets >= n) | (targets != np.floor(targets)))
    if len(bad) > 0:
        k = int(outside[bad[0]])
        raise IndexOutOfRangeError(
            f"scale[{k}]: permutation target {scale[k]} is outside [0, {n})",
            param=f"scale[{k}]", actual=float(scale[k]), expected=f'[0, {n})',
        )


def _zero_block(b, rows: int, cols: int, ld: int) -> None:
    offsets = (np.arange(rows)[:, np.newaxis] * ld + np.arange(cols)).ravel()
    b[offsets] = 0.0
