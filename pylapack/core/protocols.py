"""
Backend capability contract for pylapack.

A backend implements the numerical work of every routine in the catalog.
We use Protocol (structural typing) rather than ABC (nominal typing) so
that any object with the right methods can be plugged into a Dispatcher.

Conventions shared by every method:
    - Matrices are row-major 1-D float64 storage with an explicit leading
      dimension (lda, ldb, ...); backends never see descriptor objects
    - Indices (pivots, permutations, block boundaries) are 0-based
    - Arguments have already been validated and empty problems have
      already returned; a backend only sees real work
    - Singular or non-converging inputs are reported through the return
      value, never by raising

Backends are stateless; all configuration is fixed at construction time.
"""

from typing import Protocol, runtime_checkable

import numpy as np
from numpy.typing import NDArray

from pylapack.core.options import (
    BalanceJob,
    Diag,
    EVComp,
    EVJob,
    MatrixNorm,
    SchurComp,
    SchurJob,
    Side,
    SVDJob,
    Transpose,
    Uplo,
)

F64 = NDArray[np.float64]
Ints = NDArray[np.integer]


@runtime_checkable
class LapackBackend(Protocol):
    """
    Protocol for interchangeable implementations of the routine catalog.
    """

    @property
    def name(self) -> str:
        """
        Backend identifier.

        Examples: 'native', 'external'
        """
        ...

    # === Cholesky ===

    def dpotrf(self, uplo: Uplo, n: int, a: F64, lda: int) -> bool:
        """Cholesky factor into the uplo half of a; False if not positive definite."""
        ...

    def dpotrs(self, uplo: Uplo, n: int, nrhs: int, a: F64, lda: int,
               b: F64, ldb: int) -> None:
        ...

    def dpotri(self, uplo: Uplo, n: int, a: F64, lda: int) -> bool:
        ...

    def dpocon(self, uplo: Uplo, n: int, a: F64, lda: int, anorm: float,
               work: F64, lwork: int, iwork: Ints) -> float:
        ...

    def dpptrf(self, uplo: Uplo, n: int, ap: F64) -> bool:
        ...

    # === LU ===

    def dgetrf(self, m: int, n: int, a: F64, lda: int, ipiv: Ints) -> bool:
        """LU with partial pivoting; False if U has an exact zero on its diagonal."""
        ...

    def dgetrs(self, trans: Transpose, n: int, nrhs: int, a: F64, lda: int,
               ipiv: Ints, b: F64, ldb: int) -> None:
        ...

    def dgetri(self, n: int, a: F64, lda: int, ipiv: Ints,
               work: F64, lwork: int) -> bool:
        ...

    def dgecon(self, norm: MatrixNorm, n: int, a: F64, lda: int, anorm: float,
               work: F64, lwork: int, iwork: Ints) -> float:
        ...

    # === Least squares and orthogonal factorizations ===

    def dgels(self, trans: Transpose, m: int, n: int, nrhs: int, a: F64, lda: int,
              b: F64, ldb: int, work: F64, lwork: int) -> bool:
        ...

    def dgeqrf(self, m: int, n: int, a: F64, lda: int, tau: F64,
               work: F64, lwork: int) -> None:
        ...

    def dgelqf(self, m: int, n: int, a: F64, lda: int, tau: F64,
               work: F64, lwork: int) -> None:
        ...

    def dorgqr(self, m: int, n: int, k: int, a: F64, lda: int, tau: F64,
               work: F64, lwork: int) -> None:
        ...

    def dorglq(self, m: int, n: int, k: int, a: F64, lda: int, tau: F64,
               work: F64, lwork: int) -> None:
        ...

    def dormqr(self, side: Side, trans: Transpose, m: int, n: int, k: int,
               a: F64, lda: int, tau: F64, c: F64, ldc: int,
               work: F64, lwork: int) -> None:
        ...

    def dormlq(self, side: Side, trans: Transpose, m: int, n: int, k: int,
               a: F64, lda: int, tau: F64, c: F64, ldc: int,
               work: F64, lwork: int) -> None:
        ...

    # === Reflectors and copies ===

    def dlarfg(self, n: int, alpha: float, x: F64, incx: int) -> tuple[float, float]:
        """Generate an elementary reflector; returns (beta, tau)."""
        ...

    def dlarf(self, side: Side, m: int, n: int, v: F64, incv: int, tau: float,
              c: F64, ldc: int, work: F64, lwork: int) -> None:
        ...

    def dlacpy(self, uplo: Uplo, m: int, n: int, a: F64, lda: int,
               b: F64, ldb: int) -> None:
        ...

    # === Norms ===

    def dlange(self, norm: MatrixNorm, m: int, n: int, a: F64, lda: int,
               work: F64, lwork: int) -> float:
        ...

    def dlansy(self, norm: MatrixNorm, uplo: Uplo, n: int, a: F64, lda: int,
               work: F64, lwork: int) -> float:
        ...

    def dlantr(self, norm: MatrixNorm, uplo: Uplo, diag: Diag, m: int, n: int,
               a: F64, lda: int, work: F64, lwork: int) -> float:
        ...

    # === Triangular ===

    def dtrtri(self, uplo: Uplo, diag: Diag, n: int, a: F64, lda: int) -> bool:
        ...

    def dtrtrs(self, uplo: Uplo, trans: Transpose, diag: Diag, n: int, nrhs: int,
               a: F64, lda: int, b: F64, ldb: int) -> bool:
        ...

    def dtrcon(self, norm: MatrixNorm, uplo: Uplo, diag: Diag, n: int,
               a: F64, lda: int, work: F64, lwork: int, iwork: Ints) -> float:
        ...

    # === Symmetric eigenproblems ===

    def dsyev(self, jobz: EVJob, uplo: Uplo, n: int, a: F64, lda: int, w: F64,
              work: F64, lwork: int) -> bool:
        ...

    def dsterf(self, n: int, d: F64, e: F64) -> bool:
        ...

    def dsteqr(self, compz: EVComp, n: int, d: F64, e: F64, z: F64, ldz: int,
               work: F64, lwork: int) -> bool:
        ...

    # === Singular value decomposition ===

    def dgesvd(self, jobu: SVDJob, jobvt: SVDJob, m: int, n: int, a: F64, lda: int,
               s: F64, u: F64, ldu: int, vt: F64, ldvt: int,
               work: F64, lwork: int) -> bool:
        ...

    # === Nonsymmetric eigenproblems ===

    def dgebal(self, job: BalanceJob, n: int, a: F64, lda: int,
               scale: F64) -> tuple[int, int]:
        """Balance a; returns the inclusive 0-based active block (ilo, ihi)."""
        ...

    def dgebak(self, job: BalanceJob, side: Side, n: int, ilo: int, ihi: int,
               scale: F64, m: int, v: F64, ldv: int) -> None:
        ...

    def dgehrd(self, n: int, ilo: int, ihi: int, a: F64, lda: int, tau: F64,
               work: F64, lwork: int) -> None:
        ...

    def dhseqr(self, job: SchurJob, compz: SchurComp, n: int, ilo: int, ihi: int,
               h: F64, ldh: int, wr: F64, wi: F64, z: F64, ldz: int,
               work: F64, lwork: int) -> int:
        """Schur factorization; returns the first converged index, 0 on success."""
        ...

    def dgeev(self, jobvl: EVJob, jobvr: EVJob, n: int, a: F64, lda: int,
              wr: F64, wi: F64, vl: F64, ldvl: int, vr: F64, ldvr: int,
              work: F64, lwork: int) -> int:
        """Eigen decomposition; eigenvalues [first, n) are valid, 0 on success."""
        ...


ROUTINES = (
    'dpotrf', 'dpotrs', 'dpotri', 'dpocon', 'dpptrf',
    'dgetrf', 'dgetrs', 'dgetri', 'dgecon',
    'dgels', 'dgeqrf', 'dgelqf', 'dorgqr', 'dorglq', 'dormqr', 'dormlq',
    'dlarfg', 'dlarf', 'dlacpy',
    'dlange', 'dlansy', 'dlantr',
    'dtrtri', 'dtrtrs', 'dtrcon',
    'dsyev', 'dsterf', 'dsteqr',
    'dgesvd',
    'dgebal', 'dgebak', 'dgehrd', 'dhseqr', 'dgeev',
)
