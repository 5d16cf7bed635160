"""
Enumerated options accepted by the routines.

BLAS-level selectors (Uplo, Diag, Side, Transpose, Layout) use the CBLAS
integer constants so they can never be mistaken for the single-character
codes of the Fortran calling convention; translation to those codes lives
in pylapack.backends.fortran. LAPACK job selectors use their character
codes as values.
"""

from enum import Enum


class Layout(Enum):
    RowMajor = 101
    ColMajor = 102


class Transpose(Enum):
    NoTrans = 111
    Trans = 112
    ConjTrans = 113


class Uplo(Enum):
    Upper = 121
    Lower = 122
    # Every cell populated; valid for triangular matrices and dlacpy only.
    All = 99


class Diag(Enum):
    NonUnit = 131
    Unit = 132


class Side(Enum):
    Left = 141
    Right = 142


class MatrixNorm(Enum):
    MaxAbs = 'M'
    MaxColumnSum = 'O'
    MaxRowSum = 'I'
    Frobenius = 'F'


class EVJob(Enum):
    """Whether eigenvectors are computed (dsyev jobz, dgeev jobvl/jobvr)."""
    Vectors = 'V'
    ValuesOnly = 'N'


class SVDJob(Enum):
    All = 'A'
    Slim = 'S'
    Overwrite = 'O'
    NoVectors = 'N'


class BalanceJob(Enum):
    NoBalance = 'N'
    Permute = 'P'
    Scale = 'S'
    PermuteScale = 'B'


class SchurJob(Enum):
    EigenvaluesOnly = 'E'
    EigenvaluesAndSchur = 'S'


class SchurComp(Enum):
    """How dhseqr treats the Schur vector matrix Z."""
    NoVectors = 'N'
    Init = 'I'
    Update = 'V'


class EVComp(Enum):
    """How dsteqr treats the eigenvector matrix Z."""
    NoVectors = 'N'
    Tridiagonal = 'I'
    Original = 'V'


HALF_UPLOS = (Uplo.Upper, Uplo.Lower)
TRIANGULAR_UPLOS = (Uplo.Upper, Uplo.Lower, Uplo.All)
REAL_TRANSPOSES = (Transpose.NoTrans, Transpose.Trans)
CONDITION_NORMS = (MatrixNorm.MaxColumnSum, MatrixNorm.MaxRowSum)
