"""
Output aliasing contracts.

Routines write their results into argument storage. This table records,
for every routine, which results live in which argument's storage and how
that storage must be read afterwards. For example dpotrf leaves its
Cholesky factor in `a`, which is then a Triangular matrix with the same
uplo as the Symmetric input and a NonUnit diagonal.

Each entry can rebuild the result descriptor over the caller's storage:

    >>> contract = output_aliases('dpotrf')[0]
    >>> factor = contract.reinterpret(spd)     # shares spd.data

Outputs that are plain vectors or scalars (tau, ipiv, w, return values)
are not listed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pylapack.core.matrix import (
    General,
    Symmetric,
    SymmetricPacked,
    Triangular,
    TriangularPacked,
    Vector,
)
from pylapack.core.options import Diag, Uplo

# Take uplo or diag from the descriptor the routine received.
INHERIT = 'inherit'


@dataclass(frozen=True)
class OutputAlias:
    """
    One result that a routine leaves in argument storage.

    Attributes:
        output: Name of the result, e.g. 'factor', 'R', 'Q'
        storage: Argument whose storage holds it
        view: Descriptor type the storage must be read as
        uplo: Half of the result, or INHERIT
        diag: Diagonal kind of a triangular result, or INHERIT
        condition: When the result is produced, if not always
    """
    output: str
    storage: str
    view: type
    uplo: Any = None
    diag: Any = None
    condition: str = ''

    def reinterpret(self, source: Any) -> Any:
        """
        Build the result descriptor over the storage of `source`.

        Raises:
            InvalidDimensionError: If a non-square General is reinterpreted
                as Symmetric or Triangular
        """
        uplo = getattr(source, 'uplo', None) if self.uplo == INHERIT else self.uplo
        diag = getattr(source, 'diag', Diag.NonUnit) if self.diag == INHERIT else self.diag
        if self.view is General:
            return source if isinstance(source, General) else source.as_general()
        if self.view is Vector:
            return source
        if isinstance(source, General):
            square = source.as_triangular(uplo, diag)
            return square if self.view is Triangular else square.as_symmetric()
        if self.view is Triangular:
            return Triangular(source.n, source.stride, source.data, uplo, diag, source.layout)
        if self.view is Symmetric:
            return Symmetric(source.n, source.stride, source.data, uplo, source.layout)
        if self.view is TriangularPacked:
            return TriangularPacked(source.n, source.data, uplo, diag, source.layout)
        return SymmetricPacked(source.n, source.data, uplo, source.layout)


_SOLUTION_IN_B = (OutputAlias('solution', 'b', General),)

ALIASES: dict[str, tuple[OutputAlias, ...]] = {
    'dpotrf': (OutputAlias('factor', 'a', Triangular, INHERIT, Diag.NonUnit),),
    'dpotrs': _SOLUTION_IN_B,
    'dpotri': (OutputAlias('inverse', 'a', Symmetric, INHERIT),),
    'dpocon': (),
    'dpptrf': (OutputAlias('factor', 'ap', TriangularPacked, INHERIT, Diag.NonUnit),),
    'dgetrf': (
        OutputAlias('L', 'a', Triangular, Uplo.Lower, Diag.Unit),
        OutputAlias('U', 'a', Triangular, Uplo.Upper, Diag.NonUnit),
    ),
    'dgetrs': _SOLUTION_IN_B,
    'dgetri': (OutputAlias('inverse', 'a', General),),
    'dgecon': (),
    'dgels': (
        OutputAlias('solution', 'b', General,
                    condition='first n rows (NoTrans) or first m rows (Trans)'),
    ),
    'dgeqrf': (
        OutputAlias('R', 'a', Triangular, Uplo.Upper, Diag.NonUnit),
        OutputAlias('reflectors', 'a', General, condition='strictly below the diagonal'),
    ),
    'dgelqf': (
        OutputAlias('L', 'a', Triangular, Uplo.Lower, Diag.NonUnit),
        OutputAlias('reflectors', 'a', General, condition='strictly above the diagonal'),
    ),
    'dorgqr': (OutputAlias('Q', 'a', General),),
    'dorglq': (OutputAlias('Q', 'a', General),),
    'dormqr': (OutputAlias('product', 'c', General),),
    'dormlq': (OutputAlias('product', 'c', General),),
    'dlarfg': (OutputAlias('v', 'x', Vector),),
    'dlarf': (OutputAlias('product', 'c', General),),
    'dlacpy': (),
    'dlange': (),
    'dlansy': (),
    'dlantr': (),
    'dtrtri': (OutputAlias('inverse', 'a', Triangular, INHERIT, INHERIT),),
    'dtrtrs': _SOLUTION_IN_B,
    'dtrcon': (),
    'dsyev': (
        OutputAlias('eigenvectors', 'a', General, condition='jobz == EVJob.Vectors'),
    ),
    'dsterf': (OutputAlias('eigenvalues', 'd', Vector),),
    'dsteqr': (
        OutputAlias('eigenvalues', 'd', Vector),
        OutputAlias('eigenvectors', 'z', General, condition='compz != EVComp.NoVectors'),
    ),
    'dgesvd': (
        OutputAlias('U', 'a', General, condition='jobu == SVDJob.Overwrite'),
        OutputAlias('VT', 'a', General, condition='jobvt == SVDJob.Overwrite'),
    ),
    'dgebal': (OutputAlias('balanced', 'a', General),),
    'dgebak': (OutputAlias('back-transformed', 'v', General),),
    'dgehrd': (
        OutputAlias('H', 'a', General, condition='upper Hessenberg part'),
        OutputAlias('reflectors', 'a', General, condition='below the first subdiagonal'),
    ),
    'dhseqr': (
        OutputAlias('T', 'h', General, condition='job == SchurJob.EigenvaluesAndSchur'),
        OutputAlias('Z', 'z', General, condition='compz != SchurComp.NoVectors'),
    ),
    'dgeev': (),
}


def output_aliases(routine: str) -> tuple[OutputAlias, ...]:
    """
    Aliasing contract of `routine`.

    Raises:
        KeyError: If the routine is not in the catalog
    """
    return ALIASES[routine]
