"""
Matrix descriptors: strided views over caller-owned storage.

A descriptor never owns or copies its storage. Two descriptors may alias
the same array, e.g. the General view handed to a factorization and the
Triangular view of the factor it leaves behind (see pylapack.aliasing).
Descriptors are built immediately before a call and carry no state
between calls.

Index arithmetic:
    row-major:    data[i * stride + j]
    column-major: data[i + j * stride]

Descriptors are not validated on construction; operations that receive
one validate it before touching storage (pylapack.core.validation).
"""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np
from numpy.typing import NDArray

from pylapack.core.exceptions import (
    IndexOutOfRangeError,
    InvalidDimensionError,
    InvalidOptionError,
)
from pylapack.core.options import Diag, Layout, Uplo


def strided_offset(layout: Layout, stride: int, i, j):
    """Flat offset of cell (i, j); accepts integers or index arrays."""
    if layout is Layout.RowMajor:
        return i * stride + j
    return i + j * stride


def required_length(major: int, minor: int, stride: int) -> int:
    """Minimum storage for `major` lines of `minor` elements `stride` apart."""
    if major == 0 or minor == 0:
        return 0
    return (major - 1) * stride + minor


def half_cells(n: int, uplo: Uplo) -> tuple[NDArray[np.intp], NDArray[np.intp]]:
    """
    Row and column indices of the cells an n x n half-selector covers.

    The diagonal is part of both Upper and Lower and appears exactly once.
    """
    if uplo is Uplo.Upper:
        return np.triu_indices(n)
    if uplo is Uplo.Lower:
        return np.tril_indices(n)
    if uplo is Uplo.All:
        rows, cols = np.indices((n, n))
        return rows.ravel(), cols.ravel()
    raise InvalidOptionError(
        f"uplo: {uplo!r} is not a half-selector", param='uplo', actual=uplo
    )


def packed_offset(n: int, uplo: Uplo, layout: Layout, i, j):
    """Offset of cell (i, j), inside the stored half, in packed storage."""
    if layout is Layout.ColMajor:
        if uplo is Uplo.Upper:
            return i + j * (j + 1) // 2
        return i + j * (2 * n - j - 1) // 2
    if uplo is Uplo.Upper:
        return j + i * (2 * n - i - 1) // 2
    return j + i * (i + 1) // 2


def _in_half(uplo: Uplo, i: int, j: int) -> bool:
    if uplo is Uplo.Upper:
        return i <= j
    if uplo is Uplo.Lower:
        return i >= j
    return True


def _check_cell(i: int, j: int, rows: int, cols: int) -> None:
    if not (0 <= i < rows and 0 <= j < cols):
        raise IndexOutOfRangeError(
            f"cell ({i}, {j}) outside {rows}x{cols} matrix",
            param='(i, j)', actual=(i, j), expected=f"[0, {rows}) x [0, {cols})",
        )


@dataclass(frozen=True, eq=False)
class General:
    """
    Dense rows x cols matrix.

    Attributes:
        rows: Number of rows
        cols: Number of columns
        stride: Distance between consecutive rows (row-major) or
            columns (column-major)
        data: 1-D float64 backing storage
        layout: Physical arrangement
    """
    rows: int
    cols: int
    stride: int
    data: NDArray[np.float64] = field(repr=False)
    layout: Layout = Layout.RowMajor

    @property
    def minor(self) -> int:
        return self.cols if self.layout is Layout.RowMajor else self.rows

    @property
    def required_length(self) -> int:
        major = self.rows if self.layout is Layout.RowMajor else self.cols
        return required_length(major, self.minor, self.stride)

    def cells(self) -> tuple[NDArray[np.intp], NDArray[np.intp]]:
        rows, cols = np.indices((self.rows, self.cols))
        return rows.ravel(), cols.ravel()

    def offset(self, i, j):
        return strided_offset(self.layout, self.stride, i, j)

    def at(self, i: int, j: int) -> float:
        _check_cell(i, j, self.rows, self.cols)
        return float(self.data[self.offset(i, j)])

    def as_triangular(self, uplo: Uplo, diag: Diag = Diag.NonUnit) -> Triangular:
        """Reinterpret a square view as triangular over the same storage."""
        if self.rows != self.cols:
            raise InvalidDimensionError(
                f"only a square view can be reinterpreted as triangular, "
                f"got {self.rows}x{self.cols}"
            )
        return Triangular(self.rows, self.stride, self.data, uplo, diag, self.layout)

    def as_symmetric(self, uplo: Uplo) -> Symmetric:
        """Reinterpret a square view as symmetric over the same storage."""
        if self.rows != self.cols:
            raise InvalidDimensionError(
                f"only a square view can be reinterpreted as symmetric, "
                f"got {self.rows}x{self.cols}"
            )
        return Symmetric(self.rows, self.stride, self.data, uplo, self.layout)


@dataclass(frozen=True, eq=False)
class Symmetric:
    """
    Symmetric n x n matrix of which only the `uplo` half is stored.

    The other half is undefined: it is never read, and copy/convert
    operations never write it.
    """
    n: int
    stride: int
    data: NDArray[np.float64] = field(repr=False)
    uplo: Uplo = Uplo.Upper
    layout: Layout = Layout.RowMajor

    @property
    def minor(self) -> int:
        return self.n

    @property
    def required_length(self) -> int:
        return required_length(self.n, self.n, self.stride)

    def cells(self) -> tuple[NDArray[np.intp], NDArray[np.intp]]:
        return half_cells(self.n, self.uplo)

    def offset(self, i, j):
        return strided_offset(self.layout, self.stride, i, j)

    def at(self, i: int, j: int) -> float:
        _check_cell(i, j, self.n, self.n)
        if not _in_half(self.uplo, i, j):
            i, j = j, i
        return float(self.data[self.offset(i, j)])

    def as_triangular(self, diag: Diag = Diag.NonUnit) -> Triangular:
        return Triangular(self.n, self.stride, self.data, self.uplo, diag, self.layout)

    def as_general(self) -> General:
        return General(self.n, self.n, self.stride, self.data, self.layout)


@dataclass(frozen=True, eq=False)
class Triangular:
    """
    Triangular n x n matrix.

    With diag == Diag.Unit the diagonal is logically 1 and is never read
    as a value. uplo == Uplo.All marks every cell as populated.
    """
    n: int
    stride: int
    data: NDArray[np.float64] = field(repr=False)
    uplo: Uplo = Uplo.Upper
    diag: Diag = Diag.NonUnit
    layout: Layout = Layout.RowMajor

    @property
    def minor(self) -> int:
        return self.n

    @property
    def required_length(self) -> int:
        return required_length(self.n, self.n, self.stride)

    def cells(self) -> tuple[NDArray[np.intp], NDArray[np.intp]]:
        return half_cells(self.n, self.uplo)

    def offset(self, i, j):
        return strided_offset(self.layout, self.stride, i, j)

    def at(self, i: int, j: int) -> float:
        _check_cell(i, j, self.n, self.n)
        if i == j and self.diag is Diag.Unit:
            return 1.0
        if not _in_half(self.uplo, i, j):
            return 0.0
        return float(self.data[self.offset(i, j)])

    def as_symmetric(self) -> Symmetric:
        return Symmetric(self.n, self.stride, self.data, self.uplo, self.layout)

    def as_general(self) -> General:
        return General(self.n, self.n, self.stride, self.data, self.layout)


@dataclass(frozen=True, eq=False)
class SymmetricPacked:
    """Symmetric matrix with the `uplo` half packed into n(n+1)/2 elements."""
    n: int
    data: NDArray[np.float64] = field(repr=False)
    uplo: Uplo = Uplo.Upper
    layout: Layout = Layout.RowMajor

    @property
    def required_length(self) -> int:
        return self.n * (self.n + 1) // 2

    def cells(self) -> tuple[NDArray[np.intp], NDArray[np.intp]]:
        return half_cells(self.n, self.uplo)

    def offset(self, i, j):
        return packed_offset(self.n, self.uplo, self.layout, i, j)

    def at(self, i: int, j: int) -> float:
        _check_cell(i, j, self.n, self.n)
        if not _in_half(self.uplo, i, j):
            i, j = j, i
        return float(self.data[self.offset(i, j)])

    def as_triangular(self, diag: Diag = Diag.NonUnit) -> TriangularPacked:
        return TriangularPacked(self.n, self.data, self.uplo, diag, self.layout)


@dataclass(frozen=True, eq=False)
class TriangularPacked:
    """Triangular matrix with the `uplo` half packed into n(n+1)/2 elements."""
    n: int
    data: NDArray[np.float64] = field(repr=False)
    uplo: Uplo = Uplo.Upper
    diag: Diag = Diag.NonUnit
    layout: Layout = Layout.RowMajor

    @property
    def required_length(self) -> int:
        return self.n * (self.n + 1) // 2

    def cells(self) -> tuple[NDArray[np.intp], NDArray[np.intp]]:
        return half_cells(self.n, self.uplo)

    def offset(self, i, j):
        return packed_offset(self.n, self.uplo, self.layout, i, j)

    def at(self, i: int, j: int) -> float:
        _check_cell(i, j, self.n, self.n)
        if i == j and self.diag is Diag.Unit:
            return 1.0
        if not _in_half(self.uplo, i, j):
            return 0.0
        return float(self.data[self.offset(i, j)])

    def as_symmetric(self) -> SymmetricPacked:
        return SymmetricPacked(self.n, self.data, self.uplo, self.layout)


@dataclass(frozen=True, eq=False)
class Vector:
    """n elements spaced `inc` apart."""
    n: int
    inc: int
    data: NDArray[np.float64] = field(repr=False)

    @property
    def required_length(self) -> int:
        if self.n == 0:
            return 0
        return 1 + (self.n - 1) * self.inc

    def at(self, i: int) -> float:
        if not 0 <= i < self.n:
            raise IndexOutOfRangeError(
                f"element {i} outside vector of length {self.n}",
                param='i', actual=i, expected=f"[0, {self.n})",
            )
        return float(self.data[i * self.inc])


MatrixView = General | Symmetric | Triangular
PackedView = SymmetricPacked | TriangularPacked
