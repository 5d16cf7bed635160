"""
Call-contract validation for pylapack.

These validators follow the "fail fast, fail loud" principle. They raise
immediately with clear error messages rather than silently correcting
or making assumptions about caller intent, and they never touch the
contents of the storage they inspect.

Design principles:
    - No silent coercion: storage must already be a 1-D ndarray, because
      a converted copy would break the caller's aliasing
    - Each function validates ONE thing
    - Parameter names included in all error messages

Strides follow the LAPACK leading-dimension rule: stride >= max(1, minor).
"""

from enum import Enum
from typing import Any, Iterable

import numpy as np
from numpy.typing import NDArray

from pylapack.core.exceptions import (
    IndexOutOfRangeError,
    InsufficientStorageError,
    InsufficientWorkspaceError,
    InvalidDimensionError,
    InvalidOptionError,
    InvalidStorageError,
)
from pylapack.core.matrix import (
    General,
    Symmetric,
    SymmetricPacked,
    Triangular,
    TriangularPacked,
    Vector,
    required_length,
)
from pylapack.core.options import Diag, Layout, HALF_UPLOS, TRIANGULAR_UPLOS, Uplo


def _is_integer(value: Any) -> bool:
    return isinstance(value, (int, np.integer)) and not isinstance(value, (bool, np.bool_))


def check_dimension(value: Any, name: str) -> None:
    """
    Verify a matrix or vector extent is a non-negative integer.

    Raises:
        InvalidDimensionError: If value is not an integer or is negative
    """
    if not _is_integer(value):
        raise InvalidDimensionError(
            f"{name}: expected an integer dimension, got {type(value).__name__}",
            param=name, actual=value, expected='integer >= 0',
        )
    if value < 0:
        raise InvalidDimensionError(
            f"{name}: negative dimension {value}",
            param=name, actual=value, expected='>= 0',
        )


def check_stride(stride: Any, minor: int, name: str) -> None:
    """
    Verify a stride (leading dimension) covers the minor dimension.

    Raises:
        InvalidDimensionError: If stride < max(1, minor)
    """
    minimum = max(1, minor)
    if not _is_integer(stride):
        raise InvalidDimensionError(
            f"{name}: expected an integer stride, got {type(stride).__name__}",
            param=name, actual=stride, expected=f'>= {minimum}',
        )
    if stride < minimum:
        raise InvalidDimensionError(
            f"{name}: stride {stride} is less than the minimum {minimum}",
            param=name, actual=stride, expected=f'>= {minimum}',
        )


def check_storage_array(data: Any, name: str, integer: bool = False) -> None:
    """
    Verify storage is a 1-D ndarray of float64 (or of an integer type).

    Raises:
        InvalidStorageError: If data is not an ndarray, is not 1-D, or has
            the wrong element type
    """
    if not isinstance(data, np.ndarray):
        raise InvalidStorageError(
            f"{name}: expected numpy.ndarray storage, got {type(data).__name__}",
            param=name, actual=type(data).__name__, expected='numpy.ndarray',
        )
    if data.ndim != 1:
        raise InvalidStorageError(
            f"{name}: expected 1-D storage, got {data.ndim}D with shape {data.shape}",
            param=name, actual=data.shape, expected='1-D',
        )
    if integer:
        if not np.issubdtype(data.dtype, np.integer):
            raise InvalidStorageError(
                f"{name}: expected integer storage, got dtype {data.dtype}",
                param=name, actual=data.dtype, expected='integer dtype',
            )
    elif data.dtype != np.float64:
        raise InvalidStorageError(
            f"{name}: expected float64 storage, got dtype {data.dtype}",
            param=name, actual=data.dtype, expected='float64',
        )


def check_length(data: NDArray[Any], length: int, name: str, integer: bool = False) -> None:
    """
    Verify a plain array holds at least `length` elements.

    Raises:
        InvalidStorageError: If data is not suitable storage
        InsufficientStorageError: If data is too short
    """
    check_storage_array(data, name, integer=integer)
    if len(data) < length:
        raise InsufficientStorageError(
            f"{name}: has {len(data)} elements, needs at least {length}",
            param=name, actual=len(data), expected=f'>= {length}',
        )


def check_matrix(rows: int, cols: int, data: Any, stride: int, name: str) -> None:
    """
    Verify a row-major rows x cols matrix argument.

    Checks dimensions, storage type, stride and storage length, in that
    order.

    Raises:
        InvalidDimensionError: If a dimension or the stride is invalid
        InvalidStorageError: If data is not 1-D float64 storage
        InsufficientStorageError: If data is too short for the extent
    """
    check_dimension(rows, f"{name}: rows")
    check_dimension(cols, f"{name}: cols")
    check_storage_array(data, name)
    check_stride(stride, cols, f"ld{name}")
    need = required_length(rows, cols, stride)
    if len(data) < need:
        raise InsufficientStorageError(
            f"{name}: has {len(data)} elements, a {rows}x{cols} matrix with "
            f"stride {stride} needs {need}",
            param=name, actual=len(data), expected=f'>= {need}',
        )


def check_vector(n: int, data: Any, inc: Any, name: str) -> None:
    """
    Verify a strided vector argument of n elements.

    Raises:
        InvalidDimensionError: If n is negative or inc is not positive
        InsufficientStorageError: If data is too short
    """
    check_dimension(n, f"{name}: n")
    check_storage_array(data, name)
    if not _is_integer(inc) or inc <= 0:
        raise InvalidDimensionError(
            f"inc{name}: increment must be a positive integer, got {inc!r}",
            param=f"inc{name}", actual=inc, expected='> 0',
        )
    need = 0 if n == 0 else 1 + (n - 1) * inc
    if len(data) < need:
        raise InsufficientStorageError(
            f"{name}: has {len(data)} elements, {n} elements with increment "
            f"{inc} need {need}",
            param=name, actual=len(data), expected=f'>= {need}',
        )


def check_option(
    value: Any,
    enum_cls: type[Enum],
    name: str,
    allowed: Iterable[Enum] | None = None,
) -> None:
    """
    Verify an enumerated argument is a member of enum_cls (and of allowed).

    Never defaults: anything else, including the member's raw value or
    its character code, is rejected.

    Raises:
        InvalidOptionError: If value is outside the accepted set
    """
    valid = tuple(allowed) if allowed is not None else tuple(enum_cls)
    if not isinstance(value, enum_cls) or value not in valid:
        names = ", ".join(member.name for member in valid)
        raise InvalidOptionError(
            f"{name}: {value!r} is not one of {{{names}}}",
            param=name, actual=value, expected=valid,
        )


def check_workspace(work: Any, lwork: Any, minimum: int, name: str = 'work') -> None:
    """
    Verify a workspace against the routine's declared minimum.

    Raises:
        InvalidStorageError: If work is not 1-D float64 storage
        InsufficientWorkspaceError: If lwork < minimum or len(work) < lwork
    """
    check_storage_array(work, name)
    if not _is_integer(lwork) or lwork < minimum:
        raise InsufficientWorkspaceError(
            f"l{name}: {lwork!r} is less than the minimum workspace {minimum}",
            param=f"l{name}", actual=lwork, expected=f'>= {minimum}',
        )
    if len(work) < lwork:
        raise InsufficientWorkspaceError(
            f"{name}: has {len(work)} elements, shorter than declared l{name}={lwork}",
            param=name, actual=len(work), expected=f'>= {lwork}',
        )


def check_index(value: Any, low: int, high: int, name: str) -> None:
    """
    Verify low <= value < high.

    Raises:
        IndexOutOfRangeError: If value is not an integer in range
    """
    if not _is_integer(value) or not low <= value < high:
        raise IndexOutOfRangeError(
            f"{name}: {value!r} is outside [{low}, {high})",
            param=name, actual=value, expected=f'[{low}, {high})',
        )


def check_pivots(ipiv: NDArray[np.integer], count: int, n: int, name: str = 'ipiv') -> None:
    """
    Verify the first `count` pivot indices lie in [0, n).

    Raises:
        IndexOutOfRangeError: On the first offending entry
    """
    check_length(ipiv, count, name, integer=True)
    values = ipiv[:count]
    bad = np.flatnonzero((values < 0) | (values >= n))
    if len(bad) > 0:
        k = int(bad[0])
        raise IndexOutOfRangeError(
            f"{name}[{k}]: pivot {int(values[k])} is outside [0, {n})",
            param=f"{name}[{k}]", actual=int(values[k]), expected=f'[0, {n})',
        )


def check_block_bounds(ilo: Any, ihi: Any, n: int) -> None:
    """
    Verify an inclusive 0-based active block [ilo, ihi] of an n x n matrix.

    For n == 0 the only valid block is ilo = 0, ihi = -1.

    Raises:
        IndexOutOfRangeError: If ilo or ihi is out of range
    """
    check_index(ilo, 0, max(0, n - 1) + 1, 'ilo')
    check_index(ihi, min(ilo, n - 1), n, 'ihi')


# === Descriptor well-formedness ===

def _check_layout(layout: Any, name: str) -> None:
    check_option(layout, Layout, f"{name}.layout")


def check_general(m: General, name: str) -> None:
    """Verify a General descriptor (either layout)."""
    check_dimension(m.rows, f"{name}.rows")
    check_dimension(m.cols, f"{name}.cols")
    _check_layout(m.layout, name)
    check_storage_array(m.data, f"{name}.data")
    check_stride(m.stride, m.minor, f"{name}.stride")
    _check_required(m.data, m.required_length, name)


def check_symmetric(m: Symmetric, name: str) -> None:
    """Verify a Symmetric descriptor (either layout)."""
    check_dimension(m.n, f"{name}.n")
    check_option(m.uplo, Uplo, f"{name}.uplo", allowed=HALF_UPLOS)
    _check_layout(m.layout, name)
    check_storage_array(m.data, f"{name}.data")
    check_stride(m.stride, m.n, f"{name}.stride")
    _check_required(m.data, m.required_length, name)


def check_triangular(m: Triangular, name: str) -> None:
    """Verify a Triangular descriptor (either layout)."""
    check_dimension(m.n, f"{name}.n")
    check_option(m.uplo, Uplo, f"{name}.uplo", allowed=TRIANGULAR_UPLOS)
    check_option(m.diag, Diag, f"{name}.diag")
    _check_layout(m.layout, name)
    check_storage_array(m.data, f"{name}.data")
    check_stride(m.stride, m.n, f"{name}.stride")
    _check_required(m.data, m.required_length, name)


def check_packed(m: SymmetricPacked | TriangularPacked, name: str) -> None:
    """Verify a packed descriptor; All is never a packed half."""
    check_dimension(m.n, f"{name}.n")
    check_option(m.uplo, Uplo, f"{name}.uplo", allowed=HALF_UPLOS)
    if isinstance(m, TriangularPacked):
        check_option(m.diag, Diag, f"{name}.diag")
    _check_layout(m.layout, name)
    check_storage_array(m.data, f"{name}.data")
    _check_required(m.data, m.required_length, name)


def check_vector_view(v: Vector, name: str) -> None:
    """Verify a Vector descriptor."""
    check_vector(v.n, v.data, v.inc, name)


def check_descriptor(m: Any, name: str) -> None:
    """
    Verify any descriptor is well-formed.

    Raises:
        TypeError: If m is not a pylapack descriptor
        ValidationError: (subclass) on the first failed invariant
    """
    if isinstance(m, General):
        check_general(m, name)
    elif isinstance(m, Symmetric):
        check_symmetric(m, name)
    elif isinstance(m, Triangular):
        check_triangular(m, name)
    elif isinstance(m, (SymmetricPacked, TriangularPacked)):
        check_packed(m, name)
    elif isinstance(m, Vector):
        check_vector_view(m, name)
    else:
        raise TypeError(f"{name}: not a matrix descriptor: {type(m).__name__}")


def _check_required(data: NDArray[Any], need: int, name: str) -> None:
    if len(data) < need:
        raise InsufficientStorageError(
            f"{name}: storage has {len(data)} elements, needs {need}",
            param=f"{name}.data", actual=len(data), expected=f'>= {need}',
        )
