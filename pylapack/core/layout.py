"""
Layout conversion engine.

Moves the logically valid cells of a descriptor between row-major and
column-major storage, between strides, and between full and packed half
storage. Values are moved bit-for-bit; nothing is rounded or accumulated.

Only the cells a descriptor declares valid are read or written:
    General:              every cell
    Symmetric/Triangular: the uplo half, diagonal included exactly once
                          (every cell for a Triangular with Uplo.All)

A Unit diagonal is still moved, since the storage it occupies belongs to
the stored half even when its value is never used.

Freshly allocated storage is zero-filled; storage supplied through `out`
keeps whatever it held outside the valid cells.
"""

from __future__ import annotations

from typing import Any

import numpy as np

from pylapack.core.exceptions import InvalidDimensionError, InvalidOptionError
from pylapack.core.matrix import (
    General,
    Symmetric,
    SymmetricPacked,
    Triangular,
    TriangularPacked,
    required_length,
)
from pylapack.core.options import HALF_UPLOS, Layout, Uplo
from pylapack.core.validation import check_descriptor, check_option


def _opposite(layout: Layout) -> Layout:
    return Layout.ColMajor if layout is Layout.RowMajor else Layout.RowMajor


def _transfer(dst: Any, src: Any) -> None:
    rows, cols = src.cells()
    if len(rows) == 0:
        return
    dst.data[dst.offset(rows, cols)] = src.data[src.offset(rows, cols)]


def _check_same_shape(dst: Any, src: Any) -> None:
    if type(dst) is not type(src):
        raise InvalidDimensionError(
            f"cannot move a {type(src).__name__} into a {type(dst).__name__}",
            param='dst', actual=type(dst).__name__, expected=type(src).__name__,
        )
    if isinstance(src, General):
        same = (dst.rows, dst.cols) == (src.rows, src.cols)
        shape = f"{src.rows}x{src.cols}"
        got = f"{dst.rows}x{dst.cols}"
    else:
        same = dst.n == src.n
        shape = f"{src.n}x{src.n}"
        got = f"{dst.n}x{dst.n}"
    if not same:
        raise InvalidDimensionError(
            f"dimension mismatch: source is {shape}, destination is {got}",
            param='dst', actual=got, expected=shape,
        )
    if getattr(dst, 'uplo', None) is not getattr(src, 'uplo', None):
        raise InvalidOptionError(
            f"uplo mismatch: source {src.uplo.name}, destination {dst.uplo.name}",
            param='dst.uplo', actual=dst.uplo, expected=src.uplo,
        )
    if getattr(dst, 'diag', None) is not getattr(src, 'diag', None):
        raise InvalidOptionError(
            f"diag mismatch: source {src.diag.name}, destination {dst.diag.name}",
            param='dst.diag', actual=dst.diag, expected=src.diag,
        )


def _check_layout_is(m: Any, layout: Layout, name: str) -> None:
    if m.layout is not layout:
        raise InvalidOptionError(
            f"{name}: expected {layout.name} storage, got {m.layout.name}",
            param=f"{name}.layout", actual=m.layout, expected=layout,
        )


def _allocate_like(src: Any, layout: Layout) -> Any:
    """Fresh zeroed descriptor like src in `layout`, with the minimal stride."""
    if isinstance(src, General):
        minor = src.cols if layout is Layout.RowMajor else src.rows
        major = src.rows if layout is Layout.RowMajor else src.cols
        stride = max(1, minor)
        data = np.zeros(required_length(major, minor, stride))
        return General(src.rows, src.cols, stride, data, layout)
    if isinstance(src, (SymmetricPacked, TriangularPacked)):
        data = np.zeros(src.n * (src.n + 1) // 2)
        if isinstance(src, SymmetricPacked):
            return SymmetricPacked(src.n, data, src.uplo, layout)
        return TriangularPacked(src.n, data, src.uplo, src.diag, layout)
    stride = max(1, src.n)
    data = np.zeros(required_length(src.n, src.n, stride))
    if isinstance(src, Symmetric):
        return Symmetric(src.n, stride, data, src.uplo, layout)
    return Triangular(src.n, stride, data, src.uplo, src.diag, layout)


def convert(src: Any, out: Any = None) -> Any:
    """
    Convert a descriptor to the opposite layout.

    Args:
        src: General, Symmetric, Triangular or packed descriptor
        out: Optional destination of the same kind and shape in the
            opposite layout. When omitted, fresh storage with the minimal
            stride is allocated.

    Returns:
        The destination descriptor

    Raises:
        ValidationError: (subclass) if either descriptor is malformed or
            the two do not describe the same logical matrix
    """
    check_descriptor(src, 'src')
    target = _opposite(src.layout)
    if out is None:
        out = _allocate_like(src, target)
    else:
        check_descriptor(out, 'out')
        _check_same_shape(out, src)
        _check_layout_is(out, target, 'out')
    _transfer(out, src)
    return out


def as_layout(m: Any, layout: Layout) -> Any:
    """Return m if it is already stored in `layout`, else a converted copy."""
    check_option(layout, Layout, 'layout')
    if m.layout is layout:
        check_descriptor(m, 'm')
        return m
    return convert(m)


def copy(dst: Any, src: Any) -> None:
    """
    Copy the valid cells of src into dst.

    dst and src must agree on kind, shape, layout, uplo and diag; their
    strides may differ. Cells of dst outside the valid half are not
    written.

    Raises:
        ValidationError: (subclass) on a malformed or mismatched descriptor
    """
    check_descriptor(src, 'src')
    check_descriptor(dst, 'dst')
    _check_same_shape(dst, src)
    _check_layout_is(dst, src.layout, 'dst')
    _transfer(dst, src)


def _packed_twin(m: Symmetric | Triangular, data: Any) -> SymmetricPacked | TriangularPacked:
    if isinstance(m, Symmetric):
        return SymmetricPacked(m.n, data, m.uplo, m.layout)
    return TriangularPacked(m.n, data, m.uplo, m.diag, m.layout)


def pack(src: Symmetric | Triangular, out: Any = None) -> SymmetricPacked | TriangularPacked:
    """
    Pack the stored half of a Symmetric or Triangular matrix.

    The packed result keeps the layout of src. Uplo.All has no packed form.
    """
    if not isinstance(src, (Symmetric, Triangular)):
        raise TypeError(f"pack expects Symmetric or Triangular, got {type(src).__name__}")
    check_descriptor(src, 'src')
    check_option(src.uplo, Uplo, 'src.uplo', allowed=HALF_UPLOS)
    if out is None:
        out = _packed_twin(src, np.zeros(src.n * (src.n + 1) // 2))
    else:
        check_descriptor(out, 'out')
        _check_same_shape(out, _packed_twin(src, out.data))
        _check_layout_is(out, src.layout, 'out')
    _transfer(out, src)
    return out


def unpack(src: SymmetricPacked | TriangularPacked, out: Any = None) -> Symmetric | Triangular:
    """
    Expand packed half storage into full storage of the same layout.

    Without `out` the result has stride max(1, n) and zeros outside the
    stored half.
    """
    if not isinstance(src, (SymmetricPacked, TriangularPacked)):
        raise TypeError(
            f"unpack expects SymmetricPacked or TriangularPacked, got {type(src).__name__}"
        )
    check_descriptor(src, 'src')
    if out is None:
        stride = max(1, src.n)
        data = np.zeros(required_length(src.n, src.n, stride))
        if isinstance(src, SymmetricPacked):
            out = Symmetric(src.n, stride, data, src.uplo, src.layout)
        else:
            out = Triangular(src.n, stride, data, src.uplo, src.diag, src.layout)
    else:
        if not isinstance(out, (Symmetric, Triangular)):
            raise TypeError(
                f"unpack writes into Symmetric or Triangular, got {type(out).__name__}"
            )
        check_descriptor(out, 'out')
        _check_same_shape(_packed_twin(out, out.data), src)
        _check_layout_is(out, src.layout, 'out')
    _transfer(out, src)
    return out
