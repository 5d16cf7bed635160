"""
Core infrastructure for pylapack.

This package holds the matrix-view and call-contract layer shared by the
dispatcher, the backends and the descriptor-based convenience layer.

Key components:
    matrix: General, Symmetric, Triangular and packed descriptors
    layout: Row/column-major conversion, copies, packing
    validation: Call-contract checks
    exceptions: Exception hierarchy
    protocols: LapackBackend capability contract
    tolerances: Comparison tiers for backend agreement
"""

from pylapack.core.exceptions import (
    ErrorKind,
    PyLapackError,
    ValidationError,
    InvalidDimensionError,
    InsufficientStorageError,
    InsufficientWorkspaceError,
    InvalidOptionError,
    IndexOutOfRangeError,
    InvalidStorageError,
    BackendError,
    BackendUnavailableError,
)
from pylapack.core.matrix import (
    General,
    Symmetric,
    Triangular,
    SymmetricPacked,
    TriangularPacked,
    Vector,
)
from pylapack.core.layout import convert, as_layout, copy, pack, unpack
from pylapack.core.protocols import LapackBackend

__all__ = [
    # Exceptions
    "ErrorKind",
    "PyLapackError",
    "ValidationError",
    "InvalidDimensionError",
    "InsufficientStorageError",
    "InsufficientWorkspaceError",
    "InvalidOptionError",
    "IndexOutOfRangeError",
    "InvalidStorageError",
    "BackendError",
    "BackendUnavailableError",
    # Descriptors
    "General",
    "Symmetric",
    "Triangular",
    "SymmetricPacked",
    "TriangularPacked",
    "Vector",
    # Layout
    "convert",
    "as_layout",
    "copy",
    "pack",
    "unpack",
    # Protocols
    "LapackBackend",
]
