"""
pylapack: a LAPACK matrix-view and call-contract layer for Python.

Routines take row-major storage with explicit leading dimensions and
0-based indices. Every call is validated before any storage is touched,
then dispatched to a selectable backend.

Submodules:
    core: descriptors, layout conversion, validation, exceptions
    dispatch: Dispatcher, the validated routine catalog
    workspace: minimum workspace and the lwork == -1 size query
    aliasing: which results live in which argument's storage
    lapack64: descriptor-based convenience layer
    backends: native and external (compiled LAPACK) backends
"""

__version__ = "0.1.0"

from pylapack.core import (
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
    General,
    Symmetric,
    Triangular,
    SymmetricPacked,
    TriangularPacked,
    Vector,
    convert,
    as_layout,
    copy,
    pack,
    unpack,
    LapackBackend,
)
from pylapack.core.options import (
    BalanceJob,
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
from pylapack.dispatch import Dispatcher
from pylapack.workspace import QUERY, minimum_workspace
from pylapack import lapack64

__all__ = [
    "__version__",
    # Configuration
    "Dispatcher",
    "lapack64",
    "QUERY",
    "minimum_workspace",
    # Options
    "BalanceJob",
    "Diag",
    "EVComp",
    "EVJob",
    "Layout",
    "MatrixNorm",
    "SchurComp",
    "SchurJob",
    "Side",
    "SVDJob",
    "Transpose",
    "Uplo",
    # Descriptors and layout
    "General",
    "Symmetric",
    "Triangular",
    "SymmetricPacked",
    "TriangularPacked",
    "Vector",
    "convert",
    "as_layout",
    "copy",
    "pack",
    "unpack",
    "LapackBackend",
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
]
