"""
Exception hierarchy for pylapack.

All exceptions inherit from PyLapackError to allow catching any
library-specific error. Contract violations detected before dispatch
inherit from ValidationError and carry an ErrorKind tag, so callers that
prefer a result-style API can branch on ``err.kind`` instead of the class.

Design principles:
    - Exceptions carry diagnostic information as attributes
    - Error messages are actionable with actual vs expected values
    - Validation finishes before any storage is touched

Singular or not-positive-definite inputs are NOT exceptions: routines
report them through their ordinary return value.
"""

from enum import Enum
from typing import Any


class ErrorKind(Enum):
    """Contract-violation taxonomy."""
    INVALID_DIMENSION = 'invalid_dimension'
    INSUFFICIENT_STORAGE = 'insufficient_storage'
    INSUFFICIENT_WORKSPACE = 'insufficient_workspace'
    INVALID_OPTION = 'invalid_option'
    INDEX_OUT_OF_RANGE = 'index_out_of_range'
    INVALID_STORAGE = 'invalid_storage'


class PyLapackError(Exception):
    """Base exception for all pylapack errors."""
    pass


class ValidationError(PyLapackError):
    """
    A call-contract check failed.

    Raised synchronously at the violating call, before the backend is
    reached and before any argument storage is modified.

    Attributes:
        param: Name of the offending argument
        actual: The value that was supplied
        expected: Description of what was required
    """

    kind: ErrorKind | None = None

    def __init__(
        self,
        message: str,
        param: str | None = None,
        actual: Any = None,
        expected: Any = None,
    ):
        super().__init__(message)
        self.param = param
        self.actual = actual
        self.expected = expected


class InvalidDimensionError(ValidationError):
    """
    A dimension is negative or inconsistent with another argument.

    Also raised for a stride smaller than the minor dimension, and when
    two descriptors that must share a shape do not.
    """
    kind = ErrorKind.INVALID_DIMENSION


class InsufficientStorageError(ValidationError):
    """
    Backing storage is shorter than the stride and extent require.
    """
    kind = ErrorKind.INSUFFICIENT_STORAGE


class InsufficientWorkspaceError(ValidationError):
    """
    Workspace is shorter than the routine's declared minimum, or shorter
    than the declared lwork. Never raised on the size-query path.
    """
    kind = ErrorKind.INSUFFICIENT_WORKSPACE


class InvalidOptionError(ValidationError):
    """An enumerated argument is outside the set the routine accepts."""
    kind = ErrorKind.INVALID_OPTION


class IndexOutOfRangeError(ValidationError):
    """A pivot, permutation or block-boundary index is out of range."""
    kind = ErrorKind.INDEX_OUT_OF_RANGE


class InvalidStorageError(ValidationError):
    """Storage is not a 1-D ndarray of the required element type."""
    kind = ErrorKind.INVALID_STORAGE


class BackendError(PyLapackError):
    """
    A backend failed in a way the contract layer could not prevent.

    Attributes:
        backend_name: Identifier of the failing backend
        routine: Routine name, e.g. 'dgetrf'
        info: Raw status code reported by the backend, if any
    """

    def __init__(
        self,
        message: str,
        backend_name: str | None = None,
        routine: str | None = None,
        info: int | None = None,
    ):
        super().__init__(message)
        self.backend_name = backend_name
        self.routine = routine
        self.info = info


class BackendUnavailableError(BackendError):
    """The requested backend cannot be loaded in this environment."""
    pass
