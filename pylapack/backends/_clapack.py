"""
Access to the compiled Fortran LAPACK shipped with SciPy.

scipy.linalg.cython_lapack exports a C function pointer for every LAPACK
routine through its __pyx_capi__ table of PyCapsules. Each capsule is
named after the C signature of the routine, e.g.

    void (int *, int *, __pyx_t_..._d *, int *, int *, int *)

Following the Fortran ABI every argument is passed by reference, so each
entry point is called through ctypes with one pointer per argument; the
pointers are the data addresses of small NumPy arrays. Functions that
return a value (the dlan* norms) return a C double.

`.ctypes` addresses do not keep arrays alive: callers must hold a
reference to every array they pass until the call has returned.
"""

import ctypes
import logging
from functools import lru_cache
from typing import Any, Callable

import numpy as np
from numpy.typing import NDArray

from pylapack.core.exceptions import BackendError, BackendUnavailableError
from pylapack.backends.fortran import FORTRAN_INT

logger = logging.getLogger(__name__)

_capsule_name = ctypes.pythonapi.PyCapsule_GetName
_capsule_name.restype = ctypes.c_char_p
_capsule_name.argtypes = [ctypes.py_object]

_capsule_pointer = ctypes.pythonapi.PyCapsule_GetPointer
_capsule_pointer.restype = ctypes.c_void_p
_capsule_pointer.argtypes = [ctypes.py_object, ctypes.c_char_p]


def _exported_table() -> dict[str, Any]:
    try:
        from scipy.linalg import cython_lapack
    except ImportError as exc:
        raise BackendUnavailableError(
            f"scipy.linalg.cython_lapack cannot be imported: {exc}",
            backend_name='external',
        ) from exc
    table = getattr(cython_lapack, '__pyx_capi__', None)
    if not table:
        raise BackendUnavailableError(
            "scipy.linalg.cython_lapack exports no C API",
            backend_name='external',
        )
    return table


@lru_cache(maxsize=None)
def entry_point(routine: str) -> tuple[Callable[..., Any], int]:
    """
    ctypes callable for a LAPACK routine and its argument count.

    Raises:
        BackendUnavailableError: If the routine is not exported
    """
    table = _exported_table()
    capsule = table.get(routine)
    if capsule is None:
        raise BackendUnavailableError(
            f"{routine} is not exported by scipy.linalg.cython_lapack",
            backend_name='external', routine=routine,
        )
    signature = _capsule_name(capsule)
    address = _capsule_pointer(capsule, signature)
    text = signature.decode('ascii')
    restype = None if text.startswith('void') else ctypes.c_double
    nargs = text.count(',') + 1
    prototype = ctypes.CFUNCTYPE(restype, *([ctypes.c_void_p] * nargs))
    logger.debug("resolved %s: %s", routine, text)
    return prototype(address), nargs


def available() -> bool:
    """True when the compiled library can be reached."""
    try:
        entry_point('dgetrf')
    except BackendUnavailableError:
        return False
    return True


def call(routine: str, *args: NDArray[Any]) -> float | None:
    """
    Call a LAPACK routine with every argument given as an ndarray.

    Raises:
        BackendError: If the argument count does not match the signature
    """
    function, nargs = entry_point(routine)
    if len(args) != nargs:
        raise BackendError(
            f"{routine} takes {nargs} arguments, got {len(args)}",
            backend_name='external', routine=routine,
        )
    return function(*[arg.ctypes.data for arg in args])


def integer(value: int) -> NDArray[np.int32]:
    return np.array([value], dtype=FORTRAN_INT)


def character(code: str) -> NDArray[np.uint8]:
    return np.frombuffer(code.encode('ascii'), dtype=np.uint8).copy()


def double(value: float) -> NDArray[np.float64]:
    return np.array([value], dtype=np.float64)


def check_info(routine: str, info: NDArray[np.int32]) -> int:
    """
    Return a non-negative info value.

    Raises:
        BackendError: If info < 0, i.e. the library rejected an argument
    """
    value = int(info[0])
    if value < 0:
        raise BackendError(
            f"{routine} rejected argument {-value}",
            backend_name='external', routine=routine, info=value,
        )
    return value
