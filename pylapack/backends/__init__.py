"""
Routine backends.

Available backends:
    NativeBackend: self-contained NumPy/SciPy implementation, row-major, 0-based
    ExternalBackend: adapter over the compiled Fortran LAPACK shipped with SciPy

Backends receive validated primitive arguments only; use them through
pylapack.dispatch.Dispatcher.
"""

from pylapack.backends.native import NativeBackend
from pylapack.backends.external import ExternalBackend

__all__ = [
    "NativeBackend",
    "ExternalBackend",
]
