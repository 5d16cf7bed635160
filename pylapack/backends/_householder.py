"""
Elementary reflector kernels for the native backend.

An elementary reflector is H = I - tau * v * v^T with v[0] = 1. The
unblocked QR/LQ kernels below store v[1:] in the zeroed part of the
matrix and tau in a separate vector, exactly as LAPACK does, so that the
factorizations produced here can be consumed by any backend.

All matrix arguments are 2-D ndarray views over caller storage; writes go
straight through to that storage.

Q from a QR factorization is H(0) H(1) ... H(k-1), with v(i) stored in
column i below the diagonal. Q from an LQ factorization is
H(k-1) ... H(1) H(0), with v(i) stored in row i right of the diagonal.
"""

import math

import numpy as np
from numpy.typing import NDArray

from pylapack.core.options import Side, Transpose

# Safe minimum over relative machine precision, as in dlarfg.
_SAFMIN = np.finfo(np.float64).tiny / (np.finfo(np.float64).eps / 2)
_MAX_RESCALE = 20


def larfg(n: int, alpha: float, x: NDArray[np.float64]) -> tuple[float, float]:
    """
    Generate H such that H * [alpha; x] = [beta; 0].

    x (n-1 elements) is overwritten with v[1:].

    Returns:
        (beta, tau); tau == 0 means H is the identity
    """
    if n <= 1:
        return alpha, 0.0
    xnorm = float(np.linalg.norm(x))
    if xnorm == 0:
        return alpha, 0.0
    beta = -math.copysign(math.hypot(alpha, xnorm), alpha)
    knt = 0
    if abs(beta) < _SAFMIN:
        # xnorm and beta may be inaccurate; scale x and recompute them.
        rsafmn = 1 / _SAFMIN
        while True:
            knt += 1
            x *= rsafmn
            beta *= rsafmn
            alpha *= rsafmn
            if abs(beta) >= _SAFMIN or knt >= _MAX_RESCALE:
                break
        xnorm = float(np.linalg.norm(x))
        beta = -math.copysign(math.hypot(alpha, xnorm), alpha)
    tau = (beta - alpha) / beta
    x *= 1 / (alpha - beta)
    for _ in range(knt):
        beta *= _SAFMIN
    return beta, tau


def apply_left(v: NDArray[np.float64], tau: float, c: NDArray[np.float64]) -> None:
    """C = H * C."""
    if tau == 0 or c.size == 0:
        return
    w = v @ c
    c -= tau * np.outer(v, w)


def apply_right(v: NDArray[np.float64], tau: float, c: NDArray[np.float64]) -> None:
    """C = C * H."""
    if tau == 0 or c.size == 0:
        return
    w = c @ v
    c -= tau * np.outer(w, v)


def apply(side: Side, v: NDArray[np.float64], tau: float, c: NDArray[np.float64]) -> None:
    if side is Side.Left:
        apply_left(v, tau, c)
    else:
        apply_right(v, tau, c)


def _unit(tail: NDArray[np.float64]) -> NDArray[np.float64]:
    v = np.empty(len(tail) + 1)
    v[0] = 1.0
    v[1:] = tail
    return v


def geqr2(a: NDArray[np.float64], tau: NDArray[np.float64]) -> None:
    """Unblocked QR factorization of the m x n view a."""
    m, n = a.shape
    for i in range(min(m, n)):
        beta, tau[i] = larfg(m - i, a[i, i], a[i + 1:, i])
        a[i, i] = beta
        if i < n - 1:
            apply_left(_unit(a[i + 1:, i]), tau[i], a[i:, i + 1:])


def gelq2(a: NDArray[np.float64], tau: NDArray[np.float64]) -> None:
    """Unblocked LQ factorization of the m x n view a."""
    m, n = a.shape
    for i in range(min(m, n)):
        beta, tau[i] = larfg(n - i, a[i, i], a[i, i + 1:])
        a[i, i] = beta
        if i < m - 1:
            apply_right(_unit(a[i, i + 1:]), tau[i], a[i + 1:, i:])


def org2r(a: NDArray[np.float64], k: int, tau: NDArray[np.float64]) -> None:
    """Overwrite the m x n view a with the first n columns of Q from geqr2."""
    m, n = a.shape
    for j in range(k, n):
        a[:, j] = 0
        a[j, j] = 1
    for i in range(k - 1, -1, -1):
        if i < n - 1:
            a[i, i] = 1
            apply_left(a[i:, i].copy(), tau[i], a[i:, i + 1:])
        if i < m - 1:
            a[i + 1:, i] *= -tau[i]
        a[i, i] = 1 - tau[i]
        a[:i, i] = 0


def orgl2(a: NDArray[np.float64], k: int, tau: NDArray[np.float64]) -> None:
    """Overwrite the m x n view a with the first m rows of Q from gelq2."""
    m, n = a.shape
    if k < m:
        a[k:, :] = 0
        for j in range(k, m):
            a[j, j] = 1
    for i in range(k - 1, -1, -1):
        if i < n - 1:
            if i < m - 1:
                a[i, i] = 1
                apply_right(a[i, i:].copy(), tau[i], a[i + 1:, i:])
            a[i, i + 1:] *= -tau[i]
        a[i, i] = 1 - tau[i]
        a[i, :i] = 0


def _forward(side: Side, trans: Transpose, reversed_product: bool) -> bool:
    notran = trans is Transpose.NoTrans
    left = side is Side.Left
    if reversed_product:
        return left == notran
    return left != notran


def orm2r(
    side: Side,
    trans: Transpose,
    a: NDArray[np.float64],
    k: int,
    tau: NDArray[np.float64],
    c: NDArray[np.float64],
) -> None:
    """
    Overwrite C with Q*C, Q^T*C, C*Q or C*Q^T for Q from geqr2.

    a holds the reflectors in its first k columns.
    """
    order = range(k) if _forward(side, trans, False) else range(k - 1, -1, -1)
    for i in order:
        v = _unit(a[i + 1:, i])
        if side is Side.Left:
            apply_left(v, tau[i], c[i:, :])
        else:
            apply_right(v, tau[i], c[:, i:])


def orml2(
    side: Side,
    trans: Transpose,
    a: NDArray[np.float64],
    k: int,
    tau: NDArray[np.float64],
    c: NDArray[np.float64],
) -> None:
    """
    Overwrite C with Q*C, Q^T*C, C*Q or C*Q^T for Q from gelq2.

    a holds the reflectors in its first k rows.
    """
    order = range(k) if _forward(side, trans, True) else range(k - 1, -1, -1)
    for i in order:
        v = _unit(a[i, i + 1:])
        if side is Side.Left:
            apply_left(v, tau[i], c[i:, :])
        else:
            apply_right(v, tau[i], c[:, i:])
