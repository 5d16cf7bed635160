"""
Agreement between the native backend and the compiled LAPACK adapter.

Both backends receive identical row-major storage; outputs are compared
with the tolerance tier for the routine. These tests exercise the whole
adapter path: row-major to column-major conversion, option codes, 0/1
index translation and the library's own workspace query.
"""

import numpy as np
import pytest

from pylapack.backends import _clapack
from pylapack.core.options import (
    BalanceJob,
    Diag,
    EVComp,
    EVJob,
    MatrixNorm,
    SchurComp,
    SchurJob,
    Side,
    SVDJob,
    Transpose,
    Uplo,
)
from pylapack.core.tolerances import select_tolerance
from pylapack.dispatch import Dispatcher
from pylapack.workspace import minimum_workspace

pytestmark = pytest.mark.skipif(
    not _clapack.available(),
    reason="compiled LAPACK not reachable through scipy",
)


@pytest.fixture
def external():
    return Dispatcher('external')


def _work(routine, **params):
    size = minimum_workspace(routine, **params)
    return np.zeros(size), size


def _assert_agree(routine, actual, expected):
    tol = select_tolerance(routine)
    np.testing.assert_allclose(actual, expected, rtol=tol.rtol, atol=tol.atol)


def _both(native, external, routine, make_args, pick):
    """Run `routine` on both backends with fresh arguments; return picked outputs."""
    results = []
    for dispatcher in (native, external):
        args = make_args()
        value = getattr(dispatcher, routine)(*args)
        results.append(pick(value, args))
    return results


def _assert_estimate(exact, estimate):
    """An rcond estimate never falls below the exact value and stays within a small factor."""
    assert exact > 0
    assert estimate >= exact * (1 - 1e-10)
    assert estimate <= 10 * exact


def _lu(native, matrix, as_storage):
    n = len(matrix)
    a = as_storage(matrix)
    ipiv = np.zeros(n, dtype=np.intp)
    assert native.dgetrf(n, n, a, n, ipiv)
    return a, ipiv


def _factor(native, routine, matrix, as_storage):
    """Reflectors and tau of a native QR or LQ factorization of matrix."""
    m, n = matrix.shape
    a = as_storage(matrix)
    tau = np.zeros(min(m, n))
    params = {'n': n} if routine == 'dgeqrf' else {'m': m}
    getattr(native, routine)(m, n, a, n, tau, *_work(routine, **params))
    return a, tau


def _align_signs(reference, vectors):
    """Flip columns of vectors to point the same way as the matching reference columns."""
    signs = np.sign(np.sum(reference * vectors, axis=0))
    signs[signs == 0] = 1
    return vectors * signs


# ═══════════════════════════════════════════════════════════════════════
# Factorizations and solves
# ═══════════════════════════════════════════════════════════════════════


class TestFactorizations:

    @pytest.mark.parametrize("uplo", [Uplo.Upper, Uplo.Lower])
    def test_potrf_writes_only_stored_half(self, native, external, spd_matrix, uplo,
                                           as_storage):
        def make():
            a = as_storage(spd_matrix, stride=6)
            if uplo is Uplo.Upper:
                for i in range(5):
                    a[i * 6:i * 6 + i] = np.nan
            else:
                for i in range(5):
                    a[i * 6 + i + 1:i * 6 + 5] = np.nan
            return uplo, 5, a, 6

        ours, theirs = _both(native, external, 'dpotrf', make, lambda ok, args: (ok, args[2]))
        assert ours[0] and theirs[0]
        np.testing.assert_array_equal(np.isnan(ours[1]), np.isnan(theirs[1]))
        mask = ~np.isnan(ours[1])
        _assert_agree('dpotrf', theirs[1][mask], ours[1][mask])

    def test_getrf_pivots_are_zero_based(self, native, external, general_matrix, as_storage):
        def make():
            return 5, 5, as_storage(general_matrix), 5, np.full(5, -1, dtype=np.intp)

        ours, theirs = _both(native, external, 'dgetrf', make,
                             lambda ok, args: (ok, args[2], args[4]))
        assert ours[0] and theirs[0]
        np.testing.assert_array_equal(theirs[2], ours[2])
        assert theirs[2].min() >= 0
        _assert_agree('dgetrf', theirs[1], ours[1])

    def test_getrs_with_translated_pivots(self, external, general_matrix, rng, as_storage,
                                          as_array):
        a = as_storage(general_matrix)
        ipiv = np.zeros(5, dtype=np.intp)
        external.dgetrf(5, 5, a, 5, ipiv)
        rhs = rng.standard_normal((5, 2))
        b = as_storage(rhs)
        external.dgetrs(Transpose.NoTrans, 5, 2, a, 5, ipiv, b, 2)
        _assert_agree('dgetrs', general_matrix @ as_array(b, 5, 2, 2), rhs)

    def test_gels(self, native, external, tall_matrix, rng, as_storage):
        rhs = rng.standard_normal((7, 2))

        def make():
            work, lwork = _work('dgels', m=7, n=4, nrhs=2)
            return (Transpose.NoTrans, 7, 4, 2, as_storage(tall_matrix), 4, as_storage(rhs), 2,
                    work, lwork)

        ours, theirs = _both(native, external, 'dgels', make, lambda ok, args: args[6][:8])
        _assert_agree('dgels', theirs, ours)

    def test_geqrf_tau_and_reflectors(self, native, external, tall_matrix, as_storage):
        def make():
            work, lwork = _work('dgeqrf', n=4)
            return 7, 4, as_storage(tall_matrix), 4, np.zeros(4), work, lwork

        ours, theirs = _both(native, external, 'dgeqrf', make,
                             lambda _, args: np.concatenate([args[2], args[4]]))
        _assert_agree('dgeqrf', theirs, ours)

    def test_larfg(self, native, external, rng):
        tail = rng.standard_normal(4)
        ours, theirs = _both(native, external, 'dlarfg', lambda: (5, 0.3, tail.copy(), 1),
                             lambda value, args: np.r_[value[0], value[1], args[2]])
        _assert_agree('dlarfg', theirs, ours)


class TestCholeskyAndLU:

    @pytest.fixture
    def factor(self, native, spd_matrix, as_storage):
        def make(uplo):
            a = as_storage(spd_matrix)
            assert native.dpotrf(uplo, 5, a, 5)
            return a
        return make

    @pytest.mark.parametrize("uplo", [Uplo.Upper, Uplo.Lower])
    def test_potrs(self, native, external, factor, rng, uplo, as_storage):
        a = factor(uplo)
        rhs = rng.standard_normal((5, 2))
        ours, theirs = _both(native, external, 'dpotrs',
                             lambda: (uplo, 5, 2, a.copy(), 5, as_storage(rhs), 2),
                             lambda _, args: args[5])
        _assert_agree('dpotrs', theirs, ours)

    @pytest.mark.parametrize("uplo", [Uplo.Upper, Uplo.Lower])
    def test_potri_writes_same_half(self, native, external, factor, uplo):
        a = factor(uplo)
        ours, theirs = _both(native, external, 'dpotri', lambda: (uplo, 5, a.copy(), 5),
                             lambda ok, args: (ok, args[2]))
        assert ours[0] and theirs[0]
        _assert_agree('dpotri', theirs[1], ours[1])

    @pytest.mark.parametrize("uplo", [Uplo.Upper, Uplo.Lower])
    def test_pocon_bounds_exact(self, native, external, factor, spd_matrix, uplo):
        a = factor(uplo)
        anorm = np.abs(spd_matrix).sum(axis=0).max()
        ours, theirs = _both(
            native, external, 'dpocon',
            lambda: (uplo, 5, a.copy(), 5, anorm, *_work('dpocon', n=5), np.zeros(5, dtype=np.intp)),
            lambda value, _: value,
        )
        _assert_estimate(ours, theirs)

    @pytest.mark.parametrize("uplo", [Uplo.Upper, Uplo.Lower])
    def test_pptrf_packed(self, native, external, spd_matrix, uplo):
        rows, cols = np.triu_indices(5) if uplo is Uplo.Upper else np.tril_indices(5)
        ours, theirs = _both(native, external, 'dpptrf',
                             lambda: (uplo, 5, spd_matrix[rows, cols].copy()),
                             lambda ok, args: (ok, args[2]))
        assert ours[0] and theirs[0]
        _assert_agree('dpptrf', theirs[1], ours[1])

    def test_getri(self, native, external, general_matrix, as_storage):
        lu, ipiv = _lu(native, general_matrix, as_storage)
        ours, theirs = _both(native, external, 'dgetri',
                             lambda: (5, lu.copy(), 5, ipiv.copy(), *_work('dgetri', n=5)),
                             lambda ok, args: (ok, args[1]))
        assert ours[0] and theirs[0]
        _assert_agree('dgetri', theirs[1], ours[1])

    @pytest.mark.parametrize("norm, order", [
        (MatrixNorm.MaxColumnSum, 1),
        (MatrixNorm.MaxRowSum, np.inf),
    ])
    def test_gecon_bounds_exact(self, native, external, general_matrix, norm, order, as_storage):
        lu, ipiv = _lu(native, general_matrix, as_storage)
        anorm = np.linalg.norm(general_matrix, order)
        ours, theirs = _both(
            native, external, 'dgecon',
            lambda: (norm, 5, lu.copy(), 5, anorm, *_work('dgecon', n=5), np.zeros(5, dtype=np.intp)),
            lambda value, _: value,
        )
        _assert_estimate(ours, theirs)


class TestOrthogonal:

    def test_gelqf_tau_and_reflectors(self, native, external, tall_matrix, as_storage):
        wide = tall_matrix.T.copy()

        def make():
            return 4, 7, as_storage(wide), 7, np.zeros(4), *_work('dgelqf', m=4)

        ours, theirs = _both(native, external, 'dgelqf', make,
                             lambda _, args: np.concatenate([args[2], args[4]]))
        _assert_agree('dgelqf', theirs, ours)

    def test_orgqr(self, native, external, tall_matrix, as_storage):
        a, tau = _factor(native, 'dgeqrf', tall_matrix, as_storage)
        ours, theirs = _both(native, external, 'dorgqr',
                             lambda: (7, 4, 4, a.copy(), 4, tau.copy(), *_work('dorgqr', n=4)),
                             lambda _, args: args[3])
        _assert_agree('dorgqr', theirs, ours)

    def test_orglq(self, native, external, tall_matrix, as_storage):
        a, tau = _factor(native, 'dgelqf', tall_matrix.T.copy(), as_storage)
        ours, theirs = _both(native, external, 'dorglq',
                             lambda: (4, 7, 4, a.copy(), 7, tau.copy(), *_work('dorglq', m=4)),
                             lambda _, args: args[3])
        _assert_agree('dorglq', theirs, ours)

    @pytest.mark.parametrize("side", [Side.Left, Side.Right])
    @pytest.mark.parametrize("trans", [Transpose.NoTrans, Transpose.Trans])
    def test_ormqr(self, native, external, tall_matrix, rng, side, trans, as_storage):
        a, tau = _factor(native, 'dgeqrf', tall_matrix, as_storage)
        m, n = (7, 3) if side is Side.Left else (3, 7)
        cmat = rng.standard_normal((m, n))

        def make():
            return (side, trans, m, n, 4, a.copy(), 4, tau.copy(), as_storage(cmat), n,
                    *_work('dormqr', side=side, m=m, n=n))

        ours, theirs = _both(native, external, 'dormqr', make, lambda _, args: args[8])
        _assert_agree('dormqr', theirs, ours)

    @pytest.mark.parametrize("side", [Side.Left, Side.Right])
    @pytest.mark.parametrize("trans", [Transpose.NoTrans, Transpose.Trans])
    def test_ormlq(self, native, external, tall_matrix, rng, side, trans, as_storage):
        a, tau = _factor(native, 'dgelqf', tall_matrix.T.copy(), as_storage)
        m, n = (7, 3) if side is Side.Left else (3, 7)
        cmat = rng.standard_normal((m, n))

        def make():
            return (side, trans, m, n, 4, a.copy(), 7, tau.copy(), as_storage(cmat), n,
                    *_work('dormlq', side=side, m=m, n=n))

        ours, theirs = _both(native, external, 'dormlq', make, lambda _, args: args[8])
        _assert_agree('dormlq', theirs, ours)

    @pytest.mark.parametrize("side", [Side.Left, Side.Right])
    def test_larf(self, native, external, rng, side, as_storage):
        m, n = 4, 5
        v = rng.standard_normal(m if side is Side.Left else n)
        v[0] = 1.0
        cmat = rng.standard_normal((m, n))

        def make():
            return (side, m, n, v.copy(), 1, 1.3, as_storage(cmat), n,
                    *_work('dlarf', side=side, m=m, n=n))

        ours, theirs = _both(native, external, 'dlarf', make, lambda _, args: args[6])
        _assert_agree('dlarf', theirs, ours)


# ═══════════════════════════════════════════════════════════════════════
# Norms and copies
# ═══════════════════════════════════════════════════════════════════════


class TestNormsAndCopies:

    @pytest.mark.parametrize("norm", list(MatrixNorm))
    def test_lansy(self, native, external, spd_matrix, norm, as_storage):
        def make():
            work, lwork = _work('dlansy', norm=norm, n=5)
            return norm, Uplo.Lower, 5, as_storage(spd_matrix), 5, work, lwork

        ours, theirs = _both(native, external, 'dlansy', make, lambda value, _: value)
        _assert_agree('dlansy', theirs, ours)

    def test_lacpy_is_exact(self, native, external, general_matrix, as_storage):
        def make():
            return Uplo.Upper, 5, 5, as_storage(general_matrix), 5, np.full(25, np.nan), 5

        ours, theirs = _both(native, external, 'dlacpy', make, lambda _, args: args[5])
        np.testing.assert_array_equal(theirs, ours)

    @pytest.mark.parametrize("norm", list(MatrixNorm))
    def test_lange(self, native, external, tall_matrix, norm, as_storage):
        def make():
            return norm, 7, 4, as_storage(tall_matrix), 4, *_work('dlange', norm=norm, n=4)

        ours, theirs = _both(native, external, 'dlange', make, lambda value, _: value)
        _assert_agree('dlange', theirs, ours)

    @pytest.mark.parametrize("norm", list(MatrixNorm))
    @pytest.mark.parametrize("uplo", [Uplo.Upper, Uplo.Lower])
    @pytest.mark.parametrize("diag", [Diag.NonUnit, Diag.Unit])
    def test_lantr(self, native, external, general_matrix, norm, uplo, diag, as_storage):
        def make():
            return (norm, uplo, diag, 5, 5, as_storage(general_matrix), 5,
                    *_work('dlantr', norm=norm, n=5))

        ours, theirs = _both(native, external, 'dlantr', make, lambda value, _: value)
        _assert_agree('dlantr', theirs, ours)


# ═══════════════════════════════════════════════════════════════════════
# Triangular routines
# ═══════════════════════════════════════════════════════════════════════


class TestTriangular:

    @pytest.mark.parametrize("uplo", [Uplo.Upper, Uplo.Lower])
    @pytest.mark.parametrize("diag", [Diag.NonUnit, Diag.Unit])
    def test_trtri(self, native, external, general_matrix, uplo, diag, as_storage):
        ours, theirs = _both(native, external, 'dtrtri',
                             lambda: (uplo, diag, 5, as_storage(general_matrix), 5),
                             lambda ok, args: (ok, args[3]))
        assert ours[0] and theirs[0]
        _assert_agree('dtrtri', theirs[1], ours[1])

    @pytest.mark.parametrize("uplo", [Uplo.Upper, Uplo.Lower])
    @pytest.mark.parametrize("trans", [Transpose.NoTrans, Transpose.Trans])
    @pytest.mark.parametrize("diag", [Diag.NonUnit, Diag.Unit])
    def test_trtrs(self, native, external, general_matrix, rng, uplo, trans, diag, as_storage):
        rhs = rng.standard_normal((5, 2))

        def make():
            return uplo, trans, diag, 5, 2, as_storage(general_matrix), 5, as_storage(rhs), 2

        ours, theirs = _both(native, external, 'dtrtrs', make, lambda ok, args: (ok, args[7]))
        assert ours[0] and theirs[0]
        _assert_agree('dtrtrs', theirs[1], ours[1])

    @pytest.mark.parametrize("norm", [MatrixNorm.MaxColumnSum, MatrixNorm.MaxRowSum])
    @pytest.mark.parametrize("uplo", [Uplo.Upper, Uplo.Lower])
    @pytest.mark.parametrize("diag", [Diag.NonUnit, Diag.Unit])
    def test_trcon_bounds_exact(self, native, external, general_matrix, norm, uplo, diag,
                                as_storage):
        def make():
            return (norm, uplo, diag, 5, as_storage(general_matrix), 5, *_work('dtrcon', n=5),
                    np.zeros(5, dtype=np.intp))

        ours, theirs = _both(native, external, 'dtrcon', make, lambda value, _: value)
        _assert_estimate(ours, theirs)


# ═══════════════════════════════════════════════════════════════════════
# Spectral routines
# ═══════════════════════════════════════════════════════════════════════


class TestSpectral:

    def test_syev_values(self, native, external, spd_matrix, as_storage):
        def make():
            work, lwork = _work('dsyev', n=5)
            return EVJob.ValuesOnly, Uplo.Upper, 5, as_storage(spd_matrix), 5, np.zeros(5), \
                work, lwork

        ours, theirs = _both(native, external, 'dsyev', make, lambda _, args: args[5])
        _assert_agree('dsyev', theirs, ours)

    def test_gesvd_values(self, native, external, tall_matrix, as_storage):
        def make():
            work, lwork = _work('dgesvd', m=7, n=4)
            return (SVDJob.NoVectors, SVDJob.NoVectors, 7, 4, as_storage(tall_matrix), 4,
                    np.zeros(4), np.zeros(1), 1, np.zeros(1), 1, work, lwork)

        ours, theirs = _both(native, external, 'dgesvd', make, lambda _, args: args[6])
        _assert_agree('dgesvd', theirs, ours)

    def test_gebal_block_is_zero_based(self, external, as_storage):
        # Row 0 and column 3 each isolate an eigenvalue
        matrix = np.array([
            [1.0, 0.0, 0.0, 0.0],
            [2.0, 3.0, 4.0, 0.0],
            [5.0, 6.0, 7.0, 0.0],
            [8.0, 9.0, 1.0, 2.0],
        ])
        a = as_storage(matrix)
        scale = np.zeros(4)
        ilo, ihi = external.dgebal(BalanceJob.Permute, 4, a, 4, scale)
        assert 0 <= ilo <= ihi <= 3
        assert (ilo, ihi) != (0, 3)
        outside = np.r_[0:ilo, ihi + 1:4]
        assert np.all((scale[outside] >= 0) & (scale[outside] < 4))
        np.testing.assert_allclose(np.sort(np.linalg.eigvals(np.reshape(a, (4, 4))).real),
                                   np.sort(np.linalg.eigvals(matrix).real), atol=1e-12)

    def test_gebal_gebak_round_trip(self, external, rng, as_storage, as_array):
        n = 5
        basis = rng.standard_normal((n, n)) + 3 * np.eye(n)
        matrix = basis @ np.diag([1.0, 2.0, 3.0, 4.0, 5.0]) @ np.linalg.inv(basis)
        a = as_storage(matrix)
        scale = np.zeros(n)
        ilo, ihi = external.dgebal(BalanceJob.PermuteScale, n, a, n, scale)
        values, vectors = np.linalg.eig(as_array(a, n, n, n))
        v = as_storage(vectors.real)
        external.dgebak(BalanceJob.PermuteScale, Side.Right, n, ilo, ihi, scale, n, v, n)
        back = as_array(v, n, n, n)
        back /= np.linalg.norm(back, axis=0)
        np.testing.assert_allclose(matrix @ back, back * values.real,
                                   atol=1e-8 * np.linalg.norm(matrix))

    def test_geev_values(self, native, external, general_matrix, as_storage):
        def make():
            work, lwork = _work('dgeev', jobvl=EVJob.ValuesOnly, jobvr=EVJob.ValuesOnly, n=5)
            return (EVJob.ValuesOnly, EVJob.ValuesOnly, 5, as_storage(general_matrix), 5,
                    np.zeros(5), np.zeros(5), np.zeros(1), 1, np.zeros(1), 1, work, lwork)

        ours, theirs = _both(native, external, 'dgeev', make,
                             lambda first, args: (first, np.sort_complex(args[5] + 1j * args[6])))
        assert ours[0] == theirs[0] == 0
        _assert_agree('dgeev', theirs[1], ours[1])

    def test_sterf(self, native, external, rng):
        d = rng.standard_normal(6)
        e = rng.standard_normal(5)
        ours, theirs = _both(native, external, 'dsterf', lambda: (6, d.copy(), e.copy()),
                             lambda ok, args: (ok, args[1]))
        assert ours[0] and theirs[0]
        _assert_agree('dsterf', theirs[1], ours[1])

    @pytest.mark.parametrize("compz", list(EVComp))
    def test_steqr(self, native, external, rng, compz, as_storage, as_array):
        n = 6
        d = rng.standard_normal(n)
        e = rng.standard_normal(n - 1)
        basis = np.linalg.qr(rng.standard_normal((n, n)))[0]

        def make():
            z = as_storage(basis) if compz is EVComp.Original else np.zeros(n * n)
            return compz, n, d.copy(), e.copy(), z, n, *_work('dsteqr', compz=compz, n=n)

        ours, theirs = _both(native, external, 'dsteqr', make,
                             lambda ok, args: (ok, args[2], as_array(args[4], n, n, n)))
        assert ours[0] and theirs[0]
        _assert_agree('dsteqr', theirs[1], ours[1])
        if compz is not EVComp.NoVectors:
            _assert_agree('dsteqr', _align_signs(ours[2], theirs[2]), ours[2])

    @pytest.mark.parametrize("ilo, ihi", [(0, 5), (1, 4), (2, 2)])
    def test_gehrd_block_bounds(self, native, external, rng, ilo, ihi, as_storage):
        matrix = rng.standard_normal((6, 6))

        def make():
            return 6, ilo, ihi, as_storage(matrix), 6, np.full(5, np.nan), *_work('dgehrd', n=6)

        ours, theirs = _both(native, external, 'dgehrd', make,
                             lambda _, args: np.concatenate([args[3], args[5]]))
        _assert_agree('dgehrd', theirs, ours)

    @pytest.mark.parametrize("job", list(SchurJob))
    def test_hseqr_values_with_isolated_block(self, native, external, rng, job, as_storage):
        # Rows and columns 0 and 5 lie outside the active block [1, 4]
        h = np.triu(rng.standard_normal((6, 6)), -1)
        h[1, 0] = 0.0
        h[5, 4] = 0.0

        def make():
            return (job, SchurComp.NoVectors, 6, 1, 4, as_storage(h), 6, np.zeros(6), np.zeros(6),
                    np.zeros(1), 1, *_work('dhseqr', n=6))

        ours, theirs = _both(native, external, 'dhseqr', make,
                             lambda unconverged, args: (unconverged,
                                                        np.sort_complex(args[7] + 1j * args[8])))
        assert ours[0] == theirs[0] == 0
        _assert_agree('dhseqr', theirs[1], ours[1])
        _assert_agree('dhseqr', theirs[1], np.sort_complex(np.linalg.eigvals(h)))

    def test_hseqr_schur_vectors(self, external, rng, as_storage, as_array):
        h = np.triu(rng.standard_normal((6, 6)), -1)
        h[1, 0] = 0.0
        h[5, 4] = 0.0
        t = as_storage(h)
        z = np.zeros(36)
        unconverged = external.dhseqr(SchurJob.EigenvaluesAndSchur, SchurComp.Init, 6, 1, 4, t, 6,
                                      np.zeros(6), np.zeros(6), z, 6, *_work('dhseqr', n=6))
        assert unconverged == 0
        schur = as_array(t, 6, 6, 6)
        q = as_array(z, 6, 6, 6)
        np.testing.assert_allclose(q @ schur @ q.T, h, atol=1e-10)
        np.testing.assert_allclose(q.T @ q, np.eye(6), atol=1e-12)
