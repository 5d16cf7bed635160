"""
Tests for the Fortran calling-convention translation.

Validates:
    - Index translation is the identity round trip for every valid index
    - Pivot, block and balancing-scale translation in both directions
    - Option-to-character mapping, with no defaults
"""

import numpy as np
import pytest

from pylapack.backends.fortran import (
    FORTRAN_INT,
    block_from_fortran,
    block_to_fortran,
    option_code,
    pivots_from_fortran,
    pivots_to_fortran,
    scale_from_fortran,
    scale_to_fortran,
    to_one_based,
    to_zero_based,
)
from pylapack.core.exceptions import InvalidOptionError
from pylapack.core.options import (
    BalanceJob,
    Diag,
    EVComp,
    Layout,
    MatrixNorm,
    Side,
    SVDJob,
    Transpose,
    Uplo,
)


class TestIndexTranslation:

    @pytest.mark.parametrize("n", [1, 2, 17])
    def test_round_trip_is_identity(self, n):
        for i in range(n):
            assert to_zero_based(to_one_based(i)) == i

    def test_array_round_trip(self):
        idx = np.arange(10)
        np.testing.assert_array_equal(to_zero_based(to_one_based(idx)), idx)

    def test_one_based_is_shift(self):
        assert to_one_based(0) == 1
        assert to_zero_based(1) == 0

    def test_pivots(self):
        ipiv = np.array([2, 1, 2, 99])
        fipiv = pivots_to_fortran(ipiv, 3)
        assert fipiv.dtype == FORTRAN_INT
        np.testing.assert_array_equal(fipiv, [3, 2, 3])
        out = np.full(4, -7)
        pivots_from_fortran(fipiv, out, 3)
        np.testing.assert_array_equal(out, [2, 1, 2, -7])

    def test_block(self):
        assert block_to_fortran(0, 4) == (1, 5)
        assert block_from_fortran(*block_to_fortran(2, 3)) == (2, 3)

    def test_scale_translates_only_permutation_slots(self):
        # Rows 0 and 4 were permuted; [1, 3] is the scaled block
        scale = np.array([4.0, 0.5, 2.0, 0.25, 0.0])
        fscale = scale_to_fortran(scale, 5, 1, 3)
        np.testing.assert_array_equal(fscale, [5.0, 0.5, 2.0, 0.25, 1.0])
        back = np.zeros(5)
        scale_from_fortran(fscale, back, 5, 1, 3)
        np.testing.assert_array_equal(back, scale)


class TestOptionCodes:

    @pytest.mark.parametrize("option, code", [
        (Transpose.NoTrans, 'N'),
        (Transpose.Trans, 'T'),
        (Transpose.ConjTrans, 'C'),
        (Uplo.Upper, 'U'),
        (Uplo.Lower, 'L'),
        (Uplo.All, 'A'),
        (Diag.NonUnit, 'N'),
        (Diag.Unit, 'U'),
        (Side.Left, 'L'),
        (Side.Right, 'R'),
        (MatrixNorm.MaxColumnSum, 'O'),
        (SVDJob.Slim, 'S'),
        (BalanceJob.PermuteScale, 'B'),
        (EVComp.Original, 'V'),
    ])
    def test_codes(self, option, code):
        assert option_code(option) == code

    def test_layout_has_no_code(self):
        with pytest.raises(InvalidOptionError):
            option_code(Layout.RowMajor)
