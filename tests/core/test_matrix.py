"""
Tests for matrix descriptors.

Validates:
    - Index arithmetic for both layouts and every packed (layout, half) pair
    - Logical reads through at(): mirroring, unit diagonal, zero off-half
    - Minimum storage lengths
    - Reinterpretation between views shares storage
"""

import numpy as np
import pytest

from pylapack.core.exceptions import IndexOutOfRangeError, InvalidDimensionError
from pylapack.core.matrix import (
    General,
    Symmetric,
    SymmetricPacked,
    Triangular,
    TriangularPacked,
    Vector,
    half_cells,
    packed_offset,
    required_length,
)
from pylapack.core.options import Diag, Layout, Uplo


class TestIndexArithmetic:

    def test_row_major_offset(self):
        m = General(3, 4, 6, np.zeros(16))
        assert m.offset(2, 3) == 2 * 6 + 3

    def test_column_major_offset(self):
        m = General(3, 4, 5, np.zeros(18), Layout.ColMajor)
        assert m.offset(2, 3) == 2 + 3 * 5

    def test_offsets_accept_index_arrays(self):
        m = General(2, 2, 3, np.zeros(5))
        np.testing.assert_array_equal(m.offset(np.array([0, 1]), np.array([1, 0])), [1, 3])

    def test_required_length(self):
        assert required_length(3, 4, 6) == 16
        assert required_length(0, 4, 6) == 0
        assert required_length(3, 0, 1) == 0
        assert General(3, 4, 5, np.zeros(0), Layout.ColMajor).required_length == 18

    @pytest.mark.parametrize("uplo", [Uplo.Upper, Uplo.Lower])
    @pytest.mark.parametrize("layout", [Layout.RowMajor, Layout.ColMajor])
    def test_packed_offsets_are_a_bijection(self, uplo, layout):
        n = 5
        rows, cols = half_cells(n, uplo)
        offsets = packed_offset(n, uplo, layout, rows, cols)
        assert sorted(offsets.tolist()) == list(range(n * (n + 1) // 2))

    def test_half_cells_include_diagonal_once(self):
        rows, cols = half_cells(4, Uplo.Upper)
        assert len(rows) == 10
        assert np.sum(rows == cols) == 4


class TestLogicalReads:

    def test_general_at(self):
        m = General(2, 3, 3, np.arange(6.0))
        assert m.at(1, 2) == 5.0

    def test_symmetric_mirrors_stored_half(self):
        data = np.array([1.0, 2.0, np.nan, 3.0])
        s = Symmetric(2, 2, data, Uplo.Upper)
        assert s.at(1, 0) == 2.0
        assert s.at(0, 1) == 2.0

    def test_unit_diagonal_not_read(self):
        data = np.array([np.nan, 2.0, np.nan, np.nan])
        t = Triangular(2, 2, data, Uplo.Upper, Diag.Unit)
        assert t.at(0, 0) == 1.0
        assert t.at(1, 0) == 0.0
        assert t.at(0, 1) == 2.0

    def test_packed_reads(self):
        # Row-major upper packing of [[1, 2], [2, 3]]
        s = SymmetricPacked(2, np.array([1.0, 2.0, 3.0]), Uplo.Upper)
        assert s.at(1, 0) == 2.0
        assert s.at(1, 1) == 3.0
        t = TriangularPacked(2, np.array([1.0, 2.0, 3.0]), Uplo.Upper, Diag.Unit)
        assert t.at(1, 1) == 1.0
        assert t.at(1, 0) == 0.0

    def test_vector_at(self):
        v = Vector(3, 2, np.arange(5.0))
        assert v.at(2) == 4.0
        assert v.required_length == 5

    def test_out_of_range_cell(self):
        with pytest.raises(IndexOutOfRangeError):
            General(2, 2, 2, np.zeros(4)).at(2, 0)
        with pytest.raises(IndexOutOfRangeError):
            Vector(3, 1, np.zeros(3)).at(3)


class TestReinterpretation:

    def test_views_share_storage(self):
        data = np.zeros(9)
        g = General(3, 3, 3, data)
        t = g.as_triangular(Uplo.Lower, Diag.Unit)
        s = t.as_symmetric()
        assert t.data is data
        assert s.data is data
        assert s.uplo is Uplo.Lower
        assert s.as_general().rows == 3

    def test_non_square_rejected(self):
        g = General(2, 3, 3, np.zeros(6))
        with pytest.raises(InvalidDimensionError):
            g.as_triangular(Uplo.Upper)
        with pytest.raises(InvalidDimensionError):
            g.as_symmetric(Uplo.Upper)

    def test_packed_twins(self):
        data = np.zeros(6)
        assert SymmetricPacked(3, data).as_triangular().data is data
        assert TriangularPacked(3, data, Uplo.Lower).as_symmetric().uplo is Uplo.Lower
