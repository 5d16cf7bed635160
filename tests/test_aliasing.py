"""
Tests for output aliasing contracts.

Validates:
    - Every routine in the catalog has an entry
    - Reinterpreted results share the caller's storage
    - uplo/diag are inherited or fixed as the routine dictates
"""

import numpy as np
import pytest

from pylapack.aliasing import ALIASES, INHERIT, output_aliases
from pylapack.core.exceptions import InvalidDimensionError
from pylapack.core.matrix import (
    General,
    Symmetric,
    SymmetricPacked,
    Triangular,
    TriangularPacked,
)
from pylapack.core.options import Diag, Uplo
from pylapack.core.protocols import ROUTINES


class TestCatalog:

    def test_every_routine_has_a_contract(self):
        assert set(ALIASES) == set(ROUTINES)

    def test_unknown_routine(self):
        with pytest.raises(KeyError):
            output_aliases('dgemm')

    def test_conditions_are_described(self):
        for alias in output_aliases('dgesvd'):
            assert alias.storage == 'a'
            assert 'Overwrite' in alias.condition


class TestReinterpret:

    @pytest.mark.parametrize("uplo", [Uplo.Upper, Uplo.Lower])
    def test_potrf_factor_inherits_half(self, uplo):
        data = np.zeros(9)
        factor = output_aliases('dpotrf')[0].reinterpret(Symmetric(3, 3, data, uplo))
        assert isinstance(factor, Triangular)
        assert factor.uplo is uplo
        assert factor.diag is Diag.NonUnit
        assert factor.data is data

    def test_potri_inverse_is_symmetric(self):
        t = Triangular(3, 4, np.zeros(11), Uplo.Lower)
        inverse = output_aliases('dpotri')[0].reinterpret(t)
        assert isinstance(inverse, Symmetric)
        assert inverse.uplo is Uplo.Lower
        assert inverse.stride == 4

    def test_getrf_views_of_general(self):
        data = np.zeros(9)
        lower, upper = (alias.reinterpret(General(3, 3, 3, data))
                        for alias in output_aliases('dgetrf'))
        assert (lower.uplo, lower.diag) == (Uplo.Lower, Diag.Unit)
        assert (upper.uplo, upper.diag) == (Uplo.Upper, Diag.NonUnit)
        assert lower.data is data and upper.data is data

    def test_trtri_inherits_diag(self):
        t = Triangular(2, 2, np.zeros(4), Uplo.Upper, Diag.Unit)
        alias = output_aliases('dtrtri')[0]
        assert alias.diag == INHERIT
        assert alias.reinterpret(t).diag is Diag.Unit

    def test_packed_factor(self):
        data = np.zeros(6)
        factor = output_aliases('dpptrf')[0].reinterpret(SymmetricPacked(3, data, Uplo.Lower))
        assert isinstance(factor, TriangularPacked)
        assert factor.uplo is Uplo.Lower
        assert factor.data is data

    def test_eigenvectors_are_general(self):
        s = Symmetric(3, 3, np.zeros(9), Uplo.Upper)
        vectors = output_aliases('dsyev')[0].reinterpret(s)
        assert isinstance(vectors, General)
        assert vectors.data is s.data

    def test_non_square_general_cannot_be_triangular(self):
        with pytest.raises(InvalidDimensionError):
            output_aliases('dgeqrf')[0].reinterpret(General(3, 2, 2, np.zeros(6)))
