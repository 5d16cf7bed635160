"""
pytest configuration and shared fixtures.
"""

import numpy as np
import pytest

from pylapack.dispatch import Dispatcher

SENTINEL = np.nan


def to_storage(matrix, stride=None, fill=SENTINEL):
    """Row-major 1-D storage for a 2-D array; padding cells hold `fill`."""
    rows, cols = matrix.shape
    stride = max(1, cols) if stride is None else stride
    data = np.full(max(0, (rows - 1) * stride + cols) if rows and cols else 0, fill)
    for i in range(rows):
        data[i * stride:i * stride + cols] = matrix[i]
    return data


def from_storage(data, rows, cols, stride):
    """2-D copy of a row-major rows x cols matrix in 1-D storage."""
    out = np.empty((rows, cols))
    for i in range(rows):
        out[i] = data[i * stride:i * stride + cols]
    return out


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return np.random.default_rng(42)


@pytest.fixture
def native():
    """Dispatcher over the native backend."""
    return Dispatcher('native')


@pytest.fixture
def spd_matrix(rng):
    """Well-conditioned 5x5 symmetric positive definite matrix."""
    x = rng.standard_normal((5, 5))
    return x @ x.T + 5 * np.eye(5)


@pytest.fixture
def general_matrix(rng):
    """Well-conditioned 5x5 nonsymmetric matrix."""
    return rng.standard_normal((5, 5)) + 4 * np.eye(5)


@pytest.fixture
def tall_matrix(rng):
    """7x4 full-rank matrix for least squares and QR."""
    return rng.standard_normal((7, 4))


@pytest.fixture
def as_storage():
    """Helper turning a 2-D array into padded row-major storage."""
    return to_storage


@pytest.fixture
def as_array():
    """Helper reading a row-major matrix back out of 1-D storage."""
    return from_storage
