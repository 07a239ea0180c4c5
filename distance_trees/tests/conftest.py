import numpy as np
import pytest


@pytest.fixture
def additive_4():
    return [
        [0, 13, 21, 22],
        [13, 0, 12, 13],
        [21, 12, 0, 13],
        [22, 13, 13, 0],
    ]


@pytest.fixture
def non_additive_4():
    return [
        [0, 3, 4, 3],
        [3, 0, 4, 5],
        [4, 4, 0, 2],
        [3, 5, 2, 0],
    ]


@pytest.fixture
def upgma_4():
    return [
        [0, 20, 17, 11],
        [20, 0, 20, 13],
        [17, 20, 0, 10],
        [11, 13, 10, 0],
    ]


@pytest.fixture
def nj_4():
    return [
        [0, 23, 27, 20],
        [23, 0, 30, 28],
        [27, 30, 0, 30],
        [20, 28, 30, 0],
    ]


@pytest.fixture
def rng():
    return np.random.default_rng(2015)


@pytest.fixture
def random_metric(rng):
    """Factory of symmetric matrices of distances between random points in the plane."""

    def make(n):
        points = rng.uniform(0, 100, size=(n, 2))
        return np.sqrt(((points[:, None, :] - points[None, :, :]) ** 2).sum(axis=-1))

    return make
