import networkx as nx
import numpy as np
import pytest

from distance_trees.random_trees import random_additive_matrix
from distance_trees.tree_fitting_methods.neighbor_joining import closest_neighbors, neighbor_join
from distance_trees.trees import Half


def test_neighbor_join_example(nj_4):
    tree = neighbor_join(nj_4)

    assert tree.adjacency == [
        [Half(5, 1)],
        [Half(4, 3)],
        [Half(4, 4)],
        [Half(5, 0)],
        [Half(5, 2), Half(1, 3), Half(2, 4)],
        [Half(3, 0), Half(0, 1), Half(4, 2)],
    ]
    assert tree.weights == pytest.approx([12, 8, 2, 13.5, 16.5])
    assert sorted((u, v) for u, v, _ in tree.edges()) == [(0, 5), (1, 4), (2, 4), (3, 5), (4, 5)]


def test_q_criterion_tie_keeps_first_pair_in_row_scan(nj_4):
    D = np.array(nj_4, dtype=float)
    # (1, 2) and (0, 3) tie at -108; rows are scanned first
    assert closest_neighbors(D, D.sum(axis=1)) == (1, 2)


@pytest.mark.parametrize("n", [3, 4, 7, 15])
def test_tree_is_binary(random_metric, n):
    tree = neighbor_join(random_metric(n))
    assert tree.n_nodes == 2 * n - 2
    assert len(list(tree.edges())) == 2 * n - 3
    assert len(tree.weights) == 2 * n - 3
    for v in range(n):
        assert tree.degree(v) == 1
    for v in range(n, tree.n_nodes):
        assert tree.degree(v) == 3
    assert nx.is_tree(tree.to_networkx())


@pytest.mark.parametrize("n", [4, 10, 20])
def test_recovers_additive_distances(n):
    D = random_additive_matrix(n, rng=n).to_numpy()
    tree = neighbor_join(D)
    np.testing.assert_allclose(tree.leaf_distances(n), D, rtol=1e-9, atol=1e-9)


def test_input_is_not_modified(nj_4):
    D = np.array(nj_4, dtype=float)
    neighbor_join(D)
    np.testing.assert_array_equal(D, nj_4)


def test_two_leaves():
    tree = neighbor_join([[0, 3.5], [3.5, 0]])
    assert tree.adjacency == [[Half(1, 0)], [Half(0, 0)]]
    assert tree.weights == [3.5]


def test_trivial_sizes():
    assert neighbor_join([[0]]).adjacency == [[]]
    assert neighbor_join([]).n_nodes == 0


def test_records_leaf_count(nj_4):
    tree = neighbor_join(nj_4)
    assert tree.n_leaves == 4
    assert tree.leaf_distances().shape == (4, 4)
