import networkx as nx
import numpy as np
import pytest
from scipy.cluster.hierarchy import is_valid_linkage, linkage
from scipy.spatial import distance as ssd

from distance_trees.distance_matrix import DistanceMatrix
from distance_trees.tree_fitting_methods.ultrametric import Linkage, closest_clusters, ultrametric


def test_upgma_example(upgma_4):
    u = ultrametric(upgma_4, Linkage.AVERAGE)

    np.testing.assert_array_equal(u.parent, [5, 6, 4, 4, 5, 6, -1])
    np.testing.assert_array_equal(u.n_leaves, [1, 1, 1, 1, 2, 3, 4])
    np.testing.assert_allclose(u.age, [0, 0, 0, 0, 5, 7, 53 / 6])
    np.testing.assert_allclose(u.weight[:-1], [7, 53 / 6, 5, 5, 2, 53 / 6 - 7])
    assert np.isnan(u.weight[-1])
    assert u.root == 6


def test_single_linkage_example(upgma_4):
    u = ultrametric(upgma_4, "minimum")

    np.testing.assert_array_equal(u.parent, [5, 6, 4, 4, 5, 6, -1])
    np.testing.assert_allclose(u.age, [0, 0, 0, 0, 5, 5.5, 6.5])
    np.testing.assert_allclose(u.weight[:-1], [5.5, 6.5, 5, 5, 0.5, 1])


def test_input_is_not_consumed_by_default(upgma_4):
    D = np.array(upgma_4, dtype=float)
    ultrametric(D)
    np.testing.assert_array_equal(D, upgma_4)


def test_inplace_consumes_input(upgma_4):
    D = np.array(upgma_4, dtype=float)
    expected = ultrametric(upgma_4)
    u = ultrametric(D, inplace=True)
    np.testing.assert_allclose(u.age, expected.age)
    assert not np.array_equal(D, upgma_4)


def test_accepts_distance_matrix(upgma_4):
    u = ultrametric(DistanceMatrix(upgma_4))
    assert u.n_nodes == 7


def test_invalid_linkage(upgma_4):
    with pytest.raises(ValueError):
        ultrametric(upgma_4, "median")


@pytest.mark.parametrize("method", [Linkage.AVERAGE, Linkage.MINIMUM])
def test_ages_increase_toward_root(random_metric, method):
    u = ultrametric(random_metric(25), method)
    n_nodes = u.n_nodes
    assert n_nodes == 2 * 25 - 1
    assert np.count_nonzero(u.parent == -1) == 1
    for v in range(n_nodes - 1):
        assert u.age[v] < u.age[u.parent[v]]
        assert u.weight[v] == pytest.approx(u.age[u.parent[v]] - u.age[v])
    assert u.age[u.root] == u.age.max()
    assert u.n_leaves[u.root] == 25
    for v in range(25, n_nodes):
        assert u.n_leaves[v] == sum(u.n_leaves[c] for c in u.children(v))


@pytest.mark.parametrize("method, scipy_method", [("average", "average"), ("minimum", "single")])
def test_merge_heights_match_scipy(random_metric, method, scipy_method):
    D = random_metric(30)
    Z = ultrametric(D, method).to_linkage()
    expected = linkage(ssd.squareform(D, checks=False), method=scipy_method)
    assert is_valid_linkage(Z)
    np.testing.assert_allclose(Z[:, 2], expected[:, 2])
    np.testing.assert_array_equal(np.sort(Z[:, 3]), np.sort(expected[:, 3]))


def test_to_linkage(upgma_4):
    Z = ultrametric(upgma_4).to_linkage()
    np.testing.assert_allclose(Z, [[2, 3, 10, 2], [0, 4, 14, 3], [1, 5, 53 / 3, 4]])


def test_to_networkx(upgma_4):
    g = ultrametric(upgma_4).to_networkx()
    assert isinstance(g, nx.DiGraph)
    assert nx.is_arborescence(g)
    assert g.in_degree(6) == 0
    assert g[4][2]["weight"] == pytest.approx(5)
    assert g.nodes[5]["age"] == pytest.approx(7)


def test_cut(upgma_4):
    u = ultrametric(upgma_4)
    assert sorted(map(sorted, u.cut(1))) == [[0, 1, 2, 3]]
    assert sorted(map(sorted, u.cut(2))) == [[0, 2, 3], [1]]
    assert sorted(map(sorted, u.cut(3))) == [[0], [1], [2, 3]]
    assert sorted(u.cut(10)) == [[0], [1], [2], [3]]
    with pytest.raises(ValueError):
        u.cut(0)


def test_closest_clusters_uses_list_order():
    D = np.array(
        [
            [0, 1, 5, 5],
            [1, 0, 5, 5],
            [5, 5, 0, 1],
            [5, 5, 1, 0],
        ],
        dtype=float,
    )
    assert closest_clusters(D, [0, 1, 2, 3]) == (0, 1, 1)
    # same tie, but (2, 3) is scanned first
    assert closest_clusters(D, [3, 2, 1, 0]) == (2, 3, 0)


def test_trivial_sizes():
    single = ultrametric([[0]])
    np.testing.assert_array_equal(single.parent, [-1])
    assert single.cut(3) == [[0]]
    empty = ultrametric([])
    assert empty.n_nodes == 0
    assert empty.cut(2) == []
    pair = ultrametric([[0, 4], [4, 0]])
    np.testing.assert_array_equal(pair.parent, [2, 2, -1])
    np.testing.assert_allclose(pair.age, [0, 0, 2])
