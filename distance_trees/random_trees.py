import logging

import networkx as nx
import numpy as np

from distance_trees.distance_matrix import DistanceMatrix

logger = logging.getLogger(__name__)


def random_tree(n, rng=None):
    """
    Generates a random rooted binary tree over n leaves.

    Random pairs of live subtrees are joined until one is left. Edge weights
    are integers drawn uniformly from 10..99 so that path sums are exact.

    Parameters:
        n (int): Number of leaves.
        rng (np.random.Generator or int or None): Random source or seed.

    Returns:
        tuple[np.ndarray, np.ndarray]: Parent list over 2n-1 nodes (leaves
        first, root last with parent -1) and the edge weight to each parent
        (NaN for the root).
    """
    rng = np.random.default_rng(rng)
    n_nodes = max(2 * n - 1, 0)
    parent = np.full(n_nodes, -1, dtype=int)
    weight = (10 + rng.integers(90, size=n_nodes)).astype(float)

    live = list(range(n))
    for node in range(n, n_nodes):
        picked = rng.choice(len(live), size=2, replace=False)
        for idx in sorted(picked, reverse=True):
            parent[live.pop(idx)] = node
        live.append(node)

    if n_nodes:
        weight[-1] = np.nan
    return parent, weight


def random_additive_matrix(n, rng=None):
    """
    Constructs a random additive distance matrix.

    Distances are the leaf-to-leaf path sums of a tree from `random_tree`,
    so the result always satisfies the four-point condition.

    Parameters:
        n (int): Size of the matrix.
        rng (np.random.Generator or int or None): Random source or seed.

    Returns:
        DistanceMatrix: The (n x n) additive matrix.
    """
    parent, weight = random_tree(n, rng)
    tree = nx.Graph()
    tree.add_nodes_from(range(len(parent)))
    for v, p in enumerate(parent):
        if p >= 0:
            tree.add_edge(v, int(p), weight=weight[v])
    if n == 0:
        return DistanceMatrix()
    D = np.asarray(nx.floyd_warshall_numpy(tree, nodelist=list(range(len(parent)))))
    logger.debug("random additive matrix over %d leaves", n)
    return DistanceMatrix(D[:n, :n])
