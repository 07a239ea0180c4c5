import logging

import numpy as np

from distance_trees.distance_matrix import as_array
from distance_trees.trees import Half, LabeledTree

logger = logging.getLogger(__name__)


def closest_neighbors(D, total_dist):
    """
    Selects the pair minimizing the Q-criterion (m-2)*D[i, j] - td[i] - td[j].

    Pairs are scanned with i = 1..m-1 and j < i, the first strictly smaller
    value winning. The smaller index is returned first.
    """
    m = D.shape[0]
    Q = (m - 2) * D - total_dist[:, np.newaxis] - total_dist[np.newaxis, :]
    lower = np.flatnonzero(np.tri(m, k=-1, dtype=bool))
    values = np.nan_to_num(Q.ravel()[lower], nan=np.inf)
    i, j = divmod(int(lower[np.argmin(values)]), m)
    return j, i


def neighbor_join(distance_matrix):
    """
    Construct a tree using the Neighbor-Joining algorithm.

    Parameters
    ----------
    distance_matrix : array_like, shape (n, n)
        Symmetric matrix of pairwise distances between n taxa.

    Returns
    -------
    tree : LabeledTree
        An unrooted binary tree whose nodes are indexed 0..2n-3, where the
        first n nodes correspond to the original taxa and the remaining nodes
        are internal nodes in the order they were joined. Edge labels index
        the tree's weight list: label 0 is the last edge joined, the limbs of
        earlier joins follow in reverse join order.
    """
    D = as_array(distance_matrix)
    n = D.shape[0]

    if n <= 1:
        return LabeledTree([[] for _ in range(n)], [], n)

    vertices = list(range(n))
    next_node_id = n
    joins = []

    while D.shape[0] > 2:
        m = D.shape[0]
        total_dist = D.sum(axis=1)
        d1, d2 = closest_neighbors(D, total_dist)

        delta = (total_dist[d2] - total_dist[d1]) / (m - 2)
        d12 = D[d1, d2]
        limb_length_1 = 0.5 * (d12 - delta)
        limb_length_2 = 0.5 * (d12 + delta)

        u = next_node_id
        joins.append((u, vertices[d1], limb_length_1, vertices[d2], limb_length_2))
        logger.debug("joined %d and %d into %d", vertices[d1], vertices[d2], u)

        # d1 takes the new node's distances, d2 is deleted
        new_row = 0.5 * (D[d1, :] + D[d2, :] - d12)
        D[d1, :] = new_row
        D[:, d1] = new_row
        D = np.delete(np.delete(D, d2, axis=0), d2, axis=1)

        vertices[d1] = u
        vertices.pop(d2)
        next_node_id += 1

    adjacency = [[] for _ in range(next_node_id)]
    weights = [float(D[0, 1])]
    v1, v2 = vertices
    adjacency[v1].append(Half(v2, 0))
    adjacency[v2].append(Half(v1, 0))

    # limbs attach once the smaller problem is solved, latest join first
    for u, v1, limb_length_1, v2, limb_length_2 in reversed(joins):
        label = len(weights)
        weights += [float(limb_length_1), float(limb_length_2)]
        adjacency[u] += [Half(v1, label), Half(v2, label + 1)]
        adjacency[v1].append(Half(u, label))
        adjacency[v2].append(Half(u, label + 1))

    return LabeledTree(adjacency, weights, n)
