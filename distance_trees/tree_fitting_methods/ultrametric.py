import logging
from enum import Enum

import numpy as np

from distance_trees.distance_matrix import as_array
from distance_trees.trees import UltrametricTree

logger = logging.getLogger(__name__)


class Linkage(str, Enum):
    """Cluster distance used when two clusters merge."""

    AVERAGE = "average"  # UPGMA
    MINIMUM = "minimum"  # single linkage


def closest_clusters(distances, clusters):
    """
    Finds the closest pair among the live clusters.

    Pairs are scanned with i and j in the order of `clusters`, keeping only
    i < j; the first pair at the minimum distance wins. NaN distances are
    never selected.

    Parameters:
        distances (np.ndarray): Working distance matrix.
        clusters (list[int]): Matrix indices of the live clusters.

    Returns:
        tuple[int, int, int]: Indices i < j of the pair, and the position of j
        in `clusters`.
    """
    idx = np.asarray(clusters)
    sub = distances[np.ix_(idx, idx)]
    candidates = np.flatnonzero(idx[:, None] < idx[None, :])
    values = np.nan_to_num(sub.ravel()[candidates], nan=np.inf)
    a, b = divmod(int(candidates[np.argmin(values)]), len(idx))
    return int(idx[a]), int(idx[b]), b


def ultrametric(distances, linkage=Linkage.AVERAGE, inplace=False):
    """
    Constructs a rooted ultrametric binary tree by agglomerative clustering.

    The closest pair of clusters is merged into a new node of age half their
    distance until a single cluster is left. Merged rows are folded into the
    row of the smaller index, so the working matrix is never reallocated.

    Parameters:
        distances (array_like, shape (n, n)): Symmetric distance matrix.
        linkage (Linkage or str): 'average' for UPGMA, 'minimum' for single linkage.
        inplace (bool): Consume a float ndarray argument as the working
            matrix instead of a copy. The array is left in an unspecified state.

    Returns:
        UltrametricTree: Parent list over 2n-1 nodes with weights and ages.
    """
    linkage = Linkage(linkage)
    D = as_array(distances, copy=not inplace)
    n = D.shape[0]

    parent = [-1] * n
    n_leaves = [1] * n
    weight = [np.nan] * n
    age = [0.0] * n

    # cx converts a live matrix index to its node
    clusters = list(range(n))
    cx = list(range(n))

    while len(clusters) > 1:
        d1, d2, c2 = closest_clusters(D, clusters)
        n1, n2 = cx[d1], cx[d2]
        m1, m2 = n_leaves[n1], n_leaves[n2]

        node = len(parent)
        height = D[d1, d2] / 2
        parent.append(-1)
        n_leaves.append(m1 + m2)
        weight.append(np.nan)
        age.append(height)
        for child in (n1, n2):
            parent[child] = node
            weight[child] = height - age[child]
        logger.debug("merged nodes %d and %d into %d at age %g", n1, n2, node, height)

        if len(clusters) == 2:
            break

        cx[d1] = node
        others = np.array([j for j in clusters if j != d1])
        row1, row2 = D[d1, others], D[d2, others]
        if linkage is Linkage.AVERAGE:
            merged = (row1 * m1 + row2 * m2) / (m1 + m2)
        else:
            merged = np.where(row2 < row1, row2, row1)
        D[d1, others] = merged
        D[others, d1] = merged

        # d1 now holds the merged cluster, drop d2
        clusters[c2] = clusters[-1]
        clusters.pop()

    return UltrametricTree(
        parent=np.array(parent, dtype=int),
        n_leaves=np.array(n_leaves, dtype=int),
        weight=np.array(weight, dtype=float),
        age=np.array(age, dtype=float),
    )
