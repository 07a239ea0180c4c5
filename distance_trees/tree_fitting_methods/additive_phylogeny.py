import logging

import numpy as np

from distance_trees.distance_matrix import as_array
from distance_trees.trees import Half, LabeledTree

logger = logging.getLogger(__name__)


class AdditivePhylogeny:
    """
    Grows the unrooted tree of an additive distance matrix one leaf at a time.

    Leaf n is attached to the tree already built for leaves 0..n-1, either at
    an existing node or at a new node splitting an edge. Edge labels are
    indexes into `weights`; splitting an edge keeps its label on the half
    nearer the search start and gives the other half a new label.
    """

    def __init__(self, distance_matrix):
        self.D = as_array(distance_matrix)
        self.adjacency = [[] for _ in range(self.D.shape[0])]
        self.weights = []

    def limb(self, j):
        """
        Limb weight of leaf j in the tree of the leading (j+1)x(j+1) submatrix.

        Returns:
            tuple[float, int, int]: The limb weight and leaves i, k such that
            the limb joins the path between i and k. k is j-1 for convenience,
            i minimizes D[i, j] + D[j, k] - D[i, k].
        """
        D = self.D
        k = j - 1
        i = k - 1
        wt2 = D[j, i] + D[j, k] - D[k, i]
        for candidate in range(k - 1):
            w = D[j, candidate] + D[j, k] - D[k, candidate]
            if w < wt2:
                wt2 = w
                i = candidate
        return wt2 / 2, i, k

    def find_path(self, source, target):
        """Nodes on the tree path from source to target, both included."""
        visited = np.zeros(len(self.adjacency), dtype=bool)
        visited[source] = True
        came_from = {source: None}
        stack = [source]
        while stack:
            node = stack.pop()
            if node == target:
                break
            for half in self.adjacency[node]:
                if not visited[half.to]:
                    visited[half.to] = True
                    came_from[half.to] = node
                    stack.append(half.to)
        path = [target]
        while path[-1] != source:
            path.append(came_from[path[-1]])
        return path[::-1]

    def half_index(self, u, w):
        for idx, half in enumerate(self.adjacency[u]):
            if half.to == w:
                return idx
        raise KeyError(f"no edge between {u} and {w}")

    def split_edge(self, u, w, x):
        """
        Inserts a new node v on edge (u, w) at distance x from w.

        u's half keeps the edge label with its weight reduced by x, w's
        reciprocal half is redirected to v under a new label of weight x.
        Both halves are rewritten before returning.
        """
        v = len(self.adjacency)
        ux = self.half_index(u, w)
        label = self.adjacency[u][ux].label
        self.adjacency[u][ux] = Half(v, label)
        self.weights[label] -= x

        new_label = len(self.weights)
        self.weights.append(x)
        wx = self.half_index(w, u)
        self.adjacency[w][wx] = Half(v, new_label)

        self.adjacency.append([Half(u, label), Half(w, new_label)])
        return v

    def attachment_point(self, i, k, x):
        """
        Finds, creating it if needed, the node at distance x from i toward k.

        Walks the path from k to i backward from i, subtracting edge weights
        from x until the point falls on a node or strictly inside an edge.
        """
        path = self.find_path(k, i)
        v = i
        for u, w in zip(reversed(path[:-1]), reversed(path[1:])):
            if x == 0:
                break
            weight = self.weights[self.adjacency[u][self.half_index(u, w)].label]
            if x < weight:
                return self.split_edge(u, w, x)
            x -= weight
            v = u
        return v

    def add_leaf(self, n):
        limb_weight, i, k = self.limb(n)
        x = float(self.D[i, n] - limb_weight)
        v = self.attachment_point(i, k, x)
        label = len(self.weights)
        self.weights.append(float(limb_weight))
        self.adjacency[n] = [Half(v, label)]
        self.adjacency[v].append(Half(n, label))
        logger.debug("attached leaf %d to node %d with limb weight %g", n, v, limb_weight)

    def build(self):
        n = self.D.shape[0]
        if n >= 2:
            self.weights = [float(self.D[0, 1])]
            self.adjacency[0] = [Half(1, 0)]
            self.adjacency[1] = [Half(0, 0)]
        for leaf in range(2, n):
            self.add_leaf(leaf)
        return LabeledTree(self.adjacency, self.weights, n)


def additive_tree(distance_matrix):
    """
    Constructs an unrooted tree from an additive distance matrix.

    The matrix must be additive (see DistanceMatrix.is_additive); for other
    matrices the result is undefined. The first n nodes of the tree are the
    leaves of the matrix, internal nodes follow. Leaf-to-leaf path weights of
    the result equal the input distances.

    Parameters:
        distance_matrix (array_like): (n x n) additive distance matrix.

    Returns:
        LabeledTree: The reconstructed tree.
    """
    return AdditivePhylogeny(distance_matrix).build()
