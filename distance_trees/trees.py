from dataclasses import dataclass, field
from typing import NamedTuple, Optional

import networkx as nx
import numpy as np


class Half(NamedTuple):
    """One end of an undirected edge: the neighbor and the index of the edge weight."""

    to: int
    label: int


@dataclass
class LabeledTree:
    """
    Unrooted tree as an adjacency list of half edges.

    Each edge is stored as two halves, one at each endpoint, both carrying the
    same label. The label indexes `weights`, so an edge weight is stored once.
    The first nodes are the leaves of the distance matrix the tree was built
    from, internal nodes follow. `n_leaves` records how many nodes are leaves;
    a leaf can carry a zero-length limb to a duplicate leaf, so degrees alone
    do not tell leaves apart.
    """

    adjacency: list = field(default_factory=list)
    weights: list = field(default_factory=list)
    n_leaves: Optional[int] = None

    @property
    def n_nodes(self):
        return len(self.adjacency)

    def degree(self, v):
        return len(self.adjacency[v])

    def edges(self):
        """Yields every edge once as (u, v, weight) with u < v, in label order."""
        ends = [None] * len(self.weights)
        for u, halves in enumerate(self.adjacency):
            for half in halves:
                if u < half.to:
                    ends[half.label] = (u, half.to)
        for label, (u, v) in enumerate(ends):
            yield u, v, self.weights[label]

    def to_networkx(self):
        tree = nx.Graph()
        tree.add_nodes_from(range(self.n_nodes))
        for u, halves in enumerate(self.adjacency):
            for half in halves:
                tree.add_edge(u, half.to, weight=self.weights[half.label], label=half.label)
        return tree

    def leaf_distances(self, n_leaves=None):
        """
        Path-length distances between leaves.

        Parameters:
            n_leaves (int): Number of leaf nodes, the first nodes of the tree.
                Defaults to the leaf count recorded by the builder, or to the
                number of nodes of degree at most 1 when none was recorded.

        Returns:
            np.ndarray: (n_leaves x n_leaves) matrix of path weight sums.
        """
        if n_leaves is None:
            n_leaves = self.n_leaves
        if n_leaves is None:
            n_leaves = sum(1 for halves in self.adjacency if len(halves) <= 1)
        if self.n_nodes == 0:
            return np.zeros((0, 0))
        D = nx.floyd_warshall_numpy(self.to_networkx(), nodelist=list(range(self.n_nodes)))
        return np.asarray(D)[:n_leaves, :n_leaves]


@dataclass
class UltrametricTree:
    """
    Rooted ultrametric tree as a parent list.

    Leaves are nodes 0..n-1, merge nodes follow in merge order and the root is
    the last node. The root has parent -1 and a NaN weight.

    Attributes:
        parent (np.ndarray): Parent node of each node.
        n_leaves (np.ndarray): Number of leaves under each node.
        weight (np.ndarray): Edge weight from the parent (the evolutionary distance).
        age (np.ndarray): Height above the leaves.
    """

    parent: np.ndarray
    n_leaves: np.ndarray
    weight: np.ndarray
    age: np.ndarray

    @property
    def n_nodes(self):
        return len(self.parent)

    @property
    def root(self):
        return self.n_nodes - 1 if self.n_nodes else None

    def children(self, v):
        return [int(c) for c in np.flatnonzero(self.parent == v)]

    def to_networkx(self):
        tree = nx.DiGraph()
        for v in range(self.n_nodes):
            tree.add_node(v, age=float(self.age[v]), n_leaves=int(self.n_leaves[v]))
        for v, p in enumerate(self.parent):
            if p >= 0:
                tree.add_edge(int(p), v, weight=float(self.weight[v]))
        return tree

    def to_linkage(self):
        """
        Converts the tree to a scipy linkage matrix.

        Row i describes node n+i: its two children, the merge distance (twice
        the age) and its number of leaves, as scipy.cluster.hierarchy expects.
        """
        n = (self.n_nodes + 1) // 2
        Z = np.zeros((max(n - 1, 0), 4))
        for i, v in enumerate(range(n, self.n_nodes)):
            c1, c2 = sorted(self.children(v))
            Z[i] = [c1, c2, 2 * self.age[v], self.n_leaves[v]]
        return Z

    def cut(self, k):
        """
        Partitions the leaves into k clusters.

        Each cluster is the leaf set of a subtree whose parent is one of the
        last k-1 merges, the most recent merges being the highest ones.

        Parameters:
            k (int): Number of clusters, clamped to the number of leaves.

        Returns:
            list[list[int]]: The k clusters of leaf indices.
        """
        if k < 1:
            raise ValueError(f"Number of clusters must be positive, got {k}.")
        n = (self.n_nodes + 1) // 2
        if n == 0:
            return []
        k = min(k, n)
        cut = self.n_nodes - (k - 1)
        members = [[v] for v in range(n)] + [[] for _ in range(n, cut)]
        clusters = []
        for v in range(cut):
            p = self.parent[v]
            if p < 0 or p >= cut:
                clusters.append(members[v])
            else:
                members[p].extend(members[v])
        return clusters
