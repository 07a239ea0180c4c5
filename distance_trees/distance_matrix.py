import logging
import math
from enum import Enum
from typing import Optional

import numpy as np
from scipy.spatial import distance as ssd

logger = logging.getLogger(__name__)


class ValidationKind(str, Enum):
    """Condition a distance matrix failed to meet."""

    NOT_SQUARE = "not-square"
    NEGATIVE_ELEMENT = "negative-element"
    NOT_SYMMETRIC = "not-symmetric"
    NON_ZERO_DIAGONAL = "non-zero-diagonal"
    TRIANGLE_INEQUALITY = "triangle-inequality"
    NOT_ADDITIVE = "not-additive"


class InvalidDistanceMatrix(ValueError):
    """
    Raised when a distance matrix fails a validation condition.

    Attributes:
        kind (ValidationKind): The first condition found violated.
        indices (tuple[int, ...]): Matrix indices locating the violation.
    """

    def __init__(self, kind, indices=(), message=None):
        self.kind = ValidationKind(kind)
        self.indices = tuple(int(i) for i in indices)
        if message is None:
            message = f"{self.kind.value.replace('-', ' ')} at {self.indices}"
        super().__init__(message)


def _format_element(x):
    if math.isnan(x):
        return "NaN"
    if math.isinf(x):
        return "+Inf" if x > 0 else "-Inf"
    if x == int(x) and abs(x) < 1e21:
        return str(int(x))
    return repr(float(x))


class DistanceMatrix:
    """
    Rows of pairwise distances between n elements.

    Rows are kept as separate float arrays so that a ragged (non-square) input
    can still be represented and reported by the validation predicates. Use
    `to_numpy` to get the (n, n) array the tree builders work on.
    """

    def __init__(self, rows=()):
        if isinstance(rows, DistanceMatrix):
            rows = rows.rows
        self.rows = [np.array(row, dtype=float).ravel() for row in rows]

    @classmethod
    def from_condensed(cls, condensed):
        """Builds a matrix from a condensed distance vector (see scipy's pdist)."""
        return cls(ssd.squareform(np.asarray(condensed, dtype=float), checks=False))

    @property
    def size(self):
        return len(self.rows)

    def __len__(self):
        return len(self.rows)

    def __getitem__(self, i):
        return self.rows[i]

    def __iter__(self):
        return iter(self.rows)

    def __str__(self):
        return "\n".join(
            "[" + " ".join(_format_element(x) for x in row) + "]" for row in self.rows
        )

    def __repr__(self):
        return f"DistanceMatrix({[row.tolist() for row in self.rows]!r})"

    def clone(self):
        return DistanceMatrix([row.copy() for row in self.rows])

    def to_numpy(self):
        """
        Returns the matrix as a new (n, n) float array.

        Raises:
            InvalidDistanceMatrix: If the rows do not form a square matrix.
        """
        row = self._first_non_square_row()
        if row is not None:
            raise InvalidDistanceMatrix(ValidationKind.NOT_SQUARE, (row,), "not square")
        if not self.rows:
            return np.zeros((0, 0))
        return np.vstack(self.rows)

    # ---- validation predicates

    def _first_non_square_row(self):
        n = len(self.rows)
        for i, row in enumerate(self.rows):
            if len(row) != n:
                return i
        return None

    def _first_negative(self):
        # NaN weak: NaN < 0 is False
        for i, row in enumerate(self.rows):
            hits = np.flatnonzero(row < 0)
            if hits.size:
                return i, int(hits[0])
        return None

    def _first_asymmetric(self):
        if not self.is_square():
            return None
        a = self.to_numpy()
        # written as not-equal so that NaN pairs count as a mismatch
        mismatch = np.tril(~(a == a.T), -1)
        hits = np.argwhere(mismatch)
        if hits.size:
            return int(hits[0][0]), int(hits[0][1])
        return None

    def _first_non_zero_diagonal(self):
        for i, row in enumerate(self.rows):
            if i >= len(row) or not row[i] == 0:
                return i
        return None

    def is_square(self):
        return self._first_non_square_row() is None

    def is_non_negative(self):
        """True if no element is negative. A NaN element does not count as negative."""
        return self._first_negative() is None

    def is_symmetric(self):
        """
        True if off-diagonal elements are symmetric.

        NaNs do not compare equal, so a NaN anywhere off the diagonal makes the
        matrix asymmetric. The diagonal itself is not checked.
        """
        return self.is_square() and self._first_asymmetric() is None

    def has_zero_diagonal(self):
        return self._first_non_zero_diagonal() is None

    def triangle_inequality_violation(self):
        """
        Finds the first violation of the triangle inequality.

        Scans i over rows, k over rows before i and j over all columns, looking
        for d[i][j] + d[k][j] < d[i][k]. Comparisons involving NaN are false,
        so NaNs never produce a violation.

        Returns:
            tuple[int, int, int] | None: (i, j, k) of the first violation, or None.
        """
        a = self.to_numpy()
        for i in range(1, a.shape[0]):
            hits = np.argwhere(a[i] + a[:i] < a[i, :i, None])
            if hits.size:
                k, j = hits[0]
                return i, int(j), int(k)
        return None

    def validate(self):
        """
        Validates the matrix as a metric.

        Conditions are checked in this order: square, non-negative, symmetric,
        zero diagonal, triangle inequality.

        Raises:
            InvalidDistanceMatrix: For the first condition not met.
        """
        row = self._first_non_square_row()
        if row is not None:
            raise InvalidDistanceMatrix(ValidationKind.NOT_SQUARE, (row,), "not square")
        cell = self._first_negative()
        if cell is not None:
            raise InvalidDistanceMatrix(
                ValidationKind.NEGATIVE_ELEMENT, cell, "negative element"
            )
        cell = self._first_asymmetric()
        if cell is not None:
            raise InvalidDistanceMatrix(ValidationKind.NOT_SYMMETRIC, cell, "not symmetric")
        row = self._first_non_zero_diagonal()
        if row is not None:
            raise InvalidDistanceMatrix(
                ValidationKind.NON_ZERO_DIAGONAL, (row,), "non-zero diagonal"
            )
        triple = self.triangle_inequality_violation()
        if triple is not None:
            i, j, k = triple
            raise InvalidDistanceMatrix(
                ValidationKind.TRIANGLE_INEQUALITY,
                triple,
                "triangle inequality not satisfied: "
                f"d[{i}][{j}] + d[{j}][{k}] < d[{i}][{k}]",
            )

    def four_point_violation(self, atol=0.0):
        """
        Tests the four-point condition for all combinations of points.

        For every quadruple the two largest of d[i][j]+d[k][l], d[i][k]+d[j][l]
        and d[i][l]+d[j][k] must be equal (within atol). Quadruples are scanned
        with i over rows, j < i, k < j and l over all indices.

        Parameters:
            atol (float): Largest gap between the two largest sums still
                accepted as equal.

        Returns:
            tuple[int, int, int, int] | None: The first failing (i, j, k, l),
            or None if the matrix is additive.
        """
        a = self.to_numpy()
        n = a.shape[0]
        for i in range(n):
            for j in range(1, i):
                # rows index k < j, columns index l
                s1 = a[i, j] + a[:j, :]
                s2 = a[i, :j, None] + a[j, None, :]
                s3 = a[i, None, :] + a[j, :j, None]
                sums = np.sort(np.stack([s1, s2, s3]), axis=0)
                hits = np.argwhere(sums[2] - sums[1] > atol)
                if hits.size:
                    k, l = hits[0]
                    return i, j, int(k), int(l)
        return None

    def is_additive(self, atol=0.0):
        return self.four_point_violation(atol) is None


def as_array(distances, copy=True):
    """
    Converts a DistanceMatrix, nested sequence or array to a 2-D float array.

    With copy=False a float ndarray is returned as is, so callers may consume
    it destructively.
    """
    if isinstance(distances, DistanceMatrix):
        return distances.to_numpy()
    if copy:
        a = np.array(distances, dtype=float)
    else:
        a = np.asarray(distances, dtype=float)
    if a.size == 0:
        return a.reshape(0, 0)
    if a.ndim != 2 or a.shape[0] != a.shape[1]:
        raise InvalidDistanceMatrix(ValidationKind.NOT_SQUARE, (0,), "not square")
    return a


def validate(distances):
    DistanceMatrix(distances).validate()


def four_point_violation(distances, atol=0.0) -> Optional[tuple]:
    return DistanceMatrix(distances).four_point_violation(atol)


def is_additive(distances, atol=0.0) -> bool:
    return DistanceMatrix(distances).is_additive(atol)
