"""Proximity queries over 2D point sets.

Used for two things: finding candidate edge pairs for compatibility
scoring (radius query over edge midpoints) and capping the neighbour
set of each edge per pass to its nearest compatible edges.
"""

from __future__ import annotations

__all__ = ["SpatialIndex"]

import math

import numpy as np
from scipy.spatial import cKDTree


class SpatialIndex:
    """KD-tree over a point set that can be rebuilt as points move."""

    def __init__(self, points: np.ndarray | None = None) -> None:
        self._points = np.empty((0, 2))
        self._tree: cKDTree | None = None
        if points is not None:
            self.rebuild(points)

    def __len__(self) -> int:
        return len(self._points)

    @property
    def points(self) -> np.ndarray:
        return self._points

    def rebuild(self, points: np.ndarray) -> None:
        """Replace the indexed points (called between passes)."""
        pts = np.asarray(points, dtype=float).reshape(-1, 2)
        self._points = pts.copy()
        self._tree = cKDTree(self._points) if len(self._points) else None

    def query_radius(self, point: np.ndarray, radius: float) -> list[int]:
        """Indices of indexed points within ``radius`` of ``point``, sorted."""
        if self._tree is None:
            return []
        if math.isinf(radius):
            return list(range(len(self._points)))
        return sorted(self._tree.query_ball_point(np.asarray(point, float), radius))

    def query_pairs(self, radius: float) -> np.ndarray:
        """All ``(i, j)`` with ``i < j`` no further apart than ``radius``.

        Exact: an infinite radius returns every pair. Rows are sorted so
        callers see pairs in a deterministic order.
        """
        n = len(self._points)
        if self._tree is None or n < 2:
            return np.empty((0, 2), dtype=np.intp)
        if math.isinf(radius):
            i, j = np.triu_indices(n, k=1)
            return np.column_stack([i, j]).astype(np.intp)
        pairs = self._tree.query_pairs(radius, output_type="ndarray")
        if len(pairs) == 0:
            return np.empty((0, 2), dtype=np.intp)
        pairs = np.sort(pairs.astype(np.intp), axis=1)
        order = np.lexsort((pairs[:, 1], pairs[:, 0]))
        return pairs[order]

    def nearest_among(self, i: int, candidates: np.ndarray, k: int) -> np.ndarray:
        """The ``k`` candidates closest to point ``i``; ties go to lower index."""
        candidates = np.asarray(candidates, dtype=np.intp)
        if len(candidates) <= k:
            return np.sort(candidates)
        d = np.linalg.norm(self._points[candidates] - self._points[i], axis=1)
        order = np.lexsort((candidates, d))
        return np.sort(candidates[order[:k]])
