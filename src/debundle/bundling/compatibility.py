"""Pairwise edge compatibility.

Four measures from force-directed edge bundling, each in [0, 1]:

- angle: |cos| of the angle between the edges, so parallel and
  antiparallel edges are both compatible (direction is kept separately
  as the pair orientation and resolved by lanes during relaxation)
- scale: penalises edges of very different length
- position: penalises edges whose midpoints are far apart relative to
  their average length
- visibility: how well each edge's projection onto the other lines up
  with it

The combined score is their product. Only pairs scoring strictly above
the threshold are kept, in a sparse symmetric matrix.
"""

from __future__ import annotations

__all__ = [
    "CompatibilityTable",
    "PairCompatibility",
    "compute_compatibility",
    "edge_compatibility",
]

import logging
import math
from dataclasses import dataclass

import numpy as np
import scipy.sparse as sp

from debundle.bundling.constants import LENGTH_EPSILON
from debundle.bundling.spatial import SpatialIndex

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PairCompatibility:
    """The four sub-scores of one edge pair and their product."""

    angle: float
    scale: float
    position: float
    visibility: float

    @property
    def score(self) -> float:
        return _clip01(self.angle * self.scale * self.position * self.visibility)


@dataclass
class CompatibilityTable:
    """Sparse symmetric compatibility between bundled edges.

    ``scores`` holds C(P, Q) for every retained pair; ``orientation`` has
    the same sparsity pattern and holds +1 for edges pointing the same way
    and -1 for opposite edges.
    """

    scores: sp.csr_matrix
    orientation: sp.csr_matrix
    threshold: float

    @property
    def n_edges(self) -> int:
        return self.scores.shape[0]

    @property
    def pair_count(self) -> int:
        """Number of unordered pairs that influence each other."""
        return self.scores.nnz // 2

    def score(self, i: int, j: int) -> float:
        return float(self.scores[i, j])

    def neighbors(self, i: int) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Neighbour indices, scores and orientations of edge ``i``, by index."""
        start, stop = self.scores.indptr[i], self.scores.indptr[i + 1]
        return (
            self.scores.indices[start:stop],
            self.scores.data[start:stop],
            self.orientation.data[start:stop],
        )


def edge_compatibility(
    p_source: np.ndarray,
    p_target: np.ndarray,
    q_source: np.ndarray,
    q_target: np.ndarray,
) -> PairCompatibility:
    """Sub-scores for a single pair of edges."""
    sources = np.array([p_source, q_source], dtype=float)
    targets = np.array([p_target, q_target], dtype=float)
    angle, scale, position, visibility, _ = _score_pairs(
        sources, targets, np.array([0]), np.array([1])
    )
    return PairCompatibility(
        angle=float(angle[0]),
        scale=float(scale[0]),
        position=float(position[0]),
        visibility=float(visibility[0]),
    )


def compute_compatibility(
    sources: np.ndarray,
    targets: np.ndarray,
    threshold: float,
) -> CompatibilityTable:
    """Score candidate pairs and keep those strictly above ``threshold``.

    Candidates come from a radius query over edge midpoints. A pair whose
    midpoints are further apart than ``max_len * (1/threshold - 1)`` has a
    position score at or below the threshold, and the product can only be
    lower, so no retained pair is missed.
    """
    sources = np.asarray(sources, dtype=float).reshape(-1, 2)
    targets = np.asarray(targets, dtype=float).reshape(-1, 2)
    n = len(sources)

    lengths = np.linalg.norm(targets - sources, axis=1)
    max_len = float(lengths.max()) if n else 0.0
    radius = math.inf if threshold <= 0 else max_len * (1.0 / threshold - 1.0)

    index = SpatialIndex((sources + targets) / 2.0)
    pairs = index.query_pairs(radius)
    i, j = pairs[:, 0], pairs[:, 1]

    angle, scale, position, visibility, orient = _score_pairs(sources, targets, i, j)
    combined = np.clip(angle * scale * position * visibility, 0.0, 1.0)
    keep = combined > threshold

    i, j = i[keep], j[keep]
    combined, orient = combined[keep], orient[keep]
    logger.debug(
        "Compatibility: %d candidate pairs, %d above threshold %.3g",
        len(pairs),
        len(combined),
        threshold,
    )

    rows = np.concatenate([i, j])
    cols = np.concatenate([j, i])
    scores = sp.csr_matrix(
        (np.concatenate([combined, combined]), (rows, cols)), shape=(n, n)
    )
    orientation = sp.csr_matrix(
        (np.concatenate([orient, orient]), (rows, cols)), shape=(n, n)
    )
    scores.sort_indices()
    orientation.sort_indices()
    return CompatibilityTable(
        scores=scores, orientation=orientation, threshold=threshold
    )


def _score_pairs(
    sources: np.ndarray,
    targets: np.ndarray,
    i: np.ndarray,
    j: np.ndarray,
) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """Vectorised sub-scores for index pairs ``(i[k], j[k])``."""
    vec = targets - sources
    lengths = np.linalg.norm(vec, axis=1)
    mids = (sources + targets) / 2.0

    vi, vj = vec[i], vec[j]
    li, lj = lengths[i], lengths[j]
    dot = np.einsum("ij,ij->i", vi, vj)
    len_prod = li * lj

    angle = np.zeros(len(i))
    ok = len_prod > LENGTH_EPSILON
    angle[ok] = np.clip(np.abs(dot[ok]) / len_prod[ok], 0.0, 1.0)

    l_avg = (li + lj) / 2.0
    l_min = np.minimum(li, lj)
    l_max = np.maximum(li, lj)
    scale = np.zeros(len(i))
    ok = (l_min > LENGTH_EPSILON) & (l_avg > LENGTH_EPSILON)
    scale[ok] = 2.0 / (l_avg[ok] / l_min[ok] + l_max[ok] / l_avg[ok])

    mid_dist = np.linalg.norm(mids[i] - mids[j], axis=1)
    position = np.zeros(len(i))
    ok = l_avg > LENGTH_EPSILON
    position[ok] = l_avg[ok] / (l_avg[ok] + mid_dist[ok])

    visibility = np.minimum(
        _visibility(sources, targets, i, j), _visibility(sources, targets, j, i)
    )

    orientation = np.where(dot >= 0, 1.0, -1.0)
    return angle, scale, position, visibility, orientation


def _visibility(
    sources: np.ndarray, targets: np.ndarray, p: np.ndarray, q: np.ndarray
) -> np.ndarray:
    """V(P, Q): Q's endpoints projected onto the line through P."""
    p0, p1 = sources[p], targets[p]
    d = p1 - p0
    len_sq = np.einsum("ij,ij->i", d, d)
    ok = len_sq > LENGTH_EPSILON**2
    safe_len_sq = np.where(ok, len_sq, 1.0)

    t0 = np.einsum("ij,ij->i", sources[q] - p0, d) / safe_len_sq
    t1 = np.einsum("ij,ij->i", targets[q] - p0, d) / safe_len_sq
    i0 = p0 + t0[:, None] * d
    i1 = p0 + t1[:, None] * d

    span = np.linalg.norm(i1 - i0, axis=1)
    offset = np.linalg.norm((p0 + p1) / 2.0 - (i0 + i1) / 2.0, axis=1)
    ok &= span > LENGTH_EPSILON

    vis = np.zeros(len(p))
    vis[ok] = np.maximum(0.0, 1.0 - 2.0 * offset[ok] / span[ok])
    return vis


def _clip01(value: float) -> float:
    return min(1.0, max(0.0, value))
