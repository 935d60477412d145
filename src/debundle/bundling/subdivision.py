"""Divided half-edge model.

Each edge is split at its midpoint into a source half (source anchor to
midpoint) and a target half (target anchor to midpoint). Both halves of
all bundled edges live in one array of shape ``(E, 2, n + 2, 2)``:
axis 1 selects the half, axis 2 runs anchor -> n interior points ->
midpoint. The last point of both halves is the same midpoint.
"""

from __future__ import annotations

__all__ = [
    "SOURCE_HALF",
    "TARGET_HALF",
    "DividedEdge",
    "build_divided_edges",
    "divided_edges",
    "join_halves",
    "resample_halves",
    "split_halves",
]

from collections.abc import Hashable
from dataclasses import dataclass

import numpy as np

from debundle.bundling.constants import LENGTH_EPSILON

SOURCE_HALF = 0
TARGET_HALF = 1


@dataclass
class DividedEdge:
    """The two half-edge polylines of one edge."""

    key: Hashable
    source_half: np.ndarray
    target_half: np.ndarray

    @property
    def subdivisions(self) -> int:
        """Interior control points per half (anchor and midpoint excluded)."""
        return len(self.source_half) - 2

    @property
    def midpoint(self) -> np.ndarray:
        return self.source_half[-1]

    def polyline(self) -> np.ndarray:
        """Source-to-target polyline with the midpoint listed once."""
        return np.concatenate([self.source_half, self.target_half[-2::-1]])


def build_divided_edges(
    sources: np.ndarray, targets: np.ndarray, subdivisions: int
) -> np.ndarray:
    """Straight halves from each anchor to the edge midpoint.

    Returns an ``(E, 2, subdivisions + 2, 2)`` array with the interior
    points equally spaced along each half.
    """
    sources = np.asarray(sources, dtype=float).reshape(-1, 2)
    targets = np.asarray(targets, dtype=float).reshape(-1, 2)
    mid = (sources + targets) / 2.0
    t = np.linspace(0.0, 1.0, subdivisions + 2)[None, :, None]

    halves = np.empty((len(sources), 2, subdivisions + 2, 2))
    halves[:, SOURCE_HALF] = sources[:, None, :] + t * (mid - sources)[:, None, :]
    halves[:, TARGET_HALF] = targets[:, None, :] + t * (mid - targets)[:, None, :]
    halves[:, SOURCE_HALF, 0] = sources
    halves[:, TARGET_HALF, 0] = targets
    halves[:, :, -1] = mid[:, None, :]
    return halves


def resample_halves(halves: np.ndarray, subdivisions: int) -> np.ndarray:
    """Re-space every half to ``subdivisions`` interior points by arc length.

    Anchors and the shared midpoint are carried over exactly. A half of
    zero length collapses onto its anchor.
    """
    n_edges = halves.shape[0]
    out = np.empty((n_edges, 2, subdivisions + 2, 2))
    for e in range(n_edges):
        for h in (SOURCE_HALF, TARGET_HALF):
            out[e, h] = _resample_polyline(halves[e, h], subdivisions + 2)
    return out


def _resample_polyline(pts: np.ndarray, n_points: int) -> np.ndarray:
    seg_len = np.linalg.norm(np.diff(pts, axis=0), axis=1)
    total = float(np.sum(seg_len))
    if total <= LENGTH_EPSILON:
        out = np.repeat(pts[:1], n_points, axis=0)
    else:
        cum = np.concatenate([[0.0], np.cumsum(seg_len)])
        s_targets = np.linspace(0.0, total, n_points)
        out = np.column_stack(
            [np.interp(s_targets, cum, pts[:, 0]), np.interp(s_targets, cum, pts[:, 1])]
        )
    out[0] = pts[0]
    out[-1] = pts[-1]
    return out


def join_halves(halves: np.ndarray) -> np.ndarray:
    """``(E, 2, m, 2)`` halves -> ``(E, 2m - 1, 2)`` source-to-target polylines."""
    return np.concatenate(
        [halves[:, SOURCE_HALF], halves[:, TARGET_HALF, -2::-1]], axis=1
    )


def split_halves(polylines: np.ndarray) -> np.ndarray:
    """Inverse of :func:`join_halves`; both halves get the same midpoint."""
    m = (polylines.shape[1] + 1) // 2
    halves = np.empty((polylines.shape[0], 2, m, 2))
    halves[:, SOURCE_HALF] = polylines[:, :m]
    halves[:, TARGET_HALF] = polylines[:, m - 1 :][:, ::-1]
    return halves


def divided_edges(keys: list[Hashable], halves: np.ndarray) -> list[DividedEdge]:
    """Per-edge records (copies) of a halves array."""
    return [
        DividedEdge(
            key=key,
            source_half=halves[i, SOURCE_HALF].copy(),
            target_half=halves[i, TARGET_HALF].copy(),
        )
        for i, key in enumerate(keys)
    ]
