"""Force-directed relaxation of divided half-edges.

Runs a fixed schedule of passes. Each pass works at one subdivision
resolution and runs a number of synchronous iterations: every interior
point's displacement is computed from the iteration-start positions and
all displacements are committed together. Between passes the halves are
resampled to the next resolution.

Forces on an interior point p of edge P:

- spring toward its neighbours along P, scaled by P's rest segment length
- attraction toward the corresponding point of every neighbouring edge Q,
  weighted by C(P, Q) and Q's relative weight, with a softened
  inverse-distance falloff. For edges running the opposite way the
  corresponding point is on Q's other half and is shifted sideways by the
  lane width, so opposite flows settle into adjacent lanes instead of
  on top of each other.

The summed force is clipped to unit length, so a point never moves
further than the pass step in one iteration.
"""

from __future__ import annotations

__all__ = ["ProgressCallback", "RelaxationResult", "relax"]

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

import numpy as np

from debundle.bundling.compatibility import CompatibilityTable
from debundle.bundling.config import BundleConfig, PassSchedule
from debundle.bundling.constants import LENGTH_EPSILON
from debundle.bundling.spatial import SpatialIndex
from debundle.bundling.subdivision import join_halves, resample_halves, split_halves
from debundle.errors import BundlingCancelled

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, int, int], None]


@dataclass
class RelaxationResult:
    """Final halves plus the neighbour sets used in the last pass."""

    halves: np.ndarray
    neighbors: list[np.ndarray]
    neighbor_scores: list[np.ndarray]
    schedule: list[PassSchedule] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Relaxation context: per-run state shared by every pass
# ---------------------------------------------------------------------------


@dataclass
class _RelaxCtx:
    """Pre-computed state shared by the pass and iteration loops."""

    table: CompatibilityTable
    lengths: np.ndarray
    normals: np.ndarray
    weights: np.ndarray
    spring_constant: float
    softening: float
    lane: float
    max_neighbors: int | None
    progress: ProgressCallback | None
    index: SpatialIndex = field(default_factory=SpatialIndex)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def relax(
    halves: np.ndarray,
    sources: np.ndarray,
    targets: np.ndarray,
    weights: np.ndarray,
    table: CompatibilityTable,
    config: BundleConfig,
    mean_length: float,
    progress: ProgressCallback | None = None,
    should_cancel: Callable[[], bool] | None = None,
) -> RelaxationResult:
    """Run every pass of the schedule over ``halves``.

    ``halves`` must be at the first pass's resolution
    (``config.initial_subdivisions``); it is not modified.
    """
    n_edges = halves.shape[0]
    schedule = config.schedule(mean_length)
    ctx = _build_relax_context(
        sources, targets, weights, table, config, mean_length, progress
    )

    halves = halves.copy()
    neighbors = [np.empty(0, dtype=np.intp) for _ in range(n_edges)]
    neighbor_scores = [np.empty(0) for _ in range(n_edges)]

    for sched in schedule:
        if should_cancel is not None and should_cancel():
            raise BundlingCancelled(sched.index, len(schedule))
        if sched.index > 0:
            halves = resample_halves(halves, sched.subdivisions)

        polylines = join_halves(halves)
        neighbors, neighbor_scores, orientations = _select_neighbors(ctx, polylines)
        phase = f"pass {sched.index + 1} of {len(schedule)}"
        logger.debug(
            "Starting %s: %d interior points per half, step %.4g, %d iterations",
            phase,
            sched.subdivisions,
            sched.step,
            sched.iterations,
        )

        for iteration in range(sched.iterations):
            displacement = np.zeros_like(polylines)
            for e in range(n_edges):
                if len(neighbors[e]):
                    force = _edge_force(
                        ctx,
                        polylines,
                        e,
                        neighbors[e],
                        neighbor_scores[e],
                        orientations[e],
                    )
                    displacement[e] = sched.step * force
                if ctx.progress is not None:
                    ctx.progress(
                        phase, iteration * n_edges + e + 1, sched.iterations * n_edges
                    )
            polylines = polylines + displacement

        halves = split_halves(polylines)

    return RelaxationResult(
        halves=halves,
        neighbors=neighbors,
        neighbor_scores=neighbor_scores,
        schedule=schedule,
    )


# ---------------------------------------------------------------------------
# Context builder
# ---------------------------------------------------------------------------


def _build_relax_context(
    sources: np.ndarray,
    targets: np.ndarray,
    weights: np.ndarray,
    table: CompatibilityTable,
    config: BundleConfig,
    mean_length: float,
    progress: ProgressCallback | None,
) -> _RelaxCtx:
    vec = targets - sources
    lengths = np.linalg.norm(vec, axis=1)
    safe = np.where(lengths > LENGTH_EPSILON, lengths, 1.0)
    # Right-hand normal of each edge's direction
    normals = np.column_stack([vec[:, 1], -vec[:, 0]]) / safe[:, None]

    max_weight = float(weights.max()) if len(weights) else 0.0
    if max_weight > 0:
        rel_weights = weights / max_weight
    else:
        rel_weights = np.ones_like(weights, dtype=float)

    return _RelaxCtx(
        table=table,
        lengths=lengths,
        normals=normals,
        weights=rel_weights,
        spring_constant=config.spring_constant,
        softening=config.attraction_radius * mean_length,
        lane=config.lane_width * mean_length,
        max_neighbors=config.max_neighbors,
        progress=progress,
    )


# ---------------------------------------------------------------------------
# Neighbour selection
# ---------------------------------------------------------------------------


def _select_neighbors(
    ctx: _RelaxCtx, polylines: np.ndarray
) -> tuple[list[np.ndarray], list[np.ndarray], list[np.ndarray]]:
    """Compatible neighbours of every edge, capped to the nearest by midpoint."""
    ctx.index.rebuild(polylines[:, polylines.shape[1] // 2])
    neighbors, scores, orientations = [], [], []
    for e in range(polylines.shape[0]):
        idx, sc, ori = ctx.table.neighbors(e)
        if ctx.max_neighbors is not None and len(idx) > ctx.max_neighbors:
            keep = np.isin(idx, ctx.index.nearest_among(e, idx, ctx.max_neighbors))
            idx, sc, ori = idx[keep], sc[keep], ori[keep]
        neighbors.append(idx)
        scores.append(sc)
        orientations.append(ori)
    return neighbors, scores, orientations


# ---------------------------------------------------------------------------
# Forces
# ---------------------------------------------------------------------------


def _edge_force(
    ctx: _RelaxCtx,
    polylines: np.ndarray,
    e: int,
    nbrs: np.ndarray,
    scores: np.ndarray,
    orientations: np.ndarray,
) -> np.ndarray:
    """Clipped force on every point of edge ``e``; anchors get zero."""
    p = polylines[e]
    n_segments = len(p) - 1

    spring = np.zeros_like(p)
    rest = ctx.lengths[e] / n_segments
    if rest > LENGTH_EPSILON:
        spring[1:-1] = (ctx.spring_constant / rest) * (p[:-2] + p[2:] - 2.0 * p[1:-1])

    opposite = orientations < 0
    q = polylines[nbrs]
    q = np.where(opposite[:, None, None], q[:, ::-1], q)
    q = q + (opposite[:, None, None] * ctx.lane) * ctx.normals[e]

    diff = q - p[None]
    dist_sq = np.einsum("kij,kij->ki", diff, diff)
    strength = (scores * ctx.weights[nbrs])[:, None]
    falloff = ctx.softening / (dist_sq + ctx.softening**2)
    attraction = np.einsum("ki,kij->ij", strength * falloff, diff)

    force = spring + attraction
    force[0] = 0.0
    force[-1] = 0.0
    norms = np.linalg.norm(force, axis=1)
    over = norms > 1.0
    force[over] /= norms[over, None]
    return force
