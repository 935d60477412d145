"""Bundling coordinator: validates input, runs the passes, builds the overlay.

Degenerate edges (self-loops and edges whose endpoints coincide) are not
bundled. They are returned as the two-point segment from source to
target with zero bundle compatibility, and one DegenerateEdgeWarning
lists them.

Per-edge aggregates, over the neighbour set N(P) of the final pass:

- bundle_compat = mean of C(P, Q), or 0 when N(P) is empty
- bundle_weight = w(P) + sum of C(P, Q) * w(Q)
"""

from __future__ import annotations

__all__ = ["bundle_edges", "debundle", "partition_edges"]

import logging
import warnings
from collections.abc import Callable
from typing import Any

import networkx as nx
import numpy as np

from debundle.bundling.compatibility import compute_compatibility
from debundle.bundling.config import BundleConfig
from debundle.bundling.constants import (
    LENGTH_EPSILON,
    PREPROCESSING_PHASE,
    WARNING_PREVIEW,
)
from debundle.bundling.relaxation import ProgressCallback, relax
from debundle.bundling.subdivision import build_divided_edges, join_halves
from debundle.errors import ConfigurationError, DegenerateEdgeWarning
from debundle.graph.model import (
    BundleResult,
    Edge,
    EdgeBundle,
    GraphData,
    merge_overlay,
    read_graph,
)

logger = logging.getLogger(__name__)


def debundle(
    graph: nx.DiGraph,
    config: BundleConfig | None = None,
    *,
    progress: ProgressCallback | None = None,
    should_cancel: Callable[[], bool] | None = None,
    **options: Any,
) -> nx.DiGraph:
    """Bundle the edges of ``graph`` and return an annotated copy.

    Every edge of the copy gains ``x`` and ``y`` (the bundled polyline,
    source first), ``bundle_compat`` and ``bundle_weight``. Options may be
    given as a BundleConfig or as keyword arguments (snake_case or the
    camelCase names, e.g. ``stepSize``), not both.
    """
    config = _resolve_config(config, options)
    result = _bundle_edges(graph, config, progress, should_cancel)
    return merge_overlay(graph, result)


def bundle_edges(
    graph: nx.DiGraph,
    config: BundleConfig | None = None,
    *,
    progress: ProgressCallback | None = None,
    should_cancel: Callable[[], bool] | None = None,
    **options: Any,
) -> BundleResult:
    """Compute bundled polylines without touching ``graph``."""
    config = _resolve_config(config, options)
    return _bundle_edges(graph, config, progress, should_cancel)


def _bundle_edges(
    graph: nx.DiGraph,
    config: BundleConfig,
    progress: ProgressCallback | None,
    should_cancel: Callable[[], bool] | None,
) -> BundleResult:
    data = read_graph(graph)

    bundled, degenerate = partition_edges(data)
    if degenerate:
        _warn_degenerate(degenerate)

    result = BundleResult(passes=config.passes)
    if bundled:
        _bundle(data, bundled, config, result, progress, should_cancel)
    for edge in degenerate:
        sx, sy = data.position(edge.source)
        tx, ty = data.position(edge.target)
        result.edges[edge.key] = EdgeBundle(
            x=[sx, tx], y=[sy, ty], bundle_compat=0.0, bundle_weight=edge.weight
        )
        result.degenerate.append(edge.key)

    # Report edges in graph order regardless of how they were processed.
    result.edges = {edge.key: result.edges[edge.key] for edge in data.edges}
    return result


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _resolve_config(
    config: BundleConfig | None, options: dict[str, Any]
) -> BundleConfig:
    if config is not None and options:
        raise ConfigurationError(
            "Pass either a BundleConfig or keyword options, not both"
        )
    if config is None:
        return BundleConfig.from_options(**options)
    config.validate()
    return config


def partition_edges(data: GraphData) -> tuple[list[Edge], list[Edge]]:
    """Split edges into (bundled, degenerate) lists, keeping graph order."""
    bundled: list[Edge] = []
    degenerate: list[Edge] = []
    for edge in data.edges:
        sx, sy = data.position(edge.source)
        tx, ty = data.position(edge.target)
        if edge.is_self_loop or np.hypot(tx - sx, ty - sy) <= LENGTH_EPSILON:
            degenerate.append(edge)
        else:
            bundled.append(edge)
    return bundled, degenerate


def _warn_degenerate(degenerate: list[Edge]) -> None:
    keys = [edge.key for edge in degenerate]
    preview = ", ".join(repr(k) for k in keys[:WARNING_PREVIEW])
    if len(keys) > WARNING_PREVIEW:
        preview += f", ... ({len(keys) - WARNING_PREVIEW} more)"
    warnings.warn(
        f"{len(keys)} self-loop or zero-length edge(s) passed through as "
        f"straight segments: {preview}",
        DegenerateEdgeWarning,
        # Attribute the warning to the caller of debundle or bundle_edges
        stacklevel=4,
    )


def _bundle(
    data: GraphData,
    edges: list[Edge],
    config: BundleConfig,
    result: BundleResult,
    progress: ProgressCallback | None,
    should_cancel: Callable[[], bool] | None,
) -> None:
    n_edges = len(edges)
    sources = np.empty((n_edges, 2))
    targets = np.empty((n_edges, 2))
    for i, edge in enumerate(edges):
        sources[i] = data.position(edge.source)
        targets[i] = data.position(edge.target)
        if progress is not None:
            progress(PREPROCESSING_PHASE, i + 1, n_edges)
    weights = np.array([edge.weight for edge in edges], dtype=float)
    mean_length = float(np.mean(np.linalg.norm(targets - sources, axis=1)))

    halves = build_divided_edges(sources, targets, config.initial_subdivisions)
    table = compute_compatibility(sources, targets, config.compatibility_threshold)
    logger.debug(
        "Bundling %d edges (%d compatible pairs, mean length %.4g) over %d passes",
        n_edges,
        table.pair_count,
        mean_length,
        config.passes,
    )

    relaxed = relax(
        halves,
        sources,
        targets,
        weights,
        table,
        config,
        mean_length,
        progress=progress,
        should_cancel=should_cancel,
    )
    polylines = join_halves(relaxed.halves)
    # Anchors never move, but pin them so endpoints match the nodes exactly.
    polylines[:, 0] = sources
    polylines[:, -1] = targets

    for i, edge in enumerate(edges):
        line = polylines[i]
        if not np.all(np.isfinite(line)):
            raise FloatingPointError(
                f"Non-finite coordinates computed for edge {edge.key!r}"
            )
        nbrs, scores = relaxed.neighbors[i], relaxed.neighbor_scores[i]
        compat = float(np.mean(scores)) if len(scores) else 0.0
        bundle_weight = edge.weight + float(np.sum(scores * weights[nbrs]))
        result.edges[edge.key] = EdgeBundle(
            x=line[:, 0].tolist(),
            y=line[:, 1].tolist(),
            bundle_compat=compat,
            bundle_weight=bundle_weight,
        )
