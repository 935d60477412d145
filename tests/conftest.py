"""Shared test fixtures and helpers for the debundle test suite."""

from __future__ import annotations

import networkx as nx
import numpy as np
import pytest

from debundle.graph import graph_from_edge_list

# --- Two-column example: two 3 x 3 blocks of crossing flows ---

EXAMPLE_X = [-50, -50, -50, 50, 50, 50, -50, -50, -50, 50, 50, 50]
EXAMPLE_Y = [0, -10, -20, 0, -10, -20, -30, -40, -50, -30, -40, -50]
EXAMPLE_IDS = ["0", "1", "2", "3b", "4b", "5b", "0b", "1b", "2b", "3", "4", "5"]

EXAMPLE_SOURCES = [
    "0", "3", "3", "5", "5", "4", "3b", "4b", "5b", "4b", "1b", "0b", "4b", "2b",
]  # fmt: skip
EXAMPLE_TARGETS = [
    "5", "0", "1", "2", "0", "2", "1b", "1b", "1b", "0b", "4b", "5b", "2b", "5b",
]  # fmt: skip


def example_coords() -> dict[str, tuple[float, float]]:
    return {
        nid: (float(x), float(y))
        for nid, x, y in zip(EXAMPLE_IDS, EXAMPLE_X, EXAMPLE_Y)
    }


def make_graph(
    coords: dict, edges: list[tuple], weights: list[float] | None = None
) -> nx.DiGraph:
    """DiGraph from a coordinate dict and (source, target) pairs."""
    sources = [u for u, _ in edges]
    targets = [v for _, v in edges]
    return graph_from_edge_list(sources, targets, coords, weights)


def lateral_offsets(graph: nx.DiGraph, u, v) -> np.ndarray:
    """Distance of each polyline point from the straight source-target line."""
    attrs = graph.edges[u, v]
    pts = np.column_stack([attrs["x"], attrs["y"]])
    s, t = pts[0], pts[-1]
    d = (t - s) / np.linalg.norm(t - s)
    rel = pts - s
    return np.abs(rel[:, 0] * d[1] - rel[:, 1] * d[0])


# --- Pytest fixtures ---


@pytest.fixture
def example_graph() -> nx.DiGraph:
    """The 12-node, 14-edge two-column graph."""
    return graph_from_edge_list(EXAMPLE_SOURCES, EXAMPLE_TARGETS, example_coords())


@pytest.fixture
def parallel_pair() -> nx.DiGraph:
    """Two parallel edges pointing the same way, 10 units apart."""
    return make_graph(
        {"a": (0.0, 0.0), "b": (100.0, 0.0), "c": (0.0, 10.0), "d": (100.0, 10.0)},
        [("a", "b"), ("c", "d")],
    )


@pytest.fixture
def opposite_pair() -> nx.DiGraph:
    """Two parallel edges pointing opposite ways, 10 units apart."""
    return make_graph(
        {"a": (0.0, 0.0), "b": (100.0, 0.0), "c": (100.0, 10.0), "d": (0.0, 10.0)},
        [("a", "b"), ("c", "d")],
    )
