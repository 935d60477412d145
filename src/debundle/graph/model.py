"""Graph adapter: networkx digraphs in, bundle overlays out.

Nodes must carry numeric ``x`` and ``y`` attributes; edges may carry a
``weight`` (default 1.0). The bundling core only ever sees the plain
records built here, and the caller's graph is never modified.
"""

from __future__ import annotations

__all__ = [
    "BundleResult",
    "Edge",
    "EdgeBundle",
    "GraphData",
    "Node",
    "merge_overlay",
    "read_graph",
]

import math
import numbers
from collections.abc import Hashable
from dataclasses import dataclass, field

import networkx as nx

from debundle.errors import ConfigurationError

DEFAULT_WEIGHT = 1.0


@dataclass(frozen=True)
class Node:
    """A graph node with its fixed position."""

    id: Hashable
    x: float
    y: float


@dataclass(frozen=True)
class Edge:
    """A directed edge. ``key`` is the networkx edge key."""

    key: Hashable
    source: Hashable
    target: Hashable
    weight: float = DEFAULT_WEIGHT

    @property
    def is_self_loop(self) -> bool:
        return self.source == self.target


@dataclass
class GraphData:
    """Nodes and edges extracted from an input graph, in graph order."""

    nodes: dict[Hashable, Node]
    edges: list[Edge]
    multigraph: bool = False

    def position(self, node_id: Hashable) -> tuple[float, float]:
        node = self.nodes[node_id]
        return node.x, node.y


@dataclass
class EdgeBundle:
    """Computed attributes for one edge."""

    x: list[float]
    y: list[float]
    bundle_compat: float
    bundle_weight: float

    def __post_init__(self) -> None:
        if len(self.x) != len(self.y):
            raise ValueError(
                f"Polyline x/y length mismatch: {len(self.x)} vs {len(self.y)}"
            )


@dataclass
class BundleResult:
    """Overlay of computed edge attributes keyed by networkx edge key."""

    edges: dict[Hashable, EdgeBundle] = field(default_factory=dict)
    degenerate: list[Hashable] = field(default_factory=list)
    passes: int = 0

    def __getitem__(self, key: Hashable) -> EdgeBundle:
        return self.edges[key]

    def __len__(self) -> int:
        return len(self.edges)


def read_graph(graph: nx.DiGraph) -> GraphData:
    """Validate ``graph`` and extract its node positions and edges.

    Raises ConfigurationError for undirected graphs, for nodes used by an
    edge that lack finite numeric ``x``/``y``, and for negative or
    non-finite edge weights.
    """
    if not graph.is_directed():
        raise ConfigurationError("Edge bundling requires a directed graph")

    multigraph = graph.is_multigraph()
    edge_iter = (
        graph.edges(keys=True, data=True) if multigraph else graph.edges(data=True)
    )

    nodes: dict[Hashable, Node] = {}
    edges: list[Edge] = []
    for item in edge_iter:
        if multigraph:
            u, v, k, data = item
            key: Hashable = (u, v, k)
        else:
            u, v, data = item
            key = (u, v)
        for nid in (u, v):
            if nid not in nodes:
                nodes[nid] = _read_node(nid, graph.nodes[nid])
        edges.append(Edge(key=key, source=u, target=v, weight=_read_weight(key, data)))

    return GraphData(nodes=nodes, edges=edges, multigraph=multigraph)


def merge_overlay(graph: nx.DiGraph, result: BundleResult) -> nx.DiGraph:
    """Copy of ``graph`` with each edge's bundle attributes filled in."""
    out = graph.copy()
    for key, bundle in result.edges.items():
        attrs = out.edges[key]
        attrs["x"] = list(bundle.x)
        attrs["y"] = list(bundle.y)
        attrs["bundle_compat"] = bundle.bundle_compat
        attrs["bundle_weight"] = bundle.bundle_weight
    return out


def _read_node(node_id: Hashable, data: dict) -> Node:
    coords = []
    for name in ("x", "y"):
        if name not in data:
            raise ConfigurationError(f"Node {node_id!r} has no {name!r} coordinate")
        value = data[name]
        if (
            isinstance(value, bool)
            or not isinstance(value, numbers.Real)
            or not math.isfinite(value)
        ):
            raise ConfigurationError(
                f"Node {node_id!r} has invalid {name!r} coordinate {value!r}"
            )
        coords.append(float(value))
    return Node(id=node_id, x=coords[0], y=coords[1])


def _read_weight(key: Hashable, data: dict) -> float:
    value = data.get("weight", DEFAULT_WEIGHT)
    if (
        isinstance(value, bool)
        or not isinstance(value, numbers.Real)
        or not math.isfinite(value)
        or value < 0
    ):
        raise ConfigurationError(f"Edge {key!r} has invalid weight {value!r}")
    return float(value)
