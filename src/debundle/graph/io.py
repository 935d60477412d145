"""Reading and writing graphs for the command line.

Graphs are stored as networkx node-link JSON with edges under
``"edges"``. Bundled polylines are plain edge attributes, so a bundled
graph round-trips through the same format.
"""

from __future__ import annotations

__all__ = ["dump_graph", "graph_from_edge_list", "load_graph"]

import json
from collections.abc import Hashable, Mapping, Sequence
from pathlib import Path

import networkx as nx

from debundle.errors import ConfigurationError


def load_graph(path: str | Path) -> nx.DiGraph:
    """Load a directed graph from node-link JSON.

    Edges are read from ``"edges"``, or from ``"links"`` for files written
    with the older networkx default.
    """
    text = Path(path).read_text()
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"{path}: not valid JSON ({exc})") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path}: expected a node-link JSON object")
    data.setdefault("directed", True)
    if not data["directed"]:
        raise ConfigurationError(f"{path}: graph is not directed")

    edges = "links" if "edges" not in data and "links" in data else "edges"
    try:
        return nx.node_link_graph(data, edges=edges)
    except (KeyError, TypeError, nx.NetworkXError) as exc:
        raise ConfigurationError(f"{path}: not a node-link graph ({exc!r})") from exc


def dump_graph(graph: nx.DiGraph, path: str | Path) -> None:
    """Write ``graph`` as node-link JSON."""
    data = nx.node_link_data(graph, edges="edges")
    Path(path).write_text(json.dumps(data, indent=2) + "\n")


def graph_from_edge_list(
    sources: Sequence[Hashable],
    targets: Sequence[Hashable],
    coords: Mapping[Hashable, tuple[float, float]],
    weights: Sequence[float] | None = None,
    multigraph: bool = False,
) -> nx.DiGraph:
    """Build a digraph from parallel source/target lists and node positions.

    Nodes are added in ``coords`` order, then any node only named by an
    edge (which will later fail validation for lacking coordinates).
    """
    if len(sources) != len(targets):
        raise ConfigurationError(
            f"{len(sources)} sources but {len(targets)} targets"
        )
    if weights is None:
        weights = [1.0] * len(sources)
    elif len(weights) != len(sources):
        raise ConfigurationError(f"{len(weights)} weights for {len(sources)} edges")

    graph = nx.MultiDiGraph() if multigraph else nx.DiGraph()
    for node_id, (x, y) in coords.items():
        graph.add_node(node_id, x=x, y=y)
    for u, v, w in zip(sources, targets, weights):
        graph.add_edge(u, v, weight=w)
    return graph
