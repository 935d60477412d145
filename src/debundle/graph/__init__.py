"""Graph input validation, bundle overlays and node-link file I/O."""

from debundle.graph.io import dump_graph, graph_from_edge_list, load_graph
from debundle.graph.model import (
    BundleResult,
    Edge,
    EdgeBundle,
    GraphData,
    Node,
    merge_overlay,
    read_graph,
)

__all__ = [
    "BundleResult",
    "Edge",
    "EdgeBundle",
    "GraphData",
    "Node",
    "dump_graph",
    "graph_from_edge_list",
    "load_graph",
    "merge_overlay",
    "read_graph",
]
