"""Divided edge bundling for directed graphs with fixed node positions.

Implements the algorithm of Selassie, Heller & Heer (2011), "Divided
edge bundling for directional network data".
"""

from debundle.bundling import BundleConfig, bundle_edges, debundle
from debundle.errors import (
    BundlingCancelled,
    ConfigurationError,
    DebundleError,
    DegenerateEdgeWarning,
)
from debundle.graph import BundleResult, EdgeBundle, graph_from_edge_list

__version__ = "0.1.0"

__all__ = [
    "BundleConfig",
    "BundleResult",
    "BundlingCancelled",
    "ConfigurationError",
    "DebundleError",
    "DegenerateEdgeWarning",
    "EdgeBundle",
    "bundle_edges",
    "debundle",
    "graph_from_edge_list",
]
