"""Divided edge bundling subpackage.

Public API:
- debundle: Bundle a digraph and return an annotated copy
- bundle_edges: Compute the bundle overlay without merging it
- BundleConfig: Bundling options and pass schedule
- compute_compatibility: Sparse pairwise edge compatibility
- SpatialIndex: KD-tree proximity queries
"""

from debundle.bundling.compatibility import (
    CompatibilityTable,
    PairCompatibility,
    compute_compatibility,
    edge_compatibility,
)
from debundle.bundling.config import BundleConfig, PassSchedule
from debundle.bundling.engine import bundle_edges, debundle, partition_edges
from debundle.bundling.spatial import SpatialIndex
from debundle.bundling.subdivision import DividedEdge

__all__ = [
    "BundleConfig",
    "CompatibilityTable",
    "DividedEdge",
    "PairCompatibility",
    "PassSchedule",
    "SpatialIndex",
    "bundle_edges",
    "compute_compatibility",
    "debundle",
    "edge_compatibility",
    "partition_edges",
]
