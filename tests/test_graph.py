"""Tests for graph validation, overlays and node-link I/O."""

import json

import networkx as nx
import pytest

from debundle.errors import ConfigurationError
from debundle.graph import (
    BundleResult,
    EdgeBundle,
    dump_graph,
    graph_from_edge_list,
    load_graph,
    merge_overlay,
    read_graph,
)


def test_read_graph_preserves_edge_order(example_graph):
    data = read_graph(example_graph)
    assert [e.key for e in data.edges] == list(example_graph.edges)
    assert len(data.nodes) == 12
    assert data.position("3b") == (50.0, 0.0)
    assert not data.multigraph


def test_read_graph_default_weight():
    graph = nx.DiGraph()
    graph.add_node(1, x=0, y=0)
    graph.add_node(2, x=3, y=4)
    graph.add_edge(1, 2)
    (edge,) = read_graph(graph).edges
    assert edge.weight == 1.0
    assert edge.key == (1, 2)


def test_read_graph_ignores_isolated_nodes_without_coordinates():
    graph = nx.DiGraph()
    graph.add_node("a", x=0, y=0)
    graph.add_node("b", x=1, y=0)
    graph.add_node("lonely")
    graph.add_edge("a", "b")
    assert set(read_graph(graph).nodes) == {"a", "b"}


def test_read_multigraph_keys():
    graph = nx.MultiDiGraph()
    graph.add_node("a", x=0, y=0)
    graph.add_node("b", x=1, y=0)
    graph.add_edge("a", "b")
    graph.add_edge("a", "b")
    data = read_graph(graph)
    assert data.multigraph
    assert [e.key for e in data.edges] == [("a", "b", 0), ("a", "b", 1)]


def test_bool_weight_rejected():
    graph = nx.DiGraph()
    graph.add_node("a", x=0, y=0)
    graph.add_node("b", x=1, y=0)
    graph.add_edge("a", "b", weight=True)
    with pytest.raises(ConfigurationError, match="weight"):
        read_graph(graph)


def test_merge_overlay_copies(example_graph):
    u, v = next(iter(example_graph.edges))
    overlay = EdgeBundle(
        x=[1.0, 2.0], y=[3.0, 4.0], bundle_compat=0.5, bundle_weight=2.0
    )
    result = BundleResult(edges={(u, v): overlay})
    merged = merge_overlay(example_graph, result)
    assert merged.edges[u, v]["x"] == [1.0, 2.0]
    assert merged.edges[u, v]["bundle_compat"] == 0.5
    assert "x" not in example_graph.edges[u, v]


def test_edge_bundle_length_mismatch():
    with pytest.raises(ValueError, match="mismatch"):
        EdgeBundle(x=[0.0, 1.0], y=[0.0], bundle_compat=0.0, bundle_weight=1.0)


def test_graph_from_edge_list_validates_lengths():
    with pytest.raises(ConfigurationError, match="targets"):
        graph_from_edge_list(["a"], [], {"a": (0, 0)})
    with pytest.raises(ConfigurationError, match="weights"):
        graph_from_edge_list(["a"], ["a"], {"a": (0, 0)}, weights=[1.0, 2.0])


def test_graph_from_edge_list_multigraph():
    graph = graph_from_edge_list(
        ["a", "a"], ["b", "b"], {"a": (0, 0), "b": (1, 1)}, multigraph=True
    )
    assert graph.number_of_edges() == 2


def test_node_link_round_trip(tmp_path, example_graph):
    path = tmp_path / "graph.json"
    dump_graph(example_graph, path)
    loaded = load_graph(path)
    assert loaded.is_directed()
    assert list(loaded.edges) == list(example_graph.edges)
    assert loaded.nodes["5b"] == example_graph.nodes["5b"]
    assert "edges" in json.loads(path.read_text())


def test_load_rejects_undirected(tmp_path):
    path = tmp_path / "undirected.json"
    dump_graph(nx.path_graph(3), path)
    with pytest.raises(ConfigurationError, match="not directed"):
        load_graph(path)


def test_load_rejects_bad_json(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{nope")
    with pytest.raises(ConfigurationError, match="not valid JSON"):
        load_graph(path)


def test_load_accepts_links_key(tmp_path, example_graph):
    path = tmp_path / "links.json"
    path.write_text(json.dumps(nx.node_link_data(example_graph, edges="links")))
    loaded = load_graph(path)
    assert list(loaded.edges) == list(example_graph.edges)


@pytest.mark.parametrize(
    "content",
    [
        "[]",
        '{"directed": true, "nodes": [{"id": "a"}]}',
        '{"directed": true, "nodes": 5, "edges": []}',
    ],
    ids=["top-level-list", "no-edges-key", "nodes-not-a-list"],
)
def test_load_rejects_malformed_node_link(tmp_path, content):
    path = tmp_path / "bad.json"
    path.write_text(content)
    with pytest.raises(ConfigurationError, match="bad.json"):
        load_graph(path)
