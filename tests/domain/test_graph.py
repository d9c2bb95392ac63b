import pytest

from entry_scan.domain.entities.geography import Node, Way
from entry_scan.domain.errors import InvalidGeometry
from entry_scan.domain.topology.topology_graph import (
    build_graph,
    continuity,
    edge_key,
    graph_fingerprint,
)


def test_build_graph_adjacency(crossing_network):
    nodes, ways = crossing_network
    g = build_graph(nodes, ways)

    assert len(g.nodes) == 6
    assert len(g.ways) == 3
    assert g.has_edge("outside1", "edge1") and g.has_edge("edge1", "outside1")
    assert g.has_edge("edge1", "inside1") and g.has_edge("inside1", "edge1")
    assert not g.has_edge("outside1", "inside1")
    assert list(g.neighbors("inside1")) == ["edge1", "inside2"]


def test_build_graph_empty():
    g = build_graph([], [])
    assert g.stats().node_count == 0
    assert g.stats().way_count == 0
    assert g.stats().edge_count == 0
    assert g.adjacency == {}


def test_isolated_nodes_still_have_adjacency():
    g = build_graph([Node("a", 0, 0), Node("b", 1, 1)], [])
    assert g.degree("a") == 0
    assert g.degree("b") == 0
    assert "a" in g.adjacency and "b" in g.adjacency


def test_missing_node_skips_only_that_connection():
    nodes = [Node(1, 0, 0), Node(2, 0, 1), Node(4, 0, 3)]
    g = build_graph(nodes, [Way("w", (1, 2, 3, 4))])
    assert g.has_edge(1, 2)
    assert not g.has_edge(2, 4)
    assert g.skipped_connections == 2
    assert g.edge_count == 1


def test_shared_edge_counts_once_per_way():
    nodes = [Node(1, 0, 0), Node(2, 0, 1), Node(3, 0, 2)]
    ways = [Way("a", (1, 2, 3)), Way("b", (2, 1))]
    g = build_graph(nodes, ways)
    assert g.edge_ways[edge_key(1, 2)] == ["a", "b"]
    assert g.edge_count == 3
    assert g.degree(2) == 2
    assert g.way_ids_along((3, 2, 1)) == ("a", "b")


def test_edge_key_is_order_independent():
    assert edge_key("x", "y") == edge_key("y", "x")
    assert edge_key(1, "1") == edge_key("1", 1)


def test_malformed_node_coordinates_raise():
    with pytest.raises(InvalidGeometry):
        build_graph([Node("a", float("nan"), 0.0)], [])
    with pytest.raises(InvalidGeometry):
        build_graph([Node("a", 0.0, 95.0)], [])


def test_fingerprint_tracks_content(crossing_network):
    nodes, ways = crossing_network
    base = graph_fingerprint(nodes, ways)
    assert base == graph_fingerprint(list(nodes), list(ways))

    moved = [Node(n.id, n.lon + 1e-7, n.lat) if n.id == "inside2" else n for n in nodes]
    assert graph_fingerprint(moved, ways) != base

    retagged = [Way(w.id, w.node_ids, {"highway": "footway"}) for w in ways]
    assert graph_fingerprint(nodes, retagged) != base


def test_continuity_caps_degree():
    # star: hub has degree 5, capped at 4
    nodes = [Node(i, 0, i) for i in range(6)]
    ways = [Way(f"w{i}", (0, i)) for i in range(1, 6)]
    g = build_graph(nodes, ways)
    assert abs(continuity(g, (1, 0, 2)) - (1 + 4 + 1) / 3 / 4) < 1e-12
    assert continuity(g, ()) == 0.0
