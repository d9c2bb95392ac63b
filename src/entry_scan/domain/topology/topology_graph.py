# entry_scan/domain/topology/topology_graph.py
import hashlib
import logging
import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from entry_scan.domain.entities.candidate import GraphStats
from entry_scan.domain.entities.geography import LonLat, Node, NodeId, Way, WayId
from entry_scan.domain.errors import InvalidGeometry

log = logging.getLogger(__name__)

EdgeKey = tuple[NodeId, NodeId]


def edge_key(a: NodeId, b: NodeId) -> EdgeKey:
    """Key for an undirected edge; independent of argument order."""
    ka, kb = (str(a), type(a).__name__), (str(b), type(b).__name__)
    return (a, b) if ka <= kb else (b, a)


@dataclass
class RoadGraph:
    nodes: dict[NodeId, Node] = field(default_factory=dict)
    ways: dict[WayId, Way] = field(default_factory=dict)
    # node id -> neighbour ids; dict keys keep insertion order so traversals are reproducible
    adjacency: dict[NodeId, dict[NodeId, None]] = field(default_factory=dict)
    edge_ways: dict[EdgeKey, list[WayId]] = field(default_factory=dict)
    skipped_connections: int = 0

    def neighbors(self, node_id: NodeId) -> Iterable[NodeId]:
        return self.adjacency.get(node_id, {}).keys()

    def degree(self, node_id: NodeId) -> int:
        return len(self.adjacency.get(node_id, ()))

    def has_edge(self, a: NodeId, b: NodeId) -> bool:
        return b in self.adjacency.get(a, {})

    def coord(self, node_id: NodeId) -> LonLat:
        n = self.nodes[node_id]
        return (n.lon, n.lat)

    def path_coords(self, node_ids: Sequence[NodeId]) -> tuple[LonLat, ...]:
        return tuple(self.coord(i) for i in node_ids)

    def way_ids_along(self, node_ids: Sequence[NodeId]) -> tuple[WayId, ...]:
        """Ways covering the consecutive edges of a path, first-seen order."""
        seen: dict[WayId, None] = {}
        for a, b in zip(node_ids, node_ids[1:]):
            for w in self.edge_ways.get(edge_key(a, b), ()):
                seen.setdefault(w, None)
        return tuple(seen)

    @property
    def edge_count(self) -> int:
        return sum(len(ws) for ws in self.edge_ways.values())

    def stats(self) -> GraphStats:
        return GraphStats(
            node_count=len(self.nodes), way_count=len(self.ways), edge_count=self.edge_count
        )


def _check_node(n: Node) -> None:
    try:
        lon, lat = float(n.lon), float(n.lat)
    except (TypeError, ValueError) as exc:
        raise InvalidGeometry(f"node {n.id!r} has non-numeric coordinates") from exc
    if not (math.isfinite(lon) and math.isfinite(lat)):
        raise InvalidGeometry(f"node {n.id!r} has non-finite coordinates")
    if not (-180.0 <= lon <= 180.0 and -90.0 <= lat <= 90.0):
        raise InvalidGeometry(f"node {n.id!r} is outside lon/lat range: ({lon}, {lat})")


def build_graph(nodes: Iterable[Node], ways: Iterable[Way]) -> RoadGraph:
    g = RoadGraph()
    for n in nodes:
        _check_node(n)
        g.nodes[n.id] = n
        g.adjacency.setdefault(n.id, {})

    for w in ways:
        g.ways[w.id] = w
        for a, b in zip(w.node_ids, w.node_ids[1:]):
            if a not in g.nodes or b not in g.nodes:
                g.skipped_connections += 1
                log.debug(
                    "skipping connection with unknown node",
                    extra={"extra": {"way_id": w.id, "a": a, "b": b}},
                )
                continue
            if a == b:
                continue
            g.adjacency[a][b] = None
            g.adjacency[b][a] = None
            g.edge_ways.setdefault(edge_key(a, b), []).append(w.id)
    return g


def graph_fingerprint(nodes: Iterable[Node], ways: Iterable[Way]) -> str:
    """Content hash over node ids/coordinates and way ids/node sequences/tags."""
    h = hashlib.blake2b(digest_size=16)
    for n in nodes:
        h.update(repr((n.id, float(n.lon), float(n.lat))).encode("utf-8"))
    h.update(b"|ways|")
    for w in ways:
        tags = sorted((str(k), str(v)) for k, v in (w.tags or {}).items())
        h.update(repr((w.id, tuple(w.node_ids), tags)).encode("utf-8"))
    return h.hexdigest()


def continuity(graph: RoadGraph, path: Sequence[NodeId], *, cap: int = 4) -> float:
    """Mean node degree along the path, each capped at `cap`, normalized to 0..1."""
    if not path:
        return 0.0
    total = sum(min(graph.degree(i), cap) for i in path)
    return min(total / len(path) / cap, 1.0)
