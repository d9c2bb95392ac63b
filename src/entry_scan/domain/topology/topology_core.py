# entry_scan/domain/topology/topology_core.py
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from entry_scan.app.protocols import PathTraverser, SpatialIndex
from entry_scan.domain.entities.geography import Area, LonLat, Node, NodeId, Ring, Way, WayId
from entry_scan.domain.topology.topology_geometry import path_length_m, straightness
from entry_scan.domain.topology.topology_graph import (
    RoadGraph,
    build_graph,
    continuity,
    graph_fingerprint,
)
from entry_scan.domain.topology.topology_search import SearchHit, StartNodeFinder
from entry_scan.runtime.resources import GraphCache


@dataclass(frozen=True)
class PreparedGraph:
    graph: RoadGraph
    index: SpatialIndex


@dataclass(frozen=True)
class PathMetrics:
    coords: tuple[LonLat, ...]
    distance_m: float
    straightness: float
    continuity: float
    way_ids: tuple[WayId, ...]


@dataclass
class Topology:
    traverser: PathTraverser
    start_finder: StartNodeFinder
    index_builder: Callable[[RoadGraph], SpatialIndex]
    cache: GraphCache[PreparedGraph] | None = None

    def prepare(self, nodes: Sequence[Node], ways: Sequence[Way]) -> tuple[PreparedGraph, bool]:
        """Graph plus spatial index, from the cache when the content fingerprint matches."""

        def _build() -> PreparedGraph:
            g = build_graph(nodes, ways)
            return PreparedGraph(g, self.index_builder(g))

        if self.cache is None:
            return _build(), False
        return self.cache.get_or_build(graph_fingerprint(nodes, ways), _build)

    def start_nodes(
        self,
        prepared: PreparedGraph,
        ring: Ring,
        buffer: Area,
        *,
        search_radius_m: float | None = None,
    ) -> list[NodeId]:
        return self.start_finder.find(
            prepared.graph, prepared.index, ring, buffer, search_radius_m=search_radius_m
        )

    def search(
        self, graph: RoadGraph, start: NodeId, ring: Ring, *, max_visits: int | None = None
    ) -> SearchHit | None:
        return self.traverser.search(graph, start, ring, max_visits=max_visits)

    def measure(self, graph: RoadGraph, hit: SearchHit) -> PathMetrics:
        coords = graph.path_coords(hit.path)
        return PathMetrics(
            coords=coords,
            distance_m=path_length_m(coords),
            straightness=straightness(coords),
            continuity=continuity(graph, hit.path),
            way_ids=graph.way_ids_along(hit.path),
        )
