# entry_scan/domain/topology/topology_search.py
import heapq
import itertools
from collections import deque
from dataclasses import dataclass

from entry_scan.app.protocols import PathTraverser
from entry_scan.domain.entities.geography import Area, LonLat, NodeId, Ring
from entry_scan.domain.topology.topology_geometry import (
    LocalFrame,
    is_inside,
    points_inside,
    ring_centroid,
    segment_intersects_polygon,
)
from entry_scan.domain.topology.topology_graph import RoadGraph
from entry_scan.domain.topology.topology_index import GridIndex


@dataclass(frozen=True)
class SearchHit:
    path: tuple[NodeId, ...]  # start .. v, u where segment v-u meets the boundary
    hit_point: LonLat
    visits: int = 0


def _backtrack(prev: dict[NodeId, NodeId | None], v: NodeId) -> list[NodeId]:
    path: list[NodeId] = []
    cur: NodeId | None = v
    while cur is not None:
        path.append(cur)
        cur = prev[cur]
    path.reverse()
    return path


class _FifoFrontier:
    def __init__(self, graph: RoadGraph, ring: Ring):
        self._q: deque[NodeId] = deque()

    def __bool__(self) -> bool:
        return bool(self._q)

    def push(self, node_id: NodeId, coord: LonLat) -> None:
        self._q.append(node_id)

    def pop(self) -> NodeId:
        return self._q.popleft()


class _CentroidFrontier:
    def __init__(self, graph: RoadGraph, ring: Ring):
        self._target = ring_centroid(ring)
        self._frame = LocalFrame(*self._target)
        self._seq = itertools.count()
        self._heap: list[tuple[float, int, NodeId]] = []

    def __bool__(self) -> bool:
        return bool(self._heap)

    def push(self, node_id: NodeId, coord: LonLat) -> None:
        d = self._frame.distance_m(coord, self._target)
        heapq.heappush(self._heap, (d, next(self._seq), node_id))

    def pop(self) -> NodeId:
        return heapq.heappop(self._heap)[2]


class BreadthFirstTraverser(PathTraverser):
    """Expand outward from a start node until an edge meets the polygon boundary."""

    frontier_cls = _FifoFrontier

    def __init__(self, max_visits: int = 6000):
        self.max_visits = max_visits

    def search(
        self, graph: RoadGraph, start: NodeId, ring: Ring, *, max_visits: int | None = None
    ) -> SearchHit | None:
        limit = max_visits or self.max_visits
        frontier = self.frontier_cls(graph, ring)
        frontier.push(start, graph.coord(start))
        prev: dict[NodeId, NodeId | None] = {start: None}
        visits = 0
        while frontier and visits < limit:
            visits += 1
            v = frontier.pop()
            pv = graph.coord(v)
            for u in graph.neighbors(v):
                if u in prev:
                    continue
                prev[u] = v
                pu = graph.coord(u)
                hit = segment_intersects_polygon(pv, pu, ring)
                if hit is not None:
                    return SearchHit(tuple(_backtrack(prev, v)) + (u,), hit, visits)
                frontier.push(u, pu)
        return None


class BestFirstTraverser(BreadthFirstTraverser):
    """Same search, frontier ordered by distance to the polygon centroid.

    Only changes how fast a hit is found; the visit ceiling alone decides completeness.
    """

    frontier_cls = _CentroidFrontier


@dataclass
class StartNodeFinder:
    include_gate_nodes: bool = True
    search_radius_m: float | None = None

    def find(
        self,
        graph: RoadGraph,
        index: GridIndex,
        ring: Ring,
        buffer: Area,
        *,
        search_radius_m: float | None = None,
    ) -> list[NodeId]:
        """Nodes in the buffer annulus (plus gate nodes), in graph order."""
        if not graph.nodes:
            return []
        center = ring_centroid(ring)
        frame = LocalFrame(*center)
        reach = max(frame.distance_m(center, p) for p in buffer.exterior)
        radius = max(reach, search_radius_m or self.search_radius_m or 0.0)

        near = index.query(center[0], center[1], radius)
        lons = [graph.nodes[i].lon for i in near]
        lats = [graph.nodes[i].lat for i in near]
        in_poly = points_inside(lons, lats, ring)
        in_buf = points_inside(lons, lats, buffer)

        starts: dict[NodeId, None] = {
            i: None for i, p, b in zip(near, in_poly.tolist(), in_buf.tolist()) if b and not p
        }
        if self.include_gate_nodes:
            # outer endpoint of every edge joining an inside node to an outside node
            for i, p in zip(near, in_poly.tolist()):
                if not p:
                    continue
                for u in graph.neighbors(i):
                    if u not in starts and not is_inside(graph.coord(u), ring):
                        starts[u] = None

        order = {nid: k for k, nid in enumerate(graph.nodes)}
        return sorted(starts, key=order.__getitem__)
