# entry_scan/app/detect.py
import logging
import time

from entry_scan.app.protocols import ClusteringPolicy, ConfidencePolicy, RoadClassPolicy
from entry_scan.domain.entities.candidate import DetectionInput, DetectionResult, EntryCandidate
from entry_scan.domain.entities.geography import LonLat, NodeId
from entry_scan.domain.topology.topology_core import Topology
from entry_scan.domain.topology.topology_geometry import (
    normalize_ring,
    outer_buffer,
    ring_centroid,
)
from entry_scan.domain.topology.topology_graph import RoadGraph
from entry_scan.domain.topology.topology_search import SearchHit
from entry_scan.engine.hooks import DetectionHooks, NoopHooks
from entry_scan.policy.clustering import rank_key

log = logging.getLogger(__name__)


def candidate_id(hit_point: LonLat, start: NodeId) -> str:
    return f"entry-{hit_point[0]:.7f},{hit_point[1]:.7f}@{start}"


class Detector:
    """
    Runs one detection: graph → start nodes → per-start search → score →
    cluster → rank. Pure in (polygon, nodes, ways, buffer) given its policies.
    """

    def __init__(
        self,
        topology: Topology,
        *,
        road_class: RoadClassPolicy,
        confidence: ConfidencePolicy,
        clustering: ClusteringPolicy,
        hooks: DetectionHooks | None = None,
    ):
        self.topology = topology
        self.road_class = road_class
        self.confidence = confidence
        self.clustering = clustering
        self.hooks = hooks or NoopHooks()

    def score(self, graph: RoadGraph, hit: SearchHit) -> EntryCandidate:
        m = self.topology.measure(graph, hit)
        rc = self.road_class.weight(graph, m.way_ids)
        conf = self.confidence.confidence(
            distance_m=m.distance_m,
            straightness=m.straightness,
            continuity=m.continuity,
            path_nodes=len(hit.path),
            road_class=rc,
        )
        return EntryCandidate(
            id=candidate_id(hit.hit_point, hit.path[0]),
            intersection_point=hit.hit_point,
            path_node_ids=hit.path,
            path_geometry=m.coords,
            distance_m=m.distance_m,
            distance_score=self.confidence.distance_score(m.distance_m),
            straightness=m.straightness,
            continuity=m.continuity,
            road_class_score=rc,
            confidence=conf,
            way_ids=m.way_ids,
        )

    def run(self, inp: DetectionInput) -> DetectionResult:
        t0 = time.perf_counter()
        try:
            ring = normalize_ring(inp.polygon)
            self.hooks.run_start(
                nodes=len(inp.nodes), ways=len(inp.ways), outer_buffer_m=inp.outer_buffer_m
            )
            buffer = outer_buffer(ring, inp.outer_buffer_m)

            prepared, cached = self.topology.prepare(inp.nodes, inp.ways)
            graph = prepared.graph
            self.hooks.graph_built(
                stats=graph.stats(), cached=cached, skipped=graph.skipped_connections
            )

            starts = self.topology.start_nodes(
                prepared, ring, buffer, search_radius_m=inp.search_radius_m
            )
            self.hooks.start_nodes(count=len(starts))

            raw: list[EntryCandidate] = []
            for s in starts:
                hit = self.topology.search(graph, s, ring, max_visits=inp.max_visits)
                if hit is None:
                    continue
                cand = self.score(graph, hit)
                raw.append(cand)
                self.hooks.candidate(cand, visits=hit.visits)

            ref_lat = ring_centroid(ring)[1]
            kept = sorted(self.clustering.cluster(raw, ref_lat=ref_lat), key=rank_key)
        except Exception as exc:
            self.hooks.error(reason="detection_failed", exc=exc)
            raise

        result = DetectionResult(
            candidates=tuple(kept),
            processing_time_ms=(time.perf_counter() - t0) * 1000.0,
            graph_stats=graph.stats(),
            start_node_count=len(starts),
            raw_candidate_count=len(raw),
        )
        self.hooks.run_end(result)
        return result
