from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from entry_scan.domain.entities.candidate import DetectionInput, DetectionResult, EntryCandidate
from entry_scan.domain.entities.geography import NodeId, Ring, WayId

if TYPE_CHECKING:
    from entry_scan.domain.topology.topology_graph import RoadGraph
    from entry_scan.domain.topology.topology_search import SearchHit


# ------------- Topology --------------------
@runtime_checkable
class SpatialIndex(Protocol):
    """
    Responsibilities:
    • Answer "nodes within radius R of point P" in sublinear time.
    • Return a superset of the true hits; callers re-verify exactly.
    Units: degrees for the query point, meters for the radius.
    """

    def query(self, lon: float, lat: float, radius_m: float) -> list[NodeId]: ...


@runtime_checkable
class PathTraverser(Protocol):
    """
    Responsibilities:
      • Walk the graph from one outside start node to the first edge that
        meets the polygon boundary.
      • Stop silently after `max_visits` expanded nodes.
    """

    def search(
        self, graph: RoadGraph, start: NodeId, ring: Ring, *, max_visits: int | None = None
    ) -> SearchHit | None: ...


# --------------- Policies -------------------------


@runtime_checkable
class RoadClassPolicy(Protocol):
    def weight(self, graph: RoadGraph, way_ids: Sequence[WayId]) -> float: ...


@runtime_checkable
class ConfidencePolicy(Protocol):
    """
    Blend distance, straightness, continuity and road class into one 0..1 score.
    Every component score stays visible on the candidate.
    """

    def distance_score(self, distance_m: float) -> float: ...
    def confidence(
        self,
        *,
        distance_m: float,
        straightness: float,
        continuity: float,
        path_nodes: int,
        road_class: float,
    ) -> float: ...


@runtime_checkable
class ClusteringPolicy(Protocol):
    def cluster(
        self, candidates: Sequence[EntryCandidate], *, ref_lat: float
    ) -> list[EntryCandidate]: ...


# --------------- Services -------------------------


@runtime_checkable
class DetectionService(Protocol):
    def compute(self, inp: DetectionInput) -> DetectionResult: ...
