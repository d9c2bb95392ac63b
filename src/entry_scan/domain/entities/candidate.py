from dataclasses import dataclass, field, replace

from entry_scan.domain.entities.geography import LonLat, Node, NodeId, Ring, Way, WayId


@dataclass(frozen=True)
class EntryCandidate:
    id: str
    intersection_point: LonLat  # on a polygon boundary edge
    path_node_ids: tuple[NodeId, ...]  # outside start .. first node past the boundary
    path_geometry: tuple[LonLat, ...]
    distance_m: float
    distance_score: float  # 0..1, distance normalized against the cap
    straightness: float  # 0..1 (1 = straight)
    continuity: float  # 0..1 (junction-degree consistency)
    road_class_score: float  # 0..1
    confidence: float  # 0..1
    way_ids: tuple[WayId, ...] = ()
    manual: bool = False

    @property
    def start_node_id(self) -> NodeId | None:
        return self.path_node_ids[0] if self.path_node_ids else None


@dataclass(frozen=True)
class GraphStats:
    node_count: int = 0
    way_count: int = 0
    edge_count: int = 0  # edge instances; an edge shared by two ways counts twice


@dataclass(frozen=True)
class DetectionInput:
    polygon: Ring
    nodes: tuple[Node, ...] = ()
    ways: tuple[Way, ...] = ()
    outer_buffer_m: float = 30.0
    max_visits: int | None = None
    search_radius_m: float | None = None

    def __post_init__(self):
        object.__setattr__(self, "nodes", tuple(self.nodes))
        object.__setattr__(self, "ways", tuple(self.ways))


@dataclass(frozen=True)
class DetectionResult:
    candidates: tuple[EntryCandidate, ...] = ()
    processing_time_ms: float = 0.0
    graph_stats: GraphStats = field(default_factory=GraphStats)
    start_node_count: int = 0
    raw_candidate_count: int = 0

    def without(self, candidate_id: str) -> "DetectionResult":
        """Snapshot with one candidate discarded; this result is left untouched."""
        return replace(
            self, candidates=tuple(c for c in self.candidates if c.id != candidate_id)
        )

    def by_id(self, candidate_id: str) -> EntryCandidate | None:
        return next((c for c in self.candidates if c.id == candidate_id), None)
