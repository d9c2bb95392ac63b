from math import isfinite
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator

from entry_scan.domain.topology.topology_geometry import MAX_OUTER_BUFFER_M


class LogModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    debug: bool = False


# ----------------- TRAVERSAL ---------------------


class TraversalBfsModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["bfs"] = "bfs"
    max_visits: int = Field(default=6000, gt=0)


class TraversalBestFirstModel(BaseModel):
    """Orders the frontier by distance to the polygon centroid (performance only)."""

    model_config = ConfigDict(extra="forbid")
    kind: Literal["best_first"] = "best_first"
    max_visits: int = Field(default=6000, gt=0)


TraversalUnion = Annotated[
    TraversalBfsModel | TraversalBestFirstModel,
    Field(discriminator="kind"),
]

# ----------------- SPATIAL INDEX ---------------------


class IndexGridModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["grid"] = "grid"
    sparse_cell_m: float = Field(default=0.5, gt=0)
    dense_cell_m: float = Field(default=50.0, gt=0)
    dense_min_nodes: int = Field(default=1000, ge=0)
    linear_fallback_below: int = Field(default=10_000, ge=0)


IndexUnion = Annotated[IndexGridModel, Field(discriminator="kind")]


class StartNodesModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    # outer endpoints of edges that cross into the polygon also seed a traversal
    include_gate_nodes: bool = True
    search_radius_m: float | None = Field(default=None, gt=0)


# ----------------- SCORING ---------------------


class ConfidenceWeightsModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    distance: float = 0.4
    straightness: float = 0.3
    continuity: float = 0.3
    distance_cap_m: float = Field(default=200.0, gt=0)
    length_bonus: float = 0.1
    length_bonus_nodes: int = Field(default=10, gt=0)
    geometry_share: float = 0.7
    road_class_share: float = 0.3

    @field_validator(
        "distance",
        "straightness",
        "continuity",
        "length_bonus",
        "geometry_share",
        "road_class_share",
    )
    def _unit(cls, v: float, info: ValidationInfo) -> float:
        if not isfinite(v) or v < 0 or v > 1:
            raise ValueError(f"{info.field_name} must be within [0, 1]")
        return v

    @model_validator(mode="after")
    def _check_shares(self):
        # the final blend is a convex combination
        total = self.geometry_share + self.road_class_share
        if abs(total - 1.0) > 1e-9:
            raise ValueError(f"geometry_share + road_class_share must be 1, got {total}")
        return self


def _default_class_weights() -> dict[str, float]:
    return {
        "motorway": 1.0,
        "trunk": 1.0,
        "primary": 0.9,
        "secondary": 0.85,
        "tertiary": 0.8,
        "unclassified": 0.7,
        "residential": 0.7,
        "living_street": 0.6,
        "service": 0.6,
        "track": 0.4,
        "path": 0.3,
        "cycleway": 0.3,
        "pedestrian": 0.3,
        "footway": 0.2,
        "steps": 0.1,
    }


class RoadClassModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    weights: dict[str, float] = Field(default_factory=_default_class_weights)
    default_weight: float = 0.5
    low_speed_kmh: float = 30.0
    low_speed_bonus: float = 0.05
    paved_surfaces: list[str] = Field(
        default_factory=lambda: ["paved", "asphalt", "concrete", "paving_stones"]
    )
    paved_bonus: float = 0.05

    @field_validator("weights")
    @classmethod
    def _check_weights(cls, v: dict[str, float]) -> dict[str, float]:
        bad = sorted(k for k, w in v.items() if not isfinite(w) or w < 0 or w > 1)
        if bad:
            raise ValueError(f"road class weights must be within [0, 1]; bad classes: {bad}")
        return {k.lower(): float(w) for k, w in v.items()}


class ScoringBlendedModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["blended"] = "blended"
    weights: ConfidenceWeightsModel = Field(default_factory=ConfidenceWeightsModel)
    road_class: RoadClassModel = Field(default_factory=RoadClassModel)


ScoringUnion = Annotated[ScoringBlendedModel, Field(discriminator="kind")]

# ----------------- CLUSTERING ---------------------


class ClusteringGridModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["grid"] = "grid"
    bucket_m: float = Field(default=100.0, gt=0)


class ClusteringNoneModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["none"] = "none"


ClusteringUnion = Annotated[
    ClusteringGridModel | ClusteringNoneModel, Field(discriminator="kind")
]

# ------------------ EXECUTION -----------------------------


class ExecutorInlineModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["inline"] = "inline"


class ExecutorThreadModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["thread"] = "thread"
    timeout_s: float = Field(default=30.0, gt=0)
    fallback: bool = True  # run on the calling thread if the worker errors


ExecutorUnion = Annotated[
    ExecutorInlineModel | ExecutorThreadModel, Field(discriminator="kind")
]


class CacheModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    enabled: bool = True
    max_entries: int = Field(default=8, gt=0)


# ------------------------------------------------------------------


class DetectorModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    name: str = "entry-scan"
    run_id: str = "local"
    outer_buffer_m: float = Field(default=30.0, gt=0, le=MAX_OUTER_BUFFER_M)
    log: LogModel = LogModel()
    traversal: TraversalUnion = Field(default_factory=TraversalBfsModel)
    index: IndexUnion = Field(default_factory=IndexGridModel)
    start_nodes: StartNodesModel = Field(default_factory=StartNodesModel)
    scoring: ScoringUnion = Field(default_factory=ScoringBlendedModel)
    clustering: ClusteringUnion = Field(default_factory=ClusteringGridModel)
    executor: ExecutorUnion = Field(default_factory=ExecutorInlineModel)
    cache: CacheModel = Field(default_factory=CacheModel)
