from collections.abc import Mapping
from dataclasses import dataclass, field

NodeId = int | str
WayId = int | str

# (lon, lat) in WGS84 degrees
LonLat = tuple[float, float]
Ring = tuple[LonLat, ...]


# Core road-network types consumed by the topology engine
@dataclass(frozen=True)
class Node:
    id: NodeId
    lon: float
    lat: float

    @property
    def coord(self) -> LonLat:
        return (self.lon, self.lat)


@dataclass(frozen=True)
class Way:
    id: WayId
    node_ids: tuple[NodeId, ...]
    # accepted as scoring input only, never as a hard filter
    tags: Mapping[str, object] = field(default_factory=dict)

    def __post_init__(self):
        if not isinstance(self.node_ids, tuple):
            object.__setattr__(self, "node_ids", tuple(self.node_ids))

    def tag(self, key: str) -> str | None:
        v = self.tags.get(key) if self.tags else None
        return None if v is None else str(v)


@dataclass(frozen=True)
class Area:
    """Exterior ring plus optional holes; both closed (first == last)."""

    exterior: Ring
    holes: tuple[Ring, ...] = ()
