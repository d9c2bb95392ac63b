# entry_scan/policy/road_class.py
from collections.abc import Iterable, Mapping, Sequence

from entry_scan.app.protocols import RoadClassPolicy
from entry_scan.domain.entities.geography import Way, WayId
from entry_scan.domain.topology.topology_graph import RoadGraph

WALK_KMH = 7.0
KMH_PER_MPH = 1.60934


def parse_maxspeed(tag: str | None) -> float | None:
    """OSM maxspeed in km/h: "50", "30 mph", "walk"; "none" means no limit."""
    if tag is None:
        return None
    s = str(tag).strip().lower()
    if not s or s == "none":
        return None
    if s == "walk":
        return WALK_KMH
    mph = "mph" in s
    num = ""
    for ch in s:
        if ch.isdigit() or (ch == "." and "." not in num):
            num += ch
        elif num:
            break
    if not num or num == ".":
        return None
    v = float(num)
    return round(v * KMH_PER_MPH) if mph else v


class TaggedRoadClassPolicy(RoadClassPolicy):
    def __init__(
        self,
        weights: Mapping[str, float],
        *,
        default_weight: float = 0.5,
        low_speed_kmh: float = 30.0,
        low_speed_bonus: float = 0.05,
        paved_surfaces: Iterable[str] = ("paved", "asphalt"),
        paved_bonus: float = 0.05,
    ):
        self.weights = {k.lower(): float(v) for k, v in weights.items()}
        self.default_weight = default_weight
        self.low_speed_kmh = low_speed_kmh
        self.low_speed_bonus = low_speed_bonus
        self.paved = {s.lower() for s in paved_surfaces}
        self.paved_bonus = paved_bonus

    def class_weight(self, highway: str | None) -> float:
        if not highway:
            return self.default_weight
        h = highway.strip().lower()
        if h in self.weights:
            return self.weights[h]
        # motorway_link -> motorway
        if h.endswith("_link") and h[: -len("_link")] in self.weights:
            return self.weights[h[: -len("_link")]]
        return self.default_weight

    def way_weight(self, way: Way) -> float:
        w = self.class_weight(way.tag("highway"))
        speed = parse_maxspeed(way.tag("maxspeed"))
        if speed is not None and speed <= self.low_speed_kmh:
            w += self.low_speed_bonus
        surface = way.tag("surface")
        if surface and surface.strip().lower() in self.paved:
            w += self.paved_bonus
        return min(max(w, 0.0), 1.0)

    def weight(self, graph: RoadGraph, way_ids: Sequence[WayId]) -> float:
        ways = [graph.ways[w] for w in way_ids if w in graph.ways]
        if not ways:
            return self.default_weight
        return sum(self.way_weight(w) for w in ways) / len(ways)
