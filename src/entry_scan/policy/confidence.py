# entry_scan/policy/confidence.py
from entry_scan.app.protocols import ConfidencePolicy


def _clamp01(x: float) -> float:
    return max(0.0, min(1.0, x))


class BlendedConfidencePolicy(ConfidencePolicy):
    """
    base  = w_d * min(d / cap, 1) + w_s * straightness + w_c * continuity
            + length_bonus * min(nodes / length_bonus_nodes, 1)          (clamped)
    final = geometry_share * base + road_class_share * road_class         (clamped)
    """

    def __init__(
        self,
        *,
        distance: float = 0.4,
        straightness: float = 0.3,
        continuity: float = 0.3,
        distance_cap_m: float = 200.0,
        length_bonus: float = 0.1,
        length_bonus_nodes: int = 10,
        geometry_share: float = 0.7,
        road_class_share: float = 0.3,
    ):
        self.w_distance = distance
        self.w_straightness = straightness
        self.w_continuity = continuity
        self.distance_cap_m = distance_cap_m
        self.length_bonus = length_bonus
        self.length_bonus_nodes = length_bonus_nodes
        self.geometry_share = geometry_share
        self.road_class_share = road_class_share

    def distance_score(self, distance_m: float) -> float:
        return _clamp01(distance_m / self.distance_cap_m)

    def base(
        self, *, distance_m: float, straightness: float, continuity: float, path_nodes: int
    ) -> float:
        bonus = min(path_nodes / self.length_bonus_nodes, 1.0) * self.length_bonus
        return _clamp01(
            self.w_distance * self.distance_score(distance_m)
            + self.w_straightness * straightness
            + self.w_continuity * continuity
            + bonus
        )

    def confidence(
        self,
        *,
        distance_m: float,
        straightness: float,
        continuity: float,
        path_nodes: int,
        road_class: float,
    ) -> float:
        base = self.base(
            distance_m=distance_m,
            straightness=straightness,
            continuity=continuity,
            path_nodes=path_nodes,
        )
        return _clamp01(self.geometry_share * base + self.road_class_share * road_class)
