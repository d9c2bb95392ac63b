from entry_scan.app.protocols import ClusteringPolicy, ConfidencePolicy, RoadClassPolicy
from entry_scan.config.models import (
    ClusteringGridModel,
    ClusteringNoneModel,
    ClusteringUnion,
    ScoringBlendedModel,
    ScoringUnion,
)
from entry_scan.policy.clustering import GridBucketClustering, NoClustering
from entry_scan.policy.confidence import BlendedConfidencePolicy
from entry_scan.policy.road_class import TaggedRoadClassPolicy


def make_confidence_policy(cfg: ScoringUnion) -> ConfidencePolicy:
    if isinstance(cfg, ScoringBlendedModel):
        w = cfg.weights
        cp = BlendedConfidencePolicy(
            distance=w.distance,
            straightness=w.straightness,
            continuity=w.continuity,
            distance_cap_m=w.distance_cap_m,
            length_bonus=w.length_bonus,
            length_bonus_nodes=w.length_bonus_nodes,
            geometry_share=w.geometry_share,
            road_class_share=w.road_class_share,
        )
        return cp
    else:
        raise TypeError(cfg)


def make_road_class_policy(cfg: ScoringUnion) -> RoadClassPolicy:
    if isinstance(cfg, ScoringBlendedModel):
        rc = cfg.road_class
        return TaggedRoadClassPolicy(
            rc.weights,
            default_weight=rc.default_weight,
            low_speed_kmh=rc.low_speed_kmh,
            low_speed_bonus=rc.low_speed_bonus,
            paved_surfaces=rc.paved_surfaces,
            paved_bonus=rc.paved_bonus,
        )
    else:
        raise TypeError(cfg)


def make_clustering_policy(cfg: ClusteringUnion) -> ClusteringPolicy:
    if isinstance(cfg, ClusteringGridModel):
        return GridBucketClustering(bucket_m=cfg.bucket_m)
    elif isinstance(cfg, ClusteringNoneModel):
        return NoClustering()
    else:
        raise TypeError(cfg)
