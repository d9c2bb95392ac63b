# entry_scan/policy/clustering.py
import math
from collections.abc import Sequence

from entry_scan.app.protocols import ClusteringPolicy
from entry_scan.domain.entities.candidate import EntryCandidate
from entry_scan.domain.topology.topology_geometry import M_PER_DEG


def rank_key(c: EntryCandidate) -> tuple[float, str]:
    """Confidence descending, then id ascending."""
    return (-c.confidence, c.id)


class GridBucketClustering(ClusteringPolicy):
    """Keep the best candidate per `bucket_m` grid cell of the intersection point."""

    def __init__(self, bucket_m: float = 100.0):
        self.bucket_m = bucket_m

    def bucket(self, lon: float, lat: float, *, ref_lat: float) -> tuple[int, int]:
        kx = M_PER_DEG * max(math.cos(math.radians(ref_lat)), 1e-6)
        return (
            int(math.floor(lon * kx / self.bucket_m)),
            int(math.floor(lat * M_PER_DEG / self.bucket_m)),
        )

    def cluster(
        self, candidates: Sequence[EntryCandidate], *, ref_lat: float
    ) -> list[EntryCandidate]:
        best: dict[tuple[int, int], EntryCandidate] = {}
        for c in candidates:
            key = self.bucket(*c.intersection_point, ref_lat=ref_lat)
            cur = best.get(key)
            if cur is None or rank_key(c) < rank_key(cur):
                best[key] = c
        return list(best.values())


class NoClustering(ClusteringPolicy):
    def cluster(
        self, candidates: Sequence[EntryCandidate], *, ref_lat: float
    ) -> list[EntryCandidate]:
        return list(candidates)
