# entry_scan/io/business_events.py

from dataclasses import dataclass


# Base type for analytics events (one stream per detector run)
@dataclass
class BizEvent:
    run_id: str
    seq: int  # emission order within the run
    name: str  # stable event name


@dataclass
class EntryDetectedBiz(BizEvent):
    candidate_id: str
    lon: float
    lat: float
    confidence: float
    distance_m: float
    path_nodes: int
    road_class_score: float | None = None


@dataclass
class DetectionCompletedBiz(BizEvent):
    candidates: int
    raw_candidates: int
    start_nodes: int
    node_count: int
    way_count: int
    edge_count: int
    processing_time_ms: float
