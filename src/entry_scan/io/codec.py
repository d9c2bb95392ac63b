# entry_scan/io/codec.py
"""
Plain-dict wire forms for detection inputs and results.

These are what crosses the worker boundary in the threaded service, and what
JSON bundles on disk look like. Path geometry is a GeoJSON LineString.
"""

from collections.abc import Mapping
from typing import Any

from entry_scan.domain.entities.candidate import (
    DetectionInput,
    DetectionResult,
    EntryCandidate,
    GraphStats,
)
from entry_scan.domain.entities.geography import Node, Ring, Way
from entry_scan.domain.errors import InvalidGeometry
from entry_scan.domain.topology.topology_geometry import normalize_ring

# ---------------- Geography -----------------------------


def node_from_dict(d: Mapping[str, Any]) -> Node:
    try:
        nid, lon, lat = d["id"], d["lon"], d["lat"]
    except (KeyError, TypeError):
        raise InvalidGeometry(f"node needs id, lon and lat: {d!r}") from None
    if isinstance(lon, bool) or isinstance(lat, bool):
        raise InvalidGeometry(f"node {nid!r} has non-numeric coordinates")
    try:
        return Node(nid, float(lon), float(lat))
    except (TypeError, ValueError):
        raise InvalidGeometry(f"node {nid!r} has non-numeric coordinates") from None


def node_to_dict(n: Node) -> dict:
    return {"id": n.id, "lon": n.lon, "lat": n.lat}


def way_from_dict(d: Mapping[str, Any]) -> Way:
    if "id" not in d:
        raise ValueError(f"way needs an id: {d!r}")
    node_ids = d.get("node_ids", d.get("nodes", ()))
    return Way(d["id"], tuple(node_ids), dict(d.get("tags") or {}))


def way_to_dict(w: Way) -> dict:
    return {"id": w.id, "node_ids": list(w.node_ids), "tags": dict(w.tags or {})}


def coerce_node(n: Node | Mapping[str, Any]) -> Node:
    return n if isinstance(n, Node) else node_from_dict(n)


def coerce_way(w: Way | Mapping[str, Any]) -> Way:
    return w if isinstance(w, Way) else way_from_dict(w)


def polygon_from_geojson(obj: Any) -> Ring:
    """
    Accepts a bare ring, a GeoJSON Polygon geometry, or a Feature wrapping one.
    Only the exterior ring is used.
    """
    if isinstance(obj, Mapping):
        kind = obj.get("type")
        if kind == "Feature":
            return polygon_from_geojson(obj.get("geometry"))
        if kind == "Polygon":
            rings = obj.get("coordinates") or ()
            if not rings:
                raise InvalidGeometry("Polygon geometry has no rings")
            return normalize_ring(rings[0])
        raise InvalidGeometry(f"unsupported GeoJSON type {kind!r}; expected Polygon")
    return normalize_ring(obj)


# ---------------- Input -----------------------------


def input_to_dict(inp: DetectionInput) -> dict:
    return {
        "polygon": [list(p) for p in normalize_ring(inp.polygon)],
        "nodes": [node_to_dict(n) for n in inp.nodes],
        "ways": [way_to_dict(w) for w in inp.ways],
        "outer_buffer_m": inp.outer_buffer_m,
        "max_visits": inp.max_visits,
        "search_radius_m": inp.search_radius_m,
    }


def input_from_dict(d: Mapping[str, Any]) -> DetectionInput:
    return DetectionInput(
        polygon=polygon_from_geojson(d.get("polygon")),
        nodes=tuple(coerce_node(n) for n in d.get("nodes") or ()),
        ways=tuple(coerce_way(w) for w in d.get("ways") or ()),
        outer_buffer_m=float(d.get("outer_buffer_m", 30.0)),
        max_visits=d.get("max_visits"),
        search_radius_m=d.get("search_radius_m"),
    )


# ---------------- Result -----------------------------


def candidate_to_dict(c: EntryCandidate) -> dict:
    return {
        "id": c.id,
        "intersection_point": list(c.intersection_point),
        "path_node_ids": list(c.path_node_ids),
        "path_geometry": {
            "type": "LineString",
            "coordinates": [list(p) for p in c.path_geometry],
        },
        "distance_m": c.distance_m,
        "distance_score": c.distance_score,
        "straightness": c.straightness,
        "continuity": c.continuity,
        "road_class_score": c.road_class_score,
        "confidence": c.confidence,
        "way_ids": list(c.way_ids),
        "manual": c.manual,
    }


def candidate_from_dict(d: Mapping[str, Any]) -> EntryCandidate:
    geom = d["path_geometry"]
    coords = geom["coordinates"] if isinstance(geom, Mapping) else geom
    return EntryCandidate(
        id=d["id"],
        intersection_point=tuple(d["intersection_point"]),
        path_node_ids=tuple(d["path_node_ids"]),
        path_geometry=tuple(tuple(p) for p in coords),
        distance_m=d["distance_m"],
        distance_score=d["distance_score"],
        straightness=d["straightness"],
        continuity=d["continuity"],
        road_class_score=d["road_class_score"],
        confidence=d["confidence"],
        way_ids=tuple(d.get("way_ids") or ()),
        manual=bool(d.get("manual", False)),
    )


def result_to_dict(r: DetectionResult) -> dict:
    s = r.graph_stats
    return {
        "candidates": [candidate_to_dict(c) for c in r.candidates],
        "processing_time_ms": r.processing_time_ms,
        "graph_stats": {
            "node_count": s.node_count,
            "way_count": s.way_count,
            "edge_count": s.edge_count,
        },
        "start_node_count": r.start_node_count,
        "raw_candidate_count": r.raw_candidate_count,
    }


def result_from_dict(d: Mapping[str, Any]) -> DetectionResult:
    return DetectionResult(
        candidates=tuple(candidate_from_dict(c) for c in d.get("candidates") or ()),
        processing_time_ms=float(d.get("processing_time_ms", 0.0)),
        graph_stats=GraphStats(**(d.get("graph_stats") or {})),
        start_node_count=int(d.get("start_node_count", 0)),
        raw_candidate_count=int(d.get("raw_candidate_count", 0)),
    )
