# entry_scan/io/osm_convert.py
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from entry_scan.domain.entities.candidate import DetectionInput
from entry_scan.domain.entities.geography import LonLat, Node, NodeId, Way
from entry_scan.io.codec import coerce_node, coerce_way, polygon_from_geojson

log = logging.getLogger(__name__)


@dataclass
class IdSequence:
    """Explicit id source for ways that arrive without one. One per conversion, never global."""

    prefix: str = "way-"
    next_value: int = 0

    def __call__(self) -> str:
        v = self.next_value
        self.next_value += 1
        return f"{self.prefix}{v}"


def _is_coord(p: Any) -> bool:
    if not isinstance(p, Mapping):
        return False
    lon, lat = p.get("lon"), p.get("lat")
    return all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in (lon, lat))


def convert_existing_osm(
    data: Mapping[str, Any],
    ids: IdSequence | None = None,
    *,
    merge_coincident: bool = True,
) -> tuple[list[Node], list[Way]]:
    """
    Turn ways carrying inline {lon, lat} nodes into separate node and way lists.

    Node ids are `{way_id}-{i}`. `merge_coincident` is on by default: a vertex at
    exactly the same coordinate as an earlier one reuses that node, so ways sharing
    a vertex stay connected. Pass False to get one node per way vertex.
    A way whose node list holds bare id references is skipped from that point
    on. Data already in {nodes: [{id, ...}], ways} form passes through.
    """
    raw_nodes = data.get("nodes")
    if isinstance(raw_nodes, list) and raw_nodes and isinstance(raw_nodes[0], (Mapping, Node)):
        first = raw_nodes[0]
        if isinstance(first, Node) or "id" in first:
            return (
                [coerce_node(n) for n in raw_nodes],
                [coerce_way(w) for w in data.get("ways") or ()],
            )

    ids = ids or IdSequence()
    nodes: list[Node] = []
    ways: list[Way] = []
    at: dict[LonLat, NodeId] = {}

    for raw in data.get("ways") or ():
        vertices = raw.get("nodes")
        if not isinstance(vertices, list):
            continue
        way_id = raw.get("id")
        if way_id is None:
            way_id = ids()
        node_ids: list[NodeId] = []
        for i, p in enumerate(vertices):
            if _is_coord(p):
                key = (float(p["lon"]), float(p["lat"]))
                nid = at.get(key) if merge_coincident else None
                if nid is None:
                    nid = f"{way_id}-{i}"
                    nodes.append(Node(nid, key[0], key[1]))
                    at.setdefault(key, nid)
                if not node_ids or node_ids[-1] != nid:
                    node_ids.append(nid)
            elif isinstance(p, (int, str)):
                log.warning(
                    "way has node references instead of coordinates; truncating",
                    extra={"extra": {"way_id": way_id, "at": i}},
                )
                break
        if node_ids:
            ways.append(Way(way_id, tuple(node_ids), dict(raw.get("tags") or {})))

    log.info("converted osm data", extra={"extra": {"nodes": len(nodes), "ways": len(ways)}})
    return nodes, ways


def prepare_detection_input(
    polygon: Any,
    osm_data: Mapping[str, Any] | None,
    outer_buffer_m: float = 30.0,
    *,
    ids: IdSequence | None = None,
) -> DetectionInput | None:
    """
    Build a DetectionInput from a polygon and road data, or None when either is
    missing or the road data is empty. Malformed geometry still raises.
    """
    if not polygon or not osm_data:
        log.warning("missing polygon or road data for entry detection")
        return None

    if "nodes" in osm_data and "ways" in osm_data:
        nodes = [coerce_node(n) for n in osm_data["nodes"] or ()]
        ways = [coerce_way(w) for w in osm_data["ways"] or ()]
    else:
        nodes, ways = convert_existing_osm(osm_data, ids)

    if not nodes or not ways:
        log.warning(
            "no road nodes or ways available for entry detection",
            extra={"extra": {"nodes": len(nodes), "ways": len(ways)}},
        )
        return None

    return DetectionInput(
        polygon=polygon_from_geojson(polygon),
        nodes=tuple(nodes),
        ways=tuple(ways),
        outer_buffer_m=outer_buffer_m,
        search_radius_m=outer_buffer_m * 2,
    )
