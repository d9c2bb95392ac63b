# entry_scan/domain/topology/topology_geometry.py
"""
Polygon geometry for entry detection.

Coordinates are (lon, lat) in WGS84 degrees. Distances are meters.
Point-in-polygon and segment intersection work directly on degrees, which is
fine for the small perimeters this engine targets. Buffering goes through an
azimuthal-equidistant frame centred on the perimeter, and lengths are geodesic.
"""

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

import numpy as np
import shapely
from pyproj import Geod, Transformer
from shapely.geometry import Polygon

from entry_scan.domain.entities.geography import Area, LonLat, Ring
from entry_scan.domain.errors import InvalidGeometry

EARTH_RADIUS_M = 6_371_008.8
M_PER_DEG = EARTH_RADIUS_M * math.pi / 180.0
DEFAULT_OUTER_BUFFER_M = 30.0
MAX_OUTER_BUFFER_M = 1000.0

_GEOD = Geod(ellps="WGS84")
_EPS = 1e-12
# relative to the squared bounding extent
_AREA_EPS = 1e-9


# ---------------- Rings ----------------------------------


def _as_lonlat(p) -> LonLat:
    try:
        lon, lat = p[0], p[1]
    except (TypeError, IndexError, KeyError):
        raise InvalidGeometry(f"coordinate must be a (lon, lat) pair, got {p!r}") from None
    if isinstance(lon, bool) or isinstance(lat, bool):
        raise InvalidGeometry(f"coordinate must be numeric, got {p!r}")
    try:
        lon, lat = float(lon), float(lat)
    except (TypeError, ValueError):
        raise InvalidGeometry(f"coordinate must be numeric, got {p!r}") from None
    if not (math.isfinite(lon) and math.isfinite(lat)):
        raise InvalidGeometry(f"coordinate must be finite, got {p!r}")
    if not (-180.0 <= lon <= 180.0 and -90.0 <= lat <= 90.0):
        raise InvalidGeometry(f"coordinate out of WGS84 range: {p!r}")
    return (lon, lat)


def normalize_ring(coords: Iterable) -> Ring:
    """Validate a polygon ring and return it closed (first == last)."""
    if coords is None or isinstance(coords, (str, bytes)):
        raise InvalidGeometry(f"polygon ring must be a sequence of coordinates, got {coords!r}")
    try:
        pts = [_as_lonlat(p) for p in coords]
    except TypeError:
        raise InvalidGeometry(f"polygon ring must be a sequence of coordinates, got {coords!r}") from None
    if pts and pts[0] != pts[-1]:
        pts.append(pts[0])
    if len(set(pts)) < 3:
        raise InvalidGeometry(f"polygon needs at least 3 distinct vertices, got {len(set(pts))}")
    xs = [p[0] for p in pts]
    ys = [p[1] for p in pts]
    span = max(max(xs) - min(xs), max(ys) - min(ys))
    if Polygon(pts).area <= _AREA_EPS * span * span:
        raise InvalidGeometry("polygon has zero area")
    return tuple(pts)


def ring_centroid(ring: Ring) -> LonLat:
    """Vertex mean of the ring (closing vertex excluded)."""
    pts = ring[:-1] if len(ring) > 1 and ring[0] == ring[-1] else ring
    return (
        sum(p[0] for p in pts) / len(pts),
        sum(p[1] for p in pts) / len(pts),
    )


# ---------------- Local metric frame -------------------------


@dataclass(frozen=True)
class LocalFrame:
    """Equirectangular meters around (lon0, lat0); small-area approximation."""

    lon0: float
    lat0: float

    @property
    def kx(self) -> float:
        return M_PER_DEG * max(math.cos(math.radians(self.lat0)), 1e-6)

    def to_xy(self, lons, lats) -> tuple[np.ndarray, np.ndarray]:
        lons = np.asarray(lons, dtype=float)
        lats = np.asarray(lats, dtype=float)
        return (lons - self.lon0) * self.kx, (lats - self.lat0) * M_PER_DEG

    def point_xy(self, p: LonLat) -> tuple[float, float]:
        return (p[0] - self.lon0) * self.kx, (p[1] - self.lat0) * M_PER_DEG

    def distance_m(self, a: LonLat, b: LonLat) -> float:
        ax, ay = self.point_xy(a)
        bx, by = self.point_xy(b)
        return math.hypot(bx - ax, by - ay)


# ---------------- Buffer ------------------------------------


def outer_buffer(ring: Ring, meters: float = DEFAULT_OUTER_BUFFER_M) -> Area:
    """Expand the ring outward by `meters`."""
    if not (math.isfinite(meters) and 0.0 < meters <= MAX_OUTER_BUFFER_M):
        raise ValueError(f"outer buffer must be within (0, {MAX_OUTER_BUFFER_M:g}] m, got {meters}")
    lon0, lat0 = ring_centroid(ring)
    aeqd = f"+proj=aeqd +lat_0={lat0} +lon_0={lon0} +datum=WGS84 +units=m +no_defs"
    fwd = Transformer.from_crs("EPSG:4326", aeqd, always_xy=True)
    inv = Transformer.from_crs(aeqd, "EPSG:4326", always_xy=True)

    projected = shapely.transform(Polygon(ring), fwd.transform, interleaved=False)
    if not projected.is_valid:
        projected = projected.buffer(0)
    grown = projected.buffer(meters, quad_segs=8)
    if grown.geom_type == "MultiPolygon":
        grown = max(grown.geoms, key=lambda g: g.area)
    back = shapely.transform(grown, inv.transform, interleaved=False)
    return Area(
        exterior=tuple((float(x), float(y)) for x, y in back.exterior.coords),
        holes=tuple(tuple((float(x), float(y)) for x, y in h.coords) for h in back.interiors),
    )


# ---------------- Point in polygon --------------------------


def _on_segment(px, py, ax, ay, bx, by) -> bool:
    cross = (px - ax) * (by - ay) - (py - ay) * (bx - ax)
    scale = max(abs(bx - ax), abs(by - ay), 1.0)
    if abs(cross) > _EPS * scale:
        return False
    return (ax - px) * (bx - px) <= _EPS and (ay - py) * (by - py) <= _EPS


def _in_ring(p: LonLat, ring: Ring) -> bool:
    px, py = p
    inside = False
    n = len(ring)
    for i in range(n - 1):
        ax, ay = ring[i]
        bx, by = ring[i + 1]
        if _on_segment(px, py, ax, ay, bx, by):
            return True
        if (ay > py) != (by > py):
            xs = ax + (py - ay) * (bx - ax) / (by - ay)
            if px < xs:
                inside = not inside
    return inside


def _strictly_in_ring(p: LonLat, ring: Ring) -> bool:
    px, py = p
    for i in range(len(ring) - 1):
        ax, ay = ring[i]
        bx, by = ring[i + 1]
        if _on_segment(px, py, ax, ay, bx, by):
            return False
    return _in_ring(p, ring)


def is_inside(point: LonLat, polygon: Ring | Area) -> bool:
    """Ray-casting test; boundary points count as inside."""
    if isinstance(polygon, Area):
        if not _in_ring(point, polygon.exterior):
            return False
        return not any(_strictly_in_ring(point, h) for h in polygon.holes)
    return _in_ring(point, polygon)


def _rings_mask(lons: np.ndarray, lats: np.ndarray, ring: Ring) -> tuple[np.ndarray, np.ndarray]:
    inside = np.zeros(lons.shape, dtype=bool)
    boundary = np.zeros(lons.shape, dtype=bool)
    for i in range(len(ring) - 1):
        ax, ay = ring[i]
        bx, by = ring[i + 1]
        cross = (lons - ax) * (by - ay) - (lats - ay) * (bx - ax)
        scale = max(abs(bx - ax), abs(by - ay), 1.0)
        boundary |= (
            (np.abs(cross) <= _EPS * scale)
            & ((ax - lons) * (bx - lons) <= _EPS)
            & ((ay - lats) * (by - lats) <= _EPS)
        )
        if ay == by:
            continue
        straddles = (ay > lats) != (by > lats)
        xs = ax + (lats - ay) * (bx - ax) / (by - ay)
        inside ^= straddles & (lons < xs)
    return inside, boundary


def points_inside(lons: Sequence[float], lats: Sequence[float], polygon: Ring | Area) -> np.ndarray:
    """Vectorized `is_inside` over coordinate arrays."""
    lons = np.asarray(lons, dtype=float)
    lats = np.asarray(lats, dtype=float)
    if lons.size == 0:
        return np.zeros(0, dtype=bool)
    if isinstance(polygon, Area):
        inside, boundary = _rings_mask(lons, lats, polygon.exterior)
        result = inside | boundary
        for h in polygon.holes:
            h_in, h_edge = _rings_mask(lons, lats, h)
            result &= ~(h_in & ~h_edge)
        return result
    inside, boundary = _rings_mask(lons, lats, polygon)
    return inside | boundary


# ---------------- Segment intersection ----------------------


def _segment_hit(a: LonLat, b: LonLat, c: LonLat, d: LonLat) -> tuple[float, LonLat] | None:
    """Intersection of a-b with c-d as (t along a-b, point), nearest to a."""
    rx, ry = b[0] - a[0], b[1] - a[1]
    sx, sy = d[0] - c[0], d[1] - c[1]
    qpx, qpy = c[0] - a[0], c[1] - a[1]
    denom = rx * sy - ry * sx
    if abs(denom) > _EPS * max(abs(rx) + abs(ry), 1.0) * max(abs(sx) + abs(sy), 1.0):
        t = (qpx * sy - qpy * sx) / denom
        u = (qpx * ry - qpy * rx) / denom
        if -_EPS <= t <= 1 + _EPS and -_EPS <= u <= 1 + _EPS:
            t = min(max(t, 0.0), 1.0)
            return t, (a[0] + t * rx, a[1] + t * ry)
        return None
    # parallel: only collinear overlaps count
    if abs(qpx * ry - qpy * rx) > _EPS * max(abs(rx) + abs(ry), 1.0):
        return None
    rr = rx * rx + ry * ry
    if rr == 0.0:
        return (0.0, a) if _on_segment(a[0], a[1], c[0], c[1], d[0], d[1]) else None
    hits = []
    if _on_segment(a[0], a[1], c[0], c[1], d[0], d[1]):
        hits.append((0.0, a))
    for p in (c, d):
        t = ((p[0] - a[0]) * rx + (p[1] - a[1]) * ry) / rr
        if 0.0 <= t <= 1.0:
            hits.append((t, p))
    return min(hits) if hits else None


def segment_intersects_polygon(a: LonLat, b: LonLat, ring: Ring) -> LonLat | None:
    """First boundary intersection of segment a-b, in ring edge order."""
    for i in range(len(ring) - 1):
        hit = _segment_hit(a, b, ring[i], ring[i + 1])
        if hit is not None:
            return hit[1]
    return None


# ---------------- Path metrics ------------------------------


def path_length_m(coords: Sequence[LonLat]) -> float:
    """Sum of geodesic segment lengths on the WGS84 ellipsoid."""
    if len(coords) < 2:
        return 0.0
    lons = [p[0] for p in coords]
    lats = [p[1] for p in coords]
    return float(_GEOD.line_length(lons, lats))


def _angle_at(b: LonLat, a: LonLat, c: LonLat) -> float:
    v1 = (a[0] - b[0], a[1] - b[1])
    v2 = (c[0] - b[0], c[1] - b[1])
    n1, n2 = math.hypot(*v1), math.hypot(*v2)
    if n1 == 0.0 or n2 == 0.0:
        return math.pi
    cos = (v1[0] * v2[0] + v1[1] * v2[1]) / (n1 * n2)
    return math.acos(max(-1.0, min(1.0, cos)))


def straightness(coords: Sequence[LonLat]) -> float:
    """1 for a straight path, falling towards 0 with sharper or more frequent turns."""
    n = len(coords)
    if n < 3:
        return 1.0
    turn = sum(abs(math.pi - _angle_at(coords[i], coords[i - 1], coords[i + 1])) for i in range(1, n - 1))
    return 1.0 - min(turn / (math.pi * (n - 2)), 1.0)
