import math

import pytest

from entry_scan.domain.entities.geography import Area
from entry_scan.domain.errors import InvalidGeometry
from entry_scan.domain.topology.topology_geometry import (
    is_inside,
    normalize_ring,
    outer_buffer,
    path_length_m,
    points_inside,
    segment_intersects_polygon,
    straightness,
)


def test_normalize_ring_closes_open_ring(small_square):
    ring = normalize_ring(small_square)
    assert ring[0] == ring[-1]
    assert len(ring) == 5


@pytest.mark.parametrize(
    "coords",
    [
        [[0, 0], [1, 1]],
        [[0, 0], [1, 1], [0, 0], [1, 1]],
        [[0, 0], [1, "x"], [1, 0]],
        [[0, 0], [float("nan"), 1], [1, 0]],
        [[0, 0], [200, 1], [1, 0]],
        [[0, 0], [0.0005, 0.0005], [0.001, 0.001], [0, 0]],
        "0,0 1,1 1,0",
        None,
    ],
)
def test_normalize_ring_rejects_malformed(coords):
    with pytest.raises(InvalidGeometry):
        normalize_ring(coords)


def test_invalid_geometry_is_a_value_error():
    with pytest.raises(ValueError):
        normalize_ring([[0, 0]])


def test_boundary_counts_as_inside(unit_square):
    ring = normalize_ring(unit_square)
    assert is_inside((0.0, 0.5), ring)
    assert is_inside((1.0, 1.0), ring)
    assert is_inside((0.5, 0.5), ring)
    assert not is_inside((-0.1, 0.5), ring)
    assert not is_inside((0.5, 1.0001), ring)


def test_points_inside_matches_scalar_test(unit_square):
    ring = normalize_ring(unit_square)
    pts = [(0.0, 0.5), (0.5, 0.5), (-0.1, 0.5), (1.0, 0.0), (1.2, 0.3), (0.3, 1.0)]
    mask = points_inside([p[0] for p in pts], [p[1] for p in pts], ring)
    assert mask.tolist() == [is_inside(p, ring) for p in pts]


def test_points_inside_excludes_holes():
    area = Area(
        exterior=((0, 0), (0, 10), (10, 10), (10, 0), (0, 0)),
        holes=(((4, 4), (4, 6), (6, 6), (6, 4), (4, 4)),),
    )
    mask = points_inside([5, 1, 4], [5, 1, 5], area)
    assert mask.tolist() == [False, True, True]
    assert not is_inside((5, 5), area)
    assert is_inside((4, 5), area)  # on the hole's edge


def test_outer_buffer_grows_by_roughly_the_distance(small_square):
    ring = normalize_ring(small_square)
    buf = outer_buffer(ring, 30.0)
    m_per_deg = 111_319.5
    assert is_inside((-20 / m_per_deg, 0.0005), buf)
    assert not is_inside((-40 / m_per_deg, 0.0005), buf)
    assert is_inside((0.0005, 0.0005), buf)
    assert buf.exterior[0] == buf.exterior[-1]


@pytest.mark.parametrize("meters", [0, -1, 1000.5, float("inf")])
def test_outer_buffer_rejects_out_of_range(small_square, meters):
    with pytest.raises(ValueError):
        outer_buffer(normalize_ring(small_square), meters)


def test_outer_buffer_accepts_upper_bound(small_square):
    buf = outer_buffer(normalize_ring(small_square), 1000.0)
    assert len(buf.exterior) > 5


def test_segment_hit_on_crossing(unit_square):
    ring = normalize_ring(unit_square)
    hit = segment_intersects_polygon((-0.5, 0.5), (0.5, 0.5), ring)
    assert hit is not None
    assert abs(hit[0] - 0.0) < 1e-12 and abs(hit[1] - 0.5) < 1e-12


def test_segment_touching_boundary_counts(unit_square):
    ring = normalize_ring(unit_square)
    assert segment_intersects_polygon((-0.1, 0.5), (0.0, 0.5), ring) == (0.0, 0.5)


def test_segment_clear_of_polygon(unit_square):
    ring = normalize_ring(unit_square)
    assert segment_intersects_polygon((-0.5, 0.2), (-0.1, 0.8), ring) is None
    assert segment_intersects_polygon((0.2, 0.2), (0.8, 0.8), ring) is None


def test_path_length_is_geodesic():
    # 0.001 deg of longitude at the equator on WGS84
    d = path_length_m([(0.0, 0.0), (0.001, 0.0)])
    assert abs(d - 111.319) < 0.01
    assert path_length_m([(0.0, 0.0)]) == 0.0


def test_straightness():
    assert straightness([(0, 0), (1, 0)]) == 1.0
    assert abs(straightness([(0, 0), (1, 0), (2, 0)]) - 1.0) < 1e-12
    assert abs(straightness([(0, 0), (1, 0), (1, 1)]) - 0.5) < 1e-12
    # full reversal
    assert abs(straightness([(0, 0), (1, 0), (0, 0)]) - 0.0) < 1e-12
    # zero-length segment counts as straight at that vertex
    assert straightness([(0, 0), (0, 0), (1, 0)]) == 1.0
    s = straightness([(0, 0), (1, 0), (1, 1), (2, 1), (2, 3)])
    assert 0.0 <= s <= 1.0 and not math.isnan(s)
