import pytest

from entry_scan.domain.entities.geography import Node, Way
from entry_scan.domain.topology.topology_graph import build_graph
from entry_scan.policy.road_class import TaggedRoadClassPolicy, parse_maxspeed


@pytest.mark.parametrize(
    "tag, kmh",
    [
        ("50", 50.0),
        (" 30 ", 30.0),
        ("30 mph", 48),
        ("20mph", 32),
        ("walk", 7.0),
        ("none", None),
        ("", None),
        (None, None),
        ("signals", None),
    ],
)
def test_parse_maxspeed(tag, kmh):
    assert parse_maxspeed(tag) == kmh


@pytest.fixture
def policy():
    return TaggedRoadClassPolicy(
        {"motorway": 1.0, "primary": 0.9, "residential": 0.7, "footway": 0.2},
        default_weight=0.5,
        low_speed_kmh=30,
        low_speed_bonus=0.05,
        paved_surfaces=["asphalt"],
        paved_bonus=0.05,
    )


def test_class_weight_lookup(policy):
    assert policy.class_weight("primary") == 0.9
    assert policy.class_weight("Primary") == 0.9
    assert policy.class_weight("motorway_link") == 1.0
    assert policy.class_weight("raceway") == 0.5
    assert policy.class_weight(None) == 0.5


def test_way_bonuses_and_clamp(policy):
    plain = Way("a", (1, 2), {"highway": "residential"})
    slow_paved = Way("b", (1, 2), {"highway": "residential", "maxspeed": "20", "surface": "asphalt"})
    fast = Way("c", (1, 2), {"highway": "residential", "maxspeed": "50"})
    top = Way("d", (1, 2), {"highway": "motorway", "maxspeed": "walk", "surface": "asphalt"})
    assert abs(policy.way_weight(plain) - 0.7) < 1e-12
    assert abs(policy.way_weight(slow_paved) - 0.8) < 1e-12
    assert abs(policy.way_weight(fast) - 0.7) < 1e-12
    assert policy.way_weight(top) == 1.0


def test_weight_is_mean_over_ways(policy):
    g = build_graph(
        [Node(1, 0, 0), Node(2, 0, 1), Node(3, 0, 2)],
        [Way("p", (1, 2), {"highway": "primary"}), Way("f", (2, 3), {"highway": "footway"})],
    )
    assert abs(policy.weight(g, ("p", "f")) - 0.55) < 1e-12
    assert policy.weight(g, ()) == 0.5
    assert policy.weight(g, ("missing",)) == 0.5


def test_tags_are_optional(policy):
    assert policy.way_weight(Way("x", (1, 2))) == 0.5
