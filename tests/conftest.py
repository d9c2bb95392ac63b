import pytest

from entry_scan.domain.entities.geography import Node, Way

# 0.001 deg is ~111 m at the equator
SMALL = 0.001


# ---------- Fixtures


@pytest.fixture
def unit_square():
    return [[0, 0], [0, 1], [1, 1], [1, 0], [0, 0]]


@pytest.fixture
def crossing_network():
    """Two ways crossing the unit square's left and bottom edges, one interior way."""
    nodes = [
        Node("outside1", -0.1, 0.5),
        Node("outside2", 0.5, -0.1),
        Node("edge1", 0.0, 0.5),
        Node("edge2", 0.5, 0.0),
        Node("inside1", 0.5, 0.5),
        Node("inside2", 0.2, 0.2),
    ]
    ways = [
        Way("way1", ("outside1", "edge1", "inside1"), {"highway": "primary"}),
        Way("way2", ("outside2", "edge2", "inside2"), {"highway": "secondary"}),
        Way("way3", ("inside1", "inside2"), {"highway": "residential"}),
    ]
    return nodes, ways


@pytest.fixture
def small_square():
    return [[0, 0], [0, SMALL], [SMALL, SMALL], [SMALL, 0]]
