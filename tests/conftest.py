"""Shared test fixtures for osm2polygons tests."""

import logging
import math
from typing import List, Sequence, Tuple

import pytest
from shapely.geometry import LineString

from osm2polygons.geometry.models import InputRoad, RoadID
from osm2polygons.geometry.settings import GeometrySettings

# Projected CRS used by the GeoJSON tests (UTM zone 33N, meters)
LOCAL_CRS = "EPSG:32633"


def make_road(
    way: int, src: int, dst: int, coords: Sequence[Tuple[float, float]], half_width: float
) -> InputRoad:
    """Helper to build an InputRoad from plain coordinates."""
    return InputRoad(RoadID(way, src, dst), LineString(coords), half_width)


def radial_road(way: int, node: int, other: int, angle_deg: float, length: float,
                half_width: float) -> InputRoad:
    """A straight road leaving ``node`` at the origin in direction ``angle_deg``."""
    angle = math.radians(angle_deg)
    end = (length * math.cos(angle), length * math.sin(angle))
    return make_road(way, node, other, [(0.0, 0.0), end], half_width)


@pytest.fixture(autouse=True)
def propagate_package_logs():
    """Let caplog see package records even after an entry point configured logging."""
    package_logger = logging.getLogger("osm2polygons")
    previous = package_logger.propagate
    package_logger.propagate = True
    yield
    package_logger.propagate = previous


@pytest.fixture
def local_crs() -> str:
    """Fixture providing the projected CRS of the GeoJSON tests."""
    return LOCAL_CRS


@pytest.fixture
def settings() -> GeometrySettings:
    """Fixture providing the default geometry settings."""
    return GeometrySettings()


@pytest.fixture
def right_angle_roads() -> List[InputRoad]:
    """Two 50 m roads of half-width 5 meeting at a right angle at node 1.

    The second road is stored ending at the node, so it is reversed when
    seen from the intersection.
    """
    return [
        make_road(100, 1, 2, [(0, 0), (50, 0)], 5.0),
        make_road(101, 3, 1, [(0, 50), (0, 0)], 5.0),
    ]


@pytest.fixture
def three_way_roads() -> List[InputRoad]:
    """Three 40 m roads of half-width 4 meeting at 120 degrees at node 1."""
    return [
        radial_road(200, 1, 2, 0, 40, 4.0),
        radial_road(201, 1, 3, 120, 40, 4.0),
        radial_road(202, 1, 4, 240, 40, 4.0),
    ]


@pytest.fixture
def narrow_and_wide_roads() -> List[InputRoad]:
    """A 10 m road of half-width 1 swallowed by a road of half-width 20 at node 1."""
    return [
        make_road(300, 1, 2, [(0, 0), (10, 0)], 1.0),
        radial_road(301, 1, 3, 15, 60, 20.0),
    ]


@pytest.fixture
def dead_end_road() -> InputRoad:
    """A single 30 m road of half-width 3 ending at node 1."""
    return make_road(400, 1, 2, [(0, 0), (30, 0)], 3.0)


@pytest.fixture
def hairpin_road() -> InputRoad:
    """A dead end at node 1 that doubles back 2 m from the node; half-width 5.

    Its left boundary is clipped by the turn and only begins on the far leg.
    """
    return make_road(450, 1, 2, [(0, 0), (3, 0), (3, 2), (-30, 2)], 5.0)


@pytest.fixture
def coincident_roads() -> List[InputRoad]:
    """Two roads leaving node 1 along exactly the same line."""
    return [
        make_road(500, 1, 2, [(0, 0), (30, 0)], 2.0),
        make_road(501, 1, 3, [(0, 0), (20, 0)], 2.0),
    ]


@pytest.fixture
def road_factory():
    """Fixture providing ``make_road`` to tests that build their own roads."""
    return make_road


@pytest.fixture
def radial_factory():
    """Fixture providing ``radial_road`` to tests that build their own roads."""
    return radial_road
