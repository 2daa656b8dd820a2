"""
Tests for the helpers that close the walk around an intersection into a polygon.
"""

import pytest
from shapely.geometry import Polygon

from osm2polygons.geometry.errors import SelfIntersectingPolygon
from osm2polygons.geometry.polygon_builder import (
    convex_hull_polygon, dedupe, outer_corner, validated_polygon,)

BOWTIE = [(0, 0), (1, 1), (1, 0), (0, 1)]


class TestOuterCorner:
    """Meeting point of two edges extended back towards the node."""

    def test_right_angle_corner(self):
        corner = outer_corner((-5, 5), (0, 1), (5, -5), (1, 0), limit=15)

        assert corner == pytest.approx((-5, -5))

    def test_corner_too_far(self):
        assert outer_corner((-5, 5), (0, 1), (5, -5), (1, 0), limit=5) is None

    def test_parallel_edges(self):
        assert outer_corner((2, 1), (1, 0), (-2, 1), (-1, 0), limit=100) is None

    def test_corner_in_front_of_the_ends(self):
        # The lines meet at (5, 5), which is ahead of both ends, not behind them
        assert outer_corner((5, 0), (0, 1), (0, 5), (1, 0), limit=100) is None


def test_dedupe_drops_repeats_and_closing_point():
    points = [(0, 0), (0, 0), (1, 0), (1, 1), (1, 1 + 1e-9), (0, 0)]

    assert dedupe(points, 1e-6) == [(0, 0), (1, 0), (1, 1)]


class TestValidatedPolygon:
    """Checks applied to the walk before it becomes the intersection polygon."""

    def test_square_is_counter_clockwise(self):
        polygon = validated_polygon(1, [(0, 0), (0, 1), (1, 1), (1, 0)], 1e-6)

        assert polygon.is_valid
        assert polygon.exterior.is_ccw
        assert polygon.area == pytest.approx(1.0)

    def test_bowtie_is_rejected(self):
        with pytest.raises(SelfIntersectingPolygon):
            validated_polygon(1, BOWTIE, 1e-6)

    def test_too_few_points(self):
        with pytest.raises(SelfIntersectingPolygon):
            validated_polygon(1, [(0, 0), (1, 1)], 1e-6)

    def test_flat_walk(self):
        with pytest.raises(SelfIntersectingPolygon):
            validated_polygon(1, [(0, 0), (1, 0), (2, 0)], 1e-6)


def test_convex_hull_of_bowtie():
    hull = convex_hull_polygon(BOWTIE, pad=0.5)

    assert isinstance(hull, Polygon)
    assert hull.is_valid
    assert hull.area == pytest.approx(1.0)


def test_convex_hull_of_collinear_points_is_padded():
    hull = convex_hull_polygon([(0, 0), (1, 0), (2, 0)], pad=0.5)

    assert isinstance(hull, Polygon)
    assert hull.is_valid
    assert hull.area > 2 * 2 * 0.5 - 1e-9
