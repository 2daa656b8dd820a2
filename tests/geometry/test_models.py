"""
Tests for the road and intersection data model.
"""

import math

import pytest
from shapely.geometry import LineString, Point

from osm2polygons.geometry.errors import DegenerateInputError
from osm2polygons.geometry.models import InputRoad, IntersectionNode, Road, RoadID


class TestRoadID:
    """Identity of a directed road segment."""

    def test_ordering_and_equality(self):
        assert RoadID(1, 2, 3) == RoadID(1, 2, 3)
        assert sorted([RoadID(2, 1, 2), RoadID(1, 5, 6), RoadID(1, 2, 3)]) == [
            RoadID(1, 2, 3), RoadID(1, 5, 6), RoadID(2, 1, 2)]

    def test_other_end(self):
        road_id = RoadID(1, 2, 3)

        assert road_id.other_end(2) == 3
        assert road_id.other_end(3) == 2
        with pytest.raises(ValueError):
            road_id.other_end(4)

    def test_str(self):
        assert str(RoadID(7, 1, 2)) == "way 7 (1 -> 2)"


class TestInputRoadValidation:
    """Structural checks on input roads."""

    def test_valid_road(self, road_factory):
        road_factory(1, 1, 2, [(0, 0), (10, 0)], 2.0).validate()

    @pytest.mark.parametrize("half_width", [0.0, -1.0, math.inf, math.nan, "wide"])
    def test_bad_half_width(self, road_factory, half_width):
        with pytest.raises(DegenerateInputError, match="half-width"):
            road_factory(1, 1, 2, [(0, 0), (10, 0)], half_width).validate()

    def test_empty_center_line(self):
        with pytest.raises(DegenerateInputError, match="empty"):
            InputRoad(RoadID(1, 1, 2), LineString(), 1.0).validate()

    def test_not_a_line(self):
        with pytest.raises(DegenerateInputError):
            InputRoad(RoadID(1, 1, 2), Point(0, 0), 1.0).validate()

    @pytest.mark.parametrize("coords", [
        [(0, 0), (0, 0), (10, 0)],
        [(0, 0), (5, 0), (5, 0), (10, 0)],
        [(0, 0), (10, 0), (10, 0)],
    ])
    def test_repeated_point(self, road_factory, coords):
        with pytest.raises(DegenerateInputError, match="repeats point"):
            road_factory(1, 1, 2, coords, 1.0).validate()

    def test_loop(self, road_factory):
        with pytest.raises(DegenerateInputError, match="same intersection"):
            road_factory(1, 4, 4, [(0, 0), (10, 0)], 1.0).validate()


class TestRoad:
    """Working copy of a road."""

    def test_outgoing_center_reverses_at_destination(self, road_factory):
        road = Road.from_input(road_factory(1, 10, 20, [(0, 0), (3, 0), (3, 4)], 1.0))

        assert list(road.outgoing_center(10).coords) == [(0, 0), (3, 0), (3, 4)]
        assert list(road.outgoing_center(20).coords) == [(3, 4), (3, 0), (0, 0)]
        assert road.length == pytest.approx(7.0)

    def test_input_center_kept(self, road_factory):
        road = Road.from_input(road_factory(1, 10, 20, [(0, 0), (10, 0)], 1.0))
        road.trimmed_center_pts = LineString([(2, 0), (10, 0)])

        assert road.input_center_pts.length == pytest.approx(10.0)

    def test_record_trim_once(self, road_factory):
        road = Road.from_input(road_factory(1, 10, 20, [(0, 0), (10, 0)], 1.0))

        assert road.record_trim(10, 2.0)
        assert not road.record_trim(10, 3.0)
        assert road.trims == {10: 2.0}
        assert road.is_trimmed_at(10)
        assert not road.is_trimmed_at(20)

    def test_record_trim_at_unknown_node(self, road_factory):
        road = Road.from_input(road_factory(1, 10, 20, [(0, 0), (10, 0)], 1.0))

        with pytest.raises(DegenerateInputError):
            road.record_trim(30, 1.0)


@pytest.mark.parametrize("degree,kind", [(1, "dead_end"), (2, "pass_through"), (4, "junction")])
def test_intersection_kind(degree, kind):
    node = IntersectionNode.from_road_ids(1, [RoadID(i, 1, 100 + i) for i in range(degree)])

    assert node.degree == degree
    assert node.kind == kind
