"""
Per-intersection computation.

One intersection goes through four stages, strictly in order:

    UNPROCESSED -> EDGES_COMPUTED -> TRIMS_COMPUTED -> POLYGON_BUILT

1) treat every road as its center-line with a width, giving it a left and a
   right edge
2) find where the edges of neighbouring roads cross
3) trim the center-lines back so the roads no longer overlap
4) walk the trimmed road ends to produce the intersection polygon

A failure at any stage ends the computation for that intersection; its roads
keep their untrimmed center-lines at this end.
"""

import enum
import logging
from typing import Dict, Iterable, List, Optional

from osm2polygons.geometry.edge_intersections import (
    EdgeIntersections, compute_trim_distances, find_edge_intersections,)
from osm2polygons.geometry.errors import DegenerateInputError
from osm2polygons.geometry.models import InputRoad, Results, Road, RoadID
from osm2polygons.geometry.polygon_builder import build_polygon
from osm2polygons.geometry.settings import GeometrySettings
from osm2polygons.geometry.trimmer import trim_road_end

logger = logging.getLogger(__name__)


class IntersectionState(enum.Enum):
    UNPROCESSED = "unprocessed"
    EDGES_COMPUTED = "edges_computed"
    TRIMS_COMPUTED = "trims_computed"
    POLYGON_BUILT = "polygon_built"


class IntersectionBuilder:
    """
    Runs the four stages for one intersection.

    The builder works on its own ``Road`` copies made from the input roads,
    so nothing outside it changes until ``results`` is read.
    """

    def __init__(
        self,
        intersection_id: int,
        input_roads: Iterable[InputRoad],
        settings: Optional[GeometrySettings] = None,
    ):
        self.intersection_id = intersection_id
        self.settings = settings or GeometrySettings()
        self.state = IntersectionState.UNPROCESSED
        self.roads: Dict[RoadID, Road] = self._working_copies(input_roads)

        self.edges: Optional[EdgeIntersections] = None
        self.trim_distances: Dict[RoadID, float] = {}
        self.results: Optional[Results] = None

    def _working_copies(self, input_roads: Iterable[InputRoad]) -> Dict[RoadID, Road]:
        roads = {}
        for input_road in input_roads:
            input_road.validate()
            if not input_road.id.touches(self.intersection_id):
                raise DegenerateInputError(
                    input_road.id, f"does not touch intersection {self.intersection_id}")
            if input_road.id in roads:
                raise DegenerateInputError(input_road.id, "given twice")
            roads[input_road.id] = Road.from_input(input_road)
        if not roads:
            raise ValueError(f"Intersection {self.intersection_id} has no roads")
        return roads

    def _require(self, expected: IntersectionState):
        if self.state is not expected:
            raise RuntimeError(
                f"Intersection {self.intersection_id} is {self.state.value}, "
                f"expected {expected.value}")

    def _advance(self, new: IntersectionState):
        logger.debug("Intersection %s: %s -> %s", self.intersection_id,
                     self.state.value, new.value)
        self.state = new

    def compute_edges(self) -> EdgeIntersections:
        self._require(IntersectionState.UNPROCESSED)
        self.edges = find_edge_intersections(
            self.intersection_id, self.roads.values(), self.settings)
        self._advance(IntersectionState.EDGES_COMPUTED)
        return self.edges

    def compute_trims(self) -> Dict[RoadID, float]:
        self._require(IntersectionState.EDGES_COMPUTED)
        self.trim_distances = compute_trim_distances(self.edges, self.settings)
        for road_id, distance in self.trim_distances.items():
            trim_road_end(self.roads[road_id], self.intersection_id, distance)
        self._advance(IntersectionState.TRIMS_COMPUTED)
        return self.trim_distances

    def build_polygon(self) -> Results:
        self._require(IntersectionState.TRIMS_COMPUTED)
        polygon, debug, used_fallback = build_polygon(
            self.intersection_id, self.edges, self.roads, self.settings)
        self._advance(IntersectionState.POLYGON_BUILT)

        self.results = Results(
            intersection_id=self.intersection_id,
            intersection_polygon=polygon,
            trimmed_center_pts=[
                (road_id, road.trimmed_center_pts)
                for road_id, road in sorted(self.roads.items())
            ],
            debug=debug,
            trim_distances=dict(self.trim_distances),
            used_fallback=used_fallback,
        )
        return self.results

    def run(self) -> Results:
        self.compute_edges()
        self.compute_trims()
        return self.build_polygon()


def intersection_polygon(
    intersection_id: int,
    input_roads: List[InputRoad],
    settings: Optional[GeometrySettings] = None,
) -> Results:
    """
    Trim the roads meeting at one intersection and build its polygon.

    Args:
        intersection_id: The node the roads share.
        input_roads: Every road incident to the node, center-lines as they
            currently are (untrimmed at this end).
        settings: Geometry tunables, defaults if None.

    Returns:
        Results: Polygon, trimmed center-lines of every input road and the
            trim applied to each at this end.

    Raises:
        DegenerateInputError: If any road cannot be used.
    """
    return IntersectionBuilder(intersection_id, input_roads, settings).run()
