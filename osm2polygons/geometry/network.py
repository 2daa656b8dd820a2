"""
Run the per-intersection computation over a whole set of roads.

Roads live in an arena keyed by RoadID. Every intersection works on the
untrimmed center-lines and only fills the trim slot of its own end of each
road, so the order in which intersections are processed does not matter.
Once all intersections are done, both slots of every road are combined
into its final center-line.
"""

import dataclasses
import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Optional

from shapely.geometry import LineString
from shapely.ops import substring
from tqdm import tqdm

from osm2polygons.geometry.errors import DegenerateInputError
from osm2polygons.geometry.models import InputRoad, IntersectionNode, Results, Road, RoadID
from osm2polygons.geometry.pipeline import intersection_polygon
from osm2polygons.geometry.settings import GeometrySettings

logger = logging.getLogger(__name__)


@dataclasses.dataclass
class NetworkResults:
    """
    Polygons per intersection and final roads, trimmed at both ends.

    ``rescaled`` maps each road whose two trims had to be scaled down to the
    factor applied. The polygons at both ends of such a road were built
    from the unscaled trims, so they no longer meet the road's final ends
    and a gap is left between them.
    """

    intersections: Dict[int, Results]
    roads: Dict[RoadID, Road]
    failures: Dict[int, DegenerateInputError]
    rescaled: Dict[RoadID, float] = dataclasses.field(default_factory=dict)

    def trimmed_center_pts(self) -> Dict[RoadID, LineString]:
        return {road_id: road.trimmed_center_pts for road_id, road in self.roads.items()}


def intersection_nodes(input_roads: Iterable[InputRoad]) -> List[IntersectionNode]:
    """Derive the intersections from the endpoints of every road, sorted by id."""
    incident = defaultdict(set)
    for road in input_roads:
        incident[road.id.src_i].add(road.id)
        incident[road.id.dst_i].add(road.id)
    return [
        IntersectionNode.from_road_ids(node_id, road_ids)
        for node_id, road_ids in sorted(incident.items())
    ]


class RoadArena:
    """
    All roads of one run, with two independent trim slots per road.
    """

    def __init__(self, input_roads: Iterable[InputRoad]):
        self.input_roads: Dict[RoadID, InputRoad] = {}
        self.roads: Dict[RoadID, Road] = {}
        self.invalid: Dict[RoadID, DegenerateInputError] = {}
        self.rescaled: Dict[RoadID, float] = {}

        for input_road in input_roads:
            if input_road.id in self.input_roads:
                raise DegenerateInputError(input_road.id, "given twice")
            self.input_roads[input_road.id] = input_road
            try:
                input_road.validate()
            except DegenerateInputError as e:
                self.invalid[input_road.id] = e
                continue
            self.roads[input_road.id] = Road.from_input(input_road)

    def roads_at(self, node: IntersectionNode) -> List[InputRoad]:
        """
        The input roads of one intersection.

        Raises:
            DegenerateInputError: If one of them is unknown or unusable.
        """
        roads = []
        for road_id in sorted(node.roads):
            if road_id in self.invalid:
                raise self.invalid[road_id]
            if road_id not in self.input_roads:
                raise DegenerateInputError(road_id, "no such road in the input")
            roads.append(self.input_roads[road_id])
        return roads

    def commit(self, results: Results) -> None:
        """Store the trim of each road at this intersection's end."""
        for road_id, distance in results.trim_distances.items():
            if not self.roads[road_id].record_trim(results.intersection_id, distance):
                logger.debug("%s already has a trim at %s, keeping it",
                             road_id, results.intersection_id)

    def reconcile(self, settings: GeometrySettings) -> Dict[RoadID, Road]:
        """
        Apply both trim slots of every road to its untrimmed center-line.

        If the two trims together would eat more than ``trim_cap_fraction``
        of the road, both are scaled down by the same factor, which is
        recorded in ``rescaled``.
        """
        for road in self.roads.values():
            center = road.input_center_pts
            length = center.length
            src_trim = road.trims.get(road.id.src_i, 0.0)
            dst_trim = road.trims.get(road.id.dst_i, 0.0)

            budget = settings.trim_cap_fraction * length
            total = src_trim + dst_trim
            if total > budget:
                scale = budget / total
                logger.warning(
                    "%s: trims %.2f + %.2f exceed %.2f of its %.2f length, scaling by %.3f",
                    road.id, src_trim, dst_trim, settings.trim_cap_fraction, length, scale)
                src_trim *= scale
                dst_trim *= scale
                self.rescaled[road.id] = scale

            if src_trim > 0 or dst_trim > 0:
                road.trimmed_center_pts = substring(center, src_trim, length - dst_trim)
        return self.roads


def build_network(
    input_roads: Iterable[InputRoad],
    nodes: Optional[Iterable[IntersectionNode]] = None,
    settings: Optional[GeometrySettings] = None,
    progress: bool = True,
) -> NetworkResults:
    """
    Build the polygon of every intersection and trim every road at both ends.

    Args:
        input_roads: All roads, untrimmed.
        nodes: Intersections to process. Derived from the road endpoints
            if None.
        settings: Geometry tunables, defaults if None.
        progress: Show a progress bar.

    Returns:
        NetworkResults: Intersections that could not be processed are listed
            in ``failures`` and leave their roads untrimmed at that end.
    """
    settings = settings or GeometrySettings()
    input_roads = list(input_roads)
    arena = RoadArena(input_roads)
    if nodes is None:
        nodes = intersection_nodes(input_roads)
    nodes = sorted(nodes, key=lambda node: node.id)

    intersections: Dict[int, Results] = {}
    failures: Dict[int, DegenerateInputError] = {}
    for node in tqdm(nodes, desc="Intersections", disable=not progress):
        try:
            results = intersection_polygon(node.id, arena.roads_at(node), settings)
        except DegenerateInputError as e:
            logger.error("Intersection %s skipped: %s", node.id, e)
            failures[node.id] = e
            continue
        arena.commit(results)
        intersections[node.id] = results
        if results.used_fallback:
            logger.info("Intersection %s uses the convex hull polygon", node.id)

    logger.info("Built %d intersections, %d failed", len(intersections), len(failures))
    roads = arena.reconcile(settings)
    if arena.rescaled:
        logger.warning("%d roads had their trims scaled down; the polygons at their ends "
                       "were built from the full trims", len(arena.rescaled))
    return NetworkResults(
        intersections=intersections,
        roads=roads,
        failures=failures,
        rescaled=dict(arena.rescaled),
    )
