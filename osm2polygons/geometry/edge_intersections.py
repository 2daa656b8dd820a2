"""
Find where the boundaries of roads meeting at one intersection cross.

Roads are ordered counter-clockwise by the direction in which they leave the
node. Only neighbours in that cyclic order are compared: the left boundary
of a road faces the right boundary of the next road counter-clockwise. The
first crossing of those two curves, projected back onto each center-line,
tells how far each road has to be trimmed so the two no longer overlap.
"""

import dataclasses
import logging
import math
from typing import Dict, Iterable, List, Optional, Set

from shapely.geometry import LineString, Point

from osm2polygons.geometry.errors import BoundaryCurveError, InconclusiveEdgeIntersection
from osm2polygons.geometry.models import Road, RoadID
from osm2polygons.geometry.road_edges import clipped_start, offset_curves, road_body
from osm2polygons.geometry.settings import GeometrySettings

logger = logging.getLogger(__name__)

TWO_PI = 2 * math.pi


@dataclasses.dataclass
class OutgoingRoad:
    """A road seen from the intersection: center-line and boundaries start at the node."""

    road: Road
    center: LineString
    angle: float
    left: Optional[LineString] = None
    right: Optional[LineString] = None
    # Arc length where a boundary clipped by a tight turn begins
    clipped_at: Optional[float] = None

    @property
    def id(self) -> RoadID:
        return self.road.id

    @property
    def has_boundaries(self) -> bool:
        return self.left is not None and self.right is not None


@dataclasses.dataclass
class EdgeCrossing:
    """Result for one adjacent pair: ``first.left`` against ``second.right``."""

    first: RoadID
    second: RoadID
    point: Optional[Point] = None
    first_distance: Optional[float] = None
    second_distance: Optional[float] = None
    inconclusive: bool = False

    @property
    def crossed(self) -> bool:
        return self.point is not None


@dataclasses.dataclass
class EdgeIntersections:
    """Everything the trimmer and polygon builder need from this stage."""

    node_id: int
    ordered: List[OutgoingRoad]
    crossings: List[EdgeCrossing]
    constraints: Dict[RoadID, List[float]]
    inconclusive: Set[RoadID]

    def crossing_after(self, road_id: RoadID) -> Optional[EdgeCrossing]:
        """The crossing between ``road_id`` and its counter-clockwise neighbour."""
        for crossing in self.crossings:
            if crossing.first == road_id:
                return crossing
        return None


def initial_angle(center: LineString) -> float:
    """Direction of the first non-degenerate segment of ``center`` in [0, 2*pi)."""
    coords = list(center.coords)
    x0, y0 = coords[0]
    for x1, y1 in coords[1:]:
        if (x1, y1) != (x0, y0):
            return math.atan2(y1 - y0, x1 - x0) % TWO_PI
    return 0.0


def outgoing_roads(
    node_id: int,
    roads: Iterable[Road],
    settings: GeometrySettings,
) -> List[OutgoingRoad]:
    """
    Orient every road away from ``node_id`` and sort them counter-clockwise.

    Roads whose boundaries cannot be built are kept, without boundaries;
    they take part in the ordering but constrain nobody. A boundary clipped
    by a tight turn is kept as it is and ``clipped_at`` records where it
    begins.
    """
    result = []
    for road in roads:
        center = road.outgoing_center(node_id)
        outgoing = OutgoingRoad(road=road, center=center, angle=initial_angle(center))
        try:
            left, right = offset_curves(center, road.half_width, settings.mitre_limit, road.id)
        except BoundaryCurveError as e:
            logger.warning("Intersection %s: %s", node_id, e)
        else:
            outgoing.left, outgoing.right = left, right
            clipped = [d for d in (clipped_start(center, left, road.half_width),
                                   clipped_start(center, right, -road.half_width))
                       if d is not None]
            if clipped:
                outgoing.clipped_at = max(clipped)
                logger.debug("Intersection %s: %s boundary clipped by a tight turn up to %.3f",
                             node_id, road.id, outgoing.clipped_at)
        result.append(outgoing)
    return sorted(result, key=lambda o: (o.angle, o.id))


def _points_of(geom) -> List[Point]:
    if geom.is_empty:
        return []
    if isinstance(geom, Point):
        return [geom]
    if hasattr(geom, 'geoms'):
        points = []
        for part in geom.geoms:
            points.extend(_points_of(part))
        return points
    # Overlapping stretches count with their vertices
    return [Point(xy) for xy in geom.coords]


def _angular_gap(first: OutgoingRoad, second: OutgoingRoad) -> float:
    gap = (second.angle - first.angle) % TWO_PI
    return min(gap, TWO_PI - gap)


def find_crossing(
    first: OutgoingRoad,
    second: OutgoingRoad,
    settings: GeometrySettings,
) -> EdgeCrossing:
    """
    Where the left boundary of ``first`` meets the right boundary of ``second``.

    When the curves never cross but one road's facing boundary ends inside
    the other road, that road is swallowed and has to give up its whole
    length (the trim cap then applies).

    Raises:
        InconclusiveEdgeIntersection: If both roads leave the node along the
            same tangent.
    """
    if _angular_gap(first, second) < settings.angle_tolerance:
        raise InconclusiveEdgeIntersection(first.id, second.id)

    crossing = EdgeCrossing(first=first.id, second=second.id)
    if not (first.has_boundaries and second.has_boundaries):
        return crossing

    hits = _points_of(first.left.intersection(second.right))
    if hits:
        node = Point(first.center.coords[0])
        point = min(hits, key=lambda p: (node.distance(p), p.x, p.y))
        crossing.point = point
        crossing.first_distance = first.center.project(point)
        crossing.second_distance = second.center.project(point)
        return crossing

    second_body = road_body(second.center, second.road.half_width, settings.mitre_limit)
    if second_body.contains(Point(first.left.coords[-1])):
        crossing.first_distance = first.center.length
    first_body = road_body(first.center, first.road.half_width, settings.mitre_limit)
    if first_body.contains(Point(second.right.coords[-1])):
        crossing.second_distance = second.center.length
    return crossing


def self_crossing(outgoing: OutgoingRoad) -> Optional[float]:
    """
    Distance along the center-line where a road's own boundaries cross.

    A boundary clipped by a tight turn near the node counts as crossing up to
    where it begins, so the trim removes the turn. Only the half of the road
    nearest the node is considered; the far half belongs to the intersection
    at the other end.
    """
    if not outgoing.has_boundaries:
        return None
    half = outgoing.center.length / 2
    distances = [
        outgoing.center.project(p)
        for p in _points_of(outgoing.left.intersection(outgoing.right))
    ]
    distances = [d for d in distances if d <= half]
    crossing = min(distances) if distances else None
    if outgoing.clipped_at is not None and outgoing.clipped_at <= half:
        crossing = max(crossing or 0.0, outgoing.clipped_at)
    return crossing


def find_edge_intersections(
    node_id: int,
    roads: Iterable[Road],
    settings: Optional[GeometrySettings] = None,
) -> EdgeIntersections:
    """Compute every trim constraint at one intersection."""
    settings = settings or GeometrySettings()
    ordered = outgoing_roads(node_id, roads, settings)
    constraints: Dict[RoadID, List[float]] = {o.id: [] for o in ordered}
    inconclusive: Set[RoadID] = set()
    crossings: List[EdgeCrossing] = []

    if len(ordered) > 1:
        for idx, first in enumerate(ordered):
            second = ordered[(idx + 1) % len(ordered)]
            try:
                crossing = find_crossing(first, second, settings)
            except InconclusiveEdgeIntersection as e:
                logger.debug("Intersection %s: %s, falling back to the trim cap", node_id, e)
                inconclusive.update((first.id, second.id))
                crossings.append(EdgeCrossing(first.id, second.id, inconclusive=True))
                continue
            logger.debug(
                "Intersection %s: %s / %s crossing at %s (%s, %s)", node_id, first.id,
                second.id, crossing.point, crossing.first_distance, crossing.second_distance)
            if crossing.first_distance is not None:
                constraints[first.id].append(crossing.first_distance)
            if crossing.second_distance is not None:
                constraints[second.id].append(crossing.second_distance)
            crossings.append(crossing)

    for outgoing in ordered:
        distance = self_crossing(outgoing)
        if distance is not None:
            logger.debug("Intersection %s: %s boundaries cross each other at %.3f",
                         node_id, outgoing.id, distance)
            constraints[outgoing.id].append(distance)

    return EdgeIntersections(
        node_id=node_id,
        ordered=ordered,
        crossings=crossings,
        constraints=constraints,
        inconclusive=inconclusive,
    )


def compute_trim_distances(
    edges: EdgeIntersections,
    settings: Optional[GeometrySettings] = None,
) -> Dict[RoadID, float]:
    """
    Turn the constraints into one trim distance per road.

    The trim is the largest constraint, at least ``min_trim`` (or
    ``dead_end_length`` at a dead end), and never more than the trim cap.
    Roads with an inconclusive neighbour get the cap.
    """
    settings = settings or GeometrySettings()
    floor = settings.dead_end_length if len(edges.ordered) == 1 else settings.min_trim
    trims = {}
    for outgoing in edges.ordered:
        cap = settings.trim_cap(outgoing.center.length)
        if outgoing.id in edges.inconclusive:
            trims[outgoing.id] = cap
            continue
        wanted = max([floor] + edges.constraints[outgoing.id])
        trims[outgoing.id] = min(max(wanted, 0.0), cap)
    return trims
