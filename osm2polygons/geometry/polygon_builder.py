"""
Build the polygon covering an intersection from its trimmed roads.

The polygon walks counter-clockwise around the node, visiting the right and
then the left boundary point of every trimmed road end. Where two
neighbouring roads' facing edges never cross (the outside of a turn), the
corner where both edges meet when extended back towards the node is added.
A dead end is covered by the stretch of road its trim removed. If the walk is not a simple polygon, the convex hull of all the points is
used instead, so every intersection gets a valid polygon.
"""

import logging
import math
from typing import Dict, List, Optional, Sequence, Tuple

from shapely.geometry import MultiPoint, Polygon
from shapely.geometry.polygon import orient
from shapely.ops import substring

from osm2polygons.geometry.edge_intersections import (
    TWO_PI, EdgeIntersections, OutgoingRoad, initial_angle,)
from osm2polygons.geometry.errors import SelfIntersectingPolygon
from osm2polygons.geometry.models import Road, RoadID
from osm2polygons.geometry.road_edges import end_points, road_body, start_offset_points
from osm2polygons.geometry.settings import GeometrySettings

logger = logging.getLogger(__name__)

Coord = Tuple[float, float]


def _direction(road: Road, node_id: int) -> Coord:
    angle = initial_angle(road.outgoing_center(node_id))
    return math.cos(angle), math.sin(angle)


def outer_corner(
    p: Coord, dp: Coord, q: Coord, dq: Coord, limit: float
) -> Optional[Coord]:
    """
    Where the ray from ``p`` against ``dp`` meets the ray from ``q`` against ``dq``.

    ``dp`` and ``dq`` point away from the node, so the rays run back towards
    it. Returns None for parallel rays or when the meeting point is behind
    either start or further than ``limit`` from it.
    """
    det = -dp[0] * dq[1] + dq[0] * dp[1]
    if abs(det) < 1e-12:
        return None
    ex, ey = q[0] - p[0], q[1] - p[1]
    s = (ex * dq[1] - dq[0] * ey) / det
    u = (-dp[0] * ey + ex * dp[1]) / det
    if s < 0 or u < 0 or s > limit or u > limit:
        return None
    return p[0] - s * dp[0], p[1] - s * dp[1]


def dedupe(points: Sequence[Coord], tolerance: float) -> List[Coord]:
    """Drop consecutive points (including last-to-first) closer than ``tolerance``."""
    result: List[Coord] = []
    for pt in points:
        if result and math.dist(result[-1], pt) <= tolerance:
            continue
        result.append(pt)
    while len(result) > 1 and math.dist(result[0], result[-1]) <= tolerance:
        result.pop()
    return result


def validated_polygon(intersection_id, points: Sequence[Coord], tolerance: float) -> Polygon:
    """
    Close ``points`` into a polygon and check that it is simple with positive area.

    Raises:
        SelfIntersectingPolygon: If the ring is degenerate or crosses itself.
    """
    if len(points) < 3:
        raise SelfIntersectingPolygon(intersection_id, f"only {len(points)} distinct points")
    polygon = Polygon(points)
    if not polygon.is_valid:
        raise SelfIntersectingPolygon(intersection_id)
    if polygon.area <= tolerance:
        raise SelfIntersectingPolygon(intersection_id, "walk has no area")
    return orient(polygon, sign=1.0)


def convex_hull_polygon(points: Sequence[Coord], pad: float) -> Polygon:
    """
    Convex hull of ``points``; if the hull is flat it is padded by ``pad``.
    """
    hull = MultiPoint(list(points)).convex_hull
    if not isinstance(hull, Polygon) or hull.area <= 0:
        hull = hull.buffer(pad)
    return orient(hull, sign=1.0)


def dead_end_walk(outgoing: OutgoingRoad, road: Road, settings: GeometrySettings) -> List[Coord]:
    """
    The stretch of road removed at a dead end, as the outline of its paved area.

    Taken from the untrimmed center-line, so a tight turn inside the removed
    stretch is covered as well.
    """
    removed = outgoing.center.length - road.length
    if removed <= 0:
        return [tuple(outgoing.center.coords[0])]
    body = road_body(substring(outgoing.center, 0, removed), road.half_width,
                     settings.mitre_limit)
    return [tuple(xy) for xy in orient(body, sign=1.0).exterior.coords[:-1]]


def junction_walk(
    node_id: int,
    edges: EdgeIntersections,
    roads: Dict[RoadID, Road],
    settings: GeometrySettings,
) -> List[Coord]:
    """
    Boundary points of every trimmed road in angular order, plus outer corners.

    On the outside of a turn whose corner is out of reach, the walk goes
    through the boundary points beside the node instead, so the node itself
    stays covered.
    """
    ends = []
    for outgoing in edges.ordered:
        road = roads[outgoing.id]
        left, right = end_points(road, node_id, settings)
        ends.append((outgoing, road, left, right, _direction(road, node_id)))

    walk: List[Coord] = []
    for idx, (outgoing, road, left, right, direction) in enumerate(ends):
        walk.extend([right, left])
        following, next_road, _, next_right, next_direction = ends[(idx + 1) % len(ends)]
        crossing = edges.crossing_after(outgoing.id)
        if crossing is None or crossing.crossed or crossing.inconclusive:
            continue
        limit = settings.corner_extension_factor * max(road.half_width, next_road.half_width)
        corner = outer_corner(left, direction, next_right, next_direction, limit)
        if corner is not None:
            walk.append(corner)
        elif (following.angle - outgoing.angle) % TWO_PI >= math.pi:
            walk.append(start_offset_points(outgoing.center, road.half_width)[0])
            walk.append(start_offset_points(following.center, next_road.half_width)[1])
    return walk


def build_polygon(
    node_id: int,
    edges: EdgeIntersections,
    roads: Dict[RoadID, Road],
    settings: Optional[GeometrySettings] = None,
) -> Tuple[Polygon, List[Tuple[str, Polygon]], bool]:
    """
    Produce the intersection polygon from the trimmed roads.

    Args:
        node_id: The intersection.
        edges: Result of the edge intersection stage, computed on the
            untrimmed roads; supplies the angular order.
        roads: Trimmed roads by id.
        settings: Geometry tunables.

    Returns:
        (polygon, debug polygons, whether the convex hull fallback was used)
    """
    settings = settings or GeometrySettings()
    debug = [
        (f"road {road_id}", road_body(road.trimmed_center_pts, road.half_width,
                                      settings.mitre_limit))
        for road_id, road in sorted(roads.items())
    ]

    if len(edges.ordered) == 1:
        outgoing = edges.ordered[0]
        walk = dead_end_walk(outgoing, roads[outgoing.id], settings)
    else:
        walk = junction_walk(node_id, edges, roads, settings)

    points = dedupe(walk, settings.dedupe_tolerance)
    try:
        return validated_polygon(node_id, points, settings.dedupe_tolerance), debug, False
    except SelfIntersectingPolygon as e:
        logger.warning("%s; using the convex hull of the road ends", e)

    if len(points) >= 3:
        debug.append(("rejected walk", Polygon(points)))
    pad = min(road.half_width for road in roads.values())
    return convex_hull_polygon(walk, pad), debug, True
