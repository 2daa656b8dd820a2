"""
Left and right boundary curves of a road.

A road is its center-line with a half-width on either side. The boundaries
are the center-line offset by +half_width (left) and -half_width (right),
with mitred joints, and keep the direction of the center-line they were
derived from.

On a turn tighter than the half-width, the inner offset is clipped: it no
longer starts beside the first point of the center-line but somewhere past
the turn. Such a curve is not a usable boundary at that end.
"""

import logging
import math
from typing import Iterator, Optional, Tuple

from shapely.geometry import CAP_STYLE, JOIN_STYLE, LineString, MultiLineString, Point, Polygon
from shapely.ops import linemerge

from osm2polygons.geometry.errors import BoundaryCurveError
from osm2polygons.geometry.models import Road
from osm2polygons.geometry.settings import GeometrySettings

logger = logging.getLogger(__name__)

Coord = Tuple[float, float]

# Relative to max(1, half_width)
OFFSET_TOLERANCE = 1e-6


def _segments(coords) -> Iterator[Tuple[Coord, Coord, float]]:
    """Segments of non-zero length as (start, end, length)."""
    for a, b in zip(coords, coords[1:]):
        length = math.dist(a, b)
        if length > 0:
            yield tuple(a), tuple(b), length


def _side_point(a: Coord, b: Coord, length: float, distance: float) -> Coord:
    """``a`` moved ``distance`` to the left of the direction a -> b."""
    return (a[0] - (b[1] - a[1]) / length * distance,
            a[1] + (b[0] - a[0]) / length * distance)


def start_offset_points(center: LineString, half_width: float) -> Tuple[Coord, Coord]:
    """
    Left and right boundary points beside the first point of ``center``.

    Taken from the first segment alone, so they exist even when the offset
    curves are clipped.
    """
    a, b, length = next(_segments(list(center.coords)))
    return _side_point(a, b, length, half_width), _side_point(a, b, length, -half_width)


def offset_curves(
    center: LineString,
    half_width: float,
    mitre_limit: float = 5.0,
    road_id=None,
) -> Tuple[LineString, LineString]:
    """
    Offset a center-line to both sides, accepting curves clipped on tight turns.

    Raises:
        BoundaryCurveError: If the center-line has zero length or an offset
            does not come out as one simple curve.
    """
    if center.is_empty or center.length <= 0:
        raise BoundaryCurveError(road_id, "center-line has zero length")

    curves = []
    for distance in (half_width, -half_width):
        raw = center.offset_curve(
            distance, join_style=JOIN_STYLE.mitre, mitre_limit=mitre_limit)
        curves.append(_as_simple_curve(raw, center, road_id))
    return curves[0], curves[1]


def _as_simple_curve(curve, center: LineString, road_id) -> LineString:
    if isinstance(curve, MultiLineString):
        curve = linemerge(curve)
    if not isinstance(curve, LineString) or curve.is_empty:
        raise BoundaryCurveError(road_id, "offset splits into several pieces")
    if curve.length <= 0 or not curve.is_simple:
        raise BoundaryCurveError(road_id, "offset is not a simple curve")

    # Keep the boundary running the same way as the center-line
    start = Point(center.coords[0])
    if start.distance(Point(curve.coords[-1])) < start.distance(Point(curve.coords[0])):
        curve = LineString(list(curve.coords)[::-1])
    return curve


def _offset_arc_length(center: LineString, point: Coord, distance: float) -> float:
    """
    Arc length along ``center`` of the first segment that ``point`` lies
    ``distance`` to the left of.
    """
    tolerance = OFFSET_TOLERANCE * max(1.0, abs(distance))
    travelled = 0.0
    for a, b, length in _segments(list(center.coords)):
        dx, dy = b[0] - a[0], b[1] - a[1]
        along = ((point[0] - a[0]) * dx + (point[1] - a[1]) * dy) / length
        side = (dx * (point[1] - a[1]) - dy * (point[0] - a[0])) / length
        if -tolerance <= along <= length + tolerance and abs(side - distance) <= tolerance:
            return travelled + min(max(along, 0.0), length)
        travelled += length
    return center.project(Point(point))


def clipped_start(center: LineString, curve: LineString, distance: float) -> Optional[float]:
    """
    Where a clipped offset curve begins, as arc length along ``center``.

    Returns None if the curve starts beside the first point of ``center``.
    """
    a, b, length = next(_segments(list(center.coords)))
    expected = _side_point(a, b, length, distance)
    tolerance = OFFSET_TOLERANCE * max(1.0, abs(distance))
    if math.dist(expected, curve.coords[0]) <= tolerance:
        return None
    return _offset_arc_length(center, tuple(curve.coords[0]), distance)


def offset_boundaries(
    center: LineString,
    half_width: float,
    mitre_limit: float = 5.0,
    road_id=None,
    check_far_end: bool = True,
) -> Tuple[LineString, LineString]:
    """
    Offset a center-line to both sides.

    Args:
        center: Center-line; the boundaries follow its direction.
        half_width: Offset distance, positive.
        mitre_limit: Mitre ratio limit for interior joints.
        road_id: Only used in error messages.
        check_far_end: Also require the curves to reach the last point of
            ``center``.

    Returns:
        (left, right) boundary curves.

    Raises:
        BoundaryCurveError: If the center-line has zero length, an offset
            does not come out as one simple curve, or an offset is clipped
            by a turn tighter than ``half_width``.
    """
    left, right = offset_curves(center, half_width, mitre_limit, road_id)
    reversed_center = LineString(list(center.coords)[::-1])
    for curve, distance in ((left, half_width), (right, -half_width)):
        if clipped_start(center, curve, distance) is not None:
            raise BoundaryCurveError(road_id, "offset is clipped by a tight turn at the start")
        if check_far_end and clipped_start(
                reversed_center, LineString(list(curve.coords)[::-1]), -distance) is not None:
            raise BoundaryCurveError(road_id, "offset is clipped by a tight turn at the end")
    return left, right


def boundary_curves(
    road: Road,
    node_id: Optional[int] = None,
    settings: Optional[GeometrySettings] = None,
) -> Tuple[LineString, LineString]:
    """
    Boundary curves of a road's current (trimmed) center-line.

    With ``node_id`` the center-line is taken leaving that intersection, so
    "left" and "right" are as seen when driving away from the node. Only the
    end at ``node_id`` has to be free of clipping then.
    """
    settings = settings or GeometrySettings()
    if node_id is None:
        center = road.trimmed_center_pts
    else:
        center = road.outgoing_center(node_id)
    return offset_boundaries(center, road.half_width, settings.mitre_limit, road.id,
                             check_far_end=node_id is None)


def end_points(
    road: Road,
    node_id: int,
    settings: Optional[GeometrySettings] = None,
) -> Tuple[Coord, Coord]:
    """
    Left and right boundary points where the road meets ``node_id``.

    If no boundary can be built, the center-line endpoint stands in for both
    points.
    """
    try:
        left, right = boundary_curves(road, node_id, settings)
    except BoundaryCurveError as e:
        logger.warning("%s; using the center-line endpoint instead", e)
        start = road.outgoing_center(node_id).coords[0]
        return tuple(start), tuple(start)
    return tuple(left.coords[0]), tuple(right.coords[0])


def road_body(center: LineString, half_width: float, mitre_limit: float = 5.0) -> Polygon:
    """The paved area of a road: its center-line buffered with flat ends."""
    return center.buffer(
        half_width,
        cap_style=CAP_STYLE.flat,
        join_style=JOIN_STYLE.mitre,
        mitre_limit=mitre_limit,
    )
