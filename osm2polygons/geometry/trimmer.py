"""
Shorten a road's center-line at one end.

Distances are arc lengths along the center-line measured from the node, so
a trim of 5 on a curved road removes the first 5 meters of curve, not
everything within 5 meters of the node.
"""

import logging

from shapely.geometry import LineString
from shapely.ops import substring

from osm2polygons.geometry.errors import DegenerateInputError
from osm2polygons.geometry.models import Road

logger = logging.getLogger(__name__)


def cut_from_start(center: LineString, distance: float) -> LineString:
    """
    Remove the first ``distance`` of ``center``.

    Vertices past the cut are kept as they are; the vertices before it are
    replaced by one new endpoint at exactly ``distance`` along the curve.
    """
    if distance <= 0:
        return center
    length = center.length
    if distance >= length:
        raise ValueError(f"Cannot cut {distance:.3f} from a center-line of length {length:.3f}")
    return substring(center, distance, length)


def cut_from_end(center: LineString, distance: float) -> LineString:
    """Remove the last ``distance`` of ``center``."""
    if distance <= 0:
        return center
    length = center.length
    if distance >= length:
        raise ValueError(f"Cannot cut {distance:.3f} from a center-line of length {length:.3f}")
    return substring(center, 0, length - distance)


def trim_road_end(road: Road, node_id: int, distance: float) -> bool:
    """
    Trim ``road`` by ``distance`` at the end touching ``node_id``.

    Each end is trimmed at most once; trimming an end again is a no-op, so the
    other end and any earlier result are never disturbed.

    Returns:
        bool: True if the center-line was changed or the trim recorded.

    Raises:
        DegenerateInputError: If the trim would leave no center-line.
    """
    if road.is_trimmed_at(node_id):
        logger.debug("%s already trimmed at %s, leaving it alone", road.id, node_id)
        return False

    try:
        if road.starts_at(node_id):
            trimmed = cut_from_start(road.trimmed_center_pts, distance)
        else:
            trimmed = cut_from_end(road.trimmed_center_pts, distance)
    except ValueError as e:
        raise DegenerateInputError(road.id, str(e)) from e

    road.trimmed_center_pts = trimmed
    road.record_trim(node_id, distance)
    return True
