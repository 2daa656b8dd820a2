"""
Error kinds raised while turning road center-lines into polygons.

Only ``DegenerateInputError`` and ``MalformedInterchangeRecord`` ever reach a
caller. The geometric ones are raised and recovered inside the geometry
package; they exist so the recovery points are explicit and can be logged.
"""

from typing import Optional


class Osm2PolygonsError(Exception):
    """Base class for all osm2polygons errors."""


class DegenerateInputError(Osm2PolygonsError, ValueError):
    """A road cannot be used: zero-length center-line, bad half-width, or bad endpoints."""

    def __init__(self, road_id, reason: str):
        self.road_id = road_id
        self.reason = reason
        super().__init__(f"Road {road_id}: {reason}")


class BoundaryCurveError(Osm2PolygonsError):
    """No simple left/right boundary curve could be produced for a road."""

    def __init__(self, road_id, reason: str):
        self.road_id = road_id
        self.reason = reason
        super().__init__(f"Boundary of road {road_id}: {reason}")


class InconclusiveEdgeIntersection(Osm2PolygonsError):
    """Two adjacent roads leave the node along the same tangent."""

    def __init__(self, first, second):
        self.first = first
        self.second = second
        super().__init__(
            f"Roads {first} and {second} leave the intersection in the same direction")


class SelfIntersectingPolygon(Osm2PolygonsError):
    """The angular boundary walk around an intersection is not a simple polygon."""

    def __init__(self, intersection_id, reason: str = "walk is not simple"):
        self.intersection_id = intersection_id
        super().__init__(f"Intersection {intersection_id}: {reason}")


class MalformedInterchangeRecord(Osm2PolygonsError, ValueError):
    """A GeoJSON feature is missing a required property or has unusable geometry."""

    def __init__(self, feature_index: int, reason: str, feature_id: Optional[str] = None):
        self.feature_index = feature_index
        self.reason = reason
        self.feature_id = feature_id
        label = f"#{feature_index}" if feature_id is None else f"#{feature_index} ({feature_id})"
        super().__init__(f"Feature {label}: {reason}")
