"""
Data model for road trimming and intersection polygons.

``InputRoad`` and ``IntersectionNode`` are immutable inputs. ``Road`` is the
working copy owned by one run: its center-line is shortened at each end by the
intersection at that end, and each end has its own trim slot so the two
intersections never touch each other's result.
"""

import dataclasses
import math
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple

from shapely.geometry import LineString, Polygon

from osm2polygons.geometry.errors import DegenerateInputError


@dataclasses.dataclass(frozen=True, order=True)
class RoadID:
    """A directed road segment between two intersection nodes."""

    osm_way_id: int
    src_i: int
    dst_i: int

    def __str__(self) -> str:
        return f"way {self.osm_way_id} ({self.src_i} -> {self.dst_i})"

    @property
    def endpoints(self) -> Tuple[int, int]:
        return self.src_i, self.dst_i

    def touches(self, node_id: int) -> bool:
        return node_id in (self.src_i, self.dst_i)

    def other_end(self, node_id: int) -> int:
        if node_id == self.src_i:
            return self.dst_i
        if node_id == self.dst_i:
            return self.src_i
        raise ValueError(f"{self} does not touch intersection {node_id}")


@dataclasses.dataclass(frozen=True)
class InputRoad:
    """A road as handed to the algorithm: untrimmed center-line and half-width."""

    id: RoadID
    center_pts: LineString
    half_width: float

    def validate(self) -> None:
        """
        Check the structural invariants of the road.

        Raises:
            DegenerateInputError: If the half-width is not a positive finite
                number, the center-line is empty or degenerate, or the road
                starts and ends at the same intersection.
        """
        try:
            half_width = float(self.half_width)
        except (TypeError, ValueError):
            raise DegenerateInputError(self.id, f"half-width {self.half_width!r} is not a number")
        if not math.isfinite(half_width) or half_width <= 0:
            raise DegenerateInputError(self.id, f"half-width must be positive, got {half_width}")
        if not isinstance(self.center_pts, LineString) or self.center_pts.is_empty:
            raise DegenerateInputError(self.id, "center-line is missing or empty")
        coords = list(self.center_pts.coords)
        if len(coords) < 2 or self.center_pts.length <= 0:
            raise DegenerateInputError(self.id, "center-line has zero length")
        for idx, (a, b) in enumerate(zip(coords, coords[1:])):
            if a == b:
                raise DegenerateInputError(self.id, f"center-line repeats point {idx}")
        if self.id.src_i == self.id.dst_i:
            raise DegenerateInputError(self.id, "road starts and ends at the same intersection")


@dataclasses.dataclass
class Road:
    """
    Working copy of one road.

    ``trimmed_center_pts`` always runs from ``src_i`` to ``dst_i``.
    ``trims`` maps an endpoint node to the arc length removed at that end;
    a slot is written at most once.
    """

    id: RoadID
    trimmed_center_pts: LineString
    half_width: float
    input_center_pts: Optional[LineString] = None
    trims: Dict[int, float] = dataclasses.field(default_factory=dict)

    def __post_init__(self):
        if self.input_center_pts is None:
            self.input_center_pts = self.trimmed_center_pts

    @classmethod
    def from_input(cls, road: InputRoad) -> "Road":
        return cls(
            id=road.id,
            trimmed_center_pts=road.center_pts,
            half_width=float(road.half_width),
        )

    @property
    def length(self) -> float:
        return self.trimmed_center_pts.length

    def starts_at(self, node_id: int) -> bool:
        """True if the center-line is stored starting at ``node_id``."""
        if not self.id.touches(node_id):
            raise DegenerateInputError(self.id, f"does not touch intersection {node_id}")
        return self.id.src_i == node_id

    def outgoing_center(self, node_id: int) -> LineString:
        """The current center-line, oriented to start at ``node_id``."""
        if self.starts_at(node_id):
            return self.trimmed_center_pts
        return LineString(list(self.trimmed_center_pts.coords)[::-1])

    def is_trimmed_at(self, node_id: int) -> bool:
        return node_id in self.trims

    def record_trim(self, node_id: int, distance: float) -> bool:
        """
        Fill the trim slot of one endpoint.

        Returns:
            bool: False if the slot was already filled; the slot is left as is.
        """
        self.starts_at(node_id)
        if node_id in self.trims:
            return False
        self.trims[node_id] = float(distance)
        return True


@dataclasses.dataclass(frozen=True)
class IntersectionNode:
    """An intersection and the set of roads incident to it."""

    id: int
    roads: FrozenSet[RoadID]

    @classmethod
    def from_road_ids(cls, node_id: int, road_ids: Iterable[RoadID]) -> "IntersectionNode":
        return cls(id=node_id, roads=frozenset(road_ids))

    @property
    def degree(self) -> int:
        return len(self.roads)

    @property
    def kind(self) -> str:
        if self.degree == 1:
            return "dead_end"
        if self.degree == 2:
            return "pass_through"
        return "junction"


@dataclasses.dataclass
class Results:
    """Output of one intersection computation."""

    intersection_id: int
    intersection_polygon: Polygon
    trimmed_center_pts: List[Tuple[RoadID, LineString]]
    debug: List[Tuple[str, Polygon]] = dataclasses.field(default_factory=list)
    trim_distances: Dict[RoadID, float] = dataclasses.field(default_factory=dict)
    used_fallback: bool = False

    def polygon_points(self) -> List[Tuple[float, float]]:
        """Exterior ring of the polygon without the repeated closing point."""
        return list(self.intersection_polygon.exterior.coords)[:-1]

    def trimmed_road(self, road_id: RoadID) -> LineString:
        for rid, center in self.trimmed_center_pts:
            if rid == road_id:
                return center
        raise KeyError(road_id)
