"""
Road and intersection polygons from OSM center-lines.

OSM describes roads as center-lines that intersect. This package turns them
into road and intersection polygons by

1) treating each road as a center-line with a width, so it has a left and a
   right edge
2) finding the places where the edges of neighbouring roads intersect
3) trimming back the center-lines to remove the overlap
4) producing a polygon for the intersection itself
"""

from osm2polygons.geometry.errors import (
    BoundaryCurveError, DegenerateInputError, InconclusiveEdgeIntersection,
    MalformedInterchangeRecord, Osm2PolygonsError, SelfIntersectingPolygon,)
from osm2polygons.geometry.models import InputRoad, IntersectionNode, Results, Road, RoadID
from osm2polygons.geometry.network import NetworkResults, build_network, intersection_nodes
from osm2polygons.geometry.pipeline import (
    IntersectionBuilder, IntersectionState, intersection_polygon,)
from osm2polygons.geometry.road_edges import boundary_curves
from osm2polygons.geometry.settings import GeometrySettings

__all__ = [
    'BoundaryCurveError',
    'DegenerateInputError',
    'GeometrySettings',
    'InconclusiveEdgeIntersection',
    'InputRoad',
    'IntersectionBuilder',
    'IntersectionNode',
    'IntersectionState',
    'MalformedInterchangeRecord',
    'NetworkResults',
    'Osm2PolygonsError',
    'Results',
    'Road',
    'RoadID',
    'SelfIntersectingPolygon',
    'boundary_curves',
    'build_network',
    'intersection_nodes',
    'intersection_polygon',
]
