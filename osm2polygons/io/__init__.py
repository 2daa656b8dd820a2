"""
GeoJSON reader and writers for road trimming input and output.
"""

from osm2polygons.io.geojson import (
    read_geojson_input, roundtrip_geojson, write_geojson_intersections, write_geojson_roads,)

__all__ = [
    'read_geojson_input',
    'roundtrip_geojson',
    'write_geojson_intersections',
    'write_geojson_roads',
]
