"""
osm2polygons: road and intersection polygons from OpenStreetMap center-lines.
"""

__version__ = "0.1.0"
