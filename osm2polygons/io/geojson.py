"""
GeoJSON input and output for road trimming.

Features are exchanged in longitude/latitude (EPSG:4326). Every road feature
is a LineString with the properties ``osm_way_id``, ``src_i``, ``dst_i`` and
``half_width``. The algorithm itself runs in a projected, meter based CRS
supplied by the caller; this module converts between the two.
"""

import json
import logging
import math
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

import geopandas as gpd
from pyproj import CRS
from pyproj.exceptions import CRSError
from shapely.errors import ShapelyError
from shapely.geometry import LineString, shape

from osm2polygons.geometry.errors import MalformedInterchangeRecord
from osm2polygons.geometry.models import InputRoad, Results, Road, RoadID
from osm2polygons.geometry.network import NetworkResults, build_network
from osm2polygons.geometry.settings import GeometrySettings

logger = logging.getLogger(__name__)

GEOGRAPHIC_CRS = "EPSG:4326"
ID_PROPERTIES = ('osm_way_id', 'src_i', 'dst_i')
HALF_WIDTH_PROPERTY = 'half_width'

PathLike = Union[str, Path]


def projected_crs(local_crs) -> CRS:
    """
    Parse the caller's local CRS and make sure distances in it are planar.

    Raises:
        ValueError: If the CRS is geographic or cannot be parsed.
    """
    try:
        crs = CRS.from_user_input(local_crs)
    except CRSError as e:
        raise ValueError(f"Invalid local CRS {local_crs!r}: {e}") from e
    if not crs.is_projected:
        raise ValueError(f"Local CRS {crs.to_string()} is not projected")
    return crs


def _integer_property(properties: Dict[str, Any], key: str, idx: int, feature_id) -> int:
    value = properties.get(key)
    if isinstance(value, bool) or value is None:
        raise MalformedInterchangeRecord(idx, f"missing property '{key}'", feature_id)
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if not isinstance(value, int):
        raise MalformedInterchangeRecord(
            idx, f"property '{key}' must be an integer, got {value!r}", feature_id)
    return value


def _parse_feature(idx: int, feature: Any) -> Dict[str, Any]:
    """Validate one GeoJSON feature and return its record in EPSG:4326."""
    if not isinstance(feature, dict):
        raise MalformedInterchangeRecord(idx, "not a GeoJSON feature")
    feature_id = feature.get('id')
    properties = feature.get('properties') or {}

    record = {key: _integer_property(properties, key, idx, feature_id) for key in ID_PROPERTIES}

    half_width = properties.get(HALF_WIDTH_PROPERTY)
    if isinstance(half_width, bool) or not isinstance(half_width, (int, float)) \
            or not math.isfinite(half_width):
        raise MalformedInterchangeRecord(
            idx, f"property '{HALF_WIDTH_PROPERTY}' must be a number, got {half_width!r}",
            feature_id)
    record[HALF_WIDTH_PROPERTY] = float(half_width)

    raw_geometry = feature.get('geometry')
    if raw_geometry is None:
        raise MalformedInterchangeRecord(idx, "feature has no geometry", feature_id)
    try:
        geometry = shape(raw_geometry)
    except (AttributeError, KeyError, TypeError, ValueError, ShapelyError) as e:
        raise MalformedInterchangeRecord(idx, f"unparsable geometry: {e}", feature_id) from e
    if not isinstance(geometry, LineString) or geometry.is_empty \
            or len(geometry.coords) < 2:
        raise MalformedInterchangeRecord(
            idx, f"geometry must be a LineString with two or more points, got "
            f"{geometry.geom_type}", feature_id)
    record['geometry'] = geometry
    return record


def read_geojson_input(
    path: PathLike, local_crs
) -> Tuple[List[InputRoad], List[MalformedInterchangeRecord]]:
    """
    Read roads from a GeoJSON feature collection.

    Bad features are skipped and returned alongside the roads instead of
    aborting the whole file.

    Args:
        path: GeoJSON file in EPSG:4326.
        local_crs: Projected CRS to convert the center-lines into.

    Returns:
        (roads, errors): the usable roads in ``local_crs`` and one error per
        skipped feature.

    Raises:
        ValueError: If the file is not a feature collection or the CRS is
            not projected.
    """
    crs = projected_crs(local_crs)
    with open(path, 'r') as f:
        data = json.load(f)
    if not isinstance(data, dict) or data.get('type') != 'FeatureCollection':
        raise ValueError(f"{path} is not a GeoJSON FeatureCollection")

    records = []
    errors: List[MalformedInterchangeRecord] = []
    for idx, feature in enumerate(data.get('features') or []):
        try:
            records.append(_parse_feature(idx, feature))
        except MalformedInterchangeRecord as e:
            logger.warning("Skipping %s", e)
            errors.append(e)

    logger.info(f"Read {len(records)} roads from {path}, skipped {len(errors)} features")
    if not records:
        return [], errors

    roads_gdf = gpd.GeoDataFrame(records, geometry='geometry', crs=GEOGRAPHIC_CRS).to_crs(crs)
    roads = [
        InputRoad(
            id=RoadID(int(row.osm_way_id), int(row.src_i), int(row.dst_i)),
            center_pts=row.geometry,
            half_width=float(row.half_width),
        )
        for row in roads_gdf.itertuples(index=False)
    ]
    return roads, errors


def roads_to_geodataframe(roads: Iterable[Road], local_crs) -> gpd.GeoDataFrame:
    """Trimmed roads as a GeoDataFrame in EPSG:4326."""
    crs = projected_crs(local_crs)
    records = [
        {
            'osm_way_id': road.id.osm_way_id,
            'src_i': road.id.src_i,
            'dst_i': road.id.dst_i,
            HALF_WIDTH_PROPERTY: float(road.half_width),
            'geometry': road.trimmed_center_pts,
        }
        for road in sorted(roads, key=lambda r: r.id)
    ]
    if not records:
        raise ValueError("No roads to write")
    return gpd.GeoDataFrame(records, geometry='geometry', crs=crs).to_crs(GEOGRAPHIC_CRS)


def write_geojson_roads(path: PathLike, roads: Iterable[Road], local_crs) -> Path:
    """
    Write one LineString feature per trimmed road.

    Returns:
        Path: The written file.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    roads_gdf = roads_to_geodataframe(roads, local_crs)
    roads_gdf.to_file(path, driver='GeoJSON')
    logger.info(f"Wrote {len(roads_gdf)} trimmed roads to {path}")
    return path


def write_geojson_intersections(
    path: PathLike, results: Iterable[Results], local_crs
) -> Path:
    """
    Write one Polygon feature per intersection.

    Returns:
        Path: The written file.
    """
    crs = projected_crs(local_crs)
    records = [
        {
            'intersection_id': result.intersection_id,
            'used_fallback': bool(result.used_fallback),
            'geometry': result.intersection_polygon,
        }
        for result in sorted(results, key=lambda r: r.intersection_id)
    ]
    if not records:
        raise ValueError("No intersections to write")

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    polygons_gdf = gpd.GeoDataFrame(records, geometry='geometry', crs=crs).to_crs(GEOGRAPHIC_CRS)
    polygons_gdf.to_file(path, driver='GeoJSON')
    logger.info(f"Wrote {len(polygons_gdf)} intersection polygons to {path}")
    return path


def roundtrip_geojson(
    input_path: PathLike,
    output_path: PathLike,
    local_crs,
    settings: Optional[GeometrySettings] = None,
) -> NetworkResults:
    """
    Read roads, trim them at every intersection and write the trimmed roads.
    """
    roads, errors = read_geojson_input(input_path, local_crs)
    if errors:
        logger.warning(f"{len(errors)} features of {input_path} were skipped")
    network = build_network(roads, settings=settings, progress=False)
    write_geojson_roads(output_path, network.roads.values(), local_crs)
    return network
