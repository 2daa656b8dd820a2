"""
Standalone script to trim road center-lines and build intersection polygons.

Reads roads from a GeoJSON file (LineStrings with ``osm_way_id``, ``src_i``,
``dst_i`` and ``half_width`` properties), processes every intersection and
writes the trimmed roads and the intersection polygons as GeoJSON.

Usage:
    python -m osm2polygons.scripts.build_intersections roads.geojson --crs EPSG:32633
"""
import argparse
import time
from pathlib import Path
from typing import Optional

from osm2polygons.config import config
from osm2polygons.geometry.network import build_network
from osm2polygons.io.geojson import (
    read_geojson_input, write_geojson_intersections, write_geojson_roads,)
from osm2polygons.utils import create_logger

logger = create_logger(
    name="BuildIntersections",
    log_level=config.log_level,
    log_file=config.log_file,
)

ROADS_FILENAME = "trimmed_roads.geojson"
INTERSECTIONS_FILENAME = "intersections.geojson"


def build_intersections(
    input_path: str,
    local_crs: Optional[str] = None,
    output_dir: Optional[str] = None,
) -> bool:
    """
    Run the trimming for every intersection of the input file.

    Args:
        input_path (str): GeoJSON file with the untrimmed roads.
        local_crs (str, optional): Projected CRS to work in. Falls back to
            ``interchange.local_crs`` of the configuration.
        output_dir (str, optional): Where to write the results. Falls back to
            ``output_dir`` of the configuration.

    Returns:
        bool: True if the output files were written.
    """
    start_time = time.time()
    logger.info("Starting intersection polygon build for %s", input_path)

    try:
        local_crs = local_crs or config.get_local_crs()
        if not local_crs:
            raise ValueError("No local CRS given on the command line or in the configuration")
        output_dir = Path(output_dir) if output_dir else Path(config.get_output_path())
        settings = config.get_geometry_settings()

        roads, errors = read_geojson_input(input_path, local_crs)
        for error in errors:
            logger.warning("Skipped input feature: %s", error)
        if not roads:
            raise ValueError(f"No usable roads in {input_path}")

        network = build_network(roads, settings=settings)
        for node_id, error in sorted(network.failures.items()):
            logger.error("Intersection %s failed: %s", node_id, error)

        write_geojson_roads(output_dir / ROADS_FILENAME, network.roads.values(), local_crs)
        if network.intersections:
            write_geojson_intersections(
                output_dir / INTERSECTIONS_FILENAME, network.intersections.values(), local_crs)

        logger.info("Intersection polygon build completed successfully.")
        return True

    except ValueError as ve:
        logger.error("Configuration or validation error: %s", ve, exc_info=True)
    except RuntimeError as re:
        logger.error("Runtime error during execution: %s", re, exc_info=True)
    except Exception as e:
        logger.error("An unexpected error occurred: %s", e, exc_info=True)
    finally:
        total_time = time.time() - start_time
        logger.info("Intersection polygon build finished in %.2f seconds", total_time)
    return False


def main():
    """Main entry point for the script."""
    parser = argparse.ArgumentParser(
        description="Trim road center-lines and build intersection polygons "
        "from a GeoJSON file of roads."
    )
    parser.add_argument(
        "input_path",
        type=str,
        help="Path to the GeoJSON file with the untrimmed roads.",
    )
    parser.add_argument(
        "--crs",
        type=str,
        default=None,
        help="Projected CRS to run the geometry in, e.g. EPSG:32633.",
    )
    parser.add_argument(
        "--output-dir",
        type=str,
        default=None,
        help="Directory for the output GeoJSON files.",
    )
    args = parser.parse_args()

    if not build_intersections(args.input_path, local_crs=args.crs, output_dir=args.output_dir):
        raise SystemExit(1)


if __name__ == "__main__":
    main()
