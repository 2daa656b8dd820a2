import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from osm2polygons.geometry.settings import GeometrySettings

DEFAULT_LOG_FILE = 'logs/osm2polygons.log'
DEFAULT_OUTPUT_DIR = 'osm2polygons/output/'


class ConfigLoader:
    """
    Read the osm2polygons YAML configuration.

    The file has three parts: logging (``log_level``, ``log_file``), the
    ``geometry`` tunables used by trimming and polygon construction, and the
    ``interchange`` section for the GeoJSON adapter. A module level instance,
    ``config``, reads the bundled ``config.yaml`` once at import.
    """

    def __init__(self, config_path=None):
        self.logger = logging.getLogger(__name__)
        self.config_path = config_path or os.path.join(
            os.path.dirname(__file__), 'config.yaml')

        self.config: Dict[str, Any] = self._load_config()
        self.log_level: int = self._parse_log_level()
        self.log_file: Optional[str] = self._parse_log_file()

        if not self.get_geometry_params():
            self.logger.warning(
                "No geometry section in %s, using default tunables", self.config_path)

    def _load_config(self) -> Dict[str, Any]:
        """
        Parse the YAML file; an empty file is an empty configuration.

        Raises:
            FileNotFoundError: If the file does not exist.
            yaml.YAMLError: If the file is not valid YAML.
        """
        try:
            with open(self.config_path, 'r') as f:
                config_data = yaml.safe_load(f) or {}
        except FileNotFoundError:
            self.logger.error(f"Configuration file not found: {self.config_path}")
            raise
        except yaml.YAMLError as e:
            self.logger.error(f"Error parsing YAML configuration: {str(e)}")
            raise
        self.logger.info(f"Loaded configuration from {self.config_path}")
        return config_data

    def _parse_log_level(self) -> int:
        """Logging level named by ``log_level``, INFO when unset or unknown."""
        log_level_str = str(self.config.get("log_level", "INFO")).upper()
        level = getattr(logging, log_level_str, None)

        if not isinstance(level, int):
            # Root logger: the package logger is not configured yet
            logging.warning(
                "Invalid log level '%s' in config. Defaulting to INFO.",
                log_level_str,
            )
            return logging.INFO

        return level

    def _parse_log_file(self) -> Optional[str]:
        """Log file path; ``log_file: null`` turns file logging off."""
        if 'log_file' not in self.config:
            return DEFAULT_LOG_FILE
        log_file = self.config['log_file']
        return str(log_file) if log_file else None

    def get_geometry_params(self) -> Dict[str, Any]:
        """Raw ``geometry`` section; missing keys fall back to the defaults."""
        return self.config.get('geometry') or {}

    def get_geometry_settings(self) -> GeometrySettings:
        """
        Tunables for trimming and polygon construction.

        Raises:
            ValueError: If a configured value is out of range.
        """
        return GeometrySettings.from_config(self.get_geometry_params())

    def get_interchange_params(self) -> Dict[str, Any]:
        """Raw ``interchange`` section."""
        return self.config.get('interchange') or {}

    def get_local_crs(self) -> Optional[str]:
        """
        Projected CRS the GeoJSON adapter converts into, or None if not set.
        """
        return self.get_interchange_params().get('local_crs') or None

    def get_output_dir(self) -> Path:
        return Path(self.config.get('output_dir') or DEFAULT_OUTPUT_DIR)

    def get_output_path(self, filename=None) -> str:
        """
        Output directory, created if needed, with ``filename`` appended.

        Args:
            filename (str, optional): File inside the output directory

        Returns:
            str: Output path
        """
        output_dir = self.get_output_dir()
        os.makedirs(output_dir, exist_ok=True)

        if filename:
            return os.path.join(output_dir, filename)
        return str(output_dir)


config = ConfigLoader()
