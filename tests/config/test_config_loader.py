"""
Tests for loading the YAML configuration.
"""

import dataclasses
import logging
from pathlib import Path

import pytest
import yaml

from osm2polygons.config import ConfigLoader
from osm2polygons.geometry.settings import GeometrySettings


def _write_config(path: Path, data) -> Path:
    with open(path, 'w') as f:
        yaml.safe_dump(data, f)
    return path


class TestConfigLoader:
    """Reading settings from a config file."""

    def test_packaged_defaults_match_settings(self):
        loader = ConfigLoader()

        assert loader.get_geometry_settings() == GeometrySettings()
        assert set(loader.get_geometry_params()) == {
            field.name for field in dataclasses.fields(GeometrySettings)}
        assert loader.get_local_crs() is None

    def test_custom_file(self, tmp_path):
        path = _write_config(tmp_path / "config.yaml", {
            'log_level': 'debug',
            'log_file': str(tmp_path / "run.log"),
            'output_dir': str(tmp_path / "out"),
            'geometry': {'min_trim': 1.0},
            'interchange': {'local_crs': 'EPSG:32633'},
        })

        loader = ConfigLoader(str(path))

        assert loader.log_level == logging.DEBUG
        assert loader.log_file == str(tmp_path / "run.log")
        assert loader.get_geometry_params() == {'min_trim': 1.0}
        assert loader.get_local_crs() == "EPSG:32633"
        assert loader.get_geometry_settings().min_trim == 1.0
        assert loader.get_output_dir() == tmp_path / "out"

    def test_invalid_log_level_defaults_to_info(self, tmp_path):
        path = _write_config(tmp_path / "config.yaml", {'log_level': 'LOUD'})

        assert ConfigLoader(str(path)).log_level == logging.INFO

    def test_missing_geometry_section(self, tmp_path, caplog):
        path = _write_config(tmp_path / "config.yaml", {'log_level': 'INFO'})

        with caplog.at_level('WARNING'):
            loader = ConfigLoader(str(path))

        assert loader.get_geometry_params() == {}
        assert "No geometry section" in caplog.text

    def test_empty_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("")

        loader = ConfigLoader(str(path))

        assert loader.config == {}
        assert loader.log_file == "logs/osm2polygons.log"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ConfigLoader(str(tmp_path / "missing.yaml"))

    def test_broken_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("geometry: [unclosed")

        with pytest.raises(yaml.YAMLError):
            ConfigLoader(str(path))

    def test_output_path_creates_directory(self, tmp_path):
        path = _write_config(tmp_path / "config.yaml", {'output_dir': str(tmp_path / "out")})
        loader = ConfigLoader(str(path))

        output_path = loader.get_output_path("roads.geojson")

        assert output_path == str(tmp_path / "out" / "roads.geojson")
        assert (tmp_path / "out").is_dir()

    def test_log_file_disabled(self, tmp_path):
        path = _write_config(tmp_path / "config.yaml", {'log_file': None})

        assert ConfigLoader(str(path)).log_file is None

    def test_out_of_range_geometry_value(self, tmp_path):
        path = _write_config(tmp_path / "config.yaml", {'geometry': {'trim_cap_fraction': 2}})
        loader = ConfigLoader(str(path))

        with pytest.raises(ValueError):
            loader.get_geometry_settings()
