from osm2polygons.config.config_loader import ConfigLoader, config

__all__ = ['ConfigLoader', 'config']
