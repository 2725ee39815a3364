"""
Configuration management for the georouting engine
"""

import math
import os
from typing import Optional, Tuple

from dotenv import load_dotenv

from .exceptions import ConfigError

load_dotenv()

DATA_SOURCES = ('geojson', 'postgis')
SNAP_STRATEGIES = ('memory', 'store')


def _parse_service_area(raw: Optional[str]) -> Optional[Tuple[float, float, float, float]]:
    """Parse 'min_lat,min_lon,max_lat,max_lon' into a tuple"""
    if not raw:
        return None
    parts = [p.strip() for p in raw.split(',')]
    if len(parts) != 4:
        raise ConfigError(f"SERVICE_AREA needs 4 comma separated values, got: {raw!r}")
    try:
        return tuple(float(p) for p in parts)
    except ValueError as e:
        raise ConfigError(f"Invalid SERVICE_AREA value {raw!r}: {e}") from e


class Config:
    """Configuration class for the georouting engine"""

    def __init__(self):
        # Geometry store
        self.data_source: str = os.getenv('DATA_SOURCE', 'geojson').lower()
        self.geojson_path: str = os.getenv('GEOJSON_PATH', 'data/roads.geojson')
        self.database_url: Optional[str] = os.getenv('DATABASE_URL')
        self.line_table: str = os.getenv('LINE_TABLE', 'planet_osm_line')
        self.db_pool_min: int = int(os.getenv('DB_POOL_MIN', '1'))
        self.db_pool_max: int = int(os.getenv('DB_POOL_MAX', '8'))

        # Graph building parameters
        self.directed_segments: bool = os.getenv('DIRECTED_SEGMENTS', 'False').lower() == 'true'
        self.graph_refresh_seconds: float = float(os.getenv('GRAPH_REFRESH_SECONDS', '0'))

        # Snapping (metres)
        self.snap_radius_m: float = float(os.getenv('SNAP_RADIUS_M', '100'))
        self.max_snap_radius_m: float = float(os.getenv('MAX_SNAP_RADIUS_M', '5000'))
        self.snap_strategy: str = os.getenv('SNAP_STRATEGY', 'memory').lower()

        # Search limits, 0 disables
        self.max_expansions: int = int(os.getenv('MAX_EXPANSIONS', '2000000'))
        self.search_timeout_s: float = float(os.getenv('SEARCH_TIMEOUT_S', '10'))

        # Optional min_lat,min_lon,max_lat,max_lon box that queries must fall in
        self.service_area = _parse_service_area(os.getenv('SERVICE_AREA'))

        # API configuration
        self.host: str = os.getenv('HOST', '0.0.0.0')
        self.port: int = int(os.getenv('PORT', '8080'))
        self.debug: bool = os.getenv('DEBUG', 'False').lower() == 'true'

        # Logging
        self.log_level: str = os.getenv('LOG_LEVEL', 'INFO')
        self.log_dir: Optional[str] = os.getenv('LOG_DIR', 'logs') or None

    def validate(self):
        """Validate configuration"""
        if self.data_source not in DATA_SOURCES:
            raise ConfigError(f"DATA_SOURCE must be one of {DATA_SOURCES}, got {self.data_source!r}")

        if self.data_source == 'geojson' and not os.path.exists(self.geojson_path):
            raise ConfigError(f"GeoJSON file does not exist: {self.geojson_path}")

        if self.data_source == 'postgis' and not self.database_url:
            raise ConfigError("DATABASE_URL is required for the postgis data source")

        if self.snap_strategy not in SNAP_STRATEGIES:
            raise ConfigError(f"SNAP_STRATEGY must be one of {SNAP_STRATEGIES}, got {self.snap_strategy!r}")

        if not math.isfinite(self.snap_radius_m) or self.snap_radius_m < 0:
            raise ConfigError("Snap radius must be a non-negative number")

        if self.max_snap_radius_m < self.snap_radius_m:
            raise ConfigError("MAX_SNAP_RADIUS_M must not be smaller than SNAP_RADIUS_M")

        if self.db_pool_min < 1 or self.db_pool_max < self.db_pool_min:
            raise ConfigError("DB pool bounds must satisfy 1 <= DB_POOL_MIN <= DB_POOL_MAX")

        if self.service_area is not None:
            min_lat, min_lon, max_lat, max_lon = self.service_area
            if min_lat >= max_lat or min_lon >= max_lon:
                raise ConfigError(f"SERVICE_AREA is empty: {self.service_area}")

    def get_store_config(self) -> dict:
        """Get configuration for the geometry store"""
        return {
            'data_source': self.data_source,
            'geojson_path': self.geojson_path,
            'database_url': self.database_url,
            'line_table': self.line_table,
            'pool_min': self.db_pool_min,
            'pool_max': self.db_pool_max,
        }

    def get_graph_builder_config(self) -> dict:
        """Get configuration for the graph builder"""
        return {
            'directed': self.directed_segments,
        }

    def get_router_config(self) -> dict:
        """Get configuration for RouteService"""
        return {
            'snap_radius_m': self.snap_radius_m,
            'max_snap_radius_m': self.max_snap_radius_m,
            'snap_strategy': self.snap_strategy,
            'max_expansions': self.max_expansions or None,
            'search_timeout_s': self.search_timeout_s or None,
            'graph_refresh_seconds': self.graph_refresh_seconds,
            'service_area': self.service_area,
        }

    def get_api_config(self) -> dict:
        """Get configuration for Flask API"""
        return {
            'host': self.host,
            'port': self.port,
            'debug': self.debug
        }


# Global configuration instance
config = Config()
