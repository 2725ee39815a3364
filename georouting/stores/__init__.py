from .base import LineStore, MemoryLineStore
from .geojson_store import GeoJSONLineStore


def create_store(data_source: str = 'geojson', geojson_path: str = None, database_url: str = None,
                 line_table: str = 'planet_osm_line', pool_min: int = 1, pool_max: int = 8) -> LineStore:
    """Build the configured geometry store; see Config.get_store_config"""
    if data_source == 'geojson':
        return GeoJSONLineStore(geojson_path)
    if data_source == 'postgis':
        from .postgis_store import PostGISLineStore
        return PostGISLineStore(database_url, line_table=line_table, pool_min=pool_min, pool_max=pool_max)
    raise ValueError(f"Unknown data source: {data_source}")
