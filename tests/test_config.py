import pytest

from georouting.config import Config, _parse_service_area
from georouting.exceptions import ConfigError


@pytest.fixture
def clean_env(monkeypatch):
    for key in ('DATA_SOURCE', 'GEOJSON_PATH', 'DATABASE_URL', 'SNAP_RADIUS_M', 'MAX_SNAP_RADIUS_M',
                'SNAP_STRATEGY', 'SERVICE_AREA', 'DB_POOL_MIN', 'DB_POOL_MAX', 'MAX_EXPANSIONS',
                'SEARCH_TIMEOUT_S', 'DIRECTED_SEGMENTS'):
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


def test_defaults(clean_env):
    cfg = Config()
    assert cfg.data_source == 'geojson'
    assert cfg.snap_radius_m == 100.0
    assert cfg.directed_segments is False
    assert cfg.service_area is None
    router = cfg.get_router_config()
    assert router['max_expansions'] == 2000000
    assert router['snap_strategy'] == 'memory'


def test_zero_limits_disable_search_cutoffs(clean_env):
    clean_env.setenv('MAX_EXPANSIONS', '0')
    clean_env.setenv('SEARCH_TIMEOUT_S', '0')
    router = Config().get_router_config()
    assert router['max_expansions'] is None
    assert router['search_timeout_s'] is None


def test_geojson_source_requires_existing_file(clean_env, tmp_path):
    clean_env.setenv('GEOJSON_PATH', str(tmp_path / 'missing.geojson'))
    with pytest.raises(ConfigError):
        Config().validate()
    roads = tmp_path / 'roads.geojson'
    roads.write_text('{"type": "FeatureCollection", "features": []}')
    clean_env.setenv('GEOJSON_PATH', str(roads))
    Config().validate()


def test_postgis_source_requires_database_url(clean_env):
    clean_env.setenv('DATA_SOURCE', 'postgis')
    with pytest.raises(ConfigError):
        Config().validate()
    clean_env.setenv('DATABASE_URL', 'postgresql://osm@localhost/osm')
    Config().validate()
    assert Config().get_store_config()['database_url'] == 'postgresql://osm@localhost/osm'


@pytest.mark.parametrize("key, value", [
    ('DATA_SOURCE', 'shapefile'),
    ('SNAP_STRATEGY', 'nearest'),
    ('SNAP_RADIUS_M', '-1'),
    ('MAX_SNAP_RADIUS_M', '10'),
    ('DB_POOL_MIN', '0'),
    ('SERVICE_AREA', '14.5,-87.5,13.0,-90.2'),
])
def test_invalid_values_fail_validation(clean_env, tmp_path, key, value):
    roads = tmp_path / 'roads.geojson'
    roads.write_text('{"type": "FeatureCollection", "features": []}')
    clean_env.setenv('GEOJSON_PATH', str(roads))
    clean_env.setenv(key, value)
    with pytest.raises(ConfigError):
        Config().validate()


def test_service_area_parsing():
    assert _parse_service_area('13.0, -90.2, 14.5, -87.5') == (13.0, -90.2, 14.5, -87.5)
    assert _parse_service_area('') is None
    with pytest.raises(ConfigError):
        _parse_service_area('13,14')
    with pytest.raises(ConfigError):
        _parse_service_area('a,b,c,d')
