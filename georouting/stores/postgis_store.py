import json
import logging
import re
import threading
from contextlib import contextmanager
from typing import List

import psycopg2
from psycopg2.pool import ThreadedConnectionPool
from shapely.errors import ShapelyError
from shapely.geometry import shape

from ..exceptions import AdapterFailureError, InvalidCoordinatesError
from ..models.geometry import Coordinate
from .base import LineStore

logger = logging.getLogger(__name__)

# Decimal places kept on every vertex. Line geometry and nearest-vertex rows
# are both rounded to this so the same vertex compares equal from either query.
COORDINATE_PRECISION = 9

SEGMENTS_SQL = """
    SELECT ST_AsGeoJSON(ST_Transform(way, 4326), {precision}) AS geojson
    FROM {table}
    WHERE way IS NOT NULL
"""

# Vertices of nearby lines, so every candidate can be a graph vertex
NEAREST_SQL = """
    WITH q AS (SELECT ST_SetSRID(ST_MakePoint(%s, %s), 4326) AS g)
    SELECT ST_X(dp.geom) AS lon, ST_Y(dp.geom) AS lat
    FROM {table} l
    CROSS JOIN q
    CROSS JOIN LATERAL ST_DumpPoints(ST_Transform(l.way, 4326)) AS dp
    WHERE ST_DWithin(ST_Transform(l.way, 4326)::geography, q.g::geography, %s)
      AND ST_DWithin(dp.geom::geography, q.g::geography, %s)
    ORDER BY ST_Distance(dp.geom::geography, q.g::geography), lat, lon
    LIMIT %s
"""


def _vertex(lon: float, lat: float) -> Coordinate:
    return Coordinate(round(lat, COORDINATE_PRECISION), round(lon, COORDINATE_PRECISION))


class PostGISLineStore(LineStore):
    """Road lines read from an osm2pgsql ``planet_osm_line`` style table"""

    def __init__(self, database_url: str, line_table: str = 'planet_osm_line',
                 pool_min: int = 1, pool_max: int = 8, pool=None):
        # basic safeguard: allow alnum + underscore, optionally schema qualified
        if not re.fullmatch(r"[A-Za-z0-9_]+(\.[A-Za-z0-9_]+)?", line_table):
            raise ValueError("Invalid line table name; use alphanumerics/underscore only")
        self.database_url = database_url
        self.line_table = line_table
        self.pool_min = pool_min
        self.pool_max = pool_max
        self._pool = pool
        self._pool_lock = threading.Lock()

    def _get_pool(self):
        with self._pool_lock:
            if self._pool is None:
                try:
                    self._pool = ThreadedConnectionPool(self.pool_min, self.pool_max, dsn=self.database_url)
                except psycopg2.Error as e:
                    raise AdapterFailureError(f"Could not connect to the geometry database: {e}") from e
            return self._pool

    @contextmanager
    def _cursor(self):
        pool = self._get_pool()
        try:
            conn = pool.getconn()
        except psycopg2.Error as e:
            raise AdapterFailureError(f"No database connection available: {e}") from e
        try:
            with conn.cursor() as cur:
                yield cur
            conn.commit()
        except psycopg2.Error as e:
            conn.rollback()
            raise AdapterFailureError(f"Geometry query failed: {e}") from e
        finally:
            pool.putconn(conn)

    def list_line_segments(self) -> List[List[Coordinate]]:
        with self._cursor() as cur:
            cur.execute(SEGMENTS_SQL.format(table=self.line_table, precision=COORDINATE_PRECISION))
            rows = cur.fetchall()

        segments = []
        try:
            for (raw,) in rows:
                if not raw:
                    continue
                geometry = shape(json.loads(raw))
                if geometry.geom_type == 'LineString':
                    lines = [geometry]
                elif geometry.geom_type == 'MultiLineString':
                    lines = list(geometry.geoms)
                else:
                    continue
                for line in lines:
                    segments.append([_vertex(*xy[:2]) for xy in line.coords])
        except (ShapelyError, InvalidCoordinatesError, AttributeError, KeyError, TypeError, ValueError) as e:
            raise AdapterFailureError(f"Malformed geometry in {self.line_table}: {e}") from e

        logger.info(f"Loaded {len(segments)} line segments from {self.line_table}")
        return segments

    def nearest(self, point: Coordinate, radius: float, limit: int = 16) -> List[Coordinate]:
        with self._cursor() as cur:
            cur.execute(
                NEAREST_SQL.format(table=self.line_table),
                (point.lon, point.lat, radius, radius, limit)
            )
            rows = cur.fetchall()
        try:
            return [_vertex(lon, lat) for lon, lat in rows]
        except (InvalidCoordinatesError, TypeError) as e:
            raise AdapterFailureError(f"Malformed vertex returned by {self.line_table}: {e}") from e

    def close(self):
        with self._pool_lock:
            if self._pool is not None:
                self._pool.closeall()
                self._pool = None
