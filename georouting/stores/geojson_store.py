import json
import logging
import os
from typing import List

from shapely.errors import ShapelyError
from shapely.geometry import shape

from ..exceptions import AdapterFailureError, InvalidCoordinatesError
from ..models.geometry import Coordinate, coordinates_from_lonlat
from .base import LineStore, nearest_vertices, unique_vertices

logger = logging.getLogger(__name__)


def _geometries(data: dict):
    kind = data.get('type')
    if kind == 'FeatureCollection':
        for feature in data.get('features', []):
            yield from _geometries(feature)
    elif kind == 'Feature':
        geom = data.get('geometry')
        if geom:
            yield geom
    elif kind is not None:
        yield data


class GeoJSONLineStore(LineStore):
    """Road lines read from a GeoJSON file.

    LineString and MultiLineString geometries become segments; every other
    geometry type is skipped. The file is re-read on each
    ``list_line_segments`` call so a graph refresh picks up a replaced file.
    """

    def __init__(self, path: str):
        self.path = path
        self._vertices = None

    def _load_segments(self) -> List[List[Coordinate]]:
        if not os.path.exists(self.path):
            raise AdapterFailureError(f"GeoJSON file not found: {self.path}")
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise AdapterFailureError(f"Could not read GeoJSON file {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise AdapterFailureError(f"GeoJSON root must be an object in {self.path}")

        segments = []
        skipped = 0
        try:
            for geom in _geometries(data):
                geometry = shape(geom)
                if geometry.geom_type == 'LineString':
                    lines = [geometry]
                elif geometry.geom_type == 'MultiLineString':
                    lines = list(geometry.geoms)
                else:
                    skipped += 1
                    continue
                for line in lines:
                    segments.append(coordinates_from_lonlat(list(line.coords)))
        except (ShapelyError, InvalidCoordinatesError, AttributeError, KeyError, TypeError, ValueError) as e:
            raise AdapterFailureError(f"Malformed geometry in {self.path}: {e}") from e

        logger.info(f"Loaded {len(segments)} line segments from {self.path}")
        if skipped:
            logger.debug(f"Skipped {skipped} non-line geometries in {self.path}")
        return segments

    def list_line_segments(self) -> List[List[Coordinate]]:
        segments = self._load_segments()
        self._vertices = unique_vertices(segments)
        return segments

    def nearest(self, point: Coordinate, radius: float, limit: int = 16) -> List[Coordinate]:
        if self._vertices is None:
            self.list_line_segments()
        return nearest_vertices(self._vertices, point, radius, limit)
