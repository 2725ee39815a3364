from typing import Iterable, List, Sequence

import numpy as np

from ..models.geometry import Coordinate
from ..utils.geo_utils import vectorized_haversine


class LineStore:
    """Source of road line geometry.

    ``list_line_segments`` returns ordered vertex lists; ``nearest`` returns
    vertices within ``radius`` metres of ``point``, closest first.
    Implementations raise AdapterFailureError on I/O or data problems.
    """

    def list_line_segments(self) -> List[List[Coordinate]]:
        raise NotImplementedError

    def nearest(self, point: Coordinate, radius: float, limit: int = 16) -> List[Coordinate]:
        raise NotImplementedError

    def close(self):
        pass


def nearest_vertices(vertices: Sequence[Coordinate], point: Coordinate, radius: float,
                     limit: int = 16) -> List[Coordinate]:
    """Brute force radius search used by the file and memory stores"""
    if not vertices:
        return []
    lats = np.array([v.lat for v in vertices], dtype=float)
    lons = np.array([v.lon for v in vertices], dtype=float)
    distances = vectorized_haversine(point.lat, point.lon, lats, lons)
    hits = sorted(
        (float(distances[i]), vertices[i]) for i in np.nonzero(distances <= radius)[0]
    )
    return [vertex for _, vertex in hits[:limit]]


def unique_vertices(segments: Iterable[Sequence[Coordinate]]) -> List[Coordinate]:
    return list(dict.fromkeys(vertex for segment in segments for vertex in segment))


class MemoryLineStore(LineStore):
    """Store over segments already held in memory"""

    def __init__(self, segments: Iterable[Sequence[Coordinate]] = ()):
        self.segments = [list(segment) for segment in segments]
        self._vertices = unique_vertices(self.segments)

    def list_line_segments(self) -> List[List[Coordinate]]:
        return [list(segment) for segment in self.segments]

    def nearest(self, point: Coordinate, radius: float, limit: int = 16) -> List[Coordinate]:
        return nearest_vertices(self._vertices, point, radius, limit)
