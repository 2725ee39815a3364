"""Snapping of arbitrary query coordinates onto road graph vertices.

Distances are haversine metres, the same measure the graph builder uses
for edge weights. Two strategies share one selection rule:

- ``NearestNodeLocator`` keeps an R-tree over the graph vertices and
  computes exact distances for the bounding-box candidates with numpy.
- ``StoreNearestNodeLocator`` asks the geometry store for candidates and
  keeps the ones that are graph vertices.

Among candidates within the radius the closest wins; candidates within
``TIE_TOLERANCE_M`` of the minimum are ordered by the Coordinate total
order so repeated queries resolve to the same vertex.
"""

import logging
import math
from typing import Iterable, List, Tuple

import networkx as nx
import numpy as np
from rtree import index

from ..exceptions import InvalidCoordinatesError, NodeNotFoundError
from ..models.geometry import Coordinate
from ..utils.geo_utils import haversine_distance, radius_to_degree_box, vectorized_haversine

logger = logging.getLogger(__name__)

TIE_TOLERANCE_M = 1e-9


def _checked_radius(max_radius) -> float:
    try:
        radius = float(max_radius)
    except (TypeError, ValueError):
        raise InvalidCoordinatesError(f"Snap radius is not a number: {max_radius!r}")
    if not math.isfinite(radius) or radius < 0:
        raise InvalidCoordinatesError(f"Snap radius must be finite and non-negative, got {max_radius!r}")
    return radius


def select_nearest(candidates: Iterable[Tuple[float, Coordinate]], query: Coordinate,
                   radius: float) -> Tuple[Coordinate, float]:
    """Pick the closest (distance, vertex) pair, raising NodeNotFoundError if none"""
    candidates = list(candidates)
    if not candidates:
        raise NodeNotFoundError(
            f"No graph vertex within {radius:g} m of ({query.lat}, {query.lon})",
            radius=radius,
        )
    min_distance = min(distance for distance, _ in candidates)
    tied = [vertex for distance, vertex in candidates if distance <= min_distance + TIE_TOLERANCE_M]
    return min(tied), min_distance


def _split_antimeridian(box):
    min_lon, min_lat, max_lon, max_lat = box
    if min_lon < -180.0:
        return [(-180.0, min_lat, max_lon, max_lat), (min_lon + 360.0, min_lat, 180.0, max_lat)]
    if max_lon > 180.0:
        return [(min_lon, min_lat, 180.0, max_lat), (-180.0, min_lat, max_lon - 360.0, max_lat)]
    return [box]


class NearestNodeLocator:
    """In-memory nearest vertex lookup over one immutable graph"""

    def __init__(self, road_graph: nx.DiGraph):
        self.vertices: List[Coordinate] = list(road_graph.nodes)
        self.lats = np.array([v.lat for v in self.vertices], dtype=float)
        self.lons = np.array([v.lon for v in self.vertices], dtype=float)

        p = index.Property()
        p.dimension = 2  # lon, lat
        self._index = index.Index(properties=p)
        for i, vertex in enumerate(self.vertices):
            # R-tree needs a bounding box: (min_lon, min_lat, max_lon, max_lat)
            self._index.insert(i, (vertex.lon, vertex.lat, vertex.lon, vertex.lat))
        logger.debug(f"Spatial index built over {len(self.vertices)} vertices")

    def candidates(self, query: Coordinate, radius: float) -> List[Tuple[float, Coordinate]]:
        if not self.vertices:
            return []
        box = radius_to_degree_box(query.lat, query.lon, radius)
        found = set()
        for part in _split_antimeridian(box):
            found.update(self._index.intersection(part))
        if not found:
            return []
        ids = np.array(sorted(found), dtype=int)
        distances = vectorized_haversine(query.lat, query.lon, self.lats[ids], self.lons[ids])
        within = distances <= radius
        return [(float(d), self.vertices[i]) for i, d in zip(ids[within], distances[within])]

    def locate_with_distance(self, query: Coordinate, max_radius) -> Tuple[Coordinate, float]:
        radius = _checked_radius(max_radius)
        return select_nearest(self.candidates(query, radius), query, radius)

    def locate(self, query: Coordinate, max_radius) -> Coordinate:
        vertex, _ = self.locate_with_distance(query, max_radius)
        return vertex


class StoreNearestNodeLocator:
    """Nearest vertex lookup delegated to the geometry store's spatial query"""

    def __init__(self, road_graph: nx.DiGraph, store):
        self.road_graph = road_graph
        self.store = store

    def candidates(self, query: Coordinate, radius: float) -> List[Tuple[float, Coordinate]]:
        result = []
        for vertex in self.store.nearest(query, radius):
            if vertex not in self.road_graph:
                continue
            distance = haversine_distance(query.lat, query.lon, vertex.lat, vertex.lon)
            if distance <= radius:
                result.append((distance, vertex))
        return result

    def locate_with_distance(self, query: Coordinate, max_radius) -> Tuple[Coordinate, float]:
        radius = _checked_radius(max_radius)
        return select_nearest(self.candidates(query, radius), query, radius)

    def locate(self, query: Coordinate, max_radius) -> Coordinate:
        vertex, _ = self.locate_with_distance(query, max_radius)
        return vertex


def locate_nearest_node(road_graph: nx.DiGraph, query: Coordinate, max_radius) -> Coordinate:
    """One-off lookup; build a NearestNodeLocator to reuse the index"""
    return NearestNodeLocator(road_graph).locate(query, max_radius)
