"""GeoJSON encoding of routes.

Coordinates are emitted as ``[longitude, latitude]`` in travel order. A
one-vertex path becomes a single-position LineString, which GeoJSON
readers treat as degenerate; callers can check ``Route.is_degenerate``.
"""

import json
from typing import Sequence

from shapely.geometry import LineString, mapping

from ..models.geometry import Coordinate, Route


def serialize_route(path: Sequence[Coordinate], distance_m: float = 0.0) -> Route:
    if not path:
        raise ValueError("Cannot serialize an empty path")
    return Route(tuple(vertex.as_lonlat() for vertex in path), distance_m=distance_m)


def route_to_geojson(route: Route) -> dict:
    if not route.coordinates:
        raise ValueError("Route has no coordinates")
    if route.is_degenerate:
        lon, lat = route.coordinates[0]
        return {'type': 'LineString', 'coordinates': [[lon, lat]]}
    geometry = mapping(LineString(route.coordinates))
    return {
        'type': geometry['type'],
        'coordinates': [[lon, lat] for lon, lat in geometry['coordinates']],
    }


def route_to_json(route: Route) -> str:
    return json.dumps(route_to_geojson(route), separators=(',', ':'))
