import math
from dataclasses import dataclass, field
from typing import Sequence, Tuple

from ..exceptions import InvalidCoordinatesError

LonLat = Tuple[float, float]


def _checked(value, name: str, limit: float) -> float:
    try:
        value = float(value)
    except (TypeError, ValueError):
        raise InvalidCoordinatesError(f"{name} is not a number: {value!r}")
    if not math.isfinite(value):
        raise InvalidCoordinatesError(f"{name} must be finite, got {value!r}")
    if not -limit <= value <= limit:
        raise InvalidCoordinatesError(f"{name} {value} outside [-{limit}, {limit}]")
    # -0.0 + 0.0 == +0.0, so both zeros share one identity and one repr
    return value + 0.0


@dataclass(frozen=True, order=True)
class Coordinate:
    """A graph location, ordered lexicographically by (lat, lon).

    Construction rejects non-finite and out-of-range values, which keeps the
    dataclass ordering a strict total order usable for heap keys and
    tie-breaks.
    """
    lat: float
    lon: float

    def __post_init__(self):
        object.__setattr__(self, 'lat', _checked(self.lat, 'latitude', 90.0))
        object.__setattr__(self, 'lon', _checked(self.lon, 'longitude', 180.0))

    @classmethod
    def from_lonlat(cls, lon: float, lat: float) -> 'Coordinate':
        return cls(lat, lon)

    @classmethod
    def coerce(cls, value) -> 'Coordinate':
        """Accept a Coordinate, a (lat, lon) pair or a {'lat', 'lon'} mapping"""
        if isinstance(value, cls):
            return value
        if isinstance(value, dict):
            if 'lat' not in value or 'lon' not in value:
                raise InvalidCoordinatesError(f"Coordinate mapping needs 'lat' and 'lon': {value!r}")
            return cls(value['lat'], value['lon'])
        try:
            lat, lon = value
        except (TypeError, ValueError):
            raise InvalidCoordinatesError(f"Expected a (lat, lon) pair, got {value!r}")
        return cls(lat, lon)

    def as_lonlat(self) -> LonLat:
        return (self.lon, self.lat)


@dataclass(frozen=True)
class Edge:
    """Directed arc between two vertices, weight in metres"""
    source: Coordinate
    target: Coordinate
    weight: float

    def __post_init__(self):
        if not self.weight >= 0:
            raise ValueError(f"Edge weight must be non-negative, got {self.weight!r}")

    def reversed(self) -> 'Edge':
        return Edge(self.target, self.source, self.weight)


@dataclass(frozen=True)
class Route:
    """Serialized path: (lon, lat) pairs in travel order plus total length"""
    coordinates: Tuple[LonLat, ...]
    distance_m: float = field(default=0.0, compare=False)

    @property
    def is_degenerate(self) -> bool:
        return len(self.coordinates) == 1

    def __len__(self):
        return len(self.coordinates)

    def to_geojson(self) -> dict:
        from ..routing.serializer import route_to_geojson
        return route_to_geojson(self)

    def to_json(self) -> str:
        from ..routing.serializer import route_to_json
        return route_to_json(self)


def coordinates_from_lonlat(pairs: Sequence[Sequence[float]]) -> list:
    """Turn GeoJSON style [lon, lat(, z)] positions into Coordinates"""
    out = []
    for pair in pairs:
        if len(pair) < 2:
            raise InvalidCoordinatesError(f"Position needs at least two values: {pair!r}")
        out.append(Coordinate(pair[1], pair[0]))
    return out
