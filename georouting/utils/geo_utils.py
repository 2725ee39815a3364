import math

import numpy as np

EARTH_RADIUS_M = 6371000.0  # Earth's radius in metres

# Metres per degree of latitude along a meridian on the haversine sphere
METRES_PER_DEGREE = EARTH_RADIUS_M * math.pi / 180.0


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Calculate haversine distance between two points in metres"""
    lat1_rad = math.radians(lat1)
    lon1_rad = math.radians(lon1)
    lat2_rad = math.radians(lat2)
    lon2_rad = math.radians(lon2)
    dlat = lat2_rad - lat1_rad
    dlon = lon2_rad - lon1_rad
    a = (math.sin(dlat/2)**2 +
         math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(dlon/2)**2)
    c = 2 * math.asin(min(1.0, math.sqrt(a)))
    return EARTH_RADIUS_M * c


def vectorized_haversine(lat1, lon1, lat2, lon2):
    """Vectorized haversine distance calculation using numpy, in metres"""
    # Convert to radians
    lat1, lon1, lat2, lon2 = map(np.radians, [lat1, lon1, lat2, lon2])

    dlat = lat2 - lat1
    dlon = lon2 - lon1

    a = np.sin(dlat/2)**2 + np.cos(lat1) * np.cos(lat2) * np.sin(dlon/2)**2
    c = 2 * np.arcsin(np.sqrt(np.minimum(1.0, a)))

    return EARTH_RADIUS_M * c


def radius_to_degree_box(lat: float, lon: float, radius_m: float):
    """Return a (min_lon, min_lat, max_lon, max_lat) box that contains every
    point within ``radius_m`` metres of (lat, lon).

    The latitude span is the meridian distance plus 1% slack. The longitude span
    grows with 1/cos(lat) and is clamped to the whole globe near the poles
    and for very large radii.
    """
    # 1% slack for rounding; exact distances are checked afterwards
    dlat = radius_m / METRES_PER_DEGREE * 1.01
    cos_lat = math.cos(math.radians(min(90.0, abs(lat) + dlat)))
    if cos_lat <= 1e-12 or dlat >= 90.0:
        return (-180.0, max(-90.0, lat - dlat), 180.0, min(90.0, lat + dlat))
    dlon = dlat / cos_lat
    if dlon >= 180.0:
        return (-180.0, max(-90.0, lat - dlat), 180.0, min(90.0, lat + dlat))
    return (lon - dlon, max(-90.0, lat - dlat), lon + dlon, min(90.0, lat + dlat))
