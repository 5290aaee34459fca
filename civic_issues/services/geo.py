# File: civic_issues/services/geo.py
from math import asin, cos, radians, sin, sqrt
from typing import List, Tuple

EARTH_RADIUS_M = 6371000
DEFAULT_RADIUS_M = 5000
DEFAULT_NEARBY_LIMIT = 50

def haversine(lat1, lon1, lat2, lon2):
    lat1, lon1, lat2, lon2 = map(radians, [lat1, lon1, lat2, lon2])
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    a = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlon / 2) ** 2
    c = 2 * asin(sqrt(a))
    return EARTH_RADIUS_M * c

def bounding_box(lat: float, lng: float, radius_m: float) -> Tuple[float, float, float, float]:
    """(min_lat, max_lat, min_lng, max_lng) enclosing the circle; a cheap SQL prefilter."""
    dlat = radius_m / 111320.0
    coslat = cos(radians(lat))
    dlng = 180.0 if coslat < 1e-6 else min(180.0, radius_m / (111320.0 * coslat))
    return lat - dlat, lat + dlat, lng - dlng, lng + dlng

def longitude_ranges(min_lng: float, max_lng: float) -> List[Tuple[float, float]]:
    """Split a longitude span that crosses the antimeridian into in-range pieces."""
    if max_lng - min_lng >= 360.0:
        return [(-180.0, 180.0)]
    if min_lng < -180.0:
        return [(min_lng + 360.0, 180.0), (-180.0, max_lng)]
    if max_lng > 180.0:
        return [(min_lng, 180.0), (-180.0, max_lng - 360.0)]
    return [(min_lng, max_lng)]

def nearest(rows, lat: float, lng: float, radius_m: float, limit: int):
    """Rows with .lat/.lng within radius, closest first, as (row, distance) pairs."""
    hits = []
    for row in rows:
        d = haversine(lat, lng, row.lat, row.lng)
        if d <= radius_m:
            hits.append((row, d))
    hits.sort(key=lambda h: h[1])
    return hits[:limit]
