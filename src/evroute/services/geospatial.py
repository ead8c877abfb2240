"""Geospatial helper functions."""

from __future__ import annotations

import math
from typing import Iterable

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute distance between two coordinates using the Haversine formula."""

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def path_length_km(points: Iterable[tuple[float, float]]) -> float:
    """Sum of great-circle legs along (lat, lon) points."""

    total = 0.0
    previous = None
    for lat, lon in points:
        if previous is not None:
            total += haversine_km(previous[0], previous[1], lat, lon)
        previous = (lat, lon)
    return total
