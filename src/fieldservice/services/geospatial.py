"""Geospatial helper functions."""

from __future__ import annotations

import math
from typing import Iterable, Sequence

from ..models.domain import Visit

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute distance between two coordinates using the Haversine formula."""

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    # Rounding can push a marginally above 1 for antipodal points.
    a = min(1.0, max(0.0, a))
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def route_distance_km(stops: Sequence[tuple[float, float]]) -> float:
    """Sum the legs between consecutive (lat, lon) stops in the order given."""

    if len(stops) < 2:
        return 0.0
    total = 0.0
    for (lat1, lon1), (lat2, lon2) in zip(stops, stops[1:]):
        total += haversine_km(lat1, lon1, lat2, lon2)
    return total


def visit_route_distance_km(visits: Iterable[Visit]) -> float:
    """Distance travelled across an operator's visits in chronological order.

    Visits whose branch lacks coordinates are skipped; the next located visit
    is measured from the last one that had coordinates.
    """

    ordered = sorted(visits, key=lambda visit: visit.visit_date)
    stops = [(visit.latitude, visit.longitude) for visit in ordered if visit.has_coordinates]
    return route_distance_km(stops)
