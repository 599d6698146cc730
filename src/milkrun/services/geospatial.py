"""Geospatial helper functions."""

from __future__ import annotations

import math
from typing import Sequence

from shapely.geometry import LineString, Point

from ..models.domain import GeoPoint

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute distance between two coordinates using the Haversine formula."""

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def point_distance_km(a: GeoPoint, b: GeoPoint) -> float:
    return haversine_km(a.lat, a.lng, b.lat, b.lng)


def path_distance_km(points: Sequence[GeoPoint]) -> float:
    """Sum of consecutive leg lengths; zero for fewer than two points."""

    return sum(point_distance_km(points[i], points[i + 1]) for i in range(len(points) - 1))


def centroid(points: Sequence[GeoPoint]) -> tuple[float, float]:
    """Arithmetic mean of the coordinates as (lat, lng)."""

    if not points:
        return 0.0, 0.0
    return (
        sum(point.lat for point in points) / len(points),
        sum(point.lng for point in points) / len(points),
    )


def midpoint(a: GeoPoint, b: GeoPoint) -> tuple[float, float]:
    return (a.lat + b.lat) / 2, (a.lng + b.lng) / 2


def point_to_segment_km(
    lat: float,
    lon: float,
    start_lat: float,
    start_lon: float,
    end_lat: float,
    end_lon: float,
) -> float:
    """Distance from a point to the straight segment between two coordinates.

    The projection is taken in plain lat/lng space and clamped to the segment
    endpoints; the resulting gap is then measured with the Haversine formula.
    A zero-length segment degrades to point-to-point distance.
    """

    if haversine_km(start_lat, start_lon, end_lat, end_lon) == 0:
        return haversine_km(lat, lon, start_lat, start_lon)

    segment = LineString([(start_lon, start_lat), (end_lon, end_lat)])
    nearest = segment.interpolate(segment.project(Point(lon, lat)))
    return haversine_km(lat, lon, nearest.y, nearest.x)
