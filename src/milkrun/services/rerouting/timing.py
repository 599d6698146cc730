"""Travel time estimates for route legs under current traffic."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from ...config import settings
from ...models.domain import GeoPoint
from ..geospatial import haversine_km, midpoint, point_distance_km
from .models import TrafficCondition


@dataclass(slots=True)
class LegEstimate:
    start: GeoPoint
    end: GeoPoint
    distance_km: float
    current_min: float
    normal_min: float
    condition: TrafficCondition | None = None

    @property
    def delay_min(self) -> float:
        return max(0.0, self.current_min - self.normal_min)


def segment_near(a: GeoPoint, b: GeoPoint, conditions: Sequence[TrafficCondition]) -> TrafficCondition | None:
    """First road segment whose reference point lies close to the leg midpoint."""

    mid_lat, mid_lng = midpoint(a, b)
    for condition in conditions:
        if haversine_km(mid_lat, mid_lng, condition.latitude, condition.longitude) < settings.segment_proximity_km:
            return condition
    return None


def estimate_leg(a: GeoPoint, b: GeoPoint, conditions: Sequence[TrafficCondition]) -> LegEstimate:
    distance = point_distance_km(a, b)
    condition = segment_near(a, b, conditions)
    if condition is None:
        flat = distance / settings.default_speed_kmh * 60
        return LegEstimate(a, b, distance, flat, flat)
    return LegEstimate(
        a,
        b,
        distance,
        current_min=distance / condition.current_speed_kmh * 60,
        normal_min=distance / condition.normal_speed_kmh * 60,
        condition=condition,
    )


def estimate_route(points: Sequence[GeoPoint], conditions: Sequence[TrafficCondition]) -> list[LegEstimate]:
    return [estimate_leg(points[i], points[i + 1], conditions) for i in range(len(points) - 1)]
