"""Efficiency scoring of a planned batch against independent round trips."""

from __future__ import annotations

from collections import Counter
from typing import Sequence

from ...config import settings
from ...data.orders_repository import resolve_depot
from ...models.domain import Depot, GeoPoint
from ..geospatial import point_distance_km
from .models import EfficiencyScores, OrderCluster


def _clamp(value: float, lower: float = 0.0, upper: float = 100.0) -> float:
    return min(upper, max(lower, value))


def round_trip_distance_km(orders: Sequence[GeoPoint], depot: Depot) -> float:
    """Cost of serving every order with its own depot round trip."""

    start = depot.as_point()
    return sum(2 * point_distance_km(start, order) for order in orders)


def clustered_distance_km(clusters: Sequence[OrderCluster], depot: Depot) -> float:
    """Depot to first stop, through the cluster, and back from the last stop."""

    start = depot.as_point()
    total = 0.0
    for cluster in clusters:
        if not cluster.orders:
            continue
        total += (
            point_distance_km(start, cluster.orders[0])
            + cluster.intra_distance_km
            + point_distance_km(cluster.orders[-1], start)
        )
    return total


def score_route_efficiency(
    original_orders: Sequence[GeoPoint],
    clusters: Sequence[OrderCluster],
    depot: Depot | None = None,
) -> EfficiencyScores:
    depot = depot or resolve_depot()
    total_orders = len(original_orders)
    if total_orders == 0:
        return EfficiencyScores(0.0, 0.0, 0.0, 0.0)

    remaining = Counter(point for cluster in clusters for point in cluster.orders)
    placed = 0
    for order in original_orders:
        if remaining[order] > 0:
            remaining[order] -= 1
            placed += 1
    clustering_efficiency = _clamp(placed / total_orders * 100)

    original_distance = round_trip_distance_km(original_orders, depot)
    optimized_distance = clustered_distance_km(clusters, depot)
    distance_efficiency = 0.0
    if original_distance > 0:
        distance_efficiency = (original_distance - optimized_distance) / original_distance * 100
    distance_efficiency = _clamp(distance_efficiency)
    time_efficiency = _clamp(distance_efficiency * settings.time_scaling_factor)

    overall = (
        clustering_efficiency * settings.clustering_weight
        + distance_efficiency * settings.distance_weight
        + time_efficiency * settings.time_weight
    )
    return EfficiencyScores(
        clustering_efficiency=clustering_efficiency,
        distance_efficiency=distance_efficiency,
        time_efficiency=time_efficiency,
        overall_score=_clamp(overall),
        original_distance_km=original_distance,
        optimized_distance_km=optimized_distance,
    )
