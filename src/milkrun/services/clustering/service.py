"""Milk-run planning orchestration service."""

from __future__ import annotations

import logging
import math
from collections import Counter
from typing import Any, Sequence

from ...config import settings
from ...data.orders_repository import resolve_depot
from ...models.domain import Depot, GeoPoint, OrderRecord
from .milk_run import build_single_order_cluster, cluster_orders_by_proximity
from .models import DispatchPlan, RouteOptimizationResult
from .scoring import score_route_efficiency

logger = logging.getLogger(__name__)


def _coerce_coordinate(value: Any, limit: float) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value.strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number) or number == 0 or abs(number) > limit:
        return None
    return number


def to_geo_point(record: OrderRecord) -> GeoPoint | None:
    """Build a GeoPoint for an order, or None when it cannot be located."""

    lat = _coerce_coordinate(record.latitude, 90.0)
    lng = _coerce_coordinate(record.longitude, 180.0)
    if lat is None or lng is None:
        return None
    return GeoPoint(
        lat=lat,
        lng=lng,
        order_id=record.order_id,
        customer_name=record.customer_name,
        address=record.delivery_address,
        delivery_time=record.created_at,
    )


def partition_orders(records: Sequence[OrderRecord]) -> tuple[list[GeoPoint], list[OrderRecord]]:
    """Split orders into plannable points and orders without usable coordinates."""

    points: list[GeoPoint] = []
    unlocatable: list[OrderRecord] = []
    for record in records:
        point = to_geo_point(record)
        if point is None:
            logger.warning(
                f"Order {record.order_id} has invalid coordinates ({record.latitude!r}, {record.longitude!r}); "
                f"excluding it from planning."
            )
            unlocatable.append(record)
        else:
            points.append(point)
    return points, unlocatable


def resolve_vehicle_capacity(vehicle_type: str | None) -> int:
    if not vehicle_type:
        return settings.default_vehicle_capacity
    return settings.vehicle_capacities.get(vehicle_type.strip().lower(), settings.default_vehicle_capacity)


def optimize_order_clusters(
    orders: Sequence[GeoPoint],
    vehicle_capacity: int | None = None,
    clustering_radius_km: float | None = None,
    depot: Depot | None = None,
) -> RouteOptimizationResult:
    """Cluster, sequence and score one planning batch.

    Every input order ends up in exactly one cluster; orders the clustering
    step could not place are dispatched as singleton clusters.
    """

    depot = depot or resolve_depot()
    vehicle_capacity = settings.default_vehicle_capacity if vehicle_capacity is None else vehicle_capacity
    clustering_radius_km = (
        settings.default_clustering_radius_km if clustering_radius_km is None else clustering_radius_km
    )

    clusters = cluster_orders_by_proximity(orders, clustering_radius_km, vehicle_capacity, depot)

    placed = Counter(point for cluster in clusters for point in cluster.orders)
    capacity = max(1, vehicle_capacity)
    for idx, order in enumerate(orders):
        if placed[order] > 0:
            placed[order] -= 1
            continue
        logger.info(f"Order {order.order_id} could not be grouped; dispatching it alone.")
        clusters.append(build_single_order_cluster(order, depot, capacity, fallback_id=str(idx)))

    scores = score_route_efficiency(orders, clusters, depot)
    distance_saved = max(0.0, scores.original_distance_km - scores.optimized_distance_km)
    time_saved = distance_saved * settings.minutes_per_km * settings.time_scaling_factor

    logger.info(
        f"Planned {len(orders)} orders into {len(clusters)} clusters "
        f"(score={scores.overall_score:.1f}, saved={distance_saved:.2f}km)"
    )
    return RouteOptimizationResult(
        clusters=clusters,
        unclustered_orders=[],
        efficiency_score=scores.overall_score,
        total_distance_saved_km=distance_saved,
        estimated_time_saved_min=time_saved,
        scores=scores,
    )


def plan_dispatch(
    records: Sequence[OrderRecord],
    vehicle_type: str | None = None,
    clustering_radius_km: float | None = None,
    depot: Depot | None = None,
) -> DispatchPlan:
    """Plan raw orders end to end, reporting the ones that cannot be located."""

    vehicle_type = (vehicle_type or "car").strip().lower()
    capacity = resolve_vehicle_capacity(vehicle_type)
    radius = settings.default_clustering_radius_km if clustering_radius_km is None else clustering_radius_km

    points, unlocatable = partition_orders(records)
    if unlocatable:
        logger.warning(f"{len(unlocatable)} of {len(records)} orders have no usable location")

    result = optimize_order_clusters(points, capacity, radius, depot)
    status_counts: dict[str, int] = {}
    for record in records:
        key = record.status or "unknown"
        status_counts[key] = status_counts.get(key, 0) + 1

    return DispatchPlan(
        result=result,
        unlocatable_orders=unlocatable,
        vehicle_type=vehicle_type,
        vehicle_capacity=capacity,
        clustering_radius_km=radius,
        status_counts=status_counts,
    )
