"""Milk-run planning models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from ...models.domain import GeoPoint, OrderRecord


@dataclass(slots=True)
class OrderCluster:
    cluster_id: str
    orders: List[GeoPoint]
    centroid: tuple[float, float]
    total_distance_km: float
    intra_distance_km: float
    max_distance_from_depot_km: float
    estimated_duration_min: float
    driver_capacity: int
    is_optimizable: bool

    @property
    def order_ids(self) -> list[str]:
        return [point.order_id for point in self.orders if point.order_id is not None]


@dataclass(slots=True)
class EfficiencyScores:
    clustering_efficiency: float
    distance_efficiency: float
    time_efficiency: float
    overall_score: float
    original_distance_km: float = 0.0
    optimized_distance_km: float = 0.0


@dataclass(slots=True)
class RouteOptimizationResult:
    clusters: List[OrderCluster]
    unclustered_orders: List[GeoPoint]
    efficiency_score: float
    total_distance_saved_km: float
    estimated_time_saved_min: float
    scores: EfficiencyScores


@dataclass(slots=True)
class DispatchPlan:
    """A planning run over raw orders, including the ones that could not be located."""

    result: RouteOptimizationResult
    unlocatable_orders: List[OrderRecord]
    vehicle_type: str
    vehicle_capacity: int
    clustering_radius_km: float
    status_counts: dict[str, int] = field(default_factory=dict)

    @property
    def clustered_order_count(self) -> int:
        return sum(len(cluster.orders) for cluster in self.result.clusters)

    @property
    def average_orders_per_cluster(self) -> float:
        if not self.result.clusters:
            return 0.0
        return self.clustered_order_count / len(self.result.clusters)
