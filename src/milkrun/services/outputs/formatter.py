"""Serializers for milk-run planning outputs."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from ...schemas.optimization import (
    EfficiencyMetrics,
    GeoPointModel,
    OptimizationSummary,
    OrderClusterModel,
    OrderInput,
    PlanResponse,
)
from ..clustering.models import DispatchPlan


def dispatch_plan_to_response(plan: DispatchPlan, now: datetime | None = None) -> PlanResponse:
    now = now or datetime.now(timezone.utc)
    result = plan.result
    total_orders = plan.clustered_order_count + len(plan.unlocatable_orders)

    clusters = []
    for cluster in result.clusters:
        model = OrderClusterModel.model_validate(cluster)
        model.estimated_completion_time = now + timedelta(minutes=cluster.estimated_duration_min)
        clusters.append(model)

    message = None
    if total_orders == 0:
        message = "No orders available for route optimization"
    elif not result.clusters:
        message = "No orders with valid location data available for route optimization"

    return PlanResponse(
        clusters=clusters,
        unclustered_orders=[GeoPointModel.model_validate(point) for point in result.unclustered_orders],
        unlocatable_orders=[OrderInput.model_validate(record) for record in plan.unlocatable_orders],
        efficiency_metrics=EfficiencyMetrics(
            clustering_efficiency=result.scores.clustering_efficiency,
            distance_efficiency=result.scores.distance_efficiency,
            time_efficiency=result.scores.time_efficiency,
            overall_score=result.scores.overall_score,
            total_orders=total_orders,
            clustered_orders=plan.clustered_order_count,
            unlocatable_orders=len(plan.unlocatable_orders),
        ),
        optimization_summary=OptimizationSummary(
            total_distance_saved_km=result.total_distance_saved_km,
            estimated_time_saved_min=result.estimated_time_saved_min,
            efficiency_score=result.efficiency_score,
            number_of_clusters=len(result.clusters),
            average_orders_per_cluster=plan.average_orders_per_cluster,
        ),
        status_counts=plan.status_counts,
        parameters={
            "vehicle_type": plan.vehicle_type,
            "clustering_radius_km": plan.clustering_radius_km,
            "max_orders_per_vehicle": plan.vehicle_capacity,
        },
        message=message,
    )
