"""Milk-run planning request/response schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class GeoPointModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    lat: float
    lng: float
    order_id: Optional[str] = None
    customer_name: Optional[str] = None
    address: Optional[str] = None
    delivery_time: Optional[str] = None


class OrderInput(BaseModel):
    """An order to plan; coordinates are validated by the planner, not here."""

    model_config = ConfigDict(from_attributes=True)

    order_id: str
    latitude: Any = None
    longitude: Any = None
    customer_name: Optional[str] = None
    delivery_address: Optional[str] = None
    total_amount: Optional[float] = None
    status: Optional[str] = None
    created_at: Optional[str] = None


class PlanRequest(BaseModel):
    orders: List[OrderInput]
    vehicle_type: str = Field(default="car", description="motorbike, car, van or truck.")
    clustering_radius_km: Optional[float] = Field(default=None, gt=0)


class OrderClusterModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    cluster_id: str
    orders: List[GeoPointModel]
    centroid: tuple[float, float]
    total_distance_km: float
    max_distance_from_depot_km: float
    estimated_duration_min: float
    driver_capacity: int
    is_optimizable: bool
    estimated_completion_time: Optional[datetime] = None


class EfficiencyMetrics(BaseModel):
    clustering_efficiency: float
    distance_efficiency: float
    time_efficiency: float
    overall_score: float
    total_orders: int
    clustered_orders: int
    unlocatable_orders: int


class OptimizationSummary(BaseModel):
    total_distance_saved_km: float
    estimated_time_saved_min: float
    efficiency_score: float
    number_of_clusters: int
    average_orders_per_cluster: float


class PlanResponse(BaseModel):
    clusters: List[OrderClusterModel]
    unclustered_orders: List[GeoPointModel]
    unlocatable_orders: List[OrderInput]
    efficiency_metrics: EfficiencyMetrics
    optimization_summary: OptimizationSummary
    status_counts: Dict[str, int]
    parameters: dict
    message: Optional[str] = None
