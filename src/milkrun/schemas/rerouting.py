"""Dynamic rerouting request/response schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class IncidentModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    type: str
    description: str
    severity: str


class TrafficConditionModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    road_segment: str
    current_speed_kmh: float
    normal_speed_kmh: float
    congestion_level: str
    latitude: float
    longitude: float
    incident: Optional[IncidentModel] = None


class TrafficConditionsResponse(BaseModel):
    traffic_conditions: List[TrafficConditionModel]
    timestamp: datetime


class AssignmentStopModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    order_id: str
    sequence: int
    latitude: float
    longitude: float
    status: Optional[str] = None
    delivery_address: Optional[str] = None


class BottleneckModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    location: tuple[float, float]
    delay_minutes: float
    cause: str
    road_segment: Optional[str] = None


class AlternativeRouteModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    path: List[AssignmentStopModel]
    estimated_time_min: float
    distance_km: float
    confidence: float
    strategy: str


class RouteAnalysisModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    cluster_id: str
    current_efficiency: float
    potential_improvement: float
    current_time_min: float
    current_distance_km: float
    bottlenecks: List[BottleneckModel]
    alternative_routes: List[AlternativeRouteModel]


class RouteUpdateModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    cluster_id: str
    original_route: List[AssignmentStopModel]
    optimized_route: List[AssignmentStopModel]
    time_saved_min: float
    distance_saved_km: float
    reason: str
    timestamp: datetime


class SuggestionsResponse(BaseModel):
    cluster_id: str
    suggested_optimizations: List[RouteUpdateModel]
    timestamp: datetime


class RerouteRequest(BaseModel):
    order_ids: List[str] = Field(..., min_length=1, description="Order ids in their new visiting order.")
    reason: Optional[str] = None


class RerouteResponse(BaseModel):
    success: bool
    message: str
    cluster_id: str
    timestamp: datetime


class SweepResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    clusters_checked: int
    suggested: List[RouteUpdateModel]
    applied: List[str]
    failed: Dict[str, str]
