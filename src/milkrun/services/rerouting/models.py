"""Dynamic rerouting domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Literal, Optional

from ...models.domain import GeoPoint

CongestionLevel = Literal["low", "medium", "high", "severe"]
IncidentType = Literal["accident", "construction", "weather", "other"]
IncidentSeverity = Literal["minor", "moderate", "major"]


class ClusterNotFoundError(LookupError):
    """Raised when a cluster has no active assignments to analyze."""

    def __init__(self, cluster_id: str) -> None:
        super().__init__(f"Cluster '{cluster_id}' not found or has no active assignments.")
        self.cluster_id = cluster_id


@dataclass(frozen=True, slots=True)
class Incident:
    type: IncidentType
    description: str
    severity: IncidentSeverity


@dataclass(frozen=True, slots=True)
class TrafficCondition:
    road_segment: str
    current_speed_kmh: float
    normal_speed_kmh: float
    congestion_level: CongestionLevel
    latitude: float
    longitude: float
    incident: Optional[Incident] = None

    @property
    def cause(self) -> str:
        if self.incident is not None:
            return self.incident.description
        return f"Traffic congestion: {self.congestion_level}"


@dataclass(frozen=True, slots=True)
class AssignmentStop:
    """One active delivery in a driver's assigned cluster."""

    order_id: str
    sequence: int
    latitude: float
    longitude: float
    status: Optional[str] = None
    delivery_address: Optional[str] = None

    def as_point(self) -> GeoPoint:
        return GeoPoint(lat=self.latitude, lng=self.longitude, order_id=self.order_id, address=self.delivery_address)


@dataclass(slots=True)
class Bottleneck:
    location: tuple[float, float]
    delay_minutes: float
    cause: str
    road_segment: Optional[str] = None


@dataclass(slots=True)
class AlternativeRoute:
    path: List[AssignmentStop]
    estimated_time_min: float
    distance_km: float
    confidence: float
    strategy: str


@dataclass(slots=True)
class RouteAnalysis:
    cluster_id: str
    current_efficiency: float
    potential_improvement: float
    current_time_min: float
    current_distance_km: float
    bottlenecks: List[Bottleneck]
    alternative_routes: List[AlternativeRoute]


@dataclass(slots=True)
class RouteUpdate:
    cluster_id: str
    original_route: List[AssignmentStop]
    optimized_route: List[AssignmentStop]
    time_saved_min: float
    distance_saved_km: float
    reason: str
    timestamp: datetime


@dataclass(slots=True)
class SweepReport:
    clusters_checked: int = 0
    suggested: List[RouteUpdate] = field(default_factory=list)
    applied: List[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)
