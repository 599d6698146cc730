"""Domain models for orders, delivery points and the depot."""

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass(frozen=True, slots=True)
class GeoPoint:
    """A delivery coordinate, optionally tagged with the order it belongs to."""

    lat: float
    lng: float
    order_id: Optional[str] = None
    customer_name: Optional[str] = None
    address: Optional[str] = None
    delivery_time: Optional[str] = None


@dataclass(slots=True)
class OrderRecord:
    """Represents a pending order as read from the order source.

    Coordinates are kept as received; they are validated at the planning boundary.
    """

    order_id: str
    latitude: Any
    longitude: Any
    customer_name: Optional[str] = None
    delivery_address: Optional[str] = None
    total_amount: Optional[float] = None
    status: Optional[str] = None
    created_at: Optional[str] = None
    raw: dict = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class Depot:
    """The single origin every trip departs from and returns to."""

    code: str
    latitude: float
    longitude: float

    def as_point(self) -> GeoPoint:
        return GeoPoint(lat=self.latitude, lng=self.longitude, order_id=self.code)
