from dataclasses import replace
from datetime import datetime

import pytest

from milkrun.services.rerouting.models import AssignmentStop, TrafficCondition
from milkrun.services.rerouting.traffic import MockTrafficFeed

ACTIVE = ("assigned", "accepted", "picked_up", "in_transit")

# One kilometre expressed in degrees along the 9th parallel.
KM_LAT = 1 / 111.195
KM_LNG = 1 / 109.826


class InMemoryAssignmentStore:
    def __init__(self, clusters=None, failing=()):
        self.clusters = {cid: list(stops) for cid, stops in (clusters or {}).items()}
        self.failing = set(failing)
        self.route_log: list[dict] = []

    def _check(self, cluster_id):
        if cluster_id in self.failing:
            raise ConnectionError(f"store unavailable for {cluster_id}")

    def list_active_cluster_ids(self):
        return [cid for cid, stops in self.clusters.items() if any(stop.status in ACTIVE for stop in stops)]

    def get_active_stops(self, cluster_id):
        self._check(cluster_id)
        stops = [stop for stop in self.clusters.get(cluster_id, []) if stop.status in ACTIVE]
        return sorted(stops, key=lambda stop: stop.sequence)

    def get_route(self, cluster_id):
        self._check(cluster_id)
        return sorted(self.clusters.get(cluster_id, []), key=lambda stop: stop.sequence)

    def update_sequence(self, cluster_id, order_ids):
        self._check(cluster_id)
        positions = {order_id: idx for idx, order_id in enumerate(order_ids, start=1)}
        self.clusters[cluster_id] = [
            replace(stop, sequence=positions.get(stop.order_id, stop.sequence))
            for stop in self.clusters.get(cluster_id, [])
        ]

    def log_route_change(self, cluster_id, change_type, reason, timestamp: datetime):
        self._check(cluster_id)
        self.route_log.append(
            {"cluster_id": cluster_id, "change_type": change_type, "reason": reason, "timestamp": timestamp}
        )

    def sequence_of(self, cluster_id):
        return [stop.order_id for stop in self.get_route(cluster_id)]


def make_stop(order_id, lat, lng, sequence, status="in_transit"):
    return AssignmentStop(order_id=order_id, sequence=sequence, latitude=lat, longitude=lng, status=status)


def make_condition(name, lat, lng, current, normal, level="high", incident=None):
    return TrafficCondition(
        road_segment=name,
        current_speed_kmh=current,
        normal_speed_kmh=normal,
        congestion_level=level,
        latitude=lat,
        longitude=lng,
        incident=incident,
    )


def congested_detour_stops():
    """Three stops along the 9th parallel visited out of order.

    S0 at 0 km, S1 at 20 km and S2 at 10 km east. The current order
    S0 -> S1 -> S2 runs its long first leg through a jam centred on S2.
    """

    base_lat, base_lng = 9.0, 38.60
    return [
        make_stop("S0", base_lat, base_lng, 1),
        make_stop("S1", base_lat, base_lng + 20 * KM_LNG, 2),
        make_stop("S2", base_lat, base_lng + 10 * KM_LNG, 3),
    ]


def congested_detour_feed():
    return MockTrafficFeed(
        conditions=[make_condition("ring_road", 9.0, 38.60 + 10 * KM_LNG, current=10.0, normal=30.0)],
        fluctuation_kmh=0,
    )


@pytest.fixture
def store():
    return InMemoryAssignmentStore()
