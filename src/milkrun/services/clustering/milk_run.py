"""Milk-run clustering anchored at the orders farthest from the depot."""

from __future__ import annotations

import logging
from typing import Sequence

from ...config import settings
from ...data.orders_repository import resolve_depot
from ...models.domain import Depot, GeoPoint
from ..geospatial import centroid, haversine_km, path_distance_km, point_distance_km, point_to_segment_km
from .models import OrderCluster
from .sequencer import nearest_neighbor_sequence

logger = logging.getLogger(__name__)


def build_cluster(
    cluster_id: str,
    members: Sequence[GeoPoint],
    depot: Depot,
    driver_capacity: int,
) -> OrderCluster:
    """Sequence the members from the depot and compute the trip metrics."""

    start = depot.as_point()
    sequenced = nearest_neighbor_sequence(members, start)
    intra_distance = path_distance_km(sequenced)
    to_first = point_distance_km(start, sequenced[0]) if sequenced else 0.0
    total_distance = to_first + intra_distance
    max_from_depot = max((point_distance_km(start, point) for point in sequenced), default=0.0)

    return OrderCluster(
        cluster_id=cluster_id,
        orders=sequenced,
        centroid=centroid(sequenced),
        total_distance_km=total_distance,
        intra_distance_km=intra_distance,
        max_distance_from_depot_km=max_from_depot,
        estimated_duration_min=total_distance * settings.minutes_per_km,
        driver_capacity=driver_capacity,
        is_optimizable=len(sequenced) > 1,
    )


def build_single_order_cluster(
    order: GeoPoint,
    depot: Depot,
    driver_capacity: int,
    fallback_id: str | None = None,
) -> OrderCluster:
    suffix = order.order_id or fallback_id or f"{order.lat:.6f},{order.lng:.6f}"
    return build_cluster(f"CLUSTER-SINGLE-{suffix}", [order], depot, driver_capacity)


def cluster_orders_by_proximity(
    orders: Sequence[GeoPoint],
    max_radius_km: float | None = None,
    max_per_cluster: int | None = None,
    depot: Depot | None = None,
) -> list[OrderCluster]:
    """Group orders into multi-stop trips.

    Orders are visited farthest-from-depot first. Each unclaimed order seeds a
    cluster and pulls in other unclaimed orders that are within
    ``max_radius_km`` of it, or within half that radius of the straight
    depot-to-anchor segment, until the cluster holds ``max_per_cluster`` stops.
    Non-positive limits disable grouping and yield one cluster per order.
    """

    if not orders:
        return []

    depot = depot or resolve_depot()
    max_radius_km = settings.default_clustering_radius_km if max_radius_km is None else max_radius_km
    max_per_cluster = settings.default_vehicle_capacity if max_per_cluster is None else max_per_cluster

    if max_radius_km <= 0 or max_per_cluster <= 0:
        logger.warning(
            f"Non-positive clustering limits (radius={max_radius_km}, capacity={max_per_cluster}); "
            f"dispatching {len(orders)} orders individually."
        )
        capacity = max(1, max_per_cluster)
        return [
            build_single_order_cluster(order, depot, capacity, fallback_id=str(idx))
            for idx, order in enumerate(orders)
        ]

    depot_distances = [haversine_km(depot.latitude, depot.longitude, order.lat, order.lng) for order in orders]
    ranked = sorted(range(len(orders)), key=lambda idx: depot_distances[idx], reverse=True)
    path_radius_km = max_radius_km / 2

    claimed: set[int] = set()
    clusters: list[OrderCluster] = []

    for anchor_idx in ranked:
        if anchor_idx in claimed:
            continue
        anchor = orders[anchor_idx]
        members = [anchor]
        claimed.add(anchor_idx)

        for candidate_idx in ranked:
            if len(members) >= max_per_cluster:
                break
            if candidate_idx in claimed:
                continue
            candidate = orders[candidate_idx]
            to_anchor = point_distance_km(candidate, anchor)
            to_path = point_to_segment_km(
                candidate.lat,
                candidate.lng,
                depot.latitude,
                depot.longitude,
                anchor.lat,
                anchor.lng,
            )
            if to_anchor <= max_radius_km or to_path <= path_radius_km:
                members.append(candidate)
                claimed.add(candidate_idx)

        clusters.append(build_cluster(f"CLUSTER-{len(clusters) + 1}", members, depot, max_per_cluster))

    logger.debug(f"Grouped {len(orders)} orders into {len(clusters)} milk-run clusters")
    return clusters
