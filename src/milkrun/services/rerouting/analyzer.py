"""Traffic-aware analysis of in-progress milk-run routes."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Sequence

from ...config import settings
from ...persistence.assignments import AssignmentStore
from ..geospatial import path_distance_km
from .alternatives import generate_alternatives
from .models import Bottleneck, ClusterNotFoundError, RouteAnalysis, RouteUpdate, TrafficCondition
from .timing import estimate_route
from .traffic import TrafficFeed

logger = logging.getLogger(__name__)


class RouteAnalyzer:
    """Detects traffic bottlenecks on a cluster's current sequence and proposes reroutes."""

    def __init__(
        self,
        store: AssignmentStore,
        traffic_feed: TrafficFeed,
        strategies: Sequence[str] | None = None,
    ) -> None:
        self.store = store
        self.traffic_feed = traffic_feed
        self.strategies = tuple(strategies) if strategies is not None else None

    def monitor_traffic_conditions(self) -> list[TrafficCondition]:
        return self.traffic_feed.current_conditions()

    def reference_conditions(self) -> list[TrafficCondition]:
        """Known segments at their reference speeds, without call-to-call fluctuation."""

        conditions = []
        for listed in self.traffic_feed.current_conditions():
            reference = self.traffic_feed.condition_for(listed.road_segment)
            conditions.append(reference if reference is not None else listed)
        return conditions

    def analyze(self, cluster_id: str) -> RouteAnalysis:
        stops = self.store.get_active_stops(cluster_id)
        if not stops:
            raise ClusterNotFoundError(cluster_id)

        conditions = self.reference_conditions()
        legs = estimate_route([stop.as_point() for stop in stops], conditions)

        bottlenecks: list[Bottleneck] = []
        for leg in legs:
            if leg.condition is None or leg.delay_min <= settings.bottleneck_threshold_minutes:
                continue
            bottlenecks.append(
                Bottleneck(
                    location=((leg.start.lat + leg.end.lat) / 2, (leg.start.lng + leg.end.lng) / 2),
                    delay_minutes=leg.delay_min,
                    cause=leg.condition.cause,
                    road_segment=leg.condition.road_segment,
                )
            )

        current_time = sum(leg.current_min for leg in legs)
        current_distance = sum(leg.distance_km for leg in legs)
        traffic_delay = sum(leg.delay_min for leg in legs)

        alternatives = generate_alternatives(stops, conditions, current_time, traffic_delay, self.strategies)
        current_efficiency = max(0.0, 100.0 - settings.bottleneck_penalty * len(bottlenecks))
        potential_improvement = (
            min(settings.max_potential_improvement, alternatives[0].confidence) if alternatives else 0.0
        )

        logger.debug(
            f"Cluster {cluster_id}: {len(stops)} stops, {len(bottlenecks)} bottlenecks, "
            f"{len(alternatives)} alternatives"
        )
        return RouteAnalysis(
            cluster_id=cluster_id,
            current_efficiency=current_efficiency,
            potential_improvement=potential_improvement,
            current_time_min=current_time,
            current_distance_km=current_distance,
            bottlenecks=bottlenecks,
            alternative_routes=alternatives,
        )

    def suggest_route_optimizations(self, cluster_id: str) -> list[RouteUpdate]:
        """Build a reroute from the best alternative when it promises enough improvement."""

        analysis = self.analyze(cluster_id)
        if not analysis.alternative_routes or analysis.potential_improvement < settings.min_improvement_to_reroute:
            return []

        best = analysis.alternative_routes[0]
        original_route = self.store.get_route(cluster_id)
        original_distance = path_distance_km([stop.as_point() for stop in original_route])

        return [
            RouteUpdate(
                cluster_id=cluster_id,
                original_route=original_route,
                optimized_route=list(best.path),
                time_saved_min=max(0.0, analysis.current_time_min - best.estimated_time_min),
                distance_saved_km=max(0.0, original_distance - best.distance_km),
                reason=f"Avoided {len(analysis.bottlenecks)} traffic bottlenecks",
                timestamp=datetime.now(timezone.utc),
            )
        ]
