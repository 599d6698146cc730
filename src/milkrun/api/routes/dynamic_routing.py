"""Dynamic rerouting endpoints."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from functools import lru_cache

from fastapi import APIRouter, Depends, HTTPException, status

from ...persistence.assignments import AssignmentStore, SupabaseAssignmentStore
from ...schemas.rerouting import (
    RerouteRequest,
    RerouteResponse,
    RouteAnalysisModel,
    RouteUpdateModel,
    SuggestionsResponse,
    SweepResponse,
    TrafficConditionModel,
    TrafficConditionsResponse,
)
from ...services.rerouting.analyzer import RouteAnalyzer
from ...services.rerouting.applier import DEFAULT_REASON, ReroutingApplier
from ...services.rerouting.models import ClusterNotFoundError
from ...services.rerouting.sweep import check_and_optimize_routes
from ...services.rerouting.traffic import TrafficFeed, get_traffic_feed

router = APIRouter(prefix="/dynamic-routing", tags=["dynamic-routing"])


@lru_cache(maxsize=1)
def get_assignment_store() -> AssignmentStore:
    return SupabaseAssignmentStore()


@lru_cache(maxsize=1)
def get_feed() -> TrafficFeed:
    return get_traffic_feed()


@lru_cache(maxsize=1)
def get_applier() -> ReroutingApplier:
    # One applier per process so that per-cluster locks are shared by all requests.
    return ReroutingApplier(get_assignment_store())


def get_analyzer(
    store: AssignmentStore = Depends(get_assignment_store),
    feed: TrafficFeed = Depends(get_feed),
) -> RouteAnalyzer:
    return RouteAnalyzer(store, feed)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _unavailable(operation: str, cluster_id: str | None, exc: Exception) -> HTTPException:
    logging.error(f"Dynamic routing {operation} failed for cluster {cluster_id}: {exc}")
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=f"Failed to {operation}: {str(exc)}")


@router.get("/traffic", response_model=TrafficConditionsResponse)
def traffic_conditions(analyzer: RouteAnalyzer = Depends(get_analyzer)) -> TrafficConditionsResponse:
    try:
        conditions = analyzer.monitor_traffic_conditions()
    except (ConnectionError, TimeoutError) as exc:
        raise _unavailable("load traffic conditions", None, exc) from exc
    return TrafficConditionsResponse(
        traffic_conditions=[TrafficConditionModel.model_validate(condition) for condition in conditions],
        timestamp=_now(),
    )


@router.get("/traffic/{segment}", response_model=TrafficConditionModel)
def traffic_condition(segment: str, feed: TrafficFeed = Depends(get_feed)) -> TrafficConditionModel:
    try:
        condition = feed.condition_for(segment)
    except (ConnectionError, TimeoutError) as exc:
        raise _unavailable("load traffic conditions", None, exc) from exc
    if condition is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown road segment '{segment}'")
    return TrafficConditionModel.model_validate(condition)


@router.get("/clusters/{cluster_id}/analysis", response_model=RouteAnalysisModel)
def analyze_cluster(cluster_id: str, analyzer: RouteAnalyzer = Depends(get_analyzer)) -> RouteAnalysisModel:
    try:
        analysis = analyzer.analyze(cluster_id)
    except ClusterNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except (ConnectionError, TimeoutError) as exc:
        raise _unavailable("analyze route", cluster_id, exc) from exc
    return RouteAnalysisModel.model_validate(analysis)


@router.get("/clusters/{cluster_id}/suggestions", response_model=SuggestionsResponse)
def suggest_optimizations(cluster_id: str, analyzer: RouteAnalyzer = Depends(get_analyzer)) -> SuggestionsResponse:
    try:
        updates = analyzer.suggest_route_optimizations(cluster_id)
    except ClusterNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except (ConnectionError, TimeoutError) as exc:
        raise _unavailable("suggest route optimizations", cluster_id, exc) from exc
    return SuggestionsResponse(
        cluster_id=cluster_id,
        suggested_optimizations=[RouteUpdateModel.model_validate(update) for update in updates],
        timestamp=_now(),
    )


@router.post("/clusters/{cluster_id}/reroute", response_model=RerouteResponse)
def apply_reroute(
    cluster_id: str,
    payload: RerouteRequest,
    applier: ReroutingApplier = Depends(get_applier),
) -> RerouteResponse:
    applied = applier.apply_reroute(cluster_id, payload.order_ids, reason=payload.reason or DEFAULT_REASON)
    if not applied:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to apply route optimization",
        )
    return RerouteResponse(
        success=True,
        message="Route optimization applied successfully",
        cluster_id=cluster_id,
        timestamp=_now(),
    )


@router.post("/sweep", response_model=SweepResponse)
def run_sweep(
    store: AssignmentStore = Depends(get_assignment_store),
    analyzer: RouteAnalyzer = Depends(get_analyzer),
    applier: ReroutingApplier = Depends(get_applier),
) -> SweepResponse:
    """Check every active cluster once and apply worthwhile reroutes."""
    report = check_and_optimize_routes(store, analyzer, applier)
    return SweepResponse.model_validate(report)
