"""Milk-run planning endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Query, status

from ...data.orders_repository import load_pending_orders
from ...models.domain import OrderRecord
from ...schemas.optimization import PlanRequest, PlanResponse
from ...services.clustering.service import plan_dispatch
from ...services.outputs.formatter import dispatch_plan_to_response

router = APIRouter(prefix="/route-optimization", tags=["route-optimization"])


@router.get("", response_model=PlanResponse, status_code=status.HTTP_200_OK)
def plan_pending_orders(
    statuses: str | None = Query(default=None, description="Comma-separated order statuses to plan."),
    vehicle_type: str = Query(default="car"),
    radius_km: float | None = Query(default=None, gt=0, description="Clustering radius in kilometers."),
) -> PlanResponse:
    """Cluster the orders currently waiting for dispatch."""
    status_filter = statuses.split(",") if statuses else None
    try:
        records = load_pending_orders(status_filter)
    except ConnectionError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc

    try:
        plan = plan_dispatch(records, vehicle_type=vehicle_type, clustering_radius_km=radius_km)
    except Exception as exc:
        logging.exception(f"Error planning milk runs: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to generate route optimization: {str(exc)}",
        ) from exc
    return dispatch_plan_to_response(plan)


@router.post("/plan", response_model=PlanResponse, status_code=status.HTTP_200_OK)
def plan_orders(payload: PlanRequest) -> PlanResponse:
    """Cluster an explicit list of orders."""
    records = [OrderRecord(**order.model_dump()) for order in payload.orders]
    try:
        plan = plan_dispatch(
            records,
            vehicle_type=payload.vehicle_type,
            clustering_radius_km=payload.clustering_radius_km,
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logging.exception(f"Error planning milk runs: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to generate route optimization: {str(exc)}",
        ) from exc
    return dispatch_plan_to_response(plan)
