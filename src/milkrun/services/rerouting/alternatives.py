"""Alternative stop sequences for routes slowed down by traffic.

Two generators are available:

- ``reversal`` visits the current stops in reverse order and estimates it at a
  conservative flat speed with a fixed confidence.
- ``traffic_aware`` re-sequences the stops with OR-Tools over a travel-time
  matrix that uses current speeds near congested segments. The first stop
  stays fixed and the route may end anywhere. It is only offered when it is
  faster than the current sequence; its confidence is the share of the current
  traffic delay that it recovers.
"""

from __future__ import annotations

import logging
from typing import Sequence

from ortools.constraint_solver import pywrapcp, routing_enums_pb2

from ...config import settings
from ..geospatial import path_distance_km
from .models import AlternativeRoute, AssignmentStop, TrafficCondition
from .timing import estimate_leg, estimate_route

logger = logging.getLogger(__name__)


def reversal_alternative(stops: Sequence[AssignmentStop]) -> AlternativeRoute | None:
    if len(stops) <= 2:
        return None
    path = list(reversed(stops))
    distance = path_distance_km([stop.as_point() for stop in path])
    return AlternativeRoute(
        path=path,
        estimated_time_min=distance / settings.reversal_speed_kmh * 60,
        distance_km=distance,
        confidence=settings.reversal_confidence,
        strategy="reversal",
    )


def _time_matrix(stops: Sequence[AssignmentStop], conditions: Sequence[TrafficCondition]) -> list[list[int]]:
    """Leg durations in seconds, plus a free dummy end node as the last row/column."""

    points = [stop.as_point() for stop in stops]
    size = len(points) + 1
    matrix = [[0] * size for _ in range(size)]
    for i, origin in enumerate(points):
        for j, destination in enumerate(points):
            if i != j:
                matrix[i][j] = int(round(estimate_leg(origin, destination, conditions).current_min * 60))
    return matrix


def _solve_open_path(matrix: list[list[int]]) -> list[int] | None:
    end_node = len(matrix) - 1
    manager = pywrapcp.RoutingIndexManager(len(matrix), 1, [0], [end_node])
    routing = pywrapcp.RoutingModel(manager)

    def duration_callback(from_index: int, to_index: int) -> int:
        return matrix[manager.IndexToNode(from_index)][manager.IndexToNode(to_index)]

    transit_callback_index = routing.RegisterTransitCallback(duration_callback)
    routing.SetArcCostEvaluatorOfAllVehicles(transit_callback_index)

    search_parameters = pywrapcp.DefaultRoutingSearchParameters()
    search_parameters.first_solution_strategy = getattr(
        routing_enums_pb2.FirstSolutionStrategy, settings.solver_first_solution_strategy
    )
    search_parameters.local_search_metaheuristic = getattr(
        routing_enums_pb2.LocalSearchMetaheuristic, settings.solver_local_search_metaheuristic
    )
    search_parameters.time_limit.FromSeconds(settings.solver_time_limit_seconds)

    assignment = routing.SolveWithParameters(search_parameters)
    if not assignment:
        return None

    order: list[int] = []
    index = routing.Start(0)
    while not routing.IsEnd(index):
        order.append(manager.IndexToNode(index))
        index = assignment.Value(routing.NextVar(index))
    return order


def traffic_aware_alternative(
    stops: Sequence[AssignmentStop],
    conditions: Sequence[TrafficCondition],
    current_time_min: float,
    traffic_delay_min: float,
) -> AlternativeRoute | None:
    if len(stops) <= 2 or traffic_delay_min <= 0:
        return None

    order = _solve_open_path(_time_matrix(stops, conditions))
    if order is None or len(order) != len(stops):
        logger.warning(f"Could not re-sequence {len(stops)} stops around traffic; keeping current order")
        return None

    path = [stops[node] for node in order]
    legs = estimate_route([stop.as_point() for stop in path], conditions)
    estimated_time = sum(leg.current_min for leg in legs)
    if estimated_time >= current_time_min:
        return None

    recovered = (current_time_min - estimated_time) / traffic_delay_min * 100
    return AlternativeRoute(
        path=path,
        estimated_time_min=estimated_time,
        distance_km=sum(leg.distance_km for leg in legs),
        confidence=min(100.0, max(0.0, recovered)),
        strategy="traffic_aware",
    )


def generate_alternatives(
    stops: Sequence[AssignmentStop],
    conditions: Sequence[TrafficCondition],
    current_time_min: float,
    traffic_delay_min: float,
    strategies: Sequence[str] | None = None,
) -> list[AlternativeRoute]:
    """Candidate sequences ranked by estimated time, fastest first."""

    strategies = tuple(strategies if strategies is not None else settings.reroute_alternatives)
    alternatives: list[AlternativeRoute] = []
    for strategy in strategies:
        if strategy == "reversal":
            candidate = reversal_alternative(stops)
        elif strategy == "traffic_aware":
            candidate = traffic_aware_alternative(stops, conditions, current_time_min, traffic_delay_min)
        else:
            raise ValueError(f"Unknown alternative route generator '{strategy}'.")
        if candidate is not None:
            alternatives.append(candidate)
    return sorted(alternatives, key=lambda alternative: alternative.estimated_time_min)
