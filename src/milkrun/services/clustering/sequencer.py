"""Greedy nearest-neighbour sequencing of the stops inside a cluster."""

from __future__ import annotations

from typing import Sequence

from ...models.domain import GeoPoint
from ..geospatial import point_distance_km


def nearest_neighbor_sequence(orders: Sequence[GeoPoint], start: GeoPoint) -> list[GeoPoint]:
    """Order stops by repeatedly visiting the closest unvisited one.

    Ties go to the stop that appears first in ``orders`` so the result is
    deterministic. Returns a new list; ``orders`` is left untouched.
    """

    unvisited = list(orders)
    if len(unvisited) < 2:
        return unvisited

    sequence: list[GeoPoint] = []
    current = start
    while unvisited:
        nearest_idx = 0
        nearest_km = point_distance_km(current, unvisited[0])
        for idx in range(1, len(unvisited)):
            distance = point_distance_km(current, unvisited[idx])
            if distance < nearest_km:
                nearest_km = distance
                nearest_idx = idx
        current = unvisited.pop(nearest_idx)
        sequence.append(current)
    return sequence
