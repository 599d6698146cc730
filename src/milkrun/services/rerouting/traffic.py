"""Traffic condition feeds consumed by the route analyzer."""

from __future__ import annotations

import logging
import random
import time
from dataclasses import replace
from typing import Any, Iterable, Protocol, Sequence

import httpx

from ...config import settings
from .models import Incident, TrafficCondition

logger = logging.getLogger(__name__)

MIN_SPEED_KMH = 1.0

DEFAULT_SEGMENTS: tuple[TrafficCondition, ...] = (
    TrafficCondition(
        road_segment="bole_road",
        current_speed_kmh=15.0,
        normal_speed_kmh=30.0,
        congestion_level="high",
        latitude=9.020,
        longitude=38.760,
        incident=Incident(
            type="construction",
            description="Road construction near Bole Medhanealem",
            severity="moderate",
        ),
    ),
    TrafficCondition(
        road_segment="gerji_ring_road",
        current_speed_kmh=25.0,
        normal_speed_kmh=40.0,
        congestion_level="medium",
        latitude=8.980,
        longitude=38.790,
    ),
    TrafficCondition(
        road_segment="mekanisa_road",
        current_speed_kmh=35.0,
        normal_speed_kmh=35.0,
        congestion_level="low",
        latitude=9.050,
        longitude=38.730,
    ),
)


class TrafficFeed(Protocol):
    def current_conditions(self) -> list[TrafficCondition]:
        ...

    def condition_for(self, segment: str) -> TrafficCondition | None:
        ...


class MockTrafficFeed:
    """In-process feed over a fixed set of road segments.

    ``current_conditions`` perturbs current speeds by up to
    ``fluctuation_kmh`` in either direction on every call; ``condition_for``
    returns the unperturbed segment.
    """

    def __init__(
        self,
        conditions: Iterable[TrafficCondition] | None = None,
        fluctuation_kmh: float | None = None,
        rng: random.Random | None = None,
    ) -> None:
        source = DEFAULT_SEGMENTS if conditions is None else conditions
        self._conditions = {condition.road_segment: condition for condition in source}
        self.fluctuation_kmh = settings.traffic_fluctuation_kmh if fluctuation_kmh is None else fluctuation_kmh
        self._rng = rng or random.Random()

    def current_conditions(self) -> list[TrafficCondition]:
        if self.fluctuation_kmh <= 0:
            return list(self._conditions.values())
        snapshot = []
        for condition in self._conditions.values():
            delta = self._rng.uniform(-self.fluctuation_kmh, self.fluctuation_kmh)
            speed = max(MIN_SPEED_KMH, condition.current_speed_kmh + delta)
            snapshot.append(replace(condition, current_speed_kmh=speed))
        return snapshot

    def condition_for(self, segment: str) -> TrafficCondition | None:
        return self._conditions.get(segment)


def condition_from_payload(payload: dict[str, Any]) -> TrafficCondition:
    """Parse one segment as served by the traffic API (camelCase keys)."""

    incident_payload = payload.get("incident")
    incident = None
    if incident_payload:
        incident = Incident(
            type=incident_payload.get("type", "other"),
            description=str(incident_payload.get("description", "")),
            severity=incident_payload.get("severity", "minor"),
        )
    return TrafficCondition(
        road_segment=str(payload["roadSegment"]),
        current_speed_kmh=max(MIN_SPEED_KMH, float(payload["currentSpeed"])),
        normal_speed_kmh=max(MIN_SPEED_KMH, float(payload["normalSpeed"])),
        congestion_level=payload.get("congestionLevel", "low"),
        latitude=float(payload["latitude"]),
        longitude=float(payload["longitude"]),
        incident=incident,
    )


class HttpTrafficFeed:
    """Client for a live traffic service exposing ``/conditions`` endpoints."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.traffic_feed_url or "").rstrip("/")
        if not self.base_url:
            raise ValueError("Traffic feed base URL is not configured.")
        self.timeout = timeout if timeout is not None else settings.traffic_timeout_seconds
        self.max_retries = max_retries if max_retries is not None else settings.traffic_max_retries
        self.backoff_seconds = backoff_seconds if backoff_seconds is not None else settings.traffic_backoff_seconds
        self._transport = transport

    def _get_client(self) -> httpx.Client:
        return httpx.Client(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.timeout, connect=min(self.timeout, 5.0)),
            transport=self._transport,
        )

    def _get(self, path: str) -> httpx.Response:
        with self._get_client() as client:
            attempt = 0
            while True:
                try:
                    response = client.get(path)
                    if response.status_code != 404:
                        response.raise_for_status()
                    return response
                except httpx.TimeoutException as exc:
                    attempt += 1
                    if attempt > self.max_retries:
                        raise TimeoutError(f"Traffic feed timed out after {attempt} attempts: {exc}") from exc
                    wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                    logger.debug(f"Traffic feed timeout, retrying in {wait_time:.1f}s (attempt {attempt}/{self.max_retries})")
                    time.sleep(wait_time)
                except httpx.HTTPError as exc:
                    attempt += 1
                    if attempt > self.max_retries:
                        raise ConnectionError(f"Traffic feed at {self.base_url} is unavailable: {exc}") from exc
                    wait_time = self.backoff_seconds * attempt
                    logger.debug(f"Traffic feed error, retrying in {wait_time:.1f}s (attempt {attempt}/{self.max_retries}): {exc}")
                    time.sleep(wait_time)

    def current_conditions(self) -> list[TrafficCondition]:
        response = self._get("/conditions")
        if response.status_code == 404:
            raise ConnectionError(f"Traffic feed at {self.base_url} has no /conditions endpoint.")
        payload = response.json()
        rows: Sequence[dict] = payload.get("conditions", []) if isinstance(payload, dict) else payload
        return [condition_from_payload(row) for row in rows]

    def condition_for(self, segment: str) -> TrafficCondition | None:
        response = self._get(f"/conditions/{segment}")
        if response.status_code == 404:
            return None
        return condition_from_payload(response.json())


def get_traffic_feed() -> TrafficFeed:
    """Return the live feed when configured, otherwise the mock feed."""

    if settings.traffic_feed_url:
        return HttpTrafficFeed()
    return MockTrafficFeed()


def check_health(base_url: str | None = None) -> bool:
    """Check whether the live traffic feed answers a conditions request."""
    base = base_url or settings.traffic_feed_url
    if not base:
        return False
    try:
        response = httpx.get(f"{base.rstrip('/')}/conditions", timeout=5.0)
        response.raise_for_status()
        return True
    except httpx.HTTPError:
        return False
