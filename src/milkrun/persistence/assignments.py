"""Driver assignment store used by the dynamic rerouting services."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Any, Callable, Protocol, Sequence

from ..config import settings
from ..db.supabase import get_supabase_client
from ..services.rerouting.models import AssignmentStop

ASSIGNMENTS_TABLE = "driver_assignments"
ROUTE_LOG_TABLE = "route_optimization_log"
STOP_COLUMNS = "order_id, sequence_order, status, ecommerce_orders(latitude, longitude, deliveryAddress)"

logger = logging.getLogger(__name__)


class AssignmentStore(Protocol):
    def list_active_cluster_ids(self) -> list[str]:
        ...

    def get_active_stops(self, cluster_id: str) -> list[AssignmentStop]:
        ...

    def get_route(self, cluster_id: str) -> list[AssignmentStop]:
        ...

    def update_sequence(self, cluster_id: str, order_ids: Sequence[str]) -> None:
        ...

    def log_route_change(self, cluster_id: str, change_type: str, reason: str, timestamp: datetime) -> None:
        ...


def _row_to_stop(row: dict) -> AssignmentStop | None:
    order = row.get("ecommerce_orders") or {}
    if isinstance(order, list):
        order = order[0] if order else {}
    try:
        return AssignmentStop(
            order_id=str(row["order_id"]),
            sequence=int(row.get("sequence_order") or 0),
            latitude=float(order["latitude"]),
            longitude=float(order["longitude"]),
            status=row.get("status"),
            delivery_address=order.get("deliveryAddress"),
        )
    except (KeyError, TypeError, ValueError) as exc:
        logging.warning(f"Skipping assignment row without usable coordinates: {exc}")
        return None


class SupabaseAssignmentStore:
    """Assignment store backed by the Supabase ``driver_assignments`` table.

    A cluster is identified by the assignment ``id`` shared by all of its stops.
    Query failures surface as ``ConnectionError``.
    """

    def __init__(self, client=None, active_statuses: Sequence[str] | None = None) -> None:
        self._client = client
        self.active_statuses = tuple(active_statuses or settings.active_statuses)

    @property
    def client(self):
        client = self._client or get_supabase_client()
        if client is None:
            raise ConnectionError("Assignment store is not configured (missing Supabase URL or key).")
        return client

    def _execute(self, operation: str, cluster_id: str | None, build_query: Callable[[Any], Any]):
        client = self.client
        try:
            return build_query(client).execute()
        except Exception as exc:
            logger.error(f"Assignment store {operation} failed for cluster {cluster_id}: {exc}")
            raise ConnectionError(f"Failed to {operation}: {exc}") from exc

    def list_active_cluster_ids(self) -> list[str]:
        response = self._execute(
            "list active clusters",
            None,
            lambda client: client.table(ASSIGNMENTS_TABLE).select("id").in_("status", list(self.active_statuses)),
        )
        cluster_ids: list[str] = []
        for row in response.data or []:
            cluster_id = str(row["id"])
            if cluster_id not in cluster_ids:
                cluster_ids.append(cluster_id)
        return cluster_ids

    def _fetch_stops(self, cluster_id: str, active_only: bool) -> list[AssignmentStop]:
        def build(client):
            query = client.table(ASSIGNMENTS_TABLE).select(STOP_COLUMNS).eq("id", cluster_id)
            if active_only:
                query = query.in_("status", list(self.active_statuses))
            return query.order("sequence_order")

        response = self._execute("load route stops", cluster_id, build)
        stops = [_row_to_stop(row) for row in response.data or []]
        return [stop for stop in stops if stop is not None]

    def get_active_stops(self, cluster_id: str) -> list[AssignmentStop]:
        return self._fetch_stops(cluster_id, active_only=True)

    def get_route(self, cluster_id: str) -> list[AssignmentStop]:
        return self._fetch_stops(cluster_id, active_only=False)

    def update_sequence(self, cluster_id: str, order_ids: Sequence[str]) -> None:
        for position, order_id in enumerate(order_ids, start=1):
            self._execute(
                "update stop sequence",
                cluster_id,
                lambda client, position=position, order_id=order_id: (
                    client.table(ASSIGNMENTS_TABLE)
                    .update({"sequence_order": position})
                    .eq("id", cluster_id)
                    .eq("order_id", order_id)
                ),
            )

    def log_route_change(self, cluster_id: str, change_type: str, reason: str, timestamp: datetime) -> None:
        row = {
            "id": f"ROUTE-CHANGE-{uuid.uuid4().hex[:12]}",
            "cluster_id": cluster_id,
            "change_type": change_type,
            "reason": reason,
            "timestamp": timestamp.isoformat(),
        }
        self._execute("log route change", cluster_id, lambda client: client.table(ROUTE_LOG_TABLE).insert(row))
