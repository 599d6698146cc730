"""Data access helpers for loading pending orders and the depot location."""

from __future__ import annotations

import functools
import logging
from typing import Iterable, Sequence

from ..config import settings
from ..db.supabase import get_supabase_client
from ..models.domain import Depot, OrderRecord

ORDERS_TABLE = "ecommerce_orders"
ORDER_COLUMNS = "id, customerName, deliveryAddress, latitude, longitude, city, status, totalAmount, createdAt"

logger = logging.getLogger(__name__)


@functools.lru_cache(maxsize=1)
def resolve_depot() -> Depot:
    """Return the configured depot all trips start from."""

    return Depot(
        code=settings.depot_code,
        latitude=settings.depot_latitude,
        longitude=settings.depot_longitude,
    )


def sanitize_statuses(statuses: Iterable[str] | None) -> tuple[str, ...]:
    """Keep only statuses that are eligible for planning, preserving order."""

    if statuses is None:
        return tuple(settings.pending_order_statuses)
    allowed = set(settings.pending_order_statuses)
    cleaned: list[str] = []
    for status in statuses:
        normalized = status.strip()
        if normalized in allowed and normalized not in cleaned:
            cleaned.append(normalized)
    return tuple(cleaned)


def _row_to_order(row: dict) -> OrderRecord:
    amount = row.get("totalAmount")
    return OrderRecord(
        order_id=str(row["id"]),
        latitude=row.get("latitude"),
        longitude=row.get("longitude"),
        customer_name=row.get("customerName"),
        delivery_address=row.get("deliveryAddress"),
        total_amount=float(amount) if amount is not None else None,
        status=row.get("status"),
        created_at=row.get("createdAt"),
        raw=row,
    )


def load_pending_orders(statuses: Sequence[str] | None = None) -> list[OrderRecord]:
    """Fetch orders awaiting dispatch, newest first.

    Rows without coordinates are still returned so the planning layer can
    report them as unlocatable.
    """

    wanted = sanitize_statuses(statuses)
    if not wanted:
        return []

    supabase = get_supabase_client()
    if not supabase:
        raise ConnectionError("Order store is not configured (missing Supabase URL or key).")

    try:
        response = (
            supabase.table(ORDERS_TABLE)
            .select(ORDER_COLUMNS)
            .in_("status", list(wanted))
            .order("createdAt", desc=True)
            .execute()
        )
    except Exception as exc:
        logger.error(f"Failed to load pending orders for statuses {wanted}: {exc}")
        raise ConnectionError(f"Failed to load pending orders: {exc}") from exc

    orders: list[OrderRecord] = []
    for row in response.data or []:
        try:
            orders.append(_row_to_order(row))
        except (KeyError, ValueError, TypeError) as exc:
            logger.warning(f"Skipping malformed order row: {exc}")
    logger.info(f"Loaded {len(orders)} pending orders for statuses: {', '.join(wanted)}")
    return orders
