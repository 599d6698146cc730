from datetime import datetime, timezone
from types import SimpleNamespace

import httpx
import pytest

from milkrun.data import orders_repository
from milkrun.persistence.assignments import ROUTE_LOG_TABLE, SupabaseAssignmentStore


class DummyQuery:
    """Records chained Supabase calls and returns canned rows on execute()."""

    def __init__(self, client, table):
        self.client = client
        self.table = table
        self.calls = []

    def __getattr__(self, name):
        def record(*args, **kwargs):
            self.calls.append((name, args, kwargs))
            return self

        return record

    def execute(self):
        self.client.executed.append((self.table, self.calls))
        return SimpleNamespace(data=self.client.rows.get(self.table, []))


class DummySupabase:
    def __init__(self, rows=None):
        self.rows = rows or {}
        self.executed = []

    def table(self, name):
        return DummyQuery(self, name)


ASSIGNMENT_ROWS = [
    {
        "id": "CLUSTER-1",
        "order_id": "A",
        "sequence_order": 1,
        "status": "in_transit",
        "ecommerce_orders": {"latitude": "9.10", "longitude": 38.80, "deliveryAddress": "Bole"},
    },
    {
        "id": "CLUSTER-1",
        "order_id": "B",
        "sequence_order": 2,
        "status": "assigned",
        "ecommerce_orders": [{"latitude": 9.12, "longitude": 38.81, "deliveryAddress": None}],
    },
    {"id": "CLUSTER-1", "order_id": "C", "sequence_order": 3, "status": "assigned", "ecommerce_orders": None},
    {"id": "CLUSTER-2", "order_id": "D", "sequence_order": 1, "status": "assigned", "ecommerce_orders": None},
]


def test_assignment_store_reads_stops_and_skips_rows_without_coordinates():
    client = DummySupabase({"driver_assignments": ASSIGNMENT_ROWS})
    store = SupabaseAssignmentStore(client=client)

    stops = store.get_active_stops("CLUSTER-1")

    assert [stop.order_id for stop in stops] == ["A", "B"]
    assert stops[0].latitude == pytest.approx(9.10)
    assert stops[0].delivery_address == "Bole"
    assert store.list_active_cluster_ids() == ["CLUSTER-1", "CLUSTER-2"]


def test_assignment_store_writes_sequence_and_route_log():
    client = DummySupabase()
    store = SupabaseAssignmentStore(client=client)

    store.update_sequence("CLUSTER-1", ["B", "A"])
    store.log_route_change("CLUSTER-1", "rerouted", "Traffic", datetime(2024, 5, 1, tzinfo=timezone.utc))

    updates = [calls for table, calls in client.executed if table == "driver_assignments"]
    assert [calls[0] for calls in updates] == [("update", ({"sequence_order": 1},), {}), ("update", ({"sequence_order": 2},), {})]
    assert ("eq", ("order_id", "B"), {}) in updates[0]

    table, calls = client.executed[-1]
    assert table == ROUTE_LOG_TABLE
    row = calls[0][1][0]
    assert row["cluster_id"] == "CLUSTER-1"
    assert row["change_type"] == "rerouted"
    assert row["id"].startswith("ROUTE-CHANGE-")
    assert row["timestamp"] == "2024-05-01T00:00:00+00:00"


def test_unconfigured_stores_raise_connection_error(monkeypatch: pytest.MonkeyPatch):
    from milkrun.persistence import assignments

    monkeypatch.setattr(assignments, "get_supabase_client", lambda: None)
    monkeypatch.setattr(orders_repository, "get_supabase_client", lambda: None)

    with pytest.raises(ConnectionError):
        SupabaseAssignmentStore().get_active_stops("CLUSTER-1")
    with pytest.raises(ConnectionError):
        orders_repository.load_pending_orders()


def test_load_pending_orders_filters_statuses(monkeypatch: pytest.MonkeyPatch):
    client = DummySupabase(
        {
            "ecommerce_orders": [
                {"id": 7, "latitude": 9.1, "longitude": 38.8, "status": "confirmed", "totalAmount": "120.5"},
                {"id": 8, "latitude": None, "longitude": None, "status": "paid"},
            ]
        }
    )
    monkeypatch.setattr(orders_repository, "get_supabase_client", lambda: client)

    orders = orders_repository.load_pending_orders(["confirmed", "paid", "delivered"])

    assert [order.order_id for order in orders] == ["7", "8"]
    assert orders[0].total_amount == pytest.approx(120.5)
    assert orders[1].latitude is None
    _, calls = client.executed[0]
    assert ("in_", ("status", ["confirmed", "paid"]), {}) in calls
    assert ("order", ("createdAt",), {"desc": True}) in calls


def test_sanitize_statuses_drops_unknown_and_duplicates():
    assert orders_repository.sanitize_statuses([" paid", "paid", "delivered", "confirmed"]) == ("paid", "confirmed")
    assert orders_repository.sanitize_statuses(["delivered"]) == ()


class OfflineSupabase:
    def table(self, name):
        request = httpx.Request("GET", f"https://store.test/rest/v1/{name}")
        raise httpx.ConnectError("connection refused", request=request)


def test_store_query_failures_surface_as_connection_error():
    store = SupabaseAssignmentStore(client=OfflineSupabase())

    with pytest.raises(ConnectionError) as excinfo:
        store.get_active_stops("CLUSTER-1")
    assert isinstance(excinfo.value.__cause__, httpx.ConnectError)
    with pytest.raises(ConnectionError):
        store.list_active_cluster_ids()
    with pytest.raises(ConnectionError):
        store.update_sequence("CLUSTER-1", ["A"])
    with pytest.raises(ConnectionError):
        store.log_route_change("CLUSTER-1", "rerouted", "Traffic", datetime.now(timezone.utc))
