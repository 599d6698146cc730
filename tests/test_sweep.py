import time

from milkrun.services.rerouting.analyzer import RouteAnalyzer
from milkrun.services.rerouting.applier import ReroutingApplier
from milkrun.services.rerouting.models import ClusterNotFoundError
from milkrun.services.rerouting.sweep import check_and_optimize_routes

from conftest import InMemoryAssignmentStore, congested_detour_feed, congested_detour_stops, make_stop


def _quiet_stops():
    # Far from every congested segment.
    return [make_stop("Q1", 8.50, 38.20, 1), make_stop("Q2", 8.52, 38.20, 2), make_stop("Q3", 8.54, 38.20, 3)]


def test_sweep_applies_worthwhile_reroutes():
    store = InMemoryAssignmentStore({"CLUSTER-1": congested_detour_stops(), "CLUSTER-2": _quiet_stops()})
    analyzer = RouteAnalyzer(store, congested_detour_feed())
    applier = ReroutingApplier(store)

    report = check_and_optimize_routes(store, analyzer, applier, auto_apply=True, max_workers=2)

    assert report.clusters_checked == 2
    assert [update.cluster_id for update in report.suggested] == ["CLUSTER-1"]
    assert report.applied == ["CLUSTER-1"]
    assert report.failed == {}
    assert store.sequence_of("CLUSTER-1") == ["S0", "S2", "S1"]
    assert store.sequence_of("CLUSTER-2") == ["Q1", "Q2", "Q3"]
    assert store.route_log[0]["cluster_id"] == "CLUSTER-1"


def test_sweep_without_auto_apply_only_suggests():
    store = InMemoryAssignmentStore({"CLUSTER-1": congested_detour_stops()})
    analyzer = RouteAnalyzer(store, congested_detour_feed())

    report = check_and_optimize_routes(store, analyzer, ReroutingApplier(store), auto_apply=False)

    assert len(report.suggested) == 1
    assert report.applied == []
    assert store.sequence_of("CLUSTER-1") == ["S0", "S1", "S2"]
    assert store.route_log == []


def test_failing_cluster_does_not_stop_the_sweep():
    store = InMemoryAssignmentStore(
        {"CLUSTER-1": congested_detour_stops(), "CLUSTER-BROKEN": _quiet_stops()},
        failing={"CLUSTER-BROKEN"},
    )
    analyzer = RouteAnalyzer(store, congested_detour_feed())

    report = check_and_optimize_routes(store, analyzer, ReroutingApplier(store), auto_apply=True)

    assert report.applied == ["CLUSTER-1"]
    assert report.failed["CLUSTER-BROKEN"].startswith("analyze:")


class FailingListStore(InMemoryAssignmentStore):
    def list_active_cluster_ids(self):
        raise ConnectionError("store offline")


def test_listing_failure_is_reported():
    store = FailingListStore()
    analyzer = RouteAnalyzer(store, congested_detour_feed())

    report = check_and_optimize_routes(store, analyzer, ReroutingApplier(store))

    assert report.clusters_checked == 0
    assert "store offline" in report.failed["*"]


class ScriptedAnalyzer:
    def __init__(self, delays=None, missing=()):
        self.delays = delays or {}
        self.missing = set(missing)

    def suggest_route_optimizations(self, cluster_id):
        if cluster_id in self.missing:
            raise ClusterNotFoundError(cluster_id)
        time.sleep(self.delays.get(cluster_id, 0))
        return []


def test_slow_cluster_times_out_and_vanished_cluster_is_skipped():
    store = InMemoryAssignmentStore(
        {
            "CLUSTER-SLOW": _quiet_stops(),
            "CLUSTER-GONE": _quiet_stops(),
            "CLUSTER-OK": _quiet_stops(),
        }
    )
    analyzer = ScriptedAnalyzer(delays={"CLUSTER-SLOW": 1.0}, missing={"CLUSTER-GONE"})

    started = time.monotonic()
    report = check_and_optimize_routes(
        store, analyzer, ReroutingApplier(store), max_workers=3, cluster_timeout_seconds=0.1
    )

    assert time.monotonic() - started < 1.0
    assert report.clusters_checked == 3
    assert report.failed == {"CLUSTER-SLOW": "analyze: timed out"}
    assert report.suggested == []


def test_cluster_queued_behind_a_hung_worker_is_reported_as_skipped():
    store = InMemoryAssignmentStore({"CLUSTER-SLOW": _quiet_stops(), "CLUSTER-QUEUED": _quiet_stops()})
    analyzer = ScriptedAnalyzer(delays={"CLUSTER-SLOW": 1.0})

    report = check_and_optimize_routes(
        store, analyzer, ReroutingApplier(store), max_workers=1, cluster_timeout_seconds=0.1
    )

    assert report.failed == {
        "CLUSTER-SLOW": "analyze: timed out",
        "CLUSTER-QUEUED": "skipped: pool saturated",
    }
