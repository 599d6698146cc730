import pytest

from milkrun.models.domain import Depot, GeoPoint
from milkrun.services.clustering.milk_run import build_cluster
from milkrun.services.clustering.scoring import score_route_efficiency

DEPOT = Depot(code="MAIN", latitude=9.033, longitude=38.750)
# ~10 km north of the depot.
TEN_KM_NORTH = 9.033 + 10 / 111.195


def test_shared_trip_halves_distance():
    orders = [GeoPoint(TEN_KM_NORTH, 38.750, order_id="A"), GeoPoint(TEN_KM_NORTH, 38.750, order_id="B")]
    clusters = [build_cluster("CLUSTER-1", orders, DEPOT, 5)]

    scores = score_route_efficiency(orders, clusters, DEPOT)

    assert scores.clustering_efficiency == pytest.approx(100)
    assert scores.distance_efficiency == pytest.approx(50, abs=0.01)
    assert scores.time_efficiency == pytest.approx(45, abs=0.01)
    assert scores.overall_score == pytest.approx(64, abs=0.01)
    assert scores.original_distance_km == pytest.approx(40, abs=0.01)
    assert scores.optimized_distance_km == pytest.approx(20, abs=0.01)


def test_empty_input_scores_zero():
    scores = score_route_efficiency([], [], DEPOT)

    assert (scores.clustering_efficiency, scores.distance_efficiency, scores.time_efficiency, scores.overall_score) == (
        0,
        0,
        0,
        0,
    )


def test_order_at_the_depot_only_earns_clustering_credit():
    orders = [GeoPoint(9.033, 38.750, order_id="at-depot")]
    clusters = [build_cluster("CLUSTER-1", orders, DEPOT, 5)]

    assert clusters[0].total_distance_km == 0
    assert clusters[0].max_distance_from_depot_km == 0

    scores = score_route_efficiency(orders, clusters, DEPOT)

    assert scores.distance_efficiency == 0
    assert scores.overall_score == pytest.approx(30)


def test_unplaced_orders_reduce_clustering_efficiency_and_scores_stay_in_range():
    placed = GeoPoint(9.10, 38.75, order_id="placed")
    missing = GeoPoint(9.20, 38.75, order_id="missing")
    clusters = [build_cluster("CLUSTER-1", [placed], DEPOT, 5)]

    scores = score_route_efficiency([placed, missing], clusters, DEPOT)

    assert scores.clustering_efficiency == pytest.approx(50)
    for value in (scores.distance_efficiency, scores.time_efficiency, scores.overall_score):
        assert 0 <= value <= 100
