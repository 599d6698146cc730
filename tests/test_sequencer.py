from milkrun.models.domain import GeoPoint
from milkrun.services.clustering.sequencer import nearest_neighbor_sequence

DEPOT = GeoPoint(9.033, 38.750, order_id="MAIN")


def test_visits_closest_stop_first_then_greedily():
    far = GeoPoint(9.125, 38.752, order_id="far")
    near = GeoPoint(9.050, 38.750, order_id="near")
    middle = GeoPoint(9.090, 38.751, order_id="middle")

    sequence = nearest_neighbor_sequence([far, near, middle], DEPOT)

    assert [point.order_id for point in sequence] == ["near", "middle", "far"]


def test_empty_and_single_inputs():
    only = GeoPoint(9.1, 38.8, order_id="only")

    assert nearest_neighbor_sequence([], DEPOT) == []
    assert nearest_neighbor_sequence([only], DEPOT) == [only]


def test_does_not_mutate_input_and_breaks_ties_by_position():
    a = GeoPoint(9.050, 38.760, order_id="a")
    b = GeoPoint(9.050, 38.760, order_id="b")
    orders = [a, b]

    sequence = nearest_neighbor_sequence(orders, DEPOT)

    assert orders == [a, b]
    assert sequence[0].order_id == "a"
