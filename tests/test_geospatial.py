from datetime import datetime

import pytest

from fieldservice.models.domain import Visit
from fieldservice.services.geospatial import haversine_km, route_distance_km, visit_route_distance_km


def _visit(vid: str, when: datetime, lat: float | None, lon: float | None) -> Visit:
    return Visit(
        visit_id=vid,
        visit_date=when,
        operator_id="OP1",
        customer_id="C1",
        branch_id="B1",
        latitude=lat,
        longitude=lon,
    )


def test_haversine_zero_for_identical_points():
    assert haversine_km(41.0082, 28.9784, 41.0082, 28.9784) == 0.0


def test_haversine_is_symmetric():
    forward = haversine_km(41.0082, 28.9784, 39.9334, 32.8597)
    backward = haversine_km(39.9334, 32.8597, 41.0082, 28.9784)
    assert forward == pytest.approx(backward)
    # Istanbul -> Ankara is roughly 350 km as the crow flies
    assert 340 < forward < 360


def test_haversine_one_degree_of_latitude():
    assert haversine_km(0.0, 0.0, 1.0, 0.0) == pytest.approx(111.19, abs=0.01)


def test_haversine_antipodal_points_do_not_error():
    assert haversine_km(0.0, 0.0, 0.0, 180.0) == pytest.approx(3.141592653589793 * 6371.0)


def test_route_distance_empty_and_single_stop():
    assert route_distance_km([]) == 0.0
    assert route_distance_km([(41.0, 29.0)]) == 0.0


def test_route_distance_sums_legs_in_given_order():
    a, b, c = (0.0, 0.0), (0.0, 1.0), (0.0, 2.0)
    expected = haversine_km(*a, *c) + haversine_km(*c, *b)
    assert route_distance_km([a, c, b]) == pytest.approx(expected)
    assert route_distance_km([a, c, b]) > route_distance_km([a, b, c])


def test_visit_route_sorts_chronologically():
    visits = [
        _visit("V3", datetime(2025, 1, 3, 9), 0.0, 2.0),
        _visit("V1", datetime(2025, 1, 1, 9), 0.0, 0.0),
        _visit("V2", datetime(2025, 1, 2, 9), 0.0, 1.0),
    ]
    assert visit_route_distance_km(visits) == pytest.approx(haversine_km(0.0, 0.0, 0.0, 2.0))


def test_visit_without_coordinates_does_not_break_chain():
    visits = [
        _visit("V1", datetime(2025, 1, 1, 9), 0.0, 0.0),
        _visit("V2", datetime(2025, 1, 1, 11), None, None),
        _visit("V3", datetime(2025, 1, 1, 13), 0.0, 1.0),
        _visit("V4", datetime(2025, 1, 1, 15), 0.0, None),
    ]
    assert visit_route_distance_km(visits) == pytest.approx(haversine_km(0.0, 0.0, 0.0, 1.0))
