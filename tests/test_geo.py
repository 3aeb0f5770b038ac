"""Unit tests for distance and geofence checks."""

import pytest

from geodrop.models.drop import Coordinates
from geodrop.services.geo import calculate_distance, is_within_geofence

NYC = (40.7128, -74.0060)
LA = (34.0522, -118.2437)


class TestCalculateDistance:
    """Test haversine distance."""

    def test_identical_points(self):
        assert calculate_distance(*NYC, *NYC) == 0

    def test_symmetric(self):
        assert calculate_distance(*NYC, *LA) == pytest.approx(calculate_distance(*LA, *NYC))

    def test_new_york_to_los_angeles(self):
        distance = calculate_distance(*NYC, *LA)
        assert 3_900_000 < distance < 3_970_000

    def test_antipodal_points_do_not_fail(self):
        distance = calculate_distance(0, 0, 0, 180)
        assert distance == pytest.approx(6_371_000 * 3.141592653589793, rel=1e-9)

    def test_one_degree_of_latitude(self):
        assert calculate_distance(0, 0, 1, 0) == pytest.approx(111_195, rel=1e-3)


class TestGeofence:
    """Test geofence membership."""

    def test_inside(self):
        drop = Coordinates(lat=NYC[0], lng=NYC[1])
        user = Coordinates(lat=NYC[0] + 0.0004, lng=NYC[1])
        check = is_within_geofence(user, drop, 100)
        assert check.within_fence is True
        assert check.distance_m < 100

    def test_outside(self):
        drop = Coordinates(lat=NYC[0], lng=NYC[1])
        user = Coordinates(lat=NYC[0] + 0.002, lng=NYC[1])
        check = is_within_geofence(user, drop, 100)
        assert check.within_fence is False
        assert check.distance_m > 100

    def test_boundary_is_inside(self):
        drop = Coordinates(lat=0, lng=0)
        user = Coordinates(lat=0.001, lng=0)
        distance = calculate_distance(0.001, 0, 0, 0)
        assert is_within_geofence(user, drop, distance).within_fence is True
