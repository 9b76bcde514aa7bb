import math
import random

import pytest

from routing.geodesic import EARTH_RADIUS_KM, coerce_location, distance_between, haversine_km

NYC = (40.7128, -74.0060)
LA = (34.0522, -118.2437)

def reference_haversine(lat1, lon1, lat2, lon2):
    # Textbook formula, kept independent of the implementation under test
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * 6371 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

def test_distance_to_self_is_zero():
    assert haversine_km(*NYC, *NYC) == 0
    assert haversine_km(0.0, 0.0, 0.0, 0.0) == 0

def test_distance_is_symmetric():
    assert haversine_km(*NYC, *LA) == pytest.approx(haversine_km(*LA, *NYC))

def test_new_york_to_los_angeles():
    assert haversine_km(*NYC, *LA) == pytest.approx(3936, abs=10)

def test_half_the_globe():
    assert haversine_km(0, 0, 0, 180) == pytest.approx(math.pi * EARTH_RADIUS_KM)

def test_matches_reference_formula():
    rng = random.Random(42)
    for _ in range(500):
        lat1, lat2 = rng.uniform(-89, 89), rng.uniform(-89, 89)
        lon1, lon2 = rng.uniform(-180, 180), rng.uniform(-180, 180)
        assert haversine_km(lat1, lon1, lat2, lon2) == pytest.approx(
            reference_haversine(lat1, lon1, lat2, lon2), rel=1e-6, abs=1e-9
        )

def test_distance_between_wraps_tuples():
    assert distance_between(NYC, LA) == haversine_km(*NYC, *LA)

def test_coerce_location_treats_zero_as_valid():
    assert coerce_location(0, 0) == (0.0, 0.0)
    assert coerce_location("34.05", "-118.24") == (34.05, -118.24)

@pytest.mark.parametrize("lat, lng", [
    (None, 1.0), (1.0, None), (None, None), ("north", 2.0),
    (float("nan"), 2.0), ("nan", "1.0"), (1.0, float("inf")), ("-inf", 0.0),
])
def test_coerce_location_rejects_incomplete_pairs(lat, lng):
    assert coerce_location(lat, lng) is None
