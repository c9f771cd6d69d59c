import itertools
import math
import random

import pytest

from contact_atlas.geometry import (
    MAX_DISPLAY_RADIUS_M,
    MIN_DISPLAY_RADIUS_M,
    bounding_radius,
    bounds,
    centroid,
    distance_km,
    haversine_distance,
    normalise_longitude,
)
from contact_atlas.models import GeoPoint


POINTS = [
    GeoPoint(40.0, -74.0),
    GeoPoint(40.01, -74.0),
    GeoPoint(40.005, -73.99),
    GeoPoint(39.998, -74.012),
]


def test_centroid_of_single_point_is_that_point() -> None:
    point = GeoPoint(51.5074, -0.1278)

    assert centroid([point]) == point


def test_centroid_is_invariant_under_permutation() -> None:
    expected = centroid(POINTS)

    for permutation in itertools.permutations(POINTS):
        assert centroid(list(permutation)) == expected


def test_centroid_requires_points() -> None:
    with pytest.raises(ValueError):
        centroid([])


def test_haversine_is_symmetric_and_zero_only_for_equal_points() -> None:
    for a, b in itertools.combinations(POINTS, 2):
        assert haversine_distance(a, b) == pytest.approx(haversine_distance(b, a))
        assert haversine_distance(a, b) > 0

    for point in POINTS:
        assert haversine_distance(point, point) == 0


def test_haversine_one_degree_of_longitude_on_equator() -> None:
    distance = haversine_distance(GeoPoint(0.0, 0.0), GeoPoint(0.0, 1.0))

    assert distance == pytest.approx(6_371_000 * math.pi / 180, rel=1e-9)
    assert distance_km(GeoPoint(0.0, 0.0), GeoPoint(0.0, 1.0)) == pytest.approx(111.195, rel=1e-4)


@pytest.mark.parametrize(
    "points",
    [
        [GeoPoint(40.0, -74.0)],
        [GeoPoint(40.0, -74.0), GeoPoint(40.0001, -74.0)],
        POINTS,
        [GeoPoint(40.0, -74.0), GeoPoint(48.85, 2.35)],
    ],
)
def test_bounding_radius_is_clamped_for_display(points) -> None:
    radius = bounding_radius(points)

    assert MIN_DISPLAY_RADIUS_M <= radius <= MAX_DISPLAY_RADIUS_M


def test_bounding_radius_uses_distance_to_centre_when_in_range() -> None:
    points = [GeoPoint(40.0, -74.0), GeoPoint(40.004, -74.0)]
    center = centroid(points)

    radius = bounding_radius(points)

    assert radius == pytest.approx(haversine_distance(center, points[0]))
    assert 200 < radius < 250


def test_bounds_cover_every_point() -> None:
    box = bounds(POINTS)

    assert box.south == 39.998
    assert box.north == 40.01
    assert box.west == -74.012
    assert box.east == -73.99
    assert all(box.contains(point) for point in POINTS)
    assert box.contains(box.center)


@pytest.mark.parametrize(
    "latitude, longitude",
    [
        (80.058, -75.235),
        (0.0, 0.0),
        (45.0, -90.0),
        (-33.8688, -151.2093),
        (89.9999, -0.0001),
    ],
)
def test_haversine_handles_antipodal_points(latitude, longitude) -> None:
    a = GeoPoint(latitude, longitude)
    b = GeoPoint(-latitude, longitude + 180.0)

    assert haversine_distance(a, b) == pytest.approx(math.pi * 6_371_000, rel=1e-6)
    assert haversine_distance(b, a) == pytest.approx(math.pi * 6_371_000, rel=1e-6)


def test_haversine_never_fails_for_near_antipodal_pairs() -> None:
    rng = random.Random(20240607)
    for _ in range(5000):
        latitude = rng.uniform(-90.0, 90.0)
        longitude = rng.uniform(-180.0, 0.0)
        a = GeoPoint(latitude, longitude)
        b = GeoPoint(-latitude, longitude + 180.0)

        distance = haversine_distance(a, b)

        assert 0.0 <= distance <= math.pi * 6_371_000 * (1 + 1e-9)
    assert bounding_radius([GeoPoint(80.058, -75.235), GeoPoint(-80.058, 104.765)]) == MAX_DISPLAY_RADIUS_M


@pytest.mark.parametrize(
    "a, b",
    [
        (GeoPoint(0.0, 180.0), GeoPoint(0.0, -180.0)),
        (GeoPoint(12.5, -170.0), GeoPoint(12.5, 190.0)),
        (GeoPoint(90.0, 0.0), GeoPoint(90.0, 45.0)),
        (GeoPoint(-90.0, -120.0), GeoPoint(-90.0, 60.0)),
    ],
)
def test_haversine_is_zero_for_the_same_place_written_differently(a, b) -> None:
    assert haversine_distance(a, b) == 0.0


def test_haversine_crosses_the_antimeridian_the_short_way() -> None:
    distance = haversine_distance(GeoPoint(0.0, 179.5), GeoPoint(0.0, -179.5))

    assert distance == pytest.approx(6_371_000 * math.pi / 180, rel=1e-9)


def test_normalise_longitude_wraps_into_range() -> None:
    assert normalise_longitude(190.0) == pytest.approx(-170.0)
    assert normalise_longitude(-190.0) == pytest.approx(170.0)
    assert normalise_longitude(360.0) == 0.0
    assert normalise_longitude(45.0) == 45.0
