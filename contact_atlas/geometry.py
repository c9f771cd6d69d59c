"""Geometry helpers for contact locations."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Sequence

from .models import GeoPoint

EARTH_RADIUS_M = 6_371_000.0

MIN_DISPLAY_RADIUS_M = 50.0
MAX_DISPLAY_RADIUS_M = 500.0


@dataclass(slots=True, frozen=True)
class Bounds:
    """South-west / north-east bounding box."""

    south: float
    west: float
    north: float
    east: float

    @property
    def center(self) -> GeoPoint:
        return GeoPoint((self.south + self.north) / 2, (self.west + self.east) / 2)

    def contains(self, point: GeoPoint) -> bool:
        return self.south <= point.latitude <= self.north and self.west <= point.longitude <= self.east


def haversine_distance(a: GeoPoint, b: GeoPoint) -> float:
    """Great-circle distance between two points in metres.

    Longitudes 360 degrees apart denote the same meridian, and every
    longitude at a pole denotes the same place; both give exactly zero.
    """

    if abs(a.latitude) == 90.0 and a.latitude == b.latitude:
        return 0.0

    phi1 = math.radians(a.latitude)
    phi2 = math.radians(b.latitude)
    delta_phi = math.radians(b.latitude - a.latitude)
    delta_lambda = math.radians(normalise_longitude(b.longitude - a.longitude))

    h = math.sin(delta_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(delta_lambda / 2) ** 2
    # Rounding can push h just past 1 for antipodal points
    h = min(h, 1.0)
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def normalise_longitude(degrees: float) -> float:
    """Wrap a longitude (or longitude difference) into [-180, 180)."""

    return (degrees + 180.0) % 360.0 - 180.0


def distance_km(a: GeoPoint, b: GeoPoint) -> float:
    return haversine_distance(a, b) / 1000.0


def centroid(points: Sequence[GeoPoint]) -> GeoPoint:
    """Arithmetic mean of the coordinates.

    ``math.fsum`` keeps the result independent of point order.
    """

    if not points:
        raise ValueError("centroid() requires at least one point")
    count = len(points)
    return GeoPoint(
        math.fsum(point.latitude for point in points) / count,
        math.fsum(point.longitude for point in points) / count,
    )


def max_distance(points: Sequence[GeoPoint], center: GeoPoint) -> float:
    return max((haversine_distance(center, point) for point in points), default=0.0)


def bounding_radius(
    points: Sequence[GeoPoint],
    center: Optional[GeoPoint] = None,
    *,
    minimum: float = MIN_DISPLAY_RADIUS_M,
    maximum: float = MAX_DISPLAY_RADIUS_M,
) -> float:
    """Largest distance from the centre to any point, clamped for display."""

    if center is None:
        center = centroid(points)
    return max(minimum, min(maximum, max_distance(points, center)))


def bounds(points: Sequence[GeoPoint]) -> Bounds:
    if not points:
        raise ValueError("bounds() requires at least one point")
    latitudes = [point.latitude for point in points]
    longitudes = [point.longitude for point in points]
    return Bounds(
        south=min(latitudes),
        west=min(longitudes),
        north=max(latitudes),
        east=max(longitudes),
    )
