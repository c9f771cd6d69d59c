"""Venue provider that serves results from local data."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable, List, Mapping, Optional

from ..geometry import haversine_distance
from ..models import GeoPoint, VenueCandidate


class StaticVenueProvider:
    """Answers venue searches from a fixed list of Places-style results.

    Handy for offline runs and tests: nearby searches filter by distance and
    type, text searches by distance and any query word found in the venue
    name or types.
    """

    name = "static"

    def __init__(
        self,
        places: Optional[Iterable[Mapping[str, Any]]] = None,
        *,
        path: Optional[str | Path] = None,
    ) -> None:
        records: List[Mapping[str, Any]] = list(places or [])
        if path is not None:
            data = json.loads(Path(path).read_text(encoding="utf-8"))
            records.extend(data.get("results", []) if isinstance(data, dict) else data)

        self._venues: List[VenueCandidate] = []
        for record in records:
            venue = VenueCandidate.from_places_result(record)
            if venue is not None:
                self._venues.append(venue)

    @property
    def venues(self) -> List[VenueCandidate]:
        return list(self._venues)

    def search_nearby(self, location: GeoPoint, radius: float, venue_type: Optional[str] = None) -> List[VenueCandidate]:
        return [
            venue
            for venue in self._within(location, radius)
            if venue_type is None or venue_type in venue.types
        ]

    def search_text(self, query: str, location: GeoPoint, radius: float) -> List[VenueCandidate]:
        words = [word for word in query.lower().split() if len(word) > 2]
        results: List[VenueCandidate] = []
        for venue in self._within(location, radius):
            haystack = " ".join([venue.name.lower(), *venue.types])
            if any(word in haystack for word in words):
                results.append(venue)
        return results

    def _within(self, location: GeoPoint, radius: float) -> List[VenueCandidate]:
        return [venue for venue in self._venues if haversine_distance(location, venue.location) <= radius]
