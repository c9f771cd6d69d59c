"""Nearby event finder that queries venue providers around contact locations."""
from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List, Optional, Protocol, Sequence, Tuple

from ..detection import contextual_queries, detect_known_event, optimal_radius, should_process_location
from ..geometry import distance_km
from ..merge import merge_event
from ..models import (
    DetectionAnalytics,
    GeoPoint,
    LocationQuery,
    NearbyEvent,
    NearbyEventsReport,
    VenueCandidate,
)
from ..places.base import QuotaExceededError
from ..rate_limit import DelayPolicy
from ..scoring import (
    NEARBY_SCORE_THRESHOLD,
    TEXT_SEARCH,
    TEXT_SEARCH_SCORE_THRESHOLD,
    analyze_event_venue,
    overall_event_score,
    temporal_relevance,
)

LOGGER = logging.getLogger(__name__)

DEFAULT_EVENT_TYPES = (
    "conference_center",
    "convention_center",
    "exhibition_center",
    "event_venue",
    "university",
    "stadium",
    "theater",
    "community_center",
    "museum",
    "art_gallery",
)


def default_text_queries(today: datetime) -> List[str]:
    return [
        f"conference events {today.date().isoformat()}",
        "meetings seminars workshops",
        "business events today",
        "networking events",
    ]


class VenueProviderProtocol(Protocol):
    """Protocol defining the interface that venue providers must follow."""

    name: str

    def search_nearby(
        self, location: GeoPoint, radius: float, venue_type: Optional[str] = None
    ) -> List[VenueCandidate]:  # pragma: no cover - runtime protocol
        """Return venues of ``venue_type`` within ``radius`` metres."""

    def search_text(
        self, query: str, location: GeoPoint, radius: float
    ) -> List[VenueCandidate]:  # pragma: no cover - runtime protocol
        """Return venues matching ``query`` near ``location``."""


class NearbyEventFinder:
    """Runs venue searches for each location, scores the results and ranks them."""

    def __init__(
        self,
        providers: Sequence[VenueProviderProtocol],
        *,
        radius: int = 1000,
        event_types: Optional[Sequence[str]] = None,
        include_text_search: bool = True,
        text_queries: Optional[Sequence[str]] = None,
        nearby_threshold: float = NEARBY_SCORE_THRESHOLD,
        text_threshold: float = TEXT_SEARCH_SCORE_THRESHOLD,
        delay_policy: Optional[DelayPolicy] = None,
        min_location_distance_m: float = 0.0,
        adaptive_search: bool = False,
        clock: Callable[[], datetime] = datetime.now,
        sleep: Callable[[float], None] = time.sleep,
        raise_on_error: bool = False,
    ) -> None:
        if not providers:
            raise ValueError("At least one venue provider is required")
        self._providers = list(providers)
        self._radius = radius
        self._event_types = list(event_types) if event_types else list(DEFAULT_EVENT_TYPES)
        self._include_text_search = include_text_search
        self._text_queries = list(text_queries) if text_queries else None
        self._nearby_threshold = nearby_threshold
        self._text_threshold = text_threshold
        self._delay_policy = delay_policy or DelayPolicy()
        self._min_location_distance_m = min_location_distance_m
        self._adaptive_search = adaptive_search
        self._clock = clock
        self._sleep = sleep
        self._raise_on_error = raise_on_error

    @property
    def providers(self) -> List[VenueProviderProtocol]:
        return list(self._providers)

    @property
    def event_types(self) -> List[str]:
        return list(self._event_types)

    def find(self, locations: Iterable[LocationQuery]) -> NearbyEventsReport:
        """Search every unique location and return ranked events with analytics."""

        now = self._clock()
        relevance = temporal_relevance(now)
        text_queries = self._text_queries or default_text_queries(now)

        events: Dict[str, NearbyEvent] = {}
        analytics = DetectionAnalytics()
        errors: List[Dict[str, str]] = []
        processed_keys: set = set()
        processed_points: List[GeoPoint] = []
        known_events: Dict[str, str] = {}

        for location in locations:
            point = location.point
            if point is None:
                LOGGER.debug("Skipping location without usable coordinates: %s", location)
                continue
            key = point.key()
            if key in processed_keys:
                continue
            if self._min_location_distance_m and not should_process_location(
                point, processed_points, self._min_location_distance_m
            ):
                LOGGER.debug("Skipping location %s - too close to one already searched", key)
                continue
            if processed_points:
                self._delay_policy.wait(self._sleep)
            processed_keys.add(key)
            processed_points.append(point)
            analytics.locations_processed += 1

            radius, queries = self._radius, text_queries
            if self._adaptive_search:
                radius, queries = self._adapt_search(location, now, known_events)

            LOGGER.info("Searching venues around %s (%s contacts, radius %sm)", key, len(location.contact_ids), radius)
            for provider in self._providers:
                for venue_type in self._event_types:
                    venues = self._run_search(
                        provider, key, f"nearby:{venue_type}", errors,
                        lambda: provider.search_nearby(point, radius, venue_type)
                    )
                    self._collect(
                        events, analytics, venues, location, point, provider.name, relevance,
                        venue_type=venue_type,
                    )

                if not self._include_text_search:
                    continue
                for query in queries:
                    venues = self._run_search(
                        provider, key, f"text:{query}", errors,
                        lambda: provider.search_text(query, point, radius)
                    )
                    self._collect(
                        events, analytics, venues, location, point, provider.name, relevance,
                        search_query=query,
                    )

        ranked = list(events.values())
        for event in ranked:
            event.overall_score = overall_event_score(event)
        ranked.sort(key=lambda event: event.overall_score, reverse=True)

        if ranked:
            analytics.average_event_score = sum(event.event_score for event in ranked) / len(ranked)

        LOGGER.info(
            "Nearby event search finished: %s locations, %s events (%s high confidence), %s errors",
            analytics.locations_processed,
            len(ranked),
            analytics.high_confidence_events,
            len(errors),
        )
        return NearbyEventsReport(
            events=ranked,
            analytics=analytics,
            errors=errors,
            metadata={
                "search_radius": "adaptive" if self._adaptive_search else self._radius,
                "event_types_searched": list(self._event_types),
                "include_text_search": self._include_text_search,
                "known_events": known_events,
                "processed_at": datetime.now(timezone.utc).isoformat(),
            },
        )

    def _adapt_search(
        self,
        location: LocationQuery,
        now: datetime,
        known_events: Dict[str, str],
    ) -> Tuple[int, List[str]]:
        """Radius and text queries tuned to the location's city and the current date."""

        city = location.metadata.get("city")
        radius = optimal_radius(self._event_types, city, now)
        queries = self._text_queries or contextual_queries(city, now.date(), self._event_types)

        known = detect_known_event(city, now.date())
        if known is not None:
            LOGGER.info("%s is running in %s", known["description"], city)
            known_events[known["event_name"]] = known["description"]
            radius = max(radius, int(known["radius"]))
        return radius, queries

    def _run_search(
        self,
        provider: VenueProviderProtocol,
        location_key: str,
        label: str,
        errors: List[Dict[str, str]],
        search: Callable[[], List[VenueCandidate]],
    ) -> List[VenueCandidate]:
        try:
            return list(search())
        except QuotaExceededError:
            raise
        except Exception as exc:
            LOGGER.exception("Provider %s failed %s search for location %s", provider.name, label, location_key)
            if self._raise_on_error:
                raise
            errors.append(
                {"location": location_key, "provider": provider.name, "search": label, "error": str(exc)}
            )
            return []

    def _collect(
        self,
        events: Dict[str, NearbyEvent],
        analytics: DetectionAnalytics,
        venues: Iterable[VenueCandidate],
        location: LocationQuery,
        point: GeoPoint,
        source: str,
        relevance: float,
        *,
        venue_type: Optional[str] = None,
        search_query: Optional[str] = None,
    ) -> None:
        search_type = TEXT_SEARCH if search_query is not None else venue_type
        threshold = self._text_threshold if search_query is not None else self._nearby_threshold

        for venue in venues:
            existing = events.get(venue.place_id)
            if existing is not None:
                merge_event(existing, location.contact_ids, source)
                continue

            analysis = analyze_event_venue(venue, search_type)
            if analysis.event_score <= threshold:
                continue

            events[venue.place_id] = NearbyEvent(
                venue=venue,
                contact_ids=list(location.contact_ids),
                event_score=analysis.event_score,
                confidence=analysis.confidence,
                indicators=analysis.indicators,
                venue_type=venue_type,
                search_query=search_query,
                distance_km=distance_km(point, venue.location),
                temporal_relevance=relevance,
                sources=[source],
            )
            analytics.events_found += 1
            if analysis.confidence == "high":
                analytics.high_confidence_events += 1
            if venue_type:
                analytics.venue_types[venue_type] = analytics.venue_types.get(venue_type, 0) + 1
