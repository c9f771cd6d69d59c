"""Tuning tables and helpers for event detection around contact locations.

The radius, known-event and contextual query helpers drive
:class:`contact_atlas.events.NearbyEventFinder` when adaptive search is on.
"""
from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from .geometry import haversine_distance
from .models import GeoPoint, VenueCandidate

# Base search radius in metres per venue type.
DISTANCE_THRESHOLDS: Mapping[str, int] = {
    "convention_center": 2000,
    "expo_center": 2500,
    "conference_center": 1500,
    "stadium": 2000,
    "arena": 1500,
    "concert_hall": 800,
    "opera_house": 600,
    "performing_arts_theater": 500,
    "university": 3000,
    "business_center": 1000,
    "corporate_campus": 2000,
    "museum": 600,
    "art_gallery": 400,
    "cultural_center": 1000,
    "community_center": 800,
    "lodging": 500,
    "resort": 2000,
    "tourist_attraction": 800,
    "amusement_park": 1500,
    "default": 1000,
}

# Radius multipliers reflecting urban density and how events spread out.
CITY_ADJUSTMENTS: Mapping[str, float] = {
    "las vegas": 1.8,
    "orlando": 1.4,
    "austin": 1.3,
    "san francisco": 0.7,
    "new york": 0.6,
    "chicago": 0.8,
    "london": 0.8,
    "paris": 0.8,
    "barcelona": 0.9,
    "singapore": 0.9,
    "seattle": 1.0,
    "boston": 0.8,
}

EVENT_TYPE_PRIORITIES: Mapping[str, int] = {
    "convention_center": 10,
    "conference_center": 9,
    "university": 8,
    "business_center": 6,
    "cultural_center": 5,
    "community_center": 4,
    "stadium": 3,
    "tourist_attraction": 2,
    "default": 1,
}

# Keys follow datetime.weekday(): Monday == 0.
WEEKDAY_MULTIPLIERS: Mapping[int, float] = {0: 1.2, 1: 1.3, 2: 1.3, 3: 1.2, 4: 1.0, 5: 0.7, 6: 0.6}

HOUR_MULTIPLIERS: Mapping[int, float] = {
    8: 1.1,
    9: 1.3,
    10: 1.2,
    11: 1.1,
    12: 0.9,
    13: 1.0,
    14: 1.2,
    15: 1.1,
    16: 1.0,
    17: 0.8,
    18: 0.6,
    19: 0.7,
    20: 0.6,
    21: 0.4,
    22: 0.3,
}

SEASONAL_MULTIPLIERS: Mapping[int, float] = {
    1: 0.8,
    2: 1.1,
    3: 1.3,
    4: 1.3,
    5: 1.2,
    6: 1.0,
    7: 0.7,
    8: 0.8,
    9: 1.3,
    10: 1.4,
    11: 1.2,
    12: 0.6,
}

KNOWN_EVENT_PATTERNS: Mapping[str, Mapping[str, Any]] = {
    "ces": {
        "city": "las vegas",
        "month": 1,
        "days": (5, 6, 7, 8, 9),
        "venues": ("Las Vegas Convention Center", "Sands Expo", "Tech East", "Tech West"),
        "radius": 3000,
        "types": ("convention_center", "expo_center"),
        "description": "Consumer Electronics Show",
    },
    "nab_show": {
        "city": "las vegas",
        "month": 4,
        "days": (8, 9, 10, 11, 12),
        "venues": ("Las Vegas Convention Center",),
        "radius": 2500,
        "types": ("convention_center",),
        "description": "National Association of Broadcasters Show",
    },
    "sxsw": {
        "city": "austin",
        "month": 3,
        "days": (10, 11, 12, 13, 14, 15, 16, 17),
        "venues": ("Austin Convention Center", "Various downtown venues"),
        "radius": 2000,
        "types": ("convention_center", "cultural_center", "performing_arts_theater"),
        "description": "South by Southwest",
    },
    "comic_con": {
        "city": "san diego",
        "month": 7,
        "days": (20, 21, 22, 23, 24),
        "venues": ("San Diego Convention Center",),
        "radius": 1500,
        "types": ("convention_center",),
        "description": "San Diego Comic Convention",
    },
    "dreamforce": {
        "city": "san francisco",
        "month": 9,
        "days": (12, 13, 14, 15),
        "venues": ("Moscone Center", "Various SF venues"),
        "radius": 1200,
        "types": ("convention_center", "business_center"),
        "description": "Salesforce Dreamforce conference",
    },
    "mobile_world_congress": {
        "city": "barcelona",
        "month": 2,
        "days": (26, 27, 28),
        "venues": ("Fira Barcelona",),
        "radius": 1800,
        "types": ("convention_center", "expo_center"),
        "description": "Mobile World Congress",
    },
}

SEARCH_OPTIMIZATION: Mapping[str, Any] = {
    "min_event_score_threshold": 0.3,
    "min_text_search_score": 0.4,
    "max_results_per_location": 20,
    "max_final_results": 50,
    "min_rating_for_bonus": 3.5,
    "min_review_count_for_bonus": 20,
}

TEXT_SEARCH_TEMPLATES: Mapping[str, Sequence[str]] = {
    "current_events": (
        "conference events {current_date}",
        "meetings seminars {current_month}",
        "business events today",
        "networking events this week",
        "corporate gatherings {current_date}",
    ),
    "tech_conferences": (
        "technology conference {current_month}",
        "tech summit {current_year}",
        "developer conference",
        "startup events",
        "innovation summit",
    ),
    "business_events": (
        "business conference",
        "corporate meeting",
        "industry summit",
        "professional networking",
        "trade show",
    ),
    "cultural_events": (
        "cultural events",
        "art exhibition",
        "museum events",
        "gallery opening",
        "cultural festival",
    ),
}

CITY_TEXT_QUERIES: Mapping[str, Sequence[str]] = {
    "las vegas": ("CES {current_year}", "NAB Show", "Las Vegas convention", "strip conference", "vegas trade show"),
    "austin": ("SXSW {current_year}", "Austin conference", "downtown events", "Austin tech meetup"),
    "san francisco": ("Dreamforce", "SF tech conference", "Silicon Valley event", "Moscone Center event"),
}

VENUE_ANALYSIS_WEIGHTS: Mapping[str, float] = {
    "venue_type": 0.40,
    "name_keyword": 0.25,
    "quality": 0.20,
    "temporal": 0.10,
    "search_method": 0.05,
}

WEIGHTED_NAME_KEYWORDS = ("conference", "convention", "expo", "center", "hall", "arena")

TECH_TYPES = frozenset({"convention_center", "university", "business_center"})
CULTURAL_TYPES = frozenset({"museum", "art_gallery", "cultural_center"})

MIN_RADIUS_M = 300
MAX_RADIUS_M = 8000
MAX_CONTEXTUAL_QUERIES = 8
MIN_DISTANCE_BETWEEN_LOCATIONS_M = 100.0


def normalise_city(name: Optional[str]) -> str:
    return " ".join((name or "").lower().replace("_", " ").split())


def temporal_multiplier(now: datetime) -> float:
    day = WEEKDAY_MULTIPLIERS.get(now.weekday(), 1.0)
    hour = HOUR_MULTIPLIERS.get(now.hour, 1.0)
    season = SEASONAL_MULTIPLIERS.get(now.month, 1.0)
    return (day + hour + season) / 3


def optimal_radius(
    event_types: Iterable[str],
    city: Optional[str] = None,
    now: Optional[datetime] = None,
) -> int:
    """Search radius in metres suited to the venue types, city and time."""

    now = now or datetime.now()
    radius = 0.0
    for event_type in event_types:
        radius = max(radius, DISTANCE_THRESHOLDS.get(event_type, DISTANCE_THRESHOLDS["default"]))
    if radius == 0:
        radius = DISTANCE_THRESHOLDS["default"]

    multiplier = CITY_ADJUSTMENTS.get(normalise_city(city))
    if multiplier:
        radius = round(radius * multiplier)

    radius = round(radius * temporal_multiplier(now))
    return int(min(max(radius, MIN_RADIUS_M), MAX_RADIUS_M))


def detect_known_event(city: Optional[str], day: date) -> Optional[Dict[str, Any]]:
    """Return the known recurring event happening in ``city`` on ``day``, if any."""

    city_key = normalise_city(city)
    if not city_key:
        return None
    for event_key, pattern in KNOWN_EVENT_PATTERNS.items():
        if pattern["city"] == city_key and pattern["month"] == day.month and day.day in pattern["days"]:
            return {"event_name": event_key, **pattern}
    return None


def contextual_queries(
    city: Optional[str],
    day: date,
    event_types: Iterable[str] = (),
) -> List[str]:
    templates: List[str] = [
        *TEXT_SEARCH_TEMPLATES["current_events"],
        *TEXT_SEARCH_TEMPLATES["business_events"],
    ]
    types = set(event_types)
    if types & TECH_TYPES:
        templates.extend(TEXT_SEARCH_TEMPLATES["tech_conferences"])
    if types & CULTURAL_TYPES:
        templates.extend(TEXT_SEARCH_TEMPLATES["cultural_events"])
    templates.extend(CITY_TEXT_QUERIES.get(normalise_city(city), ()))

    values = {
        "current_date": day.isoformat(),
        "current_month": day.strftime("%B"),
        "current_year": str(day.year),
    }
    queries: List[str] = []
    for template in templates:
        query = template.format(**values)
        if query not in queries:
            queries.append(query)
    return queries[:MAX_CONTEXTUAL_QUERIES]


def weighted_venue_score(
    venue: VenueCandidate,
    search_method: str = "nearby_search",
    now: Optional[datetime] = None,
) -> float:
    """Weighted variant of the venue score used for ranking suggestions."""

    now = now or datetime.now()
    weights = VENUE_ANALYSIS_WEIGHTS

    type_score = 0.0
    for venue_type in venue.types:
        if venue_type in DISTANCE_THRESHOLDS:
            type_score = max(type_score, EVENT_TYPE_PRIORITIES.get(venue_type, 1) / 10)
    total = type_score * weights["venue_type"]

    name = venue.name.lower()
    matches = sum(1 for keyword in WEIGHTED_NAME_KEYWORDS if keyword in name)
    total += min(matches / len(WEIGHTED_NAME_KEYWORDS) * 2, 1) * weights["name_keyword"]

    quality = 0.0
    if venue.business_status == "OPERATIONAL":
        quality += 0.3
    if venue.rating and venue.rating >= SEARCH_OPTIMIZATION["min_rating_for_bonus"]:
        quality += (venue.rating / 5) * 0.4
    if venue.user_ratings_total and venue.user_ratings_total >= SEARCH_OPTIMIZATION["min_review_count_for_bonus"]:
        quality += min(venue.user_ratings_total / 500, 1) * 0.3
    total += quality * weights["quality"]

    total += HOUR_MULTIPLIERS.get(now.hour, 0.5) * weights["temporal"]
    total += (0.8 if search_method == "text_search" else 0.5) * weights["search_method"]

    return max(0.0, min(total, 1.0))


def should_process_location(
    location: GeoPoint,
    existing: Iterable[GeoPoint],
    min_distance_m: float = MIN_DISTANCE_BETWEEN_LOCATIONS_M,
) -> bool:
    """``False`` when ``location`` is within ``min_distance_m`` of one already processed."""

    return not any(haversine_distance(location, other) < min_distance_m for other in existing)
