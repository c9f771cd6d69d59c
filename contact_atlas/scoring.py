"""Heuristic scoring of venue candidates as likely events."""
from __future__ import annotations

from datetime import datetime
from typing import List, Mapping, Optional, Sequence

from .models import NearbyEvent, VenueAnalysis, VenueCandidate

NEARBY_SCORE_THRESHOLD = 0.3
TEXT_SEARCH_SCORE_THRESHOLD = 0.4

TEXT_SEARCH = "text_search"

VENUE_TYPE_SCORES: Mapping[str, float] = {
    "conference_center": 0.9,
    "convention_center": 0.9,
    "exhibition_center": 0.8,
    "event_venue": 0.8,
    "university": 0.6,
    "stadium": 0.7,
    "theater": 0.6,
    "community_center": 0.5,
    "museum": 0.4,
    "art_gallery": 0.4,
    "library": 0.3,
}

# (tier, per-keyword weight, keywords)
NAME_KEYWORD_TIERS: Sequence[tuple] = (
    ("high", 0.3, ("conference", "convention", "expo", "exhibition", "summit", "congress")),
    ("medium", 0.2, ("center", "hall", "forum", "symposium", "seminar", "workshop")),
    ("low", 0.1, ("pavilion", "auditorium", "arena", "theater", "gallery")),
)

OPERATIONAL_BONUS = 0.15
TEXT_SEARCH_BONUS = 0.1
ACCESSIBLE_PRICING_BONUS = 0.05

HIGH_CONFIDENCE = 0.7
MEDIUM_CONFIDENCE = 0.4


def confidence_for(score: float) -> str:
    if score >= HIGH_CONFIDENCE:
        return "high"
    if score >= MEDIUM_CONFIDENCE:
        return "medium"
    return "low"


def _rating_bonus(venue: VenueCandidate) -> tuple:
    rating = venue.rating
    reviews = venue.user_ratings_total
    if not rating or not reviews:
        return 0.0, None
    if rating >= 4.0 and reviews >= 200:
        return 0.25, "highly_rated_popular"
    if rating >= 3.5 and reviews >= 50:
        return 0.15, "well_rated"
    if reviews >= 20:
        return 0.1, "has_reviews"
    return 0.0, None


def analyze_event_venue(venue: VenueCandidate, search_type: Optional[str] = None) -> VenueAnalysis:
    """Score how likely a venue is hosting an event, in ``[0, 1]``.

    The score is a plain sum of fixed contributions: best matching venue type,
    event keywords in the name, operational status, rating/popularity, how the
    venue was found and its price level.
    """

    score = 0.0
    indicators: List[str] = []

    type_score = 0.0
    for venue_type in venue.types:
        weight = VENUE_TYPE_SCORES.get(venue_type)
        if weight:
            type_score = max(type_score, weight)
            indicators.append(f"venue_type_{venue_type}")
    score += type_score

    name = venue.name.lower()
    for tier, weight, keywords in NAME_KEYWORD_TIERS:
        for keyword in keywords:
            if keyword in name:
                score += weight
                indicators.append(f"{tier}_keyword_{keyword}")

    if venue.business_status == "OPERATIONAL":
        score += OPERATIONAL_BONUS
        indicators.append("operational")

    bonus, indicator = _rating_bonus(venue)
    if indicator:
        score += bonus
        indicators.append(indicator)

    if search_type == TEXT_SEARCH:
        score += TEXT_SEARCH_BONUS
        indicators.append("text_search_result")

    if venue.price_level is None or venue.price_level <= 2:
        score += ACCESSIBLE_PRICING_BONUS
        indicators.append("accessible_pricing")

    return VenueAnalysis(
        event_score=max(0.0, min(score, 1.0)),
        confidence=confidence_for(score),
        indicators=indicators,
    )


def inclusion_threshold(search_type: Optional[str]) -> float:
    return TEXT_SEARCH_SCORE_THRESHOLD if search_type == TEXT_SEARCH else NEARBY_SCORE_THRESHOLD


def temporal_relevance(now: datetime) -> float:
    """How likely it is that business events are running at ``now``."""

    score = 0.0
    if 8 <= now.hour <= 18:
        score += 0.3
    elif 19 <= now.hour <= 22:
        score += 0.2

    weekday = now.weekday()  # Monday == 0
    if weekday <= 3:
        score += 0.3
    elif weekday == 4:
        score += 0.2
    else:
        score += 0.1

    if now.month in (3, 4, 5, 9, 10, 11):
        score += 0.2

    return min(score, 1.0)


def overall_event_score(event: NearbyEvent) -> float:
    """Rank score combining likelihood, timing, popularity, proximity and contacts."""

    score = event.event_score * 0.4
    score += (event.temporal_relevance or 0.0) * 0.2

    rating = event.venue.rating
    reviews = event.venue.user_ratings_total
    if rating and reviews:
        score += (rating / 5) * min(reviews / 100, 1) * 0.2

    score += max(0.0, 1 - (event.distance_km or 0.0) / 5) * 0.1
    score += min(len(event.contact_ids) / 10, 1) * 0.1

    return min(score, 1.0)
