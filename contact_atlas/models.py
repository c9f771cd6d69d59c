"""Unified data models for contacts, groups, venue candidates, and detected events."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional


# --- Core Geographic Models ---

@dataclass(slots=True, frozen=True)
class GeoPoint:
    """A latitude/longitude pair in decimal degrees."""

    latitude: float
    longitude: float

    def is_valid(self) -> bool:
        """Return ``True`` when both coordinates are finite and in range."""
        try:
            lat = float(self.latitude)
            lng = float(self.longitude)
        except (TypeError, ValueError):
            return False
        if not (math.isfinite(lat) and math.isfinite(lng)):
            return False
        return -90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0

    def key(self, precision: int = 4) -> str:
        """Rounded key used to collapse near-identical search locations."""
        return f"{self.latitude:.{precision}f},{self.longitude:.{precision}f}"

    def as_dict(self) -> Dict[str, float]:
        return {"lat": self.latitude, "lng": self.longitude}

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> Optional["GeoPoint"]:
        """Build a point from ``latitude``/``longitude`` or ``lat``/``lng`` keys."""

        if not data:
            return None
        lat = data.get("latitude", data.get("lat"))
        lng = data.get("longitude", data.get("lng", data.get("lon")))
        if lat is None or lng is None:
            return None
        try:
            return cls(float(lat), float(lng))
        except (TypeError, ValueError):
            return None


# --- Contact Models ---

class ContactStatus(str, Enum):
    NEW = "new"
    VIEWED = "viewed"
    ARCHIVED = "archived"

    @classmethod
    def parse(cls, value: Any) -> "ContactStatus":
        if isinstance(value, ContactStatus):
            return value
        text = str(value or "").strip().lower()
        for status in cls:
            if status.value == text:
                return status
        return cls.NEW


@dataclass(slots=True)
class EventInfo:
    """Event a contact was met at, as recorded on the contact itself."""

    event_name: str
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class Contact:
    """A single contact owned by a user account."""

    id: str
    name: str
    email: Optional[str] = None
    company: Optional[str] = None
    location: Optional[GeoPoint] = None
    city: Optional[str] = None
    country: Optional[str] = None
    event_info: Optional[EventInfo] = None
    status: ContactStatus = ContactStatus.NEW

    def has_location(self) -> bool:
        return self.location is not None and self.location.is_valid()

    def initials(self) -> str:
        words = [word for word in (self.name or "").split(" ") if word]
        return "".join(word[0].upper() for word in words[:2])

    def display_name(self) -> str:
        return self.name or self.email or f"(Contact {self.id})"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Contact":
        """Build a contact from a document-store style dictionary."""

        location_data = data.get("location") or {}
        location = GeoPoint.from_mapping(location_data)
        event_data = data.get("eventInfo") or data.get("event_info") or {}
        event_name = event_data.get("eventName") or event_data.get("event_name")
        event_info = None
        if event_name:
            metadata = {
                key: value
                for key, value in event_data.items()
                if key not in {"eventName", "event_name"}
            }
            event_info = EventInfo(event_name=str(event_name), metadata=metadata)

        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or ""),
            email=data.get("email") or None,
            company=data.get("company") or None,
            location=location,
            city=location_data.get("city") or data.get("city") or None,
            country=location_data.get("country") or data.get("country") or None,
            event_info=event_info,
            status=ContactStatus.parse(data.get("status")),
        )


# --- Group Models ---

class GroupType(str, Enum):
    CUSTOM = "custom"
    EVENT = "event"
    COMPANY = "company"
    AUTO = "auto"

    @classmethod
    def parse(cls, value: Any) -> "GroupType":
        if isinstance(value, GroupType):
            return value
        text = str(value or "").strip().lower()
        for group_type in cls:
            if group_type.value == text:
                return group_type
        return cls.CUSTOM


def unique_ids(values: Iterable[Any]) -> List[str]:
    """Return identifiers as strings with duplicates removed, keeping order."""

    seen: Dict[str, None] = {}
    for value in values:
        if value is None:
            continue
        seen.setdefault(str(value), None)
    return list(seen)


@dataclass
class Group:
    """A named, ordered set of contacts."""

    id: str
    name: str
    type: GroupType = GroupType.CUSTOM
    contact_ids: List[str] = field(default_factory=list)
    description: str = ""
    event_data: Optional[Dict[str, Any]] = None
    auto_generated: bool = False
    reason: Optional[str] = None
    created_at: Optional[str] = None
    last_modified: Optional[str] = None

    def __post_init__(self) -> None:
        self.type = GroupType.parse(self.type)
        self.contact_ids = unique_ids(self.contact_ids)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "description": self.description,
            "contactIds": list(self.contact_ids),
            "eventData": self.event_data,
        }
        if self.auto_generated:
            payload["autoGenerated"] = True
        if self.reason:
            payload["reason"] = self.reason
        if self.created_at:
            payload["createdAt"] = self.created_at
        if self.last_modified:
            payload["lastModified"] = self.last_modified
        return payload

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Group":
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or ""),
            type=GroupType.parse(data.get("type")),
            contact_ids=list(data.get("contactIds") or data.get("contact_ids") or []),
            description=str(data.get("description") or ""),
            event_data=data.get("eventData") or data.get("event_data"),
            auto_generated=bool(data.get("autoGenerated", False)),
            reason=data.get("reason"),
            created_at=data.get("createdAt"),
            last_modified=data.get("lastModified"),
        )


# --- Venue Search Models ---

@dataclass(slots=True)
class VenueCandidate:
    """External place search result evaluated for event likelihood."""

    place_id: str
    name: str
    location: GeoPoint
    types: List[str] = field(default_factory=list)
    rating: Optional[float] = None
    user_ratings_total: Optional[int] = None
    business_status: Optional[str] = None
    vicinity: Optional[str] = None
    price_level: Optional[int] = None
    photos: List[Dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_places_result(cls, place: Mapping[str, Any]) -> Optional["VenueCandidate"]:
        """Translate a Places web service result; ``None`` if unusable."""

        name = place.get("name")
        geometry = place.get("geometry") or {}
        location = GeoPoint.from_mapping(geometry.get("location"))
        place_id = place.get("place_id")
        if not name or location is None or not place_id:
            return None

        photos = [
            {
                "reference": photo.get("photo_reference"),
                "height": photo.get("height"),
                "width": photo.get("width"),
            }
            for photo in (place.get("photos") or [])[:3]
        ]
        return cls(
            place_id=str(place_id),
            name=str(name),
            location=location,
            types=[str(value) for value in place.get("types") or []],
            rating=place.get("rating"),
            user_ratings_total=place.get("user_ratings_total"),
            business_status=place.get("business_status"),
            vicinity=place.get("vicinity") or place.get("formatted_address"),
            price_level=place.get("price_level"),
            photos=photos,
        )


@dataclass(slots=True)
class VenueAnalysis:
    event_score: float
    confidence: str
    indicators: List[str] = field(default_factory=list)


@dataclass(slots=True)
class LocationQuery:
    """A point to search around together with the contacts located there."""

    latitude: Optional[float]
    longitude: Optional[float]
    contact_ids: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def point(self) -> Optional[GeoPoint]:
        if self.latitude is None or self.longitude is None:
            return None
        point = GeoPoint(self.latitude, self.longitude)
        return point if point.is_valid() else None


@dataclass
class NearbyEvent:
    """A venue that scored as a likely event near one or more contacts."""

    venue: VenueCandidate
    contact_ids: List[str]
    event_score: float
    confidence: str
    indicators: List[str] = field(default_factory=list)
    venue_type: Optional[str] = None
    search_query: Optional[str] = None
    distance_km: float = 0.0
    temporal_relevance: float = 0.0
    overall_score: float = 0.0
    sources: List[str] = field(default_factory=list)

    @property
    def id(self) -> str:
        return self.venue.place_id

    @property
    def name(self) -> str:
        return self.venue.name

    @property
    def is_text_search(self) -> bool:
        return self.search_query is not None

    @property
    def is_active(self) -> bool:
        return self.venue.business_status == "OPERATIONAL"

    def grouping_potential(self) -> Dict[str, Any]:
        return {
            "can_create_group": len(self.contact_ids) >= 2,
            "suggested_group_name": f"{self.name} Attendees",
            "group_size": len(self.contact_ids),
            "group_type": GroupType.EVENT.value,
            "confidence": self.confidence,
        }

    def event_context(self) -> Dict[str, Any]:
        return {
            "is_likely_current_event": self.temporal_relevance > 0.6,
            "is_popular_venue": (self.venue.user_ratings_total or 0) > 100,
            "is_high_quality_venue": (self.venue.rating or 0) > 4.0,
            "has_photos": bool(self.venue.photos),
            "search_method": "text_search" if self.is_text_search else "type_search",
        }

    def as_event_data(self) -> Dict[str, Any]:
        """Compact representation stored on an event group."""
        return {
            "id": self.id,
            "name": self.name,
            "location": self.venue.location.as_dict(),
            "types": list(self.venue.types),
            "vicinity": self.venue.vicinity,
            "eventScore": self.event_score,
            "confidence": self.confidence,
        }

    def as_row(self) -> Dict[str, Any]:
        """Return a flat representation for tabular export."""
        return {
            "event_id": self.id,
            "name": self.name,
            "latitude": self.venue.location.latitude,
            "longitude": self.venue.location.longitude,
            "vicinity": self.venue.vicinity or "",
            "types": ", ".join(self.venue.types),
            "rating": self.venue.rating,
            "user_ratings_total": self.venue.user_ratings_total,
            "business_status": self.venue.business_status or "",
            "event_score": round(self.event_score, 4),
            "overall_score": round(self.overall_score, 4),
            "confidence": self.confidence,
            "venue_type": self.venue_type or "",
            "search_query": self.search_query or "",
            "distance_km": round(self.distance_km, 3),
            "contact_ids": ", ".join(self.contact_ids),
            "indicators": ", ".join(self.indicators),
            "sources": ", ".join(self.sources),
        }


@dataclass
class DetectionAnalytics:
    locations_processed: int = 0
    events_found: int = 0
    high_confidence_events: int = 0
    venue_types: Dict[str, int] = field(default_factory=dict)
    average_event_score: float = 0.0


@dataclass
class NearbyEventsReport:
    """Result of a nearby event search over a set of locations."""

    events: List[NearbyEvent] = field(default_factory=list)
    analytics: DetectionAnalytics = field(default_factory=DetectionAnalytics)
    errors: List[Dict[str, str]] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
