"""Nearby event detection around contact locations."""

from .service import DEFAULT_EVENT_TYPES, NearbyEventFinder, VenueProviderProtocol, default_text_queries  # noqa: F401

__all__ = ["DEFAULT_EVENT_TYPES", "NearbyEventFinder", "VenueProviderProtocol", "default_text_queries"]
