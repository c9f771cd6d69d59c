"""Venue search providers used to find events near contacts."""

from .base import MissingCredentialsError, PlacesApiError, PlacesClientConfig, QuotaExceededError  # noqa: F401
from .google import GooglePlacesClient  # noqa: F401
from .sample import StaticVenueProvider  # noqa: F401

__all__ = [
    "GooglePlacesClient",
    "MissingCredentialsError",
    "PlacesApiError",
    "PlacesClientConfig",
    "QuotaExceededError",
    "StaticVenueProvider",
]
