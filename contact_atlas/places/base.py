"""Common configuration and errors shared by venue search providers."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..config import ConfigurationError


class PlacesApiError(RuntimeError):
    """Raised when a venue search request fails."""


class QuotaExceededError(PlacesApiError):
    """Raised when the provider reports that the API quota is exhausted."""


class MissingCredentialsError(ConfigurationError):
    """Raised when a provider that needs an API key has none."""


@dataclass
class PlacesClientConfig:
    """Runtime options for HTTP based venue providers."""

    api_key: Optional[str] = None
    base_url: str = "https://maps.googleapis.com/maps/api/place"
    timeout_seconds: float = 10.0
    max_results: int = 20
    language: Optional[str] = None
