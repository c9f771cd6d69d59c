"""Venue search backed by the Google Places web service."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

import requests

from ..models import GeoPoint, VenueCandidate
from .base import MissingCredentialsError, PlacesApiError, PlacesClientConfig, QuotaExceededError

LOGGER = logging.getLogger(__name__)

_QUOTA_STATUSES = {"OVER_QUERY_LIMIT", "RESOURCE_EXHAUSTED"}

# Approximate cost per request in USD, used for usage reporting only.
COST_PER_REQUEST = 0.017


class GooglePlacesClient:
    """Search for venues near a location with the Places nearby and text search endpoints."""

    name = "google_places"
    requires_api_key = True

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        config: Optional[PlacesClientConfig | Dict[str, Any]] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        if isinstance(config, dict):
            config = PlacesClientConfig(**config)
        self.config = config or PlacesClientConfig()
        if api_key:
            self.config.api_key = api_key
        if not self.config.api_key:
            raise MissingCredentialsError(
                "Google Places requires an API key. Set GOOGLE_MAPS_API_KEY or pass 'api_key'."
            )
        self._session = session or requests.Session()
        self.request_count = 0

    def __enter__(self) -> "GooglePlacesClient":
        return self

    def __exit__(self, exc_type, exc, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        self._session.close()

    def search_nearby(self, location: GeoPoint, radius: float, venue_type: Optional[str] = None) -> List[VenueCandidate]:
        params: Dict[str, Any] = {
            "location": f"{location.latitude},{location.longitude}",
            "radius": int(radius),
        }
        if venue_type:
            params["type"] = venue_type
        LOGGER.debug("Nearby search at %s (radius=%s, type=%s)", params["location"], radius, venue_type)
        return self._search("nearbysearch", params)

    def search_text(self, query: str, location: GeoPoint, radius: float) -> List[VenueCandidate]:
        params = {
            "query": query,
            "location": f"{location.latitude},{location.longitude}",
            "radius": int(radius),
        }
        LOGGER.debug("Text search %r near %s", query, params["location"])
        return self._search("textsearch", params)

    def _search(self, endpoint: str, params: Dict[str, Any]) -> List[VenueCandidate]:
        payload = self._request(endpoint, params)
        venues: List[VenueCandidate] = []
        for place in payload.get("results", [])[: self.config.max_results]:
            venue = VenueCandidate.from_places_result(place)
            if venue is not None:
                venues.append(venue)
        return venues

    def _request(self, endpoint: str, params: Dict[str, Any]) -> Mapping[str, Any]:
        url = f"{self.config.base_url.rstrip('/')}/{endpoint}/json"
        query = dict(params, key=self.config.api_key)
        if self.config.language:
            query["language"] = self.config.language

        self.request_count += 1
        try:
            response = self._session.get(url, params=query, timeout=self.config.timeout_seconds)
        except requests.exceptions.RequestException as exc:
            raise PlacesApiError(f"Places {endpoint} request failed: {exc}") from exc

        if response.status_code == 429:
            raise QuotaExceededError(f"Places {endpoint} quota exceeded (HTTP 429)")
        if not response.ok:
            raise PlacesApiError(f"Places {endpoint} failed: {response.status_code} - {response.reason}")

        try:
            payload = response.json()
        except ValueError as exc:
            raise PlacesApiError(f"Places {endpoint} returned invalid JSON") from exc

        status = payload.get("status", "OK")
        if status == "OK":
            return payload
        if status == "ZERO_RESULTS":
            return {"results": []}

        message = payload.get("error_message") or status
        if status in _QUOTA_STATUSES or "quota" in str(message).lower():
            raise QuotaExceededError(f"Places {endpoint} quota exceeded: {message}")
        raise PlacesApiError(f"Places {endpoint} failed: {status} - {message}")

    def reset_usage(self) -> None:
        self.request_count = 0

    def usage_stats(self) -> Dict[str, float]:
        return {
            "request_count": self.request_count,
            "estimated_cost": round(self.request_count * COST_PER_REQUEST, 4),
        }
