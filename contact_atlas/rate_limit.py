"""Utilities for applying delay and rate limiting to venue provider calls."""
from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

from .models import GeoPoint, VenueCandidate


@dataclass
class DelayPolicy:
    """Fixed pause applied after each call."""

    delay_seconds: float = 0.0

    def wait(self, sleep: Callable[[float], None] = time.sleep) -> None:
        if self.delay_seconds > 0:
            sleep(self.delay_seconds)


class RateLimiter:
    """Enforces a minimum interval between calls."""

    def __init__(self, calls_per_minute: Optional[float]) -> None:
        self._interval = 60.0 / float(calls_per_minute) if calls_per_minute else 0.0
        self._lock = threading.Lock()
        self._next_available = 0.0

    @property
    def interval(self) -> float:
        return self._interval

    def acquire(self) -> None:
        if self._interval <= 0:
            return
        with self._lock:
            now = time.monotonic()
            if now < self._next_available:
                time.sleep(self._next_available - now)
                now = time.monotonic()
            self._next_available = now + self._interval


class RateLimitedProvider:
    """Wrapper that enforces delay and rate limiting when invoking a venue provider."""

    def __init__(
        self,
        provider,
        *,
        display_name: Optional[str] = None,
        delay_policy: Optional[DelayPolicy] = None,
        rate_limiter: Optional[RateLimiter] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._provider = provider
        self._display_name = display_name
        self._delay_policy = delay_policy or DelayPolicy()
        self._rate_limiter = rate_limiter or RateLimiter(None)
        self._sleep = sleep

    @property
    def name(self) -> str:
        if self._display_name:
            return self._display_name
        return getattr(self._provider, "name", self._provider.__class__.__name__)

    @property
    def provider(self):
        return self._provider

    def search_nearby(self, location: GeoPoint, radius: float, venue_type: Optional[str] = None) -> List[VenueCandidate]:
        self._rate_limiter.acquire()
        try:
            return self._provider.search_nearby(location, radius, venue_type)
        finally:
            self._delay_policy.wait(self._sleep)

    def search_text(self, query: str, location: GeoPoint, radius: float) -> List[VenueCandidate]:
        self._rate_limiter.acquire()
        try:
            return self._provider.search_text(query, location, radius)
        finally:
            self._delay_policy.wait(self._sleep)

    def close(self) -> None:
        """Release the wrapped provider's resources, if it holds any."""

        close = getattr(self._provider, "close", None)
        if callable(close):
            close()

    def __getattr__(self, item):  # pragma: no cover - simple delegation
        return getattr(self._provider, item)
