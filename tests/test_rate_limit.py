import pytest

from contact_atlas.events import NearbyEventFinder
from contact_atlas.models import GeoPoint, LocationQuery, VenueCandidate
from contact_atlas.places import PlacesApiError
from contact_atlas.rate_limit import DelayPolicy, RateLimitedProvider, RateLimiter


class DummyProvider:
    name = "dummy"

    def __init__(self) -> None:
        self.calls = []
        self.result = [
            VenueCandidate(
                place_id="p1",
                name="Expo Center",
                location=GeoPoint(40.0, -74.0),
                types=["exhibition_center"],
            )
        ]
        self.usage = {"request_count": 0}

    def search_nearby(self, location, radius, venue_type=None):
        self.calls.append(("nearby", location, radius, venue_type))
        return self.result

    def search_text(self, query, location, radius):
        self.calls.append(("text", query, location, radius))
        return self.result


class FailingProvider(DummyProvider):
    def search_nearby(self, location, radius, venue_type=None):
        raise PlacesApiError("unavailable")


def test_rate_limited_provider_delegates_calls() -> None:
    provider = DummyProvider()
    wrapper = RateLimitedProvider(provider)
    location = GeoPoint(40.0, -74.0)

    nearby = wrapper.search_nearby(location, 500, "museum")
    text = wrapper.search_text("expo", location, 800)

    assert nearby is provider.result
    assert text is provider.result
    assert provider.calls == [("nearby", location, 500, "museum"), ("text", "expo", location, 800)]
    assert wrapper.name == "dummy"
    assert wrapper.provider is provider
    assert wrapper.usage == {"request_count": 0}


def test_rate_limited_provider_applies_delay_even_on_failure() -> None:
    sleeps = []
    wrapper = RateLimitedProvider(
        FailingProvider(),
        display_name="Flaky",
        delay_policy=DelayPolicy(delay_seconds=0.25),
        sleep=sleeps.append,
    )

    with pytest.raises(PlacesApiError):
        wrapper.search_nearby(GeoPoint(40.0, -74.0), 500)
    wrapper.search_text("expo", GeoPoint(40.0, -74.0), 500)

    assert sleeps == [0.25, 0.25]
    assert wrapper.name == "Flaky"


def test_rate_limiter_interval() -> None:
    assert RateLimiter(None).interval == 0
    assert RateLimiter(120).interval == 0.5

    limiter = RateLimiter(None)
    limiter.acquire()
    limiter.acquire()


def test_display_name_is_reported_as_event_source() -> None:
    wrapper = RateLimitedProvider(DummyProvider(), display_name="Primary Places")
    finder = NearbyEventFinder([wrapper], event_types=["exhibition_center"], include_text_search=False)

    report = finder.find([LocationQuery(40.0, -74.0, ["a"])])

    assert [event.sources for event in report.events] == [["Primary Places"]]


def test_rate_limited_provider_close_releases_wrapped_provider() -> None:
    class ClosingProvider(DummyProvider):
        closed = False

        def close(self) -> None:
            self.closed = True

    provider = ClosingProvider()
    RateLimitedProvider(provider).close()
    assert provider.closed

    RateLimitedProvider(DummyProvider()).close()
