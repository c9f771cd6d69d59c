import pytest
import requests

from contact_atlas.models import GeoPoint
from contact_atlas.places import (
    GooglePlacesClient,
    MissingCredentialsError,
    PlacesApiError,
    PlacesClientConfig,
    QuotaExceededError,
)

LOCATION = GeoPoint(40.7580, -74.0020)


class FakeResponse:
    def __init__(self, payload=None, status_code: int = 200, reason: str = "OK", json_error: bool = False) -> None:
        self._payload = payload or {}
        self.status_code = status_code
        self.reason = reason
        self._json_error = json_error

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def json(self):
        if self._json_error:
            raise ValueError("not json")
        return self._payload


class FakeSession:
    def __init__(self, *responses) -> None:
        self.responses = list(responses)
        self.requests = []
        self.closed = False

    def get(self, url, params=None, timeout=None):
        self.requests.append({"url": url, "params": params, "timeout": timeout})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def close(self) -> None:
        self.closed = True


def _place(place_id: str, **extra):
    place = {
        "place_id": place_id,
        "name": f"Venue {place_id}",
        "geometry": {"location": {"lat": 40.7577, "lng": -74.0027}},
        "types": ["convention_center"],
    }
    place.update(extra)
    return place


def test_missing_api_key_raises() -> None:
    with pytest.raises(MissingCredentialsError):
        GooglePlacesClient(session=FakeSession())


def test_nearby_search_builds_request_and_parses_results() -> None:
    session = FakeSession(
        FakeResponse(
            {
                "status": "OK",
                "results": [
                    _place("p1", rating=4.5, user_ratings_total=320, photos=[{"photo_reference": str(i)} for i in range(5)]),
                    {"name": "No geometry", "place_id": "p2"},
                    _place("p3", formatted_address="1 Main St"),
                ],
            }
        )
    )
    client = GooglePlacesClient("secret", session=session)

    venues = client.search_nearby(LOCATION, 1500.7, "convention_center")

    assert [venue.place_id for venue in venues] == ["p1", "p3"]
    assert len(venues[0].photos) == 3
    assert venues[1].vicinity == "1 Main St"
    request = session.requests[0]
    assert request["url"] == "https://maps.googleapis.com/maps/api/place/nearbysearch/json"
    assert request["params"] == {
        "location": "40.758,-74.002",
        "radius": 1500,
        "type": "convention_center",
        "key": "secret",
    }
    assert request["timeout"] == 10.0
    assert client.usage_stats() == {"request_count": 1, "estimated_cost": 0.017}


def test_text_search_uses_text_endpoint_and_language() -> None:
    session = FakeSession(FakeResponse({"status": "ZERO_RESULTS"}))
    client = GooglePlacesClient(config={"api_key": "secret", "language": "en"}, session=session)

    assert client.search_text("tech summit", LOCATION, 2000) == []
    request = session.requests[0]
    assert request["url"].endswith("/textsearch/json")
    assert request["params"]["query"] == "tech summit"
    assert request["params"]["language"] == "en"


def test_max_results_limits_parsed_venues() -> None:
    session = FakeSession(FakeResponse({"status": "OK", "results": [_place(str(i)) for i in range(5)]}))
    client = GooglePlacesClient("secret", config=PlacesClientConfig(max_results=2), session=session)

    assert len(client.search_nearby(LOCATION, 1000)) == 2


@pytest.mark.parametrize(
    "response, error",
    [
        (FakeResponse({"status": "OVER_QUERY_LIMIT", "error_message": "You have exceeded your quota"}), QuotaExceededError),
        (FakeResponse(status_code=429, reason="Too Many Requests"), QuotaExceededError),
        (FakeResponse({"status": "REQUEST_DENIED", "error_message": "API key invalid"}), PlacesApiError),
        (FakeResponse(status_code=500, reason="Server Error"), PlacesApiError),
        (FakeResponse(json_error=True), PlacesApiError),
        (requests.exceptions.ConnectionError("offline"), PlacesApiError),
    ],
)
def test_errors_are_translated(response, error) -> None:
    client = GooglePlacesClient("secret", session=FakeSession(response))

    with pytest.raises(error):
        client.search_nearby(LOCATION, 1000)


def test_request_denied_is_not_reported_as_quota() -> None:
    client = GooglePlacesClient("secret", session=FakeSession(FakeResponse({"status": "REQUEST_DENIED"})))

    with pytest.raises(PlacesApiError) as excinfo:
        client.search_text("expo", LOCATION, 1000)
    assert not isinstance(excinfo.value, QuotaExceededError)


def test_context_manager_closes_session_and_reset_usage() -> None:
    session = FakeSession(FakeResponse({"status": "OK", "results": []}))

    with GooglePlacesClient("secret", session=session) as client:
        client.search_nearby(LOCATION, 1000)
        assert client.request_count == 1
        client.reset_usage()
        assert client.usage_stats()["request_count"] == 0

    assert session.closed
