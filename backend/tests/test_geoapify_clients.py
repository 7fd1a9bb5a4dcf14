from __future__ import annotations

from typing import Any

import httpx
import pytest

from arogya_clients.geoapify import GeoapifyGeocoder, GeoapifyPlacesClient
from arogya_core.errors import ExternalQueryFailure, GeocodeFailure
from arogya_core.models import Coordinate


class _FakeResponse:
    def __init__(
        self,
        *,
        status_code: int = 200,
        json_data: Any = None,
        url: str = "https://api.geoapify.test",
    ) -> None:
        self.status_code = status_code
        self._json_data = json_data
        self.url = url
        self.content = b"1"

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise httpx.HTTPStatusError("error", request=httpx.Request("GET", self.url), response=httpx.Response(self.status_code))

    def json(self) -> Any:
        return self._json_data


def _no_network(url: str, **kwargs):
    raise AssertionError(f"Unexpected URL: {url}")


def test_geocode_returns_first_feature_coordinate(monkeypatch):
    captured: dict[str, Any] = {}

    def fake_get(url: str, **kwargs):
        captured["url"] = url
        captured["params"] = kwargs.get("params")
        return _FakeResponse(
            json_data={
                "features": [
                    {"geometry": {"coordinates": [80.2707, 13.0827]}},
                    {"geometry": {"coordinates": [77.59, 12.97]}},
                ]
            }
        )

    monkeypatch.setattr("arogya_clients.geoapify.httpx.get", fake_get)
    coordinate = GeoapifyGeocoder(api_key="geo-key").geocode("600001, Tamil Nadu, India")

    assert coordinate == Coordinate(latitude=13.0827, longitude=80.2707)
    assert captured["url"].endswith("/v1/geocode/search")
    assert captured["params"] == {"text": "600001, Tamil Nadu, India", "apiKey": "geo-key"}


@pytest.mark.parametrize(
    ("response", "reason"),
    [
        (_FakeResponse(json_data={"features": []}), "no results"),
        (_FakeResponse(json_data={"features": [{"geometry": {}}]}), "result has no coordinates"),
        (_FakeResponse(status_code=401, json_data={}), "HTTP 401"),
    ],
)
def test_geocode_failures(monkeypatch, response, reason):
    monkeypatch.setattr("arogya_clients.geoapify.httpx.get", lambda url, **kwargs: response)

    with pytest.raises(GeocodeFailure) as excinfo:
        GeoapifyGeocoder(api_key="geo-key").geocode("999999, Nowhere, India")

    assert excinfo.value.reason == reason
    assert excinfo.value.query == "999999, Nowhere, India"


def test_geocode_without_key_never_calls_provider(monkeypatch):
    monkeypatch.setattr("arogya_clients.geoapify.httpx.get", _no_network)
    with pytest.raises(GeocodeFailure):
        GeoapifyGeocoder(api_key="").geocode("600001, India")


def test_key_is_read_from_either_env_spelling(monkeypatch):
    monkeypatch.delenv("GEOAPIFY_API_KEY", raising=False)
    monkeypatch.setenv("Geoapify_API_KEY", "legacy-key")
    assert GeoapifyPlacesClient().api_key == "legacy-key"

    monkeypatch.setenv("GEOAPIFY_API_KEY", "primary-key")
    assert GeoapifyGeocoder().api_key == "primary-key"


def test_places_query_builds_circle_filter_and_maps_features(monkeypatch):
    captured: dict[str, Any] = {}

    def fake_get(url: str, **kwargs):
        captured["url"] = url
        captured["params"] = kwargs.get("params")
        return _FakeResponse(
            json_data={
                "features": [
                    {
                        "geometry": {"coordinates": [80.241, 13.051]},
                        "properties": {
                            "name": "Apollo Clinic",
                            "formatted": "12 Main Road, Chennai",
                            "datasource": {"raw": {"phone": "+91 44 1234 5678"}},
                        },
                    },
                    {"geometry": {"coordinates": []}, "properties": {"name": "Broken"}},
                    {
                        "geometry": {"coordinates": ["80.25", "13.06"]},
                        "properties": {"address_line1": "Anna Salai", "contact": {"phone": "044 9999"}},
                    },
                ]
            }
        )

    monkeypatch.setattr("arogya_clients.geoapify.httpx.get", fake_get)
    places = GeoapifyPlacesClient(api_key="geo-key").query("healthcare.clinic", Coordinate(13.05, 80.24), 1000, 20)

    assert captured["url"].endswith("/v2/places")
    assert captured["params"]["filter"] == "circle:80.24,13.05,1000"
    assert captured["params"]["bias"] == "proximity:80.24,13.05"
    assert captured["params"]["categories"] == "healthcare.clinic"
    assert captured["params"]["limit"] == 20
    assert len(places) == 2
    assert places[0].name == "Apollo Clinic"
    assert places[0].phone == "+91 44 1234 5678"
    assert (places[1].latitude, places[1].longitude) == (13.06, 80.25)
    assert places[1].address_line1 == "Anna Salai"
    assert places[1].phone == "044 9999"


def test_places_http_error_is_reported_with_status(monkeypatch):
    monkeypatch.setattr(
        "arogya_clients.geoapify.httpx.get",
        lambda url, **kwargs: _FakeResponse(status_code=503, json_data={}),
    )
    with pytest.raises(ExternalQueryFailure) as excinfo:
        GeoapifyPlacesClient(api_key="geo-key").query("healthcare", Coordinate(13.05, 80.24), 5000, 20)

    assert excinfo.value.status_code == 503
    assert excinfo.value.service == "geoapify_places"


def test_places_transport_error_is_wrapped(monkeypatch):
    def fake_get(url: str, **kwargs):
        raise httpx.ConnectTimeout("timed out")

    monkeypatch.setattr("arogya_clients.geoapify.httpx.get", fake_get)
    with pytest.raises(ExternalQueryFailure, match="timed out"):
        GeoapifyPlacesClient(api_key="geo-key").query("healthcare", Coordinate(13.05, 80.24), 5000, 20)


def test_places_without_key_never_calls_provider(monkeypatch):
    monkeypatch.setattr("arogya_clients.geoapify.httpx.get", _no_network)
    with pytest.raises(ExternalQueryFailure):
        GeoapifyPlacesClient(api_key="").query("healthcare", Coordinate(13.05, 80.24), 1000, 20)
