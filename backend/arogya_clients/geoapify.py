from __future__ import annotations

import logging
import os
from typing import Any

import httpx

from arogya_core.errors import ExternalQueryFailure, GeocodeFailure
from arogya_core.models import Coordinate, RawPlace

logger = logging.getLogger(__name__)

GEOAPIFY_BASE_URL = "https://api.geoapify.com"


def _safe_float(value: Any) -> float | None:
    try:
        if value is None:
            return None
        return float(value)
    except (TypeError, ValueError):
        return None


def _api_key_from_env() -> str:
    return (os.getenv("GEOAPIFY_API_KEY") or os.getenv("Geoapify_API_KEY") or "").strip()


def _timeout_from_env() -> float:
    return float(os.getenv("AROGYA_HTTP_TIMEOUT_SECONDS", "8.0"))


def _feature_coordinate(feature: dict[str, Any]) -> tuple[float, float] | None:
    geometry = feature.get("geometry") if isinstance(feature.get("geometry"), dict) else {}
    coords = geometry.get("coordinates")
    if not isinstance(coords, (list, tuple)) or len(coords) < 2:
        return None
    lon = _safe_float(coords[0])
    lat = _safe_float(coords[1])
    if lat is None or lon is None:
        return None
    return lat, lon


def _text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def place_from_feature(feature: dict[str, Any]) -> RawPlace | None:
    coordinate = _feature_coordinate(feature)
    if coordinate is None:
        return None
    props = feature.get("properties") if isinstance(feature.get("properties"), dict) else {}
    datasource = props.get("datasource") if isinstance(props.get("datasource"), dict) else {}
    raw = datasource.get("raw") if isinstance(datasource.get("raw"), dict) else {}
    contact = props.get("contact") if isinstance(props.get("contact"), dict) else {}
    return RawPlace(
        latitude=coordinate[0],
        longitude=coordinate[1],
        name=_text(props.get("name")),
        address_line1=_text(props.get("address_line1")),
        address_line2=_text(props.get("address_line2")),
        street=_text(props.get("street")),
        city=_text(props.get("city")),
        formatted=_text(props.get("formatted")),
        phone=_text(raw.get("phone")) or _text(contact.get("phone")),
    )


class GeoapifyGeocoder:
    def __init__(self, api_key: str | None = None, timeout: float | None = None) -> None:
        self.api_key = api_key if api_key is not None else _api_key_from_env()
        self.timeout = timeout if timeout is not None else _timeout_from_env()

    def geocode(self, query_text: str) -> Coordinate:
        if not self.api_key:
            raise GeocodeFailure(query_text, "geocoding API key is not configured")
        try:
            response = httpx.get(
                f"{GEOAPIFY_BASE_URL}/v1/geocode/search",
                params={"text": query_text, "apiKey": self.api_key},
                timeout=self.timeout,
            )
            response.raise_for_status()
            payload = response.json() if response.content else {}
        except httpx.HTTPStatusError as exc:
            raise GeocodeFailure(query_text, f"HTTP {exc.response.status_code}") from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise GeocodeFailure(query_text, str(exc) or exc.__class__.__name__) from exc

        features = payload.get("features") if isinstance(payload, dict) else None
        if not isinstance(features, list) or not features or not isinstance(features[0], dict):
            raise GeocodeFailure(query_text, "no results")
        coordinate = _feature_coordinate(features[0])
        if coordinate is None:
            raise GeocodeFailure(query_text, "result has no coordinates")
        return Coordinate(latitude=coordinate[0], longitude=coordinate[1])


class GeoapifyPlacesClient:
    def __init__(self, api_key: str | None = None, timeout: float | None = None) -> None:
        self.api_key = api_key if api_key is not None else _api_key_from_env()
        self.timeout = timeout if timeout is not None else _timeout_from_env()

    def query(self, category: str, center: Coordinate, radius_meters: int, limit: int) -> list[RawPlace]:
        if not self.api_key:
            raise ExternalQueryFailure("geoapify_places", "places API key is not configured")
        lon, lat = center.longitude, center.latitude
        try:
            response = httpx.get(
                f"{GEOAPIFY_BASE_URL}/v2/places",
                params={
                    "categories": category,
                    "filter": f"circle:{lon},{lat},{radius_meters}",
                    "bias": f"proximity:{lon},{lat}",
                    "limit": max(1, limit),
                    "apiKey": self.api_key,
                },
                timeout=self.timeout,
            )
            response.raise_for_status()
            payload = response.json() if response.content else {}
        except httpx.HTTPStatusError as exc:
            raise ExternalQueryFailure(
                "geoapify_places", f"HTTP {exc.response.status_code}", exc.response.status_code
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise ExternalQueryFailure("geoapify_places", str(exc) or exc.__class__.__name__) from exc

        features = payload.get("features") if isinstance(payload, dict) else None
        if not isinstance(features, list):
            return []
        places: list[RawPlace] = []
        for feature in features:
            if not isinstance(feature, dict):
                continue
            place = place_from_feature(feature)
            if place is not None:
                places.append(place)
        logger.debug("places %s r=%dm returned %d features", category, radius_meters, len(places))
        return places
