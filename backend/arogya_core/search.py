from __future__ import annotations

import logging
import os
import re
import time
from typing import Callable, Sequence

from .distance import distance_km
from .models import NO_ADDRESS, NO_PHONE, Coordinate, FacilityCandidate, PlacesClient, RadiusPass, RawPlace

logger = logging.getLogger(__name__)

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]")


def _clean(value: str | None) -> str:
    return (value or "").strip()


def synthesize_name(raw: RawPlace, distance: float, *, prefix: str, default_name: str) -> str:
    name = _clean(raw.name) or _clean(raw.address_line1) or _clean(raw.street) or default_name
    # Provider ids and house numbers are not useful display names.
    if name.isdigit() or len(name) < 3:
        name = f"{prefix} {int(distance * 10)}"
    return name


def dedup_key(name: str, coordinate: Coordinate) -> str:
    normalized = _NON_ALNUM_RE.sub("", name.lower())
    return f"{normalized}-{coordinate.latitude:.3f}-{coordinate.longitude:.3f}"


def extract_address(raw: RawPlace) -> str:
    street_city = f"{_clean(raw.street)} {_clean(raw.city)}".strip()
    return _clean(raw.formatted) or _clean(raw.address_line2) or street_city or NO_ADDRESS


def build_candidate(
    raw: RawPlace,
    origin: Coordinate,
    category: str,
    *,
    synthetic_prefix: str = "Facility",
    default_name: str = "Healthcare Center",
) -> FacilityCandidate:
    coordinate = Coordinate(raw.latitude, raw.longitude)
    distance = distance_km(origin, coordinate)
    name = synthesize_name(raw, distance, prefix=synthetic_prefix, default_name=default_name)
    return FacilityCandidate(
        name=name,
        address=extract_address(raw),
        coordinate=coordinate,
        distance_km=distance,
        phone=_clean(raw.phone) or NO_PHONE,
        category=category,
        dedup_key=dedup_key(name, coordinate),
    )


class FacilitySearchEngine:
    def __init__(
        self,
        places: PlacesClient,
        *,
        delay_seconds: float | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.places = places
        if delay_seconds is None:
            delay_seconds = float(os.getenv("AROGYA_SEARCH_DELAY_SECONDS", "0.1"))
        self.delay_seconds = max(0.0, delay_seconds)
        self._sleep = sleep

    def search(
        self,
        origin: Coordinate,
        categories: Sequence[str],
        radius_passes: Sequence[RadiusPass],
        max_distance_km: float,
        result_ceiling: int,
        *,
        collect_limit: int | None = None,
        synthetic_prefix: str = "Facility",
        default_name: str = "Healthcare Center",
    ) -> list[FacilityCandidate]:
        if result_ceiling <= 0:
            return []
        limit = collect_limit if collect_limit is not None else result_ceiling
        passes = sorted(radius_passes, key=lambda item: item.radius_meters)
        found: dict[str, FacilityCandidate] = {}
        queries_issued = 0

        for category in categories:
            for radius_pass in passes:
                if queries_issued:
                    self._sleep(self.delay_seconds)
                queries_issued += 1
                rows = self._query(category, origin, radius_pass)
                for raw in rows:
                    candidate = build_candidate(
                        raw,
                        origin,
                        category,
                        synthetic_prefix=synthetic_prefix,
                        default_name=default_name,
                    )
                    if candidate.distance_km > max_distance_km:
                        continue
                    if candidate.dedup_key in found:
                        continue
                    found[candidate.dedup_key] = candidate
                if len(found) >= limit:
                    break
            if len(found) >= limit:
                break

        ranked = sorted(found.values(), key=lambda item: item.distance_km)
        logger.info("facility search found %d unique candidates after %d queries", len(ranked), queries_issued)
        return ranked[:result_ceiling]

    def _query(self, category: str, origin: Coordinate, radius_pass: RadiusPass) -> Sequence[RawPlace]:
        try:
            rows = self.places.query(category, origin, radius_pass.radius_meters, radius_pass.per_query_limit)
        except Exception as exc:
            logger.warning("places query skipped (%s, %dm): %s", category, radius_pass.radius_meters, exc)
            return []
        if not rows:
            logger.debug("places query empty (%s, %dm)", category, radius_pass.radius_meters)
            return []
        return rows
