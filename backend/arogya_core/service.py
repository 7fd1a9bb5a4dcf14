from __future__ import annotations

import logging
import os
from typing import Sequence

from .advisor import RecommendationAdvisor
from .enrichment import EnrichmentPipeline
from .errors import EmptyResultSet, GeocodeFailure
from .fallbacks import mock_facilities
from .models import (
    Coordinate,
    Facility,
    Geocoder,
    NearbySearchResult,
    OriginProfile,
    PatientContext,
    Recommendation,
)
from .profiles import ProfileRegistry, SearchProfile, default_registry
from .search import FacilitySearchEngine

logger = logging.getLogger(__name__)


def build_geocode_query(district: str, pincode: str, state: str) -> str:
    parts = [part.strip() for part in (district, pincode, state) if part and part.strip()]
    parts.append("India")
    return ", ".join(parts)


class NearbyFacilityService:
    def __init__(
        self,
        *,
        geocoder: Geocoder,
        engine: FacilitySearchEngine,
        enrichment: EnrichmentPipeline,
        advisor: RecommendationAdvisor,
        profiles: ProfileRegistry | None = None,
    ) -> None:
        self.geocoder = geocoder
        self.engine = engine
        self.enrichment = enrichment
        self.advisor = advisor
        self.profiles = profiles or default_registry()
        self.disable_external = os.getenv("AROGYA_DISABLE_EXTERNAL", "false").lower() in {"1", "true", "yes"}

    def find_nearby_facilities(self, origin: OriginProfile, kind: str) -> NearbySearchResult:
        profile = self.profiles.resolve(kind)
        if self.disable_external:
            return self._mock_result(profile, origin, "external_disabled")

        query_text = build_geocode_query(origin.district, origin.pincode, origin.state)
        try:
            center = self.geocoder.geocode(query_text)
        except GeocodeFailure as exc:
            logger.warning("geocoding failed, using mock %s data: %s", profile.kind, exc)
            return self._mock_result(profile, origin, "geocode_failed")

        logger.info("searching %s near %.4f, %.4f", profile.kind, center.latitude, center.longitude)
        try:
            facilities = self._search(center, profile)
        except EmptyResultSet:
            logger.warning("no %s found near %s, using mock data", profile.kind, query_text)
            return self._mock_result(profile, origin, "no_live_results")

        enriched = self.enrichment.enrich_all(facilities, origin.patient)
        return NearbySearchResult(
            kind=profile.kind,
            facilities=enriched,
            using_live_data=True,
            fallback_reason=None,
        )

    def recommend(
        self,
        candidates: Sequence[Facility],
        patient: PatientContext,
        symptom_text: str = "",
    ) -> Recommendation:
        return self.advisor.recommend(candidates, patient, symptom_text)

    def _search(self, center: Coordinate, profile: SearchProfile) -> list[Facility]:
        candidates = self.engine.search(
            center,
            profile.categories,
            profile.radius_passes,
            profile.max_distance_km,
            profile.result_ceiling,
            collect_limit=profile.collect_limit,
            synthetic_prefix=profile.synthetic_name_prefix,
            default_name=profile.default_name,
        )
        if not candidates:
            raise EmptyResultSet(f"No {profile.kind} candidates within {profile.max_distance_km}km")
        return [profile.to_facility(candidate) for candidate in candidates]

    @staticmethod
    def _mock_result(profile: SearchProfile, origin: OriginProfile, reason: str) -> NearbySearchResult:
        return NearbySearchResult(
            kind=profile.kind,
            facilities=mock_facilities(profile.kind, origin),
            using_live_data=False,
            fallback_reason=reason,
        )
