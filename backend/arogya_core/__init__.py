from .advisor import RecommendationAdvisor
from .distance import distance_km
from .enrichment import EnrichmentPipeline
from .errors import ArogyaError, EmptyResultSet, ExternalQueryFailure, GeocodeFailure, ParseFailure
from .keys import KeyRotator
from .models import (
    Coordinate,
    Enrichment,
    Facility,
    FacilityCandidate,
    NearbySearchResult,
    OriginProfile,
    PatientContext,
    RadiusPass,
    RawPlace,
    Recommendation,
)
from .profiles import HOSPITAL_PROFILE, PHARMACY_PROFILE, ProfileRegistry, SearchProfile, default_registry
from .schemas import Doctor, InventoryItem, MedicineSuggestion, SpecialtyMatch
from .search import FacilitySearchEngine
from .service import NearbyFacilityService
from .structured import parse_structured_response, strip_code_fences

__all__ = [
    "HOSPITAL_PROFILE",
    "PHARMACY_PROFILE",
    "ArogyaError",
    "Coordinate",
    "Doctor",
    "EmptyResultSet",
    "Enrichment",
    "EnrichmentPipeline",
    "ExternalQueryFailure",
    "Facility",
    "FacilityCandidate",
    "FacilitySearchEngine",
    "GeocodeFailure",
    "InventoryItem",
    "KeyRotator",
    "MedicineSuggestion",
    "NearbyFacilityService",
    "NearbySearchResult",
    "OriginProfile",
    "ParseFailure",
    "PatientContext",
    "ProfileRegistry",
    "RadiusPass",
    "RawPlace",
    "Recommendation",
    "RecommendationAdvisor",
    "SearchProfile",
    "SpecialtyMatch",
    "default_registry",
    "distance_km",
    "parse_structured_response",
    "strip_code_fences",
]
