from __future__ import annotations

from dataclasses import dataclass

from .models import Facility, FacilityCandidate, FacilityKind, RadiusPass

HOSPITAL_FACILITIES = "ICU, Emergency, OPD, Lab, X-Ray, Pharmacy, CT Scan"
CLINIC_FACILITIES = "OPD, Consultation, Lab, Pharmacy"
PHARMACY_FACILITIES = "Prescription & OTC medicines"


def is_hospital_name(name: str) -> bool:
    return "hospital" in (name or "").lower()


@dataclass(frozen=True)
class SearchProfile:
    kind: FacilityKind
    categories: tuple[str, ...]
    radius_passes: tuple[RadiusPass, ...]
    max_distance_km: float
    result_ceiling: int
    collect_limit: int
    synthetic_name_prefix: str
    default_name: str

    def to_facility(self, candidate: FacilityCandidate) -> Facility:
        if self.kind == "hospital":
            full_hospital = is_hospital_name(candidate.name)
            emergency = full_hospital
            description = HOSPITAL_FACILITIES if full_hospital else CLINIC_FACILITIES
        else:
            emergency = False
            description = PHARMACY_FACILITIES
        return Facility(
            name=candidate.name,
            address=candidate.address,
            coordinate=candidate.coordinate,
            distance_km=candidate.distance_km,
            phone=candidate.phone,
            category=candidate.category,
            kind=self.kind,
            emergency_capable=emergency,
            facilities_description=description,
        )


HOSPITAL_PROFILE = SearchProfile(
    kind="hospital",
    categories=("healthcare.hospital", "healthcare.clinic", "healthcare.doctor", "healthcare"),
    radius_passes=(
        RadiusPass(1000, 20),
        RadiusPass(3000, 20),
        RadiusPass(5000, 20),
        RadiusPass(10000, 15),
    ),
    max_distance_km=15.0,
    result_ceiling=10,
    collect_limit=15,
    synthetic_name_prefix="Healthcare Facility",
    default_name="Healthcare Center",
)

PHARMACY_PROFILE = SearchProfile(
    kind="pharmacy",
    categories=("commercial.pharmacy", "healthcare.pharmacy", "commercial.chemist"),
    radius_passes=(
        RadiusPass(1000, 20),
        RadiusPass(3000, 20),
        RadiusPass(5000, 15),
    ),
    max_distance_km=10.0,
    result_ceiling=12,
    collect_limit=15,
    synthetic_name_prefix="Pharmacy",
    default_name="Medical Store",
)


class ProfileRegistry:
    def __init__(self) -> None:
        self._profiles: dict[str, SearchProfile] = {}
        self._aliases: dict[str, str] = {}

    def register(self, profile: SearchProfile) -> None:
        self._profiles[profile.kind] = profile

    def add_alias(self, alias: str, target: str) -> None:
        self._aliases[alias] = target

    def resolve(self, kind: str) -> SearchProfile:
        key = (kind or "").strip().lower()
        canonical = self._aliases.get(key, key)
        profile = self._profiles.get(canonical)
        if not profile:
            raise KeyError(f"Facility kind not found: {kind}")
        return profile

    def list_kinds(self) -> list[str]:
        return sorted(self._profiles.keys())


def default_registry() -> ProfileRegistry:
    registry = ProfileRegistry()
    registry.register(HOSPITAL_PROFILE)
    registry.register(PHARMACY_PROFILE)
    registry.add_alias("hospitals", "hospital")
    registry.add_alias("clinic", "hospital")
    registry.add_alias("pharmacies", "pharmacy")
    registry.add_alias("chemist", "pharmacy")
    return registry
