from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Literal, Protocol, Sequence

FacilityKind = Literal["hospital", "pharmacy"]
URGENCY_LEVELS = ("routine", "urgent", "emergency")

NO_PHONE = "Not available"
NO_ADDRESS = "Address not available"


@dataclass(frozen=True)
class Coordinate:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class RadiusPass:
    radius_meters: int
    per_query_limit: int


@dataclass(frozen=True)
class RawPlace:
    latitude: float
    longitude: float
    name: str | None = None
    address_line1: str | None = None
    address_line2: str | None = None
    street: str | None = None
    city: str | None = None
    formatted: str | None = None
    phone: str | None = None


@dataclass(frozen=True)
class FacilityCandidate:
    name: str
    address: str
    coordinate: Coordinate
    distance_km: float
    phone: str
    category: str
    dedup_key: str


@dataclass(frozen=True)
class Facility:
    name: str
    address: str
    coordinate: Coordinate
    distance_km: float
    phone: str
    category: str
    kind: FacilityKind
    emergency_capable: bool
    facilities_description: str
    children: tuple[Any, ...] = ()
    has_real_data: bool = False

    @property
    def children_key(self) -> str:
        return "doctors" if self.kind == "hospital" else "medicines"

    def as_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "address": self.address,
            "coordinate": {"latitude": self.coordinate.latitude, "longitude": self.coordinate.longitude},
            "distance_km": self.distance_km,
            "phone": self.phone,
            "category": self.category,
            "kind": self.kind,
            "emergency_capable": self.emergency_capable,
            "facilities_description": self.facilities_description,
            "has_real_data": self.has_real_data,
            self.children_key: [child.model_dump() for child in self.children],
        }


@dataclass
class PatientContext:
    age: int = 40
    gender: str = "general"


@dataclass
class OriginProfile:
    pincode: str = "600001"
    state: str = "Tamil Nadu"
    district: str = ""
    age: int = 40
    gender: str = "general"

    @property
    def patient(self) -> PatientContext:
        return PatientContext(age=self.age, gender=self.gender)


@dataclass
class Enrichment:
    children: list[Any]
    has_real_data: bool


@dataclass
class Recommendation:
    recommended_name: str
    reason: str
    urgency_level: str = "routine"
    suggested_tests: list[str] = field(default_factory=list)
    alternative_names: list[str] = field(default_factory=list)
    source: str = "fallback"

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class NearbySearchResult:
    kind: FacilityKind
    facilities: list[Facility]
    using_live_data: bool
    fallback_reason: str | None = None


class PlacesClient(Protocol):
    def query(self, category: str, center: Coordinate, radius_meters: int, limit: int) -> Sequence[RawPlace]: ...


class Geocoder(Protocol):
    def geocode(self, query_text: str) -> Coordinate: ...


class TextGenerator(Protocol):
    def generate(self, prompt: str, temperature: float, max_tokens: int) -> str: ...
