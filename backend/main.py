from __future__ import annotations

import hashlib
import logging
import os
import re
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Literal

from fastapi import FastAPI, Header, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from arogya_clients import GeoapifyGeocoder, GeoapifyPlacesClient, GroqTextGenerator
from arogya_core import (
    Coordinate,
    Doctor,
    EnrichmentPipeline,
    Facility,
    FacilitySearchEngine,
    KeyRotator,
    NearbyFacilityService,
    OriginProfile,
    RecommendationAdvisor,
)
from arogya_core.profiles import CLINIC_FACILITIES
from storage import FacilityStore, SQLiteFacilityDB

_ENV_KEY_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _load_local_env_file(path: Path) -> None:
    try:
        lines = path.read_text(encoding="utf-8").splitlines()
    except OSError:
        return
    for raw in lines:
        line = raw.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        if not _ENV_KEY_RE.fullmatch(key):
            continue
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
            value = value[1:-1]
        os.environ.setdefault(key, value)


def _bootstrap_local_env() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    for candidate in (repo_root / ".env", repo_root / "backend/.env"):
        if candidate.exists():
            _load_local_env_file(candidate)


_bootstrap_local_env()

logging.basicConfig(
    level=os.getenv("AROGYA_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("arogya.api")


def _external_disabled() -> bool:
    return os.getenv("AROGYA_DISABLE_EXTERNAL", "false").lower() in {"1", "true", "yes"}


class OriginPayload(BaseModel):
    pincode: str = "600001"
    state: str = "Tamil Nadu"
    district: str = ""
    age: int = Field(default=40, ge=0, le=130)
    gender: str = "general"

    def to_origin(self) -> OriginProfile:
        return OriginProfile(
            pincode=self.pincode.strip() or "600001",
            state=self.state.strip() or "Tamil Nadu",
            district=self.district.strip(),
            age=self.age,
            gender=self.gender.strip() or "general",
        )


class CoordinatePayload(BaseModel):
    latitude: float = Field(default=0.0, ge=-90, le=90)
    longitude: float = Field(default=0.0, ge=-180, le=180)


class FacilityPayload(BaseModel):
    name: str = Field(min_length=1)
    address: str = ""
    coordinate: CoordinatePayload = Field(default_factory=CoordinatePayload)
    distance_km: float = Field(default=0.0, ge=0)
    phone: str = ""
    category: str = ""
    emergency_capable: bool = False
    facilities_description: str = CLINIC_FACILITIES
    doctors: list[Doctor] = Field(default_factory=list)

    def to_facility(self) -> Facility:
        return Facility(
            name=self.name,
            address=self.address,
            coordinate=Coordinate(self.coordinate.latitude, self.coordinate.longitude),
            distance_km=self.distance_km,
            phone=self.phone,
            category=self.category,
            kind="hospital",
            emergency_capable=self.emergency_capable,
            facilities_description=self.facilities_description,
            children=tuple(self.doctors),
        )


class RecommendRequest(BaseModel):
    profile: OriginPayload = Field(default_factory=OriginPayload)
    symptoms: str = ""
    hospitals: list[FacilityPayload] = Field(default_factory=list)


class MedicineSearchRequest(BaseModel):
    medicine_name: str = Field(min_length=1)
    symptoms: str | None = None


class MedicineRecommendRequest(BaseModel):
    symptoms: str = ""


class SpecialtyMatchRequest(BaseModel):
    symptoms: list[str] = Field(default_factory=list)
    specialty: str = Field(min_length=1)


class AppointmentRequest(BaseModel):
    hospital_name: str = Field(min_length=1)
    doctor_name: str = Field(min_length=1)
    appointment_date: str | None = None
    appointment_time: str | None = None
    symptoms: str | None = None
    notes: str | None = None
    pre_tests: str | None = None


class PrescriptionOrderRequest(BaseModel):
    pharmacy_id: int
    medicines_requested: list[str] = Field(min_length=1)
    delivery_type: Literal["pickup", "delivery"] = "pickup"
    delivery_address: str | None = None
    notes: str | None = None


class DoctorRecommendationRequest(BaseModel):
    doctor_name: str = Field(min_length=1)
    specialty: str = ""
    hospital_name: str = Field(min_length=1)
    symptoms: list[str] = Field(default_factory=list)
    profile: OriginPayload = Field(default_factory=OriginPayload)


class ArogyaApp:
    def __init__(self) -> None:
        db_path = os.getenv(
            "AROGYA_DB_PATH",
            str((Path(__file__).resolve().parent / "arogya.sqlite")),
        )
        self.db = SQLiteFacilityDB(db_path)
        self.store = FacilityStore(self.db)

        # No keys means every generation call falls back without touching the network.
        self.keys = KeyRotator([]) if _external_disabled() else KeyRotator.from_env()
        self.generator = GroqTextGenerator(self.keys)
        self.geocoder = GeoapifyGeocoder()
        self.places = GeoapifyPlacesClient()

        self.engine = FacilitySearchEngine(self.places)
        self.enrichment = EnrichmentPipeline(self.generator)
        self.advisor = RecommendationAdvisor(self.generator)
        self.service = NearbyFacilityService(
            geocoder=self.geocoder,
            engine=self.engine,
            enrichment=self.enrichment,
            advisor=self.advisor,
        )
        logger.info(
            "arogya backend ready (db=%s, groq_keys=%d, external=%s)",
            self.db.path,
            len(self.keys),
            "disabled" if _external_disabled() else "enabled",
        )


container = ArogyaApp()
app = FastAPI(title="Arogya Mitra Backend")

allowed_origins = os.getenv("ALLOWED_ORIGINS", "http://localhost:3000").split(",")
app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in allowed_origins],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


_TRUSTED_USER_ID_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._:@-]{1,63}$")


def _validated_trusted_user_id(x_user_id: str) -> str:
    candidate = x_user_id.strip()
    if not candidate or not _TRUSTED_USER_ID_RE.fullmatch(candidate):
        raise HTTPException(status_code=400, detail="Invalid X-User-Id")
    return candidate


def get_user_id(auth_header: str | None) -> str:
    raw = (auth_header or "").replace("Bearer", "", 1).strip()
    if not raw:
        if os.getenv("ALLOW_ANON", "false").lower() == "true":
            return "demo-user"
        raise HTTPException(status_code=401, detail="Missing Authorization")
    # Bearer token is opaque; long tokens are hashed into a bounded id.
    if len(raw) > 96:
        return f"token_{hashlib.sha256(raw.encode('utf-8')).hexdigest()[:24]}"
    return raw


def resolve_user_id(authorization: str | None, x_user_id: str | None) -> str:
    if x_user_id is not None:
        return _validated_trusted_user_id(x_user_id)
    return get_user_id(authorization)


@contextmanager
def _storage_guard(action: str) -> Iterator[None]:
    try:
        yield
    except sqlite3.Error as exc:
        logger.exception("storage failure during %s", action)
        raise HTTPException(status_code=500, detail=f"Failed to {action}") from exc


def _nearby_response(kind: str, payload: OriginPayload) -> dict[str, Any]:
    result = container.service.find_nearby_facilities(payload.to_origin(), kind)
    with _storage_guard(f"save {result.kind} results"):
        ids = container.store.save_facilities(result.kind, result.facilities)
    items = [{"id": facility_id, **facility.as_dict()} for facility_id, facility in zip(ids, result.facilities)]
    key = "hospitals" if result.kind == "hospital" else "pharmacies"
    return {
        key: items,
        "using_live_data": result.using_live_data,
        "fallback_reason": result.fallback_reason,
    }


@app.get("/health")
def health() -> dict[str, Any]:
    return {
        "ok": True,
        "external_enabled": not _external_disabled(),
        "groq_keys": len(container.keys),
    }


@app.post("/hospitals/nearby")
def hospitals_nearby(
    payload: OriginPayload,
    authorization: str | None = Header(default=None),
    x_user_id: str | None = Header(default=None),
):
    resolve_user_id(authorization, x_user_id)
    return _nearby_response("hospital", payload)


@app.post("/pharmacies/nearby")
def pharmacies_nearby(
    payload: OriginPayload,
    authorization: str | None = Header(default=None),
    x_user_id: str | None = Header(default=None),
):
    resolve_user_id(authorization, x_user_id)
    return _nearby_response("pharmacy", payload)


@app.post("/hospitals/recommend")
def hospitals_recommend(
    payload: RecommendRequest,
    authorization: str | None = Header(default=None),
    x_user_id: str | None = Header(default=None),
):
    resolve_user_id(authorization, x_user_id)
    origin = payload.profile.to_origin()
    candidates = [hospital.to_facility() for hospital in payload.hospitals]
    recommendation = container.service.recommend(candidates, origin.patient, payload.symptoms)
    return recommendation.as_dict()


@app.post("/medicines/search")
def medicines_search(
    payload: MedicineSearchRequest,
    authorization: str | None = Header(default=None),
    x_user_id: str | None = Header(default=None),
):
    user_id = resolve_user_id(authorization, x_user_id)
    term = payload.medicine_name.strip()
    if not term:
        raise HTTPException(status_code=422, detail="medicine_name must not be blank")
    with _storage_guard("search medicines"):
        container.store.record_medicine_search(user_id, term, payload.symptoms)
        results = container.store.search_inventory(term)
    return {"query": term, "results": results, "count": len(results)}


@app.post("/medicines/recommend")
def medicines_recommend(
    payload: MedicineRecommendRequest,
    authorization: str | None = Header(default=None),
    x_user_id: str | None = Header(default=None),
):
    resolve_user_id(authorization, x_user_id)
    suggestions = container.advisor.suggest_medicines(payload.symptoms)
    return {"medicines": [suggestion.model_dump() for suggestion in suggestions]}


@app.post("/ai/specialty-match")
def specialty_match(
    payload: SpecialtyMatchRequest,
    authorization: str | None = Header(default=None),
    x_user_id: str | None = Header(default=None),
):
    resolve_user_id(authorization, x_user_id)
    return container.advisor.check_specialty_match(payload.symptoms, payload.specialty).model_dump()


@app.post("/appointments/book")
def book_appointment(
    payload: AppointmentRequest,
    authorization: str | None = Header(default=None),
    x_user_id: str | None = Header(default=None),
):
    user_id = resolve_user_id(authorization, x_user_id)
    with _storage_guard("book appointment"):
        match = container.store.find_doctor(payload.hospital_name, payload.doctor_name)
        if match is None:
            raise HTTPException(status_code=404, detail="Hospital or doctor not found")
        booking = container.store.create_appointment(
            user_id=user_id,
            doctor_id=match["doctor_id"],
            hospital_id=match["hospital_id"],
            appointment_date=payload.appointment_date,
            appointment_time=payload.appointment_time,
            symptoms=payload.symptoms,
            notes=payload.notes,
            pre_tests=payload.pre_tests,
            consultation_fee=match["consultation_fee"],
        )
    logger.info("appointment %s booked at %s", booking["booking_id"], payload.hospital_name)
    return {"success": True, **booking}


@app.get("/appointments/history")
def appointments_history(
    authorization: str | None = Header(default=None),
    x_user_id: str | None = Header(default=None),
):
    user_id = resolve_user_id(authorization, x_user_id)
    with _storage_guard("load appointment history"):
        appointments = container.store.appointment_history(user_id)
    return {"appointments": appointments}


@app.get("/appointments/booking/{booking_id}")
def appointment_by_booking(
    booking_id: str,
    authorization: str | None = Header(default=None),
    x_user_id: str | None = Header(default=None),
):
    user_id = resolve_user_id(authorization, x_user_id)
    with _storage_guard("load appointment"):
        appointment = container.store.get_appointment(user_id, booking_id)
    if appointment is None:
        raise HTTPException(status_code=404, detail="Appointment not found")
    return {"appointment": appointment}


@app.post("/ai/doctor-recommendation")
def doctor_recommendation(
    payload: DoctorRecommendationRequest,
    authorization: str | None = Header(default=None),
    x_user_id: str | None = Header(default=None),
):
    resolve_user_id(authorization, x_user_id)
    origin = payload.profile.to_origin()
    text = container.advisor.advise_doctor_choice(
        payload.doctor_name,
        payload.specialty,
        payload.hospital_name,
        payload.symptoms,
        origin.patient,
        pincode=origin.pincode,
    )
    return {"recommendation": text}


@app.post("/medicines/order/prescription")
def order_prescription(
    payload: PrescriptionOrderRequest,
    authorization: str | None = Header(default=None),
    x_user_id: str | None = Header(default=None),
):
    user_id = resolve_user_id(authorization, x_user_id)
    if payload.delivery_type == "delivery" and not (payload.delivery_address or "").strip():
        raise HTTPException(status_code=422, detail="delivery_address is required for delivery orders")
    with _storage_guard("submit prescription order"):
        order = container.store.create_prescription_order(
            user_id=user_id,
            pharmacy_id=payload.pharmacy_id,
            medicines_requested=payload.medicines_requested,
            delivery_type=payload.delivery_type,
            delivery_address=payload.delivery_address,
            notes=payload.notes,
        )
    if order is None:
        raise HTTPException(status_code=404, detail="Pharmacy not found")
    logger.info("prescription order %s submitted to pharmacy %s", order["order_id"], payload.pharmacy_id)
    return {"success": True, "message": "Prescription order submitted successfully", **order}


@app.get("/medicines/orders")
def medicine_orders(
    authorization: str | None = Header(default=None),
    x_user_id: str | None = Header(default=None),
):
    user_id = resolve_user_id(authorization, x_user_id)
    with _storage_guard("load prescription orders"):
        orders = container.store.list_orders(user_id)
    return {"orders": orders}
