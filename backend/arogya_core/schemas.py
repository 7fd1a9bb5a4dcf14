from __future__ import annotations

import math
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

MIN_DOCTOR_RATING = 3.5
MAX_DOCTOR_RATING = 4.0
STOCK_STATUSES = {"available", "limited", "out_of_stock"}


def _split_languages(value: Any) -> Any:
    if isinstance(value, str):
        return [part.strip() for part in value.split(",")]
    return value


class _GeneratedRecord(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, str_strip_whitespace=True)


class Doctor(_GeneratedRecord):
    name: str = Field(min_length=1)
    specialization: str = "General Physician"
    experience_years: int = 0
    consultation_fee: int = 0
    rating: float = MIN_DOCTOR_RATING
    available_days: str = "Mon-Sat"
    available_time: str = "9:00 AM - 6:00 PM"
    languages: list[str] = Field(default_factory=lambda: ["English"])

    @field_validator("experience_years", "consultation_fee")
    @classmethod
    def _non_negative(cls, value: int) -> int:
        return max(0, value)

    # The generator is asked for 3.5-4.0 but does not reliably respect it.
    @field_validator("rating")
    @classmethod
    def _clamp_rating(cls, value: float) -> float:
        if not math.isfinite(value):
            return MIN_DOCTOR_RATING
        return round(min(max(value, MIN_DOCTOR_RATING), MAX_DOCTOR_RATING), 1)

    @field_validator("languages", mode="before")
    @classmethod
    def _coerce_languages(cls, value: Any) -> Any:
        return _split_languages(value)

    @field_validator("languages")
    @classmethod
    def _unique_languages(cls, value: list[str]) -> list[str]:
        seen: list[str] = []
        for language in value:
            if language and language not in seen:
                seen.append(language)
        return seen or ["English"]


class InventoryItem(_GeneratedRecord):
    medicine_name: str = Field(min_length=1)
    generic_name: str = ""
    category: str = ""
    manufacturer: str = ""
    price: float = 0.0
    stock_status: str = "available"
    quantity: int = 0
    requires_prescription: bool = False

    @field_validator("price")
    @classmethod
    def _non_negative_price(cls, value: float) -> float:
        if not math.isfinite(value):
            return 0.0
        return round(max(0.0, value), 2)

    @field_validator("quantity")
    @classmethod
    def _non_negative_quantity(cls, value: int) -> int:
        return max(0, value)

    @field_validator("stock_status", mode="before")
    @classmethod
    def _normalize_stock_status(cls, value: Any) -> str:
        normalized = str(value or "").strip().lower().replace(" ", "_").replace("-", "_")
        return normalized if normalized in STOCK_STATUSES else "available"


class RecommendationPayload(_GeneratedRecord):
    recommended_name: str = Field(
        min_length=1,
        validation_alias=AliasChoices("recommended_name", "recommendedHospital", "recommendedName"),
    )
    reason: str = ""
    urgency_level: Literal["routine", "urgent", "emergency"] = Field(
        default="routine",
        validation_alias=AliasChoices("urgency_level", "urgencyLevel"),
    )
    suggested_tests: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("suggested_tests", "suggestedTests"),
    )
    alternative_names: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("alternative_names", "alternativeHospitals", "alternativeNames"),
    )

    @field_validator("urgency_level", mode="before")
    @classmethod
    def _lower_urgency(cls, value: Any) -> Any:
        return str(value or "routine").strip().lower()


class MedicineSuggestion(_GeneratedRecord):
    medicine_name: str = Field(min_length=1)
    generic_name: str = ""
    category: str = ""
    usage: str = ""
    dosage: str = ""
    price_range: str = ""
    prescription_required: bool = False
    caution: str = ""


class SpecialtyMatch(_GeneratedRecord):
    is_match: bool = Field(default=True, validation_alias=AliasChoices("is_match", "isMatch"))
    message: str = ""
    suggested_specialty: str | None = Field(
        default=None,
        validation_alias=AliasChoices("suggested_specialty", "suggestedSpecialty"),
    )
