from __future__ import annotations

import logging
from typing import Sequence

from .errors import ParseFailure
from .models import Facility, PatientContext, Recommendation, TextGenerator
from .schemas import MedicineSuggestion, RecommendationPayload, SpecialtyMatch
from .structured import parse_structured_response

logger = logging.getLogger(__name__)

MAX_PROMPT_CANDIDATES = 10


def _specializations(facility: Facility) -> str:
    names: list[str] = []
    for child in facility.children:
        value = getattr(child, "specialization", None) or getattr(child, "category", None)
        if value and value not in names:
            names.append(value)
    return ", ".join(names) or "Not listed"


def recommendation_prompt(candidates: Sequence[Facility], patient: PatientContext, symptom_text: str) -> str:
    lines = []
    for idx, facility in enumerate(candidates[:MAX_PROMPT_CANDIDATES], start=1):
        lines.append(
            f"{idx}. {facility.name} - {facility.distance_km}km\n"
            f"   Specializations: {_specializations(facility)}\n"
            f"   Emergency: {'Yes' if facility.emergency_capable else 'No'}"
        )
    listing = "\n\n".join(lines)
    return f"""Recommend the BEST facility for this patient.

Patient: Age {patient.age}, {patient.gender}
Symptoms: {symptom_text or 'General consultation'}

Facilities:
{listing}

Return JSON:
{{
  "recommended_name": "exact name from the list",
  "reason": "why (mention distance, specialty)",
  "urgency_level": "routine/urgent/emergency",
  "suggested_tests": [],
  "alternative_names": ["name2", "name3"]
}}

ONLY JSON, no markdown."""


def fallback_recommendation(candidates: Sequence[Facility]) -> Recommendation:
    if not candidates:
        return Recommendation(
            recommended_name="N/A",
            reason="No nearby facilities available to compare.",
            urgency_level="routine",
        )
    ranked = sorted(candidates, key=lambda facility: facility.distance_km)
    nearest = ranked[0]
    return Recommendation(
        recommended_name=nearest.name,
        reason=f"Nearest facility at {nearest.distance_km}km with appropriate services.",
        urgency_level="routine",
        suggested_tests=[],
        alternative_names=[facility.name for facility in ranked[1:3]],
        source="fallback",
    )


class RecommendationAdvisor:
    def __init__(self, generator: TextGenerator) -> None:
        self.generator = generator

    def recommend(
        self,
        candidates: Sequence[Facility],
        patient: PatientContext,
        symptom_text: str = "",
    ) -> Recommendation:
        if not candidates:
            return fallback_recommendation(candidates)

        shortlist = list(candidates[:MAX_PROMPT_CANDIDATES])
        try:
            text = self.generator.generate(recommendation_prompt(shortlist, patient, symptom_text), 0.4, 500)
            payload = parse_structured_response(text, RecommendationPayload)
            known = {facility.name.lower(): facility.name for facility in shortlist}
            chosen = known.get(payload.recommended_name.lower())
            if chosen is None:
                raise ParseFailure(f"Recommended facility is not a candidate: {payload.recommended_name}", text)
        except Exception as exc:
            logger.warning("recommendation fallback: %s", exc)
            return fallback_recommendation(candidates)

        alternatives = [
            known[name.lower()]
            for name in payload.alternative_names
            if name.lower() in known and known[name.lower()] != chosen
        ]
        return Recommendation(
            recommended_name=chosen,
            reason=payload.reason or f"Recommended facility at {self._distance_of(shortlist, chosen)}km.",
            urgency_level=payload.urgency_level,
            suggested_tests=payload.suggested_tests,
            alternative_names=alternatives,
            source="ai",
        )

    def suggest_medicines(self, symptoms: str) -> list[MedicineSuggestion]:
        if not (symptoms or "").strip():
            return []
        prompt = f"""Based on these symptoms, recommend appropriate OTC medicines available in India:

Symptoms: {symptoms}

Provide 5-7 medicine recommendations. Return JSON array ONLY:
[
  {{
    "medicine_name": "...",
    "generic_name": "...",
    "category": "...",
    "usage": "...",
    "dosage": "...",
    "price_range": "20-50 rupees",
    "prescription_required": false,
    "caution": "..."
  }}
]

Focus on safe, commonly available OTC medicines. NO markdown, ONLY JSON."""
        try:
            text = self.generator.generate(prompt, 0.7, 1000)
            return parse_structured_response(text, list[MedicineSuggestion])
        except Exception as exc:
            logger.warning("medicine suggestion unavailable: %s", exc)
            return []

    def check_specialty_match(self, symptoms: Sequence[str], specialty: str) -> SpecialtyMatch:
        cleaned = [symptom.strip() for symptom in symptoms if symptom and symptom.strip()]
        if not cleaned:
            return SpecialtyMatch(is_match=True, message="No specific symptoms to analyze", suggested_specialty=None)
        prompt = f"""Analyze if these symptoms match the doctor's specialty:

Symptoms: {', '.join(cleaned)}
Doctor Specialty: {specialty}

Return JSON only:
{{
  "is_match": true,
  "message": "explanation in 1-2 sentences",
  "suggested_specialty": "specialty name if not a match, null otherwise"
}}

NO markdown, ONLY JSON."""
        try:
            text = self.generator.generate(prompt, 0.3, 300)
            return parse_structured_response(text, SpecialtyMatch)
        except Exception as exc:
            logger.warning("specialty match unavailable: %s", exc)
            return SpecialtyMatch(
                is_match=True,
                message="Unable to verify specialty match. Please proceed with your choice.",
                suggested_specialty=None,
            )

    def advise_doctor_choice(
        self,
        doctor_name: str,
        specialty: str,
        hospital_name: str,
        symptoms: Sequence[str],
        patient: PatientContext,
        pincode: str = "",
    ) -> str:
        """Short free-text advice on a chosen doctor, with a fixed reassurance on failure."""
        cleaned = [symptom.strip() for symptom in symptoms if symptom and symptom.strip()]
        prompt = f"""Provide a recommendation for this healthcare choice:

Patient: Age {patient.age}, {patient.gender}
Location: {pincode or 'Not specified'}
Symptoms: {', '.join(cleaned) or 'General consultation'}

Choice:
- Doctor: {doctor_name}
- Specialty: {specialty}
- Hospital: {hospital_name}

Analyze:
1. Is this a good choice for the symptoms?
2. What should the patient expect?
3. Any preparations needed?

Provide a helpful, reassuring recommendation in 3-4 sentences.
Return ONLY the recommendation text, no JSON, no formatting."""
        try:
            text = self.generator.generate(prompt, 0.7, 400).strip()
            if not text:
                raise ParseFailure("Empty doctor recommendation", text)
            return text
        except Exception as exc:
            logger.warning("doctor recommendation fallback: %s", exc)
            return (
                f"{doctor_name} at {hospital_name} is ready to help you. Make sure to arrive 15 minutes early "
                "and bring any relevant medical records or previous test results."
            )

    @staticmethod
    def _distance_of(candidates: Sequence[Facility], name: str) -> float | None:
        for facility in candidates:
            if facility.name == name:
                return facility.distance_km
        return None
