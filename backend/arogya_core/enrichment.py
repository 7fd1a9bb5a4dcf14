from __future__ import annotations

import logging
import os
import time
from dataclasses import replace
from typing import Callable, Sequence

from .errors import ArogyaError, ParseFailure
from .fallbacks import fallback_doctors, fallback_inventory
from .models import Enrichment, Facility, PatientContext, TextGenerator
from .profiles import is_hospital_name
from .schemas import Doctor, InventoryItem
from .structured import parse_structured_response

logger = logging.getLogger(__name__)


def doctor_roster_prompt(facility: Facility, patient: PatientContext) -> str:
    full_hospital = is_hospital_name(facility.name)
    count = 5 if full_hospital else 3
    facility_type = "Full Hospital" if full_hospital else "Clinic/Healthcare Center"
    specializations = (
        "Mix of General Physician, Cardiologist, Orthopedic, Gynecologist, Pediatrician, Dermatologist"
        if full_hospital
        else "Mostly General Physician, 1-2 specialists"
    )
    return f"""Generate {count} realistic doctors for: {facility.name} ({facility.distance_km}km away)

Hospital Type: {facility_type}
Facilities: {facility.facilities_description}
Patient: {patient.gender}, age {patient.age}

Generate doctors with these details:
- name: Indian doctor names with Dr. prefix (diverse surnames: Kumar, Sharma, Patel, Singh, Reddy, Rao, Iyer, Mehta, Verma, Gupta, Desai, Nair)
- specialization: {specializations}
- experience_years: 5-35 years
- consultation_fee: 300-3000 rupees, varying by experience and specialization
- rating: 3.5-4.0 with a single decimal (e.g. 3.7)
- available_days: realistic schedules (Mon-Sat, Mon-Fri, Tue-Sun, Mon,Wed,Fri,Sat)
- available_time: realistic hours (e.g. "9:00 AM - 1:00 PM, 5:00 PM - 8:00 PM")
- languages: 3-5 languages including English and regional ones

Return JSON array ONLY:
[
  {{
    "name": "Dr. ...",
    "specialization": "...",
    "experience_years": 10,
    "consultation_fee": 500,
    "rating": 3.8,
    "available_days": "Mon-Sat",
    "available_time": "9:00 AM - 6:00 PM",
    "languages": ["English", "Hindi", "Tamil"]
  }}
]

NO markdown, NO explanation, ONLY JSON array."""


def inventory_prompt(facility: Facility, patient: PatientContext) -> str:
    return f"""Generate realistic medicine inventory for: {facility.name} ({facility.distance_km}km away)

Generate 15-20 commonly available medicines with these details:
- medicine_name: common brand names (e.g. Crocin, Dolo, Cough Syrup)
- generic_name: generic/scientific name
- category: Pain Relief, Fever, Antibiotics, Vitamins, Digestive, Respiratory, etc.
- manufacturer: Indian pharma companies (Sun Pharma, Cipla, Dr. Reddy's, Lupin, etc.)
- price: 20-500 rupees
- stock_status: available/limited/out_of_stock (mostly available)
- quantity: 10-200 units
- requires_prescription: 0 for OTC, 1 for prescription-required

Include medicines for fever and pain, cold and cough, digestion, vitamins, first aid
and chronic conditions relevant to a {patient.gender} patient aged {patient.age}.

Return JSON array ONLY:
[
  {{
    "medicine_name": "...",
    "generic_name": "...",
    "category": "...",
    "manufacturer": "...",
    "price": 50,
    "stock_status": "available",
    "quantity": 100,
    "requires_prescription": 0
  }}
]

NO markdown, NO explanation, ONLY JSON array."""


class EnrichmentPipeline:
    def __init__(
        self,
        generator: TextGenerator,
        *,
        delay_seconds: float | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.generator = generator
        if delay_seconds is None:
            delay_seconds = float(os.getenv("AROGYA_ENRICH_DELAY_SECONDS", "0.6"))
        self.delay_seconds = max(0.0, delay_seconds)
        self._sleep = sleep

    def enrich(self, facility: Facility, patient: PatientContext) -> Enrichment:
        if facility.kind == "pharmacy":
            prompt = inventory_prompt(facility, patient)
            schema = list[InventoryItem]
        else:
            prompt = doctor_roster_prompt(facility, patient)
            schema = list[Doctor]

        try:
            text = self.generator.generate(prompt, 0.8, 1500)
            children = parse_structured_response(text, schema)
            if not children:
                raise ParseFailure("Generated list is empty", text)
        except ArogyaError as exc:
            logger.warning("enrichment fallback for %s: %s", facility.name, exc)
            return Enrichment(children=self._fallback(facility), has_real_data=False)
        except Exception:
            logger.exception("enrichment failed unexpectedly for %s", facility.name)
            return Enrichment(children=self._fallback(facility), has_real_data=False)

        logger.info("generated %d %s for %s", len(children), facility.children_key, facility.name)
        return Enrichment(children=list(children), has_real_data=True)

    def enrich_all(self, facilities: Sequence[Facility], patient: PatientContext) -> list[Facility]:
        enriched: list[Facility] = []
        for idx, facility in enumerate(facilities):
            if idx:
                self._sleep(self.delay_seconds)
            result = self.enrich(facility, patient)
            enriched.append(replace(facility, children=tuple(result.children), has_real_data=result.has_real_data))
        real = sum(1 for facility in enriched if facility.has_real_data)
        logger.info("enriched %d facilities (%d generated, %d fallback)", len(enriched), real, len(enriched) - real)
        return enriched

    @staticmethod
    def _fallback(facility: Facility) -> list:
        if facility.kind == "pharmacy":
            return fallback_inventory()
        return fallback_doctors(is_hospital_name(facility.name))
