from __future__ import annotations

from arogya_core.enrichment import EnrichmentPipeline
from arogya_core.errors import ExternalQueryFailure
from arogya_core.models import PatientContext
from arogya_core.schemas import Doctor, InventoryItem
from fakes import ScriptedGenerator, make_facility

PATIENT = PatientContext(age=34, gender="female")


def _pipeline(generator: ScriptedGenerator, sleeps: list[float] | None = None) -> EnrichmentPipeline:
    recorder = sleeps if sleeps is not None else []
    return EnrichmentPipeline(generator, delay_seconds=0.6, sleep=recorder.append)


def test_generator_failure_falls_back_by_facility_type():
    pipeline = _pipeline(ScriptedGenerator([ExternalQueryFailure("groq", "down")] * 3))

    hospital = pipeline.enrich(make_facility("Kauvery Hospital", 1.0), PATIENT)
    clinic = pipeline.enrich(make_facility("Lotus Clinic", 2.0), PATIENT)
    pharmacy = pipeline.enrich(make_facility("MedPlus", 0.5, kind="pharmacy"), PATIENT)

    assert len(hospital.children) == 5 and not hospital.has_real_data
    assert len(clinic.children) == 3 and not clinic.has_real_data
    assert len(pharmacy.children) == 5 and not pharmacy.has_real_data
    assert all(isinstance(item, InventoryItem) for item in pharmacy.children)
    assert all(3.5 <= doctor.rating <= 4.0 for doctor in hospital.children)


def test_generated_roster_is_parsed_and_clamped():
    reply = """```json
[{"name": "Dr. Arjun Nair", "specialization": "Cardiologist", "experience_years": 20,
  "consultation_fee": 1200, "rating": 4.8, "languages": ["English", "Malayalam"]}]
```"""
    generator = ScriptedGenerator([reply])

    result = _pipeline(generator).enrich(make_facility("Kauvery Hospital", 1.0), PATIENT)

    assert result.has_real_data is True
    assert isinstance(result.children[0], Doctor)
    assert result.children[0].rating == 4.0
    assert "Generate 5 realistic doctors" in generator.prompts[0]
    assert "female, age 34" in generator.prompts[0]


def test_empty_or_malformed_generation_uses_fallback():
    pipeline = _pipeline(ScriptedGenerator(["[]", "not json at all"]))

    empty = pipeline.enrich(make_facility("Lotus Clinic", 2.0), PATIENT)
    malformed = pipeline.enrich(make_facility("Lotus Clinic", 2.0), PATIENT)

    assert len(empty.children) == 3 and not empty.has_real_data
    assert len(malformed.children) == 3 and not malformed.has_real_data


def test_pharmacy_prompt_requests_inventory():
    reply = '[{"medicine_name": "Pan 40", "generic_name": "Pantoprazole", "price": 120, "stock_status": "limited"}]'
    generator = ScriptedGenerator([reply])

    result = _pipeline(generator).enrich(make_facility("MedPlus", 0.5, kind="pharmacy"), PATIENT)

    assert result.has_real_data is True
    assert result.children[0].stock_status == "limited"
    assert "medicine inventory" in generator.prompts[0]


def test_enrich_all_keeps_order_and_paces_calls():
    sleeps: list[float] = []
    facilities = [make_facility("A Hospital", 0.5), make_facility("B Clinic", 1.5), make_facility("C Clinic", 2.5)]
    reply = '[{"name": "Dr. X"}]'
    pipeline = _pipeline(ScriptedGenerator([reply, ExternalQueryFailure("groq", "429"), reply]), sleeps)

    enriched = pipeline.enrich_all(facilities, PATIENT)

    assert [facility.name for facility in enriched] == ["A Hospital", "B Clinic", "C Clinic"]
    assert [facility.has_real_data for facility in enriched] == [True, False, True]
    assert len(enriched[1].children) == 3
    assert sleeps == [0.6, 0.6]
    assert facilities[0].children == ()


def test_non_numeric_rating_is_pinned_to_minimum():
    generator = ScriptedGenerator(['[{"name": "Dr. A", "rating": NaN}]'])

    result = _pipeline(generator).enrich(make_facility("Kauvery Hospital", 1.0), PATIENT)

    assert result.has_real_data is True
    assert [doctor.rating for doctor in result.children] == [3.5]
