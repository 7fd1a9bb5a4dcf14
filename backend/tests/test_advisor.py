from __future__ import annotations

import json

from arogya_core.advisor import RecommendationAdvisor
from arogya_core.errors import ExternalQueryFailure
from arogya_core.models import PatientContext
from fakes import ScriptedGenerator, make_facility

PATIENT = PatientContext(age=60, gender="male")
CANDIDATES = [
    make_facility("City Health Clinic", 2.4),
    make_facility("Apollo Hospitals", 1.2, emergency_capable=True),
    make_facility("Lotus Clinic", 3.1),
    make_facility("Kauvery Hospital", 4.0),
]


def test_empty_candidates_recommend_nothing_without_generation():
    generator = ScriptedGenerator()
    recommendation = RecommendationAdvisor(generator).recommend([], PATIENT, "fever")

    assert recommendation.recommended_name == "N/A"
    assert recommendation.urgency_level == "routine"
    assert recommendation.source == "fallback"
    assert generator.prompts == []


def test_generation_failure_recommends_nearest():
    generator = ScriptedGenerator([ExternalQueryFailure("groq", "timeout")])
    recommendation = RecommendationAdvisor(generator).recommend(CANDIDATES, PATIENT, "chest pain")

    assert recommendation.recommended_name == "Apollo Hospitals"
    assert recommendation.reason == "Nearest facility at 1.2km with appropriate services."
    assert recommendation.alternative_names == ["City Health Clinic", "Lotus Clinic"]
    assert recommendation.source == "fallback"


def test_choice_outside_candidate_list_falls_back():
    reply = json.dumps({"recommended_name": "Imaginary Medical Centre", "reason": "best", "urgency_level": "urgent"})
    recommendation = RecommendationAdvisor(ScriptedGenerator([reply])).recommend(CANDIDATES, PATIENT)

    assert recommendation.recommended_name == "Apollo Hospitals"
    assert recommendation.source == "fallback"


def test_valid_choice_is_returned_with_known_alternatives():
    reply = json.dumps(
        {
            "recommendedHospital": "kauvery hospital",
            "reason": "Cardiology department available",
            "urgencyLevel": "Urgent",
            "suggestedTests": ["ECG"],
            "alternativeHospitals": ["Apollo Hospitals", "Nowhere Clinic", "Kauvery Hospital"],
        }
    )
    generator = ScriptedGenerator([reply])
    recommendation = RecommendationAdvisor(generator).recommend(CANDIDATES, PATIENT, "chest pain")

    assert recommendation.recommended_name == "Kauvery Hospital"
    assert recommendation.urgency_level == "urgent"
    assert recommendation.suggested_tests == ["ECG"]
    assert recommendation.alternative_names == ["Apollo Hospitals"]
    assert recommendation.source == "ai"
    assert "Symptoms: chest pain" in generator.prompts[0]
    assert "Emergency: Yes" in generator.prompts[0]


def test_medicine_suggestions_parse_or_return_empty():
    reply = '[{"medicine_name": "Crocin", "generic_name": "Paracetamol", "prescription_required": false}]'
    advisor = RecommendationAdvisor(ScriptedGenerator([reply, "garbage"]))

    assert advisor.suggest_medicines("   ") == []
    suggestions = advisor.suggest_medicines("fever and headache")
    assert [item.medicine_name for item in suggestions] == ["Crocin"]
    assert advisor.suggest_medicines("cough") == []


def test_specialty_match_defaults():
    advisor = RecommendationAdvisor(ScriptedGenerator([ExternalQueryFailure("groq", "down")]))

    no_symptoms = advisor.check_specialty_match(["", "  "], "Cardiologist")
    assert no_symptoms.is_match is True
    assert no_symptoms.message == "No specific symptoms to analyze"

    unavailable = advisor.check_specialty_match(["rash"], "Cardiologist")
    assert unavailable.is_match is True
    assert unavailable.message == "Unable to verify specialty match. Please proceed with your choice."


def test_specialty_mismatch_is_reported():
    reply = '{"is_match": false, "message": "Skin rash fits dermatology.", "suggested_specialty": "Dermatologist"}'
    match = RecommendationAdvisor(ScriptedGenerator([reply])).check_specialty_match(["rash"], "Cardiologist")

    assert match.is_match is False
    assert match.suggested_specialty == "Dermatologist"


def test_doctor_choice_advice_is_stripped_generated_text():
    generator = ScriptedGenerator(["  Dr. Priya Sharma is a good fit for recurring headaches.\n"])
    advice = RecommendationAdvisor(generator).advise_doctor_choice(
        "Dr. Priya Sharma", "General Physician", "Apollo Hospitals", ["headache", " "], PATIENT, pincode="600001"
    )

    assert advice == "Dr. Priya Sharma is a good fit for recurring headaches."
    assert "Symptoms: headache\n" in generator.prompts[0]
    assert "Location: 600001" in generator.prompts[0]


def test_doctor_choice_advice_falls_back_on_failure():
    generator = ScriptedGenerator([ExternalQueryFailure("groq", "timeout")])
    advice = RecommendationAdvisor(generator).advise_doctor_choice(
        "Dr. Rajesh Kumar", "Cardiologist", "Kauvery Hospital", [], PATIENT
    )

    assert advice == (
        "Dr. Rajesh Kumar at Kauvery Hospital is ready to help you. Make sure to arrive 15 minutes early "
        "and bring any relevant medical records or previous test results."
    )
    assert "Symptoms: General consultation" in generator.prompts[0]
