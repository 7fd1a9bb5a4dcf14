from __future__ import annotations

from .models import NO_PHONE, Coordinate, Facility, FacilityKind, OriginProfile
from .profiles import CLINIC_FACILITIES, HOSPITAL_FACILITIES, PHARMACY_FACILITIES
from .schemas import Doctor, InventoryItem

_SPECIALIZATIONS = ("General Physician", "Cardiologist", "Orthopedic", "Pediatrician", "Dermatologist")
_SURNAMES = ("Kumar", "Sharma", "Patel", "Singh", "Reddy", "Mehta", "Gupta", "Verma", "Rao", "Iyer")


def fallback_doctors(is_hospital: bool) -> list[Doctor]:
    count = 5 if is_hospital else 3
    return [
        Doctor(
            name=f"Dr. {_SURNAMES[idx % len(_SURNAMES)]}",
            specialization=_SPECIALIZATIONS[idx % len(_SPECIALIZATIONS)],
            experience_years=8 + idx * 4,
            consultation_fee=350 + idx * 150,
            rating=3.5 + idx * 0.1,
            available_days="Mon-Sat" if idx % 2 == 0 else "Mon-Fri",
            available_time="9:00 AM - 6:00 PM",
            languages=["English", "Hindi", "Tamil"],
        )
        for idx in range(count)
    ]


def fallback_inventory() -> list[InventoryItem]:
    rows = [
        ("Crocin 650mg", "Paracetamol", "Pain Relief", "GSK", 25, 150),
        ("Dolo 650", "Paracetamol", "Fever", "Micro Labs", 30, 120),
        ("Disprin", "Aspirin", "Pain Relief", "Reckitt Benckiser", 15, 100),
        ("Vicks Cough Syrup", "Dextromethorphan", "Respiratory", "P&G", 85, 50),
        ("Cetirizine 10mg", "Cetirizine", "Allergy", "Cipla", 20, 80),
    ]
    return [
        InventoryItem(
            medicine_name=name,
            generic_name=generic,
            category=category,
            manufacturer=manufacturer,
            price=price,
            stock_status="available",
            quantity=quantity,
            requires_prescription=False,
        )
        for name, generic, category, manufacturer, price, quantity in rows
    ]


def _mock_hospitals(origin: OriginProfile) -> list[Facility]:
    return [
        Facility(
            name="City Health Clinic",
            address=f"Main Road, {origin.pincode}, {origin.state}",
            coordinate=Coordinate(13.05, 80.24),
            distance_km=1.5,
            phone=NO_PHONE,
            category="healthcare.clinic",
            kind="hospital",
            emergency_capable=False,
            facilities_description=CLINIC_FACILITIES,
            children=(
                Doctor(
                    name="Dr. Anil Mehta",
                    specialization="General Physician",
                    experience_years=12,
                    consultation_fee=400,
                    rating=3.7,
                    available_days="Mon-Sat",
                    available_time="9:00 AM - 6:00 PM",
                    languages=["English", "Hindi", "Tamil"],
                ),
            ),
        ),
        Facility(
            name="Apollo Hospitals",
            address=f"21 Greams Lane, Near {origin.pincode}, {origin.state}",
            coordinate=Coordinate(13.0569, 80.2425),
            distance_km=2.3,
            phone="+91 44 2829 3333",
            category="healthcare.hospital",
            kind="hospital",
            emergency_capable=True,
            facilities_description=HOSPITAL_FACILITIES,
            children=(
                Doctor(
                    name="Dr. Rajesh Kumar",
                    specialization="Cardiologist",
                    experience_years=15,
                    consultation_fee=800,
                    rating=3.9,
                    available_days="Mon-Sat",
                    available_time="9:00 AM - 5:00 PM",
                    languages=["English", "Hindi", "Tamil"],
                ),
                Doctor(
                    name="Dr. Priya Sharma",
                    specialization="General Physician",
                    experience_years=10,
                    consultation_fee=500,
                    rating=3.8,
                    available_days="Mon-Fri",
                    available_time="10:00 AM - 6:00 PM",
                    languages=["English", "Hindi"],
                ),
            ),
        ),
    ]


def _mock_pharmacies(origin: OriginProfile) -> list[Facility]:
    inventory = tuple(fallback_inventory())
    return [
        Facility(
            name="Jan Aushadhi Kendra",
            address=f"Bus Stand Road, {origin.pincode}, {origin.state}",
            coordinate=Coordinate(13.052, 80.241),
            distance_km=0.8,
            phone=NO_PHONE,
            category="healthcare.pharmacy",
            kind="pharmacy",
            emergency_capable=False,
            facilities_description=PHARMACY_FACILITIES,
            children=inventory,
        ),
        Facility(
            name="Apollo Pharmacy",
            address=f"Market Street, {origin.pincode}, {origin.state}",
            coordinate=Coordinate(13.0612, 80.2498),
            distance_km=1.9,
            phone="+91 44 2345 6789",
            category="commercial.pharmacy",
            kind="pharmacy",
            emergency_capable=False,
            facilities_description=PHARMACY_FACILITIES,
            children=inventory,
        ),
    ]


def mock_facilities(kind: FacilityKind, origin: OriginProfile) -> list[Facility]:
    if kind == "pharmacy":
        return _mock_pharmacies(origin)
    return _mock_hospitals(origin)
