from __future__ import annotations

import json
import secrets
import sqlite3
import string
import time
from typing import Any, Sequence

from arogya_core.models import Facility, FacilityKind

from .database import SQLiteFacilityDB
from .time_utils import to_iso, utc_now

_BASE36 = string.digits + string.ascii_uppercase


def _to_base36(value: int) -> str:
    if value <= 0:
        return "0"
    digits: list[str] = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits))


def _generate_reference(prefix: str) -> str:
    suffix = "".join(secrets.choice(_BASE36) for _ in range(5))
    return f"{prefix}{_to_base36(int(time.time() * 1000))}{suffix}"


def generate_booking_id() -> str:
    return _generate_reference("AM")


def generate_order_id() -> str:
    return _generate_reference("MED")


def _child_payload(child: Any) -> dict[str, Any]:
    if hasattr(child, "model_dump"):
        return child.model_dump()
    return dict(child)


class FacilityStore:
    def __init__(self, db: SQLiteFacilityDB) -> None:
        self._db = db

    def bulk_insert_facilities(
        self,
        kind: FacilityKind,
        facilities: Sequence[Facility],
        conn: sqlite3.Connection | None = None,
    ) -> list[int]:
        if conn is None:
            with self._db.connection() as own_conn:
                return self.bulk_insert_facilities(kind, facilities, own_conn)

        now = to_iso(utc_now())
        ids: list[int] = []
        for facility in facilities:
            if kind == "pharmacy":
                cursor = conn.execute(
                    """
                    INSERT INTO pharmacies (
                      name, address, phone, distance, latitude, longitude, category,
                      is_24x7, home_delivery, has_real_data, created_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, 0, 0, ?, ?)
                    """,
                    (
                        facility.name,
                        facility.address,
                        facility.phone,
                        facility.distance_km,
                        facility.coordinate.latitude,
                        facility.coordinate.longitude,
                        facility.category,
                        int(facility.has_real_data),
                        now,
                    ),
                )
            else:
                cursor = conn.execute(
                    """
                    INSERT INTO hospitals (
                      name, address, phone, distance, latitude, longitude, category,
                      facilities, emergency_available, has_real_data, created_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        facility.name,
                        facility.address,
                        facility.phone,
                        facility.distance_km,
                        facility.coordinate.latitude,
                        facility.coordinate.longitude,
                        facility.category,
                        facility.facilities_description,
                        int(facility.emergency_capable),
                        int(facility.has_real_data),
                        now,
                    ),
                )
            ids.append(int(cursor.lastrowid))
        return ids

    def bulk_insert_children(
        self,
        facility_id: int,
        kind: FacilityKind,
        children: Sequence[Any],
        conn: sqlite3.Connection | None = None,
    ) -> int:
        if conn is None:
            with self._db.connection() as own_conn:
                return self.bulk_insert_children(facility_id, kind, children, own_conn)

        now = to_iso(utc_now())
        payloads = [_child_payload(child) for child in children]
        if kind == "pharmacy":
            conn.executemany(
                """
                INSERT INTO medicine_inventory (
                  pharmacy_id, medicine_name, generic_name, category, manufacturer,
                  price, stock_status, quantity, requires_prescription, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        facility_id,
                        item["medicine_name"],
                        item.get("generic_name", ""),
                        item.get("category", ""),
                        item.get("manufacturer", ""),
                        item.get("price", 0.0),
                        item.get("stock_status", "available"),
                        item.get("quantity", 0),
                        int(bool(item.get("requires_prescription", False))),
                        now,
                    )
                    for item in payloads
                ],
            )
        else:
            conn.executemany(
                """
                INSERT INTO doctors (
                  hospital_id, name, specialization, experience_years, consultation_fee,
                  rating, available_days, available_time, languages, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        facility_id,
                        doctor["name"],
                        doctor.get("specialization", ""),
                        doctor.get("experience_years", 0),
                        doctor.get("consultation_fee", 0),
                        doctor.get("rating"),
                        doctor.get("available_days", ""),
                        doctor.get("available_time", ""),
                        json.dumps(doctor.get("languages", [])),
                        now,
                    )
                    for doctor in payloads
                ],
            )
        return len(payloads)

    def save_facilities(self, kind: FacilityKind, facilities: Sequence[Facility]) -> list[int]:
        """Persist facilities with their doctors or inventory in a single transaction."""
        with self._db.connection() as conn:
            ids = self.bulk_insert_facilities(kind, facilities, conn)
            for facility_id, facility in zip(ids, facilities):
                if facility.children:
                    self.bulk_insert_children(facility_id, kind, facility.children, conn)
        return ids

    def search_inventory(self, term: str, limit: int = 50) -> list[dict[str, Any]]:
        pattern = f"%{term.strip()}%"
        with self._db.connection() as conn:
            rows = conn.execute(
                """
                SELECT mi.id, mi.medicine_name, mi.generic_name, mi.category, mi.manufacturer,
                       mi.price, mi.stock_status, mi.quantity, mi.requires_prescription,
                       p.id AS pharmacy_id, p.name AS pharmacy_name, p.address AS pharmacy_address,
                       p.phone AS pharmacy_phone, p.distance
                FROM medicine_inventory mi
                INNER JOIN pharmacies p ON mi.pharmacy_id = p.id
                WHERE mi.medicine_name LIKE ? OR mi.generic_name LIKE ?
                ORDER BY p.distance ASC, mi.price ASC
                LIMIT ?
                """,
                (pattern, pattern, limit),
            ).fetchall()
        results = []
        for row in rows:
            item = dict(row)
            item["requires_prescription"] = bool(item["requires_prescription"])
            results.append(item)
        return results

    def record_medicine_search(self, user_id: str, medicine_name: str, symptoms: str | None = None) -> int:
        with self._db.connection() as conn:
            cursor = conn.execute(
                """
                INSERT INTO medicine_searches (user_id, medicine_name, symptoms, created_at)
                VALUES (?, ?, ?, ?)
                """,
                (user_id, medicine_name, symptoms, to_iso(utc_now())),
            )
            return int(cursor.lastrowid)

    def find_doctor(self, hospital_name: str, doctor_name: str) -> dict[str, Any] | None:
        with self._db.connection() as conn:
            row = conn.execute(
                """
                SELECT h.id AS hospital_id, d.id AS doctor_id, d.consultation_fee
                FROM hospitals h
                INNER JOIN doctors d ON h.id = d.hospital_id
                WHERE h.name = ? AND d.name = ?
                ORDER BY h.id DESC
                LIMIT 1
                """,
                (hospital_name, doctor_name),
            ).fetchone()
        return dict(row) if row else None

    def create_appointment(
        self,
        *,
        user_id: str,
        doctor_id: int,
        hospital_id: int,
        appointment_date: str | None,
        appointment_time: str | None,
        symptoms: str | None = None,
        notes: str | None = None,
        pre_tests: str | None = None,
        consultation_fee: int | None = None,
    ) -> dict[str, Any]:
        booking_id = generate_booking_id()
        now = to_iso(utc_now())
        with self._db.connection() as conn:
            cursor = conn.execute(
                """
                INSERT INTO appointments (
                  booking_id, user_id, doctor_id, hospital_id, appointment_date, appointment_time,
                  symptoms, status, notes, pre_tests, consultation_fee, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, 'pending', ?, ?, ?, ?)
                """,
                (
                    booking_id,
                    user_id,
                    doctor_id,
                    hospital_id,
                    appointment_date,
                    appointment_time,
                    symptoms,
                    notes,
                    pre_tests,
                    consultation_fee,
                    now,
                ),
            )
            appointment_id = int(cursor.lastrowid)
        return {
            "booking_id": booking_id,
            "appointment_id": appointment_id,
            "consultation_fee": consultation_fee,
            "status": "pending",
            "created_at": now,
        }

    def appointment_history(self, user_id: str) -> list[dict[str, Any]]:
        with self._db.connection() as conn:
            return [
                dict(row)
                for row in conn.execute(
                    """
                    SELECT a.booking_id, a.appointment_date, a.appointment_time, a.status,
                           a.symptoms, a.consultation_fee,
                           d.name AS doctor_name, d.specialization,
                           h.name AS hospital_name
                    FROM appointments a
                    LEFT JOIN doctors d ON a.doctor_id = d.id
                    LEFT JOIN hospitals h ON a.hospital_id = h.id
                    WHERE a.user_id = ?
                    ORDER BY a.appointment_date DESC, a.appointment_time DESC
                    """,
                    (user_id,),
                ).fetchall()
            ]

    def get_appointment(self, user_id: str, booking_id: str) -> dict[str, Any] | None:
        with self._db.connection() as conn:
            row = conn.execute(
                """
                SELECT a.*,
                       h.name AS hospital_name, h.address AS hospital_address, h.phone AS hospital_phone,
                       d.name AS doctor_name, d.specialization, d.experience_years
                FROM appointments a
                INNER JOIN hospitals h ON a.hospital_id = h.id
                INNER JOIN doctors d ON a.doctor_id = d.id
                WHERE a.booking_id = ? AND a.user_id = ?
                """,
                (booking_id, user_id),
            ).fetchone()
        return dict(row) if row else None

    def create_prescription_order(
        self,
        *,
        user_id: str,
        pharmacy_id: int,
        medicines_requested: Sequence[str],
        delivery_type: str = "pickup",
        delivery_address: str | None = None,
        notes: str | None = None,
    ) -> dict[str, Any] | None:
        order_id = generate_order_id()
        now = to_iso(utc_now())
        with self._db.connection() as conn:
            pharmacy = conn.execute("SELECT id FROM pharmacies WHERE id = ?", (pharmacy_id,)).fetchone()
            if pharmacy is None:
                return None
            conn.execute(
                """
                INSERT INTO prescription_orders (
                  order_id, user_id, pharmacy_id, medicines_requested, delivery_type,
                  delivery_address, status, notes, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, 'pending', ?, ?)
                """,
                (
                    order_id,
                    user_id,
                    pharmacy_id,
                    json.dumps(list(medicines_requested)),
                    delivery_type,
                    delivery_address,
                    notes,
                    now,
                ),
            )
        return {"order_id": order_id, "status": "pending", "created_at": now}

    def list_orders(self, user_id: str) -> list[dict[str, Any]]:
        with self._db.connection() as conn:
            rows = conn.execute(
                """
                SELECT po.order_id, po.pharmacy_id, po.medicines_requested, po.delivery_type,
                       po.delivery_address, po.status, po.notes, po.created_at,
                       p.name AS pharmacy_name, p.address AS pharmacy_address, p.phone AS pharmacy_phone
                FROM prescription_orders po
                INNER JOIN pharmacies p ON po.pharmacy_id = p.id
                WHERE po.user_id = ?
                ORDER BY po.created_at DESC, po.id DESC
                """,
                (user_id,),
            ).fetchall()
        orders = []
        for row in rows:
            order = dict(row)
            order["medicines_requested"] = json.loads(order["medicines_requested"] or "[]")
            orders.append(order)
        return orders
