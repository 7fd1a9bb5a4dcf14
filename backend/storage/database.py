from __future__ import annotations

import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator


class SQLiteFacilityDB:
    def __init__(self, db_path: str) -> None:
        self._path = Path(db_path).expanduser().resolve()
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._init_schema()

    @property
    def path(self) -> str:
        return str(self._path)

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._path), timeout=30.0, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        conn = self._connect()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_schema(self) -> None:
        with self._lock, self.connection() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS hospitals (
                  id INTEGER PRIMARY KEY AUTOINCREMENT,
                  name TEXT NOT NULL,
                  address TEXT,
                  phone TEXT,
                  distance REAL,
                  latitude REAL,
                  longitude REAL,
                  category TEXT,
                  facilities TEXT,
                  emergency_available INTEGER NOT NULL DEFAULT 0,
                  has_real_data INTEGER NOT NULL DEFAULT 0,
                  created_at TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS doctors (
                  id INTEGER PRIMARY KEY AUTOINCREMENT,
                  hospital_id INTEGER NOT NULL,
                  name TEXT NOT NULL,
                  specialization TEXT,
                  experience_years INTEGER,
                  consultation_fee INTEGER,
                  rating REAL,
                  available_days TEXT,
                  available_time TEXT,
                  languages TEXT,
                  created_at TEXT NOT NULL,
                  FOREIGN KEY(hospital_id) REFERENCES hospitals(id)
                );

                CREATE TABLE IF NOT EXISTS pharmacies (
                  id INTEGER PRIMARY KEY AUTOINCREMENT,
                  name TEXT NOT NULL,
                  address TEXT,
                  phone TEXT,
                  distance REAL,
                  latitude REAL,
                  longitude REAL,
                  category TEXT,
                  is_24x7 INTEGER NOT NULL DEFAULT 0,
                  home_delivery INTEGER NOT NULL DEFAULT 0,
                  has_real_data INTEGER NOT NULL DEFAULT 0,
                  created_at TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS medicine_inventory (
                  id INTEGER PRIMARY KEY AUTOINCREMENT,
                  pharmacy_id INTEGER NOT NULL,
                  medicine_name TEXT NOT NULL,
                  generic_name TEXT,
                  category TEXT,
                  manufacturer TEXT,
                  price REAL,
                  stock_status TEXT NOT NULL DEFAULT 'available',
                  quantity INTEGER NOT NULL DEFAULT 0,
                  requires_prescription INTEGER NOT NULL DEFAULT 0,
                  created_at TEXT NOT NULL,
                  FOREIGN KEY(pharmacy_id) REFERENCES pharmacies(id)
                );

                CREATE TABLE IF NOT EXISTS medicine_searches (
                  id INTEGER PRIMARY KEY AUTOINCREMENT,
                  user_id TEXT NOT NULL,
                  medicine_name TEXT NOT NULL,
                  symptoms TEXT,
                  created_at TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS appointments (
                  id INTEGER PRIMARY KEY AUTOINCREMENT,
                  booking_id TEXT UNIQUE NOT NULL,
                  user_id TEXT NOT NULL,
                  doctor_id INTEGER NOT NULL,
                  hospital_id INTEGER NOT NULL,
                  appointment_date TEXT,
                  appointment_time TEXT,
                  symptoms TEXT,
                  status TEXT NOT NULL DEFAULT 'pending',
                  notes TEXT,
                  pre_tests TEXT,
                  consultation_fee INTEGER,
                  created_at TEXT NOT NULL,
                  FOREIGN KEY(doctor_id) REFERENCES doctors(id),
                  FOREIGN KEY(hospital_id) REFERENCES hospitals(id)
                );

                CREATE TABLE IF NOT EXISTS prescription_orders (
                  id INTEGER PRIMARY KEY AUTOINCREMENT,
                  order_id TEXT UNIQUE NOT NULL,
                  user_id TEXT NOT NULL,
                  pharmacy_id INTEGER NOT NULL,
                  medicines_requested TEXT NOT NULL,
                  delivery_type TEXT NOT NULL DEFAULT 'pickup',
                  delivery_address TEXT,
                  status TEXT NOT NULL DEFAULT 'pending',
                  notes TEXT,
                  created_at TEXT NOT NULL,
                  FOREIGN KEY(pharmacy_id) REFERENCES pharmacies(id)
                );

                CREATE INDEX IF NOT EXISTS idx_doctors_hospital
                  ON doctors(hospital_id);
                CREATE INDEX IF NOT EXISTS idx_inventory_pharmacy
                  ON medicine_inventory(pharmacy_id);
                CREATE INDEX IF NOT EXISTS idx_inventory_names
                  ON medicine_inventory(medicine_name, generic_name);
                CREATE INDEX IF NOT EXISTS idx_appointments_user_date
                  ON appointments(user_id, appointment_date);
                CREATE INDEX IF NOT EXISTS idx_orders_user
                  ON prescription_orders(user_id, created_at);
                """
            )
