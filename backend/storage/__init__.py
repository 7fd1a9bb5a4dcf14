from .database import SQLiteFacilityDB
from .facility_store import FacilityStore, generate_booking_id, generate_order_id

__all__ = [
    "SQLiteFacilityDB",
    "FacilityStore",
    "generate_booking_id",
    "generate_order_id",
]
