from __future__ import annotations

from typing import Any, Sequence

from arogya_core.errors import ExternalQueryFailure, GeocodeFailure
from arogya_core.models import Coordinate, Facility, RawPlace


class FakePlaces:
    """Places collaborator keyed by category; records every query it receives."""

    def __init__(self, by_category: dict[str, Sequence[RawPlace]] | None = None, fail: bool = False) -> None:
        self.by_category = by_category or {}
        self.fail = fail
        self.calls: list[tuple[str, int, int]] = []

    def query(self, category: str, center: Coordinate, radius_meters: int, limit: int) -> list[RawPlace]:
        self.calls.append((category, radius_meters, limit))
        if self.fail:
            raise ExternalQueryFailure("fake_places", "boom")
        return list(self.by_category.get(category, []))


class FakeGeocoder:
    def __init__(self, coordinate: Coordinate | None = None) -> None:
        self.coordinate = coordinate
        self.queries: list[str] = []

    def geocode(self, query_text: str) -> Coordinate:
        self.queries.append(query_text)
        if self.coordinate is None:
            raise GeocodeFailure(query_text, "no results")
        return self.coordinate


class ScriptedGenerator:
    """Returns queued replies in order; an Exception instance in the queue is raised."""

    def __init__(self, replies: Sequence[Any] = ()) -> None:
        self.replies = list(replies)
        self.prompts: list[str] = []

    def generate(self, prompt: str, temperature: float = 0.7, max_tokens: int = 400) -> str:
        self.prompts.append(prompt)
        if not self.replies:
            raise ExternalQueryFailure("fake_llm", "no scripted reply")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


def make_facility(name: str, distance: float, kind: str = "hospital", **overrides: Any) -> Facility:
    values: dict[str, Any] = {
        "name": name,
        "address": "Somewhere, Chennai",
        "coordinate": Coordinate(13.05, 80.24),
        "distance_km": distance,
        "phone": "Not available",
        "category": "healthcare.hospital" if kind == "hospital" else "healthcare.pharmacy",
        "kind": kind,
        "emergency_capable": False,
        "facilities_description": "OPD, Consultation, Lab, Pharmacy",
    }
    values.update(overrides)
    return Facility(**values)
