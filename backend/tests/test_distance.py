from __future__ import annotations

import pytest

from arogya_core.distance import distance_km, round_one_decimal
from arogya_core.models import Coordinate

CHENNAI = Coordinate(13.0827, 80.2707)
BENGALURU = Coordinate(12.9716, 77.5946)


def test_distance_to_self_is_zero():
    assert distance_km(CHENNAI, CHENNAI) == 0.0


def test_distance_is_symmetric_and_rounded():
    forward = distance_km(CHENNAI, BENGALURU)
    backward = distance_km(BENGALURU, CHENNAI)
    assert forward == backward
    assert forward == round(forward, 1)
    assert 285.0 < forward < 295.0


def test_distance_handles_antipodal_points():
    assert distance_km(Coordinate(0.0, 0.0), Coordinate(0.0, 180.0)) == pytest.approx(20015.1, abs=0.1)


def test_small_offsets_stay_below_one_km():
    assert distance_km(Coordinate(13.05, 80.24), Coordinate(13.051, 80.241)) < 1.0


def test_rounding_is_half_up():
    assert round_one_decimal(0.25) == 0.3
    assert round_one_decimal(1.04) == 1.0
    assert round_one_decimal(2.45) == 2.5
