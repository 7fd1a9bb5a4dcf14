from __future__ import annotations

import threading
from collections import Counter

from arogya_core.keys import KeyRotator


def test_keys_rotate_round_robin():
    rotator = KeyRotator(["a", "b", "c"])
    assert [rotator.next_key() for _ in range(5)] == ["a", "b", "c", "a", "b"]
    assert rotator.cursor == 2


def test_from_env_orders_numbered_keys_after_primary():
    rotator = KeyRotator.from_env(
        {
            "GROQ_API_KEY_10": "k10",
            "GROQ_API_KEY_2": "k2",
            "GROQ_API_KEY_1": "k1",
            "GROQ_API_KEY": "main",
            "GROQ_API_KEY_3": "  ",
            "OTHER": "ignored",
        }
    )
    assert len(rotator) == 4
    assert [rotator.next_key() for _ in range(4)] == ["main", "k1", "k2", "k10"]


def test_duplicate_primary_key_is_not_repeated():
    rotator = KeyRotator.from_env({"GROQ_API_KEY": "k1", "GROQ_API_KEY_1": "k1"})
    assert len(rotator) == 1


def test_empty_rotator_has_no_key():
    rotator = KeyRotator(["", "  "])
    assert not rotator
    assert rotator.next_key() is None


def test_concurrent_callers_share_keys_evenly():
    rotator = KeyRotator(["a", "b", "c", "d"])
    seen: list[str] = []
    seen_lock = threading.Lock()

    def worker() -> None:
        local = [rotator.next_key() for _ in range(100)]
        with seen_lock:
            seen.extend(local)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert Counter(seen) == {"a": 200, "b": 200, "c": 200, "d": 200}
