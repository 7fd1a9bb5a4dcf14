from __future__ import annotations

import os
import re
import threading
from typing import Mapping, Sequence

_NUMBERED_KEY_RE = re.compile(r"^GROQ_API_KEY_(\d+)$")


class KeyRotator:
    """Round-robin cursor over a fixed set of API keys."""

    def __init__(self, keys: Sequence[str]) -> None:
        self._keys = tuple(key.strip() for key in keys if key and key.strip())
        self._cursor = 0
        self._lock = threading.Lock()

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "KeyRotator":
        env = os.environ if environ is None else environ
        numbered: list[tuple[int, str]] = []
        for name, value in env.items():
            match = _NUMBERED_KEY_RE.match(name)
            if match and value.strip():
                numbered.append((int(match.group(1)), value))
        keys = [value for _, value in sorted(numbered)]
        single = (env.get("GROQ_API_KEY") or "").strip()
        if single and single not in keys:
            keys.insert(0, single)
        return cls(keys)

    def __len__(self) -> int:
        return len(self._keys)

    def __bool__(self) -> bool:
        return bool(self._keys)

    @property
    def cursor(self) -> int:
        return self._cursor

    def next_key(self) -> str | None:
        if not self._keys:
            return None
        with self._lock:
            key = self._keys[self._cursor]
            self._cursor = (self._cursor + 1) % len(self._keys)
        return key
