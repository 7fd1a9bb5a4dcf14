from __future__ import annotations

import json
import re
from typing import Any, get_origin

from pydantic import TypeAdapter, ValidationError

from .errors import ParseFailure


_FENCE_RE = re.compile(r"```(?:json|JSON)?[ \t]*\n?")
_OPENERS = {"[": "]", "{": "}"}


def strip_code_fences(text: str) -> str:
    return _FENCE_RE.sub("", text or "").strip()


def _balanced_blocks(text: str, opener: str) -> list[str]:
    closer = _OPENERS[opener]
    blocks: list[str] = []
    for start_idx in [idx for idx, char in enumerate(text) if char == opener]:
        depth = 0
        for end_idx in range(start_idx, len(text)):
            char = text[end_idx]
            if char == opener:
                depth += 1
            elif char == closer:
                depth -= 1
            if depth == 0:
                blocks.append(text[start_idx : end_idx + 1])
                break
    return blocks


def _load_json(text: str, opener: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass
    for candidate in _balanced_blocks(text, opener):
        try:
            return json.loads(candidate)
        except json.JSONDecodeError:
            continue
    raise ParseFailure("Response does not contain valid JSON", text)


def parse_structured_response(text: str, schema: Any) -> Any:
    """Parse generated text into ``schema`` (a pydantic model or ``list[Model]``).

    Markdown fences are stripped first. When the text is not JSON as a whole,
    the first balanced array/object embedded in it is used instead.
    """
    cleaned = strip_code_fences(text)
    if not cleaned:
        raise ParseFailure("Empty response", text)

    adapter = TypeAdapter(schema)
    expects_list = get_origin(schema) is list
    payload = _load_json(cleaned, "[" if expects_list else "{")
    try:
        return adapter.validate_python(payload)
    except ValidationError as exc:
        raise ParseFailure(f"Response failed schema validation: {exc.error_count()} error(s)", cleaned) from exc
