from __future__ import annotations

import logging
import os
import time
from typing import Any, Callable

import httpx

from arogya_core.errors import ExternalQueryFailure
from arogya_core.keys import KeyRotator

logger = logging.getLogger(__name__)

_SERVICE = "groq"


def _provider_error_message(response: httpx.Response) -> str:
    message = response.text.strip()
    try:
        payload = response.json()
    except Exception:
        payload = None
    if isinstance(payload, dict):
        err = payload.get("error")
        if isinstance(err, dict):
            msg = err.get("message")
            if isinstance(msg, str) and msg.strip():
                return msg.strip()
        msg = payload.get("message")
        if isinstance(msg, str) and msg.strip():
            return msg.strip()
    return message or f"HTTP {response.status_code}"


def _coerce_completion_text(response_json: dict[str, Any]) -> str:
    choices = response_json.get("choices")
    if not isinstance(choices, list) or not choices:
        return ""
    message = choices[0].get("message") if isinstance(choices[0], dict) else None
    if not isinstance(message, dict):
        return ""
    content = message.get("content")
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts: list[str] = []
        for item in content:
            if isinstance(item, dict):
                text_value = item.get("text")
                if isinstance(text_value, str):
                    parts.append(text_value)
        return "\n".join(parts)
    return ""


class GroqTextGenerator:
    def __init__(
        self,
        keys: KeyRotator,
        *,
        model: str | None = None,
        base_url: str | None = None,
        timeout_seconds: float | None = None,
        max_attempts: int | None = None,
        transport: httpx.BaseTransport | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.keys = keys
        self.model = (model or os.getenv("GROQ_MODEL") or "llama-3.3-70b-versatile").strip()
        self.base_url = (base_url or os.getenv("GROQ_API_BASE_URL") or "https://api.groq.com/openai/v1").rstrip("/")
        self.timeout_seconds = (
            timeout_seconds if timeout_seconds is not None else float(os.getenv("AROGYA_LLM_TIMEOUT_SECONDS", "25"))
        )
        self.max_attempts = max(1, max_attempts or int(os.getenv("AROGYA_LLM_MAX_ATTEMPTS", "3")))
        self.backoff_base_seconds = 1.0
        self.backoff_max_seconds = 8.0
        self._transport = transport
        self._sleep = sleep

    def generate(self, prompt: str, temperature: float = 0.7, max_tokens: int = 400) -> str:
        payload = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        for attempt in range(self.max_attempts):
            api_key = self.keys.next_key()
            if not api_key:
                raise ExternalQueryFailure(_SERVICE, "no API key configured")
            try:
                with httpx.Client(
                    timeout=httpx.Timeout(self.timeout_seconds, connect=8.0),
                    transport=self._transport,
                ) as client:
                    response = client.post(
                        f"{self.base_url}/chat/completions",
                        headers={"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"},
                        json=payload,
                    )
            except httpx.TimeoutException as exc:
                raise ExternalQueryFailure(_SERVICE, "request timed out") from exc
            except httpx.HTTPError as exc:
                raise ExternalQueryFailure(_SERVICE, str(exc) or exc.__class__.__name__) from exc

            if response.status_code == 429 and attempt + 1 < self.max_attempts:
                wait = min(self.backoff_base_seconds * (2**attempt), self.backoff_max_seconds)
                logger.warning("groq rate limited, retrying in %.1fs (attempt %d)", wait, attempt + 1)
                self._sleep(wait)
                continue
            if response.status_code >= 400:
                raise ExternalQueryFailure(_SERVICE, _provider_error_message(response), response.status_code)

            try:
                completion_payload = response.json()
            except ValueError as exc:
                raise ExternalQueryFailure(_SERVICE, "completion body is not JSON") from exc
            text = _coerce_completion_text(completion_payload).strip() if isinstance(completion_payload, dict) else ""
            if not text:
                raise ExternalQueryFailure(_SERVICE, "empty completion")
            return text
        raise ExternalQueryFailure(_SERVICE, "rate limited", 429)
