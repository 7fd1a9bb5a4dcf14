from __future__ import annotations


class ArogyaError(Exception):
    pass


class GeocodeFailure(ArogyaError):
    def __init__(self, query: str, reason: str) -> None:
        super().__init__(f"Unable to geocode '{query}': {reason}")
        self.query = query
        self.reason = reason


class ExternalQueryFailure(ArogyaError):
    def __init__(self, service: str, message: str, status_code: int | None = None) -> None:
        super().__init__(f"{service}: {message}")
        self.service = service
        self.status_code = status_code


class ParseFailure(ArogyaError):
    def __init__(self, message: str, raw_text: str = "") -> None:
        super().__init__(message)
        self.raw_text = (raw_text or "")[:400]


class EmptyResultSet(ArogyaError):
    pass
