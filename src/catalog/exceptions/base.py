"""
Application-level exceptions.

Every error the API can answer with derives from `AppError`, which knows how to
render itself (`to_payload`) and which HTTP status it maps to (`http_status`).
Repository/persistence errors live here; request-pipeline errors (decode,
binding, validation) live in `catalog.exceptions.request`.
"""

from typing import Any, Iterable


class AppError(Exception):
    """
    Base exception for errors that are reported to API clients.

    - message: human-friendly message (safe to show to clients)
    - fields: optional list of field names related to the error (e.g. ['title'])
    - constraint: optional DB constraint name (for logs only, never sent to clients)
    - error_code: canonical short code (e.g. 'duplicate', 'invalid_input')
    """

    # canonical error_code -> HTTP status
    ERROR_CODE_TO_STATUS = {
        "duplicate": 409,
        "invalid_field": 400,
        "invalid_input": 400,
        "invalid_json": 400,
        "validation_failed": 400,
        "not_found": 400,
        "persistence": 500,
    }

    DEFAULT_STATUS = 400

    def __init__(self, message: str, *, fields: Iterable[str] | None = None,
                 constraint: str | None = None, error_code: str | None = None):
        super().__init__(message)
        self.message = message
        self.fields = list(fields) if fields else None
        self.constraint = constraint
        self.error_code = error_code

    def __str__(self) -> str:
        base = self.message
        parts = []
        if self.fields:
            parts.append(f"fields: {', '.join(self.fields)}")
        if self.constraint:
            parts.append(f"constraint: {self.constraint}")
        if self.error_code:
            parts.append(f"code: {self.error_code}")
        if parts:
            return f"{base} ({'; '.join(parts)})"
        return base

    def to_payload(self) -> Any:
        """
        JSON-serializable body for HTTP responses:
            {"detail": "...", "code": "duplicate", "fields": ["title"]}
        `constraint` never goes into the payload.
        """
        payload: dict[str, Any] = {"detail": self.message}
        if self.error_code:
            payload["code"] = self.error_code
        if self.fields:
            payload["fields"] = list(self.fields)
        return payload

    def http_status(self) -> int:
        if self.error_code:
            return self.ERROR_CODE_TO_STATUS.get(self.error_code, self.DEFAULT_STATUS)
        return self.DEFAULT_STATUS


# =================================================================================================================
# Repository / persistence errors
# =================================================================================================================

class RepositoryError(AppError):
    """
    Storage engine failure. Maps to HTTP 500; the payload is always the generic
    message, the real cause is only logged.
    """

    PUBLIC_MESSAGE = "An unexpected error occurred."

    def __init__(self, message: str, *, fields: Iterable[str] | None = None,
                 constraint: str | None = None, error_code: str | None = "persistence"):
        super().__init__(message, fields=fields, constraint=constraint, error_code=error_code)

    def to_payload(self) -> Any:
        if self.error_code == "persistence":
            return {"detail": self.PUBLIC_MESSAGE}
        return super().to_payload()


class NotFoundError(RepositoryError):
    def __init__(self, message: str = "Not found", *, fields: Iterable[str] | None = None):
        super().__init__(message, fields=fields, error_code="not_found")

    def to_payload(self) -> Any:
        # The HTTP surface answers "not found" with the bare message string.
        return self.message


class DuplicateError(RepositoryError):
    """A storage-level unique constraint rejected the write (409)."""

    def __init__(self, message: str, *, fields: Iterable[str] | None = None, constraint: str | None = None):
        super().__init__(message, fields=fields, constraint=constraint, error_code="duplicate")


class InvalidFieldError(RepositoryError):
    """Raised when a caller passes unknown fields to a repository method."""

    def __init__(self, message: str, *, fields: Iterable[str] | None = None):
        super().__init__(message, fields=fields, error_code="invalid_field")


__all__ = [
    "AppError",
    "RepositoryError",
    "NotFoundError",
    "DuplicateError",
    "InvalidFieldError",
]
