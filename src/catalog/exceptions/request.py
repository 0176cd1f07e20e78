"""
Errors raised while turning a request body into a valid entity.

Pipeline stage -> error:
    decode   -> DecodeError
    bind     -> BindingError, ExtraFieldsError
    validate -> FormValidationError
All of them are client errors (HTTP 400).
"""

from typing import Any, Iterable, Sequence

from catalog.forms.errors import aggregate_violations
from catalog.validators.rules import Violation

from .base import AppError


class DecodeError(AppError):
    """The request body is not a JSON object."""

    def __init__(self, message: str = "Request body is not valid JSON."):
        super().__init__(message, error_code="invalid_json")


class BindingError(AppError):
    """
    A payload value has the wrong shape for its field (e.g. a non-numeric price).

    - field: dotted/indexed path of the offending field (e.g. 'categories[1].eid')
    - reason: what was wrong with it
    """

    def __init__(self, field: str, reason: str):
        super().__init__(reason, fields=[field], error_code="invalid_input")
        self.field = field
        self.reason = reason


class ExtraFieldsError(AppError):
    """The payload carries keys the form does not know (only when configured as fatal)."""

    def __init__(self, message: str, *, fields: Iterable[str]):
        super().__init__(message, fields=fields, error_code="invalid_field")


class FormValidationError(AppError):
    """
    The bound entity broke one or more rules.

    The response body is the aggregated `field -> [messages]` mapping rather than
    the generic detail payload.
    """

    def __init__(self, violations: Sequence[Violation]):
        self.violations = list(violations)
        self.errors = aggregate_violations(self.violations)
        super().__init__(
            "Validation failed.",
            fields=list(self.errors),
            error_code="validation_failed",
        )

    def to_payload(self) -> Any:
        return self.errors


__all__ = [
    "DecodeError",
    "BindingError",
    "ExtraFieldsError",
    "FormValidationError",
]
