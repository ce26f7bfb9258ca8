"""
Error taxonomy for the polymorphic record codec.

Validation failures are everyday events (bad input, data written by a newer
deployment) and are raised as ``PayloadValidationError`` subclasses that
callers are expected to catch. Only registry misconfiguration, which is not
data dependent, surfaces as ``RegistryConfigurationError`` at startup.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Iterable, Mapping, Optional, Tuple


class ErrorCode(StrEnum):
    UNKNOWN_VARIANT = "unknown_variant"
    MALFORMED_DISCRIMINATOR = "malformed_discriminator"
    MISSING_FIELD = "missing_field"
    INVALID_FIELD_TYPE = "invalid_field_type"


@dataclass(frozen=True)
class FieldError:
    """
    A single failing field.

    Attributes
    ----------
    field : str
        Dotted location of the field (``payload.initiated_at``).
    code : ErrorCode
        Category of the failure.
    message : str
        Human-readable explanation suitable for an API response or a log line.
    expected : str | None
        The constraint that failed (pydantic error type, or the accepted
        discriminator values).
    """

    field: str
    code: ErrorCode
    message: str
    expected: Optional[str] = None

    @classmethod
    def from_pydantic(cls, error: Mapping[str, Any]) -> "FieldError":
        """Translate one entry of ``pydantic.ValidationError.errors()``."""
        location = ".".join(str(part) for part in error.get("loc", ())) or "__root__"
        error_type = str(error.get("type", "value_error"))
        code = ErrorCode.MISSING_FIELD if error_type == "missing" else ErrorCode.INVALID_FIELD_TYPE
        return cls(field=location, code=code, message=str(error.get("msg", "")), expected=error_type)

    def prefixed(self, prefix: str) -> "FieldError":
        return FieldError(
            field=prefix if self.field == "__root__" else f"{prefix}.{self.field}",
            code=self.code,
            message=self.message,
            expected=self.expected,
        )

    def as_dict(self) -> dict[str, Optional[str]]:
        return {
            "field": self.field,
            "code": self.code.value,
            "message": self.message,
            "expected": self.expected,
        }


class PolyRecordError(Exception):
    """Base class for every error raised by polyrecord."""


class RegistryConfigurationError(PolyRecordError):
    """The variant registry was declared incorrectly (duplicate or missing variants)."""


class PayloadValidationError(PolyRecordError, ValueError):
    """Input or stored data failed validation. Carries every failing field."""

    def __init__(self, errors: Iterable[FieldError], message: Optional[str] = None) -> None:
        self.errors: Tuple[FieldError, ...] = tuple(errors)
        if message is None:
            message = "; ".join(f"{err.field}: {err.message}" for err in self.errors)
        super().__init__(message or "validation failed")

    @property
    def fields(self) -> list[str]:
        return [err.field for err in self.errors]

    @property
    def codes(self) -> set[ErrorCode]:
        return {err.code for err in self.errors}

    def prefixed(self, prefix: str) -> "PayloadValidationError":
        """Return a copy of this error with every field nested under ``prefix``."""
        return type(self)(err.prefixed(prefix) for err in self.errors)


class UnknownVariantError(PayloadValidationError):
    """The discriminator has no codec in the registry."""


class MalformedDiscriminatorError(UnknownVariantError):
    """The discriminator value does not name any known activity type."""


__all__ = [
    "ErrorCode",
    "FieldError",
    "PolyRecordError",
    "RegistryConfigurationError",
    "PayloadValidationError",
    "UnknownVariantError",
    "MalformedDiscriminatorError",
]
