"""
Record envelope for the activity feed.

An ``ActivityRecord`` is one feed row: the fields every activity shares
(``id``, ``amount``) plus exactly one resolved variant payload. Building a
record from raw input is all-or-nothing; shared-field errors and payload
errors are collected together and a record is only produced when both pass.

Row shape written to and read from the backing store:

    {"id": "<uuid>", "amount": "100.00", "payload": {"type": "deposit", ...}}
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from decimal import Decimal
from enum import StrEnum
from typing import Any, Dict, Mapping, Optional, Tuple
from uuid import UUID, uuid4

import pydantic
from pydantic import BaseModel, Field, SerializeAsAny, field_validator

from polyrecord.codec.base import VariantPayload, normalize_keys
from polyrecord.codec.discriminator import ActivityType
from polyrecord.codec.dispatcher import PolymorphicDispatcher
from polyrecord.codec.errors import ErrorCode, FieldError, PayloadValidationError
from polyrecord.codec.registry import VariantRegistry
from polyrecord.utils.logging import get_logger

log = get_logger(__name__)

PAYLOAD_KEY = "payload"
SHARED_KEYS = ("id", "amount")


class SharedFields(BaseModel):
    """
    Fields common to every activity, independent of its variant.
    """

    id: UUID = Field(default_factory=uuid4, description="Opaque record identifier.")
    amount: Decimal = Field(..., max_digits=14, decimal_places=2, description="Signed amount.")

    model_config = {
        "frozen": True,
        "extra": "ignore",
    }


class ActivityRecord(SharedFields):
    """
    A validated feed row. ``payload`` is always a concrete variant payload.
    """

    payload: SerializeAsAny[VariantPayload]

    @field_validator("payload", mode="before")
    @classmethod
    def _dispatch_payload(cls, value: Any) -> Any:
        # Raw mappings resolve through the process registry; the base model has no codec.
        if type(value) is VariantPayload:
            raise ValueError("payload must be a concrete variant, not the VariantPayload base")
        if isinstance(value, VariantPayload):
            return value
        return PolymorphicDispatcher().cast(value)

    @property
    def type(self) -> ActivityType:
        return self.payload.type


class EnvelopeState(StrEnum):
    UNVALIDATED = "unvalidated"
    VALIDATING = "validating"
    VALID = "valid"
    INVALID = "invalid"


@dataclass(frozen=True)
class EnvelopeResult:
    """
    Outcome of one construction attempt.

    Invariants:
        - VALID carries a record and no errors
        - INVALID carries at least one error and no record
    """

    state: EnvelopeState
    record: Optional[ActivityRecord] = None
    errors: Tuple[FieldError, ...] = ()

    def __post_init__(self) -> None:
        if self.state == EnvelopeState.VALID:
            if self.record is None or self.errors:
                raise ValueError("VALID result requires a record and no errors")
        elif self.state == EnvelopeState.INVALID:
            if self.record is not None or not self.errors:
                raise ValueError("INVALID result requires errors and no record")
        else:
            raise ValueError(f"{self.state} is not a terminal state")

    @property
    def ok(self) -> bool:
        return self.state == EnvelopeState.VALID

    def unwrap(self) -> ActivityRecord:
        """Return the record, or raise the aggregated errors."""
        if self.record is None:
            raise PayloadValidationError(self.errors)
        return self.record


def _split_input(data: Dict[str, Any]) -> Tuple[Dict[str, Any], Any, Optional[str]]:
    """Separate shared fields from the payload input (nested or flat)."""
    shared = {key: data[key] for key in SHARED_KEYS if key in data}
    if PAYLOAD_KEY in data:
        return shared, data[PAYLOAD_KEY], PAYLOAD_KEY
    flat = {key: value for key, value in data.items() if key not in SHARED_KEYS}
    return shared, flat, None


def _shared_errors(exc: pydantic.ValidationError) -> list[FieldError]:
    return [FieldError.from_pydantic(error) for error in exc.errors()]


class RecordDraft:
    """
    One attempt at building an ``ActivityRecord`` from raw input.

    A draft moves ``unvalidated -> validating -> valid | invalid`` exactly
    once. Retrying means creating a new draft.
    """

    def __init__(self, raw: Any) -> None:
        self.raw = raw
        self.state = EnvelopeState.UNVALIDATED

    def validate(self, registry: Optional[VariantRegistry] = None) -> EnvelopeResult:
        if self.state != EnvelopeState.UNVALIDATED:
            raise RuntimeError(f"Draft already {self.state.value}; build a new draft to retry")
        self.state = EnvelopeState.VALIDATING
        try:
            result = self._run(PolymorphicDispatcher(registry))
        except Exception:
            self.state = EnvelopeState.INVALID
            raise
        self.state = result.state
        return result

    def _run(self, dispatcher: PolymorphicDispatcher) -> EnvelopeResult:
        if not isinstance(self.raw, Mapping):
            return EnvelopeResult(
                state=EnvelopeState.INVALID,
                errors=(
                    FieldError(
                        field="__root__",
                        code=ErrorCode.INVALID_FIELD_TYPE,
                        message=f"expected a mapping, got {type(self.raw).__name__}",
                        expected="mapping",
                    ),
                ),
            )

        shared_input, payload_input, prefix = _split_input(normalize_keys(self.raw))
        errors: list[FieldError] = []

        shared: Optional[SharedFields] = None
        try:
            shared = SharedFields.model_validate(shared_input)
        except pydantic.ValidationError as exc:
            errors.extend(_shared_errors(exc))

        payload: Optional[VariantPayload] = None
        if prefix and payload_input is None:
            errors.append(FieldError(field=prefix, code=ErrorCode.MISSING_FIELD, message="Field required"))
        else:
            try:
                payload = dispatcher.cast(payload_input)
            except PayloadValidationError as exc:
                errors.extend(exc.prefixed(prefix).errors if prefix else exc.errors)

        if errors or shared is None or payload is None:
            log.info(
                "Record rejected",
                extra={"error_count": len(errors), "fields": [err.field for err in errors]},
            )
            return EnvelopeResult(state=EnvelopeState.INVALID, errors=tuple(errors))

        record = ActivityRecord(id=shared.id, amount=shared.amount, payload=payload)
        log.debug("Record validated", extra={"variant": record.type.value, "record_id": str(record.id)})
        return EnvelopeResult(state=EnvelopeState.VALID, record=record)


def build_record(raw: Any, registry: Optional[VariantRegistry] = None) -> EnvelopeResult:
    """
    Validate raw input (nested or flat) into an ``ActivityRecord``.

    Parameters
    ----------
    raw : Mapping
        ``{"id", "amount", "payload": {...}}`` or the same keys flattened,
        with the discriminator under ``"type"``.
    registry : VariantRegistry | None
        Registry to dispatch payloads with. Defaults to the process registry.

    Returns
    -------
    EnvelopeResult
        VALID with the record, or INVALID with every failing field.
    """
    return RecordDraft(raw).validate(registry)


def dump_record(record: ActivityRecord, registry: Optional[VariantRegistry] = None) -> Dict[str, Any]:
    """Convert a record to the row handed to the backing store."""
    row = record.model_dump(mode="json", exclude={PAYLOAD_KEY})
    row[PAYLOAD_KEY] = PolymorphicDispatcher(registry).dump(record.payload)
    return row


def _decode_payload_column(stored: Any) -> Mapping[str, Any]:
    """Accept a decoded JSONB value or JSON text; errors are relative to the payload."""
    if isinstance(stored, (str, bytes)):
        try:
            stored = json.loads(stored)
        except ValueError as exc:
            raise PayloadValidationError(
                [
                    FieldError(
                        field="__root__",
                        code=ErrorCode.INVALID_FIELD_TYPE,
                        message="payload is not valid JSON",
                        expected="json object",
                    )
                ]
            ) from exc
    if stored is None:
        raise PayloadValidationError(
            [FieldError(field="__root__", code=ErrorCode.MISSING_FIELD, message="Field required")]
        )
    return stored


def load_record(row: Mapping[str, Any], registry: Optional[VariantRegistry] = None) -> ActivityRecord:
    """
    Rebuild a record from a stored row.

    The payload column may arrive decoded (JSONB) or as JSON text.

    Raises
    ------
    PayloadValidationError
        With every failing field; ``UnknownVariantError`` when only the
        payload discriminator is unresolvable.
    """
    data = normalize_keys(row)
    errors: list[FieldError] = []

    # Stored rows always carry their id; never mint a new one on read.
    if data.get("id") is None:
        errors.append(FieldError(field="id", code=ErrorCode.MISSING_FIELD, message="Field required"))

    shared: Optional[SharedFields] = None
    try:
        shared = SharedFields.model_validate({key: data[key] for key in SHARED_KEYS if key in data})
    except pydantic.ValidationError as exc:
        errors.extend(_shared_errors(exc))

    payload: Optional[VariantPayload] = None
    try:
        payload = PolymorphicDispatcher(registry).load(_decode_payload_column(data.get(PAYLOAD_KEY)))
    except PayloadValidationError as exc:
        if not errors:
            raise exc.prefixed(PAYLOAD_KEY) from exc
        errors.extend(exc.prefixed(PAYLOAD_KEY).errors)

    if errors or shared is None or payload is None:
        raise PayloadValidationError(errors)
    return ActivityRecord(id=shared.id, amount=shared.amount, payload=payload)


__all__ = [
    "ActivityRecord",
    "EnvelopeResult",
    "EnvelopeState",
    "RecordDraft",
    "SharedFields",
    "build_record",
    "dump_record",
    "load_record",
]
