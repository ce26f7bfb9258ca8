"""
Polymorphic dispatcher: route cast/dump/load to the right variant codec.

Input reaches the dispatcher in three shapes:

- an already-built ``VariantPayload`` (re-cast through its own codec);
- a mapping whose discriminator is an ``ActivityType`` member (trusted,
  in-process callers);
- a mapping whose discriminator is text, e.g. a decoded request body or a
  JSONB column (untrusted; converted with ``ActivityType.parse``).

Keys may be plain strings or ``StrEnum`` members. The dispatcher never falls
back to a default variant: anything it cannot resolve is reported as a
``PayloadValidationError``.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from polyrecord.codec.base import StorageRepresentation, VariantCodec, VariantPayload, normalize_keys
from polyrecord.codec.discriminator import DISCRIMINATOR_KEY, ActivityType
from polyrecord.codec.errors import (
    ErrorCode,
    FieldError,
    MalformedDiscriminatorError,
    PayloadValidationError,
    UnknownVariantError,
)
from polyrecord.codec.registry import VariantRegistry, get_registry
from polyrecord.utils.logging import get_logger

log = get_logger(__name__)

_ACCEPTED_TAGS = ", ".join(member.value for member in ActivityType)


def extract_discriminator(raw: Mapping[Any, Any]) -> ActivityType:
    """
    Read the discriminator out of a raw mapping.

    Raises
    ------
    PayloadValidationError
        ``missing_field`` when the key is absent or null.
    MalformedDiscriminatorError
        When the value does not name an ``ActivityType``.
    """
    value = normalize_keys(raw).get(DISCRIMINATOR_KEY)
    if value is None:
        raise PayloadValidationError(
            [
                FieldError(
                    field=DISCRIMINATOR_KEY,
                    code=ErrorCode.MISSING_FIELD,
                    message="Field required",
                    expected=_ACCEPTED_TAGS,
                )
            ]
        )

    tag = ActivityType.parse(value)
    if tag is None:
        raise MalformedDiscriminatorError(
            [
                FieldError(
                    field=DISCRIMINATOR_KEY,
                    code=ErrorCode.MALFORMED_DISCRIMINATOR,
                    message=f"{value!r} is not a known activity type",
                    expected=_ACCEPTED_TAGS,
                )
            ]
        )
    return tag


def _unknown_variant(tag: str, registry: VariantRegistry) -> UnknownVariantError:
    accepted = ", ".join(member.value for member in registry)
    return UnknownVariantError(
        [
            FieldError(
                field=DISCRIMINATOR_KEY,
                code=ErrorCode.UNKNOWN_VARIANT,
                message=f"No codec registered for activity type '{tag}'",
                expected=accepted,
            )
        ]
    )


class PolymorphicDispatcher:
    """
    Resolve the variant codec for a payload and delegate to it.

    Stateless apart from the read-only registry, so a single instance can be
    shared across threads.
    """

    def __init__(self, registry: Optional[VariantRegistry] = None) -> None:
        self.registry = registry if registry is not None else get_registry()

    def resolve(self, raw: Any) -> VariantCodec:
        """Find the codec responsible for ``raw`` (a payload or a mapping)."""
        if isinstance(raw, VariantPayload):
            codec = self.registry.codec_for_payload(raw)
            if codec is None:
                raise _unknown_variant(type(raw).__name__, self.registry)
            return codec

        if not isinstance(raw, Mapping):
            raise PayloadValidationError(
                [
                    FieldError(
                        field="__root__",
                        code=ErrorCode.INVALID_FIELD_TYPE,
                        message=f"expected a mapping or payload, got {type(raw).__name__}",
                        expected="mapping",
                    )
                ]
            )

        tag = extract_discriminator(raw)
        codec = self.registry.resolve(tag)
        if codec is None:
            raise _unknown_variant(tag.value, self.registry)
        return codec

    def cast(self, raw: Any) -> VariantPayload:
        """Validate user/API input into a concrete payload."""
        codec = self.resolve(raw)
        log.debug("Casting payload", extra={"variant": codec.tag.value})
        return codec.cast(raw)

    def dump(self, payload: VariantPayload) -> StorageRepresentation:
        """Serialize a payload through its own codec. Dispatch is by payload class."""
        codec = self.registry.codec_for_payload(payload)
        if codec is None:
            raise _unknown_variant(type(payload).__name__, self.registry)
        return codec.dump(payload)

    def load(self, stored: Mapping[str, Any]) -> VariantPayload:
        """Rebuild a payload from its storage representation."""
        codec = self.resolve(stored)
        log.debug("Loading payload", extra={"variant": codec.tag.value})
        return codec.load(stored)


def cast(raw: Any, registry: Optional[VariantRegistry] = None) -> VariantPayload:
    return PolymorphicDispatcher(registry).cast(raw)


def dump(payload: VariantPayload, registry: Optional[VariantRegistry] = None) -> StorageRepresentation:
    return PolymorphicDispatcher(registry).dump(payload)


def load(stored: Mapping[str, Any], registry: Optional[VariantRegistry] = None) -> VariantPayload:
    return PolymorphicDispatcher(registry).load(stored)


__all__ = [
    "PolymorphicDispatcher",
    "extract_discriminator",
    "cast",
    "dump",
    "load",
]
