"""
Variant codec interfaces and the pydantic-backed default implementation.

Every variant provides a cast/dump/load triplet. ``VariantCodec`` is the
structural contract the dispatcher relies on; ``AbstractVariantCodec`` is an
optional ABC for class-based implementations, and ``ModelCodec`` implements
the contract on top of a ``VariantPayload`` model so most variants only need
to declare their fields.
"""

from __future__ import annotations

import abc
from enum import Enum
from typing import Any, Dict, Generic, Mapping, Optional, Protocol, TypeVar, runtime_checkable

import pydantic
from pydantic import BaseModel, ConfigDict

from polyrecord.codec.discriminator import DISCRIMINATOR_KEY, ActivityType
from polyrecord.codec.errors import ErrorCode, FieldError, PayloadValidationError

StorageRepresentation = Dict[str, Any]


class VariantPayload(BaseModel):
    """
    Base model for every variant payload.

    Instances only come out of a successful validation, so a payload is always
    internally valid. Unknown keys are ignored so that flat records (shared
    fields next to payload fields) can be cast directly.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    type: ActivityType


P = TypeVar("P", bound=VariantPayload)


def normalize_keys(raw: Mapping[Any, Any]) -> Dict[str, Any]:
    """Return a copy of ``raw`` keyed by plain strings (enum keys become their value)."""
    return {(key.value if isinstance(key, Enum) else str(key)): value for key, value in raw.items()}


@runtime_checkable
class VariantCodec(Protocol):
    """
    Contract every variant codec must satisfy.

    Attributes
    ----------
    tag : ActivityType
        Discriminator this codec is registered under.
    payload_model : type[VariantPayload]
        Model class of the payloads this codec produces.
    """

    tag: ActivityType
    payload_model: type[VariantPayload]

    def cast(self, raw: Any) -> VariantPayload:
        """
        Validate semi-structured input and build a payload.

        Raises
        ------
        PayloadValidationError
            Listing every failing field. No payload is produced.
        """
        ...

    def dump(self, payload: VariantPayload) -> StorageRepresentation:
        """Convert a payload to its storage representation. Never fails."""
        ...

    def load(self, stored: Mapping[str, Any]) -> VariantPayload:
        """Rebuild a payload from a storage representation produced by ``dump``."""
        ...


class AbstractVariantCodec(abc.ABC):
    """
    Optional ABC helper for class-based codecs.

    Subclasses set ``tag`` and ``payload_model`` and implement ``cast`` and
    ``dump``. ``load`` re-runs ``cast`` unless overridden.
    """

    tag: ActivityType
    payload_model: type[VariantPayload]

    @abc.abstractmethod
    def cast(self, raw: Any) -> VariantPayload:  # pragma: no cover - interface only
        raise NotImplementedError

    @abc.abstractmethod
    def dump(self, payload: VariantPayload) -> StorageRepresentation:  # pragma: no cover - interface only
        raise NotImplementedError

    def load(self, stored: Mapping[str, Any]) -> VariantPayload:
        return self.cast(stored)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(tag={self.tag.value!r})"


class ModelCodec(AbstractVariantCodec, Generic[P]):
    """
    Codec driven entirely by a pydantic payload model.

    Subclasses either set ``tag``/``payload_model`` as class attributes or pass
    them to the constructor. Field coercion and variant-specific rules live on
    the model itself.
    """

    tag: ActivityType
    payload_model: type[P]

    def __init__(
        self,
        tag: Optional[ActivityType] = None,
        payload_model: Optional[type[P]] = None,
    ) -> None:
        if tag is not None:
            self.tag = tag
        if payload_model is not None:
            self.payload_model = payload_model
        if getattr(self, "tag", None) is None or getattr(self, "payload_model", None) is None:
            raise TypeError(f"{type(self).__name__} requires both a tag and a payload_model")

    def _coerce_input(self, raw: Any) -> Dict[str, Any]:
        if isinstance(raw, VariantPayload):
            if not isinstance(raw, self.payload_model):
                raise PayloadValidationError(
                    [
                        FieldError(
                            field=DISCRIMINATOR_KEY,
                            code=ErrorCode.INVALID_FIELD_TYPE,
                            message=(
                                f"{type(raw).__name__} cannot be cast by the "
                                f"{self.tag.value!r} codec"
                            ),
                            expected=self.payload_model.__name__,
                        )
                    ]
                )
            return raw.model_dump()
        if isinstance(raw, Mapping):
            return normalize_keys(raw)
        raise PayloadValidationError(
            [
                FieldError(
                    field="__root__",
                    code=ErrorCode.INVALID_FIELD_TYPE,
                    message=f"expected a mapping, got {type(raw).__name__}",
                    expected="mapping",
                )
            ]
        )

    def cast(self, raw: Any) -> P:
        data = self._coerce_input(raw)
        # The codec owns its tag; whatever the caller sent is overwritten.
        data[DISCRIMINATOR_KEY] = self.tag
        try:
            return self.payload_model.model_validate(data)
        except pydantic.ValidationError as exc:
            raise PayloadValidationError(
                FieldError.from_pydantic(error) for error in exc.errors()
            ) from exc

    def dump(self, payload: P) -> StorageRepresentation:
        return payload.model_dump(mode="json")


__all__ = [
    "StorageRepresentation",
    "VariantPayload",
    "VariantCodec",
    "AbstractVariantCodec",
    "ModelCodec",
    "normalize_keys",
]
