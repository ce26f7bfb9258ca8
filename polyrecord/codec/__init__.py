"""
Codec package for polyrecord.

Re-exports the variant codec contract, the registry, the dispatcher and the
error taxonomy so callers can import from ``polyrecord.codec`` directly.
"""

from polyrecord.codec.base import (
    AbstractVariantCodec,
    ModelCodec,
    StorageRepresentation,
    VariantCodec,
    VariantPayload,
)
from polyrecord.codec.discriminator import DISCRIMINATOR_KEY, ActivityType
from polyrecord.codec.dispatcher import PolymorphicDispatcher, cast, dump, extract_discriminator, load
from polyrecord.codec.errors import (
    ErrorCode,
    FieldError,
    MalformedDiscriminatorError,
    PayloadValidationError,
    PolyRecordError,
    RegistryConfigurationError,
    UnknownVariantError,
)
from polyrecord.codec.registry import VariantRegistry, get_registry

__all__ = [
    # Contract
    "AbstractVariantCodec",
    "ModelCodec",
    "StorageRepresentation",
    "VariantCodec",
    "VariantPayload",
    # Discriminator
    "ActivityType",
    "DISCRIMINATOR_KEY",
    # Registry / dispatch
    "VariantRegistry",
    "get_registry",
    "PolymorphicDispatcher",
    "extract_discriminator",
    "cast",
    "dump",
    "load",
    # Errors
    "ErrorCode",
    "FieldError",
    "PolyRecordError",
    "RegistryConfigurationError",
    "PayloadValidationError",
    "UnknownVariantError",
    "MalformedDiscriminatorError",
]
