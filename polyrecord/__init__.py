"""
polyrecord - polymorphic record codec for an activity feed.

Stores heterogeneous activity payloads (deposits, interest, card transactions)
in one schemaless column while enforcing a per-variant schema:

- Variant codecs validate raw input, build typed payloads and dump them back
  to a JSON-ready storage representation
- A registry, declared once at startup, maps each discriminator to its codec
- A dispatcher resolves the codec from raw input or from a typed payload
- The record envelope validates shared fields (id, amount) together with the
  payload, all or nothing
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from polyrecord.codec import (
    DISCRIMINATOR_KEY,
    ActivityType,
    ErrorCode,
    FieldError,
    MalformedDiscriminatorError,
    ModelCodec,
    PayloadValidationError,
    PolymorphicDispatcher,
    RegistryConfigurationError,
    UnknownVariantError,
    VariantCodec,
    VariantPayload,
    VariantRegistry,
    cast,
    dump,
    get_registry,
    load,
)
from polyrecord.config import Settings, get_settings
from polyrecord.domain import (
    ActivityRecord,
    EnvelopeResult,
    EnvelopeState,
    build_record,
    dump_record,
    load_record,
)
from polyrecord.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Codec
    "ActivityType",
    "DISCRIMINATOR_KEY",
    "VariantCodec",
    "VariantPayload",
    "ModelCodec",
    "VariantRegistry",
    "get_registry",
    "PolymorphicDispatcher",
    "cast",
    "dump",
    "load",
    # Envelope
    "ActivityRecord",
    "EnvelopeResult",
    "EnvelopeState",
    "build_record",
    "dump_record",
    "load_record",
    # Errors
    "ErrorCode",
    "FieldError",
    "PayloadValidationError",
    "UnknownVariantError",
    "MalformedDiscriminatorError",
    "RegistryConfigurationError",
    # Logging
    "configure_logging",
    "get_logger",
]
