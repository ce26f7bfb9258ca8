"""
Variant registry: discriminator -> codec.

The registry is declared once at startup from an explicit list of codecs and
is read-only afterwards. There is no runtime registration API; shipping a new
variant means adding its codec to the list and deploying.
"""

from __future__ import annotations

from functools import lru_cache
from types import MappingProxyType
from typing import Any, Iterable, Iterator, Mapping, Optional

from polyrecord.codec.base import VariantCodec, VariantPayload
from polyrecord.codec.discriminator import ActivityType
from polyrecord.codec.errors import RegistryConfigurationError
from polyrecord.config import get_settings
from polyrecord.utils.logging import get_logger

log = get_logger(__name__)


class VariantRegistry:
    """
    Immutable mapping from ``ActivityType`` to ``VariantCodec``.

    Parameters
    ----------
    codecs : iterable[VariantCodec]
        One codec per supported discriminator.
    require_complete : bool
        When True, every ``ActivityType`` member must have a codec; a gap is
        reported here instead of at the first unmatched record.

    Raises
    ------
    RegistryConfigurationError
        On duplicate tags, duplicate payload models, objects that do not
        satisfy the codec contract, or (with ``require_complete``) missing tags.
    """

    __slots__ = ("_by_tag", "_by_model")

    def __init__(self, codecs: Iterable[VariantCodec], require_complete: bool = False) -> None:
        by_tag: dict[ActivityType, VariantCodec] = {}
        by_model: dict[type[VariantPayload], VariantCodec] = {}

        for codec in codecs:
            if not isinstance(codec, VariantCodec):
                raise RegistryConfigurationError(
                    f"{codec!r} does not implement cast/dump/load with tag and payload_model"
                )
            tag = ActivityType.parse(codec.tag)
            if tag is None:
                raise RegistryConfigurationError(f"{codec!r} declares unknown tag {codec.tag!r}")
            if tag in by_tag:
                raise RegistryConfigurationError(
                    f"Duplicate codec for '{tag.value}': {by_tag[tag]!r} and {codec!r}"
                )
            if codec.payload_model in by_model:
                raise RegistryConfigurationError(
                    f"Payload model {codec.payload_model.__name__} is already registered "
                    f"under '{by_model[codec.payload_model].tag}'"
                )
            by_tag[tag] = codec
            by_model[codec.payload_model] = codec

        if require_complete:
            missing = [member.value for member in ActivityType if member not in by_tag]
            if missing:
                raise RegistryConfigurationError(
                    f"No codec registered for: {', '.join(missing)}"
                )

        object.__setattr__(self, "_by_tag", MappingProxyType(by_tag))
        object.__setattr__(self, "_by_model", MappingProxyType(by_model))
        log.debug(
            "Variant registry built",
            extra={"variants": [tag.value for tag in by_tag], "complete": require_complete},
        )

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("VariantRegistry is immutable")

    def resolve(self, tag: Any) -> Optional[VariantCodec]:
        """Return the codec for ``tag`` (enumerant or text), or None."""
        member = ActivityType.parse(tag)
        if member is None:
            return None
        return self._by_tag.get(member)

    def codec_for_payload(self, payload: VariantPayload) -> Optional[VariantCodec]:
        """Return the codec owning the payload's model class, or None."""
        return self._by_model.get(type(payload))

    @property
    def codecs(self) -> Mapping[ActivityType, VariantCodec]:
        return self._by_tag

    def tags(self) -> list[ActivityType]:
        return list(self._by_tag)

    def __contains__(self, tag: object) -> bool:
        return self.resolve(tag) is not None

    def __iter__(self) -> Iterator[ActivityType]:
        return iter(self._by_tag)

    def __len__(self) -> int:
        return len(self._by_tag)

    def __repr__(self) -> str:
        return f"VariantRegistry({', '.join(tag.value for tag in self._by_tag)})"


@lru_cache(maxsize=1)
def get_registry() -> VariantRegistry:
    """
    Process-wide registry of every shipped variant, built on first use.
    """
    from polyrecord.variants import default_codecs

    settings = get_settings()
    return VariantRegistry(default_codecs(), require_complete=settings.registry_require_complete)


__all__ = ["VariantRegistry", "get_registry"]
