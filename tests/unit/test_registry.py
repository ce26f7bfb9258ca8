from __future__ import annotations

import pytest

from polyrecord.codec.base import ModelCodec
from polyrecord.codec.discriminator import ActivityType
from polyrecord.codec.errors import RegistryConfigurationError
from polyrecord.codec.registry import VariantRegistry
from polyrecord.variants import (
    CardCodec,
    CardPayload,
    DepositCodec,
    DepositPayload,
    InterestCodec,
    default_codecs,
)


class TestActivityTypeParse:
    def test_parses_text_and_members(self):
        assert ActivityType.parse("deposit") is ActivityType.DEPOSIT
        assert ActivityType.parse(ActivityType.CARD) is ActivityType.CARD

    @pytest.mark.parametrize("value", ["wire_transfer", "DEPOSIT", "", None, 3, b"deposit"])
    def test_unrecognized_values_return_none(self, value):
        assert ActivityType.parse(value) is None


class TestVariantRegistry:
    def test_resolves_by_member_and_text(self, registry: VariantRegistry):
        assert isinstance(registry.resolve(ActivityType.DEPOSIT), DepositCodec)
        assert isinstance(registry.resolve("interest"), InterestCodec)
        assert registry.resolve("wire_transfer") is None

    def test_resolves_codec_by_payload_class(self, registry: VariantRegistry):
        payload = CardPayload(merchant_name="Bookshop")
        assert isinstance(registry.codec_for_payload(payload), CardCodec)

    def test_partial_registry_does_not_resolve_missing_variants(self, partial_registry: VariantRegistry):
        assert registry_tags(partial_registry) == ["deposit", "interest"]
        assert partial_registry.resolve(ActivityType.CARD) is None
        assert "card" not in partial_registry
        assert "deposit" in partial_registry

    def test_duplicate_tag_is_rejected(self):
        with pytest.raises(RegistryConfigurationError, match="Duplicate codec for 'deposit'"):
            VariantRegistry([DepositCodec(), DepositCodec()])

    def test_duplicate_payload_model_is_rejected(self):
        aliased = ModelCodec(tag=ActivityType.INTEREST, payload_model=DepositPayload)
        with pytest.raises(RegistryConfigurationError, match="DepositPayload"):
            VariantRegistry([DepositCodec(), aliased])

    def test_incomplete_registry_is_rejected_when_completeness_required(self):
        with pytest.raises(RegistryConfigurationError, match="card"):
            VariantRegistry([DepositCodec(), InterestCodec()], require_complete=True)

    def test_objects_without_codec_contract_are_rejected(self):
        with pytest.raises(RegistryConfigurationError):
            VariantRegistry([object()])

    def test_registry_is_immutable(self, registry: VariantRegistry):
        with pytest.raises(AttributeError):
            registry.extra = "nope"
        with pytest.raises(TypeError):
            registry.codecs[ActivityType.CARD] = DepositCodec()  # type: ignore[index]

    def test_default_codecs_cover_every_activity_type(self):
        assert {codec.tag for codec in default_codecs()} == set(ActivityType)


def registry_tags(registry: VariantRegistry) -> list[str]:
    return [tag.value for tag in registry.tags()]
