from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal
from enum import StrEnum
from typing import Any

import pytest

from polyrecord.codec import dispatcher
from polyrecord.codec.discriminator import DISCRIMINATOR_KEY, ActivityType
from polyrecord.codec.dispatcher import PolymorphicDispatcher, extract_discriminator
from polyrecord.codec.errors import (
    ErrorCode,
    MalformedDiscriminatorError,
    PayloadValidationError,
    UnknownVariantError,
)
from polyrecord.codec.registry import VariantRegistry
from polyrecord.variants import CardPayload, DepositPayload, InterestPayload


class _Key(StrEnum):
    TYPE = "type"


INITIATED = datetime(2021, 1, 1, tzinfo=timezone.utc)
COMPLETED = datetime(2021, 1, 2, tzinfo=timezone.utc)

VALID_PAYLOADS = [
    DepositPayload(initiated_at=INITIATED, completed_at=COMPLETED),
    DepositPayload(initiated_at=INITIATED),
    InterestPayload(accrual_date=date(2021, 3, 31), rate=Decimal("0.012500")),
    InterestPayload(accrual_date=date(2021, 4, 30)),
    CardPayload(merchant_name="Coffee Bar", merchant_category_code="5814", card_last_four="0042"),
]


class TestDepositScenario:
    def test_deposit_happy_path(self, registry: VariantRegistry, deposit_input: dict[str, Any]):
        payload = dispatcher.cast(deposit_input, registry)

        assert isinstance(payload, DepositPayload)
        assert payload.type is ActivityType.DEPOSIT
        assert payload.initiated_at == INITIATED
        assert payload.completed_at == COMPLETED

    def test_dump_reproduces_the_variant_fields(self, registry: VariantRegistry, deposit_input: dict[str, Any]):
        payload = dispatcher.cast(deposit_input, registry)

        stored = dispatcher.dump(payload, registry)

        assert stored == {
            "type": "deposit",
            "initiated_at": "2021-01-01T00:00:00Z",
            "completed_at": "2021-01-02T00:00:00Z",
        }


class TestRequiredFields:
    def test_interest_without_accrual_date_is_rejected(self, registry: VariantRegistry):
        with pytest.raises(PayloadValidationError) as excinfo:
            dispatcher.cast({"type": "interest"}, registry)

        assert not isinstance(excinfo.value, UnknownVariantError)
        assert excinfo.value.fields == ["accrual_date"]
        assert excinfo.value.codes == {ErrorCode.MISSING_FIELD}

    @pytest.mark.parametrize(
        "raw, missing",
        [
            ({"type": "deposit"}, "initiated_at"),
            ({"type": "card", "card_last_four": "1234"}, "merchant_name"),
        ],
    )
    def test_missing_required_field_is_named(self, registry: VariantRegistry, raw, missing):
        with pytest.raises(PayloadValidationError) as excinfo:
            dispatcher.cast(raw, registry)

        assert missing in excinfo.value.fields

    def test_every_failing_field_is_reported(self, registry: VariantRegistry):
        raw = {"type": "card", "merchant_category_code": "abc", "card_last_four": "12"}

        with pytest.raises(PayloadValidationError) as excinfo:
            dispatcher.cast(raw, registry)

        errors = {err.field: err.code for err in excinfo.value.errors}
        assert errors == {
            "merchant_name": ErrorCode.MISSING_FIELD,
            "merchant_category_code": ErrorCode.INVALID_FIELD_TYPE,
            "card_last_four": ErrorCode.INVALID_FIELD_TYPE,
        }

    def test_type_coercion_failure_is_invalid_field_type(self, registry: VariantRegistry):
        with pytest.raises(PayloadValidationError) as excinfo:
            dispatcher.cast({"type": "deposit", "initiated_at": "not a timestamp"}, registry)

        (error,) = excinfo.value.errors
        assert error.field == "initiated_at"
        assert error.code is ErrorCode.INVALID_FIELD_TYPE
        assert error.expected is not None


class TestDiscriminatorResolution:
    def test_unknown_type_is_rejected(self, partial_registry: VariantRegistry):
        with pytest.raises(UnknownVariantError) as excinfo:
            dispatcher.cast({"type": "wire_transfer", "amount": 50}, partial_registry)

        assert excinfo.value.fields == [DISCRIMINATOR_KEY]

    def test_known_type_without_codec_is_unknown_variant(self, partial_registry: VariantRegistry):
        with pytest.raises(UnknownVariantError) as excinfo:
            dispatcher.cast({"type": "card", "merchant_name": "Bookshop"}, partial_registry)

        assert not isinstance(excinfo.value, MalformedDiscriminatorError)
        assert excinfo.value.codes == {ErrorCode.UNKNOWN_VARIANT}

    def test_unrecognized_text_is_malformed_discriminator(self, registry: VariantRegistry):
        with pytest.raises(MalformedDiscriminatorError) as excinfo:
            dispatcher.load({"type": "wire_transfer"}, registry)

        assert excinfo.value.codes == {ErrorCode.MALFORMED_DISCRIMINATOR}

    @pytest.mark.parametrize("value", [7, ["deposit"], {"name": "deposit"}])
    def test_non_text_discriminator_is_malformed(self, registry: VariantRegistry, value):
        with pytest.raises(MalformedDiscriminatorError):
            dispatcher.cast({"type": value}, registry)

    @pytest.mark.parametrize("raw", [{}, {"type": None}, {"initiated_at": "2021-01-01T00:00:00Z"}])
    def test_missing_discriminator_is_missing_field(self, registry: VariantRegistry, raw):
        with pytest.raises(PayloadValidationError) as excinfo:
            dispatcher.cast(raw, registry)

        assert excinfo.value.fields == [DISCRIMINATOR_KEY]
        assert excinfo.value.codes == {ErrorCode.MISSING_FIELD}

    def test_non_mapping_input_is_rejected(self, registry: VariantRegistry):
        with pytest.raises(PayloadValidationError) as excinfo:
            dispatcher.cast(["deposit"], registry)

        assert excinfo.value.codes == {ErrorCode.INVALID_FIELD_TYPE}

    def test_enumerant_and_text_discriminators_produce_identical_payloads(self, registry: VariantRegistry):
        fields = {"initiated_at": "2021-01-01T00:00:00Z", "completed_at": "2021-01-02T00:00:00Z"}
        trusted = {_Key.TYPE: ActivityType.DEPOSIT, **fields}
        untrusted = {"type": "deposit", **fields}

        assert dispatcher.cast(trusted, registry) == dispatcher.cast(untrusted, registry)

    def test_extract_discriminator_accepts_both_shapes(self):
        assert extract_discriminator({"type": ActivityType.INTEREST}) is ActivityType.INTEREST
        assert extract_discriminator({"type": "interest"}) is ActivityType.INTEREST


class TestRoundTrip:
    @pytest.mark.parametrize("payload", VALID_PAYLOADS, ids=lambda p: p.type.value)
    def test_load_of_dump_is_identity(self, registry: VariantRegistry, payload):
        assert dispatcher.load(dispatcher.dump(payload, registry), registry) == payload

    @pytest.mark.parametrize("payload", VALID_PAYLOADS, ids=lambda p: p.type.value)
    def test_recasting_a_typed_payload_is_lossless(self, registry: VariantRegistry, payload):
        recast = dispatcher.cast(payload, registry)

        assert recast == payload
        assert type(recast) is type(payload)

    def test_dump_is_deterministic(self, registry: VariantRegistry, card_input: dict[str, Any]):
        first = dispatcher.dump(dispatcher.cast(card_input, registry), registry)
        second = dispatcher.dump(dispatcher.cast(dict(card_input), registry), registry)

        assert first == second
        assert list(first) == list(second)

    def test_discriminator_in_input_cannot_override_codec(self, registry: VariantRegistry):
        codec = registry.resolve(ActivityType.INTEREST)

        payload = codec.cast({"type": "deposit", "accrual_date": "2021-05-31"})

        assert payload.type is ActivityType.INTEREST


class TestDispatcherInstance:
    def test_payload_outside_registry_is_unknown(self, partial_registry: VariantRegistry):
        card = CardPayload(merchant_name="Bookshop")
        codec_dispatcher = PolymorphicDispatcher(partial_registry)

        with pytest.raises(UnknownVariantError):
            codec_dispatcher.dump(card)
        with pytest.raises(UnknownVariantError):
            codec_dispatcher.cast(card)

    def test_defaults_to_process_registry(self):
        codec_dispatcher = PolymorphicDispatcher()

        payload = codec_dispatcher.cast({"type": "card", "merchant_name": "Bookshop"})

        assert isinstance(payload, CardPayload)
