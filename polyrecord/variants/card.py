"""
Card activity: a purchase or refund made with a payment card.

Merchant details are free text from the card network, so surrounding
whitespace is stripped before validation.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import ConfigDict, Field

from polyrecord.codec.base import ModelCodec, VariantPayload
from polyrecord.codec.discriminator import ActivityType


class CardPayload(VariantPayload):
    model_config = ConfigDict(str_strip_whitespace=True)

    type: Literal[ActivityType.CARD] = ActivityType.CARD
    merchant_name: str = Field(..., min_length=1, max_length=255)
    merchant_category_code: Optional[str] = Field(
        None, pattern=r"^\d{4}$", description="ISO 18245 merchant category code."
    )
    card_last_four: Optional[str] = Field(None, pattern=r"^\d{4}$")


class CardCodec(ModelCodec[CardPayload]):
    tag = ActivityType.CARD
    payload_model = CardPayload


__all__ = ["CardPayload", "CardCodec"]
