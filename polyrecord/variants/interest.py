"""
Interest activity: interest credited for an accrual period.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Literal, Optional

from pydantic import Field

from polyrecord.codec.base import ModelCodec, VariantPayload
from polyrecord.codec.discriminator import ActivityType


class InterestPayload(VariantPayload):
    type: Literal[ActivityType.INTEREST] = ActivityType.INTEREST
    accrual_date: date = Field(..., description="Day the interest accrued.")
    rate: Optional[Decimal] = Field(
        None, ge=0, max_digits=9, decimal_places=6, description="Annual rate applied, as a fraction."
    )


class InterestCodec(ModelCodec[InterestPayload]):
    tag = ActivityType.INTEREST
    payload_model = InterestPayload


__all__ = ["InterestPayload", "InterestCodec"]
