"""
Deposit activity: money moving into the account from an external source.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import Field

from polyrecord.codec.base import ModelCodec, VariantPayload
from polyrecord.codec.discriminator import ActivityType


class DepositPayload(VariantPayload):
    """
    Deposit-specific fields. ``completed_at`` stays empty while the transfer is pending.
    """

    type: Literal[ActivityType.DEPOSIT] = ActivityType.DEPOSIT
    initiated_at: datetime = Field(..., description="When the deposit was requested.")
    completed_at: Optional[datetime] = Field(None, description="When the funds settled.")


class DepositCodec(ModelCodec[DepositPayload]):
    tag = ActivityType.DEPOSIT
    payload_model = DepositPayload


__all__ = ["DepositPayload", "DepositCodec"]
