"""
Discriminator for activity feed payloads.

Every stored payload carries its variant tag under ``DISCRIMINATOR_KEY``. In
memory the tag is an ``ActivityType`` member; in storage it is the member's
text value.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any, Optional

DISCRIMINATOR_KEY = "type"


class ActivityType(StrEnum):
    """Closed set of activity variants known to this process."""

    DEPOSIT = "deposit"
    INTEREST = "interest"
    CARD = "card"

    @classmethod
    def parse(cls, value: Any) -> Optional["ActivityType"]:
        """
        Convert an enumerant or its text form to an ``ActivityType``.

        Returns None for anything that does not name a member (unknown text,
        non-text values, None). Never raises.
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value)
        except ValueError:
            return None


__all__ = ["ActivityType", "DISCRIMINATOR_KEY"]
