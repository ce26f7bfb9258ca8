"""
Shipped activity variants.

Adding a variant: write a ``VariantPayload`` model and a codec in a new module,
add its tag to ``ActivityType`` and list the codec in ``default_codecs``.
"""

from polyrecord.codec.base import VariantCodec
from polyrecord.variants.card import CardCodec, CardPayload
from polyrecord.variants.deposit import DepositCodec, DepositPayload
from polyrecord.variants.interest import InterestCodec, InterestPayload


def default_codecs() -> list[VariantCodec]:
    """One codec instance per shipped variant."""
    return [DepositCodec(), InterestCodec(), CardCodec()]


__all__ = [
    "default_codecs",
    "CardCodec",
    "CardPayload",
    "DepositCodec",
    "DepositPayload",
    "InterestCodec",
    "InterestPayload",
]
