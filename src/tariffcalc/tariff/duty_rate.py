from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from tariffcalc.tariff.models import RateSpec


class RateType(str, Enum):
    """Closed taxonomy of rate shapes, derived from which components are present."""

    FREE = "free"
    AD_VALOREM = "ad_valorem"
    SPECIFIC = "specific"
    COMPOUND = "compound"


def classify_rate(ad_valorem_rate: Optional[Decimal], specific_rate: Optional[Decimal]) -> RateType:
    """Classify by presence, not magnitude: an explicit 0% is still ad valorem."""

    if ad_valorem_rate is not None and specific_rate is not None:
        return RateType.COMPOUND
    if ad_valorem_rate is not None:
        return RateType.AD_VALOREM
    if specific_rate is not None:
        return RateType.SPECIFIC
    return RateType.FREE


def _plain(value: Decimal) -> str:
    return format(value.normalize(), "f")


def rate_label(rate: "RateSpec") -> str:
    """Human label for a rate; stored text wins over a synthesized one."""

    if rate.text_rate:
        return rate.text_rate
    parts = []
    if rate.ad_valorem_rate is not None and rate.ad_valorem_rate > 0:
        parts.append(f"{_plain(rate.ad_valorem_rate * 100)}%")
    if rate.specific_rate is not None and rate.specific_rate > 0:
        parts.append(f"{_plain(rate.specific_rate)} per unit")
    if not parts:
        return "Free"
    return " + ".join(parts)
