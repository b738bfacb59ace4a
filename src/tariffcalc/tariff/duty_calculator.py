"""Duty calculator.

Turns a rate record into an amount:

    duty = ad_valorem_rate * product_value + specific_rate * quantity

Each component is independent and degrades to zero on its own when its rate
(or multiplicand) is absent. The sum is rounded once, half-up, to cents.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional

from tariffcalc.tariff.duty_rate import RateType, classify_rate
from tariffcalc.tariff.models import RateSpec
from tariffcalc.tariff.normalizer import to_decimal

_ZERO = Decimal("0")


def quantize_money(amount: Decimal, places: int = 2) -> Decimal:
    return amount.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class DutyBreakdown:
    """Unrounded components plus the rounded total for one rate."""

    ad_valorem_amount: Decimal
    specific_amount: Decimal
    total: Decimal
    rate_type: RateType

    @property
    def is_free(self) -> bool:
        return self.rate_type is RateType.FREE


def compute_duty_breakdown(
    ad_valorem_rate: Any,
    specific_rate: Any,
    product_value: Any,
    quantity: Any,
    *,
    places: int = 2,
) -> DutyBreakdown:
    ad_valorem = to_decimal(ad_valorem_rate)
    specific = to_decimal(specific_rate)
    value = to_decimal(product_value)
    qty = to_decimal(quantity)

    ad_valorem_amount = ad_valorem * value if ad_valorem is not None and value is not None else _ZERO
    specific_amount = specific * qty if specific is not None and qty is not None else _ZERO

    return DutyBreakdown(
        ad_valorem_amount=ad_valorem_amount,
        specific_amount=specific_amount,
        total=quantize_money(ad_valorem_amount + specific_amount, places),
        rate_type=classify_rate(ad_valorem, specific),
    )


def compute_duty(
    ad_valorem_rate: Any,
    specific_rate: Any,
    product_value: Any,
    quantity: Any,
    *,
    places: int = 2,
) -> Decimal:
    """Duty owed for one rate; both components absent gives ``0.00``."""

    return compute_duty_breakdown(
        ad_valorem_rate, specific_rate, product_value, quantity, places=places
    ).total


def duty_for_rate(rate: Optional[RateSpec], product_value: Any, quantity: Any, *, places: int = 2) -> Decimal:
    """Duty for a rate record; no record at all is a zero duty."""

    if rate is None:
        return quantize_money(_ZERO, places)
    return compute_duty(rate.ad_valorem_rate, rate.specific_rate, product_value, quantity, places=places)
