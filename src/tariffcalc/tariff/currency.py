"""Currency normalization.

Lookup order for ``from -> to``:

1. identical (or missing) codes: amount returned untouched, no lookup
2. direct rate ``from -> to``: ``amount * rate``
3. reverse rate ``to -> from`` (non-zero): ``amount / rate``
4. with a date, steps 2-3 are tried for that date first and then repeated
   against the latest rate
5. nothing found: amount returned unconverted and the outcome is flagged
   as degraded
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Literal, Optional, Tuple

from tariffcalc.observability import log_event
from tariffcalc.tariff.config import EngineConfig
from tariffcalc.tariff.models import MonetaryAmount
from tariffcalc.tariff.normalizer import normalize_code, to_decimal
from tariffcalc.tariff.rate_store import ExchangeRateStore

logger = logging.getLogger(__name__)

Direction = Literal["identity", "direct", "reverse", "unavailable"]


@dataclass(frozen=True)
class ConversionOutcome:
    amount: Optional[Decimal]
    currency: Optional[str]
    direction: Direction
    rate: Optional[Decimal] = None
    warning: Optional[str] = None

    @property
    def converted(self) -> bool:
        return self.direction in ("direct", "reverse")

    @property
    def degraded(self) -> bool:
        return self.direction == "unavailable"


class CurrencyNormalizer:
    """Converts amounts between currencies using an exchange-rate store."""

    def __init__(self, store: Optional[ExchangeRateStore], config: Optional[EngineConfig] = None) -> None:
        self._store = store
        self._config = config or EngineConfig()

    def _find(self, from_code: str, to_code: str, as_of: Optional[date]) -> Tuple[Optional[Decimal], Direction]:
        if self._store is None:
            return None, "unavailable"
        direct = self._store.find_exchange_rate(from_code, to_code, as_of)
        if direct is not None:
            return to_decimal(direct), "direct"
        reverse = self._store.find_exchange_rate(to_code, from_code, as_of)
        if reverse is not None and to_decimal(reverse) != 0:
            return to_decimal(reverse), "reverse"
        return None, "unavailable"

    def lookup(self, from_currency: str, to_currency: str, as_of: Optional[date] = None) -> Tuple[Optional[Decimal], Direction]:
        """Return the stored rate used for a conversion and its direction."""

        from_code = normalize_code(from_currency)
        to_code = normalize_code(to_currency)
        if from_code is None or to_code is None or from_code == to_code:
            return None, "identity"
        if as_of is not None:
            rate, direction = self._find(from_code, to_code, as_of)
            if rate is not None:
                return rate, direction
        return self._find(from_code, to_code, None)

    def convert_with_outcome(
        self,
        amount: Any,
        from_currency: Optional[str],
        to_currency: Optional[str],
        as_of: Optional[date] = None,
    ) -> ConversionOutcome:
        value = to_decimal(amount)
        from_code = normalize_code(from_currency)
        to_code = normalize_code(to_currency)
        if value is None:
            return ConversionOutcome(amount=None, currency=from_code, direction="identity")

        rate, direction = self.lookup(from_code, to_code, as_of)
        if direction == "identity":
            return ConversionOutcome(amount=value, currency=from_code or to_code, direction="identity")
        if direction == "unavailable":
            warning = f"No exchange rate {from_code}->{to_code}; amounts left in {from_code}"
            log_event(
                "currency.rate_unavailable",
                level=logging.WARNING,
                from_currency=from_code,
                to_currency=to_code,
                as_of=str(as_of) if as_of else None,
            )
            return ConversionOutcome(amount=value, currency=from_code, direction="unavailable", warning=warning)

        raw = value * rate if direction == "direct" else value / rate
        converted = raw.quantize(self._config.money_quantum, rounding=ROUND_HALF_UP)
        return ConversionOutcome(amount=converted, currency=to_code, direction=direction, rate=rate)

    def convert(
        self,
        amount: Any,
        from_currency: Optional[str],
        to_currency: Optional[str],
        as_of: Optional[date] = None,
    ) -> Optional[Decimal]:
        """Converted amount, or the original amount when no rate is known."""

        return self.convert_with_outcome(amount, from_currency, to_currency, as_of).amount

    def convert_amount(self, money: MonetaryAmount, to_currency: str, as_of: Optional[date] = None) -> MonetaryAmount:
        outcome = self.convert_with_outcome(money.amount, money.currency, to_currency, as_of)
        return MonetaryAmount(amount=outcome.amount, currency=outcome.currency or money.currency)

    def exchange_rate(self, from_currency: str, to_currency: str) -> Optional[Decimal]:
        """Effective latest ``from -> to`` multiplier, ``1`` for same currency."""

        rate, direction = self.lookup(from_currency, to_currency)
        if direction == "identity":
            return Decimal("1")
        if rate is None:
            return None
        if direction == "reverse":
            return (Decimal("1") / rate).quantize(self._config.conversion_quantum, rounding=ROUND_HALF_UP)
        return rate
