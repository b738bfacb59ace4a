"""Tests for direct/reverse currency conversion and its fallbacks."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

import pytest

from tariffcalc.tariff.currency import CurrencyNormalizer
from tariffcalc.tariff.models import MonetaryAmount


class RecordingRateStore:
    """Exchange-rate store stub keyed by (from, to, as_of)."""

    def __init__(self, rates: Dict[Tuple[str, str, Optional[date]], str]) -> None:
        self._rates = {key: Decimal(value) for key, value in rates.items()}
        self.calls: List[Tuple[str, str, Optional[date]]] = []

    def find_exchange_rate(self, from_currency, to_currency, as_of=None):
        self.calls.append((from_currency, to_currency, as_of))
        return self._rates.get((from_currency, to_currency, as_of))


class TestIdentity:
    @pytest.mark.parametrize("amount", [Decimal("0"), Decimal("10.005"), Decimal("123456789.123")])
    def test_same_currency_is_untouched(self, amount):
        store = RecordingRateStore({})
        normalizer = CurrencyNormalizer(store)
        assert normalizer.convert(amount, "USD", "USD") == amount
        assert normalizer.convert(amount, "usd", " USD ", date(2025, 1, 1)) == amount
        assert store.calls == []

    @pytest.mark.parametrize("codes", [(None, "EUR"), ("USD", None), (None, None)])
    def test_missing_currency_means_no_conversion(self, codes):
        store = RecordingRateStore({})
        outcome = CurrencyNormalizer(store).convert_with_outcome(Decimal("5"), *codes)
        assert outcome.amount == Decimal("5")
        assert outcome.direction == "identity"
        assert not outcome.degraded
        assert store.calls == []


class TestLookupOrder:
    def test_direct_rate(self):
        store = RecordingRateStore({("USD", "EUR", None): "0.92"})
        outcome = CurrencyNormalizer(store).convert_with_outcome(Decimal("150.00"), "USD", "EUR")
        assert outcome.amount == Decimal("138.00")
        assert outcome.currency == "EUR"
        assert outcome.direction == "direct"
        assert store.calls == [("USD", "EUR", None)]

    def test_direct_rate_rounds_half_up(self):
        store = RecordingRateStore({("USD", "EUR", None): "0.925"})
        assert CurrencyNormalizer(store).convert(Decimal("1.00"), "USD", "EUR") == Decimal("0.93")

    def test_reverse_rate_divides(self):
        store = RecordingRateStore({("CAD", "USD", None): "0.80"})
        outcome = CurrencyNormalizer(store).convert_with_outcome(Decimal("150.00"), "USD", "CAD")
        assert outcome.amount == Decimal("187.50")
        assert outcome.direction == "reverse"
        assert store.calls == [("USD", "CAD", None), ("CAD", "USD", None)]

    def test_reverse_rate_rounding(self):
        store = RecordingRateStore({("JPY", "USD", None): "0.0067"})
        # 100 / 0.0067 = 14925.373...
        assert CurrencyNormalizer(store).convert(Decimal("100"), "USD", "JPY") == Decimal("14925.37")

    def test_zero_reverse_rate_counts_as_missing(self):
        store = RecordingRateStore({("CAD", "USD", None): "0"})
        outcome = CurrencyNormalizer(store).convert_with_outcome(Decimal("10"), "USD", "CAD")
        assert outcome.amount == Decimal("10")
        assert outcome.degraded
        assert outcome.currency == "USD"

    def test_no_rate_fails_open(self):
        outcome = CurrencyNormalizer(RecordingRateStore({})).convert_with_outcome(Decimal("42.10"), "USD", "GBP")
        assert outcome.amount == Decimal("42.10")
        assert outcome.degraded
        assert "USD->GBP" in outcome.warning

    def test_no_store_fails_open(self):
        assert CurrencyNormalizer(None).convert(Decimal("1"), "USD", "GBP") == Decimal("1")


class TestDatedLookup:
    def test_dated_rate_preferred(self):
        store = RecordingRateStore(
            {("USD", "EUR", date(2025, 3, 3)): "0.90", ("USD", "EUR", None): "0.95"}
        )
        assert CurrencyNormalizer(store).convert(Decimal("100"), "USD", "EUR", date(2025, 3, 3)) == Decimal("90.00")

    def test_dated_reverse_before_latest(self):
        store = RecordingRateStore(
            {("EUR", "USD", date(2025, 3, 3)): "1.25", ("USD", "EUR", None): "0.95"}
        )
        assert CurrencyNormalizer(store).convert(Decimal("100"), "USD", "EUR", date(2025, 3, 3)) == Decimal("80.00")

    def test_missing_dated_rate_falls_back_to_latest(self):
        store = RecordingRateStore({("USD", "EUR", None): "0.95"})
        assert CurrencyNormalizer(store).convert(Decimal("100"), "USD", "EUR", date(2025, 3, 3)) == Decimal("95.00")
        assert store.calls == [
            ("USD", "EUR", date(2025, 3, 3)),
            ("EUR", "USD", date(2025, 3, 3)),
            ("USD", "EUR", None),
        ]


def test_exchange_rate_helper():
    store = RecordingRateStore({("CAD", "USD", None): "0.80", ("USD", "EUR", None): "0.92"})
    normalizer = CurrencyNormalizer(store)
    assert normalizer.exchange_rate("USD", "USD") == Decimal("1")
    assert normalizer.exchange_rate("USD", "EUR") == Decimal("0.92")
    assert normalizer.exchange_rate("USD", "CAD") == Decimal("1.250000")
    assert normalizer.exchange_rate("USD", "GBP") is None


def test_convert_monetary_amount():
    store = RecordingRateStore({("USD", "EUR", None): "0.92"})
    converted = CurrencyNormalizer(store).convert_amount(MonetaryAmount(Decimal("10"), "USD"), "EUR")
    assert converted == MonetaryAmount(Decimal("9.20"), "EUR")
    assert MonetaryAmount(Decimal("1.005"), "USD").rounded() == MonetaryAmount(Decimal("1.01"), "USD")
