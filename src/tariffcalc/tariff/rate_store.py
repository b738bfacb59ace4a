"""Rate, agreement and exchange-rate stores.

The engine only depends on the Protocols below. :class:`InMemoryTariffStore`
implements all of them over a JSON seed and is what the CLI, the API and the
tests use.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Tuple

from tariffcalc.tariff.models import PreferentialRate, Product, RateSpec, TradeAgreement
from tariffcalc.tariff.normalizer import (
    clean_product_code,
    normalize_code,
    normalize_optional_text,
    to_decimal,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Consumed interfaces
# ---------------------------------------------------------------------------
class RateStore(Protocol):
    def find_product(self, product_code: str) -> Optional[Product]: ...

    def find_default_rate(self, product_code: str) -> Optional[RateSpec]: ...

    def find_preferential_rates(self, product_code: str, destination_country: str) -> List[PreferentialRate]: ...


class AgreementStore(Protocol):
    def find_agreements_between(self, origin_country: str, destination_country: str) -> List[TradeAgreement]: ...


class ExchangeRateStore(Protocol):
    def find_exchange_rate(
        self, from_currency: str, to_currency: str, as_of: Optional[date] = None
    ) -> Optional[Decimal]:
        """Dated lookup when ``as_of`` is given, otherwise the latest rate as of today."""
        ...


# ---------------------------------------------------------------------------
# Seed parsing helpers
# ---------------------------------------------------------------------------
def _parse_date(raw: Any) -> Optional[date]:
    if raw is None or raw == "":
        return None
    if isinstance(raw, date):
        return raw
    return datetime.strptime(str(raw), "%Y-%m-%d").date()


def _rate_from_record(rec: Mapping[str, Any]) -> RateSpec:
    return RateSpec(
        ad_valorem_rate=to_decimal(rec.get("ad_valorem_rate")),
        specific_rate=to_decimal(rec.get("specific_rate")),
        effective_date=_parse_date(rec.get("effective_date")),
        expiration_date=_parse_date(rec.get("expiration_date")),
        text_rate=normalize_optional_text(rec.get("text_rate")),
        rate_type_code=normalize_optional_text(rec.get("rate_type_code")),
    )


@dataclass(frozen=True)
class _AgreementRateEntry:
    country: str
    rate: PreferentialRate


@dataclass(frozen=True)
class _ExchangeRateEntry:
    rate: Decimal
    effective_date: date


# ---------------------------------------------------------------------------
# InMemoryTariffStore
# ---------------------------------------------------------------------------
class InMemoryTariffStore:
    """Dictionary-backed store implementing every consumed interface.

    Instances are only mutated while loading; lookups are read-only, so one
    loaded store can serve concurrent calculations.
    """

    def __init__(self, today: Callable[[], date] = date.today) -> None:
        self._today = today
        self._products: Dict[str, Product] = {}
        self._default_rates: Dict[str, RateSpec] = {}
        self._agreement_rates: Dict[str, List[_AgreementRateEntry]] = {}
        self._agreements: Dict[str, TradeAgreement] = {}
        self._participants: Dict[str, Tuple[str, ...]] = {}
        self._exchange_rates: Dict[Tuple[str, str], List[_ExchangeRateEntry]] = {}

    # -- builders ------------------------------------------------------------

    def add_product(self, product: Product) -> None:
        self._products[clean_product_code(product.hts8)] = product

    def add_default_rate(self, product_code: str, rate: RateSpec) -> None:
        self._default_rates[clean_product_code(product_code)] = rate

    def add_agreement(self, agreement: TradeAgreement, participants: Tuple[str, ...] = ()) -> None:
        self._agreements[agreement.code] = agreement
        self._participants[agreement.code] = tuple(
            code for code in (normalize_code(p) for p in participants) if code
        )

    def add_preferential_rate(self, product_code: str, country: str, rate: PreferentialRate) -> None:
        entries = self._agreement_rates.setdefault(clean_product_code(product_code), [])
        entries.append(_AgreementRateEntry(country=normalize_code(country) or "", rate=rate))

    def add_exchange_rate(self, from_currency: str, to_currency: str, rate: Any, effective_date: date) -> None:
        key = (normalize_code(from_currency) or "", normalize_code(to_currency) or "")
        entries = self._exchange_rates.setdefault(key, [])
        entries.append(_ExchangeRateEntry(rate=to_decimal(rate), effective_date=effective_date))
        entries.sort(key=lambda entry: entry.effective_date)

    # -- loaders -------------------------------------------------------------

    def load_seed(self, path: Path) -> int:
        """Load a JSON seed file; returns the number of records loaded."""

        data = json.loads(Path(path).read_text(encoding="utf-8"))
        count = 0

        for rec in data.get("products", []):
            hts = clean_product_code(rec.get("hts8"))
            if not hts:
                continue
            self.add_product(
                Product(
                    hts8=hts,
                    brief_description=normalize_optional_text(rec.get("brief_description")),
                    quantity_unit=normalize_optional_text(rec.get("quantity_unit")),
                )
            )
            count += 1

        for rec in data.get("agreements", []):
            code = normalize_optional_text(rec.get("code"))
            if not code:
                continue
            agreement = TradeAgreement(
                code=code,
                name=str(rec.get("name") or code),
                effective_date=_parse_date(rec.get("effective_date")),
                expiration_date=_parse_date(rec.get("expiration_date")),
                agreement_type=normalize_optional_text(rec.get("agreement_type")),
                is_multilateral=bool(rec.get("is_multilateral", False)),
            )
            self.add_agreement(agreement, tuple(rec.get("participants", [])))
            count += 1

        for rec in data.get("mfn_rates", []):
            hts = clean_product_code(rec.get("hts8"))
            if not hts:
                continue
            self.add_default_rate(hts, _rate_from_record(rec))
            count += 1

        for rec in data.get("agreement_rates", []):
            hts = clean_product_code(rec.get("hts8"))
            agreement = self._agreements.get(str(rec.get("agreement_code", "")))
            if not hts or agreement is None:
                logger.warning("Skipping agreement rate with unknown agreement %r", rec.get("agreement_code"))
                continue
            self.add_preferential_rate(
                hts,
                str(rec.get("country", "")),
                PreferentialRate(rate=_rate_from_record(rec), agreement=agreement),
            )
            count += 1

        for rec in data.get("exchange_rates", []):
            effective = _parse_date(rec.get("effective_date"))
            if effective is None or rec.get("rate") is None:
                continue
            self.add_exchange_rate(str(rec.get("from", "")), str(rec.get("to", "")), rec["rate"], effective)
            count += 1

        logger.info("Loaded %d tariff records from seed %s", count, Path(path).name)
        return count

    # -- lookups -------------------------------------------------------------

    def find_product(self, product_code: str) -> Optional[Product]:
        return self._products.get(clean_product_code(product_code))

    def find_default_rate(self, product_code: str) -> Optional[RateSpec]:
        return self._default_rates.get(clean_product_code(product_code))

    def find_preferential_rates(self, product_code: str, destination_country: str) -> List[PreferentialRate]:
        country = normalize_code(destination_country)
        entries = self._agreement_rates.get(clean_product_code(product_code), [])
        return [entry.rate for entry in entries if entry.country == country]

    def find_agreements_between(self, origin_country: str, destination_country: str) -> List[TradeAgreement]:
        origin = normalize_code(origin_country)
        destination = normalize_code(destination_country)
        return [
            agreement
            for code, agreement in self._agreements.items()
            if origin in self._participants[code] and destination in self._participants[code]
        ]

    def find_exchange_rate(
        self, from_currency: str, to_currency: str, as_of: Optional[date] = None
    ) -> Optional[Decimal]:
        key = (normalize_code(from_currency) or "", normalize_code(to_currency) or "")
        entries = self._exchange_rates.get(key, [])
        if as_of is not None:
            for entry in entries:
                if entry.effective_date == as_of:
                    return entry.rate
            return None
        today = self._today()
        latest = [entry for entry in entries if entry.effective_date <= today]
        return latest[-1].rate if latest else None

    @property
    def product_count(self) -> int:
        return len(self._products)


# ---------------------------------------------------------------------------
# Singleton
# ---------------------------------------------------------------------------
@lru_cache(maxsize=4)
def get_tariff_store(seed_path: str) -> InMemoryTariffStore:
    """Return a cached store loaded from ``seed_path``."""

    store = InMemoryTariffStore()
    path = Path(seed_path)
    if path.exists():
        store.load_seed(path)
    else:
        logger.warning("Seed file %s not found; tariff store is empty", path)
    logger.info("Tariff store ready: %d products", store.product_count)
    return store
