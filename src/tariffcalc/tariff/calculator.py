"""Top-level tariff calculation entry points.

Every public method here returns a result object; validation problems,
unknown products and store failures are reported through ``error`` and
``error_code`` rather than raised.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import Any, Callable, Optional

from tariffcalc.observability import bind_calculation_id, log_event, reset_calculation_id
from tariffcalc.tariff.config import EngineConfig, resolve_seed_path
from tariffcalc.tariff.currency import CurrencyNormalizer
from tariffcalc.tariff.duty_calculator import compute_duty
from tariffcalc.tariff.eligibility import DateWindow
from tariffcalc.tariff.errors import InvalidFormatError, InvalidInputError, ProductNotFoundError
from tariffcalc.tariff.models import (
    CalculationInput,
    CalculationResult,
    CostBreakdownModel,
    HtsValidationModel,
    Product,
)
from tariffcalc.tariff.normalizer import (
    clean_product_code,
    normalize_code,
    normalize_product_code,
    require_product_code,
    validate_amounts,
)
from tariffcalc.tariff.rate_store import AgreementStore, ExchangeRateStore, RateStore, get_tariff_store
from tariffcalc.tariff.selector import PRODUCT_NOT_FOUND_MESSAGE, select_best_rate

logger = logging.getLogger(__name__)


def format_money(amount: Optional[Decimal]) -> str:
    return "$%.2f" % (amount or Decimal("0"))


class TariffCalculator:
    """Stateless calculator over read-only stores; safe to share across requests."""

    def __init__(
        self,
        rate_store: RateStore,
        agreement_store: Optional[AgreementStore] = None,
        exchange_store: Optional[ExchangeRateStore] = None,
        config: Optional[EngineConfig] = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._rates = rate_store
        self._agreements = agreement_store
        self._config = config or EngineConfig()
        self._currency = CurrencyNormalizer(exchange_store, self._config)
        self._today = today

    @property
    def config(self) -> EngineConfig:
        return self._config

    @property
    def currency(self) -> CurrencyNormalizer:
        return self._currency

    @staticmethod
    def compute_duty(ad_valorem_rate: Any, specific_rate: Any, product_value: Any, quantity: Any) -> Decimal:
        return compute_duty(ad_valorem_rate, specific_rate, product_value, quantity)

    # -- lookups -------------------------------------------------------------

    def find_product(self, raw_code: Optional[str]) -> Optional[Product]:
        """Blank or malformed codes are a miss, not an error."""

        try:
            code = normalize_product_code(raw_code)
        except InvalidFormatError:
            return None
        if code is None:
            return None
        return self._rates.find_product(code)

    # -- calculations --------------------------------------------------------

    def calculate_tariff(
        self,
        product_code: Optional[str],
        origin_country: Optional[str],
        destination_country: Optional[str],
        product_value: Any,
        quantity: Any,
        currency: Optional[str] = None,
        calculation_date: Optional[date] = None,
    ) -> CalculationResult:
        return self.calculate(
            CalculationInput(
                product_code=product_code,
                origin_country=origin_country,
                destination_country=destination_country,
                product_value=product_value,
                quantity=quantity,
                currency=currency,
                calculation_date=calculation_date,
            )
        )

    def calculate_tariff_with_date_range(
        self,
        product_code: Optional[str],
        origin_country: Optional[str],
        destination_country: Optional[str],
        product_value: Any,
        quantity: Any,
        start_date: Optional[date],
        end_date: Optional[date],
        currency: Optional[str] = None,
    ) -> CalculationResult:
        return self.calculate(
            CalculationInput(
                product_code=product_code,
                origin_country=origin_country,
                destination_country=destination_country,
                product_value=product_value,
                quantity=quantity,
                currency=currency,
                start_date=start_date,
                end_date=end_date,
            )
        )

    def calculate(self, calculation: CalculationInput) -> CalculationResult:
        token = bind_calculation_id()
        try:
            return self._calculate(calculation)
        finally:
            reset_calculation_id(token)

    def _calculate(self, calculation: CalculationInput) -> CalculationResult:
        echo = {
            "origin_country": normalize_code(calculation.origin_country),
            "destination_country": normalize_code(calculation.destination_country),
        }
        try:
            code = require_product_code(calculation.product_code)
            validate_amounts(calculation.product_value, calculation.quantity)
            if echo["destination_country"] is None:
                raise InvalidInputError("destinationCountry is required")
            if calculation.is_range:
                DateWindow(calculation.start_date, calculation.end_date)
        except InvalidInputError as exc:
            log_event("tariff.invalid_input", level=logging.WARNING, error_code=exc.code, error=str(exc))
            return CalculationResult.failure(
                str(exc), exc.code, hts_code=clean_product_code(calculation.product_code) or None, **echo
            )

        log_event("tariff.calculation_started", hts_code=code, range_mode=calculation.is_range)
        try:
            product = self._rates.find_product(code)
            if product is None:
                return CalculationResult.failure(
                    PRODUCT_NOT_FOUND_MESSAGE, ProductNotFoundError.code, hts_code=code, **echo
                )

            default_rate = self._rates.find_default_rate(code)
            destination = echo["destination_country"]
            candidates = self._rates.find_preferential_rates(code, destination)
            origin = echo["origin_country"]
            agreements = (
                self._agreements.find_agreements_between(origin, destination)
                if self._agreements is not None and origin
                else []
            )

            result = select_best_rate(
                replace(calculation, product_code=code),
                default_rate,
                candidates,
                product=product,
                agreements=agreements,
                config=self._config,
                currency=self._currency,
                today=self._today(),
            )
        except Exception as exc:
            logger.exception("Tariff calculation failed for %s", code)
            return CalculationResult.failure(f"Calculation failed: {exc}", "CALCULATION_FAILED", hts_code=code, **echo)

        log_event(
            "tariff.calculation_finished",
            hts_code=code,
            program=result.best_program_name,
            error_code=result.error_code,
        )
        return result

    # -- supplementary views -------------------------------------------------

    def validate_hts_code(self, raw_code: Optional[str]) -> HtsValidationModel:
        try:
            code = require_product_code(raw_code)
        except InvalidFormatError as exc:
            return HtsValidationModel(
                valid=False,
                message=str(exc),
                error_code=exc.code,
                provided_code=raw_code,
                hts_code=exc.cleaned,
            )
        except InvalidInputError as exc:
            return HtsValidationModel(valid=False, message="HTS code cannot be empty", error_code=exc.code)

        product = self._rates.find_product(code)
        if product is None:
            return HtsValidationModel(
                valid=False,
                message="HTS code not found in database",
                error_code="HTS_CODE_NOT_FOUND",
                hts_code=code,
            )
        default_rate = self._rates.find_default_rate(code)
        return HtsValidationModel(
            valid=True,
            message="Valid HTS code",
            hts_code=code,
            product_description=product.brief_description,
            has_mfn_rate=default_rate is not None,
            mfn_ad_valorem_rate=default_rate.ad_valorem_rate if default_rate else None,
            mfn_rate_type=default_rate.rate_type.value if default_rate else None,
        )

    def cost_breakdown(
        self,
        product_code: Optional[str],
        origin_country: Optional[str],
        destination_country: Optional[str],
        product_value: Any,
        quantity: Any,
        currency: Optional[str] = None,
    ) -> CostBreakdownModel:
        result = self.calculate_tariff(
            product_code, origin_country, destination_country, product_value, quantity, currency
        )
        if not result.ok:
            return CostBreakdownModel(error=result.error, error_code=result.error_code)

        purchase = result.product_value
        if result.currency != self._config.base_currency:
            purchase = self._currency.convert(purchase, self._config.base_currency, result.currency)
        tariff = result.best_tariff_amount
        total = result.total_import_price
        return CostBreakdownModel(
            hts_code=result.hts_code,
            destination_country=result.destination_country,
            quantity=result.quantity,
            applied_program=result.best_program_name,
            tariff_amount=tariff,
            purchase_price=purchase,
            total_import_price=total,
            currency=result.currency,
            breakdown={
                "Purchase Price": format_money(purchase),
                "Applied Program": result.best_program_name or "",
                "Tariff Amount": format_money(tariff),
                "Total Import Price": format_money(total),
            },
        )


def calculator_from_env(config: Optional[EngineConfig] = None) -> TariffCalculator:
    """Calculator over the seed resolved from ``TARIFFCALC_DATA_ROOT``."""

    config = config or EngineConfig.from_env()
    store = get_tariff_store(str(resolve_seed_path(config)))
    return TariffCalculator(store, store, store, config=config)
