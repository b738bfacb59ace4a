"""Best-rate selection.

Computes the default (MFN) duty and the duty under every temporally eligible
preferential rate, then recommends the cheapest program. A preferential rate
only wins when it is strictly cheaper than the default; among equally cheap
preferential rates the first one in input order wins.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import List, Optional, Sequence

from tariffcalc.observability import log_event
from tariffcalc.tariff.agreements import applicable_programs, build_compliance_notes
from tariffcalc.tariff.config import EngineConfig
from tariffcalc.tariff.currency import CurrencyNormalizer
from tariffcalc.tariff.duty_calculator import duty_for_rate, quantize_money
from tariffcalc.tariff.duty_rate import rate_label
from tariffcalc.tariff.eligibility import (
    AsOf,
    DateWindow,
    EligibilityDecision,
    evaluate_eligibility,
    filter_eligible,
)
from tariffcalc.tariff.errors import ProductNotFoundError
from tariffcalc.tariff.models import (
    CalculationInput,
    CalculationResult,
    PreferentialDutyModel,
    PreferentialRate,
    Product,
    RateInfoModel,
    RateSpec,
    RecommendedRateModel,
    TradeAgreement,
)
from tariffcalc.tariff.normalizer import clean_product_code, normalize_code, validate_amounts

logger = logging.getLogger(__name__)

PRODUCT_NOT_FOUND_MESSAGE = "HTS code not found"


def evaluation_point(calculation: CalculationInput, today: date) -> AsOf:
    if calculation.is_range:
        return DateWindow(calculation.start_date, calculation.end_date)
    return calculation.calculation_date or today


def _rate_info(rate: RateSpec, duty: Decimal) -> RateInfoModel:
    return RateInfoModel(
        ad_valorem_rate=rate.ad_valorem_rate,
        specific_rate=rate.specific_rate,
        text_rate=rate.text_rate,
        rate_type_code=rate.rate_type_code,
        rate_type=rate.rate_type,
        rate_label=rate_label(rate),
        effective_date=rate.effective_date,
        expiration_date=rate.expiration_date,
        calculated_duty=duty,
    )


def _preferential_entry(candidate: PreferentialRate, duty: Decimal, decision: EligibilityDecision) -> PreferentialDutyModel:
    return PreferentialDutyModel(
        agreement_code=candidate.agreement.code,
        agreement_name=candidate.agreement.name,
        agreement_type=candidate.agreement.agreement_type,
        is_multilateral=candidate.agreement.is_multilateral,
        ad_valorem_rate=candidate.rate.ad_valorem_rate,
        specific_rate=candidate.rate.specific_rate,
        text_rate=candidate.rate.text_rate,
        rate_type=candidate.rate.rate_type,
        rate_label=rate_label(candidate.rate),
        calculated_duty=duty,
        eligibility_status="Eligible (as of today)" if decision.used_fallback else "Eligible",
    )


def _describe(as_of: AsOf) -> str:
    return as_of.describe() if isinstance(as_of, DateWindow) else f"on {as_of}"


def select_best_rate(
    calculation: CalculationInput,
    default_rate: Optional[RateSpec],
    candidates: Sequence[PreferentialRate],
    *,
    product: Optional[Product] = None,
    agreements: Sequence[TradeAgreement] = (),
    config: Optional[EngineConfig] = None,
    currency: Optional[CurrencyNormalizer] = None,
    today: Optional[date] = None,
) -> CalculationResult:
    """Build the full calculation result for already-fetched rate data."""

    config = config or EngineConfig()
    today = today or date.today()
    hts_code = clean_product_code(calculation.product_code) or None

    if product is None and default_rate is None and not candidates:
        return CalculationResult.failure(
            PRODUCT_NOT_FOUND_MESSAGE, ProductNotFoundError.code, hts_code=hts_code
        )

    value, quantity = validate_amounts(calculation.product_value, calculation.quantity)
    places = config.money_places
    as_of = evaluation_point(calculation, today)
    warnings: List[str] = []

    # --- Default regime ---
    mfn_info: Optional[RateInfoModel] = None
    mfn_duty = quantize_money(Decimal("0"), places)
    if default_rate is not None:
        decision = evaluate_eligibility(default_rate, as_of, today=today, label=config.default_program_name)
        if decision.eligible:
            mfn_duty = duty_for_rate(default_rate, value, quantity, places=places)
            mfn_info = _rate_info(default_rate, mfn_duty)
            if decision.warning:
                warnings.append(decision.warning)
        else:
            warnings.append(
                f"{config.default_program_name} rate not in force {_describe(as_of)}; treated as absent"
            )

    # --- Preferential candidates ---
    eligible, fallback_warnings = filter_eligible(
        candidates, as_of, today=today, label=lambda candidate: candidate.agreement.code
    )
    warnings.extend(fallback_warnings)

    evaluated: List[PreferentialDutyModel] = []
    cheapest: Optional[PreferentialRate] = None
    cheapest_duty: Optional[Decimal] = None
    for candidate, decision in eligible:
        duty = duty_for_rate(candidate.rate, value, quantity, places=places)
        evaluated.append(_preferential_entry(candidate, duty, decision))
        if cheapest_duty is None or duty < cheapest_duty:
            cheapest, cheapest_duty = candidate, duty

    # --- Recommendation ---
    if cheapest is not None and cheapest_duty < mfn_duty:
        best_program = cheapest.agreement.name
        best_duty = cheapest_duty
        recommended = RecommendedRateModel(
            rate_type="Preferential",
            program_name=best_program,
            calculated_duty=best_duty,
            savings=mfn_duty - best_duty,
            recommendation=f"Use {best_program} for lowest duty rate",
        )
    else:
        best_program = config.default_program_name
        best_duty = mfn_duty
        recommended = RecommendedRateModel(
            rate_type="MFN",
            program_name=best_program,
            calculated_duty=best_duty,
            savings=quantize_money(Decimal("0"), places),
            recommendation=f"{best_program} rate is the best available option",
        )

    programs = applicable_programs(agreements, as_of)
    notes = build_compliance_notes(
        programs,
        [candidate.agreement for candidate, _ in eligible],
        best_program=best_program if recommended.rate_type == "Preferential" else None,
        window=as_of if isinstance(as_of, DateWindow) else None,
    )

    result = CalculationResult(
        hts_code=hts_code,
        product_description=product.brief_description if product else None,
        origin_country=normalize_code(calculation.origin_country),
        destination_country=normalize_code(calculation.destination_country),
        product_value=value,
        quantity=quantity,
        currency=config.base_currency,
        calculation_date=None if calculation.is_range else as_of,
        tariff_effective_date=calculation.start_date,
        tariff_expiration_date=calculation.end_date,
        mfn_rate=mfn_info,
        mfn_tariff_amount=mfn_duty,
        preferential_rates=evaluated,
        recommended_rate=recommended,
        best_tariff_amount=best_duty,
        best_program_name=best_program,
        applicable_programs=programs,
        compliance_notes=notes,
        total_import_price=quantize_money(value + best_duty, places),
        warnings=warnings,
    )

    log_event(
        "tariff.best_rate_selected",
        hts_code=hts_code,
        program=best_program,
        candidates=len(candidates),
        eligible=len(eligible),
    )

    target = normalize_code(calculation.currency)
    if target is not None and target != config.base_currency:
        normalizer = currency or CurrencyNormalizer(None, config)
        currency_date = None if calculation.is_range else calculation.calculation_date
        result = convert_result(result, normalizer, config.base_currency, target, currency_date)
    return result


def convert_result(
    result: CalculationResult,
    normalizer: CurrencyNormalizer,
    base_currency: str,
    target_currency: str,
    as_of: Optional[date] = None,
) -> CalculationResult:
    """Re-express every computed monetary field in ``target_currency``.

    The echoed ``product_value`` stays in the base currency. When no rate is
    available the result is returned in the base currency with a warning.
    """

    probe = normalizer.convert_with_outcome(result.mfn_tariff_amount, base_currency, target_currency, as_of)
    if not probe.converted:
        if probe.warning:
            return result.model_copy(update={"warnings": [*result.warnings, probe.warning]})
        return result

    def convert(amount: Optional[Decimal]) -> Optional[Decimal]:
        return normalizer.convert(amount, base_currency, target_currency, as_of)

    best = convert(result.best_tariff_amount)
    update = {
        "currency": probe.currency,
        "mfn_tariff_amount": probe.amount,
        "best_tariff_amount": best,
        "total_import_price": convert(result.total_import_price),
        "preferential_rates": [
            entry.model_copy(update={"calculated_duty": convert(entry.calculated_duty)})
            for entry in result.preferential_rates
        ],
    }
    if result.mfn_rate is not None:
        update["mfn_rate"] = result.mfn_rate.model_copy(
            update={"calculated_duty": convert(result.mfn_rate.calculated_duty)}
        )
    if result.recommended_rate is not None:
        # derived from the rounded converted duties, not converted separately
        savings = probe.amount - best if result.recommended_rate.rate_type == "Preferential" else Decimal("0.00")
        update["recommended_rate"] = result.recommended_rate.model_copy(
            update={"calculated_duty": best, "savings": savings}
        )
    log_event(
        "tariff.result_converted",
        from_currency=base_currency,
        to_currency=probe.currency,
        direction=probe.direction,
    )
    return result.model_copy(update=update)
