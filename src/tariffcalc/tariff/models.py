from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from tariffcalc.tariff.duty_rate import RateType, classify_rate


# ---------------------------------------------------------------------------
# Store records (read-only snapshots fetched per calculation)
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class Product:
    """Classified product known to the rate store."""

    hts8: str
    brief_description: Optional[str] = None
    quantity_unit: Optional[str] = None


@dataclass(frozen=True)
class RateSpec:
    """Single tariff rate record.

    ``None`` components contribute no duty; they are never stored as a
    sentinel zero so that "no charge" stays distinct from "0% by design".
    """

    ad_valorem_rate: Optional[Decimal] = None
    specific_rate: Optional[Decimal] = None
    effective_date: Optional[date] = None
    expiration_date: Optional[date] = None
    text_rate: Optional[str] = None
    rate_type_code: Optional[str] = None

    @property
    def rate_type(self) -> RateType:
        return classify_rate(self.ad_valorem_rate, self.specific_rate)


@dataclass(frozen=True)
class TradeAgreement:
    code: str
    name: str
    effective_date: Optional[date] = None
    expiration_date: Optional[date] = None
    agreement_type: Optional[str] = None
    is_multilateral: bool = False


@dataclass(frozen=True)
class PreferentialRate:
    """A rate record tagged with the trade agreement that grants it."""

    rate: RateSpec
    agreement: TradeAgreement

    @property
    def effective_date(self) -> Optional[date]:
        return self.rate.effective_date

    @property
    def expiration_date(self) -> Optional[date]:
        return self.rate.expiration_date


@dataclass(frozen=True)
class MonetaryAmount:
    amount: Decimal
    currency: str

    def rounded(self, places: int = 2) -> "MonetaryAmount":
        quantum = Decimal(1).scaleb(-places)
        return MonetaryAmount(self.amount.quantize(quantum, rounding=ROUND_HALF_UP), self.currency)


@dataclass(frozen=True)
class CalculationInput:
    """Caller-supplied parameters for one calculation.

    Supplying ``start_date`` or ``end_date`` switches the calculation to
    range mode; otherwise rates are evaluated on ``calculation_date``
    (today when omitted).
    """

    product_code: Optional[str]
    destination_country: Optional[str]
    product_value: Optional[Decimal | float | int | str]
    quantity: Optional[int]
    origin_country: Optional[str] = None
    currency: Optional[str] = None
    calculation_date: Optional[date] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @property
    def is_range(self) -> bool:
        return self.start_date is not None or self.end_date is not None


# ---------------------------------------------------------------------------
# Result models
# ---------------------------------------------------------------------------
class _ResultModel(BaseModel):
    model_config = ConfigDict(extra="forbid", alias_generator=to_camel, populate_by_name=True)

    def to_payload(self) -> Dict:
        """JSON-ready dict using the camelCase field names."""

        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class RateInfoModel(_ResultModel):
    """Default-regime rate as applied to this calculation."""

    ad_valorem_rate: Optional[Decimal] = None
    specific_rate: Optional[Decimal] = None
    text_rate: Optional[str] = None
    rate_type_code: Optional[str] = None
    rate_type: RateType
    rate_label: str
    effective_date: Optional[date] = None
    expiration_date: Optional[date] = None
    calculated_duty: Decimal


class PreferentialDutyModel(_ResultModel):
    agreement_code: str
    agreement_name: str
    agreement_type: Optional[str] = None
    is_multilateral: bool = False
    ad_valorem_rate: Optional[Decimal] = None
    specific_rate: Optional[Decimal] = None
    text_rate: Optional[str] = None
    rate_type: RateType
    rate_label: str
    calculated_duty: Decimal
    eligibility_status: str = "Eligible"


class RecommendedRateModel(_ResultModel):
    rate_type: Literal["MFN", "Preferential"]
    program_name: str
    calculated_duty: Decimal
    savings: Decimal
    recommendation: str


class CalculationResult(_ResultModel):
    """Outcome of a single calculation.

    ``error`` is the only failure signal; ``warnings`` records degraded but
    successful paths (missing exchange rate, window fallback).
    """

    hts_code: Optional[str] = None
    product_description: Optional[str] = None
    origin_country: Optional[str] = None
    destination_country: Optional[str] = None
    product_value: Optional[Decimal] = None
    quantity: Optional[int] = None
    currency: Optional[str] = None
    calculation_date: Optional[date] = None
    tariff_effective_date: Optional[date] = None
    tariff_expiration_date: Optional[date] = None
    mfn_rate: Optional[RateInfoModel] = None
    mfn_tariff_amount: Optional[Decimal] = None
    preferential_rates: List[PreferentialDutyModel] = Field(default_factory=list)
    recommended_rate: Optional[RecommendedRateModel] = None
    best_tariff_amount: Optional[Decimal] = None
    best_program_name: Optional[str] = None
    applicable_programs: List[str] = Field(default_factory=list)
    compliance_notes: List[str] = Field(default_factory=list)
    total_import_price: Optional[Decimal] = None
    warnings: List[str] = Field(default_factory=list)
    error: Optional[str] = None
    error_code: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def savings(self) -> Decimal:
        if self.recommended_rate is None:
            return Decimal("0.00")
        return self.recommended_rate.savings

    @classmethod
    def failure(cls, error: str, error_code: str, **echo) -> "CalculationResult":
        return cls(error=error, error_code=error_code, **echo)


class HtsValidationModel(_ResultModel):
    valid: bool
    message: str
    error_code: Optional[str] = None
    hts_code: Optional[str] = None
    provided_code: Optional[str] = None
    product_description: Optional[str] = None
    has_mfn_rate: Optional[bool] = None
    mfn_ad_valorem_rate: Optional[Decimal] = None
    mfn_rate_type: Optional[str] = None


class CostBreakdownModel(_ResultModel):
    hts_code: Optional[str] = None
    destination_country: Optional[str] = None
    quantity: Optional[int] = None
    applied_program: Optional[str] = None
    tariff_amount: Optional[Decimal] = None
    purchase_price: Optional[Decimal] = None
    total_import_price: Optional[Decimal] = None
    currency: Optional[str] = None
    breakdown: Dict[str, str] = Field(default_factory=dict)
    error: Optional[str] = None
    error_code: Optional[str] = None
