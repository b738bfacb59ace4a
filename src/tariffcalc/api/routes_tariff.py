from __future__ import annotations

from datetime import date
from decimal import Decimal
from functools import lru_cache
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from tariffcalc.tariff.calculator import TariffCalculator, calculator_from_env
from tariffcalc.tariff.models import CalculationInput

router = APIRouter(prefix="/api/tariff", tags=["tariff"])

_STATUS_BY_ERROR_CODE = {
    "INVALID_INPUT": 400,
    "INVALID_FORMAT": 400,
    "EMPTY_HTS_CODE": 400,
    "PRODUCT_NOT_FOUND": 404,
    "CALCULATION_FAILED": 500,
}


class TariffCalculationRequestModel(BaseModel):
    """Request payload for a duty calculation.

    Supplying ``start_date`` and/or ``end_date`` evaluates rates over that
    window instead of on ``calculation_date``.
    """

    hts_code: Optional[str] = None
    origin_country: Optional[str] = None
    destination_country: Optional[str] = None
    product_value: Optional[Decimal] = None
    quantity: Optional[int] = None
    currency: Optional[str] = Field(default=None, description="Target currency; defaults to the base currency")
    calculation_date: Optional[date] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    model_config = ConfigDict(extra="forbid", alias_generator=to_camel, populate_by_name=True)

    def to_input(self) -> CalculationInput:
        return CalculationInput(
            product_code=self.hts_code,
            origin_country=self.origin_country,
            destination_country=self.destination_country,
            product_value=self.product_value,
            quantity=self.quantity,
            currency=self.currency,
            calculation_date=self.calculation_date,
            start_date=self.start_date,
            end_date=self.end_date,
        )


@lru_cache(maxsize=1)
def get_calculator() -> TariffCalculator:
    return calculator_from_env()


def _respond(payload_model, error_code: Optional[str]) -> JSONResponse:
    status = _STATUS_BY_ERROR_CODE.get(error_code, 400) if error_code else 200
    return JSONResponse(status_code=status, content=payload_model.to_payload())


@router.post("/calculate")
def calculate_tariff(
    request: TariffCalculationRequestModel,
    calculator: TariffCalculator = Depends(get_calculator),
) -> JSONResponse:
    """Compute MFN and preferential duties and recommend the cheapest program."""

    result = calculator.calculate(request.to_input())
    return _respond(result, result.error_code)


@router.post("/cost-breakdown")
def cost_breakdown(
    request: TariffCalculationRequestModel,
    calculator: TariffCalculator = Depends(get_calculator),
) -> JSONResponse:
    breakdown = calculator.cost_breakdown(
        request.hts_code,
        request.origin_country,
        request.destination_country,
        request.product_value,
        request.quantity,
        request.currency,
    )
    return _respond(breakdown, breakdown.error_code)


@router.get("/validate/{hts_code}")
def validate_hts_code(hts_code: str, calculator: TariffCalculator = Depends(get_calculator)):
    return calculator.validate_hts_code(hts_code).to_payload()


@router.get("/duty")
def compute_duty(
    product_value: Decimal = Query(..., alias="productValue", ge=0),
    quantity: int = Query(..., ge=0),
    ad_valorem_rate: Optional[Decimal] = Query(default=None, alias="adValoremRate"),
    specific_rate: Optional[Decimal] = Query(default=None, alias="specificRate"),
):
    """Standalone duty arithmetic for one rate."""

    duty = TariffCalculator.compute_duty(ad_valorem_rate, specific_rate, product_value, quantity)
    return {"duty": str(duty)}
