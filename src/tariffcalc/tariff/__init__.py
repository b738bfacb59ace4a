"""Duty computation and best-rate selection engine."""

from .calculator import TariffCalculator, calculator_from_env
from .config import EngineConfig
from .currency import ConversionOutcome, CurrencyNormalizer
from .duty_calculator import DutyBreakdown, compute_duty, compute_duty_breakdown
from .duty_rate import RateType
from .eligibility import DateWindow, is_eligible
from .errors import (
    EmptyProductCodeError,
    InvalidFormatError,
    InvalidInputError,
    ProductNotFoundError,
    TariffCalculationError,
)
from .models import (
    CalculationInput,
    CalculationResult,
    MonetaryAmount,
    PreferentialRate,
    Product,
    RateSpec,
    TradeAgreement,
)
from .normalizer import normalize_optional_text, normalize_product_code
from .rate_store import InMemoryTariffStore
from .selector import select_best_rate

__all__ = [
    "CalculationInput",
    "CalculationResult",
    "ConversionOutcome",
    "CurrencyNormalizer",
    "DateWindow",
    "DutyBreakdown",
    "EmptyProductCodeError",
    "EngineConfig",
    "InMemoryTariffStore",
    "InvalidFormatError",
    "InvalidInputError",
    "MonetaryAmount",
    "PreferentialRate",
    "Product",
    "ProductNotFoundError",
    "RateSpec",
    "RateType",
    "TariffCalculationError",
    "TariffCalculator",
    "TradeAgreement",
    "calculator_from_env",
    "compute_duty",
    "compute_duty_breakdown",
    "is_eligible",
    "normalize_optional_text",
    "normalize_product_code",
    "select_best_rate",
]
