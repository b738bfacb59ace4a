"""Exception taxonomy for tariff calculations.

Each error carries a stable ``code`` so the top-level calculator can turn it
into a structured ``error_code`` on the result instead of propagating.
"""

from __future__ import annotations


class TariffCalculationError(Exception):
    """Base class for all calculation errors."""

    code = "CALCULATION_FAILED"


class InvalidInputError(TariffCalculationError, ValueError):
    """Raised for caller input that fails validation before any lookup."""

    code = "INVALID_INPUT"


class InvalidFormatError(InvalidInputError):
    """Raised when a product code does not have the expected shape."""

    code = "INVALID_FORMAT"

    def __init__(self, message: str, provided: str | None = None, cleaned: str | None = None) -> None:
        super().__init__(message)
        self.provided = provided
        self.cleaned = cleaned


class EmptyProductCodeError(InvalidInputError):
    code = "EMPTY_HTS_CODE"


class ProductNotFoundError(TariffCalculationError, LookupError):
    """Raised when a product code resolves to no product record at all."""

    code = "PRODUCT_NOT_FOUND"
