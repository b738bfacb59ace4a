from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Tuple

from tariffcalc.tariff.errors import EmptyProductCodeError, InvalidFormatError, InvalidInputError

PRODUCT_CODE_LENGTH = 8

_NON_ALNUM_RE = re.compile(r"[^0-9A-Za-z]")


def normalize_optional_text(raw: Optional[str]) -> Optional[str]:
    """Trim whitespace; empty-after-trim becomes ``None``."""

    if raw is None:
        return None
    text = str(raw).strip()
    return text or None


def clean_product_code(raw: Optional[str]) -> str:
    """Strip separators and upper-case, without checking the length."""

    if raw is None:
        return ""
    return _NON_ALNUM_RE.sub("", str(raw)).upper()


def normalize_product_code(raw: Optional[str]) -> Optional[str]:
    """Return the canonical 8-character product code.

    Blank input yields ``None`` (no match) rather than an error; a code of the
    wrong length raises :class:`InvalidFormatError`.
    """

    if normalize_optional_text(raw) is None:
        return None
    cleaned = clean_product_code(raw)
    if len(cleaned) != PRODUCT_CODE_LENGTH:
        raise InvalidFormatError(
            f"HTS code must be exactly {PRODUCT_CODE_LENGTH} characters",
            provided=raw,
            cleaned=cleaned,
        )
    return cleaned


def require_product_code(raw: Optional[str]) -> str:
    """Like :func:`normalize_product_code` but blank input is an error too."""

    code = normalize_product_code(raw)
    if code is None:
        raise EmptyProductCodeError("HTS code is required")
    return code


def normalize_code(raw: Optional[str]) -> Optional[str]:
    """Country and currency codes: trimmed, upper-cased, blank -> ``None``."""

    text = normalize_optional_text(raw)
    return text.upper() if text else None


def to_decimal(value: Any) -> Optional[Decimal]:
    if value is None:
        return None
    if isinstance(value, bool):
        raise InvalidInputError(f"Expected a number, got {value!r}")
    try:
        number = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise InvalidInputError(f"Expected a number, got {value!r}") from exc
    if not number.is_finite():
        raise InvalidInputError(f"Expected a finite number, got {value!r}")
    return number


def validate_amounts(product_value: Any, quantity: Any) -> Tuple[Decimal, int]:
    """Fail fast on missing, non-numeric or negative value/quantity."""

    try:
        value = to_decimal(product_value)
    except InvalidInputError as exc:
        raise InvalidInputError("productValue must be non-negative") from exc
    if value is None or value < 0:
        raise InvalidInputError("productValue must be non-negative")

    if quantity is None or isinstance(quantity, bool):
        raise InvalidInputError("quantity must be a non-negative integer")
    try:
        qty_decimal = Decimal(str(quantity).strip())
    except InvalidOperation as exc:
        raise InvalidInputError("quantity must be a non-negative integer") from exc
    if not qty_decimal.is_finite() or qty_decimal != qty_decimal.to_integral_value():
        raise InvalidInputError("quantity must be a non-negative integer")
    if qty_decimal < 0:
        raise InvalidInputError("quantity must be non-negative")
    return value, int(qty_decimal)
