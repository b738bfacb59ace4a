"""Temporal eligibility of rate and agreement records.

A record is in force on a date when ``effective_date <= date`` and it has not
expired (``expiration_date`` absent or ``date <= expiration_date``). Records
without an effective date are never in force.

In range mode a record qualifies when its validity interval overlaps the
requested window. A record that misses the window is re-evaluated as of today
and, if in force then, admitted with a warning instead of failing the
calculation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Callable, Iterable, List, Optional, Protocol, Sequence, Tuple, TypeVar, Union

from tariffcalc.tariff.errors import InvalidInputError

logger = logging.getLogger(__name__)


class Dated(Protocol):
    @property
    def effective_date(self) -> Optional[date]: ...

    @property
    def expiration_date(self) -> Optional[date]: ...


@dataclass(frozen=True)
class DateWindow:
    """Requested validity window; either bound may be open."""

    start: Optional[date] = None
    end: Optional[date] = None

    def __post_init__(self) -> None:
        if self.start is None and self.end is None:
            raise InvalidInputError("A date range needs a startDate or an endDate")
        if self.start is not None and self.end is not None and self.start > self.end:
            raise InvalidInputError(
                f"startDate ({self.start}) must not be after endDate ({self.end})"
            )

    def describe(self) -> str:
        if self.start is not None and self.end is not None:
            return f"from {self.start} to {self.end}"
        if self.start is not None:
            return f"from {self.start}"
        return f"until {self.end}"


AsOf = Union[date, DateWindow]

T = TypeVar("T", bound=Dated)


def is_in_force(record: Dated, on: date) -> bool:
    effective = record.effective_date
    if effective is None or effective > on:
        return False
    expiration = record.expiration_date
    return expiration is None or on <= expiration


def overlaps(record: Dated, window: DateWindow) -> bool:
    effective = record.effective_date
    if effective is None:
        return False
    if window.end is not None and effective > window.end:
        return False
    expiration = record.expiration_date
    if expiration is not None and window.start is not None and expiration < window.start:
        return False
    return True


def is_eligible(record: Dated, as_of: AsOf) -> bool:
    """Point-in-time check for a date, overlap check for a window."""

    if isinstance(as_of, DateWindow):
        return overlaps(record, as_of)
    return is_in_force(record, as_of)


@dataclass(frozen=True)
class EligibilityDecision:
    eligible: bool
    used_fallback: bool = False
    warning: Optional[str] = None


def evaluate_eligibility(record: Dated, as_of: AsOf, *, today: date, label: str) -> EligibilityDecision:
    if is_eligible(record, as_of):
        return EligibilityDecision(eligible=True)
    if not isinstance(as_of, DateWindow):
        return EligibilityDecision(eligible=False)
    if is_in_force(record, today):
        validity = f"effective {record.effective_date}"
        if record.expiration_date is not None:
            validity += f", expires {record.expiration_date}"
        warning = (
            f"{label} rate ({validity}) does not cover requested window "
            f"{as_of.describe()}; evaluated as of {today}"
        )
        logger.warning("%s rate outside window %s; using today (%s)", label, as_of.describe(), today)
        return EligibilityDecision(eligible=True, used_fallback=True, warning=warning)
    return EligibilityDecision(eligible=False)


def filter_eligible(
    records: Iterable[T],
    as_of: AsOf,
    *,
    today: date,
    label: Callable[[T], str],
) -> Tuple[List[Tuple[T, EligibilityDecision]], List[str]]:
    """Keep eligible records in input order, collecting fallback warnings."""

    kept: List[Tuple[T, EligibilityDecision]] = []
    warnings: List[str] = []
    for record in records:
        decision = evaluate_eligibility(record, as_of, today=today, label=label(record))
        if not decision.eligible:
            continue
        kept.append((record, decision))
        if decision.warning:
            warnings.append(decision.warning)
    return kept, warnings


def in_force(records: Sequence[T], as_of: AsOf) -> List[T]:
    return [record for record in records if is_eligible(record, as_of)]
