"""Trade-program membership and compliance annotations.

Compliance notes are a fixed set of advisories keyed by substrings of
program names; this is annotation only, it never changes eligibility.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

from tariffcalc.tariff.eligibility import AsOf, DateWindow, is_eligible
from tariffcalc.tariff.models import TradeAgreement

NO_PROGRAMS_NOTE = "No preferential trade programs available for this product/country combination"
ELIGIBLE_PROGRAMS_PREFIX = "ELIGIBLE programs (to be verified): "
DOCUMENTATION_NOTE = "Ensure proper documentation for preferential treatment"
CERTIFICATION_NOTE = "Verify country of origin certification requirements"

KEYWORD_NOTES: tuple[tuple[str, str], ...] = (
    ("GSP", "GSP: Verify country eligibility and product requirements"),
    ("USMCA", "USMCA: Verify rules of origin requirements"),
)


def format_program(agreement: TradeAgreement) -> str:
    return f"{agreement.code} - {agreement.name}"


def applicable_programs(agreements: Iterable[TradeAgreement], as_of: AsOf) -> List[str]:
    """Agreements in force for ``as_of``, rendered as ``CODE - Name``."""

    return [format_program(agreement) for agreement in agreements if is_eligible(agreement, as_of)]


def build_compliance_notes(
    programs: Sequence[str],
    eligible_agreements: Sequence[TradeAgreement] = (),
    best_program: Optional[str] = None,
    window: Optional[DateWindow] = None,
) -> List[str]:
    listed = list(programs) or [format_program(agreement) for agreement in eligible_agreements]

    notes: List[str] = []
    if listed:
        notes.append(ELIGIBLE_PROGRAMS_PREFIX + ", ".join(listed))
    else:
        notes.append(NO_PROGRAMS_NOTE)

    haystack = list(listed)
    haystack.extend(agreement.code for agreement in eligible_agreements)
    haystack.extend(agreement.name for agreement in eligible_agreements)
    if best_program:
        haystack.append(best_program)
    for keyword, note in KEYWORD_NOTES:
        if any(keyword in name for name in haystack):
            notes.append(note)

    notes.append(DOCUMENTATION_NOTE)
    notes.append(CERTIFICATION_NOTE)

    if window is not None:
        notes.append(f"Tariff rates effective {window.describe()}")
    return notes
