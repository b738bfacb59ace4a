from __future__ import annotations

from datetime import date

from tariffcalc.tariff.agreements import (
    CERTIFICATION_NOTE,
    DOCUMENTATION_NOTE,
    NO_PROGRAMS_NOTE,
    applicable_programs,
    build_compliance_notes,
)
from tariffcalc.tariff.eligibility import DateWindow
from tests.helpers.tariff_data import GSP, USMCA


def test_no_programs():
    assert build_compliance_notes([]) == [NO_PROGRAMS_NOTE, DOCUMENTATION_NOTE, CERTIFICATION_NOTE]


def test_programs_listed_with_keyword_notes():
    programs = applicable_programs([USMCA, GSP], date(2025, 1, 1))
    assert programs == [
        "USMCA - United States-Mexico-Canada Agreement",
        "GSP - Generalized System of Preferences",
    ]
    notes = build_compliance_notes(programs)
    assert notes[0].startswith("ELIGIBLE programs (to be verified): USMCA - ")
    assert "GSP: Verify country eligibility and product requirements" in notes
    assert "USMCA: Verify rules of origin requirements" in notes
    assert notes[-2:] == [DOCUMENTATION_NOTE, CERTIFICATION_NOTE]


def test_agreements_not_yet_in_force_are_not_applicable():
    assert applicable_programs([USMCA], date(2019, 1, 1)) == []


def test_eligible_agreements_fill_in_when_no_programs():
    notes = build_compliance_notes([], [USMCA])
    assert notes[0] == "ELIGIBLE programs (to be verified): USMCA - United States-Mexico-Canada Agreement"


def test_window_note_is_last():
    notes = build_compliance_notes([], window=DateWindow(end=date(2021, 6, 30)))
    assert notes[-1] == "Tariff rates effective until 2021-06-30"
