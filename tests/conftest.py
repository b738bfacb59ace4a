from __future__ import annotations

import pytest

from tariffcalc.tariff.calculator import TariffCalculator
from tariffcalc.tariff.rate_store import InMemoryTariffStore
from tests.helpers.tariff_data import TODAY, build_store


@pytest.fixture
def store() -> InMemoryTariffStore:
    return build_store()


@pytest.fixture
def calculator(store) -> TariffCalculator:
    return TariffCalculator(store, store, store, today=lambda: TODAY)
