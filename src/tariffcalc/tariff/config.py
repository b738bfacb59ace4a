"""Engine configuration.

Values are resolved once (usually from the environment) and then passed into
the engine explicitly; nothing below reads the environment mid-calculation.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path
from typing import Optional

DEFAULT_BASE_CURRENCY = "USD"
DEFAULT_PROGRAM_NAME = "MFN"
SEED_FILENAME = "tariff_seed.json"


@dataclass(frozen=True)
class EngineConfig:
    """Numeric and currency policy for a calculator instance."""

    base_currency: str = DEFAULT_BASE_CURRENCY
    money_places: int = 2
    conversion_places: int = 6
    default_program_name: str = DEFAULT_PROGRAM_NAME
    data_root: Optional[Path] = None

    @property
    def money_quantum(self) -> Decimal:
        return Decimal(1).scaleb(-self.money_places)

    @property
    def conversion_quantum(self) -> Decimal:
        return Decimal(1).scaleb(-self.conversion_places)

    @classmethod
    def from_env(cls) -> "EngineConfig":
        base = (os.getenv("TARIFFCALC_BASE_CURRENCY") or DEFAULT_BASE_CURRENCY).strip().upper()
        root = os.getenv("TARIFFCALC_DATA_ROOT")
        return cls(
            base_currency=base or DEFAULT_BASE_CURRENCY,
            data_root=Path(root) if root else None,
        )


def _packaged_seed_path() -> Path:
    return Path(__file__).resolve().parents[3] / "data" / "sample_tariff_seed.json"


def resolve_seed_path(config: EngineConfig) -> Path:
    """Return the seed file for ``config``, falling back to the bundled sample."""

    if config.data_root is not None:
        candidate = config.data_root / SEED_FILENAME
        if candidate.exists():
            return candidate
    return _packaged_seed_path()
