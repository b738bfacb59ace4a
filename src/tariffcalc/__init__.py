"""tariffcalc - import duty computation and best-rate selection."""

from .tariff import (
    CalculationInput,
    CalculationResult,
    EngineConfig,
    TariffCalculator,
    compute_duty,
)

__version__ = "0.3.0"

__all__ = [
    "CalculationInput",
    "CalculationResult",
    "EngineConfig",
    "TariffCalculator",
    "compute_duty",
    "__version__",
]
