"""Command-line interface for tariffcalc."""

from __future__ import annotations

import json
import logging
import os
from datetime import date
from pathlib import Path
from typing import Optional

import click

from tariffcalc.tariff.calculator import TariffCalculator, calculator_from_env
from tariffcalc.tariff.config import EngineConfig
from tariffcalc.tariff.duty_calculator import compute_duty
from tariffcalc.tariff.errors import InvalidInputError
from tariffcalc.tariff.models import CalculationInput
from tariffcalc.tariff.rate_store import InMemoryTariffStore

DATE = click.DateTime(formats=["%Y-%m-%d"])


def _as_date(value) -> Optional[date]:
    return value.date() if value is not None else None


def _build_calculator(seed: Optional[Path]) -> TariffCalculator:
    if seed is None:
        return calculator_from_env()
    store = InMemoryTariffStore()
    store.load_seed(seed)
    return TariffCalculator(store, store, store, config=EngineConfig.from_env())


def _echo_json(payload: dict) -> None:
    click.echo(json.dumps(payload, indent=2, sort_keys=True))


@click.group()
@click.option(
    "--log-level",
    default=lambda: os.getenv("TARIFFCALC_LOG_LEVEL", "WARNING"),
    show_default="WARNING",
    help="Logging level.",
)
def cli(log_level: str) -> None:
    """Tariff duty calculator."""

    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.WARNING),
        format="[%(levelname)s] %(message)s",
    )


@cli.command("calculate")
@click.argument("hts_code")
@click.option("--destination", "destination_country", required=True, help="Importing country code.")
@click.option("--origin", "origin_country", default=None, help="Country of origin (agreement lookup only).")
@click.option("--value", "product_value", required=True, type=str, help="Product value in the base currency.")
@click.option("--quantity", required=True, type=int, help="Number of units.")
@click.option("--currency", default=None, help="Target currency for the monetary fields.")
@click.option("--date", "calculation_date", type=DATE, default=None, help="Evaluate rates on this date.")
@click.option("--start", "start_date", type=DATE, default=None, help="Start of the validity window.")
@click.option("--end", "end_date", type=DATE, default=None, help="End of the validity window.")
@click.option("--seed", type=click.Path(exists=True, dir_okay=False, path_type=Path), default=None,
              help="JSON seed file; defaults to $TARIFFCALC_DATA_ROOT or the bundled sample.")
def calculate(
    hts_code: str,
    destination_country: str,
    origin_country: Optional[str],
    product_value: str,
    quantity: int,
    currency: Optional[str],
    calculation_date,
    start_date,
    end_date,
    seed: Optional[Path],
) -> None:
    """Compute the duty for HTS_CODE and recommend the cheapest program."""

    calculator = _build_calculator(seed)
    result = calculator.calculate(
        CalculationInput(
            product_code=hts_code,
            origin_country=origin_country,
            destination_country=destination_country,
            product_value=product_value,
            quantity=quantity,
            currency=currency,
            calculation_date=_as_date(calculation_date),
            start_date=_as_date(start_date),
            end_date=_as_date(end_date),
        )
    )
    _echo_json(result.to_payload())
    if not result.ok:
        raise SystemExit(1)


@cli.command("duty")
@click.option("--ad-valorem", "ad_valorem_rate", default=None, help="Ad valorem fraction, e.g. 0.10.")
@click.option("--specific", "specific_rate", default=None, help="Charge per unit.")
@click.option("--value", "product_value", required=True, help="Product value.")
@click.option("--quantity", required=True, type=click.IntRange(min=0), help="Number of units.")
def duty(ad_valorem_rate: Optional[str], specific_rate: Optional[str], product_value: str, quantity: int) -> None:
    """Compute the duty for a single rate."""

    try:
        amount = compute_duty(ad_valorem_rate, specific_rate, product_value, quantity)
    except InvalidInputError as exc:
        raise click.BadParameter(str(exc)) from exc
    click.echo(str(amount))


@cli.command("validate")
@click.argument("hts_code")
@click.option("--seed", type=click.Path(exists=True, dir_okay=False, path_type=Path), default=None)
def validate(hts_code: str, seed: Optional[Path]) -> None:
    """Check that HTS_CODE is well formed and known."""

    validation = _build_calculator(seed).validate_hts_code(hts_code)
    _echo_json(validation.to_payload())
    if not validation.valid:
        raise SystemExit(1)


if __name__ == "__main__":  # pragma: no cover
    cli()
