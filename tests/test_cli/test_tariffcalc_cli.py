from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from tariffcalc.cli.main import cli

SEED = {
    "products": [{"hts8": "12345678", "brief_description": "Widget assemblies"}],
    "agreements": [
        {"code": "USMCA", "name": "USMCA", "effective_date": "2020-07-01", "participants": ["US", "MX", "CA"]}
    ],
    "mfn_rates": [
        {"hts8": "12345678", "ad_valorem_rate": "0.10", "specific_rate": "5", "effective_date": "2020-01-01"}
    ],
    "agreement_rates": [
        {
            "hts8": "12345678",
            "agreement_code": "USMCA",
            "country": "US",
            "ad_valorem_rate": "0.05",
            "specific_rate": "2.50",
            "effective_date": "2020-07-01",
        }
    ],
    "exchange_rates": [],
}


@pytest.fixture
def seed_file(tmp_path):
    path = tmp_path / "seed.json"
    path.write_text(json.dumps(SEED), encoding="utf-8")
    return str(path)


def test_cli_help() -> None:
    result = CliRunner().invoke(cli, ["--help"])
    assert result.exit_code == 0
    assert "calculate" in result.output


def test_calculate(seed_file) -> None:
    result = CliRunner().invoke(
        cli,
        ["calculate", "12345678", "--destination", "US", "--origin", "MX", "--value", "1000",
         "--quantity", "10", "--seed", seed_file],
        catch_exceptions=False,
    )
    assert result.exit_code == 0
    payload = json.loads(result.output)
    assert payload["bestTariffAmount"] == "75.00"
    assert payload["bestProgramName"] == "USMCA"


def test_calculate_window(seed_file) -> None:
    result = CliRunner().invoke(
        cli,
        ["calculate", "12345678", "--destination", "CA", "--value", "1000", "--quantity", "10",
         "--start", "2021-01-01", "--end", "2021-12-31", "--seed", seed_file],
    )
    assert result.exit_code == 0
    payload = json.loads(result.output)
    assert payload["mfnTariffAmount"] == "150.00"
    assert payload["complianceNotes"][-1] == "Tariff rates effective from 2021-01-01 to 2021-12-31"


def test_calculate_unknown_code_exits_nonzero(seed_file) -> None:
    result = CliRunner().invoke(
        cli,
        ["calculate", "00000000", "--destination", "US", "--value", "1", "--quantity", "1", "--seed", seed_file],
    )
    assert result.exit_code == 1
    assert json.loads(result.output)["errorCode"] == "PRODUCT_NOT_FOUND"


def test_duty() -> None:
    result = CliRunner().invoke(cli, ["duty", "--ad-valorem", "0.10", "--specific", "5", "--value", "1000", "--quantity", "10"])
    assert result.exit_code == 0
    assert result.output.strip() == "150.00"


def test_duty_rejects_bad_number() -> None:
    result = CliRunner().invoke(cli, ["duty", "--ad-valorem", "abc", "--value", "1", "--quantity", "1"])
    assert result.exit_code == 2


@pytest.mark.parametrize("value", ["inf", "NaN"])
def test_duty_rejects_non_finite_value(value) -> None:
    result = CliRunner().invoke(cli, ["duty", "--ad-valorem", "0.10", "--value", value, "--quantity", "1"])
    assert result.exit_code == 2
    assert "finite" in result.output


@pytest.mark.parametrize("code, exit_code", [("12345678", 0), ("12", 1)])
def test_validate(seed_file, code, exit_code) -> None:
    result = CliRunner().invoke(cli, ["validate", code, "--seed", seed_file])
    assert result.exit_code == exit_code
    assert json.loads(result.output)["valid"] is (exit_code == 0)
