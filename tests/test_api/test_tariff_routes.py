"""HTTP tests for the /api/tariff routes using an in-memory store."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from tariffcalc import __version__
from tariffcalc.api.app import create_app
from tariffcalc.api.routes_tariff import get_calculator
from tariffcalc.tariff.calculator import TariffCalculator

BASE_REQUEST = {
    "htsCode": "12345678",
    "originCountry": "MX",
    "destinationCountry": "US",
    "productValue": "1000",
    "quantity": 10,
}


@pytest.fixture
def client(calculator):
    app = create_app()
    app.dependency_overrides[get_calculator] = lambda: calculator
    with TestClient(app) as test_client:
        yield test_client


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "version": __version__}


class TestCalculate:
    def test_success_payload_is_camel_case(self, client):
        resp = client.post("/api/tariff/calculate", json=BASE_REQUEST)
        assert resp.status_code == 200
        body = resp.json()
        assert body["htsCode"] == "12345678"
        assert body["mfnTariffAmount"] == "150.00"
        assert body["bestTariffAmount"] == "75.00"
        assert body["totalImportPrice"] == "1075.00"
        assert body["bestProgramName"] == "United States-Mexico-Canada Agreement"
        assert body["recommendedRate"]["savings"] == "75.00"
        assert body["applicablePrograms"] == ["USMCA - United States-Mexico-Canada Agreement"]
        assert body["preferentialRates"][0]["isMultilateral"] is True
        assert body["preferentialRates"][0]["agreementType"] == "FTA"
        assert "error" not in body

    def test_currency_and_range(self, client):
        resp = client.post(
            "/api/tariff/calculate",
            json={**BASE_REQUEST, "currency": "EUR", "startDate": "2021-01-01", "endDate": "2021-12-31"},
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["currency"] == "EUR"
        assert body["mfnTariffAmount"] == "138.00"
        assert body["tariffEffectiveDate"] == "2021-01-01"
        assert "calculationDate" not in body

    def test_missing_destination_is_400(self, client):
        request = {key: value for key, value in BASE_REQUEST.items() if key != "destinationCountry"}
        resp = client.post("/api/tariff/calculate", json=request)
        assert resp.status_code == 400
        assert resp.json()["error"] == "destinationCountry is required"

    def test_invalid_value_is_400(self, client):
        resp = client.post("/api/tariff/calculate", json={**BASE_REQUEST, "productValue": "-100"})
        assert resp.status_code == 400
        assert resp.json()["errorCode"] == "INVALID_INPUT"

    def test_malformed_code_is_400(self, client):
        resp = client.post("/api/tariff/calculate", json={**BASE_REQUEST, "htsCode": "12"})
        assert resp.status_code == 400
        assert resp.json()["errorCode"] == "INVALID_FORMAT"

    def test_unknown_code_is_404(self, client):
        resp = client.post("/api/tariff/calculate", json={**BASE_REQUEST, "htsCode": "00000000"})
        assert resp.status_code == 404
        assert resp.json()["error"] == "HTS code not found"

    def test_store_failure_is_500(self, client):
        rates = MagicMock()
        rates.find_product.side_effect = RuntimeError("db down")
        client.app.dependency_overrides[get_calculator] = lambda: TariffCalculator(rates)
        resp = client.post("/api/tariff/calculate", json=BASE_REQUEST)
        assert resp.status_code == 500
        assert resp.json()["errorCode"] == "CALCULATION_FAILED"

    def test_unknown_field_is_rejected(self, client):
        resp = client.post("/api/tariff/calculate", json={**BASE_REQUEST, "rush": True})
        assert resp.status_code == 422


def test_cost_breakdown(client):
    resp = client.post("/api/tariff/cost-breakdown", json=BASE_REQUEST)
    assert resp.status_code == 200
    body = resp.json()
    assert body["appliedProgram"] == "United States-Mexico-Canada Agreement"
    assert body["breakdown"]["Total Import Price"] == "$1075.00"


@pytest.mark.parametrize(
    "code, valid, error_code",
    [("12345678", True, None), ("1234", False, "INVALID_FORMAT"), ("00000000", False, "HTS_CODE_NOT_FOUND")],
)
def test_validate(client, code, valid, error_code):
    resp = client.get(f"/api/tariff/validate/{code}")
    assert resp.status_code == 200
    body = resp.json()
    assert body["valid"] is valid
    assert body.get("errorCode") == error_code


def test_duty_endpoint(client):
    resp = client.get(
        "/api/tariff/duty",
        params={"productValue": "1000", "quantity": 10, "adValoremRate": "0.10", "specificRate": "5"},
    )
    assert resp.status_code == 200
    assert resp.json() == {"duty": "150.00"}


def test_duty_endpoint_rejects_negative_quantity(client):
    resp = client.get("/api/tariff/duty", params={"productValue": "1", "quantity": -1})
    assert resp.status_code == 422
