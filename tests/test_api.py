"""Tests for the REST API."""

import numpy as np
import pytest
from fastapi.testclient import TestClient

from api.main import app


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def price_request():
    return {
        "spot": 60.0,
        "strike": 65.0,
        "expiry_years": 0.25,
        "rate": 0.08,
        "option_type": "call",
        "vol": 0.30,
    }


@pytest.fixture
def analyze_request():
    return {
        "symbol": "XYZ",
        "underlying_price": 103.0,
        "expiry_date": "2026-12-18",
        "quote_date": "2026-11-18",
        "rows": [
            {"strike": 95.0, "put": {"bid": 0.50, "ask": 0.60, "bid_size": 10, "ask_size": 10}},
            {"strike": 100.0, "put": {"bid": 2.00, "ask": 2.10, "bid_size": 10, "ask_size": 10}},
        ],
        "strategies": ["vertical_bull_put"],
        "market": {"rate": 0.05},
    }


class TestRoot:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_root(self, client):
        data = client.get("/").json()
        assert data["endpoints"]["pricing"] == "/pricing"


class TestPricingRoutes:
    """Tests for the pricing endpoints."""

    def test_methods(self, client):
        methods = client.get("/pricing/methods").json()["methods"]

        assert "BLACKSCHOLES" in methods
        assert "BJERKSUNDSTENSLAND02" in methods

    @pytest.mark.parametrize("name", ["MONTECARLO", "TRINOM", "TRINOM_EQPROB", "TRINOM_ALT", "TRINOM_KR"])
    def test_methods_exclude_unsupported(self, client, name):
        methods = client.get("/pricing/methods").json()["methods"]
        assert name not in methods

    def test_listed_methods_can_price(self, client, price_request):
        for method in client.get("/pricing/methods").json()["methods"]:
            price_request["method"] = method
            response = client.post("/pricing/price", json=price_request)
            assert response.status_code == 200, method

    def test_price(self, client, price_request):
        response = client.post("/pricing/price", json=price_request)
        data = response.json()

        assert response.status_code == 200
        assert np.isclose(data["price"], 2.1334, atol=0.003)
        assert data["is_european"] is True
        assert 0 < data["greeks"]["delta"] < 1

    def test_price_at_expiry_has_no_greeks(self, client, price_request):
        price_request["expiry_years"] = 0.0
        data = client.post("/pricing/price", json=price_request).json()

        assert data["price"] == 0.0
        assert data["greeks"] is None

    def test_implied_volatility(self, client, price_request):
        price_request.pop("vol")
        price_request["price"] = 2.1334

        response = client.post("/pricing/implied-volatility", json=price_request)

        assert response.status_code == 200
        assert np.isclose(response.json()["implied_volatility"], 0.30, atol=1e-3)

    def test_unsupported_method(self, client, price_request):
        price_request["method"] = "MONTECARLO"
        response = client.post("/pricing/price", json=price_request)

        assert response.status_code == 400
        assert "Unsupported" in response.json()["detail"]

    def test_unsolvable_price(self, client, price_request):
        """A price above the spot cannot be reproduced by any volatility."""
        price_request.pop("vol")
        price_request["price"] = 90.0

        response = client.post("/pricing/implied-volatility", json=price_request)

        assert response.status_code == 422
        assert response.json()["type"] == "pricing_error"

    def test_request_validation(self, client, price_request):
        price_request["spot"] = -1.0
        assert client.post("/pricing/price", json=price_request).status_code == 422


class TestAnalysisRoutes:
    """Tests for chain analysis."""

    def test_analyze_bull_put(self, client, analyze_request):
        response = client.post("/analysis/analyze", json=analyze_request)
        data = response.json()

        assert response.status_code == 200
        assert data["is_valid"] is True
        assert data["count"] == 1
        assert data["results"][0]["strike_price"] == "100/95"
        assert data["results"][0]["strategy"] == "vertical_bull_put"

    def test_analyze_with_filter(self, client, analyze_request):
        analyze_request["filter"] = {"maxLossAmount": 100.0}
        data = client.post("/analysis/analyze", json=analyze_request).json()

        assert data["count"] == 0
        assert data["results"] == []

    def test_unsupported_method(self, client, analyze_request):
        analyze_request["method"] = "TRINOM"
        assert client.post("/analysis/analyze", json=analyze_request).status_code == 400


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
