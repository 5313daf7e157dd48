"""Tests for the QuantLib American pricers."""

import numpy as np
import pytest
import QuantLib as ql

from config.settings import get_settings
from engine.bjerksund_stensland import BjerksundStensland2002
from engine.black_scholes import BlackScholes
from engine.market import PricingError
from engine.quantlib_pricing import QuantLibAmericanPricer, build_engine, build_process


@pytest.fixture(autouse=True)
def evaluation_date():
    """Pin the QuantLib evaluation date for reproducible day counts."""
    settings = ql.Settings.instance()
    previous = settings.evaluationDate
    settings.evaluationDate = ql.Date(15, ql.January, 2025)
    yield
    settings.evaluationDate = previous


class TestQuantLibAmericanPricer:
    """Tests for QuantLib-backed pricing."""

    @pytest.fixture
    def inputs(self):
        return {"spot": 36.0, "rate": 0.06, "carry": 0.06, "vol": 0.20, "expiry": 1.0}

    @pytest.mark.parametrize("engine", ["binomial", "binomial_eqp", "barone_adesi_whaley"])
    def test_agrees_with_bjerksund_stensland(self, inputs, engine):
        """Every engine lands near the closed-form approximation."""
        pricer = QuantLibAmericanPricer(**inputs, engine=engine)
        reference = BjerksundStensland2002(**inputs).price("put", 40.0)

        assert np.isclose(pricer.price("put", 40.0), reference, atol=0.05)

    def test_american_put_above_european(self, inputs):
        """Early exercise premium is non-negative."""
        american = QuantLibAmericanPricer(**inputs).price("put", 40.0)
        european = BlackScholes(**inputs).price("put", 40.0)

        assert american >= european - 1e-3

    def test_expiry_days(self):
        """Expiry is rounded to whole days, at least one."""
        assert QuantLibAmericanPricer(100, 0.05, 0.05, 0.2, 0.5).expiry_days == 182
        assert QuantLibAmericanPricer(100, 0.05, 0.05, 0.2, 0.0001).expiry_days == 1

    def test_expiry_days_follow_configured_year(self, monkeypatch):
        monkeypatch.setenv("DAYS_PER_YEAR", "360")
        get_settings.cache_clear()
        try:
            assert QuantLibAmericanPricer(100, 0.05, 0.05, 0.2, 0.5).expiry_days == 180
        finally:
            monkeypatch.delenv("DAYS_PER_YEAR")
            get_settings.cache_clear()

        assert QuantLibAmericanPricer(100, 0.05, 0.05, 0.2, 0.5, days_per_year=252).expiry_days == 126
        assert QuantLibAmericanPricer(100, 0.05, 0.05, 0.2, 0.5).expiry_days == 182

    def test_intrinsic_at_expiry(self):
        pricer = QuantLibAmericanPricer(spot=105.0, rate=0.05, carry=0.05, vol=0.2, expiry=0.0)
        assert pricer.price("call", 100.0) == 5.0

    def test_greeks_signs(self, inputs):
        """Finite-difference Greeks have the expected signs."""
        greeks = QuantLibAmericanPricer(**inputs).greeks("put", 40.0)

        assert -1.0 <= greeks.delta < 0.0
        assert greeks.gamma > 0.0
        assert greeks.vega > 0.0
        assert greeks.rho < 0.0

    def test_greeks_close_to_european_delta(self):
        """OTM call delta is close to the European one."""
        inputs = {"spot": 100.0, "rate": 0.05, "carry": 0.05, "vol": 0.25, "expiry": 0.5}

        delta = QuantLibAmericanPricer(**inputs).greeks("call", 110.0).delta
        expected = BlackScholes(**inputs).greeks("call", 110.0).delta
        assert np.isclose(delta, expected, atol=0.02)

    def test_invalid_inputs(self):
        pricer = QuantLibAmericanPricer(spot=-1.0, rate=0.05, carry=0.05, vol=0.2, expiry=0.5)

        with pytest.raises(PricingError):
            pricer.price("call", 100.0)


class TestBuildEngine:
    """Tests for engine construction."""

    def test_unknown_engine(self):
        process = build_process(100.0, 0.05, 0.0, 0.2, ql.Date(15, ql.January, 2025))

        with pytest.raises(ValueError, match="Unknown QuantLib engine"):
            build_engine("finite_difference", process, 100)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
