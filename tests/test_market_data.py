"""Tests for market data models and the option chain."""

from datetime import date

import numpy as np
import pandas as pd
import pytest

from data.chain import ChainRow, OptionChain, OptionQuote
from data.market_data import (
    Fundamentals,
    HistoricalVolatility,
    RiskFreeRateCurve,
    trading_days_between,
)


class TestTradingDays:
    """Tests for NYSE trading day counts."""

    def test_one_week(self):
        assert trading_days_between(date(2024, 1, 5), date(2024, 1, 12)) == 5

    def test_holiday_skipped(self):
        """Martin Luther King Jr. Day (2024-01-15) is not a trading day."""
        assert trading_days_between(date(2024, 1, 12), date(2024, 1, 19)) == 4

    def test_reversed_range(self):
        assert trading_days_between(date(2024, 1, 12), date(2024, 1, 5)) == 0


class TestRiskFreeRateCurve:
    """Tests for rate interpolation."""

    @pytest.fixture
    def curve(self):
        return RiskFreeRateCurve(tenors=(0.25, 1.0, 2.0), rates=(0.04, 0.045, 0.05))

    def test_interpolation(self, curve):
        assert np.isclose(curve.rate(0.625), 0.0425)

    def test_flat_beyond_ends(self, curve):
        assert curve.rate(0.01) == 0.04
        assert curve.rate(10.0) == 0.05

    def test_flat_curve(self):
        assert RiskFreeRateCurve.flat(0.03).rate(7.0) == 0.03

    def test_validation(self):
        with pytest.raises(ValueError, match="same length"):
            RiskFreeRateCurve(tenors=(1.0,), rates=(0.01, 0.02))
        with pytest.raises(ValueError, match="strictly ascending"):
            RiskFreeRateCurve(tenors=(1.0, 0.5), rates=(0.01, 0.02))
        with pytest.raises(ValueError, match="at least one point"):
            RiskFreeRateCurve(tenors=(), rates=())


class TestHistoricalVolatility:
    """Tests for historical volatility lookup."""

    def test_empty(self):
        hv = HistoricalVolatility()

        assert hv.is_empty
        assert hv.at(20) is None

    def test_interpolated_window(self):
        hv = HistoricalVolatility(windows=(10, 30), vols=(0.20, 0.30))
        assert np.isclose(hv.at(20), 0.25)

    def test_from_prices(self):
        """Constant log returns have zero volatility."""
        closes = 100.0 * np.exp(0.01 * np.arange(40))
        hv = HistoricalVolatility.from_prices(closes, windows=(10, 20, 60))

        assert hv.windows == (10, 20)
        assert np.allclose(hv.vols, 0.0, atol=1e-12)

    def test_from_random_prices(self):
        np.random.seed(42)
        returns = np.random.normal(0, 0.01, 300)
        closes = 100.0 * np.exp(np.cumsum(returns))

        hv = HistoricalVolatility.from_prices(closes)
        assert np.isclose(hv.at(252), 0.01 * np.sqrt(252), rtol=0.15)


class TestFundamentals:
    def test_pays_dividends(self):
        assert not Fundamentals().pays_dividends
        assert Fundamentals(div_date=date(2026, 1, 1), div_frequency=0.25, div_yield=0.01).pays_dividends
        assert not Fundamentals(div_date=date(2026, 1, 1), div_frequency=0.0, div_yield=0.01).pays_dividends


class TestOptionChain:
    """Tests for the chain model."""

    @pytest.fixture
    def df(self):
        return pd.DataFrame(
            {
                "strike": [100.0, 95.0, 105.0],
                "call_bid": [4.9, None, 2.0],
                "call_ask": [5.1, None, 2.1],
                "call_bid_size": [3, None, 8],
                "call_is_non_standard": ["false", None, "true"],
                "put_symbol": ["XYZ P100", "XYZ P95", None],
                "put_bid": [2.0, 0.5, None],
                "put_ask": [2.1, 0.6, None],
                "put_open_interest": [1200, 300, None],
            }
        )

    def test_from_dataframe(self, df):
        chain = OptionChain.from_dataframe(df, "XYZ", date(2026, 12, 18), date(2026, 11, 18))

        assert chain.strikes == [95.0, 100.0, 105.0]
        assert chain.days_to_expiry == 30
        assert len(chain) == 3

    def test_sides(self, df):
        chain = OptionChain.from_dataframe(df, "XYZ", date(2026, 12, 18), date(2026, 11, 18))
        low, mid, high = chain.rows

        assert low.call is None
        assert low.put.symbol == "XYZ P95"
        assert high.put is None
        assert mid.call.bid_size == 3
        assert mid.put.open_interest == 1200
        assert isinstance(mid.put.open_interest, int)

    def test_generated_symbol(self, df):
        chain = OptionChain.from_dataframe(df, "XYZ", date(2026, 12, 18), date(2026, 11, 18))
        assert chain.rows[1].call.symbol == "XYZ_261218C100"

    def test_flags(self, df):
        chain = OptionChain.from_dataframe(df, "XYZ", date(2026, 12, 18), date(2026, 11, 18))

        assert not chain.rows[1].is_non_standard
        assert chain.rows[2].is_non_standard
        assert chain.rows[2].call.is_non_standard is True

    def test_missing_strike_column(self):
        with pytest.raises(ValueError, match="strike"):
            OptionChain.from_dataframe(pd.DataFrame({"call_bid": [1.0]}), "XYZ", date(2026, 12, 18))

    def test_from_csv(self, df, tmp_path):
        path = tmp_path / "chain.csv"
        df.to_csv(path, index=False)

        chain = OptionChain.from_csv(path, "XYZ", date(2026, 12, 18), date(2026, 11, 18))
        assert chain.strikes == [95.0, 100.0, 105.0]
        assert chain.rows[0].put.bid == 0.5

    def test_row_quote_side(self):
        row = ChainRow(strike=100.0, put=OptionQuote(symbol="P", bid=1.0))

        assert row.quote("put").bid == 1.0
        assert row.quote("call") is None
        with pytest.raises(ValueError, match="Unknown option type"):
            row.quote("straddle")

    def test_quote_defaults(self):
        quote = OptionQuote(symbol="XYZ")

        assert quote.multiplier == 100.0
        assert quote.bid_ask_size == "0 x 0"
        assert quote.to_dict()["symbol"] == "XYZ"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
