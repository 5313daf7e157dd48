"""Tests for the profit calculator filter criteria."""

import json
from dataclasses import replace
from datetime import date, datetime

import pytest
from pydantic import ValidationError

from data.chain import OptionQuote
from engine.market import OptionType
from engine.profit_filter import (
    OptionProfitFilter,
    OptionTypeFilter,
    StrategyFilter,
    VolatilityFilter,
)
from engine.results import Strategy, StrategyResult


@pytest.fixture
def quote():
    return OptionQuote(symbol="XYZ_P100", bid=2.0, ask=2.1, bid_size=10, ask_size=12)


@pytest.fixture
def result():
    return StrategyResult(
        stamp=datetime(2026, 11, 18, 10, 0),
        underlying="XYZ",
        underlying_price=103.0,
        type="Put",
        strategy=Strategy.VERTICAL_BULL_PUT,
        strategy_desc="Vertical Bull Put",
        symbol="XYZ_P100-XYZ_P95",
        strike_price="100/95",
        expiry_date=date(2026, 12, 18),
        days_to_expiry=30,
        multiplier=100.0,
        investment_amount=9860.0,
        max_gain=140.0,
        max_loss=360.0,
        probability_profit=72.5,
        roi=1.42,
        roi_time=0.33,
    )


class TestSerialization:
    """Tests for JSON persistence."""

    def test_camel_case_keys(self):
        f = OptionProfitFilter(min_invest_amount=500.0, max_spread_percent=10.0)
        data = json.loads(f.to_json())

        assert data["minInvestAmount"] == 500.0
        assert data["maxSpreadPercent"] == 10.0
        assert data["optionTypes"] == int(OptionTypeFilter.ALL_OPTION_TYPES)
        assert "min_invest_amount" not in data

    def test_unset_thresholds_omitted(self):
        data = json.loads(OptionProfitFilter().to_json())
        assert set(data) == {"optionTypes", "strategies", "volatility", "vertDepth"}

    def test_round_trip(self):
        saved = OptionProfitFilter(
            min_prob_profit=70.0,
            max_loss_amount=500.0,
            option_types=OptionTypeFilter.ONLY_PUTS,
            strategies=StrategyFilter.VERTICAL,
            volatility=VolatilityFilter.HV_LTE_VI,
            vert_depth=2,
        )

        restored = OptionProfitFilter.from_json(saved.to_json())
        assert restored == saved
        assert restored.option_types == OptionTypeFilter.ONLY_PUTS

    def test_snake_case_accepted(self):
        f = OptionProfitFilter.model_validate({"min_roi": 5.0, "vertDepth": 4})
        assert f.min_roi == 5.0
        assert f.vert_depth == 4

    def test_long_names_accepted(self):
        """Filters saved with the long ROI and strategy keys still load."""
        state = json.dumps(
            {
                "minReturnOnInvestment": 5.0,
                "maxReturnOnInvestment": 50.0,
                "minReturnOnInvestmentTime": 0.5,
                "maxReturnOnInvestmentTime": 4.0,
                "optionTradingStrats": 1,
            }
        )
        f = OptionProfitFilter.from_json(state)

        assert f.min_roi == 5.0
        assert f.max_roi == 50.0
        assert f.min_roi_time == 0.5
        assert f.max_roi_time == 4.0
        assert f.strategies == StrategyFilter.SINGLE

    def test_long_names_saved_short(self):
        f = OptionProfitFilter.model_validate({"minReturnOnInvestment": 5.0, "optionTradingStrats": 2})
        data = json.loads(f.to_json())

        assert data["minRoi"] == 5.0
        assert data["strategies"] == int(StrategyFilter.VERTICAL)
        assert "minReturnOnInvestment" not in data
        assert OptionProfitFilter.from_json(f.to_json()) == f

    def test_invalid_depth(self):
        with pytest.raises(ValidationError):
            OptionProfitFilter(vert_depth=0)


class TestChainChecks:
    """Tests for chain-level thresholds."""

    def test_no_constraints(self):
        assert OptionProfitFilter().check_chain(0.5, 0, 0.0, 0.0)

    def test_inclusive_bounds(self):
        f = OptionProfitFilter(min_underlying_price=10.0, max_days_to_expiry=45)

        assert f.check_chain(10.0, 45)
        assert not f.check_chain(9.99, 30)
        assert not f.check_chain(50.0, 46)

    def test_dividend_yield_percent(self):
        f = OptionProfitFilter(min_div_yield=2.0)

        assert f.check_chain(100.0, 30, div_amount=0.5, div_yield=2.5)
        assert not f.check_chain(100.0, 30, div_amount=0.5, div_yield=1.0)


class TestRowChecks:
    """Tests for row-level thresholds."""

    def test_unset_thresholds_never_exclude(self, quote):
        f = OptionProfitFilter()
        bare = OptionQuote(symbol="XYZ_C120", ask=0.05)

        assert f.check_row(quote, OptionType.PUT, 100.0, 103.0)
        assert f.check_row(bare, OptionType.CALL, 120.0, 103.0)

    def test_option_type_mask(self, quote):
        """ITM/OTM classification follows the underlying price."""
        otm_puts = OptionProfitFilter(option_types=OptionTypeFilter.OTM_PUTS)

        assert otm_puts.check_row(quote, OptionType.PUT, 100.0, 103.0)
        assert not otm_puts.check_row(quote, OptionType.PUT, 105.0, 103.0)
        assert not otm_puts.check_row(quote, OptionType.CALL, 110.0, 103.0)

        calls = OptionProfitFilter(option_types=OptionTypeFilter.ONLY_CALLS)
        assert calls.check_row(quote, OptionType.CALL, 95.0, 103.0)

    def test_sizes(self, quote):
        assert OptionProfitFilter(min_bid_size=10).check_row(quote, OptionType.PUT, 100, 103)
        assert not OptionProfitFilter(min_ask_size=13).check_row(quote, OptionType.PUT, 100, 103)

    def test_spread_percent(self, quote):
        # (2.1 - 2.0) / 2.1 = 4.76%
        assert OptionProfitFilter(max_spread_percent=5.0).check_row(quote, OptionType.PUT, 100, 103)
        assert not OptionProfitFilter(max_spread_percent=4.0).check_row(
            quote, OptionType.PUT, 100, 103
        )

    def test_volatility_bounds(self, quote):
        f = OptionProfitFilter(min_volatility=20.0, max_volatility=40.0)

        assert f.check_row(quote, OptionType.PUT, 100, 103, mark_vi=0.25)
        assert not f.check_row(quote, OptionType.PUT, 100, 103, mark_vi=0.45)
        assert not f.check_row(quote, OptionType.PUT, 100, 103, mark_vi=None)

    def test_volatility_class(self, quote):
        f = OptionProfitFilter(volatility=VolatilityFilter.HV_GT_VI)

        assert f.check_row(quote, OptionType.PUT, 100, 103, mark_vi=0.20, hist_vol=0.30)
        assert not f.check_row(quote, OptionType.PUT, 100, 103, mark_vi=0.30, hist_vol=0.20)
        assert not f.check_row(quote, OptionType.PUT, 100, 103, mark_vi=0.30)


class TestResultChecks:
    """Tests for result-level thresholds."""

    def test_no_constraints(self, result):
        assert OptionProfitFilter().check_result(result)

    def test_loss_and_gain(self, result):
        assert OptionProfitFilter(max_loss_amount=360.0).check_result(result)
        assert not OptionProfitFilter(max_loss_amount=300.0).check_result(result)
        assert not OptionProfitFilter(min_gain_amount=150.0).check_result(result)

    def test_probability_and_roi(self, result):
        assert OptionProfitFilter(min_prob_profit=70.0, min_roi=1.0).check_result(result)
        assert not OptionProfitFilter(min_prob_profit=75.0).check_result(result)
        assert not OptionProfitFilter(max_roi_time=0.3).check_result(result)

    def test_missing_value_fails_active_bound(self, result):
        partial = replace(result, roi=None)
        assert not OptionProfitFilter(min_roi=1.0).check_result(partial)

    def test_idempotent(self, result):
        f = OptionProfitFilter(min_prob_profit=70.0)
        assert f.check_result(result) == f.check_result(result)

    def test_strategy_mask(self):
        f = OptionProfitFilter(strategies=StrategyFilter.SINGLE)

        assert f.allows_strategy(StrategyFilter.SINGLE)
        assert not f.allows_strategy(StrategyFilter.VERTICAL)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
