"""Strategy result records produced by the profit calculator."""

import math
from dataclasses import dataclass, fields
from datetime import date, datetime
from enum import Enum
from typing import Any

import pandas as pd


class Strategy(str, Enum):
    """Option trading strategies."""

    SINGLE = "single"
    VERTICAL_BULL_PUT = "vertical_bull_put"
    VERTICAL_BEAR_CALL = "vertical_bear_call"

    @property
    def description(self) -> str:
        return _STRATEGY_DESCRIPTIONS[self]


_STRATEGY_DESCRIPTIONS = {
    Strategy.SINGLE: "Single",
    Strategy.VERTICAL_BULL_PUT: "Vertical Bull Put",
    Strategy.VERTICAL_BEAR_CALL: "Vertical Bear Call",
}


def round2(value: float | None) -> float | None:
    """Round to 2 decimals, passing None and non-finite values through."""
    if value is None or not math.isfinite(value):
        return value
    return round(value, 2)


def round4(value: float | None) -> float | None:
    """Round to 4 decimals, passing None and non-finite values through."""
    if value is None or not math.isfinite(value):
        return value
    return round(value, 4)


@dataclass(frozen=True)
class StrategyResult:
    """One trading candidate.

    Quote fields are copied from the chain (combined for verticals, where
    strike reads "short/long" and symbol "short-long"). Percentages are
    stored x100; prices and returns are rounded to 2 decimals,
    probabilities, vols and Greeks to 4. Amounts (investment, gain, loss,
    expected value) are per position, i.e. already multiplied by the
    contract multiplier.
    """

    stamp: datetime
    underlying: str
    underlying_price: float
    type: str
    strategy: Strategy
    strategy_desc: str

    # Option chain information
    symbol: str
    strike_price: float | str
    expiry_date: date
    days_to_expiry: int
    multiplier: float
    description: str | None = None
    bid_ask_size: str | None = None
    bid_price: float | None = None
    bid_size: int | None = None
    ask_price: float | None = None
    ask_size: int | None = None
    last_price: float | None = None
    last_size: int | None = None
    break_even_price: float | None = None
    intrinsic_value: float | None = None
    open_price: float | None = None
    high_price: float | None = None
    low_price: float | None = None
    close_price: float | None = None
    change: float | None = None
    percent_change: float | None = None
    total_volume: int | None = None
    quote_time: str | None = None
    trade_time: str | None = None
    mark: float | None = None
    mark_change: float | None = None
    mark_percent_change: float | None = None
    exchange_name: str | None = None
    volatility: float | None = None
    delta: float | None = None
    gamma: float | None = None
    theta: float | None = None
    vega: float | None = None
    rho: float | None = None
    time_value: float | None = None
    open_interest: int | None = None
    is_in_the_money: bool | None = None
    is_out_of_the_money: bool | None = None
    theo_option_value: float | None = None
    theo_volatility: float | None = None
    is_mini: bool | None = None
    is_non_standard: bool | None = None
    is_index: bool | None = None
    is_weekly: bool | None = None
    is_quarterly: bool | None = None
    expiry_type: str | None = None
    last_trading_day: str | None = None
    settlement_type: str | None = None
    deliverable_note: str | None = None

    # Calculated fields
    hist_volatility: float | None = None
    time_to_expiry: float | None = None
    risk_free_rate: float | None = None
    div_amount: float | None = None
    div_yield: float | None = None

    calc_bid_price_vi: float | None = None
    calc_ask_price_vi: float | None = None
    calc_mark_vi: float | None = None

    calc_theo_option_value: float | None = None
    calc_theo_volatility: float | None = None
    calc_delta: float | None = None
    calc_gamma: float | None = None
    calc_theta: float | None = None
    calc_vega: float | None = None
    calc_rho: float | None = None

    bid_ask_spread: float | None = None
    bid_ask_spread_percent: float | None = None

    probability_itm: float | None = None
    probability_otm: float | None = None
    probability_profit: float | None = None

    investment_option_price: float | None = None
    investment_option_price_vs_theo: float | None = None

    investment_amount: float | None = None
    premium_amount: float | None = None
    max_gain: float | None = None
    max_loss: float | None = None

    ror: float | None = None
    ror_time: float | None = None
    roi: float | None = None
    roi_time: float | None = None

    expected_value: float | None = None
    expected_value_roi: float | None = None
    expected_value_roi_time: float | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data["strategy"] = self.strategy.value
        return data


RESULT_COLUMNS = tuple(f.name for f in fields(StrategyResult))


def results_to_dataframe(results: list[StrategyResult]) -> pd.DataFrame:
    """Tabulate results, one row per candidate."""
    if not results:
        return pd.DataFrame(columns=list(RESULT_COLUMNS))
    return pd.DataFrame([r.to_dict() for r in results], columns=list(RESULT_COLUMNS))
