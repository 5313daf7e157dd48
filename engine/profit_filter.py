"""Filter criteria for the option profit calculator.

Thresholds are optional: None means "no constraint" and bounds are
inclusive. Checks run at three levels:

- chain:  underlying price, days to expiry, dividend amount and yield
- row:    quote sizes, spread percent, volatility, option-type and
          volatility-class masks
- result: investment, loss, gain, probability of profit and ROI bounds

Percent thresholds (spread, volatility, dividend yield, probability, ROI)
are given in percent, e.g. ``min_volatility=20.0`` for 20% vol.

Filters persist as JSON with camelCase keys. Return-on-investment bounds and the
strategy mask also load from their long names (``minReturnOnInvestment``,
``optionTradingStrats`` and so on):

    >>> f = OptionProfitFilter(min_invest_amount=500.0, vert_depth=2)
    >>> f.to_json()
    '{"minInvestAmount":500.0,"optionTypes":15,"strategies":3,"volatility":3,"vertDepth":2}'
"""

import logging
from enum import IntFlag

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from data.chain import OptionQuote
from engine.market import OptionType
from engine.results import StrategyResult

logger = logging.getLogger(__name__)


class OptionTypeFilter(IntFlag):
    """Option types to analyze."""

    ITM_CALLS = 0x1
    OTM_CALLS = 0x2
    ITM_PUTS = 0x4
    OTM_PUTS = 0x8

    ONLY_CALLS = ITM_CALLS | OTM_CALLS
    ONLY_PUTS = ITM_PUTS | OTM_PUTS
    ALL_OPTION_TYPES = ONLY_CALLS | ONLY_PUTS


class StrategyFilter(IntFlag):
    """Trading strategies to analyze."""

    SINGLE = 0x1
    VERTICAL = 0x2

    ALL_STRATEGIES = SINGLE | VERTICAL


class VolatilityFilter(IntFlag):
    """Historical vs implied volatility classes."""

    HV_LTE_VI = 0x1
    HV_GT_VI = 0x2

    ALL_VOLATILITY = HV_LTE_VI | HV_GT_VI


def _within(value: float | None, low: float | None, high: float | None) -> bool:
    """Inclusive bounds check; unset bounds always pass."""
    if low is None and high is None:
        return True
    if value is None:
        return False
    if low is not None and value < low:
        return False
    if high is not None and value > high:
        return False
    return True


class OptionProfitFilter(BaseModel):
    """Filter criteria for strategy analysis."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    # Chain level
    min_underlying_price: float | None = Field(None, ge=0, description="Minimum underlying price")
    max_underlying_price: float | None = Field(None, ge=0, description="Maximum underlying price")
    min_days_to_expiry: int | None = Field(None, ge=0, description="Minimum days to expiry")
    max_days_to_expiry: int | None = Field(None, ge=0, description="Maximum days to expiry")
    min_div_amount: float | None = Field(None, ge=0, description="Minimum dividend amount")
    max_div_amount: float | None = Field(None, ge=0, description="Maximum dividend amount")
    min_div_yield: float | None = Field(None, ge=0, description="Minimum dividend yield (%)")
    max_div_yield: float | None = Field(None, ge=0, description="Maximum dividend yield (%)")

    # Row level
    min_bid_size: int | None = Field(None, ge=0, description="Minimum bid size")
    min_ask_size: int | None = Field(None, ge=0, description="Minimum ask size")
    max_spread_percent: float | None = Field(None, ge=0, description="Maximum bid/ask spread (%)")
    min_volatility: float | None = Field(None, ge=0, description="Minimum mark IV (%)")
    max_volatility: float | None = Field(None, ge=0, description="Maximum mark IV (%)")

    # Result level
    min_invest_amount: float | None = Field(None, description="Minimum investment amount")
    max_invest_amount: float | None = Field(None, description="Maximum investment amount")
    max_loss_amount: float | None = Field(None, description="Maximum loss amount")
    min_gain_amount: float | None = Field(None, description="Minimum gain amount")
    min_prob_profit: float | None = Field(None, description="Minimum probability of profit (%)")
    max_prob_profit: float | None = Field(None, description="Maximum probability of profit (%)")
    min_roi: float | None = Field(
        None,
        alias="minRoi",
        validation_alias=AliasChoices("minRoi", "min_roi", "minReturnOnInvestment"),
        description="Minimum return on investment (%)",
    )
    max_roi: float | None = Field(
        None,
        alias="maxRoi",
        validation_alias=AliasChoices("maxRoi", "max_roi", "maxReturnOnInvestment"),
        description="Maximum return on investment (%)",
    )
    min_roi_time: float | None = Field(
        None,
        alias="minRoiTime",
        validation_alias=AliasChoices("minRoiTime", "min_roi_time", "minReturnOnInvestmentTime"),
        description="Minimum ROI per week (%)",
    )
    max_roi_time: float | None = Field(
        None,
        alias="maxRoiTime",
        validation_alias=AliasChoices("maxRoiTime", "max_roi_time", "maxReturnOnInvestmentTime"),
        description="Maximum ROI per week (%)",
    )

    # Masks
    option_types: OptionTypeFilter = Field(
        OptionTypeFilter.ALL_OPTION_TYPES, description="Option types to analyze"
    )
    strategies: StrategyFilter = Field(
        StrategyFilter.ALL_STRATEGIES,
        alias="strategies",
        validation_alias=AliasChoices("strategies", "optionTradingStrats"),
        description="Strategies to analyze",
    )
    volatility: VolatilityFilter = Field(
        VolatilityFilter.ALL_VOLATILITY, description="Volatility classes to analyze"
    )
    vert_depth: int = Field(3, ge=1, description="Strikes paired into verticals")

    @field_validator("option_types", mode="before")
    @classmethod
    def _coerce_option_types(cls, v):
        return OptionTypeFilter(int(v))

    @field_validator("strategies", mode="before")
    @classmethod
    def _coerce_strategies(cls, v):
        return StrategyFilter(int(v))

    @field_validator("volatility", mode="before")
    @classmethod
    def _coerce_volatility(cls, v):
        return VolatilityFilter(int(v))

    def to_json(self) -> str:
        """Serialize with camelCase keys, omitting unset thresholds."""
        return self.model_dump_json(by_alias=True, exclude_none=True)

    @classmethod
    def from_json(cls, state: str | bytes) -> "OptionProfitFilter":
        """Restore a filter saved with ``to_json``."""
        return cls.model_validate_json(state)

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------

    def check_chain(
        self,
        underlying_price: float,
        days_to_expiry: int,
        div_amount: float = 0.0,
        div_yield: float = 0.0,
    ) -> bool:
        """True when the chain passes the chain-level thresholds."""
        return (
            _within(underlying_price, self.min_underlying_price, self.max_underlying_price)
            and _within(days_to_expiry, self.min_days_to_expiry, self.max_days_to_expiry)
            and _within(div_amount, self.min_div_amount, self.max_div_amount)
            and _within(div_yield, self.min_div_yield, self.max_div_yield)
        )

    def allows_strategy(self, strategy: StrategyFilter) -> bool:
        return bool(self.strategies & strategy)

    def check_row(
        self,
        quote: OptionQuote,
        option_type: OptionType,
        strike: float,
        underlying_price: float,
        mark_vi: float | None = None,
        hist_vol: float | None = None,
    ) -> bool:
        """True when one side of a chain row passes the row-level thresholds.

        Args:
            quote: Quote on the analyzed side
            option_type: Side of the row
            strike: Strike price
            underlying_price: Underlying mark price
            mark_vi: Calculated IV of the quote mark (fraction)
            hist_vol: Historical volatility (fraction)
        """
        if option_type == OptionType.CALL:
            kind = OptionTypeFilter.ITM_CALLS if strike < underlying_price else OptionTypeFilter.OTM_CALLS
        else:
            kind = OptionTypeFilter.ITM_PUTS if underlying_price < strike else OptionTypeFilter.OTM_PUTS

        if not self.option_types & kind:
            return False

        if self.min_bid_size is not None and (quote.bid_size or 0) < self.min_bid_size:
            return False
        if self.min_ask_size is not None and (quote.ask_size or 0) < self.min_ask_size:
            return False

        if self.max_spread_percent is not None:
            if not quote.ask or quote.bid is None:
                return False
            if 100.0 * (quote.ask - quote.bid) / quote.ask > self.max_spread_percent:
                return False

        mark_vi_pct = None if mark_vi is None else 100.0 * mark_vi
        if not _within(mark_vi_pct, self.min_volatility, self.max_volatility):
            return False

        if self.volatility != VolatilityFilter.ALL_VOLATILITY:
            if mark_vi is None or hist_vol is None:
                return False
            vol_class = VolatilityFilter.HV_LTE_VI if hist_vol <= mark_vi else VolatilityFilter.HV_GT_VI
            if not self.volatility & vol_class:
                return False

        return True

    def check_result(self, result: StrategyResult) -> bool:
        """True when a strategy result passes the result-level thresholds."""
        return (
            _within(result.max_loss, None, self.max_loss_amount)
            and _within(result.max_gain, self.min_gain_amount, None)
            and _within(result.investment_amount, self.min_invest_amount, self.max_invest_amount)
            and _within(result.probability_profit, self.min_prob_profit, self.max_prob_profit)
            and _within(result.roi, self.min_roi, self.max_roi)
            and _within(result.roi_time, self.min_roi_time, self.max_roi_time)
        )
