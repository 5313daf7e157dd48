"""Option profit calculator.

Turns one option chain (one symbol, one expiry) into scored trading
candidates:

    SINGLE              cash-secured short puts, long (or covered) calls
    VERTICAL_BULL_PUT   short put, long put at a lower strike
    VERTICAL_BEAR_CALL  short call, long call at a higher strike

Pipeline:
=========

1. Validate the chain and derive time to expiry, historical volatility,
   risk-free rate and the dividend schedule (cost of carry)
2. Per strike and side: implied vols of bid/ask/mark, a theoretical vol,
   theoretical value and Greeks from the selected pricer
3. Per candidate: investment, max gain/loss, breakeven, probabilities and
   expected value over the lognormal distribution of the underlying at
   expiry
4. Filter and emit StrategyResult rows in ascending strike order

Legs trade at natural prices: sold legs at the bid, bought legs at the
ask. Data problems never raise out of ``analyze``; the affected row or
pair is skipped and logged.

Example:
    >>> calc = create_calculator(101.0, chain, market=MarketContext(hist_vol=hv))
    >>> results = calc.analyze(Strategy.VERTICAL_BULL_PUT)
"""

import logging
import math
import threading
from dataclasses import dataclass
from datetime import datetime

import numpy as np
from scipy.stats import norm

from config.settings import Settings, get_settings
from data.chain import ChainRow, OptionChain, OptionQuote
from data.market_data import Fundamentals, MarketContext, trading_days_between
from engine.market import Greeks, OptionPricer, OptionType, PricingError, intrinsic_value
from engine.implied_vol import implied_volatility
from engine.pricing import DEFAULT_METHOD, PricingMethod, create_pricer, resolve_method
from engine.profit_filter import OptionProfitFilter, StrategyFilter
from engine.results import Strategy, StrategyResult, round2, round4

logger = logging.getLogger(__name__)

# Lognormal grid used for probability of profit and expected value
GRID_POINTS = 1201
GRID_STDEVS = 6.0

# Volatility of the template pricer; implied vol solving overrides it
_TEMPLATE_VOL = 0.30

_QUOTE_COPY_FIELDS = (
    "description",
    "bid_size",
    "ask_size",
    "last_size",
    "open_price",
    "high_price",
    "low_price",
    "close_price",
    "change",
    "percent_change",
    "total_volume",
    "quote_time",
    "trade_time",
    "mark_change",
    "mark_percent_change",
    "exchange_name",
    "volatility",
    "delta",
    "gamma",
    "theta",
    "vega",
    "rho",
    "time_value",
    "open_interest",
    "theo_option_value",
    "theo_volatility",
    "is_mini",
    "is_non_standard",
    "is_index",
    "is_weekly",
    "is_quarterly",
    "expiry_type",
    "last_trading_day",
    "settlement_type",
    "deliverable_note",
)


class CancellationToken:
    """Cooperative cancellation flag shared between threads."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()


@dataclass(frozen=True)
class DividendSchedule:
    """Dividend payments expected before expiry.

    Attributes:
        times: Time of each payment in years from the as-of date
        yields: Yield attributed to each payment
        total_amount: Accumulated dividend amount
        total_yield: Accumulated dividend yield
    """

    times: tuple[float, ...] = ()
    yields: tuple[float, ...] = ()
    total_amount: float = 0.0
    total_yield: float = 0.0


def build_dividend_schedule(
    fundamentals: Fundamentals,
    as_of,
    time_to_expiry: float,
    days_per_year: float = 365.0,
) -> DividendSchedule:
    """Project dividend payments from the last known date up to expiry.

    The first payment is the dividend date, moved one period forward when
    it lies in the past. Payments then repeat every ``div_frequency`` years
    while they fall before expiry, each contributing ``yield * frequency``
    and ``amount * frequency``.

    Args:
        fundamentals: Dividend fundamentals
        as_of: Valuation date
        time_to_expiry: Time to expiry in years
        days_per_year: Calendar days per year

    Returns:
        DividendSchedule (empty when the underlying pays no dividends)
    """
    if as_of is None or not fundamentals.pays_dividends:
        return DividendSchedule()

    freq = fundamentals.div_frequency
    t = (fundamentals.div_date - as_of).days / days_per_year
    if t < 0.0:
        t += freq

    times, yields = [], []
    total_amount = 0.0
    total_yield = 0.0

    if t >= 0.0:
        while t < time_to_expiry:
            div = fundamentals.div_yield * freq
            times.append(t)
            yields.append(div)
            total_amount += fundamentals.div_amount * freq
            total_yield += div
            t += freq

    return DividendSchedule(
        times=tuple(times),
        yields=tuple(yields),
        total_amount=total_amount,
        total_yield=total_yield,
    )


@dataclass(frozen=True)
class LegAnalytics:
    """Calculated analytics of one side of one strike."""

    option_type: OptionType
    strike: float
    quote: OptionQuote
    bid_vi: float | None
    ask_vi: float | None
    mark_vi: float | None
    theo_vol: float
    theo_value: float
    greeks: Greeks
    spread: float | None
    spread_percent: float | None

    @property
    def mark(self) -> float | None:
        return quote_mark(self.quote)


def quote_mark(quote: OptionQuote) -> float | None:
    """Quote mark, or the bid/ask midpoint when no mark is published."""
    if quote.mark is not None:
        return quote.mark
    if quote.bid is not None and quote.ask is not None:
        return 0.5 * (quote.bid + quote.ask)
    return None


def _min_size(a: int | None, b: int | None) -> int | None:
    sizes = [s for s in (a, b) if s is not None]
    return min(sizes) if sizes else None


def _is_normal(value: float | None) -> bool:
    """Finite and non-zero, usable as a divisor."""
    return value is not None and math.isfinite(value) and value != 0.0


class OptionProfitCalculator:
    """Strategy evaluator for one option chain.

    A calculator is built once per (symbol, expiry) and is not shared
    between threads. Invalid calculators (non-positive underlying price,
    expired chain, chain rejected by the filter, no standard rows) report
    ``is_valid = False`` and analyze to an empty list.

    Args:
        underlying: Underlying mark price
        chain: Option chain to analyze
        method: Pricing method
        market: Rates, historical vol and dividend fundamentals
        filter: Filter criteria (defaults to no constraints)
        settings: Application settings (defaults to ``get_settings()``)
        cancel_token: Token checked between rows
    """

    def __init__(
        self,
        underlying: float,
        chain: OptionChain,
        method: PricingMethod = DEFAULT_METHOD,
        market: MarketContext | None = None,
        filter: OptionProfitFilter | None = None,
        settings: Settings | None = None,
        cancel_token: CancellationToken | None = None,
    ):
        self.underlying = float(underlying)
        self.chain = chain
        self.method = PricingMethod(method)
        self.market = market or MarketContext()
        self.settings = settings or get_settings()
        if filter is None:
            filter = OptionProfitFilter(vert_depth=self.settings.vert_depth)
        self.filter = filter
        self.cancel_token = cancel_token or CancellationToken()

        self.days_per_year = self.settings.days_per_year
        self.option_trade_cost = self.settings.option_trade_cost
        self.days_to_expiry = chain.days_to_expiry

        self.time_to_expiry = 0.0
        self.hist_vol: float | None = None
        self.rate = 0.0
        self.carry = 0.0
        self.dividends = DividendSchedule()

        self._legs: dict[tuple[int, OptionType], LegAnalytics] | None = None
        self._row_index = {id(row): index for index, row in enumerate(chain.rows)}
        self._valid = self._validate()

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def _validate(self) -> bool:
        symbol = self.chain.symbol

        if not math.isfinite(self.underlying) or self.underlying <= 0.0:
            logger.warning(f"{symbol}: invalid underlying price {self.underlying}")
            return False

        if self.days_to_expiry < 0:
            logger.info(f"{symbol}: chain expired {self.chain.expiry_date}")
            return False

        as_of = self.market.as_of or self.chain.quote_date
        self.time_to_expiry = self.days_to_expiry / self.days_per_year

        trading_days = trading_days_between(as_of, self.chain.expiry_date)
        self.hist_vol = self.market.hist_vol.at(trading_days)
        if self.hist_vol is None or self.hist_vol <= 0.0:
            logger.warning(f"{symbol}: no historical volatility, probabilities use theoretical vol")
            self.hist_vol = None

        self.rate = self.market.rate_curve.rate(self.time_to_expiry)
        if self.rate <= 0.0:
            logger.warning(f"{symbol}: risk free rate is {self.rate}")

        self.dividends = build_dividend_schedule(
            self.market.fundamentals, as_of, self.time_to_expiry, self.days_per_year
        )
        if self.time_to_expiry > 0.0 and self.dividends.total_yield > 0.0:
            self.carry = self.rate - self.dividends.total_yield / self.time_to_expiry
        else:
            self.carry = self.rate

        fundamentals = self.market.fundamentals
        if not self.filter.check_chain(
            self.underlying,
            self.days_to_expiry,
            fundamentals.div_amount,
            100.0 * fundamentals.div_yield,
        ):
            logger.info(f"{symbol}: chain rejected by filter")
            return False

        if not any(not row.is_non_standard for row in self.chain.rows):
            logger.info(f"{symbol}: no standard option rows")
            return False

        return True

    @property
    def is_valid(self) -> bool:
        return self._valid

    def is_non_standard(self, row: ChainRow) -> bool:
        """True when either side of the row is a non-standard contract."""
        return row.is_non_standard

    def is_filtered_out(self, row: ChainRow, option_type: OptionType | str) -> bool:
        """True when one side of a row is excluded from analysis."""
        option_type = OptionType(option_type)

        if self.is_non_standard(row):
            return True

        quote = row.quote(option_type)
        if quote is None:
            return True

        leg = self._leg_for(row, option_type)
        mark_vi = leg.mark_vi if leg is not None else None

        return not self.filter.check_row(
            quote, option_type, row.strike, self.underlying, mark_vi, self.hist_vol
        )

    # ------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------

    def analyze(
        self,
        strategy: Strategy | str,
        results: list[StrategyResult] | None = None,
    ) -> list[StrategyResult]:
        """Evaluate one strategy over the chain.

        Args:
            strategy: Strategy to evaluate
            results: Optional list the new results are appended to

        Returns:
            Results produced by this call, in ascending strike order
        """
        strategy = Strategy(strategy)
        produced: list[StrategyResult] = []

        if not self._valid:
            return produced

        flag = StrategyFilter.SINGLE if strategy == Strategy.SINGLE else StrategyFilter.VERTICAL
        if not self.filter.allows_strategy(flag):
            return produced

        if strategy == Strategy.SINGLE:
            self._analyze_single(produced)
        elif strategy == Strategy.VERTICAL_BULL_PUT:
            self._analyze_vertical(OptionType.PUT, strategy, produced)
        else:
            self._analyze_vertical(OptionType.CALL, strategy, produced)

        logger.info(
            f"{self.chain.symbol} {self.chain.expiry_date}: {len(produced)} {strategy.value} results"
        )

        if results is not None:
            results.extend(produced)
        return produced

    def _cancelled(self, produced: list[StrategyResult]) -> bool:
        if self.cancel_token.is_cancelled:
            logger.info(f"{self.chain.symbol}: analysis cancelled after {len(produced)} results")
            return True
        return False

    def _emit(self, result: StrategyResult | None, produced: list[StrategyResult]) -> None:
        if result is not None and self.filter.check_result(result):
            produced.append(result)

    def _analyze_single(self, produced: list[StrategyResult]) -> None:
        for index, row in enumerate(self.chain.rows):
            for option_type in (OptionType.CALL, OptionType.PUT):
                if self._cancelled(produced):
                    return
                if self.is_filtered_out(row, option_type):
                    continue

                leg = self._leg(index, option_type)
                if leg is None:
                    continue

                try:
                    if option_type == OptionType.PUT:
                        result = self._single_put(leg)
                    elif self.settings.single_call_mode == "covered":
                        result = self._covered_call(leg)
                    else:
                        result = self._long_call(leg)
                except (PricingError, ZeroDivisionError) as e:
                    logger.warning(f"Skipping {leg.quote.symbol}: {e}")
                    continue

                self._emit(result, produced)

    def _analyze_vertical(
        self,
        option_type: OptionType,
        strategy: Strategy,
        produced: list[StrategyResult],
    ) -> None:
        rows = self.chain.rows
        depth = self.filter.vert_depth

        for short_index, short_row in enumerate(rows):
            if self._cancelled(produced):
                return
            if self.is_filtered_out(short_row, option_type):
                continue

            short_leg = self._leg(short_index, option_type)
            if short_leg is None:
                continue

            if option_type == OptionType.PUT:
                partners = range(max(0, short_index - depth), short_index)
            else:
                partners = range(short_index + 1, min(len(rows), short_index + depth + 1))

            for long_index in partners:
                if self._cancelled(produced):
                    return
                long_row = rows[long_index]
                if self.is_filtered_out(long_row, option_type):
                    continue

                long_leg = self._leg(long_index, option_type)
                if long_leg is None:
                    continue

                try:
                    result = self._vertical(strategy, short_leg, long_leg)
                except (PricingError, ZeroDivisionError) as e:
                    logger.warning(
                        f"Skipping {short_leg.quote.symbol}-{long_leg.quote.symbol}: {e}"
                    )
                    continue

                self._emit(result, produced)

    # ------------------------------------------------------------------
    # Leg analytics
    # ------------------------------------------------------------------

    @property
    def pricer(self) -> OptionPricer:
        """Template pricer at the calculator's market inputs."""
        return create_pricer(
            self.method,
            self.underlying,
            self.rate,
            self.carry,
            self.hist_vol or _TEMPLATE_VOL,
            self.time_to_expiry,
        )

    def leg_analytics(self) -> dict[tuple[int, OptionType], LegAnalytics]:
        """Analytics of every standard row and side, generated once."""
        if self._legs is None:
            self._legs = self._generate_legs()
        return self._legs

    def _leg(self, index: int, option_type: OptionType) -> LegAnalytics | None:
        return self.leg_analytics().get((index, option_type))

    def _leg_for(self, row: ChainRow, option_type: OptionType) -> LegAnalytics | None:
        index = self._row_index.get(id(row))
        if index is None:
            return None
        return self._leg(index, option_type)

    def _implied(
        self,
        pricer: OptionPricer,
        option_type: OptionType,
        strike: float,
        price: float | None,
    ) -> float | None:
        if price is None or price <= 0.0:
            return None
        try:
            return implied_volatility(pricer, option_type, strike, price)
        except PricingError as e:
            logger.debug(f"No IV for {option_type.value} {strike} at {price}: {e}")
            return None

    def _generate_legs(self) -> dict[tuple[int, OptionType], LegAnalytics]:
        pricer = self.pricer
        legs: dict[tuple[int, OptionType], LegAnalytics] = {}

        for index, row in enumerate(self.chain.rows):
            if self.cancel_token.is_cancelled:
                break
            if self.is_non_standard(row):
                continue

            vols = {}
            for option_type in (OptionType.CALL, OptionType.PUT):
                quote = row.quote(option_type)
                if quote is None:
                    continue
                vols[option_type] = (
                    self._implied(pricer, option_type, row.strike, quote.bid),
                    self._implied(pricer, option_type, row.strike, quote.ask),
                    self._implied(pricer, option_type, row.strike, quote_mark(quote)),
                )

            for option_type, (bid_vi, ask_vi, mark_vi) in vols.items():
                other = OptionType.PUT if option_type == OptionType.CALL else OptionType.CALL
                theo_vol = self._theoretical_vol(vols.get(option_type), vols.get(other))
                quote = row.quote(option_type)

                if theo_vol is None:
                    logger.warning(f"No theoretical volatility for {quote.symbol}")
                    continue

                try:
                    leg_pricer = pricer.with_vol(theo_vol)
                    theo_value = leg_pricer.price(option_type, row.strike)
                    greeks = leg_pricer.greeks(option_type, row.strike).scaled(self.days_per_year)
                except PricingError as e:
                    logger.warning(f"No Greeks for {quote.symbol}: {e}")
                    continue

                spread = None
                spread_percent = None
                if quote.bid is not None and quote.ask is not None:
                    spread = quote.ask - quote.bid
                    if quote.ask > 0.0:
                        spread_percent = spread / quote.ask

                legs[(index, option_type)] = LegAnalytics(
                    option_type=option_type,
                    strike=row.strike,
                    quote=quote,
                    bid_vi=bid_vi,
                    ask_vi=ask_vi,
                    mark_vi=mark_vi,
                    theo_vol=theo_vol,
                    theo_value=theo_value,
                    greeks=greeks,
                    spread=spread,
                    spread_percent=spread_percent,
                )

        logger.debug(f"{self.chain.symbol}: analytics for {len(legs)} legs")
        return legs

    @staticmethod
    def _theoretical_vol(own, other) -> float | None:
        """Midpoint of the overlap of both sides' bid/ask IV ranges.

        Falls back to the side's own mark IV when the ranges do not overlap
        or either range is unknown.
        """
        own_bid, own_ask, own_mark = own
        if other is not None:
            other_bid, other_ask, _ = other
            if None not in (own_bid, own_ask, other_bid, other_ask):
                low = max(min(own_bid, own_ask), min(other_bid, other_ask))
                high = min(max(own_bid, own_ask), max(other_bid, other_ask))
                if low <= high:
                    return 0.5 * (low + high)
        return own_mark

    # ------------------------------------------------------------------
    # Probabilities
    # ------------------------------------------------------------------

    def _probability_vol(self, leg: LegAnalytics) -> float:
        return self.hist_vol if self.hist_vol is not None else leg.theo_vol

    def probability_itm(self, option_type: OptionType, price: float, vol: float) -> float:
        """Probability of the underlying finishing beyond a price at expiry."""
        if price <= 0.0:
            return 1.0 if option_type == OptionType.CALL else 0.0

        vst = vol * math.sqrt(self.time_to_expiry)
        d2 = (
            math.log(self.underlying / price) + (self.carry - 0.5 * vol * vol) * self.time_to_expiry
        ) / vst

        if option_type == OptionType.CALL:
            return float(norm.cdf(d2))
        return float(norm.cdf(-d2))

    def price_distribution(self, vol: float) -> tuple[np.ndarray, np.ndarray]:
        """Lognormal grid of expiry prices and their probability weights."""
        sd = vol * math.sqrt(self.time_to_expiry)
        mu = math.log(self.underlying) + (self.carry - 0.5 * vol * vol) * self.time_to_expiry

        z = np.linspace(-GRID_STDEVS, GRID_STDEVS, GRID_POINTS)
        weights = norm.pdf(z)
        return np.exp(mu + sd * z), weights / weights.sum()

    @staticmethod
    def expected_value(pnl: np.ndarray, weights: np.ndarray) -> tuple[float, float]:
        """Probability of profit and expected value of an expiry P&L profile.

        EV = P(profit) * average gain - P(loss) * average loss
        """
        gain = pnl > 0.0
        loss = pnl < 0.0

        prob_profit = float(weights[gain].sum())
        prob_loss = float(weights[loss].sum())

        avg_gain = float((weights[gain] * pnl[gain]).sum()) / prob_profit if prob_profit > 0.0 else 0.0
        avg_loss = float(-(weights[loss] * pnl[loss]).sum()) / prob_loss if prob_loss > 0.0 else 0.0

        return prob_profit, prob_profit * avg_gain - prob_loss * avg_loss

    # ------------------------------------------------------------------
    # Result builders
    # ------------------------------------------------------------------

    def cost_basis(self, multiplier: float) -> float:
        """Per share basis of stock held against short calls."""
        if self.settings.cost_basis is not None:
            return self.settings.cost_basis
        return self.underlying + self.settings.equity_trade_cost / multiplier

    def _common_fields(self) -> dict:
        return {
            "stamp": datetime.now(),
            "underlying": self.chain.symbol,
            "underlying_price": self.underlying,
            "expiry_date": self.chain.expiry_date,
            "days_to_expiry": self.days_to_expiry,
            "hist_volatility": round4(None if self.hist_vol is None else 100.0 * self.hist_vol),
            "time_to_expiry": round4(self.time_to_expiry),
            "risk_free_rate": round4(100.0 * self.rate),
            "div_amount": round2(self.dividends.total_amount),
            "div_yield": round4(100.0 * self.dividends.total_yield),
        }

    def _returns(
        self,
        max_gain: float,
        max_loss: float,
        investment: float,
        ev: float,
    ) -> dict:
        for name, value in (("investment", investment), ("max loss", max_loss)):
            if not _is_normal(value):
                raise ZeroDivisionError(f"{name} is {value}")

        weeks = self.time_to_expiry * self.days_per_year / 7.0
        if not _is_normal(weeks):
            raise ZeroDivisionError(f"time to expiry is {weeks} weeks")

        ror = max_gain / max_loss
        roi = max_gain / investment
        ev_roi = ev / investment

        return {
            "investment_amount": round2(investment),
            "max_gain": round2(max_gain),
            "max_loss": round2(max_loss),
            "ror": round2(100.0 * ror),
            "ror_time": round2(100.0 * ror / weeks),
            "roi": round2(100.0 * roi),
            "roi_time": round2(100.0 * roi / weeks),
            "expected_value": round2(ev),
            "expected_value_roi": round2(100.0 * ev_roi),
            "expected_value_roi_time": round2(100.0 * ev_roi / weeks),
        }

    def _single_fields(self, leg: LegAnalytics) -> dict:
        quote = leg.quote
        fields = {name: getattr(quote, name) for name in _QUOTE_COPY_FIELDS}
        is_itm = intrinsic_value(leg.option_type, self.underlying, leg.strike) > 0.0

        fields.update(
            type=leg.option_type.value.capitalize(),
            strategy=Strategy.SINGLE,
            strategy_desc=Strategy.SINGLE.description,
            symbol=quote.symbol,
            strike_price=leg.strike,
            multiplier=quote.multiplier,
            bid_ask_size=quote.bid_ask_size,
            bid_price=quote.bid,
            ask_price=quote.ask,
            last_price=quote.last,
            mark=leg.mark,
            intrinsic_value=round2(intrinsic_value(leg.option_type, self.underlying, leg.strike)),
            is_in_the_money=is_itm,
            is_out_of_the_money=not is_itm,
            calc_bid_price_vi=round4(None if leg.bid_vi is None else 100.0 * leg.bid_vi),
            calc_ask_price_vi=round4(None if leg.ask_vi is None else 100.0 * leg.ask_vi),
            calc_mark_vi=round4(None if leg.mark_vi is None else 100.0 * leg.mark_vi),
            calc_theo_option_value=round2(leg.theo_value),
            calc_theo_volatility=round4(100.0 * leg.theo_vol),
            calc_delta=round4(leg.greeks.delta),
            calc_gamma=round4(leg.greeks.gamma),
            calc_theta=round4(leg.greeks.theta),
            calc_vega=round4(leg.greeks.vega),
            calc_rho=round4(leg.greeks.rho),
            bid_ask_spread=round2(leg.spread),
            bid_ask_spread_percent=round4(
                None if leg.spread_percent is None else 100.0 * leg.spread_percent
            ),
        )
        return fields

    def _has_size(self, *quotes: OptionQuote) -> bool:
        return all(q.bid_size != 0 and q.ask_size != 0 for q in quotes)

    def _single_put(self, leg: LegAnalytics) -> StrategyResult | None:
        """Cash-secured short put sold at the bid."""
        quote = leg.quote
        if not self._has_size(quote) or quote.bid is None:
            return None

        m = quote.multiplier
        credit = m * quote.bid - self.option_trade_cost
        if credit <= 0.0:
            return None

        max_gain = credit
        max_loss = m * leg.strike - credit
        breakeven = leg.strike - credit / m

        vol = self._probability_vol(leg)
        prices, weights = self.price_distribution(vol)
        pnl = credit - m * np.maximum(leg.strike - prices, 0.0)
        prob_profit, ev = self.expected_value(pnl, weights)

        prob_itm = self.probability_itm(OptionType.PUT, leg.strike, vol)

        return StrategyResult(
            **self._common_fields(),
            **self._single_fields(leg),
            **self._returns(max_gain, max_loss, max_loss, ev),
            break_even_price=round2(breakeven),
            probability_itm=round4(100.0 * prob_itm),
            probability_otm=round4(100.0 * (1.0 - prob_itm)),
            probability_profit=round4(100.0 * prob_profit),
            investment_option_price=round2(quote.bid),
            investment_option_price_vs_theo=round2(quote.bid - leg.theo_value),
            premium_amount=round2(credit),
        )

    def _long_call(self, leg: LegAnalytics) -> StrategyResult | None:
        """Long call bought at the ask, gain capped at the top standard strike."""
        quote = leg.quote
        if not self._has_size(quote) or quote.ask is None:
            return None

        m = quote.multiplier
        debit = m * quote.ask + self.option_trade_cost
        top = max(row.strike for row in self.chain.rows if not self.is_non_standard(row))

        max_gain = m * (top - leg.strike) - debit
        if max_gain <= 0.0:
            return None

        max_loss = debit
        breakeven = leg.strike + debit / m

        vol = self._probability_vol(leg)
        prices, weights = self.price_distribution(vol)
        pnl = m * np.maximum(np.minimum(prices, top) - leg.strike, 0.0) - debit
        prob_profit, ev = self.expected_value(pnl, weights)

        prob_itm = self.probability_itm(OptionType.CALL, leg.strike, vol)

        return StrategyResult(
            **self._common_fields(),
            **self._single_fields(leg),
            **self._returns(max_gain, max_loss, debit, ev),
            break_even_price=round2(breakeven),
            probability_itm=round4(100.0 * prob_itm),
            probability_otm=round4(100.0 * (1.0 - prob_itm)),
            probability_profit=round4(100.0 * prob_profit),
            investment_option_price=round2(quote.ask),
            investment_option_price_vs_theo=round2(leg.theo_value - quote.ask),
            premium_amount=round2(-debit),
        )

    def _covered_call(self, leg: LegAnalytics) -> StrategyResult | None:
        """Call sold at the bid against stock held at the cost basis."""
        quote = leg.quote
        if not self._has_size(quote) or quote.bid is None:
            return None

        m = quote.multiplier
        basis = self.cost_basis(m)
        premium = m * quote.bid - self.option_trade_cost
        if premium <= 0.0:
            return None

        max_gain = premium
        max_loss = m * basis - max_gain
        breakeven = basis - premium / m

        vol = self._probability_vol(leg)
        prices, weights = self.price_distribution(vol)
        pnl = premium - m * np.maximum(basis - prices, 0.0)
        prob_profit, ev = self.expected_value(pnl, weights)

        prob_itm = self.probability_itm(OptionType.CALL, leg.strike, vol)

        return StrategyResult(
            **self._common_fields(),
            **self._single_fields(leg),
            **self._returns(max_gain, max_loss, max_loss, ev),
            break_even_price=round2(breakeven),
            probability_itm=round4(100.0 * prob_itm),
            probability_otm=round4(100.0 * (1.0 - prob_itm)),
            probability_profit=round4(100.0 * prob_profit),
            investment_option_price=round2(quote.bid),
            investment_option_price_vs_theo=round2(quote.bid - leg.theo_value),
            premium_amount=round2(premium),
        )

    def _vertical(
        self,
        strategy: Strategy,
        short: LegAnalytics,
        long: LegAnalytics,
    ) -> StrategyResult | None:
        """Credit spread: short leg sold at the bid, long leg bought at the ask."""
        sq, lq = short.quote, long.quote
        if not self._has_size(sq, lq) or sq.bid is None or lq.ask is None:
            return None

        m = sq.multiplier
        cost = 2.0 * self.option_trade_cost
        credit = sq.bid - lq.ask
        width = abs(short.strike - long.strike)

        if not _is_normal(width):
            raise ZeroDivisionError(f"spread width is {width}")

        max_gain = m * credit - cost
        if max_gain <= 0.0:
            return None

        max_loss = m * width - m * credit + cost
        option_type = short.option_type

        if option_type == OptionType.PUT:
            investment = m * short.strike - max_gain
            breakeven = short.strike - max_gain / m
        else:
            investment = m * self.cost_basis(m) - max_gain
            breakeven = short.strike + max_gain / m

        vol = self._probability_vol(short)
        prices, weights = self.price_distribution(vol)
        if option_type == OptionType.PUT:
            pnl = (
                max_gain
                - m * np.maximum(short.strike - prices, 0.0)
                + m * np.maximum(long.strike - prices, 0.0)
            )
        else:
            pnl = (
                max_gain
                - m * np.maximum(prices - short.strike, 0.0)
                + m * np.maximum(prices - long.strike, 0.0)
            )
        prob_profit, ev = self.expected_value(pnl, weights)
        prob_itm = self.probability_itm(option_type, breakeven, vol)

        vega_diff = long.greeks.vega - short.greeks.vega
        if not _is_normal(vega_diff):
            raise ZeroDivisionError(f"vega difference is {vega_diff}")

        def net_iv(long_iv, short_iv):
            if long_iv is None or short_iv is None:
                return None
            return (long.greeks.vega * long_iv - short.greeks.vega * short_iv) / vega_diff

        theo_vol = net_iv(long.theo_vol, short.theo_vol)
        mark_vi = net_iv(long.mark_vi, short.mark_vi)
        greeks = long.greeks - short.greeks

        bid = sq.bid - lq.ask
        ask = None if sq.ask is None or lq.bid is None else sq.ask - lq.bid
        spread = None if ask is None else ask - bid
        spread_percent = None if spread is None or not ask or ask <= 0.0 else spread / ask

        short_mark, long_mark = short.mark, long.mark
        mark = None if short_mark is None or long_mark is None else short_mark - long_mark

        short_itm = intrinsic_value(option_type, self.underlying, short.strike) > 0.0
        long_itm = intrinsic_value(option_type, self.underlying, long.strike) > 0.0

        bid_size = _min_size(sq.bid_size, lq.bid_size)
        ask_size = _min_size(sq.ask_size, lq.ask_size)
        desc = None
        if sq.description and lq.description:
            desc = f"{sq.description}-{lq.description}"

        theo_value = short.theo_value - long.theo_value

        return StrategyResult(
            **self._common_fields(),
            **self._returns(max_gain, max_loss, investment, ev),
            type=option_type.value.capitalize(),
            strategy=strategy,
            strategy_desc=strategy.description,
            symbol=f"{sq.symbol}-{lq.symbol}",
            description=desc,
            strike_price=f"{short.strike:g}/{long.strike:g}",
            multiplier=m,
            bid_ask_size=f"{bid_size or 0} x {ask_size or 0}",
            bid_price=round2(bid),
            bid_size=bid_size,
            ask_price=round2(ask),
            ask_size=ask_size,
            mark=round2(mark),
            break_even_price=round2(breakeven),
            intrinsic_value=round2(
                intrinsic_value(option_type, self.underlying, short.strike)
                - intrinsic_value(option_type, self.underlying, long.strike)
            ),
            is_in_the_money=short_itm or long_itm,
            is_out_of_the_money=not (short_itm and long_itm),
            calc_mark_vi=round4(None if mark_vi is None else 100.0 * mark_vi),
            calc_theo_option_value=round2(theo_value),
            calc_theo_volatility=round4(100.0 * theo_vol),
            calc_delta=round4(greeks.delta),
            calc_gamma=round4(greeks.gamma),
            calc_theta=round4(greeks.theta),
            calc_vega=round4(greeks.vega),
            calc_rho=round4(greeks.rho),
            bid_ask_spread=round2(spread),
            bid_ask_spread_percent=round4(None if spread_percent is None else 100.0 * spread_percent),
            probability_itm=round4(100.0 * prob_itm),
            probability_otm=round4(100.0 * (1.0 - prob_itm)),
            probability_profit=round4(100.0 * prob_profit),
            investment_option_price=round2(credit),
            investment_option_price_vs_theo=round2(credit - theo_value),
            premium_amount=round2(max_gain),
        )


def create_calculator(
    underlying: float,
    chain: OptionChain,
    method_name: str | PricingMethod | None = None,
    market: MarketContext | None = None,
    filter: OptionProfitFilter | None = None,
    settings: Settings | None = None,
    cancel_token: CancellationToken | None = None,
) -> OptionProfitCalculator | None:
    """Build a calculator for the configured pricing method.

    Args:
        underlying: Underlying mark price
        chain: Option chain
        method_name: Pricing method name (defaults to ``settings.calc_method``)
        market: Market data
        filter: Filter criteria
        settings: Application settings
        cancel_token: Cancellation token

    Returns:
        Calculator, or None when the method is unknown or unsupported
    """
    settings = settings or get_settings()
    method = resolve_method(method_name if method_name is not None else settings.calc_method)

    if method is None:
        logger.warning(f"No calculator for method {method_name or settings.calc_method}")
        return None

    return OptionProfitCalculator(
        underlying,
        chain,
        method=method,
        market=market,
        filter=filter,
        settings=settings,
        cancel_token=cancel_token,
    )
