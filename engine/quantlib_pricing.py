"""American option pricing on QuantLib engines.

Lattice and approximation methods that have no closed form here are
delegated to QuantLib:

    binomial             BinomialVanillaEngine, Cox-Ross-Rubinstein tree
    binomial_eqp         BinomialVanillaEngine, equal-probabilities tree
    barone_adesi_whaley  BaroneAdesiWhaleyApproximationEngine

QuantLib Pricing Flow:
=====================

1. Flat term structures for rate, dividend yield and volatility
2. BlackScholesMertonProcess over those structures
3. VanillaOption with AmericanExercise
4. Pricing engine attached to the option, NPV() returns the price

QuantLib counts time in whole days, so expiries are rounded to the nearest
day (at least one) from the evaluation date.

Example:
    >>> pricer = QuantLibAmericanPricer(spot=100, rate=0.05, carry=0.05, vol=0.2, expiry=0.5)
    >>> price = pricer.price("put", 100)
"""

import logging
from dataclasses import dataclass, field
from typing import Literal

import QuantLib as ql

from config.settings import get_settings
from engine.black_scholes import european_greeks
from engine.market import Greeks, MarketInputs, OptionType, checked_pricing, intrinsic_value

logger = logging.getLogger(__name__)

EngineName = Literal["binomial", "binomial_eqp", "barone_adesi_whaley"]

def reference_date() -> ql.Date:
    """QuantLib evaluation date all pricing is anchored to."""
    return ql.Settings.instance().evaluationDate


def build_process(
    spot: float,
    rate: float,
    dividend_yield: float,
    vol: float,
    eval_date: ql.Date,
) -> ql.BlackScholesMertonProcess:
    """Black-Scholes-Merton process over flat curves.

    Args:
        spot: Underlying price
        rate: Risk-free rate
        dividend_yield: Continuous dividend yield (r - b)
        vol: Volatility
        eval_date: Anchor date of the curves

    Returns:
        The stochastic process
    """
    day_count = ql.Actual365Fixed()

    spot_handle = ql.QuoteHandle(ql.SimpleQuote(spot))
    rate_curve = ql.YieldTermStructureHandle(ql.FlatForward(eval_date, rate, day_count))
    div_curve = ql.YieldTermStructureHandle(ql.FlatForward(eval_date, dividend_yield, day_count))
    vol_surface = ql.BlackVolTermStructureHandle(
        ql.BlackConstantVol(eval_date, ql.NullCalendar(), vol, day_count)
    )

    return ql.BlackScholesMertonProcess(spot_handle, div_curve, rate_curve, vol_surface)


def build_american_option(
    option_type: OptionType,
    strike: float,
    eval_date: ql.Date,
    expiry_days: int,
) -> ql.VanillaOption:
    """American vanilla option exercisable from eval_date to expiry."""
    ql_type = ql.Option.Call if option_type == OptionType.CALL else ql.Option.Put

    payoff = ql.PlainVanillaPayoff(ql_type, strike)
    exercise = ql.AmericanExercise(eval_date, eval_date + ql.Period(expiry_days, ql.Days))

    return ql.VanillaOption(payoff, exercise)


def build_engine(
    engine: EngineName,
    process: ql.BlackScholesMertonProcess,
    steps: int,
) -> ql.PricingEngine:
    """Pricing engine for the named method."""
    if engine == "binomial":
        return ql.BinomialVanillaEngine(process, "crr", steps)
    if engine == "binomial_eqp":
        return ql.BinomialVanillaEngine(process, "eqp", steps)
    if engine == "barone_adesi_whaley":
        return ql.BaroneAdesiWhaleyApproximationEngine(process)

    raise ValueError(f"Unknown QuantLib engine: {engine}")


@dataclass(frozen=True)
class QuantLibAmericanPricer(MarketInputs):
    """American option pricer backed by a QuantLib engine.

    Greeks come from finite differences on the engine price: spot bumped
    by ±1%, volatility by +0.01, rate by +1bp (dividend yield held) and
    time by one day.

    Attributes:
        engine: QuantLib engine name
        steps: Tree steps for lattice engines
        days_per_year: Calendar days per year, from settings by default
    """

    engine: EngineName = "binomial"
    steps: int = 256
    days_per_year: float = field(default_factory=lambda: get_settings().days_per_year)

    @property
    def is_european(self) -> bool:
        return False

    @property
    def expiry_days(self) -> int:
        """Expiry rounded to whole days, at least one."""
        return max(1, round(self.expiry * self.days_per_year))

    def _npv(
        self,
        option_type: OptionType,
        strike: float,
        spot: float | None = None,
        rate: float | None = None,
        vol: float | None = None,
        expiry_days: int | None = None,
    ) -> float:
        spot = self.spot if spot is None else spot
        rate = self.rate if rate is None else rate
        vol = self.vol if vol is None else vol
        expiry_days = self.expiry_days if expiry_days is None else expiry_days

        eval_date = reference_date()
        process = build_process(spot, rate, self.dividend_yield, vol, eval_date)

        option = build_american_option(option_type, strike, eval_date, expiry_days)
        option.setPricingEngine(build_engine(self.engine, process, self.steps))

        return option.NPV()

    @checked_pricing
    def price(self, option_type: OptionType | str, strike: float) -> float:
        """American option price."""
        if self.expiry == 0.0:
            return intrinsic_value(option_type, self.spot, strike)
        try:
            return self._npv(option_type, strike)
        except RuntimeError as e:
            raise ArithmeticError(f"QuantLib {self.engine} engine failed: {e}") from e

    @checked_pricing
    def greeks(self, option_type: OptionType | str, strike: float) -> Greeks:
        """Raw partial derivatives by finite differences.

        Falls back to the closed-form European partials when the option
        expires within a day and the time bump is not possible.
        """
        if self.expiry_days <= 1:
            logger.debug(f"Using European Greeks for {option_type.value} {strike} near expiry")
            return european_greeks(
                option_type, self.spot, strike, self.rate, self.carry, self.vol, self.expiry
            )

        h_spot = self.spot * 0.01
        h_vol = 0.01
        h_rate = 0.0001
        dt = 1.0 / self.days_per_year

        try:
            base = self._npv(option_type, strike)
            up = self._npv(option_type, strike, spot=self.spot + h_spot)
            down = self._npv(option_type, strike, spot=self.spot - h_spot)
            vol_up = self._npv(option_type, strike, vol=self.vol + h_vol)
            rate_up = self._npv(option_type, strike, rate=self.rate + h_rate)
            earlier = self._npv(option_type, strike, expiry_days=self.expiry_days - 1)
        except RuntimeError as e:
            raise ArithmeticError(f"QuantLib {self.engine} engine failed: {e}") from e

        return Greeks(
            delta=(up - down) / (2.0 * h_spot),
            gamma=(up - 2.0 * base + down) / (h_spot**2),
            vega=(vol_up - base) / h_vol,
            theta=(earlier - base) / dt,
            rho=(rate_up - base) / h_rate,
        )
