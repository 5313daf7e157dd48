"""Bjerksund-Stensland closed-form approximations for American options.

Two variants share the same perpetual boundary quantities:

    β    = (1/2 - b/σ²) + sqrt((b/σ² - 1/2)² + 2r/σ²)
    B∞   = β/(β - 1) · X
    B0   = max(X, r/(r - b) · X)

1993: one flat exercise trigger I over the whole life of the option.
2002: two triggers, I1 on [0, t1] and I2 on [t1, T] with
      t1 = ½(√5 - 1)T, which adds the bivariate "ksi" terms.

Calls with r <= b are never exercised early and price at the European
value. Puts use the put-call transformation

    P(S, X, T, r, b, σ) = C(X, S, T, r - b, -b, σ)

The pricers never return less than the European price or the exercise
value; the raw bs1993_call / bs2002_call functions are not floored.

Example:
    >>> pricer = BjerksundStensland1993(spot=42, rate=0.04, carry=-0.04, vol=0.35, expiry=0.75)
    >>> round(pricer.price("call", 40), 4)
    5.2704
"""

import logging
import math
from dataclasses import dataclass
from typing import Callable

from engine.black_scholes import european_greeks, european_price
from engine.market import Greeks, MarketInputs, OptionType, checked_pricing, intrinsic_value
from engine.normal import cbnd, cnd

logger = logging.getLogger(__name__)

CallPricer = Callable[[float, float, float, float, float, float], float]


def phi(
    spot: float,
    expiry: float,
    gamma: float,
    h: float,
    trigger: float,
    rate: float,
    carry: float,
    vol: float,
) -> float:
    """Bjerksund-Stensland phi helper.

    exp(λT)·S^γ·(N(d) - (I/S)^κ·N(d - 2ln(I/S)/(σ√T)))

    Args:
        spot: Underlying price S
        expiry: Time horizon T
        gamma: Power γ
        h: Level H
        trigger: Exercise trigger I
        rate: Risk-free rate r
        carry: Cost-of-carry b
        vol: Volatility σ

    Returns:
        Value of the phi term
    """
    var = vol * vol
    vst = vol * math.sqrt(expiry)

    lam = (-rate + gamma * carry + 0.5 * gamma * (gamma - 1.0) * var) * expiry
    kappa = 2.0 * carry / var + (2.0 * gamma - 1.0)
    d = -(math.log(spot / h) + (carry + (gamma - 0.5) * var) * expiry) / vst

    ratio = trigger / spot
    return (
        math.exp(lam)
        * spot**gamma
        * (cnd(d) - ratio**kappa * cnd(d - 2.0 * math.log(ratio) / vst))
    )


def ksi(
    spot: float,
    t2: float,
    gamma: float,
    h: float,
    i2: float,
    i1: float,
    t1: float,
    rate: float,
    carry: float,
    vol: float,
) -> float:
    """Bjerksund-Stensland 2002 ksi helper, the bivariate analogue of phi.

    Args:
        spot: Underlying price S
        t2: Full time to expiry T
        gamma: Power γ
        h: Level H
        i2: Trigger for the second segment
        i1: Trigger for the first segment
        t1: Boundary split time
        rate: Risk-free rate r
        carry: Cost-of-carry b
        vol: Volatility σ

    Returns:
        Value of the ksi term
    """
    var = vol * vol
    vst1 = vol * math.sqrt(t1)
    vst2 = vol * math.sqrt(t2)

    drift = carry + (gamma - 0.5) * var
    b1 = drift * t1
    b2 = drift * t2

    e1 = (math.log(spot / i1) + b1) / vst1
    e2 = (math.log(i2 * i2 / (spot * i1)) + b1) / vst1
    e3 = (math.log(spot / i1) - b1) / vst1
    e4 = (math.log(i2 * i2 / (spot * i1)) - b1) / vst1

    f1 = (math.log(spot / h) + b2) / vst2
    f2 = (math.log(i2 * i2 / (spot * h)) + b2) / vst2
    f3 = (math.log(i1 * i1 / (spot * h)) + b2) / vst2
    f4 = (math.log(spot * i1 * i1 / (h * i2 * i2)) + b2) / vst2

    rho = math.sqrt(t1 / t2)
    lam = -rate + gamma * carry + 0.5 * gamma * (gamma - 1.0) * var
    kappa = 2.0 * carry / var + (2.0 * gamma - 1.0)

    return (
        math.exp(lam * t2)
        * spot**gamma
        * (
            cbnd(-e1, -f1, rho)
            - (i2 / spot) ** kappa * cbnd(-e2, -f2, rho)
            - (i1 / spot) ** kappa * cbnd(-e3, -f3, -rho)
            + (i1 / i2) ** kappa * cbnd(-e4, -f4, -rho)
        )
    )


def _boundary(strike: float, rate: float, carry: float, vol: float) -> tuple[float, float, float]:
    """Perpetual boundary quantities (β, B∞, B0)."""
    var = vol * vol
    beta = (0.5 - carry / var) + math.sqrt((carry / var - 0.5) ** 2 + 2.0 * rate / var)
    b_inf = beta / (beta - 1.0) * strike
    b_zero = max(strike, rate / (rate - carry) * strike)
    return beta, b_inf, b_zero


def bs1993_call(
    spot: float,
    strike: float,
    rate: float,
    carry: float,
    vol: float,
    expiry: float,
) -> float:
    """American call price, Bjerksund-Stensland 1993."""
    if rate <= carry or expiry == 0.0:
        return european_price(OptionType.CALL, spot, strike, rate, carry, vol, expiry)

    beta, b_inf, b_zero = _boundary(strike, rate, carry, vol)

    ht = -(carry * expiry + 2.0 * vol * math.sqrt(expiry)) * b_zero / (b_inf - b_zero)
    trigger = b_zero + (b_inf - b_zero) * (1.0 - math.exp(ht))

    if spot >= trigger:
        return spot - strike

    alpha = (trigger - strike) * trigger ** (-beta)
    args = (rate, carry, vol)

    value = (
        alpha * spot**beta
        - alpha * phi(spot, expiry, beta, trigger, trigger, *args)
        + phi(spot, expiry, 1.0, trigger, trigger, *args)
        - phi(spot, expiry, 1.0, strike, trigger, *args)
        - strike * phi(spot, expiry, 0.0, trigger, trigger, *args)
        + strike * phi(spot, expiry, 0.0, strike, trigger, *args)
    )
    return max(value, spot - strike)


def bs2002_call(
    spot: float,
    strike: float,
    rate: float,
    carry: float,
    vol: float,
    expiry: float,
) -> float:
    """American call price, Bjerksund-Stensland 2002."""
    if rate <= carry or expiry == 0.0:
        return european_price(OptionType.CALL, spot, strike, rate, carry, vol, expiry)

    beta, b_inf, b_zero = _boundary(strike, rate, carry, vol)
    t1 = 0.5 * (math.sqrt(5.0) - 1.0) * expiry

    def trigger_at(t: float) -> float:
        ht = -(carry * t + 2.0 * vol * math.sqrt(t)) * strike * strike / ((b_inf - b_zero) * b_zero)
        return b_zero + (b_inf - b_zero) * (1.0 - math.exp(ht))

    i1 = trigger_at(t1)
    i2 = trigger_at(expiry)

    if spot >= i2:
        return spot - strike

    alpha1 = (i1 - strike) * i1 ** (-beta)
    alpha2 = (i2 - strike) * i2 ** (-beta)
    args = (rate, carry, vol)

    value = (
        alpha2 * spot**beta
        - alpha2 * phi(spot, t1, beta, i2, i2, *args)
        + phi(spot, t1, 1.0, i2, i2, *args)
        - phi(spot, t1, 1.0, i1, i2, *args)
        - strike * phi(spot, t1, 0.0, i2, i2, *args)
        + strike * phi(spot, t1, 0.0, i1, i2, *args)
        + alpha1 * phi(spot, t1, beta, i1, i2, *args)
        - alpha1 * ksi(spot, expiry, beta, i1, i2, i1, t1, *args)
        + ksi(spot, expiry, 1.0, i1, i2, i1, t1, *args)
        - ksi(spot, expiry, 1.0, strike, i2, i1, t1, *args)
        - strike * ksi(spot, expiry, 0.0, i1, i2, i1, t1, *args)
        + strike * ksi(spot, expiry, 0.0, strike, i2, i1, t1, *args)
    )
    return max(value, spot - strike)


def american_price(
    call_pricer: CallPricer,
    option_type: OptionType | str,
    spot: float,
    strike: float,
    rate: float,
    carry: float,
    vol: float,
    expiry: float,
) -> float:
    """Price a call directly, or a put through the put-call transformation.

    The approximation is floored at the European price and the exercise
    value. Where its power terms overflow (very low vol or large negative
    carry after the put transformation) the floor is returned.
    """
    option_type = OptionType(option_type)

    european = european_price(option_type, spot, strike, rate, carry, vol, expiry)
    floor = max(european, intrinsic_value(option_type, spot, strike))

    try:
        if option_type == OptionType.CALL:
            value = call_pricer(spot, strike, rate, carry, vol, expiry)
        else:
            value = call_pricer(strike, spot, rate - carry, -carry, vol, expiry)
    except (ArithmeticError, ValueError) as e:
        logger.debug(
            f"Approximation failed for {option_type.value} {strike} at vol {vol}: {e}; "
            f"using the European floor"
        )
        return floor

    if not math.isfinite(value):
        return floor
    return max(value, floor)


@dataclass(frozen=True)
class BjerksundStensland1993(MarketInputs):
    """American option pricer, Bjerksund-Stensland (1993) flat boundary.

    Greeks are the closed-form European partials.
    """

    @property
    def is_european(self) -> bool:
        return False

    @checked_pricing
    def price(self, option_type: OptionType | str, strike: float) -> float:
        """American option price."""
        return american_price(
            bs1993_call, option_type, self.spot, strike, self.rate, self.carry, self.vol, self.expiry
        )

    @checked_pricing
    def greeks(self, option_type: OptionType | str, strike: float) -> Greeks:
        """Raw partial derivatives."""
        return european_greeks(
            option_type, self.spot, strike, self.rate, self.carry, self.vol, self.expiry
        )


@dataclass(frozen=True)
class BjerksundStensland2002(MarketInputs):
    """American option pricer, Bjerksund-Stensland (2002) two-step boundary.

    This is the default pricer for American-style equity options.

    Example:
        >>> pricer = BjerksundStensland2002(spot=36, rate=0.06, carry=0.06, vol=0.2, expiry=1.0)
        >>> put = pricer.price("put", 40)
        >>> greeks = pricer.greeks("put", 40).scaled()
    """

    @property
    def is_european(self) -> bool:
        return False

    @checked_pricing
    def price(self, option_type: OptionType | str, strike: float) -> float:
        """American option price."""
        return american_price(
            bs2002_call, option_type, self.spot, strike, self.rate, self.carry, self.vol, self.expiry
        )

    @checked_pricing
    def greeks(self, option_type: OptionType | str, strike: float) -> Greeks:
        """Raw partial derivatives."""
        return european_greeks(
            option_type, self.spot, strike, self.rate, self.carry, self.vol, self.expiry
        )
