"""Generalized Black-Scholes pricing and Greeks with cost of carry.

The cost-of-carry rate b selects the model:

    b = r        Black-Scholes (1973), non-dividend stock
    b = r - q    Merton (1973), continuous dividend yield q
    b = 0        Black (1976), futures options

Formulas:
=========

    d1 = (ln(S/X) + (b + σ²/2)T) / (σ√T)
    d2 = d1 - σ√T

    call = S e^((b-r)T) N(d1) - X e^(-rT) N(d2)
    put  = X e^(-rT) N(-d2) - S e^((b-r)T) N(-d1)

The closed form lives in module-level functions so the American
approximations can share it without inheriting from a European class.

Example:
    >>> bs = BlackScholes(spot=60, rate=0.08, carry=0.08, vol=0.30, expiry=0.25)
    >>> round(bs.price("call", 65), 4)
    2.1334
"""

import logging
import math
from dataclasses import dataclass

from engine.market import (
    Greeks,
    InvalidInputError,
    MarketInputs,
    OptionType,
    checked_pricing,
    intrinsic_value,
)
from engine.normal import cnd, npdf

logger = logging.getLogger(__name__)


def d1_d2(
    spot: float,
    strike: float,
    carry: float,
    vol: float,
    expiry: float,
) -> tuple[float, float]:
    """Compute the d1 and d2 terms.

    Args:
        spot: Underlying price
        strike: Strike price
        carry: Cost-of-carry rate
        vol: Volatility
        expiry: Time to expiry in years (must be positive)

    Returns:
        Tuple of (d1, d2)
    """
    vst = vol * math.sqrt(expiry)
    d1 = (math.log(spot / strike) + (carry + 0.5 * vol * vol) * expiry) / vst
    return d1, d1 - vst


def european_price(
    option_type: OptionType | str,
    spot: float,
    strike: float,
    rate: float,
    carry: float,
    vol: float,
    expiry: float,
) -> float:
    """Closed-form European option price.

    Args:
        option_type: 'call' or 'put'
        spot: Underlying price S
        strike: Strike price X
        rate: Risk-free rate r
        carry: Cost-of-carry b
        vol: Volatility σ
        expiry: Time to expiry T in years

    Returns:
        Option price; intrinsic value at expiry (T = 0)
    """
    option_type = OptionType(option_type)

    if expiry == 0.0:
        return intrinsic_value(option_type, spot, strike)

    d1, d2 = d1_d2(spot, strike, carry, vol, expiry)

    sbrt = spot * math.exp((carry - rate) * expiry)
    xert = strike * math.exp(-rate * expiry)

    if option_type == OptionType.CALL:
        return sbrt * cnd(d1) - xert * cnd(d2)
    return xert * cnd(-d2) - sbrt * cnd(-d1)


def european_vega(
    spot: float,
    strike: float,
    rate: float,
    carry: float,
    vol: float,
    expiry: float,
) -> float:
    """Closed-form vega ∂V/∂σ, identical for calls and puts."""
    if expiry <= 0.0:
        return 0.0

    d1, _ = d1_d2(spot, strike, carry, vol, expiry)
    return spot * math.exp((carry - rate) * expiry) * npdf(d1) * math.sqrt(expiry)


def european_greeks(
    option_type: OptionType | str,
    spot: float,
    strike: float,
    rate: float,
    carry: float,
    vol: float,
    expiry: float,
) -> Greeks:
    """Closed-form European partial derivatives.

    Theta is per year, vega per 1.00 of volatility and rho per 1.00 of
    rate. Rho moves the rate with the dividend yield (r - b) held fixed.

    Raises:
        InvalidInputError: At expiry, where the partials are undefined
    """
    option_type = OptionType(option_type)

    if expiry <= 0.0:
        raise InvalidInputError("Greeks are undefined at expiry")

    st = math.sqrt(expiry)
    vst = vol * st
    d1, d2 = d1_d2(spot, strike, carry, vol, expiry)

    ebrt = math.exp((carry - rate) * expiry)
    ert = math.exp(-rate * expiry)
    sbrt = spot * ebrt
    nd1 = npdf(d1)

    gamma = ebrt * nd1 / (spot * vst)
    vega = sbrt * nd1 * st
    decay = -sbrt * nd1 * vol / (2.0 * st)

    if option_type == OptionType.CALL:
        delta = ebrt * cnd(d1)
        theta = decay - (carry - rate) * sbrt * cnd(d1) - rate * strike * ert * cnd(d2)
        rho = expiry * strike * ert * cnd(d2)
    else:
        delta = ebrt * (cnd(d1) - 1.0)
        theta = decay + (carry - rate) * sbrt * cnd(-d1) + rate * strike * ert * cnd(-d2)
        rho = -expiry * strike * ert * cnd(-d2)

    return Greeks(delta=delta, gamma=gamma, vega=vega, theta=theta, rho=rho)


@dataclass(frozen=True)
class BlackScholes(MarketInputs):
    """European option pricer using the generalized Black-Scholes formula.

    Example:
        >>> bs = BlackScholes(spot=100, rate=0.05, carry=0.05, vol=0.2, expiry=0.25)
        >>> price = bs.price("call", 105)
        >>> greeks = bs.greeks("call", 105).scaled()
    """

    @property
    def is_european(self) -> bool:
        return True

    @checked_pricing
    def price(self, option_type: OptionType | str, strike: float) -> float:
        """Option price.

        Args:
            option_type: 'call' or 'put'
            strike: Strike price

        Returns:
            European option price

        Raises:
            PricingError: If the inputs are not priceable
        """
        return european_price(
            option_type, self.spot, strike, self.rate, self.carry, self.vol, self.expiry
        )

    @checked_pricing
    def greeks(self, option_type: OptionType | str, strike: float) -> Greeks:
        """Raw partial derivatives of the European price."""
        return european_greeks(
            option_type, self.spot, strike, self.rate, self.carry, self.vol, self.expiry
        )

    def vega(self, strike: float) -> float:
        """Vega per 1.00 of volatility."""
        self.validate(strike)
        return european_vega(self.spot, strike, self.rate, self.carry, self.vol, self.expiry)

    def forward_price(self) -> float:
        """Forward price F = S × exp(bT)."""
        return self.spot * math.exp(self.carry * self.expiry)

    def probability_itm(self, option_type: OptionType | str, strike: float) -> float:
        """Risk-neutral probability of finishing in the money, N(±d2)."""
        self.validate(strike)
        if self.expiry == 0.0:
            return 1.0 if intrinsic_value(option_type, self.spot, strike) > 0.0 else 0.0

        _, d2 = d1_d2(self.spot, strike, self.carry, self.vol, self.expiry)
        if OptionType(option_type) == OptionType.CALL:
            return cnd(d2)
        return cnd(-d2)
