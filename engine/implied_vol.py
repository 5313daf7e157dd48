"""Implied volatility solver.

Newton-Raphson on the pricer's own price, using the closed-form European
vega as the slope. When Newton stalls or leaves the volatility bounds the
solver falls back to a bracketed Brent search, which always converges
once the observed price lies between the prices at the bracket ends.

Example:
    >>> from engine.black_scholes import BlackScholes
    >>> bs = BlackScholes(spot=100, rate=0.08, carry=0.08, vol=0.2, expiry=0.5)
    >>> price = bs.price("call", 100)
    >>> round(implied_volatility(bs, "call", 100, price), 4)
    0.2
"""

import logging
import math

from scipy.optimize import brentq

from engine.black_scholes import european_price, european_vega
from engine.market import (
    ImpliedVolatilityError,
    OptionPricer,
    OptionType,
    PricingError,
    intrinsic_value,
)

logger = logging.getLogger(__name__)

MAX_LOOPS = 512
VOL_MIN = 1e-7
VOL_MAX = 1000.0
PRICE_TOLERANCE = 1e-6

# bracket for the fallback search
BRACKET = (1e-4, 100.0)


def seed_volatility(pricer: OptionPricer, strike: float, price: float) -> float:
    """Starting volatility for the Newton iteration.

    Manaster-Koehler seed sqrt(|ln(S/X) + rT| * 2/T), or the
    Brenner-Subrahmanyam at-the-money estimate sqrt(2π/T) * P/S when the
    former degenerates to zero.

    Args:
        pricer: Pricer carrying spot, rate and expiry
        strike: Strike price
        price: Observed option price

    Returns:
        Seed volatility
    """
    spot, expiry = pricer.spot, pricer.expiry

    seed = math.sqrt(abs(math.log(spot / strike) + pricer.rate * expiry) * (2.0 / expiry))
    if seed > 1e-3:
        return seed

    return math.sqrt(2.0 * math.pi / expiry) * price / spot


def model_price(
    pricer: OptionPricer,
    option_type: OptionType,
    strike: float,
    vol: float,
) -> float:
    """Pricer value at a trial volatility.

    American pricers that fail at an extreme trial volatility are valued at
    their lower bound, the larger of the European price and the exercise
    value, so the search can keep going.
    """
    try:
        return pricer.with_vol(vol).price(option_type, strike)
    except PricingError as e:
        if pricer.is_european:
            raise
        logger.debug(f"Using the lower bound for {option_type.value} {strike} at vol {vol}: {e}")
        bound = european_price(
            option_type, pricer.spot, strike, pricer.rate, pricer.carry, vol, pricer.expiry
        )
        return max(bound, intrinsic_value(option_type, pricer.spot, strike))


def _newton(
    pricer: OptionPricer,
    option_type: OptionType,
    strike: float,
    price: float,
    seed: float,
) -> float | None:
    vol = seed

    for _ in range(MAX_LOOPS):
        diff = model_price(pricer, option_type, strike, vol) - price
        if abs(diff) < PRICE_TOLERANCE:
            return vol

        vega = european_vega(pricer.spot, strike, pricer.rate, pricer.carry, vol, pricer.expiry)
        if not vega >= 1e-12:
            return None

        vol -= diff / vega
        if not math.isfinite(vol) or not VOL_MIN <= vol <= VOL_MAX:
            return None

    return None


def _bracketed(
    pricer: OptionPricer,
    option_type: OptionType,
    strike: float,
    price: float,
) -> float:
    low, high = BRACKET

    def objective(vol: float) -> float:
        return model_price(pricer, option_type, strike, vol) - price

    f_low = objective(low)
    f_high = objective(high)

    if f_low > 0.0 or f_high < 0.0:
        raise ImpliedVolatilityError(
            f"Price {price} for {option_type.value} {strike} is outside "
            f"[{f_low + price:.6f}, {f_high + price:.6f}]"
        )
    if f_low == 0.0:
        return low

    return brentq(objective, low, high, xtol=1e-10, maxiter=MAX_LOOPS)


def implied_volatility(
    pricer: OptionPricer,
    option_type: OptionType | str,
    strike: float,
    price: float,
) -> float:
    """Find the volatility at which the pricer reproduces an observed price.

    The pricer's own volatility is ignored; everything else (spot, rate,
    carry, expiry, exercise style) is taken from it.

    Args:
        pricer: Any OptionPricer
        option_type: 'call' or 'put'
        strike: Strike price
        price: Observed option price

    Returns:
        Implied volatility

    Raises:
        ImpliedVolatilityError: If the price is non-positive, below the
            exercise value of an American option, outside the no-arbitrage
            bounds, or no finite root exists
    """
    option_type = OptionType(option_type)

    if not math.isfinite(price) or price <= 0.0:
        raise ImpliedVolatilityError(f"Cannot imply volatility from price {price}")

    if pricer.expiry <= 0.0 or pricer.spot <= 0.0 or strike <= 0.0:
        raise ImpliedVolatilityError(
            f"Cannot imply volatility with spot {pricer.spot}, strike {strike}, "
            f"expiry {pricer.expiry}"
        )

    if not pricer.is_european and price < intrinsic_value(option_type, pricer.spot, strike):
        raise ImpliedVolatilityError(
            f"Price {price} is below the exercise value of {option_type.value} {strike}"
        )

    seed = seed_volatility(pricer, strike, price)

    try:
        vol = _newton(pricer, option_type, strike, price, seed)
    except PricingError as e:
        logger.debug(f"Newton-Raphson failed for {option_type.value} {strike}: {e}")
        vol = None

    if vol is None:
        try:
            vol = _bracketed(pricer, option_type, strike, price)
        except ImpliedVolatilityError:
            raise
        except (PricingError, RuntimeError) as e:
            raise ImpliedVolatilityError(
                f"Could not find IV for {option_type.value} {strike} at price {price}: {e}"
            ) from e

    if not math.isfinite(vol) or vol <= 0.0:
        raise ImpliedVolatilityError(f"Non-normal implied volatility {vol}")

    return vol
