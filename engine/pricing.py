"""Pricing method selection.

Maps configuration names to pricer classes:

    BLACKSCHOLES           European closed form
    BJERKSUNDSTENSLAND93   American, flat boundary
    BJERKSUNDSTENSLAND02   American, two-step boundary (default)
    BINOM                  QuantLib CRR binomial tree
    BINOM_EQPROB           QuantLib equal-probabilities binomial tree
    BARONEADESIWHALEY      QuantLib Barone-Adesi-Whaley approximation

Monte Carlo and trinomial methods are recognized but not supported.
"""

import logging
from enum import Enum

from engine.bjerksund_stensland import BjerksundStensland1993, BjerksundStensland2002
from engine.black_scholes import BlackScholes
from engine.market import OptionPricer
from engine.quantlib_pricing import QuantLibAmericanPricer

logger = logging.getLogger(__name__)


class PricingMethod(str, Enum):
    """Supported option pricing methods."""

    BLACKSCHOLES = "BLACKSCHOLES"
    BJERKSUNDSTENSLAND93 = "BJERKSUNDSTENSLAND93"
    BJERKSUNDSTENSLAND02 = "BJERKSUNDSTENSLAND02"
    BINOM = "BINOM"
    BINOM_EQPROB = "BINOM_EQPROB"
    BARONEADESIWHALEY = "BARONEADESIWHALEY"


DEFAULT_METHOD = PricingMethod.BJERKSUNDSTENSLAND02

UNSUPPORTED_METHODS = frozenset(
    {"MONTECARLO", "TRINOM", "TRINOM_EQPROB", "TRINOM_ALT", "TRINOM_KR"}
)

_QUANTLIB_ENGINES = {
    PricingMethod.BINOM: "binomial",
    PricingMethod.BINOM_EQPROB: "binomial_eqp",
    PricingMethod.BARONEADESIWHALEY: "barone_adesi_whaley",
}


def resolve_method(name: str | PricingMethod | None) -> PricingMethod | None:
    """Map a configuration string to a pricing method.

    Args:
        name: Method name, case-insensitive. None selects the default.

    Returns:
        The pricing method, or None when the name is unknown or unsupported
    """
    if name is None:
        return DEFAULT_METHOD
    if isinstance(name, PricingMethod):
        return name

    key = name.strip().upper()
    if key in UNSUPPORTED_METHODS:
        logger.warning(f"Pricing method {name} is not supported")
        return None

    try:
        return PricingMethod(key)
    except ValueError:
        logger.warning(f"Unknown pricing method: {name}")
        return None


def create_pricer(
    method: PricingMethod | str,
    spot: float,
    rate: float,
    carry: float,
    vol: float,
    expiry: float,
) -> OptionPricer:
    """Construct a pricer for the given method.

    Args:
        method: Pricing method or its name
        spot: Underlying price
        rate: Risk-free rate
        carry: Cost-of-carry
        vol: Volatility
        expiry: Time to expiry in years

    Returns:
        Pricer instance

    Raises:
        ValueError: If the method is unknown or unsupported

    Example:
        >>> pricer = create_pricer("BLACKSCHOLES", 100, 0.05, 0.05, 0.2, 0.5)
        >>> pricer.is_european
        True
    """
    resolved = resolve_method(method)
    if resolved is None:
        raise ValueError(f"Cannot create pricer for method {method}")

    inputs = {"spot": spot, "rate": rate, "carry": carry, "vol": vol, "expiry": expiry}

    if resolved == PricingMethod.BLACKSCHOLES:
        return BlackScholes(**inputs)
    if resolved == PricingMethod.BJERKSUNDSTENSLAND93:
        return BjerksundStensland1993(**inputs)
    if resolved == PricingMethod.BJERKSUNDSTENSLAND02:
        return BjerksundStensland2002(**inputs)

    return QuantLibAmericanPricer(**inputs, engine=_QUANTLIB_ENGINES[resolved])
