"""Shared pricing types: option type, Greeks, market inputs and the pricer protocol.

Every pricer is a frozen dataclass extending MarketInputs, so pricers are
plain values: copy them with ``with_vol`` or ``dataclasses.replace``.
"""

import functools
import math
from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Any, Callable, Protocol, TypeVar, runtime_checkable


class OptionType(str, Enum):
    """Option type enumeration."""

    CALL = "call"
    PUT = "put"


class PricingError(ValueError):
    """Base class for pricing failures."""


class InvalidInputError(PricingError):
    """Raised when pricer inputs cannot produce a meaningful value."""


class ImpliedVolatilityError(PricingError):
    """Raised when no volatility reproduces the observed price."""


@dataclass
class Greeks:
    """Option Greeks container.

    Pricers return raw partial derivatives: theta per year, vega per 1.00
    change in volatility and rho per 1.00 change in rate. Use ``scaled`` for
    the per-day / per-point display convention.

    Attributes:
        delta: ∂V/∂S - Sensitivity to underlying price
        gamma: ∂²V/∂S² - Rate of change of delta
        vega: ∂V/∂σ - Sensitivity to volatility
        theta: ∂V/∂t - Time decay
        rho: ∂V/∂r - Sensitivity to interest rate
    """

    delta: float
    gamma: float
    vega: float
    theta: float
    rho: float

    def scaled(self, days_per_year: float = 365.0) -> "Greeks":
        """Theta per day, vega per vol point and rho per rate point."""
        return Greeks(
            delta=self.delta,
            gamma=self.gamma,
            vega=self.vega / 100.0,
            theta=self.theta / days_per_year,
            rho=self.rho / 100.0,
        )

    def __sub__(self, other: "Greeks") -> "Greeks":
        return Greeks(
            delta=self.delta - other.delta,
            gamma=self.gamma - other.gamma,
            vega=self.vega - other.vega,
            theta=self.theta - other.theta,
            rho=self.rho - other.rho,
        )

    @property
    def is_finite(self) -> bool:
        """True when every sensitivity is a finite number."""
        return all(math.isfinite(v) for v in self.to_dict().values())

    def to_dict(self) -> dict[str, float]:
        """Convert to dictionary."""
        return {
            "delta": self.delta,
            "gamma": self.gamma,
            "vega": self.vega,
            "theta": self.theta,
            "rho": self.rho,
        }


_P = TypeVar("_P", bound="MarketInputs")
_M = TypeVar("_M", bound=Callable[..., Any])


@dataclass(frozen=True)
class MarketInputs:
    """Inputs of a single pricing call.

    Attributes:
        spot: Underlying price S
        rate: Risk-free rate r (annualized, continuous)
        carry: Cost-of-carry b (r minus dividend yield for equities)
        vol: Volatility σ (annualized)
        expiry: Time to expiry T in years
    """

    spot: float
    rate: float
    carry: float
    vol: float
    expiry: float

    @property
    def dividend_yield(self) -> float:
        """Continuous dividend yield implied by the carry, q = r - b."""
        return self.rate - self.carry

    @property
    def is_valid(self) -> bool:
        """True when the inputs can be priced."""
        values = (self.spot, self.rate, self.carry, self.vol, self.expiry)
        if not all(math.isfinite(v) for v in values):
            return False
        return self.spot > 0.0 and self.expiry >= 0.0 and self.vol > 0.0

    def with_vol(self: _P, vol: float) -> _P:
        """Copy with a new volatility."""
        return replace(self, vol=vol)

    def market_inputs(self) -> "MarketInputs":
        """Plain MarketInputs view of a pricer."""
        base = {f.name: getattr(self, f.name) for f in fields(MarketInputs)}
        return MarketInputs(**base)

    def validate(self, strike: float) -> None:
        """Raise InvalidInputError unless the inputs and strike are priceable."""
        if not self.is_valid:
            raise InvalidInputError(f"Invalid market inputs: {self.market_inputs()}")
        if not math.isfinite(strike) or strike <= 0.0:
            raise InvalidInputError(f"Invalid strike: {strike}")


@runtime_checkable
class OptionPricer(Protocol):
    """Interface shared by every option pricing method."""

    spot: float
    rate: float
    carry: float
    vol: float
    expiry: float

    @property
    def is_european(self) -> bool: ...

    @property
    def is_valid(self) -> bool: ...

    def price(self, option_type: OptionType | str, strike: float) -> float: ...

    def greeks(self, option_type: OptionType | str, strike: float) -> Greeks: ...

    def with_vol(self, vol: float) -> "OptionPricer": ...


def checked_pricing(method: _M) -> _M:
    """Validate inputs and turn numeric failures into PricingError.

    Wraps a pricer's ``price``/``greeks`` method. Overflow, domain errors
    and non-finite outputs are reported as PricingError instead of
    leaking NaN or inf to the caller.
    """

    @functools.wraps(method)
    def wrapper(self, option_type, strike):
        option_type = OptionType(option_type)
        self.validate(strike)

        try:
            value = method(self, option_type, strike)
        except PricingError:
            raise
        except (ArithmeticError, ValueError) as e:
            raise PricingError(
                f"{type(self).__name__} failed for {option_type.value} {strike}: {e}"
            ) from e

        finite = value.is_finite if isinstance(value, Greeks) else math.isfinite(value)
        if not finite:
            raise PricingError(
                f"{type(self).__name__} produced a non-finite result for "
                f"{option_type.value} {strike}"
            )
        return value

    return wrapper


def intrinsic_value(option_type: OptionType | str, spot: float, strike: float) -> float:
    """Exercise value max(S - X, 0) for calls, max(X - S, 0) for puts."""
    if OptionType(option_type) == OptionType.CALL:
        return max(spot - strike, 0.0)
    return max(strike - spot, 0.0)
