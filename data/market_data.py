"""Market data consumed by the profit calculator.

- RiskFreeRateCurve: tenor (years) -> rate, linear, flat beyond the ends
- HistoricalVolatility: trading-day window -> annualized vol, linear
- Fundamentals: dividend amount, date, frequency and yield
- MarketContext: the bundle handed to a calculator

Trading days are counted on the QuantLib NYSE calendar.
"""

import logging
from dataclasses import dataclass, field
from datetime import date

import numpy as np
import QuantLib as ql

logger = logging.getLogger(__name__)

NYSE = ql.UnitedStates(ql.UnitedStates.NYSE)


def to_ql_date(d: date) -> ql.Date:
    """Convert a Python date to a QuantLib date."""
    return ql.Date(d.day, d.month, d.year)


def trading_days_between(start: date, end: date) -> int:
    """Number of NYSE business days in (start, end].

    Example:
        >>> trading_days_between(date(2024, 1, 5), date(2024, 1, 12))
        5
    """
    if end <= start:
        return 0
    return NYSE.businessDaysBetween(to_ql_date(start), to_ql_date(end), False, True)


@dataclass(frozen=True)
class RiskFreeRateCurve:
    """Risk-free rate term structure.

    Attributes:
        tenors: Tenors in years, ascending
        rates: Continuously compounded rates at the tenors
    """

    tenors: tuple[float, ...]
    rates: tuple[float, ...]

    def __post_init__(self):
        if len(self.tenors) != len(self.rates):
            raise ValueError("Tenors and rates must have the same length")
        if len(self.tenors) == 0:
            raise ValueError("Rate curve needs at least one point")
        if any(np.diff(self.tenors) <= 0):
            raise ValueError("Tenors must be strictly ascending")

    @classmethod
    def flat(cls, rate: float) -> "RiskFreeRateCurve":
        """Curve with a single rate at every tenor."""
        return cls(tenors=(1.0,), rates=(rate,))

    def rate(self, tenor: float) -> float:
        """Interpolated rate at a tenor in years."""
        return float(np.interp(tenor, self.tenors, self.rates))


@dataclass(frozen=True)
class HistoricalVolatility:
    """Annualized historical volatility by trailing window.

    Attributes:
        windows: Window lengths in trading days, ascending
        vols: Annualized volatility for each window
    """

    windows: tuple[int, ...] = ()
    vols: tuple[float, ...] = ()

    def __post_init__(self):
        if len(self.windows) != len(self.vols):
            raise ValueError("Windows and vols must have the same length")

    @classmethod
    def from_prices(cls, closes, windows=(10, 20, 30, 60, 90, 120, 180, 252)) -> "HistoricalVolatility":
        """Close-to-close volatility of a price series over several windows.

        Windows longer than the series are skipped.
        """
        log_returns = np.diff(np.log(np.asarray(closes, dtype=float)))

        keep_windows, keep_vols = [], []
        for window in windows:
            if window < 2 or window > len(log_returns):
                continue
            keep_windows.append(window)
            keep_vols.append(float(np.std(log_returns[-window:], ddof=1) * np.sqrt(252)))

        return cls(windows=tuple(keep_windows), vols=tuple(keep_vols))

    @property
    def is_empty(self) -> bool:
        return len(self.windows) == 0

    def at(self, trading_days: int) -> float | None:
        """Volatility for a window, or None when no data is available."""
        if self.is_empty:
            return None
        return float(np.interp(trading_days, self.windows, self.vols))


@dataclass(frozen=True)
class Fundamentals:
    """Dividend fundamentals of the underlying.

    Attributes:
        div_amount: Dividend per payment
        div_date: Next (or last) dividend date
        div_frequency: Years between payments, e.g. 0.25 for quarterly
        div_yield: Annual dividend yield as a fraction
    """

    div_amount: float = 0.0
    div_date: date | None = None
    div_frequency: float = 0.0
    div_yield: float = 0.0

    @property
    def pays_dividends(self) -> bool:
        return self.div_date is not None and self.div_frequency > 0.0 and self.div_yield > 0.0


@dataclass(frozen=True)
class MarketContext:
    """Market data for one underlying on one day."""

    rate_curve: RiskFreeRateCurve = field(default_factory=lambda: RiskFreeRateCurve.flat(0.0))
    hist_vol: HistoricalVolatility = field(default_factory=HistoricalVolatility)
    fundamentals: Fundamentals = field(default_factory=Fundamentals)
    as_of: date | None = None
