"""Option chain and market data models."""

from data.chain import ChainRow, OptionChain, OptionQuote
from data.market_data import (
    Fundamentals,
    HistoricalVolatility,
    MarketContext,
    RiskFreeRateCurve,
    trading_days_between,
)

__all__ = [
    # Chain
    "OptionQuote",
    "ChainRow",
    "OptionChain",
    # Market data
    "Fundamentals",
    "HistoricalVolatility",
    "MarketContext",
    "RiskFreeRateCurve",
    "trading_days_between",
]
