"""Option chain snapshot model.

A chain is one expiry of one underlying: a tuple of rows in ascending strike
order, each row holding an optional call quote and an optional put quote.
Chains are loaded from flat tables where every quote field appears twice,
prefixed ``call_`` and ``put_``:

    strike, call_symbol, call_bid, call_ask, ..., put_symbol, put_bid, ...

Any field other than symbol and multiplier may be missing; missing values
are stored as None ("unknown").
"""

import logging
from dataclasses import dataclass, field, fields
from datetime import date
from pathlib import Path
from typing import Iterator

import pandas as pd

logger = logging.getLogger(__name__)

DEFAULT_MULTIPLIER = 100.0


@dataclass(frozen=True)
class OptionQuote:
    """Quote of one option contract (one side of a chain row)."""

    symbol: str
    multiplier: float = DEFAULT_MULTIPLIER
    description: str | None = None

    bid: float | None = None
    ask: float | None = None
    last: float | None = None
    mark: float | None = None
    bid_size: int | None = None
    ask_size: int | None = None
    last_size: int | None = None

    open_price: float | None = None
    high_price: float | None = None
    low_price: float | None = None
    close_price: float | None = None
    change: float | None = None
    percent_change: float | None = None
    total_volume: int | None = None
    quote_time: str | None = None
    trade_time: str | None = None
    mark_change: float | None = None
    mark_percent_change: float | None = None
    exchange_name: str | None = None

    # Venue-reported analytics
    volatility: float | None = None
    delta: float | None = None
    gamma: float | None = None
    theta: float | None = None
    vega: float | None = None
    rho: float | None = None
    time_value: float | None = None
    open_interest: int | None = None
    is_in_the_money: bool | None = None
    theo_option_value: float | None = None
    theo_volatility: float | None = None

    # Contract flags
    is_mini: bool | None = None
    is_non_standard: bool | None = None
    is_index: bool | None = None
    is_weekly: bool | None = None
    is_quarterly: bool | None = None
    expiry_type: str | None = None
    last_trading_day: str | None = None
    settlement_type: str | None = None
    deliverable_note: str | None = None

    @property
    def bid_ask_size(self) -> str:
        """Display text 'bid x ask'."""
        return f"{self.bid_size or 0} x {self.ask_size or 0}"

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {f.name: getattr(self, f.name) for f in fields(self)}


_INT_FIELDS = {"bid_size", "ask_size", "last_size", "total_volume", "open_interest"}
_BOOL_FIELDS = {"is_in_the_money", "is_mini", "is_non_standard", "is_index", "is_weekly", "is_quarterly"}
_STR_FIELDS = {
    "symbol",
    "description",
    "quote_time",
    "trade_time",
    "exchange_name",
    "expiry_type",
    "last_trading_day",
    "settlement_type",
    "deliverable_note",
}

QUOTE_FIELDS = tuple(f.name for f in fields(OptionQuote))


def _convert(name: str, value):
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return None
    if name in _STR_FIELDS:
        return str(value)
    if name in _BOOL_FIELDS:
        if isinstance(value, str):
            return value.strip().lower() in ("true", "1", "yes", "y")
        return bool(value)
    if name in _INT_FIELDS:
        return int(value)
    return float(value)


@dataclass(frozen=True)
class ChainRow:
    """One strike of the chain with its call and put quotes."""

    strike: float
    call: OptionQuote | None = None
    put: OptionQuote | None = None

    def quote(self, option_type: str) -> OptionQuote | None:
        """Quote on the requested side ("call" or "put")."""
        if option_type == "call":
            return self.call
        if option_type == "put":
            return self.put
        raise ValueError(f"Unknown option type: {option_type}")

    @property
    def is_non_standard(self) -> bool:
        """True when either side is flagged non-standard."""
        return any(q is not None and bool(q.is_non_standard) for q in (self.call, self.put))


@dataclass(frozen=True)
class OptionChain:
    """Option chain of one symbol and expiry.

    Attributes:
        symbol: Underlying symbol
        expiry_date: Expiration date
        quote_date: Date the quotes were taken
        rows: Rows in ascending strike order
    """

    symbol: str
    expiry_date: date
    quote_date: date
    rows: tuple[ChainRow, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, "rows", tuple(sorted(self.rows, key=lambda r: r.strike)))

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[ChainRow]:
        return iter(self.rows)

    @property
    def days_to_expiry(self) -> int:
        """Calendar days from the quote date to expiry."""
        return (self.expiry_date - self.quote_date).days

    @property
    def strikes(self) -> list[float]:
        return [row.strike for row in self.rows]

    @classmethod
    def from_dataframe(
        cls,
        df: pd.DataFrame,
        symbol: str,
        expiry_date: date,
        quote_date: date | None = None,
    ) -> "OptionChain":
        """Build a chain from a flat DataFrame.

        Args:
            df: One row per strike with a ``strike`` column and ``call_`` /
                ``put_`` prefixed quote columns
            symbol: Underlying symbol
            expiry_date: Expiration date
            quote_date: Date of the quotes (defaults to today)

        Returns:
            OptionChain

        Raises:
            ValueError: If the strike column is missing

        Example:
            >>> df = pd.DataFrame({"strike": [95.0, 100.0], "put_bid": [0.5, 2.0], "put_ask": [0.6, 2.1]})
            >>> chain = OptionChain.from_dataframe(df, "XYZ", date(2026, 12, 18), date(2026, 11, 18))
            >>> chain.days_to_expiry
            30
        """
        if "strike" not in df.columns:
            raise ValueError("Chain table needs a 'strike' column")

        rows = []
        for record in df.to_dict(orient="records"):
            strike = float(record["strike"])
            rows.append(
                ChainRow(
                    strike=strike,
                    call=cls._quote_from_record(record, "call_", symbol, expiry_date, strike),
                    put=cls._quote_from_record(record, "put_", symbol, expiry_date, strike),
                )
            )

        logger.info(f"Loaded {len(rows)} strikes for {symbol} {expiry_date}")
        return cls(
            symbol=symbol,
            expiry_date=expiry_date,
            quote_date=quote_date or date.today(),
            rows=tuple(rows),
        )

    @classmethod
    def from_csv(
        cls,
        path: str | Path,
        symbol: str,
        expiry_date: date,
        quote_date: date | None = None,
    ) -> "OptionChain":
        """Build a chain from a CSV file in the flat table layout."""
        return cls.from_dataframe(pd.read_csv(path), symbol, expiry_date, quote_date)

    @staticmethod
    def _quote_from_record(
        record: dict,
        prefix: str,
        symbol: str,
        expiry_date: date,
        strike: float,
    ) -> OptionQuote | None:
        values = {}
        for name in QUOTE_FIELDS:
            value = _convert(name, record.get(prefix + name))
            if value is not None:
                values[name] = value

        # a side exists only when it has a price
        if values.get("bid") is None and values.get("ask") is None:
            return None

        side = "C" if prefix == "call_" else "P"
        values.setdefault("symbol", f"{symbol}_{expiry_date:%y%m%d}{side}{strike:g}")
        return OptionQuote(**values)
