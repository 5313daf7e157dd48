"""Pydantic schemas for API request/response validation."""

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, Field

from data.chain import ChainRow, OptionChain, OptionQuote
from data.market_data import Fundamentals, HistoricalVolatility, MarketContext, RiskFreeRateCurve
from engine.market import OptionType
from engine.profit_filter import OptionProfitFilter
from engine.results import Strategy


class GreeksSchema(BaseModel):
    """Schema for option Greeks."""

    delta: float = Field(..., description="Delta")
    gamma: float = Field(..., description="Gamma")
    vega: float = Field(..., description="Vega (per 1% vol)")
    theta: float = Field(..., description="Theta (per day)")
    rho: float = Field(..., description="Rho (per 1% rate)")


class PricingInputs(BaseModel):
    """Market inputs shared by the pricing requests."""

    spot: float = Field(..., gt=0, description="Spot price")
    strike: float = Field(..., gt=0, description="Strike price")
    expiry_years: float = Field(..., ge=0, description="Time to expiry in years")
    rate: float = Field(default=0.0, description="Risk-free rate")
    dividend_yield: float = Field(default=0.0, description="Continuous dividend yield")
    carry: float | None = Field(
        default=None,
        description="Cost of carry; defaults to rate - dividend_yield (0 for futures)",
    )
    option_type: OptionType = Field(default=OptionType.CALL, description="call or put")
    method: str = Field(default="BLACKSCHOLES", description="Pricing method")

    @property
    def cost_of_carry(self) -> float:
        return self.carry if self.carry is not None else self.rate - self.dividend_yield


# API Request schemas
class PriceRequest(PricingInputs):
    """Request for option pricing."""

    vol: float = Field(..., gt=0, description="Volatility")


class ImpliedVolatilityRequest(PricingInputs):
    """Request for implied volatility."""

    price: float = Field(..., gt=0, description="Observed option price")


class OptionQuoteSchema(BaseModel):
    """Schema for one side of a chain row."""

    symbol: str | None = Field(None, description="Option symbol")
    multiplier: float = Field(default=100.0, gt=0, description="Contract multiplier")
    description: str | None = None
    bid: float | None = Field(None, ge=0, description="Bid price")
    ask: float | None = Field(None, ge=0, description="Ask price")
    last: float | None = Field(None, ge=0, description="Last trade price")
    mark: float | None = Field(None, ge=0, description="Mark price")
    bid_size: int | None = Field(None, ge=0, description="Bid size")
    ask_size: int | None = Field(None, ge=0, description="Ask size")
    open_interest: int | None = Field(None, ge=0, description="Open interest")
    volatility: float | None = Field(None, description="Venue implied volatility")
    is_non_standard: bool | None = Field(None, description="Non-standard contract")
    is_mini: bool | None = Field(None, description="Mini contract")

    def to_quote(self, default_symbol: str) -> OptionQuote:
        values = self.model_dump(exclude_none=True)
        values.setdefault("symbol", default_symbol)
        return OptionQuote(**values)


class ChainRowSchema(BaseModel):
    """Schema for one strike of a chain."""

    strike: float = Field(..., gt=0, description="Strike price")
    call: OptionQuoteSchema | None = Field(None, description="Call quote")
    put: OptionQuoteSchema | None = Field(None, description="Put quote")


class MarketDataSchema(BaseModel):
    """Schema for market data of an analysis request."""

    rate: float = Field(default=0.0, description="Flat risk-free rate")
    rate_tenors: list[float] | None = Field(None, description="Rate curve tenors in years")
    rate_values: list[float] | None = Field(None, description="Rates at the tenors")
    hist_vol: float | None = Field(None, gt=0, description="Flat historical volatility")
    div_amount: float = Field(default=0.0, ge=0, description="Dividend per payment")
    div_date: date | None = Field(None, description="Dividend date")
    div_frequency: float = Field(default=0.0, ge=0, description="Years between payments")
    div_yield: float = Field(default=0.0, ge=0, description="Annual dividend yield")

    def to_context(self, as_of: date) -> MarketContext:
        if self.rate_tenors and self.rate_values:
            curve = RiskFreeRateCurve(tuple(self.rate_tenors), tuple(self.rate_values))
        else:
            curve = RiskFreeRateCurve.flat(self.rate)

        hist_vol = HistoricalVolatility()
        if self.hist_vol is not None:
            hist_vol = HistoricalVolatility(windows=(1,), vols=(self.hist_vol,))

        return MarketContext(
            rate_curve=curve,
            hist_vol=hist_vol,
            fundamentals=Fundamentals(
                div_amount=self.div_amount,
                div_date=self.div_date,
                div_frequency=self.div_frequency,
                div_yield=self.div_yield,
            ),
            as_of=as_of,
        )


class AnalyzeRequest(BaseModel):
    """Request for strategy analysis of one chain."""

    symbol: str = Field(..., description="Underlying symbol")
    underlying_price: float = Field(..., description="Underlying mark price")
    expiry_date: date = Field(..., description="Expiration date")
    quote_date: date | None = Field(None, description="Quote date (defaults to today)")
    rows: list[ChainRowSchema] = Field(..., description="Chain rows")
    strategies: list[Strategy] = Field(
        default_factory=lambda: list(Strategy), description="Strategies to evaluate"
    )
    method: str | None = Field(None, description="Pricing method")
    filter: OptionProfitFilter | None = Field(None, description="Filter criteria")
    market: MarketDataSchema = Field(default_factory=MarketDataSchema)

    def to_chain(self) -> OptionChain:
        rows = []
        for row in self.rows:
            rows.append(
                ChainRow(
                    strike=row.strike,
                    call=row.call.to_quote(f"{self.symbol}C{row.strike:g}") if row.call else None,
                    put=row.put.to_quote(f"{self.symbol}P{row.strike:g}") if row.put else None,
                )
            )
        return OptionChain(
            symbol=self.symbol,
            expiry_date=self.expiry_date,
            quote_date=self.quote_date or date.today(),
            rows=tuple(rows),
        )


# API Response schemas
class PriceResponse(BaseModel):
    """Response containing price and Greeks."""

    method: str
    option_type: OptionType
    is_european: bool
    price: float
    greeks: GreeksSchema | None = Field(None, description="Scaled Greeks (None at expiry)")


class ImpliedVolatilityResponse(BaseModel):
    """Response containing an implied volatility."""

    method: str
    option_type: OptionType
    implied_volatility: float


class AnalyzeResponse(BaseModel):
    """Response containing strategy results."""

    symbol: str
    expiry_date: date
    is_valid: bool
    count: int
    results: list[dict[str, Any]]


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Service status")
    timestamp: datetime = Field(..., description="Current timestamp")
    version: str = Field(..., description="API version")
