"""Option pricing and strategy evaluation engine.

Pricing Modules:
- normal: Normal and bivariate normal distribution functions
- black_scholes: Generalized Black-Scholes price and Greeks
- bjerksund_stensland: American approximations (1993, 2002)
- quantlib_pricing: QuantLib binomial and Barone-Adesi-Whaley pricers
- implied_vol: Implied volatility solver
- pricing: Pricing method selection

Strategy Modules:
- profit_filter: Filter criteria
- profit_calculator: Strategy evaluator for one chain
- batch: Thread pool over many chains
- results: Strategy result records

Support:
- poly_fit: Polynomial fits and smoothing features of indicator series

Pricing Flow:
=============

    Chain + Underlying + Market Data
            ↓
    Time to Expiry, Rate, Carry, Historical Vol
            ↓
    Pricer (per strike): IV, theoretical value, Greeks
            ↓
    Strategy (per candidate): gain, loss, probabilities, EV
            ↓
    Filter → StrategyResult

Example:
    >>> from engine import BjerksundStensland2002, create_calculator, Strategy
    >>>
    >>> # Price an American put
    >>> pricer = BjerksundStensland2002(spot=36, rate=0.06, carry=0.06, vol=0.2, expiry=1.0)
    >>> price = pricer.price("put", 40)
    >>>
    >>> # Analyze a chain
    >>> calc = create_calculator(101.0, chain)
    >>> results = calc.analyze(Strategy.VERTICAL_BULL_PUT)
"""

from engine.normal import cbnd, cnd, npdf
from engine.poly_fit import PolyCoefficients, fit_linear, fit_polynomial, smoothed_features
from engine.market import (
    Greeks,
    ImpliedVolatilityError,
    InvalidInputError,
    MarketInputs,
    OptionPricer,
    OptionType,
    PricingError,
)
from engine.black_scholes import BlackScholes
from engine.bjerksund_stensland import BjerksundStensland1993, BjerksundStensland2002
from engine.quantlib_pricing import QuantLibAmericanPricer
from engine.implied_vol import implied_volatility
from engine.pricing import PricingMethod, create_pricer, resolve_method
from engine.results import Strategy, StrategyResult, results_to_dataframe
from engine.profit_filter import (
    OptionProfitFilter,
    OptionTypeFilter,
    StrategyFilter,
    VolatilityFilter,
)
from engine.profit_calculator import (
    CancellationToken,
    OptionProfitCalculator,
    build_dividend_schedule,
    create_calculator,
)
from engine.batch import AnalysisJob, BatchAnalyzer

__all__ = [
    # Numerics
    "cnd",
    "npdf",
    "cbnd",
    "PolyCoefficients",
    "fit_polynomial",
    "fit_linear",
    "smoothed_features",
    # Pricing
    "Greeks",
    "MarketInputs",
    "OptionPricer",
    "OptionType",
    "PricingError",
    "InvalidInputError",
    "ImpliedVolatilityError",
    "BlackScholes",
    "BjerksundStensland1993",
    "BjerksundStensland2002",
    "QuantLibAmericanPricer",
    "implied_volatility",
    "PricingMethod",
    "create_pricer",
    "resolve_method",
    # Strategy evaluation
    "Strategy",
    "StrategyResult",
    "results_to_dataframe",
    "OptionProfitFilter",
    "OptionTypeFilter",
    "StrategyFilter",
    "VolatilityFilter",
    "CancellationToken",
    "OptionProfitCalculator",
    "build_dividend_schedule",
    "create_calculator",
    "AnalysisJob",
    "BatchAnalyzer",
]
