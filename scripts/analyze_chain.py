#!/usr/bin/env python3
"""Analyze an option chain CSV for trading candidates.

Loads a flat chain table (``strike`` plus ``call_*`` / ``put_*`` columns),
runs the profit calculator for the requested strategies and prints a
summary table of the best candidates.

Usage:
    # Bull put spreads on a chain snapshot
    python -m scripts.analyze_chain --chain spy.csv --underlying 512.3 \\
        --symbol SPY --expiry 2026-12-18 --strategy vertical_bull_put

    # Every strategy, Black-Scholes pricing, results saved to CSV
    python -m scripts.analyze_chain --chain spy.csv --underlying 512.3 \\
        --symbol SPY --expiry 2026-12-18 --method BLACKSCHOLES --output results.csv

    # With a saved filter
    python -m scripts.analyze_chain ... --filter '{"minProbProfit": 70, "vertDepth": 2}'
"""

import argparse
import logging
import sys
from datetime import date
from pathlib import Path

from config.settings import get_settings
from data.chain import OptionChain
from data.market_data import HistoricalVolatility, MarketContext, RiskFreeRateCurve
from engine.poly_fit import fit_polynomial
from engine.profit_calculator import create_calculator
from engine.profit_filter import OptionProfitFilter
from engine.results import Strategy, StrategyResult, results_to_dataframe

logging.basicConfig(
    level=get_settings().log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

SUMMARY_COLUMNS = [
    "strategy",
    "type",
    "strike_price",
    "investment_option_price",
    "max_gain",
    "max_loss",
    "break_even_price",
    "probability_profit",
    "roi",
    "roi_time",
    "expected_value",
]


def smile_slope(results: list[StrategyResult], underlying: float) -> float | None:
    """Slope of the mark IV smile at the underlying price.

    Fits a quadratic to (strike, mark IV) of single-option results; needs
    at least three distinct strikes.
    """
    points = {}
    for r in results:
        if r.strategy == Strategy.SINGLE and r.calc_mark_vi is not None:
            points.setdefault(float(r.strike_price), r.calc_mark_vi)

    if len(points) < 3:
        return None

    coeffs = fit_polynomial(list(points.keys()), list(points.values()))
    return float(coeffs.slope_at(underlying))


def format_report(
    results: list[StrategyResult],
    symbol: str,
    expiry: date,
    underlying: float,
    top: int = 20,
) -> str:
    """Summary table of the results with the highest expected value."""
    lines = [
        "=" * 72,
        f"OPTION PROFIT ANALYSIS - {symbol} {expiry.isoformat()} @ {underlying:.2f}",
        "=" * 72,
        f"Candidates: {len(results)}",
    ]

    slope = smile_slope(results, underlying)
    if slope is not None:
        lines.append(f"Smile slope at spot: {slope:.4f} vol pts per $")
    lines.append("")

    if results:
        df = results_to_dataframe(results)
        df = df.sort_values("expected_value", ascending=False).head(top)
        lines.append(df[SUMMARY_COLUMNS].to_string(index=False))
    else:
        lines.append("No candidates passed the filter.")

    lines.append("=" * 72)
    return "\n".join(lines)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Analyze an option chain for trading candidates")
    parser.add_argument("--chain", type=Path, required=True, help="Chain CSV file")
    parser.add_argument("--underlying", type=float, required=True, help="Underlying mark price")
    parser.add_argument("--symbol", type=str, required=True, help="Underlying symbol")
    parser.add_argument(
        "--expiry",
        type=date.fromisoformat,
        required=True,
        help="Expiration date (YYYY-MM-DD)",
    )
    parser.add_argument(
        "--quote-date",
        type=date.fromisoformat,
        default=None,
        help="Quote date (default: today)",
    )
    parser.add_argument(
        "--strategy",
        choices=[s.value for s in Strategy] + ["all"],
        default="all",
        help="Strategy to evaluate",
    )
    parser.add_argument("--method", type=str, default=None, help="Pricing method")
    parser.add_argument("--rate", type=float, default=0.05, help="Risk-free rate")
    parser.add_argument("--hv", type=float, default=None, help="Historical volatility")
    parser.add_argument("--filter", type=str, default=None, help="Filter JSON")
    parser.add_argument("--output", type=Path, default=None, help="Results CSV")
    parser.add_argument("--top", type=int, default=20, help="Rows in the summary")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    chain = OptionChain.from_csv(args.chain, args.symbol, args.expiry, args.quote_date)

    hist_vol = HistoricalVolatility()
    if args.hv is not None:
        hist_vol = HistoricalVolatility(windows=(1,), vols=(args.hv,))

    market = MarketContext(
        rate_curve=RiskFreeRateCurve.flat(args.rate),
        hist_vol=hist_vol,
        as_of=chain.quote_date,
    )
    filter = OptionProfitFilter.from_json(args.filter) if args.filter else None

    calc = create_calculator(
        args.underlying,
        chain,
        method_name=args.method,
        market=market,
        filter=filter,
    )
    if calc is None:
        print(f"Error: unsupported pricing method {args.method}")
        return 1
    if not calc.is_valid:
        print(f"Error: chain {args.symbol} {args.expiry} cannot be analyzed")
        return 1

    strategies = list(Strategy) if args.strategy == "all" else [Strategy(args.strategy)]

    results: list[StrategyResult] = []
    for strategy in strategies:
        calc.analyze(strategy, results)

    print(format_report(results, args.symbol, args.expiry, args.underlying, args.top))

    if args.output:
        df = results_to_dataframe(results)
        df.to_csv(args.output, index=False)
        logger.info(f"Saved {len(df)} results to {args.output}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
