"""Strategy analysis API endpoints."""

import logging

from fastapi import APIRouter, HTTPException

from data.schemas import AnalyzeRequest, AnalyzeResponse
from engine.profit_calculator import create_calculator
from engine.results import StrategyResult

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/analyze", response_model=AnalyzeResponse)
async def analyze_chain(request: AnalyzeRequest) -> AnalyzeResponse:
    """Evaluate trading strategies over one option chain.

    Args:
        request: Chain, underlying price, market data, strategies and filter

    Returns:
        Results of every requested strategy, in request order
    """
    chain = request.to_chain()
    market = request.market.to_context(chain.quote_date)

    calc = create_calculator(
        request.underlying_price,
        chain,
        method_name=request.method,
        market=market,
        filter=request.filter,
    )
    if calc is None:
        raise HTTPException(status_code=400, detail=f"Unsupported pricing method: {request.method}")

    logger.info(f"Analyzing {chain.symbol} {chain.expiry_date} ({len(chain)} strikes)")

    results: list[StrategyResult] = []
    for strategy in request.strategies:
        calc.analyze(strategy, results)

    return AnalyzeResponse(
        symbol=chain.symbol,
        expiry_date=chain.expiry_date,
        is_valid=calc.is_valid,
        count=len(results),
        results=[r.to_dict() for r in results],
    )
