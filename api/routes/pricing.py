"""Option pricing API endpoints.

Provides endpoints for:
- Pricing a single option with Greeks
- Solving implied volatility
- Listing the available pricing methods
"""

import logging

from fastapi import APIRouter, HTTPException

from config.settings import get_settings
from data.schemas import (
    GreeksSchema,
    ImpliedVolatilityRequest,
    ImpliedVolatilityResponse,
    PriceRequest,
    PriceResponse,
    PricingInputs,
)
from engine.implied_vol import implied_volatility
from engine.market import OptionPricer
from engine.pricing import PricingMethod, create_pricer, resolve_method

logger = logging.getLogger(__name__)
router = APIRouter()


def _pricer(request: PricingInputs, vol: float) -> tuple[PricingMethod, OptionPricer]:
    method = resolve_method(request.method)
    if method is None:
        raise HTTPException(status_code=400, detail=f"Unsupported pricing method: {request.method}")

    pricer = create_pricer(
        method,
        spot=request.spot,
        rate=request.rate,
        carry=request.cost_of_carry,
        vol=vol,
        expiry=request.expiry_years,
    )
    return method, pricer


@router.get("/methods")
async def list_methods() -> dict[str, list[str]]:
    """List supported pricing methods."""
    return {"methods": [m.value for m in PricingMethod]}


@router.post("/price", response_model=PriceResponse)
async def price_option(request: PriceRequest) -> PriceResponse:
    """Price one option and compute its Greeks.

    Greeks are scaled for display: theta per day, vega and rho per
    percentage point. They are omitted at expiry.

    Args:
        request: Market inputs, volatility and method

    Returns:
        Price and Greeks
    """
    method, pricer = _pricer(request, request.vol)
    logger.info(
        f"Pricing {request.option_type.value} {request.strike} with {method.value}"
    )

    price = pricer.price(request.option_type, request.strike)

    greeks = None
    if request.expiry_years > 0:
        scaled = pricer.greeks(request.option_type, request.strike).scaled(
            get_settings().days_per_year
        )
        greeks = GreeksSchema(**scaled.to_dict())

    return PriceResponse(
        method=method.value,
        option_type=request.option_type,
        is_european=pricer.is_european,
        price=price,
        greeks=greeks,
    )


@router.post("/implied-volatility", response_model=ImpliedVolatilityResponse)
async def solve_implied_volatility(request: ImpliedVolatilityRequest) -> ImpliedVolatilityResponse:
    """Solve the volatility that reproduces an observed option price."""
    method, pricer = _pricer(request, vol=0.3)

    vol = implied_volatility(pricer, request.option_type, request.strike, request.price)

    return ImpliedVolatilityResponse(
        method=method.value,
        option_type=request.option_type,
        implied_volatility=vol,
    )
