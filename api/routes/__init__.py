"""API route modules."""

from api.routes.pricing import router as pricing_router
from api.routes.analysis import router as analysis_router

__all__ = ["pricing_router", "analysis_router"]
