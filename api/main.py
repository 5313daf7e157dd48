"""FastAPI application entry point.

Provides REST API for option analysis:
- Option pricing and Greeks
- Implied volatility
- Strategy analysis of option chains
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.routes import analysis_router, pricing_router
from config.settings import get_settings
from data.schemas import HealthResponse
from engine.market import PricingError

# Configure logging
logging.basicConfig(
    level=get_settings().log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    settings = get_settings()
    logger.info(f"Starting Option Profit API (default method {settings.calc_method})")

    yield

    # Shutdown
    logger.info("Shutting down API")


# Create FastAPI application
app = FastAPI(
    title="Option Profit Engine",
    description=(
        "Option pricing and strategy evaluation. Prices European and American "
        "options, solves implied volatility, and scores single-option and "
        "vertical-spread candidates over an option chain."
    ),
    version=VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Exception handlers
@app.exception_handler(PricingError)
async def pricing_error_handler(request: Request, exc: PricingError):
    """Handle inputs that cannot be priced."""
    logger.warning(f"Pricing error on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=422,
        content={"detail": str(exc), "type": "pricing_error"},
    )


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    """Handle validation errors."""
    return JSONResponse(
        status_code=400,
        content={"detail": str(exc), "type": "validation_error"},
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected errors."""
    logger.exception(f"Unhandled exception: {exc}")
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "type": "server_error"},
    )


# Include routers
app.include_router(pricing_router, prefix="/pricing", tags=["Pricing"])
app.include_router(analysis_router, prefix="/analysis", tags=["Analysis"])


# Root endpoints
@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": "Option Profit Engine",
        "version": VERSION,
        "description": "Option pricing and strategy evaluation API",
        "docs": "/docs",
        "endpoints": {
            "pricing": "/pricing",
            "analysis": "/analysis",
        },
    }


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "version": VERSION,
    }


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=True,
    )
