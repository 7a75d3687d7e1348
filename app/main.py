"""
Main FastAPI application entry point.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.config import get_settings
from app.api import router as api_router
from app.calculations.errors import (
    AllocationError,
    CalculationError,
    MissingConfigurationError,
)
from app.db.database import init_db

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Equipment cost tracking, forecasting and allocation",
    version="0.1.0",
    debug=settings.debug,
)

# Include API routes
app.include_router(api_router, prefix="/api")


def error_status(exc: CalculationError) -> int:
    """HTTP status for a calculation error."""
    if isinstance(exc, MissingConfigurationError):
        return 422
    if isinstance(exc, AllocationError):
        return 409
    return 400


@app.exception_handler(CalculationError)
async def calculation_error_handler(request: Request, exc: CalculationError):
    status = error_status(exc)
    logger.warning(f"{request.method} {request.url.path} -> {status} {exc.code}: {exc}")
    return JSONResponse(status_code=status, content={"detail": str(exc), "code": exc.code})


@app.on_event("startup")
async def startup():
    """Create tables when they do not exist yet."""
    init_db()
    logger.info(f"{settings.app_name} started ({settings.app_env})")


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring."""
    return {"status": "healthy", "version": "0.1.0"}
