"""MapMyWay FastAPI Application.

Main entry point for the backend API server.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from mapmyway.api import router
from mapmyway.api.routes import shutdown_services
from mapmyway.config import get_settings
from mapmyway.models import (
    AppError,
    DirectionsError,
    ErrorCode,
    GeocodingError,
    ItineraryError,
    MalformedPolylineError,
    PlaceSearchError,
    PlacesError,
    PlanTimeoutError,
    RecoveryOption,
)

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    datefmt="%H:%M:%S",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    yield
    # Shutdown: close the cache client
    await shutdown_services()


app = FastAPI(
    title="MapMyWay API",
    description="Road trip planner: routes and places along the way",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def error_response(
    status_code: int,
    code: ErrorCode,
    message: str,
    user_message: str,
    remote_status: Optional[str] = None,
    recovery_options: Optional[list[RecoveryOption]] = None,
) -> JSONResponse:
    error = AppError(
        code=code,
        message=message,
        user_message=user_message,
        remote_status=remote_status,
        recovery_options=recovery_options or [],
    )
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error": error.model_dump(mode="json"),
            "warnings": [],
        },
    )


# Global exception handlers
@app.exception_handler(RequestValidationError)
@app.exception_handler(ValidationError)
async def validation_exception_handler(request: Request, exc: Exception):
    """Handle request and Pydantic validation errors."""
    return error_response(
        422,
        ErrorCode.VALIDATION_ERROR,
        str(exc),
        "Invalid request format. Please check your input.",
    )


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    return error_response(
        400,
        ErrorCode.INVALID_INPUT,
        str(exc),
        "Some of the trip details are invalid. Please check your input.",
    )


@app.exception_handler(MalformedPolylineError)
async def polyline_error_handler(request: Request, exc: MalformedPolylineError):
    return error_response(
        400,
        ErrorCode.INVALID_POLYLINE,
        str(exc),
        "The route could not be read. Please request directions again.",
    )


@app.exception_handler(GeocodingError)
async def geocoding_error_handler(request: Request, exc: GeocodingError):
    logger.warning(f"[GEOCODE] {exc}")
    return error_response(
        502,
        ErrorCode.GEOCODING_FAILED,
        str(exc),
        "We couldn't find that address. Try a more specific one.",
        remote_status=exc.status,
        recovery_options=[RecoveryOption(label="Edit address", action="edit_address")],
    )


@app.exception_handler(DirectionsError)
async def directions_error_handler(request: Request, exc: DirectionsError):
    logger.warning(f"[DIRECTIONS] {exc}")
    return error_response(
        502,
        ErrorCode.NO_ROUTE,
        str(exc),
        "No route was found between these places.",
        remote_status=exc.status,
        recovery_options=[
            RecoveryOption(label="Try another travel mode", action="change_mode"),
        ],
    )


@app.exception_handler(PlacesError)
@app.exception_handler(PlaceSearchError)
async def places_error_handler(request: Request, exc: Exception):
    logger.warning(f"[PLACES] {exc}")
    return error_response(
        502,
        ErrorCode.PLACES_FAILED,
        str(exc),
        "Searching for places along the route failed. Please try again.",
        remote_status=getattr(exc, "status", None),
        recovery_options=[RecoveryOption(label="Retry", action="retry")],
    )


@app.exception_handler(ItineraryError)
async def itinerary_error_handler(request: Request, exc: ItineraryError):
    logger.warning(f"[AI] {exc}")
    return error_response(
        502,
        ErrorCode.ITINERARY_FAILED,
        str(exc),
        "We couldn't build a day-by-day plan right now.",
    )


@app.exception_handler(PlanTimeoutError)
async def timeout_error_handler(request: Request, exc: PlanTimeoutError):
    return error_response(
        504,
        ErrorCode.TIMEOUT,
        str(exc),
        "Planning took too long. Try a shorter route or fewer preferences.",
        recovery_options=[RecoveryOption(label="Retry", action="retry")],
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected errors."""
    logger.exception(f"Unhandled error on {request.url.path}")
    return error_response(
        500,
        ErrorCode.API_ERROR,
        str(exc),
        "Something went wrong. Please try again.",
    )


# Include API routes
app.include_router(router, prefix="/api")


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
