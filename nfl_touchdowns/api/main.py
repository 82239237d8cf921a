"""
Main FastAPI application for the NFL touchdown tracker.

The API serves stored weekly touchdown summaries, triggers week syncs and
exposes the probability estimates computed from stored weeks.

Error Envelope:
Every failure answers {"success": false, "error": "..."}:
- HTTPException -> its own status code and detail
- request validation errors -> 422
- MissingApiKeyError -> 503
- other provider errors (TouchdownError) -> 502
- anything else -> 500

Application State:
app.state.cache holds the TTLCache used by the live fallback of GET
/api/nfl/touchdowns. It is created here, once per application, and reaches the
route handlers through the get_cache dependency.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .. import __version__
from ..cache import TTLCache
from ..config.settings import settings
from ..exceptions import MissingApiKeyError, TouchdownError
from .routers import touchdowns
from .schemas import ErrorResponse

logger = logging.getLogger(__name__)

app = FastAPI(
    title="NFL Touchdowns API",
    description="Weekly NFL touchdown aggregation and first touchdown scorer probabilities",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure restrictively for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.state.cache = TTLCache(ttl_seconds=settings.cache_ttl, max_size=settings.cache_max_entries)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code, content=ErrorResponse(error=message).model_dump(by_alias=True)
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return _error(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    messages = [
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
    ]
    return _error(422, "; ".join(messages) or "Invalid request")


@app.exception_handler(MissingApiKeyError)
async def missing_api_key_handler(request: Request, exc: MissingApiKeyError):
    return _error(503, str(exc))


@app.exception_handler(TouchdownError)
async def touchdown_error_handler(request: Request, exc: TouchdownError):
    logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return _error(502, str(exc))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return _error(500, str(exc) or "Unknown server error")


@app.get("/")
async def root():
    """Basic API information and a link to the interactive docs."""
    return {
        "message": "NFL Touchdowns API",
        "version": __version__,
        "docs": f"http://{settings.api_host}:{settings.api_port}/docs",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint for system monitoring."""
    return {
        "status": "healthy",
        "service": "NFL Touchdowns",
        "sportradar_configured": bool(settings.sportradar_api_key),
        "cached_responses": len(app.state.cache),
    }


app.include_router(touchdowns.router, prefix="/api/nfl", tags=["nfl"])
