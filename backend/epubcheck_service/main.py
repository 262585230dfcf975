"""EPUBCheck Service: HTTP front end for the EPUBCheck validation engine.

Main FastAPI application with lifespan management and global error handling.
"""

import logging
from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from epubcheck_service import __version__
from epubcheck_service.config import get_settings
from epubcheck_service.api.router import api_router
from epubcheck_service.engine.errors import EngineInvocationError, MalformedOutputError
from epubcheck_service.engine.models import FailureReason
from epubcheck_service.engine.runner import ProcessInvoker
from epubcheck_service.engine.version import VersionResolver
from epubcheck_service.services.update_checker import UpdateChecker

# Configure structured logging
structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer() if get_settings().DEBUG else structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.make_filtering_bound_logger(
        logging.getLevelName(get_settings().LOG_LEVEL.upper())
    ),
)

logger = structlog.get_logger()

# Engine could not be started at all vs. started and misbehaved
UNAVAILABLE_REASONS = {FailureReason.EXECUTABLE_NOT_FOUND, FailureReason.SPAWN_FAILED}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown lifecycle."""
    settings = get_settings()

    # ── Startup ──
    logger.info("app_starting", debug=settings.DEBUG)

    app.state.invoker = ProcessInvoker(settings)
    app.state.update_checker = UpdateChecker() if settings.VERSION_CHECK_ENABLED else None
    app.state.version_resolver = VersionResolver(app.state.invoker, app.state.update_checker)

    try:
        executable = app.state.invoker.resolve_executable_path()
        logger.info("engine_located", executable=str(executable))
    except EngineInvocationError as e:
        # Service still starts; validation requests will report the problem
        logger.warning("engine_missing", diagnostic=e.diagnostic)

    logger.info("app_started")

    yield

    # ── Shutdown ──
    logger.info("app_shutting_down")

    if app.state.update_checker is not None:
        await app.state.update_checker.drain()

    logger.info("app_stopped")


# ── Create Application ──

app = FastAPI(
    title="EPUBCheck Service",
    description=(
        "Validates EPUB publications and single EPUB documents with the "
        "W3C EPUBCheck engine and returns its structured report."
    ),
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)


# ── Global Exception Handlers ──

@app.exception_handler(EngineInvocationError)
async def engine_invocation_error_handler(request: Request, exc: EngineInvocationError):
    """Engine missing, unrunnable, silent or too slow."""
    unavailable = exc.reason in UNAVAILABLE_REASONS
    logger.error(
        "engine_request_failed",
        path=request.url.path,
        reason=exc.reason.value,
        diagnostic=exc.diagnostic,
    )
    return JSONResponse(
        status_code=503 if unavailable else 502,
        content={
            "error": "engine_unavailable" if unavailable else "engine_failed",
            "reason": exc.reason.value,
            "message": exc.diagnostic,
        },
    )


@app.exception_handler(MalformedOutputError)
async def malformed_output_handler(request: Request, exc: MalformedOutputError):
    """Engine wrote a report we cannot decode."""
    logger.error("engine_output_rejected", path=request.url.path, error=exc.detail)
    return JSONResponse(
        status_code=502,
        content={"error": "engine_output_invalid", "message": str(exc)},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Catch-all error handler for unhandled exceptions."""
    logger.error(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        error_type=type(exc).__name__,
    )
    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_server_error",
            "message": "An unexpected error occurred. Please try again.",
        },
    )


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    """Handle validation errors."""
    return JSONResponse(
        status_code=422,
        content={"error": "validation_error", "message": str(exc)},
    )


# ── Routes ──

app.include_router(api_router, prefix="/api/v1")


# ── Root endpoint ──

@app.get("/")
async def root():
    """Root endpoint: API info."""
    return {
        "name": "EPUBCheck Service",
        "version": __version__,
        "description": "EPUB validation backed by W3C EPUBCheck",
        "docs": "/docs",
        "health": "/api/v1/health",
    }


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    settings = get_settings()
    uvicorn.run(
        "epubcheck_service.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL,
    )
