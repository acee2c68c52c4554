"""
KidGuard Content Safety API
===========================

FastAPI application wiring the FilterGate around the AI response generator.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ..core.config import settings
from ..core.exceptions import KidGuardException
from ..services.response_generator import HttpResponseGenerator, ResponseGenerator
from ..utils.logging import setup_logging
from .filter_gate import FilterGate, create_filter_gate
from .middleware import (
    RequestIDMiddleware,
    RequestTimingMiddleware,
    exception_handler,
    generic_exception_handler,
)
from .routes import health_router
from .routes import router as api_router

logger = setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Log configuration on startup and shutdown."""
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    logger.info(f"Environment: {settings.ENVIRONMENT}")

    for issue in settings.validate_required():
        logger.warning(f"Configuration issue: {issue}")

    gate: FilterGate = app.state.filter_gate
    logger.info(
        f"Filter gate ready: mode={gate.mode} "
        f"patterns={gate.service.filtering_stats()['patternsLoaded']}"
    )

    yield

    logger.info(f"Shutting down {settings.APP_NAME}")


def create_app(
    gate: FilterGate | None = None,
    generator: ResponseGenerator | None = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        gate: FilterGate to use (defaults to one built from settings)
        generator: AI response generator (defaults to the HTTP client)
    """
    app = FastAPI(
        title=settings.APP_NAME,
        description="Age-banded content safety and readability filtering for child chat",
        version=settings.APP_VERSION,
        debug=settings.DEBUG,
        lifespan=lifespan,
    )
    app.state.filter_gate = gate or create_filter_gate()
    app.state.response_generator = generator or HttpResponseGenerator()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Process-Time", "X-Request-ID"],
    )
    app.add_middleware(RequestTimingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    app.add_exception_handler(KidGuardException, exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    app.include_router(api_router, prefix=settings.API_PREFIX)
    app.include_router(health_router)

    return app


app = create_app()


def run() -> None:
    """Serve the app with uvicorn using HOST/PORT from settings."""
    import uvicorn

    uvicorn.run(
        "kidguard.api.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )


__all__ = ["app", "create_app", "run"]
