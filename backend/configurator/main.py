"""Configurator validation service.

FastAPI application with lifespan management, CORS, and global error handling.
The authoritative rule set is loaded once at startup; if it cannot be loaded
the application refuses to start.
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional, Union

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from configurator import __version__
from configurator.api.router import api_router
from configurator.config import Settings, get_settings
from configurator.errors import RuleSetLoadError
from configurator.rules.collector import ViolationCollector
from configurator.rules.loader import load_rule_set


def configure_logging(settings: Settings) -> None:
    """Configure structured logging."""
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer() if settings.DEBUG else structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
    )


configure_logging(get_settings())

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown lifecycle."""
    rules_path = app.state.rules_path

    # ── Startup ──
    logger.info("app_starting", rules_path=str(rules_path) if rules_path else "bundled")

    try:
        rule_set = load_rule_set(rules_path)
    except RuleSetLoadError as e:
        logger.error("rule_set_load_failed", error=str(e))
        raise

    app.state.rule_set = rule_set
    app.state.collector = ViolationCollector(rule_set)

    logger.info("app_started", rule_count=len(rule_set))

    yield

    # ── Shutdown ──
    logger.info("app_stopped")


def create_app(rules_path: Union[str, Path, None] = None, settings: Optional[Settings] = None) -> FastAPI:
    """Build the application.

    Args:
        rules_path: Rule source file; falls back to RULES_PATH, then the bundled rules
        settings: Settings override, mainly for tests
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Configurator",
        description="Validates product configurations against a declarative rule set.",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.rules_path = rules_path or settings.RULES_PATH

    # ── Middleware ──

    # The configuration form is served from another origin
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    # ── Global Exception Handlers ──

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

    # ── Routes ──

    app.include_router(api_router, prefix="/api")

    @app.get("/")
    async def root():
        """Root endpoint: liveness and API info."""
        return {
            "ok": True,
            "name": "Configurator",
            "version": __version__,
            "validate": "/api/validate",
            "health": "/api/health",
        }

    return app


app = create_app()
