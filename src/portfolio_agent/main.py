"""FastAPI application entry point."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from portfolio_agent import __version__
from portfolio_agent.api.deps import build_token_issuer
from portfolio_agent.api.ratelimit import limiter, rate_limit_exceeded_handler
from portfolio_agent.api.router import api_router
from portfolio_agent.config import get_settings
from portfolio_agent.domain.tools import KnowledgeBase, build_default_registry
from portfolio_agent.infrastructure.captcha import TurnstileVerifier
from portfolio_agent.observability.metrics import setup_metrics
from portfolio_agent.shared.exceptions import (
    AuthenticationError,
    BadRequestError,
    ConfigurationError,
    PortfolioAgentError,
)
from portfolio_agent.shared.logging import get_logger, setup_logging

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan - startup and shutdown events."""
    # Startup
    setup_logging()
    logger.info("portfolio_agent_starting", version=__version__)

    # Shared resources (avoid per-request client creation)
    settings = get_settings()
    app.state.knowledge = getattr(app.state, "knowledge", None) or KnowledgeBase(
        settings.knowledge_dir
    )
    app.state.tool_registry = getattr(
        app.state, "tool_registry", None
    ) or build_default_registry(app.state.knowledge)
    app.state.token_issuer = getattr(app.state, "token_issuer", None) or build_token_issuer(
        settings
    )
    app.state.turnstile_verifier = getattr(
        app.state, "turnstile_verifier", None
    ) or TurnstileVerifier(settings.turnstile_secret_key)
    # The completion provider is built on first use so a missing API key
    # only fails the agent endpoint, not startup

    yield

    # Shutdown
    logger.info("portfolio_agent_stopping")
    for name in ("completion_provider", "turnstile_verifier"):
        resource = getattr(app.state, name, None)
        close = getattr(resource, "close", None)
        if close is not None:
            await close()

    issuer = getattr(app.state, "token_issuer", None)
    if issuer is not None:
        await issuer.secret_store.close()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Portfolio Agent API",
        description="Streaming portfolio assistant with tool calling",
        version=__version__,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        lifespan=lifespan,
    )

    # Rate limiting
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)  # type: ignore[arg-type]

    # CORS middleware
    if settings.is_production:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=["GET", "POST", "OPTIONS"],
            allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
        )
    else:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    # Exception handlers
    register_exception_handlers(app)

    # Include routers
    app.include_router(api_router, prefix="/api")

    # Observability
    setup_metrics(app)

    return app


def _error_body(exc: PortfolioAgentError) -> dict[str, Any]:
    body: dict[str, Any] = {"error": exc.message}
    if "reason" in exc.details:
        body["details"] = str(exc.details["reason"])
    return body


def register_exception_handlers(app: FastAPI) -> None:
    """Register custom exception handlers."""

    @app.exception_handler(AuthenticationError)
    async def auth_error_handler(request: Request, exc: AuthenticationError) -> JSONResponse:
        _ = request
        return JSONResponse(status_code=401, content=_error_body(exc))

    @app.exception_handler(BadRequestError)
    async def bad_request_handler(request: Request, exc: BadRequestError) -> JSONResponse:
        _ = request
        logger.info("bad_request", error=exc.message, details=exc.details)
        return JSONResponse(status_code=400, content=_error_body(exc))

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        _ = request
        return JSONResponse(
            status_code=400,
            content={"error": "Request validation failed", "details": str(exc.errors())},
        )

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(
        request: Request, exc: ConfigurationError
    ) -> JSONResponse:
        _ = request
        logger.error("configuration_error", error=exc.message, details=exc.details)
        return JSONResponse(status_code=500, content={"error": exc.message})

    @app.exception_handler(PortfolioAgentError)
    async def portfolio_agent_error_handler(
        request: Request, exc: PortfolioAgentError
    ) -> JSONResponse:
        _ = request
        logger.error("unhandled_error", error=exc.message, details=exc.details)
        return JSONResponse(
            status_code=500,
            content={"error": "An internal error occurred"},
        )

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
        _ = request
        logger.exception("unexpected_error", error=str(exc))
        return JSONResponse(
            status_code=500,
            content={"error": "An unexpected error occurred"},
        )


# Create app instance
app = create_app()
