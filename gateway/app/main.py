"""
FastAPI Gateway Application Factory
===================================

This is the main entry point for the Backend-for-Frontend gateway that sits
between the admin dashboard in the browser and the backend API.

Architecture:
    Browser → Gateway (this service) → Backend API

Components:
    - RouteGate middleware   : Redirects unauthenticated page requests to the login page
    - /api/auth/verify       : Session introspection (is the cookie credential still valid?)
    - /api/auth/session      : Local credential cookie clear
    - /api/*                 : Proxied to BACKEND_API_URL with credential transport rewritten
    - /health                : Health check endpoint

Environment Variables:
    - BACKEND_API_URL: Upstream API base URL (default: http://localhost:18080/webadmin/api/v1)
    - PROXY_PREFIX: Public prefix forwarded upstream (default: /api)
    - LOGIN_PATH: Login page path (default: /login)
    - SESSION_COOKIE_NAME: Credential cookie name (default: access_token)
    - UPSTREAM_CREDENTIAL_TRANSPORT: cookie | bearer (default: cookie)
    - UPSTREAM_TIMEOUT_SECONDS: Upstream call timeout (default: 10)
    - ALLOWED_ORIGINS: Comma-separated CORS origins (optional)
    - LOG_LEVEL: Logging level (default: INFO)

Running the Service:
    Development:
        uvicorn gateway.app.main:app --reload --host 0.0.0.0 --port 3000

    Production:
        uvicorn gateway.app.main:app --host 0.0.0.0 --port 3000 --workers 4

    With custom log level:
        LOG_LEVEL=DEBUG uvicorn gateway.app.main:app --reload
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, Optional

import httpx
import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .auth.gate import RouteGate
from .auth.routes import auth_router
from .config import Settings, get_settings, validate_configuration
from .errors import UpstreamUnreachable
from .models import ErrorResponse, HealthResponse, ProxyErrorResponse
from .proxy.client import create_upstream_client
from .proxy.routes import proxy_router

SERVICE_NAME = "admin-bff-gateway"
SERVICE_VERSION = "1.0.0"

PROXY_ERROR_MESSAGE = "Failed to connect to the server."

logger = logging.getLogger(__name__)


# Configure structured JSON logging
def setup_logging(log_level: str = "INFO") -> None:
    """
    Configure structured logging for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format='{"timestamp": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s", "module": "%(module)s", "function": "%(funcName)s"}',
        handlers=[logging.StreamHandler(sys.stdout)]
    )


class AppState:
    """
    Per-application state container.

    Holds the shared upstream HTTP client. Nothing request-specific lives here.
    """
    def __init__(self):
        self.backend_client: Optional[httpx.AsyncClient] = None


# Lifespan context manager for startup/shutdown
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup tasks:
        - Configure logging
        - Validate configuration and log the report
        - Create the shared upstream HTTP client

    Shutdown tasks:
        - Close the upstream HTTP client
    """
    settings: Settings = app.state.settings
    setup_logging(settings.LOG_LEVEL)

    report = validate_configuration(settings)
    for warning in report["warnings"]:
        logger.warning(f"Configuration warning: {warning}")
    for error in report["errors"]:
        logger.error(f"Configuration error: {error}")

    app.state.app_state.backend_client = create_upstream_client(settings)

    logger.info(
        "Gateway service started",
        extra={
            "backend_url": settings.backend_api_url_str,
            "proxy_prefix": settings.PROXY_PREFIX,
            "credential_transport": settings.UPSTREAM_CREDENTIAL_TRANSPORT,
        }
    )

    yield

    logger.info("Shutting down gateway service")
    await app.state.app_state.backend_client.aclose()
    app.state.app_state.backend_client = None
    logger.info("Gateway service shutdown complete")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Application factory function.

    Creates and configures the FastAPI application instance with:
        - Lifespan management
        - Route gate and CORS middleware
        - Session and proxy routers
        - Exception handlers

    Args:
        settings: Settings to build the app with (defaults to environment)

    Returns:
        FastAPI: Configured application instance
    """
    if settings is None:
        settings = get_settings()

    app = FastAPI(
        title="Admin BFF Gateway",
        description="Session-gating and credential-translating proxy for the admin dashboard",
        version=SERVICE_VERSION,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc"
    )
    app.state.settings = settings
    app.state.app_state = AppState()

    # Middleware added last runs first: CORS wraps the gate
    app.add_middleware(RouteGate, settings=settings)

    origins = settings.allowed_origins_list
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
            allow_headers=["*"],
        )

    # Session routes must be registered before the catch-all proxy route
    app.include_router(auth_router, prefix=settings.PROXY_PREFIX)
    app.include_router(proxy_router, prefix=settings.PROXY_PREFIX, tags=["Upstream Proxy"])

    @app.get("/health", tags=["System"], response_model=HealthResponse)
    async def health_check() -> HealthResponse:
        """
        Health check endpoint.

        Returns:
            dict: Service health information
        """
        return HealthResponse(status="ok", service=SERVICE_NAME, version=SERVICE_VERSION)

    @app.exception_handler(UpstreamUnreachable)
    async def upstream_unreachable_handler(request: Request, exc: UpstreamUnreachable) -> JSONResponse:
        """
        Convert transport failures into a client-safe error.

        The exception message names the upstream and is only logged.
        """
        logger.error(
            f"Upstream unreachable: {exc}",
            extra={
                "path": request.url.path,
                "method": request.method,
            },
            exc_info=exc,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ProxyErrorResponse(message=PROXY_ERROR_MESSAGE).model_dump(),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """
        Global exception handler for unhandled errors.

        Logs the error and returns a standardized error response.
        """
        logger.error(
            f"Unhandled exception: {str(exc)}",
            extra={
                "path": request.url.path,
                "method": request.method,
                "exception_type": type(exc).__name__
            },
            exc_info=True
        )

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorResponse(
                error="internal_server_error",
                message="An unexpected error occurred",
            ).model_dump(),
        )

    return app


# Create app instance for uvicorn
app = create_app()


def run(**kwargs: Any) -> None:
    """Run the gateway with uvicorn using configured host and port."""
    settings = get_settings()
    uvicorn.run(
        "gateway.app.main:app",
        host=settings.GATEWAY_HOST,
        port=settings.GATEWAY_PORT,
        log_level=settings.LOG_LEVEL.lower(),
        **kwargs,
    )


if __name__ == "__main__":
    run(reload=True)
