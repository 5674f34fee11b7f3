"""
Route Gate
==========

Middleware that runs ahead of every route and decides, from the session
cookie alone, whether a request may reach protected pages.

Classification:
    PUBLIC                  login page, proxy prefix, public paths, static assets
    PROTECTED_AUTHORIZED    anything else, carrying a valid credential
    PROTECTED_UNAUTHORIZED  anything else, without a valid credential

The gate is a fast path, not an authorization layer. It never grants access
to backend data: the proxy prefix is deliberately exempt because the login
call itself must pass through it, and the upstream re-validates the
credential on every proxied call.
"""

import logging
from enum import Enum
from typing import Iterable
from urllib.parse import urlencode

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import RedirectResponse
from starlette.types import ASGIApp

from ..config import Settings
from .claims import InvalidReason, check_token
from .cookies import clear_credential, read_credential

logger = logging.getLogger(__name__)


class RouteClass(str, Enum):
    PUBLIC = "public"
    PROTECTED_AUTHORIZED = "protected_authorized"
    PROTECTED_UNAUTHORIZED = "protected_unauthorized"


def _under(path: str, prefix: str) -> bool:
    """Segment-aware prefix match: '/api' matches '/api' and '/api/x', not '/apiary'."""
    if prefix == "/":
        return True
    return path == prefix or path.startswith(prefix + "/")


def _under_any(path: str, prefixes: Iterable[str]) -> bool:
    return any(_under(path, prefix) for prefix in prefixes)


def is_public_path(path: str, settings: Settings) -> bool:
    """
    Check whether a path is reachable without a credential.

    Public: the login page, the proxy prefix, configured public paths,
    framework-reserved prefixes, and anything that looks like a file
    (contains a '.').
    """
    if _under(path, settings.LOGIN_PATH) or _under(path, settings.PROXY_PREFIX):
        return True
    if path in settings.public_paths_list:
        return True
    if _under_any(path, settings.static_path_prefixes_list):
        return True
    return "." in path


def classify_path(path: str, token_valid: bool, settings: Settings) -> RouteClass:
    if is_public_path(path, settings):
        return RouteClass.PUBLIC
    if token_valid:
        return RouteClass.PROTECTED_AUTHORIZED
    return RouteClass.PROTECTED_UNAUTHORIZED


def login_redirect_url(request: Request, settings: Settings) -> str:
    """
    Build the login URL for an unauthenticated request.

    The originally requested path is carried as ``from`` so the login page
    can send the user back; it is omitted for the application root.
    """
    path = request.url.path
    query = urlencode({"from": path}) if path != "/" else ""
    return str(request.url.replace(path=settings.LOGIN_PATH, query=query))


class RouteGate(BaseHTTPMiddleware):
    """
    Gate protected routes on the presence of a valid session credential.

    Redirects unauthenticated users to the login page and authenticated
    users away from it.
    """

    def __init__(self, app: ASGIApp, settings: Settings):
        super().__init__(app)
        self.settings = settings

    async def dispatch(self, request, call_next):
        """
        Process each request to check authentication

        Args:
            request: The incoming HTTP request
            call_next: Function to call the next middleware/route handler

        Returns:
            HTTP response (either from route handler or a redirect)
        """
        settings = self.settings
        path = request.url.path

        if is_public_path(path, settings):
            # An authenticated user has no business on the login form
            if path == settings.LOGIN_PATH:
                token = read_credential(request, settings.SESSION_COOKIE_NAME)
                if token and check_token(token).valid:
                    return RedirectResponse(str(request.url.replace(path="/", query="")))
            return await call_next(request)

        token = read_credential(request, settings.SESSION_COOKIE_NAME)
        result = check_token(token)
        route_class = classify_path(path, result.valid, settings)

        if route_class is RouteClass.PROTECTED_AUTHORIZED:
            return await call_next(request)

        logger.info(
            "Redirecting unauthenticated request to login",
            extra={"path": path, "reason": result.reason.value},
        )

        response = RedirectResponse(login_redirect_url(request, settings))
        if result.reason is not InvalidReason.NO_TOKEN:
            # Stale or garbled cookie; drop it so the browser stops sending it
            clear_credential(
                response,
                settings.SESSION_COOKIE_NAME,
                secure=settings.SESSION_COOKIE_SECURE,
            )
        return response
