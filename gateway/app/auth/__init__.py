"""
Authentication Package

This package holds everything the gateway knows about the session
credential. It never verifies signatures; the backend API does that.

Modules:
- claims: Unverified claim decoding and expiry checks
- cookies: Reading/writing the HTTP-only credential cookie
- gate: Route gate middleware (redirects to/away from the login page)
- routes: Session introspection and local session clear endpoints

The authentication flow:
1. Browser posts credentials to /api/auth/login, proxied to the backend
2. Backend answers with Set-Cookie: access_token=...; HttpOnly
3. Gateway relays the cookie; the browser sends it on every request
4. Route gate checks expiry before serving protected pages
5. Proxy re-presents the credential to the backend on every API call
"""

from .gate import RouteGate
from .routes import auth_router

__all__ = [
    "RouteGate",
    "auth_router",
]
