"""
Proxy Package
=============

This package implements the catch-all proxy that forwards browser API
calls to the backend service.

Main Components:
----------------
- routes.py: FastAPI router with the catch-all proxy endpoint
- body.py: Content-type driven body forwarding
- client.py: Shared upstream httpx client and disconnect-aware sending

Security Features:
------------------
- Credential read from the HTTP-only cookie and re-presented upstream
- Only Content-Type and the credential are forwarded
- Set-Cookie headers relayed individually
- Upstream failures reported to the browser without detail

Usage:
------
    from gateway.app.proxy import proxy_router
    app.include_router(proxy_router, prefix="/api")
"""

from .routes import proxy_router

__all__ = ["proxy_router"]
