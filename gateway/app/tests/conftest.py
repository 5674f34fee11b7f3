"""
Shared fixtures for gateway tests.

Tokens are minted with PyJWT and a throwaway secret. The gateway never
checks the signature, so the secret only matters to tests that prove it.
"""

import time
from typing import Any, Dict, Optional
from unittest.mock import AsyncMock

import httpx
import jwt
import pytest
from fastapi.testclient import TestClient

from gateway.app.config import Settings
from gateway.app.main import create_app

from .helpers import BACKEND_URL, TEST_SECRET


@pytest.fixture
def make_token():
    """
    Factory for signed tokens.

    ``exp_delta`` is seconds from now; pass None to omit ``exp`` entirely.
    """
    def _make_token(
        exp_delta: Optional[int] = 3600,
        now: Optional[int] = None,
        **claims: Any,
    ) -> str:
        payload: Dict[str, Any] = {"sub": "admin001", "role": "COMPANY", **claims}
        if exp_delta is not None:
            payload["exp"] = (now if now is not None else int(time.time())) + exp_delta
        return jwt.encode(payload, TEST_SECRET, algorithm="HS256")

    return _make_token


@pytest.fixture
def settings():
    """Settings pointing at a fake backend"""
    return Settings(
        BACKEND_API_URL=BACKEND_URL,
        UPSTREAM_TIMEOUT_SECONDS=2.0,
        UPSTREAM_CONNECT_TIMEOUT_SECONDS=1.0,
    )


@pytest.fixture
def upstream_response():
    """Default upstream reply"""
    return httpx.Response(
        200,
        headers={"content-type": "application/json"},
        content=b'{"data": []}',
    )


@pytest.fixture
def mock_backend_client(upstream_response):
    """Create mock backend HTTP client"""
    client = AsyncMock()
    client.request = AsyncMock(return_value=upstream_response)
    return client


@pytest.fixture
def app(settings, mock_backend_client):
    """Create test FastAPI application with a few stand-in pages"""
    app = create_app(settings)
    app.state.app_state.backend_client = mock_backend_client

    @app.get("/")
    async def home():
        return {"page": "home"}

    @app.get("/dashboard")
    async def dashboard():
        return {"page": "dashboard"}

    @app.get("/merchant/list")
    async def merchant_list():
        return {"page": "merchant-list"}

    @app.get("/login")
    async def login():
        return {"page": "login"}

    @app.get("/static/app.js")
    async def static_js():
        return {"asset": "app.js"}

    @app.get("/favicon.ico")
    async def favicon():
        return {"asset": "favicon"}

    return app


@pytest.fixture
def client(app):
    """Create test client (lifespan not started; backend client is mocked)"""
    return TestClient(app, follow_redirects=False)
