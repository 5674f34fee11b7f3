"""
Proxy Routes - Upstream Request Forwarding
==========================================

Catch-all route forwarding every call under the proxy prefix to the
upstream API.

Credential Transport:
---------------------
The browser only ever holds the credential in an HTTP-only cookie. This hop
terminates that transport and starts the upstream one:

    browser  --Cookie: access_token=...-->  gateway
    gateway  --Cookie: access_token=...-->  upstream   (default)
    gateway  --Authorization: Bearer ...--> upstream   (UPSTREAM_CREDENTIAL_TRANSPORT=bearer)

Responses are relayed with their status, Content-Type, body and every
Set-Cookie header kept separate, which is how login and logout reach the
browser.

Failure Model:
--------------
No retries. A transport failure or timeout becomes one generic 500; the
upstream address and error detail go to the server log only.
"""

import logging
from typing import Dict, Optional

import httpx
from fastapi import APIRouter, Depends, Request
from starlette.exceptions import HTTPException
from starlette.requests import ClientDisconnect
from starlette.responses import Response

from ..auth.cookies import read_credential
from ..auth.routes import get_app_settings
from ..config import Settings
from ..errors import UpstreamUnreachable
from .body import ForwardBody, is_multipart, read_forward_body
from .client import send_upstream

logger = logging.getLogger(__name__)

PROXY_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE"]

# Not a real HTTP status; marks requests abandoned by the browser in access logs
CLIENT_CLOSED_REQUEST = 499

# Create router
proxy_router = APIRouter()


# ============================================================================
# Dependencies
# ============================================================================

def get_backend_client(request: Request) -> httpx.AsyncClient:
    """
    Dependency to get the upstream HTTP client from app state.

    Raises:
        UpstreamUnreachable: If the client has not been initialized
    """
    app_state = getattr(request.app.state, "app_state", None)
    client = getattr(app_state, "backend_client", None)
    if client is None:
        raise UpstreamUnreachable("Backend client not initialized")
    return client


# ============================================================================
# Request Building
# ============================================================================

def build_upstream_url(request: Request, settings: Settings) -> str:
    """
    Map an inbound proxy URL onto the upstream base.

    The prefix is stripped from the raw (still percent-encoded) path and the
    query string is appended verbatim.
    """
    raw_path = request.scope.get("raw_path")
    if raw_path:
        path = raw_path.decode("latin-1").split("?", 1)[0]
    else:
        path = request.url.path

    prefix = settings.PROXY_PREFIX
    if path == prefix or path.startswith(prefix + "/"):
        path = path[len(prefix):]

    url = f"{settings.backend_api_url_str}{path}"
    query = request.url.query
    if query:
        url = f"{url}?{query}"
    return url


def build_upstream_headers(
    request: Request,
    token: Optional[str],
    settings: Settings,
    body: Optional[ForwardBody] = None,
) -> Dict[str, str]:
    """
    Build headers for the upstream request.

    Only Content-Type and the credential are forwarded. A multipart
    Content-Type is dropped because its boundary belongs to the inbound
    body; httpx writes a new one, unless the forwarded body brings its own.
    """
    headers: Dict[str, str] = {}

    content_type = request.headers.get("content-type")
    if body is not None and body.content_type:
        headers["Content-Type"] = body.content_type
    elif content_type and not is_multipart(content_type):
        headers["Content-Type"] = content_type

    if token:
        if settings.UPSTREAM_CREDENTIAL_TRANSPORT == "bearer":
            headers["Authorization"] = f"Bearer {token}"
        else:
            headers["Cookie"] = f"{settings.SESSION_COOKIE_NAME}={token}"

    return headers


def build_client_response(upstream: httpx.Response) -> Response:
    """
    Relay an upstream response to the browser.

    Every Set-Cookie header is appended on its own; folding them into one
    header would break responses that set one cookie and clear another.
    """
    response = Response(content=upstream.content, status_code=upstream.status_code)

    content_type = upstream.headers.get("content-type")
    if content_type:
        response.headers["content-type"] = content_type

    for cookie in upstream.headers.get_list("set-cookie"):
        response.headers.append("set-cookie", cookie)

    return response


# ============================================================================
# Proxy Endpoint
# ============================================================================

@proxy_router.api_route(
    "/{path:path}",
    methods=PROXY_METHODS,
    include_in_schema=False,
)
async def proxy_request(
    request: Request,
    path: str,
    settings: Settings = Depends(get_app_settings),
    backend_client: httpx.AsyncClient = Depends(get_backend_client),
) -> Response:
    """
    Forward a request to the upstream API and relay its response.

    Raises:
        UpstreamUnreachable: On any transport failure (rendered as a generic 500)
    """
    method = request.method.upper()
    target_url = build_upstream_url(request, settings)
    token = read_credential(request, settings.SESSION_COOKIE_NAME)

    logger.info(
        f"Proxying {method} /{path}",
        extra={"has_credential": token is not None},
    )
    if token:
        logger.debug(f"Credential prefix: {token[:8]}...")

    try:
        body = await read_forward_body(request)
        upstream = await send_upstream(
            backend_client,
            request,
            method,
            target_url,
            settings.DISCONNECT_POLL_INTERVAL_SECONDS,
            headers=build_upstream_headers(request, token, settings, body),
            **body.request_kwargs(),
        )

    except ClientDisconnect:
        logger.info(f"Client disconnected during {method} /{path}")
        return Response(status_code=CLIENT_CLOSED_REQUEST)

    except httpx.TimeoutException as e:
        raise UpstreamUnreachable(f"Timeout calling {target_url}: {e!r}") from e

    except httpx.RequestError as e:
        raise UpstreamUnreachable(f"Transport error calling {target_url}: {e!r}") from e

    except HTTPException:
        # Re-raise HTTP exceptions (e.g. unparseable multipart body)
        raise

    except Exception as e:
        logger.error(f"Unexpected error proxying {method} /{path}: {e}", exc_info=True)
        raise UpstreamUnreachable(f"Unexpected error calling {target_url}: {e!r}") from e

    if not upstream.is_success:
        logger.warning(
            f"Upstream responded {upstream.status_code} for {method} /{path}",
            extra={"body": upstream.content[:500].decode("utf-8", errors="replace")},
        )

    return build_client_response(upstream)
