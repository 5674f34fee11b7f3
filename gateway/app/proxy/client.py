"""
Upstream HTTP client.

One ``httpx.AsyncClient`` is shared by every proxied request for connection
pooling. Its cookie jar refuses to store or send anything: credentials
belong to individual browsers and must never leak from one proxied
response into another user's request.
"""

import asyncio
import logging
from http.cookiejar import CookieJar, DefaultCookiePolicy
from typing import Any, Optional

import httpx
from starlette.requests import ClientDisconnect, Request

from ..config import Settings

logger = logging.getLogger(__name__)


def create_upstream_client(
    settings: Settings,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """
    Create the shared upstream client.

    Args:
        settings: Application settings (timeouts)
        transport: Optional transport override

    Returns:
        Configured httpx.AsyncClient with cookie persistence disabled
    """
    timeout = httpx.Timeout(
        settings.UPSTREAM_TIMEOUT_SECONDS,
        connect=settings.UPSTREAM_CONNECT_TIMEOUT_SECONDS,
    )
    no_cookies = CookieJar(policy=DefaultCookiePolicy(allowed_domains=[]))

    return httpx.AsyncClient(
        timeout=timeout,
        cookies=no_cookies,
        follow_redirects=False,
        transport=transport,
    )


async def _wait_for_disconnect(request: Request, poll_interval: float) -> None:
    while True:
        await asyncio.sleep(poll_interval)
        if await request.is_disconnected():
            return


async def send_upstream(
    client: httpx.AsyncClient,
    request: Request,
    method: str,
    url: str,
    poll_interval: float,
    **kwargs: Any,
) -> httpx.Response:
    """
    Send one upstream request, abandoning it if the browser disconnects.

    Disconnect detection is best effort: if the watcher itself fails the
    upstream call simply runs to completion.

    Raises:
        ClientDisconnect: If the browser went away first
        httpx.RequestError: On transport failure or timeout
    """
    upstream = asyncio.ensure_future(client.request(method, url, **kwargs))
    watcher = asyncio.ensure_future(_wait_for_disconnect(request, poll_interval))

    try:
        done, _ = await asyncio.wait(
            {upstream, watcher},
            return_when=asyncio.FIRST_COMPLETED,
        )

        if upstream in done:
            return upstream.result()

        if watcher.exception() is None:
            upstream.cancel()
            raise ClientDisconnect()

        logger.debug("Disconnect watcher failed", exc_info=watcher.exception())
        return await upstream
    finally:
        for task in (upstream, watcher):
            if not task.done():
                task.cancel()
