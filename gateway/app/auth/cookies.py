"""
Session credential cookie access.

The credential only ever travels in an HTTP-only cookie scoped to ``/``;
these helpers are the single place that reads it from a request or writes
it onto a response. They hold no state of their own.
"""

from typing import Optional

from starlette.requests import HTTPConnection
from starlette.responses import Response

DEFAULT_COOKIE_NAME = "access_token"
DEFAULT_MAX_AGE_SECONDS = 60 * 60 * 24 * 7


def read_credential(
    request: HTTPConnection,
    cookie_name: str = DEFAULT_COOKIE_NAME,
) -> Optional[str]:
    """
    Read the credential from the request's cookie jar.

    Returns:
        Cookie value, or None if the cookie is missing or empty
    """
    return request.cookies.get(cookie_name) or None


def write_credential(
    response: Response,
    token: str,
    cookie_name: str = DEFAULT_COOKIE_NAME,
    max_age: int = DEFAULT_MAX_AGE_SECONDS,
    secure: bool = False,
) -> None:
    """Attach a Set-Cookie header carrying the credential."""
    response.set_cookie(
        key=cookie_name,
        value=token,
        max_age=max_age,
        path="/",
        secure=secure,
        httponly=True,
        samesite="lax",
    )


def clear_credential(
    response: Response,
    cookie_name: str = DEFAULT_COOKIE_NAME,
    secure: bool = False,
) -> None:
    """Attach a Set-Cookie header that deletes the credential (Max-Age=0)."""
    response.delete_cookie(
        key=cookie_name,
        path="/",
        secure=secure,
        httponly=True,
        samesite="lax",
    )
