"""
Session routes served by the gateway itself.

These live under the proxy prefix but are registered ahead of the
catch-all proxy route, so they are answered locally and never forwarded.
"""

import logging

from fastapi import APIRouter, Depends, Request, Response, status

from ..config import Settings
from ..models import SessionStatus
from .claims import InvalidReason, check_token
from .cookies import clear_credential, read_credential

logger = logging.getLogger(__name__)


# =============================================================================
# Router Setup
# =============================================================================

auth_router = APIRouter(
    prefix="/auth",
    tags=["authentication"],
)


def get_app_settings(request: Request) -> Settings:
    """Dependency returning the settings the application was built with."""
    return request.app.state.settings


# =============================================================================
# Session Introspection
# =============================================================================

@auth_router.get(
    "/verify",
    response_model=SessionStatus,
    response_model_exclude_none=True,
)
async def verify_session(
    request: Request,
    settings: Settings = Depends(get_app_settings),
) -> SessionStatus:
    """
    Report whether the session credential cookie is present and unexpired.

    Polled by client code to reconcile UI state with the server-held
    credential. Always answers 200; any failure reads as unauthenticated.

    Returns:
        {"valid": true} or {"valid": false, "reason": "no_token" | "expired" | "error"}
    """
    try:
        token = read_credential(request, settings.SESSION_COOKIE_NAME)
        result = check_token(token)
    except Exception as e:
        logger.error(f"Session verification failed: {e}", exc_info=True)
        return SessionStatus(valid=False, reason=InvalidReason.ERROR.value)

    if result.valid:
        return SessionStatus(valid=True)

    if result.reason is InvalidReason.MALFORMED:
        # Decode failures surface as a generic error, never with detail
        return SessionStatus(valid=False, reason=InvalidReason.ERROR.value)

    return SessionStatus(valid=False, reason=result.reason.value)


# =============================================================================
# Local Session Clear
# =============================================================================

@auth_router.delete("/session", status_code=status.HTTP_204_NO_CONTENT)
async def clear_session(
    settings: Settings = Depends(get_app_settings),
) -> Response:
    """
    Drop the credential cookie without contacting the upstream.

    Lets client code complete a logout when the upstream logout call
    cannot be made, so the route gate stops treating the browser as signed in.
    """
    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    clear_credential(
        response,
        settings.SESSION_COOKIE_NAME,
        secure=settings.SESSION_COOKIE_SECURE,
    )
    logger.info("Cleared session credential cookie")
    return response
