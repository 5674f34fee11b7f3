"""
Credential Claim Decoding
=========================

Parses the claims segment of a compact signed token (``header.claims.signature``)
and answers the one question the gateway asks of it: has it expired?

Signatures are NOT verified here. The backend API verifies signature,
revocation and roles on every proxied call; this module only provides the
structural and expiry check used by the route gate and the session
introspection endpoint.
"""

import json
import logging
import math
import time
from enum import Enum
from typing import Any, Dict, NamedTuple, Optional

from jose.utils import base64url_decode

from ..errors import ExpiredToken, MalformedToken

logger = logging.getLogger(__name__)


class InvalidReason(str, Enum):
    """Why a credential was judged invalid."""
    NO_TOKEN = "no_token"
    MALFORMED = "malformed"
    EXPIRED = "expired"
    ERROR = "error"


class TokenCheck(NamedTuple):
    """Diagnostic result of checking a credential."""
    valid: bool
    reason: Optional[InvalidReason] = None


def _now() -> int:
    return int(time.time())


# =============================================================================
# Decoding
# =============================================================================

def decode_claims(token: str) -> Dict[str, Any]:
    """
    Decode the claims of a compact token without verifying its signature.

    Args:
        token: Credential string

    Returns:
        Claims mapping decoded from the middle segment

    Raises:
        MalformedToken: If the token is not exactly three non-empty
            ``.``-separated segments, or the middle segment is not
            base64url-encoded JSON object
    """
    if not isinstance(token, str):
        raise MalformedToken("Token must be a string")

    segments = token.split(".")
    if len(segments) != 3 or not all(segments):
        raise MalformedToken(
            f"Expected 3 non-empty segments, got {len(segments)}"
        )

    try:
        payload = base64url_decode(segments[1].encode("ascii"))
        claims = json.loads(payload)
    except (ValueError, RecursionError) as e:
        # RecursionError: JSON nested past the parser limit
        raise MalformedToken(f"Claims segment could not be decoded: {e!r}") from e

    if not isinstance(claims, dict):
        raise MalformedToken("Claims segment is not a JSON object")

    exp = claims.get("exp")
    if exp is not None:
        if isinstance(exp, bool) or not isinstance(exp, (int, float)):
            raise MalformedToken("exp claim is not numeric")
        if not math.isfinite(exp):
            raise MalformedToken("exp claim is not finite")

    return claims


# =============================================================================
# Expiry
# =============================================================================

def is_expired(claims: Dict[str, Any], now: Optional[int] = None) -> bool:
    """
    Check whether decoded claims have expired.

    A token whose ``exp`` equals ``now`` is already expired. Claims without
    ``exp`` never expire at this level; callers should not treat that as a
    grant of anything.
    """
    exp = claims.get("exp")
    if exp is None:
        return False
    if now is None:
        now = _now()
    return exp <= now


def require_unexpired(claims: Dict[str, Any], now: Optional[int] = None) -> Dict[str, Any]:
    """Return ``claims`` unchanged, raising ExpiredToken if they have expired."""
    if now is None:
        now = _now()
    if is_expired(claims, now):
        raise ExpiredToken(claims["exp"], now)
    return claims


def check_token(token: Optional[str], now: Optional[int] = None) -> TokenCheck:
    """
    Check a credential and keep the reason it failed.

    Never raises for bad input: missing, malformed and expired tokens are
    all reported through the returned TokenCheck.
    """
    if not token:
        return TokenCheck(False, InvalidReason.NO_TOKEN)

    try:
        require_unexpired(decode_claims(token), now)
    except MalformedToken as e:
        logger.debug(f"Malformed credential: {e}")
        return TokenCheck(False, InvalidReason.MALFORMED)
    except ExpiredToken as e:
        logger.debug(f"Expired credential: {e}")
        return TokenCheck(False, InvalidReason.EXPIRED)

    return TokenCheck(True)


def is_valid(token: Optional[str], now: Optional[int] = None) -> bool:
    """True iff the token is present, well-formed and unexpired."""
    return check_token(token, now).valid


__all__ = [
    "InvalidReason",
    "TokenCheck",
    "decode_claims",
    "is_expired",
    "require_unexpired",
    "check_token",
    "is_valid",
]
