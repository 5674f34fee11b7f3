"""
Gateway Exceptions
==================

Exception taxonomy shared by the claim decoder, the route gate and the
request proxy.

Token problems (MalformedToken, ExpiredToken) are always resolved locally
into a boolean or a redirect and never reach the client. Transport problems
(UpstreamUnreachable) are converted into a generic error response by the
handler registered in the application factory.
"""


class GatewayError(Exception):
    """Base exception for gateway errors"""
    pass


class MalformedToken(GatewayError):
    """Credential is not a three-segment token with a JSON object payload"""
    pass


class ExpiredToken(GatewayError):
    """Credential claims parse but the exp claim has passed"""

    def __init__(self, exp: float, now: int):
        super().__init__(f"Token expired at {exp} (now {now})")
        self.exp = exp
        self.now = now


class UpstreamUnreachable(GatewayError):
    """
    The backend API could not be reached (connection failure, timeout, or
    any other error raised while forwarding).

    The message carries upstream details for server-side logs only.
    """
    pass


__all__ = [
    "GatewayError",
    "MalformedToken",
    "ExpiredToken",
    "UpstreamUnreachable",
]
