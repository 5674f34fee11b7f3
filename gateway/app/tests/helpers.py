"""Token and URL helpers shared by the gateway tests."""

import base64
import json
from typing import Any

TEST_SECRET = "test-signing-secret-not-checked-by-gateway"
BACKEND_URL = "http://backend:18080/webadmin/api/v1"


def encode_segment_raw(raw: bytes) -> str:
    """base64url-encode bytes without padding, as a token segment."""
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def encode_segment(obj: Any) -> str:
    """base64url-encode a JSON value without padding, as a token segment."""
    return encode_segment_raw(json.dumps(obj).encode("utf-8"))
