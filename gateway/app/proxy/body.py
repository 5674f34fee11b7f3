"""
Request body forwarding.

An inbound body is read into exactly one of four kinds, chosen by the
declared Content-Type, and each kind knows how to hand itself to httpx:

    EMPTY       GET/HEAD, or no bytes at all
    TEXT        application/json and text/*, valid UTF-8
    BINARY      everything else, byte-for-byte
    MULTIPART   multipart/form-data, parsed and re-emitted with a fresh boundary

A multipart form with no parts is re-emitted as a bare closing delimiter
under its own boundary, since httpx only switches to multipart encoding
when it has parts to write.
"""

import secrets
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union

from starlette.datastructures import UploadFile
from starlette.requests import Request

BODYLESS_METHODS = frozenset({"GET", "HEAD"})

# (field name, (filename or None, content, content type or None))
MultipartPart = Tuple[str, Tuple[Optional[str], bytes, Optional[str]]]


class BodyKind(str, Enum):
    EMPTY = "empty"
    TEXT = "text"
    BINARY = "binary"
    MULTIPART = "multipart"


@dataclass(frozen=True)
class ForwardBody:
    kind: BodyKind
    content: Union[str, bytes, None] = None
    parts: Tuple[MultipartPart, ...] = ()
    # Set only when the body carries its own multipart boundary
    content_type: Optional[str] = None

    def request_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments for ``httpx.AsyncClient.request``."""
        if self.kind is BodyKind.MULTIPART:
            # Passing every part through ``files`` keeps httpx on multipart
            # encoding even when the form has no file uploads
            if self.parts:
                return {"files": list(self.parts)}
            return {"content": self.content}
        if self.kind in (BodyKind.TEXT, BodyKind.BINARY):
            return {"content": self.content}
        return {}


EMPTY_BODY = ForwardBody(BodyKind.EMPTY)


def is_multipart(content_type: Optional[str]) -> bool:
    return bool(content_type) and "multipart/form-data" in content_type.lower()


def is_text(content_type: Optional[str]) -> bool:
    if not content_type:
        return False
    content_type = content_type.lower()
    return "application/json" in content_type or content_type.startswith("text/")


async def read_forward_body(request: Request) -> ForwardBody:
    """
    Read the inbound body into the kind its Content-Type declares.

    Args:
        request: Inbound request

    Returns:
        ForwardBody ready to be passed to the upstream client
    """
    if request.method.upper() in BODYLESS_METHODS:
        return EMPTY_BODY

    content_type = request.headers.get("content-type")

    if is_multipart(content_type):
        return await _read_multipart(request)

    raw = await request.body()
    if not raw:
        return EMPTY_BODY

    if is_text(content_type):
        try:
            return ForwardBody(BodyKind.TEXT, content=raw.decode("utf-8"))
        except UnicodeDecodeError:
            pass

    return ForwardBody(BodyKind.BINARY, content=raw)


async def _read_multipart(request: Request) -> ForwardBody:
    form = await request.form()
    try:
        parts = []
        for name, value in form.multi_items():
            if isinstance(value, UploadFile):
                data = await value.read()
                parts.append((name, (value.filename, data, value.content_type)))
            else:
                parts.append((name, (None, value.encode("utf-8"), None)))
    finally:
        await form.close()

    if not parts:
        return empty_multipart_body()
    return ForwardBody(BodyKind.MULTIPART, parts=tuple(parts))


def empty_multipart_body() -> ForwardBody:
    boundary = secrets.token_hex(16)
    return ForwardBody(
        BodyKind.MULTIPART,
        content=f"--{boundary}--\r\n".encode("ascii"),
        content_type=f"multipart/form-data; boundary={boundary}",
    )
