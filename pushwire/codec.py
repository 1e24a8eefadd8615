from __future__ import annotations

import base64
import binascii
import re

from pushwire.errors import DecodeError

_BASE64URL_RE = re.compile(r"^[A-Za-z0-9_-]*$")


def encode_base64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def decode_base64url(value: str) -> bytes:
    if not isinstance(value, str) or not _BASE64URL_RE.match(value):
        raise DecodeError("value is not base64url encoded")
    if len(value) % 4 == 1:
        raise DecodeError(f"invalid base64url length: {len(value)}")
    padded = value + "=" * (-len(value) % 4)
    try:
        return base64.urlsafe_b64decode(padded)
    except (binascii.Error, ValueError) as exc:
        raise DecodeError(str(exc)) from exc
