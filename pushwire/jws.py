"""Compact ES256 tokens for the ``vapid`` authorization scheme (RFC 8292)."""

from __future__ import annotations

import json
import time

from cryptography.hazmat.primitives.asymmetric.utils import decode_dss_signature

from pushwire.codec import encode_base64url
from pushwire.errors import MalformedSignatureError
from pushwire.vapid import VapidKeyPair

DEFAULT_LIFETIME = 86400
COORDINATE_LENGTH = 32
RAW_SIGNATURE_LENGTH = 2 * COORDINATE_LENGTH

_SEQUENCE_TAG = 0x30
_JWT_HEADER = {"typ": "JWT", "alg": "ES256"}


def _compact_json(value: dict) -> bytes:
    return json.dumps(value, separators=(",", ":")).encode("utf-8")


def der_to_raw_signature(signature: bytes) -> bytes:
    """Return the fixed 64 byte ``r || s`` form of an ECDSA P-256 signature.

    DER input (leading SEQUENCE tag) is decoded and each integer written as
    32 big-endian bytes. Anything else must already be the raw form.
    """
    if not signature:
        raise MalformedSignatureError("empty signature")
    if signature[0] != _SEQUENCE_TAG:
        if len(signature) != RAW_SIGNATURE_LENGTH:
            raise MalformedSignatureError(
                f"raw signature must be {RAW_SIGNATURE_LENGTH} bytes, got {len(signature)}"
            )
        return bytes(signature)

    try:
        r, s = decode_dss_signature(bytes(signature))
    except ValueError as exc:
        raise MalformedSignatureError(f"invalid DER signature: {exc}") from exc
    try:
        return r.to_bytes(COORDINATE_LENGTH, "big") + s.to_bytes(COORDINATE_LENGTH, "big")
    except OverflowError as exc:
        raise MalformedSignatureError(f"DER INTEGER wider than {COORDINATE_LENGTH} bytes") from exc


def build_vapid_assertion(
    keys: VapidKeyPair,
    audience: str,
    subject: str,
    *,
    now: float | None = None,
    lifetime: int = DEFAULT_LIFETIME,
) -> str:
    issued_at = int(time.time() if now is None else now)
    claims = {"aud": audience, "exp": issued_at + lifetime, "sub": subject}
    signing_input = f"{encode_base64url(_compact_json(_JWT_HEADER))}.{encode_base64url(_compact_json(claims))}"
    signature = der_to_raw_signature(keys.sign(signing_input.encode("ascii")))
    return f"{signing_input}.{encode_base64url(signature)}"


def vapid_authorization(token: str, public_key_b64: str) -> str:
    return f"vapid t={token}, k={public_key_b64}"
