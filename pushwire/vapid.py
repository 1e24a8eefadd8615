from __future__ import annotations

from dataclasses import dataclass, field
from urllib.parse import urlsplit

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives.asymmetric import ec

from pushwire.codec import decode_base64url, encode_base64url
from pushwire.crypto import CryptoProvider, default_provider
from pushwire.errors import DecodeError, KeyImportError, SigningError

PUBLIC_KEY_LENGTH = 65
PRIVATE_KEY_LENGTH = 32
UNCOMPRESSED_POINT_MARKER = 0x04


@dataclass(frozen=True, slots=True)
class VapidKeyPair:
    """Server identity: a P-256 key pair plus its raw public point."""

    private_key: ec.EllipticCurvePrivateKey = field(repr=False)
    public_key: bytes
    provider: CryptoProvider = field(default=default_provider, repr=False, compare=False)

    @property
    def public_key_b64(self) -> str:
        return encode_base64url(self.public_key)

    def sign(self, data: bytes) -> bytes:
        try:
            return self.provider.ecdsa_sign(self.private_key, data)
        except Exception as exc:
            raise SigningError(f"ECDSA signing failed: {exc}") from exc


def _decode_exact(value: str, length: int, label: str) -> bytes:
    try:
        raw = decode_base64url(value)
    except DecodeError as exc:
        raise KeyImportError(f"VAPID {label} key is not valid base64url") from exc
    if len(raw) != length:
        raise KeyImportError(f"VAPID {label} key must decode to {length} bytes, got {len(raw)}")
    return raw


def import_vapid_keys(
    public_key_b64: str,
    private_key_b64: str,
    provider: CryptoProvider | None = None,
) -> VapidKeyPair:
    provider = provider or default_provider
    public_raw = _decode_exact(public_key_b64, PUBLIC_KEY_LENGTH, "public")
    private_raw = _decode_exact(private_key_b64, PRIVATE_KEY_LENGTH, "private")
    if public_raw[0] != UNCOMPRESSED_POINT_MARKER:
        raise KeyImportError("VAPID public key is not an uncompressed P-256 point")

    try:
        provider.load_public_key(public_raw)
        private_key = provider.load_private_key(private_raw, public_raw)
    except (ValueError, UnsupportedAlgorithm) as exc:
        raise KeyImportError(f"VAPID key material rejected: {exc}") from exc

    return VapidKeyPair(private_key=private_key, public_key=public_raw, provider=provider)


def generate_vapid_keys(provider: CryptoProvider | None = None) -> VapidKeyPair:
    provider = provider or default_provider
    private_key = provider.generate_key_pair()
    return VapidKeyPair(
        private_key=private_key,
        public_key=provider.public_bytes(private_key),
        provider=provider,
    )


def export_vapid_keys(keys: VapidKeyPair) -> dict[str, str]:
    d = keys.private_key.private_numbers().private_value.to_bytes(PRIVATE_KEY_LENGTH, "big")
    return {"publicKey": keys.public_key_b64, "privateKey": encode_base64url(d)}


def audience_for(endpoint: str) -> str:
    parts = urlsplit(endpoint)
    if not parts.scheme or not parts.netloc:
        raise ValueError(f"push endpoint has no origin: {endpoint!r}")
    return f"{parts.scheme}://{parts.netloc}"
