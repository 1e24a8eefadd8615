"""Message encryption for Web Push (RFC 8291 over the RFC 8188 aes128gcm coding).

Every call draws a new ephemeral ECDH key pair and a new salt, so two
encryptions of the same payload for the same subscriber never match.
"""

from __future__ import annotations

import struct

from cryptography.exceptions import UnsupportedAlgorithm

from pushwire.crypto import CryptoProvider, default_provider
from pushwire.errors import EncryptionError

CONTENT_ENCODING = "aes128gcm"
SALT_LENGTH = 16
KEY_LENGTH = 16
NONCE_LENGTH = 12
TAG_LENGTH = 16
PUBLIC_KEY_LENGTH = 65
AUTH_SECRET_LENGTH = 16
RECORD_OVERHEAD = 86
RECORD_DELIMITER = b"\x02"
HEADER_LENGTH = SALT_LENGTH + 4 + 1 + PUBLIC_KEY_LENGTH

KEY_INFO = b"WebPush: info\x00"
CEK_INFO = b"Content-Encoding: aes128gcm\x00"
NONCE_INFO = b"Content-Encoding: nonce\x00"


def _expand(provider: CryptoProvider, prk: bytes, info: bytes, length: int) -> bytes:
    # One HKDF-Expand round is enough for every output length used here.
    return provider.hmac_sha256(prk, info + b"\x01")[:length]


def derive_content_keys(
    provider: CryptoProvider,
    shared_secret: bytes,
    auth_secret: bytes,
    salt: bytes,
    client_public_key: bytes,
    server_public_key: bytes,
) -> tuple[bytes, bytes]:
    prk_key = provider.hmac_sha256(auth_secret, shared_secret)
    ikm = _expand(provider, prk_key, KEY_INFO + client_public_key + server_public_key, 32)
    prk = provider.hmac_sha256(salt, ikm)
    return _expand(provider, prk, CEK_INFO, KEY_LENGTH), _expand(provider, prk, NONCE_INFO, NONCE_LENGTH)


def encrypt(
    payload: bytes,
    client_public_key: bytes,
    client_auth: bytes,
    provider: CryptoProvider | None = None,
) -> bytes:
    """Encrypt ``payload`` for one subscription and return the aes128gcm body."""
    provider = provider or default_provider
    if len(client_public_key) != PUBLIC_KEY_LENGTH:
        raise EncryptionError(f"subscriber key must be {PUBLIC_KEY_LENGTH} bytes, got {len(client_public_key)}")
    if len(client_auth) != AUTH_SECRET_LENGTH:
        raise EncryptionError(f"auth secret must be {AUTH_SECRET_LENGTH} bytes, got {len(client_auth)}")

    try:
        client_key = provider.load_public_key(client_public_key)
        ephemeral_key = provider.generate_key_pair()
        server_public_key = provider.public_bytes(ephemeral_key)
        shared_secret = provider.ecdh(ephemeral_key, client_key)
        salt = provider.random_bytes(SALT_LENGTH)
        cek, nonce = derive_content_keys(
            provider, shared_secret, client_auth, salt, client_public_key, server_public_key
        )
        ciphertext = provider.aes128gcm_encrypt(cek, nonce, payload + RECORD_DELIMITER)
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        raise EncryptionError(f"payload encryption failed: {exc}") from exc

    header = salt + struct.pack(">IB", len(ciphertext) + RECORD_OVERHEAD, len(server_public_key)) + server_public_key
    return header + ciphertext
