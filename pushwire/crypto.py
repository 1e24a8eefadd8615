from __future__ import annotations

import os
from typing import Protocol

from cryptography.hazmat.primitives import hashes, hmac, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

CURVE = ec.SECP256R1()


class CryptoProvider(Protocol):
    """Primitive operations used by the VAPID and aes128gcm code.

    ECDSA signatures may come back either DER encoded or as raw ``r || s``;
    callers normalise them.
    """

    def generate_key_pair(self) -> ec.EllipticCurvePrivateKey: ...

    def public_bytes(self, key: ec.EllipticCurvePrivateKey | ec.EllipticCurvePublicKey) -> bytes: ...

    def load_public_key(self, raw: bytes) -> ec.EllipticCurvePublicKey: ...

    def load_private_key(self, d: bytes, public_raw: bytes) -> ec.EllipticCurvePrivateKey: ...

    def ecdh(self, private_key: ec.EllipticCurvePrivateKey, public_key: ec.EllipticCurvePublicKey) -> bytes: ...

    def hmac_sha256(self, key: bytes, data: bytes) -> bytes: ...

    def aes128gcm_encrypt(self, key: bytes, nonce: bytes, plaintext: bytes) -> bytes: ...

    def ecdsa_sign(self, private_key: ec.EllipticCurvePrivateKey, data: bytes) -> bytes: ...

    def random_bytes(self, length: int) -> bytes: ...


class CryptographyProvider:
    """CryptoProvider backed by the ``cryptography`` package (DER signatures)."""

    def generate_key_pair(self) -> ec.EllipticCurvePrivateKey:
        return ec.generate_private_key(CURVE)

    def public_bytes(self, key: ec.EllipticCurvePrivateKey | ec.EllipticCurvePublicKey) -> bytes:
        if isinstance(key, ec.EllipticCurvePrivateKey):
            key = key.public_key()
        return key.public_bytes(serialization.Encoding.X962, serialization.PublicFormat.UncompressedPoint)

    def load_public_key(self, raw: bytes) -> ec.EllipticCurvePublicKey:
        return ec.EllipticCurvePublicKey.from_encoded_point(CURVE, raw)

    def load_private_key(self, d: bytes, public_raw: bytes) -> ec.EllipticCurvePrivateKey:
        x = int.from_bytes(public_raw[1:33], "big")
        y = int.from_bytes(public_raw[33:65], "big")
        public_numbers = ec.EllipticCurvePublicNumbers(x, y, CURVE)
        private_numbers = ec.EllipticCurvePrivateNumbers(int.from_bytes(d, "big"), public_numbers)
        return private_numbers.private_key()

    def ecdh(self, private_key: ec.EllipticCurvePrivateKey, public_key: ec.EllipticCurvePublicKey) -> bytes:
        return private_key.exchange(ec.ECDH(), public_key)

    def hmac_sha256(self, key: bytes, data: bytes) -> bytes:
        mac = hmac.HMAC(key, hashes.SHA256())
        mac.update(data)
        return mac.finalize()

    def aes128gcm_encrypt(self, key: bytes, nonce: bytes, plaintext: bytes) -> bytes:
        return AESGCM(key).encrypt(nonce, plaintext, None)

    def ecdsa_sign(self, private_key: ec.EllipticCurvePrivateKey, data: bytes) -> bytes:
        return private_key.sign(data, ec.ECDSA(hashes.SHA256()))

    def random_bytes(self, length: int) -> bytes:
        return os.urandom(length)


default_provider = CryptographyProvider()
