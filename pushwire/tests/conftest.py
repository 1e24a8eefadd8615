from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
from cryptography.hazmat.primitives.asymmetric import ec
from httpx import ASGITransport, AsyncClient

from pushwire.app import create_app
from pushwire.codec import encode_base64url
from pushwire.config import Settings
from pushwire.crypto import CryptographyProvider
from pushwire.store import JsonSubscriptionStore
from pushwire.tests.support import API_KEY, RecordingHttpClient
from pushwire.vapid import VapidKeyPair, export_vapid_keys, generate_vapid_keys


@pytest.fixture
def vapid_keys() -> VapidKeyPair:
    return generate_vapid_keys()


@pytest.fixture
def subscriber_key() -> ec.EllipticCurvePrivateKey:
    return ec.generate_private_key(ec.SECP256R1())


@pytest.fixture
def subscriber(subscriber_key: ec.EllipticCurvePrivateKey) -> dict[str, str]:
    return {
        "p256dh": encode_base64url(CryptographyProvider().public_bytes(subscriber_key)),
        "auth": encode_base64url(b"\x5a" * 16),
    }


@pytest.fixture
def settings(vapid_keys: VapidKeyPair) -> Settings:
    exported = export_vapid_keys(vapid_keys)
    return Settings(
        vapid_public_key=exported["publicKey"],
        vapid_private_key=exported["privateKey"],
        api_key=API_KEY,
        vapid_subject="mailto:clinic@example.com",
        send_timeout=0.5,
    )


@pytest.fixture
def http_client() -> RecordingHttpClient:
    return RecordingHttpClient()


@pytest.fixture
def store() -> JsonSubscriptionStore:
    return JsonSubscriptionStore()


@pytest_asyncio.fixture
async def client(
    settings: Settings,
    store: JsonSubscriptionStore,
    http_client: RecordingHttpClient,
) -> AsyncIterator[AsyncClient]:
    app = create_app(settings, store=store, http_client=http_client)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as test_client:
        yield test_client
