from __future__ import annotations

import asyncio
import logging
from typing import Literal

from pushwire.codec import decode_base64url
from pushwire.crypto import CryptoProvider, default_provider
from pushwire.encryption import CONTENT_ENCODING, encrypt
from pushwire.errors import DecodeError, DeliveryError, EncryptionError, SubscriptionStoreError
from pushwire.jws import build_vapid_assertion, vapid_authorization
from pushwire.models import DispatchRequest, DispatchResult, PushSubscription
from pushwire.store import SubscriptionStore
from pushwire.transport import HttpClient, HttpResponse
from pushwire.vapid import VapidKeyPair, audience_for

logger = logging.getLogger(__name__)

DEFAULT_TTL = 86400
DEFAULT_URGENCY = "high"
SUCCESS_STATUSES = frozenset({200, 201})
GONE_STATUSES = frozenset({404, 410})

Outcome = Literal["sent", "expired", "failed"]


class Dispatcher:
    """Sends one notification to every subscription a recipient has registered.

    Failures that only affect one subscription are logged and counted; they
    never abort the batch. Failures in shared setup (reading the store,
    signing the VAPID assertion) propagate before anything is sent.
    """

    def __init__(
        self,
        keys: VapidKeyPair,
        subject: str,
        store: SubscriptionStore,
        http_client: HttpClient,
        *,
        provider: CryptoProvider | None = None,
        send_timeout: float = 10.0,
        max_concurrency: int = 4,
        ttl: int = DEFAULT_TTL,
        urgency: str = DEFAULT_URGENCY,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self.keys = keys
        self.subject = subject
        self.store = store
        self.http_client = http_client
        self.provider = provider or default_provider
        self.send_timeout = send_timeout
        self.max_concurrency = max_concurrency
        self.ttl = ttl
        self.urgency = urgency

    async def dispatch(self, request: DispatchRequest) -> DispatchResult:
        try:
            subscriptions = await self.store.list_subscriptions(request.recipient_id)
        except SubscriptionStoreError:
            raise
        except Exception as exc:
            raise SubscriptionStoreError(f"cannot list subscriptions for {request.recipient_id}: {exc}") from exc

        if not subscriptions:
            logger.info("No push subscriptions for recipient %s", request.recipient_id)
            return DispatchResult.no_subscriptions()

        payload = request.notification().to_bytes()
        tokens = await self._assertions(subscriptions)
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def deliver(subscription: PushSubscription) -> Outcome:
            async with semaphore:
                return await self._deliver(subscription, payload, tokens)

        outcomes = await asyncio.gather(*(deliver(subscription) for subscription in subscriptions))
        result = DispatchResult(
            sent=outcomes.count("sent"),
            expired=outcomes.count("expired"),
            failed=outcomes.count("failed"),
        )
        logger.info(
            "Push batch for %s: %d sent, %d expired, %d failed",
            request.recipient_id,
            result.sent,
            result.expired,
            result.failed,
        )
        return result

    async def _assertions(self, subscriptions: list[PushSubscription]) -> dict[str, str]:
        audiences: set[str] = set()
        for subscription in subscriptions:
            try:
                audiences.add(audience_for(subscription.endpoint))
            except ValueError:
                continue

        tokens: dict[str, str] = {}
        for audience in sorted(audiences):
            tokens[audience] = await asyncio.to_thread(build_vapid_assertion, self.keys, audience, self.subject)
        return tokens

    def _encrypt(self, subscription: PushSubscription, payload: bytes) -> bytes:
        try:
            client_public_key = decode_base64url(subscription.p256dh)
            client_auth = decode_base64url(subscription.auth)
        except DecodeError as exc:
            raise EncryptionError(f"subscription keys are not base64url: {exc}") from exc
        return encrypt(payload, client_public_key, client_auth, self.provider)

    def _headers(self, token: str) -> dict[str, str]:
        return {
            "Authorization": vapid_authorization(token, self.keys.public_key_b64),
            "Content-Type": "application/octet-stream",
            "Content-Encoding": CONTENT_ENCODING,
            "TTL": str(self.ttl),
            "Urgency": self.urgency,
        }

    async def _send(self, subscription: PushSubscription, headers: dict[str, str], body: bytes) -> HttpResponse:
        try:
            return await asyncio.wait_for(
                self.http_client.post(
                    subscription.endpoint,
                    headers=headers,
                    content=body,
                    timeout=self.send_timeout,
                ),
                timeout=self.send_timeout,
            )
        except TimeoutError as exc:
            raise DeliveryError(f"timed out after {self.send_timeout}s") from exc

    async def _deliver(self, subscription: PushSubscription, payload: bytes, tokens: dict[str, str]) -> Outcome:
        try:
            return await self._attempt(subscription, payload, tokens)
        except Exception:
            logger.exception("Unexpected error pushing to subscription %s", subscription.id)
            return "failed"

    async def _attempt(self, subscription: PushSubscription, payload: bytes, tokens: dict[str, str]) -> Outcome:
        try:
            token = tokens[audience_for(subscription.endpoint)]
        except (KeyError, ValueError):
            logger.warning("Skipping subscription %s: invalid endpoint %r", subscription.id, subscription.endpoint)
            return "failed"

        try:
            body = await asyncio.to_thread(self._encrypt, subscription, payload)
        except EncryptionError as exc:
            logger.warning("Skipping subscription %s: %s", subscription.id, exc)
            return "failed"

        try:
            response = await self._send(subscription, self._headers(token), body)
        except DeliveryError as exc:
            logger.warning("Push error for subscription %s: %s", subscription.id, exc)
            return "failed"

        if response.status_code in SUCCESS_STATUSES:
            return "sent"
        if response.status_code in GONE_STATUSES:
            logger.info(
                "Push subscription %s expired (%d); deleting endpoint=%s",
                subscription.id,
                response.status_code,
                subscription.endpoint,
            )
            await self._forget(subscription)
            return "expired"

        logger.warning(
            "Push failed for %s: %d %s",
            subscription.endpoint,
            response.status_code,
            response.text[:200],
        )
        return "failed"

    async def _forget(self, subscription: PushSubscription) -> None:
        try:
            await self.store.delete_subscription(subscription.id)
        except Exception:
            logger.exception("Failed to delete expired subscription %s", subscription.id)
