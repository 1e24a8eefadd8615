from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Protocol

from pydantic import ValidationError

from pushwire.errors import SubscriptionStoreError
from pushwire.models import PushSubscription


class SubscriptionStore(Protocol):
    async def list_subscriptions(self, recipient_id: str) -> list[PushSubscription]: ...

    async def delete_subscription(self, subscription_id: str) -> bool: ...


class JsonSubscriptionStore:
    """Subscription store kept in memory and mirrored to a JSON file when a path is given."""

    def __init__(self, path: Path | None = None) -> None:
        self.path = path
        self.subscriptions: list[PushSubscription] = []
        self._lock = asyncio.Lock()
        self._load()

    def _load(self) -> None:
        if self.path is None or not self.path.exists():
            self.subscriptions = []
            return
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
            self.subscriptions = [PushSubscription.model_validate(item) for item in payload]
        except (OSError, json.JSONDecodeError, TypeError, ValidationError) as exc:
            raise SubscriptionStoreError(f"cannot read subscriptions from {self.path}: {exc}") from exc

    def _save(self) -> None:
        if self.path is None:
            return
        payload = [subscription.model_dump(mode="json") for subscription in self.subscriptions]
        try:
            self.path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except OSError as exc:
            raise SubscriptionStoreError(f"cannot write subscriptions to {self.path}: {exc}") from exc

    async def list_subscriptions(self, recipient_id: str) -> list[PushSubscription]:
        return [item for item in self.subscriptions if item.recipient_id == recipient_id]

    async def add_subscription(
        self,
        recipient_id: str,
        endpoint: str,
        p256dh: str,
        auth: str,
    ) -> PushSubscription:
        async with self._lock:
            for index, existing in enumerate(self.subscriptions):
                if existing.recipient_id == recipient_id and existing.endpoint == endpoint:
                    updated = existing.model_copy(update={"p256dh": p256dh, "auth": auth})
                    self.subscriptions[index] = updated
                    await asyncio.to_thread(self._save)
                    return updated

            subscription = PushSubscription(
                recipient_id=recipient_id,
                endpoint=endpoint,
                p256dh=p256dh,
                auth=auth,
            )
            self.subscriptions.append(subscription)
            await asyncio.to_thread(self._save)
            return subscription

    async def delete_subscription(self, subscription_id: str) -> bool:
        async with self._lock:
            remaining = [item for item in self.subscriptions if item.id != subscription_id]
            if len(remaining) == len(self.subscriptions):
                return False
            self.subscriptions = remaining
            await asyncio.to_thread(self._save)
            return True
