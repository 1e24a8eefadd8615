from __future__ import annotations

import json
from pathlib import Path

import pytest

from pushwire.errors import SubscriptionStoreError
from pushwire.store import JsonSubscriptionStore


@pytest.mark.asyncio
async def test_add_is_an_upsert_per_recipient_and_endpoint() -> None:
    store = JsonSubscriptionStore()

    first = await store.add_subscription("patient-1", "https://push.example/a", p256dh="k1", auth="a1")
    again = await store.add_subscription("patient-1", "https://push.example/a", p256dh="k2", auth="a2")
    other = await store.add_subscription("patient-2", "https://push.example/a", p256dh="k3", auth="a3")

    assert again.id == first.id
    assert other.id != first.id
    listed = await store.list_subscriptions("patient-1")
    assert [(item.p256dh, item.auth) for item in listed] == [("k2", "a2")]


@pytest.mark.asyncio
async def test_delete_reports_whether_anything_was_removed() -> None:
    store = JsonSubscriptionStore()
    subscription = await store.add_subscription("patient-1", "https://push.example/a", p256dh="k", auth="a")

    assert await store.delete_subscription(subscription.id) is True
    assert await store.delete_subscription(subscription.id) is False
    assert await store.list_subscriptions("patient-1") == []


@pytest.mark.asyncio
async def test_file_backed_store_persists_between_instances(tmp_path: Path) -> None:
    path = tmp_path / "subscriptions.json"
    store = JsonSubscriptionStore(path)
    saved = await store.add_subscription("patient-1", "https://push.example/a", p256dh="k", auth="a")

    reloaded = JsonSubscriptionStore(path)

    assert await reloaded.list_subscriptions("patient-1") == [saved]
    assert json.loads(path.read_text(encoding="utf-8"))[0]["endpoint"] == "https://push.example/a"


def test_unreadable_file_is_a_store_error(tmp_path: Path) -> None:
    path = tmp_path / "subscriptions.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(SubscriptionStoreError):
        JsonSubscriptionStore(path)


@pytest.mark.asyncio
async def test_updates_and_deletes_reach_the_file(tmp_path: Path) -> None:
    path = tmp_path / "subscriptions.json"
    store = JsonSubscriptionStore(path)
    kept = await store.add_subscription("patient-1", "https://push.example/a", p256dh="k1", auth="a1")
    dropped = await store.add_subscription("patient-1", "https://push.example/b", p256dh="k", auth="a")
    await store.add_subscription("patient-1", "https://push.example/a", p256dh="k2", auth="a2")
    await store.delete_subscription(dropped.id)

    on_disk = json.loads(path.read_text(encoding="utf-8"))

    assert [(item["id"], item["p256dh"]) for item in on_disk] == [(kept.id, "k2")]
