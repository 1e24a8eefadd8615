from __future__ import annotations

import json
from uuid import uuid4

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from pushwire.errors import InvalidRequestError

NO_SUBSCRIPTIONS = "no_subscriptions"


def _subscription_id() -> str:
    return uuid4().hex


class PushSubscription(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_subscription_id)
    recipient_id: str
    endpoint: str
    p256dh: str
    auth: str


class NotificationAction(BaseModel):
    action: str
    title: str
    icon: str | None = None


class NotificationPayload(BaseModel):
    title: str
    body: str
    tag: str | None = None
    url: str | None = None
    actions: list[NotificationAction] | None = None

    def to_bytes(self) -> bytes:
        payload = self.model_dump(mode="json", exclude_none=True)
        return json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


class DispatchRequest(NotificationPayload):
    model_config = ConfigDict(populate_by_name=True)

    recipient_id: str = Field(validation_alias=AliasChoices("recipient_id", "recipientId", "userId"))

    @field_validator("recipient_id")
    @classmethod
    def validate_recipient_id(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("recipient_id must not be empty")
        return cleaned

    def notification(self) -> NotificationPayload:
        return NotificationPayload.model_validate(self.model_dump(exclude={"recipient_id"}))


class DispatchResult(BaseModel):
    sent: int = 0
    expired: int = 0
    failed: int = 0
    reason: str | None = None

    @classmethod
    def no_subscriptions(cls) -> DispatchResult:
        return cls(reason=NO_SUBSCRIPTIONS)


class SubscriptionKeys(BaseModel):
    p256dh: str
    auth: str


class SubscriptionRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    recipient_id: str = Field(validation_alias=AliasChoices("recipient_id", "recipientId", "userId"))
    endpoint: str
    keys: SubscriptionKeys


def parse_dispatch_request(data: object) -> DispatchRequest:
    try:
        return DispatchRequest.model_validate(data)
    except ValidationError as exc:
        fields = sorted({".".join(str(part) for part in error["loc"]) or "body" for error in exc.errors()})
        raise InvalidRequestError(f"invalid dispatch request: {', '.join(fields)}") from exc
