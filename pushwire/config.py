from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from pushwire.errors import ConfigurationError

DEFAULT_SUBJECT = "mailto:admin@example.com"


@dataclass(frozen=True, slots=True)
class Settings:
    vapid_public_key: str
    vapid_private_key: str
    api_key: str
    vapid_subject: str = DEFAULT_SUBJECT
    subscriptions_file: Path | None = None
    send_timeout: float = 10.0
    max_concurrency: int = 4


def _required(name: str) -> str:
    value = os.environ.get(name, "").strip()
    if not value:
        raise ConfigurationError(f"{name} must be set before starting pushwire")
    return value


def _number(name: str, default: float, cast: type) -> float:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = cast(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from exc
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {raw!r}")
    return value


def load_settings() -> Settings:
    subject = os.environ.get("VAPID_SUBJECT", "").strip() or DEFAULT_SUBJECT
    if not subject.startswith(("mailto:", "https:")):
        raise ConfigurationError(f"VAPID_SUBJECT must be a mailto: or https: URI, got {subject!r}")

    subscriptions_file = os.environ.get("PUSHWIRE_SUBSCRIPTIONS_FILE")
    return Settings(
        vapid_public_key=_required("VAPID_PUBLIC_KEY"),
        vapid_private_key=_required("VAPID_PRIVATE_KEY"),
        api_key=_required("PUSHWIRE_API_KEY"),
        vapid_subject=subject,
        subscriptions_file=Path(subscriptions_file).expanduser() if subscriptions_file else None,
        send_timeout=_number("PUSHWIRE_SEND_TIMEOUT", 10.0, float),
        max_concurrency=int(_number("PUSHWIRE_MAX_CONCURRENCY", 4, int)),
    )
