from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pushwire.auth import APIKeyAuthMiddleware
from pushwire.config import Settings, load_settings
from pushwire.dispatcher import Dispatcher
from pushwire.errors import ConfigurationError, KeyImportError
from pushwire.routes.api import router as api_router
from pushwire.store import JsonSubscriptionStore
from pushwire.transport import HttpClient, HttpxClient
from pushwire.vapid import import_vapid_keys


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    aclose = getattr(app.state.http_client, "aclose", None)
    if callable(aclose):
        await aclose()


def create_app(
    settings: Settings | None = None,
    *,
    store: JsonSubscriptionStore | None = None,
    http_client: HttpClient | None = None,
) -> FastAPI:
    settings = settings or load_settings()
    try:
        keys = import_vapid_keys(settings.vapid_public_key, settings.vapid_private_key)
    except KeyImportError as exc:
        raise ConfigurationError(f"VAPID keys are invalid: {exc}") from exc

    store = store if store is not None else JsonSubscriptionStore(settings.subscriptions_file)
    http_client = http_client or HttpxClient()

    app = FastAPI(title="pushwire", lifespan=lifespan)
    app.state.settings = settings
    app.state.vapid_keys = keys
    app.state.store = store
    app.state.http_client = http_client
    app.state.dispatcher = Dispatcher(
        keys,
        settings.vapid_subject,
        store,
        http_client,
        send_timeout=settings.send_timeout,
        max_concurrency=settings.max_concurrency,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(APIKeyAuthMiddleware, api_key=settings.api_key)

    app.include_router(api_router)

    return app
