from __future__ import annotations

import json
import logging

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse

from pushwire.dispatcher import Dispatcher
from pushwire.errors import InvalidRequestError, KeyImportError, SigningError, SubscriptionStoreError
from pushwire.models import SubscriptionRequest, parse_dispatch_request

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/api/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/api/vapid-public-key")
async def vapid_public_key(request: Request) -> dict[str, str]:
    return {"publicKey": request.app.state.vapid_keys.public_key_b64}


@router.post("/api/subscriptions")
async def subscribe(request: Request, body: SubscriptionRequest) -> dict[str, str]:
    subscription = await request.app.state.store.add_subscription(
        recipient_id=body.recipient_id,
        endpoint=body.endpoint,
        p256dh=body.keys.p256dh,
        auth=body.keys.auth,
    )
    return {"status": "ok", "id": subscription.id}


@router.post("/api/push/send")
async def send_push(request: Request) -> JSONResponse:
    try:
        payload = await request.json()
    except json.JSONDecodeError as exc:
        raise HTTPException(status_code=400, detail="Request body must be JSON") from exc

    try:
        dispatch_request = parse_dispatch_request(payload)
    except InvalidRequestError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    dispatcher: Dispatcher = request.app.state.dispatcher
    try:
        result = await dispatcher.dispatch(dispatch_request)
    except (KeyImportError, SigningError, SubscriptionStoreError) as exc:
        logger.exception("send-push failed for recipient %s", dispatch_request.recipient_id)
        return JSONResponse(status_code=500, content={"error": str(exc)})

    return JSONResponse(result.model_dump(exclude_none=True))
