from __future__ import annotations

import hmac

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, Response

EXACT_EXEMPT_PATHS = {
    "/",
    "/api/health",
    "/api/vapid-public-key",
}


def is_exempt_path(path: str) -> bool:
    return path in EXACT_EXEMPT_PATHS


def is_api_key_valid(api_key: str | None, expected_api_key: str) -> bool:
    if not api_key:
        return False
    return hmac.compare_digest(api_key.encode("utf-8"), expected_api_key.encode("utf-8"))


def provided_api_key(request: Request) -> str | None:
    authorization = request.headers.get("Authorization", "")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() == "bearer" and token.strip():
        return token.strip()
    return request.headers.get("X-API-Key")


class APIKeyAuthMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, api_key: str) -> None:
        super().__init__(app)
        self._expected_api_key = api_key

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.method == "OPTIONS" or is_exempt_path(request.url.path):
            return await call_next(request)

        if not is_api_key_valid(provided_api_key(request), self._expected_api_key):
            return JSONResponse(status_code=401, content={"detail": "Unauthorized"})

        return await call_next(request)
