from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Protocol

import httpx

from pushwire.errors import DeliveryError


@dataclass(frozen=True, slots=True)
class HttpResponse:
    status_code: int
    text: str = ""


class HttpClient(Protocol):
    async def post(
        self,
        url: str,
        *,
        headers: Mapping[str, str],
        content: bytes,
        timeout: float,
    ) -> HttpResponse: ...


class HttpxClient:
    def __init__(self, client: httpx.AsyncClient | None = None) -> None:
        self._client = client or httpx.AsyncClient()

    async def post(
        self,
        url: str,
        *,
        headers: Mapping[str, str],
        content: bytes,
        timeout: float,
    ) -> HttpResponse:
        try:
            response = await self._client.post(url, headers=dict(headers), content=content, timeout=timeout)
        except httpx.TimeoutException as exc:
            raise DeliveryError(f"push service timed out: {url}") from exc
        except httpx.HTTPError as exc:
            raise DeliveryError(f"push request failed: {exc}") from exc
        except (httpx.InvalidURL, ValueError) as exc:
            raise DeliveryError(f"push endpoint rejected: {exc}") from exc
        return HttpResponse(status_code=response.status_code, text=response.text)

    async def aclose(self) -> None:
        await self._client.aclose()
