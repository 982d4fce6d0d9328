import asyncio
import json
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

import aiohttp
from aiohttp import (
    ClientConnectorError,
    ClientOSError,
    ContentTypeError,
    ServerDisconnectedError,
)
from src.config.logger_config import logger

from src.migration.domain.errors import (
    AssetFetchError,
    FetchFailure,
    HttpStatusError,
    TransientNetworkError,
)
from src.migration.domain.models import BinaryAsset

T = TypeVar("T")

# connect timeout, socket reset and DNS failures all surface as one of these
TRANSIENT_ERRORS = (
    ClientConnectorError,
    ClientOSError,
    ServerDisconnectedError,
    asyncio.TimeoutError,
)
JSON_ERROR_BODY_LIMIT = 1200
BINARY_ERROR_BODY_LIMIT = 600


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 4
    base_delay: float = 0.4
    factor: float = 2.0

    def delay_for(self, attempt: int) -> float:
        return self.base_delay * self.factor ** (attempt - 1)


@dataclass(frozen=True)
class TransportTimeouts:
    connect: float = 30.0
    sock_read: float = 120.0

    def to_client_timeout(self) -> aiohttp.ClientTimeout:
        return aiohttp.ClientTimeout(
            total=None,
            connect=self.connect,
            sock_connect=self.connect,
            sock_read=self.sock_read,
        )


class HttpTransport:
    def __init__(
        self,
        retry_policy: RetryPolicy | None = None,
        timeouts: TransportTimeouts | None = None,
    ) -> None:
        self.retry_policy = retry_policy or RetryPolicy()
        self.timeout = (timeouts or TransportTimeouts()).to_client_timeout()

    async def get_json(
        self,
        session: aiohttp.ClientSession,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        async def send(attempt: int) -> Any:
            async with session.get(url, headers=headers, params=params, timeout=self.timeout) as resp:
                return await self._read_json(resp, url, attempt)

        return await self._with_retries(url, send)

    async def post_json(
        self,
        session: aiohttp.ClientSession,
        url: str,
        payload: dict[str, Any],
        *,
        headers: dict[str, str] | None = None,
    ) -> Any:
        async def send(attempt: int) -> Any:
            async with session.post(url, json=payload, headers=headers, timeout=self.timeout) as resp:
                return await self._read_json(resp, url, attempt)

        return await self._with_retries(url, send)

    async def get_binary(
        self,
        session: aiohttp.ClientSession,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        max_bytes: int | None = None,
    ) -> BinaryAsset:
        async def send(attempt: int) -> BinaryAsset:
            async with session.get(url, headers=headers, timeout=self.timeout) as resp:
                if not 200 <= resp.status < 300:
                    body = await self._safe_text(resp)
                    raise HttpStatusError(url, resp.status, body[:BINARY_ERROR_BODY_LIMIT])

                declared = _declared_length(resp)
                if max_bytes and declared is not None and declared > max_bytes:
                    raise AssetFetchError(url, f"too large: {declared} bytes > {max_bytes}")

                data = await resp.read()
                return BinaryAsset(
                    content_type=str(resp.headers.get("Content-Type", "")),
                    data=bytes(data),
                )

        return await self._with_retries(url, send)

    async def _with_retries(self, url: str, send: Callable[[int], Awaitable[T]]) -> T:
        retries = self.retry_policy.max_attempts
        for attempt in range(1, retries + 1):
            try:
                try:
                    return await send(attempt)
                except TRANSIENT_ERRORS as exc:
                    raise TransientNetworkError(url, attempt, exc) from exc
            except TransientNetworkError as exc:
                if attempt == retries:
                    logger.warning("Giving up on {} after {} attempts: {}", url, retries, exc.cause)
                    raise FetchFailure(url, attempt, exc.cause) from exc
                wait_time = self.retry_policy.delay_for(attempt)
                logger.warning(
                    "Connection unstable ({}). Attempt {}/{}, retrying in {:.1f}s...",
                    type(exc.cause).__name__,
                    attempt,
                    retries,
                    wait_time,
                )
                await asyncio.sleep(wait_time)
            except aiohttp.ClientError as exc:
                raise FetchFailure(url, attempt, exc) from exc

        raise FetchFailure(url, retries)

    async def _read_json(self, resp: aiohttp.ClientResponse, url: str, attempt: int) -> Any:
        if not 200 <= resp.status < 300:
            body = await self._safe_text(resp)
            logger.debug("HTTP {} for {}: {}", resp.status, url, body[:200])
            raise HttpStatusError(url, resp.status, body[:JSON_ERROR_BODY_LIMIT])
        try:
            return await resp.json(content_type=None)
        except (ContentTypeError, json.JSONDecodeError, ValueError) as exc:
            raise FetchFailure(url, attempt, exc) from exc

    @staticmethod
    async def _safe_text(resp: aiohttp.ClientResponse) -> str:
        try:
            return await resp.text()
        except (aiohttp.ClientError, UnicodeDecodeError):
            return ""


def _declared_length(resp: aiohttp.ClientResponse) -> int | None:
    raw = resp.headers.get("Content-Length")
    if raw is None:
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None
