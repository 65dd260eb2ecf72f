"""httpx async transport wrapper with short-term retry and rate-limit handling."""

from __future__ import annotations

import asyncio
import logging
import random
import time

import httpx

_LOG = logging.getLogger(__name__)

# Status codes considered transient and eligible for automatic retry.
_RETRYABLE_STATUS_CODES = frozenset({429, 502, 503, 504})
_IDEMPOTENT_METHODS = frozenset({"GET", "HEAD", "OPTIONS", "PUT", "DELETE"})


class RetryingTransport(httpx.AsyncBaseTransport):
    """Wraps an httpx async transport with a few fast retries.

    This absorbs blips (connection resets, a 502, a short 429) within one
    request. Longer outages surface as errors and are handled by the sync
    engine's own backoff schedule.

    A non-idempotent request (``POST``) is only retried when it carries an
    ``X-Request-Id`` header, which Todoist uses to deduplicate writes.
    """

    def __init__(
        self,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        max_retries: int = 2,
        max_backoff: float = 4.0,
    ) -> None:
        self._transport = transport or httpx.AsyncHTTPTransport()
        self._max_retries = max_retries
        self._max_backoff = max_backoff

        self._rate_limit_lock = asyncio.Lock()
        self._rate_limit_clear = asyncio.Event()
        self._rate_limit_clear.set()
        self._rate_limit_pause_until = 0.0

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        retries = self._max_retries if self._is_retry_safe(request) else 0
        for attempt in range(retries + 1):
            await self._rate_limit_clear.wait()

            try:
                response = await self._transport.handle_async_request(request)
            except httpx.TransportError:
                if attempt >= retries:
                    raise
                await self._sleep_backoff(attempt, request)
                continue

            if response.status_code == 429:
                await self._apply_rate_limit_pause(self._parse_retry_after(response))
                if attempt < retries:
                    await response.aclose()
                    continue
                return response

            if response.status_code in _RETRYABLE_STATUS_CODES and attempt < retries:
                await response.aclose()
                await self._sleep_backoff(attempt, request)
                continue

            return response

        raise httpx.TransportError("Request failed after retries")  # pragma: no cover

    async def aclose(self) -> None:
        await self._transport.aclose()

    @staticmethod
    def _is_retry_safe(request: httpx.Request) -> bool:
        return request.method in _IDEMPOTENT_METHODS or "X-Request-Id" in request.headers

    # ------------------------------------------------------------------
    # Rate-limit helpers
    # ------------------------------------------------------------------

    async def _apply_rate_limit_pause(self, retry_after: float) -> None:
        now = time.monotonic()
        async with self._rate_limit_lock:
            until = now + min(max(0.0, retry_after), self._max_backoff * 4)
            if until <= self._rate_limit_pause_until:
                return
            self._rate_limit_pause_until = until
            self._rate_limit_clear.clear()

        await asyncio.sleep(max(0.0, self._rate_limit_pause_until - time.monotonic()))

        async with self._rate_limit_lock:
            if time.monotonic() >= self._rate_limit_pause_until:
                self._rate_limit_clear.set()

    @staticmethod
    def _parse_retry_after(response: httpx.Response) -> float:
        raw = response.headers.get("Retry-After")
        if raw is None:
            return 1.0
        try:
            return max(0.0, float(raw))
        except ValueError:
            return 1.0

    async def _sleep_backoff(self, attempt: int, request: httpx.Request) -> None:
        seconds = min(self._max_backoff, float(2**attempt) * 0.5) + random.uniform(0.0, 0.25)
        _LOG.debug("Retrying %s %s (attempt %d)", request.method, request.url.path, attempt + 1)
        await asyncio.sleep(seconds)
