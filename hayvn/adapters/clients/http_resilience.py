# hayvn/adapters/clients/http_resilience.py
from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any

import httpx

from ...config import settings

log = logging.getLogger(__name__)

RETRYABLE_STATUSES = (429, 500, 502, 503, 504)


@dataclass(frozen=True)
class HttpPolicy:
    timeout_s: float = 45.0
    max_retries: int = 2
    backoff_base_s: float = 0.5
    rate_limit_rps: float = 0.0

    @classmethod
    def from_settings(cls) -> "HttpPolicy":
        return cls(
            timeout_s=float(settings.HTTP_TIMEOUT_S),
            max_retries=int(settings.HTTP_MAX_RETRIES),
            backoff_base_s=float(settings.HTTP_BACKOFF_BASE_S),
            rate_limit_rps=float(settings.HTTP_RATE_LIMIT_RPS),
        )


class RequestPacer:
    """Very simple limiter: at most `rps` requests per second through this instance."""

    def __init__(self, rps: float) -> None:
        self.rps = rps
        self._lock = asyncio.Lock()
        self._last_ts = 0.0

    async def wait(self) -> None:
        if self.rps <= 0:
            return
        min_gap = 1.0 / self.rps
        async with self._lock:
            wait = (self._last_ts + min_gap) - time.monotonic()
            if wait > 0:
                await asyncio.sleep(wait)
            self._last_ts = time.monotonic()


async def resilient_request(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    policy: HttpPolicy,
    pacer: RequestPacer | None = None,
    headers: dict[str, str] | None = None,
    params: dict[str, Any] | None = None,
) -> httpx.Response:
    """
    Issue one request, retrying transport errors and transient statuses with
    exponential backoff. Returns the final response, whatever its status;
    callers decide what a non-2xx means.
    """
    last_exc: Exception | None = None
    resp: httpx.Response | None = None

    for attempt in range(policy.max_retries + 1):
        if pacer is not None:
            await pacer.wait()
        try:
            resp = await client.request(
                method, url, headers=headers, params=params, timeout=policy.timeout_s
            )
            if resp.status_code not in RETRYABLE_STATUSES:
                return resp
            last_exc = None
        except (httpx.TimeoutException, httpx.NetworkError) as e:
            last_exc = e
            resp = None

        if attempt >= policy.max_retries:
            break
        log.debug("retrying %s %s (attempt %d)", method, url, attempt + 1)
        await asyncio.sleep(min(5.0, policy.backoff_base_s * (2**attempt)))

    if resp is not None:
        return resp
    assert last_exc is not None
    raise last_exc
