"""
Outbound HTTP client with bounded exponential backoff.

Every failure is treated the same way: non-2xx responses and transport
errors are retried until the attempt budget runs out, then the last error is
raised to the caller.
"""
import asyncio
import random
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx

from strain_tracker.core.config import settings
from strain_tracker.core.logging import logger


class RemoteCallError(Exception):
    """Raised for a non-success HTTP status."""

    def __init__(self, status_code: int, body: str = ""):
        self.status_code = status_code
        self.body = body
        super().__init__(f"HTTP error! status: {status_code}")


@dataclass
class RequestSpec:
    """Everything needed to (re)issue one request."""

    method: str
    url: str
    json: Optional[Dict[str, Any]] = None
    headers: Dict[str, str] = field(default_factory=dict)
    params: Dict[str, str] = field(default_factory=dict)


class RetryClient:
    """
    Issues a ``RequestSpec`` up to ``max_attempts`` times.

    After failed attempt ``n`` (0-indexed) it waits
    ``2**n * base_delay + uniform(0, max_jitter)`` seconds. ``sleep`` and
    ``rng`` are injectable so tests can run without real delays.
    """

    def __init__(
        self,
        max_attempts: int = None,
        base_delay: float = None,
        max_jitter: float = None,
        timeout: float = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        rng: Optional[random.Random] = None,
    ):
        self.max_attempts = max_attempts or settings.RETRY_MAX_ATTEMPTS
        self.base_delay = settings.RETRY_BASE_DELAY_SECONDS if base_delay is None else base_delay
        self.max_jitter = settings.RETRY_MAX_JITTER_SECONDS if max_jitter is None else max_jitter
        self.timeout = timeout or settings.HTTP_TIMEOUT_SECONDS
        self._transport = transport
        self._sleep = sleep
        self._rng = rng or random.Random()

    def backoff_delay(self, attempt: int) -> float:
        return (2 ** attempt) * self.base_delay + self._rng.uniform(0, self.max_jitter)

    async def call(self, spec: RequestSpec) -> httpx.Response:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            for attempt in range(self.max_attempts):
                try:
                    response = await client.request(
                        spec.method,
                        spec.url,
                        json=spec.json,
                        headers=spec.headers,
                        params=spec.params,
                    )
                    if response.is_success:
                        return response
                    raise RemoteCallError(response.status_code, response.text)
                except (RemoteCallError, httpx.HTTPError) as e:
                    if attempt >= self.max_attempts - 1:
                        logger.warning(
                            "Remote call failed, retries exhausted",
                            extra={"attempts": attempt + 1, "error": str(e)},
                        )
                        raise
                    delay = self.backoff_delay(attempt)
                    logger.info(
                        "Remote call failed, backing off",
                        extra={"attempt": attempt, "delay_seconds": round(delay, 3), "error": str(e)},
                    )
                    await self._sleep(delay)
        # Only reachable with max_attempts < 1
        raise RuntimeError("RetryClient configured with no attempts")
