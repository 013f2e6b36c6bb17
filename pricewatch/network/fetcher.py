# pricewatch/network/fetcher.py

"""HTTP GET with rate limiting, per-attempt timeouts and jittered backoff."""

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from curl_cffi import requests as curl_requests

from pricewatch.config.settings import Settings
from pricewatch.errors import FetchError, HttpStatusError
from pricewatch.network.captcha_detector import raise_for_captcha
from pricewatch.network.rate_limiter import SharedRateLimiter

logger = logging.getLogger("pricewatch.fetcher")


@dataclass
class FetchResponse:
    """The parts of an HTTP response the checker needs."""

    status_code: int
    text: str
    url: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


def is_retryable_status(status_code: int) -> bool:
    """429 and 5xx are transient; any other 4xx is final."""
    return status_code == 429 or status_code >= 500


class ResilientFetcher:
    """Fetches pages for price checks.

    Every attempt first takes a slot from the shared
    :class:`SharedRateLimiter` and is bounded by ``timeout`` seconds.
    Network errors, timeouts, 429 and 5xx are retried with exponential
    backoff plus/minus 20% jitter. Other non-2xx responses come back to
    the caller immediately.
    """

    def __init__(
        self,
        rate_limiter: SharedRateLimiter | None = None,
        session: Any | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        rng: Callable[[float, float], float] = random.uniform,
    ) -> None:
        self.rate_limiter = rate_limiter
        self._session = session
        self._sleep = sleep
        self._rng = rng

    @property
    def session(self) -> Any:
        if self._session is None:
            self._session = curl_requests.AsyncSession(
                impersonate=Settings.IMPERSONATE_BROWSER
            )
        return self._session

    async def close(self) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> "ResilientFetcher":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    def backoff_delay(
        self,
        attempt: int,
        initial_delay: float = Settings.INITIAL_RETRY_DELAY,
        max_delay: float = Settings.MAX_RETRY_DELAY,
    ) -> float:
        """Delay before retry number ``attempt + 1`` (0-based)."""
        base = min(initial_delay * (2 ** attempt), max_delay)
        jitter = self._rng(-Settings.RETRY_JITTER, Settings.RETRY_JITTER)
        return max(0.0, min(base * (1 + jitter), max_delay))

    async def fetch_with_retry(
        self,
        url: str,
        max_retries: int = Settings.MAX_RETRIES,
        timeout: float = Settings.REQUEST_TIMEOUT,
        initial_delay: float = Settings.INITIAL_RETRY_DELAY,
        max_delay: float = Settings.MAX_RETRY_DELAY,
    ) -> FetchResponse:
        """GET *url*, retrying transient failures up to ``max_retries`` times.

        Returns:
            The first 2xx response, or the first non-retryable one.

        Raises:
            FetchError: When every attempt failed transiently.
        """
        last_error = "no attempt made"
        for attempt in range(max_retries + 1):
            if self.rate_limiter is not None:
                await self.rate_limiter.acquire()
            try:
                resp = await asyncio.wait_for(
                    self.session.get(
                        url,
                        headers=Settings.DEFAULT_HEADERS,
                        timeout=timeout,
                    ),
                    timeout=timeout,
                )
                result = FetchResponse(
                    status_code=resp.status_code,
                    text=resp.text,
                    url=str(resp.url or url),
                )
                if result.ok or not is_retryable_status(result.status_code):
                    return result
                last_error = f"HTTP {result.status_code}"
                logger.warning(
                    "HTTP %d for %s on attempt %d/%d",
                    result.status_code,
                    url,
                    attempt + 1,
                    max_retries + 1,
                )
            except TimeoutError:
                last_error = f"timed out after {timeout}s"
                logger.warning(
                    "Timeout for %s on attempt %d/%d",
                    url,
                    attempt + 1,
                    max_retries + 1,
                )
            except Exception as exc:
                last_error = str(exc) or type(exc).__name__
                logger.warning(
                    "Request error for %s on attempt %d/%d: %s",
                    url,
                    attempt + 1,
                    max_retries + 1,
                    exc,
                    exc_info=True,
                )
            if attempt < max_retries:
                await self._sleep(
                    self.backoff_delay(attempt, initial_delay, max_delay)
                )
        raise FetchError(
            url, f"failed after {max_retries + 1} attempts: {last_error}"
        )

    async def fetch_text(
        self,
        url: str,
        max_retries: int = Settings.MAX_RETRIES,
        timeout: float = Settings.REQUEST_TIMEOUT,
        initial_delay: float = Settings.INITIAL_RETRY_DELAY,
        max_delay: float = Settings.MAX_RETRY_DELAY,
    ) -> str:
        """Body of a successful, non-challenge response.

        Raises:
            FetchError: Transient failures exhausted the retries.
            HttpStatusError: The server answered with a final non-2xx.
            CaptchaDetectedError: The body is a bot challenge page.
        """
        resp = await self.fetch_with_retry(
            url,
            max_retries=max_retries,
            timeout=timeout,
            initial_delay=initial_delay,
            max_delay=max_delay,
        )
        if not resp.ok:
            raise HttpStatusError(url, resp.status_code)
        raise_for_captcha(resp.text, url)
        return resp.text
