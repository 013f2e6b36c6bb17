# tests/test_fetcher.py

"""Tests for the retrying page fetcher."""

import asyncio
import unittest
from unittest.mock import AsyncMock, MagicMock, patch

from pricewatch.config.settings import Settings
from pricewatch.errors import CaptchaDetectedError, FetchError, HttpStatusError
from pricewatch.network.fetcher import (
    FetchResponse,
    ResilientFetcher,
    is_retryable_status,
)
from fakes import FakeClock, FakeResponse, FakeSession, product_page

URL = "https://shop.example/products/anvil"


class HangingSession:
    """Session whose requests never complete."""

    async def get(self, url: str, **kwargs: object) -> FakeResponse:
        await asyncio.sleep(3600)
        return FakeResponse(200)

    async def close(self) -> None:
        pass


class TestRetryableStatus(unittest.TestCase):
    """Classification of HTTP statuses."""

    def test_classification(self) -> None:
        """429 and 5xx retry; other 4xx do not."""
        self.assertTrue(is_retryable_status(429))
        self.assertTrue(is_retryable_status(503))
        self.assertFalse(is_retryable_status(404))
        self.assertFalse(is_retryable_status(403))

    def test_ok_property(self) -> None:
        """Only 2xx responses are ok."""
        self.assertTrue(FetchResponse(204, "", URL).ok)
        self.assertFalse(FetchResponse(301, "", URL).ok)


class TestBackoff(unittest.TestCase):
    """Backoff schedule with jitter."""

    def test_doubles_and_caps(self) -> None:
        """Delays double from the initial value and stop at the cap."""
        fetcher = ResilientFetcher(session=FakeSession([]), rng=lambda a, b: 0.0)
        delays = [fetcher.backoff_delay(n, 1.0, 10.0) for n in range(6)]
        self.assertEqual(delays, [1.0, 2.0, 4.0, 8.0, 10.0, 10.0])

    def test_jitter_never_exceeds_cap(self) -> None:
        """Positive jitter on a capped delay is clamped."""
        fetcher = ResilientFetcher(session=FakeSession([]), rng=lambda a, b: b)
        self.assertAlmostEqual(fetcher.backoff_delay(0, 1.0, 10.0), 1.2)
        self.assertEqual(fetcher.backoff_delay(5, 1.0, 10.0), 10.0)

    def test_negative_jitter(self) -> None:
        """Negative jitter shortens the delay by up to 20%."""
        fetcher = ResilientFetcher(session=FakeSession([]), rng=lambda a, b: a)
        self.assertAlmostEqual(fetcher.backoff_delay(1, 1.0, 10.0), 1.6)


class TestFetchWithRetry(unittest.IsolatedAsyncioTestCase):
    """Retry loop behaviour against a scripted session."""

    def setUp(self) -> None:
        self.clock = FakeClock()

    def _fetcher(
        self, script: list, limiter: AsyncMock | None = None,
    ) -> tuple[ResilientFetcher, FakeSession]:
        session = FakeSession(script)
        fetcher = ResilientFetcher(
            rate_limiter=limiter,
            session=session,
            sleep=self.clock.sleep,
            rng=lambda a, b: 0.0,
        )
        return fetcher, session

    async def test_retries_server_errors(self) -> None:
        """503, 503, 200 succeeds after two growing backoffs."""
        fetcher, session = self._fetcher([
            FakeResponse(503), FakeResponse(503), FakeResponse(200, "ok"),
        ])
        with self.assertLogs("pricewatch.fetcher", level="WARNING"):
            resp = await fetcher.fetch_with_retry(URL, max_retries=3)
        self.assertTrue(resp.ok)
        self.assertEqual(resp.text, "ok")
        self.assertEqual(len(session.requested), 3)
        self.assertEqual(self.clock.sleeps, [1.0, 2.0])

    async def test_client_error_not_retried(self) -> None:
        """A 404 comes back on the first attempt."""
        fetcher, session = self._fetcher([FakeResponse(404)])
        resp = await fetcher.fetch_with_retry(URL)
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(len(session.requested), 1)
        self.assertEqual(self.clock.sleeps, [])

    async def test_network_error_retried(self) -> None:
        """Transport exceptions count as transient."""
        fetcher, session = self._fetcher([
            ConnectionError("connection reset"), FakeResponse(200, "ok"),
        ])
        with self.assertLogs("pricewatch.fetcher", level="WARNING"):
            resp = await fetcher.fetch_with_retry(URL)
        self.assertTrue(resp.ok)
        self.assertEqual(len(session.requested), 2)

    async def test_exhausted_retries_raise(self) -> None:
        """max_retries + 1 transient failures raise FetchError."""
        fetcher, session = self._fetcher([FakeResponse(503)] * 3)
        with self.assertLogs("pricewatch.fetcher", level="WARNING"):
            with self.assertRaises(FetchError) as ctx:
                await fetcher.fetch_with_retry(URL, max_retries=2)
        self.assertEqual(len(session.requested), 3)
        self.assertEqual(len(self.clock.sleeps), 2)
        self.assertIn("HTTP 503", str(ctx.exception))
        self.assertEqual(ctx.exception.url, URL)

    async def test_rate_limiter_per_attempt(self) -> None:
        """Every attempt takes a slot, retries included."""
        limiter = AsyncMock()
        fetcher, _ = self._fetcher(
            [FakeResponse(429), FakeResponse(200, "ok")], limiter,
        )
        with self.assertLogs("pricewatch.fetcher", level="WARNING"):
            await fetcher.fetch_with_retry(URL)
        self.assertEqual(limiter.acquire.await_count, 2)

    async def test_timeout(self) -> None:
        """A request exceeding its timeout is a transient failure."""
        fetcher = ResilientFetcher(session=HangingSession())
        with self.assertLogs("pricewatch.fetcher", level="WARNING"):
            with self.assertRaises(FetchError) as ctx:
                await fetcher.fetch_with_retry(URL, max_retries=0, timeout=0.01)
        self.assertIn("timed out", str(ctx.exception))


class TestFetchText(unittest.IsolatedAsyncioTestCase):
    """Status and challenge checks on top of the retry loop."""

    async def test_returns_body(self) -> None:
        """A normal product page is returned as text."""
        page = product_page()
        fetcher = ResilientFetcher(session=FakeSession([FakeResponse(200, page)]))
        self.assertEqual(await fetcher.fetch_text(URL), page)

    async def test_final_status_raises(self) -> None:
        """A non-retryable status raises HttpStatusError."""
        fetcher = ResilientFetcher(session=FakeSession([FakeResponse(410)]))
        with self.assertRaises(HttpStatusError) as ctx:
            await fetcher.fetch_text(URL)
        self.assertEqual(ctx.exception.status_code, 410)

    async def test_challenge_page_raises(self) -> None:
        """A challenge body raises CaptchaDetectedError."""
        fetcher = ResilientFetcher(
            session=FakeSession([FakeResponse(200, "<h1>Access denied</h1>")])
        )
        with self.assertLogs("pricewatch.captcha", level="WARNING"):
            with self.assertRaises(CaptchaDetectedError):
                await fetcher.fetch_text(URL)

    @patch("pricewatch.network.fetcher.curl_requests.AsyncSession")
    async def test_session_impersonates_browser(
        self, mock_session_cls: MagicMock,
    ) -> None:
        """The default session is an impersonating curl_cffi session."""
        mock_session_cls.return_value.close = AsyncMock()
        fetcher = ResilientFetcher()
        session = fetcher.session
        self.assertIs(fetcher.session, session)
        mock_session_cls.assert_called_once_with(
            impersonate=Settings.IMPERSONATE_BROWSER,
        )
        await fetcher.close()
        session.close.assert_awaited_once()

    async def test_context_manager_closes_session(self) -> None:
        """Leaving the context closes the underlying session."""
        session = FakeSession([])
        async with ResilientFetcher(session=session):
            pass
        self.assertTrue(session.closed)


if __name__ == "__main__":
    unittest.main()
