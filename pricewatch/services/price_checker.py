# pricewatch/services/price_checker.py

"""Re-checks tracked items: fetch, extract, compare, persist."""

import asyncio
import logging
import random
import time
from collections.abc import Awaitable, Callable
from decimal import Decimal
from typing import Any

from pricewatch.config.settings import Settings
from pricewatch.errors import (
    CaptchaDetectedError,
    FetchError,
    ItemNotFoundError,
    ParseError,
    PermissionDeniedError,
)
from pricewatch.extraction.adapters.adapter_factory import (
    expected_currency_for_domain,
)
from pricewatch.extraction.document import PageDocument, SoupDocument
from pricewatch.extraction.product_extractor import ProductExtractor
from pricewatch.models.check_result import (
    CheckOutcome,
    CheckStatus,
    CheckSummary,
)
from pricewatch.models.detection import DetectionResult, ExtractionContext
from pricewatch.models.tracked_item import (
    ItemStatus,
    PriceHistoryEntry,
    TrackedItem,
    TrackingInfo,
)
from pricewatch.network.fetcher import ResilientFetcher
from pricewatch.parsing.product_id import (
    extract_domain,
    generate_product_id,
    normalize_url,
)
from pricewatch.services.permissions import PermissionChecker
from pricewatch.storage.item_store import ItemStore

logger = logging.getLogger("pricewatch.checker")

DocumentFactory = Callable[[str, str], PageDocument]


class PriceChecker:
    """Composition root for price checks.

    Items are visited one at a time in ascending ``last_checked``
    order, with randomised pauses between them, so a single client
    never bursts requests at a retailer.
    """

    def __init__(
        self,
        store: ItemStore,
        fetcher: ResilientFetcher,
        extractor: ProductExtractor | None = None,
        permissions: PermissionChecker | None = None,
        document_factory: DocumentFactory = SoupDocument,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        rng: Callable[[float, float], float] = random.uniform,
    ) -> None:
        self.store = store
        self.fetcher = fetcher
        self.extractor = extractor or ProductExtractor()
        self.permissions = permissions or PermissionChecker()
        self.document_factory = document_factory
        self._clock = clock
        self._sleep = sleep
        self._rng = rng

    # ── Scheduled checks ─────────────────────────────────

    async def check_all(
        self,
        batch_size: int = Settings.BATCH_SIZE,
        delay_between_checks: float = Settings.DELAY_BETWEEN_CHECKS,
        max_age: float = Settings.MAX_AGE,
    ) -> CheckSummary:
        """Check every item not checked within the last ``max_age`` secs."""
        items = await self.store.get_all_items()
        due = self._due(items, max_age)
        summary = CheckSummary(
            total=len(items), skipped=len(items) - len(due),
        )
        if not due:
            logger.info("No items need checking (%d tracked)", len(items))
            return summary

        batch_size = max(1, batch_size)
        batches = [
            due[i:i + batch_size] for i in range(0, len(due), batch_size)
        ]
        logger.info(
            "Checking %d of %d items in %d batches",
            len(due),
            len(items),
            len(batches),
        )
        for index, batch in enumerate(batches):
            if index > 0:
                logger.debug("Batch %d done, pausing", index)
                await self._sleep(Settings.BATCH_PAUSE)
            for position, item in enumerate(batch):
                summary.record(await self._check_guarded(item.item_id))
                if delay_between_checks > 0 and position < len(batch) - 1:
                    await self._sleep(
                        delay_between_checks
                        + self._rng(0, Settings.CHECK_JITTER_MAX)
                    )

        logger.info(
            "Check run complete: %d ok, %d errors, %d drops, %d increases",
            summary.success,
            summary.errors,
            summary.price_drops,
            summary.price_increases,
        )
        return summary

    async def items_needing_check(
        self, max_age: float = Settings.MAX_AGE,
    ) -> list[TrackedItem]:
        """Items due for a check, oldest ``last_checked`` first."""
        return self._due(await self.store.get_all_items(), max_age)

    async def force_check(self, item_id: str) -> CheckOutcome:
        """Check *item_id* now, regardless of when it was last checked."""
        logger.info("Force-checking %s", item_id)
        return await self.check_single(item_id)

    # ── Single item ──────────────────────────────────────

    async def check_single(self, item_id: str) -> CheckOutcome:
        """Fetch the item's page and record the price found on it.

        An item that is missing, or deleted while its page is being
        fetched, yields a ``NOT_FOUND`` outcome.
        """
        try:
            return await self._check(item_id)
        except ItemNotFoundError as exc:
            logger.warning("%s", exc)
            return CheckOutcome(
                item_id=item_id, status=CheckStatus.NOT_FOUND, error=str(exc),
            )

    async def _check(self, item_id: str) -> CheckOutcome:
        item = await self.store.require_item(item_id)
        if not self.permissions.is_allowed(item.domain):
            return await self._record_no_permission(item)

        context = self._context_for(item)
        settings = await self.store.get_settings()
        try:
            html = await self.fetcher.fetch_text(
                item.url,
                max_retries=settings["checking"]["retry_attempts"],
                timeout=settings["checking"]["timeout_seconds"],
            )
            result = self._extract(html, item.url, context)
        except CaptchaDetectedError as exc:
            return await self._record_captcha(item, exc)
        except FetchError as exc:
            logger.warning("Fetch failed for %s: %s", item_id, exc)
            return await self._record_failure(item, str(exc))
        except Exception as exc:
            logger.error(
                "Unexpected error checking %s: %s",
                item_id,
                exc,
                exc_info=True,
            )
            return await self._record_failure(item, str(exc))

        if result is None:
            logger.warning("No price found for %s at %s", item_id, item.url)
            return await self._record_failure(
                item, "Could not extract price from page",
            )
        return await self._record_success(item, result)

    # ── Tracking new items ───────────────────────────────

    async def track_url(self, url: str) -> TrackedItem:
        """Start tracking the product at *url* (or refresh it).

        Raises:
            PermissionDeniedError: The domain is not allowed.
            FetchError: The page could not be fetched.
            CaptchaDetectedError: The retailer served a challenge.
            ParseError: No price met the confidence floor.
            TrackingLimitError: ``max_products`` is already reached.
        """
        url = normalize_url(url)
        domain = extract_domain(url)
        if not self.permissions.is_allowed(domain):
            raise PermissionDeniedError(domain)

        html = await self.fetcher.fetch_text(url)
        context = ExtractionContext(
            domain=domain,
            expected_currency=expected_currency_for_domain(domain) or "",
        )
        result = self._extract(html, url, context)
        if result is None:
            raise ParseError(f"No reliable price found at {url}")

        now = self._clock()
        item = TrackedItem(
            item_id=generate_product_id(url, result.title, domain),
            url=url,
            domain=domain,
            title=result.title,
            current_price=result.price,
            tracking=TrackingInfo(
                first_seen=now, last_checked=now, check_count=1,
            ),
            image_url=result.image_url,
            sku=result.sku,
        )
        item.append_history(PriceHistoryEntry(
            price=result.price.numeric,
            currency=result.price.currency_code,
            timestamp=now,
            method=result.detection_method,
        ))
        return await self.store.add_item(item)

    # ── Private helpers ──────────────────────────────────

    def _due(
        self, items: list[TrackedItem], max_age: float,
    ) -> list[TrackedItem]:
        now = self._clock()
        due = [i for i in items if now - i.tracking.last_checked >= max_age]
        return sorted(due, key=lambda i: i.tracking.last_checked)

    async def _check_guarded(self, item_id: str) -> CheckOutcome:
        try:
            return await self.check_single(item_id)
        except Exception as exc:
            logger.error(
                "Check of %s aborted: %s", item_id, exc, exc_info=True,
            )
            return CheckOutcome(
                item_id=item_id, status=CheckStatus.ERROR, error=str(exc),
            )

    def _context_for(self, item: TrackedItem) -> ExtractionContext:
        stored = item.current_price.currency_code
        derived = expected_currency_for_domain(item.domain)
        if derived and stored and derived != stored:
            logger.warning(
                "Currency for %s corrected from %s to %s based on %s",
                item.item_id,
                stored,
                derived,
                item.domain,
            )
        return ExtractionContext(
            domain=item.domain,
            locale_hint=item.current_price.locale_hint,
            expected_currency=derived or stored,
        )

    def _extract(
        self, html: str, url: str, context: ExtractionContext,
    ) -> DetectionResult | None:
        document = self.document_factory(html, url)
        return self.extractor.extract(document, url, context)

    async def _record_no_permission(self, item: TrackedItem) -> CheckOutcome:
        now = self._clock()

        def apply(stored: TrackedItem) -> None:
            stored.tracking.status = ItemStatus.NO_PERMISSION
            stored.tracking.last_checked = now

        await self.store.update_item(item.item_id, apply)
        logger.warning("No permission for %s, skipping", item.domain)
        return CheckOutcome(
            item_id=item.item_id,
            status=CheckStatus.PERMISSION_DENIED,
            error=str(PermissionDeniedError(item.domain)),
        )

    async def _record_captcha(
        self, item: TrackedItem, exc: CaptchaDetectedError,
    ) -> CheckOutcome:
        now = self._clock()

        def apply(stored: TrackedItem) -> None:
            stored.tracking.status = ItemStatus.CAPTCHA_DETECTED
            stored.tracking.last_captcha = now
            stored.tracking.last_checked = now

        await self.store.update_item(item.item_id, apply)
        return CheckOutcome(
            item_id=item.item_id,
            status=CheckStatus.CAPTCHA_DETECTED,
            error=str(exc),
        )

    async def _record_failure(
        self, item: TrackedItem, error: str,
    ) -> CheckOutcome:
        now = self._clock()

        def apply(stored: TrackedItem) -> None:
            stored.tracking.failed_checks += 1
            stored.tracking.last_checked = now
            if stored.tracking.failed_checks >= Settings.STALE_AFTER_FAILURES:
                stored.tracking.status = ItemStatus.STALE

        updated = await self.store.update_item(item.item_id, apply)
        if updated.tracking.status is ItemStatus.STALE:
            logger.warning(
                "%s marked stale after %d failed checks",
                item.item_id,
                updated.tracking.failed_checks,
            )
        return CheckOutcome(
            item_id=item.item_id, status=CheckStatus.ERROR, error=error,
        )

    async def _record_success(
        self, item: TrackedItem, result: DetectionResult,
    ) -> CheckOutcome:
        previous, _ = await self.store.record_price(
            item.item_id, result.price, result.detection_method,
        )
        old, new = previous.numeric, result.price.numeric
        if previous.currency_code != result.price.currency_code:
            logger.warning(
                "Currency of %s changed from %s to %s",
                item.item_id,
                previous.currency_code,
                result.price.currency_code,
            )
        change = new - old
        if abs(change) < Settings.PRICE_TOLERANCE:
            logger.info("Price unchanged for %s", item.item_id)
            return CheckOutcome(
                item_id=item.item_id,
                status=CheckStatus.NO_CHANGE,
                old_price=old,
                new_price=new,
                currency=result.price.currency_code,
                change=Decimal(0),
                change_percent=0.0,
                detection_method=result.detection_method,
            )

        status = (
            CheckStatus.PRICE_DROP if change < 0
            else CheckStatus.PRICE_INCREASE
        )
        percent = round(float(change / old * 100), 2) if old else None
        logger.info(
            "%s for %s: %s -> %s (%s%%)",
            status.value,
            item.item_id,
            old,
            new,
            percent,
        )
        return CheckOutcome(
            item_id=item.item_id,
            status=status,
            old_price=old,
            new_price=new,
            currency=result.price.currency_code,
            change=change,
            change_percent=percent,
            detection_method=result.detection_method,
        )
