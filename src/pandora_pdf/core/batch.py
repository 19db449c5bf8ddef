"""Batched concurrent page capture with per-page failure isolation."""

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Awaitable, Callable, Iterable

from pandora_pdf.core.capture import Capturer
from pandora_pdf.errors import CaptureFailed, PartialBatchFailure
from pandora_pdf.models.book import PageDescriptor

log = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 10
DEFAULT_BATCH_DELAY = 2.0

# Batch index used for the page captured on its own before any batch
SEQUENTIAL_BATCH = 0


@dataclass
class BatchOutcome:
    """Result of one capture attempt."""

    descriptor: PageDescriptor
    ok: bool
    batch: int
    path: Path | None = None
    error: str | None = None
    skipped: bool = False


@dataclass
class BatchReport:
    """Outcomes of one downloader run, in submission order."""

    outcomes: list[BatchOutcome] = field(default_factory=list)
    batches: int = 0

    @property
    def attempted(self) -> int:
        return sum(1 for o in self.outcomes if not o.skipped)

    @property
    def succeeded(self) -> list[BatchOutcome]:
        return [o for o in self.outcomes if o.ok]

    @property
    def failed(self) -> list[BatchOutcome]:
        return [o for o in self.outcomes if not o.ok and not o.skipped]

    @property
    def skipped(self) -> list[BatchOutcome]:
        """Pages never attempted because the first capture failed."""
        return [o for o in self.outcomes if o.skipped]

    @property
    def first_failed(self) -> bool:
        """True if the sequential first capture failed."""
        return bool(self.outcomes) and not self.outcomes[0].ok

    def failures(self) -> list[CaptureFailed]:
        return [
            CaptureFailed(o.descriptor, o.error or "unknown error")
            for o in self.outcomes
            if not o.ok
        ]

    def raise_for_failures(self) -> None:
        """Raise PartialBatchFailure if any page failed or was skipped."""
        failures = self.failures()
        if failures:
            raise PartialBatchFailure(failures)


def split_batches(
    pages: list[PageDescriptor], batch_size: int
) -> list[list[PageDescriptor]]:
    if batch_size < 1:
        raise ValueError(f"batch_size must be at least 1, got {batch_size}")
    return [pages[i : i + batch_size] for i in range(0, len(pages), batch_size)]


class BatchDownloader:
    """Drive a Capturer over an ordered list of pages.

    The first page is captured alone on the capturer's main page so a
    broken session shows up before any concurrency is committed; if it
    fails, the other pages are marked skipped and nothing else runs. The
    rest run in fixed-size batches: every capture in a batch runs concurrently
    in its own page, and the next batch starts only after all of them have
    settled. Failures are recorded, never raised.
    """

    def __init__(
        self,
        capturer: Capturer,
        target_dir: Path,
        batch_size: int = DEFAULT_BATCH_SIZE,
        batch_delay: float = DEFAULT_BATCH_DELAY,
        on_outcome: Callable[[BatchOutcome], None] | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        if batch_size < 1:
            raise ValueError(f"batch_size must be at least 1, got {batch_size}")
        self.capturer = capturer
        self.target_dir = target_dir
        self.batch_size = batch_size
        self.batch_delay = batch_delay
        self.on_outcome = on_outcome
        self._sleep = sleep

    async def run(self, pages: Iterable[PageDescriptor]) -> BatchReport:
        """Attempt every page at most once and return the outcomes."""
        pages = list(pages)
        report = BatchReport()
        if not pages:
            log.info("No pages to download")
            return report

        first, rest = pages[0], pages[1:]
        log.info("Downloading first page sequentially...")
        outcome = await self._capture(self.capturer.main_page, first, SEQUENTIAL_BATCH)
        report.outcomes.append(outcome)
        if not outcome.ok:
            log.error(
                "First page %d failed (%s); skipping the remaining %d pages",
                first.page_num,
                outcome.error,
                len(rest),
            )
            for page in rest:
                report.outcomes.append(
                    self._record(
                        BatchOutcome(
                            page,
                            ok=False,
                            batch=SEQUENTIAL_BATCH,
                            error="skipped: first page failed",
                            skipped=True,
                        )
                    )
                )
            return report

        batches = split_batches(rest, self.batch_size)
        if batches:
            log.info("Starting concurrent download of remaining %d pages...", len(rest))

        for index, batch in enumerate(batches, start=1):
            log.info(
                "Processing batch %d/%d: pages %d-%d",
                index,
                len(batches),
                batch[0].page_num,
                batch[-1].page_num,
            )
            outcomes = await asyncio.gather(
                *(self._capture_in_new_page(page, index) for page in batch)
            )
            report.outcomes.extend(outcomes)
            report.batches += 1

            if index < len(batches) and self.batch_delay > 0:
                await self._sleep(self.batch_delay)

        log.info(
            "Download finished: %d/%d pages saved in %s",
            len(report.succeeded),
            report.attempted,
            self.target_dir,
        )
        return report

    async def _capture_in_new_page(
        self, descriptor: PageDescriptor, batch: int
    ) -> BatchOutcome:
        try:
            page = await self.capturer.open_page()
        except Exception as e:
            return self._record(
                BatchOutcome(descriptor, ok=False, batch=batch, error=f"could not open page: {e}")
            )

        try:
            return await self._capture(page, descriptor, batch)
        finally:
            try:
                await self.capturer.close_page(page)
            except Exception as e:
                log.warning("Could not close page for %s: %s", descriptor.id, e)

    async def _capture(
        self, page: Any, descriptor: PageDescriptor, batch: int
    ) -> BatchOutcome:
        label = "[Concurrent] " if batch != SEQUENTIAL_BATCH else ""
        log.info(
            "%sDownloading page %d: %s - %r",
            label,
            descriptor.page_num,
            descriptor.id,
            descriptor.title,
        )
        try:
            path = await self.capturer.capture(page, descriptor, self.target_dir)
        except CaptureFailed as e:
            log.error("%sError downloading page %s: %s", label, descriptor.id, e.message)
            return self._record(BatchOutcome(descriptor, ok=False, batch=batch, error=e.message))
        except Exception as e:
            log.exception("%sUnexpected error downloading page %s", label, descriptor.id)
            return self._record(BatchOutcome(descriptor, ok=False, batch=batch, error=str(e)))

        log.info("%sSaved: %s", label, path.name)
        return self._record(BatchOutcome(descriptor, ok=True, batch=batch, path=path))

    def _record(self, outcome: BatchOutcome) -> BatchOutcome:
        if self.on_outcome is not None:
            self.on_outcome(outcome)
        return outcome
