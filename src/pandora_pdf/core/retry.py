"""Re-download only the pages the last status check marked as failed."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncContextManager, Callable

from pandora_pdf.config import PandoraConfig
from pandora_pdf.core.batch import BatchDownloader, BatchOutcome, BatchReport
from pandora_pdf.core.capture import Capturer
from pandora_pdf.core.reconciler import load_or_reconcile
from pandora_pdf.core.storage import (
    MANIFEST_FILE,
    REPORT_FILE,
    book_number_from_dir,
    ensure_book_dir,
    load_manifest,
    load_report,
)
from pandora_pdf.errors import ManifestInvalid, ManifestMissing, ReportInvalid
from pandora_pdf.models.book import UNKNOWN_PAGE, Manifest, PageDescriptor
from pandora_pdf.models.status import ReconciliationReport

log = logging.getLogger(__name__)

# Opens a logged-in capture session for a book number
SessionFactory = Callable[[str], AsyncContextManager[Capturer]]


@dataclass
class RetryOutcome:
    """What a retry run attempted."""

    book_number: str
    descriptors: list[PageDescriptor]
    report: BatchReport | None = None

    @property
    def nothing_to_retry(self) -> bool:
        return not self.descriptors


def _read_report(book_dir: Path) -> ReconciliationReport | None:
    try:
        return load_report(book_dir)
    except ReportInvalid as e:
        log.warning("Could not read %s: %s", REPORT_FILE, e.reason)
        return None


def _read_manifest(book_dir: Path) -> Manifest | None:
    try:
        return load_manifest(book_dir)
    except ManifestMissing:
        return None
    except ManifestInvalid as e:
        log.warning("Could not read %s: %s", MANIFEST_FILE, e.reason)
        return None


def reconstruct_descriptors(book_dir: Path, failed_ids: list[str]) -> list[PageDescriptor]:
    """Recover title and page number for each failed id.

    Looks in output.json first, then metadata.json. An id found in
    neither gets a placeholder title and the UNKNOWN_PAGE sentinel. Never
    raises for unreadable record files.
    """
    report = _read_report(book_dir)
    manifest = _read_manifest(book_dir)

    if report is None and manifest is None:
        log.warning("No readable %s or %s, using placeholder titles", REPORT_FILE, MANIFEST_FILE)
        return [
            PageDescriptor(id=page_id, title=f"Retry Page {index}", page_num=UNKNOWN_PAGE)
            for index, page_id in enumerate(failed_ids, start=1)
        ]

    source = REPORT_FILE if report is not None else MANIFEST_FILE
    log.info("Using page info from %s", source)

    descriptors: list[PageDescriptor] = []
    for page_id in failed_ids:
        found: PageDescriptor | None = None
        if report is not None:
            result = report.find(page_id)
            if result is not None:
                found = result.to_descriptor()
        if found is None and manifest is not None:
            found = manifest.find(page_id)
        if found is None:
            log.warning("No record for %s, position unknown", page_id)
            found = PageDescriptor(
                id=page_id, title=f"Unknown Title ({page_id})", page_num=UNKNOWN_PAGE
            )
        descriptors.append(found)

    return descriptors


def resolve_book_number(
    book_dir: Path,
    book_id: str | None,
    report: ReconciliationReport | None = None,
) -> str:
    """Book number used in reader URLs (10.978.8815/415073).

    An explicit book_id wins, then the number recorded in output.json or
    metadata.json. The directory name is the last resort and loses the
    slash, so it only works where the reader accepts the dotted form.
    """
    if book_id:
        return book_id
    if report is not None and report.book_number:
        return report.book_number
    manifest = _read_manifest(book_dir)
    if manifest is not None and manifest.book_number:
        return manifest.book_number
    book_number = book_number_from_dir(book_dir)
    log.warning("No book number recorded in %s, using %s", book_dir, book_number)
    return book_number


async def retry_failed_downloads(
    book_dir: Path,
    session_factory: SessionFactory,
    book_id: str | None = None,
    config: PandoraConfig | None = None,
    on_outcome: Callable[[BatchOutcome], None] | None = None,
) -> RetryOutcome:
    """Capture the failed pages of book_dir again, in place.

    The manifest is left as it is and no status check runs afterwards;
    call reconcile() to see whether the retry converged.

    Raises:
        StorageUnavailable: If book_dir is not a directory
        ManifestMissing: If there is neither a report nor a manifest
        ManifestInvalid: If a status check is needed and the manifest is invalid
    """
    config = config or PandoraConfig()
    ensure_book_dir(book_dir)

    log.info("Getting failed pages...")
    status = load_or_reconcile(book_dir, config.min_valid_size)
    failed_items = status.failed_items
    book_number = resolve_book_number(book_dir, book_id, status)
    if not failed_items:
        log.info("No failed downloads found, all pages are complete")
        return RetryOutcome(book_number=book_number, descriptors=[])

    failed_ids = [item.id for item in failed_items]
    log.info("Found %d failed pages: %s", len(failed_ids), ", ".join(failed_ids))
    descriptors = reconstruct_descriptors(book_dir, failed_ids)

    log.info("Retrying book %s into existing directory %s", book_number, book_dir)
    async with session_factory(book_number) as capturer:
        downloader = BatchDownloader(
            capturer,
            book_dir,
            batch_size=config.batch_size,
            batch_delay=config.batch_delay,
            on_outcome=on_outcome,
        )
        report = await downloader.run(descriptors)

    return RetryOutcome(book_number=book_number, descriptors=descriptors, report=report)
