"""Compare the manifest against the page files on disk."""

import logging
from datetime import datetime
from pathlib import Path

from pandora_pdf.core.storage import (
    REPORT_FILE,
    ensure_book_dir,
    load_manifest,
    load_report,
    page_artifact_name,
    write_report,
)
from pandora_pdf.errors import ReportInvalid
from pandora_pdf.models.book import Manifest, PageDescriptor
from pandora_pdf.models.status import (
    CaptureResult,
    CaptureStatus,
    ReconciliationReport,
)

log = logging.getLogger(__name__)

DEFAULT_MIN_VALID_SIZE = 1000


def is_viable(exists: bool, size: int | None, min_valid_size: int) -> bool:
    """A page counts as downloaded if its file exists and is not near-empty.

    An unknown size (stat failed) gets the benefit of the doubt.
    """
    return exists and (size is None or size > min_valid_size)


def check_page(
    book_dir: Path,
    page: PageDescriptor,
    min_valid_size: int = DEFAULT_MIN_VALID_SIZE,
) -> CaptureResult:
    """Classify a single expected page."""
    file_name = page_artifact_name(page)
    file_path = book_dir / file_name
    exists = file_path.exists()

    size: int | None = None
    if exists:
        try:
            size = file_path.stat().st_size
        except OSError as e:
            log.warning("Could not get file size for %s: %s", file_name, e)

    status = (
        CaptureStatus.SUCCESS
        if is_viable(exists, size, min_valid_size)
        else CaptureStatus.FAILED
    )
    return CaptureResult(
        id=page.id,
        title=page.title,
        page_num=page.page_num,
        status=status,
        file_name=file_name,
        file_path=str(file_path),
        exists=exists,
        size_bytes=size,
    )


def build_report(
    book_dir: Path,
    manifest: Manifest,
    min_valid_size: int = DEFAULT_MIN_VALID_SIZE,
) -> ReconciliationReport:
    """Build a report from the manifest and the current files, without writing it."""
    results = [
        check_page(book_dir, page, min_valid_size)
        for page in manifest.table_of_contents
    ]
    failed_items = [
        page
        for page, result in zip(manifest.table_of_contents, results)
        if not result.succeeded
    ]
    success_count = sum(1 for r in results if r.succeeded)

    return ReconciliationReport(
        book_number=manifest.book_number,
        checked_at=datetime.now(),
        total_pages=manifest.total_pages,
        success_count=success_count,
        failed_count=len(results) - success_count,
        results=results,
        failed_items=failed_items,
    )


def reconcile(
    book_dir: Path,
    min_valid_size: int = DEFAULT_MIN_VALID_SIZE,
) -> ReconciliationReport:
    """Check every expected page in book_dir and persist output.json.

    Safe to re-run: only the report file is replaced, page files are
    never touched.

    Raises:
        StorageUnavailable: If book_dir is not a directory
        ManifestMissing: If metadata.json does not exist
        ManifestInvalid: If metadata.json cannot be parsed
    """
    ensure_book_dir(book_dir)
    manifest = load_manifest(book_dir)

    log.info("Checking download status for book: %s", manifest.book_number)
    log.info("Expected pages: %d", manifest.total_pages)

    report = build_report(book_dir, manifest, min_valid_size)
    report_path = write_report(book_dir, report)

    log.info(
        "Status check complete: %d/%d succeeded, %d failed (report: %s)",
        report.success_count,
        report.total_pages,
        report.failed_count,
        report_path,
    )
    for page in report.failed_items:
        log.debug("Failed page %d: %s - %r", page.page_num, page.id, page.title)

    return report


def load_or_reconcile(
    book_dir: Path,
    min_valid_size: int = DEFAULT_MIN_VALID_SIZE,
) -> ReconciliationReport:
    """Return the persisted report, reconciling first if there is none.

    An unreadable report is regenerated rather than repaired.
    """
    try:
        report = load_report(book_dir)
    except ReportInvalid as e:
        log.warning("Ignoring unreadable %s: %s", REPORT_FILE, e)
        report = None
    if report is None:
        log.info("No %s found, running status check first", REPORT_FILE)
        report = reconcile(book_dir, min_valid_size)
    return report


def load_failed_items(
    book_dir: Path,
    min_valid_size: int = DEFAULT_MIN_VALID_SIZE,
) -> list[PageDescriptor]:
    """Failed pages from the current report, in manifest order."""
    return load_or_reconcile(book_dir, min_valid_size).failed_items
