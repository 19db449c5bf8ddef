"""First full download of a book: manifest, page capture, chapter merge."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from pandora_pdf.config import PandoraConfig
from pandora_pdf.core.batch import BatchDownloader, BatchOutcome, BatchReport
from pandora_pdf.core.capture import Capturer
from pandora_pdf.core.merger import MergeResult, merge_chapters
from pandora_pdf.core.storage import book_dir_name, write_manifest
from pandora_pdf.errors import PandoraError
from pandora_pdf.models.book import Manifest, PageDescriptor

log = logging.getLogger(__name__)


@dataclass
class DownloadResult:
    """Outcome of a full book download."""

    book_dir: Path
    manifest: Manifest
    report: BatchReport
    merged: list[MergeResult] = field(default_factory=list)
    merge_error: str | None = None


async def download_book(
    capturer: Capturer,
    book_number: str,
    pages: list[PageDescriptor],
    config: PandoraConfig | None = None,
    merge: bool = True,
    on_outcome: Callable[[BatchOutcome], None] | None = None,
) -> DownloadResult:
    """Write the manifest, capture every page, then merge chapters.

    A merge failure is logged and kept in the result; the downloaded
    pages stay usable and `merge` can be run again later.
    """
    config = config or PandoraConfig()
    book_dir = config.downloads_dir / book_dir_name(book_number)
    book_dir.mkdir(parents=True, exist_ok=True)

    manifest = Manifest.build(book_number, pages)
    write_manifest(book_dir, manifest)
    log.info("Generated metadata file for %d pages in %s", manifest.total_pages, book_dir)

    downloader = BatchDownloader(
        capturer,
        book_dir,
        batch_size=config.batch_size,
        batch_delay=config.batch_delay,
        on_outcome=on_outcome,
    )
    report = await downloader.run(manifest.table_of_contents)
    result = DownloadResult(book_dir=book_dir, manifest=manifest, report=report)

    if merge:
        log.info("Starting automatic chapter merging...")
        try:
            result.merged = merge_chapters(
                book_dir,
                preface_pattern=config.preface_pattern,
                chapter_pattern=config.chapter_pattern,
                max_title_length=config.max_title_length,
            )
        except PandoraError as e:
            log.error("Error during automatic chapter merging: %s", e)
            result.merge_error = str(e)

    return result
