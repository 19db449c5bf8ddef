"""Merge per-page PDFs into one PDF per chapter."""

import logging
from dataclasses import dataclass, field
from pathlib import Path

from pypdf import PdfReader, PdfWriter
from pypdf.errors import FileNotDecryptedError, PdfReadError

from pandora_pdf.core.segmenter import (
    DEFAULT_CHAPTER_PATTERN,
    DEFAULT_PREFACE_PATTERN,
    identify_chapters,
)
from pandora_pdf.core.storage import (
    PROCESSED_DIR,
    ensure_book_dir,
    load_manifest,
    page_artifact_name,
    sanitize_filename,
)
from pandora_pdf.errors import ChapterMergeFailed
from pandora_pdf.models.book import ChapterGroup

log = logging.getLogger(__name__)

PREFACE_FILE = "premessa.pdf"


@dataclass
class MergeResult:
    """What went into one chapter PDF."""

    chapter: ChapterGroup
    output_path: Path | None = None
    added: list[str] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)
    unreadable: list[str] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.output_path is not None and self.error is None


def chapter_file_name(chapter: ChapterGroup, max_title_length: int = 80) -> str:
    """premessa.pdf for the preface, chapter_NN_<title>.pdf otherwise."""
    if chapter.is_preface:
        return PREFACE_FILE
    title = sanitize_filename(chapter.title, max_title_length)
    return f"chapter_{chapter.chapter_number:02d}_{title}.pdf"


def merge_chapter(
    book_dir: Path,
    output_dir: Path,
    chapter: ChapterGroup,
    max_title_length: int = 80,
) -> MergeResult:
    """Concatenate the chapter's page PDFs in page order.

    Missing or unreadable page files are skipped and reported in the result.

    Raises:
        ChapterMergeFailed: If the combined PDF cannot be written
    """
    log.info(
        "Merging Chapter %d: %r (%d pages)",
        chapter.chapter_number,
        chapter.title,
        len(chapter.pages),
    )
    result = MergeResult(chapter=chapter)
    writer = PdfWriter()

    for page in chapter.pages:
        file_name = page_artifact_name(page)
        file_path = book_dir / file_name

        if not file_path.exists():
            log.warning("Missing file: %s - skipping", file_name)
            result.missing.append(file_name)
            continue

        try:
            reader = PdfReader(file_path)
            for pdf_page in reader.pages:
                writer.add_page(pdf_page)
        except (PdfReadError, FileNotDecryptedError, OSError, ValueError) as e:
            log.error("Error processing %s: %s", file_name, e)
            result.unreadable.append(file_name)
            continue

        log.debug("Added: %s", file_name)
        result.added.append(file_name)

    if not result.added:
        result.error = "no readable pages"
        log.warning("Chapter %d has no readable pages, not written", chapter.chapter_number)
        return result

    output_path = output_dir / chapter_file_name(chapter, max_title_length)
    try:
        with open(output_path, "wb") as f:
            writer.write(f)
    except (OSError, ValueError) as e:
        raise ChapterMergeFailed(chapter.chapter_number, str(e)) from e

    result.output_path = output_path
    log.info("Saved merged chapter: %s", output_path.name)
    return result


def merge_chapters(
    book_dir: Path,
    preface_pattern: str = DEFAULT_PREFACE_PATTERN,
    chapter_pattern: str = DEFAULT_CHAPTER_PATTERN,
    max_title_length: int = 80,
) -> list[MergeResult]:
    """Segment the manifest into chapters and write them under processed/.

    One failing chapter never stops the others.

    Raises:
        StorageUnavailable: If book_dir is not a directory
        ManifestMissing: If metadata.json does not exist
        ManifestInvalid: If metadata.json cannot be parsed
    """
    ensure_book_dir(book_dir)
    manifest = load_manifest(book_dir)
    log.info("Processing book: %s (%d pages)", manifest.book_number, manifest.total_pages)

    chapters = identify_chapters(
        manifest.table_of_contents, preface_pattern, chapter_pattern
    )
    log.info("Found %d chapters", len(chapters))

    output_dir = book_dir / PROCESSED_DIR
    output_dir.mkdir(parents=True, exist_ok=True)

    results: list[MergeResult] = []
    for chapter in chapters:
        try:
            results.append(merge_chapter(book_dir, output_dir, chapter, max_title_length))
        except ChapterMergeFailed as e:
            log.error("%s", e)
            results.append(MergeResult(chapter=chapter, error=e.message))
        except Exception as e:
            log.exception("Error merging Chapter %d", chapter.chapter_number)
            results.append(MergeResult(chapter=chapter, error=str(e)))

    log.info("Chapter merging completed, files saved in: %s", output_dir)
    return results
