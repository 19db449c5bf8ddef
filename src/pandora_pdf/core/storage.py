"""Book directory layout: file names, manifest and report persistence."""

import logging
import re
import unicodedata
from pathlib import Path

from pydantic import BaseModel, ValidationError

from pandora_pdf.errors import (
    ManifestInvalid,
    ManifestMissing,
    ReportInvalid,
    StorageUnavailable,
)
from pandora_pdf.models.book import Manifest, PageDescriptor
from pandora_pdf.models.status import ReconciliationReport

log = logging.getLogger(__name__)

MANIFEST_FILE = "metadata.json"
REPORT_FILE = "output.json"
PROCESSED_DIR = "processed"
PAGE_EXT = ".pdf"

_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]")


def artifact_name(page_num: int, page_id: str, ext: str = PAGE_EXT) -> str:
    """File name of a captured page.

    Shared by capture, status checks, merging and cleanup:
    page_<pageNum:03d>_<id with non-alphanumerics as underscores><ext>
    """
    return f"page_{page_num:03d}_{_NON_ALNUM.sub('_', page_id)}{ext}"


def page_artifact_name(page: PageDescriptor, ext: str = PAGE_EXT) -> str:
    return artifact_name(page.page_num, page.id, ext)


def sanitize_filename(title: str, max_length: int = 80) -> str:
    """Turn a chapter title into a portable file name stem.

    "Capitolo 1. L'età moderna" -> "capitolo_1._leta_moderna"
    """
    # Split accented letters into base + combining mark, then drop the marks
    text = unicodedata.normalize("NFKD", title)
    text = "".join(c for c in text if not unicodedata.combining(c))
    text = re.sub(r"['‘’`\"]", "", text)
    text = re.sub(r"[^a-zA-Z0-9\s\-_.]", "", text)
    text = re.sub(r"\s+", "_", text)
    text = text.strip("_").lower()
    return text[:max_length]


def book_dir_name(book_number: str) -> str:
    """Directory name for a book number ("10.978.8815/415073" -> "10_978_8815_415073")."""
    return _NON_ALNUM.sub("_", book_number)


def book_number_from_dir(book_dir: Path) -> str:
    """Infer a dotted book number from a directory name."""
    return book_dir.name.replace("_", ".")


def ensure_book_dir(book_dir: Path) -> Path:
    """Raise StorageUnavailable unless book_dir is an existing directory."""
    if not book_dir.is_dir():
        raise StorageUnavailable(book_dir)
    return book_dir


def write_json(path: Path, model: BaseModel) -> Path:
    """Replace path with the model's JSON in one step."""
    tmp_path = path.with_name(path.name + ".tmp")
    tmp_path.write_text(model.model_dump_json(indent=2, by_alias=True), encoding="utf-8")
    tmp_path.replace(path)
    return path


def load_manifest(book_dir: Path) -> Manifest:
    """Load and validate metadata.json.

    Raises:
        ManifestMissing: If the file does not exist
        ManifestInvalid: If it cannot be parsed or breaks the page invariants
    """
    manifest_path = book_dir / MANIFEST_FILE
    if not manifest_path.exists():
        raise ManifestMissing(manifest_path)
    try:
        return Manifest.model_validate_json(manifest_path.read_text(encoding="utf-8"))
    except (ValidationError, OSError, UnicodeDecodeError) as e:
        raise ManifestInvalid(manifest_path, str(e)) from e


def write_manifest(book_dir: Path, manifest: Manifest) -> Path:
    return write_json(book_dir / MANIFEST_FILE, manifest)


def load_report(book_dir: Path) -> ReconciliationReport | None:
    """Load output.json, or None if it does not exist.

    Raises:
        ReportInvalid: If the file cannot be read, decoded or parsed
    """
    report_path = book_dir / REPORT_FILE
    if not report_path.exists():
        return None
    try:
        return ReconciliationReport.model_validate_json(
            report_path.read_text(encoding="utf-8")
        )
    except (ValidationError, OSError, UnicodeDecodeError) as e:
        raise ReportInvalid(report_path, str(e)) from e


def write_report(book_dir: Path, report: ReconciliationReport) -> Path:
    return write_json(book_dir / REPORT_FILE, report)
