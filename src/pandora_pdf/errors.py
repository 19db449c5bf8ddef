"""Exception types raised by the download and merge pipeline."""

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pandora_pdf.models.book import PageDescriptor


class PandoraError(Exception):
    """Base class for all pandora-pdf errors."""


class StorageUnavailable(PandoraError):
    """Book directory is missing or not a directory."""

    def __init__(self, path: Path):
        self.path = path
        super().__init__(f"Book directory not available: {path}")


class ManifestMissing(PandoraError):
    """metadata.json does not exist in the book directory."""

    def __init__(self, path: Path):
        self.path = path
        super().__init__(f"Metadata file not found: {path}")


class ManifestInvalid(PandoraError):
    """metadata.json exists but cannot be parsed or breaks its invariants."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid metadata file {path}: {reason}")


class ReportInvalid(PandoraError):
    """output.json exists but cannot be read or parsed."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid report file {path}: {reason}")


class LoginFailed(PandoraError):
    """The browser session could not be authenticated."""


class CaptureFailed(PandoraError):
    """A single page could not be captured."""

    def __init__(self, descriptor: "PageDescriptor", message: str):
        self.descriptor = descriptor
        self.message = message
        super().__init__(
            f"Page {descriptor.page_num} ({descriptor.id}) failed: {message}"
        )


class PartialBatchFailure(PandoraError):
    """One or more captures in a batch run failed."""

    def __init__(self, failures: list[CaptureFailed]):
        self.failures = failures
        super().__init__(f"{len(failures)} page capture(s) failed")


class ChapterMergeFailed(PandoraError):
    """A chapter could not be written as a combined PDF."""

    def __init__(self, chapter_number: int, message: str):
        self.chapter_number = chapter_number
        self.message = message
        super().__init__(f"Chapter {chapter_number} merge failed: {message}")
