"""Data models."""

from pandora_pdf.models.book import (
    UNKNOWN_PAGE,
    ChapterGroup,
    Manifest,
    PageDescriptor,
)
from pandora_pdf.models.status import (
    CaptureResult,
    CaptureStatus,
    ReconciliationReport,
)

__all__ = [
    # Book models
    "UNKNOWN_PAGE",
    "PageDescriptor",
    "Manifest",
    "ChapterGroup",
    # Status models
    "CaptureStatus",
    "CaptureResult",
    "ReconciliationReport",
]
