"""Data models for download status reports."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from pandora_pdf.models.book import PageDescriptor


class CaptureStatus(str, Enum):
    """Outcome of checking one expected page file."""

    SUCCESS = "success"
    FAILED = "failed"


class CaptureResult(BaseModel):
    """Status of one expected page as found on disk."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="docbookId")
    title: str
    page_num: int = Field(alias="pageNum")
    status: CaptureStatus
    file_name: str | None = Field(default=None, alias="fileName")
    file_path: str | None = Field(default=None, alias="filePath")
    exists: bool = Field(alias="fileExists")
    size_bytes: int | None = Field(default=None, alias="fileSize")

    @property
    def succeeded(self) -> bool:
        return self.status == CaptureStatus.SUCCESS

    def to_descriptor(self) -> PageDescriptor:
        return PageDescriptor(id=self.id, title=self.title, page_num=self.page_num)


class ReconciliationReport(BaseModel):
    """Download status report for a book directory (output.json).

    Derived from the manifest and the files on disk; regenerated on every
    check, never patched.
    """

    model_config = ConfigDict(populate_by_name=True)

    book_number: str | None = Field(default=None, alias="bookNumber")
    checked_at: datetime = Field(default_factory=datetime.now, alias="checkedAt")
    total_pages: int = Field(alias="totalPages")
    success_count: int = Field(alias="successCount")
    failed_count: int = Field(alias="failedCount")
    results: list[CaptureResult] = Field(default_factory=list, alias="downloadStatuses")
    failed_items: list[PageDescriptor] = Field(default_factory=list, alias="failedItems")

    def find(self, page_id: str) -> CaptureResult | None:
        for result in self.results:
            if result.id == page_id:
                return result
        return None
