"""Data models for the book manifest and chapter structure."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

# pageNum used for reconstructed entries whose position is unknown
UNKNOWN_PAGE = 0


class PageDescriptor(BaseModel):
    """Single table-of-contents entry, one captured page per entry."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(alias="docbookId")
    title: str
    page_num: int = Field(alias="pageNum", ge=0)

    @property
    def position_known(self) -> bool:
        return self.page_num != UNKNOWN_PAGE


class Manifest(BaseModel):
    """Book manifest written once per book directory (metadata.json)."""

    model_config = ConfigDict(populate_by_name=True)

    book_number: str | None = Field(default=None, alias="bookNumber")
    extracted_at: datetime = Field(default_factory=datetime.now, alias="extractedAt")
    total_pages: int = Field(alias="totalPages", ge=0)
    table_of_contents: list[PageDescriptor] = Field(alias="tableOfContents")

    @model_validator(mode="after")
    def check_pages(self) -> "Manifest":
        """Enforce page count, unique ids and a contiguous 1..N page range."""
        toc = self.table_of_contents
        if self.total_pages != len(toc):
            raise ValueError(
                f"totalPages is {self.total_pages} but tableOfContents has {len(toc)} entries"
            )
        ids = [page.id for page in toc]
        if len(set(ids)) != len(ids):
            raise ValueError("duplicate docbookId in tableOfContents")
        page_nums = sorted(page.page_num for page in toc)
        if page_nums != list(range(1, len(toc) + 1)):
            raise ValueError("pageNum values must form a contiguous 1..totalPages range")
        return self

    @classmethod
    def build(
        cls,
        book_number: str,
        pages: list[PageDescriptor],
        extracted_at: datetime | None = None,
    ) -> "Manifest":
        return cls(
            book_number=book_number,
            extracted_at=extracted_at or datetime.now(),
            total_pages=len(pages),
            table_of_contents=pages,
        )

    def find(self, page_id: str) -> PageDescriptor | None:
        for page in self.table_of_contents:
            if page.id == page_id:
                return page
        return None


class ChapterGroup(BaseModel):
    """Contiguous run of pages merged into one chapter PDF.

    chapter_number 0 is reserved for the standalone preface.
    """

    chapter_number: int
    title: str
    start_page: int
    end_page: int
    pages: list[PageDescriptor] = Field(default_factory=list)

    @property
    def is_preface(self) -> bool:
        return self.chapter_number == 0
