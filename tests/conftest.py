"""Shared fixtures: manifests, small real PDFs and an in-memory capturer."""

import asyncio
import io
from contextlib import asynccontextmanager
from pathlib import Path

import pytest
from pypdf import PdfWriter

from pandora_pdf.core.capture import Capturer
from pandora_pdf.core.storage import page_artifact_name, write_manifest
from pandora_pdf.errors import CaptureFailed
from pandora_pdf.models.book import Manifest, PageDescriptor

BOOK_NUMBER = "10.978.8815/415073"


def make_pdf(pages: int = 1, padding: int = 2000) -> bytes:
    """A valid PDF; padding goes into the metadata to push it past the size threshold."""
    writer = PdfWriter()
    for _ in range(pages):
        writer.add_blank_page(width=200, height=200)
    if padding:
        writer.add_metadata({"/Subject": "x" * padding})
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


def make_pages(titles: list[str]) -> list[PageDescriptor]:
    return [
        PageDescriptor(id=f"_11_{n}", title=title, page_num=n)
        for n, title in enumerate(titles, start=1)
    ]


def page_path(book_dir: Path, page: PageDescriptor) -> Path:
    return book_dir / page_artifact_name(page)


class FakeCapturer(Capturer):
    """Records captures and writes fixed bytes; ids in fail_ids raise CaptureFailed."""

    def __init__(self, fail_ids=(), content: bytes | None = None):
        self.fail_ids = set(fail_ids)
        self.content = content if content is not None else make_pdf()
        self.calls: list[tuple[object, PageDescriptor]] = []
        self.events: list[tuple[str, str]] = []
        self.opened = 0
        self.closed = 0
        self.active = 0
        self.max_active = 0

    @property
    def main_page(self):
        return "main"

    async def open_page(self):
        self.opened += 1
        return f"page-{self.opened}"

    async def close_page(self, page) -> None:
        self.closed += 1

    async def capture(self, page, descriptor: PageDescriptor, target_dir: Path) -> Path:
        self.calls.append((page, descriptor))
        self.events.append(("start", descriptor.id))
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(0)
            if descriptor.id in self.fail_ids:
                raise CaptureFailed(descriptor, "selectableArea not found")
            path = target_dir / page_artifact_name(descriptor)
            path.write_bytes(self.content)
            return path
        finally:
            self.active -= 1
            self.events.append(("end", descriptor.id))

    @property
    def captured_ids(self) -> list[str]:
        return [descriptor.id for _, descriptor in self.calls]


@pytest.fixture
def book_dir(tmp_path: Path) -> Path:
    path = tmp_path / "downloads" / "10_978_8815_415073"
    path.mkdir(parents=True)
    return path


@pytest.fixture
def write_book():
    """Write metadata.json for the given titles and return the manifest."""

    def _write(book_dir: Path, titles: list[str]) -> Manifest:
        manifest = Manifest.build(BOOK_NUMBER, make_pages(titles))
        write_manifest(book_dir, manifest)
        return manifest

    return _write


@pytest.fixture
def fake_session():
    """Session factory yielding a FakeCapturer; records the book numbers it was opened for."""

    def _factory(capturer: FakeCapturer, opened: list[str]):
        @asynccontextmanager
        async def factory(book_number: str):
            opened.append(book_number)
            yield capturer

        return factory

    return _factory
