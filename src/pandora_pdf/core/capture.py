"""Abstract page capture interface used by the batch downloader."""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from pandora_pdf.models.book import PageDescriptor


class Capturer(ABC):
    """Turns one reader page into a single-page PDF on disk.

    Implementations own a logged-in browser session. Page handles are
    opaque to the downloader; it only passes them back to the capturer.
    """

    @property
    @abstractmethod
    def main_page(self) -> Any:
        """Page handle used for sequential captures."""

    @abstractmethod
    async def open_page(self) -> Any:
        """Open a new browsing context for one concurrent capture."""

    @abstractmethod
    async def close_page(self, page: Any) -> None:
        """Release a handle returned by open_page()."""

    @abstractmethod
    async def capture(
        self,
        page: Any,
        descriptor: PageDescriptor,
        target_dir: Path,
    ) -> Path:
        """Capture descriptor into target_dir and return the written file.

        Raises:
            CaptureFailed: If the page cannot be loaded or rendered
        """
