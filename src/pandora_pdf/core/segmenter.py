"""Group table-of-contents pages into chapters by title."""

import logging
import re
from typing import Sequence

from pandora_pdf.models.book import ChapterGroup, PageDescriptor

log = logging.getLogger(__name__)

DEFAULT_PREFACE_PATTERN = r"premessa"
DEFAULT_CHAPTER_PATTERN = r"^capitolo\s+\d+"

PREFACE_CHAPTER = 0


class ChapterSegmenter:
    """Single pass over the pages, opening a chapter at every chapter marker.

    - A preface title closes the open chapter and becomes chapter 0 on its own.
    - A chapter title ("Capitolo 3 ...") closes the open chapter and starts
      the next numbered one.
    - Any other page joins the open chapter. Pages before the first marker
      belong to no chapter and are dropped with a warning.
    """

    def __init__(
        self,
        preface_pattern: str = DEFAULT_PREFACE_PATTERN,
        chapter_pattern: str = DEFAULT_CHAPTER_PATTERN,
    ):
        self.preface_re = re.compile(preface_pattern, re.IGNORECASE)
        self.chapter_re = re.compile(chapter_pattern, re.IGNORECASE)

    def is_preface(self, title: str) -> bool:
        return self.preface_re.search(title) is not None

    def is_chapter_start(self, title: str) -> bool:
        return self.chapter_re.search(title) is not None

    def segment(self, pages: Sequence[PageDescriptor]) -> list[ChapterGroup]:
        chapters: list[ChapterGroup] = []
        if not pages:
            return chapters

        last_page_num = pages[-1].page_num
        current: ChapterGroup | None = None
        next_number = 1

        for page in pages:
            if self.is_preface(page.title):
                if current is not None:
                    current.end_page = page.page_num - 1
                    chapters.append(current)
                chapters.append(
                    ChapterGroup(
                        chapter_number=PREFACE_CHAPTER,
                        title=page.title,
                        start_page=page.page_num,
                        end_page=page.page_num,
                        pages=[page],
                    )
                )
                current = None
            elif self.is_chapter_start(page.title):
                if current is not None:
                    current.end_page = page.page_num - 1
                    chapters.append(current)
                current = ChapterGroup(
                    chapter_number=next_number,
                    title=page.title,
                    start_page=page.page_num,
                    end_page=last_page_num,
                    pages=[page],
                )
                next_number += 1
            elif current is not None:
                current.pages.append(page)
            else:
                log.warning("Orphaned content before first chapter: %r", page.title)

        if current is not None:
            current.end_page = last_page_num
            chapters.append(current)

        return chapters


def identify_chapters(
    pages: Sequence[PageDescriptor],
    preface_pattern: str = DEFAULT_PREFACE_PATTERN,
    chapter_pattern: str = DEFAULT_CHAPTER_PATTERN,
) -> list[ChapterGroup]:
    """Segment pages into chapter groups."""
    return ChapterSegmenter(preface_pattern, chapter_pattern).segment(pages)
