"""Tests for chapter segmentation."""

import logging

from conftest import make_pages
from pandora_pdf.core.segmenter import PREFACE_CHAPTER, ChapterSegmenter, identify_chapters

BOOK = [
    "Premessa",
    "Capitolo 1 - Le origini",
    "1.1 Il contesto",
    "1.2 Le fonti",
    "Capitolo 2 - Lo sviluppo",
    "2.1 Primi passi",
    "Bibliografia",
]


def summary(chapters):
    return [
        (c.chapter_number, c.start_page, c.end_page, [p.page_num for p in c.pages])
        for c in chapters
    ]


class TestIdentifyChapters:
    """Preface, numbered chapters and their page ranges."""

    def test_preface_then_chapters(self):
        chapters = identify_chapters(make_pages(BOOK))

        assert summary(chapters) == [
            (PREFACE_CHAPTER, 1, 1, [1]),
            (1, 2, 4, [2, 3, 4]),
            (2, 5, 7, [5, 6, 7]),
        ]
        assert chapters[0].is_preface
        assert chapters[1].title == "Capitolo 1 - Le origini"

    def test_pages_before_first_chapter_are_dropped(self, caplog):
        pages = make_pages(["Copertina", "Indice", "Capitolo 1", "1.1 Testo"])

        with caplog.at_level(logging.WARNING):
            chapters = identify_chapters(pages)

        assert summary(chapters) == [(1, 3, 4, [3, 4])]
        assert "Copertina" in caplog.text
        assert "Indice" in caplog.text

    def test_no_markers_gives_no_chapters(self):
        assert identify_chapters(make_pages(["Copertina", "Indice"])) == []

    def test_empty_input(self):
        assert identify_chapters([]) == []

    def test_matching_is_case_insensitive(self):
        chapters = identify_chapters(make_pages(["PREMESSA", "CAPITOLO 1", "capitolo 2"]))

        assert [c.chapter_number for c in chapters] == [0, 1, 2]

    def test_chapter_marker_must_start_the_title(self):
        pages = make_pages(["Capitolo 1", "Note al capitolo 1", "Capitolo 2"])

        chapters = identify_chapters(pages)

        assert summary(chapters) == [(1, 1, 2, [1, 2]), (2, 3, 3, [3])]

    def test_preface_between_chapters_closes_open_chapter(self):
        pages = make_pages(["Capitolo 1", "1.1 Testo", "Premessa alla seconda parte", "Altro"])

        chapters = identify_chapters(pages)

        assert summary(chapters) == [(1, 1, 2, [1, 2]), (PREFACE_CHAPTER, 3, 3, [3])]

    def test_chapters_do_not_overlap(self):
        chapters = identify_chapters(make_pages(BOOK))

        seen = [p.page_num for c in chapters for p in c.pages]
        assert len(seen) == len(set(seen))
        for earlier, later in zip(chapters, chapters[1:]):
            assert earlier.end_page < later.start_page

    def test_deterministic(self):
        pages = make_pages(BOOK)
        assert identify_chapters(pages) == identify_chapters(pages)

    def test_custom_patterns(self):
        pages = make_pages(["Prefazione", "Parte 1", "Testo", "Parte 2"])

        chapters = identify_chapters(
            pages, preface_pattern=r"prefazione", chapter_pattern=r"^parte\s+\d+"
        )

        assert summary(chapters) == [(0, 1, 1, [1]), (1, 2, 3, [2, 3]), (2, 4, 4, [4])]


class TestChapterSegmenter:
    def test_predicates(self):
        segmenter = ChapterSegmenter()

        assert segmenter.is_preface("Premessa")
        assert segmenter.is_preface("Nota di premessa")
        assert segmenter.is_chapter_start("Capitolo 12 Conclusioni")
        assert not segmenter.is_chapter_start("Capitolo primo")
        assert not segmenter.is_chapter_start("Sul capitolo 3")
