"""Tests for the command line interface."""

from pathlib import Path

import pytest
from typer.testing import CliRunner

from conftest import make_pdf, page_path
from pandora_pdf.cli import app
from pandora_pdf.commands.retry import resolve_retry_target
from pandora_pdf.core.storage import PROCESSED_DIR, REPORT_FILE

runner = CliRunner()

TITLES = ["Premessa", "Capitolo 1", "1.1 Testo"]


class TestCheckCommand:
    def test_reports_failed_pages(self, book_dir, write_book):
        manifest = write_book(book_dir, TITLES)
        page_path(book_dir, manifest.table_of_contents[0]).write_bytes(b"x" * 2000)

        result = runner.invoke(app, ["check", str(book_dir)])

        assert result.exit_code == 0
        assert "Failed Pages" in result.output
        assert "_11_2" in result.output
        assert (book_dir / REPORT_FILE).exists()

    def test_all_downloaded(self, book_dir, write_book):
        manifest = write_book(book_dir, TITLES)
        for page in manifest.table_of_contents:
            page_path(book_dir, page).write_bytes(b"x" * 2000)

        result = runner.invoke(app, ["check", str(book_dir)])

        assert result.exit_code == 0
        assert "All pages are downloaded" in result.output

    def test_missing_manifest_exits_with_error(self, book_dir):
        result = runner.invoke(app, ["check", str(book_dir)])

        assert result.exit_code == 1
        assert "Error:" in result.output
        assert not (book_dir / REPORT_FILE).exists()


class TestMergeCommand:
    def test_merges(self, book_dir, write_book):
        manifest = write_book(book_dir, TITLES)
        for page in manifest.table_of_contents:
            page_path(book_dir, page).write_bytes(make_pdf())

        result = runner.invoke(app, ["merge", str(book_dir)])

        assert result.exit_code == 0
        assert (book_dir / PROCESSED_DIR / "premessa.pdf").exists()
        assert (book_dir / PROCESSED_DIR / "chapter_01_capitolo_1.pdf").exists()

    def test_complete_chapters_show_plain_dash_for_missing(self, book_dir, write_book):
        manifest = write_book(book_dir, TITLES)
        for page in manifest.table_of_contents:
            page_path(book_dir, page).write_bytes(make_pdf())

        result = runner.invoke(app, ["merge", str(book_dir)])

        assert result.exit_code == 0
        assert "\u2014" not in result.output

    def test_missing_directory(self, tmp_path):
        result = runner.invoke(app, ["merge", str(tmp_path / "nope")])

        assert result.exit_code == 1


class TestCleanupCommand:
    def test_dry_run_by_default(self, book_dir, write_book):
        write_book(book_dir, TITLES)
        (book_dir / "stray.txt").write_text("stray")

        result = runner.invoke(app, ["cleanup", str(book_dir)])

        assert result.exit_code == 0
        assert "DRY RUN" in result.output
        assert (book_dir / "stray.txt").exists()

    def test_live(self, book_dir, write_book):
        write_book(book_dir, TITLES)
        (book_dir / "stray.txt").write_text("stray")

        result = runner.invoke(app, ["cleanup", str(book_dir), "--live"])

        assert result.exit_code == 0
        assert not (book_dir / "stray.txt").exists()


class TestRetryCommand:
    def test_nothing_to_retry_needs_no_login(self, book_dir, write_book, monkeypatch):
        monkeypatch.delenv("PANDORA_EMAIL", raising=False)
        monkeypatch.delenv("PANDORA_PASSWORD", raising=False)
        manifest = write_book(book_dir, TITLES)
        for page in manifest.table_of_contents:
            page_path(book_dir, page).write_bytes(b"x" * 2000)

        result = runner.invoke(app, ["retry", str(book_dir)])

        assert result.exit_code == 0
        assert "No failed downloads found" in result.output


class TestResolveRetryTarget:
    """Book directory and book id from the retry arguments."""

    @pytest.mark.parametrize(
        "args, expected_dir, expected_id",
        [
            (
                ("downloads/10_978_8815_415073", None),
                Path("downloads/10_978_8815_415073"),
                None,
            ),
            (
                ("10.978.8815.415073", None),
                Path("downloads/10_978_8815_415073"),
                None,
            ),
            (
                ("doi/10.978.8815/415073", None),
                Path("downloads/10_978_8815_415073"),
                "10.978.8815/415073",
            ),
            (
                ("my_books/libro", "doi/10.978.8815/415073/"),
                Path("my_books/libro"),
                "10.978.8815/415073",
            ),
            (
                ("doi/10.978.8815/415073", "my_books/libro"),
                Path("my_books/libro"),
                "10.978.8815/415073",
            ),
        ],
    )
    def test_targets(self, args, expected_dir, expected_id):
        assert resolve_retry_target(*args) == (expected_dir, expected_id)

    def test_custom_downloads_dir(self, tmp_path):
        book_dir, _ = resolve_retry_target("10.978.8815.415073", downloads_dir=tmp_path)
        assert book_dir == tmp_path / "10_978_8815_415073"

    def test_invalid_doi(self):
        with pytest.raises(ValueError, match="Invalid DOI"):
            resolve_retry_target("doi/415073")
