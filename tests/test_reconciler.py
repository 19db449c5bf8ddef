"""Tests for the download status check."""

import json

import pytest

from conftest import page_path
from pandora_pdf.core.reconciler import (
    build_report,
    is_viable,
    load_failed_items,
    load_or_reconcile,
    reconcile,
)
from pandora_pdf.core.storage import REPORT_FILE, load_report
from pandora_pdf.errors import (
    ManifestInvalid,
    ManifestMissing,
    ReportInvalid,
    StorageUnavailable,
)
from pandora_pdf.models.status import CaptureStatus

TITLES = ["Premessa", "Capitolo 1", "1.1 Origini", "1.2 Sviluppi", "Capitolo 2"]


def _snapshot(book_dir):
    return {p.name: (p.stat().st_size, p.stat().st_mtime_ns) for p in book_dir.iterdir()}


class TestViability:
    def test_rules(self):
        assert is_viable(True, 1001, 1000)
        assert not is_viable(True, 1000, 1000)
        assert not is_viable(True, 500, 1000)
        assert is_viable(True, None, 1000)
        assert not is_viable(False, None, 1000)


class TestReconcile:
    """reconcile() classifies pages and writes output.json."""

    def test_counts_sum_to_total(self, book_dir, write_book):
        manifest = write_book(book_dir, TITLES)
        for page in manifest.table_of_contents[:3]:
            page_path(book_dir, page).write_bytes(b"x" * 2000)

        report = reconcile(book_dir)

        assert report.total_pages == 5
        assert report.success_count == 3
        assert report.failed_count == 2
        assert report.success_count + report.failed_count == report.total_pages

    def test_small_file_is_failed_even_though_it_exists(self, book_dir, write_book):
        manifest = write_book(book_dir, ["Capitolo 1"])
        page_path(book_dir, manifest.table_of_contents[0]).write_bytes(b"x" * 500)

        report = reconcile(book_dir)
        result = report.results[0]

        assert result.exists is True
        assert result.size_bytes == 500
        assert result.status == CaptureStatus.FAILED
        assert report.failed_items == manifest.table_of_contents

    def test_missing_file(self, book_dir, write_book):
        write_book(book_dir, ["Capitolo 1"])

        result = reconcile(book_dir).results[0]

        assert result.exists is False
        assert result.size_bytes is None
        assert result.status == CaptureStatus.FAILED
        assert result.file_name == "page_001__11_1.pdf"

    def test_threshold_is_configurable(self, book_dir, write_book):
        manifest = write_book(book_dir, ["Capitolo 1"])
        page_path(book_dir, manifest.table_of_contents[0]).write_bytes(b"x" * 500)

        assert reconcile(book_dir, min_valid_size=100).success_count == 1

    def test_failed_items_keep_manifest_order(self, book_dir, write_book):
        manifest = write_book(book_dir, TITLES)
        page_path(book_dir, manifest.table_of_contents[2]).write_bytes(b"x" * 2000)

        report = reconcile(book_dir)

        assert [p.page_num for p in report.failed_items] == [1, 2, 4, 5]

    def test_persists_report_with_original_field_names(self, book_dir, write_book):
        write_book(book_dir, TITLES)
        reconcile(book_dir)

        raw = json.loads((book_dir / REPORT_FILE).read_text())
        assert raw["bookNumber"] == "10.978.8815/415073"
        assert raw["failedCount"] == 5
        assert raw["downloadStatuses"][0]["docbookId"] == "_11_1"
        assert raw["downloadStatuses"][0]["fileExists"] is False
        assert raw["downloadStatuses"][0]["status"] == "failed"
        assert raw["failedItems"][0] == {"docbookId": "_11_1", "title": "Premessa", "pageNum": 1}

    def test_idempotent_apart_from_timestamp(self, book_dir, write_book):
        manifest = write_book(book_dir, TITLES)
        page_path(book_dir, manifest.table_of_contents[0]).write_bytes(b"x" * 2000)

        first = reconcile(book_dir).model_dump(exclude={"checked_at"})
        second = reconcile(book_dir).model_dump(exclude={"checked_at"})

        assert first == second

    def test_does_not_touch_page_files(self, book_dir, write_book):
        manifest = write_book(book_dir, TITLES)
        page_path(book_dir, manifest.table_of_contents[0]).write_bytes(b"x" * 10)
        (book_dir / "stray.pdf").write_bytes(b"stray")
        before = {k: v for k, v in _snapshot(book_dir).items() if k != REPORT_FILE}

        reconcile(book_dir)

        after = {k: v for k, v in _snapshot(book_dir).items() if k != REPORT_FILE}
        assert after == before

    def test_build_report_does_not_write(self, book_dir, write_book):
        manifest = write_book(book_dir, TITLES)
        build_report(book_dir, manifest)
        assert not (book_dir / REPORT_FILE).exists()


class TestReconcileErrors:
    def test_missing_manifest(self, book_dir):
        with pytest.raises(ManifestMissing):
            reconcile(book_dir)
        assert not (book_dir / REPORT_FILE).exists()

    def test_invalid_manifest(self, book_dir):
        (book_dir / "metadata.json").write_text("[]")
        with pytest.raises(ManifestInvalid):
            reconcile(book_dir)
        assert not (book_dir / REPORT_FILE).exists()

    def test_missing_directory(self, tmp_path):
        with pytest.raises(StorageUnavailable):
            reconcile(tmp_path / "nope")


class TestLoadFailedItems:
    """Reusing the persisted report."""

    def test_reconciles_when_no_report(self, book_dir, write_book):
        write_book(book_dir, TITLES)

        failed = load_failed_items(book_dir)

        assert len(failed) == 5
        assert (book_dir / REPORT_FILE).exists()

    def test_uses_persisted_report_without_recomputing(self, book_dir, write_book):
        manifest = write_book(book_dir, TITLES)
        reconcile(book_dir)
        # Files written after the check are not seen until the next check
        for page in manifest.table_of_contents:
            page_path(book_dir, page).write_bytes(b"x" * 2000)

        assert len(load_failed_items(book_dir)) == 5
        assert reconcile(book_dir).failed_count == 0

    def test_unreadable_report_is_regenerated(self, book_dir, write_book):
        write_book(book_dir, TITLES)
        (book_dir / REPORT_FILE).write_text("garbage")

        report = load_or_reconcile(book_dir)

        assert report.failed_count == 5
        assert load_report(book_dir).failed_count == 5

    def test_non_utf8_report_is_regenerated(self, book_dir, write_book):
        write_book(book_dir, TITLES)
        (book_dir / REPORT_FILE).write_bytes(b"\xff\xfe\x00garbage")

        report = load_or_reconcile(book_dir)

        assert report.failed_count == 5
        assert load_report(book_dir).failed_count == 5


class TestLoadReport:
    def test_non_utf8_raises_report_invalid(self, book_dir):
        (book_dir / REPORT_FILE).write_bytes(b"\xff\xfe\x00garbage")

        with pytest.raises(ReportInvalid):
            load_report(book_dir)
