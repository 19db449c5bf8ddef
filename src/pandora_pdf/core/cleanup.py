"""Remove stray files from a book directory."""

import logging
from dataclasses import dataclass, field
from pathlib import Path

from pandora_pdf.core.storage import (
    MANIFEST_FILE,
    REPORT_FILE,
    ensure_book_dir,
    load_manifest,
    load_report,
    page_artifact_name,
)
from pandora_pdf.errors import ManifestInvalid, ManifestMissing, ReportInvalid

log = logging.getLogger(__name__)


@dataclass
class CleanupPlan:
    """Files found in a book directory, split by whether they are expected."""

    book_dir: Path
    expected: set[str]
    keep: list[str] = field(default_factory=list)
    delete: list[tuple[str, int]] = field(default_factory=list)  # (name, size)
    deleted: int = 0
    errors: int = 0

    @property
    def aborted(self) -> bool:
        return not self.expected


def get_expected_files(book_dir: Path) -> set[str]:
    """Names the book directory should contain.

    Page names come from output.json when present, else from
    metadata.json. An empty set means neither file could be read.
    """
    expected: set[str] = set()

    try:
        report = load_report(book_dir)
    except ReportInvalid as e:
        log.warning("Ignoring unreadable %s: %s", REPORT_FILE, e.reason)
        report = None

    try:
        if report is not None:
            page_files = {r.file_name for r in report.results if r.file_name}
            log.info("Found %d expected files from %s", len(page_files), REPORT_FILE)
        else:
            manifest = load_manifest(book_dir)
            page_files = {page_artifact_name(p) for p in manifest.table_of_contents}
            log.info("Generated %d expected files from %s", len(page_files), MANIFEST_FILE)
    except (ManifestMissing, ManifestInvalid) as e:
        log.error("Could not read %s or %s: %s", REPORT_FILE, MANIFEST_FILE, e)
        return expected

    expected.update(page_files)
    expected.add(REPORT_FILE)
    expected.add(MANIFEST_FILE)
    return expected


def plan_cleanup(book_dir: Path) -> CleanupPlan:
    """Work out which files would be deleted, without deleting anything.

    Only regular files are considered; subdirectories such as processed/
    are always kept.
    """
    ensure_book_dir(book_dir)
    plan = CleanupPlan(book_dir=book_dir, expected=get_expected_files(book_dir))
    if plan.aborted:
        return plan

    for path in sorted(book_dir.iterdir()):
        if not path.is_file():
            continue
        if path.name in plan.expected:
            plan.keep.append(path.name)
        else:
            plan.delete.append((path.name, path.stat().st_size))

    return plan


def cleanup_directory(book_dir: Path, dry_run: bool = True) -> CleanupPlan:
    """Delete files not in the expected set (only when dry_run is False)."""
    plan = plan_cleanup(book_dir)
    if plan.aborted:
        log.warning("No expected files found, aborting cleanup")
        return plan

    if dry_run or not plan.delete:
        return plan

    log.info("Deleting %d files...", len(plan.delete))
    for name, _size in plan.delete:
        try:
            (book_dir / name).unlink()
            plan.deleted += 1
            log.debug("Deleted: %s", name)
        except OSError as e:
            plan.errors += 1
            log.error("Failed to delete %s: %s", name, e)

    return plan
