"""Tests for the storage relocator."""

from __future__ import annotations

import logging
import os

import pytest

from hrdocs.core.exceptions import FilesystemError
from hrdocs.models.payslip import PayslipLocation, RelocationOutcome
from hrdocs.persistence.local_files import LocalFileStore
from hrdocs.storage.relocator import (
    DEFAULT_STRATEGIES,
    StorageRelocator,
    reconcile_storage,
    target_for,
)
from tests.fakes import MemoryFileStore


def location(payslip_id=1, cedula="11111", year=2024, month=1, fortnight=None,
             file_name="a.pdf", recorded_path=None):
    return PayslipLocation(
        payslip_id=payslip_id, cedula=cedula, period_year=year, period_month=month,
        fortnight=fortnight, file_name=file_name, recorded_path=recorded_path,
    )


@pytest.fixture
def files(tmp_path):
    return LocalFileStore(tmp_path)


class TestStrategies:
    def test_default_order(self):
        assert [name for name, _ in DEFAULT_STRATEGIES] == [
            "recorded", "loose", "legacy /2/", "legacy fortnight",
        ]

    def test_target(self):
        assert target_for(location(month=7)) == os.path.join("11111", "2024", "07", "a.pdf")


class TestReconcile:
    def test_already_correct_is_untouched(self, files):
        doc = location()
        files.write(target_for(doc), b"x")
        summary = reconcile_storage(files, [doc])
        assert summary.already_correct == 1
        assert summary.moved == 0
        assert summary.entries == []

    def test_moves_from_recorded_path(self, files):
        doc = location(recorded_path="viejos\\enero\\a.pdf")
        files.write(os.path.join("viejos", "enero", "a.pdf"), b"pdf")
        summary = reconcile_storage(files, [doc])

        assert summary.moved == 1
        assert files.read(target_for(doc)) == b"pdf"
        assert not files.exists(os.path.join("viejos", "enero", "a.pdf"))
        entry = summary.entries[0]
        assert entry.outcome is RelocationOutcome.MOVED
        assert entry.strategy == "recorded"

    def test_moves_loose_file_from_root(self, files):
        doc = location()
        files.write("a.pdf", b"pdf")
        summary = reconcile_storage(files, [doc])
        assert summary.moved == 1
        assert summary.entries[0].strategy == "loose"

    def test_moves_from_legacy_numbered_subdir(self, files):
        doc = location()
        files.write(os.path.join("11111", "2024", "01", "2", "a.pdf"), b"pdf")
        summary = reconcile_storage(files, [doc])
        assert summary.entries[0].strategy == "legacy /2/"
        assert files.exists(target_for(doc))

    def test_moves_from_fortnight_subdir(self, files):
        doc = location(fortnight=2)
        files.write(os.path.join("11111", "2024", "01", "Q2", "a.pdf"), b"pdf")
        summary = reconcile_storage(files, [doc])
        assert summary.entries[0].strategy == "legacy fortnight"
        assert files.exists(target_for(doc))

    def test_monthly_subdir(self, files):
        doc = location()
        files.write(os.path.join("11111", "2024", "01", "M", "a.pdf"), b"pdf")
        assert reconcile_storage(files, [doc]).moved == 1

    def test_first_matching_strategy_wins(self, files):
        doc = location(recorded_path="old/a.pdf")
        files.write(os.path.join("old", "a.pdf"), b"recorded")
        files.write("a.pdf", b"loose")
        reconcile_storage(files, [doc])
        assert files.read(target_for(doc)) == b"recorded"
        assert files.exists("a.pdf")

    def test_missing_is_reported_and_logged(self, files, caplog):
        doc = location(payslip_id=42, recorded_path="old/a.pdf")
        with caplog.at_level(logging.WARNING, logger="hrdocs.storage.relocator"):
            summary = reconcile_storage(files, [doc])
        assert summary.missing == 1
        entry = summary.entries[0]
        assert entry.outcome is RelocationOutcome.MISSING
        assert entry.payslip_id == 42
        assert entry.target == target_for(doc)
        assert caplog.text.count("[MISS]") == 1
        assert "42" in caplog.text

    def test_second_run_moves_nothing(self, files):
        docs = [location(1, file_name="a.pdf"), location(2, cedula="22222", file_name="b.pdf")]
        files.write("a.pdf", b"a")
        files.write("b.pdf", b"b")
        first = reconcile_storage(files, docs)
        second = reconcile_storage(files, docs)
        assert first.moved == 2
        assert second.moved == 0
        assert second.already_correct == 2

    def test_counts_add_up(self, files):
        docs = [location(1), location(2, file_name="b.pdf"), location(3, file_name="c.pdf")]
        files.write(target_for(docs[0]), b"a")
        files.write("b.pdf", b"b")
        summary = reconcile_storage(files, docs)
        assert (summary.moved, summary.already_correct, summary.missing, summary.failed) == (1, 1, 1, 0)
        assert summary.total == 3

    def test_wire_aliases(self, files):
        dumped = reconcile_storage(files, [location()]).model_dump(by_alias=True)
        assert "alreadyCorrect" in dumped
        assert dumped["entries"][0]["payslipId"] == 1


class _FailingMoves(MemoryFileStore):
    def __init__(self, fail_for):
        super().__init__()
        self._fail_for = fail_for

    def move(self, src, dst):
        if src == self._fail_for:
            raise FilesystemError("rename", src, "permission denied")
        super().move(src, dst)


class TestFailures:
    def test_failure_is_counted_and_run_continues(self, caplog):
        files = _FailingMoves(fail_for="a.pdf")
        files.write("a.pdf", b"a")
        files.write("b.pdf", b"b")
        docs = [location(1, file_name="a.pdf"), location(2, file_name="b.pdf")]

        with caplog.at_level(logging.ERROR, logger="hrdocs.storage.relocator"):
            summary = StorageRelocator(files).reconcile(docs)

        assert summary.failed == 1
        assert summary.moved == 1
        assert summary.entries[0].outcome is RelocationOutcome.FAILED
        assert "permission denied" in summary.entries[0].detail
        assert "[FAIL]" in caplog.text

    def test_bad_period_month_fails_only_that_record(self, files):
        files.write("a.pdf", b"a")
        docs = [location(1, month=13, file_name="bad.pdf"), location(2, file_name="a.pdf")]

        summary = reconcile_storage(files, docs)

        assert summary.failed == 1
        assert summary.moved == 1
        failed = summary.entries[0]
        assert failed.payslip_id == 1
        assert failed.outcome is RelocationOutcome.FAILED
        assert "13" in failed.detail
        assert files.exists(target_for(docs[1]))

    def test_recorded_path_outside_root_fails_that_record(self, files):
        doc = location(recorded_path="..\\..\\otro\\a.pdf")
        summary = reconcile_storage(files, [doc])
        assert summary.failed == 1
        assert "outside storage root" in summary.entries[0].detail

    def test_custom_strategies(self):
        files = MemoryFileStore()
        files.write(os.path.join("archive", "a.pdf"), b"a")
        relocator = StorageRelocator(files, strategies=[("archive", lambda d: os.path.join("archive", d.file_name))])
        summary = relocator.reconcile([location()])
        assert summary.moved == 1
        assert summary.entries[0].strategy == "archive"
