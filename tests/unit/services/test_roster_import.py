"""Tests for the two-phase roster import service."""

from __future__ import annotations

import pytest

from hrdocs.models.roster import RosterRecord, TriState
from hrdocs.services.roster_import import RosterImporter
from tests.fakes import MemoryUserStore


@pytest.fixture
def store():
    s = MemoryUserStore()
    s.add("11111", first_name="Ana")
    return s


ROSTER = [
    RosterRecord(id="11111", active_flag=TriState.FALSE),
    RosterRecord(id="22222", first_name="Luis"),
    RosterRecord(id="bad"),
]


class TestRosterImporter:
    def test_dry_run_does_not_write(self, store):
        report = RosterImporter(store).dry_run(ROSTER)
        assert report.will_deactivate == 1
        assert report.will_insert == 1
        assert len(report.invalid) == 1
        assert store.get("11111").is_active is True
        assert store.get("22222") is None

    def test_commit_returns_preview_and_result(self, store):
        outcome = RosterImporter(store).commit(ROSTER)
        assert outcome.preview.actions() == outcome.result.actions()
        assert outcome.result.deactivated == 1
        assert outcome.result.inserted == 1
        assert store.get("11111").is_active is False
        assert store.get("22222").first_name == "Luis"
