"""Tests for the existing-state snapshot."""

from __future__ import annotations

import pytest

from hrdocs.models.roster import RosterRecord
from hrdocs.reconciliation.index import ExistingStateIndex
from tests.fakes import MemoryUserStore


@pytest.fixture
def store():
    s = MemoryUserStore()
    s.add("11111", first_name="Ana")
    s.add("22222", first_name="Luis", is_active=False)
    return s


class TestBuild:
    def test_holds_only_users_named_in_the_roster(self, store):
        index = ExistingStateIndex.build(store, [RosterRecord(id="11111"), RosterRecord(id="33333")])
        assert set(index) == {"11111"}
        assert index["11111"].first_name == "Ana"
        assert index.get("33333") is None

    def test_single_bulk_lookup(self, store):
        records = [RosterRecord(id="11111"), RosterRecord(id="22222"), RosterRecord(id="11111")]
        ExistingStateIndex.build(store, records)
        assert store.lookups == 1

    def test_skips_lookup_without_valid_ids(self, store):
        index = ExistingStateIndex.build(store, [RosterRecord(id="abc"), RosterRecord(id="")])
        assert len(index) == 0
        assert store.lookups == 0


class TestImmutability:
    def test_cannot_be_mutated(self, store):
        index = ExistingStateIndex.build(store, [RosterRecord(id="11111")])
        with pytest.raises(TypeError):
            index["99999"] = index["11111"]  # type: ignore[index]
