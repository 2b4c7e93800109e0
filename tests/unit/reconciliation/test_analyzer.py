"""Tests for the roster dry-run analyzer."""

from __future__ import annotations

from hrdocs.models.reconciliation import ReconciliationAction as A
from hrdocs.models.roster import AuthoritativeUser, RosterRecord, TriState
from hrdocs.reconciliation.analyzer import (
    REASON_ABSENT_INACTIVE,
    REASON_INVALID_ID,
    analyze,
    classify,
)
from hrdocs.reconciliation.index import ExistingStateIndex


def user(cedula="11111", internal_id=1, is_active=True, **fields):
    return AuthoritativeUser(internal_id=internal_id, id=cedula, is_active=is_active, **fields)


def record(cedula="11111", flag=TriState.UNKNOWN, **fields):
    return RosterRecord(id=cedula, active_flag=flag, **fields)


def index_of(*users):
    return ExistingStateIndex(users)


class TestClassify:
    def test_invalid_id(self):
        decision = classify(record("12a"), None)
        assert decision.action is A.INVALID
        assert decision.reason == REASON_INVALID_ID

    def test_invalid_id_wins_over_existing_user(self):
        assert classify(record("12a"), user("12a")).action is A.INVALID

    def test_absent_and_active_inserts(self):
        assert classify(record(flag=TriState.TRUE), None).action is A.INSERT

    def test_absent_and_unknown_inserts(self):
        assert classify(record(), None).action is A.INSERT

    def test_absent_and_inactive_is_none_with_reason(self):
        decision = classify(record(flag=TriState.FALSE), None)
        assert decision.action is A.NONE
        assert decision.reason == REASON_ABSENT_INACTIVE

    def test_active_user_flagged_false_deactivates(self):
        assert classify(record(flag=TriState.FALSE, first_name="Other"), user()).action is A.DEACTIVATE

    def test_inactive_user_flagged_false_without_changes_is_none(self):
        assert classify(record(flag=TriState.FALSE), user(is_active=False)).action is A.NONE

    def test_inactive_user_flagged_false_with_changes_updates(self):
        prev = user(is_active=False, first_name="Ana")
        assert classify(record(flag=TriState.FALSE, first_name="Ana María"), prev).action is A.UPDATE

    def test_field_difference_updates(self):
        assert classify(record(email="new@example.com"), user(email="old@example.com")).action is A.UPDATE

    def test_reactivation_updates(self):
        assert classify(record(flag=TriState.TRUE), user(is_active=False)).action is A.UPDATE

    def test_unknown_flag_on_inactive_user_is_none(self):
        assert classify(record(), user(is_active=False)).action is A.NONE

    def test_blank_fields_never_trigger_update(self):
        prev = user(first_name="Ana", last_name="Ruiz", email="ana@example.com")
        assert classify(record(flag=TriState.TRUE), prev).action is A.NONE

    def test_identical_fields_is_none(self):
        prev = user(first_name="Ana", last_name="Ruiz")
        assert classify(record(first_name="Ana", last_name="Ruiz"), prev).action is A.NONE


class TestAnalyze:
    def test_counts_and_preview(self):
        index = index_of(
            user("11111", 1, first_name="Ana"),
            user("22222", 2),
            user("33333", 3, first_name="Luis"),
        )
        records = [
            record("11111", first_name="Ana"),          # NONE
            record("22222", flag=TriState.FALSE),       # DEACTIVATE
            record("33333", first_name="Luisa"),        # UPDATE
            record("44444"),                            # INSERT
            record("bad"),                              # INVALID
            record("55555", flag=TriState.FALSE),       # NONE (absent, inactive)
        ]
        report = analyze(records, index)

        assert report.total == 6
        assert report.will_insert == 1
        assert report.will_update == 1
        assert report.will_deactivate == 1
        assert [(e.row, e.reason) for e in report.invalid] == [(5, REASON_INVALID_ID)]
        assert report.actions() == [A.NONE, A.DEACTIVATE, A.UPDATE, A.INSERT, A.INVALID, A.NONE]
        assert [p.row for p in report.preview] == [1, 2, 3, 4, 5, 6]
        assert report.preview[5].why == REASON_ABSENT_INACTIVE

    def test_empty_roster(self):
        report = analyze([], index_of())
        assert report.total == 0
        assert report.preview == []
        assert report.invalid == []

    def test_deterministic(self):
        index = index_of(user("11111", 1, first_name="Ana"))
        records = [record("11111", first_name="Eva"), record("22222"), record("x")]
        assert analyze(records, index) == analyze(records, index)

    def test_does_not_touch_index(self):
        index = index_of(user("11111", 1))
        analyze([record("11111", flag=TriState.FALSE), record("22222")], index)
        assert index["11111"].is_active is True
        assert "22222" not in index

    def test_wire_aliases(self):
        report = analyze([record("12345")], index_of())
        dumped = report.model_dump(by_alias=True)
        assert dumped["willInsert"] == 1
        assert set(dumped) == {"total", "willInsert", "willUpdate", "willDeactivate", "invalid", "preview"}
        assert dumped["preview"][0] == {"row": 1, "cedula": "12345", "action": "INSERT", "why": None}


class TestDuplicateIds:
    def test_second_insert_sees_first(self):
        report = analyze([record("11111", first_name="Ana"), record("11111", first_name="Ana")], index_of())
        assert report.actions() == [A.INSERT, A.NONE]
        assert report.will_insert == 1

    def test_insert_then_field_change_updates(self):
        report = analyze([record("11111", first_name="Ana"), record("11111", first_name="Eva")], index_of())
        assert report.actions() == [A.INSERT, A.UPDATE]

    def test_deactivate_then_deactivate_again(self):
        index = index_of(user("11111", 1))
        report = analyze([record("11111", flag=TriState.FALSE)] * 2, index)
        assert report.actions() == [A.DEACTIVATE, A.NONE]

    def test_absent_inactive_then_active_inserts(self):
        report = analyze([record("11111", flag=TriState.FALSE), record("11111", flag=TriState.TRUE)], index_of())
        assert report.actions() == [A.NONE, A.INSERT]
