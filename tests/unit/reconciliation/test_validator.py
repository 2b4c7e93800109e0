"""Tests for cedula validation, active-flag parsing and row normalization."""

from __future__ import annotations

import pytest

from hrdocs.models.roster import TriState
from hrdocs.reconciliation.validator import normalize_row, parse_tri_state, validate_id


class TestValidateId:
    @pytest.mark.parametrize("value", ["12345", "123456789012", "0012345"])
    def test_accepts_five_to_twelve_digits(self, value):
        assert validate_id(value) is True

    @pytest.mark.parametrize("value", ["1234", "1234567890123", "12a45", "", " 12345", "12345 ", "12-345"])
    def test_rejects_malformed(self, value):
        assert validate_id(value) is False

    @pytest.mark.parametrize("value", [None, 12345, 123456.0])
    def test_rejects_non_strings(self, value):
        assert validate_id(value) is False

    def test_rejects_non_ascii_digits(self):
        assert validate_id("١٢٣٤٥") is False


class TestParseTriState:
    @pytest.mark.parametrize("value", ["si", "Sí", "SI", "true", "TRUE", "1", "activo", "Activa", " activo "])
    def test_true_words(self, value):
        assert parse_tri_state(value) is TriState.TRUE

    @pytest.mark.parametrize("value", ["no", "NO", "false", "0", "inactivo", "Inactiva"])
    def test_false_words(self, value):
        assert parse_tri_state(value) is TriState.FALSE

    @pytest.mark.parametrize("value", [None, "", "  ", "maybe", "2", "yes"])
    def test_anything_else_is_unknown(self, value):
        assert parse_tri_state(value) is TriState.UNKNOWN

    def test_booleans_and_numbers(self):
        assert parse_tri_state(True) is TriState.TRUE
        assert parse_tri_state(False) is TriState.FALSE
        assert parse_tri_state(1) is TriState.TRUE
        assert parse_tri_state(0) is TriState.FALSE


class TestNormalizeRow:
    def test_full_row(self):
        record = normalize_row({
            "Cedula": " 100200300 ", "FirstName": "Ana", "LastName": "Ruiz",
            "Email": "ana@example.com", "IsActive": "Sí",
        })
        assert record.id == "100200300"
        assert record.first_name == "Ana"
        assert record.last_name == "Ruiz"
        assert record.email == "ana@example.com"
        assert record.active_flag is TriState.TRUE

    def test_blank_cells_become_none(self):
        record = normalize_row({"Cedula": "12345", "FirstName": "  ", "Email": ""})
        assert record.first_name is None
        assert record.last_name is None
        assert record.email is None
        assert record.active_flag is TriState.UNKNOWN

    def test_missing_cedula_keeps_empty_id(self):
        assert normalize_row({"FirstName": "Ana"}).id == ""

    def test_invalid_cedula_is_kept_verbatim(self):
        assert normalize_row({"Cedula": "12a45"}).id == "12a45"
