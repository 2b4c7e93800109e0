"""Tests for canonical path building and upload file-name helpers."""

from __future__ import annotations

import os

from hrdocs.storage.paths import canonical_path, cedula_from_file_name, native_path, sanitize_file_name


class TestCanonicalPath:
    def test_layout(self):
        assert canonical_path("11111", 2024, 3, "a.pdf") == os.path.join("11111", "2024", "03", "a.pdf")

    def test_pads_month(self):
        assert canonical_path("987", 2024, 3, "x.pdf") == os.path.join("987", "2024", "03", "x.pdf")

    def test_two_digit_month(self):
        assert canonical_path("11111", 2024, 11, "a.pdf").split(os.sep)[2] == "11"


class TestNativePath:
    def test_mixed_separators(self):
        assert native_path("11111\\2024/01\\a.pdf") == os.path.join("11111", "2024", "01", "a.pdf")


class TestSanitizeFileName:
    def test_strips_directories(self):
        assert sanitize_file_name("C:\\Users\\rrhh\\recibo.pdf") == "recibo.pdf"
        assert sanitize_file_name("../../etc/passwd") == "passwd"

    def test_whitespace_to_underscore(self):
        assert sanitize_file_name("  recibo  enero 2024.pdf ") == "recibo_enero_2024.pdf"


class TestCedulaFromFileName:
    def test_prefix(self):
        assert cedula_from_file_name("100200300_RUIZ_ANA.pdf") == "100200300"

    def test_no_prefix(self):
        assert cedula_from_file_name("RUIZ_ANA.pdf") is None
        assert cedula_from_file_name("1234_RUIZ.pdf") is None
        assert cedula_from_file_name("100200300.pdf") is None
