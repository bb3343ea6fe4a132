"""
Tests for the export file reader
"""

import pytest

from delivery_ledger.ingest.reader import LineReader, check_export_file, iter_lines
from delivery_ledger.models import UnsupportedFile


class TestLineReader:
    """Decoded line reading"""

    def test_gbk_lines_without_terminators(self, tmp_path):
        path = tmp_path / "export.txt"
        path.write_bytes("证券代码\t证券名称\r\n600000\t浦发银行\r\n".encode("gbk"))

        assert list(iter_lines(path)) == ["证券代码\t证券名称", "600000\t浦发银行"]

    def test_line_numbers_and_eof(self, tmp_path):
        path = tmp_path / "export.txt"
        path.write_bytes(b"a\nb\n")

        with LineReader(path) as reader:
            assert reader.readline() == "a"
            assert reader.readline() == "b"
            assert reader.line_no == 2
            assert reader.readline() is None

    def test_undecodable_bytes_are_replaced(self, tmp_path):
        path = tmp_path / "export.txt"
        path.write_bytes(b"ok\t\xff\xff\n")

        lines = list(iter_lines(path))
        assert len(lines) == 1
        assert lines[0].startswith("ok\t")

    def test_custom_encoding(self, tmp_path):
        path = tmp_path / "export.txt"
        path.write_text("日期\n", encoding="utf-8")
        assert list(iter_lines(path, encoding="utf-8")) == ["日期"]

    def test_readline_requires_open(self, tmp_path):
        path = tmp_path / "export.txt"
        path.write_text("x\n")
        with pytest.raises(ValueError):
            LineReader(path).readline()


class TestCheckExportFile:
    def test_txt_only(self, tmp_path):
        xls = tmp_path / "export.xls"
        xls.write_bytes(b"")
        with pytest.raises(UnsupportedFile):
            check_export_file(xls)

    def test_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            check_export_file(tmp_path / "missing.txt")

    def test_upper_case_suffix(self, tmp_path):
        path = tmp_path / "EXPORT.TXT"
        path.write_bytes(b"")
        assert check_export_file(path) == path
