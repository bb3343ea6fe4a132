"""
Tests for the dlv command
"""

import logging

import pytest
from click.testing import CliRunner
from openpyxl import load_workbook

from conftest import FLEXIBLE_TITLE, flexible_line, write_export
from delivery_ledger.cli import main
from delivery_ledger.models import REPORT_TITLE


@pytest.fixture(autouse=True)
def restore_logging():
    """The command reconfigures the root logger"""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


class TestCli:
    """Test cases for the dlv command"""

    def setup_method(self):
        self.runner = CliRunner()

    def test_consolidates_into_xlsx(self, flexible_export, tmp_path, temp_config_dir):
        output = tmp_path / "report.xlsx"
        result = self.runner.invoke(main, [
            "-o", str(output), "--config-dir", str(temp_config_dir), str(flexible_export)
        ])

        assert result.exit_code == 0, result.output
        assert "Wrote 4 records" in result.output
        rows = list(load_workbook(output).active.iter_rows(values_only=True))
        assert list(rows[0]) == REPORT_TITLE
        assert len(rows) == 5

    def test_fixed_type_to_csv(self, fixed_export, tmp_path, temp_config_dir):
        output = tmp_path / "report.csv"
        result = self.runner.invoke(main, [
            "--type", "HTSC_FIXED", "-o", str(output),
            "--config-dir", str(temp_config_dir), str(fixed_export)
        ])

        assert result.exit_code == 0, result.output
        assert output.exists()
        assert "2 records" in result.output

    def test_unknown_type(self, flexible_export, temp_config_dir):
        result = self.runner.invoke(main, [
            "-t", "GTJA", "--config-dir", str(temp_config_dir), str(flexible_export)
        ])
        assert result.exit_code == 2
        assert "Unknown file type" in result.output

    def test_failed_file_sets_exit_code(self, export_dir, tmp_path, temp_config_dir):
        bad = write_export(export_dir / "bad.txt", ["foo", "bar"], ["1\t2"])
        good = write_export(export_dir / "good.txt", FLEXIBLE_TITLE, [])
        result = self.runner.invoke(main, [
            "-o", str(tmp_path / "r.xlsx"), "--config-dir", str(temp_config_dir),
            str(bad), str(good)
        ])

        assert result.exit_code == 1
        assert "FAILED" in result.output

    def test_mismatches_are_reported(self, export_dir, tmp_path, temp_config_dir):
        path = write_export(export_dir / "m.txt", FLEXIBLE_TITLE, [
            flexible_line(quantity="100", remaining="90")
        ])
        result = self.runner.invoke(main, [
            "-d", "-o", str(tmp_path / "r.xlsx"), "--config-dir", str(temp_config_dir), str(path)
        ])

        assert result.exit_code == 0, result.output
        assert "1 position mismatches" in result.output
        assert "broker=90 local=100" in result.output

    def test_invalid_config_is_reported(self, flexible_export, tmp_path, temp_config_dir):
        (temp_config_dir / "ingest.yml").write_text("business_types:\n  SELL:\n", encoding="utf-8")
        result = self.runner.invoke(main, [
            "-o", str(tmp_path / "r.xlsx"), "--config-dir", str(temp_config_dir), str(flexible_export)
        ])

        assert result.exit_code == 1
        assert "Invalid configuration" in result.output
        assert not (tmp_path / "r.xlsx").exists()

    def test_requires_inputs(self):
        result = self.runner.invoke(main, [])
        assert result.exit_code == 2
