"""
Tests for report sinks
"""

import pandas as pd
import pytest
from openpyxl import load_workbook

from delivery_ledger.models import REPORT_TITLE, Record, SinkFailure, TradeAction
from delivery_ledger.reporting.sink import CsvSink, ExcelSink, make_sink


def sample_records():
    return [
        Record(date="20230103", security_code="600000", security_name="浦发银行",
               action=TradeAction.BUY, action_label="买入", quantity="100",
               price="7.50", amount="-750.00", running_balance="100"),
        Record(date="20230105", action=TradeAction.TRANSFER_IN, action_label="银证转入",
               quantity="0", amount="10000.00"),
    ]


class TestExcelSink:
    """xlsx output"""

    def test_title_and_rows(self, tmp_path):
        path = tmp_path / "report.xlsx"
        sink = ExcelSink(path)
        for record in sample_records():
            sink.write(record)
        sink.finalize()

        rows = list(load_workbook(path).active.iter_rows(values_only=True))
        assert list(rows[0]) == REPORT_TITLE
        assert list(rows[1]) == ["20230103", "600000", "浦发银行", "买入", "100", "7.50", "-750.00", "100"]
        assert rows[2][3] == "银证转入"
        assert sink.rows_written == 2

    def test_write_after_finalize_fails(self, tmp_path):
        sink = ExcelSink(tmp_path / "report.xlsx")
        sink.finalize()
        with pytest.raises(SinkFailure):
            sink.write(sample_records()[0])

    def test_unwritable_path(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        sink = ExcelSink(blocker / "report.xlsx")
        sink.write(sample_records()[0])
        with pytest.raises(SinkFailure):
            sink.finalize()

        # The row stream is finished rather than left for the garbage collector
        assert sink.sheet.closed


class TestCsvSink:
    """csv output"""

    def test_rows_keep_text(self, tmp_path):
        path = tmp_path / "out" / "report.csv"
        sink = CsvSink(path)
        for record in sample_records():
            sink.write(record)
        sink.finalize()

        df = pd.read_csv(path, dtype=str, encoding="utf-8-sig", keep_default_na=False)
        assert list(df.columns) == REPORT_TITLE
        assert df.iloc[0]["证券代码"] == "600000"
        assert df.iloc[0]["价格"] == "7.50"
        assert df.iloc[1]["持仓"] == ""


class TestMakeSink:
    def test_extension_selects_sink(self, tmp_path):
        assert isinstance(make_sink(tmp_path / "a.csv"), CsvSink)
        assert isinstance(make_sink(tmp_path / "a.xlsx"), ExcelSink)
        assert isinstance(make_sink(tmp_path / "a"), ExcelSink)
