"""
Report sinks

Tabular destinations for normalized records. Every sink writes the title
row first, then one row per record in the order records are handed to it.
Failures surface as SinkFailure so the pipeline can stop its producers.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Union

import pandas as pd
from openpyxl import Workbook

from ..models import REPORT_TITLE, Record, SinkFailure

logger = logging.getLogger(__name__)


class ReportSink(ABC):
    """Base class for report sinks"""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self.rows_written = 0
        self._finalized = False

    def write(self, record: Record):
        """Append one record"""
        if self._finalized:
            raise SinkFailure(f"Sink {self.path} is already finalized")
        try:
            self._write_row(record.to_row())
        except SinkFailure:
            raise
        except Exception as e:
            logger.error(f"Failed to write record to {self.path}: {e}")
            raise SinkFailure(f"Cannot write to {self.path}: {e}") from e
        self.rows_written += 1

    def finalize(self):
        """Flush and close the report"""
        if self._finalized:
            return
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._save()
        except Exception as e:
            logger.error(f"Failed to save report {self.path}: {e}")
            self._discard()
            raise SinkFailure(f"Cannot save {self.path}: {e}") from e
        self._finalized = True
        logger.info(f"Wrote {self.rows_written} records to {self.path}")

    @abstractmethod
    def _write_row(self, row: List[str]):
        """Store one row"""

    @abstractmethod
    def _save(self):
        """Persist all rows"""

    def _discard(self):
        """Release buffers after a failed save"""


class ExcelSink(ReportSink):
    """xlsx report streamed through an openpyxl write-only workbook"""

    def __init__(self, path: Union[str, Path], sheet_name: str = "交割单"):
        super().__init__(path)
        self.workbook = Workbook(write_only=True)
        self.sheet = self.workbook.create_sheet(title=sheet_name)
        self.sheet.append(REPORT_TITLE)

    def _write_row(self, row: List[str]):
        self.sheet.append(row)

    def _save(self):
        self.workbook.save(self.path)

    def _discard(self):
        # Finish the sheet's row stream so its temp file is not left half written
        try:
            if not self.sheet.closed:
                self.sheet.close()
            self.workbook.close()
        except Exception as e:
            logger.warning(f"Could not release workbook for {self.path}: {e}")


class CsvSink(ReportSink):
    """csv report written with pandas at finalize"""

    def __init__(self, path: Union[str, Path], encoding: str = "utf-8-sig"):
        super().__init__(path)
        self.encoding = encoding
        self._rows: List[List[str]] = []

    def _write_row(self, row: List[str]):
        self._rows.append(row)

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(self._rows, columns=REPORT_TITLE, dtype=str)

    def _save(self):
        self.to_dataframe().to_csv(self.path, index=False, encoding=self.encoding)


def make_sink(path: Union[str, Path]) -> ReportSink:
    """Pick a sink from the output file extension"""
    if Path(path).suffix.lower() == ".csv":
        return CsvSink(path)
    return ExcelSink(path)
