"""
Report sinks for consolidated delivery orders
"""

from .sink import CsvSink, ExcelSink, ReportSink, make_sink

__all__ = ['CsvSink', 'ExcelSink', 'ReportSink', 'make_sink']
