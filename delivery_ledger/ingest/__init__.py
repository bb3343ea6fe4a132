"""
Ingest Module

Parses delivery order exports into canonical records.
Supports the fixed 20-column layout and title-driven layouts.
"""

from .classifier import TradeClassifier, classify
from .column_mapper import map_line, parse_quantity
from .ledger import PositionLedger
from .pipeline import ExtractionPipeline, extract, extract_files, resolve_file_type
from .schema import FixedSchema, FlexibleSchema, schema_from_title

__all__ = [
    'TradeClassifier',
    'classify',
    'map_line',
    'parse_quantity',
    'PositionLedger',
    'ExtractionPipeline',
    'extract',
    'extract_files',
    'resolve_file_type',
    'FixedSchema',
    'FlexibleSchema',
    'schema_from_title'
]
