"""
Delivery Ledger - brokerage delivery order consolidation

Normalizes vendor delivery order exports into one canonical record schema,
tracks running positions per security and writes a consolidated report.
"""

__version__ = "0.3.0"
__author__ = "Delivery Ledger Team"
