"""
Position ledger

Running signed quantity per security code, shared by every producer of an
extraction run. Each update cross-checks the vendor's own remaining
quantity; a disagreement is logged and recorded but never changes the
stored value.
"""

import logging
import threading
from typing import Dict, List, Optional

from ..models import LedgerMismatch, RecordBuilder
from ..utils.structured_logging import IngestLogger, get_ingest_logger

logger = logging.getLogger(__name__)


class PositionLedger:
    """
    Lock-guarded map of security code -> running total

    One lock covers the whole ledger, so updates to the same code are
    serialized and updates to different codes never observe each other
    half-applied.
    """

    def __init__(self, ingest_logger: Optional[IngestLogger] = None):
        self._positions: Dict[str, int] = {}
        self._lock = threading.Lock()
        self.mismatches: List[LedgerMismatch] = []
        self.ingest_logger = ingest_logger or get_ingest_logger(__name__)

    def apply_delta(self, security_code: str, signed_quantity: int) -> int:
        """Add a signed quantity to a code's running total and return the new total"""
        with self._lock:
            total = self._positions.get(security_code, 0) + signed_quantity
            self._positions[security_code] = total
            return total

    def apply(self, builder: RecordBuilder) -> Optional[int]:
        """
        Apply one parsed line to the ledger

        SELL magnitudes are subtracted, every other action adds. The new
        total is attached to the builder's running balance. Lines without a
        security code or without a quantity leave the ledger untouched.

        Returns:
            The new running total, or None if the ledger was not updated
        """
        signed = builder.signed_quantity
        if not builder.security_code or signed is None:
            return None

        total = self.apply_delta(builder.security_code, signed)
        builder.running_balance = total

        vendor = builder.vendor_remaining
        if vendor is not None and vendor != total:
            self._record_mismatch(LedgerMismatch(
                security_code=builder.security_code,
                vendor_value=vendor,
                local_value=total,
                date=builder.date,
            ))

        return total

    def _record_mismatch(self, mismatch: LedgerMismatch):
        with self._lock:
            self.mismatches.append(mismatch)
        self.ingest_logger.ledger_mismatch(
            security_code=mismatch.security_code,
            vendor_value=mismatch.vendor_value,
            local_value=mismatch.local_value,
            date=mismatch.date,
        )

    def balance(self, security_code: str) -> Optional[int]:
        with self._lock:
            return self._positions.get(security_code)

    def snapshot(self) -> Dict[str, int]:
        """Copy of all running totals"""
        with self._lock:
            return dict(self._positions)

    def __len__(self) -> int:
        with self._lock:
            return len(self._positions)
