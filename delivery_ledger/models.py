"""
Delivery order data models for the ingest engine
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

logger = logging.getLogger(__name__)


class TradeAction(Enum):
    """Trade action taxonomy"""
    BUY = "BUY"
    SELL = "SELL"
    TRANSFER_IN = "TRANSFER_IN"
    TRANSFER_OUT = "TRANSFER_OUT"
    IGNORE = "IGNORE"


class FileType(Enum):
    """Export file variants, one parser per variant"""
    HTSC = "HTSC"              # title-driven columns
    HTSC_FIXED = "HTSC_FIXED"  # fixed 20-column layout


class DeliveryLedgerError(Exception):
    """Base ingest error"""


class FormatMismatch(DeliveryLedgerError):
    """Title row or field count does not match the expected schema"""


class ParseError(DeliveryLedgerError):
    """Numeric field could not be parsed"""


class SinkFailure(DeliveryLedgerError):
    """Output sink rejected a record"""


class UnsupportedFile(DeliveryLedgerError):
    """Input file cannot be read by any parser"""


class UnsupportedFileType(DeliveryLedgerError):
    """Unknown file type tag"""


@dataclass(frozen=True)
class Record:
    """Canonical delivery order, one per accepted export line"""

    date: str = ""
    security_code: str = ""
    security_name: str = ""
    action: TradeAction = TradeAction.IGNORE
    action_label: str = ""
    quantity: str = ""  # signed, negative for SELL
    price: str = ""
    amount: str = ""
    running_balance: str = ""

    @property
    def is_valid(self) -> bool:
        return self.action != TradeAction.IGNORE

    def to_row(self) -> List[str]:
        """Row in report column order"""
        return [
            self.date,
            self.security_code,
            self.security_name,
            self.action_label,
            self.quantity,
            self.price,
            self.amount,
            self.running_balance,
        ]


REPORT_TITLE = ["日期", "证券代码", "证券名称", "操作", "数量", "价格", "金额", "持仓"]


@dataclass
class RecordBuilder:
    """
    Mutable staging area for a Record

    Columns are consumed in whatever order the file lays them out; each one
    sets a single field. ``quantity`` holds the unsigned magnitude until the
    ledger applies the sign rule, ``vendor_remaining`` is the broker's own
    position figure and never reaches the Record.
    """

    date: str = ""
    security_code: str = ""
    security_name: str = ""
    action: TradeAction = TradeAction.IGNORE
    action_label: str = ""
    quantity: Optional[int] = None
    price: str = ""
    amount: str = ""
    vendor_remaining: Optional[int] = None
    running_balance: Optional[int] = None

    @property
    def signed_quantity(self) -> Optional[int]:
        if self.quantity is None:
            return None
        if self.action == TradeAction.SELL:
            return -self.quantity
        return self.quantity

    def build(self) -> Record:
        signed = self.signed_quantity
        return Record(
            date=self.date,
            security_code=self.security_code,
            security_name=self.security_name,
            action=self.action,
            action_label=self.action_label,
            quantity="" if signed is None else str(signed),
            price=self.price,
            amount=self.amount,
            running_balance="" if self.running_balance is None else str(self.running_balance),
        )


@dataclass(frozen=True)
class LedgerMismatch:
    """Vendor remaining quantity disagrees with the local running total"""
    security_code: str
    vendor_value: int
    local_value: int
    date: str


@dataclass
class FileReport:
    """Outcome of one producer"""
    path: str
    file_type: FileType
    records: int = 0
    skipped: int = 0
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class PipelineResult:
    """Final tally of an extraction run"""
    records_written: int
    files: List[FileReport] = field(default_factory=list)
    mismatches: List[LedgerMismatch] = field(default_factory=list)

    @property
    def failed_files(self) -> List[FileReport]:
        return [f for f in self.files if not f.ok]
