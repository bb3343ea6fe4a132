"""
Title-row schemas for delivery order exports

Two layouts are supported:
- FixedSchema: the 20-column export, fields read by position
- FlexibleSchema: any column order, fields resolved by title synonyms
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from ..models import FileType, FormatMismatch
from ..utils.config import DEFAULT_COLUMN_SYNONYMS

logger = logging.getLogger(__name__)

FIELD_DELIMITER = "\t"

FIXED_TITLE = (
    "发生日期",
    "备注",
    "证券代码",
    "证券名称",
    "买卖标志",
    "成交数量",
    "成交价格",
    "成交金额",
    "佣金",
    "印花税",
    "过户费",
    "发生金额",
    "剩余金额",
    "申报序号",
    "股东代码",
    "席位代码",
    "委托编号",
    "成交编号",
    "证券数量",
    "其他费",
)

# Meaningful positions in FIXED_TITLE
FIXED_POSITIONS: Dict[str, int] = {
    'date': 0,
    'security_code': 2,
    'security_name': 3,
    'flag': 4,
    'quantity': 5,
    'price': 6,
    'amount': 11,
    'vendor_remaining': 18,
}


def split_line(line: str) -> List[str]:
    """Split one decoded line into stripped fields"""
    line = line.lstrip("\ufeff").rstrip("\r\n")
    return [value.strip() for value in line.split(FIELD_DELIMITER)]


def drop_trailing_empty(values: List[str], keep: int = 0) -> List[str]:
    """Remove empty fields left by trailing tabs, never going below ``keep`` fields"""
    end = len(values)
    while end > keep and not values[end - 1]:
        end -= 1
    return values[:end]


class Schema:
    """Ordered column titles of one export file"""

    file_type: FileType

    def __init__(self, columns: Sequence[str]):
        self.columns = list(columns)

    def __len__(self) -> int:
        return len(self.columns)

    def split(self, line: str) -> List[str]:
        """
        Split a data line, enforcing the schema's field count

        Surplus fields are tolerated only when they are empty (trailing tabs).
        """
        values = split_line(line)
        if len(values) > len(self.columns):
            values = drop_trailing_empty(values, keep=len(self.columns))
        if len(values) != len(self.columns):
            raise FormatMismatch(
                f"Expected {len(self.columns)} fields, got {len(values)}"
            )
        return values


class FixedSchema(Schema):
    """The fixed 20-column layout"""

    file_type = FileType.HTSC_FIXED

    def __init__(self):
        super().__init__(FIXED_TITLE)

    @classmethod
    def from_title(cls, title_line: str) -> 'FixedSchema':
        """Validate a title row against the reference titles"""
        titles = drop_trailing_empty(split_line(title_line))
        if tuple(titles) != FIXED_TITLE:
            mismatched = [
                f"{i}: {observed!r} != {expected!r}"
                for i, (observed, expected) in enumerate(zip(titles, FIXED_TITLE))
                if observed != expected
            ]
            detail = "; ".join(mismatched[:3]) or f"{len(titles)} columns"
            raise FormatMismatch(f"Title row does not match the fixed layout ({detail})")
        return cls()


@dataclass
class ColumnBinding:
    """A title resolved to the canonical field it feeds"""
    index: int
    title: str
    field_name: str


class FlexibleSchema(Schema):
    """
    Title-driven layout

    Each title is matched exactly against the synonym table. Titles with no
    synonym are carried along so the field count check still holds, but
    their values are never read.
    """

    file_type = FileType.HTSC

    def __init__(self, columns: Sequence[str],
                 column_synonyms: Optional[Dict[str, List[str]]] = None):
        super().__init__(columns)
        synonyms = column_synonyms or DEFAULT_COLUMN_SYNONYMS
        lookup = {title: field_name
                  for field_name, titles in synonyms.items()
                  for title in titles}
        self.bindings: List[ColumnBinding] = [
            ColumnBinding(index=i, title=title, field_name=lookup[title])
            for i, title in enumerate(self.columns)
            if title in lookup
        ]

    @property
    def bound_fields(self) -> List[str]:
        return [b.field_name for b in self.bindings]

    @classmethod
    def from_title(cls, title_line: str,
                   column_synonyms: Optional[Dict[str, List[str]]] = None) -> 'FlexibleSchema':
        titles = drop_trailing_empty(split_line(title_line))
        if not titles:
            raise FormatMismatch("Title row is empty")
        schema = cls(titles, column_synonyms)
        if not schema.bindings:
            raise FormatMismatch(f"No recognized columns in title row: {titles}")
        if 'business_type' not in schema.bound_fields:
            logger.warning("Title row has no business type column, every line will be ignored")
        return schema


def schema_from_title(file_type: FileType, title_line: str,
                      column_synonyms: Optional[Dict[str, List[str]]] = None) -> Schema:
    """Derive the schema for a file of the given type from its title row"""
    if file_type == FileType.HTSC_FIXED:
        return FixedSchema.from_title(title_line)
    return FlexibleSchema.from_title(title_line, column_synonyms)
