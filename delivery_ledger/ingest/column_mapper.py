"""
Column mapper

Turns one decoded export line into a RecordBuilder according to the file's
schema. Quantities come out as unsigned magnitudes; the position ledger
applies the sign once the action is known.
"""

import logging
import math
from typing import Optional

from ..models import ParseError, RecordBuilder
from .classifier import TradeClassifier, classify_flag
from .schema import FIXED_POSITIONS, FixedSchema, FlexibleSchema, Schema

logger = logging.getLogger(__name__)


def parse_quantity(text: str) -> Optional[int]:
    """
    Parse a quantity magnitude

    Decimal text such as ``"100.0"`` is accepted and truncated; the sign is
    discarded. Blank text means the line carries no quantity.

    Raises:
        ParseError: If the text is not a finite number
    """
    value = _parse_number(text, "quantity")
    return None if value is None else abs(value)


def parse_remaining(text: str) -> Optional[int]:
    """Parse the vendor's remaining quantity, or None if absent or unreadable"""
    try:
        return _parse_number(text, "remaining quantity")
    except ParseError as e:
        logger.debug(f"Ignoring vendor remaining quantity: {e}")
        return None


def _parse_number(text: str, what: str) -> Optional[int]:
    text = text.strip()
    if not text:
        return None
    try:
        value = float(text.replace(",", ""))
    except ValueError:
        raise ParseError(f"Invalid {what}: {text!r}")
    if not math.isfinite(value):
        raise ParseError(f"Invalid {what}: {text!r}")
    return int(value)


def map_fixed_line(schema: FixedSchema, line: str) -> RecordBuilder:
    """Map a fixed-layout line; fields are read by position"""
    values = schema.split(line)
    flag = values[FIXED_POSITIONS['flag']]

    return RecordBuilder(
        date=values[FIXED_POSITIONS['date']],
        security_code=values[FIXED_POSITIONS['security_code']],
        security_name=values[FIXED_POSITIONS['security_name']],
        action=classify_flag(flag),
        action_label=flag,
        quantity=parse_quantity(values[FIXED_POSITIONS['quantity']]),
        price=values[FIXED_POSITIONS['price']],
        amount=values[FIXED_POSITIONS['amount']],
        vendor_remaining=parse_remaining(values[FIXED_POSITIONS['vendor_remaining']]),
    )


def map_flexible_line(schema: FlexibleSchema, line: str,
                      classifier: TradeClassifier) -> RecordBuilder:
    """
    Map a title-driven line; each bound column sets one field

    When several columns feed the same field, the first non-blank one wins.
    """
    values = schema.split(line)
    builder = RecordBuilder()
    filled = set()

    for binding in schema.bindings:
        raw = values[binding.index]
        name = binding.field_name
        if not raw or name in filled:
            continue
        filled.add(name)

        if name == 'quantity':
            builder.quantity = parse_quantity(raw)
        elif name == 'vendor_remaining':
            builder.vendor_remaining = parse_remaining(raw)
        elif name == 'business_type':
            builder.action, builder.action_label = classifier.classify(raw)
        else:
            setattr(builder, name, raw)

    return builder


def map_line(schema: Schema, line: str,
             classifier: Optional[TradeClassifier] = None) -> RecordBuilder:
    """
    Map one line with whichever layout the schema describes

    Raises:
        FormatMismatch: If the field count differs from the schema
        ParseError: If the quantity is not numeric
    """
    if isinstance(schema, FixedSchema):
        return map_fixed_line(schema, line)
    if isinstance(schema, FlexibleSchema):
        return map_flexible_line(schema, line, classifier or TradeClassifier())
    raise TypeError(f"Unsupported schema: {type(schema).__name__}")
