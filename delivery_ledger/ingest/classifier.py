"""
Trade classifier

Maps the free-text business type column of a delivery order onto the
fixed trade action taxonomy. Unrecognized tokens classify as IGNORE.
"""

import logging
from typing import Any, Dict, Optional, Tuple

from ..models import TradeAction
from ..utils.config import DEFAULT_BUSINESS_TYPES

logger = logging.getLogger(__name__)

# Fixed-layout exports carry a plain buy/sell flag instead of a business type
_FLAG_ACTIONS: Dict[str, TradeAction] = {
    '买入': TradeAction.BUY,
    '证券买入': TradeAction.BUY,
    '卖出': TradeAction.SELL,
    '证券卖出': TradeAction.SELL,
}


class TradeClassifier:
    """
    Business type -> (TradeAction, label) lookup

    The vocabulary is deployment specific, so the table is built from the
    ``business_types`` config section:

        SELL:
          label: 卖出
          tokens: [证券卖出]
    """

    def __init__(self, business_types: Optional[Dict[str, Dict[str, Any]]] = None):
        self._table: Dict[str, Tuple[TradeAction, str]] = {}
        for action_name, spec in (business_types or DEFAULT_BUSINESS_TYPES).items():
            try:
                action = TradeAction[action_name.upper()]
            except KeyError:
                raise ValueError(f"Unknown trade action in business type table: {action_name}")
            if not isinstance(spec, dict):
                raise ValueError(f"Business type {action_name} needs a mapping, got {spec!r}")
            label = spec.get('label') or ''
            for token in spec.get('tokens') or []:
                if token in self._table:
                    logger.warning(f"Business type {token!r} mapped twice, keeping {action_name}")
                self._table[token] = (action, label)

    def classify(self, token: str) -> Tuple[TradeAction, str]:
        """Classify a business type token; never fails"""
        return self._table.get(token.strip(), (TradeAction.IGNORE, ""))

    @property
    def tokens(self):
        return list(self._table)


def classify_flag(flag: str) -> TradeAction:
    """Action for a fixed-layout buy/sell flag"""
    return _FLAG_ACTIONS.get(flag.strip(), TradeAction.IGNORE)


_default_classifier: Optional[TradeClassifier] = None


def classify(token: str) -> Tuple[TradeAction, str]:
    """Classify with the default vocabulary"""
    global _default_classifier
    if _default_classifier is None:
        _default_classifier = TradeClassifier()
    return _default_classifier.classify(token)
