"""
Configuration utilities
"""

import copy
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

logger = logging.getLogger(__name__)

# Canonical field -> column titles that feed it
DEFAULT_COLUMN_SYNONYMS: Dict[str, List[str]] = {
    'date': ['发生日期', '日期', '成交日期'],
    'security_code': ['证券代码'],
    'security_name': ['证券名称'],
    'quantity': ['成交数量', '发生数量'],
    'price': ['成交价格', '成交均价'],
    'amount': ['发生金额', '清算金额'],
    'vendor_remaining': ['证券数量', '剩余数量'],
    'business_type': ['业务名称', '业务标志'],
}

# Action -> {label, tokens}
DEFAULT_BUSINESS_TYPES: Dict[str, Dict[str, Any]] = {
    'SELL': {'label': '卖出', 'tokens': ['证券卖出']},
    'BUY': {'label': '买入', 'tokens': ['证券买入', '开放基金认购结果']},
    'TRANSFER_IN': {'label': '银证转入', 'tokens': ['银证转存', '银行转存', '利息归本']},
    'TRANSFER_OUT': {'label': '银证转出', 'tokens': ['银证转取', '银行转取']},
}


@dataclass
class IngestConfig:
    """Settings for one extraction run"""
    queue_size: int = 128
    encoding: str = 'gbk'
    output: str = 'output.xlsx'
    column_synonyms: Dict[str, List[str]] = field(
        default_factory=lambda: copy.deepcopy(DEFAULT_COLUMN_SYNONYMS))
    business_types: Dict[str, Dict[str, Any]] = field(
        default_factory=lambda: copy.deepcopy(DEFAULT_BUSINESS_TYPES))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'IngestConfig':
        """Build config from a parsed YAML mapping, keeping defaults for missing keys"""
        config = cls()
        if not data:
            return config

        if 'queue_size' in data:
            queue_size = int(data['queue_size'])
            if queue_size <= 0:
                raise ValueError(f"queue_size must be positive, got {queue_size}")
            config.queue_size = queue_size
        if data.get('encoding'):
            config.encoding = str(data['encoding'])
        if data.get('output'):
            config.output = str(data['output'])

        # Per-field override: a listed field replaces its default synonyms
        for field_name, titles in (data.get('columns') or {}).items():
            if field_name not in DEFAULT_COLUMN_SYNONYMS:
                logger.warning(f"Ignoring unknown column field in config: {field_name}")
                continue
            config.column_synonyms[field_name] = [str(t) for t in titles]

        business_types = data.get('business_types')
        if business_types:
            config.business_types = {}
            for action, spec in business_types.items():
                if not isinstance(spec, dict):
                    raise ValueError(
                        f"Business type {action} needs a mapping with label and tokens, got {spec!r}")
                config.business_types[str(action).upper()] = {
                    'label': str(spec.get('label') or ''),
                    'tokens': [str(t) for t in spec.get('tokens') or []],
                }

        return config


class ConfigManager:
    """Manages configuration loading"""

    def __init__(self, config_dir: str = "config"):
        self.config_dir = Path(config_dir)

    def load_config(self, config_type: str) -> Dict[str, Any]:
        """Load configuration of specified type"""
        try:
            # Try local config first, then fall back to template
            local_file = self.config_dir / f"{config_type}_local.yml"
            template_file = self.config_dir / f"{config_type}.yml"

            config_file = local_file if local_file.exists() else template_file

            if not config_file.exists():
                logger.error(f"Config file not found: {config_file}")
                return {}

            with open(config_file, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f) or {}

            logger.info(f"Loaded config from {config_file}")
            return config

        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to load config {config_type}: {e}")
            return {}

    def get_ingest_config(self) -> IngestConfig:
        """Get ingest configuration"""
        return IngestConfig.from_dict(self.load_config("ingest"))


def load_ingest_config(config_dir: Optional[str] = None) -> IngestConfig:
    """Convenience function to load ingest configuration"""
    return ConfigManager(config_dir or "config").get_ingest_config()
