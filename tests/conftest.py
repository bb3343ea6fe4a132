"""
Pytest configuration and shared fixtures for Delivery Ledger tests
"""

import sys
from pathlib import Path

import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from delivery_ledger.ingest.schema import FIXED_TITLE  # noqa: E402

FLEXIBLE_TITLE = ["成交日期", "证券代码", "证券名称", "业务名称", "成交数量",
                  "成交均价", "发生金额", "证券数量", "备注"]


def fixed_line(date="20230103", code="600000", name="浦发银行", flag="买入",
               quantity="100", price="7.50", amount="-750.00", remaining="100"):
    """Build one 20-column fixed-layout line"""
    values = [""] * len(FIXED_TITLE)
    values[0] = date
    values[2] = code
    values[3] = name
    values[4] = flag
    values[5] = quantity
    values[6] = price
    values[11] = amount
    values[18] = remaining
    return "\t".join(values)


def flexible_line(date="20230103", code="600000", name="浦发银行", business="证券买入",
                  quantity="100.0", price="7.50", amount="-750.00", remaining="", note=""):
    """Build one line matching FLEXIBLE_TITLE"""
    return "\t".join([date, code, name, business, quantity, price, amount, remaining, note])


def write_export(path: Path, title, lines, encoding="gbk") -> Path:
    """Write an export file the way the broker does: GBK, CRLF"""
    content = "\r\n".join(["\t".join(title)] + list(lines)) + "\r\n"
    path.write_bytes(content.encode(encoding))
    return path


@pytest.fixture
def export_dir(tmp_path):
    """Directory for generated export files"""
    directory = tmp_path / "exports"
    directory.mkdir()
    return directory


@pytest.fixture
def flexible_export(export_dir):
    """Flexible-layout export with buys, a sell, transfers and ignored rows"""
    return write_export(export_dir / "flexible.txt", FLEXIBLE_TITLE, [
        flexible_line(date="20230103", business="证券买入", quantity="100.0", remaining="100"),
        flexible_line(date="20230104", business="证券买入", quantity="100.0", remaining="200"),
        flexible_line(date="20230105", business="银证转存", code="", name="", quantity="0",
                      price="0", amount="10000.00"),
        flexible_line(date="20230106", business="证券卖出", quantity="50.0", amount="400.00",
                      remaining="150"),
        flexible_line(date="20230107", business="股息入账", quantity="0", amount="12.00"),
    ])


@pytest.fixture
def fixed_export(export_dir):
    """Fixed-layout export with two trades on one security"""
    return write_export(export_dir / "fixed.txt", FIXED_TITLE, [
        fixed_line(date="20230103", flag="买入", quantity="300", remaining="300"),
        fixed_line(date="20230104", flag="卖出", quantity="100", amount="760.00", remaining="200"),
    ])


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create temporary config directory for testing"""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    return config_dir
