"""Pytest configuration: ensure src is on path when running tests from repo root."""

import sys
from pathlib import Path

import pytest

_root = Path(__file__).resolve().parents[1]
_src = _root / "src"
if _src.is_dir() and str(_src) not in sys.path:
    sys.path.insert(0, str(_src))


@pytest.fixture
def xyz3_data():
    """One asset with two buys and a partial sell (registered price 10.00)."""
    return {
        "assets": [{"ticker": "XYZ3", "name": "XYZ SA", "price": 10.0, "segment": "Energia"}],
        "transactions": [
            {"id": "t1", "ticker": "XYZ3", "operation": "buy", "quantity": 100, "unit_price": 8.0, "date": "2024-01-10"},
            {"id": "t2", "ticker": "XYZ3", "operation": "buy", "quantity": 50, "unit_price": 12.0, "date": "2024-02-10"},
            {"id": "t3", "ticker": "XYZ3", "operation": "sell", "quantity": 30, "unit_price": 20.0, "date": "2024-03-10"},
        ],
        "distributions": [],
        "settings": {},
    }
