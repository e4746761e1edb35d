"""Shared UI utilities: colors and text formatting for values."""

from __future__ import annotations

from typing import Any, Mapping, Optional, Tuple

from invest_tracker.config.constants import CURRENCY_SYMBOL, MONEY_TOLERANCE
from invest_tracker.theming.style import (
    COLOR_LOSS,
    COLOR_PROFIT,
    SUMMARY_DESC_COLOR,
)


def color_for_value(value: Optional[float]) -> str:
    """
    Return foreground color for a numeric value (P&L, return %, etc.).
    Use only on the value widget, never on descriptors or whole rows.

    Returns:
        COLOR_PROFIT if value > 0, COLOR_LOSS if value < 0,
        SUMMARY_DESC_COLOR if value is None or exactly zero (neutral).
    """
    if value is None:
        return SUMMARY_DESC_COLOR
    try:
        v = float(value)
    except (TypeError, ValueError):
        return SUMMARY_DESC_COLOR
    if abs(v) < MONEY_TOLERANCE:
        return SUMMARY_DESC_COLOR
    return COLOR_PROFIT if v > 0 else COLOR_LOSS


def format_currency(value: Optional[float]) -> str:
    """Format money the pt-BR way: 1234.5 -> "R$ 1.234,50", -3 -> "-R$ 3,00"."""
    if value is None:
        return "-"
    v = float(value)
    if abs(v) < MONEY_TOLERANCE:
        v = 0.0
    text = f"{abs(v):,.2f}".replace(",", "_").replace(".", ",").replace("_", ".")
    sign = "-" if v < 0 else ""
    return f"{sign}{CURRENCY_SYMBOL} {text}"


def format_percent(fraction: Optional[float]) -> str:
    """Format a fractional return as a percentage: 0.0714 -> "7.14%"."""
    if fraction is None:
        return "-"
    pct = float(fraction) * 100
    if abs(pct) < 0.005:
        pct = 0.0
    return f"{pct:.2f}%"


def format_quantity(value: Optional[float]) -> str:
    """Whole numbers without decimals, fractional quantities with up to 8."""
    if value is None:
        return "-"
    v = float(value)
    if v.is_integer():
        return f"{int(v)}"
    return f"{v:.8f}".rstrip("0").rstrip(".")


def row_tags(metrics: Mapping[str, Any]) -> Tuple[str, ...]:
    """Treeview tags flagging an asset row: "oversold" and/or "unregistered"."""
    tags = []
    if metrics.get("oversold"):
        tags.append("oversold")
    if not metrics.get("registered", True):
        tags.append("unregistered")
    return tuple(tags)
