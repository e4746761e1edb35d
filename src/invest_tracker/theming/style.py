"""Centralized theming and typography for the Invest Tracker UI."""

from __future__ import annotations

import tkinter as tk
import ttkbootstrap as tb

THEME_NAME = "flatly"

FONT_FAMILY = "Helvetica"
FONT_DEFAULT = (FONT_FAMILY, 12)  # Tuple so Tk doesn't parse a multi-word family as family + size
COLOR_PROFIT = "#16A34A"  # Green
COLOR_LOSS = "#DC2626"    # Red
COLOR_OVERSOLD = "#B45309"  # Amber: sells exceed recorded buys
COLOR_UNREGISTERED = "#6B7280"  # Gray: ticker has no asset record
SPACING_MEDIUM = 8
PADDING = 16

SUMMARY_VALUE_FONT = (FONT_FAMILY, 14, "bold")
SUMMARY_DESC_FONT = (FONT_FAMILY, 9)
SUMMARY_DESC_COLOR = "#64748B"  # Gray for descriptor labels and neutral values

ASSET_COLUMN_WIDTH = 100


def setup_styles(root: tk.Misc) -> tb.Style:
    """Configure ttkbootstrap styles for the rentability window.

    ttkbootstrap.Style is a singleton and does not take master; root is kept
    for API compatibility with callers.
    """
    style = tb.Style(theme=THEME_NAME)
    try:
        style.configure("TButton", padding=(14, 8))
        style.configure("Asset.Treeview", font=(FONT_FAMILY, 11), rowheight=24)
        style.configure("Asset.Treeview.Heading", font=(FONT_FAMILY, 11, "bold"))
    except tk.TclError:
        # Some environments may not support style reconfiguration; fail gracefully.
        pass
    return style
