"""Rentability window: portfolio summary, per-asset table, and current price dialog."""

from __future__ import annotations

import tkinter as tk
from tkinter import W, messagebox, ttk
from typing import Dict, Optional

import ttkbootstrap as tb
from ttkbootstrap.constants import PRIMARY, SECONDARY, SUCCESS

from invest_tracker.models.core import RentabilitySnapshot
from invest_tracker.services import storage
from invest_tracker.services.engine import RentabilityEngine, RentabilityError
from invest_tracker.services.pricing import validate_price
from invest_tracker.theming.style import (
    ASSET_COLUMN_WIDTH,
    COLOR_OVERSOLD,
    COLOR_UNREGISTERED,
    FONT_DEFAULT,
    PADDING,
    SPACING_MEDIUM,
    SUMMARY_DESC_COLOR,
    SUMMARY_DESC_FONT,
    SUMMARY_VALUE_FONT,
    setup_styles,
)
from invest_tracker.ui.utils import color_for_value, format_currency, format_percent, format_quantity, row_tags

ASSET_COLUMNS = (
    "Ticker", "Segment", "Quantity", "Avg Cost", "Current Price", "Invested",
    "Current Value", "Income", "P&L", "P&L %", "Return w/ Income",
)

SUMMARY_FIELDS = (
    ("total_invested", "Invested", format_currency, False),
    ("total_current_value", "Current value", format_currency, False),
    ("total_income", "Income", format_currency, False),
    ("total_pnl", "P&L", format_currency, True),
    ("total_pnl_pct", "P&L %", format_percent, True),
    ("total_return_pct", "Return w/ income", format_percent, True),
)


class RentabilityWindow(tb.Window):
    """Main window showing the engine's last snapshot."""

    def __init__(self, engine: RentabilityEngine) -> None:
        super().__init__(title="Invest Tracker - Rentability")
        self.geometry("1200x600")
        setup_styles(self)
        self.engine = engine
        self.summary_labels: Dict[str, tk.Label] = {}
        self._build()
        self.refresh()

    def _build(self) -> None:
        summary_frame = tb.LabelFrame(self, text="Portfolio")
        summary_frame.pack(fill="x", padx=PADDING, pady=(PADDING, 0))
        summary_inner = tb.Frame(summary_frame, padding=PADDING)
        summary_inner.pack(fill="x")
        for col, (key, title, _, _) in enumerate(SUMMARY_FIELDS):
            tk.Label(summary_inner, text=title, font=SUMMARY_DESC_FONT, fg=SUMMARY_DESC_COLOR).grid(
                row=0, column=col, padx=SPACING_MEDIUM, sticky=W
            )
            label = tk.Label(summary_inner, text="-", font=SUMMARY_VALUE_FONT)
            label.grid(row=1, column=col, padx=SPACING_MEDIUM, sticky=W)
            self.summary_labels[key] = label
        self.asset_count_label = tk.Label(summary_inner, text="", font=SUMMARY_DESC_FONT, fg=SUMMARY_DESC_COLOR)
        self.asset_count_label.grid(row=2, column=0, columnspan=len(SUMMARY_FIELDS), sticky=W, pady=(SPACING_MEDIUM, 0))

        asset_frame = tb.LabelFrame(self, text="Per-Asset Rentability")
        asset_frame.pack(fill="both", expand=True, padx=PADDING, pady=PADDING)
        asset_inner = tb.Frame(asset_frame, padding=PADDING)
        asset_inner.pack(fill="both", expand=True)

        self.asset_tree = ttk.Treeview(asset_inner, columns=ASSET_COLUMNS, show="headings", height=12, style="Asset.Treeview")
        for col in ASSET_COLUMNS:
            self.asset_tree.heading(col, text=col)
            self.asset_tree.column(col, width=ASSET_COLUMN_WIDTH, anchor=tk.CENTER)
        asset_vsb = ttk.Scrollbar(asset_inner, orient="vertical", command=self.asset_tree.yview)
        self.asset_tree.configure(yscrollcommand=asset_vsb.set)
        self.asset_tree.pack(side="left", fill="both", expand=True)
        asset_vsb.pack(side="right", fill="y")
        self.asset_tree.tag_configure("oversold", foreground=COLOR_OVERSOLD)
        self.asset_tree.tag_configure("unregistered", foreground=COLOR_UNREGISTERED)
        self.asset_tree.bind("<Double-1>", self._on_row_double_click)

        buttons = tb.Frame(self, padding=(PADDING, 0, PADDING, PADDING))
        buttons.pack(fill="x")
        tb.Button(buttons, text="Update Price", command=self.update_price_dialog, bootstyle=PRIMARY).pack(side="left")
        tb.Button(buttons, text="Refresh", command=self.refresh, bootstyle=SECONDARY).pack(side="left", padx=SPACING_MEDIUM)

    def refresh(self) -> None:
        """Recompute from the ledger; on failure keep showing the last snapshot."""
        try:
            snapshot = self.engine.compute_all()
        except RentabilityError as e:
            messagebox.showerror("Data Load Error", f"Error calculating rentability: {e}")
            return
        self.show_snapshot(snapshot)

    def show_snapshot(self, snapshot: RentabilitySnapshot) -> None:
        portfolio = snapshot["portfolio"]
        for key, _, fmt, colored in SUMMARY_FIELDS:
            label = self.summary_labels[key]
            label.config(text=fmt(portfolio[key]))
            if colored:
                label.config(fg=color_for_value(portfolio[key]))
        self.asset_count_label.config(text=f"{portfolio['asset_count']} asset(s)")

        self.asset_tree.delete(*self.asset_tree.get_children())
        for m in snapshot["per_asset"]:
            self.asset_tree.insert(
                "",
                tk.END,
                values=(
                    m["ticker"],
                    m["segment"],
                    format_quantity(m["quantity"]),
                    format_currency(m["average_cost"]),
                    format_currency(m["current_price"]),
                    format_currency(m["invested"]),
                    format_currency(m["current_value"]),
                    format_currency(m["income"]),
                    format_currency(m["pnl"]),
                    format_percent(m["pnl_pct"]),
                    format_percent(m["total_return_pct"]),
                ),
                tags=row_tags(m),
            )

    def _on_row_double_click(self, event) -> None:
        row = self.asset_tree.identify_row(event.y)
        if row:
            self.update_price_dialog(self.asset_tree.item(row, "values")[0])

    def update_price_dialog(self, ticker: Optional[str] = None) -> None:
        """Show dialog to set the current price of one asset."""
        dialog = tk.Toplevel(self)
        dialog.title("Update Current Price")
        dialog.geometry("320x220")
        dialog.transient(self)
        dialog.grab_set()

        frame = tb.Frame(dialog, padding=20)
        frame.pack(fill="both", expand=True)

        tb.Label(frame, text="Ticker:", font=FONT_DEFAULT).pack(anchor=W)
        ticker_var = tb.StringVar(value=ticker or "")
        tb.Entry(frame, textvariable=ticker_var, width=25).pack(fill="x", pady=(0, SPACING_MEDIUM))

        current = self.engine.get_metrics_for(ticker) if ticker else None
        tb.Label(frame, text="Current price:", font=FONT_DEFAULT).pack(anchor=W)
        price_var = tb.StringVar(value=f"{current['current_price']:.2f}" if current else "")
        tb.Entry(frame, textvariable=price_var, width=25).pack(fill="x", pady=(0, SPACING_MEDIUM))

        def save_action():
            symbol = ticker_var.get().strip()
            if not symbol:
                messagebox.showwarning("Input Error", "Please enter a ticker.")
                return
            try:
                price = validate_price(price_var.get())
            except ValueError as e:
                messagebox.showwarning("Input Error", str(e))
                return
            try:
                snapshot = self.engine.update_price(symbol, price)
            except RentabilityError as e:
                messagebox.showerror("Error", f"Error updating price: {e}")
                return
            storage.save_price_overrides(self.engine.overrides.as_dict())
            self.show_snapshot(snapshot)
            dialog.destroy()

        tb.Button(frame, text="Save", command=save_action, bootstyle=SUCCESS).pack(pady=(SPACING_MEDIUM, 0))
        tb.Button(frame, text="Cancel", command=dialog.destroy).pack(pady=(SPACING_MEDIUM, 0))
