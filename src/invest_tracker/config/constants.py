"""Global configuration constants for Invest Tracker.

These values are intentionally free of any UI / Tkinter concerns so they
can be reused by services, scripts, and the desktop application.
"""

from __future__ import annotations

import os
from pathlib import Path

# Base directory for data files (defaults to project root, override with INVEST_TRACKER_HOME)
BASE_DIR = Path(os.environ.get("INVEST_TRACKER_HOME") or Path(__file__).resolve().parents[3])

# --- File paths ---
USERS_FILE = str(BASE_DIR / "users.json")
PRICE_OVERRIDES_FILE = str(BASE_DIR / "price_overrides.json")

# Transaction operations. Quantity and unit price are always stored as
# non-negative numbers; direction comes from the operation.
OPERATION_BUY = "buy"
OPERATION_SELL = "sell"
OPERATION_SUBSCRIPTION = "subscription"
OPERATION_TYPES = [OPERATION_BUY, OPERATION_SELL, OPERATION_SUBSCRIPTION]
QUANTITY_INCREASING = {OPERATION_BUY, OPERATION_SUBSCRIPTION}

# Names used by older data files (pt-BR)
LEGACY_OPERATION_NAMES = {
    "compra": OPERATION_BUY,
    "venda": OPERATION_SELL,
    "subscricao": OPERATION_SUBSCRIPTION,
}

# Distribution kinds
DISTRIBUTION_TYPES = ["dividend", "jcp", "yield"]
LEGACY_DISTRIBUTION_NAMES = {
    "dividendo": "dividend",
    "rendimento": "yield",
}

# Segment and kind labels for assets without one (or tickers with no registered asset)
UNCLASSIFIED_SEGMENT = "N/A"
UNCLASSIFIED_KIND = "N/A"

# Tolerance used when comparing money figures
MONEY_TOLERANCE = 1e-9

# Display currency (single-currency tool)
CURRENCY_SYMBOL = "R$"
