"""Application bootstrap and core API entrypoints for Invest Tracker.

Provides a small core API (load_portfolio, build_engine, compute_all,
list_users) for use by the desktop UI or scripts.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from .services import storage
from .services.engine import RentabilityEngine
from .services.metrics import compute_rentability
from .services.pricing import PriceOverrideStore
from .models.core import RentabilitySnapshot


def load_portfolio(username: str = "Default") -> Dict[str, Any]:
    """Load portfolio data for a user (assets, transactions, distributions, settings).

    Raises on I/O error.

    Args:
        username: User name; data is loaded from invest_data_{username}.json.
    """
    return storage.load_data(username)


def compute_all(data: Dict[str, Any], prices: Dict[str, float] | None = None) -> RentabilitySnapshot:
    """Compute rentability for already loaded data and optional current prices."""
    return compute_rentability(
        storage.list_assets(data),
        storage.list_transactions(data),
        storage.list_distributions(data),
        PriceOverrideStore(prices),
    )


def build_engine(username: str = "Default") -> RentabilityEngine:
    """Engine reading the user's data file, seeded with the saved current prices."""
    overrides = PriceOverrideStore(storage.load_price_overrides())
    return RentabilityEngine(storage.JsonLedgerReader(username), overrides)


def list_users() -> List[str]:
    """Return the list of configured usernames (no file path needed)."""
    return storage.load_users()


def main() -> None:
    """Launch the Invest Tracker rentability window."""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    from .ui.rentability_window import RentabilityWindow  # Deferred so core API is usable without GUI deps

    app = RentabilityWindow(build_engine())
    app.mainloop()
