"""Stateful wrapper around the rentability computation.

Holds the price overrides and the last computed snapshot. Every price
update triggers a full recomputation from a fresh ledger read.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Mapping, Optional, Protocol, Union

from invest_tracker.models.core import (
    Asset,
    AssetMetrics,
    Distribution,
    PriceEntry,
    RentabilitySnapshot,
    Transaction,
    ticker_key,
)
from invest_tracker.services.metrics import compute_rentability
from invest_tracker.services.pricing import PriceOverrideStore

logger = logging.getLogger(__name__)


class RentabilityError(Exception):
    """Base error for the rentability engine."""


class LedgerReadError(RentabilityError):
    """The ledger could not be read; the previous snapshot is kept."""


class LedgerReader(Protocol):
    """Source of the three ledger collections.

    A reader may also offer ``read()`` returning ``(assets, transactions,
    distributions)`` from a single load; the engine prefers it when present.
    """

    def list_assets(self) -> List[Asset]: ...

    def list_transactions(self) -> List[Transaction]: ...

    def list_distributions(self) -> List[Distribution]: ...


class RentabilityEngine:
    """
    Computes rentability from a ledger reader and a price override store.

    A recomputation either completes and replaces ``last_snapshot`` as a
    whole, or raises and leaves it untouched.
    """

    def __init__(self, reader: LedgerReader, overrides: Optional[PriceOverrideStore] = None) -> None:
        self.reader = reader
        self.overrides = overrides if overrides is not None else PriceOverrideStore()
        self._snapshot: Optional[RentabilitySnapshot] = None

    @property
    def last_snapshot(self) -> Optional[RentabilitySnapshot]:
        """Result of the last successful computation (None before the first one)."""
        return self._snapshot

    def _read_ledger(self):
        read = getattr(self.reader, "read", None)
        try:
            if read is not None:
                return read()
            return (
                self.reader.list_assets(),
                self.reader.list_transactions(),
                self.reader.list_distributions(),
            )
        except Exception as e:
            logger.exception("Failed to read ledger")
            raise LedgerReadError(f"Failed to read ledger: {e}") from e

    def compute_all(self) -> RentabilitySnapshot:
        """Read the ledger, recompute every asset and the portfolio totals."""
        assets, transactions, distributions = self._read_ledger()
        snapshot = compute_rentability(assets, transactions, distributions, self.overrides)
        self._snapshot = snapshot
        logger.debug(
            "Recomputed rentability: %d assets, %d transactions, %d distributions",
            len(snapshot["per_asset"]), len(transactions), len(distributions),
        )
        return snapshot

    def update_price(self, ticker: str, price: float) -> RentabilitySnapshot:
        """Set the current price of one ticker and recompute."""
        self.overrides.set(ticker, price)
        logger.info("Current price for %s set to %s", ticker_key(ticker), price)
        return self.compute_all()

    def update_prices(self, entries: Iterable[Union[PriceEntry, Mapping[str, Any]]]) -> RentabilitySnapshot:
        """Set several current prices at once and recompute."""
        applied = self.overrides.set_many(entries)
        logger.info("Updated %d current price(s)", applied)
        return self.compute_all()

    def get_metrics_for(self, ticker: str) -> Optional[AssetMetrics]:
        """Metrics of one ticker from the last snapshot (None if absent or not computed yet)."""
        if self._snapshot is None:
            return None
        key = ticker_key(ticker)
        return next((m for m in self._snapshot["per_asset"] if ticker_key(m["ticker"]) == key), None)
