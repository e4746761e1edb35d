"""User-entered current prices (overrides of the registered asset price)."""

from __future__ import annotations

from typing import Any, Dict, Iterable, Iterator, Mapping, Optional, Union

from invest_tracker.models.core import PriceEntry, ticker_key


class PriceOverrideStore(Mapping[str, float]):
    """
    Current prices keyed by ticker (case-insensitive), last write wins.

    Values are not validated here; the input form is responsible for
    rejecting non-positive prices (see validate_price). Updates replace the
    backing dict in a single assignment so readers never see a half-applied
    batch.
    """

    def __init__(self, initial: Optional[Mapping[str, Any]] = None) -> None:
        self._prices: Dict[str, float] = {}
        if initial:
            self._prices = {ticker_key(t): float(p) for t, p in initial.items() if ticker_key(t)}

    def __getitem__(self, ticker: str) -> float:
        return self._prices[ticker_key(ticker)]

    def __iter__(self) -> Iterator[str]:
        return iter(self._prices)

    def __len__(self) -> int:
        return len(self._prices)

    def __contains__(self, ticker: object) -> bool:
        return isinstance(ticker, str) and ticker_key(ticker) in self._prices

    def get(self, ticker: str, default: Optional[float] = None) -> Optional[float]:
        return self._prices.get(ticker_key(ticker), default)

    def set(self, ticker: str, price: float) -> None:
        """Set the current price of one ticker."""
        self.set_many([{"ticker": ticker, "price": price}])

    def set_many(self, entries: Iterable[Union[PriceEntry, Mapping[str, Any]]]) -> int:
        """
        Apply a batch of ``{"ticker", "price"}`` entries at once.

        Later entries for the same ticker win. Entries without a ticker are
        skipped.

        Returns:
            Number of entries applied.
        """
        updated = dict(self._prices)
        applied = 0
        for entry in entries:
            key = ticker_key(entry.get("ticker"))
            if not key:
                continue
            updated[key] = float(entry["price"])
            applied += 1
        self._prices = updated
        return applied

    def remove(self, ticker: str) -> bool:
        """Drop an override so the registered price applies again."""
        key = ticker_key(ticker)
        if key not in self._prices:
            return False
        updated = dict(self._prices)
        del updated[key]
        self._prices = updated
        return True

    def clear(self) -> None:
        self._prices = {}

    def as_dict(self) -> Dict[str, float]:
        """Copy of the overrides, keyed by upper-case ticker."""
        return dict(self._prices)


def validate_price(value: Any) -> float:
    """
    Parse a price typed by the user ("12.50" or "12,50") and require it to be > 0.

    Raises:
        ValueError: if the value is not a number or is not positive.
    """
    if isinstance(value, str):
        text = value.strip().replace(" ", "")
        if "," in text and "." in text:
            text = text.replace(".", "").replace(",", ".")
        else:
            text = text.replace(",", ".")
        value = text
    try:
        price = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid price: {value!r}") from None
    if not price > 0 or price == float("inf"):
        raise ValueError(f"Price must be greater than zero: {value!r}")
    return price
