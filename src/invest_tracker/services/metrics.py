"""Per-asset and portfolio rentability computation (pure functions)."""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from invest_tracker.config.constants import (
    OPERATION_BUY,
    OPERATION_SELL,
    OPERATION_TYPES,
    QUANTITY_INCREASING,
    UNCLASSIFIED_KIND,
    UNCLASSIFIED_SEGMENT,
)
from invest_tracker.models.core import (
    AssetMetrics,
    KindAllocation,
    PortfolioMetrics,
    PositionSnapshot,
    RentabilitySnapshot,
    SegmentAllocation,
    TransactionStats,
    ticker_key,
)
from invest_tracker.services.income import calculate_income_total

logger = logging.getLogger(__name__)


def matches_ticker(record_ticker: Optional[str], ticker: Optional[str]) -> bool:
    """Case-insensitive ticker comparison."""
    return ticker_key(record_ticker) == ticker_key(ticker)


def calculate_average_cost(transactions: Iterable[Mapping[str, Any]], ticker: str) -> float:
    """
    Quantity-weighted mean unit price over the buy transactions of a ticker.

    Sells and subscriptions never affect the average.

    Returns:
        Average unit cost, or 0.0 when there are no buys.
    """
    buys = [
        t for t in transactions
        if matches_ticker(t.get("ticker"), ticker) and t.get("operation") == OPERATION_BUY
    ]
    if not buys:
        return 0.0
    total_value = sum((t.get("unit_price") or 0) * (t.get("quantity") or 0) for t in buys)
    total_qty = sum(t.get("quantity") or 0 for t in buys)
    return total_value / total_qty if total_qty > 0 else 0.0


def calculate_held_quantity(
    transactions: Iterable[Mapping[str, Any]], ticker: str
) -> Tuple[float, bool]:
    """
    Net held quantity of a ticker: buys and subscriptions add, sells subtract.

    The result is a plain signed sum, so transaction order does not matter.
    A negative sum (sells exceeding recorded buys) is clamped to zero.

    Returns:
        Tuple of (quantity, oversold) where oversold tells the sum was clamped.
    """
    quantity = 0.0
    for t in transactions:
        if not matches_ticker(t.get("ticker"), ticker):
            continue
        op = t.get("operation")
        qty = t.get("quantity") or 0
        if op in QUANTITY_INCREASING:
            quantity += qty
        elif op == OPERATION_SELL:
            quantity -= qty
    if quantity < 0:
        return 0.0, True
    return quantity, False


def reconstruct_position(transactions: Iterable[Mapping[str, Any]], ticker: str) -> PositionSnapshot:
    """Fold a ticker's transaction history into held quantity and average cost."""
    transactions = list(transactions)
    quantity, oversold = calculate_held_quantity(transactions, ticker)
    if oversold:
        logger.warning("Sells of %s exceed recorded buys; position clamped to 0", ticker_key(ticker))
    return {
        "quantity": quantity,
        "average_cost": calculate_average_cost(transactions, ticker),
        "oversold": oversold,
    }


def safe_ratio_return(numerator: float, invested: float) -> float:
    """Return ``numerator / invested - 1``, or 0.0 when nothing was invested."""
    if invested > 0:
        return (numerator / invested) - 1
    return 0.0


def resolve_current_price(
    ticker: str,
    asset: Optional[Mapping[str, Any]],
    overrides: Optional[Mapping[str, float]] = None,
) -> float:
    """
    Price used for valuation: the override when present, else the asset's
    registered price. An unknown asset without override is priced at 0.
    """
    if overrides is not None:
        override = overrides.get(ticker_key(ticker))
        if override is not None:
            return float(override)
    if asset is None:
        return 0.0
    return float(asset.get("price") or 0.0)


def compute_asset_metrics(
    ticker: str,
    asset: Optional[Mapping[str, Any]],
    position: PositionSnapshot,
    income: float,
    overrides: Optional[Mapping[str, float]] = None,
) -> AssetMetrics:
    """
    Value one asset from its reconstructed position and income total.

    ``asset`` may be None for a ticker that only appears in the ledger; it is
    still reported, with an empty name, the unclassified segment and kind,
    and ``registered`` set to False.
    """
    quantity = position["quantity"]
    average_cost = position["average_cost"]
    current_price = resolve_current_price(ticker, asset, overrides)

    invested = average_cost * quantity
    current_value = current_price * quantity
    record = asset or {}

    return {
        "ticker": ticker,
        "name": record.get("name") or "",
        "quantity": quantity,
        "average_cost": average_cost,
        "current_price": current_price,
        "invested": invested,
        "current_value": current_value,
        "pnl": current_value - invested,
        "pnl_pct": safe_ratio_return(current_value, invested),
        "income": income,
        "total_return_pct": safe_ratio_return(current_value + income, invested),
        "segment": record.get("segment") or UNCLASSIFIED_SEGMENT,
        "kind": record.get("kind") or UNCLASSIFIED_KIND,
        "oversold": position["oversold"],
        "registered": asset is not None,
    }


def aggregate_portfolio(per_asset: List[AssetMetrics]) -> PortfolioMetrics:
    """
    Reduce per-asset metrics to portfolio totals.

    Money amounts are summed first and the ratios taken on the sums, so the
    percentages are value-weighted. Assets with no position contribute zero.
    """
    total_invested = math.fsum(m["invested"] for m in per_asset)
    total_current_value = math.fsum(m["current_value"] for m in per_asset)
    total_income = math.fsum(m["income"] for m in per_asset)
    return {
        "total_invested": total_invested,
        "total_current_value": total_current_value,
        "total_income": total_income,
        "total_pnl": total_current_value - total_invested,
        "total_pnl_pct": safe_ratio_return(total_current_value, total_invested),
        "total_return_pct": safe_ratio_return(total_current_value + total_income, total_invested),
        "asset_count": len(per_asset),
    }


def collect_tickers(
    assets: Iterable[Mapping[str, Any]],
    transactions: Iterable[Mapping[str, Any]],
    distributions: Iterable[Mapping[str, Any]],
) -> List[Tuple[str, Optional[Mapping[str, Any]]]]:
    """
    Tickers to report, paired with their asset record (None when unregistered).

    Registered assets come first in their given order, followed by tickers
    seen only in transactions or distributions.
    """
    seen: Dict[str, Optional[Mapping[str, Any]]] = {}
    out: List[Tuple[str, Optional[Mapping[str, Any]]]] = []
    for asset in assets:
        key = ticker_key(asset.get("ticker"))
        if not key or key in seen:
            continue
        seen[key] = asset
        out.append(((asset.get("ticker") or "").strip(), asset))
    for record in list(transactions) + list(distributions):
        key = ticker_key(record.get("ticker"))
        if not key or key in seen:
            continue
        seen[key] = None
        out.append(((record.get("ticker") or "").strip(), None))
    return out


def compute_rentability(
    assets: Iterable[Mapping[str, Any]],
    transactions: Iterable[Mapping[str, Any]],
    distributions: Iterable[Mapping[str, Any]],
    overrides: Optional[Mapping[str, float]] = None,
) -> RentabilitySnapshot:
    """
    Compute per-asset and portfolio rentability from a ledger snapshot.

    Single source of truth for positions, average cost, valuation, and
    returns. Each ticker is computed independently of the others; only the
    final aggregation depends on all of them.

    Args:
        assets: Registered asset records.
        transactions: Buy/sell/subscription records.
        distributions: Income records.
        overrides: Current prices keyed by upper-case ticker.

    Returns:
        Dict with ``per_asset`` (list of AssetMetrics) and ``portfolio``.
    """
    assets = list(assets)
    transactions = list(transactions)
    distributions = list(distributions)

    per_asset: List[AssetMetrics] = []
    for ticker, asset in collect_tickers(assets, transactions, distributions):
        position = reconstruct_position(transactions, ticker)
        income = calculate_income_total(distributions, ticker)
        per_asset.append(compute_asset_metrics(ticker, asset, position, income, overrides))

    return {"per_asset": per_asset, "portfolio": aggregate_portfolio(per_asset)}


def _allocation_by(per_asset: List[AssetMetrics], field: str) -> List[Dict[str, Any]]:
    total = math.fsum(m["current_value"] for m in per_asset)
    if total <= 0:
        return []
    groups: Dict[str, Dict[str, float]] = {}
    for m in per_asset:
        group = groups.setdefault(m[field], {"value": 0.0, "count": 0})
        group["value"] += m["current_value"]
        group["count"] += 1
    result = [
        {
            field: label,
            "value": g["value"],
            "percent": g["value"] / total * 100.0,
            "asset_count": int(g["count"]),
        }
        for label, g in groups.items()
    ]
    result.sort(key=lambda s: s["value"], reverse=True)
    return result


def segment_allocation(per_asset: List[AssetMetrics]) -> List[SegmentAllocation]:
    """
    Current value grouped by segment, largest first.

    Returns:
        One entry per segment with value, percent of the total (0-100) and
        number of assets. Empty when the portfolio has no value.
    """
    return _allocation_by(per_asset, "segment")


def kind_allocation(per_asset: List[AssetMetrics]) -> List[KindAllocation]:
    """Current value grouped by asset kind (acao, fii, ...), largest first."""
    return _allocation_by(per_asset, "kind")


def transaction_stats(transactions: Iterable[Mapping[str, Any]]) -> TransactionStats:
    """Gross amounts and counts over a list of transactions (e.g. a filtered period)."""
    transactions = list(transactions)
    count_by_operation = {op: 0 for op in OPERATION_TYPES}
    invested = 0.0
    received = 0.0
    for t in transactions:
        op = t.get("operation")
        gross = (t.get("quantity") or 0) * (t.get("unit_price") or 0)
        if op in count_by_operation:
            count_by_operation[op] += 1
        if op in QUANTITY_INCREASING:
            invested += gross
        elif op == OPERATION_SELL:
            received += gross
    return {
        "invested": invested,
        "received": received,
        "net_balance": received - invested,
        "operation_count": len(transactions),
        "count_by_operation": count_by_operation,
        "volume": invested + received,
    }
