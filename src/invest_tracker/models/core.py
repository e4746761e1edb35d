"""Typed structures for ledger records and rentability metrics (for documentation and API)."""

from __future__ import annotations

from typing import List, Optional, TypedDict


class Asset(TypedDict, total=False):
    """Registered asset. ``price`` is the reference price entered by the user."""

    ticker: str
    name: str
    price: float
    segment: str
    kind: str
    status: str


class Transaction(TypedDict, total=False):
    """One buy, sell, or subscription event."""

    id: str
    ticker: str
    operation: str
    quantity: float
    unit_price: float
    date: str
    note: str


class Distribution(TypedDict, total=False):
    """One income payment (dividend, JCP, yield)."""

    id: str
    ticker: str
    date: str
    value: float
    kind: str


class PriceEntry(TypedDict):
    ticker: str
    price: float


class PositionSnapshot(TypedDict):
    """Held quantity and buy-weighted average cost for one ticker."""

    quantity: float
    average_cost: float
    oversold: bool


class AssetMetrics(TypedDict):
    """Per-asset metrics as returned by compute_asset_metrics.

    Percentages are fractions (0.0714 means 7.14%).
    """

    ticker: str
    name: str
    quantity: float
    average_cost: float
    current_price: float
    invested: float
    current_value: float
    pnl: float
    pnl_pct: float
    income: float
    total_return_pct: float
    segment: str
    kind: str
    oversold: bool
    registered: bool


class PortfolioMetrics(TypedDict):
    """Aggregate metrics as returned by aggregate_portfolio."""

    total_invested: float
    total_current_value: float
    total_income: float
    total_pnl: float
    total_pnl_pct: float
    total_return_pct: float
    asset_count: int


class RentabilitySnapshot(TypedDict):
    per_asset: List[AssetMetrics]
    portfolio: PortfolioMetrics


class SegmentAllocation(TypedDict):
    segment: str
    value: float
    percent: float
    asset_count: int


class KindAllocation(TypedDict):
    kind: str
    value: float
    percent: float
    asset_count: int


class TransactionStats(TypedDict):
    invested: float
    received: float
    net_balance: float
    operation_count: int
    count_by_operation: dict[str, int]
    volume: float


class IncomeStats(TypedDict):
    total: float
    total_by_kind: dict[str, float]
    month_total: float
    year_total: float


def ticker_key(ticker: Optional[str]) -> str:
    """Normalized compare key for a ticker ("petr4 " -> "PETR4")."""
    return (ticker or "").strip().upper()
