"""Tests for position reconstruction, valuation, and portfolio aggregation."""

import itertools
import math

import pytest

from invest_tracker.config.constants import UNCLASSIFIED_KIND, UNCLASSIFIED_SEGMENT
from invest_tracker.services.metrics import (
    aggregate_portfolio,
    calculate_average_cost,
    calculate_held_quantity,
    compute_asset_metrics,
    compute_rentability,
    kind_allocation,
    reconstruct_position,
    safe_ratio_return,
    segment_allocation,
    transaction_stats,
)


def _tx(op, qty, price, ticker="XYZ3", date="2024-01-01"):
    return {"ticker": ticker, "operation": op, "quantity": qty, "unit_price": price, "date": date}


# --- Position reconstruction ---


def test_no_transactions_gives_empty_position() -> None:
    """A ticker with no transactions holds nothing at zero cost."""
    pos = reconstruct_position([_tx("buy", 10, 5.0, ticker="OTHER")], "XYZ3")
    assert pos == {"quantity": 0.0, "average_cost": 0.0, "oversold": False}


def test_average_cost_weighted_by_quantity(xyz3_data) -> None:
    avg = calculate_average_cost(xyz3_data["transactions"], "XYZ3")
    assert avg == pytest.approx((100 * 8 + 50 * 12) / 150)


def test_average_cost_ignores_sells_and_subscriptions() -> None:
    """Sells and subscriptions of any price leave the average unchanged."""
    base = [_tx("buy", 10, 5.0), _tx("buy", 30, 7.0)]
    before = calculate_average_cost(base, "XYZ3")
    after = calculate_average_cost(base + [_tx("sell", 5, 999.0), _tx("subscription", 20, 0.01)], "XYZ3")
    assert after == before


def test_average_cost_without_buys_is_zero() -> None:
    assert calculate_average_cost([_tx("subscription", 10, 3.0)], "XYZ3") == 0.0


def test_held_quantity_counts_subscriptions() -> None:
    qty, oversold = calculate_held_quantity([_tx("buy", 10, 1.0), _tx("subscription", 5, 1.0), _tx("sell", 3, 1.0)], "XYZ3")
    assert qty == 12
    assert oversold is False


def test_held_quantity_clamped_on_oversell() -> None:
    """Selling more than was bought clamps to zero and flags the ledger."""
    qty, oversold = calculate_held_quantity([_tx("buy", 10, 1.0), _tx("sell", 25, 1.0)], "XYZ3")
    assert qty == 0.0
    assert oversold is True


def test_held_quantity_order_independent() -> None:
    txs = [_tx("buy", 10, 1.0), _tx("sell", 25, 1.0), _tx("subscription", 4, 1.0), _tx("buy", 20, 2.0)]
    results = {calculate_held_quantity(list(p), "XYZ3") for p in itertools.permutations(txs)}
    assert results == {(9.0, False)}


def test_ticker_match_is_case_insensitive() -> None:
    txs = [_tx("buy", 10, 4.0, ticker="petr4"), _tx("buy", 10, 6.0, ticker="PETR4 ")]
    pos = reconstruct_position(txs, "Petr4")
    assert pos["quantity"] == 20
    assert pos["average_cost"] == pytest.approx(5.0)


def test_oversold_position_logs_warning(caplog) -> None:
    reconstruct_position([_tx("sell", 1, 1.0)], "XYZ3")
    assert "exceed recorded buys" in caplog.text


def test_unknown_operation_is_ignored(xyz3_data) -> None:
    """An operation kind outside buy/sell/subscription moves neither quantity nor cost."""
    base = reconstruct_position(xyz3_data["transactions"], "XYZ3")
    with_split = xyz3_data["transactions"] + [_tx("split", 500, 1.0)]
    assert reconstruct_position(with_split, "XYZ3") == base
    assert base["quantity"] == 120


def test_fully_sold_position_keeps_buy_average(xyz3_data) -> None:
    txs = xyz3_data["transactions"] + [_tx("sell", 120, 11.0)]
    pos = reconstruct_position(txs, "XYZ3")
    assert pos["quantity"] == 0
    assert pos["oversold"] is False
    assert pos["average_cost"] == pytest.approx(1400 / 150)
    m = compute_rentability(xyz3_data["assets"], txs, [])["per_asset"][0]
    assert m["average_cost"] == pytest.approx(1400 / 150)
    assert m["invested"] == 0
    assert m["current_value"] == 0
    assert m["pnl_pct"] == 0


# --- Valuation ---


def test_safe_ratio_return_guards_zero() -> None:
    assert safe_ratio_return(100.0, 0.0) == 0.0
    assert safe_ratio_return(0.0, 0.0) == 0.0
    assert safe_ratio_return(110.0, 100.0) == pytest.approx(0.1)


def test_scenario_without_override(xyz3_data) -> None:
    """Buy 100 @ 8, buy 50 @ 12, sell 30 @ 20, registered price 10."""
    out = compute_rentability(xyz3_data["assets"], xyz3_data["transactions"], [])
    m = out["per_asset"][0]
    assert m["average_cost"] == pytest.approx(9.333333333)
    assert m["quantity"] == 120
    assert m["current_price"] == 10.0
    assert m["current_value"] == pytest.approx(1200.0)
    assert m["invested"] == pytest.approx(1120.0)
    assert m["pnl"] == pytest.approx(80.0)
    assert m["pnl_pct"] == pytest.approx(80.0 / 1120.0)
    assert m["total_return_pct"] == pytest.approx(m["pnl_pct"])
    assert m["segment"] == "Energia"
    assert m["name"] == "XYZ SA"
    assert m["registered"] is True


def test_scenario_with_distribution(xyz3_data) -> None:
    """Income is added to the numerator before the ratio."""
    dists = [{"ticker": "XYZ3", "date": "2024-04-01", "value": 50.0}]
    m = compute_rentability(xyz3_data["assets"], xyz3_data["transactions"], dists)["per_asset"][0]
    assert m["income"] == 50.0
    assert m["total_return_pct"] == pytest.approx((1250.0 / 1120.0) - 1)
    assert m["total_return_pct"] > m["pnl_pct"]


def test_flat_price_with_income_returns_income_over_invested() -> None:
    asset = {"ticker": "ABC", "price": 10.0}
    pos = {"quantity": 10.0, "average_cost": 10.0, "oversold": False}
    m = compute_asset_metrics("ABC", asset, pos, 5.0)
    assert m["pnl_pct"] == 0.0
    assert m["total_return_pct"] == pytest.approx(5.0 / 100.0)


def test_override_wins_over_registered_price(xyz3_data) -> None:
    out = compute_rentability(xyz3_data["assets"], xyz3_data["transactions"], [], {"XYZ3": 1234.56})
    assert out["per_asset"][0]["current_price"] == 1234.56


def test_asset_without_transactions_reports_zeros() -> None:
    out = compute_rentability([{"ticker": "IDLE3", "price": 42.0}], [], [])
    m = out["per_asset"][0]
    assert m["quantity"] == 0
    assert m["average_cost"] == 0
    assert m["invested"] == 0
    assert m["pnl_pct"] == 0
    assert m["total_return_pct"] == 0
    assert m["segment"] == UNCLASSIFIED_SEGMENT
    for value in m.values():
        if isinstance(value, float):
            assert math.isfinite(value)


def test_unregistered_ticker_is_reported() -> None:
    """Transactions and distributions for a ticker with no asset are not dropped."""
    txs = [_tx("buy", 10, 5.0, ticker="GHOST3")]
    dists = [{"ticker": "ONLYDIV11", "date": "2024-01-01", "value": 3.0}]
    out = compute_rentability([], txs, dists)
    by_ticker = {m["ticker"]: m for m in out["per_asset"]}
    assert set(by_ticker) == {"GHOST3", "ONLYDIV11"}
    ghost = by_ticker["GHOST3"]
    assert ghost["name"] == ""
    assert ghost["quantity"] == 10
    assert ghost["invested"] == pytest.approx(50.0)
    assert ghost["current_price"] == 0.0
    assert ghost["registered"] is False
    assert ghost["kind"] == UNCLASSIFIED_KIND
    assert ghost["pnl_pct"] == pytest.approx(-1.0)
    assert by_ticker["ONLYDIV11"]["income"] == 3.0
    assert by_ticker["ONLYDIV11"]["total_return_pct"] == 0.0


# --- Portfolio aggregation ---


def test_portfolio_with_sold_off_asset_equals_active_asset(xyz3_data) -> None:
    assets = xyz3_data["assets"] + [{"ticker": "OLD3", "price": 50.0}]
    txs = xyz3_data["transactions"] + [_tx("buy", 10, 30.0, ticker="OLD3"), _tx("sell", 10, 45.0, ticker="OLD3")]
    out = compute_rentability(assets, txs, [])
    active = out["per_asset"][0]
    old = out["per_asset"][1]
    assert old["quantity"] == 0 and old["invested"] == 0
    p = out["portfolio"]
    assert p["total_invested"] == active["invested"]
    assert p["total_current_value"] == active["current_value"]
    assert p["total_pnl_pct"] == active["pnl_pct"]
    assert p["asset_count"] == 2


def test_portfolio_totals_are_sums_and_value_weighted() -> None:
    assets = [{"ticker": "BIG", "price": 11.0}, {"ticker": "SMALL", "price": 2.0}]
    txs = [_tx("buy", 1000, 10.0, ticker="BIG"), _tx("buy", 1, 1.0, ticker="SMALL")]
    dists = [{"ticker": "BIG", "value": 7.5}, {"ticker": "SMALL", "value": 0.25}]
    out = compute_rentability(assets, txs, dists)
    per_asset, p = out["per_asset"], out["portfolio"]
    assert p["total_invested"] == pytest.approx(sum(m["invested"] for m in per_asset), abs=1e-9)
    assert p["total_current_value"] == pytest.approx(sum(m["current_value"] for m in per_asset), abs=1e-9)
    assert p["total_income"] == pytest.approx(7.75, abs=1e-9)
    # 11000 + 2 over 10001, not the mean of +10% and +100%
    assert p["total_pnl_pct"] == pytest.approx(11002 / 10001 - 1)
    assert p["total_return_pct"] == pytest.approx((11002 + 7.75) / 10001 - 1)


def test_empty_portfolio() -> None:
    p = aggregate_portfolio([])
    assert p == {
        "total_invested": 0.0,
        "total_current_value": 0.0,
        "total_income": 0.0,
        "total_pnl": 0.0,
        "total_pnl_pct": 0.0,
        "total_return_pct": 0.0,
        "asset_count": 0,
    }


def test_compute_rentability_is_idempotent(xyz3_data) -> None:
    args = (xyz3_data["assets"], xyz3_data["transactions"], [{"ticker": "XYZ3", "value": 1.1}], {"XYZ3": 9.99})
    assert compute_rentability(*args) == compute_rentability(*args)


# --- Supplementary aggregates ---


def test_segment_allocation_sorted_by_value() -> None:
    per_asset = compute_rentability(
        [
            {"ticker": "A", "price": 1.0, "segment": "Bancos"},
            {"ticker": "B", "price": 1.0, "segment": "Energia"},
            {"ticker": "C", "price": 1.0, "segment": "Bancos"},
        ],
        [_tx("buy", 10, 1.0, ticker="A"), _tx("buy", 60, 1.0, ticker="B"), _tx("buy", 30, 1.0, ticker="C")],
        [],
    )["per_asset"]
    alloc = segment_allocation(per_asset)
    assert [a["segment"] for a in alloc] == ["Energia", "Bancos"]
    assert alloc[0]["percent"] == pytest.approx(60.0)
    assert alloc[1]["percent"] == pytest.approx(40.0)
    assert alloc[1]["asset_count"] == 2


def test_segment_allocation_empty_when_no_value() -> None:
    per_asset = compute_rentability([{"ticker": "A", "price": 1.0}], [], [])["per_asset"]
    assert segment_allocation(per_asset) == []


def test_kind_allocation_groups_by_kind() -> None:
    per_asset = compute_rentability(
        [
            {"ticker": "PETR4", "price": 10.0, "kind": "acao"},
            {"ticker": "HGLG11", "price": 100.0, "kind": "fii"},
            {"ticker": "VALE3", "price": 10.0, "kind": "acao"},
        ],
        [
            _tx("buy", 5, 10.0, ticker="PETR4"),
            _tx("buy", 1, 100.0, ticker="HGLG11"),
            _tx("buy", 10, 10.0, ticker="VALE3"),
            _tx("buy", 4, 5.0, ticker="GHOST3"),
        ],
        [],
        {"GHOST3": 30.0},
    )["per_asset"]
    alloc = kind_allocation(per_asset)
    assert [a["kind"] for a in alloc] == ["acao", UNCLASSIFIED_KIND, "fii"]
    assert alloc[0]["value"] == pytest.approx(150.0)
    assert alloc[0]["asset_count"] == 2
    assert sum(a["percent"] for a in alloc) == pytest.approx(100.0)
    assert kind_allocation([]) == []


def test_transaction_stats(xyz3_data) -> None:
    txs = xyz3_data["transactions"] + [_tx("subscription", 10, 5.0)]
    stats = transaction_stats(txs)
    assert stats["invested"] == pytest.approx(800 + 600 + 50)
    assert stats["received"] == pytest.approx(600)
    assert stats["net_balance"] == pytest.approx(600 - 1450)
    assert stats["operation_count"] == 4
    assert stats["count_by_operation"] == {"buy": 2, "sell": 1, "subscription": 1}
    assert stats["volume"] == pytest.approx(2050)
