"""Distribution (income) totals and date-window helpers."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from invest_tracker.config.constants import DISTRIBUTION_TYPES
from invest_tracker.models.core import IncomeStats, ticker_key

DateLike = Union[str, date]


def calculate_income_total(distributions: Iterable[Mapping[str, Any]], ticker: str) -> float:
    """Sum of distribution values for a ticker (case-insensitive). No date filtering."""
    key = ticker_key(ticker)
    return sum(
        float(d.get("value") or 0)
        for d in distributions
        if ticker_key(d.get("ticker")) == key
    )


def parse_date(value: Optional[DateLike]) -> Optional[date]:
    """
    Parse a record date ("YYYY-MM-DD", optionally followed by a time) to a date.

    Returns None for empty or unparseable values.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(str(value)[:10], "%Y-%m-%d").date()
    except ValueError:
        return None


def filter_by_period(
    records: Iterable[Mapping[str, Any]],
    start: Optional[DateLike] = None,
    end: Optional[DateLike] = None,
) -> List[Mapping[str, Any]]:
    """
    Keep records whose ``date`` falls within [start, end] (both inclusive).

    Either bound may be omitted. Records with a missing or invalid date are
    dropped whenever a bound is given.
    """
    start_d = parse_date(start)
    end_d = parse_date(end)
    records = list(records)
    if start_d is None and end_d is None:
        return records
    out = []
    for r in records:
        d = parse_date(r.get("date"))
        if d is None:
            continue
        if start_d is not None and d < start_d:
            continue
        if end_d is not None and d > end_d:
            continue
        out.append(r)
    return out


def income_stats(distributions: Iterable[Mapping[str, Any]], today: Optional[date] = None) -> IncomeStats:
    """
    Income received overall, per kind, in the current month and current year.

    Args:
        distributions: Distribution records.
        today: Reference date for the month/year windows (defaults to today).
    """
    today = today or date.today()
    distributions = list(distributions)
    total_by_kind: Dict[str, float] = {kind: 0.0 for kind in DISTRIBUTION_TYPES}
    total = 0.0
    month_total = 0.0
    year_total = 0.0
    for d in distributions:
        value = float(d.get("value") or 0)
        total += value
        kind = d.get("kind")
        if kind in total_by_kind:
            total_by_kind[kind] += value
        paid = parse_date(d.get("date"))
        if paid is None or paid.year != today.year:
            continue
        year_total += value
        if paid.month == today.month:
            month_total += value
    return {
        "total": total,
        "total_by_kind": total_by_kind,
        "month_total": month_total,
        "year_total": year_total,
    }
