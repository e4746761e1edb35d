"""Data persistence: JSON load/save, user list, price overrides, record helpers, and migrations."""

from __future__ import annotations

import json
import logging
import os
import uuid
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Tuple

from invest_tracker.config.constants import (
    BASE_DIR,
    LEGACY_DISTRIBUTION_NAMES,
    LEGACY_OPERATION_NAMES,
    PRICE_OVERRIDES_FILE,
    USERS_FILE,
)
from invest_tracker.models.core import Asset, Distribution, Transaction, ticker_key

logger = logging.getLogger(__name__)


def get_user_data_file(username: str) -> str:
    """Return the absolute path to the data file for the given username."""
    safe = username.lower().replace(" ", "_")
    return str(BASE_DIR / f"invest_data_{safe}.json")


def load_users() -> List[str]:
    """Load list of usernames from the users file."""
    if os.path.exists(USERS_FILE):
        try:
            with open(USERS_FILE, "r", encoding="utf-8") as f:
                data = json.load(f)
            if isinstance(data, dict):
                return data.get("users", ["Default"])
            logger.warning("Unexpected content in %s; using default user", USERS_FILE)
        except (OSError, ValueError):
            logger.warning("Could not read %s; using default user", USERS_FILE)
    return ["Default"]


def save_users(users: List[str]) -> None:
    """Save list of usernames. Raises on I/O error (caller may show UI message)."""
    with open(USERS_FILE, "w", encoding="utf-8") as f:
        json.dump({"users": users}, f, indent=4)


def add_user(username: str) -> bool:
    """Add a new user. Returns False if username already exists."""
    users = load_users()
    if username in users:
        return False
    users.append(username)
    save_users(users)
    return True


def _now() -> str:
    return datetime.now().strftime("%Y-%m-%d %H:%M:%S")


def migrate_records(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Bring older data files up to date. Modifies data in place and returns it.

    Maps pt-BR operation and distribution names to the current ones and gives
    every transaction and distribution an id.
    """
    for key in ("assets", "transactions", "distributions"):
        data.setdefault(key, [])
    data.setdefault("settings", {})

    for t in data["transactions"]:
        op = t.get("operation")
        if op in LEGACY_OPERATION_NAMES:
            t["operation"] = LEGACY_OPERATION_NAMES[op]
        if "id" not in t:
            t["id"] = str(uuid.uuid4())
    for d in data["distributions"]:
        kind = d.get("kind")
        if kind in LEGACY_DISTRIBUTION_NAMES:
            d["kind"] = LEGACY_DISTRIBUTION_NAMES[kind]
        if "id" not in d:
            d["id"] = str(uuid.uuid4())
    return data


def get_default_data() -> Dict[str, Any]:
    """Return a fresh default data structure (no file I/O)."""
    return {
        "assets": [],
        "transactions": [],
        "distributions": [],
        "settings": {},
    }


def load_data(username: str = "Default") -> Dict[str, Any]:
    """
    Load application data from JSON with migrations.

    Returns the default structure when the user has no data file yet.
    Raises on I/O error or invalid JSON.
    """
    data_file = get_user_data_file(username)
    if not os.path.exists(data_file):
        return get_default_data()
    with open(data_file, "r", encoding="utf-8") as f:
        data = json.load(f)
    return migrate_records(data)


def save_data(data: Dict[str, Any], username: str = "Default") -> None:
    """Save application data to JSON. Raises on I/O error."""
    path = get_user_data_file(username)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=4)


def list_assets(data: Dict[str, Any]) -> List[Asset]:
    return data.get("assets", [])


def list_transactions(data: Dict[str, Any]) -> List[Transaction]:
    return data.get("transactions", [])


def list_distributions(data: Dict[str, Any]) -> List[Distribution]:
    return data.get("distributions", [])


def upsert_asset(data: Dict[str, Any], asset: Mapping[str, Any]) -> Dict[str, Any]:
    """Insert an asset or replace the one with the same ticker (case-insensitive)."""
    record = dict(asset)
    record["updated_at"] = _now()
    assets = data.setdefault("assets", [])
    key = ticker_key(record.get("ticker"))
    for i, existing in enumerate(assets):
        if ticker_key(existing.get("ticker")) == key:
            assets[i] = record
            return record
    assets.append(record)
    return record


def delete_asset(data: Dict[str, Any], ticker: str) -> bool:
    """Remove the asset with this ticker (case-insensitive). Returns False if not found.

    Transactions and distributions of the ticker are left alone; the ticker is
    then reported as unregistered.
    """
    assets = data.get("assets", [])
    key = ticker_key(ticker)
    kept = [a for a in assets if ticker_key(a.get("ticker")) != key]
    if len(kept) == len(assets):
        return False
    data["assets"] = kept
    return True


def add_transaction(data: Dict[str, Any], transaction: Mapping[str, Any]) -> str:
    """Append a transaction. Returns the new transaction id."""
    record = dict(transaction)
    record["id"] = str(uuid.uuid4())
    record["created_at"] = _now()
    data.setdefault("transactions", []).append(record)
    return record["id"]


def update_transaction(data: Dict[str, Any], transaction_id: str, transaction: Mapping[str, Any]) -> bool:
    """Replace a transaction in place, keeping its id. Returns False if not found."""
    transactions = data.get("transactions", [])
    for i, existing in enumerate(transactions):
        if existing.get("id") == transaction_id:
            record = dict(transaction)
            record["id"] = transaction_id
            record["created_at"] = existing.get("created_at")
            record["updated_at"] = _now()
            transactions[i] = record
            return True
    return False


def delete_transaction(data: Dict[str, Any], transaction_id: str) -> bool:
    """Remove a transaction by id. Returns False if not found."""
    transactions = data.get("transactions", [])
    kept = [t for t in transactions if t.get("id") != transaction_id]
    if len(kept) == len(transactions):
        return False
    data["transactions"] = kept
    return True


def add_distribution(data: Dict[str, Any], distribution: Mapping[str, Any]) -> str:
    """Append a distribution. Returns the new distribution id."""
    record = dict(distribution)
    record["id"] = str(uuid.uuid4())
    record["created_at"] = _now()
    data.setdefault("distributions", []).append(record)
    return record["id"]


def update_distribution(data: Dict[str, Any], distribution_id: str, distribution: Mapping[str, Any]) -> bool:
    """Replace a distribution in place, keeping its id. Returns False if not found."""
    distributions = data.get("distributions", [])
    for i, existing in enumerate(distributions):
        if existing.get("id") == distribution_id:
            record = dict(distribution)
            record["id"] = distribution_id
            record["created_at"] = existing.get("created_at")
            record["updated_at"] = _now()
            distributions[i] = record
            return True
    return False


def delete_distribution(data: Dict[str, Any], distribution_id: str) -> bool:
    """Remove a distribution by id. Returns False if not found."""
    distributions = data.get("distributions", [])
    kept = [d for d in distributions if d.get("id") != distribution_id]
    if len(kept) == len(distributions):
        return False
    data["distributions"] = kept
    return True


def load_price_overrides(path: Optional[str] = None) -> Dict[str, float]:
    """Load saved current prices. Returns empty dict on missing or invalid file."""
    path = path or PRICE_OVERRIDES_FILE
    if not os.path.exists(path):
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
        return {str(t): float(p) for t, p in raw.items()}
    except (OSError, ValueError, TypeError, AttributeError):
        logger.warning("Ignoring unreadable price overrides file %s", path)
        return {}


def save_price_overrides(prices: Mapping[str, float], path: Optional[str] = None) -> None:
    """Save current prices to file. Ignores I/O errors (non-fatal)."""
    path = path or PRICE_OVERRIDES_FILE
    try:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(dict(prices), f, indent=4)
    except OSError:
        logger.warning("Could not save price overrides to %s", path)


class JsonLedgerReader:
    """
    Ledger reader over a user's JSON data file.

    ``read`` loads the file once and returns all three collections, so a
    computation sees a consistent snapshot. The ``list_*`` methods each
    re-read the file. I/O and JSON errors propagate to the caller.
    """

    def __init__(self, username: str = "Default") -> None:
        self.username = username

    def _load(self) -> Dict[str, Any]:
        return load_data(self.username)

    def read(self) -> Tuple[List[Asset], List[Transaction], List[Distribution]]:
        data = self._load()
        return list_assets(data), list_transactions(data), list_distributions(data)

    def list_assets(self) -> List[Asset]:
        return list_assets(self._load())

    def list_transactions(self) -> List[Transaction]:
        return list_transactions(self._load())

    def list_distributions(self) -> List[Distribution]:
        return list_distributions(self._load())


class MemoryLedgerReader:
    """Ledger reader over an already loaded data dict (tests, scripts)."""

    def __init__(self, data: Optional[Dict[str, Any]] = None) -> None:
        self.data = data if data is not None else get_default_data()

    def read(self) -> Tuple[List[Asset], List[Transaction], List[Distribution]]:
        return self.list_assets(), self.list_transactions(), self.list_distributions()

    def list_assets(self) -> List[Asset]:
        return list(list_assets(self.data))

    def list_transactions(self) -> List[Transaction]:
        return list(list_transactions(self.data))

    def list_distributions(self) -> List[Distribution]:
        return list(list_distributions(self.data))
