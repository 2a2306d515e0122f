"""JSON state file — save and restore a ledger store between CLI runs."""
from __future__ import annotations

import hashlib
import json
import logging
import os
from dataclasses import asdict
from pathlib import Path
from typing import Any

from .models import ClosedPosition, LedgerEvent, Strategy, UserPosition
from .store import LedgerStore

logger = logging.getLogger(__name__)

STATE_VERSION = 1


def store_to_dict(store: LedgerStore) -> dict[str, Any]:
    """Canonical, JSON-ready representation of a store."""
    return {
        "version": STATE_VERSION,
        "owner_id": store.owner_id,
        "governance_token": store.governance_token,
        "min_deposit_amount": store.min_deposit_amount,
        "next_strategy_id": store.next_strategy_id,
        "total_tvl": store.total_tvl,
        # JSON object keys are strings; strategies go out as a list.
        "strategies": [asdict(store.strategies[k]) for k in sorted(store.strategies)],
        "positions": {
            owner: [asdict(p) for p in slots]
            for owner, slots in sorted(store.positions.items())
        },
        "closed_positions": [asdict(c) for c in store.closed_positions],
        "events": [asdict(e) for e in store.events],
    }


def store_from_dict(raw: dict[str, Any]) -> LedgerStore:
    version = raw.get("version", STATE_VERSION)
    if version != STATE_VERSION:
        raise ValueError(f"Unsupported state version {version}")
    strategies = [Strategy(**s) for s in raw.get("strategies", [])]
    return LedgerStore(
        owner_id=raw["owner_id"],
        governance_token=raw.get("governance_token", ""),
        min_deposit_amount=int(raw.get("min_deposit_amount", 0)),
        strategies={s.id: s for s in strategies},
        positions={
            owner: [UserPosition(**p) for p in slots]
            for owner, slots in raw.get("positions", {}).items()
        },
        closed_positions=[ClosedPosition(**c) for c in raw.get("closed_positions", [])],
        events=[LedgerEvent(**e) for e in raw.get("events", [])],
        next_strategy_id=int(raw.get("next_strategy_id", len(strategies))),
        total_tvl=int(raw.get("total_tvl", 0)),
    )


def fingerprint(store: LedgerStore) -> str:
    """sha256 of the canonical JSON — equal fingerprints mean equal state."""
    encoded = json.dumps(store_to_dict(store), sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest()


def save_store(store: LedgerStore, path: str | Path) -> Path:
    """Write the store atomically (temp file + rename)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(path.name + ".tmp")
    with open(tmp_path, "w", encoding="utf-8") as f:
        json.dump(store_to_dict(store), f, indent=2, sort_keys=True)
        f.write("\n")
    os.replace(tmp_path, path)
    logger.debug("State saved to %s", path)
    return path


def load_store(path: str | Path) -> LedgerStore:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"State file not found: {path}")
    with open(path, encoding="utf-8") as f:
        raw = json.load(f)
    logger.debug("State loaded from %s", path)
    return store_from_dict(raw)
