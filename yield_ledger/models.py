"""Data models — all frozen (immutable); transitions build new records."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Strategy:
    """A cataloged yield target with an advertised APY and locked value."""

    id: int
    name: str
    protocol: str
    apy_bps: int
    min_deposit: int
    tvl: int = 0
    is_active: bool = True
    last_update: int = 0


@dataclass(frozen=True)
class UserPosition:
    """One account's deposit into one strategy."""

    owner: str
    strategy_id: int
    amount: int
    rewards_claimed: int = 0
    deposit_timestamp: int = 0
    closed: bool = False


@dataclass(frozen=True)
class ClosedPosition:
    """Audit record written when a position's principal reaches zero."""

    owner: str
    position_index: int
    strategy_id: int
    rewards_claimed: int
    closed_at: int


@dataclass(frozen=True)
class LedgerEvent:
    """Append-only record of a committed state transition."""

    kind: str
    timestamp: int
    caller: str
    payload: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class CallContext:
    """What the chain-call layer resolves before control reaches the ledger."""

    caller: str
    timestamp: int
    attached_deposit: int = 0
