"""Ledger store — the explicitly owned state every operation runs against."""
from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

from .models import ClosedPosition, LedgerEvent, Strategy, UserPosition

logger = logging.getLogger(__name__)


@dataclass
class _Snapshot:
    strategies: dict[int, Strategy]
    positions: dict[str, list[UserPosition]]
    closed_positions: list[ClosedPosition]
    events: list[LedgerEvent]
    next_strategy_id: int
    total_tvl: int


@dataclass
class LedgerStore:
    """Strategies, positions and logs owned by one ledger instance.

    Records are frozen, so a rollback snapshot only has to copy containers.
    """

    owner_id: str
    governance_token: str = ""
    min_deposit_amount: int = 0
    strategies: dict[int, Strategy] = field(default_factory=dict)
    positions: dict[str, list[UserPosition]] = field(default_factory=dict)
    closed_positions: list[ClosedPosition] = field(default_factory=list)
    events: list[LedgerEvent] = field(default_factory=list)
    next_strategy_id: int = 0
    total_tvl: int = 0

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def _snapshot(self) -> _Snapshot:
        return _Snapshot(
            strategies=dict(self.strategies),
            positions={owner: list(slots) for owner, slots in self.positions.items()},
            closed_positions=list(self.closed_positions),
            events=list(self.events),
            next_strategy_id=self.next_strategy_id,
            total_tvl=self.total_tvl,
        )

    def _restore(self, snap: _Snapshot) -> None:
        self.strategies = snap.strategies
        self.positions = snap.positions
        self.closed_positions = snap.closed_positions
        self.events = snap.events
        self.next_strategy_id = snap.next_strategy_id
        self.total_tvl = snap.total_tvl

    @contextmanager
    def transaction(self) -> Iterator[LedgerStore]:
        """All-or-nothing scope: any exception restores the entry state."""
        snap = self._snapshot()
        try:
            yield self
        except Exception:
            self._restore(snap)
            logger.debug("Transaction rolled back")
            raise

    # ------------------------------------------------------------------
    # Record access
    # ------------------------------------------------------------------

    def positions_of(self, owner: str) -> list[UserPosition]:
        return self.positions.get(owner, [])

    def put_position(self, owner: str, index: int, position: UserPosition) -> None:
        self.positions[owner][index] = position

    def append_position(self, owner: str, position: UserPosition) -> int:
        slots = self.positions.setdefault(owner, [])
        slots.append(position)
        return len(slots) - 1

    def record(
        self, kind: str, timestamp: int, caller: str, **payload: Any
    ) -> LedgerEvent:
        event = LedgerEvent(kind=kind, timestamp=timestamp, caller=caller, payload=payload)
        self.events.append(event)
        return event
