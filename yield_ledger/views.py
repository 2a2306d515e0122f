"""Read-only projections over a ledger store."""
from __future__ import annotations

from collections import defaultdict

from .accrual import accrued_since
from .errors import InvariantViolation, NotFound
from .models import ClosedPosition, Strategy, UserPosition
from .store import LedgerStore


class LedgerViews:
    """Aggregations for display and audit. Nothing here mutates the store."""

    def __init__(self, store: LedgerStore) -> None:
        self._store = store

    def get_strategy(self, strategy_id: int) -> Strategy:
        strategy = self._store.strategies.get(strategy_id)
        if strategy is None:
            raise NotFound(f"Strategy {strategy_id} not found")
        return strategy

    def list_strategies(self, active_only: bool = False) -> list[Strategy]:
        strategies = [self._store.strategies[k] for k in sorted(self._store.strategies)]
        if active_only:
            return [s for s in strategies if s.is_active]
        return strategies

    def get_user_positions(self, user_id: str) -> list[UserPosition]:
        """Every slot the account ever opened, closed ones included."""
        return list(self._store.positions_of(user_id))

    def get_active_positions(self, user_id: str) -> list[tuple[int, UserPosition]]:
        return [
            (index, position)
            for index, position in enumerate(self._store.positions_of(user_id))
            if not position.closed
        ]

    def get_closed_positions(self, user_id: str) -> list[ClosedPosition]:
        return [c for c in self._store.closed_positions if c.owner == user_id]

    def get_total_tvl(self) -> int:
        return self._store.total_tvl

    def pending_reward(self, user_id: str, position_index: int, now: int) -> int:
        """Reward accrued so far; 0 for closed slots or ``now`` before the baseline."""
        slots = self._store.positions_of(user_id)
        if position_index < 0 or position_index >= len(slots):
            raise NotFound(f"Position {position_index} not found for {user_id}")
        position = slots[position_index]
        if position.closed or now < position.deposit_timestamp:
            return 0
        strategy = self.get_strategy(position.strategy_id)
        return accrued_since(
            position.amount, strategy.apy_bps, position.deposit_timestamp, now
        )

    def accounts(self) -> list[str]:
        return sorted(self._store.positions)

    def check_invariants(self) -> None:
        """Raise InvariantViolation if TVL bookkeeping drifted from positions."""
        principal: dict[int, int] = defaultdict(int)
        for owner, slots in self._store.positions.items():
            for index, position in enumerate(slots):
                if position.amount < 0:
                    raise InvariantViolation(f"Negative principal on {owner}[{index}]")
                if position.strategy_id not in self._store.strategies:
                    raise InvariantViolation(
                        f"{owner}[{index}] references unknown strategy {position.strategy_id}"
                    )
                principal[position.strategy_id] += position.amount

        strategy_total = 0
        for strategy in self._store.strategies.values():
            if strategy.tvl < 0 or strategy.apy_bps < 0:
                raise InvariantViolation(f"Strategy {strategy.id} has a negative field")
            if strategy.tvl != principal[strategy.id]:
                raise InvariantViolation(
                    f"Strategy {strategy.id} TVL {strategy.tvl} != principal "
                    f"{principal[strategy.id]}"
                )
            strategy_total += strategy.tvl

        if strategy_total != self._store.total_tvl:
            raise InvariantViolation(
                f"Total TVL {self._store.total_tvl} != strategy sum {strategy_total}"
            )
