"""Strategy registry — the catalog of yield targets and their locked value."""
from __future__ import annotations

import logging
from dataclasses import replace

from .accrual import checked_add
from .errors import InvalidParameter, NotFound
from .models import Strategy
from .store import LedgerStore

logger = logging.getLogger(__name__)


class StrategyRegistry:
    """Create, re-rate, toggle and account strategies held in a store.

    Authorization is not checked here; callers go through AccessControl.
    """

    def __init__(self, store: LedgerStore) -> None:
        self._store = store

    def get(self, strategy_id: int) -> Strategy:
        strategy = self._store.strategies.get(strategy_id)
        if strategy is None:
            raise NotFound(f"Strategy {strategy_id} not found")
        return strategy

    def all(self) -> list[Strategy]:
        return [self._store.strategies[k] for k in sorted(self._store.strategies)]

    def add_strategy(
        self,
        name: str,
        protocol: str,
        apy_bps: int,
        min_deposit: int,
        now: int,
    ) -> int:
        """Append a new active strategy with zero TVL and return its id."""
        if not name.strip():
            raise InvalidParameter("Strategy name must not be empty")
        if min_deposit <= 0:
            raise InvalidParameter(f"min_deposit must be positive, got {min_deposit}")
        if apy_bps < 0:
            raise InvalidParameter(f"apy_bps must be non-negative, got {apy_bps}")

        strategy_id = self._store.next_strategy_id
        self._store.strategies[strategy_id] = Strategy(
            id=strategy_id,
            name=name,
            protocol=protocol,
            apy_bps=apy_bps,
            min_deposit=min_deposit,
            last_update=now,
        )
        self._store.next_strategy_id = strategy_id + 1
        logger.info(
            "Strategy %d added — %s · %s · %d bps · min %d",
            strategy_id, name, protocol, apy_bps, min_deposit,
        )
        return strategy_id

    def update_strategy_apy(self, strategy_id: int, new_apy_bps: int, now: int) -> Strategy:
        """Re-rate a strategy; unclaimed accrual picks up the new rate."""
        strategy = self.get(strategy_id)
        if new_apy_bps < 0:
            raise InvalidParameter(f"apy_bps must be non-negative, got {new_apy_bps}")
        updated = replace(strategy, apy_bps=new_apy_bps, last_update=now)
        self._store.strategies[strategy_id] = updated
        logger.info(
            "Strategy %d APY %d -> %d bps", strategy_id, strategy.apy_bps, new_apy_bps
        )
        return updated

    def set_active(self, strategy_id: int, is_active: bool, now: int) -> Strategy:
        strategy = self.get(strategy_id)
        updated = replace(strategy, is_active=is_active, last_update=now)
        self._store.strategies[strategy_id] = updated
        logger.info(
            "Strategy %d %s", strategy_id, "activated" if is_active else "deactivated"
        )
        return updated

    def adjust_tvl(self, strategy_id: int, delta: int) -> Strategy:
        """Apply a signed principal delta to one strategy and the cached total."""
        strategy = self.get(strategy_id)
        tvl = checked_add(strategy.tvl, delta)
        total = checked_add(self._store.total_tvl, delta)
        updated = replace(strategy, tvl=tvl)
        self._store.strategies[strategy_id] = updated
        self._store.total_tvl = total
        return updated
