"""Position ledger — deposits, reward claims and withdrawals per account."""
from __future__ import annotations

import logging
from dataclasses import replace

from .accrual import accrued_since, checked_add, checked_sub
from .errors import (
    BelowMinimum,
    InsufficientBalance,
    InvalidParameter,
    NoReward,
    NotFound,
    StrategyInactive,
)
from .models import ClosedPosition, Strategy, UserPosition
from .registry import StrategyRegistry
from .store import LedgerStore

logger = logging.getLogger(__name__)


class PositionLedger:
    """Owns per-account positions and keeps strategy TVL in step with them.

    Every principal change settles pending reward first, so accrual always
    restarts from the latest principal-affecting event and nothing accrued is
    forfeited. Settled rewards are recorded as ``reward_settled`` events for
    the payment layer to pay out.
    """

    def __init__(self, store: LedgerStore, registry: StrategyRegistry) -> None:
        self._store = store
        self._registry = registry

    # ------------------------------------------------------------------
    # Lookup helpers
    # ------------------------------------------------------------------

    def slot(self, caller: str, position_index: int) -> UserPosition:
        """Open position filed under ``caller`` at ``position_index``."""
        slots = self._store.positions_of(caller)
        if position_index < 0 or position_index >= len(slots):
            raise NotFound(f"Position {position_index} not found for {caller}")
        position = slots[position_index]
        if position.closed:
            raise NotFound(f"Position {position_index} of {caller} is closed")
        return position

    def position(self, caller: str, position_index: int) -> UserPosition:
        """Like :meth:`slot`, but also requires ``caller`` to own the record.

        Slots are filed by owner, so a mismatch only appears in a hand-edited
        or corrupted state file.
        """
        position = self.slot(caller, position_index)
        if position.owner != caller:
            raise NotFound(f"Position {position_index} not found for {caller}")
        return position

    def _open_index(self, caller: str, strategy_id: int) -> int | None:
        slots = self._store.positions_of(caller)
        for index in range(len(slots) - 1, -1, -1):
            slot = slots[index]
            if slot.strategy_id == strategy_id and not slot.closed:
                return index
        return None

    def _settle(
        self,
        position: UserPosition,
        position_index: int,
        strategy: Strategy,
        now: int,
    ) -> UserPosition:
        reward = accrued_since(
            position.amount, strategy.apy_bps, position.deposit_timestamp, now
        )
        if reward == 0:
            return replace(position, deposit_timestamp=now)
        self._store.record(
            "reward_settled",
            now,
            position.owner,
            position_index=position_index,
            strategy_id=strategy.id,
            reward=reward,
        )
        return replace(
            position,
            rewards_claimed=checked_add(position.rewards_claimed, reward),
            deposit_timestamp=now,
        )

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def deposit(
        self,
        caller: str,
        strategy_id: int,
        amount: int,
        now: int,
        new_position: bool = False,
    ) -> int:
        """Open or top up a position and return its index.

        An open position in the same strategy is topped up unless
        ``new_position`` is set. Minimums only apply to fresh positions.
        """
        strategy = self._registry.get(strategy_id)
        if not strategy.is_active:
            raise StrategyInactive(f"Strategy {strategy_id} is not active")
        index = None if new_position else self._open_index(caller, strategy_id)
        if index is not None:
            if amount <= 0:
                raise InvalidParameter(f"Top-up amount must be positive, got {amount}")
            current = self._settle(
                self._store.positions_of(caller)[index], index, strategy, now
            )
            self._store.put_position(
                caller, index, replace(current, amount=checked_add(current.amount, amount))
            )
        else:
            floor = max(strategy.min_deposit, self._store.min_deposit_amount)
            if amount < floor:
                raise BelowMinimum(
                    f"Deposit {amount} below minimum {floor} for strategy {strategy_id}"
                )
            index = self._store.append_position(
                caller,
                UserPosition(
                    owner=caller,
                    strategy_id=strategy_id,
                    amount=amount,
                    deposit_timestamp=now,
                ),
            )

        self._registry.adjust_tvl(strategy_id, amount)
        self._store.record(
            "deposit",
            now,
            caller,
            position_index=index,
            strategy_id=strategy_id,
            amount=amount,
        )
        logger.info(
            "Deposit — %s · strategy %d · position %d · %d", caller, strategy_id, index, amount
        )
        return index

    def pending(self, caller: str, position_index: int, now: int) -> int:
        """Reward claimable right now; read-only."""
        position = self.position(caller, position_index)
        strategy = self._registry.get(position.strategy_id)
        return accrued_since(
            position.amount, strategy.apy_bps, position.deposit_timestamp, now
        )

    def claim_rewards(self, caller: str, position_index: int, now: int) -> int:
        """Authorize payout of the accrued reward and restart accrual."""
        position = self.position(caller, position_index)
        strategy = self._registry.get(position.strategy_id)
        reward = accrued_since(
            position.amount, strategy.apy_bps, position.deposit_timestamp, now
        )
        if reward == 0:
            raise NoReward(f"No reward accrued on position {position_index}")

        self._store.put_position(
            caller,
            position_index,
            replace(
                position,
                rewards_claimed=checked_add(position.rewards_claimed, reward),
                deposit_timestamp=now,
            ),
        )
        self._store.record(
            "reward_claimed",
            now,
            caller,
            position_index=position_index,
            strategy_id=strategy.id,
            reward=reward,
        )
        logger.info(
            "Claim — %s · position %d · reward %d", caller, position_index, reward
        )
        return reward

    def withdraw(self, caller: str, position_index: int, amount: int, now: int) -> int:
        """Release principal; a position emptied to zero is closed for good."""
        position = self.position(caller, position_index)
        if amount <= 0:
            raise InvalidParameter(f"Withdrawal amount must be positive, got {amount}")
        if amount > position.amount:
            raise InsufficientBalance(
                f"Withdrawal {amount} exceeds principal {position.amount}"
            )

        strategy = self._registry.get(position.strategy_id)
        settled = self._settle(position, position_index, strategy, now)
        remaining = checked_sub(settled.amount, amount)
        updated = replace(settled, amount=remaining, closed=remaining == 0)
        self._store.put_position(caller, position_index, updated)
        self._registry.adjust_tvl(strategy.id, -amount)
        self._store.record(
            "withdraw",
            now,
            caller,
            position_index=position_index,
            strategy_id=strategy.id,
            amount=amount,
        )

        if updated.closed:
            self._store.closed_positions.append(
                ClosedPosition(
                    owner=caller,
                    position_index=position_index,
                    strategy_id=strategy.id,
                    rewards_claimed=updated.rewards_claimed,
                    closed_at=now,
                )
            )
            self._store.record(
                "position_closed",
                now,
                caller,
                position_index=position_index,
                strategy_id=strategy.id,
                rewards_claimed=updated.rewards_claimed,
            )
            logger.info("Position %d of %s closed", position_index, caller)

        logger.info(
            "Withdraw — %s · position %d · %d (remaining %d)",
            caller, position_index, amount, remaining,
        )
        return amount
