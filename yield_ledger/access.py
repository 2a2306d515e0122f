"""Access control — the gated entry points every external call goes through."""
from __future__ import annotations

import logging

from .errors import Unauthorized
from .interfaces.authorizer import Authorizer
from .ledger import PositionLedger
from .models import CallContext
from .registry import StrategyRegistry
from .store import LedgerStore

logger = logging.getLogger(__name__)


class SingleOwner:
    """Only the store owner may administer strategies."""

    def __init__(self, owner_id: str) -> None:
        self.owner_id = owner_id

    def is_admin(self, caller: str) -> bool:
        return caller == self.owner_id


class RoleList:
    """Owner plus a fixed list of operator accounts."""

    def __init__(self, owner_id: str, operators: tuple[str, ...] = ()) -> None:
        self._admins = frozenset((owner_id, *operators))

    def is_admin(self, caller: str) -> bool:
        return caller in self._admins


class AccessControl:
    """Authorize, then run the transition inside one store transaction.

    Authorization is always decided before anything is written, and any
    failure inside the transition rolls back every record it touched.
    """

    def __init__(self, store: LedgerStore, authorizer: Authorizer | None = None) -> None:
        self.store = store
        self.authorizer: Authorizer = authorizer or SingleOwner(store.owner_id)
        self.registry = StrategyRegistry(store)
        self.ledger = PositionLedger(store, self.registry)

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------

    def _require_admin(self, ctx: CallContext, operation: str) -> None:
        if not self.authorizer.is_admin(ctx.caller):
            logger.warning("Rejected %s from %s: not an owner", operation, ctx.caller)
            raise Unauthorized(f"{ctx.caller} may not call {operation}")

    def _require_position_owner(
        self, ctx: CallContext, position_index: int, operation: str
    ) -> None:
        # Owner mismatch means the loaded state filed a record under the wrong account.
        position = self.ledger.slot(ctx.caller, position_index)
        if position.owner != ctx.caller:
            logger.warning(
                "Rejected %s on position %d from %s", operation, position_index, ctx.caller
            )
            raise Unauthorized(f"{ctx.caller} does not own position {position_index}")

    # ------------------------------------------------------------------
    # Owner-only entry points
    # ------------------------------------------------------------------

    def add_strategy(
        self,
        ctx: CallContext,
        name: str,
        protocol: str,
        apy_bps: int,
        min_deposit: int,
    ) -> int:
        self._require_admin(ctx, "add_strategy")
        with self.store.transaction():
            strategy_id = self.registry.add_strategy(
                name, protocol, apy_bps, min_deposit, ctx.timestamp
            )
            self.store.record(
                "strategy_added",
                ctx.timestamp,
                ctx.caller,
                strategy_id=strategy_id,
                name=name,
                protocol=protocol,
                apy_bps=apy_bps,
                min_deposit=min_deposit,
            )
        return strategy_id

    def update_strategy_apy(self, ctx: CallContext, strategy_id: int, new_apy_bps: int) -> None:
        self._require_admin(ctx, "update_strategy_apy")
        with self.store.transaction():
            self.registry.update_strategy_apy(strategy_id, new_apy_bps, ctx.timestamp)
            self.store.record(
                "apy_updated",
                ctx.timestamp,
                ctx.caller,
                strategy_id=strategy_id,
                apy_bps=new_apy_bps,
            )

    def set_active(self, ctx: CallContext, strategy_id: int, is_active: bool) -> None:
        self._require_admin(ctx, "set_active")
        with self.store.transaction():
            self.registry.set_active(strategy_id, is_active, ctx.timestamp)
            self.store.record(
                "strategy_status_changed",
                ctx.timestamp,
                ctx.caller,
                strategy_id=strategy_id,
                is_active=is_active,
            )

    # ------------------------------------------------------------------
    # Account entry points
    # ------------------------------------------------------------------

    def deposit(self, ctx: CallContext, strategy_id: int, new_position: bool = False) -> int:
        """Deposit the attached payment; returns the position index."""
        with self.store.transaction():
            return self.ledger.deposit(
                ctx.caller,
                strategy_id,
                ctx.attached_deposit,
                ctx.timestamp,
                new_position=new_position,
            )

    def claim_rewards(self, ctx: CallContext, position_index: int) -> int:
        self._require_position_owner(ctx, position_index, "claim_rewards")
        with self.store.transaction():
            return self.ledger.claim_rewards(ctx.caller, position_index, ctx.timestamp)

    def withdraw(self, ctx: CallContext, position_index: int, amount: int) -> int:
        self._require_position_owner(ctx, position_index, "withdraw")
        with self.store.transaction():
            return self.ledger.withdraw(ctx.caller, position_index, amount, ctx.timestamp)
