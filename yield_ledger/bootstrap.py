"""Ledger construction from configuration."""
from __future__ import annotations

import logging

from .access import AccessControl, RoleList, SingleOwner
from .config import AppConfig, LedgerConfig
from .interfaces.authorizer import Authorizer
from .models import CallContext
from .store import LedgerStore

logger = logging.getLogger(__name__)


def build_authorizer(owner_id: str, operators: tuple[str, ...] = ()) -> Authorizer:
    if operators:
        return RoleList(owner_id, operators)
    return SingleOwner(owner_id)


def new_store(config: LedgerConfig) -> LedgerStore:
    return LedgerStore(
        owner_id=config.owner_id,
        governance_token=config.governance_token,
        min_deposit_amount=config.min_deposit_amount,
    )


def open_ledger(store: LedgerStore, config: LedgerConfig) -> AccessControl:
    """Gate an existing store. The owner always comes from the store itself."""
    if config.owner_id != store.owner_id:
        logger.warning(
            "Configured owner %s differs from ledger owner %s; using the ledger owner",
            config.owner_id,
            store.owner_id,
        )
    return AccessControl(store, build_authorizer(store.owner_id, config.operators))


def initialize(config: AppConfig, now: int) -> AccessControl:
    """Fresh ledger with the configured seed strategies registered by the owner."""
    control = open_ledger(new_store(config.ledger), config.ledger)
    ctx = CallContext(caller=config.ledger.owner_id, timestamp=now)
    for seed in config.strategies:
        strategy_id = control.add_strategy(
            ctx, seed.name, seed.protocol, seed.apy_bps, seed.min_deposit
        )
        if not seed.active:
            control.set_active(ctx, strategy_id, False)
    logger.info(
        "Ledger initialized for owner %s with %d strategies",
        config.ledger.owner_id,
        len(config.strategies),
    )
    return control
