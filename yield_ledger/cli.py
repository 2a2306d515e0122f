"""Command-line interface for the yield ledger."""
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
import time
from dataclasses import asdict
from pathlib import Path
from typing import Any

import yaml

from .bootstrap import initialize, open_ledger
from .config import AppConfig, load_config
from .errors import LedgerError
from .logging_setup import configure_logging
from .models import CallContext
from .persistence import load_store, save_store
from .services import Reporter, build_notifiers
from .views import LedgerViews

logger = logging.getLogger(__name__)

_MUTATING = {"add-strategy", "update-apy", "set-active", "deposit", "claim", "withdraw"}


def _add_call_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--caller", required=True, help="Account making the call")
    parser.add_argument(
        "--now",
        type=int,
        default=None,
        help="Block timestamp in UNIX seconds (default: current time)",
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="yield-ledger",
        description="Yield strategy ledger with reward accrual",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: config.yaml in project root)",
    )
    parser.add_argument(
        "--state",
        default=None,
        help="Path to the ledger state file (overrides config)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    sub = parser.add_subparsers(dest="command")

    init_parser = sub.add_parser("init", help="Create a fresh ledger state file")
    init_parser.add_argument("--force", action="store_true", help="Overwrite existing state")
    init_parser.add_argument("--now", type=int, default=None)

    add = sub.add_parser("add-strategy", help="Register a strategy (owner only)")
    _add_call_args(add)
    add.add_argument("--name", required=True)
    add.add_argument("--protocol", required=True)
    add.add_argument("--apy-bps", type=int, required=True)
    add.add_argument("--min-deposit", type=int, required=True)

    apy = sub.add_parser("update-apy", help="Change a strategy's APY (owner only)")
    _add_call_args(apy)
    apy.add_argument("strategy_id", type=int)
    apy.add_argument("apy_bps", type=int)

    active = sub.add_parser("set-active", help="Activate or deactivate a strategy (owner only)")
    _add_call_args(active)
    active.add_argument("strategy_id", type=int)
    active.add_argument("status", choices=["on", "off"])

    deposit = sub.add_parser("deposit", help="Deposit into a strategy")
    _add_call_args(deposit)
    deposit.add_argument("strategy_id", type=int)
    deposit.add_argument("amount", type=int, help="Attached payment amount")
    deposit.add_argument(
        "--new-position",
        action="store_true",
        help="Open a separate position instead of topping up",
    )

    claim = sub.add_parser("claim", help="Claim accrued rewards on a position")
    _add_call_args(claim)
    claim.add_argument("position_index", type=int)

    withdraw = sub.add_parser("withdraw", help="Withdraw principal from a position")
    _add_call_args(withdraw)
    withdraw.add_argument("position_index", type=int)
    withdraw.add_argument("amount", type=int)

    strategy = sub.add_parser("strategy", help="Show one strategy")
    strategy.add_argument("strategy_id", type=int)

    sub.add_parser("strategies", help="List all strategies")

    positions = sub.add_parser("positions", help="List an account's positions")
    positions.add_argument("account")

    sub.add_parser("tvl", help="Show total value locked")

    report = sub.add_parser("report", help="Send a TVL report to notifiers")
    report.add_argument("--account", default=None, help="Also report this account")
    report.add_argument(
        "--events",
        type=int,
        default=0,
        help="Send a digest of the last N ledger events",
    )
    report.add_argument("--now", type=int, default=None)

    return parser


def _emit(value: Any) -> None:
    print(json.dumps(value, indent=2, sort_keys=True))


def _now(args: argparse.Namespace) -> int:
    value = getattr(args, "now", None)
    return int(time.time()) if value is None else value


def _state_path(args: argparse.Namespace, config: AppConfig) -> Path:
    return Path(args.state or config.state.path)


def _mutate(args: argparse.Namespace, config: AppConfig, path: Path) -> None:
    store = load_store(path)
    control = open_ledger(store, config.ledger)
    now = _now(args)
    ctx = CallContext(caller=args.caller, timestamp=now)

    if args.command == "add-strategy":
        strategy_id = control.add_strategy(
            ctx, args.name, args.protocol, args.apy_bps, args.min_deposit
        )
        _emit({"strategy_id": strategy_id})
    elif args.command == "update-apy":
        control.update_strategy_apy(ctx, args.strategy_id, args.apy_bps)
        _emit({"ok": True})
    elif args.command == "set-active":
        control.set_active(ctx, args.strategy_id, args.status == "on")
        _emit({"ok": True})
    elif args.command == "deposit":
        ctx = CallContext(caller=args.caller, timestamp=now, attached_deposit=args.amount)
        index = control.deposit(ctx, args.strategy_id, new_position=args.new_position)
        _emit({"position_index": index})
    elif args.command == "claim":
        reward = control.claim_rewards(ctx, args.position_index)
        _emit({"reward": reward})
    elif args.command == "withdraw":
        released = control.withdraw(ctx, args.position_index, args.amount)
        _emit({"released": released})

    save_store(store, path)


def _view(args: argparse.Namespace, path: Path) -> None:
    views = LedgerViews(load_store(path))

    if args.command == "strategy":
        _emit(asdict(views.get_strategy(args.strategy_id)))
    elif args.command == "strategies":
        _emit([asdict(s) for s in views.list_strategies()])
    elif args.command == "positions":
        _emit([asdict(p) for p in views.get_user_positions(args.account)])
    elif args.command == "tvl":
        _emit({"total_tvl": views.get_total_tvl()})


async def _report(args: argparse.Namespace, config: AppConfig, path: Path) -> None:
    store = load_store(path)
    notifiers = build_notifiers(config.notifications)
    reporter = Reporter(LedgerViews(store), notifiers)
    now = _now(args)

    if not notifiers:
        logger.warning("No notifiers enabled; printing report only")
    print(reporter.build_tvl_report(now))

    await reporter.send_tvl_report(now)
    if args.account:
        await reporter.send_account_report(args.account, now)
    if args.events > 0:
        await reporter.send_event_digest(store.events[-args.events:])


def run(args: argparse.Namespace) -> int:
    """Execute the selected command and return a process exit code."""
    configure_logging(args.log_level)
    try:
        config = load_config(args.config)
    except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
        logger.error("Invalid configuration: %s", e)
        return 1
    path = _state_path(args, config)

    try:
        if args.command == "init":
            if path.exists() and not args.force:
                logger.error("State file %s already exists (use --force)", path)
                return 1
            control = initialize(config, _now(args))
            save_store(control.store, path)
            _emit({"state": str(path), "strategies": len(control.store.strategies)})
        elif args.command in _MUTATING:
            _mutate(args, config, path)
        elif args.command == "report":
            asyncio.run(_report(args, config, path))
        else:
            _view(args, path)
    except LedgerError as e:
        logger.error("%s: %s", e.code, e.message)
        return 1
    except FileNotFoundError as e:
        logger.error("%s", e)
        return 1
    return 0


def main(argv: list[str] | None = None) -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    sys.exit(run(args))
