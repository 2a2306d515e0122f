"""Ledger reporting — renders TVL / position summaries and dispatches them."""
from __future__ import annotations

import logging
from datetime import datetime, timezone

from ..config import NotificationsConfig
from ..interfaces.notifier import Notifier
from ..models import LedgerEvent, Strategy
from ..notifications import EmailNotifier, TelegramNotifier
from ..views import LedgerViews

logger = logging.getLogger(__name__)


def build_notifiers(config: NotificationsConfig) -> list[Notifier]:
    notifiers: list[Notifier] = []
    if config.telegram.enabled:
        notifiers.append(TelegramNotifier(config.telegram))
    if config.email.enabled:
        notifiers.append(EmailNotifier(config.email))
    return notifiers


class Reporter:
    """Formats ledger state for humans and pushes it to notifier channels.

    Delivery failures are logged and swallowed here: a report is a side
    channel and must never feed back into ledger state.
    """

    def __init__(self, views: LedgerViews, notifiers: list[Notifier] | None = None) -> None:
        self._views = views
        self._notifiers: list[Notifier] = list(notifiers or [])

    # ------------------------------------------------------------------
    # Formatting helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _format_account(account: str) -> str:
        if len(account) > 24:
            return f"{account[:12]}...{account[-8:]}"
        return account

    @staticmethod
    def _format_apy(apy_bps: int) -> str:
        return f"{apy_bps / 100:.2f}%"

    @staticmethod
    def _timestamp_str(timestamp: int) -> str:
        return datetime.fromtimestamp(timestamp, timezone.utc).strftime("%Y-%m-%d %H:%M:%S")

    def _strategy_line(self, strategy: Strategy) -> str:
        status = "active" if strategy.is_active else "inactive"
        return (
            f"#{strategy.id} {strategy.name} · {strategy.protocol} · {status}\n"
            f"  APY: {self._format_apy(strategy.apy_bps)} · TVL: {strategy.tvl:,}"
            f" · min: {strategy.min_deposit:,}"
        )

    def build_tvl_report(self, now: int) -> str:
        strategies = self._views.list_strategies()
        if strategies:
            body = "\n\n".join(self._strategy_line(s) for s in strategies)
        else:
            body = "No strategies registered."
        return (
            f"📋 Yield Ledger Report\n"
            f"\n"
            f"{body}\n"
            f"\n"
            f"Total TVL: {self._views.get_total_tvl():,}\n"
            f"{self._timestamp_str(now)} UTC"
        )

    def build_account_report(self, account: str, now: int) -> str:
        lines: list[str] = []
        for index, position in self._views.get_active_positions(account):
            strategy = self._views.get_strategy(position.strategy_id)
            pending = self._views.pending_reward(account, index, now)
            lines.append(
                f"[{index}] {strategy.name} · principal {position.amount:,}\n"
                f"  claimed {position.rewards_claimed:,} · pending {pending:,}"
            )
        for closed in self._views.get_closed_positions(account):
            lines.append(
                f"[{closed.position_index}] closed · claimed {closed.rewards_claimed:,}"
                f" · at {self._timestamp_str(closed.closed_at)} UTC"
            )
        body = "\n".join(lines) if lines else "No positions."
        return (
            f"👤 {self._format_account(account)}\n"
            f"\n"
            f"{body}\n"
            f"\n"
            f"{self._timestamp_str(now)} UTC"
        )

    def build_event_digest(self, events: list[LedgerEvent]) -> str:
        if not events:
            return "No ledger events."
        lines = []
        for event in events:
            details = ", ".join(f"{k}={v}" for k, v in sorted(event.payload.items()))
            lines.append(
                f"{self._timestamp_str(event.timestamp)} · {event.kind} · "
                f"{self._format_account(event.caller)} · {details}"
            )
        return "\n".join(lines)

    # ------------------------------------------------------------------
    # Notification dispatch
    # ------------------------------------------------------------------

    async def _send_alert(self, message: str, subject: str = "") -> int:
        delivered = 0
        for notifier in self._notifiers:
            try:
                if await notifier.send_alert(message, subject=subject):
                    delivered += 1
            except Exception as e:
                logger.error("Notifier send_alert failed: %s", e)
        return delivered

    async def _send_log(self, message: str, silent: bool = True) -> int:
        delivered = 0
        for notifier in self._notifiers:
            try:
                if await notifier.send_log(message, silent=silent):
                    delivered += 1
            except Exception as e:
                logger.error("Notifier send_log failed: %s", e)
        return delivered

    async def send_tvl_report(self, now: int) -> int:
        report = self.build_tvl_report(now)
        delivered = await self._send_alert(report, subject="Yield Ledger Report")
        logger.info("TVL report delivered to %d channel(s)", delivered)
        return delivered

    async def send_account_report(self, account: str, now: int) -> int:
        report = self.build_account_report(account, now)
        return await self._send_alert(report, subject=f"Positions · {account}")

    async def send_event_digest(self, events: list[LedgerEvent]) -> int:
        return await self._send_log(self.build_event_digest(events))
