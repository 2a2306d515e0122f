"""Unit tests for report rendering and dispatch."""
from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from yield_ledger.access import AccessControl
from yield_ledger.config import AppConfig, NotificationsConfig
from yield_ledger.models import CallContext
from yield_ledger.notifications import TelegramNotifier
from yield_ledger.services import Reporter, build_notifiers
from yield_ledger.store import LedgerStore
from yield_ledger.views import LedgerViews

ALICE = "alice.near"
T0 = 1_700_000_000
YEAR = 31_536_000


@pytest.fixture()
def reporter(control: AccessControl, views: LedgerViews, strategy_id: int) -> Reporter:
    control.deposit(CallContext(ALICE, T0, 2_000_000), strategy_id)
    return Reporter(views)


class TestBuildNotifiers:
    def test_enabled_channels_only(self, sample_app_config: AppConfig) -> None:
        notifiers = build_notifiers(sample_app_config.notifications)
        assert len(notifiers) == 1
        assert isinstance(notifiers[0], TelegramNotifier)

    def test_nothing_enabled(self) -> None:
        assert build_notifiers(NotificationsConfig()) == []


class TestFormatting:
    def test_tvl_report(self, reporter: Reporter) -> None:
        report = reporter.build_tvl_report(T0)
        assert "#0 USDC Lending · burrow · active" in report
        assert "APY: 5.00%" in report
        assert "TVL: 2,000,000" in report
        assert "Total TVL: 2,000,000" in report
        assert "2023-11-14 22:13:20 UTC" in report

    def test_empty_tvl_report(self, store: LedgerStore) -> None:
        report = Reporter(LedgerViews(store)).build_tvl_report(T0)
        assert "No strategies registered." in report
        assert "Total TVL: 0" in report

    def test_account_report(self, reporter: Reporter) -> None:
        report = reporter.build_account_report(ALICE, T0 + YEAR)
        assert "[0] USDC Lending · principal 2,000,000" in report
        assert "pending 100,000" in report

    def test_account_report_lists_closed(
        self, control: AccessControl, reporter: Reporter
    ) -> None:
        control.withdraw(CallContext(ALICE, T0 + YEAR), 0, 2_000_000)
        report = reporter.build_account_report(ALICE, T0 + YEAR)
        assert "[0] closed · claimed 100,000" in report

    def test_unknown_account(self, reporter: Reporter) -> None:
        assert "No positions." in reporter.build_account_report("nobody.near", T0)

    def test_long_account_names_shortened(self, reporter: Reporter) -> None:
        account = "a" * 64
        assert f"{'a' * 12}...{'a' * 8}" in reporter.build_account_report(account, T0)

    def test_event_digest(self, reporter: Reporter, store: LedgerStore) -> None:
        digest = reporter.build_event_digest(store.events)
        lines = digest.splitlines()
        assert len(lines) == 2
        assert "strategy_added" in lines[0]
        assert "deposit" in lines[1]
        assert "amount=2000000" in lines[1]

    def test_empty_digest(self, reporter: Reporter) -> None:
        assert reporter.build_event_digest([]) == "No ledger events."


class TestDispatch:
    @pytest.mark.asyncio
    async def test_report_goes_to_every_notifier(self, views: LedgerViews) -> None:
        first, second = AsyncMock(), AsyncMock()
        first.send_alert.return_value = True
        second.send_alert.return_value = True
        delivered = await Reporter(views, [first, second]).send_tvl_report(T0)
        assert delivered == 2
        assert "Yield Ledger Report" in first.send_alert.call_args[0][0]

    @pytest.mark.asyncio
    async def test_failing_notifier_does_not_raise(self, views: LedgerViews) -> None:
        broken, healthy = AsyncMock(), AsyncMock()
        broken.send_alert.side_effect = RuntimeError("network down")
        healthy.send_alert.return_value = True
        delivered = await Reporter(views, [broken, healthy]).send_tvl_report(T0)
        assert delivered == 1
        healthy.send_alert.assert_called_once()

    @pytest.mark.asyncio
    async def test_event_digest_uses_log_channel(
        self, reporter: Reporter, store: LedgerStore
    ) -> None:
        notifier = AsyncMock()
        notifier.send_log.return_value = True
        reporter_with_channel = Reporter(reporter._views, [notifier])
        assert await reporter_with_channel.send_event_digest(store.events) == 1
        notifier.send_alert.assert_not_called()
