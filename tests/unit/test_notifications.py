"""Unit tests for notification services."""
from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from yield_ledger.config import EmailConfig, TelegramConfig
from yield_ledger.notifications.email import EmailNotifier
from yield_ledger.notifications.telegram import TelegramNotifier, split_message


def _mock_session(status: int) -> AsyncMock:
    mock_response = AsyncMock()
    mock_response.status = status
    mock_response.__aenter__ = AsyncMock(return_value=mock_response)
    mock_response.__aexit__ = AsyncMock(return_value=None)

    mock_session = AsyncMock()
    mock_session.post = MagicMock(return_value=mock_response)
    mock_session.__aenter__ = AsyncMock(return_value=mock_session)
    mock_session.__aexit__ = AsyncMock(return_value=None)
    return mock_session


# ---------------------------------------------------------------------------
# TelegramNotifier
# ---------------------------------------------------------------------------


@pytest.fixture()
def telegram_notifier() -> TelegramNotifier:
    return TelegramNotifier(
        TelegramConfig(
            enabled=True,
            alert_bot_token="alert-tok",
            log_bot_token="log-tok",
            chat_id="12345",
        )
    )


class TestSplitMessage:
    def test_short_message_untouched(self) -> None:
        assert split_message("hello") == ["hello"]

    def test_splits_on_lines(self) -> None:
        chunks = split_message("aaaa\nbbbb\ncccc\n", limit=10)
        assert chunks == ["aaaa\nbbbb\n", "cccc\n"]
        assert all(len(c) <= 10 for c in chunks)

    def test_overlong_line_is_cut(self) -> None:
        chunks = split_message("x" * 25, limit=10)
        assert chunks == ["x" * 10, "x" * 10, "x" * 5]


class TestTelegramNotifier:
    @pytest.mark.asyncio
    async def test_send_alert_success(self, telegram_notifier: TelegramNotifier) -> None:
        session = _mock_session(200)
        with patch(
            "yield_ledger.notifications.telegram.aiohttp.ClientSession", return_value=session
        ):
            with patch("yield_ledger.notifications.telegram.aiohttp.TCPConnector"):
                result = await telegram_notifier.send_alert("report", subject="Weekly")

        assert result is True
        url = session.post.call_args[0][0]
        payload = session.post.call_args.kwargs["json"]
        assert "botalert-tok" in url
        assert payload["text"].startswith("Weekly")
        assert payload["disable_notification"] is False

    @pytest.mark.asyncio
    async def test_send_alert_failure(self, telegram_notifier: TelegramNotifier) -> None:
        with patch(
            "yield_ledger.notifications.telegram.aiohttp.ClientSession",
            return_value=_mock_session(403),
        ):
            with patch("yield_ledger.notifications.telegram.aiohttp.TCPConnector"):
                result = await telegram_notifier.send_alert("report")

        assert result is False

    @pytest.mark.asyncio
    async def test_send_log_uses_log_bot(self, telegram_notifier: TelegramNotifier) -> None:
        session = _mock_session(200)
        with patch(
            "yield_ledger.notifications.telegram.aiohttp.ClientSession", return_value=session
        ):
            with patch("yield_ledger.notifications.telegram.aiohttp.TCPConnector"):
                result = await telegram_notifier.send_log("digest")

        assert result is True
        assert "botlog-tok" in session.post.call_args[0][0]
        assert session.post.call_args.kwargs["json"]["disable_notification"] is True

    @pytest.mark.asyncio
    async def test_long_report_is_chunked(self, telegram_notifier: TelegramNotifier) -> None:
        session = _mock_session(200)
        message = ("line of a long report\n" * 400).strip()
        with patch(
            "yield_ledger.notifications.telegram.aiohttp.ClientSession", return_value=session
        ):
            with patch("yield_ledger.notifications.telegram.aiohttp.TCPConnector"):
                assert await telegram_notifier.send_log(message) is True

        assert session.post.call_count == len(split_message(message))
        assert session.post.call_count > 1

    @pytest.mark.asyncio
    async def test_unconfigured_returns_false(self) -> None:
        notifier = TelegramNotifier(TelegramConfig(enabled=True))
        assert await notifier.send_alert("test") is False
        assert await notifier.send_log("test") is False


# ---------------------------------------------------------------------------
# EmailNotifier
# ---------------------------------------------------------------------------


@pytest.fixture()
def email_notifier() -> EmailNotifier:
    return EmailNotifier(
        EmailConfig(
            enabled=True,
            alert_email="treasury@example.com",
            smtp_server="smtp.example.com",
            smtp_port=587,
            sender_email="ledger@example.com",
            sender_password="password123",
        )
    )


class TestEmailNotifier:
    @pytest.mark.asyncio
    async def test_send_alert_success(self, email_notifier: EmailNotifier) -> None:
        mock_smtp = MagicMock()
        with patch("yield_ledger.notifications.email.smtplib.SMTP", return_value=mock_smtp):
            result = await email_notifier.send_alert("body", subject="Report")
        assert result is True
        server = mock_smtp.__enter__.return_value
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("ledger@example.com", "password123")
        server.send_message.assert_called_once()
        sent = server.send_message.call_args[0][0]
        assert sent["Subject"] == "Report"
        assert sent["To"] == "treasury@example.com"

    @pytest.mark.asyncio
    async def test_send_alert_smtp_error(self, email_notifier: EmailNotifier) -> None:
        with patch(
            "yield_ledger.notifications.email.smtplib.SMTP",
            side_effect=ConnectionError("SMTP down"),
        ):
            result = await email_notifier.send_alert("body", subject="Report")
        assert result is False

    @pytest.mark.asyncio
    async def test_no_recipient_returns_false(self) -> None:
        notifier = EmailNotifier(EmailConfig(enabled=True))
        assert await notifier.send_alert("test") is False

    @pytest.mark.asyncio
    async def test_no_credentials_returns_false(self) -> None:
        notifier = EmailNotifier(EmailConfig(enabled=True, alert_email="t@example.com"))
        assert await notifier.send_alert("test") is False

    @pytest.mark.asyncio
    async def test_send_log_is_noop(self, email_notifier: EmailNotifier) -> None:
        assert await email_notifier.send_log("test") is False
