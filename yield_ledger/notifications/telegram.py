"""Telegram delivery for ledger reports and event digests."""
import logging
import ssl

import aiohttp
import certifi

from ..config import TelegramConfig

logger = logging.getLogger(__name__)

API_URL = "https://api.telegram.org/bot{token}/sendMessage"
# Telegram rejects messages longer than this.
MAX_MESSAGE_LENGTH = 4096


def split_message(message: str, limit: int = MAX_MESSAGE_LENGTH) -> list[str]:
    """Split on line boundaries so each chunk fits one Telegram message."""
    if len(message) <= limit:
        return [message]

    chunks: list[str] = []
    current = ""
    for line in message.splitlines(keepends=True):
        while len(line) > limit:
            if current:
                chunks.append(current)
                current = ""
            chunks.append(line[:limit])
            line = line[limit:]
        if len(current) + len(line) > limit:
            chunks.append(current)
            current = ""
        current += line
    if current:
        chunks.append(current)
    return chunks


class TelegramNotifier:
    """Post ledger reports through an alert bot and a (quiet) log bot."""

    def __init__(self, config: TelegramConfig) -> None:
        self.alert_bot_token = config.alert_bot_token
        self.log_bot_token = config.log_bot_token
        self.chat_id = config.chat_id

    async def _post(self, bot_token: str, message: str, silent: bool) -> bool:
        if not bot_token or not self.chat_id:
            logger.warning("Telegram credentials not configured")
            return False

        url = API_URL.format(token=bot_token)
        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        async with aiohttp.ClientSession(connector=connector) as session:
            for chunk in split_message(message):
                payload = {
                    "chat_id": self.chat_id,
                    "text": chunk,
                    "disable_notification": silent,
                }
                async with session.post(url, json=payload) as response:
                    if response.status != 200:
                        logger.error("Telegram sendMessage failed: %s", response.status)
                        return False
        return True

    async def send_alert(self, message: str, subject: str = "") -> bool:
        text = f"{subject}\n\n{message}" if subject else message
        if await self._post(self.alert_bot_token, text, silent=False):
            logger.info("Telegram report sent")
            return True
        return False

    async def send_log(self, message: str, silent: bool = True) -> bool:
        if await self._post(self.log_bot_token, message, silent=silent):
            logger.info("Telegram event digest sent")
            return True
        return False
