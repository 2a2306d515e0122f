"""Notifier protocol — delivery channel for ledger reports."""
from typing import Protocol


class Notifier(Protocol):
    """A channel that can carry full reports and quiet event digests.

    Both methods return True only when the message was delivered.
    """

    async def send_alert(self, message: str, subject: str = "") -> bool: ...

    async def send_log(self, message: str, silent: bool = True) -> bool: ...
