"""Authorizer protocol — who may mutate the strategy catalog."""
from typing import Protocol


class Authorizer(Protocol):
    """Abstract capability check for owner-only operations."""

    def is_admin(self, caller: str) -> bool: ...
