"""Yield strategy ledger — strategy catalog, positions and reward accrual."""
from .access import AccessControl, RoleList, SingleOwner
from .errors import LedgerError
from .models import CallContext, ClosedPosition, LedgerEvent, Strategy, UserPosition
from .store import LedgerStore
from .views import LedgerViews

__all__ = [
    "AccessControl",
    "CallContext",
    "ClosedPosition",
    "LedgerError",
    "LedgerEvent",
    "LedgerStore",
    "LedgerViews",
    "RoleList",
    "SingleOwner",
    "Strategy",
    "UserPosition",
]
