"""Protocol interfaces for the yield ledger."""
from .authorizer import Authorizer
from .notifier import Notifier

__all__ = ["Authorizer", "Notifier"]
