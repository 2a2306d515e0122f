"""Ledger error taxonomy — every failure surfaces to the caller verbatim."""
from __future__ import annotations


class LedgerError(Exception):
    """Base class for all ledger failures."""

    code = "ledger_error"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.code)
        self.message = message or self.code


class Unauthorized(LedgerError):
    """Caller lacks the role required for the call."""

    code = "unauthorized"


class NotFound(LedgerError):
    """Unknown strategy id, or a position index the caller does not hold."""

    code = "not_found"


class InvalidParameter(LedgerError):
    """Malformed call arguments (non-positive minimum, negative APY, ...)."""

    code = "invalid_parameter"


class BelowMinimum(LedgerError):
    """Fresh deposit under the strategy floor."""

    code = "below_minimum"


class StrategyInactive(LedgerError):
    """Deposit attempted on a deactivated strategy."""

    code = "strategy_inactive"


class InsufficientBalance(LedgerError):
    """Withdrawal exceeds the position principal."""

    code = "insufficient_balance"


class NoReward(LedgerError):
    """Claim with zero accrued interest."""

    code = "no_reward"


class Underflow(LedgerError):
    code = "underflow"


class Overflow(LedgerError):
    code = "overflow"


class InvalidTime(LedgerError):
    """Current timestamp precedes the accrual baseline."""

    code = "invalid_time"


class InvariantViolation(LedgerError):
    """TVL bookkeeping disagrees with the position records."""

    code = "invariant_violation"
