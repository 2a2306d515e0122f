"""Accrual math — pure, deterministic integer interest functions.

Anyone replaying the event log must land on the same numbers, so nothing here
touches floats, clocks or shared state.
"""
from __future__ import annotations

from .errors import InvalidParameter, InvalidTime, Overflow, Underflow

BPS_DENOMINATOR = 10_000
SECONDS_PER_YEAR = 31_536_000

# Balances are u128 on chain.
MAX_BALANCE = 2**128 - 1


def elapsed_between(start: int, now: int) -> int:
    """Return ``now - start`` in seconds, refusing to run time backwards."""
    if now < start:
        raise InvalidTime(f"timestamp {now} precedes accrual baseline {start}")
    return now - start


def pending_reward(amount: int, apy_bps: int, elapsed_seconds: int) -> int:
    """Simple (non-compounding) interest, truncated toward zero.

    ``amount * apy_bps * elapsed / (10000 * SECONDS_PER_YEAR)`` evaluated with
    a single integer division, so a fraction of a unit is never paid out.
    """
    if elapsed_seconds < 0:
        raise InvalidTime(f"negative elapsed time: {elapsed_seconds}")
    if amount < 0:
        raise InvalidParameter(f"amount must be non-negative, got {amount}")
    if apy_bps < 0:
        raise InvalidParameter(f"apy_bps must be non-negative, got {apy_bps}")
    return (amount * apy_bps * elapsed_seconds) // (BPS_DENOMINATOR * SECONDS_PER_YEAR)


def accrued_since(amount: int, apy_bps: int, start: int, now: int) -> int:
    """Reward accrued between ``start`` and ``now``."""
    return pending_reward(amount, apy_bps, elapsed_between(start, now))


def checked_add(value: int, delta: int) -> int:
    """Apply a signed delta inside ``[0, MAX_BALANCE]``."""
    result = value + delta
    if result < 0:
        raise Underflow(f"{value} + ({delta}) would go negative")
    if result > MAX_BALANCE:
        raise Overflow(f"{value} + {delta} exceeds the balance range")
    return result


def checked_sub(value: int, amount: int) -> int:
    return checked_add(value, -amount)
