"""Domain models for the custody ledger."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class TokenConfig:
    """Registry record for an asset. Kept after deregistration."""

    oracle_ref: str
    native_decimals: int
    active: bool


@dataclass(frozen=True)
class PriceReading:
    """A validated oracle reading for one asset."""

    price: int
    price_decimals: int
    updated_at_round_id: int
    updated_at_timestamp: int
    answered_in_round_id: int


@dataclass
class UserBalance:
    """Asset-native balances of one user in one asset."""

    available: int = 0
    pending_withdrawal: int = 0


@dataclass
class LedgerTotals:
    """Process-wide counters.

    ``total_normalized_value`` is priced at the time of each deposit or
    withdrawal request and is never re-priced.
    """

    total_normalized_value: int = 0
    deposit_count: int = 0
    withdraw_count: int = 0


@dataclass(frozen=True)
class LedgerSnapshot:
    """Point-in-time copy of all ledger state."""

    balances: dict[tuple[str, str], UserBalance]
    totals: LedgerTotals
