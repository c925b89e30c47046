"""Exception hierarchy for the custody ledger.

Every failure is raised before the ledger is mutated, except
``TransferFailed`` which is raised after a completed withdrawal has been
rolled back.
"""

from __future__ import annotations


class VaultLedgerError(Exception):
    """Base class for all ledger errors."""


class InvalidAmount(VaultLedgerError):
    """Raised for zero or negative amounts."""


class InvalidAddress(VaultLedgerError):
    """Raised when a user or asset identifier is not a valid address."""


class Unauthorized(VaultLedgerError):
    """Raised when the caller lacks the role an operation requires."""

    def __init__(self, principal: str, role: str):
        super().__init__(f"{principal} does not hold role {role}")
        self.principal = principal
        self.role = role


class NotSupported(VaultLedgerError):
    """Raised when an asset is not active in the registry."""

    def __init__(self, asset_id: str):
        super().__init__(f"Asset {asset_id} is not supported")
        self.asset_id = asset_id


class AlreadySupported(VaultLedgerError):
    """Raised when registering an asset that is already active."""

    def __init__(self, asset_id: str):
        super().__init__(f"Asset {asset_id} is already supported")
        self.asset_id = asset_id


class PriceError(VaultLedgerError):
    """Base class for unusable oracle readings."""


class InvalidPrice(PriceError):
    """Raised when a reading has a non-positive price or zero round/timestamp."""


class StalePrice(PriceError):
    """Raised when a reading was answered in an earlier round than reported."""

    def __init__(self, updated_at_round_id: int, answered_in_round_id: int):
        super().__init__(
            f"Stale price: answered in round {answered_in_round_id}, "
            f"updated at round {updated_at_round_id}"
        )
        self.updated_at_round_id = updated_at_round_id
        self.answered_in_round_id = answered_in_round_id


class Overflow(VaultLedgerError):
    """Raised when an arithmetic result would not fit in uint256."""


class AccountingUnderflow(VaultLedgerError):
    """Raised when the normalized total would drop below zero.

    This happens when an asset's price rose between deposit and withdrawal
    request, so the request removes more normalized value than was added.
    """

    def __init__(self, total: int, decrement: int):
        super().__init__(
            f"Normalized total {total} cannot be reduced by {decrement}"
        )
        self.total = total
        self.decrement = decrement


class CapExceeded(VaultLedgerError):
    def __init__(self, attempted: int, cap: int):
        super().__init__(f"Deposit would raise total to {attempted}, cap is {cap}")
        self.attempted = attempted
        self.cap = cap


class WithdrawLimitExceeded(VaultLedgerError):
    def __init__(self, attempted: int, limit: int):
        super().__init__(
            f"Withdrawal request worth {attempted} exceeds per-request limit {limit}"
        )
        self.attempted = attempted
        self.limit = limit


class InsufficientBalance(VaultLedgerError):
    def __init__(self, available: int, requested: int):
        super().__init__(
            f"Requested {requested} but only {available} is available"
        )
        self.available = available
        self.requested = requested


class NoPendingWithdrawal(VaultLedgerError):
    def __init__(self, user: str, asset_id: str):
        super().__init__(f"No pending withdrawal for {user} in {asset_id}")
        self.user = user
        self.asset_id = asset_id


class TransferError(VaultLedgerError):
    """Raised by a transfer service when a token transfer does not go through."""


class TransferFailed(VaultLedgerError):
    """Raised when a withdrawal's transfer failed and the ledger was rolled back."""

    def __init__(self, user: str, asset_id: str, amount: int):
        super().__init__(f"Transfer of {amount} {asset_id} to {user} failed")
        self.user = user
        self.asset_id = asset_id
        self.amount = amount


class ReentrantCall(VaultLedgerError):
    """Raised when a mutating entry point is entered from within a running one."""
