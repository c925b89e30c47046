"""Per-(user, asset) balances and process-wide totals.

Each mutator computes every new value first and only then assigns, so a
failed check leaves the ledger exactly as it was.
"""

from __future__ import annotations

from dataclasses import replace

from .domain import LedgerSnapshot, LedgerTotals, UserBalance
from .errors import AccountingUnderflow, InsufficientBalance
from .logger import get_logger
from .units import checked_add

logger = get_logger(__name__)


class Ledger:
    def __init__(self) -> None:
        self._balances: dict[tuple[str, str], UserBalance] = {}
        self._totals = LedgerTotals()

    def _entry(self, user: str, asset_id: str) -> UserBalance:
        key = (user, asset_id)
        if key not in self._balances:
            self._balances[key] = UserBalance()
        return self._balances[key]

    def balance(self, user: str, asset_id: str) -> UserBalance:
        """Return a copy of the user's balance; zero if never touched."""
        entry = self._balances.get((user, asset_id))
        return replace(entry) if entry is not None else UserBalance()

    @property
    def totals(self) -> LedgerTotals:
        return replace(self._totals)

    @property
    def total_normalized_value(self) -> int:
        return self._totals.total_normalized_value

    def credit_deposit(
        self, user: str, asset_id: str, amount: int, new_total: int
    ) -> int:
        """Add a deposit and set the normalized total to ``new_total``.

        Returns:
            The user's new available balance.
        """
        entry = self._entry(user, asset_id)
        available = checked_add(entry.available, amount)
        deposit_count = checked_add(self._totals.deposit_count, 1)

        entry.available = available
        self._totals.total_normalized_value = new_total
        self._totals.deposit_count = deposit_count
        return available

    def move_to_pending(
        self, user: str, asset_id: str, amount: int, normalized_value: int
    ) -> UserBalance:
        """Move ``amount`` from available to pending and debit the total.

        Raises:
            InsufficientBalance: If ``amount`` exceeds the available balance.
            AccountingUnderflow: If ``normalized_value`` exceeds the total.
        """
        current = self.balance(user, asset_id)
        if amount > current.available:
            raise InsufficientBalance(current.available, amount)
        if normalized_value > self._totals.total_normalized_value:
            raise AccountingUnderflow(
                self._totals.total_normalized_value, normalized_value
            )
        pending = checked_add(current.pending_withdrawal, amount)
        withdraw_count = checked_add(self._totals.withdraw_count, 1)

        entry = self._entry(user, asset_id)
        entry.available = current.available - amount
        entry.pending_withdrawal = pending
        self._totals.total_normalized_value -= normalized_value
        self._totals.withdraw_count = withdraw_count
        return replace(entry)

    def clear_pending(self, user: str, asset_id: str) -> int:
        """Zero the pending withdrawal and return what it held."""
        entry = self._entry(user, asset_id)
        amount = entry.pending_withdrawal
        entry.pending_withdrawal = 0
        return amount

    def restore_pending(self, user: str, asset_id: str, amount: int) -> None:
        """Undo ``clear_pending`` after a failed transfer."""
        entry = self._entry(user, asset_id)
        entry.pending_withdrawal = checked_add(entry.pending_withdrawal, amount)
        logger.debug("Restored pending %d for %s in %s", amount, user, asset_id)

    def snapshot(self) -> LedgerSnapshot:
        return LedgerSnapshot(
            balances={key: replace(value) for key, value in self._balances.items()},
            totals=replace(self._totals),
        )
