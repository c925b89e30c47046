"""Two-phase withdrawals: request, then complete.

A request moves value from ``available`` to ``pending_withdrawal`` and is
checked against the per-request ceiling. Requests accumulate. Completion
clears the pending amount before the transfer is made, and restores it if
the transfer does not go through.
"""

from __future__ import annotations

from ..adapters.transfers.base import BaseTransferService
from ..constants import NATIVE_ASSET
from ..converter import UnitConverter
from ..errors import (
    InsufficientBalance,
    NoPendingWithdrawal,
    TransferError,
    TransferFailed,
    WithdrawLimitExceeded,
)
from ..ledger import Ledger
from ..logger import get_logger

logger = get_logger(__name__)


class WithdrawalStateMachine:
    def __init__(
        self,
        ledger: Ledger,
        converter: UnitConverter,
        transfers: BaseTransferService,
        withdraw_limit: int,
    ):
        self.ledger = ledger
        self.converter = converter
        self.transfers = transfers
        self._withdraw_limit = withdraw_limit

    @property
    def withdraw_limit(self) -> int:
        return self._withdraw_limit

    async def request(self, user: str, asset_id: str, amount: int) -> int:
        """Queue ``amount`` for withdrawal.

        The ceiling applies to this request alone, not to the sum of pending
        requests.

        Returns:
            The normalized value debited from the ledger total.

        Raises:
            NotSupported: If the asset is not active.
            InsufficientBalance: If ``amount`` exceeds the available balance.
            InvalidPrice, StalePrice, Overflow: From conversion.
            WithdrawLimitExceeded: If the request is worth more than the ceiling.
            AccountingUnderflow: If the total would drop below zero.
        """
        self.converter.registry.active_config(asset_id)
        available = self.ledger.balance(user, asset_id).available
        if amount > available:
            raise InsufficientBalance(available, amount)

        normalized_value = await self.converter.to_normalized(asset_id, amount)
        if normalized_value > self._withdraw_limit:
            raise WithdrawLimitExceeded(normalized_value, self._withdraw_limit)

        balance = self.ledger.move_to_pending(user, asset_id, amount, normalized_value)
        logger.debug(
            "Withdrawal of %d %s requested by %s worth %d; pending now %d",
            amount,
            asset_id,
            user,
            normalized_value,
            balance.pending_withdrawal,
        )
        return normalized_value

    async def complete(self, user: str, asset_id: str) -> int:
        """Pay out the whole pending amount.

        Returns:
            The amount transferred.

        Raises:
            NoPendingWithdrawal: If nothing is pending. No transfer is made.
            TransferFailed: If the transfer failed; the pending amount is
                restored.
        """
        if self.ledger.balance(user, asset_id).pending_withdrawal == 0:
            raise NoPendingWithdrawal(user, asset_id)

        amount = self.ledger.clear_pending(user, asset_id)
        try:
            if asset_id == NATIVE_ASSET:
                if not await self.transfers.transfer_native(user, amount):
                    raise TransferError("native transfer returned failure")
            else:
                await self.transfers.transfer_token(asset_id, user, amount)
        except BaseException as e:
            self.ledger.restore_pending(user, asset_id, amount)
            if isinstance(e, TransferError):
                logger.warning("Transfer of %d %s to %s failed: %s", amount, asset_id, user, e)
                raise TransferFailed(user, asset_id, amount) from e
            raise

        logger.debug("Transferred %d %s to %s", amount, asset_id, user)
        return amount
