from __future__ import annotations

from abc import ABC, abstractmethod


class BaseTransferService(ABC):
    """Moves value out of custody.

    Implementations may call back into the vault while a transfer is in
    flight; the vault rejects such nested calls.
    """

    @abstractmethod
    async def transfer_native(self, to: str, amount: int) -> bool:
        """Send ``amount`` of the native asset. Returns False on failure."""
        ...

    @abstractmethod
    async def transfer_token(self, asset_id: str, to: str, amount: int) -> None:
        """Send ``amount`` of a token.

        Raises:
            TransferError: If the token did not report a successful transfer.
        """
        ...
