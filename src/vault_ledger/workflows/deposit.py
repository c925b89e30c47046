"""Deposit admission under the capacity cap."""

from __future__ import annotations

from dataclasses import dataclass

from ..converter import UnitConverter
from ..errors import CapExceeded
from ..ledger import Ledger
from ..logger import get_logger
from ..units import checked_add

logger = get_logger(__name__)


@dataclass(frozen=True)
class DepositResult:
    normalized_value: int
    new_available: int


class DepositWorkflow:
    def __init__(self, ledger: Ledger, converter: UnitConverter, capacity_cap: int):
        self.ledger = ledger
        self.converter = converter
        self._capacity_cap = capacity_cap

    @property
    def capacity_cap(self) -> int:
        return self._capacity_cap

    async def deposit(self, user: str, asset_id: str, amount: int) -> DepositResult:
        """Credit ``amount`` to ``user`` if the new total stays within the cap.

        All validation, including the price read, happens before the ledger
        is touched.

        Raises:
            NotSupported, InvalidPrice, StalePrice, Overflow: From conversion.
            CapExceeded: If the new total would exceed the capacity cap.
        """
        normalized_value = await self.converter.to_normalized(asset_id, amount)
        new_total = checked_add(self.ledger.total_normalized_value, normalized_value)
        if new_total > self._capacity_cap:
            raise CapExceeded(new_total, self._capacity_cap)

        new_available = self.ledger.credit_deposit(user, asset_id, amount, new_total)
        logger.debug(
            "Deposit %d %s for %s worth %d; total now %d",
            amount,
            asset_id,
            user,
            normalized_value,
            new_total,
        )
        return DepositResult(
            normalized_value=normalized_value, new_available=new_available
        )
