from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RoundData:
    """Raw answer of a price feed, before validation."""

    round_id: int
    price: int
    updated_at: int
    answered_in_round: int
    decimals: int


class BasePriceSource(ABC):
    """Abstract base class for external price sources."""

    @property
    @abstractmethod
    def source_name(self) -> str:
        """Return the name of this price source."""
        ...

    @abstractmethod
    async def latest_reading(self, oracle_ref: str) -> RoundData:
        """Return the latest answer of the feed identified by ``oracle_ref``."""
        ...
