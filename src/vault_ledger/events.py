"""Notifications emitted after successful state changes.

They feed off-ledger bookkeeping only; nothing in the engine reads them.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass

from .logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Deposited:
    user: str
    asset_id: str
    amount: int
    normalized_value: int
    new_available: int


@dataclass(frozen=True)
class WithdrawRequested:
    user: str
    asset_id: str
    amount: int
    normalized_value: int


@dataclass(frozen=True)
class WithdrawCompleted:
    user: str
    asset_id: str
    amount: int


@dataclass(frozen=True)
class TokenAdded:
    asset_id: str
    oracle_ref: str
    native_decimals: int


@dataclass(frozen=True)
class TokenRemoved:
    asset_id: str


LedgerEvent = Deposited | WithdrawRequested | WithdrawCompleted | TokenAdded | TokenRemoved


class EventSink(ABC):
    @abstractmethod
    def publish(self, event: LedgerEvent) -> None: ...


class LoggingEventSink(EventSink):
    """Writes every event to the log."""

    def publish(self, event: LedgerEvent) -> None:
        logger.info("%s %s", type(event).__name__, asdict(event))
