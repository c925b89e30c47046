from __future__ import annotations

from typing import Awaitable, Callable

import pytest

from vault_ledger.adapters.price_sources.base import BasePriceSource, RoundData
from vault_ledger.adapters.token_metadata import BaseTokenMetadata
from vault_ledger.adapters.transfers.base import BaseTransferService
from vault_ledger.auth import StaticAuthorizer
from vault_ledger.events import EventSink, LedgerEvent
from vault_ledger.registry import TokenRegistry
from vault_ledger.vault import CustodyVault

ADMIN = "0x1000000000000000000000000000000000000001"


class FakePriceSource(BasePriceSource):
    """In-memory feeds keyed by oracle reference."""

    def __init__(self) -> None:
        self.rounds: dict[str, RoundData] = {}
        self.calls: list[str] = []
        self.on_read: Callable[[], Awaitable[None]] | None = None

    @property
    def source_name(self) -> str:
        return "fake"

    def set_price(
        self,
        feed: str,
        price: int,
        decimals: int = 8,
        round_id: int = 10,
        updated_at: int = 1_700_000_000,
        answered_in_round: int | None = None,
    ) -> None:
        self.rounds[feed] = RoundData(
            round_id=round_id,
            price=price,
            updated_at=updated_at,
            answered_in_round=round_id if answered_in_round is None else answered_in_round,
            decimals=decimals,
        )

    async def latest_reading(self, oracle_ref: str) -> RoundData:
        self.calls.append(oracle_ref)
        if self.on_read is not None:
            await self.on_read()
        return self.rounds[oracle_ref]


class FakeTokenMetadata(BaseTokenMetadata):
    def __init__(self) -> None:
        self.token_decimals: dict[str, int] = {}

    async def decimals(self, asset_id: str) -> int:
        return self.token_decimals[asset_id]


class FakeTransferService(BaseTransferService):
    """Records transfers; can fail or call back into the vault."""

    def __init__(self) -> None:
        self.native_transfers: list[tuple[str, int]] = []
        self.token_transfers: list[tuple[str, str, int]] = []
        self.native_ok = True
        self.token_error: Exception | None = None
        self.on_transfer: Callable[[], Awaitable[None]] | None = None

    async def transfer_native(self, to: str, amount: int) -> bool:
        if self.on_transfer is not None:
            await self.on_transfer()
        if not self.native_ok:
            return False
        self.native_transfers.append((to, amount))
        return True

    async def transfer_token(self, asset_id: str, to: str, amount: int) -> None:
        if self.on_transfer is not None:
            await self.on_transfer()
        if self.token_error is not None:
            raise self.token_error
        self.token_transfers.append((asset_id, to, amount))


class RecordingEventSink(EventSink):
    def __init__(self) -> None:
        self.events: list[LedgerEvent] = []

    def publish(self, event: LedgerEvent) -> None:
        self.events.append(event)


@pytest.fixture
def admin():
    return ADMIN


@pytest.fixture
def price_source():
    return FakePriceSource()


@pytest.fixture
def metadata():
    return FakeTokenMetadata()


@pytest.fixture
def transfers():
    return FakeTransferService()


@pytest.fixture
def sink():
    return RecordingEventSink()


@pytest.fixture
def registry(price_source, metadata):
    return TokenRegistry(price_source, metadata)


@pytest.fixture
def make_vault(registry, transfers, sink):
    def _make(
        capacity_cap: int = 10_000_000000, withdraw_limit: int = 5_000_000000
    ) -> CustodyVault:
        return CustodyVault(
            registry=registry,
            transfers=transfers,
            authorizer=StaticAuthorizer(admins=[ADMIN]),
            capacity_cap=capacity_cap,
            withdraw_limit=withdraw_limit,
            events=sink,
        )

    return _make


@pytest.fixture
def vault(make_vault):
    return make_vault()
