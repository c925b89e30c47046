"""Caller-facing entry points and query surface of the custody ledger."""

from __future__ import annotations

from web3 import Web3

from .adapters.transfers.base import BaseTransferService
from .auth import Authorizer, Role
from .converter import UnitConverter
from .domain import LedgerTotals, PriceReading, TokenConfig
from .errors import InvalidAddress, InvalidAmount, Unauthorized, VaultLedgerError
from .events import (
    Deposited,
    EventSink,
    LoggingEventSink,
    TokenAdded,
    TokenRemoved,
    WithdrawCompleted,
    WithdrawRequested,
)
from .guard import ReentrancyGuard
from .ledger import Ledger
from .logger import get_logger
from .registry import TokenRegistry
from .workflows import DepositWorkflow, WithdrawalStateMachine

logger = get_logger(__name__)


def to_address(value: str) -> str:
    """Validate an address-like identifier and return its checksummed form."""
    if not isinstance(value, str) or not Web3.is_address(value):
        raise InvalidAddress(f"Invalid address: {value!r}")
    return Web3.to_checksum_address(value)


def _require_positive(amount: int) -> None:
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise InvalidAmount(f"Amount must be a positive integer, got {amount!r}")


class CustodyVault:
    """Deposits, two-phase withdrawals and registry administration.

    Every mutating method runs under one ``ReentrancyGuard``; a nested call
    from an oracle or transfer callback fails with ``ReentrantCall``, while
    independent tasks wait their turn.
    Query methods do not take the guard.
    """

    def __init__(
        self,
        registry: TokenRegistry,
        transfers: BaseTransferService,
        authorizer: Authorizer,
        capacity_cap: int,
        withdraw_limit: int,
        events: EventSink | None = None,
        ledger: Ledger | None = None,
    ):
        if capacity_cap <= 0 or withdraw_limit <= 0:
            raise ValueError("capacity_cap and withdraw_limit must be positive")
        self.registry = registry
        self.authorizer = authorizer
        self.events = events or LoggingEventSink()
        self.ledger = ledger or Ledger()
        self.converter = UnitConverter(registry)
        self._deposits = DepositWorkflow(self.ledger, self.converter, capacity_cap)
        self._withdrawals = WithdrawalStateMachine(
            self.ledger, self.converter, transfers, withdraw_limit
        )
        self._guard = ReentrancyGuard()

    # --- registry administration ---

    def _require_admin(self, caller: str) -> None:
        caller = to_address(caller)
        if not self.authorizer.has_role(caller, Role.ADMIN):
            logger.warning("Rejected registry change by %s: not an admin", caller)
            raise Unauthorized(caller, Role.ADMIN.value)

    async def register_token(
        self, caller: str, asset_id: str, oracle_ref: str
    ) -> TokenConfig:
        async with self._guard.hold("register_token"):
            self._require_admin(caller)
            asset_id = to_address(asset_id)
            oracle_ref = to_address(oracle_ref)
            config = await self.registry.register(asset_id, oracle_ref)
            logger.info("Token %s added with feed %s", asset_id, oracle_ref)
            self.events.publish(
                TokenAdded(
                    asset_id=asset_id,
                    oracle_ref=oracle_ref,
                    native_decimals=config.native_decimals,
                )
            )
            return config

    async def deregister_token(self, caller: str, asset_id: str) -> TokenConfig:
        async with self._guard.hold("deregister_token"):
            self._require_admin(caller)
            asset_id = to_address(asset_id)
            config = self.registry.deregister(asset_id)
            logger.info("Token %s removed", asset_id)
            self.events.publish(TokenRemoved(asset_id=asset_id))
            return config

    # --- deposits and withdrawals ---

    async def deposit(self, user: str, asset_id: str, amount: int) -> int:
        """Deposit ``amount`` and return the user's new available balance."""
        async with self._guard.hold("deposit"):
            _require_positive(amount)
            user = to_address(user)
            asset_id = to_address(asset_id)
            try:
                result = await self._deposits.deposit(user, asset_id, amount)
            except VaultLedgerError as e:
                logger.warning("Deposit by %s rejected: %s", user, e)
                raise
            logger.info(
                "Deposit: %s +%d %s (value %d)",
                user,
                amount,
                asset_id,
                result.normalized_value,
            )
            self.events.publish(
                Deposited(
                    user=user,
                    asset_id=asset_id,
                    amount=amount,
                    normalized_value=result.normalized_value,
                    new_available=result.new_available,
                )
            )
            return result.new_available

    async def request_withdraw(self, user: str, asset_id: str, amount: int) -> None:
        async with self._guard.hold("request_withdraw"):
            _require_positive(amount)
            user = to_address(user)
            asset_id = to_address(asset_id)
            try:
                normalized_value = await self._withdrawals.request(
                    user, asset_id, amount
                )
            except VaultLedgerError as e:
                logger.warning("Withdrawal request by %s rejected: %s", user, e)
                raise
            logger.info(
                "Withdrawal requested: %s %d %s (value %d)",
                user,
                amount,
                asset_id,
                normalized_value,
            )
            self.events.publish(
                WithdrawRequested(
                    user=user,
                    asset_id=asset_id,
                    amount=amount,
                    normalized_value=normalized_value,
                )
            )

    async def withdraw(self, user: str, asset_id: str) -> int:
        """Complete the pending withdrawal and return the amount transferred."""
        async with self._guard.hold("withdraw"):
            user = to_address(user)
            asset_id = to_address(asset_id)
            amount = await self._withdrawals.complete(user, asset_id)
            logger.info("Withdrawal completed: %s %d %s", user, amount, asset_id)
            self.events.publish(
                WithdrawCompleted(user=user, asset_id=asset_id, amount=amount)
            )
            return amount

    # --- queries ---

    @property
    def capacity_cap(self) -> int:
        return self._deposits.capacity_cap

    @property
    def withdraw_limit(self) -> int:
        return self._withdrawals.withdraw_limit

    @property
    def totals(self) -> LedgerTotals:
        return self.ledger.totals

    def balance_of(self, user: str, asset_id: str) -> int:
        return self.ledger.balance(to_address(user), to_address(asset_id)).available

    def pending_withdrawal_of(self, user: str, asset_id: str) -> int:
        return self.ledger.balance(
            to_address(user), to_address(asset_id)
        ).pending_withdrawal

    def is_supported(self, asset_id: str) -> bool:
        return self.registry.is_supported(to_address(asset_id))

    def list_supported_assets(self) -> list[str]:
        return self.registry.supported_assets()

    def token_info(self, asset_id: str) -> TokenConfig | None:
        return self.registry.token_info(to_address(asset_id))

    async def convert_to_normalized(self, asset_id: str, amount: int) -> int:
        if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
            raise InvalidAmount(f"Amount must be a non-negative integer, got {amount!r}")
        return await self.converter.to_normalized(to_address(asset_id), amount)

    async def current_price(self, asset_id: str) -> PriceReading:
        return await self.converter.current_price(to_address(asset_id))
