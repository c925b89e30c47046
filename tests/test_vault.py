from __future__ import annotations

import asyncio

import pytest

from vault_ledger.constants import MAX_UINT256, NATIVE_ASSET
from vault_ledger.domain import LedgerTotals
from vault_ledger.errors import (
    AccountingUnderflow,
    CapExceeded,
    InsufficientBalance,
    InvalidAddress,
    InvalidAmount,
    NoPendingWithdrawal,
    NotSupported,
    Overflow,
    ReentrantCall,
    StalePrice,
    TransferFailed,
    Unauthorized,
)
from vault_ledger.events import (
    Deposited,
    TokenAdded,
    TokenRemoved,
    WithdrawCompleted,
    WithdrawRequested,
)

ALICE = "0x1100000000000000000000000000000000000011"
BOB = "0x2200000000000000000000000000000000000022"
ETH_FEED = "0x9000000000000000000000000000000000000001"
USDC = "0x2000000000000000000000000000000000000002"
USDC_FEED = "0x9000000000000000000000000000000000000002"
ONE_ETH = 10**18


@pytest.fixture
def setup_assets(admin, price_source, metadata):
    async def _setup(vault):
        price_source.set_price(ETH_FEED, 2000_00000000, decimals=8)
        price_source.set_price(USDC_FEED, 1_00000000, decimals=8)
        metadata.token_decimals[USDC] = 6
        await vault.register_token(admin, NATIVE_ASSET, ETH_FEED)
        await vault.register_token(admin, USDC, USDC_FEED)

    return _setup


# --- registry administration ---


@pytest.mark.asyncio
async def test_register_requires_admin(vault, price_source):
    price_source.set_price(ETH_FEED, 2000_00000000)

    with pytest.raises(Unauthorized):
        await vault.register_token(ALICE, NATIVE_ASSET, ETH_FEED)

    assert not vault.is_supported(NATIVE_ASSET)
    assert price_source.calls == []


@pytest.mark.asyncio
@pytest.mark.parametrize("caller", [None, 12345, "admin"])
async def test_register_rejects_malformed_caller(vault, price_source, caller):
    price_source.set_price(ETH_FEED, 2000_00000000)

    with pytest.raises(InvalidAddress):
        await vault.register_token(caller, NATIVE_ASSET, ETH_FEED)
    with pytest.raises(InvalidAddress):
        await vault.deregister_token(caller, NATIVE_ASSET)

    assert price_source.calls == []


@pytest.mark.asyncio
async def test_register_and_query_registry(vault, setup_assets, sink):
    await setup_assets(vault)

    assert vault.list_supported_assets() == [NATIVE_ASSET, USDC]
    assert vault.token_info(USDC).native_decimals == 6
    assert vault.token_info(NATIVE_ASSET.lower()).native_decimals == 18
    assert sink.events == [
        TokenAdded(asset_id=NATIVE_ASSET, oracle_ref=ETH_FEED, native_decimals=18),
        TokenAdded(asset_id=USDC, oracle_ref=USDC_FEED, native_decimals=6),
    ]


@pytest.mark.asyncio
async def test_register_with_stale_feed_is_not_listed(vault, admin, price_source):
    price_source.set_price(ETH_FEED, 2000_00000000, round_id=3, answered_in_round=2)

    with pytest.raises(StalePrice):
        await vault.register_token(admin, NATIVE_ASSET, ETH_FEED)

    assert vault.list_supported_assets() == []


@pytest.mark.asyncio
async def test_register_rejects_malformed_address(vault, admin):
    with pytest.raises(InvalidAddress):
        await vault.register_token(admin, "not-an-address", ETH_FEED)


@pytest.mark.asyncio
async def test_native_asset_can_never_be_deregistered(vault, admin, setup_assets):
    await setup_assets(vault)

    with pytest.raises(NotSupported):
        await vault.deregister_token(admin, NATIVE_ASSET)
    with pytest.raises(Unauthorized):
        await vault.deregister_token(ALICE, NATIVE_ASSET)

    assert vault.is_supported(NATIVE_ASSET)


@pytest.mark.asyncio
async def test_deregistered_token_keeps_balances(vault, admin, setup_assets, sink):
    await setup_assets(vault)
    await vault.deposit(ALICE, USDC, 50_000000)
    await vault.request_withdraw(ALICE, USDC, 20_000000)

    await vault.deregister_token(admin, USDC)

    assert sink.events[-1] == TokenRemoved(asset_id=USDC)
    assert not vault.token_info(USDC).active
    assert vault.balance_of(ALICE, USDC) == 30_000000
    with pytest.raises(NotSupported):
        await vault.deposit(ALICE, USDC, 1)
    with pytest.raises(NotSupported):
        await vault.request_withdraw(ALICE, USDC, 1)
    # already-requested funds can still be paid out
    assert await vault.withdraw(ALICE, USDC) == 20_000000


# --- deposits ---


@pytest.mark.asyncio
async def test_one_native_unit_at_2000_usd(vault, setup_assets, sink):
    await setup_assets(vault)

    new_available = await vault.deposit(ALICE, NATIVE_ASSET, ONE_ETH)

    assert new_available == ONE_ETH
    assert vault.totals.total_normalized_value == 2000_000000
    assert sink.events[-1] == Deposited(
        user=ALICE,
        asset_id=NATIVE_ASSET,
        amount=ONE_ETH,
        normalized_value=2000_000000,
        new_available=ONE_ETH,
    )


@pytest.mark.asyncio
async def test_deposit_increases_balance_and_total_by_converted_value(
    vault, setup_assets, price_source
):
    await setup_assets(vault)
    await vault.deposit(ALICE, NATIVE_ASSET, ONE_ETH)
    price_source.set_price(ETH_FEED, 2500_00000000, round_id=11)

    await vault.deposit(ALICE, NATIVE_ASSET, ONE_ETH // 2)

    assert vault.balance_of(ALICE, NATIVE_ASSET) == ONE_ETH + ONE_ETH // 2
    assert vault.totals.total_normalized_value == 2000_000000 + 1250_000000
    assert vault.totals.deposit_count == 2


@pytest.mark.asyncio
async def test_cap_is_enforced_across_users(make_vault, setup_assets):
    vault = make_vault(capacity_cap=100_000000)
    await setup_assets(vault)

    await vault.deposit(ALICE, USDC, 60_000000)
    before = vault.ledger.snapshot()

    with pytest.raises(CapExceeded) as exc_info:
        await vault.deposit(BOB, USDC, 60_000000)

    assert (exc_info.value.attempted, exc_info.value.cap) == (120_000000, 100_000000)
    assert vault.totals.total_normalized_value == 60_000000
    assert vault.ledger.snapshot() == before


@pytest.mark.asyncio
@pytest.mark.parametrize("amount", [0, -5])
async def test_non_positive_deposit_is_rejected(vault, setup_assets, price_source, amount):
    await setup_assets(vault)
    calls = len(price_source.calls)

    with pytest.raises(InvalidAmount):
        await vault.deposit(ALICE, USDC, amount)

    assert len(price_source.calls) == calls
    assert vault.totals == LedgerTotals()


@pytest.mark.asyncio
async def test_deposit_rejects_malformed_user(vault, setup_assets):
    await setup_assets(vault)

    with pytest.raises(InvalidAddress):
        await vault.deposit("0x123", USDC, 1)


@pytest.mark.asyncio
async def test_oversized_deposit_overflows_instead_of_wrapping(vault, setup_assets):
    await setup_assets(vault)

    with pytest.raises(Overflow):
        await vault.deposit(ALICE, NATIVE_ASSET, MAX_UINT256)

    assert vault.totals == LedgerTotals()


# --- withdrawals ---


@pytest.mark.asyncio
async def test_full_withdrawal_cycle(vault, setup_assets, transfers, sink):
    await setup_assets(vault)
    await vault.deposit(ALICE, NATIVE_ASSET, 2 * ONE_ETH)

    await vault.request_withdraw(ALICE, NATIVE_ASSET, ONE_ETH)

    assert vault.balance_of(ALICE, NATIVE_ASSET) == ONE_ETH
    assert vault.pending_withdrawal_of(ALICE, NATIVE_ASSET) == ONE_ETH
    assert vault.totals.total_normalized_value == 2000_000000
    assert sink.events[-1] == WithdrawRequested(
        user=ALICE, asset_id=NATIVE_ASSET, amount=ONE_ETH, normalized_value=2000_000000
    )

    assert await vault.withdraw(ALICE, NATIVE_ASSET) == ONE_ETH

    assert transfers.native_transfers == [(ALICE, ONE_ETH)]
    assert vault.pending_withdrawal_of(ALICE, NATIVE_ASSET) == 0
    assert vault.totals == LedgerTotals(
        total_normalized_value=2000_000000, deposit_count=1, withdraw_count=1
    )
    assert sink.events[-1] == WithdrawCompleted(
        user=ALICE, asset_id=NATIVE_ASSET, amount=ONE_ETH
    )


@pytest.mark.asyncio
async def test_two_requests_below_ceiling_may_exceed_it_together(make_vault, setup_assets):
    vault = make_vault(withdraw_limit=3000_000000)
    await setup_assets(vault)
    await vault.deposit(ALICE, NATIVE_ASSET, 2 * ONE_ETH)

    await vault.request_withdraw(ALICE, NATIVE_ASSET, ONE_ETH)
    await vault.request_withdraw(ALICE, NATIVE_ASSET, ONE_ETH)

    assert vault.pending_withdrawal_of(ALICE, NATIVE_ASSET) == 2 * ONE_ETH
    assert vault.balance_of(ALICE, NATIVE_ASSET) == 0


@pytest.mark.asyncio
async def test_request_above_available_never_mutates(vault, setup_assets):
    await setup_assets(vault)
    await vault.deposit(ALICE, USDC, 10_000000)
    before = vault.ledger.snapshot()

    with pytest.raises(InsufficientBalance) as exc_info:
        await vault.request_withdraw(ALICE, USDC, 10_000001)

    assert exc_info.value.available == 10_000000
    assert vault.ledger.snapshot() == before


@pytest.mark.asyncio
async def test_withdraw_without_pending(vault, setup_assets, transfers):
    await setup_assets(vault)
    await vault.deposit(ALICE, USDC, 10_000000)

    with pytest.raises(NoPendingWithdrawal):
        await vault.withdraw(ALICE, USDC)

    assert transfers.token_transfers == []


@pytest.mark.asyncio
async def test_failed_transfer_is_all_or_nothing(vault, setup_assets, transfers, sink):
    await setup_assets(vault)
    await vault.deposit(ALICE, NATIVE_ASSET, ONE_ETH)
    await vault.request_withdraw(ALICE, NATIVE_ASSET, ONE_ETH)
    events_before = list(sink.events)
    transfers.native_ok = False

    with pytest.raises(TransferFailed):
        await vault.withdraw(ALICE, NATIVE_ASSET)

    assert vault.pending_withdrawal_of(ALICE, NATIVE_ASSET) == ONE_ETH
    assert sink.events == events_before

    transfers.native_ok = True
    assert await vault.withdraw(ALICE, NATIVE_ASSET) == ONE_ETH


@pytest.mark.asyncio
async def test_price_rise_between_deposit_and_request_is_reported(
    vault, setup_assets, price_source
):
    """Known risk: the total is priced per event, so a price rise can make a
    request debit more than the matching deposit credited."""
    await setup_assets(vault)
    await vault.deposit(ALICE, NATIVE_ASSET, ONE_ETH)
    price_source.set_price(ETH_FEED, 3000_00000000, round_id=11)
    before = vault.ledger.snapshot()

    with pytest.raises(AccountingUnderflow) as exc_info:
        await vault.request_withdraw(ALICE, NATIVE_ASSET, ONE_ETH)

    assert exc_info.value.total == 2000_000000
    assert exc_info.value.decrement == 3000_000000
    assert vault.ledger.snapshot() == before


# --- reentrancy ---


@pytest.mark.asyncio
async def test_transfer_callback_cannot_withdraw_twice(vault, setup_assets, transfers):
    await setup_assets(vault)
    await vault.deposit(ALICE, NATIVE_ASSET, ONE_ETH)
    await vault.request_withdraw(ALICE, NATIVE_ASSET, ONE_ETH)
    nested_errors: list[Exception] = []

    async def _reenter():
        try:
            await vault.withdraw(ALICE, NATIVE_ASSET)
        except ReentrantCall as e:
            nested_errors.append(e)

    transfers.on_transfer = _reenter

    assert await vault.withdraw(ALICE, NATIVE_ASSET) == ONE_ETH
    assert len(nested_errors) == 1
    assert transfers.native_transfers == [(ALICE, ONE_ETH)]
    assert vault.pending_withdrawal_of(ALICE, NATIVE_ASSET) == 0


@pytest.mark.asyncio
async def test_oracle_callback_cannot_enter_the_vault(vault, setup_assets, price_source):
    await setup_assets(vault)

    async def _reenter():
        await vault.deposit(BOB, USDC, 1_000000)

    price_source.on_read = _reenter

    with pytest.raises(ReentrantCall):
        await vault.deposit(ALICE, USDC, 1_000000)

    assert vault.totals == LedgerTotals()
    assert vault.balance_of(BOB, USDC) == 0


@pytest.mark.asyncio
async def test_concurrent_deposits_from_different_users_both_succeed(
    vault, setup_assets, price_source, sink
):
    await setup_assets(vault)

    async def _yield():
        await asyncio.sleep(0)

    price_source.on_read = _yield

    results = await asyncio.gather(
        vault.deposit(ALICE, USDC, 1_000000),
        vault.deposit(BOB, USDC, 2_000000),
    )

    assert results == [1_000000, 2_000000]
    assert vault.balance_of(ALICE, USDC) == 1_000000
    assert vault.balance_of(BOB, USDC) == 2_000000
    assert vault.totals == LedgerTotals(total_normalized_value=3_000000, deposit_count=2)
    assert [type(e) for e in sink.events[-2:]] == [Deposited, Deposited]


@pytest.mark.asyncio
async def test_task_spawned_from_transfer_callback_is_rejected(
    vault, setup_assets, transfers
):
    await setup_assets(vault)
    await vault.deposit(ALICE, NATIVE_ASSET, ONE_ETH)
    await vault.request_withdraw(ALICE, NATIVE_ASSET, ONE_ETH)
    nested_errors: list[Exception] = []

    async def _reenter():
        try:
            await asyncio.create_task(vault.deposit(ALICE, USDC, 1_000000))
        except ReentrantCall as e:
            nested_errors.append(e)

    transfers.on_transfer = _reenter

    assert await vault.withdraw(ALICE, NATIVE_ASSET) == ONE_ETH
    assert len(nested_errors) == 1
    assert vault.balance_of(ALICE, USDC) == 0


@pytest.mark.asyncio
async def test_guard_is_released_after_rejection(make_vault, setup_assets):
    vault = make_vault(capacity_cap=100_000000)
    await setup_assets(vault)

    with pytest.raises(CapExceeded):
        await vault.deposit(ALICE, USDC, 200_000000)

    assert await vault.deposit(ALICE, USDC, 100_000000) == 100_000000


# --- queries ---


@pytest.mark.asyncio
async def test_query_surface(vault, setup_assets, price_source):
    await setup_assets(vault)
    await vault.deposit(ALICE.lower(), USDC, 5_000000)

    assert vault.balance_of(ALICE, USDC) == 5_000000
    assert vault.pending_withdrawal_of(ALICE, USDC) == 0
    assert vault.balance_of(BOB, USDC) == 0
    assert vault.is_supported(USDC)
    assert not vault.is_supported(BOB)
    assert vault.token_info(BOB) is None
    assert await vault.convert_to_normalized(NATIVE_ASSET, ONE_ETH) == 2000_000000
    reading = await vault.current_price(USDC)
    assert (reading.price, reading.price_decimals) == (1_00000000, 8)
    assert vault.capacity_cap == 10_000_000000
    assert vault.withdraw_limit == 5_000_000000


@pytest.mark.asyncio
async def test_convert_to_normalized_accepts_zero(vault, setup_assets):
    await setup_assets(vault)

    assert await vault.convert_to_normalized(USDC, 0) == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("amount", [-1, True, 1.5, "10"])
async def test_convert_to_normalized_rejects_bad_amounts(
    vault, setup_assets, price_source, amount
):
    await setup_assets(vault)
    calls = len(price_source.calls)

    with pytest.raises(InvalidAmount):
        await vault.convert_to_normalized(USDC, amount)

    assert len(price_source.calls) == calls


def test_limits_must_be_positive(make_vault):
    with pytest.raises(ValueError):
        make_vault(capacity_cap=0)
