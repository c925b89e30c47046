"""Wire settings into a ready-to-use registry and vault."""

from __future__ import annotations

from eth_typing import URI
from web3 import Web3

from .adapters.price_sources.base import BasePriceSource
from .adapters.price_sources.chainlink import ChainlinkPriceSource
from .adapters.token_metadata import BaseTokenMetadata, Erc20Metadata
from .adapters.transfers.base import BaseTransferService
from .auth import Authorizer, StaticAuthorizer
from .constants import NATIVE_ASSET
from .errors import NotSupported
from .events import EventSink
from .registry import TokenRegistry
from .state import AppState
from .vault import CustodyVault


def build_web3_collaborators(
    state: AppState,
) -> tuple[BasePriceSource, BaseTokenMetadata]:
    s = state.settings
    w3 = Web3(Web3.HTTPProvider(URI(s.rpc_url), request_kwargs={"timeout": 15}))
    return (
        ChainlinkPriceSource(w3, block_identifier=s.block_identifier),
        Erc20Metadata(
            w3, block_identifier=s.block_identifier, max_time=s.rpc_retry_max_time
        ),
    )


def configured_feeds(state: AppState) -> dict[str, str]:
    """Asset -> feed for every asset in settings, native first."""
    s = state.settings
    feeds: dict[str, str] = {}
    if s.native_price_feed is not None:
        feeds[NATIVE_ASSET] = s.native_price_feed
    feeds.update(s.tokens)
    return feeds


async def build_registry(
    state: AppState,
    price_source: BasePriceSource,
    metadata: BaseTokenMetadata,
    only: str | None = None,
) -> TokenRegistry:
    """Create a registry holding the assets configured in settings.

    With ``only``, just that asset is registered, so feeds of unrelated
    assets are never read. Assets whose feed is unhealthy at start-up
    abort the build.

    Raises:
        NotSupported: If ``only`` has no feed configured.
    """
    feeds = configured_feeds(state)
    if only is not None:
        if only not in feeds:
            raise NotSupported(only)
        feeds = {only: feeds[only]}

    registry = TokenRegistry(price_source, metadata)
    for asset_id, feed in feeds.items():
        await registry.register(asset_id, feed)
        state.logger.info("Registered %s with feed %s", asset_id, feed)

    return registry


def build_authorizer(state: AppState) -> Authorizer:
    s = state.settings
    return StaticAuthorizer(admins=s.admin_addresses, operators=s.operator_addresses)


def build_vault(
    state: AppState,
    registry: TokenRegistry,
    transfers: BaseTransferService,
    authorizer: Authorizer | None = None,
    events: EventSink | None = None,
) -> CustodyVault:
    s = state.settings
    return CustodyVault(
        registry=registry,
        transfers=transfers,
        authorizer=authorizer or build_authorizer(state),
        capacity_cap=s.capacity_cap,
        withdraw_limit=s.withdraw_limit,
        events=events,
    )
