"""Registry of supported assets and their price feeds."""

from __future__ import annotations

from .adapters.price_sources.base import BasePriceSource
from .adapters.token_metadata import BaseTokenMetadata
from .constants import NATIVE_ASSET, NATIVE_DECIMALS
from .domain import TokenConfig
from .errors import AlreadySupported, NotSupported
from .logger import get_logger
from .oracle import read_price

logger = get_logger(__name__)


class TokenRegistry:
    """Maps asset ids to their ``TokenConfig``.

    Configs are kept after deregistration so that historical balances stay
    addressable; only the active set shrinks. The caller is responsible for
    authorization.
    """

    def __init__(self, price_source: BasePriceSource, metadata: BaseTokenMetadata):
        self.price_source = price_source
        self.metadata = metadata
        self._configs: dict[str, TokenConfig] = {}
        # insertion-ordered set of active asset ids
        self._active: dict[str, None] = {}

    async def register(self, asset_id: str, oracle_ref: str) -> TokenConfig:
        """Register ``asset_id`` priced by ``oracle_ref``.

        The feed is read once up front, so an unhealthy feed prevents
        registration.

        Raises:
            AlreadySupported: If the asset is already active.
            InvalidPrice: If the feed returns an invalid reading.
            StalePrice: If the feed returns a stale reading.
        """
        if self.is_supported(asset_id):
            raise AlreadySupported(asset_id)

        candidate = TokenConfig(oracle_ref=oracle_ref, native_decimals=0, active=False)
        reading = await read_price(self.price_source, candidate)

        if asset_id == NATIVE_ASSET:
            decimals = NATIVE_DECIMALS
        else:
            decimals = await self.metadata.decimals(asset_id)

        config = TokenConfig(oracle_ref=oracle_ref, native_decimals=decimals, active=True)
        self._configs[asset_id] = config
        self._active[asset_id] = None
        logger.debug(
            "Registered %s (decimals=%d, feed=%s, price=%d@%d)",
            asset_id,
            decimals,
            oracle_ref,
            reading.price,
            reading.price_decimals,
        )
        return config

    def deregister(self, asset_id: str) -> TokenConfig:
        """Deactivate ``asset_id``. The native asset can never be removed.

        Raises:
            NotSupported: If the asset is inactive or is the native asset.
        """
        if asset_id == NATIVE_ASSET or not self.is_supported(asset_id):
            raise NotSupported(asset_id)

        config = TokenConfig(
            oracle_ref=self._configs[asset_id].oracle_ref,
            native_decimals=self._configs[asset_id].native_decimals,
            active=False,
        )
        self._configs[asset_id] = config
        del self._active[asset_id]
        logger.debug("Deregistered %s", asset_id)
        return config

    def is_supported(self, asset_id: str) -> bool:
        return asset_id in self._active

    def supported_assets(self) -> list[str]:
        return list(self._active)

    def token_info(self, asset_id: str) -> TokenConfig | None:
        """Return the config for ``asset_id``, active or not."""
        return self._configs.get(asset_id)

    def active_config(self, asset_id: str) -> TokenConfig:
        """Return the config of an active asset.

        Raises:
            NotSupported: If the asset is not active.
        """
        if not self.is_supported(asset_id):
            raise NotSupported(asset_id)
        return self._configs[asset_id]
