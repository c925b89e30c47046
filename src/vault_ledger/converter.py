from __future__ import annotations

from .domain import PriceReading
from .logger import get_logger
from .oracle import read_price
from .registry import TokenRegistry
from .units import scale_to_target

logger = get_logger(__name__)


class UnitConverter:
    """Converts asset-native amounts into the normalized unit."""

    def __init__(self, registry: TokenRegistry):
        self.registry = registry

    async def current_price(self, asset_id: str) -> PriceReading:
        """Fetch a fresh, validated reading for an active asset."""
        config = self.registry.active_config(asset_id)
        return await read_price(self.registry.price_source, config)

    async def to_normalized(self, asset_id: str, amount: int) -> int:
        """Convert ``amount`` of ``asset_id`` using the current reading.

        Raises:
            NotSupported: If the asset is not active.
            InvalidPrice: If the reading is invalid.
            StalePrice: If the reading is stale.
            Overflow: If the conversion exceeds uint256.
        """
        config = self.registry.active_config(asset_id)
        reading = await read_price(self.registry.price_source, config)
        value = scale_to_target(
            amount,
            reading.price,
            config.native_decimals,
            reading.price_decimals,
        )
        logger.debug(
            "%d of %s at price %d (%d decimals) -> %d normalized",
            amount,
            asset_id,
            reading.price,
            reading.price_decimals,
            value,
        )
        return value
