"""Validation of raw price-feed answers."""

from __future__ import annotations

from .adapters.price_sources.base import BasePriceSource, RoundData
from .domain import PriceReading, TokenConfig
from .errors import InvalidPrice, StalePrice
from .logger import get_logger

logger = get_logger(__name__)


def validate_round(data: RoundData) -> PriceReading:
    """Turn a raw feed answer into a ``PriceReading``.

    Raises:
        InvalidPrice: If the price is non-positive or the round id or
            timestamp is zero.
        StalePrice: If the answer comes from a round older than the one
            the feed reports as updated.
    """
    if data.price <= 0:
        raise InvalidPrice(f"Non-positive price: {data.price}")
    if data.round_id == 0:
        raise InvalidPrice("Round id is zero")
    if data.updated_at == 0:
        raise InvalidPrice("Update timestamp is zero")
    if data.answered_in_round < data.round_id:
        raise StalePrice(data.round_id, data.answered_in_round)

    return PriceReading(
        price=data.price,
        price_decimals=data.decimals,
        updated_at_round_id=data.round_id,
        updated_at_timestamp=data.updated_at,
        answered_in_round_id=data.answered_in_round,
    )


async def read_price(source: BasePriceSource, config: TokenConfig) -> PriceReading:
    """Fetch and validate a fresh reading for ``config``'s feed."""
    data = await source.latest_reading(config.oracle_ref)
    try:
        return validate_round(data)
    except (InvalidPrice, StalePrice) as e:
        logger.warning("Rejected reading from %s: %s", config.oracle_ref, e)
        raise
