from __future__ import annotations

from .price_sources import BasePriceSource, ChainlinkPriceSource, RoundData
from .token_metadata import BaseTokenMetadata, Erc20Metadata
from .transfers import BaseTransferService

__all__ = [
    "BasePriceSource",
    "BaseTokenMetadata",
    "BaseTransferService",
    "ChainlinkPriceSource",
    "Erc20Metadata",
    "RoundData",
]
