from __future__ import annotations

from .base import BasePriceSource, RoundData
from .chainlink import ChainlinkPriceSource

__all__ = ["BasePriceSource", "ChainlinkPriceSource", "RoundData"]
