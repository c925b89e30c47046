from __future__ import annotations

import asyncio

from web3 import Web3

from ...abi import load_aggregator_abi
from ...logger import get_logger
from .base import BasePriceSource, RoundData

logger = get_logger(__name__)


class ChainlinkPriceSource(BasePriceSource):
    """Reads Chainlink AggregatorV3 feeds over web3.

    Readings are never cached and never retried: every call goes to the
    feed, and any RPC error propagates to the caller.
    """

    def __init__(self, w3: Web3, block_identifier: int | str = "latest"):
        self.w3 = w3
        self.block_identifier = block_identifier

    @property
    def source_name(self) -> str:
        return "chainlink"

    def _read(self, oracle_ref: str) -> RoundData:
        feed = self.w3.eth.contract(
            address=Web3.to_checksum_address(oracle_ref),
            abi=load_aggregator_abi(),
        )
        round_id, answer, _, updated_at, answered_in_round = (
            feed.functions.latestRoundData().call(
                block_identifier=self.block_identifier
            )
        )
        decimals = feed.functions.decimals().call(
            block_identifier=self.block_identifier
        )
        logger.debug(
            "Feed %s: round=%d answer=%d decimals=%d", oracle_ref, round_id, answer, decimals
        )
        return RoundData(
            round_id=int(round_id),
            price=int(answer),
            updated_at=int(updated_at),
            answered_in_round=int(answered_in_round),
            decimals=int(decimals),
        )

    async def latest_reading(self, oracle_ref: str) -> RoundData:
        return await asyncio.to_thread(self._read, oracle_ref)
