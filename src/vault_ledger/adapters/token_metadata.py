"""Token metadata lookups (decimal precision)."""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod

import backoff
from web3 import Web3
from web3.exceptions import ProviderConnectionError

from ..abi import load_erc20_abi
from ..constants import RPC_RETRY_MAX_TIME
from ..logger import get_logger

logger = get_logger(__name__)


class BaseTokenMetadata(ABC):
    """Abstract source of token metadata."""

    @abstractmethod
    async def decimals(self, asset_id: str) -> int:
        """Return the decimal precision of the token's smallest unit."""
        ...


class Erc20Metadata(BaseTokenMetadata):
    """Reads ERC20 ``decimals()`` over web3, retrying on connection errors."""

    def __init__(
        self,
        w3: Web3,
        block_identifier: int | str = "latest",
        max_time: float = RPC_RETRY_MAX_TIME,
    ):
        self.w3 = w3
        self.block_identifier = block_identifier
        self.max_time = max_time

    def _read_decimals(self, asset_id: str) -> int:
        token = self.w3.eth.contract(
            address=Web3.to_checksum_address(asset_id),
            abi=load_erc20_abi(),
        )
        return int(
            token.functions.decimals().call(block_identifier=self.block_identifier)
        )

    async def decimals(self, asset_id: str) -> int:
        @backoff.on_exception(
            backoff.expo,
            ProviderConnectionError,
            max_time=self.max_time,
            jitter=backoff.full_jitter,
        )
        async def _with_retry() -> int:
            return await asyncio.to_thread(self._read_decimals, asset_id)

        value = await _with_retry()
        logger.debug("Token %s has %d decimals", asset_id, value)
        return value
