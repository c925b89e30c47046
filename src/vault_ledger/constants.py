"""Ledger-wide constants."""

NATIVE_ASSET = "0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE"
NATIVE_DECIMALS = 18

# Normalized accounting unit: USD-like fixed point with 6 fractional digits
TARGET_DECIMALS = 6

MAX_UINT256 = 2**256 - 1

DEFAULT_RPC_URL = "https://eth.drpc.org"

# Mainnet Chainlink ETH/USD aggregator
PRICE_FEED_ETH_USD = "0x5f4eC3Df9cbd43714FE2740f5E3616155c5b8419"

RPC_RETRY_MAX_TIME = 30  # seconds
