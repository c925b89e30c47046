from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path

ABIS_DIR = Path(__file__).parent / "abis"

AGGREGATOR_ABI_PATH = ABIS_DIR / "AggregatorV3Interface.json"
ERC20_ABI_PATH = ABIS_DIR / "ERC20.json"


def load_abi(path: str | Path) -> list[dict]:
    """Load an ABI from a JSON file and return its "abi" field.

    Raises:
        FileNotFoundError: If the file does not exist.
        json.JSONDecodeError: If the file is not valid JSON.
        KeyError: If the JSON does not contain an "abi" field.
    """
    with Path(path).open() as f:
        data = json.load(f)
    return data["abi"]


@lru_cache(maxsize=None)
def load_aggregator_abi() -> list[dict]:
    """Load the Chainlink AggregatorV3 ABI."""
    return load_abi(AGGREGATOR_ABI_PATH)


@lru_cache(maxsize=None)
def load_erc20_abi() -> list[dict]:
    """Load the ERC20 ABI."""
    return load_abi(ERC20_ABI_PATH)
