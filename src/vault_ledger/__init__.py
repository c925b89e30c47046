"""Custodial multi-asset ledger with oracle-priced limits."""

from __future__ import annotations

from .constants import NATIVE_ASSET, TARGET_DECIMALS
from .vault import CustodyVault

__all__ = ["CustodyVault", "NATIVE_ASSET", "TARGET_DECIMALS"]
