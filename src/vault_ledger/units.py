from __future__ import annotations

from .constants import MAX_UINT256, TARGET_DECIMALS
from .errors import Overflow


def checked_mul(a: int, b: int) -> int:
    """Multiply two unsigned integers, raising ``Overflow`` past uint256."""
    result = a * b
    if result > MAX_UINT256:
        raise Overflow(f"{a} * {b} exceeds uint256")
    return result


def checked_add(a: int, b: int) -> int:
    """Add two unsigned integers, raising ``Overflow`` past uint256."""
    result = a + b
    if result > MAX_UINT256:
        raise Overflow(f"{a} + {b} exceeds uint256")
    return result


def scale_to_target(
    amount: int,
    price: int,
    asset_decimals: int,
    price_decimals: int,
    target_decimals: int = TARGET_DECIMALS,
) -> int:
    """Convert an asset-native amount into the normalized unit.

    Args:
        amount: Amount in the asset's smallest unit (``asset_decimals`` places).
        price: Price of one whole asset unit with ``price_decimals`` places.
        asset_decimals: Native precision of the asset.
        price_decimals: Precision of the price reading.
        target_decimals: Precision of the normalized unit.

    Returns:
        The value expressed with ``target_decimals`` decimal places.

    Notes:
        - If the combined precision exceeds the target, the product is divided
          down with integer division (truncates toward zero).
        - If it is below the target, the product is multiplied up.
        - Every intermediate is bounded to uint256; ``Overflow`` is raised
          instead of wrapping.
    """
    if amount < 0 or price < 0:
        raise ValueError("amount and price must be non-negative")

    value = checked_mul(amount, price)
    total_decimals = asset_decimals + price_decimals
    if total_decimals > target_decimals:
        return value // (10 ** (total_decimals - target_decimals))
    if total_decimals < target_decimals:
        return checked_mul(value, 10 ** (target_decimals - total_decimals))
    return value
