from __future__ import annotations

HIGH_VALUE_THRESHOLD = 1_000_000
LOW_RATE = 0.01
HIGH_RATE = 0.02


def tax(gross_price: float) -> float:
    """Auction house tax owed on a sale at ``gross_price``.

    1% below 1M coins, 2% from 1M inclusive. Not rounded; callers round final figures.
    """
    if gross_price >= HIGH_VALUE_THRESHOLD:
        return gross_price * HIGH_RATE
    return gross_price * LOW_RATE


def net_proceeds(gross_price: float) -> float:
    return gross_price - tax(gross_price)
