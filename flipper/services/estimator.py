from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from ..models.market import Listing

DEFAULT_GAP_THRESHOLD = 0.08
DEFAULT_IQR_MULTIPLIER = 2.0


@dataclass(frozen=True)
class MarketEstimate:
    listing: Listing

    @property
    def price(self) -> int:
        return self.listing.price


def quartile_bounds(prices: Sequence[float]) -> tuple[float, float] | None:
    """Return (q1, q3) read at floor(n/4) and floor(3n/4) of an ascending series."""
    n = len(prices)
    q1_idx = n // 4
    q3_idx = (3 * n) // 4
    if q1_idx >= n or q3_idx >= n:
        return None
    return prices[q1_idx], prices[q3_idx]


def trim_upper_outliers(
    candidates: Sequence[Listing],
    multiplier: float = DEFAULT_IQR_MULTIPLIER,
) -> list[Listing] | None:
    """Drop listings priced above q3 + multiplier * (q3 - q1).

    Returns None when the series is too short to read quartiles from.
    """
    bounds = quartile_bounds([c.price for c in candidates])
    if bounds is None:
        return None
    q1, q3 = bounds
    upper = q3 + multiplier * (q3 - q1)
    return [c for c in candidates if c.price <= upper]


def find_wall(candidates: Sequence[Listing], gap_threshold: float = DEFAULT_GAP_THRESHOLD) -> int | None:
    """Index of the first listing following a relative jump above ``gap_threshold``.

    The first qualifying gap wins even if a larger one appears later.
    """
    for i in range(len(candidates) - 1):
        price_a = candidates[i].price
        price_b = candidates[i + 1].price
        if price_a <= 0:
            continue
        if (price_b - price_a) / price_a > gap_threshold:
            return i + 1
    return None


def estimate_market_price(
    sorted_group: Sequence[Listing],
    *,
    gap_threshold: float = DEFAULT_GAP_THRESHOLD,
    iqr_multiplier: float = DEFAULT_IQR_MULTIPLIER,
) -> MarketEstimate | None:
    """Estimate the resale price for one item identity.

    ``sorted_group`` must be ascending by price. Its first element is the
    listing we would buy and is never used as evidence. With few listings the
    estimate degrades to the second-cheapest one; otherwise upper outliers are
    trimmed by interquartile spread and the start of the first price "wall"
    (the listing after the first big jump) is taken as the market price.
    """
    if len(sorted_group) < 3:
        if len(sorted_group) == 2:
            return MarketEstimate(sorted_group[1])
        return None

    candidates = list(sorted_group[1:])
    trimmed = trim_upper_outliers(candidates, iqr_multiplier)
    if trimmed is None or len(trimmed) < 2:
        # Not enough to trust the trim, fall back to the cheapest competitor.
        return MarketEstimate(candidates[0])

    wall = find_wall(trimmed, gap_threshold)
    if wall is None:
        return MarketEstimate(trimmed[0])
    return MarketEstimate(trimmed[wall])
