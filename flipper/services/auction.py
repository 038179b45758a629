from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass

from ..config import Settings, settings
from ..models.flips import AuctionFlip
from ..models.market import Listing, Rarity
from .estimator import DEFAULT_GAP_THRESHOLD, DEFAULT_IQR_MULTIPLIER, estimate_market_price
from .normalize import normalize_item_name
from .tax import net_proceeds

HIGH_RARITIES = frozenset({Rarity.EPIC, Rarity.LEGENDARY, Rarity.MYTHIC})


@dataclass(frozen=True)
class AuctionFlipConfig:
    min_profit: float = 50_000
    min_price: int = 1
    gap_threshold: float = DEFAULT_GAP_THRESHOLD
    iqr_multiplier: float = DEFAULT_IQR_MULTIPLIER

    @classmethod
    def from_settings(cls, cfg: Settings = settings) -> "AuctionFlipConfig":
        return cls(
            min_profit=cfg.AUCTION_MIN_PROFIT,
            min_price=cfg.AUCTION_MIN_PRICE,
            gap_threshold=cfg.WALL_GAP_PCT,
            iqr_multiplier=cfg.IQR_MULTIPLIER,
        )


@dataclass(frozen=True)
class AnalysisCandidateConfig:
    max_items: int = 15
    min_price: int = 250_000
    min_lore: int = 50

    @classmethod
    def from_settings(cls, cfg: Settings = settings) -> "AnalysisCandidateConfig":
        return cls(
            max_items=cfg.ANALYSIS_MAX_ITEMS,
            min_price=cfg.ANALYSIS_MIN_PRICE,
            min_lore=cfg.ANALYSIS_MIN_LORE,
        )


@dataclass(frozen=True)
class AnalysisCandidate:
    """Cheapest listing of one identity, handed to the inference oracles."""

    id: str
    name: str
    lore: str
    rarity: Rarity
    price: int


def active_bins(listings: Iterable[Listing]) -> list[Listing]:
    return [listing for listing in listings if listing.bin and not listing.claimed]


def group_by_identity(listings: Iterable[Listing]) -> dict[str, list[Listing]]:
    """Group listings by normalized name, each group sorted ascending by price."""
    groups: dict[str, list[Listing]] = defaultdict(list)
    for listing in listings:
        groups[normalize_item_name(listing.item_name)].append(listing)
    return {name: sorted(group, key=lambda listing: listing.price) for name, group in groups.items()}


def find_auction_flips(
    listings: Iterable[Listing],
    config: AuctionFlipConfig | None = None,
) -> list[AuctionFlip]:
    """Find underpriced fixed-price listings in one auction snapshot.

    Output order follows first appearance of each identity; ranking is left to callers.
    """
    cfg = config or AuctionFlipConfig()
    flips: list[AuctionFlip] = []

    for item_name, group in group_by_identity(active_bins(listings)).items():
        if len(group) < 2:
            continue
        buy = group[0]
        if buy.price < cfg.min_price:
            continue

        estimate = estimate_market_price(
            group, gap_threshold=cfg.gap_threshold, iqr_multiplier=cfg.iqr_multiplier
        )
        if estimate is None or estimate.price <= buy.price:
            continue

        profit = net_proceeds(estimate.price) - buy.price
        if profit <= cfg.min_profit:
            continue
        flips.append(
            AuctionFlip(
                id=buy.uuid,
                item_name=item_name,
                rarity=buy.tier,
                lore=buy.item_lore,
                lowest_bin=buy.price,
                market_price=estimate.price,
                profit=round(profit),
            )
        )
    return flips


def select_analysis_candidates(
    listings: Iterable[Listing],
    config: AnalysisCandidateConfig | None = None,
) -> list[AnalysisCandidate]:
    """Pick high-value items worth an oracle call, most expensive first."""
    cfg = config or AnalysisCandidateConfig()
    cheapest: dict[str, Listing] = {}
    for listing in active_bins(listings):
        name = normalize_item_name(listing.item_name)
        existing = cheapest.get(name)
        if existing is None or listing.price < existing.price:
            cheapest[name] = listing

    picked = [
        (name, listing)
        for name, listing in cheapest.items()
        if listing.tier in HIGH_RARITIES
        and len(listing.item_lore) > cfg.min_lore
        and listing.price > cfg.min_price
    ]
    picked.sort(key=lambda pair: pair[1].price, reverse=True)
    return [
        AnalysisCandidate(
            id=listing.uuid,
            name=name,
            lore=listing.item_lore,
            rarity=listing.tier,
            price=listing.price,
        )
        for name, listing in picked[: cfg.max_items]
    ]
