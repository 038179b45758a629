from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass

from ..config import Settings, settings
from ..logging import get_logger
from ..models.flips import TrendFlip, ValueAssessment
from ..models.market import Rarity
from .auction import AnalysisCandidate
from .fanout import ProgressCallback, gather_with_progress

_log = get_logger()

ValueOracle = Callable[[str, str, Rarity, int], Awaitable[ValueAssessment]]


@dataclass(frozen=True)
class TrendConfig:
    min_profit: float = 10_000
    concurrency: int = 5

    @classmethod
    def from_settings(cls, cfg: Settings = settings) -> "TrendConfig":
        return cls(min_profit=cfg.TREND_MIN_PROFIT, concurrency=cfg.ORACLE_CONCURRENCY)


async def find_trend_flips(
    candidates: Sequence[AnalysisCandidate],
    oracle: ValueOracle,
    config: TrendConfig | None = None,
    progress: ProgressCallback | None = None,
) -> list[TrendFlip]:
    cfg = config or TrendConfig()

    async def _value(candidate: AnalysisCandidate) -> ValueAssessment:
        return await oracle(candidate.name, candidate.lore, candidate.rarity, candidate.price)

    def _failed(candidate: AnalysisCandidate, exc: Exception) -> ValueAssessment:
        _log.warning("value_inference_failed", item=candidate.name, error=str(exc))
        return ValueAssessment.failed()

    assessments = await gather_with_progress(
        candidates,
        _value,
        on_error=_failed,
        progress=progress,
        concurrency=cfg.concurrency,
    )

    return [
        TrendFlip(
            id=candidate.id,
            item_name=candidate.name,
            rarity=candidate.rarity,
            lore=candidate.lore,
            current_price=candidate.price,
            estimated_value=assessment.estimated_value,
            potential_profit=assessment.estimated_profit,
            reasoning=assessment.reasoning,
        )
        for candidate, assessment in zip(candidates, assessments)
        if assessment.estimated_profit > cfg.min_profit and assessment.estimated_value > 0
    ]
