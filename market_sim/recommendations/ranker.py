"""
Recommendation ranker: turns ``PredictionResult`` objects into a sorted,
tiered advisory list.

Score formula (weighted sum, clamped to 0–100)
-----------------------------------------------
    total = (
        gain_score   * 0.4    # min(100, safe_expected_gain * 2)
        + risk_score * 0.3    # (1 - risk_level) * 100
        + time_score * 0.2    # min(100, remaining_good_hours * 10)
        + status_score * 0.1  # fixed lookup per PriceStatus
    )

Weights come from ``RankingConfig``; the defaults are shown above.

Tiers
-----
    >= 75  strong_recommend
    >= 60  recommend
    >= 45  cautious
    >= 30  watch
    else   avoid

Usage flow
----------
1. rank_stocks(predictions, instruments, weights, top_n)
   -> list[RankedEntry]   (score desc; ties by safe gain desc, then id)

2. filter_buyable(ranked, min_score)  /  find_sell_candidates(ranked)
   -> derived sublists
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Iterable, Optional

from market_sim.config import RankingConfig
from market_sim.models.instrument import Instrument
from market_sim.models.prediction import PredictionResult, PriceStatus

STATUS_SCORE: dict[PriceStatus, float] = {
    PriceStatus.EARLY_STAGE: 100.0,
    PriceStatus.RISING:       80.0,
    PriceStatus.NEAR_LIMIT:   40.0,
    PriceStatus.STAGNANT:     15.0,
    PriceStatus.FALLING:      10.0,
    PriceStatus.LIMIT_UP:      0.0,
}

_SELL_PRIORITY: dict[PriceStatus, int] = {
    PriceStatus.LIMIT_UP:   3,
    PriceStatus.NEAR_LIMIT: 2,
    PriceStatus.FALLING:    1,
}


class RecommendationTier(StrEnum):
    """Five-level advisory tier derived from the composite score."""

    STRONG_RECOMMEND = "strong_recommend"
    RECOMMEND = "recommend"
    CAUTIOUS = "cautious"
    WATCH = "watch"
    AVOID = "avoid"


@dataclass(frozen=True)
class RankingWeights:
    """Sub-score weights for the composite score."""

    gain:  float = 0.4
    risk:  float = 0.3
    time:  float = 0.2
    trend: float = 0.1

    @classmethod
    def from_config(cls, config: RankingConfig) -> "RankingWeights":
        return cls(
            gain=config.gain_weight,
            risk=config.risk_weight,
            time=config.time_weight,
            trend=config.trend_weight,
        )


@dataclass
class ScoreBreakdown:
    """All sub-scores (each 0–100) and the weighted, clamped total."""

    gain_score:   float
    risk_score:   float
    time_score:   float
    status_score: float
    total:        float


@dataclass
class RankedEntry:
    """One row of the advisory list.

    Attributes:
        instrument_id: Instrument id.
        name:          Instrument display name.
        score:         Composite score (0–100).
        breakdown:     Sub-scores behind ``score``.
        prediction:    The prediction the score was computed from.
        tier:          Advisory tier.
        advice:        Human-readable action advice.
    """

    instrument_id: str
    name:          str
    score:         float
    breakdown:     ScoreBreakdown
    prediction:    PredictionResult
    tier:          RecommendationTier
    advice:        str


def compute_score(prediction: PredictionResult, weights: RankingWeights) -> ScoreBreakdown:
    """Weighted composite of the four sub-scores, clamped to [0, 100]."""
    gain_score = min(100.0, prediction.safe_expected_gain * 2.0)
    risk_score = (1.0 - prediction.risk_level) * 100.0
    time_score = min(100.0, prediction.remaining_good_hours * 10.0)
    status_score = STATUS_SCORE[prediction.status]

    total = (
        gain_score     * weights.gain
        + risk_score   * weights.risk
        + time_score   * weights.time
        + status_score * weights.trend
    )
    return ScoreBreakdown(
        gain_score=round(gain_score, 4),
        risk_score=round(risk_score, 4),
        time_score=round(time_score, 4),
        status_score=status_score,
        total=round(_clamp(total, 0.0, 100.0), 4),
    )


def tier_for_score(score: float) -> RecommendationTier:
    if score >= 75:
        return RecommendationTier.STRONG_RECOMMEND
    if score >= 60:
        return RecommendationTier.RECOMMEND
    if score >= 45:
        return RecommendationTier.CAUTIOUS
    if score >= 30:
        return RecommendationTier.WATCH
    return RecommendationTier.AVOID


def build_advice(prediction: PredictionResult, tier: RecommendationTier) -> str:
    """Action advice text for ``tier``.

    Buy tiers list the expected gain, remaining hours and projected limit
    hour when each is meaningful.
    """
    prefixes = {
        RecommendationTier.STRONG_RECOMMEND: "Strong buy",
        RecommendationTier.RECOMMEND:        "Buy",
        RecommendationTier.CAUTIOUS:         "Buy a small position",
    }
    if tier in prefixes:
        parts = [prefixes[tier]]
        if prediction.safe_expected_gain > 0:
            parts.append(f"expected gain {prediction.safe_expected_gain:.1f}%")
        if prediction.remaining_good_hours > 0:
            parts.append(f"{prediction.remaining_good_hours}h left")
        if prediction.will_hit_limit_up and (prediction.predicted_limit_up_hour or 0) > 0:
            parts.append(f"limit-up expected at {prediction.predicted_limit_up_hour}:00")
        return ", ".join(parts)

    if tier == RecommendationTier.WATCH:
        return "Hold cash and wait for a better entry"
    if prediction.status == PriceStatus.FALLING:
        return "Cut losses or stay out"
    return "Do not buy, look for other opportunities"


def rank_stocks(
    predictions: Iterable[PredictionResult],
    instruments: Iterable[Instrument],
    weights: Optional[RankingWeights] = None,
    top_n: int = 0,
) -> list[RankedEntry]:
    """Score and sort predictions.

    Predictions whose instrument is not in ``instruments`` are skipped.

    Args:
        predictions: One prediction per instrument.
        instruments: Instruments supplying display names.
        weights:     Sub-score weights; defaults to ``RankingWeights()``.
        top_n:       Keep only the first ``top_n`` entries (0 = all).

    Returns:
        Entries sorted by score descending; ties broken by
        ``safe_expected_gain`` descending, then instrument id ascending.
    """
    w = weights or RankingWeights()
    names = {inst.id: inst.name for inst in instruments}

    ranked: list[RankedEntry] = []
    for pred in predictions:
        name = names.get(pred.instrument_id)
        if name is None:
            continue
        breakdown = compute_score(pred, w)
        tier = tier_for_score(breakdown.total)
        ranked.append(
            RankedEntry(
                instrument_id=pred.instrument_id,
                name=name,
                score=breakdown.total,
                breakdown=breakdown,
                prediction=pred,
                tier=tier,
                advice=build_advice(pred, tier),
            )
        )

    ranked.sort(
        key=lambda r: (-r.score, -r.prediction.safe_expected_gain, r.instrument_id)
    )
    if top_n > 0:
        ranked = ranked[:top_n]
    return ranked


def filter_buyable(ranked: list[RankedEntry], min_score: float = 45.0) -> list[RankedEntry]:
    """Entries worth buying now: score >= ``min_score``, not LIMIT_UP/FALLING,
    and with buy-window hours left."""
    return [
        r for r in ranked
        if r.score >= min_score
        and r.prediction.status not in (PriceStatus.LIMIT_UP, PriceStatus.FALLING)
        and r.prediction.remaining_good_hours > 0
    ]


def find_sell_candidates(ranked: list[RankedEntry]) -> list[RankedEntry]:
    """LIMIT_UP, then NEAR_LIMIT, then FALLING entries; input order kept within a status."""
    candidates = [r for r in ranked if r.prediction.status in _SELL_PRIORITY]
    return sorted(candidates, key=lambda r: -_SELL_PRIORITY[r.prediction.status])


# ── Helper ────────────────────────────────────────────────────────────────────

def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))
