"""
ASCII terminal formatters for predictions and rankings.

All formatters return plain multi-line strings suitable for ``typer.echo()``.
No third-party dependencies.

Risk labels
-----------
    < 0.30  low
    < 0.50  medium-low
    < 0.70  medium
    < 0.85  elevated
    else    high
"""

from __future__ import annotations

from market_sim.models.instrument import Instrument
from market_sim.models.prediction import PredictionResult, PriceStatus
from market_sim.recommendations.ranker import RankedEntry, RecommendationTier

_STATUS_LABELS: dict[PriceStatus, str] = {
    PriceStatus.EARLY_STAGE: "Early stage *****",
    PriceStatus.RISING:      "Rising ****",
    PriceStatus.NEAR_LIMIT:  "Near limit **",
    PriceStatus.LIMIT_UP:    "Limit up",
    PriceStatus.FALLING:     "Falling",
    PriceStatus.STAGNANT:    "Sideways",
}

_TIER_LABELS: dict[RecommendationTier, str] = {
    RecommendationTier.STRONG_RECOMMEND: "Strong recommend *****",
    RecommendationTier.RECOMMEND:        "Recommend ****",
    RecommendationTier.CAUTIOUS:         "Cautious ***",
    RecommendationTier.WATCH:            "Watch **",
    RecommendationTier.AVOID:            "Avoid *",
}


def risk_label(risk: float) -> str:
    if risk < 0.3:
        return "low *"
    if risk < 0.5:
        return "medium-low **"
    if risk < 0.7:
        return "medium ***"
    if risk < 0.85:
        return "elevated ****"
    return "high *****"


def status_label(status: PriceStatus) -> str:
    return _STATUS_LABELS[status]


def tier_label(tier: RecommendationTier) -> str:
    return _TIER_LABELS[tier]


# ── Predictions ───────────────────────────────────────────────────────────────


def format_prediction(result: PredictionResult) -> str:
    """Render one prediction as labelled lines.

    The projected limit hour and remaining hours only appear when set.
    """
    lines = [
        f"Instrument: {result.instrument_id}",
        f"Price: {result.current_price:.2f}, limit-up: {result.limit_up_price:.2f}",
        f"Status: {status_label(result.status)} - {result.status_reason}",
    ]
    if result.will_hit_limit_up and result.predicted_limit_up_hour is not None:
        lines.append(f"Projected limit-up: {result.predicted_limit_up_hour}:00")
    lines.append(f"Max potential gain: {result.max_potential_gain:.2f}%")
    lines.append(f"Safe expected gain: {result.safe_expected_gain:.2f}%")
    lines.append(f"Risk: {risk_label(result.risk_level)}")
    lines.append(f"Buy window: {result.best_buy_window}")
    lines.append(f"Sell window: {result.best_sell_window}")
    if result.remaining_good_hours > 0:
        lines.append(f"Hours left to buy: {result.remaining_good_hours}")
    return "\n".join(lines)


# ── Rankings ──────────────────────────────────────────────────────────────────


def format_top_recommendations(ranked: list[RankedEntry], show_count: int = 3) -> str:
    """Detailed block for each of the first ``show_count`` entries."""
    lines: list[str] = ["=== Top Recommendations ===", ""]

    if not ranked:
        lines.append("  (no instruments to rank)")
        return "\n".join(lines)

    for i, entry in enumerate(ranked[:show_count], start=1):
        pred = entry.prediction
        lines.append(f"#{i} {entry.name} ({entry.instrument_id})")
        lines.append(f"  Score:      {entry.score:.1f}/100")
        lines.append(f"  Tier:       {tier_label(entry.tier)}")
        lines.append(f"  Advice:     {entry.advice}")
        lines.append(f"  Price:      {pred.current_price:.2f}")
        lines.append(
            f"  Gain:       {pred.safe_expected_gain:.1f}% "
            f"(max {pred.max_potential_gain:.1f}%)"
        )
        lines.append(f"  Risk:       {risk_label(pred.risk_level)}")
        lines.append(f"  Buy window: {pred.best_buy_window}")
        if pred.will_hit_limit_up and pred.predicted_limit_up_hour is not None:
            lines.append(f"  Limit-up:   {pred.predicted_limit_up_hour}:00")
        lines.append("")

    return "\n".join(lines)


def generate_brief_summary(ranked: list[RankedEntry]) -> str:
    """One-line market summary by tier counts."""
    if not ranked:
        return "No instruments to recommend right now"

    strong = [r for r in ranked if r.score >= 75]
    buy = [r for r in ranked if 60 <= r.score < 75]
    cautious = [r for r in ranked if 45 <= r.score < 60]

    parts: list[str] = []
    if strong:
        top = ranked[0]
        parts.append(
            f"{len(strong)} strong pick(s), top choice {top.name} "
            f"(expected gain {top.prediction.safe_expected_gain:.1f}%)"
        )
    elif buy:
        top = buy[0]
        parts.append(
            f"{len(buy)} recommended, consider {top.name} "
            f"(gain {top.prediction.safe_expected_gain:.1f}%)"
        )
    elif cautious:
        parts.append(f"Average market, {len(cautious)} worth a cautious position")
    else:
        parts.append("Weak market, mostly wait and watch")
    return "; ".join(parts)


def format_rank_table(ranked: list[RankedEntry]) -> str:
    """Compact one-row-per-instrument ranking table."""
    header = (
        f"  {'Rank':>4}  {'ID':<5}  {'Name':<16}  {'Score':>6}  "
        f"{'Status':<12}  {'Gain%':>7}  {'Risk':>5}  {'Hrs':>3}  Tier"
    )
    lines = [header, "  " + "-" * (len(header) - 2)]
    for rank, entry in enumerate(ranked, start=1):
        pred = entry.prediction
        lines.append(
            f"  {rank:>4}  {entry.instrument_id:<5}  {entry.name[:16]:<16}  "
            f"{entry.score:>6.1f}  {pred.status.value:<12}  "
            f"{pred.safe_expected_gain:>7.1f}  {pred.risk_level:>5.2f}  "
            f"{pred.remaining_good_hours:>3}  {entry.tier.value}"
        )
    return "\n".join(lines)


# ── Market ────────────────────────────────────────────────────────────────────


def format_market_table(instruments: list[Instrument], hour: int) -> str:
    """Price and band of every instrument at absolute ``hour``."""
    header = (
        f"  {'ID':<5}  {'Name':<16}  {'Profile':<9}  {'Price':>10}  "
        f"{'Lower':>10}  {'Upper':>10}  Tags"
    )
    lines = [f"=== Market at hour {hour} ===", header, "  " + "-" * (len(header) - 2)]
    for inst in instruments:
        series = inst.price_series_cents
        if series:
            price_str = f"{series[min(hour, len(series) - 1)] / 100:.2f}"
        else:
            price_str = "-"
        lines.append(
            f"  {inst.id:<5}  {inst.name[:16]:<16}  {inst.profile.value:<9}  "
            f"{price_str:>10}  {inst.lower_band_cents / 100:>10.2f}  "
            f"{inst.upper_band_cents / 100:>10.2f}  {', '.join(inst.tags)}"
        )
    return "\n".join(lines)
