"""
Intraday limit-up predictor: turns an instrument's price series for one day
into a trend/status classification, a limit-up projection, gain estimates,
a risk level and trading windows.

Evaluation order
----------------
    trend → status → projection → gains → risk → windows → reason text

Later stages read earlier classifications; the order must not change.

Distance to the upper band
--------------------------
    distance = (upper - current) * 100 / upper          (percent of the band)

Status thresholds (first match wins)
------------------------------------
    1. LIMIT_UP    : distance <= 2
    2. NEAR_LIMIT  : distance <  10
    3. STAGNANT    : trend FLAT
    4. EARLY_STAGE : trend UP/STRONG_UP and distance > 30
       RISING      : trend UP/STRONG_UP otherwise
    5. FALLING     : trend DOWN/STRONG_DOWN

Limit-hour projection
---------------------
    g     = mean % gain over up-move hours × archetype multiplier
            × (1 + buff) when buff > 0.1
    hours = ceil(gap / (current × g / 100))

The projection is "reachable" only when ``hour + hours`` still falls within
the same day.

Risk level (clamped to [0, 1])
------------------------------
    base 0.5
    distance  < 5 : +0.4   < 15 : +0.2   > 50 : -0.1
    trend     DOWN/STRONG_DOWN : +0.3    STRONG_UP : -0.2
    archetype BEAR : +0.2    MOONSHOT : +0.1
    buff      > 0.15 : -0.2  > 0.08 : -0.1
"""

from __future__ import annotations

import math
from typing import Optional, Sequence

from market_sim.config import MarketConfig
from market_sim.models.effects import DailySectorEffects
from market_sim.models.instrument import Instrument
from market_sim.models.prediction import PredictionResult, PriceStatus, TrendType
from market_sim.simulation.effects import DailyEffectsTable
from market_sim.taxonomy.archetype_taxonomy import ProfileType

_DEFAULT_MARKET = MarketConfig()

LIMIT_UP_DISTANCE_PCT = 2.0
NEAR_LIMIT_DISTANCE_PCT = 10.0
EARLY_STAGE_DISTANCE_PCT = 30.0
FLAT_SHARE = 0.7
STRONG_DOMINANCE = 1.5
BUFF_UPLIFT_THRESHOLD = 0.1

PROFILE_GAIN_MULTIPLIER: dict[ProfileType, float] = {
    ProfileType.BEAR:     0.5,
    ProfileType.SIDEWAYS: 0.8,
    ProfileType.BULL:     1.2,
    ProfileType.MOONSHOT: 1.8,
}

TREND_CONFIDENCE: dict[TrendType, float] = {
    TrendType.STRONG_UP:   0.8,
    TrendType.UP:          0.6,
    TrendType.FLAT:        0.3,
    TrendType.DOWN:        0.1,
    TrendType.STRONG_DOWN: 0.0,
}

NEAR_LIMIT_GAIN_CAP = 5.0


def predict(
    instrument: Instrument,
    day: int,
    hour: int,
    daily_effects: Optional[DailyEffectsTable] = None,
    sector_buff_strength: Optional[float] = None,
    market: Optional[MarketConfig] = None,
) -> PredictionResult:
    """Analyse ``instrument`` on ``day`` (1-based) up to ``hour`` (0-based).

    Pure: reads the series, never mutates the instrument, never raises for
    missing data.

    Args:
        instrument:           Instrument with a seeded price series.
        day:                  1-based day index.
        hour:                 Hour within the day, ``0 <= hour < hours_per_day``.
        daily_effects:        Effects table used to derive the buff strength
                              when ``sector_buff_strength`` is not given.
        sector_buff_strength: Positive sector uplift for today; derived from
                              ``daily_effects`` when ``None`` (0.0 without a table).
        market:               Horizon constants; defaults to ``MarketConfig()``.

    Returns:
        A ``PredictionResult``. Empty series, out-of-range day/hour or hours
        not yet simulated yield a degenerate STAGNANT result with risk 1.0.
    """
    m = market or _DEFAULT_MARKET
    series = instrument.price_series_cents

    if not series:
        return _degenerate(instrument.id, day, hour, "No price data")
    if day < 1 or not 0 <= hour < m.hours_per_day:
        return _degenerate(instrument.id, day, hour, "Day or hour out of range")

    day_start = (day - 1) * m.hours_per_day
    current_index = day_start + hour
    if current_index >= len(series):
        return _degenerate(instrument.id, day, hour, "Hour not simulated yet")

    if sector_buff_strength is None:
        if daily_effects is not None:
            sector_buff_strength = sector_buff_strength_for(
                instrument, daily_effects.for_day(day)
            )
        else:
            sector_buff_strength = 0.0
    buff = sector_buff_strength

    current = series[current_index]
    upper = instrument.upper_band_cents
    day_prices = extract_day_prices(series, day_start, current_index)

    # 1. Trend
    trend = analyze_trend(day_prices)

    # 2. Status
    distance = distance_to_limit_pct(current, upper)
    status = determine_status(distance, trend)

    # 3. Projection
    projected_hour = -1
    will_hit = False
    predicted_hour: Optional[int] = None
    if status != PriceStatus.LIMIT_UP:
        hours_needed = project_hours_to_limit(
            day_prices, current, upper, instrument.profile, buff
        )
        if hours_needed is not None:
            projected_hour = hour + hours_needed
            if projected_hour < m.hours_per_day:
                will_hit = True
                predicted_hour = projected_hour
    else:
        projected_hour = find_limit_up_hour(series, day_start, current_index)
        will_hit = True
        predicted_hour = projected_hour

    # 4. Gains
    max_gain, safe_gain = expected_gains(current, upper, trend, status, buff)

    # 5. Risk
    risk = calculate_risk_level(instrument.profile, trend, distance, buff)

    # 6. Windows
    buy_window, sell_window, remaining = time_windows(
        status, hour, projected_hour, m.hours_per_day
    )

    # 7. Reason
    reason = status_reason(status, distance)

    return PredictionResult(
        instrument_id=instrument.id,
        current_day=day,
        current_hour=hour,
        current_price_cents=current,
        limit_up_price_cents=upper,
        trend=trend,
        status=status,
        status_reason=reason,
        distance_to_limit_pct=round(distance, 4),
        will_hit_limit_up=will_hit,
        predicted_limit_up_hour=predicted_hour,
        max_potential_gain=round(max_gain, 4),
        safe_expected_gain=round(safe_gain, 4),
        risk_level=risk,
        best_buy_window=buy_window,
        best_sell_window=sell_window,
        remaining_good_hours=remaining,
    )


# ── Inputs ────────────────────────────────────────────────────────────────────

def extract_day_prices(series: Sequence[int], day_start: int, current_index: int) -> list[int]:
    """Prices from ``day_start`` through ``current_index`` inclusive."""
    end = min(current_index, len(series) - 1)
    return list(series[day_start:end + 1])


def sector_buff_strength_for(instrument: Instrument, day_effects: DailySectorEffects) -> float:
    """Sum of today's *positive* effects over the instrument's tags."""
    total = 0.0
    for tag in instrument.tags:
        effect = day_effects.effect_for(tag)
        if effect > 0:
            total += effect
    return total


def distance_to_limit_pct(current_cents: int, upper_cents: int) -> float:
    """Distance from ``current_cents`` to the upper band, in percent of the band."""
    if upper_cents <= 0:
        return 0.0
    return (upper_cents - current_cents) * 100.0 / upper_cents


# ── Classification ────────────────────────────────────────────────────────────

def analyze_trend(prices: Sequence[int]) -> TrendType:
    """Classify the slice by counting up, down and unchanged moves.

    More than 70% unchanged moves (relative to the slice length) is FLAT
    regardless of the other counts; otherwise a side that outnumbers the
    other by more than 1.5x is "strong".
    """
    if len(prices) < 2:
        return TrendType.FLAT

    rising = falling = flat = 0
    for prev, cur in zip(prices, prices[1:]):
        if cur > prev:
            rising += 1
        elif cur < prev:
            falling += 1
        else:
            flat += 1

    if flat > len(prices) * FLAT_SHARE:
        return TrendType.FLAT
    if rising > falling * STRONG_DOMINANCE:
        return TrendType.STRONG_UP
    if rising > falling:
        return TrendType.UP
    if falling > rising * STRONG_DOMINANCE:
        return TrendType.STRONG_DOWN
    if falling > rising:
        return TrendType.DOWN
    return TrendType.FLAT


def determine_status(distance_pct: float, trend: TrendType) -> PriceStatus:
    """Map distance-to-band and trend to a ``PriceStatus`` (first match wins)."""
    if distance_pct <= LIMIT_UP_DISTANCE_PCT:
        return PriceStatus.LIMIT_UP
    if distance_pct < NEAR_LIMIT_DISTANCE_PCT:
        return PriceStatus.NEAR_LIMIT
    if trend == TrendType.FLAT:
        return PriceStatus.STAGNANT
    if trend in (TrendType.UP, TrendType.STRONG_UP):
        if distance_pct > EARLY_STAGE_DISTANCE_PCT:
            return PriceStatus.EARLY_STAGE
        return PriceStatus.RISING
    if trend in (TrendType.DOWN, TrendType.STRONG_DOWN):
        return PriceStatus.FALLING
    return PriceStatus.STAGNANT


# ── Projection ────────────────────────────────────────────────────────────────

def average_hourly_gain(prices: Sequence[int]) -> float:
    """Mean percent gain over the hours that moved up (0.0 if none did)."""
    gains = [
        (cur - prev) * 100.0 / prev
        for prev, cur in zip(prices, prices[1:])
        if cur > prev and prev > 0
    ]
    if not gains:
        return 0.0
    return sum(gains) / len(gains)


def project_hours_to_limit(
    prices: Sequence[int],
    current_cents: int,
    upper_cents: int,
    profile: ProfileType,
    buff: float,
) -> Optional[int]:
    """Hours needed to close the gap to the upper band at the observed pace.

    Returns:
        A positive hour count, or ``None`` when the slice has no upward pace
        or there is no gap left.
    """
    gain_pct = average_hourly_gain(prices) * PROFILE_GAIN_MULTIPLIER[profile]
    if buff > BUFF_UPLIFT_THRESHOLD:
        gain_pct *= 1.0 + buff

    gap = upper_cents - current_cents
    if gain_pct <= 0 or gap <= 0 or current_cents <= 0:
        return None

    per_hour = current_cents * gain_pct / 100.0
    return max(1, math.ceil(gap / per_hour))


def find_limit_up_hour(series: Sequence[int], day_start: int, current_index: int) -> int:
    """Hour within the day of the last price change (0 if none since open)."""
    for i in range(min(current_index, len(series) - 1), day_start, -1):
        if series[i] != series[i - 1]:
            return i - day_start
    return 0


# ── Gains and risk ────────────────────────────────────────────────────────────

def expected_gains(
    current_cents: int,
    upper_cents: int,
    trend: TrendType,
    status: PriceStatus,
    buff: float,
) -> tuple[float, float]:
    """Return ``(max_potential_gain, safe_expected_gain)`` in percent."""
    max_gain = 0.0
    if current_cents > 0:
        max_gain = (upper_cents - current_cents) * 100.0 / current_cents

    buff_multiplier = 1.2 if buff > BUFF_UPLIFT_THRESHOLD else 1.0
    safe_gain = max_gain * TREND_CONFIDENCE[trend] * buff_multiplier

    if status == PriceStatus.LIMIT_UP:
        safe_gain = 0.0
    elif status == PriceStatus.NEAR_LIMIT:
        safe_gain = min(safe_gain, NEAR_LIMIT_GAIN_CAP)
    return max_gain, safe_gain


def calculate_risk_level(
    profile: ProfileType,
    trend: TrendType,
    distance_pct: float,
    buff: float,
) -> float:
    """Additive risk score clamped to ``[0, 1]``."""
    risk = 0.5

    if distance_pct < 5:
        risk += 0.4
    elif distance_pct < 15:
        risk += 0.2
    elif distance_pct > 50:
        risk -= 0.1

    if trend in (TrendType.DOWN, TrendType.STRONG_DOWN):
        risk += 0.3
    elif trend == TrendType.STRONG_UP:
        risk -= 0.2

    if profile == ProfileType.BEAR:
        risk += 0.2
    elif profile == ProfileType.MOONSHOT:
        risk += 0.1

    if buff > 0.15:
        risk -= 0.2
    elif buff > 0.08:
        risk -= 0.1

    return round(_clamp(risk, 0.0, 1.0), 4)


# ── Text ──────────────────────────────────────────────────────────────────────

def time_windows(
    status: PriceStatus,
    hour: int,
    projected_hour: int,
    hours_per_day: int = 24,
) -> tuple[str, str, int]:
    """Return ``(best_buy_window, best_sell_window, remaining_good_hours)``.

    ``projected_hour`` is ``-1`` when no projection exists. Any computed
    window end is forced past ``hour`` (3 hours for EARLY_STAGE, 2 for RISING).
    """
    last_hour = hours_per_day - 1

    if status == PriceStatus.LIMIT_UP:
        return "At limit, do not buy", "At limit, consider selling", 0

    if status == PriceStatus.NEAR_LIMIT:
        return (
            "Near limit, high risk",
            f"{hour}:00 sell now",
            max(0, projected_hour - hour),
        )

    if status == PriceStatus.EARLY_STAGE:
        safe_end = min(projected_hour - 2, hour + 6) if projected_hour > 0 else hour + 6
        if safe_end <= hour:
            safe_end = hour + 3
        buy = f"{hour}:00 - {min(safe_end, last_hour)}:00 (best)"
        if 0 < projected_hour <= last_hour:
            sell = f"{max(projected_hour - 1, hour + 1)}:00 - {projected_hour}:00"
        else:
            sell = f"around {min(safe_end + 3, last_hour)}:00"
        return buy, sell, max(0, safe_end - hour)

    if status == PriceStatus.RISING:
        end = min(projected_hour - 1, hour + 4) if projected_hour > 0 else hour + 4
        if end <= hour:
            end = hour + 2
        buy = f"{hour}:00 - {min(end, last_hour)}:00"
        if 0 < projected_hour <= last_hour:
            sell = f"around {projected_hour}:00"
        else:
            sell = f"around {min(end + 2, last_hour)}:00"
        return buy, sell, max(0, end - hour)

    if status == PriceStatus.FALLING:
        return "Falling, do not buy", f"{hour}:00 cut losses", 0

    return "Sideways, wait", "Wait for a clear signal", 0


def status_reason(status: PriceStatus, distance_pct: float) -> str:
    """One-line explanation of ``status``."""
    if status == PriceStatus.EARLY_STAGE:
        return f"{distance_pct:.1f}% room to the limit and trending up, good time to buy"
    if status == PriceStatus.RISING:
        return f"Rising, {distance_pct:.1f}% from the limit, still an opportunity"
    if status == PriceStatus.NEAR_LIMIT:
        return f"Only {distance_pct:.1f}% from the limit, elevated risk"
    if status == PriceStatus.LIMIT_UP:
        return "At the limit price, no upside left"
    if status == PriceStatus.FALLING:
        return "Price falling, do not buy"
    return "Price moving sideways, wait for a clear signal"


def _degenerate(instrument_id: str, day: int, hour: int, reason: str) -> PredictionResult:
    return PredictionResult(
        instrument_id=instrument_id,
        current_day=day,
        current_hour=hour,
        status=PriceStatus.STAGNANT,
        status_reason=reason,
        risk_level=1.0,
    )


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))
