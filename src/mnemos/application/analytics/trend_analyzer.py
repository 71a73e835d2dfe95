"""
Trend analysis over a learner's score series.

Closed-form statistics only (least squares, weighted moving average,
discrete derivatives, Pearson correlation), recomputed on every call.
Degenerate inputs resolve to documented neutral values, never NaN.
"""

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from mnemos.application.config import AnalyticsConfig
from mnemos.application.utils.numbers import (
    clamp,
    mean,
    population_std,
    round_half_up,
    round_int,
    safe_ratio,
)
from mnemos.domain.analytics.models import AttemptRecord, TestSessionSummary
from mnemos.domain.analytics.results import MetricVelocity, RegressionFit, TrendAnalysisResult

from .attempt_aggregator import WordPerformanceAnalysis

logger = logging.getLogger(__name__)

MS_PER_MINUTE = 60_000


# ---------- Numeric routines ----------


def linear_regression(points: Sequence[tuple[float, float]]) -> RegressionFit:
    """
    Ordinary least squares fit of y against x.

    Fewer than two points give an all-zero fit. When every x is equal the
    slope is undefined; the fit degrades to a flat line through the mean.
    """
    n = len(points)
    if n < 2:
        return RegressionFit(0.0, 0.0, 0.0)

    sum_x = sum(x for x, _ in points)
    sum_y = sum(y for _, y in points)
    sum_xy = sum(x * y for x, y in points)
    sum_xx = sum(x * x for x, _ in points)

    denominator = n * sum_xx - sum_x * sum_x
    if denominator == 0:
        return RegressionFit(0.0, sum_y / n, 0.0)

    slope = (n * sum_xy - sum_x * sum_y) / denominator
    intercept = (sum_y - slope * sum_x) / n

    mean_y = sum_y / n
    ss_total = sum((y - mean_y) ** 2 for _, y in points)
    ss_residual = sum((y - (slope * x + intercept)) ** 2 for x, y in points)
    r_squared = max(0.0, 1 - ss_residual / ss_total) if ss_total > 0 else 0.0
    return RegressionFit(slope, intercept, r_squared)


def fit_series(values: Sequence[float]) -> RegressionFit:
    """Regression of a series against its index (0, 1, 2, ...)."""
    return linear_regression([(float(i), float(v)) for i, v in enumerate(values)])


def weighted_moving_average(values: Sequence[float], weights: Sequence[float]) -> float:
    """
    Weighted mean of the most recent ``len(weights)`` values.

    With fewer values than weights, the leading weights are kept and
    renormalized to sum to 1.
    """
    if not values or not weights:
        return 0.0
    recent = list(values)[-len(weights) :]
    used = list(weights)[: len(recent)]
    total = sum(used)
    if total == 0:
        return mean(recent)
    return sum(v * w for v, w in zip(recent, used)) / total


def acceleration(values: Sequence[float]) -> float:
    """Mean of the second differences (discrete second derivative)."""
    if len(values) < 3:
        return 0.0
    first = [b - a for a, b in zip(values, values[1:])]
    second = [b - a for a, b in zip(first, first[1:])]
    return mean(second)


def moving_std(values: Sequence[float], window: int | None = None) -> float:
    """Population standard deviation over the trailing window."""
    sample = list(values)[-window:] if window else list(values)
    if len(sample) < 2:
        return 0.0
    return population_std(sample)


def pearson(xs: Sequence[float], ys: Sequence[float]) -> float:
    """
    Pearson correlation coefficient.

    Returns 0 for fewer than two pairs or when either series is constant.
    """
    n = min(len(xs), len(ys))
    if n < 2:
        return 0.0
    xs, ys = list(xs)[:n], list(ys)[:n]
    if max(xs) == min(xs) or max(ys) == min(ys):
        return 0.0

    mean_x, mean_y = mean(xs), mean(ys)
    cov = sum((x - mean_x) * (y - mean_y) for x, y in zip(xs, ys))
    var_x = sum((x - mean_x) ** 2 for x in xs)
    var_y = sum((y - mean_y) ** 2 for y in ys)
    denominator = math.sqrt(var_x * var_y)
    if denominator == 0:
        return 0.0
    return clamp(cov / denominator, -1.0, 1.0)


def stability_factor(values: Sequence[float]) -> float:
    return 1 - min(1.0, moving_std(values) / 100)


def direction(accel: float, threshold: float = 0.1) -> str:
    if accel > threshold:
        return "accelerating"
    if accel < -threshold:
        return "decelerating"
    return "steady"


# ---------- Session enrichment ----------


@dataclass(frozen=True)
class EnrichedSession:
    """
    A session with the derived quantities trend analysis works on.

    Attributes:
        score: Percentage clamped to 0..100.
        days_since_start: Fractional days since the first session.
        words_per_minute: 0 when the session has no recorded duration.
        local_trend: Score change from the previous session (0 for the first two).
    """

    index: int
    timestamp: datetime
    score: float
    days_since_start: float
    session_duration_ms: int
    words_per_minute: float
    local_trend: float
    total_words: int
    hints_used: int


def enrich_sessions(sessions: Sequence[TestSessionSummary]) -> list[EnrichedSession]:
    ordered = sorted(sessions, key=lambda s: s.timestamp)
    if not ordered:
        return []
    start = ordered[0].timestamp
    enriched = []
    for index, session in enumerate(ordered):
        duration = session.total_time_ms or 0
        words = session.total_words
        wpm = words / (duration / MS_PER_MINUTE) if words > 0 and duration > 0 else 0.0
        score = clamp(session.percentage, 0.0, 100.0)
        local = 0.0 if index < 2 else score - clamp(ordered[index - 1].percentage, 0.0, 100.0)
        enriched.append(
            EnrichedSession(
                index=index,
                timestamp=session.timestamp,
                score=score,
                days_since_start=(session.timestamp - start) / timedelta(days=1),
                session_duration_ms=duration,
                words_per_minute=wpm,
                local_trend=local,
                total_words=words,
                hints_used=session.hints_used,
            )
        )
    return enriched


def sessions_per_week(enriched: Sequence[EnrichedSession]) -> float:
    if not enriched:
        return 0.0
    return len(enriched) / max(1.0, enriched[-1].days_since_start / 7)


def words_per_minute(enriched: Sequence[EnrichedSession], window: int = 5) -> float:
    """Throughput of the last `window` sessions, 0 without recorded durations."""
    recent = list(enriched)[-window:]
    total_words = sum(s.total_words for s in recent)
    total_ms = sum(s.session_duration_ms for s in recent)
    return total_words / (total_ms / MS_PER_MINUTE) if total_ms > 0 else 0.0


def efficiency_trend(enriched: Sequence[EnrichedSession]) -> float:
    if len(enriched) < 4:
        return 0.0
    mid = len(enriched) // 2
    return words_per_minute(enriched[mid:]) - words_per_minute(enriched[:mid])


def speed_velocity(enriched: Sequence[EnrichedSession]) -> float:
    if len(enriched) < 3:
        return 0.0
    return fit_series([s.words_per_minute for s in enriched]).slope


# ---------- Word enrichment ----------


def word_improvement_rate(attempts: Sequence[AttemptRecord]) -> float:
    """Share of consecutive attempt pairs that went from incorrect to correct."""
    if len(attempts) < 2:
        return 0.0
    ordered = sorted(attempts, key=lambda a: a.timestamp)
    recoveries = sum(1 for prev, cur in zip(ordered, ordered[1:]) if cur.correct and not prev.correct)
    return recoveries / (len(ordered) - 1)


def word_difficulty_score(analysis: WordPerformanceAnalysis) -> float:
    """0..100 where higher means harder: low accuracy, many attempts, slow answers."""
    accuracy_adjustment = (analysis.accuracy - 50) * -0.5
    attempts_adjustment = min(25, analysis.total_attempts * 2)
    time_adjustment = 10 if analysis.avg_time * 1000 > 5000 else 0
    return clamp(50 + accuracy_adjustment + attempts_adjustment + time_adjustment, 0.0, 100.0)


@dataclass(frozen=True)
class WordTrendStats:
    word_id: str
    total_attempts: int
    success_rate: float
    improvement_rate: float
    difficulty_score: float
    average_time_ms: float
    hints_per_attempt: float


def enrich_words(analyses: Sequence[WordPerformanceAnalysis]) -> list[WordTrendStats]:
    stats = []
    for analysis in analyses:
        if not analysis.has_performance_data:
            continue
        stats.append(
            WordTrendStats(
                word_id=analysis.word_id,
                total_attempts=analysis.total_attempts,
                success_rate=safe_ratio(analysis.correct_attempts, analysis.total_attempts),
                improvement_rate=word_improvement_rate(analysis.attempts),
                difficulty_score=word_difficulty_score(analysis),
                average_time_ms=analysis.avg_time * 1000.0,
                hints_per_attempt=safe_ratio(analysis.hints_used, analysis.total_attempts),
            )
        )
    return stats


# ---------- Input validation ----------


@dataclass(frozen=True)
class DataValidation:
    """Which analyses the available history supports."""

    can_analyze: bool
    data_quality: int
    recent_sessions: int
    available_analyses: list[str] = field(default_factory=list)
    missing_requirements: list[str] = field(default_factory=list)


class TrendAnalyzer:
    """
    Velocity and data-sufficiency analysis over enriched sessions.

    Stateless and side-effect free.
    """

    def __init__(self, config: AnalyticsConfig | None = None):
        self._config = config or AnalyticsConfig()

    def analyze_velocity(self, enriched: Sequence[EnrichedSession]) -> TrendAnalysisResult:
        cfg = self._config
        n = len(enriched)
        if n < cfg.min_sessions_for_velocity:
            logger.debug("Velocity needs %d sessions, have %d", cfg.min_sessions_for_velocity, n)
            return TrendAnalysisResult(
                fit=RegressionFit(0.0, 0.0, 0.0),
                velocity=0.0,
                current_level=0.0,
                acceleration=0.0,
                stability_factor=0.0,
                direction="steady",
                confidence=0,
                has_sufficient_data=False,
            )

        scores = [s.score for s in enriched]
        fit = fit_series(scores)
        accel = acceleration(scores)
        stability = stability_factor(scores[-cfg.stability_window :])

        return TrendAnalysisResult(
            fit=fit,
            velocity=round_half_up(fit.slope, 2),
            current_level=round_half_up(weighted_moving_average(scores, cfg.wma_weights), 2),
            acceleration=round_half_up(accel, 2),
            stability_factor=round_half_up(stability, 2),
            direction=direction(accel, cfg.direction_threshold),
            confidence=min(100, round_int(stability * 100)),
            velocity_by_metric=MetricVelocity(
                accuracy=fit.slope * n,
                efficiency=efficiency_trend(enriched) / n,
                speed=speed_velocity(enriched),
            ),
        )

    def validate_inputs(
        self,
        sessions: Sequence[TestSessionSummary],
        word_count: int,
        as_of: datetime | None = None,
        dropped_sessions: int = 0,
    ) -> DataValidation:
        """
        Check which analyses the history can support.

        `dropped_sessions` counts records rejected at ingestion (typically for
        a missing timestamp); timing analysis needs 80% of records usable.
        """
        cfg = self._config
        available, missing = [], []

        n = len(sessions)
        if n >= cfg.min_sessions_for_velocity:
            available.append("Learning velocity")
        else:
            missing.append(
                f"Learning velocity: needs at least {cfg.min_sessions_for_velocity} tests "
                f"(have {n}). Complete {cfg.min_sessions_for_velocity - n} more."
            )

        recent = 0
        if sessions:
            reference = as_of or max(s.timestamp for s in sessions)
            cutoff = reference - timedelta(days=cfg.recent_days)
            recent = sum(1 for s in sessions if s.timestamp > cutoff)
        if recent >= cfg.min_points_for_projection:
            available.append("Future projections")
        else:
            missing.append(
                f"Future projections: needs {cfg.min_points_for_projection} tests in the last "
                f"{cfg.recent_days} days (have {recent})."
            )

        if word_count >= cfg.min_words_for_patterns:
            available.append("Pattern analysis")
        else:
            missing.append(
                f"Pattern analysis: needs performance data for {cfg.min_words_for_patterns} "
                f"words (have {word_count})."
            )

        records = n + dropped_sessions
        if n >= 0.8 * records:
            available.append("Timing analysis")
        else:
            missing.append(
                f"Timing analysis: needs valid timestamps on 80% of tests "
                f"(have {round_int(100 * n / records)}%)."
            )

        quality = min(100, round_int((n * 10 + word_count * 5 + recent * 15) / 3))
        return DataValidation(
            can_analyze=len(available) >= 2,
            data_quality=quality,
            recent_sessions=recent,
            available_analyses=available,
            missing_requirements=missing,
        )
