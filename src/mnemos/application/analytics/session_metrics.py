"""
Session-level performance metrics and the composite Performance Index.

This is a pure computation module with no I/O.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from mnemos.application.config import AnalyticsConfig
from mnemos.application.utils.numbers import mean, population_std, round_half_up, round_int
from mnemos.domain import constants as c
from mnemos.domain.analytics.models import TestSessionSummary
from mnemos.domain.analytics.results import (
    CalculationBreakdown,
    MetricBreakdown,
    PerformanceMetrics,
    PerformanceTimelinePoint,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RadarPoint:
    metric: str
    value: int
    full_mark: int = 100


@dataclass(frozen=True)
class ImprovementWindow:
    period: str
    accuracy: int
    efficiency: int
    speed: int


@dataclass(frozen=True)
class DifficultyBucket:
    difficulty: str
    count: int
    avg_score: int
    avg_hints: float
    efficiency: int


class SessionMetricsCalculator:
    """
    Computes PerformanceMetrics from a learner's session history.

    Stateless and side-effect free.
    """

    def __init__(self, config: AnalyticsConfig | None = None):
        self._config = config or AnalyticsConfig()

    # ------------------------------------------------------------------
    # Timeline
    # ------------------------------------------------------------------

    def build_timeline(self, sessions: Sequence[TestSessionSummary]) -> list[PerformanceTimelinePoint]:
        """
        Most recent sessions, oldest first, enriched with seconds per word.

        The per-word time is real when the session recorded its total
        duration; otherwise it is estimated and flagged.
        """
        ordered = sorted(sessions, key=lambda s: s.timestamp)[-self._config.timeline_window :]
        points = []
        for index, session in enumerate(ordered):
            words = session.answered_words
            if session.total_time_ms and words > 0:
                avg_time = round_half_up(session.total_time_ms / 1000 / words, 1)
                has_real_time = True
            else:
                avg_time = self._estimate_seconds_per_word(session)
                has_real_time = False
            points.append(
                PerformanceTimelinePoint(
                    index=index,
                    timestamp=session.timestamp,
                    percentage=session.percentage,
                    correct_words=session.correct_words,
                    incorrect_words=session.incorrect_words,
                    total_words=words,
                    hints_used=session.hints_used,
                    difficulty=session.difficulty,
                    avg_time_per_word=avg_time,
                    has_real_time=has_real_time,
                    is_estimated=not has_real_time,
                    session_id=session.session_id,
                )
            )
        estimated = sum(1 for p in points if p.is_estimated)
        if estimated:
            logger.debug("Estimated per-word time for %d of %d sessions", estimated, len(points))
        return points

    def _estimate_seconds_per_word(self, session: TestSessionSummary) -> float:
        difficulty_mult = c.DIFFICULTY_TIME_MULTIPLIERS.get(session.difficulty, 1.0)

        performance_mult = c.TOP_PERFORMANCE_TIME_MULTIPLIER
        for bound, multiplier in c.PERFORMANCE_TIME_MULTIPLIERS:
            if session.percentage < bound:
                performance_mult = multiplier
                break

        hints_mult = c.HINT_TIME_MULTIPLIER if session.hints_used > 0 else 1.0
        seconds = self._config.baseline_seconds_per_word * difficulty_mult * performance_mult * hints_mult
        return round_half_up(seconds, 1)

    # ------------------------------------------------------------------
    # Metrics
    # ------------------------------------------------------------------

    def compute_metrics(
        self,
        timeline: Sequence[PerformanceTimelinePoint],
        sessions: Sequence[TestSessionSummary],
    ) -> PerformanceMetrics | None:
        """
        Compute the metric bundle. Returns None only when there are no sessions.
        """
        if not sessions:
            return None

        cfg = self._config
        percentages = [p.percentage for p in timeline]

        precision = round_int(mean(percentages))
        consistency = self._compute_consistency(percentages)
        efficiency = self._compute_efficiency(timeline, sessions)
        speed = self._compute_speed(timeline)
        difficulty = self._compute_difficulty_score(sessions)

        w = cfg.weights
        breakdown = CalculationBreakdown(
            precision=MetricBreakdown(precision, w.precision, round_int(precision * w.precision)),
            consistency=MetricBreakdown(consistency, w.consistency, round_int(consistency * w.consistency)),
            efficiency=MetricBreakdown(efficiency, w.efficiency, round_int(efficiency * w.efficiency)),
            speed=MetricBreakdown(speed, w.speed, round_int(speed * w.speed)),
            difficulty=MetricBreakdown(difficulty, w.difficulty, round_int(difficulty * w.difficulty)),
        )
        # Terms are rounded before summing; a custom weighting can overshoot by a point
        performance_index = max(0, min(100, breakdown.total))

        times = [p.avg_time_per_word for p in timeline]
        real_time = sum(1 for p in timeline if p.has_real_time)

        return PerformanceMetrics(
            accuracy=precision,
            consistency=consistency,
            hint_efficiency=efficiency,
            speed_score=speed,
            difficulty_score=difficulty,
            performance_index=performance_index,
            best_streak=self._compute_best_streak(percentages),
            improvement_trend=self._compute_improvement_trend(percentages),
            learning_velocity=self._compute_learning_velocity(percentages),
            avg_speed=round_half_up(mean(times), 1),
            recent_performance=round_int(mean(percentages[-c.RECENT_PERFORMANCE_WINDOW :])),
            real_time_percentage=round_int(100 * real_time / len(timeline)) if timeline else 0,
            total_sessions=len(sessions),
            breakdown=breakdown,
        )

    def _compute_consistency(self, percentages: list[float]) -> int:
        if len(percentages) < 2:
            return 100
        return max(0, round_int(100 - population_std(percentages)))

    def _compute_efficiency(
        self,
        timeline: Sequence[PerformanceTimelinePoint],
        sessions: Sequence[TestSessionSummary],
    ) -> int:
        """
        Share of words answered without hints.

        Uses per-word timing records when the sessions in the timeline carry
        them, else the session hint totals.
        """
        windowed = sorted(sessions, key=lambda s: s.timestamp)[-len(timeline) :] if timeline else []
        detail = [wt for s in windowed for wt in s.word_times]
        if detail:
            without_hints = sum(1 for wt in detail if not wt.used_hint)
            return round_int(100 * without_hints / len(detail))

        total_words = sum(p.total_words for p in timeline)
        if total_words == 0:
            return 100
        total_hints = sum(p.hints_used for p in timeline)
        return max(0, round_int(100 - 100 * total_hints / total_words))

    def _compute_speed(self, timeline: Sequence[PerformanceTimelinePoint]) -> int:
        if not timeline:
            return self._config.speed_empty_score
        return self.speed_score(mean([p.avg_time_per_word for p in timeline]))

    def speed_score(self, seconds_per_word: float) -> int:
        """Map seconds per word to a score with the step table (upper bounds inclusive)."""
        for bound, score in self._config.speed_steps:
            if seconds_per_word <= bound:
                return score
        return self._config.speed_floor_score

    def _compute_difficulty_score(self, sessions: Sequence[TestSessionSummary]) -> int:
        """Mean score of the large sessions over the whole history, not just the timeline."""
        cfg = self._config
        large = [s.percentage for s in sessions if s.total_words >= cfg.large_session_words]
        if not large:
            return cfg.default_difficulty_score
        return min(100, round_int(mean(large) + cfg.difficulty_bonus))

    def _compute_best_streak(self, percentages: list[float]) -> int:
        best = run = 0
        for pct in percentages:
            if pct >= self._config.streak_threshold:
                run += 1
                best = max(best, run)
            else:
                run = 0
        return best

    def _compute_improvement_trend(self, percentages: list[float]) -> float:
        """Mean of the newest half minus mean of the oldest half (halves capped at 5)."""
        half = min(c.TREND_HALF_MAX, len(percentages) // 2)
        if half == 0:
            return 0.0
        return round_half_up(mean(percentages[-half:]) - mean(percentages[:half]), 1)

    def _compute_learning_velocity(self, percentages: list[float]) -> float:
        window = c.VELOCITY_WINDOW
        if len(percentages) <= window:
            return 0.0
        return round_half_up(mean(percentages[-window:]) - mean(percentages[:window]), 1)

    # ------------------------------------------------------------------
    # Chart helpers
    # ------------------------------------------------------------------

    def radar_data(self, metrics: PerformanceMetrics) -> list[RadarPoint]:
        return [
            RadarPoint("Precision", metrics.accuracy),
            RadarPoint("Consistency", metrics.consistency),
            RadarPoint("Efficiency", metrics.hint_efficiency),
            RadarPoint("Speed", metrics.speed_score),
            RadarPoint("Difficulty handling", metrics.difficulty_score),
        ]

    def improvement_windows(
        self,
        timeline: Sequence[PerformanceTimelinePoint],
        size: int = 5,
        step: int = 2,
    ) -> list[ImprovementWindow]:
        """Sliding windows over the timeline, for progress charts."""
        windows = []
        for start in range(0, len(timeline) - size + 1, step):
            window = timeline[start : start + size]
            avg_score = mean([p.percentage for p in window])
            avg_hints = mean([p.hints_used for p in window])
            avg_speed = mean([p.avg_time_per_word for p in window])
            words = sum(p.total_words for p in window)
            hint_penalty = 100 * avg_hints / words if words else 0.0
            windows.append(
                ImprovementWindow(
                    period=f"Test {start + 1}-{start + size}",
                    accuracy=round_int(avg_score),
                    efficiency=max(0, round_int(avg_score - hint_penalty)),
                    speed=round_int(max(0.0, 100 - min(100.0, avg_speed * 3))) if avg_speed > 0 else 50,
                )
            )
        return windows

    def difficulty_analysis(self, sessions: Sequence[TestSessionSummary]) -> list[DifficultyBucket]:
        """Group sessions by size (30+ words hard, 15+ medium, else easy)."""
        buckets: dict[str, list[TestSessionSummary]] = {"easy": [], "medium": [], "hard": []}
        for session in sessions:
            if session.total_words >= 30:
                buckets["hard"].append(session)
            elif session.total_words >= 15:
                buckets["medium"].append(session)
            else:
                buckets["easy"].append(session)

        result = []
        for name, group in buckets.items():
            if not group:
                continue
            avg_score = mean([s.percentage for s in group])
            total_hints = sum(s.hints_used for s in group)
            total_words = sum(s.total_words for s in group)
            hint_penalty = 100 * total_hints / total_words if total_words else 0.0
            result.append(
                DifficultyBucket(
                    difficulty=name.capitalize(),
                    count=len(group),
                    avg_score=round_int(avg_score),
                    avg_hints=round_half_up(total_hints / len(group), 1),
                    efficiency=round_int(avg_score - hint_penalty),
                )
            )
        return result
