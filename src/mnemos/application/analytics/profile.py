"""
Descriptive learner classification.

Profiles are recomputed on every run from the enriched session series
and per-word statistics; nothing here is persisted.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from mnemos.application.config import AnalyticsConfig
from mnemos.application.utils.numbers import clamp, mean, round_int, variance
from mnemos.domain import constants as c
from mnemos.domain.analytics.results import LearnerProfile

from .pattern_detector import slot_averages
from .trend_analyzer import EnrichedSession, WordTrendStats, fit_series, moving_std

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StudyFrequency:
    sessions_per_week: int
    distribution: str  # "daily", "every_other_day", "weekends" or "custom"


def optimal_session_length(
    enriched: Sequence[EnrichedSession],
    min_minutes: int = c.MIN_SESSION_MINUTES,
    max_minutes: int = c.MAX_SESSION_MINUTES,
    default: int = c.DEFAULT_SESSION_MINUTES,
) -> int:
    """Mean length in minutes of sessions scoring above 70%, clamped to the bounds."""
    good = [s for s in enriched if s.score > 70]
    if not good:
        return default
    minutes = mean([s.session_duration_ms / 60_000 for s in good])
    return int(clamp(round_int(minutes), min_minutes, max_minutes))


def optimal_frequency(enriched: Sequence[EnrichedSession]) -> StudyFrequency:
    """Recommended sessions per week: more when scores are high, fewer when low."""
    if not enriched:
        return StudyFrequency(3, "every_other_day")
    days = max(1.0, enriched[-1].days_since_start)
    current = len(enriched) / days * 7
    average = mean([s.score for s in enriched])
    if average > 80:
        current = min(7.0, current * 1.2)
    elif average < 50:
        current = max(2.0, current * 0.8)
    per_week = int(clamp(round_int(current), 2, 7))
    if per_week >= 6:
        distribution = "daily"
    elif per_week >= 4:
        distribution = "every_other_day"
    elif per_week <= 2:
        distribution = "weekends"
    else:
        distribution = "custom"
    return StudyFrequency(per_week, distribution)


def peak_hours(
    enriched: Sequence[EnrichedSession],
    limit: int = 3,
    min_count: int = c.MIN_TESTS_PER_BUCKET,
) -> list[int]:
    """Hours of day with enough sessions averaging above 70%, best first."""
    hourly = slot_averages(enriched, lambda s: s.timestamp.hour, min_count)
    return [a.slot for a in hourly if a.avg_score > 70][:limit]


class LearnerProfiler:
    """
    Classifies a learner from accuracy, throughput and stability.

    Stateless and side-effect free.
    """

    def __init__(self, config: AnalyticsConfig | None = None):
        self._config = config or AnalyticsConfig()

    def build_profile(
        self,
        enriched: Sequence[EnrichedSession],
        words: Sequence[WordTrendStats],
    ) -> LearnerProfile:
        if not enriched:
            logger.debug("No sessions, returning default profile")
            return LearnerProfile(
                learner_type="mixed",
                learning_style="adaptive",
                preferred_difficulty="medium",
                optimal_session_length_minutes=c.INSUFFICIENT_SESSION_MINUTES,
                peak_performance_hours=list(c.DEFAULT_PEAK_HOURS),
                improvement_areas=["Complete more tests to build a profile"],
                confidence=0,
                has_sufficient_data=False,
            )

        cfg = self._config
        accuracy = mean([s.score for s in enriched])
        wpm = mean([s.words_per_minute for s in enriched])
        n = len(enriched)

        return LearnerProfile(
            learner_type=self._learner_type(accuracy, wpm),
            learning_style=self._learning_style(accuracy, wpm),
            preferred_difficulty=self._preferred_difficulty(words),
            optimal_session_length_minutes=optimal_session_length(
                enriched, cfg.min_session_minutes, cfg.max_session_minutes, cfg.default_session_minutes
            ),
            peak_performance_hours=peak_hours(enriched, min_count=cfg.min_tests_per_bucket),
            strengths=self._strengths(enriched, wpm),
            challenges=self._challenges(enriched, accuracy, wpm),
            improvement_areas=self._improvement_areas(enriched, accuracy, wpm),
            confidence=min(100, n * 5 + len(words) * 2 + (30 if n > 10 else 0)),
        )

    # ------------------------------------------------------------------
    # Classification
    # ------------------------------------------------------------------

    def _learner_type(self, accuracy: float, wpm: float) -> str:
        if accuracy > 85 and wpm > 2.5:
            return "analytical"
        if wpm > 3:
            return "intuitive"
        if accuracy > 80:
            return "visual"
        return "mixed"

    def _learning_style(self, accuracy: float, wpm: float) -> str:
        if accuracy > 75 and wpm < 2:
            return "methodical"
        if wpm > 3 and accuracy > 65:
            return "intuitive"
        if accuracy > 80:
            return "analytical"
        return "adaptive"

    def _preferred_difficulty(self, words: Sequence[WordTrendStats]) -> str:
        if not words:
            return "medium"
        average = mean([w.difficulty_score for w in words])
        if average < 35:
            return "easy"
        if average > 65:
            return "hard"
        return "medium"

    # ------------------------------------------------------------------
    # Strengths and challenges
    # ------------------------------------------------------------------

    def _strengths(self, enriched: Sequence[EnrichedSession], wpm: float) -> list[str]:
        strengths = []
        if len(enriched) > 5 and moving_std([s.score for s in enriched], 10) < 15:
            strengths.append("Consistent performance")
        if fit_series([s.score for s in enriched]).slope > 1:
            strengths.append("Fast learner")
        if wpm > 2.5:
            strengths.append("High efficiency")
        return strengths

    def _challenges(self, enriched: Sequence[EnrichedSession], accuracy: float, wpm: float) -> list[str]:
        challenges = []
        if accuracy < 60:
            challenges.append("Accuracy needs work")
        if wpm < 1.5:
            challenges.append("Response speed")
        if len(enriched) > 5 and moving_std([s.score for s in enriched], 10) > 25:
            challenges.append("Variable performance")
        return challenges

    def _improvement_areas(self, enriched: Sequence[EnrichedSession], accuracy: float, wpm: float) -> list[str]:
        areas = []
        if accuracy < 70:
            areas.append("Accuracy")
        if wpm < 2:
            areas.append("Speed")
        if len(enriched) > 5 and variance([s.score for s in enriched]) > 300:
            areas.append("Consistency")
        return areas or ["General consolidation"]
