"""
Forward projections of a learner's scores over fixed horizons.

The score regression is evaluated `days / 7` index steps past the last
session, so one index step stands for roughly one week of study.
"""

import logging
from collections.abc import Sequence
from datetime import datetime, timedelta

from mnemos.application.config import AnalyticsConfig
from mnemos.application.utils.numbers import clamp, round_half_up, round_int
from mnemos.domain import constants as c
from mnemos.domain.analytics.results import (
    Milestone,
    ProjectedMetrics,
    ProjectionFactor,
    ProjectionResult,
    RegressionFit,
)

from .trend_analyzer import (
    EnrichedSession,
    efficiency_trend,
    fit_series,
    moving_std,
    sessions_per_week,
    speed_velocity,
    words_per_minute,
)

logger = logging.getLogger(__name__)


class ProjectionEngine:
    """
    Extrapolates the score trend forward with a confidence band.

    Stateless and side-effect free. Confidence comes from the regression's
    goodness of fit; milestone probabilities are fixed labels.
    """

    def __init__(self, config: AnalyticsConfig | None = None):
        self._config = config or AnalyticsConfig()

    def project(
        self,
        enriched: Sequence[EnrichedSession],
        days: int,
        as_of: datetime | None = None,
    ) -> ProjectionResult | None:
        """
        Project the learner `days` ahead.

        Returns None when there are fewer points than a regression needs.
        `as_of` anchors milestone dates and defaults to the newest session.
        """
        if len(enriched) < self._config.min_points_for_projection:
            return None
        fit = fit_series([s.score for s in enriched])
        reference = as_of or enriched[-1].timestamp
        return self._project(enriched, fit, days, reference)

    def project_all(
        self,
        enriched: Sequence[EnrichedSession],
        as_of: datetime | None = None,
    ) -> list[ProjectionResult]:
        """Projections for every configured horizon, or none at all."""
        cfg = self._config
        if len(enriched) < cfg.min_points_for_projection:
            logger.debug(
                "Projections need %d sessions, have %d", cfg.min_points_for_projection, len(enriched)
            )
            return []
        fit = fit_series([s.score for s in enriched])
        reference = as_of or enriched[-1].timestamp
        return [self._project(enriched, fit, days, reference) for days in cfg.projection_horizons]

    def _project(
        self,
        enriched: Sequence[EnrichedSession],
        fit: RegressionFit,
        days: int,
        as_of: datetime,
    ) -> ProjectionResult:
        weeks = days / 7
        accuracy = clamp(fit.predict(len(enriched) + weeks), 0.0, 100.0)

        projected = ProjectedMetrics(
            accuracy=round_half_up(accuracy, 2),
            efficiency=max(0.0, words_per_minute(enriched) + efficiency_trend(enriched) * weeks),
            speed=max(0.0, enriched[-1].words_per_minute + speed_velocity(enriched) * weeks),
            words_learned=round_int(weeks * c.WORDS_PER_WEEK),
            tests_completed=round_int(weeks * c.TESTS_PER_WEEK),
            study_hours=round_int(weeks * c.STUDY_HOURS_PER_WEEK),
        )

        confidence = int(clamp(round_int(fit.r_squared * 100), c.MIN_CONFIDENCE, 100))
        spread = projected.accuracy * (100 - confidence) / 100 * c.UNCERTAINTY_SCALE

        return ProjectionResult(
            timeframe_days=days,
            projected_metrics=projected,
            confidence=confidence,
            optimistic_bound=min(100.0, projected.accuracy + spread),
            pessimistic_bound=max(0.0, projected.accuracy - spread),
            milestones=self._milestones(projected.accuracy, days, as_of),
            factors=self._factors(enriched),
        )

    def _milestones(self, accuracy: float, days: int, as_of: datetime) -> list[Milestone]:
        milestones = []
        for rule in self._config.milestones:
            if accuracy >= rule.threshold:
                offset = max(1, round_int(days * rule.fraction))
                milestones.append(
                    Milestone(
                        threshold=rule.threshold,
                        name=rule.name,
                        estimated_date=(as_of + timedelta(days=offset)).date(),
                        probability=rule.probability,
                    )
                )
        return milestones

    def _factors(self, enriched: Sequence[EnrichedSession]) -> list[ProjectionFactor]:
        sigma = moving_std([s.score for s in enriched])
        frequency = sessions_per_week(enriched)

        if sigma < 15:
            consistency_trend = "positive"
        elif sigma > 30:
            consistency_trend = "negative"
        else:
            consistency_trend = "neutral"

        if frequency >= 3:
            frequency_trend = "positive"
        elif frequency < 1:
            frequency_trend = "negative"
        else:
            frequency_trend = "neutral"

        return [
            ProjectionFactor(
                name="Consistency",
                weight=clamp((100 - sigma * 2) / 100, 0.0, 1.0),
                trend=consistency_trend,
                impact="Steady results make the projection more reliable",
            ),
            ProjectionFactor(
                name="Study frequency",
                weight=min(1.0, frequency / 5),
                trend=frequency_trend,
                impact=f"{round_half_up(frequency, 1)} tests per week on average",
            ),
        ]
