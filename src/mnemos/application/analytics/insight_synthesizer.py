"""
Rule-based insights and recommendations.

Each rule compares a computed number against a configured threshold; there is
no learning or randomness, so identical inputs give identical text.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from mnemos.application.config import AnalyticsConfig
from mnemos.application.utils.numbers import mean, round_half_up, round_int
from mnemos.domain.analytics.results import PerformanceMetrics, TrendAnalysisResult

from .pattern_detector import slot_averages
from .profile import StudyFrequency, optimal_frequency, optimal_session_length
from .trend_analyzer import EnrichedSession, WordTrendStats, fit_series, moving_std

logger = logging.getLogger(__name__)

FALLBACK_RECOMMENDATION = "Keep practicing regularly to unlock more detailed insights"


@dataclass(frozen=True)
class InsightBundle:
    strengths: list[str]
    improvements: list[str]
    recommendation: str


@dataclass(frozen=True)
class GoalRecommendation:
    """
    A target accuracy with a rough time estimate.

    Attributes:
        estimated_days: Days to reach the target at the current slope
            (30 when the learner is not improving).
        success_probability: Goodness of fit of the score trend (0..100),
            or a fixed 70 for the advanced goal.
        milestones: Intermediate accuracy checkpoints on the way.
    """

    name: str
    target_value: int
    current_value: int
    estimated_days: int
    success_probability: float
    confidence: str
    priority: int
    suggested_actions: list[str] = field(default_factory=list)
    milestones: list[int] = field(default_factory=list)


@dataclass(frozen=True)
class WeaknessRecommendation:
    area: str  # "accuracy" or "speed"
    description: str
    severity: int
    affected_words: list[str]
    expected_improvement: int
    actions: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class TimingRecommendation:
    best_hour: int
    best_hour_score: float
    worst_hour: int
    worst_hour_score: float
    session_minutes: int
    frequency: StudyFrequency
    evidence: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class StrategicRecommendation:
    strategy: str
    title: str
    description: str
    priority: str
    steps: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class RecommendationSet:
    goals: list[GoalRecommendation] = field(default_factory=list)
    weaknesses: list[WeaknessRecommendation] = field(default_factory=list)
    timing: list[TimingRecommendation] = field(default_factory=list)
    strategic: list[StrategicRecommendation] = field(default_factory=list)
    personalization_score: int = 0


class InsightSynthesizer:
    """
    Turns metrics, trends and word statistics into human-readable advice.

    Stateless and side-effect free.
    """

    def __init__(self, config: AnalyticsConfig | None = None):
        self._config = config or AnalyticsConfig()

    # ------------------------------------------------------------------
    # Metric insights
    # ------------------------------------------------------------------

    def generate_insights(self, metrics: PerformanceMetrics) -> InsightBundle:
        t = self._config.insight_thresholds
        strengths = []
        if metrics.accuracy >= t.strong_accuracy:
            strengths.append(f"Excellent answer accuracy ({metrics.accuracy}%)")
        if metrics.consistency >= t.strong_consistency:
            strengths.append("Very consistent results")
        if metrics.hint_efficiency >= t.strong_hint_efficiency:
            strengths.append("Efficient use of hints")
        if metrics.speed_score >= t.strong_speed:
            strengths.append("Great response times")
        if metrics.best_streak >= 5:
            strengths.append(f"Impressive streak of {metrics.best_streak} strong tests in a row")
        if metrics.improvement_trend > 2:
            strengths.append(f"Steady improvement trend (+{metrics.improvement_trend}%)")

        improvements = []
        if metrics.accuracy < t.weak_accuracy:
            improvements.append(f"Accuracy needs work ({metrics.accuracy}%)")
        if metrics.consistency < t.weak_consistency:
            improvements.append("Results vary too much: aim for consistency")
        if metrics.hint_efficiency < t.weak_hint_efficiency:
            improvements.append("Heavy hint usage: try answering on your own")
        if metrics.speed_score < t.weak_speed:
            improvements.append("Slow response times: practice to build speed")
        if metrics.improvement_trend < -2:
            improvements.append(f"Declining trend ({metrics.improvement_trend}%): review your study strategy")
        if metrics.best_streak < 3:
            improvements.append("No sustained streak yet: focus on the fundamentals")

        return InsightBundle(
            strengths=strengths,
            improvements=improvements,
            recommendation=self._headline(metrics),
        )

    def _headline(self, metrics: PerformanceMetrics) -> str:
        t = self._config.insight_thresholds
        index = metrics.performance_index
        if index >= t.outstanding_index:
            return "Outstanding performance! Consider raising the difficulty: your study approach works."
        if index >= t.great_index:
            if metrics.consistency < 75:
                focus = "consistency"
            elif metrics.speed_score < 75:
                focus = "speed"
            else:
                focus = "accuracy"
            return f"Great performance! Work on {focus} to reach excellence."
        if index >= t.good_index:
            if metrics.accuracy < t.weak_accuracy:
                focus = "improving accuracy with more study"
            elif metrics.hint_efficiency < t.weak_hint_efficiency:
                focus = "relying less on hints"
            else:
                focus = "building consistency"
            return f"Good performance! Focus on {focus}."
        if metrics.accuracy < 60:
            advice = "spend more time studying before each test"
        else:
            advice = "practice more regularly to build consistency"
        return f"There is room to improve. Tip: {advice}."

    def trend_insights(self, trend: TrendAnalysisResult) -> list[str]:
        if not trend.has_sufficient_data:
            return []
        insights = []
        if trend.direction == "accelerating":
            insights.append("Your learning is accelerating: recent scores rise faster than before")
        elif trend.direction == "decelerating":
            insights.append("Your progress is slowing down: vary your practice to regain momentum")
        if trend.stability_factor < 0.7:
            insights.append("Results are unstable: regular sessions will smooth them out")
        return insights

    def synthesize_recommendations(
        self,
        metrics: PerformanceMetrics | None,
        trend: TrendAnalysisResult | None = None,
    ) -> list[str]:
        """Flat list of advice; never empty."""
        recommendations = []
        if metrics is not None:
            recommendations.append(self.generate_insights(metrics).recommendation)
        if trend is not None:
            recommendations.extend(self.trend_insights(trend))
        return recommendations or [FALLBACK_RECOMMENDATION]

    # ------------------------------------------------------------------
    # Recommendation set
    # ------------------------------------------------------------------

    def goal_recommendations(self, enriched: Sequence[EnrichedSession]) -> list[GoalRecommendation]:
        if not enriched:
            return []
        current = mean([s.score for s in enriched[-5:]])
        goals = []

        if current < 70:
            fit = fit_series([s.score for s in enriched])
            days = max(7, round_int((70 - current) / fit.slope)) if fit.slope > 0 else 30
            goals.append(
                GoalRecommendation(
                    name="Intermediate proficiency",
                    target_value=70,
                    current_value=round_int(current),
                    estimated_days=days,
                    success_probability=fit.r_squared * 100,
                    confidence="high" if fit.r_squared > 0.3 else "medium",
                    priority=3,
                    suggested_actions=[
                        "Focus on words with accuracy below 60%",
                        "Review difficult words more often",
                        "Use hints strategically to consolidate learning",
                    ],
                    milestones=[
                        round_int(current + (70 - current) * 0.3),
                        round_int(current + (70 - current) * 0.7),
                        70,
                    ],
                )
            )

        if current >= 60:
            goals.append(
                GoalRecommendation(
                    name="Advanced proficiency",
                    target_value=85,
                    current_value=round_int(current),
                    estimated_days=50,
                    success_probability=70.0,
                    confidence="medium",
                    priority=4,
                    suggested_actions=[
                        "Study advanced vocabulary",
                        "Use fewer hints to strengthen long-term memory",
                        "Answer faster while keeping accuracy",
                    ],
                    milestones=[75, 80, 85],
                )
            )
        return goals

    def weakness_recommendations(self, words: Sequence[WordTrendStats]) -> list[WeaknessRecommendation]:
        if not words:
            return []
        recommendations = []

        weak = sorted(
            (w for w in words if w.success_rate < 0.5 and w.total_attempts >= 2),
            key=lambda w: (w.success_rate, w.word_id),
        )[:10]
        if weak:
            recommendations.append(
                WeaknessRecommendation(
                    area="accuracy",
                    description=f"{len(weak)} words with accuracy below 50%",
                    severity=4 if len(weak) > 5 else 3,
                    affected_words=[w.word_id for w in weak[:5]],
                    expected_improvement=round_int((0.7 - weak[0].success_rate) * 100),
                    actions=[
                        "Focused review of the hardest words",
                        "Use spaced repetition",
                        "Tie difficult words to memorable contexts",
                    ],
                )
            )

        slow = sorted(
            (w for w in words if w.average_time_ms > 8000 and w.success_rate > 0.6),
            key=lambda w: (-w.average_time_ms, w.word_id),
        )[:8]
        if slow:
            recommendations.append(
                WeaknessRecommendation(
                    area="speed",
                    description=f"{len(slow)} words take longer than 8 seconds to answer",
                    severity=3,
                    affected_words=[w.word_id for w in slow[:5]],
                    expected_improvement=40,
                    actions=[
                        "Rapid recognition drills",
                        "Build immediate word-meaning associations",
                        "Repeat often until answers become automatic",
                    ],
                )
            )
        return recommendations

    def timing_recommendations(self, enriched: Sequence[EnrichedSession]) -> list[TimingRecommendation]:
        cfg = self._config
        hourly = slot_averages(enriched, lambda s: s.timestamp.hour, cfg.min_tests_per_bucket)
        if not hourly:
            return []
        best, worst = hourly[0], hourly[-1]
        return [
            TimingRecommendation(
                best_hour=best.slot,
                best_hour_score=best.avg_score,
                worst_hour=worst.slot,
                worst_hour_score=worst.avg_score,
                session_minutes=optimal_session_length(
                    enriched, cfg.min_session_minutes, cfg.max_session_minutes, cfg.default_session_minutes
                ),
                frequency=optimal_frequency(enriched),
                evidence=[
                    f"Best results at {best.slot}:00 ({round_int(best.avg_score)}% accuracy)",
                    f"Peak-to-trough difference: {round_int(best.avg_score - worst.avg_score)}%",
                    f"Based on {best.count} sessions at the best hour",
                ],
            )
        ]

    def strategic_recommendations(
        self,
        enriched: Sequence[EnrichedSession],
        words: Sequence[WordTrendStats],
    ) -> list[StrategicRecommendation]:
        recommendations = []
        slope = fit_series([s.score for s in enriched]).slope

        if slope > 1:
            recommendations.append(
                StrategicRecommendation(
                    strategy="accelerated_learning",
                    title="Accelerate learning",
                    description=f"Scores rise by {round_half_up(slope, 2)} points per test: raise the difficulty",
                    priority="high",
                    steps=[
                        "Raise the share of difficult words in tests to 40%",
                        "Cut hint usage by 20%",
                        "Add quick review sessions",
                    ],
                )
            )
        elif slope < -0.5:
            recommendations.append(
                StrategicRecommendation(
                    strategy="consolidation_focus",
                    title="Consolidate performance",
                    description=f"Scores drop by {round_half_up(-slope, 2)} points per test: focus on review",
                    priority="high",
                    steps=[
                        "Use mostly easy words in tests for a while",
                        "Review words you already studied more often",
                        "Take longer breaks between sessions",
                    ],
                )
            )

        hint_usage = mean([w.hints_per_attempt for w in words])
        if hint_usage > 1.5:
            recommendations.append(
                StrategicRecommendation(
                    strategy="hint_optimization",
                    title="Use fewer hints",
                    description=f"{round_half_up(hint_usage, 2)} hints per attempt limit autonomous recall",
                    priority="medium",
                    steps=[
                        "Allow at most one hint per word",
                        "Practice free recall without hints",
                        "Wait ten seconds before asking for a hint",
                    ],
                )
            )
        return recommendations

    def personalization_score(
        self,
        enriched: Sequence[EnrichedSession],
        words: Sequence[WordTrendStats],
    ) -> int:
        """How much data backs the recommendations (0..100)."""
        score = min(40.0, len(enriched) * 3) + min(30.0, len(words) * 2)
        if len(enriched) > 5:
            consistency = 1 - moving_std([s.score for s in enriched], 10) / 100
            score += max(0.0, consistency * 20)
        if enriched:
            score += min(10.0, enriched[-1].days_since_start / 7)
        return min(100, round_int(score))

    def build_recommendations(
        self,
        enriched: Sequence[EnrichedSession],
        words: Sequence[WordTrendStats],
    ) -> RecommendationSet:
        return RecommendationSet(
            goals=self.goal_recommendations(enriched),
            weaknesses=self.weakness_recommendations(words),
            timing=self.timing_recommendations(enriched),
            strategic=self.strategic_recommendations(enriched, words),
            personalization_score=self.personalization_score(enriched, words),
        )
