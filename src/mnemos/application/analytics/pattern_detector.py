"""
Windowed pattern detection over sessions and words.

Finds time-of-day and day-of-week effects, improvement streaks, stability
and speed trends, difficulty groupings, and correlations between study
habits and results. Hours and weekdays are read in each timestamp's own
timezone (UTC unless the source recorded an offset).
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from mnemos.application.config import AnalyticsConfig
from mnemos.application.utils.numbers import mean, round_int
from mnemos.domain import constants as c

from .trend_analyzer import (
    EnrichedSession,
    WordTrendStats,
    moving_std,
    pearson,
    speed_velocity,
)

WEEKDAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


@dataclass(frozen=True)
class TimeBucket:
    label: str
    value: int
    observations: int
    confidence: int


@dataclass(frozen=True)
class TemporalPattern:
    kind: str  # "hourly" or "weekly"
    description: str
    best_slot: int  # hour of day, or weekday (Monday=0)
    strength: float
    significance: float
    buckets: list[TimeBucket] = field(default_factory=list)


@dataclass(frozen=True)
class PerformancePattern:
    name: str
    description: str
    impact: str
    frequency: float
    confidence: int
    evidence: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class DifficultyPattern:
    category: str
    word_count: int
    average_accuracy: float
    improvement_trend: float
    average_improvement_days: float
    adaptation_rate: float
    projected_mastery: float


@dataclass(frozen=True)
class CorrelationFinding:
    factors: tuple[str, str]
    coefficient: float
    strength: float
    direction: str
    significance: str
    confidence: int
    description: str
    interpretation: str


@dataclass(frozen=True)
class PatternInsight:
    kind: str  # "opportunity" or "strength"
    title: str
    description: str
    importance: int
    priority: str
    suggested_actions: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class PatternAnalysis:
    temporal: list[TemporalPattern] = field(default_factory=list)
    performance: list[PerformancePattern] = field(default_factory=list)
    difficulty: list[DifficultyPattern] = field(default_factory=list)
    correlations: list[CorrelationFinding] = field(default_factory=list)
    insights: list[PatternInsight] = field(default_factory=list)


@dataclass(frozen=True)
class _SlotAverage:
    slot: int
    avg_score: float
    count: int


def slot_averages(
    enriched: Sequence[EnrichedSession],
    slot_of: Callable[[EnrichedSession], int],
    min_count: int = c.MIN_TESTS_PER_BUCKET,
) -> list[_SlotAverage]:
    """Average score per slot (hour, weekday...), best first, ignoring thin slots."""
    buckets: dict[int, list[float]] = {}
    for session in enriched:
        buckets.setdefault(slot_of(session), []).append(session.score)
    averages = [
        _SlotAverage(slot, mean(scores), len(scores))
        for slot, scores in buckets.items()
        if len(scores) >= min_count
    ]
    # Stable tie-break on slot keeps the order deterministic
    return sorted(averages, key=lambda a: (-a.avg_score, a.slot))


def _significance(coefficient: float) -> str:
    magnitude = abs(coefficient)
    if magnitude > 0.3:
        return "high"
    if magnitude > 0.1:
        return "medium"
    return "low"


def _finding(
    factors: tuple[str, str],
    coefficient: float,
    texts: dict[str, tuple[str, str]],
) -> CorrelationFinding:
    if coefficient > 0.3:
        description, interpretation = texts["positive"]
    elif coefficient < -0.3:
        description, interpretation = texts["negative"]
    else:
        description, interpretation = texts["weak"]
    return CorrelationFinding(
        factors=factors,
        coefficient=coefficient,
        strength=abs(coefficient),
        direction="positive" if coefficient > 0 else "negative" if coefficient < 0 else "neutral",
        significance=_significance(coefficient),
        confidence=min(100, round_int(abs(coefficient) * 150)),
        description=description,
        interpretation=interpretation,
    )


def _insufficient(factors: tuple[str, str], description: str, interpretation: str) -> CorrelationFinding:
    return CorrelationFinding(
        factors=factors,
        coefficient=0.0,
        strength=0.0,
        direction="neutral",
        significance="low",
        confidence=0,
        description=description,
        interpretation=interpretation,
    )


class PatternDetector:
    """
    Detects learning patterns in enriched sessions and word statistics.

    Stateless and side-effect free.
    """

    def __init__(self, config: AnalyticsConfig | None = None):
        self._config = config or AnalyticsConfig()

    def analyze(
        self,
        enriched: Sequence[EnrichedSession],
        words: Sequence[WordTrendStats],
    ) -> PatternAnalysis:
        temporal = self.temporal_patterns(enriched)
        performance = self.performance_patterns(enriched)
        correlations = self.correlations(enriched, words)
        return PatternAnalysis(
            temporal=temporal,
            performance=performance,
            difficulty=self.difficulty_patterns(words),
            correlations=correlations,
            insights=self.insights(temporal, performance, correlations),
        )

    # ------------------------------------------------------------------
    # Temporal
    # ------------------------------------------------------------------

    def temporal_patterns(self, enriched: Sequence[EnrichedSession]) -> list[TemporalPattern]:
        if not enriched:
            return []
        patterns = []

        hourly = slot_averages(enriched, lambda s: s.timestamp.hour, self._config.min_tests_per_bucket)
        if hourly:
            best = hourly[0]
            patterns.append(
                TemporalPattern(
                    kind="hourly",
                    description=f"Best performance around {best.slot}:00",
                    best_slot=best.slot,
                    strength=min(1.0, (best.avg_score - 50) / 50),
                    significance=best.count / len(enriched),
                    buckets=[
                        TimeBucket(f"{a.slot}:00", round_int(a.avg_score), a.count, min(100, a.count * 10))
                        for a in hourly[:5]
                    ],
                )
            )

        weekly = slot_averages(enriched, lambda s: s.timestamp.weekday(), self._config.min_tests_per_bucket)
        if weekly:
            best = weekly[0]
            patterns.append(
                TemporalPattern(
                    kind="weekly",
                    description=f"Best performance on {WEEKDAY_NAMES[best.slot]}",
                    best_slot=best.slot,
                    strength=min(1.0, (best.avg_score - 50) / 50),
                    significance=best.count / len(enriched),
                    buckets=[
                        TimeBucket(WEEKDAY_NAMES[a.slot], round_int(a.avg_score), a.count, min(100, a.count * 10))
                        for a in weekly
                    ],
                )
            )
        return patterns

    # ------------------------------------------------------------------
    # Performance
    # ------------------------------------------------------------------

    def performance_patterns(self, enriched: Sequence[EnrichedSession]) -> list[PerformancePattern]:
        if len(enriched) < 3:
            return []
        patterns = []

        run = longest = streaks = 0
        for prev, cur in zip(enriched, enriched[1:]):
            if cur.score > prev.score:
                run += 1
                longest = max(longest, run)
            else:
                if run >= 3:
                    streaks += 1
                run = 0
        if run >= 3:
            streaks += 1

        if longest >= 3:
            patterns.append(
                PerformancePattern(
                    name="Improvement streak",
                    description=f"Scores improved for {longest} tests in a row ({streaks} streaks in total)",
                    impact="positive",
                    frequency=streaks / max(1.0, len(enriched) / 5),
                    confidence=min(100, longest * 15),
                    evidence=[f"{streaks} streaks found", f"Longest streak: {longest} tests"],
                )
            )

        recent = [s.score for s in enriched[-10:]]
        sigma = moving_std(recent)
        if sigma < 15:
            patterns.append(
                PerformancePattern(
                    name="Consistent performance",
                    description=f"Low variability in recent results (sigma = {round_int(sigma)}%)",
                    impact="positive",
                    frequency=1.0,
                    confidence=min(100, round_int((15 - sigma) * 6)),
                    evidence=[
                        f"Standard deviation: {round_int(sigma)}%",
                        f"Average of the last {len(recent)} tests: {round_int(mean(recent))}%",
                    ],
                )
            )

        speed_trend = speed_velocity(enriched)
        if abs(speed_trend) > 0.1:
            faster = speed_trend > 0
            patterns.append(
                PerformancePattern(
                    name="Speed increasing" if faster else "Speed decreasing",
                    description=f"Words per minute are {'rising' if faster else 'falling'} across tests",
                    impact="positive" if faster else "negative",
                    frequency=0.8,
                    confidence=min(100, round_int(abs(speed_trend) * 200)),
                    evidence=[f"Speed trend: {speed_trend:+.2f} words/min per test"],
                )
            )
        return patterns

    # ------------------------------------------------------------------
    # Difficulty
    # ------------------------------------------------------------------

    def difficulty_patterns(self, words: Sequence[WordTrendStats]) -> list[DifficultyPattern]:
        groups: dict[str, list[WordTrendStats]] = {"easy": [], "medium": [], "hard": []}
        for word in words:
            if word.difficulty_score < 30:
                groups["easy"].append(word)
            elif word.difficulty_score < 70:
                groups["medium"].append(word)
            else:
                groups["hard"].append(word)

        patterns = []
        for category, members in groups.items():
            if not members:
                continue
            success = mean([w.success_rate for w in members])
            improvement = mean([w.improvement_rate for w in members])
            patterns.append(
                DifficultyPattern(
                    category=category,
                    word_count=len(members),
                    average_accuracy=success * 100,
                    improvement_trend=improvement * 100,
                    average_improvement_days=max(1.0, 10 - improvement * 5),
                    adaptation_rate=min(100.0, improvement * 200),
                    projected_mastery=min(100.0, success * 100 + improvement * 30),
                )
            )
        return patterns

    # ------------------------------------------------------------------
    # Correlations
    # ------------------------------------------------------------------

    def correlations(
        self,
        enriched: Sequence[EnrichedSession],
        words: Sequence[WordTrendStats],
    ) -> list[CorrelationFinding]:
        if len(enriched) < 5:
            return []
        findings = [self._frequency_correlation(enriched), self._duration_correlation(enriched)]
        if words:
            findings.append(self._hint_correlation(words))
        return findings

    def _frequency_correlation(self, enriched: Sequence[EnrichedSession]) -> CorrelationFinding:
        weeks: dict[tuple[int, int], list[float]] = {}
        for session in enriched:
            iso = session.timestamp.isocalendar()
            weeks.setdefault((iso[0], iso[1]), []).append(session.score)
        counts = [len(scores) for scores in weeks.values()]
        averages = [mean(scores) for scores in weeks.values()]
        return _finding(
            ("Study frequency", "Average score"),
            pearson(counts, averages),
            {
                "positive": (
                    "Strong positive correlation: more study, better results",
                    "Studying more often will bring significant benefits",
                ),
                "negative": (
                    "Negative correlation: possible over-studying or fatigue",
                    "Studying a little less often may improve results",
                ),
                "weak": (
                    "Weak correlation between study frequency and results",
                    "Frequency has limited impact; focus on quality",
                ),
            },
        )

    def _duration_correlation(self, enriched: Sequence[EnrichedSession]) -> CorrelationFinding:
        factors = ("Session duration", "Accuracy")
        timed = [s for s in enriched if s.session_duration_ms > 0]
        if len(timed) < 3:
            return _insufficient(
                factors,
                "Not enough timed sessions to correlate duration and results",
                "More data is needed to find your optimal session length",
            )
        return _finding(
            factors,
            pearson([s.session_duration_ms / 60_000 for s in timed], [s.score for s in timed]),
            {
                "positive": (
                    "Longer sessions go with better results",
                    "Extend your study sessions for better results",
                ),
                "negative": (
                    "Very long sessions may lower results",
                    "Shorten sessions to avoid fatigue",
                ),
                "weak": (
                    "Session length has limited impact on results",
                    "Keep your current session length and focus elsewhere",
                ),
            },
        )

    def _hint_correlation(self, words: Sequence[WordTrendStats]) -> CorrelationFinding:
        factors = ("Hint usage", "Improvement rate")
        attempted = [w for w in words if w.total_attempts > 0]
        if len(attempted) < 5:
            return _insufficient(
                factors,
                "Not enough words to correlate hint usage and improvement",
                "Collect more data to tune your hint usage",
            )
        return _finding(
            factors,
            pearson([w.hints_per_attempt for w in attempted], [w.improvement_rate for w in attempted]),
            {
                "positive": (
                    "Strategic hint usage supports improvement",
                    "Use hints strategically to maximize learning",
                ),
                "negative": (
                    "Heavy hint usage may limit learning",
                    "Reduce hint usage to build autonomy",
                ),
                "weak": (
                    "Weak correlation between hints and improvement",
                    "Hints have a neutral effect; use them when needed",
                ),
            },
        )

    # ------------------------------------------------------------------
    # Insights
    # ------------------------------------------------------------------

    def insights(
        self,
        temporal: Sequence[TemporalPattern],
        performance: Sequence[PerformancePattern],
        correlations: Sequence[CorrelationFinding],
    ) -> list[PatternInsight]:
        insights = []

        hourly = next((p for p in temporal if p.kind == "hourly"), None)
        if hourly and hourly.strength > 0.2:
            insights.append(
                PatternInsight(
                    kind="opportunity",
                    title="Optimal study time identified",
                    description=hourly.description,
                    importance=4,
                    priority="high",
                    suggested_actions=[
                        "Schedule sessions at your peak hour",
                        "Avoid hours with low results",
                    ],
                )
            )

        for finding in correlations:
            if finding.strength <= 0.4:
                continue
            strong = finding.strength > 0.6
            insights.append(
                PatternInsight(
                    kind="opportunity",
                    title=f"Significant correlation: {' - '.join(finding.factors)}",
                    description=finding.interpretation,
                    importance=5 if strong else 3,
                    priority="high" if strong else "medium",
                    suggested_actions=[finding.interpretation, "Keep monitoring this pattern"],
                )
            )

        consistent = next((p for p in performance if p.name == "Consistent performance"), None)
        if consistent:
            insights.append(
                PatternInsight(
                    kind="strength",
                    title="Stable performance detected",
                    description=consistent.description,
                    importance=3,
                    priority="medium",
                    suggested_actions=["Keep your current routine", "Consolidate your strengths"],
                )
            )
        return insights
