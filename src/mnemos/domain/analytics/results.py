"""
Derived analytics entities.

Value objects created fresh on every computation and never mutated.
A caller may cache a returned bundle; the engine never does.
"""

from dataclasses import dataclass, field
from datetime import date, datetime


@dataclass(frozen=True)
class PerformanceTimelinePoint:
    """
    A session summary enriched with per-word timing.

    Attributes:
        index: Position in the timeline, oldest first.
        avg_time_per_word: Seconds per word, real or estimated.
        has_real_time: True when derived from the recorded session duration.
        is_estimated: True when derived from the difficulty/score heuristic.
    """

    index: int
    timestamp: datetime
    percentage: float
    correct_words: int
    incorrect_words: int
    total_words: int
    hints_used: int
    difficulty: str
    avg_time_per_word: float
    has_real_time: bool
    is_estimated: bool
    session_id: str | None = None


@dataclass(frozen=True)
class MetricBreakdown:
    """One weighted term of the Performance Index."""

    value: float
    weight: float
    points: int


@dataclass(frozen=True)
class CalculationBreakdown:
    precision: MetricBreakdown
    consistency: MetricBreakdown
    efficiency: MetricBreakdown
    speed: MetricBreakdown
    difficulty: MetricBreakdown

    @property
    def total(self) -> int:
        return (
            self.precision.points
            + self.consistency.points
            + self.efficiency.points
            + self.speed.points
            + self.difficulty.points
        )


@dataclass(frozen=True)
class PerformanceMetrics:
    """
    Scalar performance bundle for a learner.

    Scores are in [0, 100]; `improvement_trend` and `learning_velocity`
    are signed percentage-point deltas.
    """

    accuracy: int
    consistency: int
    hint_efficiency: int
    speed_score: int
    difficulty_score: int
    performance_index: int
    best_streak: int
    improvement_trend: float
    learning_velocity: float

    avg_speed: float  # seconds per word
    recent_performance: int
    real_time_percentage: int
    total_sessions: int
    breakdown: CalculationBreakdown


@dataclass(frozen=True)
class RegressionFit:
    slope: float
    intercept: float
    r_squared: float

    def predict(self, x: float) -> float:
        return self.slope * x + self.intercept


@dataclass(frozen=True)
class MetricVelocity:
    """Velocity split per metric (accuracy points per period, words/min per test)."""

    accuracy: float = 0.0
    efficiency: float = 0.0
    speed: float = 0.0


@dataclass(frozen=True)
class TrendAnalysisResult:
    """
    Regression and derivative-based view of the learner's score series.

    Attributes:
        fit: Least-squares fit of score against session index.
        velocity: Slope rounded to 2 decimals (points per session).
        current_level: Weighted moving average of the most recent scores.
        acceleration: Mean second difference of the score series.
        stability_factor: 1 - min(1, stddev/100) over the trailing window.
        direction: "accelerating", "decelerating" or "steady".
        confidence: Stability expressed as 0..100.
        has_sufficient_data: False when too few sessions were available.
    """

    fit: RegressionFit
    velocity: float
    current_level: float
    acceleration: float
    stability_factor: float
    direction: str
    confidence: int
    velocity_by_metric: MetricVelocity = field(default_factory=MetricVelocity)
    has_sufficient_data: bool = True

    @property
    def slope(self) -> float:
        return self.fit.slope

    @property
    def intercept(self) -> float:
        return self.fit.intercept

    @property
    def r_squared(self) -> float:
        return self.fit.r_squared


@dataclass(frozen=True)
class ProjectedMetrics:
    accuracy: float
    efficiency: float  # words per minute
    speed: float  # words per minute of the latest sessions
    words_learned: int
    tests_completed: int
    study_hours: int


@dataclass(frozen=True)
class ProjectionFactor:
    name: str
    weight: float
    trend: str  # "positive", "neutral", "negative"
    impact: str


@dataclass(frozen=True)
class Milestone:
    """
    A projected accuracy threshold crossing.

    `probability` is a fixed label attached to the threshold, not a
    statistically derived probability; `probability_is_heuristic` says so.
    """

    threshold: int
    name: str
    estimated_date: date
    probability: int
    probability_is_heuristic: bool = True


@dataclass(frozen=True)
class ProjectionResult:
    timeframe_days: int
    projected_metrics: ProjectedMetrics
    confidence: int
    optimistic_bound: float
    pessimistic_bound: float
    milestones: list[Milestone] = field(default_factory=list)
    factors: list[ProjectionFactor] = field(default_factory=list)


@dataclass(frozen=True)
class LearnerProfile:
    """
    Descriptive classification of the learner, recomputed on every run.

    Attributes:
        learner_type: "analytical", "intuitive", "visual" or "mixed".
        learning_style: "methodical", "intuitive", "analytical" or "adaptive".
        preferred_difficulty: "easy", "medium" or "hard".
        optimal_session_length_minutes: Typical length of high-scoring sessions.
        peak_performance_hours: Up to three hours of day with the best scores.
        confidence: How much data backs the profile (0..100).
    """

    learner_type: str
    learning_style: str
    preferred_difficulty: str
    optimal_session_length_minutes: int
    peak_performance_hours: list[int]
    strengths: list[str] = field(default_factory=list)
    challenges: list[str] = field(default_factory=list)
    improvement_areas: list[str] = field(default_factory=list)
    confidence: int = 0
    has_sufficient_data: bool = True
