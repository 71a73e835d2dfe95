"""
Learning Analytics Service — Application layer orchestrator.

Fetches a learner's raw history through the repository port, validates it,
and runs the analytics pipeline: word aggregation, session metrics, trends,
patterns, projections, profile and recommendations.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime

from mnemos.application.config import AnalyticsConfig
from mnemos.domain.analytics.ports import AnalyticsRepository
from mnemos.domain.analytics.results import (
    LearnerProfile,
    PerformanceMetrics,
    PerformanceTimelinePoint,
    ProjectionResult,
    TrendAnalysisResult,
)

from .attempt_aggregator import AttemptAggregator, WordPerformanceAnalysis
from .ingestion import Snapshot, as_utc, parse_snapshot
from .insight_synthesizer import InsightBundle, InsightSynthesizer, RecommendationSet
from .pattern_detector import PatternAnalysis, PatternDetector
from .profile import LearnerProfiler
from .projection_engine import ProjectionEngine
from .session_metrics import DifficultyBucket, ImprovementWindow, RadarPoint, SessionMetricsCalculator
from .timeline_builder import TimelineBuilder, WordTimeline
from .trend_analyzer import DataValidation, TrendAnalyzer, enrich_sessions, enrich_words
from .word_views import WordStatsSummary, summarize_words

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalyticsReport:
    """
    Everything computed for one learner in one run.

    Attributes:
        as_of: Reference instant for recency windows and milestone dates.
            None when the learner has no sessions.
        metrics: None when the learner has no sessions.
        insights: None when the learner has no sessions.
        recommendations: Flat advice list, never empty.
    """

    as_of: datetime | None
    validation: DataValidation
    timeline: list[PerformanceTimelinePoint]
    metrics: PerformanceMetrics | None
    radar: list[RadarPoint]
    improvement_windows: list[ImprovementWindow]
    difficulty_breakdown: list[DifficultyBucket]
    trend: TrendAnalysisResult
    trend_insights: list[str]
    patterns: PatternAnalysis
    projections: list[ProjectionResult]
    profile: LearnerProfile
    insights: InsightBundle | None
    recommendations: list[str]
    recommendation_set: RecommendationSet
    words: list[WordPerformanceAnalysis] = field(default_factory=list)
    word_summary: WordStatsSummary | None = None


class LearningAnalyticsService:
    """
    Application service producing analytics reports.

    Follows Dependency Inversion: depends on the AnalyticsRepository
    abstraction, not on concrete adapter implementations.
    """

    def __init__(
        self,
        repo: AnalyticsRepository,
        config: AnalyticsConfig | None = None,
    ):
        """
        Args:
            repo: The repository (port) for fetching raw history.
            config: Formula parameters; uses defaults if not provided.
        """
        self._repo = repo
        self._config = config or AnalyticsConfig()
        self._aggregator = AttemptAggregator(self._config)
        self._metrics = SessionMetricsCalculator(self._config)
        self._timelines = TimelineBuilder(self._config)
        self._trends = TrendAnalyzer(self._config)
        self._patterns = PatternDetector(self._config)
        self._projections = ProjectionEngine(self._config)
        self._profiler = LearnerProfiler(self._config)
        self._insights = InsightSynthesizer(self._config)

    async def load_snapshot(self, user_id: str) -> Snapshot:
        """Fetch and validate the learner's raw history."""
        sessions = await self._repo.get_test_sessions(user_id)
        performances = await self._repo.get_word_performances(user_id)
        words = await self._repo.get_word_catalog(user_id)
        return parse_snapshot({"sessions": sessions, "performances": performances, "words": words})

    async def analyze(self, user_id: str, as_of: datetime | None = None) -> AnalyticsReport:
        """
        Build the full report for a learner.

        Args:
            user_id: The learner.
            as_of: Reference instant; defaults to the newest session.
        """
        snapshot = await self.load_snapshot(user_id)
        logger.info(
            "Analyzing %s: %d sessions, %d words", user_id, len(snapshot.sessions), len(snapshot.words)
        )
        return self.build_report(snapshot, as_of)

    async def word_detail(self, user_id: str, word_id: str) -> WordTimeline | None:
        """
        Attempt timeline for one word, or None if the learner has no such word.
        """
        snapshot = await self.load_snapshot(user_id)
        word = next((w for w in snapshot.words if w.id == word_id), None)
        performance = snapshot.performances.get(word_id)
        if word is None and performance is None:
            return None
        return self._timelines.word_timeline(word_id, snapshot.sessions, word, performance)

    def build_report(self, snapshot: Snapshot, as_of: datetime | None = None) -> AnalyticsReport:
        """Run the pipeline over an already validated snapshot. Pure."""
        sessions = snapshot.sessions
        if as_of is not None:
            as_of = as_utc(as_of)
        elif sessions:
            as_of = max(s.timestamp for s in sessions)

        words = self._aggregator.analyze_all(snapshot.words, snapshot.performances)
        word_stats = enrich_words(words)

        timeline = self._metrics.build_timeline(sessions)
        metrics = self._metrics.compute_metrics(timeline, sessions)

        enriched = enrich_sessions(sessions)
        trend = self._trends.analyze_velocity(enriched)

        return AnalyticsReport(
            as_of=as_of,
            validation=self._trends.validate_inputs(
                sessions, len(word_stats), as_of, snapshot.dropped_sessions
            ),
            timeline=timeline,
            metrics=metrics,
            radar=self._metrics.radar_data(metrics) if metrics else [],
            improvement_windows=self._metrics.improvement_windows(timeline),
            difficulty_breakdown=self._metrics.difficulty_analysis(sessions),
            trend=trend,
            trend_insights=self._insights.trend_insights(trend),
            patterns=self._patterns.analyze(enriched, word_stats),
            projections=self._projections.project_all(enriched, as_of),
            profile=self._profiler.build_profile(enriched, word_stats),
            insights=self._insights.generate_insights(metrics) if metrics else None,
            recommendations=self._insights.synthesize_recommendations(metrics, trend),
            recommendation_set=self._insights.build_recommendations(enriched, word_stats),
            words=words,
            word_summary=summarize_words(words),
        )
