# Application Analytics Package
from .attempt_aggregator import AttemptAggregator, WordPerformanceAnalysis
from .ingestion import Snapshot, parse_snapshot
from .insight_synthesizer import InsightBundle, InsightSynthesizer, RecommendationSet
from .pattern_detector import PatternAnalysis, PatternDetector
from .profile import LearnerProfiler
from .projection_engine import ProjectionEngine
from .service import AnalyticsReport, LearningAnalyticsService
from .session_metrics import SessionMetricsCalculator
from .timeline_builder import TimelineBuilder, WordTimeline
from .trend_analyzer import TrendAnalyzer

__all__ = [
    "AttemptAggregator",
    "WordPerformanceAnalysis",
    "Snapshot",
    "parse_snapshot",
    "SessionMetricsCalculator",
    "TimelineBuilder",
    "WordTimeline",
    "TrendAnalyzer",
    "PatternDetector",
    "PatternAnalysis",
    "ProjectionEngine",
    "InsightSynthesizer",
    "InsightBundle",
    "RecommendationSet",
    "LearnerProfiler",
    "LearningAnalyticsService",
    "AnalyticsReport",
]
