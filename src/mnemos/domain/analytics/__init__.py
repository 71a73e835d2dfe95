# Domain Analytics Package
from .models import AttemptRecord, TestSessionSummary, Word, WordPerformance, WordTiming
from .ports import AnalyticsRepository
from .results import (
    CalculationBreakdown,
    LearnerProfile,
    MetricBreakdown,
    MetricVelocity,
    Milestone,
    PerformanceMetrics,
    PerformanceTimelinePoint,
    ProjectedMetrics,
    ProjectionFactor,
    ProjectionResult,
    RegressionFit,
    TrendAnalysisResult,
)

__all__ = [
    "AttemptRecord",
    "WordPerformance",
    "WordTiming",
    "TestSessionSummary",
    "Word",
    "AnalyticsRepository",
    "PerformanceTimelinePoint",
    "MetricBreakdown",
    "CalculationBreakdown",
    "PerformanceMetrics",
    "RegressionFit",
    "MetricVelocity",
    "TrendAnalysisResult",
    "ProjectedMetrics",
    "ProjectionFactor",
    "Milestone",
    "ProjectionResult",
    "LearnerProfile",
]
