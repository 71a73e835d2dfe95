from dataclasses import replace

import pytest
from factories import make_session

from mnemos.application.analytics.insight_synthesizer import (
    FALLBACK_RECOMMENDATION,
    InsightSynthesizer,
)
from mnemos.application.analytics.session_metrics import SessionMetricsCalculator
from mnemos.application.analytics.trend_analyzer import (
    TrendAnalyzer,
    WordTrendStats,
    enrich_sessions,
)
from mnemos.application.config import AnalyticsConfig, InsightThresholds


@pytest.fixture
def synthesizer():
    return InsightSynthesizer()


@pytest.fixture
def metrics(sessions):
    calculator = SessionMetricsCalculator()
    return calculator.compute_metrics(calculator.build_timeline(sessions), sessions)


def _trend(*scores):
    enriched = enrich_sessions([make_session(i, pct) for i, pct in enumerate(scores)])
    return TrendAnalyzer().analyze_velocity(enriched)


def _enriched(*scores):
    return enrich_sessions([make_session(i, pct) for i, pct in enumerate(scores)])


def _at(day, hour, percentage):
    session = make_session(day, percentage)
    return replace(session, timestamp=session.timestamp.replace(hour=hour))


class TestGenerateInsights:
    def test_strengths_and_improvements(self, synthesizer, metrics):
        bundle = synthesizer.generate_insights(metrics)

        assert bundle.strengths == [
            "Very consistent results",
            "Efficient use of hints",
            "Great response times",
            "Steady improvement trend (+30.0%)",
        ]
        assert bundle.improvements == ["No sustained streak yet: focus on the fundamentals"]
        assert bundle.recommendation == "Great performance! Work on accuracy to reach excellence."

    def test_weak_metrics(self, synthesizer, metrics):
        weak = replace(metrics, accuracy=45, consistency=50, hint_efficiency=40, speed_score=30, improvement_trend=-8.0)
        bundle = synthesizer.generate_insights(weak)

        assert bundle.strengths == []
        assert bundle.improvements[0] == "Accuracy needs work (45%)"
        assert "Declining trend (-8.0%): review your study strategy" in bundle.improvements
        assert len(bundle.improvements) == 6

    @pytest.mark.parametrize(
        "overrides,headline",
        [
            ({"performance_index": 90}, "Outstanding performance!"),
            ({"performance_index": 78, "consistency": 70}, "Great performance! Work on consistency"),
            ({"performance_index": 78, "speed_score": 60}, "Great performance! Work on speed"),
            ({"performance_index": 70, "accuracy": 65}, "Good performance! Focus on improving accuracy"),
            ({"performance_index": 70, "accuracy": 75, "hint_efficiency": 60}, "Good performance! Focus on relying less"),
            ({"performance_index": 70, "accuracy": 75}, "Good performance! Focus on building consistency"),
            ({"performance_index": 50, "accuracy": 50}, "There is room to improve. Tip: spend more time"),
            ({"performance_index": 50, "accuracy": 65}, "There is room to improve. Tip: practice more"),
        ],
    )
    def test_headline_tiers(self, synthesizer, metrics, overrides, headline):
        assert synthesizer.generate_insights(replace(metrics, **overrides)).recommendation.startswith(headline)

    def test_thresholds_from_config(self, metrics):
        thresholds = InsightThresholds(strong_accuracy=70, great_index=90)
        bundle = InsightSynthesizer(AnalyticsConfig(insight_thresholds=thresholds)).generate_insights(metrics)

        assert bundle.strengths[0] == "Excellent answer accuracy (70%)"
        assert bundle.recommendation == "Good performance! Focus on building consistency."


class TestTrendInsights:
    def test_steady_trend_has_nothing_to_say(self, synthesizer):
        assert synthesizer.trend_insights(_trend(50, 60, 70, 80, 90)) == []

    def test_accelerating(self, synthesizer):
        insights = synthesizer.trend_insights(_trend(10, 11, 14, 20, 30, 45))
        assert insights == ["Your learning is accelerating: recent scores rise faster than before"]

    def test_unstable_and_decelerating(self, synthesizer):
        insights = synthesizer.trend_insights(_trend(20, 90, 10, 95, 30))

        assert len(insights) == 2
        assert insights[0].startswith("Your progress is slowing down")
        assert insights[1].startswith("Results are unstable")

    def test_insufficient_data(self, synthesizer):
        assert synthesizer.trend_insights(_trend(20, 90)) == []


class TestSynthesizeRecommendations:
    def test_never_empty(self, synthesizer):
        assert synthesizer.synthesize_recommendations(None) == [FALLBACK_RECOMMENDATION]
        assert synthesizer.synthesize_recommendations(None, _trend(50, 60)) == [FALLBACK_RECOMMENDATION]

    def test_headline_then_trend(self, synthesizer, metrics):
        recommendations = synthesizer.synthesize_recommendations(metrics, _trend(10, 11, 14, 20, 30, 45))

        assert recommendations[0] == "Great performance! Work on accuracy to reach excellence."
        assert recommendations[1].startswith("Your learning is accelerating")


class TestRecommendationSet:
    def test_intermediate_goal(self, synthesizer):
        [goal] = synthesizer.goal_recommendations(_enriched(40, 45, 50, 55, 60))

        assert goal.target_value == 70
        assert goal.current_value == 50
        assert goal.estimated_days == 7
        assert goal.success_probability == pytest.approx(100.0)
        assert goal.confidence == "high"
        assert goal.milestones == [56, 64, 70]

    def test_flat_learner_gets_default_estimate(self, synthesizer):
        [goal] = synthesizer.goal_recommendations(_enriched(50, 50, 50))
        assert goal.estimated_days == 30

    def test_advanced_goal(self, synthesizer, sessions):
        [goal] = synthesizer.goal_recommendations(enrich_sessions(sessions))
        assert goal.target_value == 85
        assert goal.milestones == [75, 80, 85]

    def test_weaknesses(self, synthesizer):
        words = [
            WordTrendStats("a", 4, 0.2, 0.0, 80.0, 3000.0, 0.0),
            WordTrendStats("b", 4, 0.4, 0.0, 70.0, 3000.0, 0.0),
            WordTrendStats("c", 1, 0.0, 0.0, 70.0, 3000.0, 0.0),
            WordTrendStats("d", 5, 0.9, 0.0, 30.0, 9000.0, 0.0),
        ]
        accuracy, speed = synthesizer.weakness_recommendations(words)

        assert accuracy.area == "accuracy"
        assert accuracy.affected_words == ["a", "b"]
        assert accuracy.expected_improvement == 50
        assert accuracy.severity == 3
        assert speed.area == "speed"
        assert speed.affected_words == ["d"]

    def test_timing(self, synthesizer):
        enriched = enrich_sessions([_at(0, 18, 90), _at(1, 9, 50), _at(2, 18, 90), _at(3, 9, 50)])
        [timing] = synthesizer.timing_recommendations(enriched)

        assert (timing.best_hour, timing.worst_hour) == (18, 9)
        assert timing.evidence[1] == "Peak-to-trough difference: 40%"

    def test_timing_needs_repeated_hours(self, synthesizer):
        assert synthesizer.timing_recommendations(_enriched(80)) == []

    def test_timing_bucket_size_from_config(self):
        synthesizer = InsightSynthesizer(AnalyticsConfig(min_tests_per_bucket=1))
        [timing] = synthesizer.timing_recommendations(_enriched(80))
        assert timing.best_hour == 9

    def test_strategies(self, synthesizer, sessions):
        [accelerate] = synthesizer.strategic_recommendations(enrich_sessions(sessions), [])
        assert accelerate.strategy == "accelerated_learning"
        assert accelerate.description.startswith("Scores rise by 10.0 points per test")

        [consolidate] = synthesizer.strategic_recommendations(_enriched(90, 80, 70), [])
        assert consolidate.strategy == "consolidation_focus"

        heavy_hints = [WordTrendStats("a", 4, 0.5, 0.0, 50.0, 3000.0, 2.0)]
        [hints] = synthesizer.strategic_recommendations(_enriched(70, 70, 70), heavy_hints)
        assert hints.strategy == "hint_optimization"

    def test_personalization_score(self, synthesizer, sessions):
        assert synthesizer.personalization_score(enrich_sessions(sessions), []) == 16
        assert synthesizer.personalization_score([], []) == 0

    def test_build_is_deterministic(self, synthesizer, sessions):
        enriched = enrich_sessions(sessions)
        first = synthesizer.build_recommendations(enriched, [])

        assert first == synthesizer.build_recommendations(enriched, [])
        assert first.personalization_score == 16
