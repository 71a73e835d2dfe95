from datetime import date, timedelta

import pytest
from factories import T0, make_session

from mnemos.application.analytics.projection_engine import ProjectionEngine
from mnemos.application.analytics.trend_analyzer import enrich_sessions
from mnemos.application.config import AnalyticsConfig, MilestoneRule


@pytest.fixture
def engine():
    return ProjectionEngine()


def _enriched(*scores):
    return enrich_sessions([make_session(i, pct) for i, pct in enumerate(scores)])


class TestProject:
    def test_rising_series_caps_at_100(self, engine, sessions):
        result = engine.project(enrich_sessions(sessions), 7)
        metrics = result.projected_metrics

        assert result.timeframe_days == 7
        assert metrics.accuracy == 100.0
        assert result.confidence == 100
        assert result.optimistic_bound == result.pessimistic_bound == 100.0
        assert (metrics.words_learned, metrics.tests_completed, metrics.study_hours) == (10, 3, 3)
        assert metrics.efficiency == pytest.approx(10.0)
        assert metrics.speed == pytest.approx(10.0)

    def test_milestone_dates_anchor_on_last_session(self, engine, sessions):
        result = engine.project(enrich_sessions(sessions), 7)

        assert [m.threshold for m in result.milestones] == [70, 85]
        assert [m.estimated_date for m in result.milestones] == [date(2024, 3, 10), date(2024, 3, 13)]
        assert all(m.probability_is_heuristic for m in result.milestones)

    def test_custom_milestones(self, sessions):
        rule = MilestoneRule(threshold=95, name="Fluent", fraction=0.5, probability=60)
        engine = ProjectionEngine(AnalyticsConfig(milestones=[rule]))
        [milestone] = engine.project(enrich_sessions(sessions), 7).milestones

        assert milestone.name == "Fluent"
        assert milestone.estimated_date == date(2024, 3, 12)
        assert milestone.probability == 60

    def test_explicit_as_of(self, engine, sessions):
        result = engine.project(enrich_sessions(sessions), 30, as_of=T0 + timedelta(days=20))
        assert result.milestones[0].estimated_date == date(2024, 4, 2)

    def test_declining_series_floors_at_zero(self, engine):
        result = engine.project(_enriched(90, 60, 30), 90)

        assert result.projected_metrics.accuracy == 0.0
        assert result.pessimistic_bound == 0.0
        assert result.milestones == []

    def test_noisy_series_has_floor_confidence(self, engine):
        result = engine.project(_enriched(60, 40, 60, 40, 60, 40), 7)
        accuracy = result.projected_metrics.accuracy

        assert result.confidence == 10
        assert accuracy == pytest.approx(42.29)
        assert result.optimistic_bound == pytest.approx(accuracy + accuracy * 0.9 * 0.2)
        assert result.pessimistic_bound < accuracy < result.optimistic_bound
        assert result.milestones == []

    def test_too_few_points(self, engine, sessions):
        assert engine.project(enrich_sessions(sessions[:2]), 30) is None

    def test_factors(self, engine, sessions):
        consistency, frequency = engine.project(enrich_sessions(sessions), 7).factors

        assert consistency.name == "Consistency"
        assert consistency.trend == "positive"
        assert frequency.trend == "positive"
        assert frequency.weight == 1.0
        assert frequency.impact == "5.0 tests per week on average"


class TestProjectAll:
    def test_one_result_per_horizon(self, engine, sessions):
        results = engine.project_all(enrich_sessions(sessions))
        assert [r.timeframe_days for r in results] == [7, 30, 60, 90]

    def test_custom_horizons(self, sessions):
        engine = ProjectionEngine(AnalyticsConfig(projection_horizons=[14, 7, 14]))
        assert [r.timeframe_days for r in engine.project_all(enrich_sessions(sessions))] == [7, 14]

    def test_nothing_below_minimum(self, engine, sessions):
        assert engine.project_all(enrich_sessions(sessions[:2])) == []

    def test_bounds_bracket_accuracy(self, engine):
        for result in engine.project_all(_enriched(55, 70, 48, 66, 73, 59, 80)):
            accuracy = result.projected_metrics.accuracy
            assert 0 <= result.pessimistic_bound <= accuracy <= result.optimistic_bound <= 100
            assert 10 <= result.confidence <= 100

    def test_deterministic(self, engine, sessions):
        enriched = enrich_sessions(sessions)
        assert engine.project_all(enriched) == engine.project_all(enriched)
