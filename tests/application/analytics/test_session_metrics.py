import pytest
from factories import make_session

from mnemos.application.analytics.session_metrics import SessionMetricsCalculator
from mnemos.application.config import AnalyticsConfig, PerformanceWeights
from mnemos.domain.analytics.models import WordTiming


@pytest.fixture
def calculator():
    return SessionMetricsCalculator()


def _metrics(calculator, sessions):
    return calculator.compute_metrics(calculator.build_timeline(sessions), sessions)


class TestComputeMetrics:
    """Composite Performance Index and its components."""

    def test_rising_scores(self, calculator, sessions):
        metrics = _metrics(calculator, sessions)

        assert metrics.accuracy == 70
        assert metrics.consistency == 86
        assert metrics.best_streak == 2
        assert metrics.improvement_trend == 30.0
        assert metrics.hint_efficiency == 100
        assert metrics.speed_score == 80
        assert metrics.difficulty_score == 70
        assert metrics.learning_velocity == 0.0
        assert metrics.real_time_percentage == 100

    def test_rising_scores_untimed(self, calculator, untimed_sessions):
        timeline = calculator.build_timeline(untimed_sessions)
        metrics = calculator.compute_metrics(timeline, untimed_sessions)

        assert [p.avg_time_per_word for p in timeline] == [10.4, 10.4, 8.0, 8.0, 6.4]
        assert all(p.is_estimated for p in timeline)
        assert metrics.speed_score == 70
        assert metrics.avg_speed == 8.6
        assert metrics.real_time_percentage == 0
        assert (metrics.accuracy, metrics.consistency, metrics.difficulty_score) == (70, 86, 70)
        assert metrics.breakdown.speed.points == 11
        assert metrics.performance_index == 81

    def test_index_is_sum_of_rounded_terms(self, calculator, sessions):
        metrics = _metrics(calculator, sessions)
        b = metrics.breakdown

        assert (b.precision.points, b.consistency.points, b.efficiency.points) == (21, 22, 20)
        assert (b.speed.points, b.difficulty.points) == (12, 7)
        assert metrics.performance_index == 82

    def test_no_sessions(self, calculator):
        assert calculator.compute_metrics([], []) is None

    def test_single_session(self, calculator):
        metrics = _metrics(calculator, [make_session(0, 40)])

        assert metrics.consistency == 100
        assert metrics.improvement_trend == 0.0
        assert metrics.best_streak == 0
        assert 0 <= metrics.performance_index <= 100

    @pytest.mark.parametrize("scores", [[0, 0, 0], [100, 100, 100], [0, 100, 0, 100]])
    def test_index_within_bounds(self, calculator, scores):
        sessions = [make_session(i, pct, hints_used=50) for i, pct in enumerate(scores)]
        assert 0 <= _metrics(calculator, sessions).performance_index <= 100

    def test_hint_efficiency_from_session_totals(self, calculator):
        sessions = [make_session(0, 80, hints_used=3), make_session(1, 80, hints_used=1)]
        assert _metrics(calculator, sessions).hint_efficiency == 80

    def test_hint_efficiency_never_negative(self, calculator):
        sessions = [make_session(0, 80, hints_used=40)]
        assert _metrics(calculator, sessions).hint_efficiency == 0

    def test_hint_efficiency_prefers_word_times(self, calculator):
        timings = [
            WordTiming("a", True),
            WordTiming("b", True),
            WordTiming("c", True),
            WordTiming("d", False, used_hint=True),
        ]
        sessions = [make_session(0, 75, hints_used=9, word_times=timings)]
        assert _metrics(calculator, sessions).hint_efficiency == 75

    def test_difficulty_score_uses_large_sessions(self, calculator):
        sessions = [
            make_session(0, 95, correct_words=19, incorrect_words=1),
            make_session(1, 40),
        ]
        assert _metrics(calculator, sessions).difficulty_score == 100

    def test_difficulty_score_reads_full_history(self, calculator):
        large = [make_session(i, 90, correct_words=18, incorrect_words=2) for i in range(5)]
        small = [make_session(5 + i, 60) for i in range(20)]
        metrics = _metrics(calculator, large + small)

        assert metrics.difficulty_score == 100

    def test_learning_velocity_needs_more_than_five(self, calculator):
        sessions = [make_session(i, pct) for i, pct in enumerate([50, 50, 50, 50, 50, 60, 70, 80, 90, 100])]
        assert _metrics(calculator, sessions).learning_velocity == 30.0

    def test_custom_weights(self, sessions):
        weights = PerformanceWeights(precision=1.0, consistency=0, efficiency=0, speed=0, difficulty=0)
        calculator = SessionMetricsCalculator(AnalyticsConfig(weights=weights))
        assert _metrics(calculator, sessions).performance_index == 70

    def test_idempotent(self, calculator, sessions):
        assert _metrics(calculator, sessions) == _metrics(calculator, sessions)


class TestSpeedScore:
    @pytest.mark.parametrize(
        "seconds,score",
        [(0.5, 100), (3.0, 100), (3.01, 90), (8.0, 80), (12.0, 70), (25.0, 40), (25.1, 30), (90, 30)],
    )
    def test_step_table(self, calculator, seconds, score):
        assert calculator.speed_score(seconds) == score

    def test_monotonic(self, calculator):
        scores = [calculator.speed_score(s / 2) for s in range(0, 80)]
        assert scores == sorted(scores, reverse=True)


class TestBuildTimeline:
    def test_real_time_per_word(self, calculator):
        [point] = calculator.build_timeline([make_session(0, 80, total_time_ms=45_000)])

        assert point.avg_time_per_word == 4.5
        assert point.has_real_time is True
        assert point.is_estimated is False

    def test_estimated_time_per_word(self, calculator):
        easy, hard = calculator.build_timeline(
            [
                make_session(0, 90),
                make_session(1, 40, difficulty="hard", hints_used=2),
            ]
        )

        assert easy.avg_time_per_word == 6.4
        assert easy.is_estimated is True
        assert hard.avg_time_per_word == 25.9

    def test_keeps_most_recent_window(self, calculator):
        sessions = [make_session(i, i) for i in range(25)]
        timeline = calculator.build_timeline(sessions)

        assert len(timeline) == 20
        assert timeline[0].percentage == 5
        assert [p.index for p in timeline] == list(range(20))


class TestChartHelpers:
    def test_radar_data(self, calculator, sessions):
        radar = calculator.radar_data(_metrics(calculator, sessions))
        assert [p.value for p in radar] == [70, 86, 100, 80, 70]

    def test_improvement_windows(self, calculator):
        timeline = calculator.build_timeline([make_session(i, 50 + i * 5) for i in range(9)])
        windows = calculator.improvement_windows(timeline)

        assert [w.period for w in windows] == ["Test 1-5", "Test 3-7", "Test 5-9"]
        assert windows[0].accuracy == 60

    def test_difficulty_analysis_groups_by_size(self, calculator):
        sessions = [
            make_session(0, 60, correct_words=24, incorrect_words=6),
            make_session(1, 80, correct_words=12, incorrect_words=4, hints_used=2),
            make_session(2, 90),
        ]
        buckets = {b.difficulty: b for b in calculator.difficulty_analysis(sessions)}

        assert set(buckets) == {"Easy", "Medium", "Hard"}
        assert buckets["Medium"].avg_hints == 2.0
        assert buckets["Medium"].efficiency == 68
