from datetime import datetime, timedelta
from unittest.mock import AsyncMock

import pytest
from factories import T0, raw_session

from mnemos.application.analytics.ingestion import Snapshot
from mnemos.application.analytics.insight_synthesizer import FALLBACK_RECOMMENDATION
from mnemos.application.analytics.service import LearningAnalyticsService
from mnemos.application.config import AnalyticsConfig


def _raw_attempt(minute, correct, **kwargs):
    record = {"timestamp": (T0 + timedelta(minutes=minute)).isoformat(), "correct": correct}
    record.update(kwargs)
    return record


@pytest.fixture
def mock_repo():
    repo = AsyncMock()
    repo.get_test_sessions.return_value = [raw_session(day, pct) for day, pct in enumerate([50, 60, 70, 80, 90])]
    repo.get_word_performances.return_value = {
        "w1": {
            "attempts": [
                _raw_attempt(0, True, timeSpent=3000),
                _raw_attempt(1, True, timeSpent=5000),
                _raw_attempt(2, False, usedHint=True, hintsCount=1, timeSpent=7000),
            ]
        }
    }
    repo.get_word_catalog.return_value = [
        {"id": "w1", "english": "house", "italian": "casa", "chapter": "1"},
        {"id": "w2", "english": "cat", "italian": "gatto", "chapter": "1"},
    ]
    return repo


@pytest.fixture
def empty_repo():
    repo = AsyncMock()
    repo.get_test_sessions.return_value = []
    repo.get_word_performances.return_value = {}
    repo.get_word_catalog.return_value = []
    return repo


@pytest.fixture
def service(mock_repo):
    return LearningAnalyticsService(mock_repo)


@pytest.mark.asyncio
async def test_analyze_full_report(service, mock_repo):
    report = await service.analyze("alice")

    mock_repo.get_test_sessions.assert_awaited_once_with("alice")
    mock_repo.get_word_performances.assert_awaited_once_with("alice")
    mock_repo.get_word_catalog.assert_awaited_once_with("alice")

    assert report.as_of == T0 + timedelta(days=4)
    assert len(report.timeline) == 5
    assert report.metrics.performance_index == 82
    assert [p.value for p in report.radar] == [70, 86, 100, 80, 70]
    assert report.trend.velocity == 10.0
    assert [p.timeframe_days for p in report.projections] == [7, 30, 60, 90]
    assert report.validation.recent_sessions == 5
    assert report.recommendations[0].startswith("Great performance!")
    assert report.profile.has_sufficient_data is True


@pytest.mark.asyncio
async def test_analyze_words(service):
    report = await service.analyze("alice")

    assert [w.word_id for w in report.words] == ["w1", "w2"]
    assert report.words[0].accuracy == 67
    assert report.word_summary.with_performance == 1
    assert report.word_summary.without_performance == 1


@pytest.mark.asyncio
async def test_analyze_is_idempotent(service):
    assert await service.analyze("alice") == await service.analyze("alice")


@pytest.mark.asyncio
async def test_explicit_as_of_drives_recency(service):
    report = await service.analyze("alice", as_of=T0 + timedelta(days=120))

    assert report.validation.recent_sessions == 0
    assert "Future projections" not in report.validation.available_analyses
    assert report.projections[0].milestones[0].estimated_date == (T0 + timedelta(days=122)).date()


@pytest.mark.asyncio
async def test_config_reaches_every_component(mock_repo):
    config = AnalyticsConfig(projection_horizons=[14], min_sessions_for_velocity=10)
    report = await LearningAnalyticsService(mock_repo, config).analyze("alice")

    assert [p.timeframe_days for p in report.projections] == [14]
    assert report.trend.has_sufficient_data is False


@pytest.mark.asyncio
async def test_empty_history(empty_repo):
    report = await LearningAnalyticsService(empty_repo).analyze("nobody")

    assert report.as_of is None
    assert report.metrics is None
    assert report.insights is None
    assert report.radar == []
    assert report.projections == []
    assert report.recommendations == [FALLBACK_RECOMMENDATION]
    assert report.profile.has_sufficient_data is False
    assert report.validation.can_analyze is False


@pytest.mark.asyncio
async def test_invalid_sessions_are_dropped(mock_repo):
    mock_repo.get_test_sessions.return_value = [
        raw_session(0, 80),
        {"percentage": 90, "correctWords": 9, "incorrectWords": 1},
        {"timestamp": "not a date", "percentage": 50},
    ]
    snapshot = await LearningAnalyticsService(mock_repo).load_snapshot("alice")

    assert len(snapshot.sessions) == 1
    assert snapshot.dropped_sessions == 2


@pytest.mark.asyncio
async def test_word_detail(service):
    timeline = await service.word_detail("alice", "w1")

    assert timeline.source == "performance"
    assert timeline.stats.total_attempts == 3


@pytest.mark.asyncio
async def test_word_detail_catalog_only(service):
    timeline = await service.word_detail("alice", "w2")
    assert timeline is not None


@pytest.mark.asyncio
async def test_word_detail_unknown_word(service):
    assert await service.word_detail("alice", "missing") is None


def test_build_report_is_pure(service):
    assert service.build_report(Snapshot()).recommendations == [FALLBACK_RECOMMENDATION]


def test_naive_as_of_is_read_as_utc(service, sessions):
    report = service.build_report(Snapshot(sessions=sessions), as_of=datetime(2024, 3, 10, 9, 0))

    assert report.as_of == T0 + timedelta(days=6)
    assert report.validation.recent_sessions == 5
