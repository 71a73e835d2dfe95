"""Builders for domain records used across the test suite."""

from datetime import datetime, timedelta, timezone

from mnemos.domain.analytics.models import AttemptRecord, TestSessionSummary

T0 = datetime(2024, 3, 4, 9, 0, tzinfo=timezone.utc)  # a Monday


def make_session(day: float, percentage: float, **kwargs) -> TestSessionSummary:
    """A session `day` days after T0, with 10 answered words by default."""
    correct = kwargs.pop("correct_words", round(percentage / 10))
    incorrect = kwargs.pop("incorrect_words", 10 - correct)
    return TestSessionSummary(
        timestamp=T0 + timedelta(days=day),
        percentage=percentage,
        correct_words=correct,
        incorrect_words=incorrect,
        total_words=kwargs.pop("total_words", correct + incorrect),
        **kwargs,
    )


def make_attempt(minute: int, correct: bool, **kwargs) -> AttemptRecord:
    return AttemptRecord(timestamp=T0 + timedelta(minutes=minute), correct=correct, **kwargs)


def raw_session(day: int, percentage: float, **kwargs) -> dict:
    """A session record as the app stores it (camelCase keys, ISO timestamp)."""
    record = {
        "timestamp": (T0 + timedelta(days=day)).isoformat(),
        "percentage": percentage,
        "correctWords": round(percentage / 10),
        "incorrectWords": 10 - round(percentage / 10),
        "totalWords": 10,
        "hintsUsed": 0,
        "totalTime": 60_000,
    }
    record.update(kwargs)
    return record
