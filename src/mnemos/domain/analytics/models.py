"""
Domain records for learning analytics.

These are pure data structures with no I/O or external dependencies.
They are produced by the ingestion layer once raw snapshots have been
validated, so every field is populated with a documented default.
"""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class AttemptRecord:
    """
    A single recall attempt of one word within a session.

    Attributes:
        timestamp: When the attempt was made (timezone-aware).
        correct: Whether the learner recalled the word.
        used_hint: Whether a hint was shown.
        hints_count: Number of hints shown for this attempt.
        time_spent_ms: Response latency in milliseconds.
        test_id: Session the attempt belongs to, if known.
        is_estimated: True when the record was inferred from session aggregates.
        estimated_hint_share: Proportional hint allocation behind `used_hint`
            for estimated records (0.0 for authoritative ones).
    """

    timestamp: datetime
    correct: bool
    used_hint: bool = False
    hints_count: int = 0
    time_spent_ms: int = 0
    test_id: str | None = None
    is_estimated: bool = False
    estimated_hint_share: float = 0.0

    @property
    def had_hint(self) -> bool:
        return self.used_hint or self.hints_count > 0


@dataclass(frozen=True)
class WordPerformance:
    """
    Attempt history of one word, optionally with cached aggregates.

    The persistence layer may store `total_attempts`, `correct_attempts`,
    `accuracy` and `average_response_time_ms` next to the attempt log.
    They are only trusted when `has_aggregates` holds.
    """

    word_id: str
    attempts: list[AttemptRecord] = field(default_factory=list)

    # Cached aggregates (None when absent or malformed)
    total_attempts: int | None = None
    correct_attempts: int | None = None
    accuracy: float | None = None
    average_response_time_ms: float | None = None

    @property
    def has_aggregates(self) -> bool:
        if self.total_attempts is None or self.correct_attempts is None or self.accuracy is None:
            return False
        return (
            self.total_attempts > 0
            and 0 <= self.correct_attempts <= self.total_attempts
            and 0 <= self.accuracy <= 100
        )


@dataclass(frozen=True)
class WordTiming:
    """Authoritative per-word timing recorded during a session."""

    word_id: str
    is_correct: bool
    used_hint: bool = False
    time_spent_ms: int = 0
    hints_count: int = 0


@dataclass(frozen=True)
class TestSessionSummary:
    """
    One completed quiz run.

    Attributes:
        timestamp: Completion time (timezone-aware).
        percentage: Score in 0..100.
        correct_words: Words answered correctly.
        incorrect_words: Words answered incorrectly.
        total_words: Words in the session.
        hints_used: Hints shown over the whole session.
        total_time_ms: Total duration; None means per-word timing must be estimated.
        difficulty: Declared difficulty ("easy", "medium", "hard").
        test_type: Free-form test mode label.
        selected_chapters: Chapters the session drew words from.
        session_id: Stable identifier, if the store provides one.
        wrong_word_ids: Words answered incorrectly, when recorded.
        word_times: Per-word timing records, when recorded.
    """

    __test__ = False  # not a pytest class despite the name

    timestamp: datetime
    percentage: float
    correct_words: int = 0
    incorrect_words: int = 0
    total_words: int = 0
    hints_used: int = 0
    total_time_ms: int | None = None
    difficulty: str = "medium"
    test_type: str = "unknown"
    selected_chapters: list[str] = field(default_factory=list)
    session_id: str | None = None
    wrong_word_ids: list[str] = field(default_factory=list)
    word_times: list[WordTiming] = field(default_factory=list)

    @property
    def answered_words(self) -> int:
        """Words answered in the session, falling back to the declared total."""
        answered = self.correct_words + self.incorrect_words
        return answered if answered > 0 else self.total_words


@dataclass(frozen=True)
class Word:
    """A catalog entry."""

    id: str
    english: str = ""
    italian: str = ""
    chapter: str | None = None
    group: str | None = None
    learned: bool = False
    difficult: bool = False
