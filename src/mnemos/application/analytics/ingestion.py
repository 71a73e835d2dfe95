"""
Boundary validation for raw learner snapshots.

Raw records arrive as loosely-typed mappings with camelCase keys. Each one is
validated with a pydantic model and normalized into a fully-populated domain
record. Records that fail validation (most commonly a missing or unparseable
timestamp) are dropped and logged, never raised: analytics run over
best-effort history.
"""

import logging
import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Annotated, Any

from pydantic import (
    AfterValidator,
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)

from mnemos.domain.analytics.models import (
    AttemptRecord,
    TestSessionSummary,
    Word,
    WordPerformance,
    WordTiming,
)

logger = logging.getLogger(__name__)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _lenient_number(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _count(value: Any) -> int:
    number = _lenient_number(value)
    if number is None:
        return 0
    return max(0, int(number))


def _identifier(value: Any) -> Any:
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


UtcDatetime = Annotated[datetime, AfterValidator(as_utc)]


class _RawRecord(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


# ---------------------------------------------------------------------------
# Attempts and per-word timings
# ---------------------------------------------------------------------------


class RawAttempt(_RawRecord):
    timestamp: UtcDatetime
    correct: bool = False
    used_hint: bool = Field(default=False, validation_alias=AliasChoices("usedHint", "used_hint"))
    hints_count: int = Field(default=0, validation_alias=AliasChoices("hintsCount", "hints_count"))
    time_spent_ms: int = Field(
        default=0,
        validation_alias=AliasChoices("timeSpent", "timeSpentMs", "time_spent_ms"),
    )
    test_id: str | None = Field(default=None, validation_alias=AliasChoices("testId", "test_id"))

    @field_validator("hints_count", "time_spent_ms", mode="before")
    @classmethod
    def non_negative(cls, v: Any) -> int:
        return _count(v)

    @field_validator("used_hint", "correct", mode="before")
    @classmethod
    def falsy_null(cls, v: Any) -> Any:
        return False if v is None else v

    @field_validator("test_id", mode="before")
    @classmethod
    def stringify_id(cls, v: Any) -> Any:
        return _identifier(v)

    def to_domain(self) -> AttemptRecord:
        return AttemptRecord(
            timestamp=self.timestamp,
            correct=self.correct,
            used_hint=self.used_hint or self.hints_count > 0,
            hints_count=self.hints_count,
            time_spent_ms=self.time_spent_ms,
            test_id=self.test_id,
        )


class RawWordTime(_RawRecord):
    word_id: str = Field(validation_alias=AliasChoices("wordId", "word_id", "id"))
    is_correct: bool = Field(default=False, validation_alias=AliasChoices("isCorrect", "is_correct", "correct"))
    used_hint: bool = Field(default=False, validation_alias=AliasChoices("usedHint", "used_hint"))
    time_spent_ms: int = Field(
        default=0,
        validation_alias=AliasChoices("timeSpent", "timeSpentMs", "time_spent_ms"),
    )
    hints_count: int = Field(default=0, validation_alias=AliasChoices("hintsCount", "hints_count"))

    @field_validator("word_id", mode="before")
    @classmethod
    def stringify_id(cls, v: Any) -> Any:
        return _identifier(v)

    @field_validator("hints_count", "time_spent_ms", mode="before")
    @classmethod
    def non_negative(cls, v: Any) -> int:
        return _count(v)

    def to_domain(self) -> WordTiming:
        return WordTiming(
            word_id=self.word_id,
            is_correct=self.is_correct,
            used_hint=self.used_hint or self.hints_count > 0,
            time_spent_ms=self.time_spent_ms,
            hints_count=self.hints_count,
        )


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------


class RawSession(_RawRecord):
    timestamp: UtcDatetime = Field(validation_alias=AliasChoices("timestamp", "completedAt", "date"))
    percentage: float | None = None
    correct_words: int = Field(default=0, validation_alias=AliasChoices("correctWords", "correct_words"))
    incorrect_words: int = Field(
        default=0, validation_alias=AliasChoices("incorrectWords", "incorrect_words")
    )
    total_words: int | None = Field(default=None, validation_alias=AliasChoices("totalWords", "total_words"))
    hints_used: int = Field(default=0, validation_alias=AliasChoices("hintsUsed", "hints_used"))
    total_time_ms: int | None = Field(
        default=None, validation_alias=AliasChoices("totalTime", "totalTimeMs", "total_time_ms")
    )
    difficulty: str | None = "medium"
    test_type: str | None = Field(default="unknown", validation_alias=AliasChoices("testType", "test_type"))
    selected_chapters: list[str] = Field(
        default_factory=list, validation_alias=AliasChoices("selectedChapters", "selected_chapters")
    )
    test_parameters: Any = Field(
        default=None, validation_alias=AliasChoices("testParameters", "test_parameters")
    )
    session_id: str | None = Field(default=None, validation_alias=AliasChoices("id", "sessionId", "session_id"))
    wrong_words: list[Any] = Field(default_factory=list, validation_alias=AliasChoices("wrongWords", "wrong_words"))
    word_times: list[Any] = Field(default_factory=list, validation_alias=AliasChoices("wordTimes", "word_times"))

    @field_validator("percentage", mode="before")
    @classmethod
    def parse_percentage(cls, v: Any) -> float | None:
        return _lenient_number(v)

    @field_validator("correct_words", "incorrect_words", "hints_used", mode="before")
    @classmethod
    def non_negative(cls, v: Any) -> int:
        return _count(v)

    @field_validator("total_words", "total_time_ms", mode="before")
    @classmethod
    def optional_count(cls, v: Any) -> int | None:
        count = _count(v)
        return count if count > 0 else None

    @field_validator("difficulty", "test_type", mode="before")
    @classmethod
    def label(cls, v: Any) -> Any:
        if v is None or v == "":
            return None
        return str(v).strip().lower() or None

    @field_validator("wrong_words", "word_times", mode="before")
    @classmethod
    def lenient_list(cls, v: Any) -> list[Any]:
        return v if isinstance(v, list) else []

    @field_validator("selected_chapters", mode="before")
    @classmethod
    def chapters(cls, v: Any) -> list[str]:
        if not isinstance(v, list):
            return []
        return [str(ch) for ch in v if ch is not None and ch != ""]

    @field_validator("session_id", mode="before")
    @classmethod
    def stringify_id(cls, v: Any) -> Any:
        return _identifier(v)

    def to_domain(self) -> TestSessionSummary:
        answered = self.correct_words + self.incorrect_words
        total_words = self.total_words if self.total_words is not None else answered

        if self.percentage is None:
            percentage = 100.0 * self.correct_words / answered if answered else 0.0
        else:
            percentage = max(0.0, min(100.0, self.percentage))

        chapters = self.selected_chapters
        if not chapters and isinstance(self.test_parameters, Mapping):
            raw = self.test_parameters.get("selectedChapters") or []
            chapters = [str(ch) for ch in raw if ch is not None and ch != ""]

        return TestSessionSummary(
            timestamp=self.timestamp,
            percentage=percentage,
            correct_words=self.correct_words,
            incorrect_words=self.incorrect_words,
            total_words=total_words,
            hints_used=self.hints_used,
            total_time_ms=self.total_time_ms,
            difficulty=self.difficulty or "medium",
            test_type=self.test_type or "unknown",
            selected_chapters=chapters,
            session_id=self.session_id,
            wrong_word_ids=self._wrong_word_ids(),
            word_times=self._word_times(),
        )

    def _wrong_word_ids(self) -> list[str]:
        ids = []
        for entry in self.wrong_words:
            if isinstance(entry, Mapping):
                entry = entry.get("id") or entry.get("wordId")
            entry = _identifier(entry)
            if isinstance(entry, str) and entry:
                ids.append(entry)
        return ids

    def _word_times(self) -> list[WordTiming]:
        timings = []
        for entry in self.word_times:
            try:
                timings.append(RawWordTime.model_validate(entry).to_domain())
            except ValidationError:
                logger.debug("Dropping malformed word timing in session %s", self.session_id)
        return timings


# ---------------------------------------------------------------------------
# Word performances and catalog
# ---------------------------------------------------------------------------


class RawWordPerformance(_RawRecord):
    word_id: str | None = Field(default=None, validation_alias=AliasChoices("wordId", "word_id"))
    attempts: list[Any] = Field(default_factory=list)
    total_attempts: float | None = Field(
        default=None, validation_alias=AliasChoices("totalAttempts", "total_attempts")
    )
    correct_attempts: float | None = Field(
        default=None, validation_alias=AliasChoices("correctAttempts", "correct_attempts")
    )
    accuracy: float | None = None
    average_response_time_ms: float | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "averageResponseTime", "averageResponseTimeMs", "average_response_time_ms"
        ),
    )

    @field_validator(
        "total_attempts", "correct_attempts", "accuracy", "average_response_time_ms", mode="before"
    )
    @classmethod
    def lenient(cls, v: Any) -> float | None:
        return _lenient_number(v)

    @field_validator("attempts", mode="before")
    @classmethod
    def attempt_list(cls, v: Any) -> list[Any]:
        return v if isinstance(v, list) else []

    def to_domain(self, word_id: str) -> WordPerformance:
        attempts = []
        for entry in self.attempts:
            try:
                attempts.append(RawAttempt.model_validate(entry).to_domain())
            except ValidationError:
                logger.debug("Dropping malformed attempt for word %s", word_id)
        attempts.sort(key=lambda a: a.timestamp)

        total, correct, accuracy = self.total_attempts, self.correct_attempts, self.accuracy
        aggregates_ok = (
            total is not None
            and correct is not None
            and accuracy is not None
            and total > 0
            and 0 <= correct <= total
            and 0 <= accuracy <= 100
        )
        avg_ms = self.average_response_time_ms
        if avg_ms is not None and avg_ms < 0:
            avg_ms = None

        return WordPerformance(
            word_id=word_id,
            attempts=attempts,
            total_attempts=int(total) if aggregates_ok else None,
            correct_attempts=int(correct) if aggregates_ok else None,
            accuracy=accuracy if aggregates_ok else None,
            average_response_time_ms=avg_ms,
        )


class RawWord(_RawRecord):
    id: str
    english: str = ""
    italian: str = ""
    chapter: str | None = None
    group: str | None = None
    learned: bool = False
    difficult: bool = False

    @field_validator("id", "chapter", "group", mode="before")
    @classmethod
    def stringify(cls, v: Any) -> Any:
        v = _identifier(v)
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v

    @field_validator("english", "italian", mode="before")
    @classmethod
    def text(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("learned", "difficult", mode="before")
    @classmethod
    def flag(cls, v: Any) -> Any:
        return False if v is None else v

    def to_domain(self) -> Word:
        return Word(
            id=self.id,
            english=self.english,
            italian=self.italian,
            chapter=self.chapter,
            group=self.group,
            learned=self.learned,
            difficult=self.difficult,
        )


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Snapshot:
    """A learner's validated history, ready for analysis."""

    sessions: list[TestSessionSummary] = field(default_factory=list)
    performances: dict[str, WordPerformance] = field(default_factory=dict)
    words: list[Word] = field(default_factory=list)
    dropped_sessions: int = 0  # session records rejected at validation


def parse_sessions(raw: Iterable[Any]) -> list[TestSessionSummary]:
    """
    Validate raw session records.

    Returns:
        Valid sessions sorted oldest first (stable for equal timestamps).
    """
    sessions, _ = _validate_sessions(raw)
    return sessions


def _validate_sessions(raw: Iterable[Any]) -> tuple[list[TestSessionSummary], int]:
    sessions = []
    dropped = 0
    for position, record in enumerate(raw):
        try:
            sessions.append(RawSession.model_validate(record).to_domain())
        except ValidationError as e:
            dropped += 1
            fields = sorted({str(err["loc"][0]) for err in e.errors() if err["loc"]})
            logger.warning("Dropping session #%d: invalid %s", position, ", ".join(fields) or "record")
    sessions.sort(key=lambda s: s.timestamp)
    logger.debug("Parsed %d sessions (%d dropped)", len(sessions), dropped)
    return sessions, dropped


def parse_word_performances(raw: Mapping[str, Any]) -> dict[str, WordPerformance]:
    performances = {}
    for key, record in raw.items():
        try:
            parsed = RawWordPerformance.model_validate(record)
        except ValidationError:
            logger.warning("Dropping performance record for word %s", key)
            continue
        word_id = str(key) if key not in (None, "") else parsed.word_id
        if not word_id:
            logger.warning("Dropping performance record without a word id")
            continue
        performances[word_id] = parsed.to_domain(word_id)
    return performances


def parse_words(raw: Iterable[Any]) -> list[Word]:
    words = []
    for position, record in enumerate(raw):
        try:
            words.append(RawWord.model_validate(record).to_domain())
        except ValidationError:
            logger.warning("Dropping catalog word #%d: missing id", position)
    return words


def parse_snapshot(raw: Mapping[str, Any]) -> Snapshot:
    performances = raw.get("performances") or raw.get("wordPerformances") or {}
    if not isinstance(performances, Mapping):
        logger.warning("Ignoring word performances: expected a mapping keyed by word id")
        performances = {}
    sessions, dropped = _validate_sessions(raw.get("sessions") or raw.get("testHistory") or [])
    return Snapshot(
        sessions=sessions,
        performances=parse_word_performances(performances),
        words=parse_words(raw.get("words") or []),
        dropped_sessions=dropped,
    )
