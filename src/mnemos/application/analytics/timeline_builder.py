"""
Per-word attempt timelines and chart series.

When a word has an authoritative attempt log it is used as-is. Otherwise
the timeline is reconstructed from coarse session summaries, with every
inferred field flagged as estimated.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from datetime import datetime

from mnemos.application.config import AnalyticsConfig
from mnemos.application.utils.numbers import mean, round_int, safe_ratio
from mnemos.domain.analytics.models import AttemptRecord, TestSessionSummary, Word, WordPerformance

from .attempt_aggregator import current_streak

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChartPoint:
    """
    One attempt rendered for a timeline chart.

    Attributes:
        label: Short date (dd/mm) for the x axis.
        success: 100 for a correct attempt, 0 otherwise.
        global_precision: Cumulative accuracy up to and including this point.
        hint: Hints of this attempt as a share of the word's total hints (0..100).
        time: Response time in whole seconds.
    """

    label: str
    attempt_number: int
    success: int
    global_precision: int
    hint: int
    time: int
    timestamp: datetime
    is_correct: bool
    used_hint: bool
    is_estimated: bool
    hints_in_attempt: int
    total_hints_for_word: int


@dataclass(frozen=True)
class ReconstructedStats:
    total_attempts: int
    correct_attempts: int
    accuracy: int
    hints_used: int
    hints_percentage: int  # share of attempts that used a hint
    avg_time: int
    current_streak: int
    estimated_attempts: int = 0


@dataclass(frozen=True)
class RecentStats:
    total_attempts: int
    recent_attempts: int
    current_accuracy: int
    trend: int
    recent_hints: int
    avg_recent_time: int


@dataclass(frozen=True)
class WordTimeline:
    """Everything a word detail view needs, from either data source."""

    word_id: str
    source: str  # "performance" or "reconstructed"
    attempts: list[AttemptRecord]
    chart: list[ChartPoint]
    stats: ReconstructedStats
    recent: RecentStats
    status: str
    recommendations: list[str] = field(default_factory=list)

    @property
    def has_data(self) -> bool:
        return bool(self.attempts)


def _cumulative_precision(points: Sequence[ChartPoint | AttemptRecord]) -> list[int]:
    result = []
    correct = 0
    for seen, point in enumerate(points, start=1):
        if (point.is_correct if isinstance(point, ChartPoint) else point.correct):
            correct += 1
        result.append(round_int(100 * correct / seen))
    return result


class TimelineBuilder:
    """
    Builds chronological attempt timelines for single words.

    Stateless and side-effect free: identical inputs always produce
    identical timelines, estimated fields included.
    """

    def __init__(self, config: AnalyticsConfig | None = None):
        self._config = config or AnalyticsConfig()

    def build_timeline(
        self,
        word_id: str,
        sessions: Sequence[TestSessionSummary],
        word_meta: Word | None = None,
    ) -> list[AttemptRecord]:
        """
        Reconstruct a word's attempts from session summaries.

        Precedence per session:
        1. The word is in the session's wrong-answer list: incorrect attempt.
        2. The session has a timing record for the word: used verbatim.
        3. The word's chapter was selected for the session: inferred correct
           attempt with time and hint usage allocated from session totals.
        """
        chapter = word_meta.chapter if word_meta else None
        attempts = []
        for session in sorted(sessions, key=lambda s: s.timestamp):
            attempt = self._attempt_from_session(word_id, chapter, session)
            if attempt is not None:
                attempts.append(attempt)
        return attempts

    def _attempt_from_session(
        self,
        word_id: str,
        chapter: str | None,
        session: TestSessionSummary,
    ) -> AttemptRecord | None:
        words = session.total_words or session.answered_words

        if word_id in session.wrong_word_ids:
            share = min(1.0, safe_ratio(session.hints_used, words))
            return AttemptRecord(
                timestamp=session.timestamp,
                correct=False,
                used_hint=share >= self._config.hint_share_threshold,
                time_spent_ms=self._allocated_time(session, words),
                test_id=session.session_id,
                is_estimated=True,
                estimated_hint_share=share,
            )

        for timing in session.word_times:
            if timing.word_id == word_id:
                return AttemptRecord(
                    timestamp=session.timestamp,
                    correct=timing.is_correct,
                    used_hint=timing.used_hint,
                    hints_count=timing.hints_count,
                    time_spent_ms=timing.time_spent_ms,
                    test_id=session.session_id,
                )

        if chapter and chapter in session.selected_chapters:
            # Equal split of the session's hints across its correct answers
            correct_words = session.correct_words or 1
            share = min(1.0, session.hints_used / correct_words)
            return AttemptRecord(
                timestamp=session.timestamp,
                correct=True,
                used_hint=share >= self._config.hint_share_threshold,
                time_spent_ms=self._allocated_time(session, words),
                test_id=session.session_id,
                is_estimated=True,
                estimated_hint_share=share,
            )

        return None

    def _allocated_time(self, session: TestSessionSummary, words: int) -> int:
        if not session.total_time_ms or words <= 0:
            return 0
        return session.total_time_ms // words

    # ------------------------------------------------------------------
    # Chart series
    # ------------------------------------------------------------------

    def to_chart_series(self, attempts: Sequence[AttemptRecord]) -> list[ChartPoint]:
        if not attempts:
            return []
        total_hints = sum(a.hints_count for a in attempts)
        cumulative = _cumulative_precision(attempts)
        return [
            ChartPoint(
                label=attempt.timestamp.strftime("%d/%m"),
                attempt_number=number,
                success=100 if attempt.correct else 0,
                global_precision=precision,
                hint=round_int(100 * attempt.hints_count / total_hints) if total_hints else 0,
                time=round_int(attempt.time_spent_ms / 1000),
                timestamp=attempt.timestamp,
                is_correct=attempt.correct,
                used_hint=attempt.used_hint,
                is_estimated=attempt.is_estimated,
                hints_in_attempt=attempt.hints_count,
                total_hints_for_word=total_hints,
            )
            for number, (attempt, precision) in enumerate(zip(attempts, cumulative), start=1)
        ]

    def limit(self, series: Sequence[ChartPoint], n: int | None = None) -> list[ChartPoint]:
        """
        Keep the last `n` points and recompute cumulative accuracy over them only.

        Slicing the full-history cumulative values would carry accuracy from
        points that are no longer displayed.
        """
        n = self._config.chart_window if n is None else n
        if n <= 0:
            return []
        window = list(series)[-n:]
        cumulative = _cumulative_precision(window)
        return [replace(point, global_precision=precision) for point, precision in zip(window, cumulative)]

    # ------------------------------------------------------------------
    # Word statistics
    # ------------------------------------------------------------------

    def reconstructed_stats(self, attempts: Sequence[AttemptRecord]) -> ReconstructedStats:
        if not attempts:
            return ReconstructedStats(0, 0, 0, 0, 0, 0, 0)
        total = len(attempts)
        correct = sum(1 for a in attempts if a.correct)
        with_hints = sum(1 for a in attempts if a.had_hint)
        return ReconstructedStats(
            total_attempts=total,
            correct_attempts=correct,
            accuracy=round_int(100 * correct / total),
            hints_used=sum(a.hints_count for a in attempts),
            hints_percentage=round_int(100 * with_hints / total),
            avg_time=round_int(mean([a.time_spent_ms for a in attempts]) / 1000),
            current_streak=current_streak(list(attempts)),
            estimated_attempts=sum(1 for a in attempts if a.is_estimated),
        )

    def recent_stats(
        self,
        chart: Sequence[ChartPoint],
        stats: ReconstructedStats,
        total_attempts: int,
    ) -> RecentStats:
        trend = chart[-1].global_precision - chart[0].global_precision if len(chart) >= 2 else 0
        return RecentStats(
            total_attempts=total_attempts,
            recent_attempts=len(chart),
            current_accuracy=stats.accuracy,
            trend=trend,
            recent_hints=sum(1 for p in chart if p.used_hint),
            avg_recent_time=round_int(mean([p.time for p in chart])),
        )

    def display_status(self, stats: ReconstructedStats) -> str:
        if stats.total_attempts == 0:
            return "New"
        if stats.accuracy == 0:
            return "Critical"
        if stats.accuracy < 40:
            return "Difficult"
        if stats.accuracy < 60:
            return "Improving"
        if stats.accuracy < 80:
            return "Good"
        if stats.current_streak >= 3:
            return "Consolidated"
        return "Excellent"

    def timeline_recommendations(self, stats: ReconstructedStats, recent: RecentStats) -> list[str]:
        if stats.total_attempts == 0:
            return ["Start practicing this word to see its progress"]
        tips = []
        if stats.accuracy < 60:
            tips.append("Review this word more often: accuracy is below 60%")
        if stats.hints_percentage > 50:
            tips.append("Try answering without hints: most attempts relied on one")
        if stats.avg_time > 20:
            tips.append("Practice to bring response times down")
        if stats.current_streak >= 5:
            tips.append("Excellent streak, keep it going")
        if recent.trend > 20:
            tips.append("Strong upward trend: you are improving quickly")
        if stats.accuracy >= 80 and stats.current_streak >= 3:
            tips.append("Well consolidated: focus on other difficult words")
        if stats.accuracy == 0:
            tips.append("Very hard word: keep practicing, it will improve")
        if not tips:
            tips.append("Keep practicing to unlock personalized suggestions")
        return tips

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def word_timeline(
        self,
        word_id: str,
        sessions: Sequence[TestSessionSummary],
        word_meta: Word | None = None,
        performance: WordPerformance | None = None,
    ) -> WordTimeline:
        """
        Full timeline for a word, preferring its authoritative attempt log
        and falling back to reconstruction from sessions.
        """
        if performance is not None and performance.attempts:
            attempts = sorted(performance.attempts, key=lambda a: a.timestamp)
            source = "performance"
        else:
            attempts = self.build_timeline(word_id, sessions, word_meta)
            source = "reconstructed"
            logger.debug("Reconstructed %d attempts for word %s", len(attempts), word_id)

        chart = self.limit(self.to_chart_series(attempts))
        stats = self.reconstructed_stats(attempts)
        recent = self.recent_stats(chart, stats, len(attempts))
        return WordTimeline(
            word_id=word_id,
            source=source,
            attempts=attempts,
            chart=chart,
            stats=stats,
            recent=recent,
            status=self.display_status(stats),
            recommendations=self.timeline_recommendations(stats, recent),
        )
