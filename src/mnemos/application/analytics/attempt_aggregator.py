"""
Per-word mastery statistics.

Folds a word's attempt history into point statistics (accuracy, streak,
hint share, status, trend). Pure computation, no I/O.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from mnemos.application.config import AnalyticsConfig
from mnemos.application.utils.numbers import mean, round_int, safe_ratio
from mnemos.domain.analytics.models import AttemptRecord, Word, WordPerformance


@dataclass(frozen=True)
class WordPerformanceAnalysis:
    """
    Catalog fields of a word merged with its attempt statistics.

    Attributes:
        accuracy: Percentage of correct attempts (0..100).
        avg_time: Mean response time in whole seconds.
        hints_percentage: This word's share of all hints the learner used.
        recent_accuracy: Accuracy over the last few attempts.
        status: new, promising, struggling, consolidated, critical,
            inconsistent or improving.
        trend: improving, declining or stable.
        difficulty: easy, medium, hard or unknown (derived from accuracy).
    """

    word_id: str
    english: str
    italian: str
    chapter: str | None
    group: str | None
    learned: bool
    difficult: bool

    has_performance_data: bool
    total_attempts: int
    correct_attempts: int
    incorrect_attempts: int
    accuracy: int
    avg_time: int
    current_streak: int
    hints_used: int
    tests_with_hints: int
    hints_percentage: int
    recent_accuracy: int
    status: str
    trend: str
    difficulty: str
    needs_work: bool
    mastered: bool
    last_attempt: AttemptRecord | None = None
    attempts: list[AttemptRecord] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class WordAnalysisSplit:
    with_performance: list[WordPerformanceAnalysis]
    without_performance: list[WordPerformanceAnalysis]

    @property
    def total(self) -> int:
        return len(self.with_performance) + len(self.without_performance)


def total_user_hints(performances: Iterable[WordPerformance]) -> int:
    """Sum of hints used across every attempt of every word."""
    return sum(a.hints_count for perf in performances for a in perf.attempts)


def current_streak(attempts: list[AttemptRecord]) -> int:
    """Trailing run of correct attempts, scanning back from the most recent."""
    streak = 0
    for attempt in reversed(attempts):
        if not attempt.correct:
            break
        streak += 1
    return streak


def _accuracy(attempts: list[AttemptRecord]) -> int:
    if not attempts:
        return 0
    return round_int(100 * sum(1 for a in attempts if a.correct) / len(attempts))


class AttemptAggregator:
    """
    Computes WordPerformanceAnalysis objects from raw attempt logs.

    Stateless and side-effect free.
    """

    def __init__(self, config: AnalyticsConfig | None = None):
        self._config = config or AnalyticsConfig()

    def aggregate(
        self,
        word: Word,
        performance: WordPerformance | None,
        total_user_hints: int,
    ) -> WordPerformanceAnalysis:
        """
        Aggregate one word's history.

        Cached aggregates on `performance` are preferred when well-formed;
        otherwise totals are recomputed from the attempt log.
        """
        attempts = list(performance.attempts) if performance else []
        if performance is not None and performance.has_aggregates:
            total = performance.total_attempts or 0
            correct = performance.correct_attempts or 0
            accuracy = round_int(performance.accuracy or 0)
            if performance.average_response_time_ms is not None:
                avg_time = round_int(performance.average_response_time_ms / 1000)
            else:
                avg_time = self._avg_seconds(attempts)
        else:
            total = len(attempts)
            correct = sum(1 for a in attempts if a.correct)
            accuracy = _accuracy(attempts)
            avg_time = self._avg_seconds(attempts)

        if total == 0:
            return self.empty_analysis(word)

        hints_used = sum(a.hints_count for a in attempts)
        tests_with_hints = sum(1 for a in attempts if a.had_hint)
        hints_percentage = round_int(100 * safe_ratio(hints_used, total_user_hints))
        streak = current_streak(attempts)
        status = self._compute_status(total, accuracy, streak)

        return WordPerformanceAnalysis(
            word_id=word.id,
            english=word.english,
            italian=word.italian,
            chapter=word.chapter,
            group=word.group,
            learned=word.learned,
            difficult=word.difficult,
            has_performance_data=True,
            total_attempts=total,
            correct_attempts=correct,
            incorrect_attempts=total - correct,
            accuracy=accuracy,
            avg_time=avg_time,
            current_streak=streak,
            hints_used=hints_used,
            tests_with_hints=tests_with_hints,
            hints_percentage=hints_percentage,
            recent_accuracy=_accuracy(attempts[-self._config.recent_attempts_window :]),
            status=status,
            trend=self._compute_trend(attempts),
            difficulty=self._difficulty_label(accuracy),
            needs_work=accuracy < 70,
            mastered=accuracy >= 90 and streak >= 3,
            last_attempt=attempts[-1] if attempts else None,
            attempts=attempts,
            recommendations=self._recommendations(accuracy, streak, hints_percentage, avg_time),
        )

    def empty_analysis(self, word: Word) -> WordPerformanceAnalysis:
        """Explicit record for a word that was never attempted."""
        return WordPerformanceAnalysis(
            word_id=word.id,
            english=word.english,
            italian=word.italian,
            chapter=word.chapter,
            group=word.group,
            learned=word.learned,
            difficult=word.difficult,
            has_performance_data=False,
            total_attempts=0,
            correct_attempts=0,
            incorrect_attempts=0,
            accuracy=0,
            avg_time=0,
            current_streak=0,
            hints_used=0,
            tests_with_hints=0,
            hints_percentage=0,
            recent_accuracy=0,
            status="new",
            trend="stable",
            difficulty="unknown",
            needs_work=False,
            mastered=False,
            recommendations=["Start practicing this word to collect statistics"],
        )

    def analyze_words(
        self,
        words: Iterable[Word],
        performances: Mapping[str, WordPerformance],
    ) -> WordAnalysisSplit:
        """Analyze a catalog, separating words with and without history."""
        hints_total = total_user_hints(performances.values())
        with_perf, without_perf = [], []
        for word in words:
            analysis = self.aggregate(word, performances.get(word.id), hints_total)
            if analysis.has_performance_data:
                with_perf.append(analysis)
            else:
                without_perf.append(analysis)
        return WordAnalysisSplit(with_performance=with_perf, without_performance=without_perf)

    def analyze_all(
        self,
        words: Iterable[Word],
        performances: Mapping[str, WordPerformance],
    ) -> list[WordPerformanceAnalysis]:
        split = self.analyze_words(words, performances)
        return split.with_performance + split.without_performance

    # ------------------------------------------------------------------
    # Classification
    # ------------------------------------------------------------------

    def _compute_status(self, total: int, accuracy: int, streak: int) -> str:
        if total == 0:
            return "new"
        if total < self._config.min_attempts_for_status:
            return "promising" if streak > 0 else "struggling"
        if accuracy >= 90 and streak >= 3:
            return "consolidated"
        if accuracy <= 30:
            return "critical"
        if accuracy <= 60:
            return "inconsistent"
        # 60 < accuracy < 70 has no bucket of its own
        return "improving"

    def _compute_trend(self, attempts: list[AttemptRecord]) -> str:
        """
        Compare accuracy of the older half of attempts with the newer half.
        """
        if len(attempts) < self._config.min_attempts_for_trend:
            return "stable"
        mid = len(attempts) // 2
        older = mean([100.0 if a.correct else 0.0 for a in attempts[:mid]])
        newer = mean([100.0 if a.correct else 0.0 for a in attempts[mid:]])
        delta = newer - older
        if delta > self._config.word_trend_delta:
            return "improving"
        if delta < -self._config.word_trend_delta:
            return "declining"
        return "stable"

    def _difficulty_label(self, accuracy: int) -> str:
        if accuracy >= 80:
            return "easy"
        if accuracy >= 60:
            return "medium"
        if accuracy > 0:
            return "hard"
        return "unknown"

    def _avg_seconds(self, attempts: list[AttemptRecord]) -> int:
        if not attempts:
            return 0
        return round_int(mean([a.time_spent_ms for a in attempts]) / 1000)

    def _recommendations(
        self, accuracy: int, streak: int, hints_percentage: int, avg_time: int
    ) -> list[str]:
        tips = []
        if accuracy < 60:
            tips.append("Review this word more often: accuracy is below 60%")
        if hints_percentage > 50:
            tips.append("Try answering without hints to build autonomous recall")
        if avg_time > 20:
            tips.append("Work on response speed: answers take over 20 seconds")
        if streak >= 5:
            tips.append(f"Great streak of {streak} correct answers in a row")
        if accuracy >= 80 and streak >= 3:
            tips.append("Word consolidated: review it occasionally to keep it fresh")
        if accuracy == 0:
            tips.append("Very hard word: study its meaning before the next test")
        if not tips:
            tips.append("Keep practicing to consolidate this word")
        return tips
