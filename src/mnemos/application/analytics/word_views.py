"""Filtering, grouping and summaries over analyzed words."""

from collections.abc import Iterable
from dataclasses import dataclass

from mnemos.application.utils.numbers import mean, round_int
from mnemos.domain import constants as c

from .attempt_aggregator import WordPerformanceAnalysis


@dataclass(frozen=True)
class WordStatsSummary:
    total: int
    learned: int
    not_learned: int
    difficult: int
    with_chapter: int
    with_performance: int
    without_performance: int
    avg_accuracy: int


@dataclass(frozen=True)
class FilterOptions:
    chapters: list[str]
    groups: list[str]


def filter_words(
    analyses: Iterable[WordPerformanceAnalysis],
    search: str | None = None,
    chapter: str | None = None,
    group: str | None = None,
    learned: bool | None = None,
    difficult: bool | None = None,
) -> list[WordPerformanceAnalysis]:
    """
    Filter analyzed words. `chapter="no-chapter"` selects words without one.

    Search is case-insensitive over both the English and Italian forms.
    """
    needle = search.strip().lower() if search else ""
    result = []
    for word in analyses:
        if needle and needle not in word.english.lower() and needle not in word.italian.lower():
            continue
        if chapter:
            if chapter == c.NO_CHAPTER_FILTER:
                if word.chapter:
                    continue
            elif word.chapter != chapter:
                continue
        if group and word.group != group:
            continue
        if learned is not None and word.learned != learned:
            continue
        if difficult is not None and word.difficult != difficult:
            continue
        result.append(word)
    return result


def group_by_chapter(
    analyses: Iterable[WordPerformanceAnalysis],
) -> dict[str, list[WordPerformanceAnalysis]]:
    groups: dict[str, list[WordPerformanceAnalysis]] = {}
    for word in analyses:
        groups.setdefault(word.chapter or c.NO_CHAPTER_LABEL, []).append(word)
    return groups


def summarize_words(analyses: Iterable[WordPerformanceAnalysis]) -> WordStatsSummary:
    words = list(analyses)
    with_data = [w for w in words if w.has_performance_data]
    learned = sum(1 for w in words if w.learned)
    return WordStatsSummary(
        total=len(words),
        learned=learned,
        not_learned=len(words) - learned,
        difficult=sum(1 for w in words if w.difficult),
        with_chapter=sum(1 for w in words if w.chapter),
        with_performance=len(with_data),
        without_performance=len(words) - len(with_data),
        avg_accuracy=round_int(mean([w.accuracy for w in with_data])),
    )


def _chapter_sort_key(chapter: str) -> tuple[int, float, str]:
    try:
        return (0, float(chapter), chapter)
    except ValueError:
        return (1, 0.0, chapter)


def filter_options(analyses: Iterable[WordPerformanceAnalysis]) -> FilterOptions:
    """Distinct chapters (numeric ones in numeric order) and groups."""
    words = list(analyses)
    chapters = {w.chapter for w in words if w.chapter}
    groups = {w.group for w in words if w.group}
    return FilterOptions(
        chapters=sorted(chapters, key=_chapter_sort_key),
        groups=sorted(groups),
    )
