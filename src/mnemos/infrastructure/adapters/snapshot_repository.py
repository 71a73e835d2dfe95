"""
Snapshot repositories — Infrastructure adapters for exported learner history.

Implement AnalyticsRepository over a JSON export of the drill app, or over
dictionaries already in memory.
"""

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from mnemos.domain.analytics.ports import AnalyticsRepository

logger = logging.getLogger(__name__)


class SnapshotError(ValueError):
    """The snapshot is missing, unreadable, or lacks the requested learner."""


def _sessions(data: Mapping[str, Any]) -> list[Mapping[str, Any]]:
    sessions = data.get("sessions") or data.get("testHistory") or []
    if not isinstance(sessions, list):
        logger.warning("Ignoring sessions: expected a list, got %s", type(sessions).__name__)
        return []
    return sessions


def _performances(data: Mapping[str, Any]) -> Mapping[str, Mapping[str, Any]]:
    performances = data.get("performances") or data.get("wordPerformances") or {}
    if isinstance(performances, list):
        # Some exports store performances as a list of records carrying their id
        return {str(p.get("wordId")): p for p in performances if isinstance(p, Mapping) and p.get("wordId")}
    if not isinstance(performances, Mapping):
        logger.warning("Ignoring performances: expected a mapping, got %s", type(performances).__name__)
        return {}
    return performances


def _words(data: Mapping[str, Any]) -> list[Mapping[str, Any]]:
    words = data.get("words") or []
    if not isinstance(words, list):
        logger.warning("Ignoring words: expected a list, got %s", type(words).__name__)
        return []
    return words


class InMemoryAnalyticsRepository(AnalyticsRepository):
    """
    Serves learner history from a dictionary.

    `data` is either a single learner's snapshot or ``{"users": {id: snapshot}}``.
    A single-learner snapshot answers for any user id.
    """

    def __init__(self, data: Mapping[str, Any]):
        self._data = data

    def _user_data(self, user_id: str) -> Mapping[str, Any]:
        users = self._data.get("users")
        if users is None:
            return self._data
        if not isinstance(users, Mapping) or user_id not in users:
            raise SnapshotError(f"No data for user '{user_id}'")
        user = users[user_id]
        if not isinstance(user, Mapping):
            raise SnapshotError(f"Data for user '{user_id}' must be an object")
        return user

    async def get_test_sessions(self, user_id: str) -> list[Mapping[str, Any]]:
        return _sessions(self._user_data(user_id))

    async def get_word_performances(self, user_id: str) -> Mapping[str, Mapping[str, Any]]:
        return _performances(self._user_data(user_id))

    async def get_word_catalog(self, user_id: str) -> list[Mapping[str, Any]]:
        return _words(self._user_data(user_id))

    def user_ids(self) -> list[str]:
        users = self._data.get("users")
        return sorted(users) if isinstance(users, Mapping) else []


class JsonSnapshotRepository(InMemoryAnalyticsRepository):
    """
    Reads learner history from a JSON snapshot file.

    The file is parsed once, on construction.
    """

    def __init__(self, path: Path):
        self.path = path
        super().__init__(self._load(path))

    @staticmethod
    def _load(path: Path) -> Mapping[str, Any]:
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError as e:
            raise SnapshotError(f"Snapshot not found: {path}") from e
        except json.JSONDecodeError as e:
            raise SnapshotError(f"Invalid JSON in {path}: {e.msg} (line {e.lineno})") from e
        except OSError as e:
            raise SnapshotError(f"Cannot read snapshot {path}: {e}") from e

        if not isinstance(data, dict):
            raise SnapshotError(f"Snapshot {path} must contain a JSON object")
        logger.debug("Loaded snapshot %s", path)
        return data
