"""
Ports (interfaces) for learner history retrieval.

These define the contract that infrastructure adapters must implement.
Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any


class AnalyticsRepository(ABC):
    """
    Port for fetching a learner's raw history.

    Adapters return raw mappings exactly as stored (camelCase keys);
    validation and normalization happen in the ingestion layer.

    Implementations:
        - JsonSnapshotRepository: Reads a JSON snapshot exported from the app.
        - InMemoryAnalyticsRepository: Serves pre-loaded dictionaries.
    """

    @abstractmethod
    async def get_test_sessions(self, user_id: str) -> list[Mapping[str, Any]]:
        """
        Fetch the learner's completed test sessions.

        Args:
            user_id: The learner.

        Returns:
            Raw session records, in any order.
        """
        pass

    @abstractmethod
    async def get_word_performances(self, user_id: str) -> Mapping[str, Mapping[str, Any]]:
        """
        Fetch per-word attempt logs keyed by word id.

        Args:
            user_id: The learner.

        Returns:
            Mapping of word id to raw performance record.
        """
        pass

    @abstractmethod
    async def get_word_catalog(self, user_id: str) -> list[Mapping[str, Any]]:
        """
        Fetch the learner's word catalog.

        Args:
            user_id: The learner.

        Returns:
            Raw word records.
        """
        pass
