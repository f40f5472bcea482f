"""Base storage backend interface."""

from abc import ABC, abstractmethod

from testhistory.results.models import HistorySummary
from testhistory.trend import DurationTrendPoint, ResultTrendPoint


class StorageBackend(ABC):
    """Abstract base class for pluggable test history stores.

    A backend attached to a build result owns the authoritative history
    for the entities of that build and answers queries without the
    build records being scanned.
    """

    @abstractmethod
    def count_of_builds_with_results(self, entity_id: str) -> int:
        """Return the number of builds holding a result for the entity."""
        pass

    @abstractmethod
    def history_summary_page(self, entity_id: str, offset: int) -> list[HistorySummary]:
        """Return one page of history summaries.

        Args:
            entity_id: Id of the test entity below the build result
            offset: Index of the first summary to return

        Returns:
            Summaries for the entity, paginated by the backend
        """
        pass

    @abstractmethod
    def trend_result_summary(self, entity_id: str) -> list[ResultTrendPoint]:
        """Return pass/fail/skip counts per build, oldest first."""
        pass

    @abstractmethod
    def duration_result_summary(self, entity_id: str) -> list[DurationTrendPoint]:
        """Return durations per build, oldest first."""
        pass
