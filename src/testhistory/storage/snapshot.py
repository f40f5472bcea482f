"""Read-only storage backend over pre-aggregated history summaries."""

from typing import Iterable, Mapping

from testhistory.results.models import HistorySummary
from testhistory.storage.base import StorageBackend
from testhistory.trend import DurationTrendPoint, ResultTrendPoint


class SnapshotStorageBackend(StorageBackend):
    """Serves history from an in-memory snapshot of summaries per entity."""

    DEFAULT_PAGE_SIZE = 25

    def __init__(
        self,
        summaries: Mapping[str, Iterable[HistorySummary]],
        page_size: int = DEFAULT_PAGE_SIZE,
    ):
        """Initialize the backend.

        Args:
            summaries: History summaries keyed by entity id, in any order
            page_size: Number of summaries returned per page
        """
        if page_size < 1:
            raise ValueError("Page size must be at least 1")
        self.page_size = page_size
        # Newest first, matching how history tables are paged
        self._summaries: dict[str, list[HistorySummary]] = {
            entity_id: sorted(items, key=lambda s: s.build.number, reverse=True)
            for entity_id, items in summaries.items()
        }
        for entity_id, items in self._summaries.items():
            numbers = [s.build.number for s in items]
            if len(set(numbers)) != len(numbers):
                raise ValueError(f"Repeated build in summaries for {entity_id!r}")

    def count_of_builds_with_results(self, entity_id: str) -> int:
        return len(self._summaries.get(entity_id, []))

    def history_summary_page(self, entity_id: str, offset: int) -> list[HistorySummary]:
        items = self._summaries.get(entity_id, [])
        return items[offset:offset + self.page_size]

    def trend_result_summary(self, entity_id: str) -> list[ResultTrendPoint]:
        items = self._summaries.get(entity_id, [])
        return [ResultTrendPoint.from_summary(s) for s in reversed(items)]

    def duration_result_summary(self, entity_id: str) -> list[DurationTrendPoint]:
        items = self._summaries.get(entity_id, [])
        return [DurationTrendPoint.from_summary(s) for s in reversed(items)]

    @property
    def entity_ids(self) -> list[str]:
        return sorted(self._summaries)
