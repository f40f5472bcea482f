"""History of a test entity over the builds of its job.

Two sources are reconciled into one summary sequence: a storage backend
attached to the entity's build, when there is one, and otherwise a scan
of the job's build records.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Optional

from testhistory.config import HistoryConfig, TrendConfig
from testhistory.results.models import HistorySummary, TestEntity
from testhistory.storage.base import StorageBackend
from testhistory.trend import build_duration_trend, build_result_trend, trend_to_json

logger = logging.getLogger(__name__)

MAX_OFFSET = 1000

_INTEGER_PATTERN = re.compile(r"[+-]?[0-9]+")


def sanitize_offset(offset: int) -> int:
    """Reset offsets outside [0, MAX_OFFSET] to 0."""
    if offset < 0 or offset > MAX_OFFSET:
        logger.debug("Offset %d out of range, using 0", offset)
        return 0
    return offset


@dataclass
class HistoryTableResult:
    """Rows of a history table plus whether any row has a description."""

    history_summaries: list[HistorySummary] = field(default_factory=list)

    @property
    def description_available(self) -> bool:
        return any(s.description is not None for s in self.history_summaries)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "description_available": self.description_available,
            "history_summaries": [s.to_dict() for s in self.history_summaries],
        }


class History:
    """History of a test entity over time."""

    def __init__(
        self,
        entity: TestEntity,
        config: Optional[HistoryConfig] = None,
        trend_config: Optional[TrendConfig] = None,
    ):
        """Initialize the history view.

        Args:
            entity: Test entity (build result, package, class or case)
            config: History table settings
            trend_config: Trend series settings
        """
        self._entity = entity
        self.config = config or HistoryConfig()
        self.trend_config = trend_config or TrendConfig()

    @property
    def entity(self) -> TestEntity:
        return self._entity

    def _storage_backend(self) -> Optional[StorageBackend]:
        return self._entity.storage

    def history_available(self) -> bool:
        """Check whether more than one build has history for the entity.

        Without a storage backend this counts every build of the job,
        whether or not the entity has a result in it.
        """
        backend = self._storage_backend()
        if backend is not None:
            return backend.count_of_builds_with_results(self._entity.id) > 1

        run = self._entity.run
        if run is None:
            return False
        return len(run.job.builds) > 1

    def retrieve_history_summary(self, user_offset: int) -> HistoryTableResult:
        """Return the history table for the entity.

        The offset is only honored by storage backends; a scan of the
        build records always returns the full history.
        """
        offset = sanitize_offset(user_offset)

        backend = self._storage_backend()
        if backend is not None:
            logger.debug("Reading history of %r from storage backend at offset %d",
                         self._entity, offset)
            return HistoryTableResult(backend.history_summary_page(self._entity.id, offset))

        return HistoryTableResult(self._history_from_builds())

    def _history_from_builds(self) -> list[HistorySummary]:
        run = self._entity.run
        if run is None:
            return []

        builds = run.job.builds
        if self.config.max_builds is not None and len(builds) > self.config.max_builds:
            logger.debug("Scanning the %d most recent of %d builds",
                         self.config.max_builds, len(builds))
            builds = builds[-self.config.max_builds:]

        summaries = []
        for build in builds:
            result_in_run = self._entity.result_in_run(build)
            if result_in_run is None:
                continue
            summaries.append(HistorySummary.from_entity(build, result_in_run))

        logger.debug("Found %d of %d builds with a result for %r",
                     len(summaries), len(builds), self._entity)
        return summaries

    def test_result_trend(self) -> str:
        """Return the pass/fail/skip trend as JSON."""
        backend = self._storage_backend()
        if backend is not None:
            return trend_to_json(backend.trend_result_summary(self._entity.id))
        return trend_to_json(build_result_trend(self._entity, self.trend_config.build_count))

    def test_duration_trend(self) -> str:
        """Return the duration trend as JSON."""
        backend = self._storage_backend()
        if backend is not None:
            return trend_to_json(backend.duration_result_summary(self._entity.id))
        return trend_to_json(build_duration_trend(self._entity, self.trend_config.build_count))

    @staticmethod
    def as_int(s: Optional[str], default_value: int) -> int:
        """Parse an integer, returning the default on missing or malformed input."""
        if not isinstance(s, str) or not _INTEGER_PATTERN.fullmatch(s):
            return default_value
        return int(s)
