"""Trend series of test results over past builds."""

import json
from dataclasses import dataclass
from typing import Iterable, Optional, Union

from testhistory.results.models import HistorySummary, TestEntity


@dataclass(frozen=True)
class ResultTrendPoint:
    """Pass/fail/skip counts of one build."""

    build_number: int
    build_name: str
    passed: int = 0
    failed: int = 0
    skipped: int = 0

    @property
    def total(self) -> int:
        return self.passed + self.failed + self.skipped

    @classmethod
    def from_summary(cls, summary: HistorySummary) -> "ResultTrendPoint":
        return cls(
            build_number=summary.build.number,
            build_name=summary.build.display_name,
            passed=summary.pass_count,
            failed=summary.fail_count,
            skipped=summary.skip_count,
        )

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "build_number": self.build_number,
            "build_name": self.build_name,
            "passed": self.passed,
            "failed": self.failed,
            "skipped": self.skipped,
            "total": self.total,
        }


@dataclass(frozen=True)
class DurationTrendPoint:
    """Duration of one build's result, in seconds."""

    build_number: int
    build_name: str
    duration: float = 0.0

    @classmethod
    def from_summary(cls, summary: HistorySummary) -> "DurationTrendPoint":
        return cls(
            build_number=summary.build.number,
            build_name=summary.build.display_name,
            duration=summary.duration,
        )

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "build_number": self.build_number,
            "build_name": self.build_name,
            "duration": self.duration,
        }


TrendPoint = Union[ResultTrendPoint, DurationTrendPoint]


def trend_to_json(points: Iterable[TrendPoint]) -> str:
    """Serialize a trend series to JSON."""
    return json.dumps([p.to_dict() for p in points])


def _recent_results(entity: TestEntity, limit: int) -> list[TestEntity]:
    """Walk back from the entity through earlier results, oldest first."""
    results: list[TestEntity] = []
    if entity.run is None:
        return results
    current: Optional[TestEntity] = entity
    while current is not None and len(results) < limit:
        results.append(current)
        current = current.previous_result()
    results.reverse()
    return results


def build_result_trend(entity: TestEntity, limit: int = 50) -> list[ResultTrendPoint]:
    """Build the count trend from the entity's own build and earlier ones."""
    points = []
    for result in _recent_results(entity, limit):
        summary = HistorySummary.from_entity(result.run, result)  # type: ignore[arg-type]
        points.append(ResultTrendPoint.from_summary(summary))
    return points


def build_duration_trend(entity: TestEntity, limit: int = 50) -> list[DurationTrendPoint]:
    """Build the duration trend from the entity's own build and earlier ones."""
    points = []
    for result in _recent_results(entity, limit):
        summary = HistorySummary.from_entity(result.run, result)  # type: ignore[arg-type]
        points.append(DurationTrendPoint.from_summary(summary))
    return points
