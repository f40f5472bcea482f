"""Job, build and test result models."""

from testhistory.results.models import (
    Build,
    BuildResult,
    CaseResult,
    CaseStatus,
    ClassResult,
    EntityKind,
    HistorySummary,
    Job,
    PackageResult,
    TestEntity,
)

__all__ = [
    "Build",
    "BuildResult",
    "CaseResult",
    "CaseStatus",
    "ClassResult",
    "EntityKind",
    "HistorySummary",
    "Job",
    "PackageResult",
    "TestEntity",
]
