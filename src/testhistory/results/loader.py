"""Loading job history exports into the result model.

An export is a JSON document describing one job: its builds in order,
the test result tree of each build and, optionally, a pre-aggregated
history snapshot that is served through a storage backend.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationError

from testhistory.results.models import BuildResult, CaseStatus, HistorySummary, Job
from testhistory.storage.snapshot import SnapshotStorageBackend

logger = logging.getLogger(__name__)


class JobLoadError(Exception):
    """Raised when a job history export cannot be loaded."""

    pass


class CaseDocument(BaseModel):
    name: str = Field(min_length=1)
    status: CaseStatus = CaseStatus.PASSED
    duration: float = Field(default=0.0, ge=0)
    description: Optional[str] = None


class ClassDocument(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    cases: list[CaseDocument] = Field(default_factory=list)


class PackageDocument(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    classes: list[ClassDocument] = Field(default_factory=list)


class ResultDocument(BaseModel):
    description: Optional[str] = None
    packages: list[PackageDocument] = Field(default_factory=list)


class BuildDocument(BaseModel):
    number: int = Field(ge=0)
    timestamp: Optional[datetime] = None
    display_name: Optional[str] = None
    result: Optional[ResultDocument] = None


class SummaryDocument(BaseModel):
    build: int
    duration: float = Field(default=0.0, ge=0)
    fail_count: int = Field(default=0, ge=0)
    skip_count: int = Field(default=0, ge=0)
    pass_count: int = Field(default=0, ge=0)
    description: Optional[str] = None


class StorageDocument(BaseModel):
    page_size: int = Field(default=SnapshotStorageBackend.DEFAULT_PAGE_SIZE, ge=1)
    entities: dict[str, list[SummaryDocument]] = Field(default_factory=dict)


class JobDocument(BaseModel):
    """Top-level job history export."""

    name: str
    builds: list[BuildDocument] = Field(default_factory=list)
    storage: Optional[StorageDocument] = None


def _build_result(doc: ResultDocument) -> BuildResult:
    result = BuildResult(description=doc.description)
    for pkg_doc in doc.packages:
        package = result.add_package(pkg_doc.name, pkg_doc.description)
        for cls_doc in pkg_doc.classes:
            test_class = package.add_class(cls_doc.name, cls_doc.description)
            for case_doc in cls_doc.cases:
                test_class.add_case(
                    case_doc.name,
                    status=case_doc.status,
                    duration=case_doc.duration,
                    description=case_doc.description,
                )
    return result


def _build_storage(doc: StorageDocument, job: Job) -> SnapshotStorageBackend:
    summaries: dict[str, list[HistorySummary]] = {}
    for entity_id, items in doc.entities.items():
        entity_summaries = []
        seen: set[int] = set()
        for item in items:
            build = job.get_build(item.build)
            if build is None:
                raise JobLoadError(
                    f"Stored summary for {entity_id or 'build result'!r} refers to unknown build #{item.build}"
                )
            if item.build in seen:
                raise JobLoadError(
                    f"Stored summaries for {entity_id or 'build result'!r} repeat build #{item.build}"
                )
            seen.add(item.build)
            entity_summaries.append(
                HistorySummary(
                    build=build,
                    duration=item.duration,
                    fail_count=item.fail_count,
                    skip_count=item.skip_count,
                    pass_count=item.pass_count,
                    description=item.description,
                )
            )
        summaries[entity_id] = entity_summaries
    return SnapshotStorageBackend(summaries, page_size=doc.page_size)


def parse_job(data: dict[str, Any]) -> Job:
    """Build a job from a decoded export document.

    Raises:
        JobLoadError: If the document is invalid
    """
    try:
        doc = JobDocument.model_validate(data)
    except ValidationError as e:
        raise JobLoadError(f"Invalid job history export: {e}") from e

    job = Job(doc.name)
    try:
        for build_doc in sorted(doc.builds, key=lambda b: b.number):
            build = job.add_build(
                build_doc.number,
                timestamp=build_doc.timestamp,
                display_name=build_doc.display_name,
            )
            if build_doc.result is not None:
                build.attach_result(_build_result(build_doc.result))
    except ValueError as e:
        raise JobLoadError(f"Invalid job history export: {e}") from e

    if doc.storage is not None:
        backend = _build_storage(doc.storage, job)
        for build in job.builds:
            if build.result is not None:
                build.result.storage_backend = backend
        logger.info("Attached snapshot storage with %d entities to job %s",
                    len(doc.storage.entities), job.name)

    logger.info("Loaded job %s with %d builds", job.name, len(job.builds))
    return job


def load_job(path: Path | str) -> Job:
    """Load a job history export from a JSON file.

    Raises:
        JobLoadError: If the file is missing or invalid
    """
    path = Path(path)
    if not path.exists():
        raise JobLoadError(f"Job history file not found: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise JobLoadError(f"Invalid JSON in {path}: {e}") from e

    if not isinstance(data, dict):
        raise JobLoadError(f"Expected a JSON object in {path}")

    return parse_job(data)
