"""Data models for jobs, builds and the test result hierarchy."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Iterator, Optional

if TYPE_CHECKING:
    from testhistory.storage.base import StorageBackend


class EntityKind(str, Enum):
    """Level of a test entity in the result hierarchy."""

    RESULT = "result"
    PACKAGE = "package"
    CLASS = "class"
    CASE = "case"


class CaseStatus(str, Enum):
    """Outcome of a single test case."""

    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"


ID_SEPARATOR = "/"
ID_ESCAPE = "\\"


def join_id(path: tuple[str, ...]) -> str:
    """Join entity names into an id, escaping separators inside names."""
    return ID_SEPARATOR.join(
        name.replace(ID_ESCAPE, ID_ESCAPE * 2).replace(ID_SEPARATOR, ID_ESCAPE + ID_SEPARATOR)
        for name in path
    )


def split_id(entity_id: str) -> tuple[str, ...]:
    """Split an id produced by join_id back into entity names.

    Raises:
        ValueError: If the id has a dangling escape or an empty name
    """
    if not entity_id:
        return ()

    names: list[str] = []
    current: list[str] = []
    chars = iter(entity_id)
    for char in chars:
        if char == ID_ESCAPE:
            escaped = next(chars, None)
            if escaped not in (ID_ESCAPE, ID_SEPARATOR):
                raise ValueError(f"Invalid escape in entity id {entity_id!r}")
            current.append(escaped)
        elif char == ID_SEPARATOR:
            names.append("".join(current))
            current = []
        else:
            current.append(char)
    names.append("".join(current))

    if not all(names):
        raise ValueError(f"Empty name in entity id {entity_id!r}")
    return tuple(names)


class Job:
    """A CI job owning an append-only sequence of builds."""

    def __init__(self, name: str):
        self.name = name
        self._builds: list[Build] = []

    @property
    def builds(self) -> list["Build"]:
        """Builds in stored (chronological) order."""
        return list(self._builds)

    def add_build(self, number: int, timestamp: Optional[datetime] = None,
                  display_name: Optional[str] = None) -> "Build":
        """Append a new build to the job."""
        if self._builds and number <= self._builds[-1].number:
            raise ValueError(
                f"Build #{number} must be newer than #{self._builds[-1].number}"
            )
        build = Build(job=self, number=number, timestamp=timestamp, display_name=display_name)
        self._builds.append(build)
        return build

    def get_build(self, number: int) -> Optional["Build"]:
        """Look a build up by number."""
        for build in self._builds:
            if build.number == number:
                return build
        return None

    @property
    def last_build(self) -> Optional["Build"]:
        return self._builds[-1] if self._builds else None

    def __repr__(self) -> str:
        return f"Job({self.name!r}, builds={len(self._builds)})"


class Build:
    """One completed execution of a job."""

    def __init__(self, job: Job, number: int, timestamp: Optional[datetime] = None,
                 display_name: Optional[str] = None):
        self.job = job
        self.number = number
        self.timestamp = timestamp
        self._display_name = display_name
        self.result: Optional[BuildResult] = None

    @property
    def display_name(self) -> str:
        return self._display_name or f"#{self.number}"

    def attach_result(self, result: "BuildResult") -> "BuildResult":
        """Attach the build-level test result."""
        result.build = self
        self.result = result
        return result

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "number": self.number,
            "display_name": self.display_name,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }

    def __repr__(self) -> str:
        return f"Build({self.job.name!r}, {self.display_name})"


class TestEntity(ABC):
    """A node in the test result hierarchy of one build."""

    __test__ = False

    kind: EntityKind

    def __init__(self, name: str, parent: Optional["TestEntity"] = None,
                 description: Optional[str] = None):
        self.name = name
        self.parent = parent
        self.description = description

    @property
    def path(self) -> tuple[str, ...]:
        """Names from below the build-level result down to this entity."""
        if self.parent is None:
            return ()
        return self.parent.path + (self.name,)

    @property
    def id(self) -> str:
        """Slash-joined path below the build-level result."""
        return join_id(self.path)

    @abstractmethod
    def owning_result(self) -> "BuildResult":
        """Return the build-level result this entity belongs to."""

    @property
    def run(self) -> Optional[Build]:
        """The build this entity was recorded in."""
        return self.owning_result().build

    @property
    def storage(self) -> Optional["StorageBackend"]:
        """Storage backend attached to the owning build, if any."""
        return self.owning_result().storage_backend

    def result_in_run(self, build: Build) -> Optional["TestEntity"]:
        """Return the entity with the same id in another build, if recorded there."""
        if build.result is None:
            return None
        return build.result.find_path(self.path)

    def previous_result(self) -> Optional["TestEntity"]:
        """Return this entity's result in the closest earlier build holding one."""
        run = self.run
        if run is None:
            return None
        for build in reversed(run.job.builds):
            if build.number >= run.number:
                continue
            found = self.result_in_run(build)
            if found is not None:
                return found
        return None

    @property
    @abstractmethod
    def duration(self) -> float:
        """Duration in seconds."""

    @property
    @abstractmethod
    def fail_count(self) -> int:
        ...

    @property
    @abstractmethod
    def skip_count(self) -> int:
        ...

    @property
    @abstractmethod
    def pass_count(self) -> int:
        ...

    @property
    def total_count(self) -> int:
        return self.fail_count + self.skip_count + self.pass_count

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.id!r})"


class _AggregateEntity(TestEntity):
    """Entity whose counts are summed over its children."""

    def __init__(self, name: str, parent: Optional[TestEntity] = None,
                 description: Optional[str] = None):
        super().__init__(name, parent, description)
        self._children: dict[str, TestEntity] = {}

    @property
    def children(self) -> list[TestEntity]:
        return list(self._children.values())

    def _add_child(self, child: TestEntity) -> TestEntity:
        if not child.name:
            raise ValueError(f"Empty {child.kind.value} name in {self.id or 'result'}")
        if child.name in self._children:
            raise ValueError(f"Duplicate {child.kind.value} {child.name!r} in {self.id or 'result'}")
        self._children[child.name] = child
        return child

    def child(self, name: str) -> Optional[TestEntity]:
        return self._children.get(name)

    def walk(self) -> Iterator[TestEntity]:
        """Yield this entity and all its descendants, depth first."""
        yield self
        for child in self._children.values():
            if isinstance(child, _AggregateEntity):
                yield from child.walk()
            else:
                yield child

    @property
    def duration(self) -> float:
        return sum(c.duration for c in self._children.values())

    @property
    def fail_count(self) -> int:
        return sum(c.fail_count for c in self._children.values())

    @property
    def skip_count(self) -> int:
        return sum(c.skip_count for c in self._children.values())

    @property
    def pass_count(self) -> int:
        return sum(c.pass_count for c in self._children.values())


class BuildResult(_AggregateEntity):
    """Aggregated test result of a whole build."""

    kind = EntityKind.RESULT

    def __init__(self, description: Optional[str] = None,
                 storage_backend: Optional["StorageBackend"] = None):
        super().__init__("", None, description)
        self.build: Optional[Build] = None
        self.storage_backend = storage_backend

    def owning_result(self) -> "BuildResult":
        return self

    @property
    def packages(self) -> list["PackageResult"]:
        return self.children  # type: ignore[return-value]

    def add_package(self, name: str, description: Optional[str] = None) -> "PackageResult":
        return self._add_child(PackageResult(name, self, description))  # type: ignore[return-value]

    def find(self, entity_id: str) -> Optional[TestEntity]:
        """Find a descendant by id; the empty id is this result."""
        try:
            path = split_id(entity_id)
        except ValueError:
            return None
        return self.find_path(path)

    def find_path(self, path: tuple[str, ...]) -> Optional[TestEntity]:
        """Find a descendant by its names below this result."""
        node: Optional[TestEntity] = self
        for part in path:
            if not isinstance(node, _AggregateEntity):
                return None
            node = node.child(part)
            if node is None:
                return None
        return node


class PackageResult(_AggregateEntity):
    """Results of one package (suite) in a build."""

    kind = EntityKind.PACKAGE

    def owning_result(self) -> BuildResult:
        return self.parent.owning_result()  # type: ignore[union-attr]

    @property
    def classes(self) -> list["ClassResult"]:
        return self.children  # type: ignore[return-value]

    def add_class(self, name: str, description: Optional[str] = None) -> "ClassResult":
        return self._add_child(ClassResult(name, self, description))  # type: ignore[return-value]


class ClassResult(_AggregateEntity):
    """Results of one test class in a build."""

    kind = EntityKind.CLASS

    def owning_result(self) -> BuildResult:
        return self.parent.owning_result()  # type: ignore[union-attr]

    @property
    def cases(self) -> list["CaseResult"]:
        return self.children  # type: ignore[return-value]

    def add_case(self, name: str, status: CaseStatus = CaseStatus.PASSED,
                 duration: float = 0.0, description: Optional[str] = None) -> "CaseResult":
        return self._add_child(  # type: ignore[return-value]
            CaseResult(name, self, status=status, duration=duration, description=description)
        )


class CaseResult(TestEntity):
    """Result of a single test case in a build."""

    kind = EntityKind.CASE

    def __init__(self, name: str, parent: ClassResult, status: CaseStatus = CaseStatus.PASSED,
                 duration: float = 0.0, description: Optional[str] = None):
        super().__init__(name, parent, description)
        if duration < 0:
            raise ValueError("Duration cannot be negative")
        self.status = CaseStatus(status)
        self._duration = float(duration)

    def owning_result(self) -> BuildResult:
        return self.parent.owning_result()  # type: ignore[union-attr]

    @property
    def duration(self) -> float:
        return self._duration

    @property
    def fail_count(self) -> int:
        return 1 if self.status == CaseStatus.FAILED else 0

    @property
    def skip_count(self) -> int:
        return 1 if self.status == CaseStatus.SKIPPED else 0

    @property
    def pass_count(self) -> int:
        return 1 if self.status == CaseStatus.PASSED else 0


@dataclass(frozen=True)
class HistorySummary:
    """One build's aggregated result for a test entity."""

    build: Build
    duration: float = 0.0
    fail_count: int = 0
    skip_count: int = 0
    pass_count: int = 0
    description: Optional[str] = field(default=None)

    def __post_init__(self) -> None:
        if self.duration < 0:
            raise ValueError("Duration cannot be negative")
        for name in ("fail_count", "skip_count", "pass_count"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} cannot be negative")

    @property
    def total_count(self) -> int:
        return self.fail_count + self.skip_count + self.pass_count

    @classmethod
    def from_entity(cls, build: Build, entity: TestEntity) -> "HistorySummary":
        """Summarize an entity's result recorded in the given build."""
        return cls(
            build=build,
            duration=entity.duration,
            fail_count=entity.fail_count,
            skip_count=entity.skip_count,
            pass_count=entity.pass_count,
            description=entity.description,
        )

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "build": self.build.to_dict(),
            "duration": self.duration,
            "fail_count": self.fail_count,
            "skip_count": self.skip_count,
            "pass_count": self.pass_count,
            "total_count": self.total_count,
            "description": self.description,
        }
