"""Tests for the result models."""

from datetime import datetime

import pytest

from testhistory.results.models import (
    BuildResult,
    CaseStatus,
    EntityKind,
    HistorySummary,
    Job,
    join_id,
    split_id,
)


class TestEntityKind:
    """Tests for EntityKind enum."""

    def test_kind_values(self):
        """Test that all expected kinds exist."""
        assert EntityKind.RESULT.value == "result"
        assert EntityKind.PACKAGE.value == "package"
        assert EntityKind.CLASS.value == "class"
        assert EntityKind.CASE.value == "case"


class TestJob:
    """Tests for Job model."""

    def test_builds_in_stored_order(self, job):
        """Test builds are returned in the order they were added."""
        assert [b.number for b in job.builds] == [1, 2, 3]

    def test_builds_is_a_copy(self, job):
        """Test the build list cannot be mutated from outside."""
        job.builds.clear()
        assert len(job.builds) == 3

    def test_add_build_rejects_older_number(self, job):
        """Test builds are append-only."""
        with pytest.raises(ValueError):
            job.add_build(3)

    def test_get_build(self, job):
        """Test looking up a build by number."""
        assert job.get_build(2).number == 2
        assert job.get_build(42) is None

    def test_last_build(self):
        """Test the last build of an empty and a non-empty job."""
        job = Job("empty")
        assert job.last_build is None
        job.add_build(7)
        assert job.last_build.number == 7


class TestBuild:
    """Tests for Build model."""

    def test_default_display_name(self, job):
        """Test display name falls back to the build number."""
        assert job.get_build(1).display_name == "#1"

    def test_to_dict(self):
        """Test converting to dictionary."""
        now = datetime.now()
        build = Job("calc").add_build(4, timestamp=now, display_name="release-4")

        d = build.to_dict()
        assert d["number"] == 4
        assert d["display_name"] == "release-4"
        assert d["timestamp"] == now.isoformat()


class TestEntityHierarchy:
    """Tests for the test result hierarchy."""

    def test_ids(self, job):
        """Test entity ids are paths below the build result."""
        result = job.get_build(1).result
        case = result.find("pkg/CalcTest/test_pass_0")

        assert result.id == ""
        assert case.parent.parent.id == "pkg"
        assert case.parent.id == "pkg/CalcTest"
        assert case.id == "pkg/CalcTest/test_pass_0"

    def test_owning_result_for_every_kind(self, job):
        """Test each kind resolves the build result it belongs to."""
        result = job.get_build(3).result
        for entity_id in ("", "pkg", "pkg/CalcTest", "pkg/CalcTest/test_fail_0"):
            entity = result.find(entity_id)
            assert entity.owning_result() is result
            assert entity.run is job.get_build(3)

    def test_storage_defaults_to_none(self, job):
        """Test no storage backend is attached by default."""
        assert job.get_build(1).result.find("pkg/CalcTest").storage is None

    def test_find_missing(self, job):
        """Test finding an unknown id."""
        result = job.get_build(1).result
        assert result.find("pkg/Missing") is None
        assert result.find("pkg/CalcTest/test_pass_0/deeper") is None

    def test_aggregate_counts(self, job):
        """Test counts are summed from cases."""
        test_class = job.get_build(3).result.find("pkg/CalcTest")

        assert test_class.kind == EntityKind.CLASS
        assert test_class.pass_count == 4
        assert test_class.fail_count == 1
        assert test_class.skip_count == 0
        assert test_class.total_count == 5
        assert test_class.duration == pytest.approx(12.0)

    def test_case_counts(self, job):
        """Test case counts derive from the status."""
        test_class = job.get_build(2).result.find("other/OtherTest")
        case = test_class.child("test_other")

        assert case.status == CaseStatus.SKIPPED
        assert (case.fail_count, case.skip_count, case.pass_count) == (0, 1, 0)

    def test_duplicate_child_rejected(self):
        """Test two children with the same name are rejected."""
        result = BuildResult()
        result.add_package("pkg")
        with pytest.raises(ValueError):
            result.add_package("pkg")

    def test_negative_case_duration_rejected(self):
        """Test negative durations are rejected."""
        test_class = BuildResult().add_package("pkg").add_class("A")
        with pytest.raises(ValueError):
            test_class.add_case("test_a", duration=-1.0)

    def test_result_in_run(self, job):
        """Test looking up the same entity in other builds."""
        entity = job.get_build(3).result.find("pkg/CalcTest")

        assert entity.result_in_run(job.get_build(1)).pass_count == 5
        assert entity.result_in_run(job.get_build(2)) is None

    def test_result_in_run_without_results(self, job):
        """Test a build without a result has no entity results."""
        entity = job.get_build(3).result.find("pkg")
        empty = job.add_build(4)
        assert entity.result_in_run(empty) is None

    def test_previous_result_skips_gaps(self, job):
        """Test the previous result skips builds missing the entity."""
        entity = job.get_build(3).result.find("pkg/CalcTest")

        previous = entity.previous_result()
        assert previous.run.number == 1
        assert previous.previous_result() is None

    def test_walk(self, job):
        """Test walking the whole result tree."""
        ids = [e.id for e in job.get_build(2).result.walk()]
        assert ids == ["", "other", "other/OtherTest", "other/OtherTest/test_other"]


    def test_slash_in_name(self):
        """Test a name containing the separator keeps a unique, findable id."""
        job = Job("params")
        for number in (1, 2):
            result = job.add_build(number).attach_result(BuildResult())
            test_class = result.add_package("pkg").add_class("CalcTest")
            test_class.add_case("test_div[a/b]", CaseStatus.PASSED)
            test_class.add_case("test_div[a]")

        result = job.last_build.result
        case = result.find_path(("pkg", "CalcTest", "test_div[a/b]"))

        assert case.id == "pkg/CalcTest/test_div[a\\/b]"
        assert result.find(case.id) is case
        assert case.result_in_run(job.get_build(1)).run.number == 1

    def test_empty_name_rejected(self):
        """Test children must have a name."""
        result = BuildResult()
        with pytest.raises(ValueError):
            result.add_package("")
        test_class = result.add_package("pkg").add_class("A")
        with pytest.raises(ValueError):
            test_class.add_case("")

    def test_find_malformed_id(self, job):
        """Test ids with dangling escapes or empty names find nothing."""
        result = job.get_build(1).result
        assert result.find("pkg\\") is None
        assert result.find("pkg//CalcTest") is None


class TestEntityIds:
    """Tests for joining and splitting entity ids."""

    @pytest.mark.parametrize("path", [
        (),
        ("pkg",),
        ("pkg", "CalcTest", "test_div[a/b]"),
        ("pkg", "Win\\Path", "test_x"),
    ])
    def test_split_reverses_join(self, path):
        """Test splitting a joined id yields the original names."""
        assert split_id(join_id(path)) == path

    def test_separator_escaped(self):
        """Test separators inside names are escaped."""
        assert join_id(("a/b", "c")) == "a\\/b/c"

    def test_invalid_escape(self):
        """Test an escape before an ordinary character is invalid."""
        with pytest.raises(ValueError):
            split_id("a\\b")


class TestHistorySummary:
    """Tests for HistorySummary model."""

    def test_from_entity(self, job):
        """Test summarizing an entity."""
        build = job.get_build(3)
        summary = HistorySummary.from_entity(build, build.result.find("pkg/CalcTest"))

        assert summary.build is build
        assert summary.fail_count == 1
        assert summary.pass_count == 4
        assert summary.total_count == 5
        assert summary.description == "flaky again"

    def test_negative_values_rejected(self, job):
        """Test counts and duration must be non-negative."""
        build = job.get_build(1)
        with pytest.raises(ValueError):
            HistorySummary(build=build, duration=-0.5)
        with pytest.raises(ValueError):
            HistorySummary(build=build, fail_count=-1)

    def test_immutable(self, job):
        """Test summaries cannot be mutated."""
        summary = HistorySummary(build=job.get_build(1), pass_count=1)
        with pytest.raises(AttributeError):
            summary.pass_count = 2

    def test_to_dict(self, job):
        """Test converting to dictionary."""
        summary = HistorySummary(
            build=job.get_build(1),
            duration=10.0,
            pass_count=5,
        )

        d = summary.to_dict()
        assert d["build"]["number"] == 1
        assert d["duration"] == 10.0
        assert d["pass_count"] == 5
        assert d["total_count"] == 5
        assert d["description"] is None
