"""Shared fixtures for testhistory tests."""

import pytest

from testhistory.results.models import BuildResult, CaseStatus, Job


def add_calc_class(build, passed: int, failed: int = 0, case_duration: float = 2.0, description=None):
    """Record pkg/CalcTest with the given outcome counts in a build."""
    result = build.result
    package = result.child("pkg") or result.add_package("pkg")
    test_class = package.add_class("CalcTest", description)
    for i in range(passed):
        test_class.add_case(f"test_pass_{i}", CaseStatus.PASSED, case_duration)
    for i in range(failed):
        test_class.add_case(f"test_fail_{i}", CaseStatus.FAILED, case_duration)
    return test_class


@pytest.fixture
def job():
    """Job with three builds; pkg/CalcTest is recorded in builds 1 and 3 only."""
    job = Job("calc")

    build1 = job.add_build(1)
    build1.attach_result(BuildResult())
    add_calc_class(build1, passed=5)

    build2 = job.add_build(2)
    build2.attach_result(BuildResult())
    other = build2.result.add_package("other").add_class("OtherTest")
    other.add_case("test_other", CaseStatus.SKIPPED, 1.0)

    build3 = job.add_build(3)
    build3.attach_result(BuildResult())
    add_calc_class(build3, passed=4, failed=1, case_duration=2.4, description="flaky again")

    return job
