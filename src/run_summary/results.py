"""
Run-level aggregation of test records.
"""

import dataclasses
import logging
from typing import Iterable, List, Optional

from .models import (
    AttemptStatus,
    BuildInfo,
    RunSummary,
    SlowTest,
    TestCaseDetails,
    TestDisposition,
    TestFailure,
    TestRecord,
)
from .resolver import resolve_outcome

logger = logging.getLogger(__name__)


def format_time(seconds: float) -> str:
    """Format a duration as seconds below one minute, else minutes."""
    if seconds < 60:
        return f"{seconds:.2f}s"
    return f"{seconds / 60:.2f}min"


def calculate_average_time(durations: List[float]) -> float:
    """Return the arithmetic mean of durations, or 0 when empty."""
    if not durations:
        return 0.0
    return sum(durations) / len(durations)


def passed_attempt_durations(record: TestRecord) -> List[float]:
    return [
        a.duration_seconds for a in record.attempts if a.status == AttemptStatus.PASSED.value
    ]


def find_slowest_tests(records: Iterable[TestRecord], limit: int) -> List[SlowTest]:
    """
    Rank passed attempts by duration.

    Every passed attempt is a candidate, so a test can appear more than once.
    The sort is stable: equal durations keep their encounter order.

    Args:
        records: Test records in encounter order
        limit: Maximum number of entries to return

    Returns:
        Up to ``limit`` SlowTest entries, longest first
    """
    candidates = [
        SlowTest(test_title=record.test.test_title, duration=duration)
        for record in records
        for duration in passed_attempt_durations(record)
    ]
    candidates.sort(key=lambda s: s.duration, reverse=True)
    return candidates[: max(limit, 0)]


def _details(record: TestRecord) -> TestCaseDetails:
    return dataclasses.replace(
        record.test,
        duration=record.last_attempt.duration_seconds,
        retries=len(record.attempts) - 1,
    )


def aggregate(
    records: Iterable[TestRecord],
    max_slow_tests: int = 3,
    total_time_seconds: float = 0.0,
    build_info: Optional[BuildInfo] = None,
) -> RunSummary:
    """
    Fold test records into a run summary.

    The fold has no side effects; the same records always produce the same
    summary.

    Args:
        records: Test records (typically a TestRecordStore)
        max_slow_tests: Number of slowest passed attempts to report
        total_time_seconds: Wall-clock duration of the run
        build_info: Optional CI metadata

    Returns:
        RunSummary with counts, timing statistics and failures
    """
    test_count = 0
    passed_count = 0
    skipped_count = 0
    failures: List[TestFailure] = []
    passed_durations: List[float] = []
    tests: List[TestCaseDetails] = []
    passed_records: List[TestRecord] = []

    for record in records:
        if not record.attempts:
            logger.warning("Skipping test %s with no recorded attempts", record.key)
            continue
        test_count += 1
        tests.append(_details(record))

        resolution = resolve_outcome(record)
        if resolution.disposition == TestDisposition.PASSED:
            passed_count += 1
            passed_durations.extend(passed_attempt_durations(record))
            passed_records.append(record)
        elif resolution.disposition == TestDisposition.SKIPPED:
            skipped_count += 1
        elif resolution.failure is not None:
            failures.append(resolution.failure)

    return RunSummary(
        failures=failures,
        test_count=test_count,
        passed_count=passed_count,
        skipped_count=skipped_count,
        failed_count=test_count - passed_count - skipped_count,
        total_time_display=format_time(total_time_seconds),
        average_time=calculate_average_time(passed_durations),
        slowest_test=max(passed_durations, default=0.0),
        slowest_tests=find_slowest_tests(passed_records, max_slow_tests),
        build_info=build_info,
        tests=tests,
    )
