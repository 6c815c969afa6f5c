"""
Outcome resolution for test records.
"""

from dataclasses import dataclass
from typing import Optional

from .classifier import any_timeout, categorize_error
from .models import (
    AttemptRecord,
    AttemptStatus,
    TestCaseDetails,
    TestDisposition,
    TestFailure,
    TestOutcome,
    TestRecord,
)

UNKNOWN_SUITE = "Unknown Suite"
UNKNOWN_TEAM = "Unknown Team"
INTERRUPTED_MESSAGE = "Test was interrupted"
UNKNOWN_ERROR_MESSAGE = "Unknown error"


@dataclass
class Resolution:
    """Final disposition of one test record."""

    disposition: TestDisposition
    failure: Optional[TestFailure] = None


def outcome_to_status(outcome: str) -> str:
    """
    Convert a runner outcome label to a coarse status.

    Flaky tests map to "failed" here even though they count as passed in the
    summary; unknown labels are passed through unchanged.
    """
    mapping = {
        TestOutcome.SKIPPED.value: "skipped",
        TestOutcome.EXPECTED.value: "passed",
        TestOutcome.UNEXPECTED.value: "failed",
        TestOutcome.FLAKY.value: "failed",
    }
    return mapping.get(outcome, outcome)


def _failure(
    test: TestCaseDetails,
    attempt: AttemptRecord,
    message: str,
    stack: str,
    is_timeout: bool,
) -> TestFailure:
    return TestFailure(
        test_id=test.test_id,
        test_title=test.test_title,
        suite_title=test.suite_title or UNKNOWN_SUITE,
        owning_team=test.owning_team or UNKNOWN_TEAM,
        error_message=message,
        error_stack=stack,
        duration=attempt.duration_seconds,
        is_timeout=is_timeout,
        error_category=categorize_error(message),
        test_file=test.test_file,
        location=test.location,
    )


def resolve_outcome(record: TestRecord) -> Resolution:
    """
    Resolve a test record's final disposition.

    The decision uses the runner outcome captured when the record was
    created, not the attempt statuses. Failures for ``unexpected`` tests are
    built from the last attempt: the message comes from its first error while
    the stack joins the stacks of all its errors.

    Args:
        record: TestRecord with at least one attempt

    Returns:
        Resolution with the disposition and, for failed/errored tests, a TestFailure
    """
    outcome = record.test.outcome
    final_attempt = record.last_attempt

    if outcome in (TestOutcome.EXPECTED.value, TestOutcome.FLAKY.value):
        return Resolution(TestDisposition.PASSED)

    if outcome == TestOutcome.UNEXPECTED.value:
        errors = final_attempt.errors
        message = errors[0].message if errors else ""
        stack = "\n".join(e.stack or "" for e in errors)
        failure = _failure(
            record.test,
            final_attempt,
            message,
            stack,
            is_timeout=any_timeout(e.message for e in errors),
        )
        return Resolution(TestDisposition.FAILED, failure)

    if outcome == TestOutcome.SKIPPED.value:
        return Resolution(TestDisposition.SKIPPED)

    if final_attempt.status == AttemptStatus.INTERRUPTED.value:
        message = INTERRUPTED_MESSAGE
    else:
        message = f"Unknown outcome: {outcome}"
    return Resolution(
        TestDisposition.ERRORED,
        _failure(record.test, final_attempt, message, "", is_timeout=False),
    )


def build_provisional_failure(test: TestCaseDetails, attempt: AttemptRecord) -> TestFailure:
    """
    Build a failure from a single failed or timed-out attempt.

    Unlike ``resolve_outcome`` this uses only the first error's stack and
    derives ``is_timeout`` from the attempt status.
    """
    first = attempt.errors[0] if attempt.errors else None
    return _failure(
        test,
        attempt,
        first.message if first else UNKNOWN_ERROR_MESSAGE,
        (first.stack or "") if first else "",
        is_timeout=attempt.status == AttemptStatus.TIMED_OUT.value,
    )
