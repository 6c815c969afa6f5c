"""Helpers for building test inputs."""

from src.run_summary.models import (
    Annotation,
    AttemptRecord,
    ErrorInfo,
    TestCaseInfo,
    TestLocation,
)


def make_info(title="logs in", outcome="expected", suite="auth", file="auth.spec.ts", **kwargs):
    return TestCaseInfo(
        title=title,
        outcome=outcome,
        suite_title=suite,
        location=TestLocation(file=file, line=kwargs.pop("line", 10)) if file else None,
        annotations=[Annotation(t, d) for t, d in kwargs.pop("annotations", [])],
        test_id=kwargs.pop("test_id", None),
    )


def make_attempt(status="passed", duration=1.0, errors=(), retry=0):
    return AttemptRecord(
        status=status,
        duration_seconds=duration,
        errors=tuple(e if isinstance(e, ErrorInfo) else ErrorInfo(*e) for e in errors),
        retry=retry,
    )
