"""
Data models for the run summary reporter.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class AttemptStatus(Enum):
    """Terminal state of a single execution attempt."""

    PASSED = "passed"
    FAILED = "failed"
    TIMED_OUT = "timedOut"
    SKIPPED = "skipped"
    INTERRUPTED = "interrupted"


class TestOutcome(Enum):
    """Runner classification of a test across all of its attempts."""

    __test__ = False

    SKIPPED = "skipped"
    EXPECTED = "expected"
    UNEXPECTED = "unexpected"
    FLAKY = "flaky"


class TestDisposition(Enum):
    """Final disposition of a test once its outcome is resolved."""

    __test__ = False

    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"
    ERRORED = "errored"


@dataclass(frozen=True)
class ErrorInfo:
    """A single error reported for an attempt."""

    message: str
    stack: Optional[str] = None


@dataclass(frozen=True)
class AttemptRecord:
    """One execution attempt of a test. Immutable once recorded."""

    status: str
    duration_seconds: float
    errors: Tuple[ErrorInfo, ...] = ()
    retry: int = 0

    def __post_init__(self) -> None:
        if self.duration_seconds < 0:
            raise ValueError(f"duration_seconds must be non-negative: {self.duration_seconds}")
        # Accept lists from callers but keep the stored sequence immutable
        if not isinstance(self.errors, tuple):
            object.__setattr__(self, "errors", tuple(self.errors))


@dataclass(frozen=True)
class TestLocation:
    """Source location of a test declaration."""

    __test__ = False

    file: str
    line: Optional[int] = None
    column: Optional[int] = None


@dataclass(frozen=True)
class Annotation:
    """Runner-supplied annotation attached to a test."""

    type: str
    description: Optional[str] = None


@dataclass
class TestCaseInfo:
    """Description of a test as delivered by the host executor with each attempt."""

    __test__ = False

    title: str
    outcome: str
    suite_title: str = ""
    test_id: Optional[str] = None
    location: Optional[TestLocation] = None
    annotations: List[Annotation] = field(default_factory=list)

    @property
    def test_file(self) -> Optional[str]:
        return self.location.file if self.location else None


@dataclass
class TestCaseDetails:
    """Metadata snapshot taken the first time a test is seen."""

    __test__ = False

    test_title: str
    suite_title: str
    outcome: str
    status: str
    owning_team: str
    test_id: Optional[str] = None
    test_file: Optional[str] = None
    location: Optional[TestLocation] = None
    duration: Optional[float] = None
    retries: int = 0


@dataclass
class TestRecord:
    """A test's metadata plus its attempts in arrival order."""

    __test__ = False

    key: str
    test: TestCaseDetails
    attempts: List[AttemptRecord] = field(default_factory=list)

    @property
    def last_attempt(self) -> AttemptRecord:
        return self.attempts[-1]


@dataclass
class TestFailure:
    """A failure projection derived from a test record or a single attempt."""

    __test__ = False

    test_title: str
    suite_title: str
    owning_team: str
    error_message: str
    error_stack: str
    duration: float
    is_timeout: bool
    error_category: str
    test_id: Optional[str] = None
    test_file: Optional[str] = None
    location: Optional[TestLocation] = None


@dataclass
class SlowTest:
    """A passed attempt ranked by duration."""

    test_title: str
    duration: float


@dataclass
class BuildInfo:
    """CI metadata attached to a run summary."""

    is_pipeline: bool = False
    execution_system: Optional[str] = None
    artifacts_link: Optional[str] = None
    build_link: Optional[str] = None
    build_id: Optional[str] = None
    build_number: Optional[str] = None
    build_branch: Optional[str] = None
    build_repository: Optional[str] = None
    commit_id: Optional[str] = None
    commit_link: Optional[str] = None
    test_link: Optional[str] = None


@dataclass
class RunSummary:
    """Run-level statistics built once at the end of a run."""

    failures: List[TestFailure]
    test_count: int
    passed_count: int
    skipped_count: int
    failed_count: int
    total_time_display: str
    average_time: float
    slowest_test: float
    slowest_tests: List[SlowTest]
    build_info: Optional[BuildInfo] = None
    tests: List[TestCaseDetails] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """Return True if no test produced a failure."""
        return not self.failures


@dataclass
class LastRunStatus:
    """Contents of ``.last-run.json``."""

    status: str
    failed_tests: List[str] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return self.status == "passed"

    def to_dict(self) -> Dict[str, Any]:
        return {"status": self.status, "failedTests": list(self.failed_tests)}
