"""
Run controller: receives lifecycle events and produces the run's exit signal.
"""

import logging
import time
import traceback
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, List, Optional, Sequence, Union

from .config import ReporterConfig
from .exceptions import PersistenceError, RunStateError
from .file_handler import FileHandler
from .fix_suggestions import FixSuggestionGenerator, FixSuggestionResult
from .models import (
    AttemptRecord,
    AttemptStatus,
    BuildInfo,
    ErrorInfo,
    LastRunStatus,
    RunSummary,
    TestCaseInfo,
    TestFailure,
)
from .resolver import build_provisional_failure
from .results import aggregate
from .store import TestRecordStore
from .teams import TeamRegistry

logger = logging.getLogger(__name__)


class RunState(Enum):
    """Lifecycle state of a run."""

    NOT_STARTED = "not started"
    RUNNING = "running"
    ENDED = "ended"


@dataclass
class RunResult:
    """Outcome of a finished run."""

    exit_code: int
    has_errors: bool
    summary: Optional[RunSummary] = None
    no_tests: bool = False
    non_test_errors: List[ErrorInfo] = field(default_factory=list)
    fix_suggestions: List[FixSuggestionResult] = field(default_factory=list)


def _project_output_dir(project: Any) -> Optional[str]:
    if isinstance(project, dict):
        return project.get("output_dir") or project.get("outputDir")
    return getattr(project, "output_dir", None)


class RunController:
    """
    Aggregates one run's lifecycle events.

    Callbacks must arrive serially: ``begin`` once, then any interleaving of
    ``record_attempt`` and ``record_error``, then ``end``.
    """

    def __init__(
        self,
        config: Optional[ReporterConfig] = None,
        clock: Callable[[], float] = time.monotonic,
        fix_generator: Optional[FixSuggestionGenerator] = None,
    ):
        self.config = config or ReporterConfig()
        self.store = TestRecordStore(TeamRegistry(self.config.teams, self.config.fallback_team))
        self.output_dir = Path(self.config.output_dir)
        self.file_handler = FileHandler(self.output_dir)
        self.non_test_errors: List[ErrorInfo] = []
        self.provisional_failures: List[TestFailure] = []
        self.had_interruption = False
        self.build_info: Optional[BuildInfo] = None
        self.state = RunState.NOT_STARTED
        self._clock = clock
        self._start_time = 0.0
        self._fix_generator = fix_generator
        self._result: Optional[RunResult] = None

    @property
    def exit_code(self) -> Optional[int]:
        """Exit code once the run has ended, else None."""
        return self._result.exit_code if self._result else None

    def _require(self, state: RunState, operation: str) -> None:
        if self.state != state:
            raise RunStateError(operation, self.state.value)

    def begin(
        self,
        total_test_count: int,
        build_info: Optional[BuildInfo] = None,
        projects: Sequence[Any] = (),
    ) -> None:
        """
        Start the run.

        Args:
            total_test_count: Number of tests the host plans to execute
            build_info: CI metadata to attach to the summary
            projects: Host project settings; the first one with an
                ``output_dir`` overrides the configured output directory
        """
        self._require(RunState.NOT_STARTED, "begin")
        self.state = RunState.RUNNING
        self._start_time = self._clock()
        self.build_info = build_info

        for project in projects:
            project_dir = _project_output_dir(project)
            if project_dir:
                self.output_dir = Path(project_dir).resolve()
                self.file_handler = FileHandler(self.output_dir)
                break

        logger.info("Starting test run: %d tests (output: %s)", total_test_count, self.output_dir)

    def record_error(self, error: Union[ErrorInfo, BaseException]) -> None:
        """Record a setup, teardown or runner error outside any test attempt."""
        self._require(RunState.RUNNING, "record_error")
        if isinstance(error, BaseException):
            stack = "".join(traceback.format_exception(type(error), error, error.__traceback__))
            error = ErrorInfo(message=str(error), stack=stack)

        logger.error("Setup or runtime error: %s", error.message)
        if error.stack and self.config.show_stack_trace:
            logger.error("%s", error.stack)
        self.non_test_errors.append(error)

    def record_attempt(self, info: TestCaseInfo, attempt: AttemptRecord) -> None:
        """Record one completed attempt of a test."""
        self._require(RunState.RUNNING, "record_attempt")
        record = self.store.ensure_record(info)
        self.store.append_attempt(info, attempt)

        if attempt.status in (AttemptStatus.FAILED.value, AttemptStatus.TIMED_OUT.value):
            failure = build_provisional_failure(record.test, attempt)
            self.provisional_failures.append(failure)
            try:
                self.file_handler.add_failure(failure)
            except PersistenceError as e:
                logger.error("Failed to write failure for %s: %s", info.title, e)

        if attempt.status == AttemptStatus.INTERRUPTED.value:
            self.had_interruption = True

        self._log_attempt(info.title, attempt)

    def _log_attempt(self, title: str, attempt: AttemptRecord) -> None:
        seconds = attempt.duration_seconds
        status = attempt.status
        if status == AttemptStatus.PASSED.value:
            suffix = " passed after retry" if attempt.retry > 0 else ""
            logger.info("✓ %s%s in %.2fs", title, suffix, seconds)
        elif status in (AttemptStatus.FAILED.value, AttemptStatus.TIMED_OUT.value):
            if attempt.retry > 0:
                logger.warning('Retry attempt #%d for "%s" failed', attempt.retry + 1, title)
            else:
                logger.warning("✗ %s failed in %.2fs", title, seconds)
        elif status == AttemptStatus.SKIPPED.value:
            logger.info("%s was skipped", title)
        elif status == AttemptStatus.INTERRUPTED.value:
            logger.error("%s was interrupted", title)
        else:
            logger.error("%s ended with unknown status: %s in %.2fs", title, status, seconds)

    def end(self) -> RunResult:
        """
        Finish the run, persist artifacts and compute the exit signal.

        Calling ``end`` again returns the first result unchanged.

        Returns:
            RunResult with exit code 0 when there were no failures, runner
            errors or interruptions, else 1
        """
        if self.state == RunState.ENDED and self._result is not None:
            return self._result
        self._require(RunState.RUNNING, "end")
        self.state = RunState.ENDED

        if len(self.store) == 0:
            logger.error("No tests found")
            self._result = RunResult(
                exit_code=1,
                has_errors=True,
                no_tests=True,
                non_test_errors=list(self.non_test_errors),
            )
            return self._result

        summary = aggregate(
            self.store,
            max_slow_tests=self.config.max_slow_tests_to_show,
            total_time_seconds=max(self._clock() - self._start_time, 0.0),
            build_info=self.build_info,
        )
        has_errors = bool(summary.failures) or bool(self.non_test_errors) or self.had_interruption

        self._persist(summary)

        if self.non_test_errors:
            logger.error("%d setup or teardown errors occurred", len(self.non_test_errors))
        if self.had_interruption:
            logger.error("Some tests were interrupted. This may indicate a test hang or timeout.")
        logger.info(
            "Run complete: %d passed, %d failed, %d skipped",
            summary.passed_count,
            summary.failed_count,
            summary.skipped_count,
        )

        self._result = RunResult(
            exit_code=1 if has_errors else 0,
            has_errors=has_errors,
            summary=summary,
            non_test_errors=list(self.non_test_errors),
        )

        if self.config.generate_fix and summary.failures:
            self._result.fix_suggestions = self._generate_fix_suggestions(summary.failures)

        return self._result

    def _persist(self, summary: RunSummary) -> None:
        try:
            self.file_handler.write_summary(summary)
        except PersistenceError as e:
            logger.error("Failed to write test summary: %s", e)

        failed_tests = [
            record.test.test_id or record.key
            for record in self.store
            if record.test.status == "failed"
        ]
        status = LastRunStatus(
            status="failed" if summary.failures else "passed", failed_tests=failed_tests
        )
        try:
            self.file_handler.write_last_run(status)
        except PersistenceError as e:
            logger.error("Failed to write last run status: %s", e)

    def _generate_fix_suggestions(self, failures: List[TestFailure]) -> List[FixSuggestionResult]:
        generator = self._fix_generator or FixSuggestionGenerator(
            self.output_dir,
            api_key=self.config.fix_api_key,
            api_url=self.config.fix_api_url,
            model=self.config.fix_model,
            timeout=self.config.fix_timeout_seconds,
        )
        try:
            return generator.generate_all(failures)
        except Exception as e:
            # The exit code is already decided; suggestion failures only get logged
            logger.exception("Fix suggestion generation failed: %s", e)
            return []
