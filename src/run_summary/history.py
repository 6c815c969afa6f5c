"""
Comparison of last-run status files between runs.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

from .exceptions import PersistenceError
from .file_handler import LAST_RUN_FILE, read_json
from .models import LastRunStatus

logger = logging.getLogger(__name__)


@dataclass
class RunComparison:
    """Difference between the failing tests of two runs."""

    new_failures: List[str] = field(default_factory=list)
    fixed_tests: List[str] = field(default_factory=list)
    still_failing: List[str] = field(default_factory=list)

    @property
    def has_regressions(self) -> bool:
        return bool(self.new_failures)


def parse_last_run(data: object) -> LastRunStatus:
    """Build a LastRunStatus from decoded JSON, rejecting malformed content."""
    if not isinstance(data, dict) or data.get("status") not in ("passed", "failed"):
        raise ValueError("expected an object with status 'passed' or 'failed'")
    failed = data.get("failedTests") or []
    if not isinstance(failed, list):
        raise ValueError("failedTests must be a list")
    return LastRunStatus(status=data["status"], failed_tests=[str(t) for t in failed])


def load_last_run(path: Union[str, Path]) -> Optional[LastRunStatus]:
    """
    Load a ``.last-run.json`` file.

    Args:
        path: File path, or a directory containing ``.last-run.json``

    Returns:
        LastRunStatus, or None if the file does not exist

    Raises:
        PersistenceError: If the file is unreadable or malformed
    """
    target = Path(path)
    if target.is_dir():
        target = target / LAST_RUN_FILE
    try:
        data = read_json(target)
    except FileNotFoundError:
        logger.debug("No previous run status at %s", target)
        return None
    try:
        return parse_last_run(data)
    except ValueError as e:
        raise PersistenceError(str(target), e)


def compare_runs(previous: Optional[LastRunStatus], current: LastRunStatus) -> RunComparison:
    """
    Diff the failing test ids of two runs.

    Ordering follows the run each id came from. With no previous run every
    current failure counts as new.
    """
    previous_ids = set(previous.failed_tests) if previous else set()
    current_ids = set(current.failed_tests)
    return RunComparison(
        new_failures=[t for t in current.failed_tests if t not in previous_ids],
        fixed_tests=[t for t in (previous.failed_tests if previous else []) if t not in current_ids],
        still_failing=[t for t in current.failed_tests if t in previous_ids],
    )
