"""
JSON persistence of run artifacts.
"""

import json
import logging
from pathlib import Path
from typing import Any, List, Union

from .exceptions import PersistenceError
from .models import LastRunStatus, RunSummary, TestFailure
from .reporting.json_reporter import details_to_dict, failure_to_dict, summary_to_dict

logger = logging.getLogger(__name__)

SUMMARY_FILE = "testSummary.json"
FAILURES_FILE = "testFailures.json"
LAST_RUN_FILE = ".last-run.json"


def write_json(path: Union[str, Path], data: Any) -> Path:
    """
    Write data as UTF-8 JSON, creating parent directories.

    Raises:
        PersistenceError: If the file cannot be written
    """
    target = Path(path)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
    except OSError as e:
        raise PersistenceError(str(target), e)
    return target


def read_json(path: Union[str, Path]) -> Any:
    """
    Read a UTF-8 JSON file.

    Raises:
        FileNotFoundError: If the file does not exist
        PersistenceError: If the file is unreadable or not valid JSON
    """
    source = Path(path)
    try:
        return json.loads(source.read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise
    except (OSError, ValueError) as e:
        raise PersistenceError(str(source), e)


class FileHandler:
    """Writes summary, failure and last-run artifacts into an output directory."""

    def __init__(self, output_dir: Union[str, Path]):
        self.output_dir = Path(output_dir)
        self._failures: List[TestFailure] = []

    @property
    def failures(self) -> List[TestFailure]:
        return list(self._failures)

    def add_failure(self, failure: TestFailure) -> Path:
        """Record a failure and rewrite ``testFailures.json`` with all failures so far."""
        self._failures.append(failure)
        return write_json(
            self.output_dir / FAILURES_FILE, [failure_to_dict(f) for f in self._failures]
        )

    def write_summary(self, summary: RunSummary) -> Path:
        data = summary_to_dict(summary)
        data["allTests"] = [details_to_dict(t) for t in summary.tests]
        path = write_json(self.output_dir / SUMMARY_FILE, data)
        logger.info("Summary written to %s", path)
        return path

    def write_last_run(self, status: LastRunStatus) -> Path:
        return write_json(self.output_dir / LAST_RUN_FILE, status.to_dict())
