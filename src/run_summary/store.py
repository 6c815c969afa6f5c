"""
In-memory store of test records for a single run.
"""

import logging
from typing import Dict, Iterator, Optional

from .models import AttemptRecord, TestCaseDetails, TestCaseInfo, TestRecord
from .resolver import UNKNOWN_SUITE, outcome_to_status
from .teams import TeamRegistry

logger = logging.getLogger(__name__)

KEY_SEPARATOR = " › "


def record_key(info: TestCaseInfo) -> str:
    """
    Build the aggregation key for a test.

    Tests are keyed on file, suite and title together so that two tests that
    share a title in different suites or files stay separate.
    """
    return KEY_SEPARATOR.join((info.test_file or "", info.suite_title or "", info.title))


class TestRecordStore:
    """Maps test identity to its metadata snapshot and ordered attempts."""

    __test__ = False

    def __init__(self, teams: Optional[TeamRegistry] = None):
        self.teams = teams or TeamRegistry()
        self._records: Dict[str, TestRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[TestRecord]:
        return iter(self._records.values())

    def __contains__(self, info: object) -> bool:
        return isinstance(info, TestCaseInfo) and record_key(info) in self._records

    def get(self, info: TestCaseInfo) -> Optional[TestRecord]:
        return self._records.get(record_key(info))

    def ensure_record(self, info: TestCaseInfo) -> TestRecord:
        """
        Return the record for a test, creating it on first sight.

        Metadata (outcome, status and owning team) is captured only when the
        record is created; later calls return the existing record untouched.
        """
        key = record_key(info)
        record = self._records.get(key)
        if record is not None:
            return record

        details = TestCaseDetails(
            test_id=info.test_id,
            test_title=info.title,
            suite_title=info.suite_title or UNKNOWN_SUITE,
            test_file=info.test_file,
            location=info.location,
            outcome=info.outcome,
            status=outcome_to_status(info.outcome),
            owning_team=self.teams.resolve(info.title, info.annotations),
        )
        record = TestRecord(key=key, test=details)
        self._records[key] = record
        logger.debug("Tracking test %s (team: %s)", key, details.owning_team)
        return record

    def append_attempt(self, info: TestCaseInfo, attempt: AttemptRecord) -> None:
        """Append an attempt to an existing record; logs and returns if it is missing."""
        record = self._records.get(record_key(info))
        if record is None:
            logger.error("No record for test '%s'; attempt dropped", info.title)
            return
        record.attempts.append(attempt)
