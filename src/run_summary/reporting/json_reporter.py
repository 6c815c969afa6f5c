"""
JSON reporter for run summaries.
"""

import json
from dataclasses import asdict
from typing import Any, Dict, Optional

from ..models import BuildInfo, RunSummary, TestCaseDetails, TestFailure, TestLocation
from .base import ReportGenerator


def _location(location: Optional[TestLocation]) -> Optional[Dict[str, Any]]:
    return asdict(location) if location else None


def build_info_to_dict(build_info: BuildInfo) -> Dict[str, Any]:
    return {
        "isPipeline": build_info.is_pipeline,
        "executionSystem": build_info.execution_system,
        "artifactsLink": build_info.artifacts_link,
        "buildLink": build_info.build_link,
        "buildId": build_info.build_id,
        "buildNumber": build_info.build_number,
        "buildBranch": build_info.build_branch,
        "buildRepository": build_info.build_repository,
        "commitId": build_info.commit_id,
        "commitLink": build_info.commit_link,
        "testLink": build_info.test_link,
    }


def failure_to_dict(failure: TestFailure) -> Dict[str, Any]:
    return {
        "testId": failure.test_id,
        "testTitle": failure.test_title,
        "suiteTitle": failure.suite_title,
        "owningTeam": failure.owning_team,
        "errorMessage": failure.error_message,
        "errorStack": failure.error_stack,
        "duration": failure.duration,
        "isTimeout": failure.is_timeout,
        "errorCategory": failure.error_category,
        "testFile": failure.test_file,
        "location": _location(failure.location),
    }


def details_to_dict(details: TestCaseDetails) -> Dict[str, Any]:
    return {
        "testId": details.test_id,
        "testTitle": details.test_title,
        "suiteTitle": details.suite_title,
        "testFile": details.test_file,
        "location": _location(details.location),
        "status": details.status,
        "outcome": details.outcome,
        "owningTeam": details.owning_team,
        "duration": details.duration,
        "retries": details.retries,
    }


def summary_to_dict(summary: RunSummary) -> Dict[str, Any]:
    """Serialize a summary using the camelCase keys of ``testSummary.json``."""
    data: Dict[str, Any] = {
        "failures": [failure_to_dict(f) for f in summary.failures],
        "testCount": summary.test_count,
        "passedCount": summary.passed_count,
        "skippedCount": summary.skipped_count,
        "failedCount": summary.failed_count,
        "totalTimeDisplay": summary.total_time_display,
        "averageTime": summary.average_time,
        "slowestTest": summary.slowest_test,
        "slowestTests": [
            {"testTitle": s.test_title, "duration": s.duration} for s in summary.slowest_tests
        ],
    }
    if summary.build_info is not None:
        data["buildInfo"] = build_info_to_dict(summary.build_info)
    return data


class JSONReporter(ReportGenerator):
    """Generate JSON format for programmatic analysis."""

    def generate(self, summary: RunSummary) -> str:
        """Generate JSON report."""
        report = {
            "summary": summary_to_dict(summary),
            "tests": [details_to_dict(t) for t in summary.tests],
        }
        return json.dumps(report, indent=2)
