"""
Replay of recorded host lifecycle events.

Events are JSON objects, one per line, each with a ``type`` of ``begin``,
``attempt``, ``error`` or ``end``::

    {"type": "begin", "totalTests": 2, "projects": [{"outputDir": "out"}]}
    {"type": "attempt",
     "test": {"id": "a1", "title": "logs in", "suite": "auth", "file": "auth.spec.ts",
              "line": 12, "outcome": "expected", "annotations": []},
     "result": {"status": "passed", "duration": 1230, "retry": 0, "errors": []}}
    {"type": "error", "message": "globalSetup failed", "stack": "..."}
    {"type": "end"}

Attempt durations are in milliseconds, as reported by the host.
"""

import json
import logging
from typing import Any, Dict, Iterable, Optional, Tuple

from .controller import RunController, RunResult, RunState
from .exceptions import EventParseError
from .models import AttemptRecord, Annotation, BuildInfo, ErrorInfo, TestCaseInfo, TestLocation

logger = logging.getLogger(__name__)

NO_ERROR_MESSAGE = "No error message"

_BUILD_INFO_FIELDS = {
    "isPipeline": "is_pipeline",
    "executionSystem": "execution_system",
    "artifactsLink": "artifacts_link",
    "buildLink": "build_link",
    "buildId": "build_id",
    "buildNumber": "build_number",
    "buildBranch": "build_branch",
    "buildRepository": "build_repository",
    "commitId": "commit_id",
    "commitLink": "commit_link",
    "testLink": "test_link",
}


def parse_test_case(data: Dict[str, Any]) -> TestCaseInfo:
    """Build a TestCaseInfo from an event's ``test`` object."""
    if not data.get("title"):
        raise ValueError("test.title is required")
    location = None
    if data.get("file"):
        location = TestLocation(file=data["file"], line=data.get("line"), column=data.get("column"))
    annotations = [
        Annotation(type=a.get("type", ""), description=a.get("description"))
        for a in data.get("annotations") or []
    ]
    return TestCaseInfo(
        test_id=data.get("id"),
        title=data["title"],
        suite_title=data.get("suite") or "",
        location=location,
        outcome=data.get("outcome", ""),
        annotations=annotations,
    )


def parse_attempt(data: Dict[str, Any]) -> AttemptRecord:
    """Build an AttemptRecord from an event's ``result`` object."""
    if not data.get("status"):
        raise ValueError("result.status is required")
    errors = [
        ErrorInfo(message=e.get("message") or NO_ERROR_MESSAGE, stack=e.get("stack"))
        for e in data.get("errors") or []
    ]
    return AttemptRecord(
        status=data["status"],
        duration_seconds=float(data.get("duration", 0)) / 1000,
        errors=tuple(errors),
        retry=int(data.get("retry", 0)),
    )


def parse_build_info(data: Dict[str, Any]) -> BuildInfo:
    return BuildInfo(**{attr: data[key] for key, attr in _BUILD_INFO_FIELDS.items() if key in data})


def parse_event(
    event: Dict[str, Any],
    default_build_info: Optional[BuildInfo] = None,
) -> Tuple[str, Any]:
    """
    Decode one event into its type and the arguments for the controller.

    Raises:
        ValueError: If the event type is unknown or a field is invalid
        TypeError: If a field has the wrong JSON type
    """
    kind = event.get("type")
    if kind == "begin":
        build_info = (
            parse_build_info(event["buildInfo"]) if event.get("buildInfo") else default_build_info
        )
        return kind, (int(event.get("totalTests", 0)), build_info, event.get("projects") or ())
    if kind == "attempt":
        return kind, (
            parse_test_case(event.get("test") or {}),
            parse_attempt(event.get("result") or {}),
        )
    if kind == "error":
        return kind, ErrorInfo(
            message=event.get("message") or NO_ERROR_MESSAGE, stack=event.get("stack")
        )
    if kind == "end":
        return kind, None
    raise ValueError(f"unknown event type: {kind!r}")


def dispatch_event(controller: RunController, kind: str, payload: Any) -> None:
    """Deliver one decoded event to the controller."""
    if kind == "begin":
        total, build_info, projects = payload
        controller.begin(total, build_info=build_info, projects=projects)
    elif kind == "attempt":
        controller.record_attempt(*payload)
    elif kind == "error":
        controller.record_error(payload)
    elif kind == "end":
        controller.end()


def replay(
    lines: Iterable[str],
    controller: RunController,
    default_build_info: Optional[BuildInfo] = None,
) -> RunResult:
    """
    Feed JSON-lines events into a controller and return the run result.

    A log without a ``begin`` event is treated as an empty run; a log that
    stops before ``end`` is ended after the last line. Errors raised by the
    controller itself propagate unchanged.

    Raises:
        EventParseError: If a line is not valid JSON or not a valid event
    """
    for line_number, line in enumerate(lines, start=1):
        if not line.strip():
            continue
        try:
            event = json.loads(line)
            if not isinstance(event, dict):
                raise ValueError("event must be a JSON object")
            kind, payload = parse_event(event, default_build_info)
        except (ValueError, TypeError) as e:
            raise EventParseError(line_number, str(e))
        dispatch_event(controller, kind, payload)

    if controller.state == RunState.NOT_STARTED:
        logger.warning("Event log has no begin event")
        controller.begin(0, build_info=default_build_info)
    if controller.state == RunState.RUNNING:
        logger.warning("Event log has no end event; ending run")
    return controller.end()
