"""Tests for JSON persistence."""

import json
from unittest.mock import patch

import pytest

from src.run_summary.exceptions import PersistenceError
from src.run_summary.file_handler import FileHandler, read_json, write_json
from src.run_summary.models import LastRunStatus, RunSummary, TestFailure


def _failure(title="t1"):
    return TestFailure(
        test_title=title,
        suite_title="suite",
        owning_team="QA",
        error_message="boom",
        error_stack="stack",
        duration=1.5,
        is_timeout=False,
        error_category="Unknown",
    )


class TestWriteJson:
    """Tests for write_json and read_json."""

    def test_creates_parent_directories(self, tmp_path):
        path = write_json(tmp_path / "a" / "b" / "out.json", {"k": "ü"})
        assert path.exists()
        assert read_json(path) == {"k": "ü"}
        assert "ü" in path.read_text(encoding="utf-8")

    def test_write_error_wrapped(self, tmp_path):
        with patch("pathlib.Path.write_text", side_effect=PermissionError("denied")):
            with pytest.raises(PersistenceError) as exc_info:
                write_json(tmp_path / "out.json", {})
        assert isinstance(exc_info.value.original_error, PermissionError)

    def test_read_missing_raises_file_not_found(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_json(tmp_path / "missing.json")

    def test_read_invalid_json(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{not json")
        with pytest.raises(PersistenceError):
            read_json(path)


class TestFileHandler:
    """Tests for FileHandler."""

    def test_add_failure_rewrites_file(self, tmp_path):
        handler = FileHandler(tmp_path)
        handler.add_failure(_failure("t1"))
        handler.add_failure(_failure("t2"))
        data = json.loads((tmp_path / "testFailures.json").read_text())
        assert [f["testTitle"] for f in data] == ["t1", "t2"]
        assert data[0]["errorCategory"] == "Unknown"
        assert len(handler.failures) == 2

    def test_write_summary(self, tmp_path):
        summary = RunSummary(
            failures=[_failure()],
            test_count=2,
            passed_count=1,
            skipped_count=0,
            failed_count=1,
            total_time_display="3.00s",
            average_time=1.0,
            slowest_test=1.0,
            slowest_tests=[],
        )
        path = FileHandler(tmp_path).write_summary(summary)
        data = json.loads(path.read_text())
        assert path.name == "testSummary.json"
        assert data["failedCount"] == 1
        assert data["totalTimeDisplay"] == "3.00s"
        assert data["allTests"] == []
        assert "buildInfo" not in data

    def test_write_last_run(self, tmp_path):
        path = FileHandler(tmp_path).write_last_run(LastRunStatus("failed", ["a", "b"]))
        assert path.name == ".last-run.json"
        assert json.loads(path.read_text()) == {"status": "failed", "failedTests": ["a", "b"]}
