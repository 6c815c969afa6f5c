"""Tests for custom exceptions."""

from src.run_summary.exceptions import (
    EventParseError,
    FixSuggestionError,
    PersistenceError,
    RunStateError,
    RunSummaryError,
)


class TestRunSummaryError:
    """Tests for base exception."""

    def test_is_exception(self):
        assert issubclass(RunSummaryError, Exception)

    def test_subclasses(self):
        for cls in (RunStateError, PersistenceError, EventParseError, FixSuggestionError):
            assert issubclass(cls, RunSummaryError)


class TestRunStateError:
    """Tests for run state error."""

    def test_attributes(self):
        err = RunStateError("end", "not started")
        assert err.operation == "end"
        assert err.state == "not started"
        assert str(err) == "Cannot call end() while the run is not started"


class TestPersistenceError:
    """Tests for persistence error."""

    def test_attributes(self):
        orig = OSError("read-only file system")
        err = PersistenceError("/out/testSummary.json", orig)
        assert err.path == "/out/testSummary.json"
        assert err.original_error is orig
        assert "read-only" in str(err)


class TestEventParseError:
    """Tests for event parse error."""

    def test_attributes(self):
        err = EventParseError(7, "bad json")
        assert err.line_number == 7
        assert "line 7" in str(err)


class TestFixSuggestionError:
    """Tests for fix suggestion error."""

    def test_reason_truncated(self):
        err = FixSuggestionError("t", "x" * 500)
        assert len(err.reason) == 200
        assert err.test_title == "t"
