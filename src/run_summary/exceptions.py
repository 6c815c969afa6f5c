"""
Custom exceptions for the run summary reporter.
"""


class RunSummaryError(Exception):
    """Base exception for run summary reporter errors."""

    pass


class RunStateError(RunSummaryError):
    """Raised when a lifecycle callback arrives in the wrong run state."""

    def __init__(self, operation: str, state: str):
        self.operation = operation
        self.state = state
        super().__init__(f"Cannot call {operation}() while the run is {state}")


class PersistenceError(RunSummaryError):
    """Raised when a report artifact cannot be written or read."""

    def __init__(self, path: str, original_error: Exception):
        self.path = path
        self.original_error = original_error
        super().__init__(f"Failed to access {path}: {original_error}")


class EventParseError(RunSummaryError):
    """Raised when a recorded lifecycle event cannot be parsed."""

    def __init__(self, line_number: int, reason: str):
        self.line_number = line_number
        self.reason = reason
        super().__init__(f"Invalid event on line {line_number}: {reason}")


class FixSuggestionError(RunSummaryError):
    """Raised when the fix-suggestion service returns an unusable response."""

    def __init__(self, test_title: str, reason: str):
        self.test_title = test_title
        # Truncate to avoid dumping whole API responses into logs
        self.reason = reason[:200] if reason else ""
        super().__init__(f"Fix suggestion failed for '{test_title}': {self.reason}")
