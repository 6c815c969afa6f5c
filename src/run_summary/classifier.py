"""
Failure classification by error-message patterns.
"""

from typing import Iterable, Sequence, Tuple

UNKNOWN_CATEGORY = "Unknown"

# Evaluated in order, first match wins. Matching is case-sensitive.
CATEGORY_RULES: Sequence[Tuple[str, Tuple[str, ...]]] = (
    ("ElementNotFound", ("No node found", "not visible")),
    ("Timeout/DelayedElement", ("Timeout", "timed out")),
    ("SelectorChanged", ("selector", "locator")),
    ("AssertionFailure", ("expect(", "assertion failed")),
    ("NetworkError", ("Network", "fetch failed", "status=")),
    ("JavaScriptError", ("javascript error", "undefined is not", "null")),
    ("NavigationError", ("navigation", "page.goto")),
    ("ElementInteractionError", ("element is not clickable", "intercepted")),
    ("PermissionError", ("permission", "access denied")),
)

TIMEOUT_MARKERS: Tuple[str, ...] = ("timeout", "Timeout", "timed out")


def categorize_error(message: str) -> str:
    """
    Map an error message to a failure category.

    Args:
        message: Raw error message

    Returns:
        Category name, or "Unknown" when no rule matches
    """
    for category, needles in CATEGORY_RULES:
        if any(needle in message for needle in needles):
            return category
    return UNKNOWN_CATEGORY


def is_timeout_message(message: str) -> bool:
    """Return True if the message text indicates a timeout."""
    return any(marker in message for marker in TIMEOUT_MARKERS)


def any_timeout(messages: Iterable[str]) -> bool:
    return any(is_timeout_message(m) for m in messages)
