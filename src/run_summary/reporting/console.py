"""
Console reporter for run summaries.
"""

import os
import sys
from typing import List, Optional

from ..models import BuildInfo, RunSummary
from .base import ReportGenerator

RULE = "=" * 47


def _supports_color() -> bool:
    """Return True if the output stream likely supports ANSI colours."""
    # Explicit opt-in / opt-out via environment variable
    if os.environ.get("NO_COLOR"):
        return False
    if os.environ.get("FORCE_COLOR"):
        return True
    # Non-TTY output (e.g. piped to a file) should not use colour
    if not hasattr(sys.stdout, "isatty") or not sys.stdout.isatty():
        return False
    return sys.platform != "win32" or "WT_SESSION" in os.environ


class ConsoleReporter(ReportGenerator):
    """Generate colored console output for a run summary."""

    def __init__(self, show_stack_trace: bool = True, color: Optional[bool] = None) -> None:
        self.show_stack_trace = show_stack_trace
        if color is None:
            color = _supports_color()
        self.GREEN = "\033[92m" if color else ""
        self.RED = "\033[91m" if color else ""
        self.YELLOW = "\033[93m" if color else ""
        self.BLUE = "\033[94m" if color else ""
        self.MAGENTA = "\033[95m" if color else ""
        self.CYAN = "\033[96m" if color else ""
        self.RESET = "\033[0m" if color else ""
        self.BOLD = "\033[1m" if color else ""

    def generate(self, summary: RunSummary) -> str:
        """Generate console report."""
        lines: List[str] = []

        lines.append(f"\n{self.BLUE}{RULE}{self.RESET}")
        lines.append(f"{self.CYAN}{self.BOLD}Test Summary:{self.RESET}")
        lines.append(f"{self.BLUE}{RULE}{self.RESET}")

        if summary.failures:
            lines.append(
                f"{self.RED}✗ {len(summary.failures)} of {summary.test_count} tests failed | "
                f"{summary.passed_count} passed | {summary.skipped_count} skipped | "
                f"Total: {summary.total_time_display}{self.RESET}"
            )
        else:
            lines.append(
                f"{self.GREEN}✓ All {summary.test_count} tests passed | "
                f"{summary.skipped_count} skipped | Total: {summary.total_time_display}{self.RESET}"
            )

        if summary.build_info:
            lines.extend(self._build_info_lines(summary.build_info))

        lines.extend(self._metrics_lines(summary))

        if summary.skipped_count > 0:
            verb = "test was" if summary.skipped_count == 1 else "tests were"
            lines.append(
                f"\n{self.YELLOW}Warning: {summary.skipped_count} {verb} skipped.{self.RESET}"
            )
            lines.append(
                f"{self.YELLOW}   Please ensure to test the skipped scenarios manually "
                f"before deployment.{self.RESET}"
            )
        lines.append(f"{self.BLUE}{RULE}{self.RESET}")

        if summary.failures:
            lines.extend(self._failure_lines(summary))

        lines.append("")  # Empty line at end
        return "\n".join(lines)

    def _build_info_lines(self, build_info: BuildInfo) -> List[str]:
        if not build_info.is_pipeline:
            return [f"{self.MAGENTA}Running locally{self.RESET}"]

        lines = [
            f"{self.MAGENTA}\nBuild Information:{self.RESET}",
            f"{self.MAGENTA}- CI System: {build_info.execution_system or 'Unknown CI'}{self.RESET}",
        ]
        fields = [
            ("Build", build_info.build_number),
            ("Branch", build_info.build_branch),
            ("Commit", build_info.commit_id[:8] if build_info.commit_id else None),
            ("Build link", build_info.build_link),
            ("Artifacts", build_info.artifacts_link),
            ("Test Results", build_info.test_link),
            ("Commit link", build_info.commit_link),
        ]
        for label, value in fields:
            if value:
                lines.append(f"{self.MAGENTA}- {label}: {value}{self.RESET}")
        return lines

    def _metrics_lines(self, summary: RunSummary) -> List[str]:
        lines = [
            f"{self.MAGENTA}\nAdditional Metrics:{self.RESET}",
            f"{self.MAGENTA}- Average passed test time: {summary.average_time:.2f}s{self.RESET}",
        ]
        if summary.slowest_test > 0:
            lines.append(
                f"{self.MAGENTA}- Slowest test took: {summary.slowest_test:.2f}s{self.RESET}"
            )
            lines.append(
                f"{self.MAGENTA}- Top {len(summary.slowest_tests)} slowest tests:{self.RESET}"
            )
            for index, slow in enumerate(summary.slowest_tests, start=1):
                lines.append(
                    f"  {index}. {slow.test_title}: {self.YELLOW}{slow.duration:.2f}s{self.RESET}"
                )
        return lines

    def _failure_lines(self, summary: RunSummary) -> List[str]:
        lines = [
            f"\n{self.RED}{RULE}{self.RESET}",
            f"{self.RED}{self.BOLD}Test Failures:{self.RESET}",
            f"{self.RED}{RULE}{self.RESET}",
        ]
        for index, failure in enumerate(summary.failures, start=1):
            lines.append(f"\n--- Failure #{index} ---")
            lines.append(f"  Test: {failure.test_title}")
            lines.append(f"  Suite: {failure.suite_title}")
            lines.append(f"  Team: {failure.owning_team}")
            lines.append(f"  {self.GREEN}Category: {failure.error_category}{self.RESET}")
            if failure.error_message:
                lines.append(f"  Error: {failure.error_message}")
            if self.show_stack_trace and failure.error_stack.strip():
                lines.append(f"  Stack Trace:\n{failure.error_stack}")
            if failure.is_timeout:
                lines.append(f"{self.YELLOW}  (This failure involved a timeout.){self.RESET}")
        lines.append(f"{self.RED}\n✗ Tests failed with exit code 1{self.RESET}")
        lines.append(f"{self.RED}{RULE}{self.RESET}")
        return lines
