"""
Base class for report generators.
"""

from abc import ABC, abstractmethod

from ..models import RunSummary


class ReportGenerator(ABC):
    """Base class for generating run reports."""

    @abstractmethod
    def generate(self, summary: RunSummary) -> str:
        """
        Generate a report from a run summary.

        Args:
            summary: RunSummary built at the end of the run

        Returns:
            Report as a string
        """
        pass
