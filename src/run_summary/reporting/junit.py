"""
JUnit XML reporter for run summaries.
"""

import xml.etree.ElementTree as ET
from typing import Dict, Optional, Tuple

from ..models import RunSummary, TestFailure
from .base import ReportGenerator


class JUnitReporter(ReportGenerator):
    """Generate JUnit XML format for CI/CD integration."""

    def generate(self, summary: RunSummary) -> str:
        """Generate JUnit XML report."""
        # Keyed like the record store: file, suite and title
        failures: Dict[Tuple[Optional[str], str, str], TestFailure] = {
            (f.test_file, f.suite_title, f.test_title): f for f in summary.failures
        }

        testsuite = ET.Element("testsuite")
        testsuite.set("name", "Test Run")
        testsuite.set("tests", str(summary.test_count))
        testsuite.set("failures", str(summary.failed_count))
        testsuite.set("errors", "0")
        testsuite.set("skipped", str(summary.skipped_count))
        testsuite.set("time", f"{sum(t.duration or 0.0 for t in summary.tests):.3f}")

        for test in summary.tests:
            testcase = ET.SubElement(testsuite, "testcase")
            testcase.set("name", test.test_title)
            testcase.set("classname", test.suite_title)
            testcase.set("time", f"{test.duration or 0.0:.3f}")
            if test.test_file:
                testcase.set("file", test.test_file)

            failure = failures.get((test.test_file, test.suite_title, test.test_title))
            if failure is not None:
                element = ET.SubElement(testcase, "failure")
                element.set("message", failure.error_message)
                element.set("type", failure.error_category)
                element.text = failure.error_stack
            elif test.outcome == "skipped":
                ET.SubElement(testcase, "skipped")
            elif test.outcome == "flaky":
                properties = ET.SubElement(testcase, "properties")
                prop = ET.SubElement(properties, "property")
                prop.set("name", "flaky")
                prop.set("value", str(test.retries))

        ET.indent(testsuite, space="  ")
        return ET.tostring(testsuite, encoding="unicode", xml_declaration=True)
