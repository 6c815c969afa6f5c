"""
Command-line interface for the run summary reporter.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import click

from .ci import detect_build_info
from .config import ConfigurationError, load_config, validate_config
from .controller import RunController
from .exceptions import EventParseError, PersistenceError, RunSummaryError
from .events import replay as replay_events
from .history import compare_runs, load_last_run
from .reporting import ConsoleReporter, JSONReporter, JUnitReporter

logger = logging.getLogger(__name__)


@click.group()
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    default="INFO",
    help="Logging level",
)
def main(log_level: str) -> None:
    """
    Run Summary - aggregate test attempts into a run-level summary.

    Examples:

      # Summarise a recorded event log and fail the build on errors
      run-summary replay events.jsonl --config reporter.yaml

      # JUnit output for CI dashboards
      run-summary replay events.jsonl --report-format junit --output results.xml

      # Compare the failing tests of two runs
      run-summary compare previous/.last-run.json test-results/.last-run.json
    """
    logging.basicConfig(
        level=getattr(logging, log_level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )


@main.command()
@click.argument("events_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--config",
    type=click.Path(exists=True),
    help="Path to configuration file (YAML)",
)
@click.option(
    "--output-dir",
    type=click.Path(file_okay=False),
    help="Directory for JSON artifacts (overrides config)",
)
@click.option(
    "--report-format",
    type=click.Choice(["console", "junit", "json"]),
    default="console",
    help="Report format",
)
@click.option(
    "--output",
    type=click.Path(),
    help="Output file for report (default: stdout)",
)
def replay(
    events_file: str,
    config: Optional[str],
    output_dir: Optional[str],
    report_format: str,
    output: Optional[str],
) -> None:
    """Replay a JSON-lines event log and exit with the run's exit code."""
    try:
        reporter_config = load_config(config)
        if output_dir:
            reporter_config.output_dir = output_dir

        errors = validate_config(reporter_config)
        if errors:
            click.echo("Configuration errors:", err=True)
            for error in errors:
                click.echo(f"  - {error}", err=True)
            sys.exit(1)

        controller = RunController(reporter_config)
        with open(events_file, "r", encoding="utf-8") as f:
            result = replay_events(f, controller, default_build_info=detect_build_info())

        if result.no_tests:
            click.echo("No tests found", err=True)
            sys.exit(result.exit_code)

        if report_format == "junit":
            reporter = JUnitReporter()
        elif report_format == "json":
            reporter = JSONReporter()
        else:
            reporter = ConsoleReporter(show_stack_trace=reporter_config.show_stack_trace)

        report = reporter.generate(result.summary)

        if output:
            output_path = Path(output)
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(report, encoding="utf-8")
            click.echo(f"Report written to: {output}")
            # Also print summary to console
            if report_format != "console":
                console_reporter = ConsoleReporter(show_stack_trace=reporter_config.show_stack_trace)
                click.echo(console_reporter.generate(result.summary))
        else:
            click.echo(report)

        if result.non_test_errors:
            click.echo("\nSetup or Teardown Errors:", err=True)
            for index, error in enumerate(result.non_test_errors, start=1):
                click.echo(f"Error #{index}: {error.message}", err=True)

        sys.exit(result.exit_code)

    except ConfigurationError as e:
        logger.error("Configuration error: %s", e)
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)
    except EventParseError as e:
        logger.error("Invalid event log: %s", e)
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    except RunSummaryError as e:
        logger.error("Run error: %s", e)
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    except FileNotFoundError as e:
        logger.error("File not found: %s", e)
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@main.command()
@click.argument("previous", type=click.Path())
@click.argument("current", type=click.Path(exists=True))
def compare(previous: str, current: str) -> None:
    """Compare failing tests of two .last-run.json files; exit 1 on new failures."""
    try:
        previous_run = load_last_run(previous)
        current_run = load_last_run(current)
    except PersistenceError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if current_run is None:
        click.echo(f"Error: no run status found at {current}", err=True)
        sys.exit(1)
    if previous_run is None:
        click.echo("No previous run status found; treating all current failures as new.")

    comparison = compare_runs(previous_run, current_run)
    click.echo(f"Current run: {current_run.status}")
    for label, ids in (
        ("New failures", comparison.new_failures),
        ("Fixed", comparison.fixed_tests),
        ("Still failing", comparison.still_failing),
    ):
        click.echo(f"{label}: {len(ids)}")
        for test_id in ids:
            click.echo(f"  - {test_id}")

    sys.exit(1 if comparison.has_regressions else 0)


if __name__ == "__main__":
    main()
