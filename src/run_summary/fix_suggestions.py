"""
Optional AI-generated fix suggestions for test failures.

This stage runs after the run's exit code is decided; nothing here may
change it.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Set, Union

import requests
from requests.adapters import HTTPAdapter
from requests.exceptions import RequestException
from urllib3.util.retry import Retry

from .exceptions import FixSuggestionError
from .models import TestFailure

logger = logging.getLogger(__name__)

SUGGESTIONS_DIR = "fix-suggestions"
CONTEXT_LINES = 20

SYSTEM_PROMPT = (
    "You are an expert in end-to-end test automation. Given a failing test, its "
    "error and its source code, explain the most likely cause and propose a "
    "corrected version of the failing code."
)


@dataclass
class FixSuggestionResult:
    """Files written for one fix suggestion."""

    prompt_path: Path
    fix_path: Path


def _slug(text: str) -> str:
    return re.sub(r"[^A-Za-z0-9]+", "-", text).strip("-").lower()[:80] or "test"


def build_prompt(failure: TestFailure, source: str) -> str:
    """Build the user prompt for a failure, including nearby source lines."""
    lines = source.splitlines()
    line = failure.location.line if failure.location and failure.location.line else None
    if line:
        start = max(line - 1 - CONTEXT_LINES, 0)
        end = min(line + CONTEXT_LINES, len(lines))
        excerpt = "\n".join(f"{n + 1:>4}: {lines[n]}" for n in range(start, end))
    else:
        excerpt = source

    return (
        f"Test: {failure.test_title}\n"
        f"Suite: {failure.suite_title}\n"
        f"File: {failure.test_file}\n"
        f"Category: {failure.error_category}\n\n"
        f"Error message:\n{failure.error_message}\n\n"
        f"Stack trace:\n{failure.error_stack or '(none)'}\n\n"
        f"Source:\n```\n{excerpt}\n```\n"
    )


class FixSuggestionGenerator:
    """Requests fix suggestions from a chat-completions API and stores them as files."""

    def __init__(
        self,
        output_dir: Union[str, Path],
        api_key: Optional[str],
        api_url: str = "https://api.mistral.ai/v1/chat/completions",
        model: str = "mistral-large-latest",
        timeout: int = 60,
        max_retries: int = 2,
        session: Optional[requests.Session] = None,
    ):
        self.output_dir = Path(output_dir) / SUGGESTIONS_DIR
        self.api_key = api_key
        self.api_url = api_url
        self.model = model
        self.timeout = timeout
        self.session = session or self._create_session(max_retries)
        self._used_names: Set[str] = set()

    @staticmethod
    def _create_session(max_retries: int) -> requests.Session:
        session = requests.Session()
        # Retry transient server errors and rate limiting on POST as well
        retry = Retry(
            total=max_retries,
            backoff_factor=1.0,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["POST"],
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry)
        session.mount("http://", adapter)
        session.mount("https://", adapter)
        return session

    def _file_name(self, failure: TestFailure) -> str:
        """Unique base name per failure: file stem, suite and title, numbered on clashes."""
        stem = Path(failure.test_file).stem if failure.test_file else ""
        base = _slug(f"{stem}-{failure.suite_title}-{failure.test_title}")
        name = base
        index = 2
        while name in self._used_names:
            name = f"{base}-{index}"
            index += 1
        self._used_names.add(name)
        return name

    def _complete(self, failure: TestFailure, prompt: str) -> str:
        try:
            response = self.session.post(
                self.api_url,
                json={
                    "model": self.model,
                    "messages": [
                        {"role": "system", "content": SYSTEM_PROMPT},
                        {"role": "user", "content": prompt},
                    ],
                },
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=self.timeout,
            )
        except RequestException as e:
            raise FixSuggestionError(failure.test_title, str(e))

        if response.status_code >= 400:
            raise FixSuggestionError(
                failure.test_title, f"HTTP {response.status_code}: {response.text}"
            )
        try:
            return response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise FixSuggestionError(failure.test_title, f"Unexpected response format: {e}")

    def generate(
        self, failure: TestFailure, source_cache: Dict[str, str]
    ) -> Optional[FixSuggestionResult]:
        """
        Generate a fix suggestion for one failure.

        Args:
            failure: The failure to analyse; must have a test_file
            source_cache: Source text keyed by file path, filled on demand

        Returns:
            FixSuggestionResult, or None when no API key is configured or the
            failure has no source file

        Raises:
            FixSuggestionError: If the API call fails
            OSError: If the source or output files cannot be accessed
            UnicodeDecodeError: If the source file is not valid UTF-8
        """
        if not self.api_key:
            logger.warning("No API key configured; skipping fix suggestion for %s", failure.test_title)
            return None
        if not failure.test_file:
            return None

        if failure.test_file not in source_cache:
            source_cache[failure.test_file] = Path(failure.test_file).read_text(encoding="utf-8")

        prompt = build_prompt(failure, source_cache[failure.test_file])
        suggestion = self._complete(failure, prompt)

        self.output_dir.mkdir(parents=True, exist_ok=True)
        slug = self._file_name(failure)
        prompt_path = self.output_dir / f"{slug}-prompt.md"
        fix_path = self.output_dir / f"{slug}-fix.md"
        prompt_path.write_text(prompt, encoding="utf-8")
        fix_path.write_text(suggestion, encoding="utf-8")
        return FixSuggestionResult(prompt_path=prompt_path, fix_path=fix_path)

    def generate_all(self, failures: Sequence[TestFailure]) -> List[FixSuggestionResult]:
        """Generate suggestions for every failure with a source file; errors are logged."""
        results: List[FixSuggestionResult] = []
        source_cache: Dict[str, str] = {}

        logger.info("Generating fix suggestions for %d failures", len(failures))
        for failure in failures:
            if not failure.test_file:
                continue
            try:
                result = self.generate(failure, source_cache)
            except (FixSuggestionError, OSError, UnicodeDecodeError) as e:
                logger.error("Error generating fix suggestion for %s: %s", failure.test_title, e)
                continue
            if result:
                logger.info("Fix suggestion for %s written to %s", failure.test_title, result.fix_path)
                results.append(result)
        return results
