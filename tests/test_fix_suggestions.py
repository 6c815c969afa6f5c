"""Tests for fix-suggestion generation."""

from unittest.mock import MagicMock

import pytest
from requests.exceptions import ConnectionError as RequestsConnectionError

from src.run_summary.exceptions import FixSuggestionError
from src.run_summary.fix_suggestions import FixSuggestionGenerator, build_prompt
from src.run_summary.models import TestFailure, TestLocation


def _failure(
    tmp_path, title="checkout works", line=3, with_file=True, suite="checkout", file_name="checkout.spec.ts"
):
    test_file = tmp_path / file_name
    test_file.parent.mkdir(parents=True, exist_ok=True)
    test_file.write_text("\n".join(f"line {i}" for i in range(1, 61)), encoding="utf-8")
    return TestFailure(
        test_title=title,
        suite_title=suite,
        owning_team="QA",
        error_message="locator.click: Timeout 30000ms exceeded",
        error_stack="at checkout.spec.ts:3",
        duration=30.0,
        is_timeout=True,
        error_category="Timeout/DelayedElement",
        test_file=str(test_file) if with_file else None,
        location=TestLocation(str(test_file), line) if with_file else None,
    )


def _response(status=200, payload=None, text=""):
    response = MagicMock(status_code=status, text=text)
    response.json.return_value = payload or {
        "choices": [{"message": {"content": "Use a longer timeout."}}]
    }
    return response


def _generator(tmp_path, session, api_key="key"):
    return FixSuggestionGenerator(tmp_path / "out", api_key=api_key, session=session)


class TestBuildPrompt:
    """Tests for build_prompt."""

    def test_includes_failure_and_excerpt(self, tmp_path):
        failure = _failure(tmp_path, line=30)
        prompt = build_prompt(failure, "\n".join(f"line {i}" for i in range(1, 61)))
        assert "checkout works" in prompt
        assert "Timeout 30000ms" in prompt
        assert "  30: line 30" in prompt
        assert "line 5\n" not in prompt
        assert "  10: line 10" in prompt

    def test_whole_source_without_line(self, tmp_path):
        failure = _failure(tmp_path)
        failure.location = None
        assert "line 60" in build_prompt(failure, "line 1\nline 60")


class TestFixSuggestionGenerator:
    """Tests for FixSuggestionGenerator."""

    def test_generate_writes_files(self, tmp_path):
        session = MagicMock()
        session.post.return_value = _response()
        result = _generator(tmp_path, session).generate(_failure(tmp_path), {})
        assert result.fix_path.read_text() == "Use a longer timeout."
        assert "checkout works" in result.prompt_path.read_text()
        assert result.fix_path.parent == tmp_path / "out" / "fix-suggestions"
        kwargs = session.post.call_args.kwargs
        assert kwargs["headers"]["Authorization"] == "Bearer key"
        assert kwargs["json"]["model"] == "mistral-large-latest"

    def test_source_cache_reused(self, tmp_path):
        session = MagicMock()
        session.post.return_value = _response()
        failure = _failure(tmp_path)
        cache = {failure.test_file: "cached source"}
        _generator(tmp_path, session).generate(failure, cache)
        prompt = session.post.call_args.kwargs["json"]["messages"][1]["content"]
        assert "cached source" in prompt

    def test_no_api_key_returns_none(self, tmp_path):
        session = MagicMock()
        assert _generator(tmp_path, session, api_key=None).generate(_failure(tmp_path), {}) is None
        session.post.assert_not_called()

    def test_no_test_file_returns_none(self, tmp_path):
        session = MagicMock()
        failure = _failure(tmp_path, with_file=False)
        assert _generator(tmp_path, session).generate(failure, {}) is None

    def test_http_error_raises(self, tmp_path):
        session = MagicMock()
        session.post.return_value = _response(status=401, text="unauthorized")
        with pytest.raises(FixSuggestionError, match="HTTP 401"):
            _generator(tmp_path, session).generate(_failure(tmp_path), {})

    def test_connection_error_raises(self, tmp_path):
        session = MagicMock()
        session.post.side_effect = RequestsConnectionError("refused")
        with pytest.raises(FixSuggestionError, match="refused"):
            _generator(tmp_path, session).generate(_failure(tmp_path), {})

    def test_unexpected_payload_raises(self, tmp_path):
        session = MagicMock()
        session.post.return_value = _response(payload={"choices": []})
        with pytest.raises(FixSuggestionError, match="Unexpected response format"):
            _generator(tmp_path, session).generate(_failure(tmp_path), {})

    def test_generate_all_continues_after_errors(self, tmp_path):
        session = MagicMock()
        session.post.side_effect = [_response(status=500, text="oops"), _response()]
        failures = [
            _failure(tmp_path, title="first"),
            _failure(tmp_path, with_file=False),
            _failure(tmp_path, title="second"),
        ]
        results = _generator(tmp_path, session).generate_all(failures)
        assert len(results) == 1
        assert results[0].fix_path.name == "checkout-spec-checkout-second-fix.md"
        assert session.post.call_count == 2

    def test_default_session_retries_transient_errors(self, tmp_path):
        generator = FixSuggestionGenerator(tmp_path, api_key="key", max_retries=3)
        retry = generator.session.get_adapter("https://api.mistral.ai").max_retries
        assert retry.total == 3
        assert 429 in retry.status_forcelist
        assert 503 in retry.status_forcelist

    def test_generate_all_skips_undecodable_source(self, tmp_path):
        session = MagicMock()
        session.post.return_value = _response()
        bad = _failure(tmp_path, title="bad", file_name="bad.spec.ts")
        (tmp_path / "bad.spec.ts").write_bytes(b"\xff\xfe\x00broken")
        good = _failure(tmp_path, title="good", file_name="good.spec.ts")

        results = _generator(tmp_path, session).generate_all([bad, good])

        assert len(results) == 1
        assert results[0].fix_path.name == "good-spec-checkout-good-fix.md"
        assert session.post.call_count == 1

    def test_same_title_failures_get_distinct_files(self, tmp_path):
        session = MagicMock()
        session.post.return_value = _response()
        failures = [
            _failure(tmp_path, suite="cart"),
            _failure(tmp_path, suite="payment"),
            _failure(tmp_path, suite="cart", file_name="other/checkout.spec.ts"),
        ]

        results = _generator(tmp_path, session).generate_all(failures)

        names = [r.fix_path.name for r in results]
        assert names == [
            "checkout-spec-cart-checkout-works-fix.md",
            "checkout-spec-payment-checkout-works-fix.md",
            "checkout-spec-cart-checkout-works-2-fix.md",
        ]
        assert len({r.prompt_path for r in results}) == 3
