"""
Configuration management for the run summary reporter.
"""

import logging
import os
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import yaml

from .teams import DEFAULT_TEAMS

logger = logging.getLogger(__name__)

# Module-level lock for thread-safe config loading
_config_lock = threading.Lock()

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}

_NUMERIC_FIELDS = {
    "slow_test_threshold": float,
    "max_slow_tests_to_show": int,
    "timeout_warning_threshold": float,
    "fix_timeout_seconds": int,
}
_BOOL_FIELDS = ("show_stack_trace", "generate_fix")


class ConfigurationError(Exception):
    """Raised when configuration is invalid or cannot be loaded."""

    pass


@dataclass
class ReporterConfig:
    """Main configuration for the run summary reporter."""

    # Thresholds (seconds); the two warning thresholds are informational
    slow_test_threshold: float = 5.0
    max_slow_tests_to_show: int = 3
    timeout_warning_threshold: float = 30.0

    # Output
    show_stack_trace: bool = True
    output_dir: str = "./test-results"

    # Team ownership
    teams: List[str] = field(default_factory=lambda: list(DEFAULT_TEAMS))
    fallback_team: Optional[str] = None

    # Fix suggestions
    generate_fix: bool = False
    fix_api_url: str = "https://api.mistral.ai/v1/chat/completions"
    fix_model: str = "mistral-large-latest"
    fix_api_key: Optional[str] = None
    fix_timeout_seconds: int = 60

    def __post_init__(self) -> None:
        """Normalise values coming from YAML."""
        for name, kind in _NUMERIC_FIELDS.items():
            setattr(self, name, _coerce_number(name, getattr(self, name), kind))
        for name in _BOOL_FIELDS:
            setattr(self, name, _coerce_bool(name, getattr(self, name)))
        if self.teams is None:
            self.teams = list(DEFAULT_TEAMS)
        else:
            self.teams = [str(t) for t in self.teams]
        if self.fallback_team == "":
            self.fallback_team = None


def _coerce_number(name: str, value: Any, kind: type) -> Any:
    """Convert a YAML scalar to int or float; raises ValueError on anything else."""
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise ValueError(f"{name} must be a number, got: {value!r}")
    try:
        number = float(value)
    except ValueError:
        raise ValueError(f"{name} must be a number, got: {value!r}")
    if kind is int:
        if not number.is_integer():
            raise ValueError(f"{name} must be an integer, got: {value!r}")
        return int(number)
    return number


def _coerce_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in _TRUE_VALUES | _FALSE_VALUES:
        return value.strip().lower() in _TRUE_VALUES
    raise ValueError(f"{name} must be a boolean (true/false), got: {value!r}")


def _parse_env_int(var_name: str) -> Optional[int]:
    """
    Safely parse an integer from an environment variable.

    Args:
        var_name: Name of the environment variable

    Returns:
        Parsed integer value, or None if the variable is not set

    Raises:
        ConfigurationError: If the value cannot be parsed as an integer
    """
    value = os.environ.get(var_name)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError(
            f"Environment variable {var_name} must be a valid integer, got: '{value}'"
        )


def _parse_env_float(var_name: str) -> Optional[float]:
    value = os.environ.get(var_name)
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        raise ConfigurationError(
            f"Environment variable {var_name} must be a number, got: '{value}'"
        )


def _parse_env_bool(var_name: str) -> Optional[bool]:
    value = os.environ.get(var_name)
    if value is None:
        return None
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ConfigurationError(
        f"Environment variable {var_name} must be a boolean (true/false), got: '{value}'"
    )


def load_config(config_file: Optional[str] = None) -> ReporterConfig:
    """
    Load configuration from file and environment variables.

    Configuration precedence (highest to lowest):
    1. Environment variables
    2. Configuration file
    3. Default values

    Args:
        config_file: Path to YAML configuration file (optional)

    Returns:
        ReporterConfig object with merged configuration

    Raises:
        FileNotFoundError: If config_file is specified but doesn't exist
        ConfigurationError: If config file has invalid YAML or env vars are invalid
    """
    with _config_lock:
        config_data: Dict[str, Any] = {}

        if config_file:
            logger.info("Loading configuration from %s", config_file)
            try:
                with open(config_file, "r", encoding="utf-8") as f:
                    file_config = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Invalid YAML in config file '{config_file}': {e}")
            except FileNotFoundError:
                raise FileNotFoundError(f"Configuration file not found: {config_file}")
            except PermissionError:
                raise ConfigurationError(f"Permission denied reading config file '{config_file}'")
            except OSError as e:
                raise ConfigurationError(f"Unable to read config file '{config_file}': {e}")
            if not isinstance(file_config, dict):
                raise ConfigurationError(
                    f"Config file '{config_file}' must contain a mapping at the top level"
                )
            config_data.update(file_config)

        env_overrides = _load_from_env()
        config_data.update(env_overrides)
        if env_overrides:
            # Keys only; values may include the API key
            logger.debug("Applied environment variable overrides: %s", list(env_overrides.keys()))

        try:
            return ReporterConfig(**config_data)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid configuration: {e}")


def _load_from_env() -> Dict[str, Any]:
    """
    Load configuration from environment variables.

    Supported environment variables:
    - RUN_SUMMARY_OUTPUT_DIR: Directory for JSON artifacts
    - RUN_SUMMARY_MAX_SLOW_TESTS: Number of slowest tests to report
    - RUN_SUMMARY_SLOW_TEST_THRESHOLD: Slow test threshold in seconds
    - RUN_SUMMARY_SHOW_STACK_TRACE: Show stack traces (true/false)
    - RUN_SUMMARY_GENERATE_FIX: Enable fix suggestions (true/false)
    - FALLBACK_TEAM: Team used when a test names no known team
    - MISTRAL_API_KEY: API key for fix suggestions

    Returns:
        Dictionary of configuration values from environment

    Raises:
        ConfigurationError: If environment variable values are invalid
    """
    env_config: Dict[str, Any] = {}

    if "RUN_SUMMARY_OUTPUT_DIR" in os.environ:
        env_config["output_dir"] = os.environ["RUN_SUMMARY_OUTPUT_DIR"]

    max_slow = _parse_env_int("RUN_SUMMARY_MAX_SLOW_TESTS")
    if max_slow is not None:
        env_config["max_slow_tests_to_show"] = max_slow

    slow_threshold = _parse_env_float("RUN_SUMMARY_SLOW_TEST_THRESHOLD")
    if slow_threshold is not None:
        env_config["slow_test_threshold"] = slow_threshold

    show_stack = _parse_env_bool("RUN_SUMMARY_SHOW_STACK_TRACE")
    if show_stack is not None:
        env_config["show_stack_trace"] = show_stack

    generate_fix = _parse_env_bool("RUN_SUMMARY_GENERATE_FIX")
    if generate_fix is not None:
        env_config["generate_fix"] = generate_fix

    if os.environ.get("FALLBACK_TEAM"):
        env_config["fallback_team"] = os.environ["FALLBACK_TEAM"]

    if os.environ.get("MISTRAL_API_KEY"):
        env_config["fix_api_key"] = os.environ["MISTRAL_API_KEY"]

    return env_config


def validate_config(config: ReporterConfig) -> List[str]:
    """
    Validate configuration and return list of errors.

    Args:
        config: ReporterConfig to validate

    Returns:
        List of error messages (empty if valid)
    """
    errors: List[str] = []

    if config.slow_test_threshold <= 0:
        errors.append(f"slow_test_threshold must be positive: {config.slow_test_threshold}")

    if config.timeout_warning_threshold <= 0:
        errors.append(
            f"timeout_warning_threshold must be positive: {config.timeout_warning_threshold}"
        )

    if config.max_slow_tests_to_show < 0:
        errors.append(
            f"max_slow_tests_to_show must not be negative: {config.max_slow_tests_to_show}"
        )

    if not config.output_dir:
        errors.append("output_dir is required")

    if not config.teams:
        errors.append("teams must list at least one team name")

    if config.fallback_team and config.fallback_team not in config.teams:
        # Ignored at resolution time rather than rejected
        logger.warning("fallback_team %s is not a known team and will be ignored", config.fallback_team)

    if config.generate_fix:
        if not (config.fix_api_url.startswith("http://") or config.fix_api_url.startswith("https://")):
            errors.append(f"fix_api_url must start with http:// or https://: {config.fix_api_url}")
        if config.fix_timeout_seconds <= 0:
            errors.append(f"fix_timeout_seconds must be positive: {config.fix_timeout_seconds}")

    return errors
