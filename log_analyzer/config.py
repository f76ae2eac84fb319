"""Configuration loading from CLI args, env vars, and optional YAML file.

Precedence, highest first: CLI flags, environment variables, YAML file,
dataclass defaults.
"""

import logging
import os
from dataclasses import dataclass

import yaml

from log_analyzer.error_log import DEFAULT_ERROR_LOG
from log_analyzer.pipeline import DEFAULT_QUEUE_SIZE

logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def default_worker_count() -> int:
    """Number of logical CPUs on the host, at least 1."""
    return os.cpu_count() or 1


@dataclass(frozen=True)
class AnalyzerConfig:
    input_paths: tuple[str, ...] = ()
    json_output: bool = False
    csv_output_path: str | None = None
    worker_count: int = 1
    queue_size: int = DEFAULT_QUEUE_SIZE
    error_log_path: str | None = DEFAULT_ERROR_LOG
    log_level: str = "WARNING"


def _parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("true", "1", "yes")


def _parse_positive_int(value, name: str) -> int:
    # YAML hands us real bools and floats; int() would quietly accept both.
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ValueError(f"{name} must be an integer, got {value!r}")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValueError(f"{name} must be an integer, got {value!r}") from None
    if number < 1:
        raise ValueError(f"{name} must be >= 1, got {number}")
    return number


def _first(*values):
    """First value that is not None."""
    for value in values:
        if value is not None:
            return value
    return None


def load_yaml_config(path: str | None) -> dict:
    """Load settings from a YAML file. Returns empty dict if no path.

    A missing file falls back to defaults; malformed YAML raises ValueError.
    """
    if not path:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.warning("Config file %s not found, using defaults", path)
        return {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping")
    logger.info("Loaded YAML config from %s", path)
    return data


def load_config(cli_args, yaml_data: dict) -> AnalyzerConfig:
    """Build AnalyzerConfig from CLI args, env vars, and parsed YAML data."""
    worker_count = _parse_positive_int(
        _first(
            cli_args.workers,
            os.environ.get("WORKER_COUNT"),
            yaml_data.get("workers"),
            default_worker_count(),
        ),
        "worker count",
    )
    queue_size = _parse_positive_int(
        _first(
            cli_args.queue_size,
            os.environ.get("QUEUE_SIZE"),
            yaml_data.get("queue_size"),
            DEFAULT_QUEUE_SIZE,
        ),
        "queue size",
    )

    if cli_args.no_error_log:
        error_log_path = None
    else:
        # An empty string from env or YAML also disables the error log.
        error_log_path = _first(
            cli_args.error_log,
            os.environ.get("ERROR_LOG"),
            yaml_data.get("error_log"),
            DEFAULT_ERROR_LOG,
        ) or None

    if cli_args.verbose:
        log_level = "INFO"
    else:
        log_level = str(
            _first(os.environ.get("LOG_LEVEL"), yaml_data.get("log_level"), "WARNING")
        ).upper()
    if log_level not in LOG_LEVELS:
        raise ValueError(f"log level must be one of {', '.join(LOG_LEVELS)}, got {log_level!r}")

    return AnalyzerConfig(
        input_paths=tuple(cli_args.paths),
        json_output=cli_args.json or _parse_bool(yaml_data.get("json", False)),
        csv_output_path=_first(cli_args.csv, yaml_data.get("csv")),
        worker_count=worker_count,
        queue_size=queue_size,
        error_log_path=error_log_path,
        log_level=log_level,
    )
