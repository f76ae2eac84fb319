"""log-analyzer — summarize access-log files: line totals, errors, latency."""

import logging
import os
import sys
from argparse import ArgumentParser

from log_analyzer.config import AnalyzerConfig, load_config, load_yaml_config
from log_analyzer.error_log import open_error_log
from log_analyzer.pipeline import Pipeline
from log_analyzer.reader import expand_paths, read_multiple
from log_analyzer.stats import Stats

logger = logging.getLogger("log_analyzer.cli")

EXIT_INPUT_ERROR = 1
EXIT_USAGE_ERROR = 2
EXIT_EXPORT_ERROR = 3


def build_parser() -> ArgumentParser:
    """Build the CLI argument parser."""
    parser = ArgumentParser(
        prog="log-analyzer",
        description="Summarize access-log files: line totals, errors, latency.",
    )
    parser.add_argument(
        "paths",
        nargs="+",
        help="Log file(s), directories, or glob pattern(s)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Also print the summary as JSON to stdout",
    )
    parser.add_argument(
        "--csv",
        metavar="FILE",
        default=None,
        help="Write the summary as CSV to FILE",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Number of parser threads (default: CPU count, or $WORKER_COUNT)",
    )
    parser.add_argument(
        "--queue-size",
        type=int,
        default=None,
        help="Capacity of each pipeline queue (default: 1000)",
    )
    parser.add_argument(
        "--error-log",
        metavar="FILE",
        default=None,
        help="Append unparseable lines to FILE (default: errors.log)",
    )
    parser.add_argument(
        "--no-error-log",
        action="store_true",
        help="Do not write an error log",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to YAML config file",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log pipeline progress to stderr",
    )
    return parser


def export(stats: Stats, config: AnalyzerConfig) -> None:
    """Print JSON and/or write CSV as requested. Raises OSError/ValueError on failure."""
    if config.json_output:
        print(stats.to_json())

    if config.csv_output_path:
        with open(config.csv_output_path, "w", encoding="utf-8", newline="") as f:
            stats.write_csv(f)
        logger.info("Wrote CSV report to %s", config.csv_output_path)


def run(config: AnalyzerConfig) -> int:
    """Read input, run the pipeline, print the summary and exports. Returns an exit code."""
    try:
        paths = expand_paths(list(config.input_paths))
        # Load everything up front so I/O errors surface before any parsing.
        lines = list(read_multiple(paths))
    except OSError as exc:
        print(f"Error: failed to read log input: {exc}", file=sys.stderr)
        return EXIT_INPUT_ERROR

    logger.info("Read %d lines from %d file(s)", len(lines), len(paths))

    error_sink = None
    if config.error_log_path:
        try:
            error_sink = open_error_log(config.error_log_path)
        except OSError as exc:
            logger.warning("Cannot open error log %s (%s); parse errors will not be recorded",
                           config.error_log_path, exc)

    try:
        pipeline = Pipeline(config.worker_count, error_sink=error_sink, queue_size=config.queue_size)
        stats = pipeline.run(lines)
    finally:
        if error_sink is not None:
            error_sink.close()

    print(stats.summary_text())

    try:
        export(stats, config)
    except BrokenPipeError:
        raise
    except (OSError, ValueError) as exc:
        print(f"Error: export failed: {exc}", file=sys.stderr)
        return EXIT_EXPORT_ERROR

    return 0


def _main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args, load_yaml_config(args.config))
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_USAGE_ERROR

    logging.basicConfig(
        level=getattr(logging, config.log_level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )
    logger.info("Config: %d worker(s), %d input path(s)",
                config.worker_count, len(config.input_paths))

    return run(config)


def main(argv=None) -> int:
    """CLI entry point, shared by `python main.py` and the log-analyzer script."""
    try:
        code = _main(argv)
        # Surface a closed stdout here rather than at interpreter exit.
        sys.stdout.flush()
        return code
    except KeyboardInterrupt:
        return 0
    except BrokenPipeError:
        # Point stdout at devnull so the final flush at exit can't fail again.
        devnull = os.open(os.devnull, os.O_WRONLY)
        os.dup2(devnull, sys.stdout.fileno())
        return 0


if __name__ == "__main__":
    sys.exit(main())
