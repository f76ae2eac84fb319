"""Statistics — line totals, error counts by status+path, latency avg/max."""

import csv
import json
from collections import Counter
from typing import TextIO

from log_analyzer.parser import LogEntry

ERROR_LEVEL = "ERROR"
GRAPH_SCALE_MS = 10
GRAPH_MARKER = "="


def _error_key(status: int, path: str) -> str:
    return f"{status} {path}"


class Stats:
    """Running summary of ingested entries.

    Not thread-safe: a run has exactly one writer (the pipeline's aggregator
    thread) and readers only look at it after that thread has exited.
    """

    def __init__(self) -> None:
        self.total_lines: int = 0
        self.error_counts: Counter[tuple[int, str]] = Counter()
        self.latency_sum: int = 0
        self.latency_max: int = 0

    def ingest(self, entry: LogEntry) -> None:
        """Fold one parsed entry into the running totals."""
        self.total_lines += 1

        if entry.level == ERROR_LEVEL:
            key = (entry.status, entry.path)
            self.error_counts[key] += 1

        self.latency_sum += entry.latency_ms
        if entry.latency_ms > self.latency_max:
            self.latency_max = entry.latency_ms

    @property
    def average_latency(self) -> int:
        """Truncating integer average; 0 when nothing was ingested."""
        if self.total_lines == 0:
            return 0
        return self.latency_sum // self.total_lines

    def sorted_errors(self) -> list[tuple[str, int]]:
        """("<status> <path>", count) pairs ordered by status, then path."""
        return [
            (_error_key(status, path), count)
            for (status, path), count in sorted(self.error_counts.items())
        ]

    def summary_text(self) -> str:
        """Human-readable report, as printed by the CLI."""
        lines = [f"Total lines processed: {self.total_lines}"]

        if self.error_counts:
            lines.append("")
            lines.append("Errors:")
            for key, count in self.sorted_errors():
                lines.append(f"{key} -> {count}")

        if self.total_lines > 0:
            avg = self.average_latency
            lines.append("")
            lines.append("Latency:")
            lines.append(f"avg: {avg}ms")
            lines.append(f"max: {self.latency_max}ms")

            lines.append("")
            lines.append(f"Latency graph (each '{GRAPH_MARKER}' is {GRAPH_SCALE_MS} ms):")
            lines.append(f"avg [{GRAPH_MARKER * (avg // GRAPH_SCALE_MS)}]")
            lines.append(f"max [{GRAPH_MARKER * (self.latency_max // GRAPH_SCALE_MS)}]")

        return "\n".join(lines)

    def to_dict(self) -> dict:
        return {
            "total_lines": self.total_lines,
            "errors": dict(self.sorted_errors()),
            "latency": {
                "avg": self.average_latency,
                "max": self.latency_max if self.total_lines > 0 else 0,
            },
        }

    def to_json(self) -> str:
        """JSON document: total_lines, errors keyed by "<status> <path>", latency avg/max."""
        return json.dumps(self.to_dict(), indent=2)

    def write_csv(self, sink: TextIO) -> None:
        """Write the metric,value report to *sink*.

        Latency rows are only written when at least one line was ingested.
        """
        writer = csv.writer(sink, lineterminator="\n")
        writer.writerow(["metric", "value"])
        writer.writerow(["total_lines", self.total_lines])
        for key, count in self.sorted_errors():
            writer.writerow(["error", f"{key}:{count}"])
        if self.total_lines > 0:
            writer.writerow(["latency_avg", self.average_latency])
            writer.writerow(["latency_max", self.latency_max])
