"""Tests for log_analyzer/stats.py"""

import io
import itertools
import json
from collections import Counter

from log_analyzer.stats import Stats


def _ingest_all(entries) -> Stats:
    stats = Stats()
    for entry in entries:
        stats.ingest(entry)
    return stats


def _scenario_entries(make_entry):
    return [
        make_entry(level="INFO", status=200, path="/ping", latency_ms=10),
        make_entry(level="ERROR", status=500, path="/api", latency_ms=300),
        make_entry(level="ERROR", status=500, path="/api", latency_ms=100),
    ]


class TestIngest:
    def test_empty(self):
        stats = Stats()
        assert stats.total_lines == 0
        assert stats.error_counts == {}
        assert stats.latency_sum == 0
        assert stats.latency_max == 0

    def test_mixed_levels(self, make_entry):
        stats = _ingest_all(_scenario_entries(make_entry))
        assert stats.total_lines == 3
        assert stats.error_counts == {(500, "/api"): 2}
        assert stats.latency_sum == 410
        assert stats.latency_max == 300

    def test_only_exact_error_level_counted(self, make_entry):
        stats = _ingest_all([
            make_entry(level="error", status=500, path="/api"),
            make_entry(level="WARN", status=500, path="/api"),
            make_entry(level="ERROR ", status=500, path="/api"),
        ])
        assert stats.error_counts == {}
        assert stats.total_lines == 3

    def test_error_counts_is_counter(self, make_entry):
        stats = _ingest_all([make_entry(level="ERROR", status=500, path="/api")] * 3)
        assert isinstance(stats.error_counts, Counter)
        assert stats.error_counts.most_common(1) == [((500, "/api"), 3)]
        assert stats.error_counts[(404, "/missing")] == 0

    def test_error_key_is_status_and_path(self, make_entry):
        stats = _ingest_all([
            make_entry(level="ERROR", status=500, path="/a"),
            make_entry(level="ERROR", status=502, path="/a"),
            make_entry(level="ERROR", status=500, path="/b"),
            make_entry(level="ERROR", status=500, path="/a"),
        ])
        assert stats.error_counts == {(500, "/a"): 2, (502, "/a"): 1, (500, "/b"): 1}

    def test_error_counts_sum_to_error_entries(self, make_entry):
        entries = [
            make_entry(level=level, status=status, path=path)
            for level, status, path in itertools.product(
                ["INFO", "ERROR", "DEBUG"], [200, 500], ["/x", "/y"]
            )
        ]
        stats = _ingest_all(entries)
        errors = sum(1 for e in entries if e.level == "ERROR")
        assert sum(stats.error_counts.values()) == errors

    def test_max_never_decreases(self, make_entry):
        stats = Stats()
        for latency in [50, 400, 10, 399, 0]:
            stats.ingest(make_entry(latency_ms=latency))
            assert stats.latency_max >= latency
        assert stats.latency_max == 400

    def test_order_independent(self, make_entry):
        entries = _scenario_entries(make_entry) + [
            make_entry(level="ERROR", status=404, path="/x", latency_ms=7),
        ]
        results = set()
        for perm in itertools.permutations(entries):
            stats = _ingest_all(perm)
            results.add((
                stats.total_lines,
                tuple(sorted(stats.error_counts.items())),
                stats.latency_sum,
                stats.latency_max,
            ))
        assert len(results) == 1


class TestAverageLatency:
    def test_zero_when_empty(self):
        assert Stats().average_latency == 0

    def test_truncates(self, make_entry):
        stats = _ingest_all([make_entry(latency_ms=10), make_entry(latency_ms=15)])
        assert stats.average_latency == 12


class TestSummaryText:
    def test_full_report(self, make_entry):
        text = _ingest_all(_scenario_entries(make_entry)).summary_text()
        assert text == "\n".join([
            "Total lines processed: 3",
            "",
            "Errors:",
            "500 /api -> 2",
            "",
            "Latency:",
            "avg: 136ms",
            "max: 300ms",
            "",
            "Latency graph (each '=' is 10 ms):",
            "avg [" + "=" * 13 + "]",
            "max [" + "=" * 30 + "]",
        ])

    def test_empty_has_only_total(self):
        assert Stats().summary_text() == "Total lines processed: 0"

    def test_no_errors_section_without_errors(self, make_entry):
        text = _ingest_all([make_entry(latency_ms=5)]).summary_text()
        assert "Errors:" not in text
        assert "avg []" in text

    def test_errors_sorted(self, make_entry):
        text = _ingest_all([
            make_entry(level="ERROR", status=503, path="/b"),
            make_entry(level="ERROR", status=500, path="/z"),
            make_entry(level="ERROR", status=500, path="/a"),
        ]).summary_text()
        assert text.index("500 /a") < text.index("500 /z") < text.index("503 /b")


class TestToJson:
    def test_shape(self, make_entry):
        parsed = json.loads(_ingest_all(_scenario_entries(make_entry)).to_json())
        assert parsed == {
            "total_lines": 3,
            "errors": {"500 /api": 2},
            "latency": {"avg": 136, "max": 300},
        }

    def test_empty(self):
        parsed = json.loads(Stats().to_json())
        assert parsed == {"total_lines": 0, "errors": {}, "latency": {"avg": 0, "max": 0}}

    def test_indented(self):
        assert Stats().to_json().startswith('{\n  "total_lines"')


class TestWriteCsv:
    def _csv(self, stats) -> list[str]:
        sink = io.StringIO()
        stats.write_csv(sink)
        return sink.getvalue().split("\n")

    def test_rows(self, make_entry):
        rows = self._csv(_ingest_all(_scenario_entries(make_entry)))
        assert rows == [
            "metric,value",
            "total_lines,3",
            "error,500 /api:2",
            "latency_avg,136",
            "latency_max,300",
            "",
        ]

    def test_empty_omits_latency(self):
        assert self._csv(Stats()) == ["metric,value", "total_lines,0", ""]

    def test_one_row_per_error_key(self, make_entry):
        rows = self._csv(_ingest_all([
            make_entry(level="ERROR", status=500, path="/a"),
            make_entry(level="ERROR", status=404, path="/b"),
        ]))
        errors = [r for r in rows if r.startswith("error,")]
        assert sorted(errors) == ["error,404 /b:1", "error,500 /a:1"]
