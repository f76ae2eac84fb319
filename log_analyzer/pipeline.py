"""Pipeline — parser worker pool fanning in to a single aggregator thread.

    lines -> [line queue] -> N parse workers -> [entry queue] -> aggregator -> Stats

Both queues are bounded, so a slow aggregator backs up the workers and slow
workers back up the dispatcher. Stats is only touched by the aggregator
thread and is handed back after every thread has been joined.
"""

import logging
import queue
import threading
from typing import Callable, Iterable

from log_analyzer.parser import FailureReason, LogEntry, ParseFailure, is_blank, parse_line
from log_analyzer.stats import Stats

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_SIZE = 1000

ErrorSink = Callable[[str, ParseFailure], None]

# End-of-input marker; one per worker on the line queue, one on the entry queue.
_SENTINEL = object()


class Pipeline:
    """Runs raw lines through the parser concurrently and aggregates the results.

    Each run() gets fresh queues and a fresh Stats. Once stop() is called the
    pipeline dispatches nothing further, in this run or any later one.
    """

    def __init__(
        self,
        worker_count: int,
        error_sink: ErrorSink | None = None,
        queue_size: int = DEFAULT_QUEUE_SIZE,
    ):
        if worker_count < 1:
            raise ValueError(f"worker_count must be >= 1, got {worker_count}")
        if queue_size < 1:
            raise ValueError(f"queue_size must be >= 1, got {queue_size}")

        self.worker_count = worker_count
        self.queue_size = queue_size
        self._error_sink = error_sink
        self._shutdown = threading.Event()

        self.dispatched_lines = 0
        self.failed_lines = 0
        self._dispatch_error: BaseException | None = None

    def stop(self) -> None:
        """Stop dispatching new lines. Lines already queued are still processed."""
        self._shutdown.set()

    # ------------------------------------------------------------------
    # Stage bodies
    # ------------------------------------------------------------------

    def _dispatch(self, lines: Iterable[str], line_queue: queue.Queue) -> None:
        count = 0
        try:
            for raw in lines:
                if self._shutdown.is_set():
                    logger.info("Dispatch stopped early after %d lines", count)
                    break
                line_queue.put(raw)
                count += 1
        except Exception as exc:
            # Re-raised by run() once the other stages have drained.
            self._dispatch_error = exc
        finally:
            # Always release the workers, even if the line source raised.
            for _ in range(self.worker_count):
                line_queue.put(_SENTINEL)
            self.dispatched_lines = count

    def _report(self, failure: ParseFailure) -> None:
        if self._error_sink is None:
            return
        try:
            self._error_sink(failure.raw, failure)
        except Exception:
            logger.exception("Error sink failed for line %r", failure.raw)

    def _parse(self, raw: str) -> LogEntry | ParseFailure:
        try:
            return parse_line(raw)
        except Exception as exc:
            # One bad line must not take the worker down with it.
            logger.exception("Parser raised on line %r", raw)
            return ParseFailure(raw=raw, reason=FailureReason.PARSER_ERROR, detail=repr(exc))

    def _work(self, line_queue: queue.Queue, entry_queue: queue.Queue, failures: list[int], index: int) -> None:
        failed = 0
        while True:
            raw = line_queue.get()
            if raw is _SENTINEL:
                break
            result = self._parse(raw)
            if isinstance(result, LogEntry):
                entry_queue.put(result)
            elif not is_blank(raw):
                failed += 1
                self._report(result)
        failures[index] = failed

    @staticmethod
    def _aggregate(entry_queue: queue.Queue, stats: Stats) -> None:
        while True:
            entry = entry_queue.get()
            if entry is _SENTINEL:
                break
            stats.ingest(entry)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def run(self, lines: Iterable[str]) -> Stats:
        """Parse and aggregate every line, returning the final Stats.

        Blocks until the dispatcher, every worker, and the aggregator have
        exited; the returned Stats has observed every successful entry.
        """
        line_queue: queue.Queue = queue.Queue(maxsize=self.queue_size)
        entry_queue: queue.Queue = queue.Queue(maxsize=self.queue_size)
        stats = Stats()
        failures = [0] * self.worker_count
        self._dispatch_error = None

        logger.info(
            "Starting pipeline with %d worker(s), queue size %d",
            self.worker_count, self.queue_size,
        )

        aggregator = threading.Thread(
            target=self._aggregate, args=(entry_queue, stats),
            name="aggregator", daemon=True,
        )
        workers = [
            threading.Thread(
                target=self._work, args=(line_queue, entry_queue, failures, i),
                name=f"parser-{i}", daemon=True,
            )
            for i in range(self.worker_count)
        ]
        dispatcher = threading.Thread(
            target=self._dispatch, args=(lines, line_queue),
            name="dispatcher", daemon=True,
        )

        aggregator.start()
        for worker in workers:
            worker.start()
        dispatcher.start()

        dispatcher.join()
        for worker in workers:
            worker.join()
        # Every worker has exited, so nothing else will be put on the entry queue.
        entry_queue.put(_SENTINEL)
        aggregator.join()

        self.failed_lines = sum(failures)
        if self._dispatch_error is not None:
            raise self._dispatch_error

        logger.info(
            "Pipeline finished: %d dispatched, %d ingested, %d failed to parse",
            self.dispatched_lines, stats.total_lines, self.failed_lines,
        )
        return stats


def analyze(
    lines: Iterable[str],
    worker_count: int,
    error_sink: ErrorSink | None = None,
    queue_size: int = DEFAULT_QUEUE_SIZE,
) -> Stats:
    """Run a one-off Pipeline over *lines* and return its Stats."""
    return Pipeline(worker_count, error_sink=error_sink, queue_size=queue_size).run(lines)
