"""Parse-error log — appends one record per rejected line to a file."""

import logging

from log_analyzer.parser import ParseFailure

logger = logging.getLogger(__name__)

PARSE_ERROR_LOGGER = "log_analyzer.parse_errors"
DEFAULT_ERROR_LOG = "errors.log"
ERROR_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"


class ParseErrorLog:
    """Error sink for the pipeline: writes parse failures through a dedicated logger.

    Called from every parser worker; logging handlers serialize their own
    writes, so no extra locking is needed here. Only one sink is live at a
    time: open_error_log() retires the handler of any earlier one.
    """

    def __init__(self, error_logger: logging.Logger, handler: logging.Handler | None = None):
        self._logger = error_logger
        self._handler = handler

    def __call__(self, raw: str, failure: ParseFailure) -> None:
        self._logger.error(
            "parse failed: reason=%s error=%s line=%r",
            failure.reason.value, failure.detail, raw,
        )

    def close(self) -> None:
        """Detach and close the file handler, if this sink owns one."""
        if self._handler is None:
            return
        self._logger.removeHandler(self._handler)
        self._handler.close()
        self._handler = None


def open_error_log(path: str) -> ParseErrorLog:
    """Build a ParseErrorLog appending to *path*.

    Raises OSError if the file cannot be opened.
    """
    handler = logging.FileHandler(path, mode="a", encoding="utf-8")
    handler.setFormatter(logging.Formatter(ERROR_LOG_FORMAT))
    handler.setLevel(logging.ERROR)

    error_logger = logging.getLogger(PARSE_ERROR_LOGGER)
    error_logger.setLevel(logging.ERROR)
    error_logger.propagate = False
    # The logger is process-wide; only the newest sink writes to it.
    for stale in list(error_logger.handlers):
        error_logger.removeHandler(stale)
        stale.close()
    error_logger.addHandler(handler)

    logger.info("Writing parse errors to %s", path)
    return ParseErrorLog(error_logger, handler)
