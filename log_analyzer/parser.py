"""Access-log line parser — frozen dataclasses + compiled regexes."""

import re
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

MIN_FIELDS = 5
LATENCY_SUFFIX = "ms"

# RFC 3339: date, "T", time, optional fraction, "Z" or a numeric offset.
TIMESTAMP_PATTERN = re.compile(
    r"^(\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})(?:\.(\d+))?(Z|[+-]\d{2}:\d{2})$",
    re.ASCII,
)
STATUS_PATTERN = re.compile(r"^[+-]?\d+$", re.ASCII)
LATENCY_PATTERN = re.compile(r"^\d+$", re.ASCII)

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S"

# Status and latency must fit a signed 64-bit integer.
MAX_INT = 2**63 - 1


class FailureReason(Enum):
    INSUFFICIENT_FIELDS = "insufficient_fields"
    INVALID_TIMESTAMP = "invalid_timestamp"
    INVALID_STATUS = "invalid_status"
    INVALID_LATENCY = "invalid_latency"
    PARSER_ERROR = "parser_error"


@dataclass(frozen=True)
class LogEntry:
    timestamp: datetime
    level: str
    status: int
    path: str
    latency_ms: int


@dataclass(frozen=True)
class ParseFailure:
    raw: str
    reason: FailureReason
    detail: str = ""


def parse_timestamp(value: str) -> datetime:
    """Parse an RFC 3339 timestamp into an aware datetime.

    Raises ValueError with the underlying reason if the value is malformed
    or names an impossible date/time.
    """
    match = TIMESTAMP_PATTERN.match(value)
    if not match:
        raise ValueError(f"not an RFC 3339 timestamp: {value!r}")

    base, fraction, offset = match.groups()
    text = base
    fmt = TIMESTAMP_FORMAT
    if fraction:
        # %f takes at most microseconds
        text += "." + fraction[:6]
        fmt += ".%f"
    text += "+00:00" if offset == "Z" else offset
    fmt += "%z"
    return datetime.strptime(text, fmt)


def _to_int(value: str) -> int:
    """int() bounded to the signed 64-bit range. Raises ValueError outside it."""
    number = int(value)
    if not -MAX_INT - 1 <= number <= MAX_INT:
        raise ValueError(f"value out of range: {value[:20]}...")
    return number


def is_blank(line: str) -> bool:
    """True for empty or whitespace-only lines, e.g. after a trailing newline."""
    return not line.strip()


def parse_line(line: str) -> LogEntry | ParseFailure:
    """Parse one raw line into a LogEntry, or a ParseFailure saying why not.

    Never raises; the same input always yields an equal result.
    """
    fields = line.split()
    if len(fields) < MIN_FIELDS:
        return ParseFailure(
            raw=line,
            reason=FailureReason.INSUFFICIENT_FIELDS,
            detail=f"expected at least {MIN_FIELDS} fields, got {len(fields)}",
        )

    ts_field, level, status_field, path, latency_field = fields[:MIN_FIELDS]

    try:
        timestamp = parse_timestamp(ts_field)
    except ValueError as exc:
        return ParseFailure(raw=line, reason=FailureReason.INVALID_TIMESTAMP, detail=str(exc))

    if not STATUS_PATTERN.match(status_field):
        return ParseFailure(
            raw=line,
            reason=FailureReason.INVALID_STATUS,
            detail=f"status is not an integer: {status_field!r}",
        )
    try:
        status = _to_int(status_field)
    except ValueError as exc:
        # out of range, or more digits than int() will convert
        return ParseFailure(raw=line, reason=FailureReason.INVALID_STATUS, detail=str(exc))

    if not latency_field.endswith(LATENCY_SUFFIX):
        return ParseFailure(
            raw=line,
            reason=FailureReason.INVALID_LATENCY,
            detail=f"latency has no {LATENCY_SUFFIX!r} suffix: {latency_field!r}",
        )
    latency_str = latency_field[: -len(LATENCY_SUFFIX)]
    if not LATENCY_PATTERN.match(latency_str):
        return ParseFailure(
            raw=line,
            reason=FailureReason.INVALID_LATENCY,
            detail=f"latency is not a non-negative integer: {latency_field!r}",
        )
    try:
        latency_ms = _to_int(latency_str)
    except ValueError as exc:
        return ParseFailure(raw=line, reason=FailureReason.INVALID_LATENCY, detail=str(exc))

    return LogEntry(
        timestamp=timestamp,
        level=level,
        status=status,
        path=path,
        latency_ms=latency_ms,
    )
