"""Input reading — glob/directory expansion and whole-file line loading."""

import glob
import os
from typing import Generator


def _is_glob(raw: str) -> bool:
    return any(c in raw for c in ("*", "?", "["))


def _directory_files(dirpath: str) -> list[str]:
    """Regular files directly inside *dirpath*, sorted by name."""
    return [
        os.path.join(dirpath, name)
        for name in sorted(os.listdir(dirpath))
        if os.path.isfile(os.path.join(dirpath, name))
    ]


def expand_paths(raw_paths: list[str]) -> list[str]:
    """Expand globs and directories, deduplicate, and validate that files exist.

    Raises FileNotFoundError if a non-glob path doesn't exist.
    Raises FileNotFoundError if expansion produces zero files.
    """
    expanded = []
    seen = set()

    def add(path: str) -> None:
        if path not in seen:
            seen.add(path)
            expanded.append(path)

    for raw in raw_paths:
        if _is_glob(raw):
            for match in sorted(glob.glob(raw)):
                if os.path.isdir(match):
                    for path in _directory_files(match):
                        add(path)
                else:
                    add(match)
        elif os.path.isdir(raw):
            for path in _directory_files(raw):
                add(path)
        elif os.path.isfile(raw):
            add(raw)
        else:
            raise FileNotFoundError(f"File not found: {raw}")

    if not expanded:
        raise FileNotFoundError("No log files found matching the given paths")

    return expanded


def read_lines(filepath: str) -> list[str]:
    """Load a whole file and split it on newlines.

    A trailing newline leaves an empty last element; the parser rejects it
    as blank. Undecodable bytes are replaced rather than raising.
    """
    with open(filepath, "r", encoding="utf-8", errors="replace", newline="") as f:
        data = f.read()
    return data.split("\n")


def read_multiple(paths: list[str]) -> Generator[str, None, None]:
    """Yield lines from multiple files, sequentially."""
    for path in paths:
        yield from read_lines(path)
