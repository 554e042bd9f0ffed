"""Selection of the macro commands that every worker must apply itself."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Iterator

_WORKER_PREFIXES = (
    "/Mode",
    "/Source",
    "/Reaction",
    "/Beam",
    "/Excitation",
    "/DeorientationEffect",
)


def worker_commands(lines: Iterable[str]) -> Iterator[str]:
    """Yield, in order, the lines that mention a worker command directory."""
    for line in lines:
        line = line.rstrip("\r\n")
        if any(prefix in line for prefix in _WORKER_PREFIXES):
            yield line


def read_worker_commands(path) -> list[str]:
    """Worker commands of a macro file; none when no file is given or readable."""
    if not path:
        return []
    try:
        text = Path(path).read_text()
    except OSError:
        return []
    return list(worker_commands(text.splitlines()))