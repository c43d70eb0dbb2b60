from __future__ import annotations

from collections import deque
from collections.abc import Iterator

from .models import LogLine

MAX_LOG_LINES = 1000


class LogBuffer:
    """Console lines for one job, newest last, oldest dropped once full."""

    def __init__(self, capacity: int = MAX_LOG_LINES) -> None:
        if int(capacity) < 1:
            raise ValueError("capacity must be at least 1")
        self._lines: deque[LogLine] = deque(maxlen=int(capacity))

    @property
    def capacity(self) -> int:
        return int(self._lines.maxlen or 0)

    @property
    def last(self) -> LogLine | None:
        return self._lines[-1] if self._lines else None

    def append(self, line: LogLine) -> None:
        self._lines.append(line)

    def coalesce_or_append(self, line: LogLine, overwrite: bool) -> None:
        # Progress output rewrites its own row instead of growing the log.
        if overwrite and self._lines:
            self._lines[-1] = line
            return
        self._lines.append(line)

    def clear(self) -> None:
        self._lines.clear()

    def lines(self) -> list[LogLine]:
        return list(self._lines)

    def __len__(self) -> int:
        return len(self._lines)

    def __iter__(self) -> Iterator[LogLine]:
        return iter(list(self._lines))
