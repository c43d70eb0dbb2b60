from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from ..core.log_buffer import LogBuffer
from ..core.models import JobOutcome, LogLine

logger = logging.getLogger(__name__)

STARTED_MESSAGE = "yt-dlp process started..."
SUCCESS_MESSAGE = "yt-dlp process completed successfully."
FAILURE_MESSAGE = "yt-dlp process failed."


class ProcessEventConsumer:
    """Routes supervisor events into a LogBuffer until closed.

    The channel is any object exposing ``started``, ``stdout``, ``stderr``,
    ``completed`` and ``error`` signals. After ``close()`` nothing reaches the
    buffer, including events that were already queued.
    """

    def __init__(
        self,
        log: LogBuffer,
        *,
        on_changed: Callable[[], None] | None = None,
        on_terminal: Callable[[str], None] | None = None,
    ) -> None:
        self._log = log
        self._on_changed = on_changed
        self._on_terminal = on_terminal
        self._connections: list[tuple[Any, Callable[..., None]]] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def subscribe(self, channel: Any) -> None:
        if self._closed:
            raise RuntimeError("Consumer is closed")
        routes = (
            (channel.started, self._on_started),
            (channel.stdout, self._on_stdout),
            (channel.stderr, self._on_stderr),
            (channel.completed, self._on_completed),
            (channel.error, self._on_error),
        )
        for signal, slot in routes:
            signal.connect(slot)
            self._connections.append((signal, slot))

    def close(self) -> None:
        self._closed = True
        connections, self._connections = self._connections, []
        for signal, slot in connections:
            try:
                signal.disconnect(slot)
            except (RuntimeError, TypeError):
                # Sender already destroyed.
                continue

    def __enter__(self) -> ProcessEventConsumer:
        return self

    def __exit__(self, *_exc_info: object) -> None:
        self.close()

    def _changed(self) -> None:
        if self._on_changed is not None:
            self._on_changed()

    def _terminal(self, outcome: str) -> None:
        if self._on_terminal is not None:
            self._on_terminal(outcome)

    def _on_started(self) -> None:
        if self._closed:
            return
        self._log.append(LogLine.info(STARTED_MESSAGE))
        self._changed()

    def _on_stdout(self, content: str, overwrite: bool) -> None:
        if self._closed:
            return
        self._log.coalesce_or_append(LogLine.raw(content), bool(overwrite))
        self._changed()

    def _on_stderr(self, content: str, overwrite: bool) -> None:
        if self._closed:
            return
        self._log.coalesce_or_append(LogLine.error(content), bool(overwrite))
        self._changed()

    def _on_completed(self, status: str) -> None:
        if self._closed:
            return
        succeeded = str(status or "").strip().lower() == "success"
        if succeeded:
            self._log.append(LogLine.success(SUCCESS_MESSAGE))
        else:
            self._log.append(LogLine.error(FAILURE_MESSAGE))
        self._changed()
        self._terminal(JobOutcome.SUCCESS.value if succeeded else JobOutcome.FAILURE.value)

    def _on_error(self, message: str) -> None:
        if self._closed:
            return
        logger.warning("yt-dlp reported an error: %s", message)
        self._log.append(LogLine.error(str(message or "Unknown error")))
        self._changed()
        self._terminal(JobOutcome.FAILURE.value)
