from __future__ import annotations

import logging
from collections.abc import Callable

from PySide6.QtCore import QObject, QThread, Qt, Signal

from ..core.process_service import ProcessService, ProcessStartError, parse_command_line
from ..workers.process_worker import ProcessWorker

logger = logging.getLogger(__name__)

THREAD_SHUTDOWN_TIMEOUT_MS = 3000


class ProcessSupervisor(QObject):
    """Starts yt-dlp on a worker thread and re-emits its events on the GUI thread."""

    started = Signal()
    stdout = Signal(str, bool)
    stderr = Signal(str, bool)
    completed = Signal(str)
    error = Signal(str)

    def __init__(
        self,
        service: ProcessService | None = None,
        *,
        executable: list[str] | None = None,
        start_worker: Callable[[ProcessWorker], None] | None = None,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._service = service or ProcessService()
        self._executable = list(executable) if executable else None
        self._start_worker = start_worker or self._start_on_thread
        self._thread: QThread | None = None
        self._worker: ProcessWorker | None = None

    def is_running(self) -> bool:
        return self._worker is not None

    def start_process(self, command_line: str) -> str:
        if self._worker is not None:
            raise ProcessStartError("A yt-dlp process is already running")
        arguments = parse_command_line(command_line)
        worker = ProcessWorker(self._service, arguments, executable=self._executable)
        worker.started.connect(self._on_worker_started, Qt.ConnectionType.QueuedConnection)
        worker.stdoutReceived.connect(self._on_worker_stdout, Qt.ConnectionType.QueuedConnection)
        worker.stderrReceived.connect(self._on_worker_stderr, Qt.ConnectionType.QueuedConnection)
        worker.completed.connect(self._on_worker_completed, Qt.ConnectionType.QueuedConnection)
        worker.errorRaised.connect(self._on_worker_error, Qt.ConnectionType.QueuedConnection)
        worker.finished.connect(self._on_worker_finished, Qt.ConnectionType.QueuedConnection)
        self._worker = worker
        logger.info("Starting yt-dlp with %d argument(s)", len(arguments))
        self._start_worker(worker)
        return "yt-dlp process launched"

    def _start_on_thread(self, worker: ProcessWorker) -> None:
        thread = QThread(self)
        worker.moveToThread(thread)
        thread.started.connect(worker.run)
        worker.finished.connect(thread.quit)
        worker.finished.connect(worker.deleteLater)
        thread.finished.connect(thread.deleteLater)
        thread.finished.connect(self._on_thread_finished, Qt.ConnectionType.QueuedConnection)
        self._thread = thread
        thread.start()

    def _is_current(self) -> bool:
        sender = self.sender()
        return sender is None or sender is self._worker

    def _on_worker_started(self) -> None:
        if self._is_current():
            self.started.emit()

    def _on_worker_stdout(self, content: str, overwrite: bool) -> None:
        if self._is_current():
            self.stdout.emit(content, overwrite)

    def _on_worker_stderr(self, content: str, overwrite: bool) -> None:
        if self._is_current():
            self.stderr.emit(content, overwrite)

    def _on_worker_completed(self, status: str) -> None:
        if self._is_current():
            self.completed.emit(status)

    def _on_worker_error(self, message: str) -> None:
        if self._is_current():
            self.error.emit(message)

    def _on_worker_finished(self) -> None:
        if self._is_current():
            self._worker = None

    def _on_thread_finished(self) -> None:
        self._thread = None

    def shutdown(self, *, timeout_ms: int = THREAD_SHUTDOWN_TIMEOUT_MS) -> bool:
        worker = self._worker
        thread = self._thread
        self._worker = None
        if worker is not None:
            worker.stop()
        if thread is None:
            return True
        try:
            if not thread.isRunning():
                return True
            thread.quit()
            return bool(thread.wait(max(0, int(timeout_ms))))
        except RuntimeError:
            return True
