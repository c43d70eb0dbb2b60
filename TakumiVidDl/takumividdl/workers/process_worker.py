from __future__ import annotations

from PySide6.QtCore import Signal

from .base_worker import BaseWorker
from ..core.process_service import ProcessService


class ProcessWorker(BaseWorker):
    """Runs one yt-dlp invocation and reports it as started/stdout/stderr/completed."""

    started = Signal()
    stdoutReceived = Signal(str, bool)
    stderrReceived = Signal(str, bool)
    completed = Signal(str)
    errorRaised = Signal(str)

    def __init__(
        self,
        service: ProcessService,
        arguments: list[str],
        *,
        executable: list[str] | None = None,
    ) -> None:
        super().__init__()
        self._service = service
        self._arguments = list(arguments)
        self._executable = list(executable) if executable else None

    def stop(self) -> None:
        super().stop()
        self._service.stop_active()

    def run(self) -> None:
        def execute() -> int:
            return self._service.run(
                self._arguments,
                self._stop_event,
                on_started=self.started.emit,
                on_stdout=self.stdoutReceived.emit,
                on_stderr=self.stderrReceived.emit,
                executable=self._executable,
            )

        def on_result(return_code: int) -> None:
            self.completed.emit("success" if int(return_code) == 0 else "failed")

        self.run_guarded(
            execute=execute,
            on_result=on_result,
            on_error=lambda exc: self.errorRaised.emit(str(exc)),
        )
