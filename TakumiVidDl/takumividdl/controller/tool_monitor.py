from __future__ import annotations

import logging
from collections.abc import Callable

from PySide6.QtCore import QObject, QThread, Qt, Signal

from ..core.models import ToolCheckResult, ToolStatus
from ..core.tool_service import ToolService, transcode_version_line
from ..workers.tool_check_worker import ToolCheckWorker
from .session import JobSession

logger = logging.getLogger(__name__)

DOWNLOAD_TOOL = "yt-dlp"
TRANSCODE_TOOL = "ffmpeg"
THREAD_SHUTDOWN_TIMEOUT_MS = 1500


class ToolStatusMonitor(QObject):
    statusChanged = Signal(str)

    def __init__(
        self,
        session: JobSession,
        service: ToolService,
        *,
        start_worker: Callable[[ToolCheckWorker], None] | None = None,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._session = session
        self._service = service
        self._start_worker = start_worker or self._start_on_thread
        self._generation = 0
        self._workers: list[ToolCheckWorker] = []
        self._threads: list[QThread] = []

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def is_checking(self) -> bool:
        return bool(self._session.download_tool.loading or self._session.transcode_tool.loading)

    def status(self, tool_name: str) -> ToolStatus:
        if tool_name == DOWNLOAD_TOOL:
            return self._session.download_tool
        return self._session.transcode_tool

    def _replace(self, tool_name: str, status: ToolStatus) -> None:
        if tool_name == DOWNLOAD_TOOL:
            self._session.download_tool = status
        else:
            self._session.transcode_tool = status
        self.statusChanged.emit(tool_name)

    def check_tools(self, tool_directory: str | None = None) -> int:
        directory = self._session.settings.tool_directory if tool_directory is None else tool_directory
        directory = str(directory or "").strip()
        self._generation += 1
        generation = self._generation
        for worker in list(self._workers):
            worker.stop()
        self._replace(DOWNLOAD_TOOL, ToolStatus.pending())
        self._replace(TRANSCODE_TOOL, ToolStatus.pending())
        logger.info("Checking tools (generation %d, ffmpeg dir %r)", generation, directory)

        checks = (
            (DOWNLOAD_TOOL, lambda stop_event: self._service.download_latest_yt_dlp(stop_event)),
            (TRANSCODE_TOOL, lambda _stop_event: self._service.check_ffmpeg_version(directory)),
        )
        for tool_name, check in checks:
            worker = ToolCheckWorker(tool_name, generation, check)
            worker.finishedSummary.connect(self._on_check_result, Qt.ConnectionType.QueuedConnection)
            worker.finished.connect(self._on_worker_finished, Qt.ConnectionType.QueuedConnection)
            self._workers.append(worker)
            self._start_worker(worker)
        return generation

    def _start_on_thread(self, worker: ToolCheckWorker) -> None:
        thread = QThread(self)
        worker.moveToThread(thread)
        thread.started.connect(worker.run)
        worker.finished.connect(thread.quit)
        worker.finished.connect(worker.deleteLater)
        thread.finished.connect(thread.deleteLater)
        thread.finished.connect(lambda: self._forget_thread(thread), Qt.ConnectionType.QueuedConnection)
        self._threads.append(thread)
        thread.start()

    def _forget_thread(self, thread: QThread) -> None:
        if thread in self._threads:
            self._threads.remove(thread)

    def _on_worker_finished(self) -> None:
        sender = self.sender()
        if sender in self._workers:
            self._workers.remove(sender)

    def _on_check_result(self, result: ToolCheckResult) -> None:
        if not isinstance(result, ToolCheckResult):
            return
        if result.generation != self._generation:
            logger.debug("Dropping stale %s check (generation %d)", result.tool_name, result.generation)
            return
        if result.error:
            logger.warning("%s check failed: %s", result.tool_name, result.error)
            self._replace(result.tool_name, ToolStatus.failed(result.error))
            return
        if result.tool_name == DOWNLOAD_TOOL:
            status = ToolStatus.succeeded(result.output, result.output)
        else:
            status = ToolStatus.succeeded(transcode_version_line(result.output), result.output)
        self._replace(result.tool_name, status)

    def shutdown(self, *, timeout_ms: int = THREAD_SHUTDOWN_TIMEOUT_MS) -> None:
        self._generation += 1
        for worker in list(self._workers):
            worker.stop()
        for thread in list(self._threads):
            try:
                if thread.isRunning():
                    thread.quit()
                    thread.wait(max(0, int(timeout_ms)))
            except RuntimeError:
                continue
        self._threads.clear()
        self._workers.clear()
