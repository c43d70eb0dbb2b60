from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from PySide6.QtCore import QObject, Signal

from ..core.command_line import build_command_line
from ..core.models import JobOutcome, JobRun, JobState, LogLine
from ..core.risk import evaluate_risks
from ..core.url_input import persist_url_list
from .session import JobSession
from .stream_consumer import ProcessEventConsumer

logger = logging.getLogger(__name__)


class ExecutionOrchestrator(QObject):
    """Drives one job from confirmation to a terminal outcome.

    States move ``idle -> confirming -> running -> succeeded | failed``. The
    supervisor is anything with ``start_process(command_line)`` plus the event
    signals ``ProcessEventConsumer`` subscribes to.
    """

    stateChanged = Signal(str)
    logChanged = Signal()

    def __init__(
        self,
        session: JobSession,
        supervisor: Any,
        *,
        write_url_list: Callable[[str], str] = persist_url_list,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._session = session
        self._supervisor = supervisor
        self._write_url_list = write_url_list
        self._state = JobState.IDLE.value
        self._acknowledged = False
        self._run: JobRun | None = None
        self._consumer: ProcessEventConsumer | None = None

    @property
    def state(self) -> str:
        return self._state

    @property
    def session(self) -> JobSession:
        return self._session

    @property
    def current_run(self) -> JobRun | None:
        return self._run

    @property
    def acknowledged(self) -> bool:
        return self._acknowledged

    def is_processing(self) -> bool:
        return self._state == JobState.RUNNING.value

    def _set_state(self, state: JobState) -> None:
        if self._state == state.value:
            return
        self._state = state.value
        self.stateChanged.emit(self._state)

    def _log(self, line: LogLine) -> None:
        self._session.log.append(line)
        self.logChanged.emit()

    def risks(self) -> list[str]:
        session = self._session
        return evaluate_risks(session.download_tool, session.transcode_tool, session.settings)

    def request_start(self) -> bool:
        if self._state != JobState.IDLE.value:
            return False
        self._acknowledged = False
        self._set_state(JobState.CONFIRMING)
        return True

    def set_acknowledged(self, acknowledged: bool) -> None:
        self._acknowledged = bool(acknowledged)

    def can_confirm(self) -> bool:
        if self._state != JobState.CONFIRMING.value:
            return False
        return self._acknowledged or not self.risks()

    def cancel(self) -> bool:
        if self._state != JobState.CONFIRMING.value:
            return False
        self._acknowledged = False
        self._set_state(JobState.IDLE)
        return True

    def _close_consumer(self) -> None:
        consumer, self._consumer = self._consumer, None
        if consumer is not None:
            consumer.close()

    def _fail_setup(self, exc: BaseException) -> None:
        logger.error("Job setup failed: %s", exc)
        self._log(LogLine.error(f"Process failed: {exc}"))
        self._finish(JobOutcome.FAILURE.value)

    def confirm(self) -> bool:
        if not self.can_confirm():
            return False
        settings = self._session.settings
        log = self._session.log

        self._close_consumer()
        log.clear()
        self._run = JobRun(settings=settings)
        self._set_state(JobState.RUNNING)
        self._log(LogLine.info("Starting download process..."))

        consumer = ProcessEventConsumer(log, on_changed=self.logChanged.emit, on_terminal=self._finish)
        consumer.subscribe(self._supervisor)
        self._consumer = consumer

        self._log(LogLine.info("Writing URLs to file..."))
        try:
            batch_file = self._write_url_list(settings.urls)
        except (RuntimeError, OSError) as exc:
            self._fail_setup(exc)
            return True
        self._run.batch_file = batch_file
        self._log(LogLine.info(f"URLs file created: {batch_file}"))

        output_directory = str(settings.output_directory or "").strip()
        if output_directory:
            self._log(LogLine.info(f"Output directory: {output_directory}"))
        tool_directory = str(settings.tool_directory or "").strip()
        if tool_directory:
            self._log(LogLine.info(f"FFmpeg directory: {tool_directory}"))
        custom_options = str(settings.custom_options or "").strip()
        if settings.is_custom and custom_options:
            self._log(LogLine.info(f"Custom options: {custom_options}"))

        command_line = build_command_line(settings, batch_file)
        self._run.command_line = command_line
        self._log(LogLine.info(f"Executing command: yt-dlp {command_line}"))
        try:
            self._supervisor.start_process(command_line)
        except (RuntimeError, OSError) as exc:
            self._fail_setup(exc)
        return True

    def _finish(self, outcome: str) -> None:
        if self._state != JobState.RUNNING.value or self._run is None:
            return
        self._run.outcome = outcome
        if outcome == JobOutcome.SUCCESS.value:
            self._set_state(JobState.SUCCEEDED)
        else:
            self._set_state(JobState.FAILED)

    def reset(self) -> bool:
        if self.is_processing():
            return False
        self._close_consumer()
        self._run = None
        self._acknowledged = False
        self._session.log.clear()
        self._set_state(JobState.IDLE)
        self.logChanged.emit()
        return True

    def shutdown(self) -> None:
        self._close_consumer()
