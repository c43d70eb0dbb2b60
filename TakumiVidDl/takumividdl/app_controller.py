from __future__ import annotations

import logging
import webbrowser

from PySide6.QtCore import QByteArray, QObject, QTimer
from PySide6.QtWidgets import QDialog, QMessageBox

from .controller.orchestrator import ExecutionOrchestrator
from .controller.process_supervisor import ProcessSupervisor
from .controller.session import JobSession
from .controller.tool_monitor import DOWNLOAD_TOOL, TRANSCODE_TOOL, ToolStatusMonitor
from .core.app_metadata import YTDLP_DOCS_URL
from .core.command_line import append_preset
from .core.config import load_config, save_config
from .core.models import TERMINAL_JOB_STATES, AppConfig, JobSettings
from .core.tool_service import ToolService
from .ui.dialogs import ConfirmationDialog, build_message_box, exec_dialog
from .ui.main_window import STEP_TOOLS, MainWindow
from .ui.theme import get_theme

logger = logging.getLogger(__name__)

LOG_RENDER_DEBOUNCE_MS = 24


class AppController(QObject):
    def __init__(self, app) -> None:
        super().__init__()
        self.app = app
        self.config: AppConfig = load_config()

        self.session = JobSession(
            settings=JobSettings(
                selection_mode=self.config.selection_mode,
                custom_options=self.config.custom_options,
                tool_directory=self.config.tool_directory,
                output_directory=self.config.output_directory,
            )
        )
        self.tool_service = ToolService()
        self.supervisor = ProcessSupervisor(parent=self)
        self.monitor = ToolStatusMonitor(self.session, self.tool_service, parent=self)
        self.orchestrator = ExecutionOrchestrator(self.session, self.supervisor, parent=self)

        self.window = MainWindow(get_theme(self.config.theme_mode), theme_mode=self.config.theme_mode)
        self.window.set_close_handler(self._on_close_request)
        self.window.set_settings(self.session.settings)
        self._restore_window_geometry()
        for tool_name in (DOWNLOAD_TOOL, TRANSCODE_TOOL):
            self.window.set_tool_status(tool_name, self.monitor.status(tool_name))

        self._log_render_timer = QTimer(self)
        self._log_render_timer.setSingleShot(True)
        self._log_render_timer.setInterval(LOG_RENDER_DEBOUNCE_MS)
        self._log_render_timer.timeout.connect(self._render_log)

        self._connect_signals()

    def _connect_signals(self) -> None:
        window = self.window
        window.urlsChanged.connect(lambda text: self.session.update_settings(urls=text))
        window.selectionModeChanged.connect(self._on_selection_mode_changed)
        window.customOptionsChanged.connect(self._on_custom_options_changed)
        window.presetChosen.connect(self._on_preset_chosen)
        window.toolDirectoryChosen.connect(self._on_tool_directory_chosen)
        window.outputDirectoryChosen.connect(self._on_output_directory_chosen)
        window.retryToolsRequested.connect(lambda: self.monitor.check_tools())
        window.docsRequested.connect(lambda: webbrowser.open(YTDLP_DOCS_URL))
        window.stepChanged.connect(self._on_step_changed)
        window.startRequested.connect(self._on_start_requested)
        window.resetRequested.connect(self._on_reset_requested)
        window.themeToggleRequested.connect(self._on_theme_toggle)

        self.monitor.statusChanged.connect(self._on_tool_status_changed)
        self.orchestrator.stateChanged.connect(self._on_job_state_changed)
        self.orchestrator.logChanged.connect(self._schedule_log_render)

    def run(self) -> None:
        self.window.show()

    def _restore_window_geometry(self) -> None:
        raw = str(self.config.window_geometry or "").strip()
        if not raw:
            return
        try:
            payload = QByteArray.fromBase64(raw.encode("ascii"))
            if not payload.isEmpty():
                self.window.restoreGeometry(payload)
        except (UnicodeEncodeError, ValueError):
            return

    def _on_selection_mode_changed(self, mode: str) -> None:
        self.session.update_settings(selection_mode=mode)
        self.config.selection_mode = mode

    def _on_custom_options_changed(self, text: str) -> None:
        self.session.update_settings(custom_options=text)
        self.config.custom_options = text

    def _on_preset_chosen(self, preset: str) -> None:
        # The window echoes the new text back through customOptionsChanged.
        self.window.set_custom_options(append_preset(self.session.settings.custom_options, preset))

    def _on_tool_directory_chosen(self, directory: str) -> None:
        self.session.update_settings(tool_directory=directory)
        self.config.tool_directory = directory
        self.monitor.check_tools(directory)

    def _on_output_directory_chosen(self, directory: str) -> None:
        self.session.update_settings(output_directory=directory)
        self.config.output_directory = directory

    def _on_step_changed(self, step: int) -> None:
        if step == STEP_TOOLS:
            self.monitor.check_tools()

    def _on_tool_status_changed(self, tool_name: str) -> None:
        self.window.set_tool_status(tool_name, self.monitor.status(tool_name))
        self.window.set_tools_busy(self.monitor.is_checking)

    def _on_start_requested(self) -> None:
        if not self.orchestrator.request_start():
            return
        dialog = ConfirmationDialog(
            self.orchestrator.risks(),
            self.window.theme,
            can_confirm=self.orchestrator.can_confirm,
            parent=self.window,
            apply_titlebar_theme=self.window.apply_windows_titlebar_theme,
        )
        dialog.acknowledgedChanged.connect(self.orchestrator.set_acknowledged)
        accepted = exec_dialog(dialog) == QDialog.Accepted
        dialog.deleteLater()
        if not accepted:
            self.orchestrator.cancel()
            return
        self.window.show_log_view()
        if not self.orchestrator.confirm():
            self.orchestrator.cancel()
            self.window.show_wizard(STEP_TOOLS)

    def _on_reset_requested(self) -> None:
        if self.orchestrator.reset():
            self.window.show_wizard(0)

    def _on_job_state_changed(self, state: str) -> None:
        self.window.set_job_state(state)
        if state in TERMINAL_JOB_STATES:
            logger.info("Job finished: %s", state)

    def _schedule_log_render(self) -> None:
        if not self._log_render_timer.isActive():
            self._log_render_timer.start()

    def _render_log(self) -> None:
        self.window.render_log(self.session.log.lines())

    def _on_theme_toggle(self) -> None:
        mode = "light" if self.config.theme_mode == "dark" else "dark"
        self.config.theme_mode = mode
        self.window.set_theme(get_theme(mode), mode)
        self._render_log()

    def _ask_yes_no(self, title: str, text: str) -> int:
        box = build_message_box(
            parent=self.window,
            theme=self.window.theme,
            icon=QMessageBox.Question,
            title=title,
            text=text,
            buttons=QMessageBox.Yes | QMessageBox.No,
            default_button=QMessageBox.No,
            apply_titlebar_theme=self.window.apply_windows_titlebar_theme,
        )
        return exec_dialog(box)

    def _save_config(self) -> None:
        try:
            self.config.window_geometry = self.window.saveGeometry().toBase64().data().decode("ascii")
        except (UnicodeDecodeError, RuntimeError):
            self.config.window_geometry = ""
        save_config(self.config)

    def _on_close_request(self) -> bool:
        if self.orchestrator.is_processing():
            answer = self._ask_yes_no(
                "Download running",
                "yt-dlp is still running.\n\nStop it and exit now?",
            )
            if answer != QMessageBox.Yes:
                return False
        self._log_render_timer.stop()
        self.orchestrator.shutdown()
        self.supervisor.shutdown()
        self.monitor.shutdown()
        self._save_config()
        return True
