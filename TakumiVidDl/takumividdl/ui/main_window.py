from __future__ import annotations

import html
import os
from collections.abc import Callable

from PySide6.QtCore import Qt, Signal
from PySide6.QtGui import QCloseEvent
from PySide6.QtWidgets import (
    QButtonGroup,
    QFileDialog,
    QFrame,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QMainWindow,
    QMenu,
    QPlainTextEdit,
    QPushButton,
    QRadioButton,
    QSizePolicy,
    QStackedWidget,
    QVBoxLayout,
    QWidget,
)

from ..core.app_metadata import APP_NAME
from ..core.command_line import CUSTOM_OPTION_PRESETS
from ..core.models import JobSettings, JobState, LogLine, SelectionMode, ToolStatus
from .theme import ThemePalette, build_stylesheet, log_color

SUBTITLE_TEXT = "Batch downloads with yt-dlp and FFmpeg."
STEP_TITLES = ("Enter URLs", "yt-dlp Settings", "Start")
STEP_SUBTITLES = (
    "Paste one URL per line.",
    "Let yt-dlp pick formats automatically or pass your own options.",
    "Check tool status, set the output folder.",
)
STEP_TOOLS = len(STEP_TITLES) - 1
TOOL_LABELS = {"yt-dlp": "yt-dlp", "ffmpeg": "FFmpeg/FFprobe"}
_JOB_STATE_TEXT = {
    JobState.RUNNING.value: "Running...",
    JobState.SUCCEEDED.value: "Finished",
    JobState.FAILED.value: "Failed",
}


class MainWindow(QMainWindow):
    urlsChanged = Signal(str)
    selectionModeChanged = Signal(str)
    customOptionsChanged = Signal(str)
    presetChosen = Signal(str)
    toolDirectoryChosen = Signal(str)
    outputDirectoryChosen = Signal(str)
    retryToolsRequested = Signal()
    docsRequested = Signal()
    stepChanged = Signal(int)
    startRequested = Signal()
    resetRequested = Signal()
    themeToggleRequested = Signal()

    def __init__(self, theme: ThemePalette, *, theme_mode: str) -> None:
        super().__init__()
        self.theme = theme
        self._theme_mode = "light" if theme_mode == "light" else "dark"
        self._close_handler: Callable[[], bool] | None = None
        self._updating_inputs = False
        self._tools_busy = False

        self.setWindowTitle(APP_NAME)
        self.resize(760, 560)
        self._build_ui()
        self._connect_signals()
        self._show_step(0)
        self.setStyleSheet(build_stylesheet(self.theme))
        self.apply_windows_titlebar_theme()

    def _build_ui(self) -> None:
        root = QWidget(self)
        root.setObjectName("tvRoot")
        self.setCentralWidget(root)
        outer = QVBoxLayout(root)
        outer.setContentsMargins(10, 10, 10, 8)
        outer.setSpacing(7)
        self._outer_layout = outer

        self._build_header_card(root)
        self.pages = QStackedWidget(root)
        self.wizard_page = self._build_wizard_page()
        self.log_page = self._build_log_page()
        self.pages.addWidget(self.wizard_page)
        self.pages.addWidget(self.log_page)
        outer.addWidget(self.pages, 1)

    def _build_header_card(self, root: QWidget) -> None:
        header = QFrame(root)
        header.setObjectName("card")
        header.setSizePolicy(QSizePolicy.Preferred, QSizePolicy.Fixed)
        layout = QHBoxLayout(header)
        layout.setContentsMargins(10, 8, 10, 8)
        titles = QVBoxLayout()
        titles.setSpacing(2)
        self.title_label = QLabel(APP_NAME, header)
        self.title_label.setObjectName("stepTitle")
        self.subtitle_label = QLabel(SUBTITLE_TEXT, header)
        self.subtitle_label.setObjectName("stepSubtitle")
        titles.addWidget(self.title_label)
        titles.addWidget(self.subtitle_label)
        layout.addLayout(titles, 1)
        self.theme_button = QPushButton(header)
        self._refresh_theme_button_text()
        layout.addWidget(self.theme_button, 0, Qt.AlignTop)
        self._outer_layout.addWidget(header)

    def _build_wizard_page(self) -> QWidget:
        page = QFrame(self)
        page.setObjectName("card")
        layout = QVBoxLayout(page)
        layout.setContentsMargins(12, 10, 12, 10)
        layout.setSpacing(8)

        self.step_indicator = QLabel(page)
        self.step_indicator.setObjectName("stepIndicator")
        self.step_title = QLabel(page)
        self.step_title.setObjectName("stepTitle")
        self.step_subtitle = QLabel(page)
        self.step_subtitle.setObjectName("stepSubtitle")
        layout.addWidget(self.step_indicator)
        layout.addWidget(self.step_title)
        layout.addWidget(self.step_subtitle)

        self.steps = QStackedWidget(page)
        self.steps.addWidget(self._build_urls_step(page))
        self.steps.addWidget(self._build_options_step(page))
        self.steps.addWidget(self._build_tools_step(page))
        layout.addWidget(self.steps, 1)

        nav = QHBoxLayout()
        nav.setContentsMargins(0, 0, 0, 0)
        self.back_button = QPushButton("Back", page)
        self.next_button = QPushButton("Next", page)
        self.start_button = QPushButton("Start download", page)
        self.start_button.setObjectName("startButton")
        nav.addWidget(self.back_button)
        nav.addStretch(1)
        nav.addWidget(self.next_button)
        nav.addWidget(self.start_button)
        layout.addLayout(nav)
        return page

    def _build_urls_step(self, parent: QWidget) -> QWidget:
        step = QWidget(parent)
        layout = QVBoxLayout(step)
        layout.setContentsMargins(0, 0, 0, 0)
        self.url_input = QPlainTextEdit(step)
        self.url_input.setObjectName("urlInput")
        self.url_input.setPlaceholderText("https://www.youtube.com/watch?v=...\nhttps://...")
        layout.addWidget(self.url_input, 1)
        return step

    def _build_options_step(self, parent: QWidget) -> QWidget:
        step = QWidget(parent)
        layout = QVBoxLayout(step)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(6)

        self.auto_mode_radio = QRadioButton("Automatic (recommended)", step)
        self.custom_mode_radio = QRadioButton("Custom options", step)
        self._mode_group = QButtonGroup(step)
        self._mode_group.addButton(self.auto_mode_radio)
        self._mode_group.addButton(self.custom_mode_radio)
        self.auto_mode_radio.setChecked(True)
        layout.addWidget(self.auto_mode_radio)
        layout.addWidget(self.custom_mode_radio)

        self.custom_options_input = QPlainTextEdit(step)
        self.custom_options_input.setObjectName("customOptionsInput")
        self.custom_options_input.setPlaceholderText('-f "bv*+ba/b" --embed-metadata')
        layout.addWidget(self.custom_options_input, 1)

        actions = QHBoxLayout()
        actions.setContentsMargins(0, 0, 0, 0)
        self.preset_button = QPushButton("Add option", step)
        self.preset_menu = QMenu(self.preset_button)
        for group, presets in CUSTOM_OPTION_PRESETS:
            section = self.preset_menu.addSection(group)
            section.setEnabled(False)
            for preset in presets:
                action = self.preset_menu.addAction(preset)
                action.triggered.connect(lambda _checked=False, value=preset: self.presetChosen.emit(value))
        self.preset_button.setMenu(self.preset_menu)
        self.docs_button = QPushButton("yt-dlp options reference", step)
        actions.addWidget(self.preset_button)
        actions.addStretch(1)
        actions.addWidget(self.docs_button)
        layout.addLayout(actions)
        return step

    def _build_tool_row(self, parent: QWidget, tool_name: str) -> QLabel:
        badge = QLabel(parent)
        badge.setObjectName("toolBadge")
        badge.setWordWrap(True)
        badge.setTextInteractionFlags(Qt.TextSelectableByMouse)
        badge.setProperty("tool", tool_name)
        return badge

    def _build_tools_step(self, parent: QWidget) -> QWidget:
        step = QWidget(parent)
        layout = QVBoxLayout(step)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(6)

        self.ytdlp_badge = self._build_tool_row(step, "yt-dlp")
        self.ffmpeg_badge = self._build_tool_row(step, "ffmpeg")
        layout.addWidget(self.ytdlp_badge)
        layout.addWidget(self.ffmpeg_badge)

        tool_actions = QHBoxLayout()
        tool_actions.setContentsMargins(0, 0, 0, 0)
        self.retry_tools_button = QPushButton("Check again", step)
        self.ffmpeg_dir_button = QPushButton("FFmpeg folder...", step)
        tool_actions.addWidget(self.retry_tools_button)
        tool_actions.addWidget(self.ffmpeg_dir_button)
        tool_actions.addStretch(1)
        layout.addLayout(tool_actions)

        self.ffmpeg_dir_edit = QLineEdit(step)
        self.ffmpeg_dir_edit.setReadOnly(True)
        self.ffmpeg_dir_edit.setPlaceholderText("FFmpeg from PATH")
        layout.addWidget(self.ffmpeg_dir_edit)

        output_label = QLabel("Output folder", step)
        layout.addWidget(output_label)
        output_row = QHBoxLayout()
        output_row.setContentsMargins(0, 0, 0, 0)
        self.output_dir_edit = QLineEdit(step)
        self.output_dir_edit.setReadOnly(True)
        self.output_dir_edit.setPlaceholderText("Not selected")
        self.output_dir_button = QPushButton("Browse...", step)
        output_row.addWidget(self.output_dir_edit, 1)
        output_row.addWidget(self.output_dir_button)
        layout.addLayout(output_row)
        layout.addStretch(1)
        return step

    def _build_log_page(self) -> QWidget:
        page = QFrame(self)
        page.setObjectName("card")
        layout = QVBoxLayout(page)
        layout.setContentsMargins(10, 8, 10, 8)
        layout.setSpacing(6)
        self.job_state_label = QLabel(page)
        self.job_state_label.setObjectName("stepSubtitle")
        layout.addWidget(self.job_state_label)
        self.log_view = QPlainTextEdit(page)
        self.log_view.setObjectName("logView")
        self.log_view.setReadOnly(True)
        self.log_view.setLineWrapMode(QPlainTextEdit.NoWrap)
        self.log_view.setTextInteractionFlags(Qt.TextSelectableByMouse | Qt.TextSelectableByKeyboard)
        layout.addWidget(self.log_view, 1)
        footer = QHBoxLayout()
        footer.setContentsMargins(0, 0, 0, 0)
        footer.addStretch(1)
        self.reset_button = QPushButton("Back to start", page)
        footer.addWidget(self.reset_button)
        layout.addLayout(footer)
        return page

    def _connect_signals(self) -> None:
        self.url_input.textChanged.connect(self._on_urls_edited)
        self.auto_mode_radio.toggled.connect(self._on_mode_toggled)
        self.custom_options_input.textChanged.connect(self._on_custom_options_edited)
        self.docs_button.clicked.connect(self.docsRequested.emit)
        self.retry_tools_button.clicked.connect(self.retryToolsRequested.emit)
        self.ffmpeg_dir_button.clicked.connect(self._choose_tool_directory)
        self.output_dir_button.clicked.connect(self._choose_output_directory)
        self.back_button.clicked.connect(lambda: self._show_step(self.current_step() - 1))
        self.next_button.clicked.connect(lambda: self._show_step(self.current_step() + 1))
        self.start_button.clicked.connect(self.startRequested.emit)
        self.reset_button.clicked.connect(self.resetRequested.emit)
        self.theme_button.clicked.connect(self.themeToggleRequested.emit)

    def _on_urls_edited(self) -> None:
        if not self._updating_inputs:
            self.urlsChanged.emit(self.url_input.toPlainText())

    def _on_mode_toggled(self, _checked: bool) -> None:
        custom = self.custom_mode_radio.isChecked()
        self.custom_options_input.setEnabled(custom)
        self.preset_button.setEnabled(custom)
        if not self._updating_inputs:
            mode = SelectionMode.CUSTOM.value if custom else SelectionMode.AUTOMATIC.value
            self.selectionModeChanged.emit(mode)

    def _on_custom_options_edited(self) -> None:
        if not self._updating_inputs:
            self.customOptionsChanged.emit(self.custom_options_input.toPlainText())

    def _choose_tool_directory(self) -> None:
        selected = QFileDialog.getExistingDirectory(self, "Choose FFmpeg folder", self.ffmpeg_dir_edit.text().strip())
        if not selected:
            return
        self.ffmpeg_dir_edit.setText(selected)
        self.toolDirectoryChosen.emit(selected)

    def _choose_output_directory(self) -> None:
        selected = QFileDialog.getExistingDirectory(self, "Choose output folder", self.output_dir_edit.text().strip())
        if not selected:
            return
        self.output_dir_edit.setText(selected)
        self.outputDirectoryChosen.emit(selected)

    def current_step(self) -> int:
        return int(self.steps.currentIndex())

    def _show_step(self, index: int) -> None:
        step = max(0, min(STEP_TOOLS, int(index)))
        changed = step != self.steps.currentIndex()
        self.steps.setCurrentIndex(step)
        self.step_indicator.setText(f"Step {step + 1} of {len(STEP_TITLES)}")
        self.step_title.setText(STEP_TITLES[step])
        self.step_subtitle.setText(STEP_SUBTITLES[step])
        self.back_button.setEnabled(step > 0)
        self.next_button.setVisible(step < STEP_TOOLS)
        self.start_button.setVisible(step == STEP_TOOLS)
        if changed:
            self.stepChanged.emit(step)

    def show_wizard(self, step: int = 0) -> None:
        self.pages.setCurrentWidget(self.wizard_page)
        self._show_step(step)

    def show_log_view(self) -> None:
        self.pages.setCurrentWidget(self.log_page)

    def set_settings(self, settings: JobSettings) -> None:
        self._updating_inputs = True
        try:
            self.url_input.setPlainText(settings.urls)
            if settings.is_custom:
                self.custom_mode_radio.setChecked(True)
            else:
                self.auto_mode_radio.setChecked(True)
            self.custom_options_input.setPlainText(settings.custom_options)
            self.ffmpeg_dir_edit.setText(settings.tool_directory)
            self.output_dir_edit.setText(settings.output_directory)
        finally:
            self._updating_inputs = False
        self._on_mode_toggled(self.custom_mode_radio.isChecked())

    def set_custom_options(self, text: str) -> None:
        self.custom_options_input.setPlainText(str(text or ""))
        cursor = self.custom_options_input.textCursor()
        cursor.movePosition(cursor.MoveOperation.End)
        self.custom_options_input.setTextCursor(cursor)

    def set_tool_status(self, tool_name: str, status: ToolStatus) -> None:
        badge = self.ytdlp_badge if tool_name == "yt-dlp" else self.ffmpeg_badge
        label = TOOL_LABELS.get(tool_name, tool_name)
        if status.is_ready:
            state = "ready"
            text = f"{label}: Available\n{status.version}"
            tooltip = status.full_output
        elif status.is_failed:
            state = "failed"
            text = f"{label}: Not available\nAn error occurred."
            tooltip = str(status.error or "")
        else:
            state = "loading"
            text = f"{label}: Checking...\nChecking tool status."
            tooltip = ""
        badge.setText(text)
        badge.setToolTip(tooltip)
        badge.setProperty("state", state)
        badge.style().unpolish(badge)
        badge.style().polish(badge)

    def set_tools_busy(self, busy: bool) -> None:
        self._tools_busy = bool(busy)
        self.retry_tools_button.setEnabled(not self._tools_busy)
        self.ffmpeg_dir_button.setEnabled(not self._tools_busy)

    def set_job_state(self, state: str) -> None:
        running = state == JobState.RUNNING.value
        self.reset_button.setEnabled(not running)
        self.job_state_label.setText(_JOB_STATE_TEXT.get(state, ""))

    def render_log(self, lines: list[LogLine]) -> None:
        scrollbar = self.log_view.verticalScrollBar()
        follow = scrollbar.value() >= scrollbar.maximum() - 2
        rows = []
        for line in lines:
            color = log_color(self.theme, line.kind)
            rows.append(f'<span style="color:{color}">{html.escape(line.display)}</span>')
        self.log_view.clear()
        if rows:
            self.log_view.appendHtml(f'<pre style="margin:0">{"<br>".join(rows)}</pre>')
        if follow:
            scrollbar.setValue(scrollbar.maximum())

    def set_close_handler(self, handler: Callable[[], bool]) -> None:
        self._close_handler = handler

    def closeEvent(self, event: QCloseEvent) -> None:
        if self._close_handler and not self._close_handler():
            event.ignore()
            return
        event.accept()

    def _refresh_theme_button_text(self) -> None:
        self.theme_button.setText("Light theme" if self._theme_mode == "dark" else "Dark theme")

    def set_theme(self, theme: ThemePalette, mode: str) -> None:
        self.theme = theme
        self._theme_mode = "light" if mode == "light" else "dark"
        self.setStyleSheet(build_stylesheet(self.theme))
        self._refresh_theme_button_text()
        self.apply_windows_titlebar_theme()

    def apply_windows_titlebar_theme(self, widget: QWidget | None = None) -> None:
        if os.name != "nt":
            return
        target = widget or self
        try:
            import ctypes
            from ctypes import wintypes

            hwnd = int(target.winId())
            if hwnd == 0:
                return
            value = ctypes.c_int(0 if self._theme_mode == "light" else 1)
            size = ctypes.sizeof(value)
            dwm = ctypes.windll.dwmapi
            for attribute in (20, 19):
                result = dwm.DwmSetWindowAttribute(
                    wintypes.HWND(hwnd),
                    ctypes.c_uint(attribute),
                    ctypes.byref(value),
                    ctypes.c_uint(size),
                )
                if result == 0:
                    break
        except (AttributeError, OSError):
            return
