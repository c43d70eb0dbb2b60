from __future__ import annotations

from collections.abc import Callable

from PySide6.QtCore import Qt, Signal
from PySide6.QtGui import QColor, QPalette
from PySide6.QtWidgets import (
    QApplication,
    QCheckBox,
    QDialog,
    QHBoxLayout,
    QLabel,
    QMessageBox,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from .theme import ThemePalette


def apply_dialog_theme(
    widget: QWidget,
    theme: ThemePalette,
    *,
    apply_titlebar_theme: Callable[[QWidget], None] | None = None,
) -> None:
    style = (
        f"QDialog, QMessageBox {{ background: {theme.panel_bg}; color: {theme.text_primary}; }}"
        f"QLabel {{ color: {theme.text_primary}; background: transparent; }}"
        f"QLabel#riskItem {{ color: {theme.danger}; font: 600 9.5pt 'Segoe UI'; }}"
        f"QCheckBox {{ color: {theme.text_primary}; font: 600 9.5pt 'Segoe UI'; }}"
        f"QPushButton {{ background: {theme.panel_bg}; color: {theme.text_primary}; border: 1px solid {theme.border}; border-radius: 6px; padding: 5px 10px; font: 600 9.5pt 'Segoe UI'; min-height: 24px; }}"
        f"QPushButton:hover {{ background: {theme.accent}; color: {theme.text_primary}; }}"
        f"QPushButton:disabled {{ background: {theme.disabled_bg}; color: {theme.disabled_fg}; border-color: {theme.border}; }}"
    )
    widget.setStyleSheet(style)
    palette = widget.palette()
    palette.setColor(QPalette.Window, QColor(theme.panel_bg))
    palette.setColor(QPalette.WindowText, QColor(theme.text_primary))
    palette.setColor(QPalette.Base, QColor(theme.app_bg))
    palette.setColor(QPalette.Text, QColor(theme.text_primary))
    palette.setColor(QPalette.Button, QColor(theme.panel_bg))
    palette.setColor(QPalette.ButtonText, QColor(theme.text_primary))
    widget.setPalette(palette)
    widget.setAutoFillBackground(True)
    if apply_titlebar_theme is not None:
        apply_titlebar_theme(widget)
    for button in widget.findChildren(QPushButton):
        button.setCursor(Qt.PointingHandCursor if button.isEnabled() else Qt.ArrowCursor)


def build_message_box(
    *,
    parent: QWidget,
    theme: ThemePalette,
    icon: QMessageBox.Icon,
    title: str,
    text: str,
    buttons: QMessageBox.StandardButtons = QMessageBox.Ok,
    default_button: QMessageBox.StandardButton = QMessageBox.NoButton,
    apply_titlebar_theme: Callable[[QWidget], None] | None = None,
) -> QMessageBox:
    box = QMessageBox(parent)
    box.setOption(QMessageBox.DontUseNativeDialog, True)
    box.setIcon(icon)
    box.setWindowTitle(str(title or ""))
    box.setText(str(text or ""))
    box.setStandardButtons(buttons)
    if default_button != QMessageBox.NoButton:
        box.setDefaultButton(default_button)
    apply_dialog_theme(box, theme, apply_titlebar_theme=apply_titlebar_theme)
    return box


def exec_dialog(dialog: QWidget, *, on_after: Callable[[], None] | None = None) -> int:
    try:
        return int(dialog.exec())
    finally:
        if on_after is not None:
            on_after()
        else:
            while QApplication.overrideCursor() is not None:
                QApplication.restoreOverrideCursor()


class ConfirmationDialog(QDialog):
    """Lists outstanding risks and only lets the job start once they are acknowledged."""

    acknowledgedChanged = Signal(bool)

    def __init__(
        self,
        risks: list[str],
        theme: ThemePalette,
        *,
        can_confirm: Callable[[], bool],
        parent: QWidget | None = None,
        apply_titlebar_theme: Callable[[QWidget], None] | None = None,
    ) -> None:
        super().__init__(parent)
        self._can_confirm = can_confirm
        self.setWindowTitle("Start download")
        self.setModal(True)
        self.setMinimumWidth(420)
        self.setWindowFlag(Qt.WindowContextHelpButtonHint, False)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(14, 12, 14, 12)
        layout.setSpacing(8)

        self.acknowledge_checkbox: QCheckBox | None = None
        if risks:
            heading = QLabel("The following issues were found:", self)
            layout.addWidget(heading)
            for risk in risks:
                item = QLabel(f"- {risk}", self)
                item.setObjectName("riskItem")
                item.setWordWrap(True)
                layout.addWidget(item)
            self.acknowledge_checkbox = QCheckBox("I understand the risks and want to continue", self)
            self.acknowledge_checkbox.toggled.connect(self._on_acknowledge_toggled)
            layout.addWidget(self.acknowledge_checkbox)
        else:
            layout.addWidget(QLabel("All checks passed. Start the download?", self))

        buttons = QHBoxLayout()
        buttons.setContentsMargins(0, 0, 0, 0)
        buttons.addStretch(1)
        self.cancel_button = QPushButton("Cancel", self)
        self.cancel_button.clicked.connect(self.reject)
        self.start_button = QPushButton("Start", self)
        self.start_button.setDefault(True)
        self.start_button.clicked.connect(self.accept)
        buttons.addWidget(self.cancel_button)
        buttons.addWidget(self.start_button)
        layout.addLayout(buttons)

        apply_dialog_theme(self, theme, apply_titlebar_theme=apply_titlebar_theme)
        self._refresh_start_button()

    def _on_acknowledge_toggled(self, checked: bool) -> None:
        self.acknowledgedChanged.emit(bool(checked))
        self._refresh_start_button()

    def _refresh_start_button(self) -> None:
        enabled = bool(self._can_confirm())
        self.start_button.setEnabled(enabled)
        self.start_button.setCursor(Qt.PointingHandCursor if enabled else Qt.ArrowCursor)
