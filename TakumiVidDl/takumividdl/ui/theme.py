from __future__ import annotations

from dataclasses import dataclass

from ..core.models import LogKind


@dataclass(frozen=True, slots=True)
class ThemePalette:
    mode: str
    app_bg: str
    panel_bg: str
    border: str
    text_primary: str
    text_secondary: str
    accent: str
    accent_hover: str
    danger: str
    danger_hover: str
    success: str
    info: str
    disabled_bg: str
    disabled_fg: str
    console_bg: str


DARK_THEME = ThemePalette(
    mode="dark",
    app_bg="#0A0A0B",
    panel_bg="#141416",
    border="#2A2A2D",
    text_primary="#F4F4F5",
    text_secondary="#B7B7BC",
    accent="#D20F39",
    accent_hover="#F03A5F",
    danger="#EF4444",
    danger_hover="#F87171",
    success="#22C55E",
    info="#38BDF8",
    disabled_bg="#202024",
    disabled_fg="#8C8C93",
    console_bg="#000000",
)

LIGHT_THEME = ThemePalette(
    mode="light",
    app_bg="#ECEDEF",
    panel_bg="#FAFAFB",
    border="#D1D3D8",
    text_primary="#1B1F2A",
    text_secondary="#4B5161",
    accent="#C51E3A",
    accent_hover="#D94A63",
    danger="#B71C38",
    danger_hover="#CD4A63",
    success="#1E9A4B",
    info="#0E7490",
    disabled_bg="#E6E8ED",
    disabled_fg="#7A8090",
    console_bg="#FFFFFF",
)


def get_theme(mode: str | None) -> ThemePalette:
    if str(mode or "").strip().lower() == "light":
        return LIGHT_THEME
    return DARK_THEME


def log_color(theme: ThemePalette, kind: str) -> str:
    if kind == LogKind.ERROR.value:
        return theme.danger
    if kind == LogKind.SUCCESS.value:
        return theme.success
    if kind == LogKind.INFO.value:
        return theme.info
    return theme.text_primary


def _build_stylesheet_section_base(theme: ThemePalette) -> str:
    return f"""
QMainWindow {{
    background: {theme.app_bg};
}}
QWidget#tvRoot {{
    background: {theme.app_bg};
}}
QFrame#card {{
    background: {theme.panel_bg};
    border: 1px solid {theme.border};
    border-radius: 8px;
}}
QLabel {{
    color: {theme.text_primary};
    background: transparent;
    font: 600 9.7pt "Segoe UI";
}}
QLabel#stepTitle {{
    color: {theme.accent};
    font: 700 15pt "Segoe UI";
}}
QLabel#stepSubtitle, QLabel#stepIndicator {{
    color: {theme.text_secondary};
    font: 600 8.6pt "Segoe UI";
}}
QLabel#toolBadge {{
    border-radius: 4px;
    padding: 6px 8px;
    font: 700 9.2pt "Segoe UI";
}}
QLabel#toolBadge[state="loading"] {{
    background: {theme.disabled_bg};
    color: {theme.text_secondary};
}}
QLabel#toolBadge[state="ready"] {{
    background: {theme.success};
    color: #FFFFFF;
}}
QLabel#toolBadge[state="failed"] {{
    background: {theme.danger};
    color: #FFFFFF;
}}
QPushButton {{
    background: {theme.panel_bg};
    color: {theme.text_primary};
    border: 1px solid {theme.border};
    border-radius: 6px;
    padding: 2px 7px;
    min-height: 26px;
    font: 600 9.1pt "Segoe UI";
}}
QPushButton:hover {{
    background: {theme.accent};
}}
QPushButton:disabled {{
    background: {theme.disabled_bg};
    color: {theme.disabled_fg};
    border-color: {theme.border};
}}
QPushButton#startButton {{
    background: {theme.accent};
    border: 1px solid {theme.accent};
    min-height: 34px;
    font: 700 10.4pt "Segoe UI";
}}
QPushButton#startButton:hover {{
    background: {theme.accent_hover};
}}
"""


def _build_stylesheet_section_inputs(theme: ThemePalette) -> str:
    return f"""
QLineEdit, QPlainTextEdit {{
    background: {theme.app_bg};
    color: {theme.text_primary};
    border: 1px solid {theme.border};
    border-radius: 6px;
    min-height: 28px;
    padding: 2px 7px;
    font: 600 9.1pt "Segoe UI";
    selection-background-color: {theme.accent};
}}
QPlainTextEdit#urlInput, QPlainTextEdit#customOptionsInput {{
    font: 10pt "Consolas";
}}
QPlainTextEdit#logView {{
    background: {theme.console_bg};
    font: 9.5pt "Consolas";
}}
QRadioButton, QCheckBox {{
    color: {theme.text_primary};
    font: 600 9.1pt "Segoe UI";
    spacing: 8px;
}}
QMenu {{
    background: {theme.panel_bg};
    color: {theme.text_primary};
    border: 1px solid {theme.border};
    font: 9pt "Consolas";
}}
QMenu::item:selected {{
    background: {theme.accent};
}}
"""


def build_stylesheet(theme: ThemePalette) -> str:
    return "".join(
        (
            _build_stylesheet_section_base(theme),
            _build_stylesheet_section_inputs(theme),
        )
    )
