from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from .app_metadata import APP_NAME
from .models import AppConfig, SelectionMode

logger = logging.getLogger(__name__)

CONFIG_FILENAME = f"{APP_NAME}_config.json"
CONFIG_SCHEMA_VERSION = 1

THEME_VALUES = {"dark", "light"}
SELECTION_MODE_VALUES = {item.value for item in SelectionMode}
CUSTOM_OPTIONS_MAX_CHARS = 8192


def _paths():
    from . import paths as paths_module

    return paths_module


def _coerce_int(value: object, default: int, minimum: int, maximum: int) -> int:
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        parsed = default
    return max(minimum, min(maximum, parsed))


def _coerce_choice(value: object, *, allowed: set[str], default: str) -> str:
    text = str(value or "").strip().lower()
    return text if text in allowed else str(default)


def _coerce_directory(value: object) -> str:
    return str(value or "").strip()


def default_config() -> AppConfig:
    return AppConfig(
        schema_version=CONFIG_SCHEMA_VERSION,
        theme_mode="dark",
        tool_directory="",
        output_directory="",
        selection_mode=SelectionMode.AUTOMATIC.value,
        custom_options="",
        window_geometry="",
    )


def _sanitize_payload(payload: dict[str, object]) -> AppConfig:
    defaults = default_config()
    custom_options = str(payload.get("custom_options", defaults.custom_options) or "")
    return AppConfig(
        schema_version=_coerce_int(
            payload.get("schema_version", CONFIG_SCHEMA_VERSION),
            CONFIG_SCHEMA_VERSION,
            0,
            CONFIG_SCHEMA_VERSION,
        ),
        theme_mode=_coerce_choice(
            payload.get("theme_mode"),
            allowed=THEME_VALUES,
            default=defaults.theme_mode,
        ),
        tool_directory=_coerce_directory(payload.get("tool_directory")),
        output_directory=_coerce_directory(payload.get("output_directory")),
        selection_mode=_coerce_choice(
            payload.get("selection_mode"),
            allowed=SELECTION_MODE_VALUES,
            default=defaults.selection_mode,
        ),
        custom_options=custom_options[:CUSTOM_OPTIONS_MAX_CHARS],
        window_geometry=str(payload.get("window_geometry", defaults.window_geometry) or ""),
    )


def config_path() -> Path:
    return _paths().runtime_storage_dir() / CONFIG_FILENAME


def load_config(path: Path | None = None) -> AppConfig:
    target = Path(path) if path is not None else config_path()
    if not target.exists():
        return default_config()
    try:
        raw = json.loads(target.read_text(encoding="utf-8"))
    except (OSError, UnicodeError, json.JSONDecodeError) as exc:
        logger.warning("Ignoring unreadable config %s: %s", target, exc)
        return default_config()
    if not isinstance(raw, dict):
        return default_config()
    return _sanitize_payload(raw)


def config_to_dict(config: AppConfig) -> dict[str, object]:
    return {
        "schema_version": CONFIG_SCHEMA_VERSION,
        "theme_mode": str(config.theme_mode or "dark"),
        "tool_directory": _coerce_directory(config.tool_directory),
        "output_directory": _coerce_directory(config.output_directory),
        "selection_mode": str(config.selection_mode or SelectionMode.AUTOMATIC.value),
        "custom_options": str(config.custom_options or ""),
        "window_geometry": str(config.window_geometry or ""),
    }


def save_config(config: AppConfig, path: Path | None = None) -> str | None:
    payload = config_to_dict(config)
    target = Path(path) if path is not None else config_path()
    tmp_path = target.with_suffix(f"{target.suffix}.tmp")
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        tmp_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        os.replace(str(tmp_path), str(target))
        return str(target)
    except (OSError, TypeError, ValueError) as exc:
        logger.warning("Could not save config to %s: %s", target, exc)
        try:
            tmp_path.unlink(missing_ok=True)
        except OSError:
            pass
        return None
