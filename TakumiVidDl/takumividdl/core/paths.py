from __future__ import annotations

import os
import shutil
import sys
from functools import lru_cache
from pathlib import Path

from .app_metadata import APP_NAME

_YTDLP_ASSET_NAMES = {
    "win32": "yt-dlp.exe",
    "darwin": "yt-dlp_macos",
    "linux": "yt-dlp_linux",
}


@lru_cache(maxsize=1)
def appdata_dir() -> Path:
    override = os.environ.get("TAKUMIVIDDL_HOME")
    if override:
        return Path(override).expanduser().resolve()
    base = os.environ.get("LOCALAPPDATA")
    if base:
        return Path(base).resolve() / APP_NAME
    return Path.home() / f".{APP_NAME.lower()}"


@lru_cache(maxsize=1)
def runtime_storage_dir() -> Path:
    target = appdata_dir()
    try:
        target.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise RuntimeError(
            f"Unable to create storage directory: {target}. "
            "Check folder permissions and available disk space."
        ) from exc
    return target


def tool_storage_dir() -> Path:
    """Folder holding the downloaded yt-dlp build, its bookkeeping files and the URL list."""
    return runtime_storage_dir() / "yt-dlp"


def log_file_path() -> Path:
    return runtime_storage_dir() / f"{APP_NAME}.log"


def ytdlp_asset_name(platform: str | None = None) -> str:
    key = str(platform or sys.platform)
    if key.startswith("linux"):
        key = "linux"
    name = _YTDLP_ASSET_NAMES.get(key)
    if name is None:
        raise RuntimeError(f"Unsupported OS: {key}")
    return name


def _binary_name_candidates(binary_name: str) -> list[str]:
    if os.name == "nt" and not binary_name.lower().endswith(".exe"):
        return [f"{binary_name}.exe", binary_name]
    return [binary_name]


def binary_in_directory(directory: str, binary_name: str) -> str:
    """Executable path for ``binary_name``; a blank directory means "look it up on PATH"."""
    folder = str(directory or "").strip()
    if not folder:
        return binary_name
    return str(Path(folder) / _binary_name_candidates(binary_name)[0])


def resolve_binary(binary_name: str) -> str | None:
    for name in _binary_name_candidates(binary_name):
        candidate = shutil.which(name)
        if candidate:
            return str(Path(candidate).resolve())
    return None
