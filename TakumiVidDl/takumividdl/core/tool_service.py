from __future__ import annotations

import logging
import os
import subprocess
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from threading import Event

import requests

from .app_metadata import USER_AGENT, YTDLP_RELEASE_API_URL
from .paths import binary_in_directory, tool_storage_dir, ytdlp_asset_name

logger = logging.getLogger(__name__)

RELEASE_TIME_FILENAME = "release-time.txt"
LAST_CHECK_FILENAME = "last-check-time.txt"
CHECK_INTERVAL = timedelta(hours=1)
HTTP_TIMEOUT_SECONDS = 20.0
VERSION_TIMEOUT_SECONDS = 15.0
DOWNLOAD_CHUNK_BYTES = 1024 * 256


class ToolCheckError(RuntimeError):
    pass


def _creationflags() -> int:
    return subprocess.CREATE_NO_WINDOW if os.name == "nt" else 0


def _ensure_not_stopped(stop_event: Event | None) -> None:
    if stop_event is not None and stop_event.is_set():
        raise InterruptedError("Tool check stopped.")


def _parse_timestamp(value: object) -> datetime | None:
    text = str(value or "").strip()
    if not text:
        return None
    if text.endswith("Z"):
        text = f"{text[:-1]}+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _format_timestamp(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def _read_timestamp(path: Path) -> datetime | None:
    try:
        return _parse_timestamp(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeError):
        return None


def _write_text(path: Path, text: str) -> None:
    try:
        path.write_text(text, encoding="utf-8")
    except OSError as exc:
        raise ToolCheckError(f"Could not write {path.name}: {exc}") from exc


def _discard_partial(path: Path | None) -> None:
    if path is None:
        return
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        logger.debug("Could not remove %s: %s", path, exc)


def _run_version(command: list[str]) -> subprocess.CompletedProcess[str]:
    return subprocess.run(
        command,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
        encoding="utf-8",
        errors="replace",
        timeout=VERSION_TIMEOUT_SECONDS,
        check=False,
        creationflags=_creationflags(),
    )


class ToolService:
    """Keeps the yt-dlp build current and reports what ffmpeg/ffprobe say about themselves."""

    def __init__(self, storage_dir: str | Path | None = None, *, platform: str | None = None) -> None:
        self._storage_dir = Path(storage_dir) if storage_dir is not None else None
        self._platform = platform

    @property
    def storage_dir(self) -> Path:
        return self._storage_dir if self._storage_dir is not None else tool_storage_dir()

    def ytdlp_binary_path(self) -> Path:
        try:
            asset_name = ytdlp_asset_name(self._platform)
        except RuntimeError as exc:
            raise ToolCheckError(str(exc)) from exc
        return self.storage_dir / asset_name

    def _existing_build_runs(self, binary: Path) -> bool:
        if not binary.is_file():
            return False
        try:
            completed = _run_version([str(binary), "--version"])
        except (OSError, subprocess.SubprocessError) as exc:
            logger.warning("Could not get existing yt-dlp version: %s", exc)
            return False
        return completed.returncode == 0

    def _fetch_release_info(self, stop_event: Event | None) -> dict[str, object]:
        _ensure_not_stopped(stop_event)
        try:
            response = requests.get(
                YTDLP_RELEASE_API_URL,
                headers={"User-Agent": USER_AGENT, "Accept": "application/vnd.github+json"},
                timeout=HTTP_TIMEOUT_SECONDS,
            )
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as exc:
            raise ToolCheckError(f"Failed to fetch release info from GitHub: {exc}") from exc
        except ValueError as exc:
            raise ToolCheckError(f"Failed to parse GitHub API JSON: {exc}") from exc
        if not isinstance(payload, dict):
            raise ToolCheckError("GitHub API did not return a JSON object")
        return payload

    @staticmethod
    def _asset_download_url(release_info: dict[str, object], asset_name: str) -> str:
        assets = release_info.get("assets")
        if not isinstance(assets, list):
            raise ToolCheckError("No assets found in release info")
        for asset in assets:
            if not isinstance(asset, dict):
                continue
            if str(asset.get("name") or "") != asset_name:
                continue
            url = str(asset.get("browser_download_url") or "").strip()
            if url:
                return url
        raise ToolCheckError(f"Asset not found: {asset_name}")

    def _download_asset(self, url: str, target: Path, stop_event: Event | None) -> None:
        # One temp file per attempt; overlapping checks never share a partial file.
        partial: Path | None = None
        try:
            with requests.get(
                url,
                headers={"User-Agent": USER_AGENT},
                stream=True,
                timeout=HTTP_TIMEOUT_SECONDS,
            ) as response:
                response.raise_for_status()
                handle_fd, partial_name = tempfile.mkstemp(
                    prefix=f"{target.name}.",
                    suffix=".part",
                    dir=str(target.parent),
                )
                partial = Path(partial_name)
                with os.fdopen(handle_fd, "wb") as handle:
                    for chunk in response.iter_content(chunk_size=DOWNLOAD_CHUNK_BYTES):
                        _ensure_not_stopped(stop_event)
                        if chunk:
                            handle.write(chunk)
            os.replace(str(partial), str(target))
        except InterruptedError:
            _discard_partial(partial)
            raise
        except requests.RequestException as exc:
            _discard_partial(partial)
            raise ToolCheckError(f"Failed to download yt-dlp: {exc}") from exc
        except OSError as exc:
            _discard_partial(partial)
            raise ToolCheckError(f"Could not write yt-dlp file: {exc}") from exc
        if os.name != "nt":
            try:
                target.chmod(0o755)
            except OSError as exc:
                raise ToolCheckError(f"Failed to set execute permission: {exc}") from exc

    def download_latest_yt_dlp(self, stop_event: Event | None = None, *, now: datetime | None = None) -> str:
        current_time = now or datetime.now(timezone.utc)
        storage = self.storage_dir
        try:
            storage.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ToolCheckError(f"Could not create save directory: {exc}") from exc
        binary = self.ytdlp_binary_path()
        release_time_file = storage / RELEASE_TIME_FILENAME
        last_check_file = storage / LAST_CHECK_FILENAME

        last_check = _read_timestamp(last_check_file)
        if last_check is not None and current_time - last_check < CHECK_INTERVAL:
            logger.info("Last yt-dlp check was less than 1 hour ago, skipping server check")
            return "yt-dlp is up to date (last checked less than 1 hour ago)"

        existing_runs = self._existing_build_runs(binary)
        release_info = self._fetch_release_info(stop_event)
        published_raw = release_info.get("published_at")
        if published_raw is None:
            raise ToolCheckError("Could not find published_at in release info")
        published_at = _parse_timestamp(published_raw)
        local_release = _read_timestamp(release_time_file)
        if existing_runs and published_at is not None and local_release is not None and local_release >= published_at:
            _write_text(last_check_file, _format_timestamp(current_time))
            logger.info("yt-dlp is already up to date")
            return "yt-dlp is already up to date."

        download_url = self._asset_download_url(release_info, binary.name)
        logger.info("Downloading yt-dlp from %s", download_url)
        self._download_asset(download_url, binary, stop_event)
        if not isinstance(published_raw, str):
            raise ToolCheckError("published_at is not a string")
        _write_text(release_time_file, published_raw)
        # Only a fully successful update counts as a check.
        _write_text(last_check_file, _format_timestamp(current_time))
        return f"yt-dlp downloaded successfully: {binary}"

    def check_ffmpeg_version(self, directory: str = "") -> str:
        sections: list[str] = []
        for tool in ("ffmpeg", "ffprobe"):
            executable = binary_in_directory(directory, tool)
            try:
                completed = _run_version([executable, "-version"])
            except (OSError, subprocess.SubprocessError) as exc:
                raise ToolCheckError(f"Failed to launch {tool}: {exc}") from exc
            if completed.returncode != 0:
                raise ToolCheckError(f"{tool} error: {completed.stderr.strip()}")
            sections.append(f"{tool} version:\n{completed.stdout}")
        return "\n".join(sections)


def transcode_version_line(full_output: str) -> str:
    # The first line is the "ffmpeg version:" banner added above.
    lines = str(full_output or "").split("\n")
    return lines[1] if len(lines) > 1 else ""
