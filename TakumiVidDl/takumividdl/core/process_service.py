from __future__ import annotations

import locale
import logging
import os
import re
import shlex
import subprocess
import sys
import threading
from collections.abc import Callable
from pathlib import Path
from typing import IO

from .paths import resolve_binary, tool_storage_dir, ytdlp_asset_name

logger = logging.getLogger(__name__)

_ANSI_ESCAPE_RE = re.compile(r"\x1B\[[0-?]*[ -/]*[@-~]")
READ_CHUNK_BYTES = 4096

LineCallback = Callable[[str, bool], None]


class ProcessStartError(RuntimeError):
    pass


class ProcessLaunchError(RuntimeError):
    pass


def parse_command_line(command_line: str) -> list[str]:
    try:
        return shlex.split(str(command_line or ""))
    except ValueError as exc:
        raise ProcessStartError("Invalid command line syntax - failed to parse arguments") from exc


class OutputLineSplitter:
    """Turns decoded output into ``(content, overwrite)`` lines.

    ``\\n`` closes a normal line and a lone ``\\r`` closes a line that redraws the
    previous one. ``\\r\\n`` counts as a plain line end. A ``\\r`` that closes an
    empty segment is dropped so a redraw never blanks the row above it.
    """

    def __init__(self) -> None:
        self._buffer: list[str] = []
        self._pending_cr = False

    def _take(self) -> str:
        text = _ANSI_ESCAPE_RE.sub("", "".join(self._buffer))
        self._buffer.clear()
        return text

    def _close_redraw(self) -> list[tuple[str, bool]]:
        self._pending_cr = False
        text = self._take()
        return [(text, True)] if text else []

    def feed(self, text: str) -> list[tuple[str, bool]]:
        lines: list[tuple[str, bool]] = []
        for char in str(text or ""):
            if self._pending_cr:
                if char == "\n":
                    self._pending_cr = False
                    lines.append((self._take(), False))
                    continue
                lines.extend(self._close_redraw())
            if char == "\r":
                self._pending_cr = True
            elif char == "\n":
                lines.append((self._take(), False))
            else:
                self._buffer.append(char)
        return lines

    def flush(self) -> list[tuple[str, bool]]:
        if self._pending_cr:
            return self._close_redraw()
        text = self._take()
        return [(text, False)] if text else []


def _creationflags() -> int:
    return subprocess.CREATE_NO_WINDOW if os.name == "nt" else 0


def resolve_ytdlp_command() -> list[str]:
    try:
        downloaded = tool_storage_dir() / ytdlp_asset_name()
    except RuntimeError:
        downloaded = None
    if downloaded is not None and downloaded.is_file():
        return [str(downloaded)]
    on_path = resolve_binary("yt-dlp")
    if on_path:
        return [on_path]
    return [sys.executable, "-m", "yt_dlp"]


def decode_output(data: bytes, fallback_encoding: str) -> str:
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        pass
    try:
        return data.decode(fallback_encoding)
    except (UnicodeDecodeError, LookupError):
        return data.decode("utf-8", errors="replace")


def _decode_segment(segment: bytes, fallback_encoding: str) -> str:
    return "".join(decode_output(part, fallback_encoding) for part in segment.splitlines(keepends=True))


def pump_stream(stream: IO[bytes], on_line: LineCallback, *, fallback_encoding: str | None = None) -> None:
    """Feed a pipe to ``on_line`` one line at a time.

    Bytes are cut at ``\\r``/``\\n`` before decoding, so a multibyte character is
    never split. A line that is not valid UTF-8 falls back to the locale code page.
    """
    encoding = fallback_encoding or locale.getpreferredencoding(False)
    splitter = OutputLineSplitter()
    pending = bytearray()
    reader = getattr(stream, "read1", stream.read)
    while True:
        chunk = reader(READ_CHUNK_BYTES)
        if not chunk:
            break
        pending.extend(chunk)
        cut = max(pending.rfind(b"\n"), pending.rfind(b"\r")) + 1
        if not cut:
            continue
        segment = bytes(pending[:cut])
        del pending[:cut]
        for content, overwrite in splitter.feed(_decode_segment(segment, encoding)):
            on_line(content, overwrite)
    if pending:
        for content, overwrite in splitter.feed(_decode_segment(bytes(pending), encoding)):
            on_line(content, overwrite)
    for content, overwrite in splitter.flush():
        on_line(content, overwrite)


class ProcessService:
    def __init__(self, *, working_dir: str | Path | None = None) -> None:
        self._working_dir = Path(working_dir) if working_dir is not None else None
        self._active_lock = threading.Lock()
        self._active_process: subprocess.Popen[bytes] | None = None

    @staticmethod
    def _kill_process_tree(process: subprocess.Popen[bytes]) -> None:
        if process.poll() is not None:
            return
        try:
            if os.name == "nt":
                subprocess.run(
                    ["taskkill", "/F", "/T", "/PID", str(process.pid)],
                    stdout=subprocess.DEVNULL,
                    stderr=subprocess.DEVNULL,
                    check=False,
                )
            else:
                process.terminate()
                process.wait(timeout=1.0)
        except (OSError, subprocess.SubprocessError):
            try:
                process.kill()
            except OSError:
                pass

    def stop_active(self) -> None:
        with self._active_lock:
            process = self._active_process
        if process is not None:
            logger.info("Stopping yt-dlp process %s", process.pid)
            self._kill_process_tree(process)

    def _resolve_working_dir(self) -> Path:
        target = self._working_dir if self._working_dir is not None else tool_storage_dir()
        target.mkdir(parents=True, exist_ok=True)
        return target

    def run(
        self,
        arguments: list[str],
        cancel_token: threading.Event,
        *,
        on_started: Callable[[], None] | None = None,
        on_stdout: LineCallback | None = None,
        on_stderr: LineCallback | None = None,
        executable: list[str] | None = None,
    ) -> int:
        command = list(executable or resolve_ytdlp_command()) + list(arguments)
        logger.info("Launching %s", command)
        env = os.environ.copy()
        env["PYTHONIOENCODING"] = "utf-8"
        try:
            process = subprocess.Popen(
                command,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                cwd=str(self._resolve_working_dir()),
                env=env,
                creationflags=_creationflags(),
            )
        except (OSError, ValueError) as exc:
            raise ProcessLaunchError(f"Failed to spawn yt-dlp: {exc}") from exc

        with self._active_lock:
            self._active_process = process
        try:
            if on_started is not None:
                on_started()
            stderr_thread = threading.Thread(
                target=pump_stream,
                args=(process.stderr, on_stderr or (lambda _content, _overwrite: None)),
                name="yt-dlp-stderr",
                daemon=True,
            )
            stderr_thread.start()
            pump_stream(process.stdout, on_stdout or (lambda _content, _overwrite: None))
            return_code = process.wait()
            stderr_thread.join()
        finally:
            with self._active_lock:
                self._active_process = None
            for stream in (process.stdout, process.stderr):
                try:
                    if stream is not None:
                        stream.close()
                except OSError:
                    pass
            if cancel_token.is_set():
                self._kill_process_tree(process)
        logger.info("yt-dlp exited with code %s", return_code)
        if cancel_token.is_set():
            raise InterruptedError("yt-dlp process stopped.")
        return return_code
