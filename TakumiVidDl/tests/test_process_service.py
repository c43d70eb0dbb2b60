from __future__ import annotations

import io
import sys
import threading

import pytest

from takumividdl.core import process_service
from takumividdl.core.process_service import (
    OutputLineSplitter,
    ProcessLaunchError,
    ProcessService,
    ProcessStartError,
    decode_output,
    parse_command_line,
    pump_stream,
)


def _collect(data: bytes, fallback_encoding: str = "utf-8") -> list[tuple[str, bool]]:
    lines: list[tuple[str, bool]] = []
    pump_stream(
        io.BytesIO(data),
        lambda content, overwrite: lines.append((content, overwrite)),
        fallback_encoding=fallback_encoding,
    )
    return lines


def test_splitter_marks_carriage_return_lines_as_redraws():
    splitter = OutputLineSplitter()

    assert splitter.feed("a\nb\rc\r\nd") == [("a", False), ("b", True), ("c", False)]
    assert splitter.flush() == [("d", False)]


def test_splitter_handles_crlf_split_across_chunks():
    splitter = OutputLineSplitter()

    assert splitter.feed("50%\r") == []
    assert splitter.feed("\n") == [("50%", False)]


def test_splitter_drops_empty_redraws():
    splitter = OutputLineSplitter()

    assert splitter.feed("\r\rx\n") == [("x", False)]


def test_splitter_keeps_empty_plain_lines():
    assert OutputLineSplitter().feed("\n") == [("", False)]


def test_splitter_strips_ansi_sequences():
    splitter = OutputLineSplitter()

    assert splitter.feed("\x1b[0;32mok\x1b[0m\n") == [("ok", False)]


def test_pump_stream_reports_progress_redraws():
    lines = _collect(b"[download]  10.0%\r[download]  55.5%\r[download] 100.0%\n[Merger] done\n")

    assert lines == [
        ("[download]  10.0%", True),
        ("[download]  55.5%", True),
        ("[download] 100.0%", False),
        ("[Merger] done", False),
    ]


def test_pump_stream_decodes_multibyte_across_chunks(monkeypatch):
    monkeypatch.setattr(process_service, "READ_CHUNK_BYTES", 1)

    assert _collect("日本語 title\r".encode("utf-8")) == [("日本語 title", True)]


def test_pump_stream_replaces_invalid_bytes():
    assert _collect(b"\xffok\n") == [("\ufffdok", False)]


def test_pump_stream_decodes_legacy_code_page_lines():
    data = "[download] 動画.mp4\n".encode("cp932")

    assert _collect(data, fallback_encoding="cp932") == [("[download] 動画.mp4", False)]


def test_pump_stream_decodes_each_line_on_its_own():
    data = "utf8 動画\n".encode("utf-8") + "cp932 動画\r".encode("cp932")

    assert _collect(data, fallback_encoding="cp932") == [("utf8 動画", False), ("cp932 動画", True)]


def test_decode_output_unknown_fallback_replaces():
    assert decode_output(b"\xffok", "no-such-codec") == "\ufffdok"


def test_pump_stream_flushes_trailing_text():
    assert _collect(b"no newline") == [("no newline", False)]


def test_parse_command_line_respects_quotes():
    assert parse_command_line('--batch-file "C:/a b/list.txt" -f best') == [
        "--batch-file",
        "C:/a b/list.txt",
        "-f",
        "best",
    ]


def test_parse_command_line_rejects_unbalanced_quotes():
    with pytest.raises(ProcessStartError, match="Invalid command line syntax"):
        parse_command_line('-o "unterminated')


def test_run_streams_both_pipes(tmp_path):
    script = (
        "import sys\n"
        "sys.stdout.write('line one\\nprogress 1\\rprogress 2\\n')\n"
        "sys.stderr.write('WARNING: careful\\n')\n"
        "sys.exit(3)\n"
    )
    stdout: list[tuple[str, bool]] = []
    stderr: list[tuple[str, bool]] = []
    started: list[bool] = []

    code = ProcessService(working_dir=tmp_path).run(
        [],
        threading.Event(),
        on_started=lambda: started.append(True),
        on_stdout=lambda content, overwrite: stdout.append((content, overwrite)),
        on_stderr=lambda content, overwrite: stderr.append((content, overwrite)),
        executable=[sys.executable, "-c", script],
    )

    assert code == 3
    assert started == [True]
    assert stdout == [("line one", False), ("progress 1", True), ("progress 2", False)]
    assert stderr == [("WARNING: careful", False)]


def test_run_passes_arguments_verbatim(tmp_path):
    stdout: list[tuple[str, bool]] = []

    ProcessService(working_dir=tmp_path).run(
        ["--paths", "home:/a b", "; rm -rf /"],
        threading.Event(),
        on_stdout=lambda content, overwrite: stdout.append((content, overwrite)),
        executable=[sys.executable, "-c", "import sys; print('|'.join(sys.argv[1:]))"],
    )

    assert stdout == [("--paths|home:/a b|; rm -rf /", False)]


def test_run_asks_python_children_for_utf8(tmp_path):
    stdout: list[tuple[str, bool]] = []

    ProcessService(working_dir=tmp_path).run(
        [],
        threading.Event(),
        on_stdout=lambda content, overwrite: stdout.append((content, overwrite)),
        executable=[sys.executable, "-c", "import sys; print(sys.stdout.encoding.lower()); print(\"\\u52d5\\u753b\")"],
    )

    assert stdout == [("utf-8", False), ("動画", False)]


def test_run_reports_spawn_failure(tmp_path):
    with pytest.raises(ProcessLaunchError, match="Failed to spawn yt-dlp"):
        ProcessService(working_dir=tmp_path).run(
            [],
            threading.Event(),
            executable=[str(tmp_path / "missing-binary")],
        )
