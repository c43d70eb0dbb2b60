from __future__ import annotations

from .models import JobSettings

TEMP_PATH_OPTION = '--paths "temp:./tmp"'

CUSTOM_OPTION_PRESETS: tuple[tuple[str, tuple[str, ...]], ...] = (
    (
        "Format selection",
        (
            '-f "bv*+ba/b" -o "%(title).200B [%(id)s].%(ext)s" --no-continue --sleep-requests 2 '
            "--sleep-interval 3 --max-sleep-interval 8 --remux-video mp4/mkv --embed-metadata "
            "--embed-thumbnail --convert-thumbnails png",
            '-f "bestvideo[ext=mp4]+bestaudio[ext=m4a]/best[ext=mp4]/best"',
            '-f "bestvideo[ext=webm]+bestaudio[ext=webm]/best[ext=webm]/best"',
            '-f "bestvideo+bestaudio"',
            '-f "best"',
        ),
    ),
    (
        "Audio extraction",
        (
            "--extract-audio",
            "--audio-format mp3",
            "--audio-format m4a",
            "--audio-format flac",
            "--audio-quality 0",
        ),
    ),
    (
        "Remux and post-processing",
        (
            "--remux-video mkv",
            "--remux-video mp4",
            '-P "ffmpeg:-c:v libx264 -crf 23"',
            '-P "ffmpeg:-c:v copy -c:a aac -b:a 192k"',
            '-P "ffmpeg:-vf scale=1280:-1"',
        ),
    ),
    (
        "Output and metadata",
        (
            '-o "%(title)s.%(ext)s"',
            '-o "%(playlist_index)s - %(title)s.%(ext)s"',
            "--embed-metadata",
            "--embed-thumbnail",
        ),
    ),
    (
        "Subtitles",
        (
            "--embed-subs",
            "--write-subs",
            "--all-subs",
        ),
    ),
    (
        "Download control",
        (
            "--limit-rate 5M",
            "--no-overwrites",
            "--continue",
        ),
    ),
)


def _quoted(value: str) -> str:
    return f'"{value}"'


def build_command_line(settings: JobSettings, batch_file: str) -> str:
    parts = [
        f"--batch-file {_quoted(str(batch_file))}",
        TEMP_PATH_OPTION,
    ]
    output_directory = str(settings.output_directory or "").strip()
    if output_directory:
        parts.append(f"--paths {_quoted('home:' + output_directory)}")
    tool_directory = str(settings.tool_directory or "").strip()
    if tool_directory:
        parts.append(f"--ffmpeg-location {_quoted(tool_directory)}")
    if settings.is_custom:
        custom = str(settings.custom_options or "").strip()
        if custom:
            parts.append(custom)
    return " ".join(parts)


def append_preset(current: str, preset: str) -> str:
    existing = str(current or "")
    if not existing:
        return str(preset)
    return f"{existing.strip()} {preset}"
