from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

logger = logging.getLogger(__name__)

URL_LIST_FILENAME = "url-list.txt"


class UrlListError(RuntimeError):
    pass


def iter_non_empty_lines(text: str) -> Iterator[str]:
    for raw_line in str(text or "").splitlines():
        value = str(raw_line or "").strip()
        if value:
            yield value


def persist_url_list(urls: str, directory: str | Path | None = None) -> str:
    """Write one trimmed URL per line into the batch file yt-dlp reads; returns its path."""
    lines = list(iter_non_empty_lines(urls))
    if not lines:
        raise UrlListError("No valid URLs provided")
    if directory is None:
        from .paths import tool_storage_dir

        directory = tool_storage_dir()
    target_dir = Path(directory)
    target = target_dir / URL_LIST_FILENAME
    try:
        target_dir.mkdir(parents=True, exist_ok=True)
        target.write_text("".join(f"{line}\n" for line in lines), encoding="utf-8")
    except OSError as exc:
        raise UrlListError(f"Failed to write URL list: {exc}") from exc
    logger.debug("Wrote %d URL(s) to %s", len(lines), target)
    return str(target)
