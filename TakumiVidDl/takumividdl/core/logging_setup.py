from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler

LOG_LEVEL_ENV = "TAKUMIVIDDL_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
LOG_FILE_MAX_BYTES = 1024 * 1024
LOG_FILE_BACKUPS = 3


def _resolve_level(level: str | None) -> int:
    name = str(level or os.environ.get(LOG_LEVEL_ENV) or "INFO").strip().upper()
    resolved = logging.getLevelName(name)
    return resolved if isinstance(resolved, int) else logging.INFO


def configure_logging(level: str | None = None, *, log_to_file: bool = True) -> None:
    root = logging.getLogger()
    root.setLevel(_resolve_level(level))
    formatter = logging.Formatter(LOG_FORMAT)

    handlers: list[logging.Handler] = []
    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(formatter)
    handlers.append(stream_handler)

    if log_to_file:
        from .paths import log_file_path

        try:
            file_handler = RotatingFileHandler(
                log_file_path(),
                maxBytes=LOG_FILE_MAX_BYTES,
                backupCount=LOG_FILE_BACKUPS,
                encoding="utf-8",
            )
        except (OSError, RuntimeError) as exc:
            stream_handler.stream.write(f"File logging disabled: {exc}\n")
        else:
            file_handler.setFormatter(formatter)
            handlers.append(file_handler)
    root.handlers = handlers
