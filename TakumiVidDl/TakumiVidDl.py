"""
TakumiVidDl - batch video downloader built on yt-dlp and FFmpeg

Paste URLs, pick yt-dlp options, check the tools and watch the download
console. Run with `python TakumiVidDl.py`.
"""
from __future__ import annotations

import logging
import sys
from pathlib import Path

from PySide6.QtCore import QLockFile
from PySide6.QtWidgets import QApplication, QMessageBox

from takumividdl.core.app_metadata import APP_NAME, APP_VERSION
from takumividdl.core.logging_setup import configure_logging
from takumividdl.core.paths import runtime_storage_dir

logger = logging.getLogger(APP_NAME)

LOCK_FILENAME = f"{APP_NAME}.lock"
LOCK_TIMEOUT_MS = 200


def acquire_instance_lock(lock_path: Path, *, timeout_ms: int = LOCK_TIMEOUT_MS) -> QLockFile | None:
    """Hold ``lock_path`` for the life of the process; None when another instance has it."""
    lock = QLockFile(str(lock_path))
    # Only a dead owner makes the lock stale, never its age.
    lock.setStaleLockTime(0)
    if not lock.tryLock(max(0, int(timeout_ms))):
        return None
    return lock


def main() -> int:
    configure_logging()
    app = QApplication(sys.argv)
    app.setApplicationName(APP_NAME)
    app.setApplicationVersion(APP_VERSION)

    try:
        lock = acquire_instance_lock(runtime_storage_dir() / LOCK_FILENAME)
    except RuntimeError as exc:
        QMessageBox.critical(None, APP_NAME, str(exc))
        return 1
    if lock is None:
        QMessageBox.information(None, APP_NAME, f"{APP_NAME} is already running.")
        return 0

    try:
        from takumividdl.app_controller import AppController

        try:
            controller = AppController(app)
        except RuntimeError as exc:
            logger.error("Start-up failed: %s", exc)
            QMessageBox.critical(None, APP_NAME, str(exc))
            return 1
        controller.run()
        logger.info("%s %s started", APP_NAME, APP_VERSION)
        return app.exec()
    finally:
        lock.unlock()


if __name__ == "__main__":
    raise SystemExit(main())
