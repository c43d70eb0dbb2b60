from __future__ import annotations

import pytest
from PySide6.QtCore import QCoreApplication, QObject, Signal

from takumividdl.core.models import ToolStatus


@pytest.fixture(scope="session")
def qapp():
    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication([])
    return app


class FakeSupervisor(QObject):
    started = Signal()
    stdout = Signal(str, bool)
    stderr = Signal(str, bool)
    completed = Signal(str)
    error = Signal(str)

    def __init__(self, *, fail_with: Exception | None = None) -> None:
        super().__init__()
        self.calls: list[str] = []
        self._fail_with = fail_with

    def start_process(self, command_line: str) -> str:
        if self._fail_with is not None:
            raise self._fail_with
        self.calls.append(command_line)
        return "launched"


@pytest.fixture
def supervisor(qapp):
    return FakeSupervisor()


@pytest.fixture
def healthy_tool():
    return ToolStatus.succeeded("2024.01.01", "yt-dlp is already up to date.")


@pytest.fixture
def broken_tool():
    return ToolStatus.failed("ffmpeg error: not found")


@pytest.fixture
def make_supervisor(qapp):
    return FakeSupervisor
