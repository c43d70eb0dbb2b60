from __future__ import annotations

import logging
import threading
from collections.abc import Callable

from PySide6.QtCore import Signal

from .base_worker import BaseWorker
from ..core.models import ToolCheckResult

logger = logging.getLogger(__name__)


class ToolCheckWorker(BaseWorker):
    finishedSummary = Signal(object)

    def __init__(
        self,
        tool_name: str,
        generation: int,
        check: Callable[[threading.Event], str],
    ) -> None:
        super().__init__()
        self._tool_name = str(tool_name or "").strip()
        self._generation = int(generation)
        self._check = check

    @property
    def tool_name(self) -> str:
        return self._tool_name

    def run(self) -> None:
        name = self._tool_name

        def on_result(output: str) -> None:
            self.finishedSummary.emit(
                ToolCheckResult(tool_name=name, generation=self._generation, output=str(output or ""))
            )

        def on_interrupted(_exc: InterruptedError) -> None:
            logger.debug("%s check stopped (generation %d)", name, self._generation)

        def on_error(exc: Exception) -> None:
            self.finishedSummary.emit(
                ToolCheckResult(tool_name=name, generation=self._generation, error=str(exc) or type(exc).__name__)
            )

        self.run_guarded(
            execute=lambda: self._check(self._stop_event),
            on_result=on_result,
            on_error=on_error,
            on_interrupted=on_interrupted,
        )
