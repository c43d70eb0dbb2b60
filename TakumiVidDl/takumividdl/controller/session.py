from __future__ import annotations

from dataclasses import dataclass, field, replace

from ..core.log_buffer import LogBuffer
from ..core.models import JobSettings, ToolStatus


@dataclass(slots=True)
class JobSession:
    """State shared by the monitor, the orchestrator and the event consumer for one window."""

    settings: JobSettings = field(default_factory=JobSettings)
    download_tool: ToolStatus = field(default_factory=ToolStatus.pending)
    transcode_tool: ToolStatus = field(default_factory=ToolStatus.pending)
    log: LogBuffer = field(default_factory=LogBuffer)

    def update_settings(self, **changes: object) -> JobSettings:
        self.settings = replace(self.settings, **changes)
        return self.settings
