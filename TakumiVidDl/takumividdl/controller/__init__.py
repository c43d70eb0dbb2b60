from .orchestrator import ExecutionOrchestrator
from .process_supervisor import ProcessSupervisor
from .session import JobSession
from .stream_consumer import ProcessEventConsumer
from .tool_monitor import DOWNLOAD_TOOL, TRANSCODE_TOOL, ToolStatusMonitor

__all__ = [
    "DOWNLOAD_TOOL",
    "TRANSCODE_TOOL",
    "ExecutionOrchestrator",
    "JobSession",
    "ProcessEventConsumer",
    "ProcessSupervisor",
    "ToolStatusMonitor",
]
