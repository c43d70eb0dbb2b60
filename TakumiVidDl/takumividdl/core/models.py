from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class LogKind(StrEnum):
    INFO = "info"
    ERROR = "error"
    SUCCESS = "success"
    RAW = "raw"


_LOG_PREFIXES = {
    LogKind.INFO: "[INFO] ",
    LogKind.ERROR: "[ERROR] ",
    LogKind.SUCCESS: "[SUCCESS] ",
}


class SelectionMode(StrEnum):
    AUTOMATIC = "auto"
    CUSTOM = "custom"


class JobState(StrEnum):
    IDLE = "idle"
    CONFIRMING = "confirming"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


TERMINAL_JOB_STATES = frozenset({JobState.SUCCEEDED.value, JobState.FAILED.value})


class JobOutcome(StrEnum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass(frozen=True, slots=True)
class LogLine:
    text: str
    kind: LogKind = LogKind.RAW

    @property
    def display(self) -> str:
        prefix = _LOG_PREFIXES.get(self.kind, "")
        return f"{prefix}{self.text}"

    @classmethod
    def info(cls, text: str) -> LogLine:
        return cls(str(text), LogKind.INFO)

    @classmethod
    def error(cls, text: str) -> LogLine:
        return cls(str(text), LogKind.ERROR)

    @classmethod
    def success(cls, text: str) -> LogLine:
        return cls(str(text), LogKind.SUCCESS)

    @classmethod
    def raw(cls, text: str) -> LogLine:
        return cls(str(text), LogKind.RAW)

    @classmethod
    def parse(cls, text: str) -> LogLine:
        value = str(text or "")
        for kind, prefix in _LOG_PREFIXES.items():
            if value.startswith(prefix):
                return cls(value[len(prefix):], kind)
        return cls(value, LogKind.RAW)


@dataclass(frozen=True, slots=True)
class ToolStatus:
    version: str = ""
    full_output: str = ""
    error: str | None = None
    loading: bool = False

    @classmethod
    def pending(cls) -> ToolStatus:
        return cls(loading=True)

    @classmethod
    def succeeded(cls, version: str, full_output: str) -> ToolStatus:
        return cls(version=str(version or ""), full_output=str(full_output or ""))

    @classmethod
    def failed(cls, error: str) -> ToolStatus:
        return cls(error=str(error or "Unknown error"))

    @property
    def is_failed(self) -> bool:
        return self.error is not None

    @property
    def is_ready(self) -> bool:
        return not self.loading and self.error is None


@dataclass(frozen=True, slots=True)
class JobSettings:
    urls: str = ""
    selection_mode: str = SelectionMode.AUTOMATIC.value
    custom_options: str = ""
    tool_directory: str = ""
    output_directory: str = ""

    @property
    def is_custom(self) -> bool:
        return str(self.selection_mode) == SelectionMode.CUSTOM.value


@dataclass(slots=True)
class JobRun:
    settings: JobSettings
    batch_file: str = ""
    command_line: str = ""
    outcome: str = JobOutcome.PENDING.value


@dataclass(slots=True)
class ToolCheckResult:
    tool_name: str
    generation: int
    output: str = ""
    error: str = ""


@dataclass(slots=True)
class AppConfig:
    schema_version: int
    theme_mode: str
    tool_directory: str = ""
    output_directory: str = ""
    selection_mode: str = SelectionMode.AUTOMATIC.value
    custom_options: str = ""
    window_geometry: str = ""
