from __future__ import annotations

from .models import JobSettings, ToolStatus

RISK_DOWNLOAD_TOOL = "yt-dlp tool is not available or has errors"
RISK_TRANSCODE_TOOL = "FFmpeg/FFprobe tools are not available or have errors"
RISK_NO_OUTPUT_DIRECTORY = "Output directory is not specified"
RISK_NO_URLS = "No download URLs provided"


def evaluate_risks(
    download_tool: ToolStatus,
    transcode_tool: ToolStatus,
    settings: JobSettings,
) -> list[str]:
    risks: list[str] = []
    if download_tool.error:
        risks.append(RISK_DOWNLOAD_TOOL)
    if transcode_tool.error:
        risks.append(RISK_TRANSCODE_TOOL)
    if not str(settings.output_directory or "").strip():
        risks.append(RISK_NO_OUTPUT_DIRECTORY)
    if not str(settings.urls or "").strip():
        risks.append(RISK_NO_URLS)
    return risks
