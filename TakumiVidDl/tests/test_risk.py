from __future__ import annotations

from takumividdl.core.models import JobSettings, ToolStatus
from takumividdl.core.risk import (
    RISK_DOWNLOAD_TOOL,
    RISK_NO_OUTPUT_DIRECTORY,
    RISK_NO_URLS,
    RISK_TRANSCODE_TOOL,
    evaluate_risks,
)


def test_no_risks_when_everything_is_ready(healthy_tool):
    settings = JobSettings(urls="https://example.com/v", output_directory="/videos")

    assert evaluate_risks(healthy_tool, healthy_tool, settings) == []


def test_all_risks_in_fixed_order(broken_tool):
    settings = JobSettings(urls="  \n ", output_directory=" ")

    assert evaluate_risks(broken_tool, broken_tool, settings) == [
        RISK_DOWNLOAD_TOOL,
        RISK_TRANSCODE_TOOL,
        RISK_NO_OUTPUT_DIRECTORY,
        RISK_NO_URLS,
    ]


def test_missing_urls_is_the_only_risk(healthy_tool):
    settings = JobSettings(urls="", output_directory="/videos")

    assert evaluate_risks(healthy_tool, healthy_tool, settings) == ["No download URLs provided"]


def test_pending_check_is_not_a_risk(healthy_tool):
    settings = JobSettings(urls="https://example.com/v", output_directory="/videos")

    assert evaluate_risks(ToolStatus.pending(), healthy_tool, settings) == []


def test_transcode_failure_alone(healthy_tool, broken_tool):
    settings = JobSettings(urls="https://example.com/v", output_directory="/videos")

    assert evaluate_risks(healthy_tool, broken_tool, settings) == [RISK_TRANSCODE_TOOL]
