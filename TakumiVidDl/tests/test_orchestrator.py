from __future__ import annotations

import pytest

from takumividdl.controller.orchestrator import ExecutionOrchestrator
from takumividdl.controller.session import JobSession
from takumividdl.core.models import JobSettings, JobState, LogKind, LogLine
from takumividdl.core.process_service import ProcessStartError
from takumividdl.core.url_input import UrlListError, persist_url_list


@pytest.fixture
def ready_session(healthy_tool, tmp_path):
    return JobSession(
        settings=JobSettings(urls="https://example.com/v1", output_directory=str(tmp_path / "out")),
        download_tool=healthy_tool,
        transcode_tool=healthy_tool,
    )


def _orchestrator(session, supervisor, writer=None):
    return ExecutionOrchestrator(session, supervisor, write_url_list=writer or (lambda _urls: "/tmp/url-list.txt"))


def test_happy_path_runs_to_success(ready_session, supervisor, tmp_path):
    writer_dir = tmp_path / "tools"
    orchestrator = _orchestrator(ready_session, supervisor, lambda urls: persist_url_list(urls, writer_dir))
    states: list[str] = []
    orchestrator.stateChanged.connect(states.append)

    assert orchestrator.risks() == []
    assert orchestrator.request_start()
    assert orchestrator.can_confirm()
    assert orchestrator.confirm()

    assert len(supervisor.calls) == 1
    batch_file = str(writer_dir / "url-list.txt")
    assert supervisor.calls[0].startswith(f'--batch-file "{batch_file}" --paths "temp:./tmp"')
    assert orchestrator.state == JobState.RUNNING.value

    supervisor.started.emit()
    supervisor.stdout.emit("[download]  10.0%", False)
    supervisor.stdout.emit("[download] 100.0%", True)
    supervisor.completed.emit("success")

    display = [line.display for line in ready_session.log]
    assert display[0] == "[INFO] Starting download process..."
    assert f"[INFO] URLs file created: {batch_file}" in display
    assert any(line.startswith("[INFO] Executing command: yt-dlp --batch-file") for line in display)
    assert "[download] 100.0%" in display
    assert "[download]  10.0%" not in display
    assert display[-1] == "[SUCCESS] yt-dlp process completed successfully."
    assert orchestrator.state == JobState.SUCCEEDED.value
    assert orchestrator.current_run.outcome == "success"
    assert states == ["confirming", "running", "succeeded"]


def test_risky_start_needs_acknowledgement(healthy_tool, supervisor):
    session = JobSession(
        settings=JobSettings(urls="", output_directory="/videos"),
        download_tool=healthy_tool,
        transcode_tool=healthy_tool,
    )
    orchestrator = _orchestrator(session, supervisor)

    assert orchestrator.request_start()
    assert orchestrator.risks() == ["No download URLs provided"]
    assert not orchestrator.can_confirm()
    assert not orchestrator.confirm()
    assert supervisor.calls == []

    orchestrator.set_acknowledged(True)

    assert orchestrator.can_confirm()
    assert orchestrator.confirm()
    assert len(supervisor.calls) == 1


def test_url_list_failure_never_starts_process(ready_session, supervisor):
    def failing_writer(_urls):
        raise UrlListError("disk full")

    orchestrator = _orchestrator(ready_session, supervisor, failing_writer)
    orchestrator.request_start()

    assert orchestrator.confirm()

    errors = [line for line in ready_session.log if line.kind == LogKind.ERROR]
    assert len(errors) == 1
    assert "disk full" in errors[0].text
    assert supervisor.calls == []
    assert orchestrator.state == JobState.FAILED.value


def test_start_failure_is_reported_once(ready_session, make_supervisor):
    supervisor = make_supervisor(fail_with=ProcessStartError("Invalid command line syntax - failed to parse arguments"))
    orchestrator = _orchestrator(ready_session, supervisor)
    orchestrator.request_start()
    orchestrator.confirm()

    errors = [line.display for line in ready_session.log if line.kind == LogKind.ERROR]
    assert errors == ["[ERROR] Process failed: Invalid command line syntax - failed to parse arguments"]
    assert orchestrator.state == JobState.FAILED.value


def test_error_event_fails_the_job(ready_session, supervisor):
    orchestrator = _orchestrator(ready_session, supervisor)
    orchestrator.request_start()
    orchestrator.confirm()

    supervisor.error.emit("Failed to spawn yt-dlp: missing")

    assert orchestrator.state == JobState.FAILED.value
    assert ready_session.log.last == LogLine.error("Failed to spawn yt-dlp: missing")


def test_nonzero_exit_fails_the_job(ready_session, supervisor):
    orchestrator = _orchestrator(ready_session, supervisor)
    orchestrator.request_start()
    orchestrator.confirm()

    supervisor.completed.emit("failed")

    assert orchestrator.state == JobState.FAILED.value
    assert ready_session.log.last.display == "[ERROR] yt-dlp process failed."


def test_custom_options_are_logged_and_passed(ready_session, supervisor):
    ready_session.update_settings(selection_mode="custom", custom_options="--extract-audio")
    orchestrator = _orchestrator(ready_session, supervisor)
    orchestrator.request_start()
    orchestrator.confirm()

    assert "[INFO] Custom options: --extract-audio" in [line.display for line in ready_session.log]
    assert supervisor.calls[0].endswith("--extract-audio")


def test_reset_is_blocked_while_running(ready_session, supervisor):
    orchestrator = _orchestrator(ready_session, supervisor)
    orchestrator.request_start()
    orchestrator.confirm()

    assert orchestrator.is_processing()
    assert not orchestrator.reset()
    assert orchestrator.state == JobState.RUNNING.value


def test_reset_clears_log_and_drops_late_events(ready_session, supervisor):
    orchestrator = _orchestrator(ready_session, supervisor)
    orchestrator.request_start()
    orchestrator.confirm()
    supervisor.completed.emit("success")

    assert orchestrator.reset()
    supervisor.stdout.emit("late output", False)

    assert len(ready_session.log) == 0
    assert orchestrator.state == JobState.IDLE.value
    assert orchestrator.current_run is None


def test_second_job_does_not_hear_first_consumer(ready_session, supervisor):
    orchestrator = _orchestrator(ready_session, supervisor)
    orchestrator.request_start()
    orchestrator.confirm()
    supervisor.completed.emit("success")
    orchestrator.reset()

    orchestrator.request_start()
    orchestrator.confirm()
    supervisor.stdout.emit("only once", False)

    assert [line.text for line in ready_session.log].count("only once") == 1


def test_cancel_returns_to_idle(ready_session, supervisor):
    orchestrator = _orchestrator(ready_session, supervisor)
    orchestrator.request_start()
    orchestrator.set_acknowledged(True)

    assert orchestrator.cancel()
    assert orchestrator.state == JobState.IDLE.value
    assert not orchestrator.acknowledged
    assert not orchestrator.cancel()


def test_request_start_only_from_idle(ready_session, supervisor):
    orchestrator = _orchestrator(ready_session, supervisor)

    assert orchestrator.request_start()
    assert not orchestrator.request_start()
    assert orchestrator.state == JobState.CONFIRMING.value


def test_confirm_outside_confirming_is_refused(ready_session, supervisor):
    orchestrator = _orchestrator(ready_session, supervisor)

    assert not orchestrator.confirm()
    assert supervisor.calls == []
