from __future__ import annotations

import pytest

from takumividdl.core.log_buffer import MAX_LOG_LINES, LogBuffer
from takumividdl.core.models import LogKind, LogLine


def test_default_capacity_is_one_thousand_lines():
    assert LogBuffer().capacity == MAX_LOG_LINES == 1000


def test_append_keeps_newest_and_evicts_oldest():
    log = LogBuffer()
    for index in range(1, 1002):
        log.append(LogLine.raw(f"line {index}"))

    assert len(log) == 1000
    assert log.lines()[0].text == "line 2"
    assert log.last.text == "line 1001"


def test_append_preserves_order_below_capacity():
    log = LogBuffer(capacity=5)
    for text in ("a", "b", "c"):
        log.append(LogLine.raw(text))

    assert [line.text for line in log] == ["a", "b", "c"]


def test_overwrite_replaces_newest_without_growing():
    log = LogBuffer(capacity=3)
    log.append(LogLine.info("start"))
    log.append(LogLine.raw("[download]  1.0%"))

    log.coalesce_or_append(LogLine.raw("[download] 50.0%"), True)

    assert len(log) == 2
    assert [line.text for line in log] == ["start", "[download] 50.0%"]


def test_overwrite_on_full_buffer_never_evicts():
    log = LogBuffer(capacity=2)
    log.append(LogLine.raw("first"))
    log.append(LogLine.raw("second"))

    log.coalesce_or_append(LogLine.raw("replaced"), True)

    assert [line.text for line in log] == ["first", "replaced"]


def test_overwrite_on_empty_buffer_appends():
    log = LogBuffer()
    log.coalesce_or_append(LogLine.raw("progress"), True)

    assert [line.text for line in log] == ["progress"]


def test_plain_coalesce_appends():
    log = LogBuffer()
    log.append(LogLine.raw("one"))
    log.coalesce_or_append(LogLine.error("two"), False)

    assert [(line.text, line.kind) for line in log] == [("one", LogKind.RAW), ("two", LogKind.ERROR)]


def test_clear_empties_the_buffer():
    log = LogBuffer()
    log.append(LogLine.raw("x"))
    log.clear()

    assert len(log) == 0
    assert log.last is None
    assert log.lines() == []


def test_display_text_carries_prefixes():
    log = LogBuffer()
    log.append(LogLine.info("Starting download process..."))
    log.append(LogLine.raw("[youtube] abc: Downloading webpage"))

    assert [line.display for line in log] == [
        "[INFO] Starting download process...",
        "[youtube] abc: Downloading webpage",
    ]


def test_capacity_must_be_positive():
    with pytest.raises(ValueError):
        LogBuffer(capacity=0)
