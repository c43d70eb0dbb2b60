from __future__ import annotations

import pytest

from takumividdl.core.url_input import (
    URL_LIST_FILENAME,
    UrlListError,
    iter_non_empty_lines,
    persist_url_list,
)


def test_persist_trims_and_skips_blank_lines(tmp_path):
    path = persist_url_list("  https://a.example/1 \n\n\t\nhttps://b.example/2\r\n", tmp_path)

    assert path == str(tmp_path / URL_LIST_FILENAME)
    assert (tmp_path / URL_LIST_FILENAME).read_text(encoding="utf-8") == (
        "https://a.example/1\nhttps://b.example/2\n"
    )


def test_persist_overwrites_previous_list(tmp_path):
    persist_url_list("https://old.example", tmp_path)
    persist_url_list("https://new.example", tmp_path)

    assert (tmp_path / URL_LIST_FILENAME).read_text(encoding="utf-8") == "https://new.example\n"


def test_persist_creates_missing_directory(tmp_path):
    target = tmp_path / "nested" / "dir"

    persist_url_list("https://a.example", target)

    assert (target / URL_LIST_FILENAME).is_file()


def test_persist_rejects_blank_input(tmp_path):
    with pytest.raises(UrlListError, match="No valid URLs provided"):
        persist_url_list(" \n \n", tmp_path)

    assert not (tmp_path / URL_LIST_FILENAME).exists()


def test_persist_reports_write_failure(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")

    with pytest.raises(UrlListError, match="Failed to write URL list"):
        persist_url_list("https://a.example", blocker)


def test_non_empty_lines_are_trimmed():
    assert list(iter_non_empty_lines("\n  first \nsecond\n")) == ["first", "second"]
    assert list(iter_non_empty_lines("")) == []
