"""Tests for the JSON-file message source."""

import json
from datetime import datetime, timedelta
from pathlib import Path

import pytest

from mailcode.gmail.source import FetchError, JsonMessageSource, MessageSource


def _write(path: Path, data: object) -> Path:
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


class TestProtocol:
    def test_json_source_satisfies_protocol(self, tmp_path: Path) -> None:
        assert isinstance(JsonMessageSource(tmp_path), MessageSource)


class TestJsonMessageSource:
    def test_list_is_most_recent_first(self, tmp_path: Path, api_message) -> None:
        path = _write(tmp_path / "inbox.json", [
            api_message("old", internal_date=1000),
            api_message("new", internal_date=3000),
            api_message("mid", internal_date=2000),
        ])
        assert JsonMessageSource(path).list_recent_ids(5) == ["new", "mid", "old"]

    def test_list_respects_max_results(self, tmp_path: Path, api_message) -> None:
        path = _write(tmp_path / "inbox.json", [
            api_message("a", internal_date=1), api_message("b", internal_date=2),
        ])
        assert JsonMessageSource(path).list_recent_ids(1) == ["b"]

    def test_single_object_file(self, tmp_path: Path, api_message) -> None:
        path = _write(tmp_path / "one.json", api_message("solo", plain="hi"))
        source = JsonMessageSource(path)
        assert source.list_recent_ids(5) == ["solo"]
        assert source.get_message("solo").id == "solo"

    def test_directory_of_files(self, tmp_path: Path, api_message) -> None:
        _write(tmp_path / "a.json", api_message("a", internal_date=1))
        _write(tmp_path / "b.json", [api_message("b", internal_date=2)])
        (tmp_path / "notes.txt").write_text("ignored")
        assert JsonMessageSource(tmp_path).list_recent_ids(5) == ["b", "a"]

    def test_get_message_parses_payload(self, tmp_path: Path, api_message) -> None:
        path = _write(tmp_path / "inbox.json", [api_message("m1", plain="Code: 123456")])
        message = JsonMessageSource(path).get_message("m1")
        assert message.payload.parts[0].mime_type == "text/plain"
        assert message.timestamp == 1_700_000_000_000

    def test_unknown_id_raises_fetch_error(self, tmp_path: Path, api_message) -> None:
        path = _write(tmp_path / "inbox.json", [api_message("m1")])
        with pytest.raises(FetchError, match="not found"):
            JsonMessageSource(path).get_message("nope")

    def test_entries_without_id_are_ignored(self, tmp_path: Path, api_message) -> None:
        path = _write(tmp_path / "inbox.json", [{"snippet": "no id"}, api_message("m1")])
        assert JsonMessageSource(path).list_recent_ids(5) == ["m1"]

    def test_invalid_json_raises_fetch_error(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(FetchError):
            JsonMessageSource(path).list_recent_ids(5)

    def test_missing_path_raises_fetch_error(self, tmp_path: Path) -> None:
        with pytest.raises(FetchError):
            JsonMessageSource(tmp_path / "missing.json").list_recent_ids(5)


class TestNewerThanWindow:
    @staticmethod
    def _ms_ago(minutes: int) -> int:
        return int((datetime.now() - timedelta(minutes=minutes)).timestamp() * 1000)

    def test_old_messages_are_not_listed(self, tmp_path: Path, api_message) -> None:
        path = _write(tmp_path / "inbox.json", [
            api_message("stale", internal_date=self._ms_ago(60)),
            api_message("fresh", internal_date=self._ms_ago(1)),
        ])
        source = JsonMessageSource(path, newer_than=timedelta(minutes=5))
        assert source.list_recent_ids(5) == ["fresh"]

    def test_messages_without_date_are_not_listed(self, tmp_path: Path, api_message) -> None:
        path = _write(tmp_path / "inbox.json", [api_message("undated", internal_date=None)])
        source = JsonMessageSource(path, newer_than=timedelta(minutes=5))
        assert source.list_recent_ids(5) == []

    def test_no_window_lists_everything(self, tmp_path: Path, api_message) -> None:
        path = _write(tmp_path / "inbox.json", [api_message("stale", internal_date=1000)])
        assert JsonMessageSource(path).list_recent_ids(5) == ["stale"]
