"""Tests for Gmail API message parsing."""

import pytest

from mailcode.gmail.types import Header, MessagePart, RawMessage, parse_message, parse_part


class TestParsePart:
    def test_single_part_body(self) -> None:
        part = parse_part({"mimeType": "text/plain", "body": {"data": "SGk", "size": 2}})
        assert part.mime_type == "text/plain"
        assert part.body_data == "SGk"
        assert part.parts == []

    def test_nested_parts(self) -> None:
        part = parse_part({
            "mimeType": "multipart/mixed",
            "body": {"size": 0},
            "parts": [
                {"mimeType": "multipart/alternative", "parts": [
                    {"mimeType": "text/plain", "body": {"data": "YQ"}},
                ]},
            ],
        })
        assert part.body_data is None
        assert part.parts[0].mime_type == "multipart/alternative"
        assert part.parts[0].parts[0].body_data == "YQ"

    def test_headers_keep_order(self) -> None:
        part = parse_part({"headers": [
            {"name": "To", "value": "me@example.com"},
            {"name": "From", "value": "you@example.com"},
        ]})
        assert part.headers == [
            Header("To", "me@example.com"),
            Header("From", "you@example.com"),
        ]

    def test_empty_dict_gives_empty_part(self) -> None:
        assert parse_part({}) == MessagePart()


class TestParseMessage:
    def test_full_message(self, api_message) -> None:
        msg = parse_message(api_message("abc", plain="hello", internal_date=1234))
        assert msg.id == "abc"
        assert msg.timestamp == 1234
        assert msg.payload.parts[0].mime_type == "text/plain"
        assert msg.headers[1] == Header("From", "Acme Support <no-reply@acme.com>")

    def test_missing_internal_date(self, api_message) -> None:
        msg = parse_message(api_message(internal_date=None))
        assert msg.timestamp is None

    def test_non_numeric_internal_date_is_ignored(self) -> None:
        msg = parse_message({"id": "x", "internalDate": "yesterday"})
        assert msg.timestamp is None

    def test_missing_payload_and_snippet(self) -> None:
        msg = parse_message({"id": "x"})
        assert msg.payload == MessagePart()
        assert msg.snippet == ""

    def test_is_frozen(self) -> None:
        msg = RawMessage(id="x")
        with pytest.raises((AttributeError, TypeError)):
            msg.id = "y"  # type: ignore[misc]
