"""Shared pytest fixtures."""

import base64
from collections.abc import Callable
from typing import Any

import pytest


def encode_body(text: str) -> str:
    """Encode text the way Gmail does: base64url without padding."""
    return base64.urlsafe_b64encode(text.encode("utf-8")).decode("ascii").rstrip("=")


@pytest.fixture
def api_message() -> Callable[..., dict[str, Any]]:
    """Factory for Gmail API ``format=full`` message dicts."""

    def _make(
        id: str = "msg_001",
        *,
        plain: str | None = None,
        html: str | None = None,
        sender: str = "Acme Support <no-reply@acme.com>",
        snippet: str = "",
        internal_date: int | None = 1_700_000_000_000,
    ) -> dict[str, Any]:
        parts = []
        if plain is not None:
            parts.append({"mimeType": "text/plain", "body": {"data": encode_body(plain)}})
        if html is not None:
            parts.append({"mimeType": "text/html", "body": {"data": encode_body(html)}})
        data: dict[str, Any] = {
            "id": id,
            "snippet": snippet,
            "payload": {
                "mimeType": "multipart/alternative",
                "headers": [
                    {"name": "Subject", "value": "Your code"},
                    {"name": "From", "value": sender},
                ],
                "parts": parts,
            },
        }
        if internal_date is not None:
            data["internalDate"] = str(internal_date)
        return data

    return _make
