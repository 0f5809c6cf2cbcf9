"""Data types for Gmail API message resources (``format=full``)."""

import logging
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Header:
    """A single ``name: value`` header pair, in the order Gmail returned it."""

    name: str
    value: str


@dataclass(frozen=True)
class MessagePart:
    """One node of a message payload tree.

    ``body_data`` is the raw base64url text from ``body.data``; multipart
    containers carry their children in ``parts`` and usually no body.
    """

    mime_type: str = ""
    headers: list[Header] = field(default_factory=list)
    body_data: str | None = None
    parts: list["MessagePart"] = field(default_factory=list)


@dataclass(frozen=True)
class RawMessage:
    """A message as handed to the extraction core, before any decoding.

    Fields:
        id:        Gmail message ID
        payload:   root of the MIME part tree
        snippet:   short plain-text preview generated by Gmail
        timestamp: receipt time in ms since epoch (Gmail ``internalDate``)
    """

    id: str
    payload: MessagePart = field(default_factory=MessagePart)
    snippet: str = ""
    timestamp: int | None = None

    @property
    def headers(self) -> list[Header]:
        return self.payload.headers


def parse_part(data: dict[str, Any]) -> MessagePart:
    """Map a Gmail ``MessagePart`` dict to a MessagePart, recursively."""
    headers = [
        Header(name=str(h.get("name", "")), value=str(h.get("value", "")))
        for h in data.get("headers") or []
        if isinstance(h, dict)
    ]
    body = data.get("body") or {}
    body_data = body.get("data") if isinstance(body, dict) else None
    return MessagePart(
        mime_type=str(data.get("mimeType", "")),
        headers=headers,
        body_data=str(body_data) if body_data else None,
        parts=[parse_part(p) for p in data.get("parts") or [] if isinstance(p, dict)],
    )


def parse_message(data: dict[str, Any]) -> RawMessage:
    """Map a Gmail API message dict to a RawMessage.

    Missing or malformed fields degrade to empty values so that one odd
    message never prevents the rest of a batch from being examined.
    """
    raw_ts = data.get("internalDate")
    try:
        timestamp = int(raw_ts) if raw_ts is not None else None
    except (TypeError, ValueError):
        logger.debug("Ignoring non-numeric internalDate %r on %s", raw_ts, data.get("id"))
        timestamp = None

    payload = data.get("payload")
    return RawMessage(
        id=str(data.get("id", "")),
        payload=parse_part(payload) if isinstance(payload, dict) else MessagePart(),
        snippet=str(data.get("snippet") or ""),
        timestamp=timestamp,
    )
