"""Payload decoder — turns a Gmail payload tree into searchable text."""

import base64
import binascii
import logging
import re
from dataclasses import dataclass

from mailcode.gmail.types import MessagePart, RawMessage

logger = logging.getLogger(__name__)

_PLAIN = "text/plain"
_HTML = "text/html"

# Non-greedy tag stripper; deliberately not an HTML parser.
_TAG_RE = re.compile(r"<[^>]*?>", re.DOTALL)


@dataclass(frozen=True)
class DecodedBody:
    """Decoded text of one message.

    ``html`` is kept verbatim for the structure-aware code strategies;
    everything regex-searchable goes through ``search_text``.
    """

    plain_text: str = ""
    html: str = ""
    snippet: str = ""

    @property
    def search_text(self) -> str:
        """Plain text, else tag-stripped HTML, else the snippet."""
        if self.plain_text:
            return self.plain_text
        if self.html:
            return strip_tags(self.html)
        return self.snippet

    @property
    def combined_text(self) -> str:
        """Everything a URL may be found in: search text followed by raw HTML."""
        return "\n".join(t for t in (self.search_text, self.html) if t)

    @property
    def is_empty(self) -> bool:
        return not (self.plain_text or self.html or self.snippet)


def strip_tags(html: str) -> str:
    """Remove every ``<...>`` tag, leaving a space so adjacent words stay apart."""
    return _TAG_RE.sub(" ", html)


def decode_base64url(data: str) -> str:
    """Decode Gmail's base64url body data to text.

    Returns an empty string for malformed input rather than raising, so a
    bad part never takes its siblings down with it.
    """
    normalized = data.replace("-", "+").replace("_", "/")
    normalized += "=" * (-len(normalized) % 4)
    try:
        raw = base64.b64decode(normalized, validate=True)
    except (binascii.Error, ValueError) as exc:
        logger.debug("Skipping undecodable body part: %s", exc)
        return ""
    return raw.decode("utf-8", errors="replace")


def _part_text(part: MessagePart) -> str:
    return decode_base64url(part.body_data) if part.body_data else ""


def decode_payload(message: RawMessage) -> DecodedBody:
    """Produce a DecodedBody from a RawMessage.

    Multipart messages are scanned one level for the first text/plain and
    text/html parts; a nested multipart child is scanned one further level
    and every text body found there is appended in encounter order.
    Single-part messages use the root body.  The snippet is always carried
    as the last-resort fallback.
    """
    payload = message.payload
    plain: list[str] = []
    html: list[str] = []

    if payload.parts:
        found_plain = found_html = False
        for part in payload.parts:
            if part.mime_type == _PLAIN and not found_plain:
                plain.append(_part_text(part))
                found_plain = True
            elif part.mime_type == _HTML and not found_html:
                html.append(_part_text(part))
                found_html = True

            for child in part.parts:
                if child.mime_type == _PLAIN:
                    plain.append(_part_text(child))
                elif child.mime_type == _HTML:
                    html.append(_part_text(child))
    elif payload.body_data:
        text = _part_text(payload)
        if payload.mime_type == _HTML:
            html.append(text)
        else:
            plain.append(text)

    body = DecodedBody(
        plain_text="".join(plain),
        html="".join(html),
        snippet=message.snippet,
    )
    if not (body.plain_text or body.html) and body.snippet:
        logger.debug("Message %s has no decodable body; using snippet", message.id)
    return body
