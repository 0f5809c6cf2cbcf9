"""Sender display-name extraction from message headers."""

import re

from mailcode.gmail.types import Header

_NAME_ADDR_RE = re.compile(r"^\s*(.+?)\s*<[^>]*>\s*$", re.DOTALL)


def extract_sender(headers: list[Header]) -> str | None:
    """Return the display name from the ``From`` header.

    ``Acme Support <no-reply@acme.com>`` gives ``Acme Support``; a bare
    address is returned unchanged.  None when there is no From header.
    """
    for header in headers:
        if header.name.lower() != "from":
            continue
        match = _NAME_ADDR_RE.match(header.value)
        if match:
            return match.group(1).strip().strip('"').strip() or header.value
        return header.value
    return None
