"""Message sources — where a batch of raw messages comes from.

Network retrieval (OAuth, the Gmail REST API) lives outside this package;
anything that can list recent message IDs and return one message satisfies
MessageSource.  JsonMessageSource serves saved API responses from disk.
"""

import json
import logging
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from mailcode.gmail.types import RawMessage, parse_message

logger = logging.getLogger(__name__)


class FetchError(Exception):
    """Raised when one message's content cannot be retrieved."""


class AuthorizationError(FetchError):
    """Raised when retrieval failed because the credential is no longer valid.

    Unlike a plain FetchError this aborts the rest of the batch.
    """


@runtime_checkable
class MessageSource(Protocol):
    """Interface for whatever supplies messages to the extraction core."""

    def list_recent_ids(self, max_results: int) -> list[str]:
        """Return up to ``max_results`` message IDs, most recent first."""
        ...

    def get_message(self, message_id: str) -> RawMessage:
        """Return one message.  Raises FetchError (or AuthorizationError)."""
        ...


class JsonMessageSource:
    """Serves Gmail API ``format=full`` message JSON from disk.

    ``path`` may be a single file holding one message object or a list of
    them, or a directory of such ``*.json`` files.  With ``newer_than`` set,
    only messages whose ``internalDate`` falls inside that window are listed.

    Usage::

        source = JsonMessageSource(Path("fixtures/inbox.json"))
        ids = source.list_recent_ids(5)
        message = source.get_message(ids[0])
    """

    def __init__(self, path: str | Path, newer_than: timedelta | None = None) -> None:
        self._path = Path(path)
        self._newer_than = newer_than
        self._messages: dict[str, dict[str, Any]] | None = None

    def list_recent_ids(self, max_results: int) -> list[str]:
        messages = list(self._load().values())
        if self._newer_than is not None:
            cutoff_ms = int((datetime.now() - self._newer_than).timestamp() * 1000)
            messages = [m for m in messages if _internal_date(m) >= cutoff_ms]
        ordered = sorted(
            messages,
            key=_internal_date,
            reverse=True,
        )
        return [str(m["id"]) for m in ordered[:max_results]]

    def get_message(self, message_id: str) -> RawMessage:
        data = self._load().get(message_id)
        if data is None:
            raise FetchError(f"Message {message_id!r} not found in {self._path}")
        return parse_message(data)

    # ── Internal helpers ───────────────────────────────────────────────────────

    def _load(self) -> dict[str, dict[str, Any]]:
        """Read and index every message once; later calls use the cache."""
        if self._messages is not None:
            return self._messages

        if self._path.is_dir():
            files = sorted(self._path.glob("*.json"))
        elif self._path.is_file():
            files = [self._path]
        else:
            raise FetchError(f"No message file or directory at {self._path}")

        messages: dict[str, dict[str, Any]] = {}
        for file in files:
            try:
                raw = json.loads(file.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError) as exc:
                raise FetchError(f"Could not read messages from {file}: {exc}") from exc

            items = raw if isinstance(raw, list) else [raw]
            for item in items:
                if isinstance(item, dict) and item.get("id"):
                    messages.setdefault(str(item["id"]), item)
                else:
                    logger.warning("Ignoring entry without an id in %s", file)

        logger.debug("Loaded %d message(s) from %s", len(messages), self._path)
        self._messages = messages
        return messages


def _internal_date(data: dict[str, Any]) -> int:
    try:
        return int(data.get("internalDate") or 0)
    except (TypeError, ValueError):
        return 0
