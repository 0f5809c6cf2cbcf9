"""Request/response boundary between a display surface and the extraction core."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any

from mailcode.extraction.aggregator import aggregate_fetched
from mailcode.extraction.links import normalize_target_domain
from mailcode.extraction.types import AggregateResult
from mailcode.gmail.source import FetchError, MessageSource

logger = logging.getLogger(__name__)

#: Recompute from the latest messages, then respond.
TRIGGER_FETCH = "triggerFetchAndGetCode"
#: Respond with the last computed result, without recomputing.
GET_LATEST = "getLatestCode"

_DEFAULT_MAX_MESSAGES = 5


@dataclass
class ServiceConfig:
    """Batch settings for VerificationService."""

    target_domain: str | None = None
    max_messages: int = _DEFAULT_MAX_MESSAGES

    @classmethod
    def from_env(cls) -> ServiceConfig:
        """Build ServiceConfig from environment variables."""
        raw_max = os.environ.get("MAILCODE_MAX_MESSAGES", str(_DEFAULT_MAX_MESSAGES))
        try:
            max_messages = int(raw_max)
            if max_messages < 1:
                raise ValueError(raw_max)
        except ValueError:
            logger.warning(
                "Invalid MAILCODE_MAX_MESSAGES %r; defaulting to %d",
                raw_max,
                _DEFAULT_MAX_MESSAGES,
            )
            max_messages = _DEFAULT_MAX_MESSAGES
        return cls(
            target_domain=os.environ.get("MAILCODE_TARGET_DOMAIN") or None,
            max_messages=max_messages,
        )


class VerificationService:
    """Runs one extraction batch per request and remembers the last answer.

    The remembered result belongs to this instance; the extraction core
    itself keeps no state between batches.

    Usage::

        service = VerificationService(JsonMessageSource("inbox.json"),
                                      ServiceConfig(target_domain="example.com"))
        response = service.handle_request({"type": "triggerFetchAndGetCode"})
    """

    def __init__(self, source: MessageSource, config: ServiceConfig | None = None) -> None:
        self._source = source
        self._config = config or ServiceConfig()
        self._latest = AggregateResult()

    def trigger_fetch_and_get_code(self, target_domain: str | None = None) -> AggregateResult:
        """List recent messages, run a fresh batch, and store its result.

        ``target_domain`` overrides the configured one for this call only.
        A failure to list messages yields an empty result, never an exception.
        """
        domain = normalize_target_domain(target_domain or self._config.target_domain)
        try:
            ids = self._source.list_recent_ids(self._config.max_messages)
        except FetchError as exc:
            logger.error("Could not list recent messages: %s", exc)
            ids = []

        if not ids:
            logger.info("No recent messages to check")

        self._latest = aggregate_fetched(ids, self._source.get_message, domain)
        return self._latest

    def get_latest_code(self) -> AggregateResult:
        """Return the last computed result (empty before the first run)."""
        return self._latest

    def handle_request(self, request: dict[str, Any]) -> dict[str, str | None] | None:
        """Answer a boundary request.  Unknown request kinds are ignored."""
        kind = request.get("type")
        if kind == TRIGGER_FETCH:
            return self.trigger_fetch_and_get_code().to_dict()
        if kind == GET_LATEST:
            return self.get_latest_code().to_dict()
        logger.warning("Ignoring unknown request type %r", kind)
        return None
