"""Batch aggregator — per-message extraction plus cross-message ranking.

For every message the decoder, code, link and sender extractors run once;
messages that yield neither a code nor a usable link are dropped.  rank()
then picks one code, one link and one sender for the whole batch:

  1. the most recent code-bearing message supplies the code (and sender);
  2. if that message has no link, the best domain link from any message is
     attached (exact_domain before contains_domain, then most recent);
  3. with no code anywhere, the best domain link alone is returned;
  4. otherwise the result is empty.

Everything here is pure: identical input always gives an identical result.
"""

import logging
from collections.abc import Callable, Iterable

from mailcode.extraction.codes import extract_code
from mailcode.extraction.decoder import decode_payload
from mailcode.extraction.links import extract_link
from mailcode.extraction.sender import extract_sender
from mailcode.extraction.types import (
    DOMAIN_LINK_TYPES,
    AggregateResult,
    LinkType,
    MessageResult,
)
from mailcode.gmail.source import AuthorizationError, FetchError
from mailcode.gmail.types import RawMessage

logger = logging.getLogger(__name__)

#: Fetches one message by ID; raises FetchError or AuthorizationError.
Fetcher = Callable[[str], RawMessage]


def extract_message(message: RawMessage, target_domain: str | None = None) -> MessageResult | None:
    """Run every extractor over one message.

    Returns None when the message has nothing usable.  Links classified as
    ``other`` are never surfaced.
    """
    body = decode_payload(message)
    if body.is_empty:
        logger.debug("Message %s has no text to search", message.id)
        return None

    code = extract_code(body, message.id)
    link = extract_link(body, target_domain)
    if link is not None and link.link_type is LinkType.OTHER:
        logger.debug("Dropping unrelated link from message %s: %s", message.id, link.url)
        link = None

    if code is None and link is None:
        return None

    return MessageResult(
        message_id=message.id,
        sender=extract_sender(message.headers),
        code=code.value if code else None,
        link=link.url if link else None,
        link_type=link.link_type if link else None,
        timestamp=message.timestamp,
    )


def _recency(result: MessageResult) -> int:
    return result.timestamp or 0


def _domain_link_rank(result: MessageResult) -> tuple[bool, int]:
    return result.link_type is LinkType.EXACT_DOMAIN, _recency(result)


def _best_domain_link(results: list[MessageResult]) -> MessageResult | None:
    with_links = [r for r in results if r.link and r.link_type in DOMAIN_LINK_TYPES]
    return max(with_links, key=_domain_link_rank) if with_links else None


def rank(results: list[MessageResult]) -> AggregateResult:
    """Pick the batch answer from retained per-message results.

    Ties on timestamp go to the earlier entry in ``results``.
    """
    with_code = [r for r in results if r.code]
    if with_code:
        winner = max(with_code, key=_recency)
        link = winner.link
        if not link:
            donor = _best_domain_link(results)
            link = donor.link if donor else None
        return AggregateResult(code=winner.code, link=link, sender=winner.sender)

    donor = _best_domain_link(results)
    if donor is not None:
        return AggregateResult(link=donor.link, sender=donor.sender)
    return AggregateResult()


def _rank_batch(results: list[MessageResult]) -> AggregateResult:
    result = rank(results)
    logger.info(
        "Batch: %d result(s) retained; code=%s link=%s",
        len(results),
        "yes" if result.code else "no",
        "yes" if result.link else "no",
    )
    return result


def aggregate(messages: Iterable[RawMessage], target_domain: str | None = None) -> AggregateResult:
    """Extract and rank an already-fetched batch."""
    results = [r for r in (extract_message(m, target_domain) for m in messages) if r]
    return _rank_batch(results)


def aggregate_fetched(
    message_ids: Iterable[str],
    fetch: Fetcher,
    target_domain: str | None = None,
) -> AggregateResult:
    """Fetch messages one by one and rank whatever was processed.

    A message whose fetch raises FetchError is skipped.  An
    AuthorizationError stops the batch: later IDs are never fetched and
    only the messages already processed are ranked.
    """
    results: list[MessageResult] = []
    for message_id in message_ids:
        try:
            message = fetch(message_id)
        except AuthorizationError as exc:
            logger.error(
                "Authorization failed fetching message %s: %s — aborting batch",
                message_id,
                exc,
            )
            break
        except FetchError as exc:
            logger.warning("Skipping message %s: %s", message_id, exc)
            continue

        result = extract_message(message, target_domain)
        if result is not None:
            results.append(result)

    return _rank_batch(results)
