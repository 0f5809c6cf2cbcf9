"""Types for the code/link extraction pipeline."""

from dataclasses import dataclass
from enum import Enum


class LinkType(str, Enum):
    """How a candidate URL relates to the caller's target domain."""

    EXACT_DOMAIN = "exact_domain"
    CONTAINS_DOMAIN = "contains_domain"
    VERIFICATION_INDICATOR = "verification_indicator"
    OTHER = "other"


#: Link types the aggregator may use when searching across messages.
DOMAIN_LINK_TYPES: frozenset[LinkType] = frozenset(
    {LinkType.EXACT_DOMAIN, LinkType.CONTAINS_DOMAIN}
)


class CodeStrategy(str, Enum):
    """Which step of the code cascade produced a match (diagnostics only)."""

    CONTEXTUAL_NUMERIC = "contextual_numeric"
    STANDALONE_NUMERIC = "standalone_numeric"
    ISOLATED_ELEMENT = "isolated_element"
    STYLED_ELEMENT = "styled_element"
    VISUALLY_SEPARATED = "visually_separated"


# ── Per-message candidates ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class CodeCandidate:
    value: str
    strategy: CodeStrategy


@dataclass(frozen=True)
class LinkCandidate:
    """A URL found in a message body, classified against the target domain.

    ``has_indicator`` is true when the URL itself matches a verification
    keyword or path/parameter pattern; ``endorsed`` when surrounding anchor
    text or the same plain-text line carries a verification keyword.
    """

    url: str
    hostname: str
    base_domain: str
    link_type: LinkType
    has_indicator: bool = False
    endorsed: bool = False


@dataclass(frozen=True)
class MessageResult:
    """What one message contributed to a batch.

    Produced by extract_message() and consumed by rank().  Only built when a
    code or a surfaced link exists.
    """

    message_id: str
    sender: str | None = None
    code: str | None = None
    link: str | None = None
    link_type: LinkType | None = None
    timestamp: int | None = None


# ── Batch result ───────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class AggregateResult:
    """The single answer for a batch.  All fields None means nothing found."""

    code: str | None = None
    link: str | None = None
    sender: str | None = None

    @property
    def is_empty(self) -> bool:
        return self.code is None and self.link is None

    def to_dict(self) -> dict[str, str | None]:
        """Response shape of the request/response boundary."""
        return {"code": self.code, "link": self.link, "sender": self.sender}
