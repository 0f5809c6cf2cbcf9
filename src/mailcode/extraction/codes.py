"""Verification-code extraction — an ordered cascade of regex strategies.

The first two strategies look for numeric codes in the searchable text; the
last three look at HTML structure for codes set apart from the prose, and
run their matches through is_isolated_code() before accepting them.
"""

import logging
import re
from collections.abc import Callable, Iterable

from mailcode.extraction.decoder import DecodedBody
from mailcode.extraction.types import CodeCandidate, CodeStrategy

logger = logging.getLogger(__name__)

# ── Patterns ───────────────────────────────────────────────────────────────────

_CONTEXTUAL_RE = re.compile(
    r"(?:^|\s|code is |is: |code: |verification code )(\d{6,7})(?=$|\s|[.,])",
    re.IGNORECASE,
)
_STANDALONE_RE = re.compile(r"\b(\d{6,7})\b")

_YEAR_MIN = 1900
_YEAR_MAX = 2100

#: Leaf-like elements checked for isolated content, highest priority first.
ISOLATED_TAGS: tuple[str, ...] = (
    "div", "td", "tr",
    "h1", "h2", "h3", "h4", "h5", "h6",
    "p", "span", "strong", "b", "em", "i", "a", "li",
)
_ISOLATED_TAG_RES: list[re.Pattern[str]] = [
    re.compile(rf"<{tag}\b[^>]*>\s*([\w-]{{4,7}})\s*</{tag}\s*>", re.IGNORECASE)
    for tag in ISOLATED_TAGS
]

_STYLED_RE = re.compile(
    r"<[a-z][a-z0-9]*\b[^>]*?\bstyle\s*=\s*(?:\"(?P<dq>[^\">]*)\"|'(?P<sq>[^'>]*)')[^>]*>"
    r"\s*(?P<code>(?-i:[A-Z0-9-]{4,7}))\s*<",
    re.IGNORECASE,
)
_STYLE_HINT_RE = re.compile(
    r"font-size|font-weight|color|background|text-align\s*:\s*center", re.IGNORECASE
)

_SEPARATED_RE = re.compile(r"(?:^|>)\s*([A-Z0-9-]{4,7})\s*(?=<|$)")

_HYPHEN_SHAPE_RE = re.compile(r"^[A-Za-z0-9]{2,4}-[A-Za-z0-9]{1,3}$")
_NAVIGATION_WORDS = frozenset({"click", "here", "login", "go", "open", "view", "visit", "see"})


# ── Classifier ─────────────────────────────────────────────────────────────────


def is_isolated_code(candidate: str) -> bool:
    """Decide whether a token found on its own in markup looks like a code.

    Rules apply in order; the first one that decides wins.
    """
    value = candidate.strip()
    if not 4 <= len(value) <= 7:
        return False
    if value.isdigit() and len(value) >= 5:
        return True
    has_letter = any(c.isalpha() for c in value)
    has_digit = any(c.isdigit() for c in value)
    if has_letter and has_digit:
        return True
    if _HYPHEN_SHAPE_RE.match(value):
        return True
    if value.isalpha():
        return False
    if value.lower() in _NAVIGATION_WORDS:
        return False
    return has_digit


def _is_calendar_year(value: str) -> bool:
    return _YEAR_MIN <= int(value) <= _YEAR_MAX


def _first_isolated(tokens: Iterable[str]) -> str | None:
    for token in tokens:
        if is_isolated_code(token):
            return token.strip()
    return None


# ── Strategies ─────────────────────────────────────────────────────────────────


def _contextual_numeric(body: DecodedBody) -> str | None:
    match = _CONTEXTUAL_RE.search(body.search_text)
    return match.group(1) if match else None


def _standalone_numeric(body: DecodedBody) -> str | None:
    for match in _STANDALONE_RE.finditer(body.search_text):
        value = match.group(1)
        if _is_calendar_year(value):
            logger.debug("Rejecting year-like number %s", value)
            continue
        return value
    return None


def _isolated_element(body: DecodedBody) -> str | None:
    if not body.html:
        return None
    for pattern in _ISOLATED_TAG_RES:
        found = _first_isolated(m.group(1) for m in pattern.finditer(body.html))
        if found:
            return found
    return None


def _styled_element(body: DecodedBody) -> str | None:
    if not body.html:
        return None
    return _first_isolated(
        m.group("code")
        for m in _STYLED_RE.finditer(body.html)
        if _STYLE_HINT_RE.search(m.group("dq") or m.group("sq") or "")
    )


def _visually_separated(body: DecodedBody) -> str | None:
    if not body.html:
        return None
    return _first_isolated(m.group(1) for m in _SEPARATED_RE.finditer(body.html))


#: Tried in order; the first strategy returning a value wins.
STRATEGIES: list[tuple[CodeStrategy, Callable[[DecodedBody], str | None]]] = [
    (CodeStrategy.CONTEXTUAL_NUMERIC, _contextual_numeric),
    (CodeStrategy.STANDALONE_NUMERIC, _standalone_numeric),
    (CodeStrategy.ISOLATED_ELEMENT, _isolated_element),
    (CodeStrategy.STYLED_ELEMENT, _styled_element),
    (CodeStrategy.VISUALLY_SEPARATED, _visually_separated),
]


def extract_code(body: DecodedBody, message_id: str = "") -> CodeCandidate | None:
    """Return the first code found by the strategy cascade, or None."""
    if body.is_empty:
        return None
    for strategy, find in STRATEGIES:
        value = find(body)
        if value:
            logger.debug("Found code via %s in message %s", strategy.value, message_id)
            return CodeCandidate(value=value, strategy=strategy)
    return None
