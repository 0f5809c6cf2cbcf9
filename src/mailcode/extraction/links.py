"""Verification-link extraction and domain classification."""

import html
import logging
import re
from urllib.parse import urlsplit

from mailcode.extraction.decoder import DecodedBody, strip_tags
from mailcode.extraction.types import LinkCandidate, LinkType

logger = logging.getLogger(__name__)

#: Words that mark a URL (or the text around it) as verification-related.
VERIFICATION_KEYWORDS: tuple[str, ...] = (
    "verify", "verification", "confirm", "confirmation", "activate",
    "validation", "account", "sign-in", "login", "sign in", "signin",
    "log in", "authenticate", "email", "click here", "link", "authorize",
    "approve",
)

_VERIFICATION_PATTERNS: list[re.Pattern[str]] = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"/verify", r"/verification", r"/confirm", r"/validate", r"/activate",
        r"token=", r"code=", r"key=", r"confirm_email", r"email-verification",
        r"verify-email", r"account-confirm", r"sign-in", r"login", r"auth",
    )
]

# Second-level labels that, under a short TLD, form a compound suffix (co.uk).
_COMPOUND_SLDS = frozenset({"co", "com", "org", "net", "gov", "edu"})

_URL_RE = re.compile(r"https?://[^\s<>\"'`]+", re.IGNORECASE)
_HREF_RE = re.compile(r"href\s*=\s*[\"'](http[^\"']+)[\"']", re.IGNORECASE)
_ANCHOR_RE = re.compile(
    r"<a\b[^>]*?href\s*=\s*[\"'](http[^\"']+)[\"'][^>]*>(.*?)</a\s*>",
    re.IGNORECASE | re.DOTALL,
)
_TRAILING_PUNCTUATION = ".,;:!?)]}"

# Lines longer than this are treated as markup soup, not readable context.
_MAX_CONTEXT_LINE = 300


# ── Domains ────────────────────────────────────────────────────────────────────


def base_domain(hostname: str) -> str:
    """Collapse a hostname to its registrable domain.

    >>> base_domain("login.example.co.uk")
    'example.co.uk'
    >>> base_domain("mail.example.com")
    'example.com'
    """
    labels = hostname.lower().split(".")
    if len(labels) <= 2:
        return hostname.lower()
    if labels[-2] in _COMPOUND_SLDS and len(labels[-1]) <= 3:
        return ".".join(labels[-3:])
    return ".".join(labels[-2:])


def _hostname(url: str) -> str | None:
    try:
        host = urlsplit(url).hostname
    except ValueError:
        return None
    return host or None


def base_domain_of_url(url: str) -> str | None:
    """Return the base domain of ``url``, or None if it cannot be parsed."""
    host = _hostname(url)
    return base_domain(host) if host else None


def normalize_target_domain(target: str | None) -> str | None:
    """Reduce a URL or hostname supplied by a caller to its base domain."""
    if not target or not target.strip():
        return None
    target = target.strip()
    host = _hostname(target if "://" in target else "//" + target)
    return base_domain(host) if host else None


# ── Candidate collection ───────────────────────────────────────────────────────


def _has_keyword(text: str) -> bool:
    lowered = text.lower()
    return any(k in lowered for k in VERIFICATION_KEYWORDS)


def _has_indicator(url: str) -> bool:
    return _has_keyword(url) or any(p.search(url) for p in _VERIFICATION_PATTERNS)


def _find_urls(text: str) -> list[str]:
    return [
        html.unescape(m.group(0)).rstrip(_TRAILING_PUNCTUATION)
        for m in _URL_RE.finditer(text)
    ]


def collect_urls(body: DecodedBody) -> list[str]:
    """All candidate URLs in first-seen order: free-text URLs, then hrefs."""
    urls = _find_urls(body.combined_text)
    urls.extend(html.unescape(m.group(1)) for m in _HREF_RE.finditer(body.html))
    return list(dict.fromkeys(u for u in urls if u))


def endorsed_urls(body: DecodedBody) -> set[str]:
    """URLs that sit next to verification wording.

    Anchors whose visible text has a keyword, and URLs on a short
    plain-text line that has one.
    """
    endorsed: set[str] = set()
    for match in _ANCHOR_RE.finditer(body.html):
        if _has_keyword(strip_tags(match.group(2))):
            endorsed.add(html.unescape(match.group(1)))

    for line in body.search_text.splitlines():
        if len(line) > _MAX_CONTEXT_LINE:
            continue
        if _has_keyword(line):
            endorsed.update(_find_urls(line))
    return endorsed


def classify_link(
    url: str, target_domain: str, endorsed: bool = False
) -> LinkCandidate | None:
    """Classify one URL against the target domain; None if unparseable."""
    host = _hostname(url)
    if host is None:
        logger.debug("Skipping unparseable URL %r", url)
        return None
    domain = base_domain(host)
    indicator = _has_indicator(url)

    if domain == target_domain:
        link_type = LinkType.EXACT_DOMAIN
    elif target_domain in host:
        link_type = LinkType.CONTAINS_DOMAIN
    elif indicator:
        link_type = LinkType.VERIFICATION_INDICATOR
    else:
        link_type = LinkType.OTHER

    return LinkCandidate(
        url=url,
        hostname=host,
        base_domain=domain,
        link_type=link_type,
        has_indicator=indicator,
        endorsed=endorsed,
    )


def classify_links(body: DecodedBody, target_domain: str) -> list[LinkCandidate]:
    endorsed = endorsed_urls(body)
    candidates = (classify_link(u, target_domain, u in endorsed) for u in collect_urls(body))
    return [c for c in candidates if c is not None]


# ── Selection ──────────────────────────────────────────────────────────────────


def _is_exact(c: LinkCandidate) -> bool:
    return c.link_type is LinkType.EXACT_DOMAIN


def _is_contains(c: LinkCandidate) -> bool:
    return c.link_type is LinkType.CONTAINS_DOMAIN


def _is_supported(c: LinkCandidate) -> bool:
    return c.endorsed or c.has_indicator


#: Selection tiers, highest priority first.
_TIERS = [
    lambda c: _is_exact(c) and _is_supported(c),
    lambda c: _is_contains(c) and _is_supported(c),
    _is_exact,
    _is_contains,
    lambda c: c.link_type is LinkType.VERIFICATION_INDICATOR,
    lambda c: c.endorsed,
]


def select_link(candidates: list[LinkCandidate]) -> LinkCandidate | None:
    """Return the first candidate of the highest non-empty tier."""
    for tier, accepts in enumerate(_TIERS, start=1):
        for candidate in candidates:
            if accepts(candidate):
                logger.debug("Selected %s link (tier %d): %s",
                             candidate.link_type.value, tier, candidate.url)
                return candidate
    return None


def extract_link(body: DecodedBody, target_domain: str | None) -> LinkCandidate | None:
    """Return the best verification link for ``target_domain``, or None."""
    if not target_domain:
        return None
    return select_link(classify_links(body, target_domain.lower()))
