from __future__ import annotations

from functools import lru_cache
import re
from typing import Iterable
from urllib.parse import urlsplit

from .errors import InvalidPatternError

ALL_URLS = "<all_urls>"
SRCDOC_URL = "about:srcdoc"

# Schemes reachable by "<all_urls>"; privileged browser schemes are excluded.
PERMITTED_SCHEMES = frozenset({"http", "https", "ws", "wss", "ftp", "file", "urn", "data"})
WILDCARD_SCHEMES = ("http", "https", "ws", "wss")

_MATCH_PATTERN = re.compile(
    r"^(?P<scheme>\*|https?|wss?|ftp|file|urn|data)://"
    r"(?P<host>\*|\*\.[^/*:]+(?::\d+)?|[^/*:]+(?::\d+)?)?"
    r"(?P<path>/.*)$"
)


@lru_cache(maxsize=256)
def compile_match_pattern(pattern: str) -> re.Pattern[str]:
    """Translate a browser extension match pattern into a regular expression."""
    if pattern == ALL_URLS:
        schemes = "|".join(sorted(PERMITTED_SCHEMES))
        return re.compile(rf"^(?:{schemes}):")

    match = _MATCH_PATTERN.match(pattern)
    if match is None:
        raise InvalidPatternError(f"Pattern not recognized as valid match pattern: {pattern}", pattern=pattern)

    scheme = match.group("scheme")
    host = match.group("host")
    if scheme != "file" and not host:
        raise InvalidPatternError(f"Pattern not recognized as valid match pattern: {pattern}", pattern=pattern)

    scheme_regex = "(?:" + "|".join(WILDCARD_SCHEMES) + ")" if scheme == "*" else re.escape(scheme)

    host = host or ""
    hostname, _, port = host.partition(":")
    if hostname == "*":
        host_regex = r"[^/:]+"
    elif hostname.startswith("*."):
        host_regex = rf"(?:[^/:]+\.)?{re.escape(hostname[2:].lower())}"
    else:
        host_regex = re.escape(hostname.lower())
    port_regex = rf":{port}" if port else r"(?::\d+)?"
    if scheme == "file":
        port_regex = ""

    path_regex = ".*".join(re.escape(piece) for piece in match.group("path").split("*"))
    return re.compile(rf"^{scheme_regex}://{host_regex}{port_regex}{path_regex}$", re.DOTALL)


def _normalize_url(url: str) -> str:
    parts = urlsplit(url)
    if not parts.scheme or parts.scheme in ("about", "data", "urn") or (not parts.netloc and parts.scheme != "file"):
        return url
    host = (parts.hostname or "").lower()
    netloc = f"{host}:{parts.port}" if parts.port else host
    normalized = f"{parts.scheme.lower()}://{netloc}{parts.path or '/'}"
    if parts.query:
        normalized = f"{normalized}?{parts.query}"
    return normalized


def url_matches_patterns(patterns: Iterable[str], url: str) -> bool:
    """True if ``url`` matches any pattern. Invalid patterns raise ``InvalidPatternError``."""
    pattern_list = list(patterns)
    if url == SRCDOC_URL:
        for pattern in pattern_list:
            compile_match_pattern(pattern)
        return ALL_URLS in pattern_list

    normalized = _normalize_url(url)
    matched = False
    for pattern in pattern_list:
        if compile_match_pattern(pattern).match(normalized):
            matched = True
    return matched
