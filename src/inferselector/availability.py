from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any, Mapping, Protocol

from bs4 import Tag

from . import dom
from .models import AvailabilityRule
from .match_patterns import url_matches_patterns
from .url_pattern import url_matches_url_patterns

LOGGER = logging.getLogger("inferselector.availability")


class AvailabilityContext(Protocol):
    url: str
    is_top_frame: bool

    def count_matches(self, selector: str) -> int: ...


@dataclass(slots=True)
class DocumentContext:
    """Availability context over a parsed document."""

    url: str
    document: Tag | None = None
    is_top_frame: bool = True

    def count_matches(self, selector: str) -> int:
        if self.document is None:
            return 0
        return len(dom.resolve(selector, self.document))


def _as_tuple(value: Any) -> tuple[Any, ...]:
    if value is None:
        return ()
    if isinstance(value, (str, Mapping)):
        return (value,)
    return tuple(value)


def normalize_availability(
    rule: AvailabilityRule | Mapping[str, Any] | None = None,
) -> AvailabilityRule:
    """Fill defaults and coerce scalar entries into one-element tuples."""
    if isinstance(rule, AvailabilityRule):
        raw: Mapping[str, Any] = {
            "match_patterns": rule.match_patterns,
            "url_patterns": rule.url_patterns,
            "selectors": rule.selectors,
            "all_frames": rule.all_frames,
        }
    else:
        raw = rule or {}

    def _pick(snake: str, camel: str) -> Any:
        return raw.get(snake, raw.get(camel))

    all_frames = _pick("all_frames", "allFrames")
    return AvailabilityRule(
        match_patterns=_as_tuple(_pick("match_patterns", "matchPatterns")),
        url_patterns=_as_tuple(_pick("url_patterns", "urlPatterns")),
        selectors=_as_tuple(_pick("selectors", "selectors")),
        all_frames=True if all_frames is None else bool(all_frames),
    )


def is_available(
    rule: AvailabilityRule | Mapping[str, Any] | None,
    context: AvailabilityContext,
    *,
    url: str | None = None,
) -> bool:
    """Check a rule against the current frame.

    Categories are checked cheapest first and the first failing one wins:
    frame scope, match patterns, URL patterns, then selector presence.
    Malformed patterns raise ``InvalidPatternError`` instead of failing closed.
    """
    normalized = normalize_availability(rule)
    current_url = url if url is not None else context.url

    if not normalized.all_frames and not context.is_top_frame:
        LOGGER.debug("Not available: rule is limited to the top frame")
        return False

    if normalized.match_patterns and not url_matches_patterns(normalized.match_patterns, current_url):
        LOGGER.debug("Not available: %s does not match %s", current_url, list(normalized.match_patterns))
        return False

    if normalized.url_patterns and not url_matches_url_patterns(list(normalized.url_patterns), current_url):
        LOGGER.debug("Not available: %s does not match URL patterns", current_url)
        return False

    if normalized.selectors and not any(context.count_matches(selector) > 0 for selector in normalized.selectors):
        LOGGER.debug("Not available: no element matches %s", list(normalized.selectors))
        return False

    return True
