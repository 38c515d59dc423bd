from __future__ import annotations

import logging
import re
from typing import Sequence
from urllib.parse import urlsplit

from bs4 import Tag

from . import dom
from .match_patterns import url_matches_patterns
from .models import RequiredSelector, SitePredicate, SiteSelectorHint
from .selector_rules import UNIQUE_ATTRIBUTES, attribute_selector_regex

LOGGER = logging.getLogger("inferselector.hints")

NEUTRAL_HINT = SiteSelectorHint(name="default")


def site_validator(
    *,
    hostnames: Sequence[str] = (),
    match_patterns: Sequence[str] = (),
    selector: str | None = None,
) -> SitePredicate:
    """Predicate that holds when every given condition holds for an element and location.

    ``hostnames`` entries match the host exactly or as a parent domain
    (``force.com`` matches ``acme.lightning.force.com``).
    """
    suffixes = tuple(host.lower().lstrip(".") for host in hostnames)
    patterns = tuple(match_patterns)

    def _validate(element: Tag, location: str) -> bool:
        host = (urlsplit(location).hostname or "").lower()
        if suffixes and not any(host == suffix or host.endswith(f".{suffix}") for suffix in suffixes):
            return False
        if patterns and not url_matches_patterns(patterns, location):
            return False
        if selector and not dom.resolve(selector, dom.document_of(element)):
            return False
        return True

    return _validate


class SiteHintResolver:
    """Selects the first site hint whose validator accepts an element."""

    def __init__(self, hints: Sequence[SiteSelectorHint] = (), location: str = "") -> None:
        self._hints = tuple(hints)
        self.location = location
        merged = list(UNIQUE_ATTRIBUTES)
        for hint in self._hints:
            merged.extend(name for name in hint.unique_attributes if name not in merged)
        self._unique_attributes = tuple(merged)

    @property
    def hints(self) -> tuple[SiteSelectorHint, ...]:
        return self._hints

    @property
    def unique_attributes(self) -> tuple[str, ...]:
        return self._unique_attributes

    def resolve(self, element: Tag) -> SiteSelectorHint:
        for hint in self._hints:
            if hint.site_validator(element, self.location):
                LOGGER.debug("Using site hint %s for %s", hint.name, self.location or "<no location>")
                return hint
        return NEUTRAL_HINT

    def with_location(self, location: str) -> SiteHintResolver:
        return SiteHintResolver(self._hints, location)


SALESFORCE_HINT = SiteSelectorHint(
    name="Salesforce",
    site_validator=site_validator(hostnames=("lightning.force.com",)),
    bad_patterns=(
        attribute_selector_regex("data-aura-rendered-by", "data-aura-class", "data-interactive-lib-uid"),
        re.compile(r"^#\d+:\d+;a$"),
        re.compile(r"^\[data-target-selection-name="),
    ),
    overrides=(RequiredSelector(".oneConsoleTab .active.oneContent"), RequiredSelector(".active.oneContent")),
    stable_anchors=(re.compile(r"^\.forceRecordLayout$"), re.compile(r"^\.slds-")),
    unique_attributes=("data-component-id",),
)

DEFAULT_SITE_HINTS: tuple[SiteSelectorHint, ...] = (SALESFORCE_HINT,)
