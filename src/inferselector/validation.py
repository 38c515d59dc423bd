from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Sequence

from bs4 import Tag

from . import dom
from .errors import InvalidSelectorError

LOGGER = logging.getLogger("inferselector.validation")


@dataclass(frozen=True, slots=True)
class SelectorValidation:
    selector: str
    ok: bool
    match_count: int
    message: str


def validate_selector(selector: str, targets: Sequence[Tag], root: Tag) -> SelectorValidation:
    """Resolve ``selector`` under ``root`` and require exactly ``targets`` back."""
    try:
        found = dom.resolve(selector, root)
    except InvalidSelectorError as exc:
        return SelectorValidation(selector, False, 0, str(exc))

    if not found:
        return SelectorValidation(selector, False, 0, "Selector matches nothing.")
    if dom.same_elements(found, targets):
        return SelectorValidation(selector, True, len(found), "Selector matches the target.")
    return SelectorValidation(
        selector,
        False,
        len(found),
        f"Selector matches {len(found)} element(s), expected {len(targets)}.",
    )


def filter_valid_selectors(selectors: Sequence[str], targets: Sequence[Tag], root: Tag) -> list[str]:
    valid: list[str] = []
    for selector in selectors:
        result = validate_selector(selector, targets, root)
        if result.ok:
            valid.append(selector)
        else:
            LOGGER.debug("Discarding candidate %r: %s", selector, result.message)
    return valid
