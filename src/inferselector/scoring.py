from __future__ import annotations

import re
from typing import Callable, Iterable, Sequence, TypeVar

from .models import SelectorCandidate
from .selector_rules import UNIQUE_ATTRIBUTES
from .selector_tokens import token_count

T = TypeVar("T")

# Lower is better.
PREFERENCE_UNIQUE_ID = -4
PREFERENCE_UNIQUE_SIMPLE = -3
PREFERENCE_CLASS = -2
PREFERENCE_UNIQUE_ANCHORED = -1
PREFERENCE_CLASS_ANCHORED = 0
PREFERENCE_DEFAULT = 1
PREFERENCE_STRUCTURAL = 2

_STRUCTURAL_PSEUDO = re.compile(r":nth-(?:last-)?(?:child|of-type)\(")


def is_structural(selector: str) -> bool:
    return bool(_STRUCTURAL_PSEUDO.search(selector))


def is_selector_usually_unique(selector: str, unique_attributes: Sequence[str] = UNIQUE_ATTRIBUTES) -> bool:
    if selector.startswith("#"):
        return True
    names = "|".join(re.escape(name) for name in unique_attributes)
    return bool(names) and re.match(rf"^\[(?:{names})=", selector) is not None


def selector_preference(selector: str, unique_attributes: Sequence[str] = UNIQUE_ATTRIBUTES) -> int:
    count = token_count(selector)

    if is_structural(selector):
        return PREFERENCE_STRUCTURAL

    if selector.startswith("#") and count == 1:
        return PREFERENCE_UNIQUE_ID

    if is_selector_usually_unique(selector, unique_attributes):
        return PREFERENCE_UNIQUE_SIMPLE if count == 1 else PREFERENCE_UNIQUE_ANCHORED

    if selector.startswith("."):
        return PREFERENCE_CLASS if count == 1 else PREFERENCE_CLASS_ANCHORED

    return PREFERENCE_DEFAULT


def describe_selector(selector: str, unique_attributes: Sequence[str] = UNIQUE_ATTRIBUTES) -> SelectorCandidate:
    return SelectorCandidate(
        selector=selector,
        token_count=token_count(selector),
        starts_with_unique=is_selector_usually_unique(selector, unique_attributes),
        is_structural=is_structural(selector),
        preference=selector_preference(selector, unique_attributes),
    )


def sort_by_preference(
    items: Iterable[T],
    selector_of: Callable[[T], str] | None = None,
    unique_attributes: Sequence[str] = UNIQUE_ATTRIBUTES,
) -> list[T]:
    """Order best-first by preference, then by selector length. Stable for ties."""
    getter = selector_of or (lambda item: item)  # type: ignore[assignment,return-value]

    def _sort_key(item: T) -> tuple[int, int]:
        selector = getter(item)
        return selector_preference(selector, unique_attributes), len(selector)

    return sorted(items, key=_sort_key)
