from __future__ import annotations

from dataclasses import dataclass
from itertools import product
import logging
import re
from typing import Iterable, Iterator, Sequence

from bs4 import Tag

from . import dom
from .errors import InvalidSelectorError
from .models import SelectorType, SiteSelectorHint
from .selector_rules import (
    UNIQUE_ATTRIBUTES,
    UNSTABLE_SELECTORS,
    SelectorPattern,
    attribute_selector_regex,
    guess_usefulness,
    matches_any_pattern,
)
from .site_hints import SiteHintResolver

LOGGER = logging.getLogger("inferselector.generator")

DEFAULT_SELECTOR_TYPES: tuple[SelectorType, ...] = ("id", "tag", "class", "attribute", "nthoftype", "nthchild")

# Matches nothing in any document; returned for empty selections.
NON_EXISTENT_SELECTOR = "selectnothing"

_COMPOUND_ORDER: tuple[SelectorType, ...] = ("tag", "nthoftype", "id", "class", "attribute", "nthchild")
_GENERATED_ELSEWHERE = frozenset({"id", "class"})
_LEADING_POSITIONAL = re.compile(r"^:nth-")

MAX_FRAGMENTS_PER_TYPE = 8
MAX_COMBINATIONS = 64
MAX_LEVEL_CANDIDATES = 100


def css_escape(value: str) -> str:
    """Serialize ``value`` as a CSS identifier, like the browser's ``CSS.escape``."""
    result: list[str] = []
    length = len(value)
    for index, char in enumerate(value):
        code = ord(char)
        if code == 0:
            result.append("\ufffd")
        elif (
            0x1 <= code <= 0x1F
            or code == 0x7F
            or (index == 0 and char.isdigit() and char.isascii())
            or (index == 1 and char.isdigit() and char.isascii() and value[0] == "-")
        ):
            result.append(f"\\{code:x} ")
        elif index == 0 and char == "-" and length == 1:
            result.append("\\-")
        elif code >= 0x80 or char in "-_" or (char.isascii() and char.isalnum()):
            result.append(char)
        else:
            result.append(f"\\{char}")
    return "".join(result)


def attribute_fragment(name: str, value: str) -> str:
    if not value:
        return f"[{css_escape(name)}]"
    return f"[{css_escape(name)}='{css_escape(value)}']"


def unique_attribute_selector(
    name: str, value: str, unique_attributes: Sequence[str] = UNIQUE_ATTRIBUTES
) -> str | None:
    """Selector fragment for an attribute expected to identify an element on its own."""
    if not value:
        return None
    if name == "id":
        return f"#{css_escape(value)}"
    if name == "title" or name.startswith("aria-") or name in unique_attributes:
        return f"[{name}='{css_escape(value)}']"
    return None


def fallback_selector(element: Tag, root: Tag | None = None) -> str:
    """Child-index path from ``root`` (or from ``<body>``) down to ``element``."""
    anchor: Tag | None = None
    stop = root
    if root is None or dom.is_document(root):
        body = dom.body_of(element)
        if not dom.is_document(body) and dom.is_descendant(element, body):
            anchor = body
        stop = anchor
    parts: list[str] = []
    node: Tag | None = element
    while node is not None and node is not stop and not dom.is_document(node) and dom.tag_name(node) != "html":
        parts.append(f":nth-child({dom.nth_child_index(node)})")
        node = node.parent
    if not parts:
        return css_escape(dom.tag_name(element))
    path = " > ".join(reversed(parts))
    if anchor is not None:
        return f"body > {path}"
    return path


def generate_css_selector(
    elements: Sequence[Tag],
    *,
    root: Tag | None = None,
    selector_types: Sequence[SelectorType] = DEFAULT_SELECTOR_TYPES,
    blacklist: Sequence[SelectorPattern | None] = (),
    whitelist: Sequence[SelectorPattern | None] = (),
) -> str:
    """Shortest selector matching exactly ``elements`` under ``root``.

    Tries the elements themselves first, then the closest ancestor that can be
    identified, descending with that ancestor as a prefix until the elements
    are reached. Falls back to a comma list for several elements and to a
    child-index path for one.
    """
    targets = dom.unique_elements(elements)
    if not targets:
        return NON_EXISTENT_SELECTOR

    scope = root if root is not None else dom.document_of(targets[0])
    options = _GeneratorOptions(tuple(selector_types), tuple(blacklist), tuple(whitelist))

    prefix = ""
    current_root = scope
    while True:
        found = _closest_identifiable(targets, current_root, prefix, scope, options)
        if found is None:
            break
        level, selector = found
        if level is targets or dom.same_elements(dom.resolve(selector, scope), targets):
            return selector
        current_root = level[0]
        prefix = selector

    if len(targets) > 1:
        return ", ".join(
            generate_css_selector(
                [element],
                root=root,
                selector_types=selector_types,
                blacklist=blacklist,
                whitelist=whitelist,
            )
            for element in targets
        )
    return fallback_selector(targets[0], root)


@dataclass(frozen=True, slots=True)
class _GeneratorOptions:
    selector_types: tuple[SelectorType, ...]
    blacklist: tuple[SelectorPattern | None, ...]
    whitelist: tuple[SelectorPattern | None, ...]


def _closest_identifiable(
    targets: list[Tag],
    current_root: Tag,
    prefix: str,
    scope: Tag,
    options: _GeneratorOptions,
) -> tuple[list[Tag], str] | None:
    for level in _levels(targets, current_root):
        for candidate in _level_candidates(level, options):
            selector = f"{prefix} {candidate}" if prefix else candidate
            try:
                found = dom.resolve(selector, scope)
            except InvalidSelectorError as exc:
                LOGGER.debug("Skipping candidate %r: %s", selector, exc)
                continue
            if dom.same_elements(found, level):
                return level, selector
    return None


def _levels(targets: list[Tag], current_root: Tag) -> list[list[Tag]]:
    levels: list[list[Tag]] = []
    if len(targets) > 1:
        levels.append(targets)
    chains = [[element, *dom.parents_until(element, current_root)] for element in targets]
    for node in dom.intersect_elements(chains):
        levels.append(targets if len(targets) == 1 and node is targets[0] else [node])
    return levels


def _element_fragments(element: Tag, selector_type: SelectorType) -> list[str]:
    tag = css_escape(dom.tag_name(element))
    if selector_type == "id":
        value = dom.attribute_value(element, "id")
        return [f"#{css_escape(value)}"] if value else []
    if selector_type == "tag":
        return [tag]
    if selector_type == "class":
        return [f".{css_escape(name)}" for name in dom.class_list(element)]
    if selector_type == "attribute":
        return [
            attribute_fragment(name, value)
            for name, value in dom.attribute_items(element)
            if name not in _GENERATED_ELSEWHERE
        ]
    if selector_type == "nthchild":
        return [f":nth-child({dom.nth_child_index(element)})"]
    if selector_type == "nthoftype":
        return [f"{tag}:nth-of-type({dom.nth_of_type_index(element)})"]
    raise ValueError(f"Unknown selector type: {selector_type}")


def _common_fragments(elements: list[Tag], selector_type: SelectorType) -> list[str]:
    common = _element_fragments(elements[0], selector_type)
    for element in elements[1:]:
        others = set(_element_fragments(element, selector_type))
        common = [fragment for fragment in common if fragment in others]
    return list(dict.fromkeys(common))


def _order_fragments(fragments: Iterable[str], options: _GeneratorOptions) -> list[str]:
    preferred: list[str] = []
    remaining: list[str] = []
    for fragment in fragments:
        if matches_any_pattern(fragment, options.whitelist):
            preferred.append(fragment)
        elif not matches_any_pattern(fragment, options.blacklist):
            remaining.append(fragment)
    return preferred + remaining


def _power_set(items: Sequence[str], limit: int = MAX_COMBINATIONS) -> list[tuple[str, ...]]:
    subsets: list[tuple[str, ...]] = [()]
    for item in items:
        subsets += [subset + (item,) for subset in subsets]
    ordered = sorted((subset for subset in subsets if subset), key=len)
    return ordered[:limit]


def _level_candidates(elements: list[Tag], options: _GeneratorOptions) -> Iterator[str]:
    by_type: dict[SelectorType, list[tuple[str, ...]]] = {}
    for selector_type in options.selector_types:
        fragments = _order_fragments(_common_fragments(elements, selector_type), options)
        if fragments:
            by_type[selector_type] = _power_set(fragments[:MAX_FRAGMENTS_PER_TYPE])

    type_groups = [
        group
        for group in _power_set(list(by_type))
        if not ("tag" in group and "nthoftype" in group)
    ]

    seen: set[str] = set()
    for group in type_groups:
        for parts in product(*(by_type[selector_type] for selector_type in group)):
            chosen = dict(zip(group, parts))
            selector = "".join(
                "".join(chosen[selector_type]) for selector_type in _COMPOUND_ORDER if selector_type in chosen
            )
            if selector in seen:
                continue
            seen.add(selector)
            yield selector
            if len(seen) >= MAX_LEVEL_CANDIDATES:
                return


def _is_random_class(fragment: str) -> bool:
    return fragment.startswith(".") and guess_usefulness(fragment).is_random


class SelectorSynthesizer:
    """Hint-aware selector synthesis for one or more elements."""

    def __init__(self, resolver: SiteHintResolver | None = None) -> None:
        self.resolver = resolver or SiteHintResolver()

    @property
    def unique_attributes(self) -> tuple[str, ...]:
        return self.resolver.unique_attributes

    def blacklist(self, hint: SiteSelectorHint, exclude_random_classes: bool = False) -> list[SelectorPattern | None]:
        return [
            *UNSTABLE_SELECTORS,
            *hint.bad_patterns,
            _is_random_class if exclude_random_classes else None,
        ]

    def whitelist(self, hint: SiteSelectorHint) -> list[SelectorPattern | None]:
        return [attribute_selector_regex(*self.unique_attributes), *hint.stable_anchors]

    def synthesize(
        self,
        elements: Sequence[Tag],
        *,
        root: Tag | None = None,
        exclude_random_classes: bool = False,
        selector_types: Sequence[SelectorType] = DEFAULT_SELECTOR_TYPES,
    ) -> str:
        if not elements:
            return NON_EXISTENT_SELECTOR

        hint = self.resolver.resolve(elements[0])
        selector = generate_css_selector(
            elements,
            root=root,
            selector_types=selector_types,
            blacklist=self.blacklist(hint, exclude_random_classes),
            whitelist=self.whitelist(hint),
        )

        if (root is None or dom.is_document(root)) and _LEADING_POSITIONAL.match(selector):
            selector = f"body {selector}"

        LOGGER.debug("Synthesized %r for %d element(s) with %s", selector, len(elements), list(selector_types))
        return selector

    def unique_attribute_selectors(self, element: Tag, hint: SiteSelectorHint) -> list[str]:
        """Stable selector fragments for ``element`` built from its unique attributes."""
        blacklist = self.blacklist(hint)
        selectors: list[str] = []
        for name in self.unique_attributes:
            value = dom.attribute_value(element, name)
            if value is None:
                continue
            selector = unique_attribute_selector(name, value, self.unique_attributes)
            if selector and not matches_any_pattern(selector, blacklist):
                selectors.append(selector)
        return selectors
