from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Sequence

from bs4 import Tag

from . import dom
from .errors import BusinessError, InferSelectorError, SelectorInferenceError
from .models import ElementInfo, SelectorType, SiteSelectorHint
from .override_logic import collect_ancestor_overrides
from .scoring import sort_by_preference
from .selector_generator import (
    DEFAULT_SELECTOR_TYPES,
    NON_EXISTENT_SELECTOR,
    SelectorSynthesizer,
    css_escape,
)
from .site_hints import SiteHintResolver
from .validation import filter_valid_selectors

LOGGER = logging.getLogger("inferselector.inference")

# Priority orders tried for every element, most specific first.
SELECTOR_STRATEGIES: tuple[tuple[SelectorType, ...], ...] = (
    ("id", "class", "tag", "attribute", "nthchild"),
    ("tag", "class", "attribute", "nthchild"),
    ("id", "tag", "attribute", "nthchild"),
    ("id", "tag", "attribute"),
    ("class", "tag", "attribute"),
    DEFAULT_SELECTOR_TYPES,
)

ANCESTOR_SELECTOR_TYPES: tuple[SelectorType, ...] = ("id", "class", "tag", "attribute", "nthchild")

BUTTON_TAGS: tuple[str, ...] = ("li", "button", "a", "span", "input", "svg")
MENU_TAGS: tuple[str, ...] = ("ul", "tbody")


def _tag_label(element: Tag) -> str:
    return (element.name or "").upper()


class SingleElementInferencer:
    """Ranked, validated selectors for one element."""

    def __init__(self, synthesizer: SelectorSynthesizer | None = None) -> None:
        self.synthesizer = synthesizer or SelectorSynthesizer()

    @property
    def resolver(self) -> SiteHintResolver:
        return self.synthesizer.resolver

    def infer_selectors(
        self,
        element: Tag,
        root: Tag | None = None,
        exclude_random_classes: bool = False,
    ) -> list[str]:
        selectors: list[str] = []
        for selector_types in SELECTOR_STRATEGIES:
            try:
                selector = self.synthesizer.synthesize(
                    [element],
                    root=root,
                    exclude_random_classes=exclude_random_classes,
                    selector_types=selector_types,
                )
            except InferSelectorError as exc:
                LOGGER.warning("Selector strategy %s failed: %s", list(selector_types), exc)
                continue
            selectors.append(selector)
        return list(dict.fromkeys(selectors))

    def infer_stable_ancestor_selectors(
        self,
        element: Tag,
        root: Tag | None,
        hint: SiteSelectorHint,
        exclude_random_classes: bool = False,
    ) -> list[str]:
        selectors: list[str] = []
        for ancestor in dom.parents_until(element, root):
            anchors = self.synthesizer.unique_attribute_selectors(ancestor, hint)
            if not anchors:
                continue
            for selector in self.infer_selectors(element, ancestor, exclude_random_classes):
                selectors.extend(f"{anchor} {selector}" for anchor in anchors)
        return selectors

    def infer(
        self,
        element: Tag,
        root: Tag | None = None,
        exclude_random_classes: bool = False,
    ) -> ElementInfo:
        hint = self.resolver.resolve(element)
        overrides = collect_ancestor_overrides(element, root, hint)
        synthesis_root = overrides[-1][0] if overrides else root
        prefix = " ".join(selector for _, selector in overrides)

        raw = [
            *self.infer_selectors(element, synthesis_root, exclude_random_classes),
            *self.infer_stable_ancestor_selectors(element, synthesis_root, hint, exclude_random_classes),
        ]
        candidates = list(dict.fromkeys(f"{prefix} {selector}" if prefix else selector for selector in raw))

        scope = root if root is not None else dom.document_of(element)
        valid = filter_valid_selectors(candidates, [element], scope)
        if not valid:
            raise SelectorInferenceError(tag_name=_tag_label(element))

        LOGGER.debug("Inferred %d selector(s) for <%s>", len(valid), dom.tag_name(element))
        return ElementInfo(
            selectors=sort_by_preference(valid, unique_attributes=self.resolver.unique_attributes),
            tag_name=_tag_label(element),
        )


class MultiElementInferencer:
    """One selector for a set of elements, optionally widened to similar elements."""

    def __init__(self, synthesizer: SelectorSynthesizer | None = None) -> None:
        self.synthesizer = synthesizer or SelectorSynthesizer()

    def infer(
        self,
        elements: Sequence[Tag],
        root: Tag | None = None,
        exclude_random_classes: bool = False,
        expand_to_similar: bool = False,
    ) -> ElementInfo:
        targets = dom.unique_elements(elements)
        if not targets:
            return ElementInfo(
                selectors=[NON_EXISTENT_SELECTOR],
                tag_name=NON_EXISTENT_SELECTOR,
                is_multi=True,
            )

        if expand_to_similar:
            selector = self.expanded_selector(targets, root, exclude_random_classes)
        else:
            selector = self.synthesizer.synthesize(
                targets,
                root=root,
                exclude_random_classes=exclude_random_classes,
            )

        return ElementInfo(
            selectors=[selector] if selector else [],
            tag_name=_tag_label(targets[0]),
            is_multi=True,
        )

    def expanded_selector(
        self,
        elements: Sequence[Tag],
        root: Tag | None = None,
        exclude_random_classes: bool = False,
    ) -> str | None:
        """Selector matching ``elements`` and structurally similar elements.

        Not validated: it is expected to match more than the selection.
        """
        if not elements:
            return None

        anchor_attributes = (*self.synthesizer.unique_attributes, "class")
        chains = [
            [
                ancestor
                for ancestor in dom.parents_until(element, root)
                if any(name in ancestor.attrs for name in anchor_attributes)
            ]
            for element in elements
        ]
        common = dom.intersect_elements(chains)
        if not common:
            return None

        ancestor_selector = self.synthesizer.synthesize(
            [common[0]],
            root=root,
            exclude_random_classes=exclude_random_classes,
            selector_types=ANCESTOR_SELECTOR_TYPES,
        )
        scope = root if root is not None else dom.document_of(elements[0])

        common_selector = ancestor_selector
        parent_classes = {dom.attribute_value(element.parent, "class") if element.parent else None for element in elements}
        if len(parent_classes) == 1:
            parent_class = parent_classes.pop()
            if parent_class:
                parent_selector = class_selector(parent_class)
                if not selectors_overlap(ancestor_selector, parent_selector, scope):
                    common_selector = f"{ancestor_selector} {parent_selector} >"

        element_classes = dom.class_list(elements[0])
        for element in elements[1:]:
            others = set(dom.class_list(element))
            element_classes = [name for name in element_classes if name in others]
        if element_classes:
            return f"{common_selector} {class_selector(element_classes[0])}"

        tags = list(dict.fromkeys(css_escape(dom.tag_name(element)) for element in elements))
        return ", ".join(f"{common_selector} {tag}" for tag in tags)


def class_selector(class_attribute: str) -> str:
    return "." + ".".join(css_escape(name) for name in class_attribute.split())


def selectors_overlap(lhs: str, rhs: str, root: Tag) -> bool:
    left = {id(element) for element in dom.resolve(lhs, root)}
    return any(id(element) in left for element in dom.resolve(rhs, root))


def common_ancestor(elements: Sequence[Tag]) -> Tag | None:
    if len(elements) == 1:
        return elements[0].parent
    first, *others = elements
    node: Tag | None = first
    while node is not None and not dom.is_document(node):
        if all(dom.contains_element(node, other) for other in others):
            return node
        node = node.parent
    return None


@dataclass(slots=True)
class ContainerMatch:
    container: Tag
    selectors: list[str]


def find_container(elements: Sequence[Tag], inferencer: SingleElementInferencer | None = None) -> ContainerMatch:
    """Container element for a selection plus selectors for it."""
    inferencer = inferencer or SingleElementInferencer()
    if not elements:
        raise BusinessError("One or more elements required")

    if len(elements) > 1:
        container = common_ancestor(elements)
        if container is None:
            raise BusinessError("Selected elements have no common ancestors")
        return ContainerMatch(container, inferencer.infer_selectors(container))

    element = elements[0]
    container = element
    level = 0
    if dom.tag_name(element) in BUTTON_TAGS and element.parent is not None:
        container = element.parent
        level += 1
    if container.parent is not None and dom.tag_name(container.parent) in MENU_TAGS:
        container = container.parent
        level += 1

    extra: list[str] = []
    if container is not element and dom.tag_name(element) == "input":
        descendant = ">" if level == 1 else "> * >"
        value = (dom.attribute_value(element, "value") or "").replace("'", "\\'")
        candidate = f"{css_escape(dom.tag_name(container))}:has({descendant} input[value='{value}'])"
        if len(dom.resolve(candidate, dom.document_of(element))) == 1:
            extra.append(candidate)

    selectors = list(dict.fromkeys([*extra, *inferencer.infer_selectors(container)]))
    return ContainerMatch(container, selectors)


def infer_element_selector(
    element: Tag,
    root: Tag | None = None,
    *,
    exclude_random_classes: bool = False,
    resolver: SiteHintResolver | None = None,
) -> ElementInfo:
    return SingleElementInferencer(SelectorSynthesizer(resolver)).infer(element, root, exclude_random_classes)


def infer_multi_element_selector(
    elements: Sequence[Tag],
    root: Tag | None = None,
    *,
    exclude_random_classes: bool = False,
    expand_to_similar: bool = False,
    resolver: SiteHintResolver | None = None,
) -> ElementInfo:
    return MultiElementInferencer(SelectorSynthesizer(resolver)).infer(
        elements,
        root,
        exclude_random_classes,
        expand_to_similar,
    )
