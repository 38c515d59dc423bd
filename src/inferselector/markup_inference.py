from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
import logging
import re
from typing import Sequence, Union

from bs4 import BeautifulSoup, CData, Comment, NavigableString, PageElement, Tag

from . import dom
from .errors import BusinessError
from .selector_inference import BUTTON_TAGS
from .selector_rules import (
    CONTENT_READY_ATTR,
    MARKER_DATA_ATTR,
    STARTER_DATA_ATTR,
    UNIQUE_ATTRIBUTES,
    SelectorPattern,
    matches_any_pattern,
)

LOGGER = logging.getLogger("inferselector.markup")

CAPTION_PLACEHOLDER = "{{{ caption }}}"
ICON_PLACEHOLDER = "{{{ icon }}}"
HEADING_PLACEHOLDER = "{{{ heading }}}"
BODY_PLACEHOLDER = "{{{ body }}}"

BUTTON_SELECTORS: tuple[str, ...] = ("[role='button']",)
ICON_TAGS = ("svg", "img")
CAPTION_TAGS = ("td", "a", "li", "span")
MULTI_ATTRS = ("class", "rel")
HEADER_TAGS = ("header", "h1", "h2", "h3", "h4", "h5", "h6")
LAYOUT_TAGS = ("section", "header", "div", "article", "aside")
TEXT_TAGS = ("span", "p", "b", "h1", "h2", "h3", "h4", "h5", "h6")

# A class value here means the whole node is decoration and is dropped.
ATTR_SKIP_ELEMENT_PATTERNS: tuple[SelectorPattern, ...] = (
    re.compile(r"^chevron-down$"),
    re.compile(r"^([\dA-Za-z]+)-chevron-down$"),
)

# Never copied into templates; differs from the selector blacklist.
TEMPLATE_ATTR_EXCLUDE_PATTERNS: tuple[SelectorPattern, ...] = (
    *UNIQUE_ATTRIBUTES,
    STARTER_DATA_ATTR,
    MARKER_DATA_ATTR,
    CONTENT_READY_ATTR,
    re.compile(r"^_ngcontent-"),
    re.compile(r"^_nghost-"),
    re.compile(r"^ng-"),
    "tabindex",
    re.compile(r"^aria-(?!role).*$"),
)

TEMPLATE_VALUE_EXCLUDE_PATTERNS: dict[str, tuple[SelectorPattern, ...]] = {
    "class": (re.compile(r"^ember-view$"),),
}

_NON_RENDERED = (Comment, CData)
_FACTORY = BeautifulSoup("", dom.HTML_PARSER)

Template = Union[Tag, str]


class _SkipElement(Exception):
    pass


@dataclass(slots=True)
class _PanelState:
    in_header: bool = False
    heading_inserted: bool = False
    body_inserted: bool = False


def _new_element(name: str, attrs: dict[str, str | list[str]] | None = None) -> Tag:
    return _FACTORY.new_tag(name, attrs=attrs or {})


def _outer_html(node: Template) -> str:
    return node if isinstance(node, str) else str(node)


def _is_text(node: PageElement) -> bool:
    return isinstance(node, NavigableString) and not isinstance(node, _NON_RENDERED)


def _has_text_node_child(element: Tag) -> bool:
    return any(_is_text(child) for child in element.contents)


def _ignore_div_child(node: PageElement) -> bool:
    return isinstance(node, _NON_RENDERED) or (_is_text(node) and not str(node).strip())


def common_attribute(items: Sequence[Tag], name: str) -> str | None:
    values = [dom.attribute_value(item, name) for item in items]

    if name in MULTI_ATTRS:
        token_lists = [value.split(" ") if value else [] for value in values]
        unfiltered = list(dict.fromkeys(token_lists[0]))
        for tokens in token_lists[1:]:
            unfiltered = [token for token in unfiltered if token in tokens]
    elif len(set(values)) == 1 and values[0] is not None:
        unfiltered = values[0].split(" ")
    else:
        return None

    exclude = TEMPLATE_VALUE_EXCLUDE_PATTERNS.get(name, ())
    filtered = [value for value in unfiltered if not matches_any_pattern(value, exclude)]
    return " ".join(filtered) if filtered else None


def _set_common_attributes(common: Tag, items: Sequence[Tag]) -> None:
    for name in items[0].attrs:
        if matches_any_pattern(name, TEMPLATE_ATTR_EXCLUDE_PATTERNS):
            continue
        value = common_attribute(items, name)
        if value is None:
            continue
        if any(matches_any_pattern(token, ATTR_SKIP_ELEMENT_PATTERNS) for token in value.split(" ")):
            raise _SkipElement(f"Attribute {name} contains a value in the skip list")
        common[name] = value


def remove_unstyled_layout(node: PageElement) -> PageElement | None:
    """Copy ``node`` without comments, collapsing classless single-child divs."""
    if isinstance(node, _NON_RENDERED):
        return None

    if isinstance(node, Tag):
        non_empty = [child for child in node.contents if not _ignore_div_child(child)]
        if dom.tag_name(node) == "div" and not (dom.attribute_value(node, "class") or "").strip() and len(non_empty) == 1:
            return remove_unstyled_layout(non_empty[0])

        clone = _new_element(
            node.name,
            {name: list(value) if isinstance(value, list) else value for name, value in node.attrs.items()},
        )
        for child in node.contents:
            copied = remove_unstyled_layout(child)
            if copied is not None:
                clone.append(copied)
        return clone

    return NavigableString(str(node))


def common_button_structure(items: Sequence[Tag], captioned: bool = False) -> tuple[Template, bool]:
    proto = items[0]
    tag = dom.tag_name(proto)

    if tag in ICON_TAGS:
        return ICON_PLACEHOLDER, captioned

    common = _new_element(proto.name)
    try:
        _set_common_attributes(common, items)
    except _SkipElement:
        return "", captioned

    # Children are assumed to line up from the start.
    element_index = 0
    for child in list(proto.contents):
        if _is_text(child) and not captioned and str(child).strip():
            common.append(CAPTION_PLACEHOLDER)
            captioned = True
        elif isinstance(child, Tag) and _aligned_children(items, element_index):
            children = [dom.element_children(item)[element_index] for item in items]
            generalized, child_captioned = common_button_structure(children, captioned)
            if generalized:
                common.append(generalized)
            captioned = captioned or child_captioned
            element_index += 1

    if tag == "a":
        common["href"] = "#"

    if not captioned and not dom.element_children(common) and tag in CAPTION_TAGS:
        common.append(CAPTION_PLACEHOLDER)
        captioned = True

    return common, captioned


def _aligned_children(items: Sequence[Tag], index: int) -> bool:
    children = [dom.element_children(item) for item in items]
    if not all(index < len(child_list) for child_list in children):
        return False
    return len({child_list[index].name for child_list in children}) == 1


def common_button_html(items: Sequence[Tag]) -> str:
    if not items:
        raise BusinessError("No items provided")
    normalized = [node for node in (remove_unstyled_layout(item) for item in items) if isinstance(node, Tag)]
    common, _ = common_button_structure(normalized)
    return _outer_html(common)


def container_children(container: Tag, selected: Sequence[Tag]) -> list[Tag]:
    """Direct children of ``container`` holding each selected element, exact matches first."""
    children = dom.element_children(container)
    result: list[Tag] = []
    for element in selected:
        exact = next((child for child in children if child is element), None)
        if exact is None:
            exact = next((child for child in children if dom.is_descendant(element, child)), None)
        if exact is None:
            raise BusinessError("Element not found in container")
        result.append(exact)
    return result


def most_common_tag(elements: Sequence[Tag]) -> str:
    counts = Counter(dom.tag_name(element) for element in elements)
    return counts.most_common(1)[0][0]


def infer_button_html(container: Tag, selected: Sequence[Tag]) -> str:
    """Generalized button template for the selected examples inside ``container``."""
    if not selected:
        raise BusinessError("One or more prototype button-like elements required")

    if len(selected) > 1:
        children = container_children(container, selected)
        voted = most_common_tag(selected)
        # Majority tag first so it drives the structure.
        ordered = sorted(zip(selected, children), key=lambda pair: dom.tag_name(pair[0]) != voted)
        LOGGER.debug("Generalizing %d examples, voted root tag <%s>", len(children), voted)
        return common_button_html([child for _, child in ordered])

    element = selected[0]
    for button_tag in (*BUTTON_SELECTORS, *BUTTON_TAGS):
        items = [child for child in dom.element_children(container) if dom.matches(child, button_tag)]
        if not items or not any(dom.contains_element(item, element) for item in items):
            continue
        if button_tag == "input":
            common_type = common_attribute(items, "type") or "button"
            input_type = "button" if common_type in ("submit", "reset") else common_type
            return f'<input type="{input_type}" value="{CAPTION_PLACEHOLDER}" />'
        return common_button_html(items)

    raise BusinessError(f"Did not find any button-like tags in container {(container.name or '').upper()}")


def _has_descendant_tag(element: Tag, tags: Sequence[str]) -> bool:
    return any(element.find(tag) is not None for tag in tags)


def _common_panel_structure(items: Sequence[Tag], state: _PanelState) -> tuple[Template, _PanelState]:
    proto = items[0]
    in_header = state.in_header or dom.tag_name(proto) in HEADER_TAGS
    heading_inserted = state.heading_inserted
    body_inserted = state.body_inserted

    common = _new_element(proto.name)
    try:
        _set_common_attributes(common, items)
    except _SkipElement:
        return "", state

    for index, proto_child in enumerate(dom.element_children(proto)):
        child_tag = dom.tag_name(proto_child)
        if _aligned_children(items, index) and (not heading_inserted or child_tag in LAYOUT_TAGS):
            children = [dom.element_children(item)[index] for item in items]
            inner, inner_state = _common_panel_structure(
                children,
                _PanelState(in_header=in_header, heading_inserted=heading_inserted, body_inserted=body_inserted),
            )
            heading_inserted = inner_state.heading_inserted
            body_inserted = inner_state.body_inserted
            if inner:
                common.append(inner)
        elif not heading_inserted and _has_descendant_tag(proto_child, HEADER_TAGS):
            header, _ = _build_header(proto_child)
            common.append(header)
            heading_inserted = True
        elif not in_header and not body_inserted and child_tag not in LAYOUT_TAGS:
            common.append(BODY_PLACEHOLDER)
            body_inserted = True

    if in_header and not heading_inserted and _has_text_node_child(proto):
        common.append(HEADING_PLACEHOLDER)
        heading_inserted = True

    return common, _PanelState(in_header, heading_inserted, body_inserted)


def _build_header(proto: Tag) -> tuple[Tag, bool]:
    tag = dom.tag_name(proto)
    inferred = _new_element(proto.name)
    _set_common_attributes(inferred, [proto])

    inserted = False
    for child in dom.element_children(proto):
        child_header, child_inserted = _build_header(child)
        inferred.append(child_header)
        inserted = inserted or child_inserted

    if not inserted and tag in TEXT_TAGS and _has_text_node_child(proto):
        inferred.append(HEADING_PLACEHOLDER)
        inserted = True

    return inferred, inserted


def _build_body(proto: Tag) -> tuple[Template, bool]:
    tag = dom.tag_name(proto)
    if tag not in LAYOUT_TAGS:
        return BODY_PLACEHOLDER, True

    inferred = _new_element(proto.name)
    _set_common_attributes(inferred, [proto])

    inserted = False
    for child in dom.element_children(proto):
        if dom.tag_name(child) in LAYOUT_TAGS:
            child_body, child_inserted = _build_body(child)
            inserted = inserted or child_inserted
            inferred.append(child_body)
        elif not inserted:
            inserted = True
            inferred.append(BODY_PLACEHOLDER)

    return inferred, inserted


def build_single_panel_element(proto: Tag, heading_inserted: bool = False) -> tuple[Tag, _PanelState]:
    inferred = _new_element(proto.name)
    _set_common_attributes(inferred, [proto])

    body_inserted = False
    for child in dom.element_children(proto):
        if not heading_inserted and _has_descendant_tag(child, HEADER_TAGS):
            header, _ = _build_header(child)
            inferred.append(header)
            heading_inserted = True
        elif heading_inserted and not body_inserted:
            child_body, child_inserted = _build_body(child)
            inferred.append(child_body)
            body_inserted = body_inserted or child_inserted

    return inferred, _PanelState(False, heading_inserted, body_inserted)


def infer_panel_html(container: Tag, selected: Sequence[Tag]) -> str:
    """Generalized panel template with heading and body placeholders."""
    if not selected:
        raise BusinessError("One or more prototype panel elements required")

    if len(selected) > 1:
        children = container_children(container, selected)
        common, state = _common_panel_structure(children, _PanelState())
        if not state.body_inserted:
            LOGGER.warning("No body detected for panel")
        if not state.heading_inserted:
            LOGGER.warning("No heading detected for panel")
        return _outer_html(common)

    child = container_children(container, selected)[0]
    panel, _ = build_single_panel_element(child)
    return _outer_html(panel)


class MarkupGeneralizer:
    """Turns example elements inside a container into a reusable HTML template."""

    def __init__(self, kind: str = "button") -> None:
        if kind not in ("button", "panel"):
            raise ValueError(f"Unknown template kind: {kind}")
        self.kind = kind

    def generalize(self, container: Tag, selected: Sequence[Tag]) -> str:
        if self.kind == "panel":
            return infer_panel_html(container, selected)
        return infer_button_html(container, selected)
