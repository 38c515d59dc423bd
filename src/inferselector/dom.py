from __future__ import annotations

from typing import Iterable, Iterator

from bs4 import BeautifulSoup, Tag
import soupsieve

from .errors import InvalidSelectorError

HTML_PARSER = "html.parser"


def parse_document(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, HTML_PARSER)


def resolve(selector: str, root: Tag) -> list[Tag]:
    """Return the elements under ``root`` matching ``selector`` in document order.

    Compound parts left of a combinator may match ancestors of ``root``, the
    same way ``querySelectorAll`` treats its scope element.
    """
    try:
        return list(soupsieve.select(selector, root))
    except soupsieve.SelectorSyntaxError as exc:
        raise InvalidSelectorError(selector, str(exc).splitlines()[0]) from exc


def matches(element: Tag, selector: str) -> bool:
    try:
        return bool(soupsieve.match(selector, element))
    except soupsieve.SelectorSyntaxError as exc:
        raise InvalidSelectorError(selector, str(exc).splitlines()[0]) from exc


def is_valid_selector(selector: str) -> bool:
    try:
        soupsieve.compile(selector)
    except soupsieve.SelectorSyntaxError:
        return False
    return True


def is_document(node: Tag | None) -> bool:
    return isinstance(node, BeautifulSoup)


def document_of(element: Tag) -> Tag:
    node = element
    while node.parent is not None:
        node = node.parent
    return node


def body_of(element: Tag) -> Tag:
    document = document_of(element)
    return document.find("body") or document


def ancestors(element: Tag) -> Iterator[Tag]:
    """Yield parents closest first, excluding the document object."""
    for parent in element.parents:
        if is_document(parent):
            return
        yield parent


def parents_until(element: Tag, root: Tag | None) -> list[Tag]:
    result: list[Tag] = []
    for parent in ancestors(element):
        if root is not None and parent is root:
            break
        result.append(parent)
    return result


def is_descendant(element: Tag, root: Tag) -> bool:
    return any(parent is root for parent in element.parents)


def element_children(element: Tag) -> list[Tag]:
    return [child for child in element.children if isinstance(child, Tag)]


def tag_name(element: Tag) -> str:
    return (element.name or "").lower()


def attribute_value(element: Tag, name: str) -> str | None:
    value = element.attrs.get(name)
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        return " ".join(value)
    return str(value)


def attribute_items(element: Tag) -> list[tuple[str, str]]:
    return [(name, attribute_value(element, name) or "") for name in element.attrs]


def class_list(element: Tag) -> list[str]:
    value = attribute_value(element, "class")
    return value.split() if value else []


def text_content(element: Tag) -> str:
    return element.get_text()


def nth_child_index(element: Tag) -> int:
    parent = element.parent
    if parent is None:
        return 1
    for index, child in enumerate(element_children(parent), start=1):
        if child is element:
            return index
    return 1


def nth_of_type_index(element: Tag) -> int:
    parent = element.parent
    if parent is None:
        return 1
    index = 0
    for child in element_children(parent):
        if child.name == element.name:
            index += 1
        if child is element:
            return index
    return 1


def same_elements(found: Iterable[Tag], expected: Iterable[Tag]) -> bool:
    found_ids = [id(item) for item in found]
    expected_ids = {id(item) for item in expected}
    return len(found_ids) == len(expected_ids) and set(found_ids) == expected_ids


def unique_elements(elements: Iterable[Tag]) -> list[Tag]:
    seen: set[int] = set()
    result: list[Tag] = []
    for element in elements:
        if id(element) in seen:
            continue
        seen.add(id(element))
        result.append(element)
    return result


def intersect_elements(lists: list[list[Tag]]) -> list[Tag]:
    """Elements present in every list, ordered as in the first one."""
    if not lists:
        return []
    remaining = [{id(item) for item in items} for items in lists[1:]]
    return [item for item in lists[0] if all(id(item) in ids for ids in remaining)]


def contains_element(container: Tag, element: Tag) -> bool:
    return container is element or is_descendant(element, container)
