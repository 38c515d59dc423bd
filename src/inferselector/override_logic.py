from __future__ import annotations

import logging
import re
from typing import Iterable, Mapping

from bs4 import Tag

from . import dom
from .errors import BusinessError, InvalidSelectorError
from .models import ExtractedValue, RequiredSelector, SelectorTemplate, SiteSelectorHint
from .selector_generator import css_escape
from .selector_rules import normalize_space

LOGGER = logging.getLogger("inferselector.overrides")

_PLACEHOLDER = re.compile(r"{{\s*([^{}]*?)\s*}}")
_REFERENCE = re.compile(r"^([A-Za-z_][\w-]*)\.([A-Za-z_][\w:-]*)$")


def stencil_references(template: str) -> list[tuple[str, str]]:
    """``(name, field)`` pairs for every ``{{ name.field }}`` placeholder."""
    references: list[tuple[str, str]] = []
    for match in _PLACEHOLDER.finditer(template):
        reference = _REFERENCE.match(match.group(1))
        if reference is None:
            raise BusinessError(f"Invalid placeholder {match.group(0)!r} in selector template {template!r}")
        references.append((reference.group(1), reference.group(2)))
    leftover = _PLACEHOLDER.sub("", template)
    if "{{" in leftover or "}}" in leftover:
        raise BusinessError(f"Unbalanced placeholder in selector template {template!r}")
    return references


def validate_stencil(template: str, names: Iterable[str]) -> None:
    known = set(names)
    for name, _field in stencil_references(template):
        if name not in known:
            raise BusinessError(f"Selector template {template!r} references unknown extraction rule {name!r}")


def build_selector_template(match_selector: str, extraction_rules: Mapping[str, str], template: str) -> SelectorTemplate:
    validate_stencil(template, extraction_rules)
    return SelectorTemplate(
        match_selector=match_selector,
        extraction_rules=tuple(extraction_rules.items()),
        template=template,
    )


def render_stencil(template: str, context: Mapping[str, ExtractedValue]) -> str | None:
    """Substitute placeholders with escaped values, or ``None`` when a value is missing."""
    missing = False

    def _substitute(match: re.Match[str]) -> str:
        nonlocal missing
        reference = _REFERENCE.match(match.group(1))
        value = context.get(reference.group(1)) if reference else None
        if value is None:
            missing = True
            return ""
        field = reference.group(2)
        text = value.text if field == "text" else value.attributes.get(field)
        if text is None:
            missing = True
            return ""
        return css_escape(text)

    rendered = _PLACEHOLDER.sub(_substitute, template)
    return None if missing else rendered


def extract_value(element: Tag) -> ExtractedValue:
    return ExtractedValue(
        attributes={name: value for name, value in dom.attribute_items(element)},
        text=normalize_space(dom.text_content(element), limit=1000),
    )


def instantiate_template(template: SelectorTemplate, ancestor: Tag) -> str | None:
    if not dom.matches(ancestor, template.match_selector):
        return None
    context: dict[str, ExtractedValue] = {}
    for name, selector in template.extraction_rules:
        found = dom.resolve(selector, ancestor)
        if not found:
            return None
        context[name] = extract_value(found[0])
    return render_stencil(template.template, context)


def find_ancestor_override(ancestor: Tag, hint: SiteSelectorHint, chain: list[str], root: Tag) -> str | None:
    """First override strategy producing a selector for ``ancestor``.

    Template selectors must single out ``ancestor`` under ``root`` once joined
    to the overrides already found above it.
    """
    for strategy in hint.ordered_overrides:
        if isinstance(strategy, SelectorTemplate):
            try:
                selector = instantiate_template(strategy, ancestor)
                if selector is None:
                    continue
                found = dom.resolve(" ".join([*chain, selector]), root)
            except InvalidSelectorError as exc:
                LOGGER.debug("Rejected selector template %r: %s", strategy.template, exc)
                continue
            if len(found) == 1 and found[0] is ancestor:
                return selector
            LOGGER.debug("Selector template %r matched %d element(s)", selector, len(found))
        elif isinstance(strategy, RequiredSelector):
            if dom.matches(ancestor, strategy.selector):
                return strategy.selector
    return None


def collect_ancestor_overrides(element: Tag, root: Tag | None, hint: SiteSelectorHint) -> list[tuple[Tag, str]]:
    """``(ancestor, selector)`` pairs from the outermost ancestor inward."""
    if not hint.overrides:
        return []
    scope = root if root is not None else dom.document_of(element)
    overrides: list[tuple[Tag, str]] = []
    for ancestor in reversed(dom.parents_until(element, root)):
        chain = [selector for _, selector in overrides]
        selector = find_ancestor_override(ancestor, hint, chain, scope)
        if selector is not None:
            overrides.append((ancestor, selector))
    return overrides
