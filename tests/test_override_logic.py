import pytest

from inferselector import dom
from inferselector.errors import BusinessError
from inferselector.models import ExtractedValue, RequiredSelector, SiteSelectorHint
from inferselector.override_logic import (
    build_selector_template,
    collect_ancestor_overrides,
    extract_value,
    instantiate_template,
    render_stencil,
    stencil_references,
    validate_stencil,
)


def _always(element, location: str) -> bool:
    return True


def test_stencil_references() -> None:
    assert stencil_references("[data-name='{{ row.text }}'] [id='{{row.data-id}}']") == [
        ("row", "text"),
        ("row", "data-id"),
    ]


@pytest.mark.parametrize("template", ["{{ row }}", "{{ row.text", "{{ 1row.text }}", "row.text }}"])
def test_invalid_stencils_raise(template: str) -> None:
    with pytest.raises(BusinessError):
        stencil_references(template)


def test_validate_stencil_rejects_unknown_names() -> None:
    validate_stencil("{{ row.text }}", ["row"])
    with pytest.raises(BusinessError, match="unknown extraction rule 'cell'"):
        validate_stencil("{{ cell.text }}", ["row"])


def test_render_stencil_escapes_values() -> None:
    context = {"row": ExtractedValue(attributes={"data-id": "a.b"}, text="Two words")}
    assert render_stencil("[title='{{ row.text }}'] #{{ row.data-id }}", context) == "[title='Two\\ words'] #a\\.b"


def test_render_stencil_returns_none_for_missing_values() -> None:
    context = {"row": ExtractedValue(attributes={}, text="x")}
    assert render_stencil("{{ row.href }}", context) is None
    assert render_stencil("{{ other.text }}", context) is None


def test_extract_value_normalizes_text() -> None:
    document = dom.parse_document('<p class="a b" data-x="1">  Hello \n  world </p>')
    value = extract_value(document.p)
    assert value.text == "Hello world"
    assert value.attributes == {"class": "a b", "data-x": "1"}


def test_instantiate_template_requires_match_and_extractions() -> None:
    document = dom.parse_document('<div class="row"><span class="name">Alpha</span></div><div class="row"></div>')
    first, second = dom.resolve(".row", document)
    template = build_selector_template(".row", {"name": ".name"}, ".row:has([title='{{ name.text }}'])")

    assert instantiate_template(template, first) == ".row:has([title='Alpha'])"
    assert instantiate_template(template, second) is None
    assert instantiate_template(template, document.span) is None


def test_templates_are_tried_before_required_selectors() -> None:
    document = dom.parse_document(
        '<div class="panel" data-key="k1"><span class="v">x</span></div>'
        '<div class="panel" data-key="k2"><span class="v">y</span></div>'
    )
    element = dom.resolve("[data-key='k2'] .v", document)[0]
    hint = SiteSelectorHint(
        name="panels",
        site_validator=_always,
        overrides=(
            RequiredSelector(".panel"),
            build_selector_template(".panel", {"self": ".v"}, "[data-key='k2']"),
        ),
    )

    overrides = collect_ancestor_overrides(element, None, hint)

    assert [selector for _, selector in overrides] == ["[data-key='k2']"]


def test_no_overrides_without_hint_rules() -> None:
    document = dom.parse_document('<div class="x"><span></span></div>')
    hint = SiteSelectorHint(name="empty")
    assert collect_ancestor_overrides(document.span, None, hint) == []
