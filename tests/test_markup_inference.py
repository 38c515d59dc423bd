import pytest

from inferselector import dom
from inferselector.errors import BusinessError
from inferselector.markup_inference import (
    MarkupGeneralizer,
    common_attribute,
    container_children,
    infer_button_html,
    infer_panel_html,
    remove_unstyled_layout,
)

MENU = (
    '<ul class="menu">'
    '<li class="item"><a href="/a" class="link">Alpha</a></li>'
    '<li class="item"><a href="/a" class="link">Alpha</a></li>'
    "</ul>"
)

PANELS = (
    '<div class="panels">'
    '<section class="panel"><header><h3>Title A</h3></header><div class="content"><p>Body A</p></div></section>'
    '<section class="panel"><header><h3>Title B</h3></header><div class="content"><p>Body B</p></div></section>'
    "</div>"
)


def _document(html: str):
    return dom.parse_document(f"<html><body>{html}</body></html>")


def test_identical_examples_generalize_like_a_single_one() -> None:
    document = _document(MENU)
    container = document.find("ul")
    first, second = dom.resolve("a", container)

    multi = infer_button_html(container, [first, second])
    single = infer_button_html(container, [first])

    assert multi == single
    assert multi == '<li class="item"><a class="link" href="#">{{{ caption }}}</a></li>'


def test_only_shared_classes_are_kept() -> None:
    document = _document(
        '<div class="bar">'
        '<button class="btn btn-primary ember-view" tabindex="0">Save</button>'
        '<button class="btn btn-secondary ember-view" tabindex="0">Cancel</button>'
        "</div>"
    )
    container = document.find("div")
    html = infer_button_html(container, dom.resolve("button", container))
    assert html == '<button class="btn">{{{ caption }}}</button>'


def test_empty_selection_is_an_error() -> None:
    document = _document(MENU)
    with pytest.raises(BusinessError, match="One or more prototype button-like elements required"):
        infer_button_html(document.find("ul"), [])
    with pytest.raises(BusinessError):
        infer_panel_html(document.find("ul"), [])


def test_input_buttons_use_a_literal_template() -> None:
    document = _document(
        '<div class="bar"><input type="submit" value="Save" /><input type="submit" value="Cancel" /></div>'
    )
    container = document.find("div")
    html = infer_button_html(container, [dom.resolve("input", container)[0]])
    assert html == '<input type="button" value="{{{ caption }}}" />'


def test_container_without_buttons_is_an_error() -> None:
    document = _document('<div class="c"><p>Hi</p></div>')
    container = document.find("div")
    with pytest.raises(BusinessError, match="Did not find any button-like tags in container DIV"):
        infer_button_html(container, [document.p])


def test_chevron_nodes_are_dropped() -> None:
    document = _document(
        '<div class="bar">'
        '<button class="btn"><span>Go</span><i class="chevron-down"></i></button>'
        '<button class="btn"><span>Stop</span><i class="chevron-down"></i></button>'
        "</div>"
    )
    container = document.find("div")
    html = infer_button_html(container, dom.resolve("button", container))
    assert html == '<button class="btn"><span>{{{ caption }}}</span></button>'


def test_icons_become_placeholders() -> None:
    document = _document('<nav><a class="x"><svg></svg>Label</a><a class="x"><svg></svg>Other</a></nav>')
    container = document.find("nav")
    html = infer_button_html(container, dom.resolve("a", container))
    assert html == '<a class="x" href="#">{{{ icon }}}{{{ caption }}}</a>'


def test_remove_unstyled_layout_collapses_wrappers() -> None:
    document = _document("<li><div><!-- note --><a>X</a></div></li>")
    assert str(remove_unstyled_layout(document.li)) == "<li><a>X</a></li>"


def test_styled_wrappers_are_kept() -> None:
    document = _document('<li><div class="wrap"><a>X</a></div></li>')
    assert str(remove_unstyled_layout(document.li)) == '<li><div class="wrap"><a>X</a></div></li>'


def test_common_attribute() -> None:
    document = _document('<a class="a b c" rel="x y" title="t"></a><a class="c a" rel="y" title="u"></a>')
    first, second = document.find_all("a")
    assert common_attribute([first, second], "class") == "a c"
    assert common_attribute([first, second], "rel") == "y"
    assert common_attribute([first, second], "title") is None
    assert common_attribute([first], "title") == "t"


def test_container_children_prefers_exact_children() -> None:
    document = _document(MENU)
    container = document.find("ul")
    items = container.find_all("li")
    anchor = items[1].a
    assert container_children(container, [items[0], anchor]) == [items[0], items[1]]
    with pytest.raises(BusinessError):
        container_children(items[0], [anchor])


def test_panels_generalize_heading_and_body() -> None:
    document = _document(PANELS)
    container = document.find("div", class_="panels")
    sections = container.find_all("section")

    multi = infer_panel_html(container, sections)
    single = infer_panel_html(container, [sections[0]])

    expected = (
        '<section class="panel"><header><h3>{{{ heading }}}</h3></header>'
        '<div class="content">{{{ body }}}</div></section>'
    )
    assert multi == expected
    assert single == expected


def test_markup_generalizer_kinds() -> None:
    document = _document(PANELS)
    container = document.find("div", class_="panels")
    sections = container.find_all("section")
    assert MarkupGeneralizer("panel").generalize(container, sections) == infer_panel_html(container, sections)
    with pytest.raises(ValueError):
        MarkupGeneralizer("table")
