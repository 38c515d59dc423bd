from inferselector import dom
from inferselector.validation import filter_valid_selectors, validate_selector

PAGE = dom.parse_document(
    "<html><body>"
    '<ul class="nav"><li class="item">A</li><li class="item" id="b">B</li></ul>'
    "</body></html>"
)


def _target():
    return dom.resolve("#b", PAGE)


def test_validate_selector_accepts_exact_match() -> None:
    result = validate_selector("#b", _target(), PAGE)
    assert result.ok is True
    assert result.match_count == 1


def test_validate_selector_rejects_empty_match() -> None:
    result = validate_selector(".missing", _target(), PAGE)
    assert result.ok is False
    assert result.message == "Selector matches nothing."


def test_validate_selector_rejects_extra_matches() -> None:
    result = validate_selector(".item", _target(), PAGE)
    assert result.ok is False
    assert result.match_count == 2
    assert result.message == "Selector matches 2 element(s), expected 1."


def test_validate_selector_reports_invalid_syntax() -> None:
    result = validate_selector("li[", _target(), PAGE)
    assert result.ok is False
    assert result.message.startswith("Invalid selector: li[")


def test_validate_selector_is_scoped_to_root() -> None:
    root = dom.resolve("ul", PAGE)[0]
    assert validate_selector("#b", _target(), root).ok is True
    assert validate_selector(".nav > #b", _target(), root).ok is True
    sibling = dom.resolve("li", PAGE)[0]
    assert validate_selector("#b", _target(), sibling).message == "Selector matches nothing."


def test_filter_valid_selectors_keeps_order() -> None:
    candidates = ["li", "#b", ".item", ".nav #b", "li["]
    assert filter_valid_selectors(candidates, _target(), PAGE) == ["#b", ".nav #b"]
