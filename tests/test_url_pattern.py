import pytest

from inferselector.errors import InvalidPatternError
from inferselector.url_pattern import (
    compile_url_pattern,
    split_pattern_string,
    url_components,
    url_matches_url_patterns,
)


def test_named_parameter_matches_one_segment() -> None:
    pattern = compile_url_pattern("https://example.com/books/:id")
    assert pattern.test("https://example.com/books/123")
    assert not pattern.test("https://example.com/books/")
    assert not pattern.test("https://example.com/books/1/2")


def test_wildcard_hostname() -> None:
    pattern = compile_url_pattern("https://*.example.com/*")
    assert pattern.test("https://www.example.com/a")
    assert not pattern.test("https://www.example.org/a")


def test_component_mapping() -> None:
    pattern = compile_url_pattern({"hash": "section-*"})
    assert pattern.test("https://example.com/docs#section-2")
    assert not pattern.test("https://example.com/docs#intro")


def test_optional_group() -> None:
    pattern = compile_url_pattern({"pathname": "/items{/:id}?"})
    assert pattern.test("https://example.com/items")
    assert pattern.test("https://example.com/items/7")


def test_invalid_regex_names_the_component() -> None:
    with pytest.raises(InvalidPatternError) as excinfo:
        compile_url_pattern({"pathname": "/(foo"})
    assert excinfo.value.key == "pathname"


def test_unknown_component_key() -> None:
    with pytest.raises(InvalidPatternError, match="path") as excinfo:
        compile_url_pattern({"path": "/x"})
    assert excinfo.value.key == "path"


def test_relative_string_pattern_is_invalid() -> None:
    with pytest.raises(InvalidPatternError):
        compile_url_pattern("/books/:id")


def test_split_pattern_string_defaults_to_wildcards() -> None:
    parts = split_pattern_string("https://example.com:8443/a?q=1#top")
    assert parts["hostname"] == "example.com"
    assert parts["port"] == "8443"
    assert parts["pathname"] == "/a"
    assert parts["search"] == "q=1"
    assert parts["hash"] == "top"
    assert parts["username"] == "*"


def test_url_components_drop_default_ports() -> None:
    components = url_components("https://Example.com:443/path?x=1#frag")
    assert components["hostname"] == "example.com"
    assert components["port"] == ""
    assert components["search"] == "x=1"
    assert components["hash"] == "frag"


def test_any_pattern_may_match() -> None:
    patterns = ["https://example.com/a", {"pathname": "/b"}]
    assert url_matches_url_patterns(patterns, "https://other.com/b")
    assert not url_matches_url_patterns(patterns, "https://other.com/c")
