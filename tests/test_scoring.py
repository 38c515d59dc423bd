import pytest

from inferselector.errors import MalformedInputError
from inferselector.scoring import describe_selector, is_structural, selector_preference, sort_by_preference


@pytest.mark.parametrize(
    ("selector", "expected"),
    [
        ("#best-link-on-the-page", -4),
        ('[data-cy="b4da55"]', -3),
        (".navItem", -2),
        (".birdsArentReal", -2),
        ("#parentId .birdsArentReal", -1),
        ("[data-test-id='b4da55'] input", -1),
        ("#parentId a", -1),
        (".card a", 0),
        ('[aria-label="Click elsewhere"]', 1),
        ("a", 1),
        ("#name > :nth-child(2)", 2),
        ("li:nth-of-type(3)", 2),
    ],
)
def test_selector_preference_buckets(selector: str, expected: int) -> None:
    assert selector_preference(selector) == expected


def test_hint_unique_attributes_count_as_unique() -> None:
    assert selector_preference("[data-component-id='x']") == 1
    assert selector_preference("[data-component-id='x']", ("id", "data-component-id")) == -3


def test_selector_lists_are_rejected() -> None:
    with pytest.raises(MalformedInputError):
        selector_preference("#a, #b")


def test_sort_by_length_on_ties() -> None:
    assert sort_by_preference(["#abc", "#a"]) == ["#a", "#abc"]


def test_sort_with_selector_getter() -> None:
    items = [{"foo": ".a"}, {"foo": "#a"}]
    assert sort_by_preference(items, lambda item: item["foo"]) == [{"foo": "#a"}, {"foo": ".a"}]


def test_sort_is_stable_for_identical_keys() -> None:
    items = [(".ab", 1), (".cd", 2), (".ef", 3)]
    ordered = sort_by_preference(items, lambda item: item[0])
    assert [index for _, index in ordered] == [1, 2, 3]


def test_unique_id_always_beats_structural() -> None:
    ordered = sort_by_preference([":nth-child(1)", "#a-very-long-identifier-for-the-element"])
    assert ordered[0].startswith("#")


def test_describe_selector_metadata() -> None:
    candidate = describe_selector("#root > li:nth-child(2)")
    assert candidate.token_count == 4
    assert candidate.starts_with_unique is True
    assert candidate.is_structural is True
    assert candidate.preference == 2
    assert not is_structural(".nth-child")
